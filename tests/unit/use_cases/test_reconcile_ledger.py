"""Unit tests for ReconcileLedger use case"""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.reconciliation.reconcile_ledger import ReconcileLedger
from src.domain.credit_transaction import CreditTransaction, TransactionType


def latest_txn(available_after):
    return CreditTransaction(
        id=1,
        company_id="company_123",
        transaction_type=TransactionType.PAYMENT,
        amount=Decimal("-100.00"),
        available_before=Decimal(available_after) + Decimal("100.00"),
        available_after=Decimal(available_after),
        credit_limit_after=Decimal("1000.00"),
        created_by="user_1",
    )


@pytest.fixture
def repos():
    company_repo = MagicMock()
    company_repo.get_all = AsyncMock(return_value=[])
    transaction_repo = MagicMock()
    transaction_repo.get_latest_by_company = AsyncMock(return_value=None)
    payment_repo = MagicMock()
    payment_repo.get_all = AsyncMock(return_value=[])
    refund_repo = MagicMock()
    refund_repo.get_completed_sum_by_payment = AsyncMock(return_value=Decimal("0"))
    return company_repo, transaction_repo, payment_repo, refund_repo


@pytest.mark.asyncio
class TestReconcileLedger:

    async def test_balanced_books(self, repos, make_company, make_payment):
        company_repo, transaction_repo, payment_repo, refund_repo = repos
        company_repo.get_all = AsyncMock(return_value=[make_company("1000.00", "900.00")])
        transaction_repo.get_latest_by_company = AsyncMock(return_value=latest_txn("900.00"))
        payment_repo.get_all = AsyncMock(return_value=[make_payment(refunded_amount="40.00")])
        refund_repo.get_completed_sum_by_payment = AsyncMock(return_value=Decimal("40.00"))

        result = await ReconcileLedger(*repos).execute()

        assert result.is_ok()
        assert result.value.total_companies_checked == 1
        assert result.value.total_payments_checked == 1
        assert result.value.discrepancies_found == 0

    async def test_detects_credit_drift(self, repos, make_company):
        """
        Given: available_credit 950 but the last transaction says 900
        When: Reconciling
        Then: One credit discrepancy of +50
        """
        company_repo, transaction_repo, _, _ = repos
        company_repo.get_all = AsyncMock(return_value=[make_company("1000.00", "950.00")])
        transaction_repo.get_latest_by_company = AsyncMock(return_value=latest_txn("900.00"))

        result = await ReconcileLedger(*repos).execute()

        assert result.is_ok()
        assert result.value.discrepancies_found == 1
        drift = result.value.credit_discrepancies[0]
        assert drift.expected_available == Decimal("900.00")
        assert drift.discrepancy == Decimal("50.00")

    async def test_company_without_history_expects_zero(self, repos, make_company):
        company_repo, _, _, _ = repos
        company_repo.get_all = AsyncMock(return_value=[make_company("500.00")])

        result = await ReconcileLedger(*repos).execute()

        assert result.value.credit_discrepancies[0].expected_available == Decimal("0")

    async def test_detects_refund_drift(self, repos, make_payment):
        _, _, payment_repo, refund_repo = repos
        payment_repo.get_all = AsyncMock(return_value=[make_payment(refunded_amount="60.00")])
        refund_repo.get_completed_sum_by_payment = AsyncMock(return_value=Decimal("40.00"))

        result = await ReconcileLedger(*repos).execute()

        assert result.value.discrepancies_found == 1
        assert result.value.refund_discrepancies[0].discrepancy == Decimal("20.00")

    async def test_store_error(self, repos):
        company_repo, _, _, _ = repos
        company_repo.get_all = AsyncMock(side_effect=Exception("DB down"))

        result = await ReconcileLedger(*repos).execute()

        assert result.is_err()
        assert result.error.code == "RECONCILIATION_FAILED"
