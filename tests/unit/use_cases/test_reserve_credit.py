"""Unit tests for ReserveCredit use case

Tests cover:
- Successful reservation with balance snapshots
- Insufficient credit leaves the balance untouched
- Non-positive amounts rejected before any read
- Idempotent replay
- Access denial
"""

import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.credit.dtos import ReserveCreditCommandDTO
from src.app.use_cases.credit.reserve_credit import ReserveCredit
from src.domain.credit_transaction import CreditTransaction, TransactionType


@pytest.fixture
def mock_company_repo():
    repo = MagicMock()
    repo.update_credit = AsyncMock()
    return repo


@pytest.fixture
def mock_transaction_repo():
    repo = MagicMock()
    repo.get_by_idempotency_key = AsyncMock(return_value=None)

    async def _create(transaction):
        transaction.id = 42
        return transaction

    repo.create = AsyncMock(side_effect=_create)
    return repo


@pytest.fixture
def reserve_use_case(mock_uow, mock_company_repo, mock_transaction_repo, mock_access_guard, mock_audit_log):
    return ReserveCredit(
        uow=mock_uow,
        company_repo=mock_company_repo,
        transaction_repo=mock_transaction_repo,
        access_guard=mock_access_guard,
        audit_log=mock_audit_log,
    )


def reserve_command(amount, idempotency_key=None):
    return ReserveCreditCommandDTO(
        company_id="company_123",
        amount=Decimal(amount),
        reference_id="po_456",
        reference_type="purchase_order",
        acting_user_id="user_123",
        idempotency_key=idempotency_key,
    )


@pytest.mark.asyncio
class TestReserveCreditSuccess:

    async def test_reserve_deducts_available_credit(
        self, reserve_use_case, mock_company_repo, mock_transaction_repo, mock_uow, mock_audit_log, make_company
    ):
        """
        Given: Company with credit_limit=1000, available_credit=1000
        When: reserve_credit(500) is called
        Then: available_credit=500, a negative PAYMENT transaction is appended
        """
        # Arrange
        mock_company_repo.get_by_id = AsyncMock(return_value=make_company("1000.00"))

        # Act
        result = await reserve_use_case.execute(reserve_command("500.00"))

        # Assert
        assert result.is_ok()
        response = result.value
        assert response.transaction_id == 42
        assert response.transaction_type == "payment"
        assert response.amount == Decimal("-500.00")
        assert response.available_before == Decimal("1000.00")
        assert response.available_credit == Decimal("500.00")
        assert response.credit_limit == Decimal("1000.00")

        mock_company_repo.get_by_id.assert_called_once_with("company_123", for_update=True)
        mock_company_repo.update_credit.assert_called_once_with(
            "company_123", Decimal("1000.00"), Decimal("500.00")
        )
        created = mock_transaction_repo.create.call_args[0][0]
        assert created.transaction_type == TransactionType.PAYMENT
        assert created.reference_id == "po_456"
        mock_uow.commit.assert_called_once()
        assert mock_audit_log.record.call_args[0][0].event_type == "credit.reserved"

    async def test_reserve_exact_available_amount(self, reserve_use_case, mock_company_repo, make_company):
        mock_company_repo.get_by_id = AsyncMock(return_value=make_company("1000.00", "500.00"))

        result = await reserve_use_case.execute(reserve_command("500.00"))

        assert result.is_ok()
        assert result.value.available_credit == Decimal("0.00")


@pytest.mark.asyncio
class TestReserveCreditFailures:

    async def test_insufficient_credit_leaves_balance_unchanged(
        self, reserve_use_case, mock_company_repo, mock_transaction_repo, mock_uow, make_company
    ):
        """
        Given: Company with available_credit=500
        When: reserve_credit(600) is called
        Then: INSUFFICIENT_CREDIT, nothing written
        """
        mock_company_repo.get_by_id = AsyncMock(return_value=make_company("1000.00", "500.00"))

        result = await reserve_use_case.execute(reserve_command("600.00"))

        assert result.is_err()
        assert result.error.code == "INSUFFICIENT_CREDIT"
        assert "Requested: 600.00" in result.error.message
        assert "Available: 500.00" in result.error.message
        mock_transaction_repo.create.assert_not_called()
        mock_company_repo.update_credit.assert_not_called()
        mock_uow.commit.assert_not_called()
        mock_uow.rollback.assert_called_once()

    @pytest.mark.parametrize("amount", ["-5", "0"])
    async def test_non_positive_amount_is_invalid_argument(
        self, reserve_use_case, mock_company_repo, mock_uow, amount
    ):
        """
        Given: Any company
        When: reserve_credit is called with amount <= 0
        Then: INVALID_ARGUMENT without reading or writing the company
        """
        mock_company_repo.get_by_id = AsyncMock()

        result = await reserve_use_case.execute(reserve_command(amount))

        assert result.is_err()
        assert result.error.code == "INVALID_ARGUMENT"
        mock_company_repo.get_by_id.assert_not_called()
        mock_company_repo.update_credit.assert_not_called()
        mock_uow.commit.assert_not_called()

    async def test_company_not_found_releases_lock(self, reserve_use_case, mock_company_repo, mock_uow):
        mock_company_repo.get_by_id = AsyncMock(return_value=None)

        result = await reserve_use_case.execute(reserve_command("10.00"))

        assert result.is_err()
        assert result.error.code == "COMPANY_NOT_FOUND"
        mock_uow.rollback.assert_called_once()
        mock_uow.commit.assert_not_called()

    async def test_denied_caller_is_unauthorized(
        self, mock_uow, mock_company_repo, mock_transaction_repo, denying_access_guard
    ):
        use_case = ReserveCredit(mock_uow, mock_company_repo, mock_transaction_repo, denying_access_guard)
        mock_company_repo.get_by_id = AsyncMock()

        result = await use_case.execute(reserve_command("10.00"))

        assert result.is_err()
        assert result.error.code == "UNAUTHORIZED"
        mock_company_repo.get_by_id.assert_not_called()

    async def test_store_error_rolls_back(
        self, reserve_use_case, mock_company_repo, mock_transaction_repo, mock_uow, make_company
    ):
        mock_company_repo.get_by_id = AsyncMock(return_value=make_company())
        mock_transaction_repo.create = AsyncMock(side_effect=Exception("connection lost"))

        result = await reserve_use_case.execute(reserve_command("10.00"))

        assert result.is_err()
        assert result.error.code == "RESERVE_CREDIT_FAILED"
        mock_uow.rollback.assert_called_once()
        mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
class TestReserveCreditIdempotency:

    async def test_repeated_key_replays_original_result(
        self, reserve_use_case, mock_company_repo, mock_transaction_repo, mock_uow
    ):
        """
        Given: A reservation already recorded with idempotency_key
        When: reserve_credit is called again with the same key
        Then: The original transaction is returned and no new deduction happens
        """
        mock_transaction_repo.get_by_idempotency_key = AsyncMock(
            return_value=CreditTransaction(
                id=7,
                company_id="company_123",
                transaction_type=TransactionType.PAYMENT,
                amount=Decimal("-500.00"),
                available_before=Decimal("1000.00"),
                available_after=Decimal("500.00"),
                credit_limit_after=Decimal("1000.00"),
                created_by="user_123",
                idempotency_key="reserve:po_456",
                created_at=datetime.utcnow(),
            )
        )
        mock_company_repo.get_by_id = AsyncMock()

        result = await reserve_use_case.execute(reserve_command("500.00", "reserve:po_456"))

        assert result.is_ok()
        assert result.value.transaction_id == 7
        assert result.value.available_credit == Decimal("500.00")
        mock_company_repo.get_by_id.assert_not_called()
        mock_transaction_repo.create.assert_not_called()
        mock_uow.commit.assert_not_called()

    async def test_key_reused_for_other_company_is_rejected(
        self, reserve_use_case, mock_transaction_repo
    ):
        mock_transaction_repo.get_by_idempotency_key = AsyncMock(
            return_value=CreditTransaction(
                id=7,
                company_id="other_company",
                transaction_type=TransactionType.PAYMENT,
                amount=Decimal("-500.00"),
                available_before=Decimal("1000.00"),
                available_after=Decimal("500.00"),
                credit_limit_after=Decimal("1000.00"),
                created_by="user_123",
                idempotency_key="reserve:po_456",
            )
        )

        result = await reserve_use_case.execute(reserve_command("500.00", "reserve:po_456"))

        assert result.is_err()
        assert result.error.code == "INVALID_ARGUMENT"
