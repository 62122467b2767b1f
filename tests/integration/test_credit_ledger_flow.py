"""Credit ledger use cases against a real database session"""

import pytest
from decimal import Decimal

from src.adapter.repositories import (
    SqlAlchemyCompanyRepository,
    SqlAlchemyCompanyUserRepository,
    SqlAlchemyCreditTransactionRepository,
    SqlAlchemyPaymentRepository,
    SqlAlchemyRefundRepository,
)
from src.adapter.services import AllowAllAccessGuard, SqlAlchemyUnitOfWork
from src.app.use_cases.credit import (
    AdjustCredit,
    CreateCompany,
    ListCreditTransactions,
    ReleaseCredit,
    ReserveCredit,
    SetCreditLimit,
)
from src.app.use_cases.credit.dtos import (
    AdjustCreditCommandDTO,
    CreateCompanyCommandDTO,
    ReleaseCreditCommandDTO,
    ReserveCreditCommandDTO,
    SetCreditLimitCommandDTO,
)
from src.app.use_cases.reconciliation import ReconcileLedger
from src.domain.company import LimitReductionPolicy


async def create_company(session, limit="1000.00"):
    result = await CreateCompany(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyCompanyRepository(session),
        SqlAlchemyCompanyUserRepository(session),
        SqlAlchemyCreditTransactionRepository(session),
    ).execute(
        CreateCompanyCommandDTO(name="Acme Industrial", owner_user_id="owner_1", initial_credit_limit=Decimal(limit))
    )
    assert result.is_ok()
    return result.value.company_id


def reserve_use_case(session):
    return ReserveCredit(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyCompanyRepository(session),
        SqlAlchemyCreditTransactionRepository(session),
        AllowAllAccessGuard(),
    )


def reserve_command(company_id, amount, reference_id="po_1", idempotency_key=None):
    return ReserveCreditCommandDTO(
        company_id=company_id,
        amount=Decimal(amount),
        reference_id=reference_id,
        reference_type="purchase_order",
        acting_user_id="owner_1",
        idempotency_key=idempotency_key,
    )


def release_use_case(session):
    return ReleaseCredit(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyCompanyRepository(session),
        SqlAlchemyCreditTransactionRepository(session),
        AllowAllAccessGuard(),
    )


def release_command(company_id, amount, reference_id="po_1"):
    return ReleaseCreditCommandDTO(
        company_id=company_id,
        amount=Decimal(amount),
        reference_id=reference_id,
        reference_type="purchase_order",
        acting_user_id="owner_1",
    )


async def balance(session, company_id):
    company = await SqlAlchemyCompanyRepository(session).get_by_id(company_id, for_update=True)
    return company.credit_limit, company.available_credit


async def reconcile(session):
    result = await ReconcileLedger(
        SqlAlchemyCompanyRepository(session),
        SqlAlchemyCreditTransactionRepository(session),
        SqlAlchemyPaymentRepository(session),
        SqlAlchemyRefundRepository(session),
    ).execute()
    assert result.is_ok()
    return result.value


class TestCreditLedgerFlow:

    @pytest.mark.asyncio
    async def test_reserve_release_keeps_history_consistent(self, db_session):
        """
        Given: Company with limit 1000
        When: 600 reserved, 200 released, then 700 requested
        Then: Balance 600, the 700 reservation is refused, history reconciles
        """
        # Arrange
        company_id = await create_company(db_session)

        # Act
        reserved = await reserve_use_case(db_session).execute(reserve_command(company_id, "600.00"))
        released = await ReleaseCredit(
            SqlAlchemyUnitOfWork(db_session),
            SqlAlchemyCompanyRepository(db_session),
            SqlAlchemyCreditTransactionRepository(db_session),
            AllowAllAccessGuard(),
        ).execute(
            ReleaseCreditCommandDTO(
                company_id=company_id,
                amount=Decimal("200.00"),
                reference_id="po_1",
                reference_type="purchase_order",
                acting_user_id="owner_1",
            )
        )
        refused = await reserve_use_case(db_session).execute(reserve_command(company_id, "700.00", "po_2"))

        # Assert
        assert reserved.is_ok()
        assert released.value.available_credit == Decimal("600.00")
        assert refused.is_err()
        assert refused.error.code == "INSUFFICIENT_CREDIT"

        company = await SqlAlchemyCompanyRepository(db_session).get_by_id(company_id)
        assert company.available_credit == Decimal("600.00")

        history = await ListCreditTransactions(SqlAlchemyCreditTransactionRepository(db_session)).execute(company_id)
        assert history.value.total == 3
        assert [t.transaction_type for t in history.value.transactions] == [
            "refund",
            "payment",
            "limit_assignment",
        ]

        report = await reconcile(db_session)
        assert report.discrepancies_found == 0

    @pytest.mark.asyncio
    async def test_idempotent_reservation_deducts_once(self, db_session):
        company_id = await create_company(db_session)
        use_case = reserve_use_case(db_session)

        first = await use_case.execute(reserve_command(company_id, "250.00", idempotency_key="reserve:po_1"))
        second = await use_case.execute(reserve_command(company_id, "250.00", idempotency_key="reserve:po_1"))

        assert first.is_ok()
        assert second.is_ok()
        assert second.value.transaction_id == first.value.transaction_id
        company = await SqlAlchemyCompanyRepository(db_session).get_by_id(company_id)
        assert company.available_credit == Decimal("750.00")

    @pytest.mark.asyncio
    async def test_lowering_limit_below_usage_preserves_overdraw(self, db_session):
        """
        Given: Limit 1000 with 800 reserved
        When: Limit lowered to 500 (preserve policy)
        Then: available_credit is -300 and the ledger still reconciles
        """
        company_id = await create_company(db_session)
        await reserve_use_case(db_session).execute(reserve_command(company_id, "800.00"))

        result = await SetCreditLimit(
            SqlAlchemyUnitOfWork(db_session),
            SqlAlchemyCompanyRepository(db_session),
            SqlAlchemyCreditTransactionRepository(db_session),
            AllowAllAccessGuard(),
            reduction_policy=LimitReductionPolicy.PRESERVE,
        ).execute(
            SetCreditLimitCommandDTO(company_id=company_id, new_limit=Decimal("500.00"), acting_user_id="owner_1")
        )

        assert result.is_ok()
        assert result.value.available_credit == Decimal("-300.00")
        assert (await reconcile(db_session)).discrepancies_found == 0


class TestCreditLedgerProperties:

    @pytest.mark.asyncio
    async def test_available_credit_stays_within_limit_across_operations(self, db_session):
        """
        Given: Company with limit 1000 and the clamp reduction policy
        When: A mixed sequence of limit changes, reservations, releases and adjustments runs
        Then: 0 <= available_credit <= credit_limit after every step and the log reconciles
        """
        # Arrange
        company_id = await create_company(db_session)
        set_limit = SetCreditLimit(
            SqlAlchemyUnitOfWork(db_session),
            SqlAlchemyCompanyRepository(db_session),
            SqlAlchemyCreditTransactionRepository(db_session),
            AllowAllAccessGuard(),
            reduction_policy=LimitReductionPolicy.CLAMP,
        )
        adjust = AdjustCredit(
            SqlAlchemyUnitOfWork(db_session),
            SqlAlchemyCompanyRepository(db_session),
            SqlAlchemyCreditTransactionRepository(db_session),
            AllowAllAccessGuard(),
        )

        def limit_to(amount):
            return set_limit.execute(
                SetCreditLimitCommandDTO(company_id=company_id, new_limit=Decimal(amount), acting_user_id="owner_1")
            )

        def adjust_by(amount):
            return adjust.execute(
                AdjustCreditCommandDTO(company_id=company_id, amount=Decimal(amount), acting_user_id="owner_1")
            )

        steps = [
            lambda: reserve_use_case(db_session).execute(reserve_command(company_id, "300.00", "po_1")),
            lambda: release_use_case(db_session).execute(release_command(company_id, "500.00", "po_1")),
            lambda: adjust_by("-2000.00"),
            lambda: adjust_by("100.00"),
            lambda: limit_to("50.00"),
            lambda: reserve_use_case(db_session).execute(reserve_command(company_id, "60.00", "po_2")),
            lambda: reserve_use_case(db_session).execute(reserve_command(company_id, "50.00", "po_3")),
            lambda: release_use_case(db_session).execute(release_command(company_id, "10.00", "po_3")),
            lambda: limit_to("2000.00"),
            lambda: adjust_by("5000.00"),
            lambda: limit_to("0"),
        ]

        # Act / Assert
        for step in steps:
            await step()
            credit_limit, available = await balance(db_session, company_id)
            assert Decimal("0") <= available <= credit_limit

        assert (await reconcile(db_session)).discrepancies_found == 0

    @pytest.mark.asyncio
    async def test_releasing_the_same_amount_twice_is_capped_at_limit(self, db_session):
        """
        Given: Limit 1000 with 400 reserved
        When: 300 is released twice
        Then: First release gives 900, second stops at 1000 instead of 1200
        """
        company_id = await create_company(db_session)
        await reserve_use_case(db_session).execute(reserve_command(company_id, "400.00"))

        first = await release_use_case(db_session).execute(release_command(company_id, "300.00"))
        second = await release_use_case(db_session).execute(release_command(company_id, "300.00"))

        assert first.value.available_credit == Decimal("900.00")
        assert second.value.available_credit == Decimal("1000.00")
        assert await balance(db_session, company_id) == (Decimal("1000.00"), Decimal("1000.00"))
        assert (await reconcile(db_session)).discrepancies_found == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["0.01", "123.45", "750.00"])
    async def test_reserve_then_release_restores_balance(self, db_session, amount):
        """
        Given: Limit 1000 with 250 already reserved
        When: x is reserved and then x released
        Then: available_credit is back at 750
        """
        company_id = await create_company(db_session)
        await reserve_use_case(db_session).execute(reserve_command(company_id, "250.00", "po_0"))

        reserved = await reserve_use_case(db_session).execute(reserve_command(company_id, amount, "po_1"))
        released = await release_use_case(db_session).execute(release_command(company_id, amount, "po_1"))

        assert reserved.value.available_credit == Decimal("750.00") - Decimal(amount)
        assert released.value.available_credit == Decimal("750.00")
        assert await balance(db_session, company_id) == (Decimal("1000.00"), Decimal("750.00"))
