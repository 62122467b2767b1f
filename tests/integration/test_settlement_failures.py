"""Outcome persistence failures and overlapping refunds against a real database session

A rolled-back AsyncSession expires every loaded row, so these run on aiosqlite
rather than mocks.
"""

import asyncio
import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.repositories import SqlAlchemyPaymentRepository, SqlAlchemyRefundRepository
from src.adapter.services import AllowAllAccessGuard, SqlAlchemyUnitOfWork
from src.adapter.services.payment_gateway import FakePaymentGateway
from src.app.services.payment_gateway import GatewayError
from src.app.use_cases.payments import CreatePayment, CreateRefund, ReconcilePendingRefunds
from src.app.use_cases.payments.dtos import CreatePaymentCommandDTO
from src.domain.payment import PaymentStatus
from src.domain.refund import Refund, RefundStatus

from .test_refund_flow import completed_payment, refund_command, refund_drift


class CommitFailsOnCall(SqlAlchemyUnitOfWork):
    """Unit of work whose n-th commit raises without committing"""

    def __init__(self, session, failing_call: int):
        super().__init__(session)
        self.failing_call = failing_call
        self.commits = 0

    async def commit(self):
        self.commits += 1
        if self.commits == self.failing_call:
            raise RuntimeError("database connection lost")
        await super().commit()


class HeldRefundGateway(FakePaymentGateway):
    """Fake gateway that holds every refund call until released"""

    def __init__(self):
        super().__init__()
        self.refund_started = asyncio.Event()
        self.release = asyncio.Event()

    async def refund(self, provider_payment_id, amount, reason, idempotency_key):
        self.refund_started.set()
        await self.release.wait()
        return await super().refund(provider_payment_id, amount, reason, idempotency_key)


def refund_use_case(session, gateway, uow=None):
    return CreateRefund(
        uow or SqlAlchemyUnitOfWork(session),
        SqlAlchemyPaymentRepository(session),
        SqlAlchemyRefundRepository(session),
        gateway,
        AllowAllAccessGuard(),
        non_refundable_methods=["COD"],
    )


def reconciler(session, gateway):
    return ReconcilePendingRefunds(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyPaymentRepository(session),
        SqlAlchemyRefundRepository(session),
        gateway,
    )


class TestOutcomePersistenceFailures:

    @pytest.mark.asyncio
    async def test_gateway_failure_with_failed_outcome_commit_returns_gateway_failure(self, db_session, gateway):
        """
        Given: The gateway raises on refund and recording the failed refund cannot be committed
        When: A refund is requested
        Then: GATEWAY_FAILURE is returned and the refund stays pending for reconciliation
        """
        # Arrange
        payment_id = await completed_payment(db_session, gateway)
        gateway.configure(raise_error=GatewayError("Gateway unreachable"))
        use_case = refund_use_case(db_session, gateway, uow=CommitFailsOnCall(db_session, failing_call=2))

        # Act
        result = await use_case.execute(refund_command(payment_id, "50.00"))

        # Assert
        assert result.is_err()
        assert result.error.code == "GATEWAY_FAILURE"
        assert result.error.reason == "Gateway unreachable"

        refunds = await SqlAlchemyRefundRepository(db_session).list_by_payment(payment_id)
        assert len(refunds) == 1
        assert refunds[0].status == RefundStatus.PENDING
        payment = await SqlAlchemyPaymentRepository(db_session).get_by_id(payment_id, for_update=True)
        assert payment.refunded_amount == Decimal("0")

    @pytest.mark.asyncio
    async def test_completed_refund_that_cannot_be_recorded_is_recovered_by_reconciler(self, db_session, gateway):
        """
        Given: The gateway accepts a refund but the completion commit fails
        When: The refund is requested and the reconciler runs afterwards
        Then: CREATE_REFUND_FAILED is returned, then the reconciler applies the refund once
        """
        payment_id = await completed_payment(db_session, gateway)
        use_case = refund_use_case(db_session, gateway, uow=CommitFailsOnCall(db_session, failing_call=2))

        result = await use_case.execute(refund_command(payment_id, "30.00"))

        assert result.error.code == "CREATE_REFUND_FAILED"
        payment = await SqlAlchemyPaymentRepository(db_session).get_by_id(payment_id, for_update=True)
        assert payment.refunded_amount == Decimal("0")

        recovered = await reconciler(db_session, gateway).execute(older_than_seconds=0)

        assert recovered.value.completed == 1
        payment = await SqlAlchemyPaymentRepository(db_session).get_by_id(payment_id, for_update=True)
        assert payment.refunded_amount == Decimal("30.00")
        assert await refund_drift(db_session) == []

    @pytest.mark.asyncio
    async def test_capture_outcome_commit_failure_returns_error(self, db_session, gateway):
        gateway.configure(should_succeed=False, failure_reason="Card declined")
        use_case = CreatePayment(
            CommitFailsOnCall(db_session, failing_call=2),
            SqlAlchemyPaymentRepository(db_session),
            gateway,
            AllowAllAccessGuard(),
        )

        result = await use_case.execute(
            CreatePaymentCommandDTO(
                order_id="order_789",
                user_id="user_123",
                acting_user_id="user_123",
                amount=Decimal("100.00"),
                payment_method_id="pm_card_visa",
                idempotency_key="payment:order_789:1",
            )
        )

        assert result.is_err()
        assert result.error.code == "CREATE_PAYMENT_FAILED"
        payment = await SqlAlchemyPaymentRepository(db_session).get_by_idempotency_key("payment:order_789:1")
        assert payment.status == PaymentStatus.PROCESSING


class TestPendingRefundBatch:

    @pytest.mark.asyncio
    async def test_batch_continues_after_refund_that_cannot_be_applied(self, db_session, gateway):
        """
        Given: Payment of 100 and gateway-confirmed pending refunds of 60, 60 and 40, oldest first
        When: The reconciler runs
        Then: The second stays pending, the first and third complete, the payment is fully refunded
        """
        # Arrange
        payment_id = await completed_payment(db_session, gateway)
        payment = await SqlAlchemyPaymentRepository(db_session).get_by_id(payment_id)
        provider_payment_id = payment.provider_payment_id
        for hours_ago, amount, key in [(3, "60.00", "refund:a"), (2, "60.00", "refund:b"), (1, "40.00", "refund:c")]:
            await gateway.refund(provider_payment_id, Decimal(amount), None, key)
            db_session.add(
                Refund(
                    payment_id=payment_id,
                    amount=Decimal(amount),
                    status=RefundStatus.PENDING,
                    requested_by="support_agent_7",
                    idempotency_key=key,
                    created_at=datetime.utcnow() - timedelta(hours=hours_ago),
                )
            )
        await db_session.commit()

        # Act
        result = await reconciler(db_session, gateway).execute(older_than_seconds=600)

        # Assert
        assert result.is_ok()
        assert [d.outcome for d in result.value.details] == ["completed", "still_pending", "completed"]

        refunds = await SqlAlchemyRefundRepository(db_session).list_by_payment(payment_id)
        by_key = {r.idempotency_key: r.status for r in refunds}
        assert by_key == {
            "refund:a": RefundStatus.COMPLETED,
            "refund:b": RefundStatus.PENDING,
            "refund:c": RefundStatus.COMPLETED,
        }
        payment = await SqlAlchemyPaymentRepository(db_session).get_by_id(payment_id, for_update=True)
        assert payment.refunded_amount == Decimal("100.00")
        assert payment.status == PaymentStatus.REFUNDED
        assert await refund_drift(db_session) == []


class TestOverlappingRefunds:

    @pytest.mark.asyncio
    async def test_refund_arriving_while_another_is_at_gateway_counts_it_in_flight(self, engine, db_session):
        """
        Given: Payment of 100 and a refund of 60 waiting on the gateway in one session
        When: A second refund of 60 arrives through another session
        Then: The second is refused with AMOUNT_EXCEEDED and only 60 is ever refunded
        """
        # Arrange
        gateway = HeldRefundGateway()
        payment_id = await completed_payment(db_session, gateway)
        Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

        async with Session() as first_session, Session() as second_session:
            first = asyncio.create_task(
                refund_use_case(first_session, gateway).execute(refund_command(payment_id, "60.00"))
            )
            await asyncio.wait_for(gateway.refund_started.wait(), timeout=5)

            # Act
            second = await refund_use_case(second_session, gateway).execute(refund_command(payment_id, "60.00"))
            gateway.release.set()
            first_result = await first

        # Assert
        assert second.is_err()
        assert second.error.code == "AMOUNT_EXCEEDED"
        assert first_result.is_ok()
        assert len([c for c in gateway.calls if c["method"] == "refund"]) == 1

        payment = await SqlAlchemyPaymentRepository(db_session).get_by_id(payment_id, for_update=True)
        assert payment.refunded_amount == Decimal("60.00")
        assert payment.status == PaymentStatus.COMPLETED
        assert await refund_drift(db_session) == []

