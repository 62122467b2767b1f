"""Pending Refund Reconciliation Worker

Resolves refunds stuck in pending (process died after recording the refund
but before recording the gateway outcome) by asking the gateway about
their idempotency keys.
"""

import asyncio
import logging
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.payment_repository import SqlAlchemyPaymentRepository
from src.adapter.repositories.refund_repository import SqlAlchemyRefundRepository
from src.adapter.services.audit_log_service import create_audit_log_service
from src.adapter.services.payment_gateway import create_payment_gateway
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.payment_gateway import PaymentGateway
from src.app.use_cases.payments import ReconcilePendingRefunds, RefundReconciliationResultDTO

logger = logging.getLogger(__name__)


class RefundReconcilerWorker:
    """
    Usage:
        worker = RefundReconcilerWorker()
        result = await worker.run_once()
        await worker.run_forever(interval_seconds=300)
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        gateway: Optional[PaymentGateway] = None,
        pending_threshold_seconds: Optional[int] = None,
    ):
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.gateway = gateway or create_payment_gateway(
            ApplicationConfig.PAYMENT_GATEWAY_BACKEND,
            base_url=ApplicationConfig.PAYMENT_GATEWAY_URL,
            api_key=ApplicationConfig.PAYMENT_GATEWAY_API_KEY,
            timeout=ApplicationConfig.PAYMENT_GATEWAY_TIMEOUT_SECONDS,
        )
        self.pending_threshold_seconds = (
            pending_threshold_seconds
            if pending_threshold_seconds is not None
            else ApplicationConfig.REFUND_PENDING_THRESHOLD_SECONDS
        )
        self.audit_log = create_audit_log_service(ApplicationConfig.AUDIT_WEBHOOK_URL)

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        logger.info("RefundReconcilerWorker initialized")

    async def run_once(self) -> RefundReconciliationResultDTO:
        if not getattr(ApplicationConfig, "REFUND_RECONCILIATION_ENABLED", True):
            logger.info("Refund reconciliation is disabled, skipping")
            return RefundReconciliationResultDTO(
                total_checked=0, completed=0, failed=0, still_pending=0, details=[], execution_time_ms=0
            )

        async with self.async_session_factory() as session:
            use_case = ReconcilePendingRefunds(
                uow=SqlAlchemyUnitOfWork(session),
                payment_repo=SqlAlchemyPaymentRepository(session),
                refund_repo=SqlAlchemyRefundRepository(session),
                gateway=self.gateway,
                audit_log=self.audit_log,
                gateway_timeout=ApplicationConfig.PAYMENT_GATEWAY_TIMEOUT_SECONDS,
            )

            result = await use_case.execute(older_than_seconds=self.pending_threshold_seconds)

            if result.is_err():
                logger.error(f"Refund reconciliation failed: {result.error.message}")
                raise RuntimeError(f"Refund reconciliation failed: {result.error.message}")

            return result.value

    async def run_forever(self, interval_seconds: int = 300):
        logger.info(f"Starting pending refund reconciliation with {interval_seconds}s interval")

        while True:
            try:
                result = await self.run_once()
                logger.info(
                    f"Refund reconciliation cycle complete. Checked {result.total_checked}, "
                    f"completed {result.completed}, failed {result.failed}, "
                    f"still pending {result.still_pending}, already resolved {result.already_resolved}"
                )
            except Exception as e:
                logger.error(f"Refund reconciliation cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        await self.engine.dispose()
        logger.info("RefundReconcilerWorker shutdown complete")


async def main():
    """
    Usage:
        python -m src.worker.refund_reconciler --once
        python -m src.worker.refund_reconciler --interval 60
    """
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Pending Refund Reconciliation Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.REFUND_RECONCILIATION_INTERVAL_SECONDS,
        help="Interval between runs in seconds (default: 300)"
    )
    args = parser.parse_args()

    worker = RefundReconcilerWorker()

    try:
        if args.once:
            result = await worker.run_once()
            print("Refund reconciliation complete:")
            print(f"  Checked: {result.total_checked}")
            print(f"  Completed: {result.completed}")
            print(f"  Failed: {result.failed}")
            print(f"  Still pending: {result.still_pending}")
            print(f"  Already resolved: {result.already_resolved}")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
