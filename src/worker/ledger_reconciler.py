"""Ledger Reconciliation Background Worker

Periodically checks stored balances against history:
company available credit against the latest credit transaction and
payment refunded_amount against completed refunds.
Can be run as a standalone script or integrated with a scheduler.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.company_repository import SqlAlchemyCompanyRepository
from src.adapter.repositories.credit_transaction_repository import SqlAlchemyCreditTransactionRepository
from src.adapter.repositories.payment_repository import SqlAlchemyPaymentRepository
from src.adapter.repositories.refund_repository import SqlAlchemyRefundRepository
from src.app.use_cases.reconciliation import ReconcileLedger, ReconciliationResultDTO

logger = logging.getLogger(__name__)


class LedgerReconcilerWorker:
    """
    Background worker for balance reconciliation

    Features:
    - Read-only: discrepancies are logged, never corrected
    - Can run once or continuously
    - Configurable interval (default: daily)

    Usage:
        worker = LedgerReconcilerWorker()
        result = await worker.run_once()
        await worker.run_forever(interval_seconds=86400)
    """

    def __init__(self, db_uri: Optional[str] = None):
        """
        Args:
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
        """
        self.db_uri = db_uri or ApplicationConfig.DB_URI

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        logger.info("LedgerReconcilerWorker initialized")

    async def run_once(self) -> ReconciliationResultDTO:
        if not getattr(ApplicationConfig, "RECONCILIATION_ENABLED", True):
            logger.info("Ledger reconciliation is disabled, skipping")
            return ReconciliationResultDTO(
                total_companies_checked=0,
                total_payments_checked=0,
                discrepancies_found=0,
                credit_discrepancies=[],
                refund_discrepancies=[],
                reconciliation_time=datetime.utcnow(),
                execution_time_ms=0,
            )

        async with self.async_session_factory() as session:
            use_case = ReconcileLedger(
                company_repo=SqlAlchemyCompanyRepository(session),
                transaction_repo=SqlAlchemyCreditTransactionRepository(session),
                payment_repo=SqlAlchemyPaymentRepository(session),
                refund_repo=SqlAlchemyRefundRepository(session),
            )

            result = await use_case.execute()

            if result.is_err():
                logger.error(f"Reconciliation failed: {result.error.message}")
                raise RuntimeError(f"Reconciliation failed: {result.error.message}")

            response = result.value

            if response.discrepancies_found > 0:
                logger.error(f"ALERT: {response.discrepancies_found} balance discrepancies found!")
                for d in response.credit_discrepancies:
                    logger.error(
                        f"  - Company {d.company_id}: expected={d.expected_available}, "
                        f"actual={d.available_credit}, diff={d.discrepancy}"
                    )
                for d in response.refund_discrepancies:
                    logger.error(
                        f"  - Payment {d.payment_id}: completed_refunds={d.completed_refunds_total}, "
                        f"refunded_amount={d.refunded_amount}, diff={d.discrepancy}"
                    )

            return response

    async def run_forever(self, interval_seconds: int = 86400):
        logger.info(f"Starting continuous ledger reconciliation with {interval_seconds}s interval")

        while True:
            try:
                result = await self.run_once()
                logger.info(
                    f"Reconciliation cycle complete. "
                    f"Checked {result.total_companies_checked} companies and "
                    f"{result.total_payments_checked} payments, "
                    f"found {result.discrepancies_found} discrepancies "
                    f"in {result.execution_time_ms}ms"
                )
            except Exception as e:
                logger.error(f"Reconciliation cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        await self.engine.dispose()
        logger.info("LedgerReconcilerWorker shutdown complete")


async def main():
    """
    Usage:
        python -m src.worker.ledger_reconciler --once
        python -m src.worker.ledger_reconciler --interval 3600
    """
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Ledger Reconciliation Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.RECONCILIATION_INTERVAL_SECONDS,
        help="Interval between runs in seconds (default: 86400 = 24 hours)"
    )
    args = parser.parse_args()

    worker = LedgerReconcilerWorker()

    try:
        if args.once:
            result = await worker.run_once()
            print("Reconciliation complete:")
            print(f"  Companies checked: {result.total_companies_checked}")
            print(f"  Payments checked: {result.total_payments_checked}")
            print(f"  Discrepancies found: {result.discrepancies_found}")
            print(f"  Execution time: {result.execution_time_ms}ms")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
