"""ReconcilePendingRefunds Use Case

Resolves refunds left pending when the process died between committing the
pending row and recording the gateway outcome.
"""

import asyncio
import logging
import time
from datetime import datetime, timedelta
from decimal import Decimal
from typing import NamedTuple, Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.audit_log_service import AuditEvent, AuditLogService, record_safely
from src.app.services.payment_gateway import PaymentGateway
from src.app.repositories.payment_repository import PaymentRepository
from src.app.repositories.refund_repository import RefundRepository
from src.domain.refund import RefundStatus
from .dtos import PendingRefundReconciliationDTO, RefundReconciliationResultDTO
from .refund_settlement import RefundBookkeepingError, settle_refund_failure, settle_refund_success

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system:refund_reconciler"


class PendingRefundKey(NamedTuple):
    """Plain copy of a pending refund; ORM rows expire when a settlement rolls back"""
    refund_id: str
    payment_id: str
    amount: Decimal
    idempotency_key: str


class ReconcilePendingRefunds:
    """
    Use Case: Ask the gateway about stale pending refunds

    - gateway reports success: refund completed and applied to the payment
    - gateway reports failure or never saw the key: refund failed
    - lookup error, timeout or bookkeeping error: left pending for the next run
    - resolved by someone else in the meantime: skipped

    One failing refund never stops the rest of the batch.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        payment_repo: PaymentRepository,
        refund_repo: RefundRepository,
        gateway: PaymentGateway,
        audit_log: Optional[AuditLogService] = None,
        gateway_timeout: float = 10.0,
        batch_size: int = 100,
    ):
        self.uow = uow
        self.payment_repo = payment_repo
        self.refund_repo = refund_repo
        self.gateway = gateway
        self.audit_log = audit_log
        self.gateway_timeout = gateway_timeout
        self.batch_size = batch_size

    async def execute(self, older_than_seconds: int = 600) -> Result[RefundReconciliationResultDTO]:
        start_time = time.time()
        cutoff = datetime.utcnow() - timedelta(seconds=older_than_seconds)

        try:
            pending = [
                PendingRefundKey(r.id, r.payment_id, r.amount, r.idempotency_key)
                for r in await self.refund_repo.list_pending_before(cutoff, limit=self.batch_size)
            ]
        except Exception as e:
            logger.error(f"Error loading pending refunds: {e}")
            return Return.err(
                Error(
                    code="RECONCILE_REFUNDS_FAILED",
                    message="Failed to load pending refunds",
                    reason=str(e),
                )
            )

        logger.info(f"Reconciling {len(pending)} pending refunds older than {cutoff.isoformat()}")

        details = []
        for key in pending:
            outcome = await self._reconcile_one(key)
            details.append(
                PendingRefundReconciliationDTO(
                    refund_id=key.refund_id,
                    payment_id=key.payment_id,
                    outcome=outcome,
                )
            )

        execution_time_ms = int((time.time() - start_time) * 1000)
        result = RefundReconciliationResultDTO(
            total_checked=len(details),
            completed=sum(1 for d in details if d.outcome == "completed"),
            failed=sum(1 for d in details if d.outcome == "failed"),
            still_pending=sum(1 for d in details if d.outcome == "still_pending"),
            already_resolved=sum(1 for d in details if d.outcome == "already_resolved"),
            details=details,
            execution_time_ms=execution_time_ms,
        )
        logger.info(
            f"Refund reconciliation complete: checked={result.total_checked}, completed={result.completed}, "
            f"failed={result.failed}, still_pending={result.still_pending}, "
            f"already_resolved={result.already_resolved}, time={execution_time_ms}ms"
        )
        return Return.ok(result)

    async def _reconcile_one(self, key: PendingRefundKey) -> str:
        try:
            found = await asyncio.wait_for(
                self.gateway.find_refund(key.idempotency_key), timeout=self.gateway_timeout
            )
        except Exception as e:
            logger.warning(f"Gateway lookup failed for refund {key.refund_id}, leaving pending: {e}")
            return "still_pending"

        try:
            # Re-read under lock: a replayed CreateRefund may have settled it meanwhile
            refund = await self.refund_repo.get_by_id(key.refund_id, for_update=True)
            if refund is None or refund.status != RefundStatus.PENDING:
                await self.uow.rollback()
                logger.info(f"Refund {key.refund_id} already resolved, skipping")
                return "already_resolved"

            if found is not None and found.success:
                await settle_refund_success(
                    self.uow,
                    self.payment_repo,
                    self.refund_repo,
                    refund,
                    found.transaction_id,
                    {"message": found.message, "reconciled": True, **(found.raw or {})},
                )
                outcome = "completed"
            else:
                error = found.message if found is not None and found.message else "Refund not found at gateway"
                await settle_refund_failure(self.uow, self.refund_repo, refund, error)
                outcome = "failed"
        except RefundBookkeepingError as e:
            await self.uow.rollback()
            logger.critical(f"Refund {key.refund_id} confirmed by gateway but cannot be applied: {e}")
            return "still_pending"
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Error settling refund {key.refund_id}: {e}")
            return "still_pending"

        await record_safely(
            self.audit_log,
            AuditEvent(
                event_type=f"refund.{outcome}",
                entity_type="refund",
                entity_id=key.refund_id,
                actor=SYSTEM_ACTOR,
                data={"payment_id": key.payment_id, "amount": key.amount, "reconciled": True},
            ),
        )
        return outcome
