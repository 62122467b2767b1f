"""UpdatePaymentStatus Use Case"""

import logging
from datetime import datetime
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.access_guard import AccessGuard, Capability
from src.app.services.audit_log_service import AuditEvent, AuditLogService, record_safely
from src.app.repositories.payment_repository import PaymentRepository
from src.app.use_cases.authorization import check_privilege
from src.app.use_cases.error_codes import ErrorCode
from src.domain.payment import InvalidStatusTransition, PaymentStatus
from .dtos import PaymentResponseDTO, UpdatePaymentStatusCommandDTO, to_payment_response

logger = logging.getLogger(__name__)


class UpdatePaymentStatus:
    """
    Use Case: Manually move a payment to another status

    Business Rules:
    1. Target must be a known status (INVALID_ARGUMENT)
    2. Caller must hold UPDATE_PAYMENT_STATUS
    3. Only pairs in PAYMENT_STATUS_TRANSITIONS are allowed (INVALID_STATE)
    4. refunded is reachable only once refunded_amount == amount
    5. metadata is merged, with status_updated_at and previous_status added
    """

    def __init__(
        self,
        uow: UnitOfWork,
        payment_repo: PaymentRepository,
        access_guard: AccessGuard,
        audit_log: Optional[AuditLogService] = None,
    ):
        self.uow = uow
        self.payment_repo = payment_repo
        self.access_guard = access_guard
        self.audit_log = audit_log

    async def execute(self, command: UpdatePaymentStatusCommandDTO) -> Result[PaymentResponseDTO]:
        try:
            target = PaymentStatus(command.status)
        except ValueError:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_ARGUMENT,
                    message=f"Unknown payment status '{command.status}'",
                    reason=f"allowed={[s.value for s in PaymentStatus]}",
                )
            )

        denied = await check_privilege(
            self.access_guard, command.acting_user_id, command.payment_id, Capability.UPDATE_PAYMENT_STATUS
        )
        if denied:
            return Return.err(denied)

        try:
            payment = await self.payment_repo.get_by_id(command.payment_id, for_update=True)
            if not payment:
                await self.uow.rollback()
                return Return.err(
                    Error(
                        code=ErrorCode.PAYMENT_NOT_FOUND,
                        message=f"Payment {command.payment_id} not found",
                    )
                )

            previous = payment.status
            if target == PaymentStatus.REFUNDED and payment.refunded_amount != payment.amount:
                error = Error(
                    code=ErrorCode.INVALID_STATE,
                    message="Payment can only be marked refunded through completed refunds",
                    reason=f"refunded_amount={payment.refunded_amount}, amount={payment.amount}",
                )
                await self.uow.rollback()
                return Return.err(error)

            try:
                payment.transition_to(target)
            except InvalidStatusTransition as e:
                await self.uow.rollback()
                return Return.err(
                    Error(
                        code=ErrorCode.INVALID_STATE,
                        message=str(e),
                        reason=f"current={previous.value}, target={target.value}",
                    )
                )

            payment.merge_metadata({
                **(command.metadata or {}),
                "previous_status": previous.value,
                "status_updated_at": datetime.utcnow().isoformat(),
            })
            await self.payment_repo.save(payment)
            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Error updating status of payment {command.payment_id}: {e}")
            return Return.err(
                Error(
                    code="UPDATE_PAYMENT_STATUS_FAILED",
                    message="Failed to update payment status",
                    reason=str(e),
                )
            )

        logger.info(
            f"Payment status updated: payment_id={payment.id}, {previous.value} -> {target.value}, "
            f"by={command.acting_user_id}"
        )
        await record_safely(
            self.audit_log,
            AuditEvent(
                event_type="payment.status_updated",
                entity_type="payment",
                entity_id=payment.id,
                actor=command.acting_user_id,
                data={"previous_status": previous.value, "status": target.value},
            ),
        )
        return Return.ok(to_payment_response(payment))
