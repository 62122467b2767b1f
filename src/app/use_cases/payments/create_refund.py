"""CreateRefund Use Case

Validates a refund against its payment, records it as pending, calls the
payment gateway and persists the outcome on both the refund and the payment.
"""

import asyncio
import logging
import uuid
from decimal import Decimal
from typing import Iterable, Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.access_guard import AccessGuard, Capability
from src.app.services.audit_log_service import AuditEvent, AuditLogService, record_safely
from src.app.services.payment_gateway import PaymentGateway, RefundResult
from src.app.repositories.payment_repository import PaymentRepository
from src.app.repositories.refund_repository import RefundRepository
from src.app.use_cases.authorization import check_privilege
from src.app.use_cases.error_codes import ErrorCode
from src.domain.refund import Refund, RefundStatus
from .dtos import CreateRefundCommandDTO, RefundResponseDTO, to_refund_response
from .refund_settlement import RefundBookkeepingError, settle_refund_failure, settle_refund_success

logger = logging.getLogger(__name__)


class CreateRefund:
    """
    Use Case: Refund (part of) a completed payment

    Business Rules:
    1. Caller must hold REFUND_PAYMENT on the payment
    2. Eligibility, checked before anything is written:
       - payment exists                        (PAYMENT_NOT_FOUND)
       - payment is completed, not fully refunded (INVALID_STATE)
       - amount > 0                            (INVALID_ARGUMENT)
       - amount <= refundable amount, counting
         refunds still awaiting the gateway    (AMOUNT_EXCEEDED)
       - payment method supports refunds       (UNSUPPORTED_METHOD)
    3. The refund is committed as pending before the gateway call
    4. Gateway success: refund completed + payment.refunded_amount increased
       (payment becomes refunded when fully refunded) in one commit
    5. Gateway failure, exception or timeout: refund failed, payment untouched,
       GATEWAY_FAILURE returned
    6. Idempotency: a repeated key returns the existing refund; a refund left
       pending by a crash is resolved by asking the gateway about that key

    There is no automatic retry; a failed refund is resubmitted as a new request.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        payment_repo: PaymentRepository,
        refund_repo: RefundRepository,
        gateway: PaymentGateway,
        access_guard: AccessGuard,
        audit_log: Optional[AuditLogService] = None,
        non_refundable_methods: Iterable[str] = ("COD",),
        gateway_timeout: float = 10.0,
    ):
        self.uow = uow
        self.payment_repo = payment_repo
        self.refund_repo = refund_repo
        self.gateway = gateway
        self.access_guard = access_guard
        self.audit_log = audit_log
        self.non_refundable_methods = tuple(non_refundable_methods)
        self.gateway_timeout = gateway_timeout

    async def execute(self, command: CreateRefundCommandDTO) -> Result[RefundResponseDTO]:
        """
        Execute refund

        Args:
            command: CreateRefundCommandDTO

        Returns:
            Result[RefundResponseDTO]: The resolved refund, or error
        """
        denied = await check_privilege(
            self.access_guard, command.requested_by, command.payment_id, Capability.REFUND_PAYMENT
        )
        if denied:
            return Return.err(denied)

        if command.idempotency_key:
            existing = await self.refund_repo.get_by_idempotency_key(command.idempotency_key)
            if existing:
                return await self._replay(existing, command)

        idempotency_key = command.idempotency_key or f"refund:{command.payment_id}:{uuid.uuid4().hex}"

        # Step 1: Validate against the locked payment and record the pending refund
        try:
            payment = await self.payment_repo.get_by_id(command.payment_id, for_update=True)

            validation_error = self._validate(payment, command)
            if validation_error:
                await self.uow.rollback()
                return Return.err(validation_error)

            refund = await self.refund_repo.create(
                Refund(
                    payment_id=payment.id,
                    amount=command.amount,
                    reason=command.reason,
                    status=RefundStatus.PENDING,
                    requested_by=command.requested_by,
                    idempotency_key=idempotency_key,
                    refund_metadata={
                        **(command.metadata or {}),
                        "original_payment_method": payment.payment_method_id,
                        "original_provider_payment_id": payment.provider_payment_id,
                    },
                )
            )
            provider_payment_id = payment.provider_payment_id
            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Error recording refund for payment {command.payment_id}: {e}")
            return Return.err(
                Error(
                    code="CREATE_REFUND_FAILED",
                    message="Failed to record refund",
                    reason=str(e),
                )
            )

        logger.info(
            f"Refund record created: refund_id={refund.id}, payment_id={command.payment_id}, "
            f"amount={command.amount}, requested_by={command.requested_by}"
        )

        # Step 2: Gateway call, bounded by timeout
        gateway_result: Optional[RefundResult] = None
        gateway_error: Optional[str] = None
        try:
            gateway_result = await asyncio.wait_for(
                self.gateway.refund(
                    provider_payment_id,
                    command.amount,
                    command.reason,
                    idempotency_key,
                ),
                timeout=self.gateway_timeout,
            )
            if not gateway_result.success:
                gateway_error = gateway_result.message or "Gateway declined refund"
        except asyncio.TimeoutError:
            gateway_error = f"Gateway refund timed out after {self.gateway_timeout}s"
        except Exception as e:
            gateway_error = str(e) or e.__class__.__name__

        # Step 3: Persist the outcome
        if gateway_error is None:
            return await self._complete(refund, gateway_result, command.requested_by)
        return await self._fail(refund, gateway_error, command.requested_by)

    def _validate(self, payment, command: CreateRefundCommandDTO) -> Optional[Error]:
        if payment is None:
            return Error(
                code=ErrorCode.PAYMENT_NOT_FOUND,
                message=f"Payment {command.payment_id} not found",
            )

        if not payment.can_be_refunded():
            return Error(
                code=ErrorCode.INVALID_STATE,
                message=f"Payment {payment.id} cannot be refunded. Status: {payment.status.value}",
                reason=f"status={payment.status.value}, refunded_amount={payment.refunded_amount}, amount={payment.amount}",
            )

        if command.amount <= 0:
            return Error(
                code=ErrorCode.INVALID_ARGUMENT,
                message="Refund amount must be greater than 0",
                reason=f"amount={command.amount}",
            )

        in_flight = sum(
            (r.amount for r in (payment.refunds or []) if r.status in (RefundStatus.PENDING, RefundStatus.PROCESSING)),
            Decimal("0"),
        )
        available = payment.get_refundable_amount() - in_flight
        if command.amount > available:
            return Error(
                code=ErrorCode.AMOUNT_EXCEEDED,
                message=f"Refund amount {command.amount} exceeds available amount {available}",
                reason=f"requested={command.amount}, refundable={payment.get_refundable_amount()}, in_flight={in_flight}",
            )

        if payment.is_method_non_refundable(self.non_refundable_methods):
            return Error(
                code=ErrorCode.UNSUPPORTED_METHOD,
                message=f"Payments made with {payment.payment_method_id} cannot be refunded electronically",
                reason=f"payment_method_id={payment.payment_method_id}",
            )

        if not payment.provider_payment_id:
            return Error(
                code=ErrorCode.INVALID_STATE,
                message=f"No provider transaction found for payment {payment.id}",
            )

        return None

    async def _complete(self, refund: Refund, gateway_result: RefundResult, actor: str) -> Result[RefundResponseDTO]:
        # Rollback expires ORM state; error paths log from these copies
        refund_id, payment_id = refund.id, refund.payment_id
        try:
            payment = await settle_refund_success(
                self.uow,
                self.payment_repo,
                self.refund_repo,
                refund,
                gateway_result.transaction_id,
                {"message": gateway_result.message, **(gateway_result.raw or {})},
            )
        except RefundBookkeepingError as e:
            await self.uow.rollback()
            # Money left the gateway; keep the refund pending for reconciliation
            logger.critical(
                f"Refund {refund_id} succeeded at gateway but could not be applied to payment "
                f"{payment_id}: {e}"
            )
            return Return.err(
                Error(
                    code="REFUND_BOOKKEEPING_FAILED",
                    message="Refund accepted by gateway but could not be recorded",
                    reason=str(e),
                )
            )
        except Exception as e:
            await self.uow.rollback()
            logger.critical(f"Failed to persist completed refund {refund_id}, left pending: {e}")
            return Return.err(
                Error(
                    code="CREATE_REFUND_FAILED",
                    message="Refund accepted by gateway but could not be recorded",
                    reason=str(e),
                )
            )

        await record_safely(
            self.audit_log,
            AuditEvent(
                event_type="refund.completed",
                entity_type="refund",
                entity_id=refund.id,
                actor=actor,
                data={
                    "payment_id": payment.id,
                    "amount": refund.amount,
                    "transaction_id": refund.transaction_id,
                    "refunded_amount": payment.refunded_amount,
                    "payment_status": payment.status.value,
                },
            ),
        )
        return Return.ok(to_refund_response(refund))

    async def _fail(self, refund: Refund, gateway_error: str, actor: str) -> Result[RefundResponseDTO]:
        refund_id, payment_id, amount = refund.id, refund.payment_id, refund.amount
        try:
            await settle_refund_failure(self.uow, self.refund_repo, refund, gateway_error)
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to persist failed refund {refund_id}, left pending for reconciliation: {e}")

        await record_safely(
            self.audit_log,
            AuditEvent(
                event_type="refund.failed",
                entity_type="refund",
                entity_id=refund_id,
                actor=actor,
                data={"payment_id": payment_id, "amount": amount, "error": gateway_error},
            ),
        )
        return Return.err(
            Error(
                code=ErrorCode.GATEWAY_FAILURE,
                message=f"Refund {refund_id} failed at payment gateway",
                reason=gateway_error,
            )
        )

    async def _replay(self, existing: Refund, command: CreateRefundCommandDTO) -> Result[RefundResponseDTO]:
        if existing.payment_id != command.payment_id or existing.amount != command.amount:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_ARGUMENT,
                    message="Idempotency key already used for a different refund",
                    reason=f"idempotency_key={existing.idempotency_key}",
                )
            )

        if existing.status == RefundStatus.FAILED:
            return Return.err(
                Error(
                    code=ErrorCode.GATEWAY_FAILURE,
                    message=f"Refund {existing.id} failed at payment gateway",
                    reason=(existing.refund_metadata or {}).get("error"),
                )
            )

        if existing.is_resolved:
            return Return.ok(to_refund_response(existing))

        # Pending: a previous attempt may have reached the gateway before a crash
        try:
            found = await asyncio.wait_for(
                self.gateway.find_refund(existing.idempotency_key), timeout=self.gateway_timeout
            )
        except Exception as e:
            logger.warning(f"Could not look up pending refund {existing.id} at gateway: {e}")
            return Return.ok(to_refund_response(existing))

        if found is None:
            # Gateway never saw it; leave it for the reconciler so two callers cannot both retry
            return Return.ok(to_refund_response(existing))
        if found.success:
            return await self._complete(existing, found, command.requested_by)
        return await self._fail(existing, found.message or "Gateway declined refund", command.requested_by)
