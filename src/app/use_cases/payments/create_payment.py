"""CreatePayment Use Case

Record-then-attempt capture: the payment row is committed before the
gateway is called and kept (as failed) when the capture does not succeed.
"""

import asyncio
import logging
import uuid
from datetime import datetime
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.access_guard import AccessGuard, Capability
from src.app.services.audit_log_service import AuditEvent, AuditLogService, record_safely
from src.app.services.payment_gateway import ChargeResult, PaymentGateway
from src.app.repositories.payment_repository import PaymentRepository
from src.app.use_cases.authorization import check_privilege
from src.app.use_cases.error_codes import ErrorCode
from src.domain.payment import Payment, PaymentStatus
from .dtos import CreatePaymentCommandDTO, PaymentResponseDTO, to_payment_response

logger = logging.getLogger(__name__)


class CreatePayment:
    """
    Use Case: Capture a payment for an order

    Business Rules:
    1. Caller must hold CAPTURE_PAYMENT for the paying user (UNAUTHORIZED);
       amount must be > 0 (INVALID_ARGUMENT)
    2. Payment persisted as pending, then processing, before the gateway call
    3. Capture success -> completed with provider_payment_id
    4. Capture failure/timeout -> failed, gateway error stored in metadata,
       GATEWAY_FAILURE returned; the row is retained
    5. Repeated idempotency key returns the existing payment; one left in
       processing is resolved with gateway.find_charge
    """

    def __init__(
        self,
        uow: UnitOfWork,
        payment_repo: PaymentRepository,
        gateway: PaymentGateway,
        access_guard: AccessGuard,
        audit_log: Optional[AuditLogService] = None,
        gateway_timeout: float = 10.0,
    ):
        self.uow = uow
        self.payment_repo = payment_repo
        self.gateway = gateway
        self.access_guard = access_guard
        self.audit_log = audit_log
        self.gateway_timeout = gateway_timeout

    async def execute(self, command: CreatePaymentCommandDTO) -> Result[PaymentResponseDTO]:
        denied = await check_privilege(
            self.access_guard, command.acting_user_id, command.user_id, Capability.CAPTURE_PAYMENT
        )
        if denied:
            return Return.err(denied)

        if command.amount <= 0:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_ARGUMENT,
                    message="Payment amount must be greater than 0",
                    reason=f"amount={command.amount}",
                )
            )

        if command.idempotency_key:
            existing = await self.payment_repo.get_by_idempotency_key(command.idempotency_key)
            if existing:
                return await self._replay(existing, command)

        idempotency_key = command.idempotency_key or f"payment:{command.order_id}:{uuid.uuid4().hex}"

        # Step 1: Record the attempt
        try:
            payment = await self.payment_repo.create(
                Payment(
                    order_id=command.order_id,
                    user_id=command.user_id,
                    amount=command.amount,
                    currency=command.currency.upper(),
                    status=PaymentStatus.PENDING,
                    provider=command.provider,
                    payment_method_id=command.payment_method_id,
                    idempotency_key=idempotency_key,
                    payment_metadata={"description": command.description} if command.description else {},
                )
            )
            payment.transition_to(PaymentStatus.PROCESSING)
            await self.payment_repo.save(payment)
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Error recording payment for order {command.order_id}: {e}")
            return Return.err(
                Error(
                    code="CREATE_PAYMENT_FAILED",
                    message="Failed to record payment",
                    reason=str(e),
                )
            )

        logger.info(
            f"Payment recorded: payment_id={payment.id}, order_id={payment.order_id}, "
            f"user_id={payment.user_id}, amount={payment.amount} {payment.currency}"
        )

        # Step 2: Capture, bounded by timeout
        charge: Optional[ChargeResult] = None
        gateway_error: Optional[str] = None
        try:
            charge = await asyncio.wait_for(
                self.gateway.capture(
                    payment.amount,
                    payment.currency,
                    payment.payment_method_id,
                    idempotency_key,
                    command.description,
                ),
                timeout=self.gateway_timeout,
            )
            if not charge.success:
                gateway_error = charge.message or "Gateway declined capture"
        except asyncio.TimeoutError:
            gateway_error = f"Gateway capture timed out after {self.gateway_timeout}s"
        except Exception as e:
            gateway_error = str(e) or e.__class__.__name__

        return await self._settle(payment, charge, gateway_error, command.acting_user_id)

    async def _settle(
        self,
        payment: Payment,
        charge: Optional[ChargeResult],
        gateway_error: Optional[str],
        actor: str,
    ) -> Result[PaymentResponseDTO]:
        # Rollback expires ORM state; the error path logs from this copy
        payment_id = payment.id
        try:
            if gateway_error is None:
                payment.provider_payment_id = charge.provider_payment_id
                payment.merge_metadata({"gateway_response": {"status": charge.status, **(charge.raw or {})}})
                payment.transition_to(PaymentStatus.COMPLETED)
            else:
                payment.merge_metadata({
                    "gateway_error": gateway_error,
                    "error_timestamp": datetime.utcnow().isoformat(),
                })
                payment.transition_to(PaymentStatus.FAILED)
            await self.payment_repo.save(payment)
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            logger.critical(f"Failed to persist capture outcome for payment {payment_id}, left processing: {e}")
            return Return.err(
                Error(
                    code="CREATE_PAYMENT_FAILED",
                    message="Capture outcome could not be recorded",
                    reason=str(e),
                )
            )

        await record_safely(
            self.audit_log,
            AuditEvent(
                event_type=f"payment.{payment.status.value}",
                entity_type="payment",
                entity_id=payment.id,
                actor=actor,
                data={
                    "order_id": payment.order_id,
                    "amount": payment.amount,
                    "currency": payment.currency,
                    "provider_payment_id": payment.provider_payment_id,
                    "error": gateway_error,
                },
            ),
        )

        if gateway_error is not None:
            logger.error(f"Payment capture failed: payment_id={payment.id}, error={gateway_error}")
            return Return.err(
                Error(
                    code=ErrorCode.GATEWAY_FAILURE,
                    message=f"Payment {payment.id} capture failed",
                    reason=gateway_error,
                )
            )

        logger.info(
            f"Payment completed: payment_id={payment.id}, provider_payment_id={payment.provider_payment_id}"
        )
        return Return.ok(to_payment_response(payment))

    async def _replay(self, existing: Payment, command: CreatePaymentCommandDTO) -> Result[PaymentResponseDTO]:
        if existing.order_id != command.order_id or existing.amount != command.amount:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_ARGUMENT,
                    message="Idempotency key already used for a different payment",
                    reason=f"idempotency_key={existing.idempotency_key}",
                )
            )

        if existing.status == PaymentStatus.FAILED:
            return Return.err(
                Error(
                    code=ErrorCode.GATEWAY_FAILURE,
                    message=f"Payment {existing.id} capture failed",
                    reason=(existing.payment_metadata or {}).get("gateway_error"),
                )
            )

        if existing.status not in (PaymentStatus.PENDING, PaymentStatus.PROCESSING):
            return Return.ok(to_payment_response(existing, existing.refunds))

        # Left mid-capture by a crash; ask the gateway what happened
        try:
            found = await asyncio.wait_for(
                self.gateway.find_charge(existing.idempotency_key), timeout=self.gateway_timeout
            )
        except Exception as e:
            logger.warning(f"Could not look up capture for payment {existing.id}: {e}")
            return Return.ok(to_payment_response(existing))

        if found is None:
            return Return.ok(to_payment_response(existing))

        if existing.status == PaymentStatus.PENDING:
            existing.transition_to(PaymentStatus.PROCESSING)
        return await self._settle(
            existing,
            found,
            None if found.success else (found.message or "Gateway declined capture"),
            command.acting_user_id,
        )
