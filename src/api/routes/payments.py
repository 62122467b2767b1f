"""Payment and Refund API Routes"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.api.error import ClientError
from src.api.schemas.payment_request import (
    CreatePaymentRequestSchema,
    CreateRefundRequestSchema,
    UpdatePaymentStatusRequestSchema,
)
from src.app.services.access_guard import AccessGuard
from src.app.services.audit_log_service import AuditLogService
from src.app.services.payment_gateway import PaymentGateway
from src.app.use_cases.payments import (
    CreatePayment,
    CreateRefund,
    GetPayment,
    GetRefund,
    GetRefundStats,
    ListOrderPayments,
    ListPaymentRefunds,
    ListUserPayments,
    ListUserRefunds,
    UpdatePaymentStatus,
)
from src.app.use_cases.payments.dtos import (
    CreatePaymentCommandDTO,
    CreateRefundCommandDTO,
    ListPaymentsResponseDTO,
    ListRefundsResponseDTO,
    ListUserRefundsResponseDTO,
    PaymentResponseDTO,
    RefundResponseDTO,
    RefundStatsDTO,
    UpdatePaymentStatusCommandDTO,
)
from src.adapter.repositories.payment_repository import SqlAlchemyPaymentRepository
from src.adapter.repositories.refund_repository import SqlAlchemyRefundRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_access_guard, get_audit_log, get_current_user_id, get_payment_gateway, get_session

router = APIRouter(prefix="/payments", tags=["Payments"])
refunds_router = APIRouter(prefix="/refunds", tags=["Refunds"])
users_router = APIRouter(prefix="/users", tags=["Payments"])


@router.post(
    "",
    response_model=PaymentResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        502: {
            "description": "Gateway declined or unreachable; the payment is kept as failed",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "GATEWAY_FAILURE",
                            "message": "Payment 0b6f1a7e-... capture failed",
                            "reason": "Card declined"
                        }
                    }
                }
            }
        }
    }
)
async def create_payment(
    request: CreatePaymentRequestSchema,
    session: AsyncSession = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
    access_guard: AccessGuard = Depends(get_access_guard),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    audit_log: AuditLogService = Depends(get_audit_log),
):
    """
    Record a payment and capture it at the gateway.

    **Returns:**
    - 201: Payment completed
    - 400: Amount not positive
    - 403: Caller is neither the payer nor support
    - 502: Capture failed
    """
    use_case = CreatePayment(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyPaymentRepository(session),
        gateway,
        access_guard,
        audit_log,
        gateway_timeout=ApplicationConfig.PAYMENT_GATEWAY_TIMEOUT_SECONDS,
    )
    result = await use_case.execute(CreatePaymentCommandDTO(**request.model_dump(), acting_user_id=user_id))
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.get("", response_model=List[PaymentResponseDTO])
async def list_order_payments(
    order_id: str = Query(..., description="Order whose payments to list"),
    session: AsyncSession = Depends(get_session),
):
    """Every payment attempt for an order, oldest first"""
    result = await ListOrderPayments(SqlAlchemyPaymentRepository(session)).execute(order_id)
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.get("/{payment_id}", response_model=PaymentResponseDTO)
async def get_payment(payment_id: str, session: AsyncSession = Depends(get_session)):
    result = await GetPayment(
        SqlAlchemyPaymentRepository(session), SqlAlchemyRefundRepository(session)
    ).execute(payment_id)
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.patch("/{payment_id}/status", response_model=PaymentResponseDTO)
async def update_payment_status(
    payment_id: str,
    request: UpdatePaymentStatusRequestSchema,
    session: AsyncSession = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
    access_guard: AccessGuard = Depends(get_access_guard),
    audit_log: AuditLogService = Depends(get_audit_log),
):
    """
    Move a payment along its state machine

    **Returns:**
    - 200: Status updated
    - 400: Unknown status
    - 403: Caller may not update payment status
    - 404: Payment not found
    - 409: Transition not allowed
    """
    use_case = UpdatePaymentStatus(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyPaymentRepository(session),
        access_guard,
        audit_log,
    )
    result = await use_case.execute(
        UpdatePaymentStatusCommandDTO(
            payment_id=payment_id,
            status=request.status,
            acting_user_id=user_id,
            metadata=request.metadata,
        )
    )
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.post("/{payment_id}/refunds", response_model=RefundResponseDTO, status_code=status.HTTP_201_CREATED)
async def create_refund(
    payment_id: str,
    request: CreateRefundRequestSchema,
    session: AsyncSession = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
    access_guard: AccessGuard = Depends(get_access_guard),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    audit_log: AuditLogService = Depends(get_audit_log),
):
    """
    Refund (part of) a completed payment.

    The refund is recorded before the gateway call; a gateway failure leaves
    a failed refund behind and the payment untouched.

    **Returns:**
    - 201: Refund completed (or still pending when replayed before the gateway answered)
    - 400: Amount not positive
    - 403: Caller may not refund payments
    - 404: Payment not found
    - 409: Payment not refundable, amount exceeds refundable, or method cannot be refunded
    - 502: Gateway failure
    """
    use_case = CreateRefund(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyPaymentRepository(session),
        SqlAlchemyRefundRepository(session),
        gateway,
        access_guard,
        audit_log,
        non_refundable_methods=ApplicationConfig.NON_REFUNDABLE_PAYMENT_METHODS,
        gateway_timeout=ApplicationConfig.PAYMENT_GATEWAY_TIMEOUT_SECONDS,
    )
    result = await use_case.execute(
        CreateRefundCommandDTO(
            payment_id=payment_id,
            amount=request.amount,
            reason=request.reason,
            requested_by=user_id,
            idempotency_key=request.idempotency_key,
            metadata=request.metadata,
        )
    )
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.get("/{payment_id}/refunds", response_model=ListRefundsResponseDTO)
async def list_payment_refunds(payment_id: str, session: AsyncSession = Depends(get_session)):
    result = await ListPaymentRefunds(
        SqlAlchemyPaymentRepository(session), SqlAlchemyRefundRepository(session)
    ).execute(payment_id)
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@refunds_router.get("/stats", response_model=RefundStatsDTO)
async def get_refund_stats(
    user_id: Optional[str] = Query(default=None, description="Restrict to one customer"),
    session: AsyncSession = Depends(get_session),
):
    """Refunded, pending and average amounts over all refunds or one customer's"""
    result = await GetRefundStats(SqlAlchemyRefundRepository(session)).execute(user_id)
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@refunds_router.get("/{refund_id}", response_model=RefundResponseDTO)
async def get_refund(refund_id: str, session: AsyncSession = Depends(get_session)):
    result = await GetRefund(SqlAlchemyRefundRepository(session)).execute(refund_id)
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@users_router.get("/{user_id}/payments", response_model=ListPaymentsResponseDTO)
async def list_user_payments(
    user_id: str,
    payment_status: Optional[str] = Query(default=None, alias="status"),
    payment_method_id: Optional[str] = Query(default=None),
    page: int = Query(default=1),
    limit: int = Query(default=10, le=100),
    session: AsyncSession = Depends(get_session),
):
    """
    A customer's payments, newest first

    **Query parameters:**
    - `status`: payment status filter
    - `payment_method_id`: payment method filter
    - `page` (default 1), `limit` (default 10, max 100)
    """
    result = await ListUserPayments(SqlAlchemyPaymentRepository(session)).execute(
        user_id,
        status=payment_status,
        payment_method_id=payment_method_id,
        page=page,
        limit=limit,
    )
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@users_router.get("/{user_id}/refunds", response_model=ListUserRefundsResponseDTO)
async def list_user_refunds(
    user_id: str,
    refund_status: Optional[str] = Query(default=None, alias="status"),
    page: int = Query(default=1),
    limit: int = Query(default=10, le=100),
    session: AsyncSession = Depends(get_session),
):
    """Refund history across a customer's payments, newest first"""
    result = await ListUserRefunds(SqlAlchemyRefundRepository(session)).execute(
        user_id, status=refund_status, page=page, limit=limit
    )
    if result.is_err():
        raise ClientError(result.error)
    return result.value
