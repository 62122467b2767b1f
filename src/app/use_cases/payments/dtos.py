"""Data Transfer Objects for Payment and Refund Use Cases"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class CreatePaymentCommandDTO(BaseModel):
    """
    Command DTO for capturing a payment

    Used as input to CreatePayment use case.
    """

    order_id: str = Field(..., description="Order being paid")
    user_id: str = Field(..., description="Paying customer")
    acting_user_id: str = Field(..., description="Caller starting the capture (the payer or a support agent)")
    amount: Decimal = Field(..., description="Amount to capture (must be > 0)")
    currency: str = Field(default="USD", description="ISO 4217 currency code")
    payment_method_id: str = Field(..., description="Payment method reference")
    provider: Optional[str] = Field(default=None, description="Gateway provider name")
    description: Optional[str] = Field(default=None)
    idempotency_key: Optional[str] = Field(
        default=None,
        description="Repeated keys return the existing payment instead of charging again"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "order_id": "order_789",
                "user_id": "user_123",
                "acting_user_id": "user_123",
                "amount": "100.00",
                "currency": "USD",
                "payment_method_id": "pm_card_visa",
                "provider": "stripe",
                "idempotency_key": "checkout:order_789"
            }
        }


class UpdatePaymentStatusCommandDTO(BaseModel):
    payment_id: str
    status: str = Field(..., description="Target status")
    acting_user_id: str
    metadata: Optional[Dict[str, Any]] = None


class CreateRefundCommandDTO(BaseModel):
    """
    Command DTO for refunding (part of) a payment

    Used as input to CreateRefund use case.
    """

    payment_id: str = Field(..., description="Payment to refund")
    amount: Decimal = Field(..., description="Amount to refund (must be > 0)")
    reason: Optional[str] = Field(default=None, description="Reason sent to the gateway")
    requested_by: str = Field(..., description="User requesting the refund")
    idempotency_key: Optional[str] = Field(
        default=None,
        description="Repeated keys return the existing refund; generated when omitted"
    )
    metadata: Optional[Dict[str, Any]] = Field(default=None)

    class Config:
        json_schema_extra = {
            "example": {
                "payment_id": "0b6f1a7e-8d7a-4f7c-9a55-3c8e0c0c1e42",
                "amount": "40.00",
                "reason": "Damaged item",
                "requested_by": "support_agent_7",
                "idempotency_key": "refund:order_789:1"
            }
        }


class RefundResponseDTO(BaseModel):
    refund_id: str
    payment_id: str
    amount: Decimal
    status: str
    reason: Optional[str] = None
    requested_by: str
    transaction_id: Optional[str] = None
    idempotency_key: str
    created_at: datetime
    updated_at: datetime


class PaymentResponseDTO(BaseModel):
    payment_id: str
    order_id: str
    user_id: str
    amount: Decimal
    currency: str
    status: str
    refunded_amount: Decimal
    refundable_amount: Decimal
    provider: Optional[str] = None
    provider_payment_id: Optional[str] = None
    payment_method_id: str
    idempotency_key: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    refunds: List[RefundResponseDTO] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class ListRefundsResponseDTO(BaseModel):
    payment_id: str
    refunds: List[RefundResponseDTO]
    total_refunded: Decimal


class ListPaymentsResponseDTO(BaseModel):
    payments: List[PaymentResponseDTO]
    total: int
    page: int
    limit: int


class ListUserRefundsResponseDTO(BaseModel):
    user_id: str
    refunds: List[RefundResponseDTO]
    total: int
    page: int
    limit: int


class RefundStatsDTO(BaseModel):
    user_id: Optional[str] = None
    total_refunded: Decimal = Field(..., description="Sum of completed refunds")
    pending_amount: Decimal = Field(..., description="Sum of refunds not yet resolved")
    refund_count: int = Field(..., description="Refunds in any status")
    completed_count: int
    failed_count: int
    average_refund_amount: Decimal = Field(..., description="Mean completed refund, 0 when none")


class PendingRefundReconciliationDTO(BaseModel):
    refund_id: str
    payment_id: str
    outcome: str  # completed | failed | still_pending | already_resolved


class RefundReconciliationResultDTO(BaseModel):
    total_checked: int
    completed: int
    failed: int
    still_pending: int
    already_resolved: int = 0
    details: List[PendingRefundReconciliationDTO]
    execution_time_ms: int


def _status_value(status) -> str:
    return status.value if hasattr(status, "value") else status


def to_refund_response(refund) -> RefundResponseDTO:
    return RefundResponseDTO(
        refund_id=refund.id,
        payment_id=refund.payment_id,
        amount=refund.amount,
        status=_status_value(refund.status),
        reason=refund.reason,
        requested_by=refund.requested_by,
        transaction_id=refund.transaction_id,
        idempotency_key=refund.idempotency_key,
        created_at=refund.created_at,
        updated_at=refund.updated_at,
    )


def to_payment_response(payment, refunds=None) -> PaymentResponseDTO:
    """refunds defaults to none; pass the loaded list explicitly to include them"""
    return PaymentResponseDTO(
        payment_id=payment.id,
        order_id=payment.order_id,
        user_id=payment.user_id,
        amount=payment.amount,
        currency=payment.currency,
        status=_status_value(payment.status),
        refunded_amount=payment.refunded_amount,
        refundable_amount=payment.get_refundable_amount(),
        provider=payment.provider,
        provider_payment_id=payment.provider_payment_id,
        payment_method_id=payment.payment_method_id,
        idempotency_key=payment.idempotency_key,
        metadata=payment.payment_metadata or {},
        refunds=[to_refund_response(refund) for refund in (refunds or [])],
        created_at=payment.created_at,
        updated_at=payment.updated_at,
    )
