"""Payment Domain Entity

A captured (or attempted) customer payment and its refund bookkeeping.
Status changes go through the transition table below; refunded_amount only
grows and never exceeds amount.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional
from sqlmodel import Field, Column, Index, Relationship
from sqlalchemy import CheckConstraint, JSON, Numeric, String
from src.domain.base import BaseModel, generate_uuid


class PaymentStatus(str, Enum):
    """Payment lifecycle states"""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


# Allowed source -> target status pairs. Anything else is an illegal transition.
PAYMENT_STATUS_TRANSITIONS: Dict[PaymentStatus, frozenset] = {
    PaymentStatus.PENDING: frozenset({
        PaymentStatus.PROCESSING,
        PaymentStatus.COMPLETED,
        PaymentStatus.FAILED,
        PaymentStatus.CANCELLED,
    }),
    PaymentStatus.PROCESSING: frozenset({
        PaymentStatus.COMPLETED,
        PaymentStatus.FAILED,
        PaymentStatus.CANCELLED,
    }),
    PaymentStatus.COMPLETED: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.FAILED: frozenset(),
    PaymentStatus.CANCELLED: frozenset(),
    PaymentStatus.REFUNDED: frozenset(),
}

TERMINAL_PAYMENT_STATUSES = frozenset(
    status for status, targets in PAYMENT_STATUS_TRANSITIONS.items() if not targets
)


class InvalidStatusTransition(ValueError):
    """Raised when a payment is moved along an edge not in the transition table"""

    def __init__(self, current: PaymentStatus, target: PaymentStatus):
        self.current = current
        self.target = target
        super().__init__(f"Illegal payment status transition: {current.value} -> {target.value}")


def can_transition(current: PaymentStatus, target: PaymentStatus) -> bool:
    return target in PAYMENT_STATUS_TRANSITIONS.get(current, frozenset())


class Payment(BaseModel, table=True):
    """
    Payment - Money captured from a customer for an order

    Domain Rules:
    - amount > 0
    - 0 <= refunded_amount <= amount, and refunded_amount never decreases
    - refunded_amount only changes while status is completed
    - status becomes refunded exactly when refunded_amount == amount
    - status changes must follow PAYMENT_STATUS_TRANSITIONS
    """

    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint('amount > 0', name='payment_amount_positive'),
        CheckConstraint('refunded_amount >= 0', name='refunded_amount_non_negative'),
        CheckConstraint('refunded_amount <= amount', name='refunded_amount_within_amount'),
        Index('ix_payments_order_id', 'order_id'),
        Index('ix_payments_user_id', 'user_id'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        sa_column=Column(String(36), primary_key=True),
        description="Payment identifier (UUID)"
    )

    order_id: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Order this payment settles"
    )

    user_id: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Paying customer"
    )

    amount: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Captured amount (currency-denominated, > 0)"
    )

    currency: str = Field(
        default="USD",
        sa_column=Column(String(3), nullable=False, default="USD"),
        description="ISO 4217 currency code"
    )

    status: PaymentStatus = Field(
        default=PaymentStatus.PENDING,
        description="Lifecycle status"
    )

    refunded_amount: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(18, 2), nullable=False, default=0),
        description="Cumulative amount of completed refunds"
    )

    provider: Optional[str] = Field(
        default=None,
        sa_column=Column(String(50), nullable=True),
        description="Gateway provider (stripe, razorpay, paypal, ...)"
    )

    provider_payment_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Gateway capture reference, set on success"
    )

    payment_method_id: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Payment method reference (e.g. card token, 'COD')"
    )

    idempotency_key: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True, unique=True, index=True),
        description="Key passed to the gateway so a retried capture is not charged twice"
    )

    payment_metadata: Dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False, default=dict),
        description="Gateway responses, errors and status-change notes"
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)

    updated_at: datetime = Field(default_factory=datetime.utcnow)

    refunds: List["Refund"] = Relationship(
        back_populates="payment",
        sa_relationship_kwargs={"lazy": "selectin", "order_by": "Refund.created_at"},
    )

    def can_be_refunded(self, non_refundable_methods: Iterable[str] = ()) -> bool:
        """completed, not yet fully refunded, and paid with a refund-capable method"""
        if self.status != PaymentStatus.COMPLETED:
            return False
        if self.refunded_amount >= self.amount:
            return False
        return not self.is_method_non_refundable(non_refundable_methods)

    def is_method_non_refundable(self, non_refundable_methods: Iterable[str]) -> bool:
        blocked = {method.upper() for method in non_refundable_methods}
        return (self.payment_method_id or "").upper() in blocked

    def get_refundable_amount(self) -> Decimal:
        return self.amount - self.refunded_amount

    def transition_to(self, target: PaymentStatus) -> None:
        """Move to target status or raise InvalidStatusTransition"""
        if not can_transition(self.status, target):
            raise InvalidStatusTransition(self.status, target)
        self.status = target
        self.updated_at = datetime.utcnow()

    def apply_refund(self, amount: Decimal) -> None:
        """
        Record a completed refund of `amount`

        Raises:
            ValueError: amount is not positive, exceeds the refundable amount,
                        or the payment is not in a refundable status
        """
        if amount <= 0:
            raise ValueError(f"Refund amount must be positive, got {amount}")
        if self.status != PaymentStatus.COMPLETED:
            raise ValueError(f"Payment {self.id} is {self.status.value}, refunds require completed")
        if amount > self.get_refundable_amount():
            raise ValueError(
                f"Refund amount {amount} exceeds refundable amount {self.get_refundable_amount()}"
            )

        self.refunded_amount = self.refunded_amount + amount
        self.updated_at = datetime.utcnow()
        if self.refunded_amount == self.amount:
            self.transition_to(PaymentStatus.REFUNDED)

    def merge_metadata(self, values: Dict[str, Any]) -> None:
        # Reassign so SQLAlchemy notices the JSON column changed
        self.payment_metadata = {**(self.payment_metadata or {}), **values}


from src.domain.refund import Refund  # noqa: E402
