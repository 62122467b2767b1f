"""Refund Domain Entity

A request to return part or all of a completed payment. Persisted as
pending before the gateway is called and resolved exactly once.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional
from sqlmodel import Field, Column, Index, Relationship
from sqlalchemy import CheckConstraint, ForeignKey, JSON, Numeric, String
from src.domain.base import BaseModel, generate_uuid

if TYPE_CHECKING:
    from src.domain.payment import Payment


class RefundStatus(str, Enum):
    """Refund lifecycle states"""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


RESOLVED_REFUND_STATUSES = frozenset({RefundStatus.COMPLETED, RefundStatus.FAILED})


class RefundAlreadyResolved(ValueError):
    """Raised when a completed or failed refund is mutated again"""


class Refund(BaseModel, table=True):
    """
    Refund - Return of money against one Payment

    Domain Rules:
    - amount > 0 and <= payment refundable amount at creation time
    - Created pending, then completed or failed; terminal once resolved
    - transaction_id (gateway reference) is unique once set
    - Sum of completed refund amounts equals payment.refunded_amount
    """

    __tablename__ = "refunds"
    __table_args__ = (
        CheckConstraint('amount > 0', name='refund_amount_positive'),
        Index('ix_refunds_status_created_at', 'status', 'created_at'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        sa_column=Column(String(36), primary_key=True),
        description="Refund identifier (UUID)"
    )

    payment_id: str = Field(
        sa_column=Column(String(36), ForeignKey("payments.id", ondelete="CASCADE"), nullable=False, index=True),
        description="Owning payment"
    )

    amount: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Refund amount (> 0)"
    )

    status: RefundStatus = Field(
        default=RefundStatus.PENDING,
        description="Lifecycle status"
    )

    reason: Optional[str] = Field(
        default=None,
        sa_column=Column(String(500), nullable=True),
    )

    requested_by: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="User who requested the refund"
    )

    transaction_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True, unique=True),
        description="Gateway refund reference, set once the gateway confirms"
    )

    idempotency_key: str = Field(
        sa_column=Column(String(255), nullable=False, unique=True, index=True),
        description="Key sent to the gateway; used to reconcile after a crash"
    )

    refund_metadata: Dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False, default=dict),
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)

    updated_at: datetime = Field(default_factory=datetime.utcnow)

    payment: Optional["Payment"] = Relationship(back_populates="refunds")

    @property
    def is_resolved(self) -> bool:
        return self.status in RESOLVED_REFUND_STATUSES

    def mark_completed(self, transaction_id: Optional[str], gateway_response: Optional[Dict[str, Any]] = None) -> None:
        if self.is_resolved:
            raise RefundAlreadyResolved(f"Refund {self.id} is already {self.status.value}")
        self.status = RefundStatus.COMPLETED
        self.transaction_id = transaction_id
        if gateway_response:
            self.merge_metadata({"gateway_response": gateway_response})
        self.updated_at = datetime.utcnow()

    def mark_failed(self, error: str) -> None:
        if self.is_resolved:
            raise RefundAlreadyResolved(f"Refund {self.id} is already {self.status.value}")
        self.status = RefundStatus.FAILED
        self.merge_metadata({
            "error": error,
            "error_timestamp": datetime.utcnow().isoformat(),
        })
        self.updated_at = datetime.utcnow()

    def merge_metadata(self, values: Dict[str, Any]) -> None:
        self.refund_metadata = {**(self.refund_metadata or {}), **values}
