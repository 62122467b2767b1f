"""Credit Transaction Domain Entity

Immutable append-only audit trail of all company credit mutations.
Each transaction is written in the same database transaction as the
balance change it records.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, BigInteger, Integer, Numeric, String
from src.domain.base import BaseModel


class TransactionType(str, Enum):
    """Credit transaction types"""
    LIMIT_ASSIGNMENT = "limit_assignment"  # Credit limit set or changed
    INCREASE = "increase"                  # Credit line increase
    PAYMENT = "payment"                    # Credit reserved for an order/invoice
    ADJUSTMENT = "adjustment"              # Manual admin adjustment (signed)
    REFUND = "refund"                      # Reserved credit released back


class CreditTransaction(BaseModel, table=True):
    """
    Credit Transaction - Immutable audit trail of credit mutations

    Domain Rules:
    - Transactions are immutable (append-only)
    - amount is the signed delta requested by the operation
      (negative for reservations, positive for releases)
    - available_before/available_after snapshot the account so a repeated
      idempotency_key can replay the original response
    - idempotency_key is optional but unique when present

    Transaction Types:
    - LIMIT_ASSIGNMENT: amount = new_limit - previous_limit
    - PAYMENT: amount = -reserved
    - REFUND: amount = +released
    - ADJUSTMENT: signed manual correction
    """

    __tablename__ = "credit_transactions"
    __table_args__ = (
        Index('ix_credit_transactions_created_at', 'created_at'),
        Index('ix_credit_transactions_reference', 'reference_type', 'reference_id'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True),
        description="Unique transaction identifier (auto-increment)"
    )

    company_id: str = Field(
        sa_column=Column(String(36), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True),
        description="Owning company"
    )

    transaction_type: TransactionType = Field(
        description="Type of transaction (limit_assignment, increase, payment, adjustment, refund)"
    )

    amount: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Signed credit delta"
    )

    available_before: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Available credit before the transaction"
    )

    available_after: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Available credit after the transaction"
    )

    credit_limit_after: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Credit limit after the transaction"
    )

    reference_type: Optional[str] = Field(
        default=None,
        sa_column=Column(String(50), nullable=True),
        description="Type of reference (e.g., 'purchase_order', 'invoice')"
    )

    reference_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="ID of referenced entity"
    )

    description: Optional[str] = Field(
        default=None,
        sa_column=Column(String(500), nullable=True),
        description="Human-readable reason"
    )

    created_by: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Acting user id"
    )

    idempotency_key: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True, unique=True, index=True),
        description="Unique key for idempotent operations"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Transaction timestamp (immutable)"
    )

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "company_id": "5b0f7c1e-1f7d-4c55-9f1a-0d4c3c2f9e10",
                "transaction_type": "payment",
                "amount": "-500.00",
                "available_before": "1000.00",
                "available_after": "500.00",
                "credit_limit_after": "1000.00",
                "reference_type": "purchase_order",
                "reference_id": "po_456",
                "description": "Credit reserved for purchase_order #po_456",
                "created_by": "user_123",
                "idempotency_key": "reserve:po_456",
                "created_at": "2024-01-01T00:00:00Z"
            }
        }
