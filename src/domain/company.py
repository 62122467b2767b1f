"""Company Domain Entity

A company account owns exactly one credit line: a credit limit and the
portion of it that is still available.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import CheckConstraint, Numeric, String
from src.domain.base import BaseModel, generate_uuid


class CompanyStatus(str, Enum):
    """Company account status"""
    ACTIVE = "active"
    SUSPENDED = "suspended"
    PENDING_REVIEW = "pending_review"


class LimitReductionPolicy(str, Enum):
    """
    How available credit is treated when a credit limit is lowered

    PRESERVE: apply the limit delta as-is; available credit may go negative
              when the new limit is below current usage (over-limit stays visible)
    CLAMP:    clamp available credit into [0, credit_limit] after the delta
    """
    PRESERVE = "preserve"
    CLAMP = "clamp"


class Company(BaseModel, table=True):
    """
    Company - Credit account holder

    Domain Rules:
    - credit_limit is never negative
    - 0 <= available_credit <= credit_limit after every reserve/release/adjust
    - Credit fields change only through credit ledger use cases, each of which
      appends a CreditTransaction in the same database transaction
    """

    __tablename__ = "companies"
    __table_args__ = (
        CheckConstraint('credit_limit >= 0', name='credit_limit_non_negative'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        sa_column=Column(String(36), primary_key=True),
        description="Company identifier (UUID)"
    )

    name: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Legal or display name"
    )

    email: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Billing contact email"
    )

    status: CompanyStatus = Field(
        default=CompanyStatus.ACTIVE,
        description="Account status"
    )

    credit_limit: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(18, 2), nullable=False, default=0),
        description="Upper bound on extended credit (>= 0)"
    )

    available_credit: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(18, 2), nullable=False, default=0),
        description="Remaining unused credit within the limit"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Company creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last credit update timestamp"
    )

    @property
    def used_credit(self) -> Decimal:
        return self.credit_limit - self.available_credit

    def utilization_percentage(self) -> Decimal:
        """Share of the limit currently in use, rounded to 2 places (0 when no limit)"""
        if self.credit_limit <= 0:
            return Decimal("0")
        return round(self.used_credit / self.credit_limit * Decimal("100"), 2)

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": "5b0f7c1e-1f7d-4c55-9f1a-0d4c3c2f9e10",
                "name": "Acme Industrial",
                "email": "ap@acme.example",
                "status": "active",
                "credit_limit": "1000.00",
                "available_credit": "500.00",
                "created_at": "2024-01-01T00:00:00Z",
                "updated_at": "2024-01-01T00:00:00Z"
            }
        }
