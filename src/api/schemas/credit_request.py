"""Request schemas for Credit API

Amount signs are checked by the use cases so that a bad amount comes back
as INVALID_ARGUMENT rather than a request validation error.
"""

from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


def _two_decimal_places(v: Decimal) -> Decimal:
    if v is not None and v.as_tuple().exponent < -2:
        raise ValueError("Amount cannot have more than 2 decimal places")
    return v


class CreateCompanyRequestSchema(BaseModel):
    """
    Request schema for opening a company credit account

    Used for POST /companies endpoint. The caller becomes the company OWNER.
    """

    name: str = Field(..., min_length=1, max_length=255, description="Company name")
    email: Optional[str] = Field(default=None, max_length=255)
    initial_credit_limit: Decimal = Field(default=Decimal("0"), description="Initial credit limit (>= 0)")

    @field_validator("initial_credit_limit")
    @classmethod
    def validate_precision(cls, v):
        return _two_decimal_places(v)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Acme Industrial",
                "email": "ap@acme.example",
                "initial_credit_limit": "1000.00"
            }
        }


class SetCreditLimitRequestSchema(BaseModel):
    credit_limit: Decimal = Field(..., description="New credit limit (>= 0)")
    reason: Optional[str] = Field(default=None, max_length=500)

    @field_validator("credit_limit")
    @classmethod
    def validate_precision(cls, v):
        return _two_decimal_places(v)


class CreditMovementRequestSchema(BaseModel):
    """
    Request schema for reserving or releasing credit

    Used for POST /companies/{id}/credit/reserve and /release endpoints.
    """

    amount: Decimal = Field(..., description="Amount (must be > 0)")
    reference_id: str = Field(..., min_length=1, description="Order/invoice identifier")
    reference_type: str = Field(..., min_length=1, description="e.g. 'purchase_order', 'invoice'")
    description: Optional[str] = Field(default=None, max_length=500)
    idempotency_key: Optional[str] = Field(default=None, min_length=1, max_length=255)

    @field_validator("amount")
    @classmethod
    def validate_precision(cls, v):
        return _two_decimal_places(v)

    class Config:
        json_schema_extra = {
            "example": {
                "amount": "500.00",
                "reference_id": "po_456",
                "reference_type": "purchase_order",
                "idempotency_key": "reserve:po_456"
            }
        }


class AdjustCreditRequestSchema(BaseModel):
    amount: Decimal = Field(..., description="Signed adjustment (non-zero)")
    reason: Optional[str] = Field(default=None, max_length=500)

    @field_validator("amount")
    @classmethod
    def validate_precision(cls, v):
        return _two_decimal_places(v)


class BulkUtilizationRequestSchema(BaseModel):
    company_ids: List[str] = Field(..., min_length=1, description="Companies to report on")
