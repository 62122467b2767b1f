"""Request schemas for Payment and Refund API"""

from decimal import Decimal
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, field_validator


class CreatePaymentRequestSchema(BaseModel):
    """
    Request schema for capturing a payment

    Used for POST /payments endpoint.
    """

    order_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., description="Amount to capture (must be > 0)")
    currency: str = Field(default="USD", min_length=3, max_length=3)
    payment_method_id: str = Field(..., min_length=1)
    provider: Optional[str] = Field(default=None, max_length=50)
    description: Optional[str] = Field(default=None, max_length=500)
    idempotency_key: Optional[str] = Field(default=None, min_length=1, max_length=255)

    @field_validator("amount")
    @classmethod
    def validate_precision(cls, v):
        if v.as_tuple().exponent < -2:
            raise ValueError("Amount cannot have more than 2 decimal places")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "order_id": "order_789",
                "user_id": "user_123",
                "amount": "100.00",
                "currency": "USD",
                "payment_method_id": "pm_card_visa",
                "idempotency_key": "checkout:order_789"
            }
        }


class UpdatePaymentStatusRequestSchema(BaseModel):
    status: str = Field(..., min_length=1, description="Target status")
    metadata: Optional[Dict[str, Any]] = None


class CreateRefundRequestSchema(BaseModel):
    """
    Request schema for refunding a payment

    Used for POST /payments/{id}/refunds endpoint.
    """

    amount: Decimal = Field(..., description="Amount to refund (must be > 0)")
    reason: Optional[str] = Field(default=None, max_length=500)
    idempotency_key: Optional[str] = Field(default=None, min_length=1, max_length=255)
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("amount")
    @classmethod
    def validate_precision(cls, v):
        if v.as_tuple().exponent < -2:
            raise ValueError("Amount cannot have more than 2 decimal places")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "amount": "40.00",
                "reason": "Damaged item",
                "idempotency_key": "refund:order_789:1"
            }
        }
