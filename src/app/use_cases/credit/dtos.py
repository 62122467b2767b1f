"""Data Transfer Objects for Credit Ledger Use Cases

Pydantic models for command inputs and response outputs.
Amount validation (sign, zero) happens inside the use cases so that the
ledger reports INVALID_ARGUMENT through the Result channel.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field


class CreateCompanyCommandDTO(BaseModel):
    """Command DTO for opening a company credit account"""

    name: str = Field(..., description="Company name")
    email: Optional[str] = Field(default=None, description="Billing contact email")
    owner_user_id: str = Field(..., description="User registered as company OWNER")
    initial_credit_limit: Decimal = Field(
        default=Decimal("0"),
        description="Initial credit limit; available credit starts equal to it"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Acme Industrial",
                "email": "ap@acme.example",
                "owner_user_id": "user_123",
                "initial_credit_limit": "1000.00"
            }
        }


class CompanyResponseDTO(BaseModel):
    company_id: str
    name: str
    email: Optional[str] = None
    status: str
    credit_limit: Decimal
    available_credit: Decimal
    created_at: datetime


class CreditInfoResponseDTO(BaseModel):
    """
    Response DTO for GetCreditInfo

    used_credit = credit_limit - available_credit
    """

    company_id: str = Field(..., description="Company identifier")
    credit_limit: Decimal = Field(..., description="Current credit limit")
    available_credit: Decimal = Field(..., description="Remaining available credit")
    used_credit: Decimal = Field(..., description="Credit currently in use")
    last_updated: datetime = Field(..., description="Timestamp of last credit update")

    class Config:
        json_schema_extra = {
            "example": {
                "company_id": "5b0f7c1e-1f7d-4c55-9f1a-0d4c3c2f9e10",
                "credit_limit": "1000.00",
                "available_credit": "500.00",
                "used_credit": "500.00",
                "last_updated": "2024-01-01T00:00:00Z"
            }
        }


class SetCreditLimitCommandDTO(BaseModel):
    company_id: str = Field(..., description="Company identifier")
    new_limit: Decimal = Field(..., description="New credit limit (>= 0)")
    acting_user_id: str = Field(..., description="User performing the change")
    reason: Optional[str] = Field(default=None, description="Reason recorded on the transaction")


class SetCreditLimitResponseDTO(BaseModel):
    company_id: str
    credit_limit: Decimal
    available_credit: Decimal
    previous_limit: Decimal
    transaction_id: int


class ReserveCreditCommandDTO(BaseModel):
    """
    Command DTO for reserving credit against an order or invoice

    Used as input to ReserveCredit use case.
    """

    company_id: str = Field(..., description="Company identifier")
    amount: Decimal = Field(..., description="Amount to reserve (must be > 0)")
    reference_id: str = Field(..., description="ID of the order/invoice the credit is reserved for")
    reference_type: str = Field(..., description="Type of reference (e.g. 'purchase_order', 'invoice')")
    acting_user_id: str = Field(..., description="User performing the reservation")
    description: Optional[str] = Field(default=None)
    idempotency_key: Optional[str] = Field(
        default=None,
        description="Repeated keys replay the original result without a second reservation"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "company_id": "5b0f7c1e-1f7d-4c55-9f1a-0d4c3c2f9e10",
                "amount": "500.00",
                "reference_id": "po_456",
                "reference_type": "purchase_order",
                "acting_user_id": "user_123",
                "idempotency_key": "reserve:po_456"
            }
        }


class ReleaseCreditCommandDTO(BaseModel):
    """Command DTO for releasing previously reserved credit (e.g. cancelled order)"""

    company_id: str = Field(..., description="Company identifier")
    amount: Decimal = Field(..., description="Amount to release (must be > 0)")
    reference_id: str = Field(..., description="ID of the order/invoice being released")
    reference_type: str = Field(..., description="Type of reference")
    acting_user_id: str = Field(..., description="User performing the release")
    description: Optional[str] = Field(default=None)
    idempotency_key: Optional[str] = Field(default=None)


class AdjustCreditCommandDTO(BaseModel):
    """Command DTO for a signed manual correction of available credit"""

    company_id: str = Field(..., description="Company identifier")
    amount: Decimal = Field(..., description="Signed adjustment (non-zero)")
    acting_user_id: str = Field(..., description="Administrator performing the adjustment")
    reason: Optional[str] = Field(default=None)


class CreditMutationResponseDTO(BaseModel):
    """
    Response DTO for reserve/release/adjust

    Snapshots come from the recorded transaction so that idempotent replays
    return the original figures.
    """

    company_id: str
    transaction_id: int
    transaction_type: str
    amount: Decimal
    available_before: Decimal
    available_credit: Decimal
    credit_limit: Decimal
    created_at: datetime


class CreditTransactionFiltersDTO(BaseModel):
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    types: Optional[List[str]] = None
    reference_id: Optional[str] = None


class CreditTransactionDTO(BaseModel):
    id: int
    transaction_type: str
    amount: Decimal
    available_after: Decimal
    reference_type: Optional[str] = None
    reference_id: Optional[str] = None
    description: Optional[str] = None
    created_by: str
    created_at: datetime


class ListCreditTransactionsResponseDTO(BaseModel):
    transactions: List[CreditTransactionDTO]
    total: int
    page: int
    limit: int


class CreditUtilizationDTO(BaseModel):
    company_id: str
    credit_limit: Decimal
    available_credit: Decimal
    utilization_percentage: Decimal


class BulkCreditUtilizationResponseDTO(BaseModel):
    companies: List[CreditUtilizationDTO]


def to_mutation_response(transaction) -> CreditMutationResponseDTO:
    """Build a mutation response from a recorded CreditTransaction"""
    return CreditMutationResponseDTO(
        company_id=transaction.company_id,
        transaction_id=transaction.id,
        transaction_type=transaction.transaction_type.value
        if hasattr(transaction.transaction_type, "value")
        else transaction.transaction_type,
        amount=transaction.amount,
        available_before=transaction.available_before,
        available_credit=transaction.available_after,
        credit_limit=transaction.credit_limit_after,
        created_at=transaction.created_at,
    )
