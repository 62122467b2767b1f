"""Data Transfer Objects for reconciliation"""

from datetime import datetime
from decimal import Decimal
from typing import List
from pydantic import BaseModel, Field


class CreditDiscrepancyDTO(BaseModel):
    """Company whose available credit disagrees with its last transaction snapshot"""

    company_id: str = Field(..., description="Company identifier")
    available_credit: Decimal = Field(..., description="Stored available credit")
    expected_available: Decimal = Field(..., description="available_after of the latest transaction")
    discrepancy: Decimal = Field(..., description="available_credit - expected_available")


class RefundDiscrepancyDTO(BaseModel):
    """Payment whose refunded_amount disagrees with its completed refunds"""

    payment_id: str
    refunded_amount: Decimal
    completed_refunds_total: Decimal
    discrepancy: Decimal


class ReconciliationResultDTO(BaseModel):
    total_companies_checked: int
    total_payments_checked: int
    discrepancies_found: int
    credit_discrepancies: List[CreditDiscrepancyDTO]
    refund_discrepancies: List[RefundDiscrepancyDTO]
    reconciliation_time: datetime
    execution_time_ms: int
