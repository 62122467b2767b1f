from .base import BaseModel, generate_uuid
from .company import Company, CompanyStatus, LimitReductionPolicy
from .company_user import CompanyUser, CompanyRole
from .credit_transaction import CreditTransaction, TransactionType
from .payment import (
    Payment,
    PaymentStatus,
    PAYMENT_STATUS_TRANSITIONS,
    TERMINAL_PAYMENT_STATUSES,
    InvalidStatusTransition,
    can_transition,
)
from .refund import Refund, RefundStatus, RefundAlreadyResolved

__all__ = [
    "BaseModel",
    "generate_uuid",
    "Company",
    "CompanyStatus",
    "LimitReductionPolicy",
    "CompanyUser",
    "CompanyRole",
    "CreditTransaction",
    "TransactionType",
    "Payment",
    "PaymentStatus",
    "PAYMENT_STATUS_TRANSITIONS",
    "TERMINAL_PAYMENT_STATUSES",
    "InvalidStatusTransition",
    "can_transition",
    "Refund",
    "RefundStatus",
    "RefundAlreadyResolved",
]
