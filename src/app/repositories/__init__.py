from .company_repository import CompanyRepository
from .company_user_repository import CompanyUserRepository
from .credit_transaction_repository import CreditTransactionRepository
from .payment_repository import PaymentRepository
from .refund_repository import RefundRepository

__all__ = [
    "CompanyRepository",
    "CompanyUserRepository",
    "CreditTransactionRepository",
    "PaymentRepository",
    "RefundRepository",
]
