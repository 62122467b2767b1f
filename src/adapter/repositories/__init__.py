from .company_repository import SqlAlchemyCompanyRepository
from .company_user_repository import SqlAlchemyCompanyUserRepository
from .credit_transaction_repository import SqlAlchemyCreditTransactionRepository
from .payment_repository import SqlAlchemyPaymentRepository
from .refund_repository import SqlAlchemyRefundRepository

__all__ = [
    "SqlAlchemyCompanyRepository",
    "SqlAlchemyCompanyUserRepository",
    "SqlAlchemyCreditTransactionRepository",
    "SqlAlchemyPaymentRepository",
    "SqlAlchemyRefundRepository",
]
