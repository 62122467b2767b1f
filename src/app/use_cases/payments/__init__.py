from .create_payment import CreatePayment
from .update_payment_status import UpdatePaymentStatus
from .get_payment import GetPayment
from .create_refund import CreateRefund
from .get_refund import GetRefund, ListPaymentRefunds, ListUserRefunds
from .list_payments import ListOrderPayments, ListUserPayments
from .refund_stats import GetRefundStats
from .reconcile_pending_refunds import ReconcilePendingRefunds
from .dtos import (
    CreatePaymentCommandDTO,
    UpdatePaymentStatusCommandDTO,
    CreateRefundCommandDTO,
    PaymentResponseDTO,
    RefundResponseDTO,
    ListRefundsResponseDTO,
    ListPaymentsResponseDTO,
    ListUserRefundsResponseDTO,
    RefundStatsDTO,
    RefundReconciliationResultDTO,
)

__all__ = [
    "CreatePayment",
    "UpdatePaymentStatus",
    "GetPayment",
    "CreateRefund",
    "GetRefund",
    "ListPaymentRefunds",
    "ListUserRefunds",
    "ListOrderPayments",
    "ListUserPayments",
    "GetRefundStats",
    "ReconcilePendingRefunds",
    "CreatePaymentCommandDTO",
    "UpdatePaymentStatusCommandDTO",
    "CreateRefundCommandDTO",
    "PaymentResponseDTO",
    "RefundResponseDTO",
    "ListRefundsResponseDTO",
    "ListPaymentsResponseDTO",
    "ListUserRefundsResponseDTO",
    "RefundStatsDTO",
    "RefundReconciliationResultDTO",
]
