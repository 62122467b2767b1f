from .unit_of_work import UnitOfWork
from .access_guard import AccessGuard, Capability
from .audit_log_service import AuditEvent, AuditLogService, record_safely
from .payment_gateway import ChargeResult, GatewayError, PaymentGateway, RefundResult

__all__ = [
    "UnitOfWork",
    "AccessGuard",
    "Capability",
    "AuditEvent",
    "AuditLogService",
    "record_safely",
    "ChargeResult",
    "GatewayError",
    "PaymentGateway",
    "RefundResult",
]
