from .unit_of_work import SqlAlchemyUnitOfWork
from .audit_log_service import (
    LoggingAuditLogService,
    WebhookAuditLogService,
    CompositeAuditLogService,
    create_audit_log_service,
)
from .payment_gateway import FakePaymentGateway, HttpPaymentGateway, create_payment_gateway
from .access_guard import AllowAllAccessGuard, PlatformRole, RoleAccessGuard, parse_platform_role

__all__ = [
    "SqlAlchemyUnitOfWork",
    "LoggingAuditLogService",
    "WebhookAuditLogService",
    "CompositeAuditLogService",
    "create_audit_log_service",
    "FakePaymentGateway",
    "HttpPaymentGateway",
    "create_payment_gateway",
    "AllowAllAccessGuard",
    "PlatformRole",
    "RoleAccessGuard",
    "parse_platform_role",
]
