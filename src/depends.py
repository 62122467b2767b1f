from typing import Optional
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.repositories.company_user_repository import SqlAlchemyCompanyUserRepository
from src.adapter.services.access_guard import AllowAllAccessGuard, RoleAccessGuard, parse_platform_role
from src.adapter.services.audit_log_service import create_audit_log_service
from src.adapter.services.payment_gateway import create_payment_gateway
from src.app.services.access_guard import AccessGuard
from src.app.services.audit_log_service import AuditLogService
from src.app.services.payment_gateway import PaymentGateway

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

# One per process: the fake gateway keeps its idempotency records in memory
_payment_gateway: Optional[PaymentGateway] = None
_audit_log: Optional[AuditLogService] = None


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


def get_payment_gateway() -> PaymentGateway:
    global _payment_gateway
    if _payment_gateway is None:
        _payment_gateway = create_payment_gateway(
            ApplicationConfig.PAYMENT_GATEWAY_BACKEND,
            base_url=ApplicationConfig.PAYMENT_GATEWAY_URL,
            api_key=ApplicationConfig.PAYMENT_GATEWAY_API_KEY,
            timeout=ApplicationConfig.PAYMENT_GATEWAY_TIMEOUT_SECONDS,
        )
    return _payment_gateway


def get_audit_log() -> AuditLogService:
    global _audit_log
    if _audit_log is None:
        _audit_log = create_audit_log_service(ApplicationConfig.AUDIT_WEBHOOK_URL)
    return _audit_log


async def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Caller identity supplied by the upstream auth layer"""
    return x_user_id or "anonymous"


async def get_access_guard(
    x_user_role: Optional[str] = Header(default=None),
    session: AsyncSession = Depends(get_session),
) -> AccessGuard:
    if ApplicationConfig.AUTH_DISABLED:
        return AllowAllAccessGuard()
    return RoleAccessGuard(SqlAlchemyCompanyUserRepository(session), parse_platform_role(x_user_role))
