"""Access Guard Implementations

RoleAccessGuard decides from the caller's platform role (request header)
and, for credit capabilities, the caller's role inside the company.
"""

import logging
from enum import Enum
from typing import Optional
from src.app.repositories.company_user_repository import CompanyUserRepository
from src.app.services.access_guard import AccessGuard, Capability
from src.domain.company_user import CompanyRole

logger = logging.getLogger(__name__)


class PlatformRole(str, Enum):
    ADMIN = "admin"
    SUPPORT = "support"
    USER = "user"


CREDIT_CAPABILITY_ROLES = {
    Capability.VIEW_CREDIT: frozenset(CompanyRole),
    Capability.ASSIGN_CREDIT: frozenset({CompanyRole.OWNER, CompanyRole.ADMIN}),
    Capability.ADJUST_CREDIT: frozenset({CompanyRole.OWNER, CompanyRole.ADMIN}),
    Capability.RESERVE_CREDIT: frozenset(
        {CompanyRole.OWNER, CompanyRole.ADMIN, CompanyRole.APPROVER, CompanyRole.BUYER}
    ),
    Capability.RELEASE_CREDIT: frozenset(
        {CompanyRole.OWNER, CompanyRole.ADMIN, CompanyRole.APPROVER, CompanyRole.BUYER}
    ),
}

PAYMENT_CAPABILITY_ROLES = {
    Capability.CAPTURE_PAYMENT: frozenset({PlatformRole.ADMIN, PlatformRole.SUPPORT}),
    Capability.REFUND_PAYMENT: frozenset({PlatformRole.ADMIN, PlatformRole.SUPPORT}),
    Capability.UPDATE_PAYMENT_STATUS: frozenset({PlatformRole.ADMIN, PlatformRole.SUPPORT}),
}


def parse_platform_role(value: Optional[str]) -> PlatformRole:
    """Unknown or missing roles fall back to USER"""
    try:
        return PlatformRole((value or "").strip().lower())
    except ValueError:
        return PlatformRole.USER


class RoleAccessGuard(AccessGuard):
    """
    Built per request for one caller

    - platform ADMIN holds every capability
    - payment capabilities need platform ADMIN or SUPPORT, except that a
      user may capture a payment they are paying themselves
    - credit capabilities follow the caller's CompanyUser role
    """

    def __init__(self, company_user_repo: CompanyUserRepository, platform_role: PlatformRole = PlatformRole.USER):
        self.company_user_repo = company_user_repo
        self.platform_role = platform_role

    async def has_privilege(self, acting_user_id: str, resource_id: str, capability: Capability) -> bool:
        if self.platform_role == PlatformRole.ADMIN:
            return True

        if capability == Capability.CAPTURE_PAYMENT and acting_user_id and acting_user_id == resource_id:
            return True

        if capability in PAYMENT_CAPABILITY_ROLES:
            return self.platform_role in PAYMENT_CAPABILITY_ROLES[capability]

        allowed_roles = CREDIT_CAPABILITY_ROLES.get(capability)
        if not allowed_roles or not acting_user_id:
            return False

        role = await self.company_user_repo.get_role(resource_id, acting_user_id)
        if role is None:
            logger.debug(f"User {acting_user_id} is not a member of company {resource_id}")
            return False
        return role in allowed_roles


class AllowAllAccessGuard(AccessGuard):
    """Used when AUTH_DISABLED is set"""

    async def has_privilege(self, acting_user_id: str, resource_id: str, capability: Capability) -> bool:
        return True
