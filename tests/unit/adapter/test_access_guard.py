"""Unit tests for RoleAccessGuard"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from src.adapter.services.access_guard import (
    AllowAllAccessGuard,
    PlatformRole,
    RoleAccessGuard,
    parse_platform_role,
)
from src.app.services.access_guard import Capability
from src.domain.company_user import CompanyRole


def member_repo(role):
    repo = MagicMock()
    repo.get_role = AsyncMock(return_value=role)
    return repo


@pytest.mark.asyncio
class TestRoleAccessGuard:

    @pytest.mark.parametrize(
        "role,capability,allowed",
        [
            (CompanyRole.OWNER, Capability.ASSIGN_CREDIT, True),
            (CompanyRole.ADMIN, Capability.ADJUST_CREDIT, True),
            (CompanyRole.BUYER, Capability.RESERVE_CREDIT, True),
            (CompanyRole.BUYER, Capability.ASSIGN_CREDIT, False),
            (CompanyRole.APPROVER, Capability.RELEASE_CREDIT, True),
            (CompanyRole.VIEWER, Capability.VIEW_CREDIT, True),
            (CompanyRole.VIEWER, Capability.RESERVE_CREDIT, False),
            (None, Capability.VIEW_CREDIT, False),
        ],
    )
    async def test_credit_capabilities_follow_company_role(self, role, capability, allowed):
        guard = RoleAccessGuard(member_repo(role))

        assert await guard.has_privilege("user_1", "company_123", capability) is allowed

    async def test_platform_admin_is_always_allowed(self):
        repo = member_repo(None)
        guard = RoleAccessGuard(repo, PlatformRole.ADMIN)

        assert await guard.has_privilege("admin_1", "company_123", Capability.ASSIGN_CREDIT)
        repo.get_role.assert_not_called()

    @pytest.mark.parametrize(
        "platform_role,allowed",
        [(PlatformRole.SUPPORT, True), (PlatformRole.USER, False)],
    )
    async def test_refunds_need_support_or_admin(self, platform_role, allowed):
        guard = RoleAccessGuard(member_repo(CompanyRole.OWNER), platform_role)

        assert await guard.has_privilege("agent_1", "payment_123", Capability.REFUND_PAYMENT) is allowed

    @pytest.mark.parametrize(
        "acting_user_id,platform_role,allowed",
        [
            ("user_123", PlatformRole.USER, True),
            ("user_999", PlatformRole.USER, False),
            ("agent_1", PlatformRole.SUPPORT, True),
            ("", PlatformRole.USER, False),
        ],
    )
    async def test_capture_allowed_for_payer_or_support(self, acting_user_id, platform_role, allowed):
        guard = RoleAccessGuard(member_repo(None), platform_role)

        assert await guard.has_privilege(acting_user_id, "user_123", Capability.CAPTURE_PAYMENT) is allowed

    async def test_allow_all(self):
        assert await AllowAllAccessGuard().has_privilege("anyone", "anything", Capability.ADJUST_CREDIT)


class TestParsePlatformRole:

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("admin", PlatformRole.ADMIN),
            (" Support ", PlatformRole.SUPPORT),
            ("root", PlatformRole.USER),
            (None, PlatformRole.USER),
        ],
    )
    def test_parse(self, value, expected):
        assert parse_platform_role(value) == expected
