"""Access guard check shared by mutating use cases"""

import logging
from typing import Optional
from libs.result import Error
from src.app.services.access_guard import AccessGuard, Capability
from src.app.use_cases.error_codes import ErrorCode

logger = logging.getLogger(__name__)


async def check_privilege(
    access_guard: AccessGuard,
    acting_user_id: str,
    resource_id: str,
    capability: Capability,
) -> Optional[Error]:
    """
    Ask the guard for a decision

    Returns:
        None when allowed, an UNAUTHORIZED Error otherwise
    """
    if await access_guard.has_privilege(acting_user_id, resource_id, capability):
        return None

    logger.warning(
        f"Access denied: user={acting_user_id} capability={capability.value} resource={resource_id}"
    )
    return Error(
        code=ErrorCode.UNAUTHORIZED,
        message=f"User {acting_user_id} is not allowed to {capability.value.replace('_', ' ')}",
        reason=f"capability={capability.value}, resource_id={resource_id}",
    )
