"""Access Guard Interface

Supplies a yes/no decision per privileged operation. Use cases consult it
before any mutation and abort with UNAUTHORIZED when it says no.
"""

from abc import ABC, abstractmethod
from enum import Enum


class Capability(str, Enum):
    VIEW_CREDIT = "view_credit"
    ASSIGN_CREDIT = "assign_credit"
    RESERVE_CREDIT = "reserve_credit"
    RELEASE_CREDIT = "release_credit"
    ADJUST_CREDIT = "adjust_credit"
    CAPTURE_PAYMENT = "capture_payment"
    REFUND_PAYMENT = "refund_payment"
    UPDATE_PAYMENT_STATUS = "update_payment_status"


class AccessGuard(ABC):

    @abstractmethod
    async def has_privilege(self, acting_user_id: str, resource_id: str, capability: Capability) -> bool:
        """
        Decide whether acting_user_id may exercise capability on resource_id

        Args:
            acting_user_id: Caller identity
            resource_id: Company id for credit capabilities, paying user id for capture,
                         payment id for the other payment capabilities
            capability: Operation being attempted

        Returns:
            True if allowed
        """
        pass
