"""Company User Repository Interface"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.company_user import CompanyRole, CompanyUser


class CompanyUserRepository(ABC):

    @abstractmethod
    async def get_role(self, company_id: str, user_id: str) -> Optional[CompanyRole]:
        """Role of user within company, None if not a member"""
        pass

    @abstractmethod
    async def create(self, company_user: CompanyUser) -> CompanyUser:
        pass
