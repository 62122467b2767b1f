"""Company Repository Interface

Defines the contract for company credit account persistence.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Optional, Sequence
from src.domain.company import Company


class CompanyRepository(ABC):
    """
    Repository interface for Company persistence

    Credit mutations must load the company with for_update=True so that
    concurrent requests against the same company serialize on the row lock.
    """

    @abstractmethod
    async def get_by_id(self, company_id: str, for_update: bool = False) -> Optional[Company]:
        """
        Retrieve company by ID

        Args:
            company_id: Company identifier
            for_update: If True, lock the row with SELECT FOR UPDATE (pessimistic lock)

        Returns:
            Company if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_ids(self, company_ids: Sequence[str]) -> List[Company]:
        pass

    @abstractmethod
    async def get_all(self) -> List[Company]:
        pass

    @abstractmethod
    async def create(self, company: Company) -> Company:
        pass

    @abstractmethod
    async def update_credit(self, company_id: str, credit_limit: Decimal, available_credit: Decimal) -> None:
        """
        Persist new credit figures

        Should be called within a transaction with the company already locked.
        """
        pass
