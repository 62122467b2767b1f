"""Credit Transaction Repository Interface

Persistence contract for the append-only company credit log.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence, Tuple
from src.domain.credit_transaction import CreditTransaction, TransactionType


class CreditTransactionRepository(ABC):
    """
    Entries are written in the same unit of work as the company balance
    they describe and are never updated afterwards.
    """

    @abstractmethod
    async def create(self, transaction: CreditTransaction) -> CreditTransaction:
        """
        Append an entry to a company's credit log

        Raises:
            IntegrityError: idempotency_key already recorded for another entry
        """
        pass

    @abstractmethod
    async def get_by_idempotency_key(self, idempotency_key: str) -> Optional[CreditTransaction]:
        """Entry written by an earlier request carrying the same key, if any"""
        pass

    @abstractmethod
    async def list_by_company(
        self,
        company_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        types: Optional[Sequence[TransactionType]] = None,
        reference_id: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[CreditTransaction], int]:
        """
        Filtered transaction history, newest first

        Returns:
            (page of transactions, total matching count)
        """
        pass

    @abstractmethod
    async def get_latest_by_company(self, company_id: str) -> Optional[CreditTransaction]:
        """Most recent transaction for a company, used by reconciliation"""
        pass
