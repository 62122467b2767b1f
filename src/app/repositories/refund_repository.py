"""Refund Repository Interface"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from src.domain.refund import Refund, RefundStatus


class RefundRepository(ABC):

    @abstractmethod
    async def create(self, refund: Refund) -> Refund:
        pass

    @abstractmethod
    async def save(self, refund: Refund) -> Refund:
        pass

    @abstractmethod
    async def get_by_id(self, refund_id: str, for_update: bool = False) -> Optional[Refund]:
        pass

    @abstractmethod
    async def get_by_idempotency_key(self, idempotency_key: str) -> Optional[Refund]:
        pass

    @abstractmethod
    async def list_by_payment(self, payment_id: str) -> List[Refund]:
        pass

    @abstractmethod
    async def get_completed_sum_by_payment(self, payment_id: str) -> Decimal:
        """Sum of completed refund amounts for a payment (0 when none)"""
        pass

    @abstractmethod
    async def list_pending_before(self, cutoff: datetime, limit: int = 100) -> List[Refund]:
        """Unresolved refunds created before cutoff, oldest first"""
        pass

    @abstractmethod
    async def list_by_user(
        self,
        user_id: str,
        status: Optional[RefundStatus] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[Refund], int]:
        """
        Refunds against a customer's payments, newest first

        Returns:
            (page of refunds, total matching count)
        """
        pass

    @abstractmethod
    async def totals_by_status(self, user_id: Optional[str] = None) -> Dict[RefundStatus, Tuple[int, Decimal]]:
        """
        Refund count and amount per status, optionally for one customer

        Statuses without refunds are absent.
        """
        pass
