"""Payment Repository Interface"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple
from src.domain.payment import Payment, PaymentStatus


class PaymentRepository(ABC):
    """
    Repository interface for Payment persistence

    Refund bookkeeping must load the payment with for_update=True.
    """

    @abstractmethod
    async def get_by_id(self, payment_id: str, for_update: bool = False) -> Optional[Payment]:
        """
        Retrieve payment (with its refunds) by ID

        Args:
            payment_id: Payment identifier
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            Payment if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_idempotency_key(self, idempotency_key: str) -> Optional[Payment]:
        pass

    @abstractmethod
    async def get_all(self) -> List[Payment]:
        pass

    @abstractmethod
    async def create(self, payment: Payment) -> Payment:
        pass

    @abstractmethod
    async def save(self, payment: Payment) -> Payment:
        """Flush changes made to a loaded payment"""
        pass

    @abstractmethod
    async def list_by_order(self, order_id: str) -> List[Payment]:
        """Every payment attempt for an order, oldest first"""
        pass

    @abstractmethod
    async def list_by_user(
        self,
        user_id: str,
        status: Optional[PaymentStatus] = None,
        payment_method_id: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[Payment], int]:
        """
        A customer's payments, newest first

        Returns:
            (page of payments, total matching count)
        """
        pass
