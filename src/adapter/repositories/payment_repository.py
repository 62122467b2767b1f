"""SQLAlchemy implementation of PaymentRepository"""

from typing import List, Optional, Tuple
from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.payment_repository import PaymentRepository
from src.domain.payment import Payment, PaymentStatus


class SqlAlchemyPaymentRepository(PaymentRepository):
    """
    Features:
    - Pessimistic locking via SELECT FOR UPDATE for refund bookkeeping
    - Refunds loaded eagerly (selectin) with the payment
    - Filtered, paginated customer history (newest first)
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, payment_id: str, for_update: bool = False) -> Optional[Payment]:
        stmt = select(Payment).where(Payment.id == payment_id)

        if for_update:
            # Re-read under the lock, refunds included
            stmt = stmt.with_for_update().execution_options(populate_existing=True)

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_idempotency_key(self, idempotency_key: str) -> Optional[Payment]:
        stmt = select(Payment).where(Payment.idempotency_key == idempotency_key)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_all(self) -> List[Payment]:
        stmt = select(Payment).order_by(Payment.created_at)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, payment: Payment) -> Payment:
        self.session.add(payment)
        await self.session.flush()
        await self.session.refresh(payment)
        return payment

    async def save(self, payment: Payment) -> Payment:
        self.session.add(payment)
        await self.session.flush()
        return payment

    async def list_by_order(self, order_id: str) -> List[Payment]:
        stmt = select(Payment).where(Payment.order_id == order_id).order_by(Payment.created_at)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_by_user(
        self,
        user_id: str,
        status: Optional[PaymentStatus] = None,
        payment_method_id: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[Payment], int]:
        conditions = [Payment.user_id == user_id]
        if status:
            conditions.append(Payment.status == status)
        if payment_method_id:
            conditions.append(Payment.payment_method_id == payment_method_id)

        count_stmt = select(func.count()).select_from(Payment).where(*conditions)
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = (
            select(Payment)
            .where(*conditions)
            .order_by(Payment.created_at.desc(), Payment.id)
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total
