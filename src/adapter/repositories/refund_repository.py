"""SQLAlchemy implementation of RefundRepository"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.refund_repository import RefundRepository
from src.domain.payment import Payment
from src.domain.refund import Refund, RefundStatus


class SqlAlchemyRefundRepository(RefundRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, refund: Refund) -> Refund:
        """
        Raises:
            IntegrityError: If idempotency_key already exists
        """
        self.session.add(refund)
        await self.session.flush()
        await self.session.refresh(refund)
        return refund

    async def save(self, refund: Refund) -> Refund:
        self.session.add(refund)
        await self.session.flush()
        return refund

    async def get_by_id(self, refund_id: str, for_update: bool = False) -> Optional[Refund]:
        stmt = select(Refund).where(Refund.id == refund_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_idempotency_key(self, idempotency_key: str) -> Optional[Refund]:
        stmt = select(Refund).where(Refund.idempotency_key == idempotency_key)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_payment(self, payment_id: str) -> List[Refund]:
        stmt = select(Refund).where(Refund.payment_id == payment_id).order_by(Refund.created_at)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_completed_sum_by_payment(self, payment_id: str) -> Decimal:
        stmt = select(func.coalesce(func.sum(Refund.amount), 0)).where(
            Refund.payment_id == payment_id,
            Refund.status == RefundStatus.COMPLETED,
        )
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar_one()))

    async def list_pending_before(self, cutoff: datetime, limit: int = 100) -> List[Refund]:
        stmt = (
            select(Refund)
            .where(Refund.status == RefundStatus.PENDING, Refund.created_at < cutoff)
            .order_by(Refund.created_at)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_by_user(
        self,
        user_id: str,
        status: Optional[RefundStatus] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[Refund], int]:
        conditions = [Payment.user_id == user_id]
        if status:
            conditions.append(Refund.status == status)

        count_stmt = (
            select(func.count())
            .select_from(Refund)
            .join(Payment, Payment.id == Refund.payment_id)
            .where(*conditions)
        )
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = (
            select(Refund)
            .join(Payment, Payment.id == Refund.payment_id)
            .where(*conditions)
            .order_by(Refund.created_at.desc(), Refund.id)
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def totals_by_status(self, user_id: Optional[str] = None) -> Dict[RefundStatus, Tuple[int, Decimal]]:
        stmt = select(
            Refund.status,
            func.count(Refund.id),
            func.coalesce(func.sum(Refund.amount), 0),
        ).group_by(Refund.status)
        if user_id:
            stmt = stmt.join(Payment, Payment.id == Refund.payment_id).where(Payment.user_id == user_id)

        result = await self.session.execute(stmt)
        return {
            RefundStatus(status): (count, Decimal(str(amount)))
            for status, count, amount in result.all()
        }
