"""SQLAlchemy implementation of CreditTransactionRepository

Append-only credit history. Idempotency is enforced by the unique
constraint on idempotency_key.
"""

from datetime import datetime
from typing import List, Optional, Sequence, Tuple
from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.credit_transaction_repository import CreditTransactionRepository
from src.domain.credit_transaction import CreditTransaction, TransactionType


class SqlAlchemyCreditTransactionRepository(CreditTransactionRepository):
    """
    SQLAlchemy implementation of CreditTransactionRepository

    Features:
    - Idempotency enforcement via unique idempotency_key constraint
    - Immutable append-only transactions
    - Filtered, paginated history (newest first)
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, transaction: CreditTransaction) -> CreditTransaction:
        """
        Create a new credit transaction

        Raises:
            IntegrityError: If idempotency_key already exists (duplicate transaction attempt)
        """
        self.session.add(transaction)
        await self.session.flush()
        await self.session.refresh(transaction)
        return transaction

    async def get_by_idempotency_key(self, idempotency_key: str) -> Optional[CreditTransaction]:
        stmt = select(CreditTransaction).where(
            CreditTransaction.idempotency_key == idempotency_key
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

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
        conditions = [CreditTransaction.company_id == company_id]
        if start_date:
            conditions.append(CreditTransaction.created_at >= start_date)
        if end_date:
            conditions.append(CreditTransaction.created_at <= end_date)
        if types:
            conditions.append(CreditTransaction.transaction_type.in_(list(types)))
        if reference_id:
            conditions.append(CreditTransaction.reference_id == reference_id)

        count_stmt = select(func.count()).select_from(CreditTransaction).where(*conditions)
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = (
            select(CreditTransaction)
            .where(*conditions)
            .order_by(CreditTransaction.created_at.desc(), CreditTransaction.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def get_latest_by_company(self, company_id: str) -> Optional[CreditTransaction]:
        # id is monotonic; created_at can tie within one request
        stmt = (
            select(CreditTransaction)
            .where(CreditTransaction.company_id == company_id)
            .order_by(CreditTransaction.id.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
