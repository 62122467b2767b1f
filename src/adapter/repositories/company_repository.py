"""SQLAlchemy implementation of CompanyRepository

Credit mutations lock the company row with SELECT FOR UPDATE so that
concurrent reserve/release/limit changes on one company serialize.
"""

from typing import List, Optional, Sequence
from decimal import Decimal
from datetime import datetime
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.company_repository import CompanyRepository
from src.domain.company import Company


class SqlAlchemyCompanyRepository(CompanyRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, company_id: str, for_update: bool = False) -> Optional[Company]:
        """
        Retrieve company by ID with optional row-level locking

        Args:
            company_id: Company identifier
            for_update: If True, locks the row and reloads it from the database

        Returns:
            Company if found, None otherwise
        """
        stmt = select(Company).where(Company.id == company_id)

        if for_update:
            # Re-read under the lock even if the object is already in the session
            stmt = stmt.with_for_update().execution_options(populate_existing=True)

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_ids(self, company_ids: Sequence[str]) -> List[Company]:
        if not company_ids:
            return []
        stmt = select(Company).where(Company.id.in_(list(company_ids)))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_all(self) -> List[Company]:
        stmt = select(Company).order_by(Company.created_at)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, company: Company) -> Company:
        self.session.add(company)
        await self.session.flush()
        await self.session.refresh(company)
        return company

    async def update_credit(self, company_id: str, credit_limit: Decimal, available_credit: Decimal) -> None:
        """
        Update credit figures and updated_at timestamp

        Note:
            Should be called within a transaction with the company already locked
        """
        company = await self.get_by_id(company_id, for_update=False)
        if company:
            company.credit_limit = credit_limit
            company.available_credit = available_credit
            company.updated_at = datetime.utcnow()
            self.session.add(company)
            await self.session.flush()
