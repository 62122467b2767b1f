from typing import Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.company_user_repository import CompanyUserRepository
from src.domain.company_user import CompanyRole, CompanyUser


class SqlAlchemyCompanyUserRepository(CompanyUserRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_role(self, company_id: str, user_id: str) -> Optional[CompanyRole]:
        stmt = select(CompanyUser.role).where(
            CompanyUser.company_id == company_id,
            CompanyUser.user_id == user_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, company_user: CompanyUser) -> CompanyUser:
        self.session.add(company_user)
        await self.session.flush()
        await self.session.refresh(company_user)
        return company_user
