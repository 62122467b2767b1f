"""Get Credit Info Use Case

Retrieves a company's credit limit, available and used credit.
"""

from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.company_repository import CompanyRepository
from src.app.services.access_guard import AccessGuard, Capability
from src.app.use_cases.authorization import check_privilege
from src.app.use_cases.error_codes import ErrorCode
from .dtos import CreditInfoResponseDTO


class GetCreditInfo:
    """
    Get Credit Info Use Case

    Read-only operation. When an access guard and an acting user are given,
    the caller must hold VIEW_CREDIT on the company.
    """

    def __init__(self, company_repo: CompanyRepository, access_guard: Optional[AccessGuard] = None):
        self.company_repo = company_repo
        self.access_guard = access_guard

    async def execute(self, company_id: str, acting_user_id: Optional[str] = None) -> Result[CreditInfoResponseDTO]:
        """
        Execute get credit info

        Args:
            company_id: Company identifier
            acting_user_id: Caller identity (optional for internal callers)

        Returns:
            Result[CreditInfoResponseDTO]: Credit figures or error

        Errors:
            COMPANY_NOT_FOUND: No such company
            UNAUTHORIZED: Caller may not view this company's credit
        """
        if self.access_guard is not None and acting_user_id is not None:
            denied = await check_privilege(
                self.access_guard, acting_user_id, company_id, Capability.VIEW_CREDIT
            )
            if denied:
                return Return.err(denied)

        company = await self.company_repo.get_by_id(company_id)

        if not company:
            return Return.err(
                Error(
                    code=ErrorCode.COMPANY_NOT_FOUND,
                    message=f"Company with ID {company_id} not found",
                )
            )

        return Return.ok(
            CreditInfoResponseDTO(
                company_id=company.id,
                credit_limit=company.credit_limit,
                available_credit=company.available_credit,
                used_credit=company.credit_limit - company.available_credit,
                last_updated=company.updated_at,
            )
        )
