"""Get Bulk Credit Utilization Use Case

Credit usage for several companies at once, for admin dashboards and reports.
"""

from typing import List
from libs.result import Result, Return, Error
from src.app.repositories.company_repository import CompanyRepository
from src.app.use_cases.error_codes import ErrorCode
from .dtos import BulkCreditUtilizationResponseDTO, CreditUtilizationDTO

MAX_COMPANIES_PER_REQUEST = 500


class GetBulkCreditUtilization:
    """
    utilization_percentage = (credit_limit - available_credit) / credit_limit * 100,
    rounded to 2 places; 0 for companies without a limit. Unknown ids are skipped.
    """

    def __init__(self, company_repo: CompanyRepository):
        self.company_repo = company_repo

    async def execute(self, company_ids: List[str]) -> Result[BulkCreditUtilizationResponseDTO]:
        if len(company_ids) > MAX_COMPANIES_PER_REQUEST:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_ARGUMENT,
                    message=f"At most {MAX_COMPANIES_PER_REQUEST} companies per request",
                    reason=f"requested={len(company_ids)}",
                )
            )

        companies = await self.company_repo.get_by_ids(list(dict.fromkeys(company_ids)))

        return Return.ok(
            BulkCreditUtilizationResponseDTO(
                companies=[
                    CreditUtilizationDTO(
                        company_id=company.id,
                        credit_limit=company.credit_limit,
                        available_credit=company.available_credit,
                        utilization_percentage=company.utilization_percentage(),
                    )
                    for company in companies
                ]
            )
        )
