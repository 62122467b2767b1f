"""CreateCompany Use Case

Opens a company credit account and registers its owner.
"""

import logging
from decimal import Decimal
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.audit_log_service import AuditEvent, AuditLogService, record_safely
from src.app.repositories.company_repository import CompanyRepository
from src.app.repositories.company_user_repository import CompanyUserRepository
from src.app.repositories.credit_transaction_repository import CreditTransactionRepository
from src.app.use_cases.error_codes import ErrorCode
from src.domain.company import Company
from src.domain.company_user import CompanyRole, CompanyUser
from src.domain.credit_transaction import CreditTransaction, TransactionType
from .dtos import CompanyResponseDTO, CreateCompanyCommandDTO

logger = logging.getLogger(__name__)


class CreateCompany:
    """
    Use Case: Create a company with its credit account

    Business Rules:
    1. credit_limit = available_credit = initial_credit_limit (>= 0)
    2. The creating user becomes the company OWNER
    3. A positive initial limit is recorded as a LIMIT_ASSIGNMENT transaction
    4. Company, owner and transaction are committed together
    """

    def __init__(
        self,
        uow: UnitOfWork,
        company_repo: CompanyRepository,
        company_user_repo: CompanyUserRepository,
        transaction_repo: CreditTransactionRepository,
        audit_log: Optional[AuditLogService] = None,
    ):
        self.uow = uow
        self.company_repo = company_repo
        self.company_user_repo = company_user_repo
        self.transaction_repo = transaction_repo
        self.audit_log = audit_log

    async def execute(self, command: CreateCompanyCommandDTO) -> Result[CompanyResponseDTO]:
        if command.initial_credit_limit < 0:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_ARGUMENT,
                    message="Credit limit cannot be negative",
                    reason=f"initial_credit_limit={command.initial_credit_limit}",
                )
            )
        if not command.name.strip():
            return Return.err(
                Error(code=ErrorCode.INVALID_ARGUMENT, message="Company name is required")
            )

        try:
            company = await self.company_repo.create(
                Company(
                    name=command.name.strip(),
                    email=command.email,
                    credit_limit=command.initial_credit_limit,
                    available_credit=command.initial_credit_limit,
                )
            )

            await self.company_user_repo.create(
                CompanyUser(
                    company_id=company.id,
                    user_id=command.owner_user_id,
                    role=CompanyRole.OWNER,
                )
            )

            if command.initial_credit_limit > 0:
                await self.transaction_repo.create(
                    CreditTransaction(
                        company_id=company.id,
                        transaction_type=TransactionType.LIMIT_ASSIGNMENT,
                        amount=command.initial_credit_limit,
                        available_before=Decimal("0"),
                        available_after=command.initial_credit_limit,
                        credit_limit_after=command.initial_credit_limit,
                        description="Initial credit limit",
                        created_by=command.owner_user_id,
                    )
                )

            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Error creating company {command.name}: {e}")
            return Return.err(
                Error(
                    code="CREATE_COMPANY_FAILED",
                    message="Failed to create company",
                    reason=str(e),
                )
            )

        logger.info(
            f"Company created: company_id={company.id}, name={company.name}, "
            f"credit_limit={company.credit_limit}, owner={command.owner_user_id}"
        )
        await record_safely(
            self.audit_log,
            AuditEvent(
                event_type="company.created",
                entity_type="company",
                entity_id=company.id,
                actor=command.owner_user_id,
                data={"credit_limit": company.credit_limit},
            ),
        )

        return Return.ok(
            CompanyResponseDTO(
                company_id=company.id,
                name=company.name,
                email=company.email,
                status=company.status.value if hasattr(company.status, "value") else company.status,
                credit_limit=company.credit_limit,
                available_credit=company.available_credit,
                created_at=company.created_at,
            )
        )
