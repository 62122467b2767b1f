"""SetCreditLimit Use Case

Assigns a new credit limit to a company and shifts available credit by
the same delta, under a row lock.
"""

import logging
from decimal import Decimal
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.access_guard import AccessGuard, Capability
from src.app.services.audit_log_service import AuditEvent, AuditLogService, record_safely
from src.app.repositories.company_repository import CompanyRepository
from src.app.repositories.credit_transaction_repository import CreditTransactionRepository
from src.app.use_cases.authorization import check_privilege
from src.app.use_cases.error_codes import ErrorCode
from src.domain.company import LimitReductionPolicy
from src.domain.credit_transaction import CreditTransaction, TransactionType
from .dtos import SetCreditLimitCommandDTO, SetCreditLimitResponseDTO

logger = logging.getLogger(__name__)


class SetCreditLimit:
    """
    Use Case: Set a company's credit limit

    Business Rules:
    1. new_limit must be >= 0
    2. Caller must hold ASSIGN_CREDIT on the company
    3. delta = new_limit - previous_limit; available_credit += delta
    4. Lowering the limit below current usage:
       - PRESERVE policy: available credit is left negative (over-limit visible)
       - CLAMP policy: available credit is clamped into [0, new_limit]
    5. A LIMIT_ASSIGNMENT transaction with amount = delta is appended in the
       same database transaction

    Flow:
    1. Validate arguments
    2. Check privilege
    3. Get company with lock (SELECT FOR UPDATE)
    4. Compute new figures
    5. Append transaction, update company
    6. Commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        company_repo: CompanyRepository,
        transaction_repo: CreditTransactionRepository,
        access_guard: AccessGuard,
        audit_log: Optional[AuditLogService] = None,
        reduction_policy: LimitReductionPolicy = LimitReductionPolicy.PRESERVE,
    ):
        self.uow = uow
        self.company_repo = company_repo
        self.transaction_repo = transaction_repo
        self.access_guard = access_guard
        self.audit_log = audit_log
        self.reduction_policy = LimitReductionPolicy(reduction_policy)

    async def execute(self, command: SetCreditLimitCommandDTO) -> Result[SetCreditLimitResponseDTO]:
        if command.new_limit < 0:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_ARGUMENT,
                    message="Credit limit cannot be negative",
                    reason=f"new_limit={command.new_limit}",
                )
            )

        denied = await check_privilege(
            self.access_guard, command.acting_user_id, command.company_id, Capability.ASSIGN_CREDIT
        )
        if denied:
            return Return.err(denied)

        try:
            company = await self.company_repo.get_by_id(command.company_id, for_update=True)

            if not company:
                await self.uow.rollback()
                return Return.err(
                    Error(
                        code=ErrorCode.COMPANY_NOT_FOUND,
                        message=f"Company with ID {command.company_id} not found",
                    )
                )

            previous_limit = company.credit_limit
            available_before = company.available_credit
            delta = command.new_limit - previous_limit
            available_after = available_before + delta

            if self.reduction_policy == LimitReductionPolicy.CLAMP:
                available_after = min(max(available_after, Decimal("0")), command.new_limit)
            elif available_after < 0:
                logger.warning(
                    f"Credit limit for company {company.id} lowered below usage: "
                    f"new_limit={command.new_limit}, available_credit={available_after}"
                )

            transaction = CreditTransaction(
                company_id=company.id,
                transaction_type=TransactionType.LIMIT_ASSIGNMENT,
                amount=delta,
                available_before=available_before,
                available_after=available_after,
                credit_limit_after=command.new_limit,
                description=command.reason
                or f"Credit limit changed from {previous_limit} to {command.new_limit}",
                created_by=command.acting_user_id,
            )
            created_transaction = await self.transaction_repo.create(transaction)

            await self.company_repo.update_credit(company.id, command.new_limit, available_after)

            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Error setting credit limit for company {command.company_id}: {e}")
            return Return.err(
                Error(
                    code="SET_CREDIT_LIMIT_FAILED",
                    message="Failed to set credit limit",
                    reason=str(e),
                )
            )

        logger.info(
            f"Company credit limit updated: company_id={command.company_id}, "
            f"previous_limit={previous_limit}, new_limit={command.new_limit}, "
            f"available_credit={available_after}, actor={command.acting_user_id}"
        )
        await record_safely(
            self.audit_log,
            AuditEvent(
                event_type="credit.limit_set",
                entity_type="company",
                entity_id=command.company_id,
                actor=command.acting_user_id,
                data={
                    "previous_limit": previous_limit,
                    "credit_limit": command.new_limit,
                    "available_credit": available_after,
                    "transaction_id": created_transaction.id,
                },
            ),
        )

        return Return.ok(
            SetCreditLimitResponseDTO(
                company_id=command.company_id,
                credit_limit=command.new_limit,
                available_credit=available_after,
                previous_limit=previous_limit,
                transaction_id=created_transaction.id,
            )
        )
