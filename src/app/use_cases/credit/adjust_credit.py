"""AdjustCredit Use Case

Administrative signed correction of a company's available credit.
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
from src.domain.credit_transaction import CreditTransaction, TransactionType
from .dtos import AdjustCreditCommandDTO, CreditMutationResponseDTO, to_mutation_response

logger = logging.getLogger(__name__)


class AdjustCredit:
    """
    Use Case: Manually adjust available credit

    Business Rules:
    1. amount is signed and must be non-zero
    2. Caller must hold ADJUST_CREDIT on the company
    3. available_credit = clamp(available_credit + amount, 0, credit_limit);
       never fails on bounds so admin corrections cannot be blocked by a
       stale available-credit figure
    4. An ADJUSTMENT transaction with the requested signed amount is appended
    """

    def __init__(
        self,
        uow: UnitOfWork,
        company_repo: CompanyRepository,
        transaction_repo: CreditTransactionRepository,
        access_guard: AccessGuard,
        audit_log: Optional[AuditLogService] = None,
    ):
        self.uow = uow
        self.company_repo = company_repo
        self.transaction_repo = transaction_repo
        self.access_guard = access_guard
        self.audit_log = audit_log

    async def execute(self, command: AdjustCreditCommandDTO) -> Result[CreditMutationResponseDTO]:
        if command.amount == 0:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_ARGUMENT,
                    message="Adjustment amount must be non-zero",
                    reason="amount=0",
                )
            )

        denied = await check_privilege(
            self.access_guard, command.acting_user_id, command.company_id, Capability.ADJUST_CREDIT
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

            available_before = company.available_credit
            available_after = min(
                max(available_before + command.amount, Decimal("0")),
                company.credit_limit,
            )

            direction = "Increase" if command.amount > 0 else "Decrease"
            transaction = CreditTransaction(
                company_id=company.id,
                transaction_type=TransactionType.ADJUSTMENT,
                amount=command.amount,
                available_before=available_before,
                available_after=available_after,
                credit_limit_after=company.credit_limit,
                description=command.reason
                or f"Manual credit adjustment: {direction} by {abs(command.amount)}",
                created_by=command.acting_user_id,
            )
            created_transaction = await self.transaction_repo.create(transaction)

            await self.company_repo.update_credit(company.id, company.credit_limit, available_after)

            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.error(
                f"Error adjusting credit: company_id={command.company_id}, amount={command.amount}, "
                f"reason={command.reason}, error={e}"
            )
            return Return.err(
                Error(
                    code="ADJUST_CREDIT_FAILED",
                    message="Failed to adjust credit",
                    reason=str(e),
                )
            )

        logger.info(
            f"Credit manually adjusted: company_id={command.company_id}, amount={command.amount}, "
            f"reason={command.reason}, available_credit={available_after}, actor={command.acting_user_id}"
        )
        await record_safely(
            self.audit_log,
            AuditEvent(
                event_type="credit.adjusted",
                entity_type="company",
                entity_id=command.company_id,
                actor=command.acting_user_id,
                data={
                    "amount": command.amount,
                    "reason": command.reason,
                    "available_credit": available_after,
                    "transaction_id": created_transaction.id,
                },
            ),
        )

        return Return.ok(to_mutation_response(created_transaction))
