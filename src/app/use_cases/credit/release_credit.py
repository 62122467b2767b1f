"""ReleaseCredit Use Case

Returns previously reserved credit to a company (e.g. cancelled order).
Available credit is clamped so it never exceeds the credit limit.
"""

import logging
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
from .dtos import CreditMutationResponseDTO, ReleaseCreditCommandDTO, to_mutation_response

logger = logging.getLogger(__name__)


class ReleaseCredit:
    """
    Use Case: Release reserved credit

    Business Rules:
    1. amount must be > 0
    2. Caller must hold RELEASE_CREDIT on the company
    3. available_credit = min(available_credit + amount, credit_limit)
    4. A REFUND transaction with amount = +amount is appended atomically
    5. Idempotency: same idempotency_key returns the original transaction
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

    async def execute(self, command: ReleaseCreditCommandDTO) -> Result[CreditMutationResponseDTO]:
        if command.amount <= 0:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_ARGUMENT,
                    message="Release amount must be positive",
                    reason=f"amount={command.amount}",
                )
            )

        denied = await check_privilege(
            self.access_guard, command.acting_user_id, command.company_id, Capability.RELEASE_CREDIT
        )
        if denied:
            return Return.err(denied)

        try:
            if command.idempotency_key:
                existing = await self.transaction_repo.get_by_idempotency_key(command.idempotency_key)
                if existing:
                    return self._replay(existing, command.company_id)

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
            available_after = min(available_before + command.amount, company.credit_limit)

            if available_after < available_before + command.amount:
                logger.info(
                    f"Released credit clamped to limit: company_id={company.id}, "
                    f"requested={command.amount}, credit_limit={company.credit_limit}"
                )

            transaction = CreditTransaction(
                company_id=company.id,
                transaction_type=TransactionType.REFUND,
                amount=command.amount,
                available_before=available_before,
                available_after=available_after,
                credit_limit_after=company.credit_limit,
                reference_type=command.reference_type,
                reference_id=command.reference_id,
                description=command.description
                or f"Credit released for {command.reference_type} #{command.reference_id}",
                created_by=command.acting_user_id,
                idempotency_key=command.idempotency_key,
            )
            created_transaction = await self.transaction_repo.create(transaction)

            await self.company_repo.update_credit(company.id, company.credit_limit, available_after)

            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            if command.idempotency_key:
                existing = await self.transaction_repo.get_by_idempotency_key(command.idempotency_key)
                if existing:
                    return self._replay(existing, command.company_id)
            logger.error(
                f"Error releasing credit: company_id={command.company_id}, amount={command.amount}, "
                f"reference={command.reference_type}:{command.reference_id}, error={e}"
            )
            return Return.err(
                Error(
                    code="RELEASE_CREDIT_FAILED",
                    message="Failed to release credit",
                    reason=str(e),
                )
            )

        logger.info(
            f"Credit released: company_id={command.company_id}, amount={command.amount}, "
            f"reference={command.reference_type}:{command.reference_id}, "
            f"available_credit={available_after}, actor={command.acting_user_id}"
        )
        await record_safely(
            self.audit_log,
            AuditEvent(
                event_type="credit.released",
                entity_type="company",
                entity_id=command.company_id,
                actor=command.acting_user_id,
                data={
                    "amount": command.amount,
                    "reference_type": command.reference_type,
                    "reference_id": command.reference_id,
                    "available_credit": available_after,
                    "transaction_id": created_transaction.id,
                },
            ),
        )

        return Return.ok(to_mutation_response(created_transaction))

    def _replay(self, existing: CreditTransaction, company_id: str) -> Result[CreditMutationResponseDTO]:
        if existing.company_id != company_id or existing.transaction_type != TransactionType.REFUND:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_ARGUMENT,
                    message="Idempotency key already used for a different operation",
                    reason=f"idempotency_key={existing.idempotency_key}",
                )
            )
        return Return.ok(to_mutation_response(existing))
