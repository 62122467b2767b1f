"""ReserveCredit Use Case

Deducts credit from a company's available balance for a pending order or
invoice, with idempotency guarantees and pessimistic locking.
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
from .dtos import CreditMutationResponseDTO, ReserveCreditCommandDTO, to_mutation_response

logger = logging.getLogger(__name__)


class ReserveCredit:
    """
    Use Case: Reserve credit for a purchase order or invoice

    Business Rules:
    1. amount must be > 0
    2. Caller must hold RESERVE_CREDIT on the company
    3. Idempotency: same idempotency_key returns the original transaction
    4. Sufficient credit: available_credit >= amount
    5. Atomic: balance update and PAYMENT transaction (amount = -reserved)
       are committed together under SELECT FOR UPDATE

    Flow:
    1. Validate amount and privilege
    2. Check idempotency (replay existing if found)
    3. Get company with lock
    4. Validate sufficient available credit
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
    ):
        self.uow = uow
        self.company_repo = company_repo
        self.transaction_repo = transaction_repo
        self.access_guard = access_guard
        self.audit_log = audit_log

    async def execute(self, command: ReserveCreditCommandDTO) -> Result[CreditMutationResponseDTO]:
        """
        Execute credit reservation

        Args:
            command: ReserveCreditCommandDTO

        Returns:
            Result[CreditMutationResponseDTO]: New available credit and transaction id, or error

        Errors:
            INVALID_ARGUMENT: amount <= 0
            UNAUTHORIZED: caller lacks RESERVE_CREDIT
            COMPANY_NOT_FOUND: no such company
            INSUFFICIENT_CREDIT: available credit below requested amount
        """
        if command.amount <= 0:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_ARGUMENT,
                    message="Reserve amount must be positive",
                    reason=f"amount={command.amount}",
                )
            )

        denied = await check_privilege(
            self.access_guard, command.acting_user_id, command.company_id, Capability.RESERVE_CREDIT
        )
        if denied:
            return Return.err(denied)

        try:
            # Step 1: Idempotent replay
            if command.idempotency_key:
                existing = await self.transaction_repo.get_by_idempotency_key(command.idempotency_key)
                if existing:
                    return self._replay(existing, command.company_id)

            # Step 2: Lock the company row
            company = await self.company_repo.get_by_id(command.company_id, for_update=True)

            if not company:
                await self.uow.rollback()
                return Return.err(
                    Error(
                        code=ErrorCode.COMPANY_NOT_FOUND,
                        message=f"Company with ID {command.company_id} not found",
                    )
                )

            # Step 3: Validate sufficient credit
            if company.available_credit < command.amount:
                # Built before rollback, which expires the company row
                error = Error(
                    code=ErrorCode.INSUFFICIENT_CREDIT,
                    message=(
                        f"Insufficient available credit. Requested: {command.amount}, "
                        f"Available: {company.available_credit}"
                    ),
                    reason=f"requested={command.amount}, available={company.available_credit}",
                )
                await self.uow.rollback()
                return Return.err(error)

            available_before = company.available_credit
            available_after = available_before - command.amount

            # Step 4: Append transaction and update balance
            transaction = CreditTransaction(
                company_id=company.id,
                transaction_type=TransactionType.PAYMENT,
                amount=-command.amount,
                available_before=available_before,
                available_after=available_after,
                credit_limit_after=company.credit_limit,
                reference_type=command.reference_type,
                reference_id=command.reference_id,
                description=command.description
                or f"Credit reserved for {command.reference_type} #{command.reference_id}",
                created_by=command.acting_user_id,
                idempotency_key=command.idempotency_key,
            )
            created_transaction = await self.transaction_repo.create(transaction)

            await self.company_repo.update_credit(company.id, company.credit_limit, available_after)

            # Step 5: Commit
            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            # A concurrent request with the same key may have won the unique constraint
            if command.idempotency_key:
                existing = await self.transaction_repo.get_by_idempotency_key(command.idempotency_key)
                if existing:
                    return self._replay(existing, command.company_id)
            logger.error(
                f"Error reserving credit: company_id={command.company_id}, amount={command.amount}, "
                f"reference={command.reference_type}:{command.reference_id}, error={e}"
            )
            return Return.err(
                Error(
                    code="RESERVE_CREDIT_FAILED",
                    message="Failed to reserve credit",
                    reason=str(e),
                )
            )

        logger.info(
            f"Credit reserved: company_id={command.company_id}, amount={command.amount}, "
            f"reference={command.reference_type}:{command.reference_id}, "
            f"available_credit={available_after}, actor={command.acting_user_id}"
        )
        await record_safely(
            self.audit_log,
            AuditEvent(
                event_type="credit.reserved",
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
        if existing.company_id != company_id or existing.transaction_type != TransactionType.PAYMENT:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_ARGUMENT,
                    message="Idempotency key already used for a different operation",
                    reason=f"idempotency_key={existing.idempotency_key}",
                )
            )
        return Return.ok(to_mutation_response(existing))
