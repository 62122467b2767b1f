"""
List Credit Transactions Use Case

Retrieves a company's credit transaction history with filters and pagination.
"""
from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.credit_transaction_repository import CreditTransactionRepository
from src.app.services.access_guard import AccessGuard, Capability
from src.app.use_cases.authorization import check_privilege
from src.app.use_cases.error_codes import ErrorCode
from src.domain.credit_transaction import TransactionType
from .dtos import CreditTransactionDTO, CreditTransactionFiltersDTO, ListCreditTransactionsResponseDTO


class ListCreditTransactions:
    """
    Use case: View credit transactions

    Filters by date range, transaction types and reference id.
    Transactions are ordered by created_at DESC (most recent first).
    Pagination is 1-based (page, limit).
    """

    def __init__(
        self,
        transaction_repo: CreditTransactionRepository,
        access_guard: Optional[AccessGuard] = None,
    ):
        self.transaction_repo = transaction_repo
        self.access_guard = access_guard

    async def execute(
        self,
        company_id: str,
        filters: Optional[CreditTransactionFiltersDTO] = None,
        page: int = 1,
        limit: int = 20,
        acting_user_id: Optional[str] = None,
    ) -> Result[ListCreditTransactionsResponseDTO]:
        if page < 1 or limit < 1:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_ARGUMENT,
                    message="page and limit must be positive",
                    reason=f"page={page}, limit={limit}",
                )
            )

        filters = filters or CreditTransactionFiltersDTO()
        try:
            types = [TransactionType(t) for t in filters.types] if filters.types else None
        except ValueError as e:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_ARGUMENT,
                    message="Unknown credit transaction type",
                    reason=str(e),
                )
            )

        if self.access_guard is not None and acting_user_id is not None:
            denied = await check_privilege(
                self.access_guard, acting_user_id, company_id, Capability.VIEW_CREDIT
            )
            if denied:
                return Return.err(denied)

        transactions, total = await self.transaction_repo.list_by_company(
            company_id=company_id,
            start_date=filters.start_date,
            end_date=filters.end_date,
            types=types,
            reference_id=filters.reference_id,
            limit=limit,
            offset=(page - 1) * limit,
        )

        transaction_dtos = [
            CreditTransactionDTO(
                id=txn.id,
                transaction_type=txn.transaction_type.value if hasattr(txn.transaction_type, "value") else txn.transaction_type,
                amount=txn.amount,
                available_after=txn.available_after,
                reference_type=txn.reference_type,
                reference_id=txn.reference_id,
                description=txn.description,
                created_by=txn.created_by,
                created_at=txn.created_at,
            )
            for txn in transactions
        ]

        return Return.ok(
            ListCreditTransactionsResponseDTO(
                transactions=transaction_dtos,
                total=total,
                page=page,
                limit=limit,
            )
        )
