"""
Payment listing use cases

Order and customer views over payments, each payment with its refunds.
"""
from typing import List, Optional
from libs.result import Result, Return, Error
from src.app.repositories.payment_repository import PaymentRepository
from src.app.use_cases.error_codes import ErrorCode
from src.domain.payment import PaymentStatus
from .dtos import ListPaymentsResponseDTO, PaymentResponseDTO, to_payment_response


class ListOrderPayments:
    """Every payment attempt for an order, oldest first; empty when the order has none"""

    def __init__(self, payment_repo: PaymentRepository):
        self.payment_repo = payment_repo

    async def execute(self, order_id: str) -> Result[List[PaymentResponseDTO]]:
        payments = await self.payment_repo.list_by_order(order_id)
        return Return.ok([to_payment_response(p, p.refunds) for p in payments])


class ListUserPayments:
    """
    Use case: A customer's payment history

    Optional filters on status and payment method. Newest first,
    1-based pagination (page, limit) with the total matching count.
    """

    def __init__(self, payment_repo: PaymentRepository):
        self.payment_repo = payment_repo

    async def execute(
        self,
        user_id: str,
        status: Optional[str] = None,
        payment_method_id: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Result[ListPaymentsResponseDTO]:
        if page < 1 or limit < 1:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_ARGUMENT,
                    message="page and limit must be positive",
                    reason=f"page={page}, limit={limit}",
                )
            )

        try:
            status_filter = PaymentStatus(status) if status else None
        except ValueError as e:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_ARGUMENT,
                    message="Unknown payment status",
                    reason=str(e),
                )
            )

        payments, total = await self.payment_repo.list_by_user(
            user_id,
            status=status_filter,
            payment_method_id=payment_method_id,
            limit=limit,
            offset=(page - 1) * limit,
        )
        return Return.ok(
            ListPaymentsResponseDTO(
                payments=[to_payment_response(p, p.refunds) for p in payments],
                total=total,
                page=page,
                limit=limit,
            )
        )
