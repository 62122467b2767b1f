"""Refund query use cases"""

from decimal import Decimal
from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.payment_repository import PaymentRepository
from src.app.repositories.refund_repository import RefundRepository
from src.app.use_cases.error_codes import ErrorCode
from src.domain.refund import RefundStatus
from .dtos import (
    ListRefundsResponseDTO,
    ListUserRefundsResponseDTO,
    RefundResponseDTO,
    to_refund_response,
)


class GetRefund:

    def __init__(self, refund_repo: RefundRepository):
        self.refund_repo = refund_repo

    async def execute(self, refund_id: str) -> Result[RefundResponseDTO]:
        refund = await self.refund_repo.get_by_id(refund_id)
        if not refund:
            return Return.err(
                Error(
                    code=ErrorCode.REFUND_NOT_FOUND,
                    message=f"Refund {refund_id} not found",
                )
            )
        return Return.ok(to_refund_response(refund))


class ListPaymentRefunds:
    """All refunds of a payment, oldest first, with the completed total"""

    def __init__(self, payment_repo: PaymentRepository, refund_repo: RefundRepository):
        self.payment_repo = payment_repo
        self.refund_repo = refund_repo

    async def execute(self, payment_id: str) -> Result[ListRefundsResponseDTO]:
        payment = await self.payment_repo.get_by_id(payment_id)
        if not payment:
            return Return.err(
                Error(
                    code=ErrorCode.PAYMENT_NOT_FOUND,
                    message=f"Payment {payment_id} not found",
                )
            )

        refunds = await self.refund_repo.list_by_payment(payment_id)
        total_refunded = sum(
            (r.amount for r in refunds if r.status == RefundStatus.COMPLETED),
            Decimal("0"),
        )
        return Return.ok(
            ListRefundsResponseDTO(
                payment_id=payment_id,
                refunds=[to_refund_response(r) for r in refunds],
                total_refunded=total_refunded,
            )
        )


class ListUserRefunds:
    """Refunds against a customer's payments, newest first, optionally by status"""

    def __init__(self, refund_repo: RefundRepository):
        self.refund_repo = refund_repo

    async def execute(
        self,
        user_id: str,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Result[ListUserRefundsResponseDTO]:
        if page < 1 or limit < 1:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_ARGUMENT,
                    message="page and limit must be positive",
                    reason=f"page={page}, limit={limit}",
                )
            )
        try:
            status_filter = RefundStatus(status) if status else None
        except ValueError as e:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_ARGUMENT,
                    message="Unknown refund status",
                    reason=str(e),
                )
            )

        refunds, total = await self.refund_repo.list_by_user(
            user_id, status=status_filter, limit=limit, offset=(page - 1) * limit
        )
        return Return.ok(
            ListUserRefundsResponseDTO(
                user_id=user_id,
                refunds=[to_refund_response(r) for r in refunds],
                total=total,
                page=page,
                limit=limit,
            )
        )
