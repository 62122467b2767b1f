"""GetPayment Use Case"""

from libs.result import Result, Return, Error
from src.app.repositories.payment_repository import PaymentRepository
from src.app.repositories.refund_repository import RefundRepository
from src.app.use_cases.error_codes import ErrorCode
from .dtos import PaymentResponseDTO, to_payment_response


class GetPayment:
    """Load a payment together with its refunds"""

    def __init__(self, payment_repo: PaymentRepository, refund_repo: RefundRepository):
        self.payment_repo = payment_repo
        self.refund_repo = refund_repo

    async def execute(self, payment_id: str) -> Result[PaymentResponseDTO]:
        payment = await self.payment_repo.get_by_id(payment_id)
        if not payment:
            return Return.err(
                Error(
                    code=ErrorCode.PAYMENT_NOT_FOUND,
                    message=f"Payment {payment_id} not found",
                )
            )

        refunds = await self.refund_repo.list_by_payment(payment_id)
        return Return.ok(to_payment_response(payment, refunds))
