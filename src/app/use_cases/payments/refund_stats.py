"""GetRefundStats Use Case"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from libs.result import Result, Return
from src.app.repositories.refund_repository import RefundRepository
from src.domain.refund import RefundStatus
from .dtos import RefundStatsDTO

CENT = Decimal("0.01")


class GetRefundStats:
    """
    Refund totals across all customers, or one customer when user_id is given

    pending_amount covers pending and processing refunds. The average is taken
    over completed refunds only.
    """

    def __init__(self, refund_repo: RefundRepository):
        self.refund_repo = refund_repo

    async def execute(self, user_id: Optional[str] = None) -> Result[RefundStatsDTO]:
        totals = await self.refund_repo.totals_by_status(user_id)
        zero = (0, Decimal("0"))

        completed_count, total_refunded = totals.get(RefundStatus.COMPLETED, zero)
        failed_count, _ = totals.get(RefundStatus.FAILED, zero)
        pending_amount = sum(
            (totals.get(s, zero)[1] for s in (RefundStatus.PENDING, RefundStatus.PROCESSING)),
            Decimal("0"),
        )
        average = (
            (total_refunded / completed_count).quantize(CENT, rounding=ROUND_HALF_UP)
            if completed_count
            else Decimal("0")
        )

        return Return.ok(
            RefundStatsDTO(
                user_id=user_id,
                total_refunded=total_refunded,
                pending_amount=pending_amount,
                refund_count=sum(count for count, _ in totals.values()),
                completed_count=completed_count,
                failed_count=failed_count,
                average_refund_amount=average,
            )
        )
