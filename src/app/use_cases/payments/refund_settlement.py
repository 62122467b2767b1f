"""Refund settlement

Applies a gateway outcome to a pending refund. Shared by CreateRefund (live
calls and idempotent retries) and ReconcilePendingRefunds (crash recovery).
"""

import logging
from typing import Any, Dict, Optional
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.payment_repository import PaymentRepository
from src.app.repositories.refund_repository import RefundRepository
from src.domain.payment import Payment
from src.domain.refund import Refund

logger = logging.getLogger(__name__)


class RefundBookkeepingError(Exception):
    """Gateway refunded money but the payment could not absorb the amount"""


async def settle_refund_success(
    uow: UnitOfWork,
    payment_repo: PaymentRepository,
    refund_repo: RefundRepository,
    refund: Refund,
    transaction_id: Optional[str],
    gateway_response: Optional[Dict[str, Any]] = None,
) -> Payment:
    """
    Mark refund completed and add its amount to the payment, in one commit

    The payment row is re-read under lock so concurrent refunds of the same
    payment serialize here.

    Raises:
        RefundBookkeepingError: payment missing or the amount no longer fits
    """
    payment = await payment_repo.get_by_id(refund.payment_id, for_update=True)
    if payment is None:
        raise RefundBookkeepingError(f"Payment {refund.payment_id} for refund {refund.id} not found")

    try:
        payment.apply_refund(refund.amount)
    except ValueError as e:
        raise RefundBookkeepingError(str(e)) from e

    refund.mark_completed(transaction_id, gateway_response)
    await refund_repo.save(refund)
    await payment_repo.save(payment)
    await uow.commit()

    logger.info(
        f"Refund completed: refund_id={refund.id}, payment_id={payment.id}, amount={refund.amount}, "
        f"transaction_id={transaction_id}, refunded_amount={payment.refunded_amount}, "
        f"payment_status={payment.status.value}"
    )
    return payment


async def settle_refund_failure(
    uow: UnitOfWork,
    refund_repo: RefundRepository,
    refund: Refund,
    error: str,
) -> None:
    """Mark refund failed with the gateway error; the payment is not touched"""
    refund.mark_failed(error)
    await refund_repo.save(refund)
    await uow.commit()

    logger.error(
        f"Refund failed: refund_id={refund.id}, payment_id={refund.payment_id}, "
        f"amount={refund.amount}, error={error}"
    )
