"""Unit tests for Payment domain entity

Tests cover:
- Central status transition table
- Refund eligibility and refundable amount
- apply_refund bookkeeping (monotonic, refunded exactly at full amount)
"""

import pytest
from decimal import Decimal

from src.domain.payment import (
    PAYMENT_STATUS_TRANSITIONS,
    TERMINAL_PAYMENT_STATUSES,
    InvalidStatusTransition,
    PaymentStatus,
    can_transition,
)


class TestPaymentStatusTransitions:
    """Test the explicit transition table"""

    @pytest.mark.parametrize(
        "current,target",
        [
            (PaymentStatus.PENDING, PaymentStatus.PROCESSING),
            (PaymentStatus.PENDING, PaymentStatus.COMPLETED),
            (PaymentStatus.PENDING, PaymentStatus.FAILED),
            (PaymentStatus.PENDING, PaymentStatus.CANCELLED),
            (PaymentStatus.PROCESSING, PaymentStatus.COMPLETED),
            (PaymentStatus.PROCESSING, PaymentStatus.FAILED),
            (PaymentStatus.PROCESSING, PaymentStatus.CANCELLED),
            (PaymentStatus.COMPLETED, PaymentStatus.REFUNDED),
        ],
    )
    def test_allowed_transitions(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (PaymentStatus.COMPLETED, PaymentStatus.PENDING),
            (PaymentStatus.COMPLETED, PaymentStatus.FAILED),
            (PaymentStatus.FAILED, PaymentStatus.COMPLETED),
            (PaymentStatus.REFUNDED, PaymentStatus.COMPLETED),
            (PaymentStatus.CANCELLED, PaymentStatus.PROCESSING),
            (PaymentStatus.PENDING, PaymentStatus.REFUNDED),
        ],
    )
    def test_rejected_transitions(self, current, target):
        assert not can_transition(current, target)

    def test_terminal_statuses_have_no_exits(self):
        for status in TERMINAL_PAYMENT_STATUSES:
            assert not PAYMENT_STATUS_TRANSITIONS.get(status)

    def test_transition_to_raises_on_illegal_pair(self, make_payment):
        """
        Given: A failed payment
        When: transition_to(completed) is called
        Then: InvalidStatusTransition is raised and status is unchanged
        """
        payment = make_payment(status=PaymentStatus.FAILED)

        with pytest.raises(InvalidStatusTransition) as exc_info:
            payment.transition_to(PaymentStatus.COMPLETED)

        assert exc_info.value.current == PaymentStatus.FAILED
        assert exc_info.value.target == PaymentStatus.COMPLETED
        assert payment.status == PaymentStatus.FAILED


class TestPaymentRefundEligibility:

    def test_completed_payment_can_be_refunded(self, make_payment):
        payment = make_payment()

        assert payment.can_be_refunded()
        assert payment.get_refundable_amount() == Decimal("100.00")

    @pytest.mark.parametrize(
        "status",
        [PaymentStatus.PENDING, PaymentStatus.PROCESSING, PaymentStatus.FAILED, PaymentStatus.CANCELLED],
    )
    def test_non_completed_payment_cannot_be_refunded(self, make_payment, status):
        assert not make_payment(status=status).can_be_refunded()

    def test_fully_refunded_payment_cannot_be_refunded(self, make_payment):
        payment = make_payment(refunded_amount="100.00", status=PaymentStatus.REFUNDED)

        assert not payment.can_be_refunded()
        assert payment.get_refundable_amount() == Decimal("0")

    def test_non_refundable_method_is_case_insensitive(self, make_payment):
        payment = make_payment(payment_method_id="cod")

        assert payment.is_method_non_refundable(["COD"])
        assert not payment.can_be_refunded(["COD"])
        assert payment.can_be_refunded()


class TestPaymentApplyRefund:

    def test_partial_refund_keeps_completed(self, make_payment):
        """
        Given: Payment amount=100.00, refunded_amount=0, completed
        When: apply_refund(40) is called
        Then: refunded_amount=40, status remains completed
        """
        payment = make_payment()

        payment.apply_refund(Decimal("40.00"))

        assert payment.refunded_amount == Decimal("40.00")
        assert payment.status == PaymentStatus.COMPLETED
        assert payment.get_refundable_amount() == Decimal("60.00")

    def test_full_refund_moves_to_refunded(self, make_payment):
        payment = make_payment(refunded_amount="40.00")

        payment.apply_refund(Decimal("60.00"))

        assert payment.refunded_amount == Decimal("100.00")
        assert payment.status == PaymentStatus.REFUNDED

    def test_refund_exceeding_refundable_is_rejected(self, make_payment):
        payment = make_payment(refunded_amount="40.00")

        with pytest.raises(ValueError, match="exceeds refundable"):
            payment.apply_refund(Decimal("61.00"))

        assert payment.refunded_amount == Decimal("40.00")

    @pytest.mark.parametrize("amount", ["0", "-5.00"])
    def test_non_positive_refund_is_rejected(self, make_payment, amount):
        payment = make_payment()

        with pytest.raises(ValueError):
            payment.apply_refund(Decimal(amount))

        assert payment.refunded_amount == Decimal("0")

    def test_refund_on_non_completed_payment_is_rejected(self, make_payment):
        payment = make_payment(status=PaymentStatus.PENDING)

        with pytest.raises(ValueError):
            payment.apply_refund(Decimal("10.00"))

    def test_merge_metadata_keeps_existing_keys(self, make_payment):
        payment = make_payment()
        payment.merge_metadata({"a": 1})

        payment.merge_metadata({"b": 2})

        assert payment.payment_metadata == {"a": 1, "b": 2}
