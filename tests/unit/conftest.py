import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.domain.company import Company
from src.domain.payment import Payment, PaymentStatus


@pytest.fixture
def mock_uow():
    """Mock unit of work"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock()
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def mock_access_guard():
    """Access guard that allows everything"""
    guard = MagicMock()
    guard.has_privilege = AsyncMock(return_value=True)
    return guard


@pytest.fixture
def denying_access_guard():
    guard = MagicMock()
    guard.has_privilege = AsyncMock(return_value=False)
    return guard


@pytest.fixture
def mock_audit_log():
    audit_log = MagicMock()
    audit_log.record = AsyncMock(return_value=True)
    return audit_log


@pytest.fixture
def make_company():
    def _make(credit_limit="1000.00", available_credit=None, company_id="company_123"):
        limit = Decimal(credit_limit)
        return Company(
            id=company_id,
            name="Acme Industrial",
            credit_limit=limit,
            available_credit=Decimal(available_credit) if available_credit is not None else limit,
            created_at=datetime.utcnow(),
            updated_at=datetime.utcnow(),
        )

    return _make


@pytest.fixture
def make_payment():
    def _make(
        amount="100.00",
        refunded_amount="0",
        status=PaymentStatus.COMPLETED,
        payment_method_id="pm_card_visa",
        provider_payment_id="pi_123",
        payment_id="payment_123",
    ):
        return Payment(
            id=payment_id,
            order_id="order_789",
            user_id="user_123",
            amount=Decimal(amount),
            currency="USD",
            status=status,
            refunded_amount=Decimal(refunded_amount),
            provider="fake",
            provider_payment_id=provider_payment_id,
            payment_method_id=payment_method_id,
            idempotency_key=f"payment:{payment_id}",
            payment_metadata={},
        )

    return _make
