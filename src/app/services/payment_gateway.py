"""Payment Gateway Interface

Contract for the external provider (Stripe/Razorpay/PayPal-equivalent).
Every call carries an idempotency key so that a retry after a crash can
ask the provider what already happened instead of charging or refunding twice.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional


class GatewayError(Exception):
    """Provider rejected the call or could not be reached"""


@dataclass(frozen=True)
class ChargeResult:
    """Result of a capture attempt"""

    success: bool
    provider_payment_id: Optional[str] = None
    status: Optional[str] = None
    message: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RefundResult:
    """Result of a refund attempt"""

    success: bool
    transaction_id: Optional[str] = None
    message: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)


class PaymentGateway(ABC):

    @abstractmethod
    async def capture(
        self,
        amount: Decimal,
        currency: str,
        payment_method_id: str,
        idempotency_key: str,
        description: Optional[str] = None,
    ) -> ChargeResult:
        """
        Capture funds

        Raises:
            GatewayError: provider unreachable or returned a transport-level error
        """
        pass

    @abstractmethod
    async def refund(
        self,
        provider_payment_id: str,
        amount: Decimal,
        reason: Optional[str],
        idempotency_key: str,
    ) -> RefundResult:
        """
        Refund (part of) a captured payment

        Raises:
            GatewayError: provider unreachable or returned a transport-level error
        """
        pass

    @abstractmethod
    async def find_charge(self, idempotency_key: str) -> Optional[ChargeResult]:
        """Look up a previous capture by idempotency key, None if the provider never saw it"""
        pass

    @abstractmethod
    async def find_refund(self, idempotency_key: str) -> Optional[RefundResult]:
        """Look up a previous refund by idempotency key, None if the provider never saw it"""
        pass
