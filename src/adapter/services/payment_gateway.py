"""Payment Gateway Implementations

- FakePaymentGateway: in-process, configurable outcome, remembers every
  idempotency key it has seen. Used for development and tests.
- HttpPaymentGateway: JSON-over-HTTP provider client (httpx) sending the
  idempotency key as the Idempotency-Key header.
"""

import asyncio
import logging
import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional
import httpx
from src.app.services.payment_gateway import ChargeResult, GatewayError, PaymentGateway, RefundResult

logger = logging.getLogger(__name__)


class FakePaymentGateway(PaymentGateway):
    """
    Configurable fake gateway

    Repeated idempotency keys return the first result, like a real provider.
    """

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.raise_error: Optional[Exception] = None
        self.delay_seconds: float = 0.0
        self.calls: List[Dict[str, Any]] = []
        self.charges: Dict[str, ChargeResult] = {}
        self.refunds: Dict[str, RefundResult] = {}

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Card declined",
        raise_error: Optional[Exception] = None,
        delay_seconds: float = 0.0,
    ) -> None:
        """Configure gateway behavior at runtime"""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.raise_error = raise_error
        self.delay_seconds = delay_seconds

    async def _simulate(self) -> None:
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.raise_error is not None:
            raise self.raise_error

    async def capture(
        self,
        amount: Decimal,
        currency: str,
        payment_method_id: str,
        idempotency_key: str,
        description: Optional[str] = None,
    ) -> ChargeResult:
        self.calls.append({
            "method": "capture",
            "amount": amount,
            "currency": currency,
            "payment_method_id": payment_method_id,
            "idempotency_key": idempotency_key,
        })
        if idempotency_key in self.charges:
            return self.charges[idempotency_key]

        await self._simulate()

        if self.should_succeed:
            result = ChargeResult(
                success=True,
                provider_payment_id=f"fake_pay_{uuid.uuid4().hex[:12]}",
                status="succeeded",
                message="Charge successful",
            )
        else:
            result = ChargeResult(success=False, status="failed", message=self.failure_reason)
        self.charges[idempotency_key] = result
        return result

    async def refund(
        self,
        provider_payment_id: str,
        amount: Decimal,
        reason: Optional[str],
        idempotency_key: str,
    ) -> RefundResult:
        self.calls.append({
            "method": "refund",
            "provider_payment_id": provider_payment_id,
            "amount": amount,
            "reason": reason,
            "idempotency_key": idempotency_key,
        })
        if idempotency_key in self.refunds:
            return self.refunds[idempotency_key]

        await self._simulate()

        if self.should_succeed:
            result = RefundResult(
                success=True,
                transaction_id=f"fake_ref_{uuid.uuid4().hex[:12]}",
                message="Refund successful",
            )
        else:
            result = RefundResult(success=False, message=self.failure_reason)
        self.refunds[idempotency_key] = result
        return result

    async def find_charge(self, idempotency_key: str) -> Optional[ChargeResult]:
        return self.charges.get(idempotency_key)

    async def find_refund(self, idempotency_key: str) -> Optional[RefundResult]:
        return self.refunds.get(idempotency_key)


class HttpPaymentGateway(PaymentGateway):
    """
    Provider client over HTTP

    Endpoints (relative to base_url):
        POST /charges                     capture
        POST /refunds                     refund
        GET  /charges?idempotency_key=... lookup, 404 when unknown
        GET  /refunds?idempotency_key=... lookup, 404 when unknown

    Declines come back as 402/4xx with a JSON body and are returned as
    unsuccessful results; transport errors and 5xx raise GatewayError.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=self.transport,
        )

    async def _request(self, method: str, path: str, **kwargs) -> Optional[httpx.Response]:
        try:
            async with self._client() as client:
                response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Gateway {method} {path} failed: {e}")
            raise GatewayError(f"Gateway unreachable: {e}") from e

        if response.status_code >= 500:
            logger.error(f"Gateway {method} {path} returned {response.status_code}")
            raise GatewayError(f"Gateway error {response.status_code}")
        return response

    @staticmethod
    def _body(response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    def _charge_result(self, response: httpx.Response) -> ChargeResult:
        body = self._body(response)
        success = response.is_success and body.get("status") in ("succeeded", "completed")
        return ChargeResult(
            success=success,
            provider_payment_id=body.get("id") if success else None,
            status=body.get("status"),
            message=body.get("message") or body.get("error"),
            raw=body,
        )

    def _refund_result(self, response: httpx.Response) -> RefundResult:
        body = self._body(response)
        success = response.is_success and body.get("status") in ("succeeded", "completed")
        return RefundResult(
            success=success,
            transaction_id=body.get("id") if success else None,
            message=body.get("message") or body.get("error"),
            raw=body,
        )

    async def capture(
        self,
        amount: Decimal,
        currency: str,
        payment_method_id: str,
        idempotency_key: str,
        description: Optional[str] = None,
    ) -> ChargeResult:
        response = await self._request(
            "POST",
            "/charges",
            json={
                "amount": str(amount),
                "currency": currency,
                "payment_method_id": payment_method_id,
                "description": description,
            },
            headers={"Idempotency-Key": idempotency_key},
        )
        return self._charge_result(response)

    async def refund(
        self,
        provider_payment_id: str,
        amount: Decimal,
        reason: Optional[str],
        idempotency_key: str,
    ) -> RefundResult:
        response = await self._request(
            "POST",
            "/refunds",
            json={
                "payment_id": provider_payment_id,
                "amount": str(amount),
                "reason": reason,
            },
            headers={"Idempotency-Key": idempotency_key},
        )
        return self._refund_result(response)

    async def find_charge(self, idempotency_key: str) -> Optional[ChargeResult]:
        response = await self._request("GET", "/charges", params={"idempotency_key": idempotency_key})
        if response.status_code == 404:
            return None
        return self._charge_result(response)

    async def find_refund(self, idempotency_key: str) -> Optional[RefundResult]:
        response = await self._request("GET", "/refunds", params={"idempotency_key": idempotency_key})
        if response.status_code == 404:
            return None
        return self._refund_result(response)


def create_payment_gateway(
    backend: str = "fake",
    base_url: Optional[str] = None,
    api_key: Optional[str] = None,
    timeout: float = 10.0,
) -> PaymentGateway:
    """
    Factory function to create the configured gateway

    Raises:
        ValueError: unknown backend, or http backend without base_url
    """
    if backend == "fake":
        return FakePaymentGateway()
    if backend == "http":
        if not base_url:
            raise ValueError("PAYMENT_GATEWAY_URL is required for the http gateway backend")
        return HttpPaymentGateway(base_url, api_key=api_key, timeout=timeout)
    raise ValueError(f"Unknown payment gateway backend '{backend}'")
