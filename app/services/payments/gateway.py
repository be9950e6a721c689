"""
Payment gateway client: create charges (gateway orders) and verify checkout signatures.

RazorpayGateway uses the Orders REST API over an httpx sync client; every call goes
through the payment_gateway circuit breaker. Failures surface as GatewayError and are
not retried here: the client decides whether to call create-order again.
"""
import hashlib
import hmac
import logging
import time
from abc import ABC, abstractmethod
from typing import Any

import httpx
import pybreaker
from pydantic import BaseModel, Field

from app.core.config import settings
from app.core.errors import GatewayError
from app.services.circuit_breaker import payment_gateway_breaker
from app.utils.currency import to_minor_units
from app.utils.metrics import gateway_request_duration_seconds, gateway_requests_total

logger = logging.getLogger(__name__)


class ChargeHandle(BaseModel):
    """Order created at the gateway; passed to the checkout widget as-is."""

    id: str
    amount: int = Field(..., description="Amount in minor units (paise for INR)")
    currency: str
    receipt: str
    status: str = "created"

    model_config = {"frozen": True}


class PaymentGateway(ABC):
    @abstractmethod
    def create_charge(self, amount: int, currency: str, receipt: str) -> ChargeHandle:
        """Create a charge for `amount` whole currency units. Raises GatewayError."""

    @abstractmethod
    def verify_payment_signature(self, gateway_order_id: str, payment_id: str, signature: str) -> bool:
        """Check the signature returned by checkout for (order, payment)."""


class RazorpayGateway(PaymentGateway):
    def __init__(
        self,
        key_id: str | None = None,
        key_secret: str | None = None,
        api_base: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
        breaker: pybreaker.CircuitBreaker | None = None,
    ) -> None:
        self.key_id = key_id if key_id is not None else settings.razorpay_key_id
        self.key_secret = key_secret if key_secret is not None else settings.razorpay_key_secret
        self.api_base = (api_base or settings.razorpay_api_base).rstrip("/")
        self.timeout = timeout or settings.gateway_timeout
        self.breaker = breaker or payment_gateway_breaker
        self._client = client

    @property
    def client(self) -> httpx.Client:
        """Lazy initialization of httpx client."""
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout)
        return self._client

    def _record_request(self, method: str, status: str, duration: float) -> None:
        gateway_requests_total.labels(method=method, status=status).inc()
        gateway_request_duration_seconds.labels(method=method).observe(duration)

    def _post(self, path: str, body: dict[str, Any]) -> httpx.Response:
        resp = self.client.post(
            f"{self.api_base}{path}",
            json=body,
            auth=(self.key_id, self.key_secret),
        )
        # only server-side failures count against the breaker
        if resp.status_code >= 500:
            resp.raise_for_status()
        return resp

    def create_charge(self, amount: int, currency: str, receipt: str) -> ChargeHandle:
        if not self.key_id or not self.key_secret:
            raise GatewayError("Payment gateway is not configured")

        body = {
            "amount": to_minor_units(amount, currency),
            "currency": currency,
            "receipt": receipt,
            "payment_capture": 1,
        }
        start = time.time()
        try:
            resp = self.breaker.call(self._post, "/orders", body)
        except pybreaker.CircuitBreakerError:
            self._record_request("orders.create", "circuit_open", time.time() - start)
            logger.warning("gateway_circuit_open", extra={"breaker_name": self.breaker.name})
            raise GatewayError("Payment gateway temporarily unavailable")
        except httpx.HTTPError as e:
            self._record_request("orders.create", "error", time.time() - start)
            logger.error("gateway_request_failed", extra={"error": str(e)})
            raise GatewayError("Razorpay error", details={"detail": str(e)})

        if resp.status_code >= 400:
            self._record_request("orders.create", str(resp.status_code), time.time() - start)
            description = _error_description(resp)
            logger.warning(
                "gateway_charge_rejected",
                extra={"status_code": resp.status_code, "error": description},
            )
            raise GatewayError("Razorpay error", details={"detail": description})

        self._record_request("orders.create", "success", time.time() - start)
        data = resp.json()
        return ChargeHandle(
            id=data["id"],
            amount=int(data.get("amount", body["amount"])),
            currency=data.get("currency", currency),
            receipt=data.get("receipt", receipt),
            status=data.get("status", "created"),
        )

    def verify_payment_signature(self, gateway_order_id: str, payment_id: str, signature: str) -> bool:
        if not self.key_secret or not gateway_order_id or not payment_id or not signature:
            return False
        expected = hmac.new(
            self.key_secret.encode("utf-8"),
            f"{gateway_order_id}|{payment_id}".encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()
        return hmac.compare_digest(expected, signature)


def _error_description(resp: httpx.Response) -> str:
    try:
        return resp.json().get("error", {}).get("description") or resp.text
    except ValueError:
        return resp.text


_default_gateway: RazorpayGateway | None = None


def get_payment_gateway() -> PaymentGateway:
    """FastAPI dependency: process-wide Razorpay client (keeps one connection pool)."""
    global _default_gateway
    if _default_gateway is None:
        _default_gateway = RazorpayGateway()
    return _default_gateway
