"""Razorpay REST client and signature verification helpers."""

from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Any, Protocol

import httpx
from fastapi import FastAPI

from academy_api.settings import Settings

logger = logging.getLogger(__name__)


class PaymentGatewayError(RuntimeError):
    """Raised when Razorpay rejects a request or cannot be reached."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PaymentGateway(Protocol):
    key_id: str | None

    def create_order(
        self,
        *,
        amount: int,
        currency: str,
        receipt: str,
        notes: dict[str, str] | None = None,
    ) -> dict[str, Any]: ...

    def fetch_payment(self, payment_id: str) -> dict[str, Any]: ...

    def refund(self, payment_id: str, *, amount: int | None = None) -> dict[str, Any]: ...

    def verify_payment_signature(self, order_id: str, payment_id: str, signature: str) -> bool: ...

    def verify_webhook_signature(self, body: bytes, signature: str) -> bool: ...


def _hmac_sha256(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_payment_signature(
    *,
    order_id: str,
    payment_id: str,
    signature: str,
    key_secret: str,
) -> bool:
    """Checkout signature is HMAC-SHA256 of ``order_id|payment_id``."""

    expected = _hmac_sha256(key_secret, f"{order_id}|{payment_id}".encode())
    return hmac.compare_digest(expected, signature or "")


def verify_webhook_signature(*, body: bytes, signature: str, webhook_secret: str) -> bool:
    """Webhook signature is HMAC-SHA256 of the raw request body."""

    expected = _hmac_sha256(webhook_secret, body)
    return hmac.compare_digest(expected, signature or "")


class RazorpayClient:
    """Thin synchronous wrapper over the Razorpay orders/payments API."""

    def __init__(
        self,
        *,
        key_id: str | None,
        key_secret: str | None,
        webhook_secret: str | None,
        base_url: str,
        timeout: float,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.key_id = key_id
        self._key_secret = key_secret
        self._webhook_secret = webhook_secret
        auth = (key_id, key_secret) if key_id and key_secret else None
        self._client = httpx.Client(
            base_url=base_url,
            auth=auth,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> RazorpayClient:
        return cls(
            key_id=settings.razorpay_key_id,
            key_secret=(
                settings.razorpay_key_secret.get_secret_value()
                if settings.razorpay_key_secret
                else None
            ),
            webhook_secret=(
                settings.razorpay_webhook_secret.get_secret_value()
                if settings.razorpay_webhook_secret
                else None
            ),
            base_url=settings.razorpay_base_url,
            timeout=settings.razorpay_timeout_seconds,
        )

    @property
    def configured(self) -> bool:
        return bool(self.key_id and self._key_secret)

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        if not self.configured:
            raise PaymentGatewayError("Payment gateway is not configured")
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("razorpay.request.failed", extra={"path": path, "error": str(exc)})
            raise PaymentGatewayError("Payment gateway request failed") from exc

        if response.status_code >= 400:
            description = None
            try:
                description = response.json().get("error", {}).get("description")
            except ValueError:
                description = None
            logger.warning(
                "razorpay.request.rejected",
                extra={"path": path, "status_code": response.status_code, "error": description},
            )
            raise PaymentGatewayError(
                description or "Payment gateway rejected the request",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise PaymentGatewayError("Payment gateway returned invalid JSON") from exc

    def create_order(
        self,
        *,
        amount: int,
        currency: str,
        receipt: str,
        notes: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """``amount`` is in the smallest currency unit (paise)."""

        if amount < 100:
            raise PaymentGatewayError("Order amount must be at least 100 paise")
        payload: dict[str, Any] = {"amount": amount, "currency": currency, "receipt": receipt}
        if notes:
            payload["notes"] = notes
        return self._request("POST", "/orders", json=payload)

    def fetch_payment(self, payment_id: str) -> dict[str, Any]:
        return self._request("GET", f"/payments/{payment_id}")

    def refund(self, payment_id: str, *, amount: int | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if amount is not None:
            payload["amount"] = amount
        return self._request("POST", f"/payments/{payment_id}/refund", json=payload)

    def verify_payment_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        if not self._key_secret:
            return False
        return verify_payment_signature(
            order_id=order_id,
            payment_id=payment_id,
            signature=signature,
            key_secret=self._key_secret,
        )

    def verify_webhook_signature(self, body: bytes, signature: str) -> bool:
        if not self._webhook_secret:
            logger.error("razorpay.webhook.secret_missing")
            return False
        return verify_webhook_signature(
            body=body,
            signature=signature,
            webhook_secret=self._webhook_secret,
        )


def get_gateway_from_app(app: FastAPI, settings: Settings) -> PaymentGateway:
    """Build the gateway on first use and keep it on ``app.state``."""

    gateway = getattr(app.state, "payment_gateway", None)
    if gateway is None:
        gateway = RazorpayClient.from_settings(settings)
        app.state.payment_gateway = gateway
    return gateway


__all__ = [
    "PaymentGateway",
    "PaymentGatewayError",
    "RazorpayClient",
    "get_gateway_from_app",
    "verify_payment_signature",
    "verify_webhook_signature",
]
