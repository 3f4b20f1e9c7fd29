from __future__ import annotations

import json

import httpx
import pytest

from academy_api.integrations.razorpay import (
    PaymentGatewayError,
    RazorpayClient,
    verify_payment_signature,
    verify_webhook_signature,
)
from tests.fakes import checkout_signature, sign

KEY_SECRET = "unit-key-secret"
WEBHOOK_SECRET = "unit-webhook-secret"


def build_client(handler, *, key_id: str | None = "rzp_unit") -> RazorpayClient:
    return RazorpayClient(
        key_id=key_id,
        key_secret=KEY_SECRET,
        webhook_secret=WEBHOOK_SECRET,
        base_url="https://api.razorpay.test/v1",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


def test_checkout_signature_verification() -> None:
    signature = checkout_signature(KEY_SECRET, "order_1", "pay_1")

    assert verify_payment_signature(
        order_id="order_1", payment_id="pay_1", signature=signature, key_secret=KEY_SECRET
    )
    assert not verify_payment_signature(
        order_id="order_1", payment_id="pay_2", signature=signature, key_secret=KEY_SECRET
    )
    assert not verify_payment_signature(
        order_id="order_1", payment_id="pay_1", signature="", key_secret=KEY_SECRET
    )


def test_webhook_signature_covers_raw_body() -> None:
    body = b'{"event":"payment.captured"}'
    signature = sign(WEBHOOK_SECRET, body)

    assert verify_webhook_signature(body=body, signature=signature, webhook_secret=WEBHOOK_SECRET)
    assert not verify_webhook_signature(
        body=body + b" ", signature=signature, webhook_secret=WEBHOOK_SECRET
    )


def test_create_order_posts_amount_in_paise() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "order_abc", "amount": 460000, "status": "created"})

    client = build_client(handler)
    try:
        order = client.create_order(
            amount=460000, currency="INR", receipt="PS-2026-0001", notes={"booking": "x"}
        )
    finally:
        client.close()

    assert order["id"] == "order_abc"
    assert seen["path"] == "/v1/orders"
    assert seen["auth"].startswith("Basic ")
    assert seen["body"] == {
        "amount": 460000,
        "currency": "INR",
        "receipt": "PS-2026-0001",
        "notes": {"booking": "x"},
    }


def test_create_order_rejects_tiny_amounts() -> None:
    client = build_client(lambda request: httpx.Response(200, json={}))
    with pytest.raises(PaymentGatewayError, match="at least 100 paise"):
        client.create_order(amount=99, currency="INR", receipt="r")


def test_gateway_error_description_is_surfaced() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400, json={"error": {"code": "BAD_REQUEST_ERROR", "description": "Invalid receipt"}}
        )

    client = build_client(handler)
    with pytest.raises(PaymentGatewayError) as excinfo:
        client.create_order(amount=1000, currency="INR", receipt="r")

    assert str(excinfo.value) == "Invalid receipt"
    assert excinfo.value.status_code == 400


def test_transport_failures_become_gateway_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    client = build_client(handler)
    with pytest.raises(PaymentGatewayError, match="request failed"):
        client.fetch_payment("pay_1")


def test_unconfigured_client_refuses_requests() -> None:
    client = build_client(lambda request: httpx.Response(200, json={}), key_id=None)

    assert client.configured is False
    with pytest.raises(PaymentGatewayError, match="not configured"):
        client.refund("pay_1", amount=100)


def test_refund_sends_partial_amount() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "rfnd_1", "status": "processed"})

    client = build_client(handler)
    refund = client.refund("pay_1", amount=5000)

    assert refund["id"] == "rfnd_1"
    assert seen == {"path": "/v1/payments/pay_1/refund", "body": {"amount": 5000}}
