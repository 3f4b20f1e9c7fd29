"""SMS delivery through the Twilio REST API."""

from __future__ import annotations

import logging
from typing import Protocol

import httpx
from fastapi import FastAPI

from academy_api.settings import Settings

logger = logging.getLogger(__name__)


class DeliveryError(RuntimeError):
    """Raised when a message could not be handed to the provider."""


class SmsSender(Protocol):
    def send(self, *, to: str, body: str) -> None: ...


def _mask(recipient: str) -> str:
    return f"{'*' * max(0, len(recipient) - 4)}{recipient[-4:]}"


class LoggingSmsSender:
    """Used when SMS delivery is disabled; the message is only logged."""

    def send(self, *, to: str, body: str) -> None:
        logger.info("sms.send.skipped", extra={"to": _mask(to), "length": len(body)})


class TwilioSmsSender:
    def __init__(
        self,
        *,
        account_sid: str,
        auth_token: str,
        from_number: str,
        base_url: str,
        country_code: str = "+91",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._account_sid = account_sid
        self._from_number = from_number
        self._country_code = country_code
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            auth=(account_sid, auth_token),
            timeout=10.0,
            transport=transport,
        )

    def _normalise(self, to: str) -> str:
        return to if to.startswith("+") else f"{self._country_code}{to}"

    def send(self, *, to: str, body: str) -> None:
        path = f"/Accounts/{self._account_sid}/Messages.json"
        data = {"To": self._normalise(to), "From": self._from_number, "Body": body}
        try:
            response = self._client.post(path, data=data)
        except httpx.HTTPError as exc:
            logger.warning("sms.send.failed", extra={"to": _mask(to), "error": str(exc)})
            raise DeliveryError("SMS request failed") from exc
        if response.status_code >= 400:
            logger.warning(
                "sms.send.rejected",
                extra={"to": _mask(to), "status_code": response.status_code},
            )
            raise DeliveryError("SMS provider rejected the message")
        logger.info("sms.send.success", extra={"to": _mask(to)})

    def close(self) -> None:
        self._client.close()


def build_sms_sender(settings: Settings) -> SmsSender:
    if not settings.sms_enabled:
        return LoggingSmsSender()
    if not (
        settings.twilio_account_sid and settings.twilio_auth_token and settings.twilio_from_number
    ):
        logger.error("sms.config.incomplete")
        raise RuntimeError(
            "ACADEMY_SMS_ENABLED requires ACADEMY_TWILIO_ACCOUNT_SID, "
            "ACADEMY_TWILIO_AUTH_TOKEN and ACADEMY_TWILIO_FROM_NUMBER."
        )
    return TwilioSmsSender(
        account_sid=settings.twilio_account_sid,
        auth_token=settings.twilio_auth_token.get_secret_value(),
        from_number=settings.twilio_from_number,
        base_url=settings.twilio_base_url,
    )


def get_sms_sender_from_app(app: FastAPI, settings: Settings) -> SmsSender:
    sender = getattr(app.state, "sms_sender", None)
    if sender is None:
        sender = build_sms_sender(settings)
        app.state.sms_sender = sender
    return sender


__all__ = [
    "DeliveryError",
    "LoggingSmsSender",
    "SmsSender",
    "TwilioSmsSender",
    "build_sms_sender",
    "get_sms_sender_from_app",
]
