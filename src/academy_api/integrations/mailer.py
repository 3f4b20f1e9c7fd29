"""Email delivery over SMTP."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Protocol

from fastapi import FastAPI

from academy_api.settings import Settings

from .sms import DeliveryError

logger = logging.getLogger(__name__)


class EmailSender(Protocol):
    def send(self, *, to: str, subject: str, body: str) -> None: ...


class LoggingEmailSender:
    def send(self, *, to: str, subject: str, body: str) -> None:
        logger.info("email.send.skipped", extra={"to": to, "subject": subject})


class SmtpEmailSender:
    def __init__(
        self,
        *,
        host: str,
        port: int,
        sender: str,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._timeout = timeout

    def _build(self, *, to: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self._sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        return message

    def send(self, *, to: str, subject: str, body: str) -> None:
        message = self._build(to=to, subject=subject, body=body)
        try:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as smtp:
                if self._use_tls:
                    smtp.starttls()
                if self._username and self._password:
                    smtp.login(self._username, self._password)
                smtp.send_message(message)
        except (OSError, smtplib.SMTPException) as exc:
            logger.warning("email.send.failed", extra={"to": to, "error": str(exc)})
            raise DeliveryError("Email delivery failed") from exc
        logger.info("email.send.success", extra={"to": to, "subject": subject})


def build_email_sender(settings: Settings) -> EmailSender:
    if not settings.email_enabled:
        return LoggingEmailSender()
    if not settings.smtp_host:
        logger.error("email.config.incomplete")
        raise RuntimeError("ACADEMY_EMAIL_ENABLED requires ACADEMY_SMTP_HOST.")
    return SmtpEmailSender(
        host=settings.smtp_host,
        port=settings.smtp_port,
        sender=settings.smtp_from,
        username=settings.smtp_username,
        password=settings.smtp_password.get_secret_value() if settings.smtp_password else None,
        use_tls=settings.smtp_use_tls,
    )


def get_email_sender_from_app(app: FastAPI, settings: Settings) -> EmailSender:
    sender = getattr(app.state, "email_sender", None)
    if sender is None:
        sender = build_email_sender(settings)
        app.state.email_sender = sender
    return sender


__all__ = [
    "EmailSender",
    "LoggingEmailSender",
    "SmtpEmailSender",
    "build_email_sender",
    "get_email_sender_from_app",
]
