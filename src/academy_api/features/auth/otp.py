"""Issue, deliver and check one-time passwords."""

from __future__ import annotations

import logging
import secrets
from enum import Enum

from sqlalchemy import select
from sqlalchemy.orm import Session

from academy_api.common.errors import ApiError, bad_request
from academy_api.common.logging import log_context
from academy_api.common.validators import utc_now
from academy_api.core.security.hashing import hash_otp
from academy_api.db.session import keep_on_rejection
from academy_api.integrations.mailer import EmailSender
from academy_api.integrations.sms import DeliveryError, SmsSender
from academy_api.settings import Settings

from .models import OtpChannel, OtpCode, OtpMode

logger = logging.getLogger(__name__)


class OtpOutcome(str, Enum):
    VALID = "valid"
    EXPIRED = "expired"
    INVALID = "invalid"
    NOT_FOUND = "not_found"
    CONSUMED = "consumed"


OUTCOME_MESSAGES: dict[OtpOutcome, str] = {
    OtpOutcome.EXPIRED: "OTP has expired. Please request a new one",
    OtpOutcome.INVALID: "Invalid OTP",
    OtpOutcome.NOT_FOUND: "OTP not found or already used",
    OtpOutcome.CONSUMED: "Too many invalid attempts. Please request a new OTP",
}

_SMS_TEMPLATES: dict[OtpMode, str] = {
    OtpMode.LOGIN: "{code} is your login OTP. It is valid for {minutes} minutes.",
    OtpMode.REGISTER: "{code} is your registration OTP. It is valid for {minutes} minutes.",
    OtpMode.PROFILE_UPDATE: "{code} is your profile update OTP. Valid for {minutes} minutes.",
    OtpMode.FORGOT_PASSWORD: "{code} is your password reset OTP. Valid for {minutes} minutes.",
}


class OtpService:
    """OTP records are keyed by ``(identifier, channel, mode)``; reissuing replaces the code."""

    def __init__(
        self,
        *,
        session: Session,
        settings: Settings,
        sms_sender: SmsSender,
        email_sender: EmailSender,
    ) -> None:
        self._session = session
        self._settings = settings
        self._sms = sms_sender
        self._email = email_sender

    def _generate(self) -> str:
        length = self._settings.otp_length
        return f"{secrets.randbelow(10**length):0{length}d}"

    def _find(self, identifier: str, channel: OtpChannel, mode: OtpMode) -> OtpCode | None:
        stmt = select(OtpCode).where(
            OtpCode.identifier == identifier,
            OtpCode.channel == channel,
            OtpCode.mode == mode,
        )
        return self._session.execute(stmt).scalar_one_or_none()

    def issue(self, identifier: str, channel: OtpChannel, mode: OtpMode) -> str:
        code = self._generate()
        expires_at = utc_now() + self._settings.otp_ttl
        record = self._find(identifier, channel, mode)
        if record is None:
            record = OtpCode(identifier=identifier, channel=channel, mode=mode)
            self._session.add(record)
        record.code_hash = hash_otp(code)
        record.expires_at = expires_at
        record.attempts = 0
        self._session.flush()
        return code

    def send(self, identifier: str, channel: OtpChannel, mode: OtpMode) -> str:
        """Issue a code and hand it to the channel's sender."""

        code = self.issue(identifier, channel, mode)
        minutes = int(self._settings.otp_ttl.total_seconds() // 60)
        body = _SMS_TEMPLATES[mode].format(code=code, minutes=minutes)
        try:
            if channel is OtpChannel.MOBILE:
                self._sms.send(to=identifier, body=body)
            else:
                self._email.send(to=identifier, subject="Your verification code", body=body)
        except DeliveryError as exc:
            logger.warning(
                "otp.delivery.failed",
                extra=log_context(channel=channel.value, mode=mode.value),
            )
            raise ApiError(502, "Unable to deliver OTP. Please try again") from exc

        logger.info("otp.send.success", extra=log_context(channel=channel.value, mode=mode.value))
        return code

    def check(self, identifier: str, channel: OtpChannel, mode: OtpMode, code: str) -> OtpOutcome:
        record = self._find(identifier, channel, mode)
        if record is None:
            return OtpOutcome.NOT_FOUND

        if record.expires_at <= utc_now():
            self._session.delete(record)
            self._session.flush()
            return OtpOutcome.EXPIRED

        if record.attempts >= self._settings.otp_max_attempts:
            self._session.delete(record)
            self._session.flush()
            return OtpOutcome.CONSUMED

        if not secrets.compare_digest(record.code_hash, hash_otp(code)):
            record.attempts += 1
            self._session.flush()
            return OtpOutcome.INVALID

        self._session.delete(record)
        self._session.flush()
        return OtpOutcome.VALID

    def verify(self, identifier: str, channel: OtpChannel, mode: OtpMode, code: str) -> None:
        """Raise a 400 unless the code is valid.

        Attempt counters and spent codes are kept even though the request fails.
        """

        outcome = self.check(identifier, channel, mode, code)
        if outcome is OtpOutcome.VALID:
            return
        keep_on_rejection(self._session)
        logger.info(
            "otp.verify.rejected",
            extra=log_context(channel=channel.value, mode=mode.value, outcome=outcome.value),
        )
        raise bad_request(OUTCOME_MESSAGES[outcome])

    def debug_echo(self, code: str) -> str | None:
        if self._settings.otp_debug_echo and not self._settings.is_production:
            return code
        return None

    @property
    def ttl_seconds(self) -> int:
        return int(self._settings.otp_ttl.total_seconds())


__all__ = ["OUTCOME_MESSAGES", "OtpOutcome", "OtpService"]
