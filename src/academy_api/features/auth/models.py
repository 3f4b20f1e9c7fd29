"""Persistence for refresh sessions, revoked access tokens and OTP codes."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from academy_api.db import (
    Base,
    TimestampMixin,
    UTCDateTime,
    UUIDPrimaryKeyMixin,
    UUIDType,
    enum_values,
)


class DeviceType(str, Enum):
    WEB = "web"
    ANDROID = "android"
    IOS = "ios"


class OtpChannel(str, Enum):
    MOBILE = "mobile"
    EMAIL = "email"


class OtpMode(str, Enum):
    LOGIN = "login"
    REGISTER = "register"
    PROFILE_UPDATE = "profile_update"
    FORGOT_PASSWORD = "forgot_password"


class RefreshSession(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """One row per issued refresh token, bound to the device that received it."""

    __tablename__ = "refresh_sessions"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    jti: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    device_type: Mapped[DeviceType] = mapped_column(
        SAEnum(DeviceType, name="device_type", native_enum=False, length=10,
               values_callable=enum_values),
        nullable=False,
        default=DeviceType.WEB,
    )
    device_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    revoked_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)


class RevokedToken(Base):
    """Access-token ``jti`` values rejected until their natural expiry."""

    __tablename__ = "revoked_tokens"

    jti: Mapped[str] = mapped_column(String(64), primary_key=True)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)


class OtpCode(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "otp_codes"
    __table_args__ = (
        UniqueConstraint("identifier", "channel", "mode", name="otp_codes_identifier_channel_mode"),
    )

    identifier: Mapped[str] = mapped_column(String(320), nullable=False)
    channel: Mapped[OtpChannel] = mapped_column(
        SAEnum(OtpChannel, name="otp_channel", native_enum=False, length=10,
               values_callable=enum_values),
        nullable=False,
    )
    mode: Mapped[OtpMode] = mapped_column(
        SAEnum(OtpMode, name="otp_mode", native_enum=False, length=20,
               values_callable=enum_values),
        nullable=False,
    )
    code_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


__all__ = ["DeviceType", "OtpChannel", "OtpCode", "OtpMode", "RefreshSession", "RevokedToken"]
