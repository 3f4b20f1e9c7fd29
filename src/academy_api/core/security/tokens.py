"""JWT minting and decoding for access, refresh and registration tokens."""

from __future__ import annotations

import secrets
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

import jwt

from academy_api.common.validators import utc_now
from academy_api.settings import Settings

MOBILE_DEVICE_TYPES = frozenset({"android", "ios"})


class TokenType(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"
    REGISTRATION = "registration"


class TokenError(Exception):
    """Raised when a token is malformed, expired or of the wrong type."""


@dataclass(frozen=True, slots=True)
class IssuedToken:
    token: str
    jti: str
    expires_at: datetime

    @property
    def expires_in(self) -> int:
        return max(0, int((self.expires_at - utc_now()).total_seconds()))


def _new_jti() -> str:
    return secrets.token_hex(16)


def _encode(
    payload: dict[str, Any],
    *,
    secret: str,
    algorithm: str,
    ttl: timedelta,
) -> IssuedToken:
    issued_at = utc_now()
    expires_at = issued_at + ttl
    jti = _new_jti()
    claims = {
        **payload,
        "jti": jti,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    token = jwt.encode(claims, secret, algorithm=algorithm)
    return IssuedToken(token=token, jti=jti, expires_at=expires_at)


def refresh_ttl_for(device_type: str | None, settings: Settings) -> timedelta:
    if device_type in MOBILE_DEVICE_TYPES:
        return settings.refresh_token_ttl_mobile
    return settings.refresh_token_ttl_web


def create_access_token(
    *,
    user_id: uuid.UUID,
    email: str | None,
    role: str,
    roles: Sequence[str],
    settings: Settings,
) -> IssuedToken:
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "roles": list(roles),
        "type": TokenType.ACCESS.value,
    }
    return _encode(
        payload,
        secret=settings.jwt_secret_value,
        algorithm=settings.jwt_algorithm,
        ttl=settings.access_token_ttl,
    )


def create_refresh_token(
    *,
    user_id: uuid.UUID,
    device_type: str,
    device_id: str | None,
    settings: Settings,
) -> IssuedToken:
    payload = {
        "sub": str(user_id),
        "type": TokenType.REFRESH.value,
        "deviceType": device_type,
        "deviceId": device_id,
    }
    return _encode(
        payload,
        secret=settings.jwt_refresh_secret_value,
        algorithm=settings.jwt_algorithm,
        ttl=refresh_ttl_for(device_type, settings),
    )


def create_registration_token(*, mobile: str, settings: Settings) -> IssuedToken:
    payload = {"sub": mobile, "mobile": mobile, "type": TokenType.REGISTRATION.value}
    return _encode(
        payload,
        secret=settings.jwt_secret_value,
        algorithm=settings.jwt_algorithm,
        ttl=settings.registration_token_ttl,
    )


def decode_token(token: str, *, expected_type: TokenType, settings: Settings) -> dict[str, Any]:
    """Validate signature, expiry and ``type`` and return the claims."""

    secret = (
        settings.jwt_refresh_secret_value
        if expected_type is TokenType.REFRESH
        else settings.jwt_secret_value
    )
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "iat", "sub", "jti"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenError("Token has expired") from exc
    except jwt.PyJWTError as exc:
        raise TokenError("Invalid token") from exc

    if payload.get("type") != expected_type.value:
        raise TokenError("Invalid token type")
    return payload


__all__ = [
    "IssuedToken",
    "MOBILE_DEVICE_TYPES",
    "TokenError",
    "TokenType",
    "create_access_token",
    "create_refresh_token",
    "create_registration_token",
    "decode_token",
    "refresh_ttl_for",
]
