from __future__ import annotations

import time
from uuid import uuid4

import jwt
import pytest

from academy_api.core.security.hashing import hash_otp, hash_password, verify_password
from academy_api.core.security.tokens import (
    TokenError,
    TokenType,
    create_access_token,
    create_refresh_token,
    create_registration_token,
    decode_token,
)
from academy_api.settings import Settings


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        jwt_secret="unit-access-secret-0123456789abcdef0123",
        jwt_refresh_secret="unit-refresh-secret-0123456789abcdef012",
    )


@pytest.fixture(autouse=True)
def _fast_hash(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ACADEMY_TEST_FAST_HASH", "1")


def test_hash_password_round_trip() -> None:
    hashed = hash_password("Passw0rd@123")

    assert hashed.startswith("scrypt$")
    assert verify_password("Passw0rd@123", hashed)
    assert not verify_password("wrong", hashed)


def test_hash_password_salts_each_hash() -> None:
    assert hash_password("same-secret") != hash_password("same-secret")


def test_hash_password_rejects_empty() -> None:
    with pytest.raises(ValueError):
        hash_password("")


@pytest.mark.parametrize("stored", [None, "", "bcrypt$abc", "scrypt$not-a-number$8$1$a$b"])
def test_verify_password_handles_unusable_hashes(stored: str | None) -> None:
    assert verify_password("anything", stored) is False


def test_hash_otp_is_stable_digest() -> None:
    assert hash_otp("123456") == hash_otp("123456")
    assert hash_otp("123456") != hash_otp("654321")
    assert len(hash_otp("123456")) == 64


def test_access_token_claims(settings: Settings) -> None:
    user_id = uuid4()
    issued = create_access_token(
        user_id=user_id,
        email="coach@example.com",
        role="academy",
        roles=["academy", "user"],
        settings=settings,
    )

    claims = decode_token(issued.token, expected_type=TokenType.ACCESS, settings=settings)

    assert claims["sub"] == str(user_id)
    assert claims["role"] == "academy"
    assert claims["roles"] == ["academy", "user"]
    assert claims["jti"] == issued.jti
    assert 0 < issued.expires_in <= 15 * 60


def test_refresh_token_uses_device_ttl(settings: Settings) -> None:
    web = create_refresh_token(
        user_id=uuid4(), device_type="web", device_id=None, settings=settings
    )
    mobile = create_refresh_token(
        user_id=uuid4(), device_type="android", device_id="device-1", settings=settings
    )

    assert web.expires_in <= 7 * 24 * 3600
    assert mobile.expires_in > 30 * 24 * 3600
    claims = decode_token(mobile.token, expected_type=TokenType.REFRESH, settings=settings)
    assert claims["deviceId"] == "device-1"


def test_refresh_token_is_not_an_access_token(settings: Settings) -> None:
    issued = create_refresh_token(
        user_id=uuid4(), device_type="web", device_id=None, settings=settings
    )
    with pytest.raises(TokenError):
        decode_token(issued.token, expected_type=TokenType.ACCESS, settings=settings)


def test_registration_token_type_is_checked(settings: Settings) -> None:
    issued = create_registration_token(mobile="9876543210", settings=settings)

    claims = decode_token(issued.token, expected_type=TokenType.REGISTRATION, settings=settings)
    assert claims["mobile"] == "9876543210"

    with pytest.raises(TokenError, match="Invalid token type"):
        decode_token(issued.token, expected_type=TokenType.ACCESS, settings=settings)


def test_expired_token_is_rejected(settings: Settings) -> None:
    now = int(time.time())
    token = jwt.encode(
        {"sub": "x", "jti": "j", "iat": now - 120, "exp": now - 60, "type": "access"},
        settings.jwt_secret_value,
        algorithm="HS256",
    )
    with pytest.raises(TokenError, match="expired"):
        decode_token(token, expected_type=TokenType.ACCESS, settings=settings)


def test_tampered_token_is_rejected(settings: Settings) -> None:
    issued = create_access_token(
        user_id=uuid4(), email=None, role="user", roles=["user"], settings=settings
    )
    with pytest.raises(TokenError, match="Invalid token"):
        decode_token(issued.token + "x", expected_type=TokenType.ACCESS, settings=settings)
