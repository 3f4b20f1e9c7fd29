"""Password hashing helpers (scrypt-backed)."""

from __future__ import annotations

import base64
import hashlib
import os
import secrets

_SALT_BYTES = 16
_KEY_LEN = 32
_SCRYPT_N = 2**14
_SCRYPT_R = 8
_SCRYPT_P = 1
_TEST_FAST_N = 2**10


def _encode(value: bytes) -> str:
    return base64.urlsafe_b64encode(value).decode("ascii").rstrip("=")


def _decode(value: str) -> bytes:
    padding = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(value + padding)


def hash_password(password: str) -> str:
    """Hash ``password`` using scrypt with a random salt.

    The stored form is ``scrypt$N$r$p$salt$key`` so the cost parameters travel
    with the hash and can be raised later without invalidating old rows.
    """

    if not password:
        raise ValueError("Password must not be empty")

    n_factor = _TEST_FAST_N if os.getenv("ACADEMY_TEST_FAST_HASH") else _SCRYPT_N
    salt = secrets.token_bytes(_SALT_BYTES)
    key = hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt,
        n=n_factor,
        r=_SCRYPT_R,
        p=_SCRYPT_P,
        dklen=_KEY_LEN,
    )
    return f"scrypt${n_factor}${_SCRYPT_R}${_SCRYPT_P}${_encode(salt)}${_encode(key)}"


def verify_password(password: str, hashed: str | None) -> bool:
    """Return ``True`` if ``password`` matches ``hashed``."""

    if not hashed:
        return False
    try:
        scheme, n_str, r_str, p_str, salt_b64, key_b64 = hashed.split("$", 5)
        if scheme != "scrypt":
            return False
        salt = _decode(salt_b64)
        expected = _decode(key_b64)
        candidate = hashlib.scrypt(
            password.encode("utf-8"),
            salt=salt,
            n=int(n_str),
            r=int(r_str),
            p=int(p_str),
            dklen=len(expected),
        )
    except (ValueError, TypeError):
        return False

    return secrets.compare_digest(candidate, expected)


def hash_otp(code: str) -> str:
    """OTP codes are short-lived, so a plain sha256 digest is enough."""

    return hashlib.sha256(code.encode("utf-8")).hexdigest()


__all__ = ["hash_otp", "hash_password", "verify_password"]
