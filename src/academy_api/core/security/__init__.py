"""Password hashing and JWT helpers."""

from .hashing import hash_password, verify_password
from .tokens import (
    IssuedToken,
    TokenError,
    TokenType,
    create_access_token,
    create_refresh_token,
    create_registration_token,
    decode_token,
    refresh_ttl_for,
)

__all__ = [
    "IssuedToken",
    "TokenError",
    "TokenType",
    "create_access_token",
    "create_refresh_token",
    "create_registration_token",
    "decode_token",
    "hash_password",
    "refresh_ttl_for",
    "verify_password",
]
