"""Lightweight identity representation produced from a bearer token."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID


@dataclass(slots=True)
class AuthenticatedPrincipal:
    """Claims from a verified access token."""

    user_id: UUID
    role: str
    jti: str
    expires_at: datetime
    roles: list[str] = field(default_factory=list)
    email: str | None = None
    token: str = field(default="", repr=False)
