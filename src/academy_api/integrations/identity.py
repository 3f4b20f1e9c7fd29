"""Verify Firebase ID tokens issued by social sign-in providers.

Credentials and the JWKS client are resolved once per process and cached on
the provider instance, which itself lives on ``app.state``.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import jwt
from fastapi import FastAPI
from jwt import PyJWKClient

from academy_api.settings import Settings

logger = logging.getLogger(__name__)

ISSUER_PREFIX = "https://securetoken.google.com/"
DEFAULT_CREDENTIAL_PATHS: tuple[Path, ...] = (
    Path("firebase-service-account.json"),
    Path("config") / "firebase-service-account.json",
)


class IdentityError(RuntimeError):
    """Raised when an ID token cannot be verified."""


class IdentityConfigurationError(IdentityError):
    """Raised when no usable credentials can be found."""


@dataclass(frozen=True, slots=True)
class FirebaseCredentials:
    project_id: str
    client_email: str
    private_key: str


@dataclass(frozen=True, slots=True)
class SocialIdentity:
    uid: str
    email: str | None
    email_verified: bool
    name: str | None
    picture: str | None
    sign_in_provider: str | None


class IdentityVerifier(Protocol):
    def verify(self, id_token: str) -> SocialIdentity: ...


def candidate_credential_paths(settings: Settings) -> list[Path]:
    paths: list[Path] = []
    if settings.firebase_credentials_path is not None:
        paths.append(settings.firebase_credentials_path)
    paths.extend(Path.cwd() / path for path in DEFAULT_CREDENTIAL_PATHS)
    return paths


def load_credentials(paths: list[Path]) -> FirebaseCredentials:
    """Read the first service-account file that exists in ``paths``."""

    for path in paths:
        if not path.is_file():
            continue
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.error("identity.credentials.unreadable", extra={"path": str(path)})
            raise IdentityConfigurationError(f"Unable to read credentials at {path}") from exc

        project_id = raw.get("project_id") or raw.get("projectId")
        client_email = raw.get("client_email") or raw.get("clientEmail")
        private_key = raw.get("private_key") or raw.get("privateKey")
        if not project_id or not client_email or not private_key:
            logger.error("identity.credentials.incomplete", extra={"path": str(path)})
            raise IdentityConfigurationError(
                "Credentials file is missing project_id, client_email or private_key"
            )
        return FirebaseCredentials(
            project_id=str(project_id),
            client_email=str(client_email),
            private_key=str(private_key).replace("\\n", "\n"),
        )

    searched = ", ".join(str(path) for path in paths)
    logger.error("identity.credentials.missing", extra={"searched": searched})
    raise IdentityConfigurationError(f"Firebase credentials not found. Searched: {searched}")


class IdentityProvider:
    """Lazily configured verifier for Firebase-issued RS256 ID tokens."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._lock = threading.Lock()
        self._project_id: str | None = None
        self._jwks_client: PyJWKClient | None = None

    def _ensure_ready(self) -> tuple[str, PyJWKClient]:
        if self._project_id is not None and self._jwks_client is not None:
            return self._project_id, self._jwks_client
        with self._lock:
            if self._project_id is None:
                project_id = self._settings.firebase_project_id
                if not project_id:
                    project_id = load_credentials(
                        candidate_credential_paths(self._settings)
                    ).project_id
                self._project_id = project_id
            if self._jwks_client is None:
                self._jwks_client = PyJWKClient(
                    self._settings.firebase_jwks_url,
                    cache_keys=True,
                    cache_jwk_set=True,
                    lifespan=3600,
                )
                logger.info("identity.provider.ready", extra={"project_id": self._project_id})
        return self._project_id, self._jwks_client

    def verify(self, id_token: str) -> SocialIdentity:
        project_id, jwks_client = self._ensure_ready()
        try:
            signing_key = jwks_client.get_signing_key_from_jwt(id_token)
        except jwt.PyJWKClientError as exc:
            raise IdentityError("Unable to resolve signing key") from exc
        except jwt.PyJWTError as exc:
            raise IdentityError("Invalid ID token") from exc

        try:
            claims: dict[str, Any] = jwt.decode(
                id_token,
                signing_key.key,
                algorithms=["RS256"],
                audience=project_id,
                issuer=f"{ISSUER_PREFIX}{project_id}",
                leeway=60,
                options={"require": ["exp", "iat", "iss", "aud", "sub"]},
            )
        except jwt.PyJWTError as exc:
            logger.warning("identity.token.invalid", extra={"error": str(exc)})
            raise IdentityError("Invalid ID token") from exc

        firebase_claims = claims.get("firebase") or {}
        return SocialIdentity(
            uid=str(claims["sub"]),
            email=claims.get("email"),
            email_verified=bool(claims.get("email_verified", False)),
            name=claims.get("name"),
            picture=claims.get("picture"),
            sign_in_provider=firebase_claims.get("sign_in_provider"),
        )


def get_identity_provider_from_app(app: FastAPI, settings: Settings) -> IdentityVerifier:
    provider = getattr(app.state, "identity_provider", None)
    if provider is None:
        provider = IdentityProvider(settings)
        app.state.identity_provider = provider
    return provider


__all__ = [
    "FirebaseCredentials",
    "IdentityConfigurationError",
    "IdentityError",
    "IdentityProvider",
    "IdentityVerifier",
    "SocialIdentity",
    "candidate_credential_paths",
    "get_identity_provider_from_app",
    "load_credentials",
]
