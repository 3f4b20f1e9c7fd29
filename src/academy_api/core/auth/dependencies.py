"""FastAPI dependencies that turn bearer tokens into users and enforce access."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Request

from academy_api.api.deps import ReadSessionDep, SettingsDep
from academy_api.common.errors import forbidden, unauthorized
from academy_api.common.logging import bind_user, log_context
from academy_api.core.security.tokens import TokenError, TokenType, decode_token
from academy_api.features.auth.models import RevokedToken
from academy_api.features.rbac.authorization import (
    has_all_permissions,
    has_any_permission,
    has_permission,
    is_super_admin,
)
from academy_api.features.rbac.models import Action, Section
from academy_api.features.users.models import User

from .principal import AuthenticatedPrincipal

logger = logging.getLogger(__name__)

UserDependency = Callable[..., User]


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    candidate = token.strip()
    return candidate or None


def get_current_principal(
    request: Request,
    db: ReadSessionDep,
    settings: SettingsDep,
) -> AuthenticatedPrincipal:
    """Decode the access token and reject revoked ``jti`` values."""

    token = _bearer_token(request)
    if token is None:
        raise unauthorized("Authentication required")
    try:
        claims = decode_token(token, expected_type=TokenType.ACCESS, settings=settings)
        user_id = UUID(str(claims["sub"]))
    except TokenError as exc:
        raise unauthorized(str(exc)) from exc
    except ValueError as exc:
        raise unauthorized("Invalid token") from exc

    jti = str(claims["jti"])
    if db.get(RevokedToken, jti) is not None:
        raise unauthorized("Token has been revoked")
    bind_user(user_id)

    return AuthenticatedPrincipal(
        user_id=user_id,
        role=str(claims.get("role") or ""),
        roles=list(claims.get("roles") or []),
        email=claims.get("email"),
        jti=jti,
        expires_at=datetime.fromtimestamp(int(claims["exp"]), tz=UTC),
        token=token,
    )


CurrentPrincipal = Annotated[AuthenticatedPrincipal, Depends(get_current_principal)]


def require_auth(principal: CurrentPrincipal, db: ReadSessionDep) -> User:
    """Ensure the token belongs to an active, non-deleted user."""

    user = db.get(User, principal.user_id)
    if user is None or user.is_deleted:
        raise unauthorized("User not found")
    if not user.is_active:
        raise unauthorized("User account is inactive")
    return user


CurrentUser = Annotated[User, Depends(require_auth)]


def require_roles(*roles: str) -> UserDependency:
    """Allow users holding any of ``roles``; ``super_admin`` always passes."""

    allowed = set(roles)

    def dependency(user: CurrentUser) -> User:
        if is_super_admin(user) or user.has_role(*allowed):
            return user
        logger.warning(
            "auth.role.denied",
            extra=log_context(user_id=str(user.id), required=sorted(allowed)),
        )
        raise forbidden()

    return dependency


def _deny(user: User, section: Section, actions: tuple[Action, ...]) -> None:
    logger.warning(
        "auth.permission.denied",
        extra=log_context(
            user_id=str(user.id),
            section=section.value,
            actions=[action.value for action in actions],
        ),
    )
    raise forbidden()


def require_permission(section: Section, action: Action) -> UserDependency:
    def dependency(user: CurrentUser) -> User:
        if not has_permission(user, section, action):
            _deny(user, section, (action,))
        return user

    return dependency


def require_any_permission(section: Section, *actions: Action) -> UserDependency:
    def dependency(user: CurrentUser) -> User:
        if not has_any_permission(user, section, actions):
            _deny(user, section, actions)
        return user

    return dependency


def require_all_permissions(section: Section, *actions: Action) -> UserDependency:
    def dependency(user: CurrentUser) -> User:
        if not has_all_permissions(user, section, actions):
            _deny(user, section, actions)
        return user

    return dependency


__all__ = [
    "CurrentPrincipal",
    "CurrentUser",
    "get_current_principal",
    "require_all_permissions",
    "require_any_permission",
    "require_auth",
    "require_permission",
    "require_roles",
]
