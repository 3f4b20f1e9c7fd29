"""Credential checks, token issuance and device-bound refresh sessions."""

from __future__ import annotations

import logging
from collections.abc import Collection
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from academy_api.common.errors import bad_request, conflict, forbidden, not_found, unauthorized
from academy_api.common.logging import log_context
from academy_api.common.validators import utc_now
from academy_api.core.auth.principal import AuthenticatedPrincipal
from academy_api.core.security.hashing import hash_password, verify_password
from academy_api.core.security.tokens import (
    TokenError,
    TokenType,
    create_access_token,
    create_refresh_token,
    create_registration_token,
    decode_token,
)
from academy_api.features.participants.models import Participant
from academy_api.features.rbac.models import Role, RoleName
from academy_api.features.users.models import RegistrationMethod, User, UserType
from academy_api.integrations.identity import SocialIdentity
from academy_api.settings import Settings

from .models import DeviceType, RefreshSession, RevokedToken
from .schemas import DeviceInfo, TokenPair

logger = logging.getLogger(__name__)

_ROLE_PRIORITY: tuple[str, ...] = (
    RoleName.SUPER_ADMIN.value,
    RoleName.ADMIN.value,
    RoleName.EMPLOYEE.value,
    RoleName.ACADEMY.value,
    RoleName.USER.value,
)


def primary_role(user: User) -> str:
    names = set(user.role_names)
    for candidate in _ROLE_PRIORITY:
        if candidate in names:
            return candidate
    return next(iter(sorted(names)), RoleName.USER.value)


@dataclass(frozen=True, slots=True)
class IssuedSession:
    tokens: TokenPair
    session_id: UUID
    refresh_expires_at: datetime


class AuthService:
    """Everything that turns a proof of identity into a token pair."""

    def __init__(self, *, session: Session, settings: Settings) -> None:
        self._session = session
        self._settings = settings

    # ---- Lookups ---------------------------------------------------------

    def find_by_mobile(self, mobile: str) -> User | None:
        stmt = select(User).where(User.mobile == mobile, User.is_deleted.is_(False))
        return self._session.execute(stmt).scalar_one_or_none()

    def find_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email.strip().lower(), User.is_deleted.is_(False))
        return self._session.execute(stmt).scalar_one_or_none()

    def get_role(self, name: str) -> Role:
        role = self._session.execute(select(Role).where(Role.name == name)).scalar_one_or_none()
        if role is None:
            role = Role(name=name, description=None, visible_to_roles=[])
            self._session.add(role)
            self._session.flush()
        return role

    # ---- Token issuance --------------------------------------------------

    def issue_session(self, user: User, device: DeviceInfo) -> IssuedSession:
        """Mint an access/refresh pair and record the refresh session.

        Any live session previously bound to the same ``device_id`` is revoked.
        """

        device_type = DeviceType(device.device_type).value
        if device.device_id:
            self._session.execute(
                update(RefreshSession)
                .where(
                    RefreshSession.user_id == user.id,
                    RefreshSession.device_id == device.device_id,
                    RefreshSession.revoked_at.is_(None),
                )
                .values(revoked_at=utc_now())
            )

        refresh = create_refresh_token(
            user_id=user.id,
            device_type=device_type,
            device_id=device.device_id,
            settings=self._settings,
        )
        access = create_access_token(
            user_id=user.id,
            email=user.email,
            role=primary_role(user),
            roles=user.role_names,
            settings=self._settings,
        )
        record = RefreshSession(
            user_id=user.id,
            jti=refresh.jti,
            device_type=device_type,
            device_id=device.device_id,
            expires_at=refresh.expires_at,
        )
        self._session.add(record)
        user.last_login_at = utc_now()
        self._session.flush()

        return IssuedSession(
            tokens=TokenPair(
                access_token=access.token,
                refresh_token=refresh.token,
                expires_in=access.expires_in,
            ),
            session_id=record.id,
            refresh_expires_at=refresh.expires_at,
        )

    def registration_token(self, mobile: str) -> str:
        return create_registration_token(mobile=mobile, settings=self._settings).token

    def mobile_from_registration_token(self, token: str) -> str:
        try:
            claims = decode_token(
                token, expected_type=TokenType.REGISTRATION, settings=self._settings
            )
        except TokenError as exc:
            raise bad_request(f"Registration token rejected: {exc}") from exc
        return str(claims["mobile"])

    # ---- Credentials -----------------------------------------------------

    @staticmethod
    def ensure_can_sign_in(user: User, allowed_roles: Collection[str]) -> None:
        if not user.is_active:
            raise forbidden("Your account has been deactivated")
        if allowed_roles and not user.has_role(*allowed_roles):
            raise forbidden("This account cannot sign in here")

    def authenticate_password(
        self,
        *,
        email: str | None,
        mobile: str | None,
        password: str,
        allowed_roles: Collection[str],
    ) -> User:
        user = self.find_by_email(email) if email else self.find_by_mobile(mobile or "")
        if user is None or not verify_password(password, user.password_hash):
            logger.info(
                "auth.login.failed",
                extra=log_context(identifier_type="email" if email else "mobile"),
            )
            raise unauthorized("Invalid credentials")
        self.ensure_can_sign_in(user, allowed_roles)
        logger.info("auth.login.success", extra=log_context(user_id=user.id))
        return user

    def refresh(
        self,
        *,
        refresh_token: str,
        device_id: str | None,
        allowed_roles: Collection[str],
    ) -> tuple[User, IssuedSession]:
        """Rotate the refresh session behind ``refresh_token``."""

        try:
            claims = decode_token(
                refresh_token, expected_type=TokenType.REFRESH, settings=self._settings
            )
        except TokenError as exc:
            raise unauthorized(str(exc)) from exc

        stmt = select(RefreshSession).where(RefreshSession.jti == str(claims["jti"]))
        record = self._session.execute(stmt).scalar_one_or_none()
        if record is None or record.revoked_at is not None:
            raise unauthorized("Refresh token has been revoked")
        if record.expires_at <= utc_now():
            raise unauthorized("Refresh token has expired")
        if device_id and record.device_id and device_id != record.device_id:
            logger.warning(
                "auth.refresh.device_mismatch",
                extra=log_context(user_id=record.user_id),
            )
            raise unauthorized("Refresh token was issued to a different device")

        user = self._session.get(User, record.user_id)
        if user is None or user.is_deleted:
            raise unauthorized("User not found")
        self.ensure_can_sign_in(user, allowed_roles)

        record.revoked_at = utc_now()
        issued = self.issue_session(
            user,
            DeviceInfo(device_type=record.device_type, device_id=record.device_id),
        )
        logger.info("auth.refresh.success", extra=log_context(user_id=user.id))
        return user, issued

    def logout(
        self,
        *,
        principal: AuthenticatedPrincipal,
        refresh_token: str | None,
        all_devices: bool,
    ) -> None:
        now = utc_now()
        if all_devices:
            self._session.execute(
                update(RefreshSession)
                .where(
                    RefreshSession.user_id == principal.user_id,
                    RefreshSession.revoked_at.is_(None),
                )
                .values(revoked_at=now)
            )
        elif refresh_token:
            try:
                claims = decode_token(
                    refresh_token, expected_type=TokenType.REFRESH, settings=self._settings
                )
            except TokenError as exc:
                raise bad_request(f"Refresh token rejected: {exc}") from exc
            if str(claims["sub"]) != str(principal.user_id):
                raise forbidden("Refresh token belongs to another user")
            self._session.execute(
                update(RefreshSession)
                .where(
                    RefreshSession.jti == str(claims["jti"]),
                    RefreshSession.revoked_at.is_(None),
                )
                .values(revoked_at=now)
            )

        if self._session.get(RevokedToken, principal.jti) is None:
            self._session.add(RevokedToken(jti=principal.jti, expires_at=principal.expires_at))
        self._session.flush()
        logger.info(
            "auth.logout.success",
            extra=log_context(user_id=principal.user_id, all_devices=all_devices),
        )

    # ---- Account creation ------------------------------------------------

    def _ensure_unique(self, *, email: str | None, mobile: str | None) -> None:
        if mobile and self.find_by_mobile(mobile) is not None:
            raise conflict("An account with this mobile number already exists")
        if email and self.find_by_email(email) is not None:
            raise conflict("An account with this email already exists")

    def create_user(
        self,
        *,
        first_name: str,
        last_name: str | None,
        email: str | None,
        mobile: str | None,
        password: str | None,
        role: str,
        registration_method: RegistrationMethod,
        user_type: UserType | None = None,
        gender: str | None = None,
        academy_name: str | None = None,
        social_uid: str | None = None,
        created_by_id: UUID | None = None,
    ) -> User:
        self._ensure_unique(email=email, mobile=mobile)
        user = User(
            first_name=first_name,
            last_name=last_name,
            email=email,
            mobile=mobile,
            password_hash=hash_password(password) if password else None,
            user_type=user_type,
            gender=gender,
            registration_method=registration_method,
            academy_name=academy_name,
            social_uid=social_uid,
            created_by_id=created_by_id,
            favorite_sport_ids=[],
        )
        user.roles = [self.get_role(role)]
        self._session.add(user)
        self._session.flush()

        if role == RoleName.USER.value and user_type == UserType.STUDENT:
            self._session.add(
                Participant(
                    user_id=user.id,
                    first_name=first_name,
                    last_name=last_name,
                    gender=gender,
                    contact_number=mobile,
                    is_self=True,
                )
            )
            self._session.flush()

        logger.info(
            "auth.register.success",
            extra=log_context(user_id=user.id, role=role, method=registration_method.value),
        )
        return user

    def social_login(
        self,
        *,
        identity: SocialIdentity,
        provider: str,
        first_name: str | None,
        last_name: str | None,
        allowed_roles: Collection[str],
    ) -> User:
        """Resolve ``identity`` to an account, creating a new ``user`` if none matches.

        An account already bound to the provider uid wins. Otherwise an account
        with the same email is linked, but only when the provider has verified
        that email.
        """

        stmt = select(User).where(User.social_uid == identity.uid, User.is_deleted.is_(False))
        user = self._session.execute(stmt).scalar_one_or_none()
        if user is None and identity.email:
            user = self.find_by_email(identity.email)
            if user is not None and not identity.email_verified:
                logger.warning(
                    "auth.social.unverified_email",
                    extra=log_context(user_id=user.id, provider=provider),
                )
                raise forbidden("Verify your email with the provider before signing in")

        if user is not None:
            self.ensure_can_sign_in(user, allowed_roles)
            if user.social_uid is None:
                user.social_uid = identity.uid
            if user.profile_image is None and identity.picture:
                user.profile_image = identity.picture
            self._session.flush()
            logger.info(
                "auth.social.success", extra=log_context(user_id=user.id, provider=provider)
            )
            return user

        display = (identity.name or "").split(" ", 1)
        return self.create_user(
            first_name=first_name or display[0] or "User",
            last_name=last_name or (display[1] if len(display) > 1 else None),
            email=identity.email if identity.email_verified else None,
            mobile=None,
            password=None,
            role=RoleName.USER.value,
            registration_method=RegistrationMethod(provider),
            user_type=UserType.STUDENT,
            social_uid=identity.uid,
        )

    # ---- Password and mobile changes ------------------------------------

    def reset_password(self, user: User, new_password: str) -> None:
        user.password_hash = hash_password(new_password)
        self._session.execute(
            update(RefreshSession)
            .where(RefreshSession.user_id == user.id, RefreshSession.revoked_at.is_(None))
            .values(revoked_at=utc_now())
        )
        self._session.flush()
        logger.info("auth.password.reset", extra=log_context(user_id=user.id))

    def change_password(self, user: User, *, current_password: str, new_password: str) -> None:
        if user.password_hash and not verify_password(current_password, user.password_hash):
            raise bad_request("Current password is incorrect")
        if current_password == new_password:
            raise bad_request("New password must be different from the current password")
        user.password_hash = hash_password(new_password)
        self._session.flush()
        logger.info("auth.password.changed", extra=log_context(user_id=user.id))

    def change_mobile(self, user: User, mobile: str) -> User:
        existing = self.find_by_mobile(mobile)
        if existing is not None and existing.id != user.id:
            raise conflict("An account with this mobile number already exists")
        user.mobile = mobile
        self._session.flush()
        return user

    def require_user(self, user_id: UUID) -> User:
        user = self._session.get(User, user_id)
        if user is None or user.is_deleted:
            raise not_found("User not found")
        return user


__all__ = ["AuthService", "IssuedSession", "primary_role"]
