"""Profile self-service and admin account management."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from academy_api.common.errors import bad_request, conflict, forbidden, not_found
from academy_api.common.logging import log_context
from academy_api.common.pagination import Page, PageParams, paginate_sql
from academy_api.core.security.hashing import hash_password
from academy_api.features.rbac.authorization import is_super_admin
from academy_api.features.rbac.models import Role, RoleName
from academy_api.settings import Settings

from .models import RegistrationMethod, User, UserType
from .schemas import AdminUserUpdate, OperationalUserCreate, ProfileUpdate, UserOut

logger = logging.getLogger(__name__)

OPERATIONAL_ROLES = frozenset({RoleName.ADMIN.value, RoleName.EMPLOYEE.value})


class UsersService:
    def __init__(self, *, session: Session, settings: Settings) -> None:
        self._session = session
        self._settings = settings

    def get_user(self, user_id: UUID) -> User:
        user = self._session.get(User, user_id)
        if user is None or user.is_deleted:
            raise not_found("User not found")
        return user

    def update_profile(self, user: User, payload: ProfileUpdate) -> User:
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("favorite_sport_ids") is not None:
            changes["favorite_sport_ids"] = [str(value) for value in changes["favorite_sport_ids"]]
        if "first_name" in changes and not changes["first_name"]:
            raise bad_request("First name cannot be empty")
        for field, value in changes.items():
            setattr(user, field, value)
        self._session.flush()
        logger.info(
            "user.profile.update.success",
            extra=log_context(user_id=user.id, fields=sorted(changes)),
        )
        return user

    def list_users(
        self,
        *,
        params: PageParams,
        role: str | None = None,
        user_type: UserType | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> Page[UserOut]:
        stmt = select(User).where(User.is_deleted.is_(False))
        if role:
            stmt = stmt.where(User.roles.any(Role.name == role))
        if user_type:
            stmt = stmt.where(User.user_type == user_type)
        if is_active is not None:
            stmt = stmt.where(User.is_active.is_(is_active))
        if search:
            term = f"%{search.strip()}%"
            stmt = stmt.where(
                or_(
                    User.first_name.ilike(term),
                    User.last_name.ilike(term),
                    User.email.ilike(term),
                    User.mobile.ilike(term),
                )
            )
        page = paginate_sql(self._session, stmt, params=params, order_by=[User.created_at.desc()])
        return page.map(UserOut.model_validate)

    def _resolve_roles(self, names: list[str]) -> list[Role]:
        stmt = select(Role).where(Role.name.in_(names))
        roles = list(self._session.execute(stmt).scalars())
        missing = sorted(set(names) - {role.name for role in roles})
        if missing:
            raise bad_request(f"Unknown role(s): {', '.join(missing)}")
        return roles

    def admin_update(self, *, actor: User, user_id: UUID, payload: AdminUserUpdate) -> User:
        user = self.get_user(user_id)
        if is_super_admin(user) and not is_super_admin(actor):
            raise forbidden("Only a super admin can modify a super admin")
        changes = payload.model_dump(exclude_unset=True)
        if "roles" in changes:
            names = changes.pop("roles") or []
            if RoleName.SUPER_ADMIN.value in names and not is_super_admin(actor):
                raise forbidden("Only a super admin can grant the super_admin role")
            user.roles = self._resolve_roles(names)
        for field, value in changes.items():
            setattr(user, field, value)
        self._session.flush()
        logger.info(
            "users.update.success",
            extra=log_context(user_id=user.id, actor_id=str(actor.id)),
        )
        return user

    def create_operational_user(self, *, actor: User, payload: OperationalUserCreate) -> User:
        if payload.role not in OPERATIONAL_ROLES:
            raise bad_request("Role must be one of: " + ", ".join(sorted(OPERATIONAL_ROLES)))
        if payload.role == RoleName.ADMIN.value and not is_super_admin(actor):
            raise forbidden("Only a super admin can create admin accounts")
        email = str(payload.email).lower()
        clashes = [User.email == email]
        if payload.mobile:
            clashes.append(User.mobile == payload.mobile)
        taken = select(User.id).where(User.is_deleted.is_(False), or_(*clashes))
        if self._session.execute(taken).first() is not None:
            raise conflict("An account with this email or mobile number already exists")
        user = User(
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=email,
            mobile=payload.mobile,
            password_hash=hash_password(payload.password),
            registration_method=RegistrationMethod.EMAIL,
            favorite_sport_ids=[],
            created_by_id=actor.id,
        )
        user.roles = self._resolve_roles([payload.role])
        self._session.add(user)
        self._session.flush()
        logger.info(
            "users.create.success",
            extra=log_context(user_id=user.id, actor_id=str(actor.id), role=payload.role),
        )
        return user

    def soft_delete(self, *, actor: User, user_id: UUID) -> None:
        user = self.get_user(user_id)
        if user.id == actor.id:
            raise conflict("You cannot delete your own account")
        if is_super_admin(user):
            raise forbidden("Super admin accounts cannot be deleted")
        user.soft_delete()
        user.email = None
        user.mobile = None
        self._session.flush()
        logger.info(
            "users.delete.success",
            extra=log_context(user_id=user.id, actor_id=str(actor.id)),
        )


__all__ = ["OPERATIONAL_ROLES", "UsersService"]
