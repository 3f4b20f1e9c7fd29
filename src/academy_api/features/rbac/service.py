"""Role and permission management plus the built-in role bootstrap."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from academy_api.common.errors import bad_request, conflict, not_found
from academy_api.common.logging import log_context
from academy_api.common.pagination import Page, PageParams, paginate_sql
from academy_api.features.users.models import User, user_roles

from .authorization import is_super_admin
from .models import Action, Permission, Role, RoleName, Section
from .registry import SYSTEM_ROLE_DEFINITIONS
from .schemas import (
    BulkPermissionUpdate,
    PermissionCreate,
    PermissionUpdate,
    RoleCreate,
    RoleMatrix,
    RoleUpdate,
)

logger = logging.getLogger(__name__)


def _action_values(actions: list[Action] | list[str]) -> list[str]:
    return [Action(action).value for action in actions]


class RbacService:
    def __init__(self, *, session: Session) -> None:
        self._session = session

    # ---- Bootstrap -------------------------------------------------------

    def sync_system_roles(self) -> None:
        """Ensure built-in roles exist; grants are only created when missing."""

        logger.debug("rbac.system_roles.sync.start")
        created = 0
        for definition in SYSTEM_ROLE_DEFINITIONS:
            role = self._role_by_name(definition.name)
            if role is None:
                role = Role(
                    name=definition.name,
                    description=definition.description,
                    visible_to_roles=list(definition.visible_to_roles),
                )
                self._session.add(role)
                self._session.flush()
                created += 1

            existing = {Section(permission.section) for permission in role.permissions}
            for section, actions in definition.grants:
                if section in existing:
                    continue
                role.permissions.append(
                    Permission(section=section, actions=_action_values(list(actions)))
                )
        self._session.flush()
        logger.debug("rbac.system_roles.sync.success", extra={"created": created})

    # ---- Roles -----------------------------------------------------------

    def _role_by_name(self, name: str) -> Role | None:
        return self._session.execute(select(Role).where(Role.name == name)).scalar_one_or_none()

    def get_role(self, role_id: UUID) -> Role:
        role = self._session.get(Role, role_id)
        if role is None:
            raise not_found("Role not found")
        return role

    def list_roles(self, *, actor: User) -> list[Role]:
        """Roles the caller may see.

        Super admins and admins see every role; other staff only see roles
        whose ``visible_to_roles`` names one of theirs.
        """

        roles = self._session.execute(select(Role).order_by(Role.name)).scalars().all()
        if actor.has_role(RoleName.SUPER_ADMIN.value, RoleName.ADMIN.value):
            return list(roles)
        held = set(actor.role_names)
        return [role for role in roles if held.intersection(role.visible_to_roles or [])]

    def user_counts(self, role_ids: list[UUID]) -> dict[UUID, int]:
        if not role_ids:
            return {}
        stmt = (
            select(user_roles.c.role_id, func.count())
            .where(user_roles.c.role_id.in_(role_ids))
            .group_by(user_roles.c.role_id)
        )
        return {role_id: int(count) for role_id, count in self._session.execute(stmt).all()}

    def _validate_visibility(self, names: list[str]) -> list[str]:
        cleaned = sorted({name.strip() for name in names if name.strip()})
        if not cleaned:
            return []
        stmt = select(Role.name).where(Role.name.in_(cleaned))
        known = set(self._session.execute(stmt).scalars())
        unknown = [name for name in cleaned if name not in known]
        if unknown:
            raise bad_request(f"Unknown roles: {', '.join(unknown)}")
        return cleaned

    def create_role(self, payload: RoleCreate) -> Role:
        if self._role_by_name(payload.name) is not None:
            raise conflict("Role already exists")
        role = Role(
            name=payload.name,
            description=payload.description,
            visible_to_roles=self._validate_visibility(payload.visible_to_roles),
        )
        self._session.add(role)
        self._session.flush()
        logger.info("rbac.role.created", extra=log_context(role=role.name))
        return role

    def update_role(self, role_id: UUID, payload: RoleUpdate) -> Role:
        role = self.get_role(role_id)
        fields = payload.model_fields_set
        if "description" in fields:
            role.description = payload.description
        if "visible_to_roles" in fields:
            role.visible_to_roles = self._validate_visibility(payload.visible_to_roles or [])
        self._session.flush()
        return role

    def delete_role(self, role_id: UUID) -> None:
        role = self.get_role(role_id)
        if role.is_system:
            raise bad_request("System roles cannot be deleted")
        if self.user_counts([role.id]).get(role.id):
            raise conflict("Role is assigned to one or more users")
        self._session.delete(role)
        self._session.flush()
        logger.info("rbac.role.deleted", extra=log_context(role=role.name))

    # ---- Permissions -----------------------------------------------------

    def get_permission(self, permission_id: UUID) -> Permission:
        permission = self._session.get(Permission, permission_id)
        if permission is None:
            raise not_found("Permission not found")
        return permission

    def list_permissions(
        self,
        *,
        actor: User,
        params: PageParams,
        role_id: UUID | None = None,
        section: Section | None = None,
    ) -> Page[Permission]:
        stmt = select(Permission)
        if not is_super_admin(actor):
            held = select(user_roles.c.role_id).where(user_roles.c.user_id == actor.id)
            stmt = stmt.where(Permission.role_id.in_(held))
        if role_id is not None:
            stmt = stmt.where(Permission.role_id == role_id)
        if section is not None:
            stmt = stmt.where(Permission.section == section)
        return paginate_sql(
            self._session,
            stmt,
            params=params,
            order_by=[Permission.role_id, Permission.section],
        )

    def create_permission(self, payload: PermissionCreate) -> Permission:
        role = self.get_role(payload.role_id)
        section = Section(payload.section)
        if any(Section(existing.section) is section for existing in role.permissions):
            raise conflict("Permission for this role and section already exists")
        permission = Permission(
            section=section,
            actions=_action_values(payload.actions),
            is_active=payload.is_active,
        )
        role.permissions.append(permission)
        self._session.flush()
        logger.info(
            "rbac.permission.created",
            extra=log_context(role=role.name, section=section.value),
        )
        return permission

    def update_permission(self, permission_id: UUID, payload: PermissionUpdate) -> Permission:
        permission = self.get_permission(permission_id)
        if payload.actions is not None:
            permission.actions = _action_values(payload.actions)
        if payload.is_active is not None:
            permission.is_active = payload.is_active
        self._session.flush()
        return permission

    def delete_permission(self, permission_id: UUID) -> None:
        permission = self.get_permission(permission_id)
        self._session.delete(permission)
        self._session.flush()

    def bulk_replace(self, payload: BulkPermissionUpdate) -> list[Permission]:
        role = self.get_role(payload.role_id)
        if role.name == RoleName.SUPER_ADMIN.value:
            raise bad_request("Super admin permissions are implicit")
        self._session.execute(delete(Permission).where(Permission.role_id == role.id))
        self._session.expire(role, ["permissions"])
        for grant in payload.permissions:
            self._session.add(
                Permission(
                    role_id=role.id,
                    section=Section(grant.section),
                    actions=_action_values(grant.actions),
                    is_active=grant.is_active,
                )
            )
        self._session.flush()
        self._session.refresh(role, attribute_names=["permissions"])
        logger.info(
            "rbac.permission.bulk_replaced",
            extra=log_context(role=role.name, count=len(payload.permissions)),
        )
        return list(role.permissions)

    def matrix(self) -> list[RoleMatrix]:
        """Sections by actions for every role that can reach the admin panel."""

        roles = self._session.execute(
            select(Role).where(Role.name != RoleName.USER.value).order_by(Role.name)
        ).scalars()
        result: list[RoleMatrix] = []
        for role in roles:
            grants: dict[str, list[str]] = {section.value: [] for section in Section}
            if role.name == RoleName.SUPER_ADMIN.value:
                grants = {section.value: _action_values(list(Action)) for section in Section}
            else:
                for permission in role.permissions:
                    if permission.is_active:
                        grants[Section(permission.section).value] = list(permission.actions)
            result.append(RoleMatrix(role_id=role.id, role_name=role.name, permissions=grants))
        return result

    @staticmethod
    def sections() -> list[str]:
        return [section.value for section in Section]


__all__ = ["RbacService"]
