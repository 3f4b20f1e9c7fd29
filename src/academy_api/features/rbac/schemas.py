"""Role and permission payloads."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from academy_api.common.pagination import Page
from academy_api.common.schema import BaseSchema, InputSchema

from .models import Action, Section


def _dedupe_actions(values: list[Action]) -> list[Action]:
    seen: list[Action] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


class RoleOut(BaseSchema):
    id: UUID
    name: str
    description: str | None = None
    visible_to_roles: list[str] = Field(default_factory=list)
    is_system: bool
    created_at: datetime
    updated_at: datetime


class RoleListItem(RoleOut):
    user_count: int = 0


class RoleCreate(InputSchema):
    name: str = Field(min_length=2, max_length=50, pattern=r"^[a-z][a-z0-9_]*$")
    description: str | None = Field(default=None, max_length=500)
    visible_to_roles: list[str] = Field(default_factory=list)


class RoleUpdate(InputSchema):
    description: str | None = Field(default=None, max_length=500)
    visible_to_roles: list[str] | None = None


class PermissionOut(BaseSchema):
    id: UUID
    role_id: UUID
    role_name: str | None = None
    section: Section
    actions: list[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime


class PermissionCreate(InputSchema):
    role_id: UUID
    section: Section
    actions: list[Action] = Field(min_length=1)
    is_active: bool = True

    _dedupe = field_validator("actions")(_dedupe_actions)


class PermissionUpdate(InputSchema):
    actions: list[Action] | None = Field(default=None, min_length=1)
    is_active: bool | None = None


class PermissionGrant(InputSchema):
    section: Section
    actions: list[Action] = Field(default_factory=list)
    is_active: bool = True

    _dedupe = field_validator("actions")(_dedupe_actions)


class BulkPermissionUpdate(InputSchema):
    """Replace every grant held by ``role_id``."""

    role_id: UUID
    permissions: list[PermissionGrant]

    @field_validator("permissions")
    @classmethod
    def _unique_sections(cls, value: list[PermissionGrant]) -> list[PermissionGrant]:
        sections = [grant.section for grant in value]
        if len(sections) != len(set(sections)):
            raise ValueError("Each section may only appear once")
        return value


class RoleMatrix(BaseSchema):
    role_id: UUID
    role_name: str
    permissions: dict[str, list[str]]


RolePage = Page[RoleOut]
PermissionPage = Page[PermissionOut]


__all__ = [
    "BulkPermissionUpdate",
    "PermissionCreate",
    "PermissionGrant",
    "PermissionOut",
    "PermissionPage",
    "PermissionUpdate",
    "RoleCreate",
    "RoleListItem",
    "RoleMatrix",
    "RoleOut",
    "RolePage",
    "RoleUpdate",
]
