"""Role and section-permission tables."""

from __future__ import annotations

import uuid
from enum import Enum

from sqlalchemy import JSON, Boolean, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from academy_api.db import Base, TimestampMixin, UUIDPrimaryKeyMixin, UUIDType, enum_values


class RoleName(str, Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    ACADEMY = "academy"
    USER = "user"
    EMPLOYEE = "employee"


ADMIN_PANEL_ROLES: frozenset[str] = frozenset(
    {RoleName.SUPER_ADMIN.value, RoleName.ADMIN.value, RoleName.EMPLOYEE.value}
)
SYSTEM_ROLES: frozenset[str] = frozenset(role.value for role in RoleName)


class Section(str, Enum):
    COACHING_CENTER = "coaching_center"
    EMPLOYEE = "employee"
    BATCH = "batch"
    BOOKING = "booking"
    STUDENT = "student"
    PARTICIPANT = "participant"
    FEE_TYPE_CONFIG = "fee_type_config"
    SPORT = "sport"
    FACILITY = "facility"
    LOCATION = "location"
    SETTINGS = "settings"
    REEL = "reel"
    ROLE = "role"
    USER = "user"
    ACADEMY_AUTH = "academy_auth"
    USER_AUTH = "user_auth"
    PERMISSION = "permission"
    DASHBOARD = "dashboard"
    CMS_PAGE = "cms_page"
    BANNER = "banner"
    NOTIFICATION = "notification"
    TRANSACTION = "transaction"


class Action(str, Enum):
    VIEW = "view"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class Role(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    visible_to_roles: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    permissions: Mapped[list[Permission]] = relationship(
        "Permission",
        back_populates="role",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def is_system(self) -> bool:
        return self.name in SYSTEM_ROLES


class Permission(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Grants a set of actions on one section to one role."""

    __tablename__ = "permissions"
    __table_args__ = (UniqueConstraint("role_id", "section", name="permissions_role_section"),)

    role_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(), ForeignKey("roles.id", ondelete="CASCADE"), nullable=False
    )
    section: Mapped[Section] = mapped_column(
        SAEnum(Section, name="permission_section", native_enum=False, length=40,
               values_callable=enum_values),
        nullable=False,
    )
    actions: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    role: Mapped[Role] = relationship("Role", back_populates="permissions")


__all__ = [
    "ADMIN_PANEL_ROLES",
    "Action",
    "Permission",
    "Role",
    "RoleName",
    "SYSTEM_ROLES",
    "Section",
]
