"""Built-in roles and the grants they start with."""

from __future__ import annotations

from dataclasses import dataclass

from .models import Action, RoleName, Section

ALL_ACTIONS: tuple[Action, ...] = tuple(Action)
READ_ONLY: tuple[Action, ...] = (Action.VIEW,)


@dataclass(frozen=True, slots=True)
class RoleDefinition:
    name: str
    description: str
    visible_to_roles: tuple[str, ...] = ()
    grants: tuple[tuple[Section, tuple[Action, ...]], ...] = ()


_ADMIN_GRANTS = tuple(
    (section, ALL_ACTIONS)
    for section in Section
    if section not in {Section.ROLE, Section.PERMISSION}
) + ((Section.ROLE, READ_ONLY), (Section.PERMISSION, READ_ONLY))

_EMPLOYEE_GRANTS: tuple[tuple[Section, tuple[Action, ...]], ...] = (
    (Section.DASHBOARD, READ_ONLY),
    (Section.COACHING_CENTER, (Action.VIEW, Action.CREATE, Action.UPDATE)),
    (Section.BATCH, (Action.VIEW, Action.CREATE, Action.UPDATE)),
    (Section.BOOKING, READ_ONLY),
    (Section.STUDENT, READ_ONLY),
    (Section.PARTICIPANT, READ_ONLY),
    (Section.SPORT, READ_ONLY),
    (Section.FACILITY, READ_ONLY),
    (Section.LOCATION, READ_ONLY),
    (Section.FEE_TYPE_CONFIG, READ_ONLY),
)

SYSTEM_ROLE_DEFINITIONS: tuple[RoleDefinition, ...] = (
    RoleDefinition(
        name=RoleName.SUPER_ADMIN.value,
        description="Full access to every section",
    ),
    RoleDefinition(
        name=RoleName.ADMIN.value,
        description="Platform administration",
        visible_to_roles=(RoleName.SUPER_ADMIN.value,),
        grants=_ADMIN_GRANTS,
    ),
    RoleDefinition(
        name=RoleName.EMPLOYEE.value,
        description="Operations staff",
        visible_to_roles=(RoleName.SUPER_ADMIN.value, RoleName.ADMIN.value),
        grants=_EMPLOYEE_GRANTS,
    ),
    RoleDefinition(
        name=RoleName.ACADEMY.value,
        description="Coaching center owners",
        visible_to_roles=(RoleName.SUPER_ADMIN.value, RoleName.ADMIN.value),
    ),
    RoleDefinition(
        name=RoleName.USER.value,
        description="Students and guardians",
        visible_to_roles=(RoleName.SUPER_ADMIN.value, RoleName.ADMIN.value),
    ),
)


__all__ = ["ALL_ACTIONS", "READ_ONLY", "RoleDefinition", "SYSTEM_ROLE_DEFINITIONS"]
