"""Evaluate section/action grants for a loaded user."""

from __future__ import annotations

from collections.abc import Iterable

from academy_api.features.users.models import User

from .models import Action, RoleName, Section


def is_super_admin(user: User) -> bool:
    return user.has_role(RoleName.SUPER_ADMIN.value)


def effective_permissions(user: User) -> dict[str, set[str]]:
    """Union of active grants across every role held by ``user``."""

    grants: dict[str, set[str]] = {}
    for role in user.roles:
        for permission in role.permissions:
            if not permission.is_active:
                continue
            section = Section(permission.section).value
            grants.setdefault(section, set()).update(permission.actions or [])
    return grants


def has_permission(user: User, section: Section | str, action: Action | str) -> bool:
    if is_super_admin(user):
        return True
    section_key = section.value if isinstance(section, Section) else section
    action_key = action.value if isinstance(action, Action) else action
    return action_key in effective_permissions(user).get(section_key, set())


def has_any_permission(
    user: User, section: Section | str, actions: Iterable[Action | str]
) -> bool:
    return any(has_permission(user, section, action) for action in actions)


def has_all_permissions(
    user: User, section: Section | str, actions: Iterable[Action | str]
) -> bool:
    return all(has_permission(user, section, action) for action in actions)


def permission_matrix(user: User) -> dict[str, list[str]]:
    """Sections mapped to allowed actions, with every section present."""

    if is_super_admin(user):
        everything = [action.value for action in Action]
        return {section.value: list(everything) for section in Section}
    grants = effective_permissions(user)
    return {
        section.value: [
            action.value for action in Action if action.value in grants.get(section.value, set())
        ]
        for section in Section
    }


__all__ = [
    "effective_permissions",
    "has_all_permissions",
    "has_any_permission",
    "has_permission",
    "is_super_admin",
    "permission_matrix",
]
