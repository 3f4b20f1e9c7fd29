"""Bearer authentication and authorization dependencies."""

from .dependencies import (
    CurrentPrincipal,
    CurrentUser,
    get_current_principal,
    require_all_permissions,
    require_any_permission,
    require_auth,
    require_permission,
    require_roles,
)
from .principal import AuthenticatedPrincipal

__all__ = [
    "AuthenticatedPrincipal",
    "CurrentPrincipal",
    "CurrentUser",
    "get_current_principal",
    "require_all_permissions",
    "require_any_permission",
    "require_auth",
    "require_permission",
    "require_roles",
]
