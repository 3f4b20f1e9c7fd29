from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from academy_api.api.deps import get_rbac_service
from academy_api.common.pagination import PageParams, page_params
from academy_api.common.schema import ApiResponse, ok
from academy_api.core.auth import CurrentUser, require_permission, require_roles
from academy_api.features.users.models import User

from .authorization import permission_matrix
from .models import Action, Permission, Role, RoleName, Section
from .schemas import (
    BulkPermissionUpdate,
    PermissionCreate,
    PermissionOut,
    PermissionPage,
    PermissionUpdate,
    RoleCreate,
    RoleListItem,
    RoleMatrix,
    RoleOut,
    RoleUpdate,
)
from .service import RbacService

roles_router = APIRouter(prefix="/admin/roles", tags=["admin-roles"])
permissions_router = APIRouter(prefix="/admin/permissions", tags=["admin-permissions"])

RbacServiceDep = Annotated[RbacService, Depends(get_rbac_service)]
PageDep = Annotated[PageParams, Depends(page_params)]
SuperAdmin = Annotated[User, Depends(require_roles(RoleName.SUPER_ADMIN.value))]


def _serialize_role(role: Role, user_count: int = 0) -> RoleListItem:
    item = RoleListItem.model_validate(role)
    item.user_count = user_count
    return item


def _serialize_permission(permission: Permission) -> PermissionOut:
    out = PermissionOut.model_validate(permission)
    out.role_name = permission.role.name if permission.role is not None else None
    return out


# ---- Roles -----------------------------------------------------------------


@roles_router.get("", response_model=ApiResponse[list[RoleListItem]])
def list_roles(
    service: RbacServiceDep,
    user: Annotated[User, Depends(require_permission(Section.ROLE, Action.VIEW))],
):
    roles = service.list_roles(actor=user)
    counts = service.user_counts([role.id for role in roles])
    return ok([_serialize_role(role, counts.get(role.id, 0)) for role in roles])


@roles_router.get("/{role_id}", response_model=ApiResponse[RoleOut])
def get_role(
    role_id: UUID,
    service: RbacServiceDep,
    _: Annotated[User, Depends(require_permission(Section.ROLE, Action.VIEW))],
):
    return ok(RoleOut.model_validate(service.get_role(role_id)))


@roles_router.post("", response_model=ApiResponse[RoleOut], status_code=status.HTTP_201_CREATED)
def create_role(payload: RoleCreate, service: RbacServiceDep, _: SuperAdmin):
    role = service.create_role(payload)
    return ok(RoleOut.model_validate(role), "Role created successfully")


@roles_router.patch("/{role_id}", response_model=ApiResponse[RoleOut])
def update_role(role_id: UUID, payload: RoleUpdate, service: RbacServiceDep, _: SuperAdmin):
    role = service.update_role(role_id, payload)
    return ok(RoleOut.model_validate(role), "Role updated successfully")


@roles_router.delete("/{role_id}", response_model=ApiResponse[None])
def delete_role(role_id: UUID, service: RbacServiceDep, _: SuperAdmin):
    service.delete_role(role_id)
    return ok(None, "Role deleted successfully")


# ---- Permissions -----------------------------------------------------------


@permissions_router.get("", response_model=ApiResponse[PermissionPage])
def list_permissions(
    service: RbacServiceDep,
    user: CurrentUser,
    params: PageDep,
    role_id: Annotated[UUID | None, Query()] = None,
    section: Annotated[Section | None, Query()] = None,
):
    page = service.list_permissions(actor=user, params=params, role_id=role_id, section=section)
    return ok(page.map(_serialize_permission))


@permissions_router.get("/sections", response_model=ApiResponse[list[str]])
def list_sections(_: CurrentUser):
    return ok(RbacService.sections())


@permissions_router.get("/matrix", response_model=ApiResponse[list[RoleMatrix]])
def permissions_matrix(
    service: RbacServiceDep,
    _: Annotated[User, Depends(require_permission(Section.PERMISSION, Action.VIEW))],
):
    return ok(service.matrix())


@permissions_router.get("/me", response_model=ApiResponse[dict[str, list[str]]])
def my_permissions(user: CurrentUser):
    return ok(permission_matrix(user))


@permissions_router.post("/bulk", response_model=ApiResponse[list[PermissionOut]])
def bulk_update_permissions(
    payload: BulkPermissionUpdate, service: RbacServiceDep, _: SuperAdmin
):
    permissions = service.bulk_replace(payload)
    return ok(
        [_serialize_permission(permission) for permission in permissions],
        "Permissions updated successfully",
    )


@permissions_router.post(
    "", response_model=ApiResponse[PermissionOut], status_code=status.HTTP_201_CREATED
)
def create_permission(payload: PermissionCreate, service: RbacServiceDep, _: SuperAdmin):
    permission = service.create_permission(payload)
    return ok(_serialize_permission(permission), "Permission created successfully")


@permissions_router.patch("/{permission_id}", response_model=ApiResponse[PermissionOut])
def update_permission(
    permission_id: UUID, payload: PermissionUpdate, service: RbacServiceDep, _: SuperAdmin
):
    permission = service.update_permission(permission_id, payload)
    return ok(_serialize_permission(permission), "Permission updated successfully")


@permissions_router.delete("/{permission_id}", response_model=ApiResponse[None])
def delete_permission(permission_id: UUID, service: RbacServiceDep, _: SuperAdmin):
    service.delete_permission(permission_id)
    return ok(None, "Permission deleted successfully")


__all__ = ["permissions_router", "roles_router"]
