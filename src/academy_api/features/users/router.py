from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from academy_api.api.deps import get_users_service
from academy_api.common.pagination import PageParams, page_params
from academy_api.common.schema import ApiResponse, ok
from academy_api.core.auth import require_permission
from academy_api.features.rbac.models import Action, Section

from .models import User, UserType
from .schemas import AdminUserUpdate, OperationalUserCreate, UserOut, UserPage
from .service import UsersService

router = APIRouter(prefix="/admin/users", tags=["admin-users"])

UsersServiceDep = Annotated[UsersService, Depends(get_users_service)]
PageDep = Annotated[PageParams, Depends(page_params)]


UserViewer = Annotated[User, Depends(require_permission(Section.USER, Action.VIEW))]
UserCreator = Annotated[User, Depends(require_permission(Section.USER, Action.CREATE))]
UserEditor = Annotated[User, Depends(require_permission(Section.USER, Action.UPDATE))]
UserRemover = Annotated[User, Depends(require_permission(Section.USER, Action.DELETE))]


@router.get("", response_model=ApiResponse[UserPage])
def list_users(
    service: UsersServiceDep,
    _: UserViewer,
    params: PageDep,
    role: Annotated[str | None, Query()] = None,
    user_type: Annotated[UserType | None, Query()] = None,
    is_active: Annotated[bool | None, Query()] = None,
    search: Annotated[str | None, Query(max_length=100)] = None,
):
    page = service.list_users(
        params=params,
        role=role,
        user_type=user_type,
        is_active=is_active,
        search=search,
    )
    return ok(page)


@router.post("", response_model=ApiResponse[UserOut], status_code=status.HTTP_201_CREATED)
def create_operational_user(
    payload: OperationalUserCreate,
    service: UsersServiceDep,
    actor: UserCreator,
):
    user = service.create_operational_user(actor=actor, payload=payload)
    return ok(UserOut.model_validate(user), "User created successfully")


@router.get("/{user_id}", response_model=ApiResponse[UserOut])
def get_user(user_id: UUID, service: UsersServiceDep, _: UserViewer):
    return ok(UserOut.model_validate(service.get_user(user_id)))


@router.patch("/{user_id}", response_model=ApiResponse[UserOut])
def update_user(
    user_id: UUID,
    payload: AdminUserUpdate,
    service: UsersServiceDep,
    actor: UserEditor,
):
    user = service.admin_update(actor=actor, user_id=user_id, payload=payload)
    return ok(UserOut.model_validate(user), "User updated successfully")


@router.delete("/{user_id}", response_model=ApiResponse[None])
def delete_user(user_id: UUID, service: UsersServiceDep, actor: UserRemover):
    service.soft_delete(actor=actor, user_id=user_id)
    return ok(None, "User deleted successfully")


__all__ = ["router"]
