from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from academy_api.api.deps import get_batches_service
from academy_api.common.pagination import PageParams, page_params
from academy_api.common.schema import ApiResponse, ok
from academy_api.core.auth import require_permission, require_roles
from academy_api.features.centers.models import PublishStatus
from academy_api.features.rbac.models import Action, RoleName, Section
from academy_api.features.users.models import User

from .schemas import BatchCreate, BatchOut, BatchPage, BatchUpdate
from .service import BatchesService

academy_router = APIRouter(prefix="/academy/batches", tags=["academy-batches"])
admin_router = APIRouter(prefix="/admin/batches", tags=["admin-batches"])
public_router = APIRouter(prefix="/coaching-centers", tags=["coaching-centers"])

BatchesServiceDep = Annotated[BatchesService, Depends(get_batches_service)]
AcademyUser = Annotated[User, Depends(require_roles(RoleName.ACADEMY.value))]
PageDep = Annotated[PageParams, Depends(page_params)]


# ---- Academy ---------------------------------------------------------------


@academy_router.get("", response_model=ApiResponse[BatchPage])
def academy_list_batches(
    user: AcademyUser,
    service: BatchesServiceDep,
    params: PageDep,
    center_id: Annotated[UUID | None, Query()] = None,
    status_filter: Annotated[PublishStatus | None, Query(alias="status")] = None,
):
    page = service.list_for_owner(user, params=params, center_id=center_id, status=status_filter)
    return ok(page)


@academy_router.post("", response_model=ApiResponse[BatchOut], status_code=status.HTTP_201_CREATED)
def academy_create_batch(payload: BatchCreate, user: AcademyUser, service: BatchesServiceDep):
    batch = service.create(user, payload)
    return ok(BatchOut.model_validate(batch), "Batch created successfully")


@academy_router.get("/{batch_id}", response_model=ApiResponse[BatchOut])
def academy_get_batch(batch_id: UUID, user: AcademyUser, service: BatchesServiceDep):
    return ok(BatchOut.model_validate(service.get_owned(user, batch_id)))


@academy_router.patch("/{batch_id}", response_model=ApiResponse[BatchOut])
def academy_update_batch(
    batch_id: UUID, payload: BatchUpdate, user: AcademyUser, service: BatchesServiceDep
):
    batch = service.update(service.get_owned(user, batch_id), payload)
    return ok(BatchOut.model_validate(batch), "Batch updated successfully")


@academy_router.delete("/{batch_id}", response_model=ApiResponse[None])
def academy_delete_batch(batch_id: UUID, user: AcademyUser, service: BatchesServiceDep):
    service.delete(service.get_owned(user, batch_id))
    return ok(None, "Batch deleted successfully")


# ---- Admin -----------------------------------------------------------------


@admin_router.get("", response_model=ApiResponse[BatchPage])
def admin_list_batches(
    service: BatchesServiceDep,
    _: Annotated[User, Depends(require_permission(Section.BATCH, Action.VIEW))],
    params: PageDep,
    center_id: Annotated[UUID | None, Query()] = None,
    sport_id: Annotated[UUID | None, Query()] = None,
    status_filter: Annotated[PublishStatus | None, Query(alias="status")] = None,
    is_active: Annotated[bool | None, Query()] = None,
    search: Annotated[str | None, Query(max_length=100)] = None,
):
    page = service.list_admin(
        params=params,
        center_id=center_id,
        sport_id=sport_id,
        status=status_filter,
        is_active=is_active,
        search=search,
    )
    return ok(page)


@admin_router.get("/{batch_id}", response_model=ApiResponse[BatchOut])
def admin_get_batch(
    batch_id: UUID,
    service: BatchesServiceDep,
    _: Annotated[User, Depends(require_permission(Section.BATCH, Action.VIEW))],
):
    return ok(BatchOut.model_validate(service.get(batch_id)))


@admin_router.patch("/{batch_id}", response_model=ApiResponse[BatchOut])
def admin_update_batch(
    batch_id: UUID,
    payload: BatchUpdate,
    service: BatchesServiceDep,
    _: Annotated[User, Depends(require_permission(Section.BATCH, Action.UPDATE))],
):
    batch = service.update(service.get(batch_id), payload)
    return ok(BatchOut.model_validate(batch), "Batch updated successfully")


# ---- Public ----------------------------------------------------------------


@public_router.get("/{center_id}/batches", response_model=ApiResponse[list[BatchOut]])
def list_center_batches(center_id: UUID, service: BatchesServiceDep):
    return ok([BatchOut.model_validate(batch) for batch in service.list_public(center_id)])


__all__ = ["academy_router", "admin_router", "public_router"]
