from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from academy_api.api.deps import get_centers_service
from academy_api.common.pagination import PageParams, page_params
from academy_api.common.schema import ApiResponse, ok
from academy_api.core.auth import require_permission, require_roles
from academy_api.features.batches.schemas import BatchOut
from academy_api.features.rbac.models import Action, RoleName, Section
from academy_api.features.users.models import User

from .models import ApprovalStatus, PublishStatus
from .schemas import (
    CenterActivation,
    CenterApproval,
    CenterCreate,
    CenterOut,
    CenterPage,
    CenterPublicOut,
    CenterPublicPage,
    CenterUpdate,
)
from .service import CentersService

academy_router = APIRouter(prefix="/academy/coaching-centers", tags=["academy-centers"])
admin_router = APIRouter(prefix="/admin/coaching-centers", tags=["admin-centers"])
public_router = APIRouter(prefix="/coaching-centers", tags=["coaching-centers"])

CentersServiceDep = Annotated[CentersService, Depends(get_centers_service)]
AcademyUser = Annotated[User, Depends(require_roles(RoleName.ACADEMY.value))]
PageDep = Annotated[PageParams, Depends(page_params)]
CenterViewer = Annotated[User, Depends(require_permission(Section.COACHING_CENTER, Action.VIEW))]
CenterEditor = Annotated[
    User, Depends(require_permission(Section.COACHING_CENTER, Action.UPDATE))
]


class CenterDetail(CenterPublicOut):
    batches: list[BatchOut] = []


# ---- Academy ---------------------------------------------------------------


@academy_router.get("", response_model=ApiResponse[CenterPage])
def academy_list_centers(
    user: AcademyUser,
    service: CentersServiceDep,
    params: PageDep,
    status_filter: Annotated[PublishStatus | None, Query(alias="status")] = None,
    search: Annotated[str | None, Query(max_length=100)] = None,
):
    return ok(service.list_owned(user, params=params, status=status_filter, search=search))


@academy_router.post(
    "", response_model=ApiResponse[CenterOut], status_code=status.HTTP_201_CREATED
)
def academy_create_center(payload: CenterCreate, user: AcademyUser, service: CentersServiceDep):
    center = service.create(user, payload)
    return ok(CenterOut.model_validate(center), "Coaching center created successfully")


@academy_router.get("/{center_id}", response_model=ApiResponse[CenterOut])
def academy_get_center(center_id: UUID, user: AcademyUser, service: CentersServiceDep):
    return ok(CenterOut.model_validate(service.get_owned(user, center_id)))


@academy_router.patch("/{center_id}", response_model=ApiResponse[CenterOut])
def academy_update_center(
    center_id: UUID, payload: CenterUpdate, user: AcademyUser, service: CentersServiceDep
):
    center = service.update(service.get_owned(user, center_id), payload)
    return ok(CenterOut.model_validate(center), "Coaching center updated successfully")


@academy_router.delete("/{center_id}", response_model=ApiResponse[None])
def academy_delete_center(center_id: UUID, user: AcademyUser, service: CentersServiceDep):
    service.delete(service.get_owned(user, center_id))
    return ok(None, "Coaching center deleted successfully")


# ---- Admin -----------------------------------------------------------------


@admin_router.get("", response_model=ApiResponse[CenterPage])
def admin_list_centers(
    service: CentersServiceDep,
    _: CenterViewer,
    params: PageDep,
    status_filter: Annotated[PublishStatus | None, Query(alias="status")] = None,
    approval_status: Annotated[ApprovalStatus | None, Query()] = None,
    is_active: Annotated[bool | None, Query()] = None,
    owner_id: Annotated[UUID | None, Query()] = None,
    sport_id: Annotated[UUID | None, Query()] = None,
    search: Annotated[str | None, Query(max_length=100)] = None,
):
    page = service.list_admin(
        params=params,
        status=status_filter,
        approval_status=approval_status,
        is_active=is_active,
        owner_id=owner_id,
        sport_id=sport_id,
        search=search,
    )
    return ok(page)


@admin_router.get("/{center_id}", response_model=ApiResponse[CenterOut])
def admin_get_center(center_id: UUID, service: CentersServiceDep, _: CenterViewer):
    return ok(CenterOut.model_validate(service.get(center_id)))


@admin_router.patch("/{center_id}", response_model=ApiResponse[CenterOut])
def admin_update_center(
    center_id: UUID, payload: CenterUpdate, service: CentersServiceDep, _: CenterEditor
):
    center = service.update(service.get(center_id), payload)
    return ok(CenterOut.model_validate(center), "Coaching center updated successfully")


@admin_router.patch("/{center_id}/approval", response_model=ApiResponse[CenterOut])
def admin_set_center_approval(
    center_id: UUID, payload: CenterApproval, service: CentersServiceDep, actor: CenterEditor
):
    center = service.set_approval(service.get(center_id), payload, actor=actor)
    return ok(CenterOut.model_validate(center), "Approval status updated")


@admin_router.patch("/{center_id}/status", response_model=ApiResponse[CenterOut])
def admin_set_center_active(
    center_id: UUID, payload: CenterActivation, service: CentersServiceDep, actor: CenterEditor
):
    center = service.set_active(service.get(center_id), payload.is_active, actor=actor)
    message = "Coaching center activated" if payload.is_active else "Coaching center deactivated"
    return ok(CenterOut.model_validate(center), message)


# ---- Public ----------------------------------------------------------------


@public_router.get("", response_model=ApiResponse[CenterPublicPage])
def list_public_centers(
    service: CentersServiceDep,
    params: PageDep,
    sport_id: Annotated[UUID | None, Query()] = None,
    search: Annotated[str | None, Query(max_length=100)] = None,
):
    return ok(service.list_public(params=params, sport_id=sport_id, search=search))


@public_router.get("/{center_id}", response_model=ApiResponse[CenterDetail])
def get_public_center(center_id: UUID, service: CentersServiceDep):
    center = service.get_public(center_id)
    detail = CenterDetail.model_validate(center)
    detail.batches = [BatchOut.model_validate(batch) for batch in service.published_batches(center)]
    return ok(detail)


__all__ = ["academy_router", "admin_router", "public_router"]
