from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from academy_api.api.deps import get_facilities_service
from academy_api.common.pagination import PageParams, page_params
from academy_api.common.schema import ApiResponse, ok
from academy_api.core.auth import require_permission
from academy_api.features.rbac.models import Action, Section
from academy_api.features.users.models import User

from .schemas import FacilityCreate, FacilityOut, FacilityPage, FacilityUpdate
from .service import FacilitiesService

public_router = APIRouter(prefix="/facilities", tags=["facilities"])
admin_router = APIRouter(prefix="/admin/facilities", tags=["admin-facilities"])

FacilitiesServiceDep = Annotated[FacilitiesService, Depends(get_facilities_service)]
PageDep = Annotated[PageParams, Depends(page_params)]


@public_router.get("", response_model=ApiResponse[FacilityPage])
def list_facilities(
    service: FacilitiesServiceDep,
    params: PageDep,
    search: Annotated[str | None, Query(max_length=100)] = None,
):
    return ok(service.list_facilities(params=params, active_only=True, search=search))


@admin_router.get("", response_model=ApiResponse[FacilityPage])
def admin_list_facilities(
    service: FacilitiesServiceDep,
    _: Annotated[User, Depends(require_permission(Section.FACILITY, Action.VIEW))],
    params: PageDep,
    search: Annotated[str | None, Query(max_length=100)] = None,
):
    return ok(service.list_facilities(params=params, search=search))


@admin_router.get("/{facility_id}", response_model=ApiResponse[FacilityOut])
def admin_get_facility(
    facility_id: UUID,
    service: FacilitiesServiceDep,
    _: Annotated[User, Depends(require_permission(Section.FACILITY, Action.VIEW))],
):
    return ok(FacilityOut.model_validate(service.get(facility_id)))


@admin_router.post("", response_model=ApiResponse[FacilityOut], status_code=status.HTTP_201_CREATED)
def create_facility(
    payload: FacilityCreate,
    service: FacilitiesServiceDep,
    _: Annotated[User, Depends(require_permission(Section.FACILITY, Action.CREATE))],
):
    return ok(FacilityOut.model_validate(service.create(payload)), "Facility created successfully")


@admin_router.patch("/{facility_id}", response_model=ApiResponse[FacilityOut])
def update_facility(
    facility_id: UUID,
    payload: FacilityUpdate,
    service: FacilitiesServiceDep,
    _: Annotated[User, Depends(require_permission(Section.FACILITY, Action.UPDATE))],
):
    facility = service.update(facility_id, payload)
    return ok(FacilityOut.model_validate(facility), "Facility updated successfully")


@admin_router.delete("/{facility_id}", response_model=ApiResponse[None])
def delete_facility(
    facility_id: UUID,
    service: FacilitiesServiceDep,
    _: Annotated[User, Depends(require_permission(Section.FACILITY, Action.DELETE))],
):
    service.delete(facility_id)
    return ok(None, "Facility deleted successfully")


__all__ = ["admin_router", "public_router"]
