from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from academy_api.api.deps import get_sports_service
from academy_api.common.pagination import PageParams, page_params
from academy_api.common.schema import ApiResponse, ok
from academy_api.core.auth import require_permission
from academy_api.features.rbac.models import Action, Section
from academy_api.features.users.models import User

from .schemas import SportCreate, SportOut, SportPage, SportUpdate
from .service import SportsService

public_router = APIRouter(prefix="/sports", tags=["sports"])
admin_router = APIRouter(prefix="/admin/sports", tags=["admin-sports"])

SportsServiceDep = Annotated[SportsService, Depends(get_sports_service)]
PageDep = Annotated[PageParams, Depends(page_params)]


@public_router.get("", response_model=ApiResponse[SportPage])
def list_sports(
    service: SportsServiceDep,
    params: PageDep,
    is_popular: Annotated[bool | None, Query()] = None,
    search: Annotated[str | None, Query(max_length=100)] = None,
):
    return ok(
        service.list_sports(params=params, active_only=True, is_popular=is_popular, search=search)
    )


@admin_router.get("", response_model=ApiResponse[SportPage])
def admin_list_sports(
    service: SportsServiceDep,
    _: Annotated[User, Depends(require_permission(Section.SPORT, Action.VIEW))],
    params: PageDep,
    is_popular: Annotated[bool | None, Query()] = None,
    search: Annotated[str | None, Query(max_length=100)] = None,
):
    return ok(service.list_sports(params=params, is_popular=is_popular, search=search))


@admin_router.get("/{sport_id}", response_model=ApiResponse[SportOut])
def admin_get_sport(
    sport_id: UUID,
    service: SportsServiceDep,
    _: Annotated[User, Depends(require_permission(Section.SPORT, Action.VIEW))],
):
    return ok(SportOut.model_validate(service.get(sport_id)))


@admin_router.post("", response_model=ApiResponse[SportOut], status_code=status.HTTP_201_CREATED)
def create_sport(
    payload: SportCreate,
    service: SportsServiceDep,
    _: Annotated[User, Depends(require_permission(Section.SPORT, Action.CREATE))],
):
    return ok(SportOut.model_validate(service.create(payload)), "Sport created successfully")


@admin_router.patch("/{sport_id}", response_model=ApiResponse[SportOut])
def update_sport(
    sport_id: UUID,
    payload: SportUpdate,
    service: SportsServiceDep,
    _: Annotated[User, Depends(require_permission(Section.SPORT, Action.UPDATE))],
):
    sport = service.update(sport_id, payload)
    return ok(SportOut.model_validate(sport), "Sport updated successfully")


@admin_router.delete("/{sport_id}", response_model=ApiResponse[None])
def delete_sport(
    sport_id: UUID,
    service: SportsServiceDep,
    _: Annotated[User, Depends(require_permission(Section.SPORT, Action.DELETE))],
):
    service.delete(sport_id)
    return ok(None, "Sport deleted successfully")


__all__ = ["admin_router", "public_router"]
