from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from academy_api.api.deps import get_banners_service
from academy_api.common.pagination import PageParams, page_params
from academy_api.common.schema import ApiResponse, ok
from academy_api.core.auth import require_permission
from academy_api.features.rbac.models import Action, Section
from academy_api.features.users.models import User

from .models import BannerAudience, BannerPosition, BannerStatus
from .schemas import BannerCreate, BannerOut, BannerPage, BannerPublic, BannerUpdate
from .service import BannersService

admin_router = APIRouter(prefix="/admin/banners", tags=["admin-banners"])
public_router = APIRouter(prefix="/banners", tags=["banners"])

BannersServiceDep = Annotated[BannersService, Depends(get_banners_service)]
PageDep = Annotated[PageParams, Depends(page_params)]
BannerViewer = Annotated[User, Depends(require_permission(Section.BANNER, Action.VIEW))]
BannerCreator = Annotated[User, Depends(require_permission(Section.BANNER, Action.CREATE))]
BannerEditor = Annotated[User, Depends(require_permission(Section.BANNER, Action.UPDATE))]
BannerRemover = Annotated[User, Depends(require_permission(Section.BANNER, Action.DELETE))]


@admin_router.get("", response_model=ApiResponse[BannerPage])
def list_banners(
    service: BannersServiceDep,
    _: BannerViewer,
    params: PageDep,
    position: Annotated[BannerPosition | None, Query()] = None,
    status_filter: Annotated[BannerStatus | None, Query(alias="status")] = None,
    is_active: Annotated[bool | None, Query()] = None,
    search: Annotated[str | None, Query(max_length=100)] = None,
):
    page = service.list_banners(
        params=params,
        position=position,
        status=status_filter,
        is_active=is_active,
        search=search,
    )
    return ok(page)


@admin_router.post("", response_model=ApiResponse[BannerOut], status_code=status.HTTP_201_CREATED)
def create_banner(payload: BannerCreate, service: BannersServiceDep, actor: BannerCreator):
    banner = service.create(payload, actor=actor)
    return ok(BannerOut.model_validate(banner), "Banner created successfully")


@admin_router.get("/{banner_id}", response_model=ApiResponse[BannerOut])
def get_banner(banner_id: UUID, service: BannersServiceDep, _: BannerViewer):
    return ok(BannerOut.model_validate(service.get(banner_id)))


@admin_router.patch("/{banner_id}", response_model=ApiResponse[BannerOut])
def update_banner(
    banner_id: UUID, payload: BannerUpdate, service: BannersServiceDep, actor: BannerEditor
):
    banner = service.update(service.get(banner_id), payload, actor=actor)
    return ok(BannerOut.model_validate(banner), "Banner updated successfully")


@admin_router.delete("/{banner_id}", response_model=ApiResponse[None])
def delete_banner(banner_id: UUID, service: BannersServiceDep, actor: BannerRemover):
    service.delete(service.get(banner_id), actor=actor)
    return ok(None, "Banner deleted successfully")


@public_router.get("", response_model=ApiResponse[list[BannerPublic]])
def list_active_banners(
    service: BannersServiceDep,
    position: Annotated[BannerPosition, Query()],
    sport_id: Annotated[UUID | None, Query()] = None,
    center_id: Annotated[UUID | None, Query()] = None,
    audience: Annotated[BannerAudience | None, Query()] = None,
    for_academy: Annotated[bool, Query()] = False,
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
):
    banners = service.active_for(
        position,
        sport_id=sport_id,
        center_id=center_id,
        audience=audience,
        for_academy=for_academy,
        limit=limit,
    )
    return ok([BannerPublic.model_validate(banner) for banner in banners])


@public_router.post("/{banner_id}/click", response_model=ApiResponse[None])
def track_banner_click(banner_id: UUID, service: BannersServiceDep):
    service.track_click(banner_id)
    return ok(None, "Click recorded")


@public_router.post("/{banner_id}/view", response_model=ApiResponse[None])
def track_banner_view(banner_id: UUID, service: BannersServiceDep):
    service.track_view(banner_id)
    return ok(None, "View recorded")


__all__ = ["admin_router", "public_router"]
