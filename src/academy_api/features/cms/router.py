from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from academy_api.api.deps import get_cms_service
from academy_api.common.pagination import PageParams, page_params
from academy_api.common.schema import ApiResponse, ok
from academy_api.core.auth import require_permission
from academy_api.features.rbac.models import Action, Section
from academy_api.features.users.models import User

from .models import CmsPlatform
from .schemas import CmsPageCreate, CmsPageOut, CmsPagePage, CmsPagePublic, CmsPageUpdate
from .service import CmsService

admin_router = APIRouter(prefix="/admin/cms-pages", tags=["admin-cms"])
public_router = APIRouter(prefix="/cms", tags=["cms"])

CmsServiceDep = Annotated[CmsService, Depends(get_cms_service)]
PageDep = Annotated[PageParams, Depends(page_params)]
CmsViewer = Annotated[User, Depends(require_permission(Section.CMS_PAGE, Action.VIEW))]
CmsCreator = Annotated[User, Depends(require_permission(Section.CMS_PAGE, Action.CREATE))]
CmsEditor = Annotated[User, Depends(require_permission(Section.CMS_PAGE, Action.UPDATE))]
CmsRemover = Annotated[User, Depends(require_permission(Section.CMS_PAGE, Action.DELETE))]


@admin_router.get("", response_model=ApiResponse[CmsPagePage])
def list_cms_pages(
    service: CmsServiceDep,
    _: CmsViewer,
    params: PageDep,
    platform: Annotated[CmsPlatform | None, Query()] = None,
    is_active: Annotated[bool | None, Query()] = None,
    search: Annotated[str | None, Query(max_length=100)] = None,
):
    page = service.list_pages(params=params, platform=platform, is_active=is_active, search=search)
    return ok(page)


@admin_router.post("", response_model=ApiResponse[CmsPageOut], status_code=status.HTTP_201_CREATED)
def create_cms_page(payload: CmsPageCreate, service: CmsServiceDep, actor: CmsCreator):
    page = service.create(payload, actor=actor)
    return ok(CmsPageOut.model_validate(page), "CMS page created successfully")


@admin_router.get("/{page_id}", response_model=ApiResponse[CmsPageOut])
def get_cms_page(page_id: UUID, service: CmsServiceDep, _: CmsViewer):
    return ok(CmsPageOut.model_validate(service.get(page_id)))


@admin_router.patch("/{page_id}", response_model=ApiResponse[CmsPageOut])
def update_cms_page(
    page_id: UUID, payload: CmsPageUpdate, service: CmsServiceDep, actor: CmsEditor
):
    page = service.update(service.get(page_id), payload, actor=actor)
    return ok(CmsPageOut.model_validate(page), "CMS page updated successfully")


@admin_router.delete("/{page_id}", response_model=ApiResponse[None])
def delete_cms_page(page_id: UUID, service: CmsServiceDep, actor: CmsRemover):
    service.delete(service.get(page_id), actor=actor)
    return ok(None, "CMS page deleted successfully")


@public_router.get("/{slug}", response_model=ApiResponse[CmsPagePublic])
def get_public_cms_page(
    slug: str,
    service: CmsServiceDep,
    platform: Annotated[CmsPlatform | None, Query()] = None,
):
    return ok(CmsPagePublic.model_validate(service.get_published(slug, platform=platform)))


__all__ = ["admin_router", "public_router"]
