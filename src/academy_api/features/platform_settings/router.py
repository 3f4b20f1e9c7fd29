from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from academy_api.api.deps import get_platform_settings_service
from academy_api.common.schema import ApiResponse, ok
from academy_api.core.auth import require_permission
from academy_api.features.rbac.models import Action, Section
from academy_api.features.users.models import User

from .schemas import PlatformSettingsOut, PlatformSettingsUpdate, PublicSettingsOut
from .service import PlatformSettingsService

admin_router = APIRouter(prefix="/admin/settings", tags=["admin-settings"])
public_router = APIRouter(prefix="/settings", tags=["settings"])

SettingsServiceDep = Annotated[PlatformSettingsService, Depends(get_platform_settings_service)]
SettingsViewer = Annotated[User, Depends(require_permission(Section.SETTINGS, Action.VIEW))]
SettingsEditor = Annotated[User, Depends(require_permission(Section.SETTINGS, Action.UPDATE))]


@admin_router.get("", response_model=ApiResponse[PlatformSettingsOut])
def get_platform_settings(service: SettingsServiceDep, _: SettingsViewer):
    return ok(service.current())


@admin_router.patch("", response_model=ApiResponse[PlatformSettingsOut])
def update_platform_settings(
    payload: PlatformSettingsUpdate, service: SettingsServiceDep, actor: SettingsEditor
):
    return ok(service.update(payload, actor=actor), "Settings updated successfully")


@public_router.get("", response_model=ApiResponse[PublicSettingsOut])
def get_public_settings(service: SettingsServiceDep):
    return ok(service.public())


__all__ = ["admin_router", "public_router"]
