from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from academy_api.api.deps import get_fee_types_service
from academy_api.common.schema import ApiResponse, ok
from academy_api.core.auth import require_permission, require_roles
from academy_api.features.rbac.models import Action, RoleName, Section
from academy_api.features.users.models import User

from .schemas import FeeTypeConfigCreate, FeeTypeConfigOut, FeeTypeConfigUpdate
from .service import FeeTypesService

admin_router = APIRouter(prefix="/admin/fee-type-configs", tags=["admin-fee-types"])
academy_router = APIRouter(prefix="/academy/fee-type-configs", tags=["academy-fee-types"])

FeeTypesServiceDep = Annotated[FeeTypesService, Depends(get_fee_types_service)]


@academy_router.get("", response_model=ApiResponse[list[FeeTypeConfigOut]])
def academy_list_fee_types(
    service: FeeTypesServiceDep,
    _: Annotated[User, Depends(require_roles(RoleName.ACADEMY.value))],
):
    configs = service.list_configs(active_only=True)
    return ok([FeeTypeConfigOut.model_validate(config) for config in configs])


@admin_router.get("", response_model=ApiResponse[list[FeeTypeConfigOut]])
def admin_list_fee_types(
    service: FeeTypesServiceDep,
    _: Annotated[User, Depends(require_permission(Section.FEE_TYPE_CONFIG, Action.VIEW))],
):
    return ok([FeeTypeConfigOut.model_validate(config) for config in service.list_configs()])


@admin_router.get("/{config_id}", response_model=ApiResponse[FeeTypeConfigOut])
def admin_get_fee_type(
    config_id: UUID,
    service: FeeTypesServiceDep,
    _: Annotated[User, Depends(require_permission(Section.FEE_TYPE_CONFIG, Action.VIEW))],
):
    return ok(FeeTypeConfigOut.model_validate(service.get(config_id)))


@admin_router.post(
    "", response_model=ApiResponse[FeeTypeConfigOut], status_code=status.HTTP_201_CREATED
)
def create_fee_type(
    payload: FeeTypeConfigCreate,
    service: FeeTypesServiceDep,
    _: Annotated[User, Depends(require_permission(Section.FEE_TYPE_CONFIG, Action.CREATE))],
):
    config = service.create(payload)
    return ok(FeeTypeConfigOut.model_validate(config), "Fee type configuration created")


@admin_router.patch("/{config_id}", response_model=ApiResponse[FeeTypeConfigOut])
def update_fee_type(
    config_id: UUID,
    payload: FeeTypeConfigUpdate,
    service: FeeTypesServiceDep,
    _: Annotated[User, Depends(require_permission(Section.FEE_TYPE_CONFIG, Action.UPDATE))],
):
    config = service.update(config_id, payload)
    return ok(FeeTypeConfigOut.model_validate(config), "Fee type configuration updated")


@admin_router.delete("/{config_id}", response_model=ApiResponse[None])
def delete_fee_type(
    config_id: UUID,
    service: FeeTypesServiceDep,
    _: Annotated[User, Depends(require_permission(Section.FEE_TYPE_CONFIG, Action.DELETE))],
):
    service.delete(config_id)
    return ok(None, "Fee type configuration deleted")


__all__ = ["academy_router", "admin_router"]
