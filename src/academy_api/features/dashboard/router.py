from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from academy_api.api.deps import get_dashboard_service
from academy_api.common.schema import ApiResponse, ok
from academy_api.core.auth import require_permission, require_roles
from academy_api.features.rbac.models import Action, RoleName, Section
from academy_api.features.users.models import User

from .schemas import AcademyDashboard, AdminDashboard
from .service import DashboardService

admin_router = APIRouter(prefix="/admin/dashboard", tags=["admin-dashboard"])
academy_router = APIRouter(prefix="/academy/dashboard", tags=["academy-dashboard"])

DashboardServiceDep = Annotated[DashboardService, Depends(get_dashboard_service)]
DashboardViewer = Annotated[User, Depends(require_permission(Section.DASHBOARD, Action.VIEW))]
AcademyUser = Annotated[User, Depends(require_roles(RoleName.ACADEMY.value))]


@admin_router.get("/stats", response_model=ApiResponse[AdminDashboard])
def admin_dashboard_stats(service: DashboardServiceDep, _: DashboardViewer):
    return ok(service.admin_stats())


@academy_router.get("", response_model=ApiResponse[AcademyDashboard])
def academy_dashboard(user: AcademyUser, service: DashboardServiceDep):
    return ok(service.academy_stats(user))


__all__ = ["academy_router", "admin_router"]
