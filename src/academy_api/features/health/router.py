"""Operational liveness/readiness endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status
from sqlalchemy import text

from academy_api.api.deps import ReadSessionDep, SettingsDep
from academy_api.common.errors import ApiError

from .schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Service liveness probe",
)
def read_liveness(settings: SettingsDep) -> HealthResponse:
    """Return liveness status without touching the database."""

    return HealthResponse(version=settings.app_version)


@router.get(
    "/ready",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Service readiness probe",
)
def read_readiness(settings: SettingsDep, db: ReadSessionDep) -> HealthResponse:
    try:
        db.execute(text("SELECT 1"))
    except Exception as exc:
        raise ApiError(status.HTTP_503_SERVICE_UNAVAILABLE, "Database unavailable") from exc
    return HealthResponse(version=settings.app_version)


__all__ = ["router"]
