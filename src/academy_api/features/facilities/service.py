from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from academy_api.common.errors import conflict, not_found
from academy_api.common.logging import log_context
from academy_api.common.pagination import Page, PageParams, paginate_sql

from .models import Facility
from .schemas import FacilityCreate, FacilityOut, FacilityUpdate

logger = logging.getLogger(__name__)


class FacilitiesService:
    def __init__(self, *, session: Session) -> None:
        self._session = session

    def get(self, facility_id: UUID) -> Facility:
        facility = self._session.get(Facility, facility_id)
        if facility is None:
            raise not_found("Facility not found")
        return facility

    def list_facilities(
        self, *, params: PageParams, active_only: bool = False, search: str | None = None
    ) -> Page[FacilityOut]:
        stmt = select(Facility)
        if active_only:
            stmt = stmt.where(Facility.is_active.is_(True))
        if search:
            stmt = stmt.where(Facility.name.ilike(f"%{search.strip()}%"))
        page = paginate_sql(self._session, stmt, params=params, order_by=[Facility.name])
        return page.map(FacilityOut.model_validate)

    def _ensure_name_free(self, name: str, exclude: UUID | None = None) -> None:
        stmt = select(Facility.id).where(func.lower(Facility.name) == name.lower())
        if exclude is not None:
            stmt = stmt.where(Facility.id != exclude)
        if self._session.execute(stmt).first() is not None:
            raise conflict("A facility with this name already exists")

    def create(self, payload: FacilityCreate) -> Facility:
        self._ensure_name_free(payload.name)
        facility = Facility(**payload.model_dump())
        self._session.add(facility)
        self._session.flush()
        logger.info("facility.create.success", extra=log_context(facility_id=str(facility.id)))
        return facility

    def update(self, facility_id: UUID, payload: FacilityUpdate) -> Facility:
        facility = self.get(facility_id)
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("name"):
            self._ensure_name_free(changes["name"], exclude=facility.id)
        for field, value in changes.items():
            if value is None and field in {"name", "is_active"}:
                continue
            setattr(facility, field, value)
        self._session.flush()
        return facility

    def delete(self, facility_id: UUID) -> None:
        facility = self.get(facility_id)
        self._session.delete(facility)
        self._session.flush()
        logger.info("facility.delete.success", extra=log_context(facility_id=str(facility_id)))


__all__ = ["FacilitiesService"]
