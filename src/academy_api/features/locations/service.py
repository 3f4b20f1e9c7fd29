"""Country, state and city reference data.

Names are unique within their parent. Creating a location whose name matches
a soft-deleted row revives that row instead of inserting a duplicate.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from academy_api.common.errors import conflict, not_found
from academy_api.common.logging import log_context

from .models import City, Country, State
from .schemas import (
    CityCreate,
    CityUpdate,
    CountryCreate,
    CountryUpdate,
    StateCreate,
    StateUpdate,
)

logger = logging.getLogger(__name__)

LocationT = TypeVar("LocationT", Country, State, City)


class LocationsService:
    def __init__(self, *, session: Session) -> None:
        self._session = session

    # ---- Shared ----------------------------------------------------------

    def _get(self, model: type[LocationT], row_id: UUID, label: str) -> LocationT:
        row = self._session.get(model, row_id)
        if row is None or row.is_deleted:
            raise not_found(f"{label} not found")
        return row

    def _find_by_name(self, model: type[LocationT], name: str, **parent: Any) -> LocationT | None:
        stmt = select(model).where(func.lower(model.name) == name.strip().lower())
        for column, value in parent.items():
            stmt = stmt.where(getattr(model, column) == value)
        return self._session.execute(stmt).unique().scalar_one_or_none()

    def _create(self, model: type[LocationT], label: str, values: dict[str, Any], **parent: Any):
        existing = self._find_by_name(model, values["name"], **parent)
        if existing is not None and not existing.is_deleted:
            raise conflict(f"{label} already exists")
        if existing is not None:
            row = existing
            row.is_deleted = False
            row.is_active = True
            row.deleted_at = None
            for field, value in values.items():
                setattr(row, field, value)
        else:
            row = model(**values, **parent)
            self._session.add(row)
        self._session.flush()
        logger.info(
            "location.create.success",
            extra=log_context(kind=label.lower(), location_id=str(row.id)),
        )
        return row

    def _update(self, row, label: str, changes: dict[str, Any], **parent: Any):
        if changes.get("name"):
            clash = self._find_by_name(type(row), changes["name"], **parent)
            if clash is not None and clash.id != row.id:
                raise conflict(f"{label} already exists")
        for field, value in changes.items():
            if value is None and field in {"name", "is_active"}:
                continue
            setattr(row, field, value)
        self._session.flush()
        return row

    def _active(self, model: type[LocationT], include_inactive: bool):
        stmt = select(model).where(model.is_deleted.is_(False))
        if not include_inactive:
            stmt = stmt.where(model.is_active.is_(True))
        return stmt

    # ---- Countries -------------------------------------------------------

    def list_countries(self, *, include_inactive: bool = False) -> list[Country]:
        stmt = self._active(Country, include_inactive).order_by(Country.name)
        return list(self._session.execute(stmt).scalars())

    def create_country(self, payload: CountryCreate) -> Country:
        values = payload.model_dump()
        if values.get("iso_code"):
            values["iso_code"] = values["iso_code"].upper()
        return self._create(Country, "Country", values)

    def update_country(self, country_id: UUID, payload: CountryUpdate) -> Country:
        country = self._get(Country, country_id, "Country")
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("iso_code"):
            changes["iso_code"] = changes["iso_code"].upper()
        return self._update(country, "Country", changes)

    def delete_country(self, country_id: UUID) -> None:
        self._get(Country, country_id, "Country").soft_delete()
        self._session.flush()

    # ---- States ----------------------------------------------------------

    def list_states(
        self, *, country_id: UUID | None, include_inactive: bool = False
    ) -> list[State]:
        stmt = self._active(State, include_inactive)
        if country_id is not None:
            stmt = stmt.where(State.country_id == country_id)
        return list(self._session.execute(stmt.order_by(State.name)).unique().scalars())

    def create_state(self, payload: StateCreate) -> State:
        self._get(Country, payload.country_id, "Country")
        values = payload.model_dump(exclude={"country_id"})
        return self._create(State, "State", values, country_id=payload.country_id)

    def update_state(self, state_id: UUID, payload: StateUpdate) -> State:
        state = self._get(State, state_id, "State")
        changes = payload.model_dump(exclude_unset=True)
        return self._update(state, "State", changes, country_id=state.country_id)

    def delete_state(self, state_id: UUID) -> None:
        self._get(State, state_id, "State").soft_delete()
        self._session.flush()

    # ---- Cities ----------------------------------------------------------

    def list_cities(self, *, state_id: UUID | None, include_inactive: bool = False) -> list[City]:
        stmt = self._active(City, include_inactive)
        if state_id is not None:
            stmt = stmt.where(City.state_id == state_id)
        return list(self._session.execute(stmt.order_by(City.name)).unique().scalars())

    def create_city(self, payload: CityCreate) -> City:
        self._get(State, payload.state_id, "State")
        values = payload.model_dump(exclude={"state_id"})
        return self._create(City, "City", values, state_id=payload.state_id)

    def update_city(self, city_id: UUID, payload: CityUpdate) -> City:
        city = self._get(City, city_id, "City")
        changes = payload.model_dump(exclude_unset=True)
        return self._update(city, "City", changes, state_id=city.state_id)

    def delete_city(self, city_id: UUID) -> None:
        self._get(City, city_id, "City").soft_delete()
        self._session.flush()


__all__ = ["LocationsService"]
