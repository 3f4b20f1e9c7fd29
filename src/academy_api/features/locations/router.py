from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from academy_api.api.deps import get_locations_service
from academy_api.common.schema import ApiResponse, ok
from academy_api.core.auth import require_permission
from academy_api.features.rbac.models import Action, Section
from academy_api.features.users.models import User

from .schemas import (
    CityCreate,
    CityOut,
    CityUpdate,
    CountryCreate,
    CountryOut,
    CountryUpdate,
    StateCreate,
    StateOut,
    StateUpdate,
)
from .service import LocationsService

public_router = APIRouter(prefix="/locations", tags=["locations"])
admin_router = APIRouter(prefix="/admin/locations", tags=["admin-locations"])

LocationsServiceDep = Annotated[LocationsService, Depends(get_locations_service)]
LocationViewer = Annotated[User, Depends(require_permission(Section.LOCATION, Action.VIEW))]
LocationCreator = Annotated[User, Depends(require_permission(Section.LOCATION, Action.CREATE))]
LocationEditor = Annotated[User, Depends(require_permission(Section.LOCATION, Action.UPDATE))]
LocationRemover = Annotated[User, Depends(require_permission(Section.LOCATION, Action.DELETE))]


# ---- Public ----------------------------------------------------------------


@public_router.get("/countries", response_model=ApiResponse[list[CountryOut]])
def list_countries(service: LocationsServiceDep):
    return ok([CountryOut.model_validate(row) for row in service.list_countries()])


@public_router.get("/states", response_model=ApiResponse[list[StateOut]])
def list_states(
    service: LocationsServiceDep,
    country_id: Annotated[UUID | None, Query()] = None,
):
    rows = service.list_states(country_id=country_id)
    return ok([StateOut.model_validate(row) for row in rows])


@public_router.get("/cities", response_model=ApiResponse[list[CityOut]])
def list_cities(
    service: LocationsServiceDep,
    state_id: Annotated[UUID | None, Query()] = None,
):
    rows = service.list_cities(state_id=state_id)
    return ok([CityOut.model_validate(row) for row in rows])


# ---- Admin -----------------------------------------------------------------


@admin_router.get("/countries", response_model=ApiResponse[list[CountryOut]])
def admin_list_countries(service: LocationsServiceDep, _: LocationViewer):
    rows = service.list_countries(include_inactive=True)
    return ok([CountryOut.model_validate(row) for row in rows])


@admin_router.post(
    "/countries", response_model=ApiResponse[CountryOut], status_code=status.HTTP_201_CREATED
)
def create_country(payload: CountryCreate, service: LocationsServiceDep, _: LocationCreator):
    country = service.create_country(payload)
    return ok(CountryOut.model_validate(country), "Country created successfully")


@admin_router.patch("/countries/{country_id}", response_model=ApiResponse[CountryOut])
def update_country(
    country_id: UUID, payload: CountryUpdate, service: LocationsServiceDep, _: LocationEditor
):
    country = service.update_country(country_id, payload)
    return ok(CountryOut.model_validate(country), "Country updated successfully")


@admin_router.delete("/countries/{country_id}", response_model=ApiResponse[None])
def delete_country(country_id: UUID, service: LocationsServiceDep, _: LocationRemover):
    service.delete_country(country_id)
    return ok(None, "Country deleted successfully")


@admin_router.get("/states", response_model=ApiResponse[list[StateOut]])
def admin_list_states(
    service: LocationsServiceDep,
    _: LocationViewer,
    country_id: Annotated[UUID | None, Query()] = None,
):
    rows = service.list_states(country_id=country_id, include_inactive=True)
    return ok([StateOut.model_validate(row) for row in rows])


@admin_router.post(
    "/states", response_model=ApiResponse[StateOut], status_code=status.HTTP_201_CREATED
)
def create_state(payload: StateCreate, service: LocationsServiceDep, _: LocationCreator):
    state = service.create_state(payload)
    return ok(StateOut.model_validate(state), "State created successfully")


@admin_router.patch("/states/{state_id}", response_model=ApiResponse[StateOut])
def update_state(
    state_id: UUID, payload: StateUpdate, service: LocationsServiceDep, _: LocationEditor
):
    state = service.update_state(state_id, payload)
    return ok(StateOut.model_validate(state), "State updated successfully")


@admin_router.delete("/states/{state_id}", response_model=ApiResponse[None])
def delete_state(state_id: UUID, service: LocationsServiceDep, _: LocationRemover):
    service.delete_state(state_id)
    return ok(None, "State deleted successfully")


@admin_router.get("/cities", response_model=ApiResponse[list[CityOut]])
def admin_list_cities(
    service: LocationsServiceDep,
    _: LocationViewer,
    state_id: Annotated[UUID | None, Query()] = None,
):
    rows = service.list_cities(state_id=state_id, include_inactive=True)
    return ok([CityOut.model_validate(row) for row in rows])


@admin_router.post(
    "/cities", response_model=ApiResponse[CityOut], status_code=status.HTTP_201_CREATED
)
def create_city(payload: CityCreate, service: LocationsServiceDep, _: LocationCreator):
    city = service.create_city(payload)
    return ok(CityOut.model_validate(city), "City created successfully")


@admin_router.patch("/cities/{city_id}", response_model=ApiResponse[CityOut])
def update_city(
    city_id: UUID, payload: CityUpdate, service: LocationsServiceDep, _: LocationEditor
):
    city = service.update_city(city_id, payload)
    return ok(CityOut.model_validate(city), "City updated successfully")


@admin_router.delete("/cities/{city_id}", response_model=ApiResponse[None])
def delete_city(city_id: UUID, service: LocationsServiceDep, _: LocationRemover):
    service.delete_city(city_id)
    return ok(None, "City deleted successfully")


__all__ = ["admin_router", "public_router"]
