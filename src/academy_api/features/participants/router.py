from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from academy_api.api.deps import get_participants_service
from academy_api.common.pagination import PageParams, page_params
from academy_api.common.schema import ApiResponse, ok
from academy_api.core.auth import require_roles
from academy_api.features.rbac.models import RoleName
from academy_api.features.users.models import User

from .schemas import ParticipantCreate, ParticipantOut, ParticipantPage, ParticipantUpdate
from .service import ParticipantsService

router = APIRouter(prefix="/user/participants", tags=["participants"])

ParticipantsServiceDep = Annotated[ParticipantsService, Depends(get_participants_service)]
StudentUser = Annotated[User, Depends(require_roles(RoleName.USER.value))]
PageDep = Annotated[PageParams, Depends(page_params)]


@router.get("", response_model=ApiResponse[ParticipantPage])
def list_participants(user: StudentUser, service: ParticipantsServiceDep, params: PageDep):
    return ok(service.list_for_user(user, params=params))


@router.post("", response_model=ApiResponse[ParticipantOut], status_code=status.HTTP_201_CREATED)
def create_participant(
    payload: ParticipantCreate, user: StudentUser, service: ParticipantsServiceDep
):
    participant = service.create(user, payload)
    return ok(ParticipantOut.model_validate(participant), "Participant created successfully")


@router.get("/{participant_id}", response_model=ApiResponse[ParticipantOut])
def get_participant(participant_id: UUID, user: StudentUser, service: ParticipantsServiceDep):
    return ok(ParticipantOut.model_validate(service.get_for_user(user, participant_id)))


@router.patch("/{participant_id}", response_model=ApiResponse[ParticipantOut])
def update_participant(
    participant_id: UUID,
    payload: ParticipantUpdate,
    user: StudentUser,
    service: ParticipantsServiceDep,
):
    participant = service.update(user, participant_id, payload)
    return ok(ParticipantOut.model_validate(participant), "Participant updated successfully")


@router.delete("/{participant_id}", response_model=ApiResponse[None])
def delete_participant(participant_id: UUID, user: StudentUser, service: ParticipantsServiceDep):
    service.delete(user, participant_id)
    return ok(None, "Participant deleted successfully")


__all__ = ["router"]
