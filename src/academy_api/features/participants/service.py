"""Participants owned by a student or guardian account."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from academy_api.common.errors import bad_request, not_found
from academy_api.common.logging import log_context
from academy_api.common.pagination import Page, PageParams, paginate_sql
from academy_api.features.users.models import User

from .models import Participant
from .schemas import ParticipantCreate, ParticipantOut, ParticipantUpdate

logger = logging.getLogger(__name__)


class ParticipantsService:
    def __init__(self, *, session: Session) -> None:
        self._session = session

    def _owned(self, owner: User):
        return select(Participant).where(
            Participant.user_id == owner.id,
            Participant.is_deleted.is_(False),
        )

    def list_for_user(self, owner: User, *, params: PageParams) -> Page[ParticipantOut]:
        page = paginate_sql(
            self._session,
            self._owned(owner),
            params=params,
            order_by=[Participant.is_self.desc(), Participant.created_at],
        )
        return page.map(ParticipantOut.model_validate)

    def get_for_user(self, owner: User, participant_id: UUID) -> Participant:
        stmt = self._owned(owner).where(Participant.id == participant_id)
        participant = self._session.execute(stmt).scalar_one_or_none()
        if participant is None:
            raise not_found("Participant not found")
        return participant

    def create(self, owner: User, payload: ParticipantCreate) -> Participant:
        participant = Participant(
            user_id=owner.id,
            is_self=False,
            **payload.model_dump(exclude={"address"}),
            address=payload.address.model_dump() if payload.address else None,
        )
        self._session.add(participant)
        self._session.flush()
        logger.info(
            "participant.create.success",
            extra=log_context(user_id=owner.id, participant_id=str(participant.id)),
        )
        return participant

    def update(self, owner: User, participant_id: UUID, payload: ParticipantUpdate) -> Participant:
        participant = self.get_for_user(owner, participant_id)
        changes = payload.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(participant, field, value)
        self._session.flush()
        return participant

    def delete(self, owner: User, participant_id: UUID) -> None:
        participant = self.get_for_user(owner, participant_id)
        if participant.is_self:
            raise bad_request("The self participant cannot be deleted")
        participant.soft_delete()
        self._session.flush()
        logger.info(
            "participant.delete.success",
            extra=log_context(user_id=owner.id, participant_id=str(participant.id)),
        )


__all__ = ["ParticipantsService"]
