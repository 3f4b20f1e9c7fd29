"""Batch management for academies and admins."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import exists, func, select
from sqlalchemy.orm import Session

from academy_api.common.errors import bad_request, conflict, not_found
from academy_api.common.logging import log_context
from academy_api.common.pagination import Page, PageParams, paginate_sql
from academy_api.features.bookings.models import OPEN_BOOKING_STATUSES, Booking
from academy_api.features.centers.models import CoachingCenter, PublishStatus
from academy_api.features.fee_types.service import FeeTypesService
from academy_api.features.users.models import User

from .models import Batch
from .schemas import BatchCreate, BatchOut, BatchUpdate

logger = logging.getLogger(__name__)


class BatchesService:
    def __init__(self, *, session: Session) -> None:
        self._session = session
        self._fee_types = FeeTypesService(session=session)

    # ---- Lookups ---------------------------------------------------------

    def get(self, batch_id: UUID) -> Batch:
        batch = self._session.get(Batch, batch_id)
        if batch is None or batch.is_deleted:
            raise not_found("Batch not found")
        return batch

    def get_owned(self, owner: User, batch_id: UUID) -> Batch:
        batch = self.get(batch_id)
        if batch.center.owner_id != owner.id:
            raise not_found("Batch not found")
        return batch

    def _owned_center(self, owner: User, center_id: UUID) -> CoachingCenter:
        center = self._session.get(CoachingCenter, center_id)
        if center is None or center.is_deleted or center.owner_id != owner.id:
            raise not_found("Coaching center not found")
        return center

    def list_for_owner(
        self,
        owner: User,
        *,
        params: PageParams,
        center_id: UUID | None = None,
        status: PublishStatus | None = None,
    ) -> Page[BatchOut]:
        stmt = (
            select(Batch)
            .join(CoachingCenter, CoachingCenter.id == Batch.center_id)
            .where(CoachingCenter.owner_id == owner.id, Batch.is_deleted.is_(False))
        )
        if center_id is not None:
            stmt = stmt.where(Batch.center_id == center_id)
        if status is not None:
            stmt = stmt.where(Batch.status == status)
        page = paginate_sql(self._session, stmt, params=params, order_by=[Batch.created_at.desc()])
        return page.map(BatchOut.model_validate)

    def list_admin(
        self,
        *,
        params: PageParams,
        center_id: UUID | None = None,
        sport_id: UUID | None = None,
        status: PublishStatus | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> Page[BatchOut]:
        stmt = select(Batch).where(Batch.is_deleted.is_(False))
        if center_id is not None:
            stmt = stmt.where(Batch.center_id == center_id)
        if sport_id is not None:
            stmt = stmt.where(Batch.sport_id == sport_id)
        if status is not None:
            stmt = stmt.where(Batch.status == status)
        if is_active is not None:
            stmt = stmt.where(Batch.is_active.is_(is_active))
        if search:
            stmt = stmt.where(func.lower(Batch.name).contains(search.lower()))
        page = paginate_sql(self._session, stmt, params=params, order_by=[Batch.created_at.desc()])
        return page.map(BatchOut.model_validate)

    def list_public(self, center_id: UUID) -> list[Batch]:
        center = self._session.get(CoachingCenter, center_id)
        if center is None or not center.is_bookable:
            raise not_found("Coaching center not found")
        stmt = (
            select(Batch)
            .where(
                Batch.center_id == center_id,
                Batch.is_deleted.is_(False),
                Batch.is_active.is_(True),
                Batch.status == PublishStatus.PUBLISHED,
            )
            .order_by(Batch.name)
        )
        return list(self._session.execute(stmt).scalars())

    # ---- Writes ----------------------------------------------------------

    def _check_sport(self, center: CoachingCenter, sport_id: UUID) -> None:
        if sport_id not in center.sport_ids:
            raise bad_request("Sport is not offered by this coaching center")

    def _check_coach(self, coach_id: UUID | None) -> None:
        if coach_id is None:
            return
        coach = self._session.get(User, coach_id)
        if coach is None or coach.is_deleted:
            raise bad_request("Coach not found")

    def _apply(self, batch: Batch, payload: BatchCreate | BatchUpdate) -> None:
        fields = payload.model_fields_set
        data = payload.model_dump(mode="json", exclude_unset=True)

        if "name" in fields and payload.name:
            batch.name = payload.name
        if "coach_id" in fields:
            self._check_coach(payload.coach_id)
            batch.coach_id = payload.coach_id
        if "scheduled" in fields and payload.scheduled is not None:
            batch.scheduled = data["scheduled"]
        if "duration" in fields and payload.duration is not None:
            batch.duration = data["duration"]
        if "capacity" in fields and payload.capacity is not None:
            batch.capacity_min = payload.capacity.min
            batch.capacity_max = payload.capacity.max
        if "age" in fields and payload.age is not None:
            batch.age_min = payload.age.min
            batch.age_max = payload.age.max
        for money in ("admission_fee", "discounted_price"):
            if money in fields:
                setattr(batch, money, getattr(payload, money))
        if "base_price" in fields and payload.base_price is not None:
            batch.base_price = payload.base_price
        if "fee_structure" in fields:
            structure: dict[str, Any] | None = data.get("fee_structure")
            batch.fee_structure = (
                self._fee_types.validate_structure(structure) if structure else None
            )
        for flag in ("is_allowed_disabled", "certificate_issued"):
            if flag in fields and getattr(payload, flag) is not None:
                setattr(batch, flag, getattr(payload, flag))
        if "gender" in fields:
            batch.gender = data.get("gender") or []
        if "status" in fields and payload.status is not None:
            batch.status = PublishStatus(payload.status)

        if (
            batch.discounted_price is not None
            and batch.base_price is not None
            and batch.discounted_price > batch.base_price
        ):
            raise bad_request("Discounted price cannot exceed the base price")

    def create(self, owner: User, payload: BatchCreate) -> Batch:
        center = self._owned_center(owner, payload.center_id)
        self._check_sport(center, payload.sport_id)
        batch = Batch(
            center_id=center.id,
            sport_id=payload.sport_id,
            name=payload.name,
            gender=[],
        )
        self._apply(batch, payload)
        self._session.add(batch)
        self._session.flush()
        logger.info(
            "batch.create.success",
            extra=log_context(center_id=center.id, batch_id=batch.id),
        )
        return batch

    def update(self, batch: Batch, payload: BatchUpdate) -> Batch:
        if payload.sport_id is not None and payload.sport_id != batch.sport_id:
            self._check_sport(batch.center, payload.sport_id)
            batch.sport_id = payload.sport_id
        if payload.is_active is not None:
            batch.is_active = payload.is_active
        self._apply(batch, payload)
        self._session.flush()
        logger.info("batch.update.success", extra=log_context(batch_id=batch.id))
        return batch

    def delete(self, batch: Batch) -> None:
        open_bookings = self._session.execute(
            select(
                exists().where(
                    Booking.batch_id == batch.id,
                    Booking.status.in_(OPEN_BOOKING_STATUSES),
                    Booking.is_deleted.is_(False),
                )
            )
        ).scalar()
        if open_bookings:
            raise conflict("Batch has open bookings and cannot be deleted")
        batch.soft_delete()
        self._session.flush()
        logger.info("batch.delete.success", extra=log_context(batch_id=batch.id))


__all__ = ["BatchesService"]
