"""Coaching center lifecycle for owners, admins and the public catalog."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import exists, func, select
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from academy_api.common.errors import bad_request, conflict, not_found
from academy_api.common.logging import log_context
from academy_api.common.pagination import Page, PageParams, paginate_sql
from academy_api.features.batches.models import Batch
from academy_api.features.bookings.models import OPEN_BOOKING_STATUSES, Booking
from academy_api.features.facilities.models import Facility
from academy_api.features.rbac.models import RoleName
from academy_api.features.sports.models import Sport
from academy_api.features.users.models import Gender, User

from .models import ApprovalStatus, CoachingCenter, PublishStatus, center_sports
from .publishing import publish_violations
from .schemas import (
    CenterApproval,
    CenterCreate,
    CenterOut,
    CenterPublicOut,
    CenterUpdate,
    NewFacility,
)

logger = logging.getLogger(__name__)

_JSON_FIELDS = ("sport_details", "location", "operational_timing", "documents", "bank_information")
_PLAIN_FIELDS = (
    "center_name",
    "mobile_number",
    "email",
    "description",
    "rules",
    "logo",
    "allowed_genders",
    "allowed_disabled",
    "is_only_for_disabled",
    "experience",
)


class CentersService:
    def __init__(self, *, session: Session) -> None:
        self._session = session

    # ---- Lookups ---------------------------------------------------------

    def get(self, center_id: UUID) -> CoachingCenter:
        center = self._session.get(CoachingCenter, center_id)
        if center is None or center.is_deleted:
            raise not_found("Coaching center not found")
        return center

    def get_owned(self, owner: User, center_id: UUID) -> CoachingCenter:
        center = self.get(center_id)
        if center.owner_id != owner.id:
            raise not_found("Coaching center not found")
        return center

    def get_public(self, center_id: UUID) -> CoachingCenter:
        center = self.get(center_id)
        if not center.is_bookable:
            raise not_found("Coaching center not found")
        return center

    def published_batches(self, center: CoachingCenter) -> list[Batch]:
        stmt = (
            select(Batch)
            .where(
                Batch.center_id == center.id,
                Batch.is_deleted.is_(False),
                Batch.is_active.is_(True),
                Batch.status == PublishStatus.PUBLISHED,
            )
            .order_by(Batch.created_at)
        )
        return list(self._session.execute(stmt).scalars())

    # ---- Listing ---------------------------------------------------------

    def _filtered(
        self,
        stmt: Select,
        *,
        sport_id: UUID | None,
        search: str | None,
    ) -> Select:
        if sport_id is not None:
            stmt = stmt.where(
                exists().where(
                    center_sports.c.center_id == CoachingCenter.id,
                    center_sports.c.sport_id == sport_id,
                )
            )
        if search:
            stmt = stmt.where(func.lower(CoachingCenter.center_name).contains(search.lower()))
        return stmt

    def list_owned(
        self,
        owner: User,
        *,
        params: PageParams,
        status: PublishStatus | None = None,
        search: str | None = None,
    ) -> Page[CenterOut]:
        stmt = select(CoachingCenter).where(
            CoachingCenter.owner_id == owner.id,
            CoachingCenter.is_deleted.is_(False),
        )
        if status is not None:
            stmt = stmt.where(CoachingCenter.status == status)
        stmt = self._filtered(stmt, sport_id=None, search=search)
        page = paginate_sql(
            self._session, stmt, params=params, order_by=[CoachingCenter.created_at.desc()]
        )
        return page.map(CenterOut.model_validate)

    def list_admin(
        self,
        *,
        params: PageParams,
        status: PublishStatus | None = None,
        approval_status: ApprovalStatus | None = None,
        is_active: bool | None = None,
        owner_id: UUID | None = None,
        sport_id: UUID | None = None,
        search: str | None = None,
    ) -> Page[CenterOut]:
        stmt = select(CoachingCenter).where(CoachingCenter.is_deleted.is_(False))
        if status is not None:
            stmt = stmt.where(CoachingCenter.status == status)
        if approval_status is not None:
            stmt = stmt.where(CoachingCenter.approval_status == approval_status)
        if is_active is not None:
            stmt = stmt.where(CoachingCenter.is_active.is_(is_active))
        if owner_id is not None:
            stmt = stmt.where(CoachingCenter.owner_id == owner_id)
        stmt = self._filtered(stmt, sport_id=sport_id, search=search)
        page = paginate_sql(
            self._session, stmt, params=params, order_by=[CoachingCenter.created_at.desc()]
        )
        return page.map(CenterOut.model_validate)

    def list_public(
        self,
        *,
        params: PageParams,
        sport_id: UUID | None = None,
        search: str | None = None,
    ) -> Page[CenterPublicOut]:
        stmt = select(CoachingCenter).where(
            CoachingCenter.is_deleted.is_(False),
            CoachingCenter.is_active.is_(True),
            CoachingCenter.status == PublishStatus.PUBLISHED,
        )
        stmt = self._filtered(stmt, sport_id=sport_id, search=search)
        page = paginate_sql(
            self._session, stmt, params=params, order_by=[CoachingCenter.center_name]
        )
        return page.map(CenterPublicOut.model_validate)

    # ---- Writes ----------------------------------------------------------

    def _resolve_sports(self, sport_ids: list[UUID]) -> list[Sport]:
        unique_ids = list(dict.fromkeys(sport_ids))
        if not unique_ids:
            return []
        stmt = select(Sport).where(Sport.id.in_(unique_ids), Sport.is_active.is_(True))
        sports = list(self._session.execute(stmt).scalars())
        if len(sports) != len(unique_ids):
            raise bad_request("One or more sports are invalid or inactive")
        return sports

    def _resolve_facilities(self, items: list[UUID | NewFacility]) -> list[Facility]:
        resolved: list[Facility] = []
        for item in items:
            if isinstance(item, NewFacility):
                name = " ".join(item.name.split())
                stmt = select(Facility).where(func.lower(Facility.name) == name.lower())
                facility = self._session.execute(stmt).scalar_one_or_none()
                if facility is None:
                    facility = Facility(name=name, is_active=True)
                    self._session.add(facility)
                    self._session.flush()
            else:
                facility = self._session.get(Facility, item)
                if facility is None:
                    raise bad_request(f"Facility {item} does not exist")
            if facility not in resolved:
                resolved.append(facility)
        return resolved

    def _apply(self, center: CoachingCenter, payload: CenterCreate | CenterUpdate) -> None:
        fields = payload.model_fields_set
        data = payload.model_dump(mode="json", exclude_unset=True)

        for field in _PLAIN_FIELDS:
            if field in fields:
                value = data.get(field)
                if value is None and field in {"center_name", "allowed_disabled"}:
                    continue
                if value is None and field in {"rules", "allowed_genders"}:
                    value = []
                setattr(center, field, value)
        for field in _JSON_FIELDS:
            if field in fields:
                value = data.get(field)
                if value is None and field in {"sport_details", "documents"}:
                    value = []
                setattr(center, field, value)
        if "age" in fields:
            age = payload.age
            center.age_min = age.min if age else None
            center.age_max = age.max if age else None
        if "sports" in fields:
            center.sports = self._resolve_sports(payload.sports or [])
        if "facilities" in fields:
            center.facilities = self._resolve_facilities(payload.facilities or [])
        if "status" in fields and payload.status is not None:
            center.status = PublishStatus(payload.status)

        sport_ids = {str(sport_id) for sport_id in center.sport_ids}
        for detail in center.sport_details or []:
            if str(detail.get("sport_id")) not in sport_ids:
                raise bad_request("Sport details must reference one of the center's sports")

    def _requires_bank_information(self, center: CoachingCenter) -> bool:
        owner = center.owner
        return owner is not None and owner.has_role(RoleName.ACADEMY.value)

    def ensure_publishable(self, center: CoachingCenter) -> None:
        if center.status != PublishStatus.PUBLISHED:
            return
        problems = publish_violations(
            center_name=center.center_name,
            mobile_number=center.mobile_number,
            email=center.email,
            sport_ids=center.sport_ids,
            logo=center.logo,
            age=center.age,
            location=center.location,
            operational_timing=center.operational_timing,
            bank_information=center.bank_information,
            requires_bank_information=self._requires_bank_information(center),
        )
        if problems:
            raise bad_request(
                "Coaching center is incomplete and cannot be published", errors=problems
            )

    def create(self, owner: User, payload: CenterCreate) -> CoachingCenter:
        center = CoachingCenter(
            owner_id=owner.id,
            center_name=payload.center_name,
            rules=[],
            sport_details=[],
            documents=[],
            allowed_genders=[gender.value for gender in Gender],
            status=PublishStatus.DRAFT,
            approval_status=ApprovalStatus.PENDING,
        )
        center.owner = owner
        self._apply(center, payload)
        self.ensure_publishable(center)
        self._session.add(center)
        self._session.flush()
        logger.info(
            "center.create.success",
            extra=log_context(user_id=owner.id, center_id=center.id, status=center.status.value),
        )
        return center

    def update(self, center: CoachingCenter, payload: CenterUpdate) -> CoachingCenter:
        self._apply(center, payload)
        self.ensure_publishable(center)
        self._session.flush()
        logger.info(
            "center.update.success",
            extra=log_context(center_id=center.id, fields=sorted(payload.model_fields_set)),
        )
        return center

    def delete(self, center: CoachingCenter) -> None:
        open_bookings = self._session.execute(
            select(
                exists().where(
                    Booking.center_id == center.id,
                    Booking.status.in_(OPEN_BOOKING_STATUSES),
                    Booking.is_deleted.is_(False),
                )
            )
        ).scalar()
        if open_bookings:
            raise conflict("Coaching center has open bookings and cannot be deleted")
        center.soft_delete()
        for batch in self._session.execute(
            select(Batch).where(Batch.center_id == center.id, Batch.is_deleted.is_(False))
        ).scalars():
            batch.soft_delete()
        self._session.flush()
        logger.info("center.delete.success", extra=log_context(center_id=center.id))

    def set_approval(self, center: CoachingCenter, payload: CenterApproval, *, actor: User):
        center.approval_status = ApprovalStatus(payload.approval_status)
        center.rejection_reason = (
            payload.rejection_reason
            if center.approval_status == ApprovalStatus.REJECTED
            else None
        )
        self._session.flush()
        logger.info(
            "center.approval.updated",
            extra=log_context(
                center_id=center.id,
                actor_id=str(actor.id),
                approval_status=center.approval_status.value,
            ),
        )
        return center

    def set_active(self, center: CoachingCenter, is_active: bool, *, actor: User):
        center.is_active = is_active
        self._session.flush()
        logger.info(
            "center.activation.updated",
            extra=log_context(center_id=center.id, actor_id=str(actor.id), is_active=is_active),
        )
        return center


__all__ = ["CentersService"]
