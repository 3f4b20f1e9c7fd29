"""Promotional banners and their public placement rules."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from academy_api.common.errors import not_found
from academy_api.common.logging import log_context
from academy_api.common.pagination import Page, PageParams, paginate_sql
from academy_api.common.validators import utc_now
from academy_api.features.users.models import User

from .models import Banner, BannerAudience, BannerPosition, BannerStatus
from .schemas import BannerCreate, BannerOut, BannerUpdate

logger = logging.getLogger(__name__)

_SCALAR_FIELDS = (
    "title",
    "description",
    "image_url",
    "mobile_image_url",
    "link_url",
    "link_type",
    "position",
    "priority",
    "status",
    "target_audience",
    "is_active",
    "is_only_for_academy",
    "starts_at",
    "ends_at",
)


def _targets(values: list[str], wanted: UUID | None) -> bool:
    """An empty target list matches everything."""

    return wanted is None or not values or str(wanted) in values


class BannersService:
    def __init__(self, *, session: Session) -> None:
        self._session = session

    def get(self, banner_id: UUID) -> Banner:
        banner = self._session.get(Banner, banner_id)
        if banner is None or banner.deleted_at is not None:
            raise not_found("Banner not found")
        return banner

    def list_banners(
        self,
        *,
        params: PageParams,
        position: BannerPosition | None = None,
        status: BannerStatus | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> Page[BannerOut]:
        stmt = select(Banner).where(Banner.deleted_at.is_(None))
        if position is not None:
            stmt = stmt.where(Banner.position == position)
        if status is not None:
            stmt = stmt.where(Banner.status == status)
        if is_active is not None:
            stmt = stmt.where(Banner.is_active.is_(is_active))
        if search:
            stmt = stmt.where(Banner.title.ilike(f"%{search.strip()}%"))
        page = paginate_sql(
            self._session,
            stmt,
            params=params,
            order_by=[Banner.priority.desc(), Banner.created_at.desc()],
        )
        return page.map(BannerOut.model_validate)

    def active_for(
        self,
        position: BannerPosition,
        *,
        sport_id: UUID | None = None,
        center_id: UUID | None = None,
        audience: BannerAudience | None = None,
        for_academy: bool = False,
        limit: int = 10,
    ) -> list[Banner]:
        now = utc_now()
        stmt = select(Banner).where(
            Banner.position == position,
            Banner.is_active.is_(True),
            Banner.status == BannerStatus.ACTIVE,
            Banner.deleted_at.is_(None),
            or_(Banner.starts_at.is_(None), Banner.starts_at <= now),
            or_(Banner.ends_at.is_(None), Banner.ends_at >= now),
        )
        if audience is not None:
            stmt = stmt.where(Banner.target_audience.in_([BannerAudience.ALL, audience]))
        if center_id is None and not for_academy:
            stmt = stmt.where(Banner.is_only_for_academy.is_(False))
        stmt = stmt.order_by(Banner.priority.desc(), Banner.created_at.desc())

        banners = [
            banner
            for banner in self._session.execute(stmt).scalars()
            if _targets(banner.sport_ids, sport_id) and _targets(banner.center_ids, center_id)
        ]
        return banners[:limit]

    def _apply(self, banner: Banner, changes: dict[str, Any]) -> None:
        for field in _SCALAR_FIELDS:
            if field in changes:
                setattr(banner, field, changes[field])
        for field in ("sport_ids", "center_ids"):
            if changes.get(field) is not None:
                setattr(banner, field, [str(item) for item in changes[field]])
        if "metadata" in changes:
            banner.extra_metadata = changes["metadata"]

    def create(self, payload: BannerCreate, *, actor: User) -> Banner:
        banner = Banner(created_by_id=actor.id, updated_by_id=actor.id)
        self._apply(banner, payload.model_dump())
        self._session.add(banner)
        self._session.flush()
        logger.info(
            "banner.create.success",
            extra=log_context(user_id=actor.id, banner_id=str(banner.id)),
        )
        return banner

    def update(self, banner: Banner, payload: BannerUpdate, *, actor: User) -> Banner:
        changes = payload.model_dump(exclude_unset=True)
        required = ("title", "image_url", "position", "priority", "status", "target_audience")
        for field in (*required, "is_active", "is_only_for_academy"):
            if field in changes and changes[field] is None:
                changes.pop(field)
        self._apply(banner, changes)
        banner.updated_by_id = actor.id
        self._session.flush()
        return banner

    def delete(self, banner: Banner, *, actor: User) -> None:
        banner.deleted_at = utc_now()
        banner.is_active = False
        banner.updated_by_id = actor.id
        self._session.flush()
        logger.info(
            "banner.delete.success",
            extra=log_context(user_id=actor.id, banner_id=str(banner.id)),
        )

    def _increment(self, banner_id: UUID, column: str) -> bool:
        counter = getattr(Banner, column)
        result = self._session.execute(
            update(Banner)
            .where(Banner.id == banner_id, Banner.deleted_at.is_(None))
            .values({column: counter + 1})
        )
        if result.rowcount == 0:
            logger.warning(
                "banner.track.missing", extra=log_context(banner_id=str(banner_id), counter=column)
            )
            return False
        return True

    def track_click(self, banner_id: UUID) -> None:
        if not self._increment(banner_id, "click_count"):
            raise not_found("Banner not found")

    def track_view(self, banner_id: UUID) -> None:
        if not self._increment(banner_id, "view_count"):
            raise not_found("Banner not found")


__all__ = ["BannersService"]
