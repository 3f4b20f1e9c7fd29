"""Sport catalog management."""

from __future__ import annotations

import logging
import re
from uuid import UUID

from sqlalchemy import exists, or_, select
from sqlalchemy.orm import Session

from academy_api.common.errors import conflict, not_found
from academy_api.common.logging import log_context
from academy_api.common.pagination import Page, PageParams, paginate_sql
from academy_api.features.batches.models import Batch
from academy_api.features.centers.models import center_sports

from .models import Sport
from .schemas import SportCreate, SportOut, SportUpdate

logger = logging.getLogger(__name__)

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def canonical_name(name: str) -> str:
    return " ".join(name.split()).casefold()


def slugify(value: str) -> str:
    return _NON_SLUG.sub("-", value.strip().lower()).strip("-")


class SportsService:
    def __init__(self, *, session: Session) -> None:
        self._session = session

    def get(self, sport_id: UUID) -> Sport:
        sport = self._session.get(Sport, sport_id)
        if sport is None:
            raise not_found("Sport not found")
        return sport

    def list_sports(
        self,
        *,
        params: PageParams,
        active_only: bool = False,
        is_popular: bool | None = None,
        search: str | None = None,
    ) -> Page[SportOut]:
        stmt = select(Sport)
        if active_only:
            stmt = stmt.where(Sport.is_active.is_(True))
        if is_popular is not None:
            stmt = stmt.where(Sport.is_popular.is_(is_popular))
        if search:
            stmt = stmt.where(Sport.name_canonical.contains(canonical_name(search)))
        page = paginate_sql(
            self._session,
            stmt,
            params=params,
            order_by=[Sport.is_popular.desc(), Sport.name],
        )
        return page.map(SportOut.model_validate)

    def _ensure_available(self, *, name: str, slug: str, exclude: UUID | None = None) -> None:
        stmt = select(Sport.id).where(
            or_(Sport.name_canonical == canonical_name(name), Sport.slug == slug)
        )
        if exclude is not None:
            stmt = stmt.where(Sport.id != exclude)
        if self._session.execute(stmt).first() is not None:
            raise conflict("A sport with this name or slug already exists")

    def create(self, payload: SportCreate) -> Sport:
        name = " ".join(payload.name.split())
        slug = payload.slug or slugify(name)
        self._ensure_available(name=name, slug=slug)
        sport = Sport(
            name=name,
            name_canonical=canonical_name(name),
            slug=slug,
            logo=payload.logo,
            is_active=payload.is_active,
            is_popular=payload.is_popular,
        )
        self._session.add(sport)
        self._session.flush()
        logger.info("sport.create.success", extra=log_context(sport_id=str(sport.id)))
        return sport

    def update(self, sport_id: UUID, payload: SportUpdate) -> Sport:
        sport = self.get(sport_id)
        changes = payload.model_dump(exclude_unset=True)
        if "name" in changes or "slug" in changes:
            name = " ".join((changes.get("name") or sport.name).split())
            slug = changes.get("slug") or sport.slug
            self._ensure_available(name=name, slug=slug, exclude=sport.id)
            sport.name = name
            sport.name_canonical = canonical_name(name)
            sport.slug = slug
        for field in ("logo", "is_active", "is_popular"):
            if field in changes and changes[field] is not None:
                setattr(sport, field, changes[field])
        self._session.flush()
        return sport

    def delete(self, sport_id: UUID) -> None:
        sport = self.get(sport_id)
        in_use = self._session.execute(
            select(
                or_(
                    exists().where(center_sports.c.sport_id == sport.id),
                    exists().where(Batch.sport_id == sport.id),
                )
            )
        ).scalar()
        if in_use:
            raise conflict("Sport is used by coaching centers or batches; deactivate it instead")
        self._session.delete(sport)
        self._session.flush()
        logger.info("sport.delete.success", extra=log_context(sport_id=str(sport_id)))


__all__ = ["SportsService", "canonical_name", "slugify"]
