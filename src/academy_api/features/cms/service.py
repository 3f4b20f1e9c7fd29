"""Static content pages such as terms and privacy policy."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from academy_api.common.errors import conflict, not_found
from academy_api.common.logging import log_context
from academy_api.common.pagination import Page, PageParams, paginate_sql
from academy_api.common.validators import utc_now
from academy_api.features.users.models import User

from .models import CmsPage, CmsPlatform
from .schemas import CmsPageCreate, CmsPageOut, CmsPageUpdate

logger = logging.getLogger(__name__)


class CmsService:
    def __init__(self, *, session: Session) -> None:
        self._session = session

    def get(self, page_id: UUID) -> CmsPage:
        page = self._session.get(CmsPage, page_id)
        if page is None or page.deleted_at is not None:
            raise not_found("CMS page not found")
        return page

    def get_published(self, slug: str, *, platform: CmsPlatform | None = None) -> CmsPage:
        stmt = select(CmsPage).where(
            CmsPage.slug == slug.strip().lower(),
            CmsPage.is_active.is_(True),
            CmsPage.deleted_at.is_(None),
        )
        if platform is not None and platform != CmsPlatform.BOTH:
            stmt = stmt.where(CmsPage.platform.in_([platform, CmsPlatform.BOTH]))
        page = self._session.execute(stmt).scalar_one_or_none()
        if page is None:
            raise not_found("CMS page not found")
        return page

    def list_pages(
        self,
        *,
        params: PageParams,
        platform: CmsPlatform | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> Page[CmsPageOut]:
        stmt = select(CmsPage).where(CmsPage.deleted_at.is_(None))
        if platform is not None:
            stmt = stmt.where(CmsPage.platform == platform)
        if is_active is not None:
            stmt = stmt.where(CmsPage.is_active.is_(is_active))
        if search:
            term = f"%{search.strip()}%"
            stmt = stmt.where(or_(CmsPage.title.ilike(term), CmsPage.slug.ilike(term)))
        page = paginate_sql(self._session, stmt, params=params, order_by=[CmsPage.slug])
        return page.map(CmsPageOut.model_validate)

    def _by_slug(self, slug: str) -> CmsPage | None:
        stmt = select(CmsPage).where(CmsPage.slug == slug)
        return self._session.execute(stmt).scalar_one_or_none()

    def create(self, payload: CmsPageCreate, *, actor: User) -> CmsPage:
        page = self._by_slug(payload.slug)
        if page is not None and page.deleted_at is None:
            raise conflict("A CMS page with this slug already exists")
        if page is None:
            page = CmsPage(slug=payload.slug, version=1)
            self._session.add(page)
        else:
            # Reuse the slug of a deleted page.
            page.deleted_at = None
            page.version += 1
        page.title = payload.title
        page.content = payload.content
        page.platform = CmsPlatform(payload.platform)
        page.is_active = payload.is_active
        page.updated_by_id = actor.id
        self._session.flush()
        logger.info("cms.create.success", extra=log_context(user_id=actor.id, slug=page.slug))
        return page

    def update(self, page: CmsPage, payload: CmsPageUpdate, *, actor: User) -> CmsPage:
        changes = payload.model_dump(exclude_unset=True)
        slug = changes.get("slug")
        if slug and slug != page.slug:
            existing = self._by_slug(slug)
            if existing is not None:
                raise conflict("A CMS page with this slug already exists")
            page.slug = slug
        for field in ("title", "platform", "is_active"):
            if changes.get(field) is not None:
                setattr(page, field, changes[field])
        content = changes.get("content")
        if content is not None and content != page.content:
            page.content = content
            page.version += 1
        page.updated_by_id = actor.id
        self._session.flush()
        return page

    def delete(self, page: CmsPage, *, actor: User) -> None:
        page.deleted_at = utc_now()
        page.is_active = False
        page.updated_by_id = actor.id
        self._session.flush()
        logger.info("cms.delete.success", extra=log_context(user_id=actor.id, slug=page.slug))


__all__ = ["CmsService"]
