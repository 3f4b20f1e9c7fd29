"""Offset pagination helpers shared by list endpoints."""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from typing import Any, Generic, TypeVar

from fastapi import Query
from pydantic import Field
from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select
from sqlalchemy.sql.elements import ColumnElement

from academy_api.settings import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

from .schema import BaseSchema

T = TypeVar("T")


class PageParams(BaseSchema):
    """Standard query parameters for paginated list endpoints."""

    page: int = Field(1, ge=1, description="1-based page number")
    limit: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Items per page")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def page_params(
    page: int = Query(1, ge=1, description="1-based page number"),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Items per page"),
) -> PageParams:
    return PageParams(page=page, limit=limit)


class Page(BaseSchema, Generic[T]):
    """Uniform payload for list endpoints."""

    items: Sequence[T]
    page: int
    limit: int
    total: int
    total_pages: int

    def map(self, fn: Callable[[Any], Any]) -> Page[Any]:
        return Page(
            items=[fn(item) for item in self.items],
            page=self.page,
            limit=self.limit,
            total=self.total,
            total_pages=self.total_pages,
        )


def paginate_sql(
    session: Session,
    stmt: Select,
    *,
    params: PageParams,
    order_by: Sequence[ColumnElement[Any]],
) -> Page[Any]:
    """Execute ``stmt`` with limit/offset pagination and a total count."""

    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = int(session.execute(count_stmt).scalar_one())
    rows = (
        session.execute(stmt.order_by(*order_by).limit(params.limit).offset(params.offset))
        .scalars()
        .all()
    )
    return Page(
        items=list(rows),
        page=params.page,
        limit=params.limit,
        total=total,
        total_pages=math.ceil(total / params.limit) if total else 0,
    )


__all__ = ["Page", "PageParams", "page_params", "paginate_sql"]
