"""
Pagination helpers.

List endpoints accept ``page``/``limit`` query parameters and report the
position of the returned slice. ``paginate`` applies the offset/limit to a
select statement and counts the unpaginated result in the same session.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Generic, List, Sequence, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


@dataclass(frozen=True)
class PageParams:
    """1-based page number and page size."""

    page: int = 1
    limit: int = 10

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Page(Generic[T]):
    """A slice of results plus the numbers clients need to render pagers."""

    items: List[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


def slice_page(items: Sequence[T], params: PageParams) -> Page[T]:
    """Paginate an already materialized, already sorted sequence."""
    return Page(
        items=list(items[params.offset : params.offset + params.limit]),
        total=len(items),
        page=params.page,
        limit=params.limit,
    )


async def paginate(session: AsyncSession, statement: Any, params: PageParams) -> Page[Any]:
    """Run ``statement`` for one page and count all matching rows.

    Args:
        session: Open async session
        statement: A ``select`` of a single entity, already filtered and ordered
        params: Requested page

    Returns:
        Page of entities
    """
    count_stmt = select(func.count()).select_from(statement.order_by(None).subquery())
    total = (await session.execute(count_stmt)).scalar_one()
    result = await session.execute(statement.offset(params.offset).limit(params.limit))
    return Page(items=list(result.scalars().all()), total=total, page=params.page, limit=params.limit)
