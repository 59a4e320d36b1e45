"""Pagination utilities: offset pages for list endpoints, keyset cursors for batch reads."""


import math
from datetime import datetime
from typing import Any, NamedTuple, Optional, Sequence

from fastapi import Query
from pydantic import BaseModel
from sqlalchemy import ColumnElement, Select, and_, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from jornadas.common.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


# ── FastAPI dependency ──────────────────────────────────────────────

class PaginationParams:
    """Inject via ``Depends(PaginationParams)`` on any list endpoint."""

    def __init__(
        self,
        page: int = Query(default=1, ge=1, description="Page number (1-indexed)"),
        page_size: int = Query(
            default=DEFAULT_PAGE_SIZE,
            ge=1,
            le=MAX_PAGE_SIZE,
            description=f"Items per page (max {MAX_PAGE_SIZE})",
        ),
    ) -> None:
        self.page = page
        self.page_size = page_size

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


# ── Pydantic response models ───────────────────────────────────────

class PaginationMeta(BaseModel):
    """Metadata block embedded in every paginated response."""

    page: int
    page_size: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


# ── SQLAlchemy helpers ──────────────────────────────────────────────

async def paginate(
    session: AsyncSession,
    query: Select,
    params: PaginationParams,
) -> tuple[Sequence[Any], PaginationMeta]:
    """
    Execute *query* (already ordered) with LIMIT/OFFSET derived from
    *params*; returns the ORM rows and the metadata block.
    """
    count_q = query.with_only_columns(func.count()).order_by(None)
    total: int = (await session.execute(count_q)).scalar_one()

    rows = (
        await session.execute(
            query.offset(params.offset).limit(params.page_size)
        )
    ).scalars().all()

    total_pages = math.ceil(total / params.page_size) if total else 0

    return rows, PaginationMeta(
        page=params.page,
        page_size=params.page_size,
        total=total,
        total_pages=total_pages,
        has_next=params.page < total_pages,
        has_prev=params.page > 1,
    )


class KeysetCursor(NamedTuple):
    """Position after the last row read: ``(timestamp, id)``."""

    timestamp: datetime
    id: int


def keyset_after(
    timestamp_col: Any,
    id_col: Any,
    cursor: Optional[KeysetCursor],
) -> Optional[ColumnElement[bool]]:
    """WHERE clause selecting rows strictly after *cursor* in ``(timestamp, id)`` order."""
    if cursor is None:
        return None
    return or_(
        timestamp_col > cursor.timestamp,
        and_(timestamp_col == cursor.timestamp, id_col > cursor.id),
    )
