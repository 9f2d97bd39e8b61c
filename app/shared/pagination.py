"""Pagination utilities."""

from datetime import UTC, datetime
from typing import Any, Dict, Generic, TypeVar

from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select
from sqlalchemy.sql.elements import ColumnElement

T = TypeVar("T")


class CursorParams(BaseModel):
    """Cursor pagination parameters."""

    cursor: datetime | None = Field(
        default=None, description="Exclusive upper bound; omit for the most recent page"
    )
    size: int = Field(default=20, ge=1, le=100, description="Page size")


class CursorPage(BaseModel, Generic[T]):
    """Generic cursor-paginated response, items in chronological order."""

    items: list[T]
    oldest_cursor: datetime | None = None
    has_more: bool


def encode_cursor(value: datetime | None) -> str | None:
    """Render a cursor as the ISO timestamp clients send back."""
    return value.isoformat() if value is not None else None


def decode_cursor(value: str | None) -> datetime | None:
    """Parse an ISO timestamp cursor, dropping any offset (cursors are naive UTC)."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC).replace(tzinfo=None)
    return parsed


async def paginate_before(
    db: AsyncSession,
    query: Select,
    order_column: ColumnElement,
    params: CursorParams,
) -> Dict[str, Any]:
    """
    Fetch one page of rows older than the cursor, returned oldest first.

    The newest ``size`` rows strictly before ``params.cursor`` are selected in
    descending order and reversed into chronological order. ``has_more`` is true
    when the page came back full, which is a heuristic rather than a count.

    Args:
        db: Database session
        query: SQLAlchemy select query already filtered to the owning entity
        order_column: Timestamp column that orders the rows and serves as cursor
        params: Cursor parameters

    Returns:
        Dictionary with the items, the oldest cursor and the has_more flag
    """
    if params.cursor is not None:
        query = query.where(order_column < params.cursor)

    result = await db.execute(query.order_by(order_column.desc()).limit(params.size))
    rows = list(result.scalars().all())
    rows.reverse()

    oldest = getattr(rows[0], order_column.key) if rows else None
    return {
        "items": rows,
        "oldest_cursor": oldest,
        "has_more": len(rows) == params.size,
    }
