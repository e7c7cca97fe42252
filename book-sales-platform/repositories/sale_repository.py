"""
Sale repository (persistence).

This module provides *only* persistence operations for the SaleRecord domain
entity. Reads are scoped to an owner through an inner join on books.user_id;
it does not enforce business rules beyond that.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Tuple
from uuid import UUID, uuid4

from domain.sale import SaleInput, SaleRecord
from repositories.client import execute, get_supabase

# Supabase table name for sale records.
# Keep this aligned with your database schema.
_SALES_TABLE: str = "sales"

# Embeds the owning book; !inner drops sales whose book does not match the filter
_OWNED_SELECT: str = "*, books!inner(user_id, title)"

# PostgREST caps rows per request; larger slices are paged through
_FETCH_CHUNK_SIZE: int = 1000


@dataclass(frozen=True, slots=True)
class SalesQueryFilters:
    """Filter criteria for ledger reads. user_id is always required."""
    user_id: UUID
    book_id: Optional[UUID] = None
    platform: Optional[str] = None
    start_date: Optional[date] = None  # inclusive
    end_date: Optional[date] = None  # inclusive


def _parse_utc_datetime(value: Any) -> datetime:
    """Parse a Supabase timestamp into a timezone-aware UTC datetime."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _row_to_sale(row: Mapping[str, Any]) -> SaleRecord:
    """Convert a Supabase row into a SaleRecord."""

    book = row.get("books") or {}
    return SaleRecord(
        sale_id=UUID(str(row["sale_id"])),
        book_id=UUID(str(row["book_id"])),
        sale_date=date.fromisoformat(str(row["sale_date"])[:10]),
        units=int(row["units"]),
        # numeric columns may arrive as JSON numbers; go through str to stay exact
        revenue=Decimal(str(row["revenue"])).quantize(Decimal("0.01")),
        royalty=Decimal(str(row["royalty"])).quantize(Decimal("0.01")),
        platform=str(row["platform"]),
        created_at=_parse_utc_datetime(row["created_at_utc"]) if row.get("created_at_utc") else None,
        book_title=book.get("title"),
    )


def _apply_filters(query: Any, filters: SalesQueryFilters) -> Any:
    query = query.eq("books.user_id", str(filters.user_id))

    if filters.book_id is not None:
        query = query.eq("book_id", str(filters.book_id))

    if filters.platform:
        query = query.eq("platform", filters.platform)

    if filters.start_date is not None:
        query = query.gte("sale_date", filters.start_date.isoformat())

    if filters.end_date is not None:
        query = query.lte("sale_date", filters.end_date.isoformat())

    return query


def create_sale(
    book_id: UUID,
    sale_date: date,
    units: int,
    revenue: Decimal,
    royalty: Decimal,
    platform: str,
) -> SaleRecord:
    """
    Insert a new sale record into Supabase.

    The caller must already have verified that `book_id` belongs to the user.

    Args:
        book_id: Owning book
        sale_date: Calendar date of the sales
        units: Units sold (non-negative)
        revenue: Revenue amount (2 decimal places)
        royalty: Royalty amount (2 decimal places)
        platform: Sales platform label

    Returns:
        SaleRecord domain model with the recorded sale

    Raises:
        ValueError: If the values violate the Sale invariants
        StoreError: If Supabase rejects the insert
    """

    now = datetime.now(timezone.utc)
    record = SaleRecord(
        sale_id=uuid4(),
        book_id=book_id,
        sale_date=sale_date,
        units=units,
        revenue=revenue,
        royalty=royalty,
        platform=platform,
        created_at=now,
    )

    payload: dict[str, Any] = {
        "sale_id": str(record.sale_id),
        "book_id": str(record.book_id),
        "sale_date": record.sale_date.isoformat(),
        "units": record.units,
        "revenue": str(record.revenue),
        "royalty": str(record.royalty),
        "platform": record.platform,
        "created_at_utc": now.isoformat(),
    }

    execute(get_supabase().table(_SALES_TABLE).insert(payload), "create sale record")
    return record


def get_sale_owned_by(sale_id: UUID, user_id: UUID) -> Optional[SaleRecord]:
    """
    Retrieve a single sale if its book belongs to `user_id`.

    Returns:
        SaleRecord or None if not found (or owned by someone else)
    """

    response = execute(
        get_supabase()
        .table(_SALES_TABLE)
        .select(_OWNED_SELECT)
        .eq("sale_id", str(sale_id))
        .eq("books.user_id", str(user_id))
        .limit(1),
        "get sale",
    )
    rows = getattr(response, "data", None) or []
    if not rows:
        return None
    return _row_to_sale(rows[0])


def list_sales(
    filters: SalesQueryFilters,
    limit: int = 100,
    offset: int = 0,
) -> Tuple[List[SaleRecord], int]:
    """
    One page of the owner's sales, newest first, plus the total match count.

    Returns:
        (sales, total) where total counts every row matching the filters
    """

    query = get_supabase().table(_SALES_TABLE).select(_OWNED_SELECT, count="exact")
    query = (
        _apply_filters(query, filters)
        .order("sale_date", desc=True)
        .order("created_at_utc", desc=True)
        .range(offset, offset + limit - 1)
    )

    response = execute(query, "list sales")
    rows = getattr(response, "data", None) or []
    total = getattr(response, "count", None)
    return [_row_to_sale(row) for row in rows], int(total if total is not None else len(rows))


def fetch_sales(filters: SalesQueryFilters) -> List[SaleRecord]:
    """
    Every sale matching the filters, for aggregation.

    Pages through the table in fixed chunks keyed on sale_id: each page asks
    for ids greater than the last one seen, so rows inserted while paging
    cannot shift a page boundary and no row is skipped or repeated.
    """

    sales: List[SaleRecord] = []
    last_id: Optional[str] = None
    while True:
        query = _apply_filters(get_supabase().table(_SALES_TABLE).select(_OWNED_SELECT), filters)
        if last_id is not None:
            query = query.gt("sale_id", last_id)
        query = query.order("sale_id").limit(_FETCH_CHUNK_SIZE)

        response = execute(query, "fetch sales")
        rows = getattr(response, "data", None) or []
        sales.extend(_row_to_sale(row) for row in rows)
        if len(rows) < _FETCH_CHUNK_SIZE:
            return sales
        last_id = str(rows[-1]["sale_id"])


def replace_sale(sale_id: UUID, sale: SaleInput) -> Optional[SaleRecord]:
    """
    Replace every field of an existing sale (no partial edits).

    Ownership must be verified by the caller.

    Returns:
        The updated SaleRecord, or None if the sale no longer exists
    """

    payload: dict[str, Any] = {
        "sale_date": sale.sale_date.isoformat(),
        "units": sale.units,
        "revenue": str(sale.revenue),
        "royalty": str(sale.royalty),
        "platform": sale.platform,
    }

    response = execute(
        get_supabase().table(_SALES_TABLE).update(payload).eq("sale_id", str(sale_id)),
        "update sale",
    )
    rows = getattr(response, "data", None) or []
    if not rows:
        return None
    return _row_to_sale(rows[0])


def delete_sale(sale_id: UUID) -> bool:
    """
    Delete a sale. Ownership must be verified by the caller.

    Returns:
        True if a row was deleted
    """

    response = execute(
        get_supabase().table(_SALES_TABLE).delete().eq("sale_id", str(sale_id)),
        "delete sale",
    )
    rows = getattr(response, "data", None) or []
    return bool(rows)


__all__ = [
    "SalesQueryFilters",
    "create_sale",
    "get_sale_owned_by",
    "list_sales",
    "fetch_sales",
    "replace_sale",
    "delete_sale",
]
