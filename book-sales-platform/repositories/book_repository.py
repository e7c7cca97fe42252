"""
Book repository (persistence).

Persistence operations for the Book entity. Every query is scoped by owner
(user_id); a book that belongs to someone else is indistinguishable from a
missing one. Deleting a book removes its sales through the ON DELETE CASCADE
foreign key on `sales.book_id` (see sql/001_books_and_sales.sql).
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, List, Mapping, Optional
from uuid import UUID, uuid4

from domain.book import Book, BookDetails
from repositories.client import execute, get_supabase

# Supabase table name for books.
# Keep this aligned with your database schema.
_BOOKS_TABLE: str = "books"


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


def _sales_count(row: Mapping[str, Any]) -> Optional[int]:
    # PostgREST embeds an aggregate as [{"count": n}]
    embedded = row.get("sales")
    if not embedded:
        return None
    return int(embedded[0].get("count", 0))


def _row_to_book(row: Mapping[str, Any]) -> Book:
    """Convert a Supabase row into a Book."""

    published = row.get("published_at")
    return Book(
        book_id=UUID(str(row["book_id"])),
        user_id=UUID(str(row["user_id"])),
        details=BookDetails(
            title=str(row["title"]),
            isbn=row.get("isbn"),
            description=row.get("description"),
            cover_image=row.get("cover_image"),
            published_at=date.fromisoformat(str(published)[:10]) if published else None,
        ),
        created_at=_parse_utc_datetime(row["created_at_utc"]) if row.get("created_at_utc") else None,
        updated_at=_parse_utc_datetime(row["updated_at_utc"]) if row.get("updated_at_utc") else None,
        sales_count=_sales_count(row),
    )


def _details_payload(details: BookDetails) -> dict[str, Any]:
    return {
        "title": details.title,
        "isbn": details.isbn or None,
        "description": details.description or None,
        "cover_image": details.cover_image or None,
        "published_at": details.published_at.isoformat() if details.published_at else None,
    }


def create_book(user_id: UUID, details: BookDetails) -> Book:
    """
    Insert a new book owned by `user_id`.

    Returns:
        Book domain model with the generated book_id
    """

    book_id = uuid4()
    now = datetime.now(timezone.utc)

    payload: dict[str, Any] = {
        "book_id": str(book_id),
        "user_id": str(user_id),
        **_details_payload(details),
        "created_at_utc": now.isoformat(),
        "updated_at_utc": now.isoformat(),
    }

    execute(get_supabase().table(_BOOKS_TABLE).insert(payload), "create book")

    return Book(book_id=book_id, user_id=user_id, details=details, created_at=now, updated_at=now)


def get_book_owned_by(book_id: UUID, user_id: UUID) -> Optional[Book]:
    """
    Fetch a book only if it belongs to `user_id`.

    Returns:
        Book or None if it does not exist or belongs to another user
    """

    response = execute(
        get_supabase()
        .table(_BOOKS_TABLE)
        .select("*")
        .eq("book_id", str(book_id))
        .eq("user_id", str(user_id))
        .limit(1),
        "get book",
    )
    rows = getattr(response, "data", None) or []
    if not rows:
        return None
    return _row_to_book(rows[0])


def list_books_by_user(user_id: UUID) -> List[Book]:
    """
    List a user's books, newest first, each with its sales count.

    Returns:
        List[Book] (possibly empty)
    """

    response = execute(
        get_supabase()
        .table(_BOOKS_TABLE)
        .select("*, sales(count)")
        .eq("user_id", str(user_id))
        .order("created_at_utc", desc=True),
        "list books",
    )
    rows = getattr(response, "data", None) or []
    return [_row_to_book(row) for row in rows]


def replace_book(book_id: UUID, user_id: UUID, details: BookDetails) -> Optional[Book]:
    """
    Replace every editable field of an owned book. The owner never changes.

    Returns:
        The updated Book, or None when no owned book matched
    """

    payload = {
        **_details_payload(details),
        "updated_at_utc": datetime.now(timezone.utc).isoformat(),
    }
    response = execute(
        get_supabase()
        .table(_BOOKS_TABLE)
        .update(payload)
        .eq("book_id", str(book_id))
        .eq("user_id", str(user_id)),
        "update book",
    )
    rows = getattr(response, "data", None) or []
    if not rows:
        return None
    return _row_to_book(rows[0])


def delete_book(book_id: UUID, user_id: UUID) -> bool:
    """
    Delete an owned book; its sales are removed by cascade.

    Returns:
        True if a row was deleted
    """

    response = execute(
        get_supabase()
        .table(_BOOKS_TABLE)
        .delete()
        .eq("book_id", str(book_id))
        .eq("user_id", str(user_id)),
        "delete book",
    )
    rows = getattr(response, "data", None) or []
    return bool(rows)


__all__ = [
    "create_book",
    "get_book_owned_by",
    "list_books_by_user",
    "replace_book",
    "delete_book",
]
