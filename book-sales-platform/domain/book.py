"""
Domain: Book entity.

A Book is the ownership boundary of the ledger: every Sale reaches exactly one
User through exactly one Book. The owner (user_id) never changes after creation.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from .time import require_calendar_date, require_utc_timestamp

TITLE_MAX_LENGTH: int = 200
ISBN_MAX_LENGTH: int = 20
DESCRIPTION_MAX_LENGTH: int = 1000


def _require_max_length(name: str, value: Optional[str], limit: int) -> None:
    if value is not None and len(value) > limit:
        raise ValueError(f"{name} must be at most {limit} characters")


@dataclass(frozen=True, slots=True)
class BookDetails:
    """The user-editable fields of a book, validated as a whole."""

    title: str
    isbn: Optional[str] = None
    description: Optional[str] = None
    cover_image: Optional[str] = None
    published_at: Optional[date] = None

    def __post_init__(self) -> None:
        title = (self.title or "").strip()
        if not title:
            raise ValueError("title is required")
        _require_max_length("title", title, TITLE_MAX_LENGTH)
        _require_max_length("isbn", self.isbn, ISBN_MAX_LENGTH)
        _require_max_length("description", self.description, DESCRIPTION_MAX_LENGTH)
        if self.published_at is not None:
            require_calendar_date("published_at", self.published_at)
        object.__setattr__(self, "title", title)


@dataclass(frozen=True, slots=True)
class Book:
    """
    Persisted book owned by a single user.

    sales_count is a read-model field filled in by listings; it is None when
    the count was not requested.
    """

    book_id: UUID
    user_id: UUID
    details: BookDetails
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    sales_count: Optional[int] = None

    def __post_init__(self) -> None:
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)
        if self.updated_at is not None:
            require_utc_timestamp("updated_at", self.updated_at)

    @property
    def title(self) -> str:
        return self.details.title

    def is_owned_by(self, user_id: UUID) -> bool:
        return self.user_id == user_id
