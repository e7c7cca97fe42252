"""
Domain: Sale records (the ledger's unit record) and the canonical input schema.

Rules implemented here:
- The canonical input fields of a sale are `date`, `units`, `revenue`, `royalty`.
  `platform` is supplied per batch by the caller, never read from file content.
- units is a non-negative integer.
- revenue and royalty are non-negative amounts representable exactly with
  2 fractional digits. Values needing more precision are rejected, never rounded.
  No royalty <= revenue relation is enforced.
- platform is 1-100 characters after trimming.

This module is pure: no I/O, no database, no frameworks.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple
from uuid import UUID

from .time import require_calendar_date, require_utc_timestamp

CANONICAL_FIELDS: Tuple[str, ...] = ("date", "units", "revenue", "royalty")

PLATFORM_MAX_LENGTH: int = 100

CENT: Decimal = Decimal("0.01")

# Suggested labels for the upload form. Platform stays free text.
SUPPORTED_PLATFORMS: Tuple[str, ...] = (
    "Amazon KDP",
    "Gumroad",
    "BookBaby",
    "IngramSpark",
    "Draft2Digital",
    "Smashwords",
    "Apple Books",
    "Google Play Books",
    "Kobo",
    "Barnes & Noble",
    "Other",
)


def require_money(name: str, value: Decimal) -> Decimal:
    """
    Validate a monetary amount and return it with exactly two decimal places.

    Raises ValueError when the amount is not a finite Decimal, is negative, or
    would need rounding to fit in 2 fractional digits.
    """

    if not isinstance(value, Decimal) or not value.is_finite():
        raise ValueError(f"{name} must be a finite decimal amount")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    try:
        quantized = value.quantize(CENT)
    except InvalidOperation as e:
        raise ValueError(f"{name} is out of range") from e
    if quantized != value:
        raise ValueError(f"{name} must have at most 2 decimal places")
    return quantized


def parse_money(name: str, text: str) -> Decimal:
    """Parse raw text into a validated monetary amount (see `require_money`)."""

    try:
        value = Decimal(text.strip())
    except InvalidOperation as e:
        raise ValueError(f"{name} is not a number") from e
    return require_money(name, value)


def require_units(value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError("units must be an integer")
    if value < 0:
        raise ValueError("units must be non-negative")


def normalize_platform(platform: Optional[str]) -> str:
    """
    Trim a platform label and enforce its length rules.

    Raises ValueError for an empty or over-long label.
    """

    text = (platform or "").strip()
    if not text:
        raise ValueError("platform is required")
    if len(text) > PLATFORM_MAX_LENGTH:
        raise ValueError(f"platform must be at most {PLATFORM_MAX_LENGTH} characters")
    return text


@dataclass(frozen=True, slots=True)
class SaleInput:
    """
    A validated, sale-ready value (not yet persisted).

    Produced by the row validator during ingestion and by direct entry.
    Amounts are normalized to two decimal places.
    """

    sale_date: date
    units: int
    revenue: Decimal
    royalty: Decimal
    platform: str

    def __post_init__(self) -> None:
        require_calendar_date("sale_date", self.sale_date)
        require_units(self.units)
        object.__setattr__(self, "revenue", require_money("revenue", self.revenue))
        object.__setattr__(self, "royalty", require_money("royalty", self.royalty))
        object.__setattr__(self, "platform", normalize_platform(self.platform))


@dataclass(frozen=True, slots=True)
class SaleRecord:
    """
    Immutable ledger record of sales for one book, day and platform.

    Captures:
    - Which book sold (book_id; ownership flows through the book)
    - When (sale_date, a calendar date)
    - How much (units, revenue, royalty)
    - Where (platform)

    Records are replaced as a whole on update; there are no partial edits.
    """

    sale_id: UUID
    book_id: UUID
    sale_date: date
    units: int
    revenue: Decimal
    royalty: Decimal
    platform: str
    created_at: Optional[datetime] = None
    book_title: Optional[str] = None  # denormalized from the books join, when fetched

    def __post_init__(self) -> None:
        require_calendar_date("sale_date", self.sale_date)
        require_units(self.units)
        object.__setattr__(self, "revenue", require_money("revenue", self.revenue))
        object.__setattr__(self, "royalty", require_money("royalty", self.royalty))
        object.__setattr__(self, "platform", normalize_platform(self.platform))
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)
