"""
Domain time utilities (pure).

Centralized timestamp validation and calendar-month helpers.

Behavior and error messages must remain consistent across the domain model.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta


def require_utc_timestamp(name: str, value: datetime) -> None:
    """
    Enforces that stored timestamps are UTC.

    Invariants:
    - Timestamps must be timezone-aware.
    - Timestamps must have UTC offset 0.
    """

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware (UTC)")
    if value.utcoffset() != timedelta(0):
        raise ValueError(f"{name} must be a UTC timestamp (offset 0)")


def require_calendar_date(name: str, value: date) -> None:
    """Sale dates are plain calendar dates; datetimes are rejected."""

    if isinstance(value, datetime) or not isinstance(value, date):
        raise ValueError(f"{name} must be a calendar date")


def month_key(value: date) -> str:
    """Truncate a calendar date to its `YYYY-MM` month key."""

    return f"{value.year:04d}-{value.month:02d}"
