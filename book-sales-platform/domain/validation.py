"""
Domain: row validation for sales ingestion.

Turns one resolved row (canonical field -> raw text, possibly with gaps) plus
the batch platform into either a SaleInput or the list of field failures.

Field rules:
- date: required. Accepts YYYY-MM-DD, ISO-8601 date-times (date part kept),
  YYYY/MM/DD and MM/DD/YYYY.
- units: defaults to 1 when absent. Non-negative integer.
- revenue, royalty: default to 0 when absent. Non-negative decimal with at most
  2 fractional digits.
- platform: validated once per batch by the caller, never per row.

Every field is checked independently and all failures are reported.
validate_row never raises.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import List, Mapping, Optional, Tuple

from .sale import SaleInput, parse_money

ABSENT: str = "absent"

DEFAULT_UNITS: int = 1
DEFAULT_AMOUNT: Decimal = Decimal("0.00")

_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_DATE_FORMATS: Tuple[str, ...] = ("%Y/%m/%d", "%m/%d/%Y")


@dataclass(frozen=True, slots=True)
class FieldError:
    """A field that was present but invalid, or a required field that was absent."""

    field: str
    raw_value: str
    reason: str

    def describe(self) -> str:
        return f"Invalid {self.field}: {self.raw_value} ({self.reason})"


@dataclass(frozen=True, slots=True)
class RowValidationResult:
    sale: Optional[SaleInput]
    errors: Tuple[FieldError, ...] = ()

    @property
    def is_valid(self) -> bool:
        return self.sale is not None

    def describe(self) -> str:
        return "; ".join(error.describe() for error in self.errors)


def parse_sale_date(text: str) -> date:
    """
    Parse a calendar date from an export cell.

    Raises ValueError when no accepted format matches.
    """

    text = text.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError("not a recognized calendar date")


def parse_units(text: str) -> int:
    text = text.strip()
    if not _INTEGER_RE.match(text):
        raise ValueError("must be a whole number")
    units = int(text)
    if units < 0:
        raise ValueError("must be non-negative")
    return units


def _reason(error: ValueError) -> str:
    # parse_money prefixes messages with the field name.
    message = str(error)
    for prefix in ("revenue ", "royalty "):
        if message.startswith(prefix):
            return message[len(prefix):]
    return message


def validate_row(resolved: Mapping[str, str], platform: str) -> RowValidationResult:
    """
    Validate one resolved row.

    Args:
        resolved: Output of domain.columns.resolve_columns
        platform: Batch platform, already normalized by the caller

    Returns:
        RowValidationResult with either a SaleInput or every field failure
    """

    errors: List[FieldError] = []

    sale_date: Optional[date] = None
    raw_date = resolved.get("date")
    if raw_date is None:
        errors.append(FieldError("date", ABSENT, "date is required"))
    else:
        try:
            sale_date = parse_sale_date(raw_date)
        except ValueError as e:
            errors.append(FieldError("date", raw_date, str(e)))

    units: Optional[int] = DEFAULT_UNITS
    raw_units = resolved.get("units")
    if raw_units is not None:
        try:
            units = parse_units(raw_units)
        except ValueError as e:
            units = None
            errors.append(FieldError("units", raw_units, str(e)))

    amounts = {}
    for field in ("revenue", "royalty"):
        raw_amount = resolved.get(field)
        if raw_amount is None:
            amounts[field] = DEFAULT_AMOUNT
            continue
        try:
            amounts[field] = parse_money(field, raw_amount)
        except ValueError as e:
            errors.append(FieldError(field, raw_amount, _reason(e)))

    if errors:
        return RowValidationResult(sale=None, errors=tuple(errors))

    try:
        sale = SaleInput(
            sale_date=sale_date,
            units=units,
            revenue=amounts["revenue"],
            royalty=amounts["royalty"],
            platform=platform,
        )
    except ValueError as e:
        return RowValidationResult(sale=None, errors=(FieldError("platform", platform or ABSENT, str(e)),))

    return RowValidationResult(sale=sale)
