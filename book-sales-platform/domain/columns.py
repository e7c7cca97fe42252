"""
Domain: column resolution for vendor sales exports.

Platforms name their export columns inconsistently. Each canonical field keeps
an ordered list of accepted header aliases; supporting a new export format is a
change to COLUMN_ALIASES, not to the resolution logic.

Rules:
- Matching is case-sensitive against the literal aliases. Headers are not
  lower-cased, so an unknown spelling is never guessed.
- For each field the first alias, in priority order, whose value is present
  and non-blank wins.
- A field with no usable alias is omitted from the result (a resolution gap).
  The row validator decides whether that means a default or a failure.
- Resolution never raises, whatever the input mapping contains.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Tuple

ALIAS_TABLE_VERSION: int = 1

COLUMN_ALIASES: Dict[str, Tuple[str, ...]] = {
    "date": ("date", "Date", "sale_date"),
    "units": ("units", "Units", "quantity", "Quantity"),
    "revenue": ("revenue", "Revenue", "price", "Price"),
    "royalty": ("royalty", "Royalty", "earnings", "Earnings"),
}


def _present(value: Any) -> Optional[str]:
    if value is None:
        return None
    try:
        text = value if isinstance(value, str) else str(value)
    except Exception:
        return None
    text = text.strip()
    return text or None


def resolve_field(raw: Mapping[Any, Any], field: str) -> Optional[str]:
    """Return the stripped value of the highest-priority alias present, or None."""

    for alias in COLUMN_ALIASES.get(field, ()):
        text = _present(raw.get(alias))
        if text is not None:
            return text
    return None


def resolve_columns(raw: Mapping[Any, Any]) -> Dict[str, str]:
    """
    Map one raw record (header -> value) onto the canonical fields.

    Unrecognized columns are ignored. Absent fields are left out of the result.

    Example:
        resolve_columns({"Date": "2024-01-12", "Units": "8", "Notes": "x"})
        # {"date": "2024-01-12", "units": "8"}
    """

    resolved: Dict[str, str] = {}
    for field in COLUMN_ALIASES:
        value = resolve_field(raw, field)
        if value is not None:
            resolved[field] = value
    return resolved
