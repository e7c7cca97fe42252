"""
Domain: error taxonomy for sales ingestion and aggregation.

Per-row problems during ingestion are values, not exceptions:
- A resolution gap (no alias present for a canonical field) is represented by
  the field being absent from the resolved row.
- A field that is present but invalid is a `FieldError` (see domain.validation).

The exceptions below terminate a whole request (or, for StoreError during
ingestion, a single row's commit).
"""

from __future__ import annotations

from typing import List, Sequence


class SalesLedgerError(Exception):
    """Base class for errors raised by the sales ledger core."""


class OwnershipError(SalesLedgerError):
    """
    The referenced Book or Sale does not belong to the caller.

    Surfaced as not-found so the existence of other users' records never leaks.
    """

    def __init__(self, resource: str, resource_id: object) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")


class StoreError(SalesLedgerError):
    """The persistence layer rejected an operation (constraint, connectivity)."""


class EmptyBatchError(SalesLedgerError):
    """Every row of an ingestion batch failed validation."""

    def __init__(self, errors: Sequence[str], total_rows: int) -> None:
        self.errors: List[str] = list(errors)
        self.total_rows = total_rows
        super().__init__("No valid sales data found in CSV file")


class InvalidUploadError(SalesLedgerError):
    """The uploaded file cannot be read as a delimited file with a header line."""
