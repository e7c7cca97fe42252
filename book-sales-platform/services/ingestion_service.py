"""
Sales ingestion service.

Imports a platform's sales export (delimited text with a header line) into the
ledger for one book:
- Each row is resolved to the canonical columns, validated, and committed on
  its own. A bad row never aborts the batch.
- Validation failures and commit failures are collected as ordered,
  human-readable strings ("Row 4: Invalid units: -1 (must be non-negative)").
  Row numbers are file line numbers; the header is line 1.
- There is no batch atomicity: rows committed before a later failure stay.
- A batch without a single valid row fails as a whole (EmptyBatchError).
- File-level problems (empty file, bad encoding) are detected before the first
  commit, so they never leave a partial import behind.
"""

from __future__ import annotations

import codecs
import csv
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, Callable, Iterable, Iterator, List, Mapping, Optional, Tuple, Union
from uuid import UUID

from domain.columns import resolve_columns
from domain.errors import EmptyBatchError, InvalidUploadError, OwnershipError, StoreError
from domain.sale import CANONICAL_FIELDS, SaleInput, SaleRecord, normalize_platform
from domain.validation import validate_row
from repositories import book_repository, sale_repository

logger = logging.getLogger(__name__)

TEMPLATE_ROWS: List[tuple[str, ...]] = [
    ("2024-01-15", "5", "24.99", "8.75"),
    ("2024-01-20", "3", "14.99", "5.25"),
    ("2024-02-01", "8", "39.99", "14.00"),
]

# Row numbers count the header line as row 1
FIRST_DATA_ROW: int = 2

_ENCODING_CHECK_CHUNK: int = 64 * 1024

CommitSale = Callable[[UUID, SaleInput], SaleRecord]


@dataclass
class IngestionResult:
    """
    Outcome of one ingestion batch.

    total_rows: data rows read from the source
    created_sales: sales committed to the ledger
    errors: one message per rejected row, in input order
    sales: the committed records
    """
    total_rows: int = 0
    created_sales: int = 0
    errors: List[str] = field(default_factory=list)
    sales: List[SaleRecord] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)


@dataclass(frozen=True, slots=True)
class MalformedRow:
    """Placeholder for a record the CSV reader could not split into fields."""
    message: str


RawRow = Union[Mapping[Any, Any], MalformedRow]
NumberedRow = Tuple[int, RawRow]


def number_rows(rows: Iterable[RawRow], start: int = FIRST_DATA_ROW) -> Iterator[NumberedRow]:
    """Number in-memory rows as if each occupied one line after the header."""
    return enumerate(rows, start=start)


def commit_sale(book_id: UUID, sale: SaleInput) -> SaleRecord:
    """Default commit: insert the sale through the sale repository."""

    return sale_repository.create_sale(
        book_id=book_id,
        sale_date=sale.sale_date,
        units=sale.units,
        revenue=sale.revenue,
        royalty=sale.royalty,
        platform=sale.platform,
    )


def ingest_sales_rows(
    rows: Iterable[NumberedRow],
    book_id: UUID,
    platform: str,
    commit: Optional[CommitSale] = None,
) -> IngestionResult:
    """
    Resolve, validate and commit every row of one batch.

    The caller must already have verified that `book_id` belongs to the user.

    Args:
        rows: (line number, raw header -> value mapping) pairs, read once front
            to back. See read_csv_records and number_rows.
        book_id: Target book
        platform: Platform label for the whole batch
        commit: Persists one valid sale (default: commit_sale)

    Returns:
        IngestionResult with counts, committed sales and per-row errors

    Raises:
        ValueError: If the platform label is empty or too long
        EmptyBatchError: If no row passed validation
    """

    platform = normalize_platform(platform)
    commit = commit or commit_sale

    result = IngestionResult()
    valid_rows = 0

    for row_number, raw in rows:
        result.total_rows += 1

        if isinstance(raw, MalformedRow):
            result.errors.append(f"Row {row_number}: {raw.message}")
            continue

        validation = validate_row(resolve_columns(raw), platform)
        if not validation.is_valid:
            message = f"Row {row_number}: {validation.describe()}"
            result.errors.append(message)
            logger.warning(
                "Sales row rejected",
                extra={"book_id": str(book_id), "row_number": row_number, "reason": message},
            )
            continue

        valid_rows += 1
        try:
            record = commit(book_id, validation.sale)
        except StoreError as e:
            result.errors.append(f"Row {row_number}: Failed to create sale record: {e}")
            logger.warning(
                "Sales row commit failed",
                extra={"book_id": str(book_id), "row_number": row_number, "error": str(e)},
            )
            continue

        result.sales.append(record)
        result.created_sales += 1

    if valid_rows == 0:
        raise EmptyBatchError(result.errors, result.total_rows)

    return result


def require_utf8(stream: BinaryIO) -> None:
    """
    Decode the whole stream once, then rewind it.

    Raises:
        InvalidUploadError: If any byte sequence is not valid UTF-8
    """

    decoder = codecs.getincrementaldecoder("utf-8")()
    try:
        while True:
            chunk = stream.read(_ENCODING_CHECK_CHUNK)
            if not chunk:
                decoder.decode(b"", final=True)
                break
            decoder.decode(chunk)
    except UnicodeDecodeError as e:
        raise InvalidUploadError("CSV file must be UTF-8 encoded") from e
    stream.seek(0)


def open_csv_reader(stream: BinaryIO) -> Tuple[io.TextIOWrapper, Any, List[str]]:
    """
    Check the encoding and read the header line.

    Returns:
        (text wrapper, csv reader positioned after the header, header names).
        Closing the wrapper closes `stream`.

    Raises:
        InvalidUploadError: If the file is not UTF-8 or has no header line
    """

    require_utf8(stream)
    text = io.TextIOWrapper(stream, encoding="utf-8-sig", newline="")
    reader = csv.reader(text)
    try:
        header = next(reader, [])
    except csv.Error as e:
        raise InvalidUploadError("CSV file is empty or malformed") from e
    if not header:
        raise InvalidUploadError("CSV file is empty or malformed")
    return text, reader, header


def _as_record(fieldnames: List[str], values: List[str]) -> dict:
    # Same shape as csv.DictReader: extra cells under None, missing cells None
    record: dict = dict(zip(fieldnames, values))
    if len(values) > len(fieldnames):
        record[None] = values[len(fieldnames):]
    for name in fieldnames[len(values):]:
        record[name] = None
    return record


def read_csv_records(reader: Any, fieldnames: List[str]) -> Iterator[NumberedRow]:
    """
    Yield (line number, record) for each data record of a csv reader.

    The line number is the file line the record starts on, so multi-line
    quoted fields and skipped blank lines do not shift later rows.
    """

    while True:
        first_line = reader.line_num + 1
        try:
            values = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            yield first_line, MalformedRow(f"Malformed CSV line: {e}")
            continue
        if not values:
            continue
        yield first_line, _as_record(fieldnames, values)


def ingest_csv_file(
    source: Union[str, Path, BinaryIO],
    user_id: UUID,
    book_id: UUID,
    platform: str,
    *,
    delete_after: bool = False,
    commit: Optional[CommitSale] = None,
) -> IngestionResult:
    """
    Ingest a CSV export for a book owned by `user_id`.

    The whole input is checked for valid UTF-8 before any row is committed,
    then streamed once. Whatever happens, the source is closed when processing
    ends, and a path source is deleted when `delete_after` is set.

    Args:
        source: Path to the CSV file, or a seekable binary stream
        user_id: Caller
        book_id: Target book (must belong to the caller)
        platform: Platform label for every row
        delete_after: Remove the file at `source` once done (temporary uploads)
        commit: Persists one valid sale (default: commit_sale)

    Raises:
        ValueError: If the platform label is invalid
        OwnershipError: If the book does not exist or is not the caller's
        InvalidUploadError: If the file has no header line or is not UTF-8
        EmptyBatchError: If no row passed validation
        StoreError: If the ownership lookup fails
    """

    path = Path(source) if isinstance(source, (str, Path)) else None
    handle = None if path is not None else source

    try:
        platform = normalize_platform(platform)

        if book_repository.get_book_owned_by(book_id, user_id) is None:
            raise OwnershipError("Book", book_id)

        if path is not None:
            handle = open(path, "rb")
        text, reader, header = open_csv_reader(handle)
        handle = text  # closing the wrapper closes the underlying stream

        logger.info(
            "Starting sales ingestion",
            extra={"user_id": str(user_id), "book_id": str(book_id), "platform": platform},
        )

        result = ingest_sales_rows(read_csv_records(reader, header), book_id, platform, commit=commit)

        logger.info(
            "Finished sales ingestion",
            extra={
                "book_id": str(book_id),
                "total_rows": result.total_rows,
                "created_sales": result.created_sales,
                "error_count": result.error_count,
            },
        )
        return result

    finally:
        if handle is not None:
            handle.close()
        if delete_after and path is not None:
            path.unlink(missing_ok=True)


def build_template_csv() -> str:
    """The downloadable template: canonical headers plus example rows."""

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CANONICAL_FIELDS)
    writer.writerows(TEMPLATE_ROWS)
    return buffer.getvalue()


__all__ = [
    "IngestionResult",
    "MalformedRow",
    "number_rows",
    "commit_sale",
    "ingest_sales_rows",
    "require_utf8",
    "open_csv_reader",
    "read_csv_records",
    "ingest_csv_file",
    "build_template_csv",
]
