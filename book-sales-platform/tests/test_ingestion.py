"""
Tests for `services/ingestion_service.py`.

Covers contract rules:
- One bad row never aborts the batch; valid rows are committed.
- Commit failures are reported per row and do not roll back earlier rows.
- A batch with no valid row raises EmptyBatchError with every row error.
- Row numbers count the header as row 1.
- The book must belong to the caller.
- The source is always closed, and deleted when requested.
"""

from __future__ import annotations

import io
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from domain.errors import EmptyBatchError, InvalidUploadError, OwnershipError
from services import analytics_service
from services.ingestion_service import (
    MalformedRow,
    build_template_csv,
    commit_sale,
    ingest_csv_file,
    ingest_sales_rows,
    number_rows,
    open_csv_reader,
    read_csv_records,
)
from conftest import USER_ID


def test_mixed_vendor_columns_scenario(ledger, book) -> None:
    """Two valid rows with different header spellings plus one negative-units row."""

    rows = [
        {"Date": "2024-01-12", "Units": "8", "Revenue": "39.92", "Royalty": "13.97"},
        {"sale_date": "2024-01-18", "quantity": "12", "price": "59.88", "earnings": "20.96"},
        {"date": "2024-01-20", "units": "-1", "revenue": "4.99", "royalty": "1.75"},
    ]

    result = ingest_sales_rows(number_rows(rows), book.book_id, "Amazon KDP")

    assert result.total_rows == 3
    assert result.created_sales == 2
    assert result.error_count == 1
    assert result.errors == ["Row 4: Invalid units: -1 (must be non-negative)"]
    assert {sale.platform for sale in result.sales} == {"Amazon KDP"}

    overview = analytics_service.get_sales_analytics(USER_ID).overview
    assert overview.total_sales == 2
    assert overview.total_units == 20
    assert overview.total_revenue == Decimal("99.80")
    assert overview.total_royalty == Decimal("34.93")


def test_partial_failure_is_isolated(ledger, book) -> None:
    rows = [{"date": f"2024-03-{day:02d}", "units": "1"} for day in range(1, 10)]
    rows[4] = {"date": "2024-03-05", "units": "one"}

    result = ingest_sales_rows(number_rows(rows), book.book_id, "Kobo")

    assert result.created_sales == 8
    assert result.errors == ["Row 6: Invalid units: one (must be a whole number)"]
    assert len(ledger.sales) == 8


def test_commit_failure_continues_without_rollback(ledger, book) -> None:
    ledger.failing_dates.add(date(2024, 1, 2))
    rows = [
        {"date": "2024-01-01"},
        {"date": "2024-01-02"},
        {"date": "2024-01-03"},
    ]

    result = ingest_sales_rows(number_rows(rows), book.book_id, "Gumroad")

    assert ledger.insert_attempts == 3
    assert result.created_sales == 2
    assert result.error_count == 1
    assert result.errors[0].startswith("Row 3: Failed to create sale record:")
    assert sorted(sale.sale_date for sale in ledger.sales.values()) == [date(2024, 1, 1), date(2024, 1, 3)]


def test_every_commit_failing_still_reports_batch(ledger, book) -> None:
    ledger.failing_dates.add(date(2024, 1, 1))

    result = ingest_sales_rows(number_rows([{"date": "2024-01-01"}]), book.book_id, "Gumroad")

    assert result.created_sales == 0
    assert result.error_count == 1


def test_all_rows_invalid_raises_empty_batch(ledger, book) -> None:
    rows = [{"units": "3"}, {"date": "not a date"}]

    with pytest.raises(EmptyBatchError) as excinfo:
        ingest_sales_rows(number_rows(rows), book.book_id, "Kobo")

    assert str(excinfo.value) == "No valid sales data found in CSV file"
    assert excinfo.value.total_rows == 2
    assert excinfo.value.errors == [
        "Row 2: Invalid date: absent (date is required)",
        "Row 3: Invalid date: not a date (not a recognized calendar date)",
    ]
    assert ledger.insert_attempts == 0


def test_empty_input_raises_empty_batch(ledger, book) -> None:
    with pytest.raises(EmptyBatchError) as excinfo:
        ingest_sales_rows(number_rows([]), book.book_id, "Kobo")

    assert excinfo.value.errors == []


def test_invalid_platform_rejects_batch_before_any_row(ledger, book) -> None:
    with pytest.raises(ValueError, match="platform"):
        ingest_sales_rows(number_rows([{"date": "2024-01-01"}]), book.book_id, "   ")

    assert ledger.insert_attempts == 0


def test_malformed_row_is_reported(ledger, book) -> None:
    rows = [{"date": "2024-01-01"}, MalformedRow("Malformed CSV line: bad quoting")]

    result = ingest_sales_rows(number_rows(rows), book.book_id, "Kobo")

    assert result.errors == ["Row 3: Malformed CSV line: bad quoting"]


def test_custom_commit_is_used(ledger, book) -> None:
    committed = []

    def commit(book_id, sale):
        committed.append(sale)
        return commit_sale(book_id, sale)

    ingest_sales_rows(number_rows([{"date": "2024-01-01", "units": "2"}]), book.book_id, "Kobo", commit=commit)

    assert [sale.units for sale in committed] == [2]
    assert len(ledger.sales) == 1


# -- files --------------------------------------------------------------------

CSV_TEXT = (
    "date,units,revenue,royalty,Notes\n"
    "2024-01-15,5,24.99,8.75,launch\n"
    "2024-01-20,-1,14.99,5.25,refund\n"
    "2024-02-01,8,39.99,14.00,\n"
)


def test_csv_file_is_ingested_and_deleted(ledger, book, tmp_path: Path) -> None:
    path = tmp_path / "upload.csv"
    path.write_text(CSV_TEXT, encoding="utf-8")

    result = ingest_csv_file(path, USER_ID, book.book_id, "Kobo", delete_after=True)

    assert result.total_rows == 3
    assert result.created_sales == 2
    assert result.errors == ["Row 3: Invalid units: -1 (must be non-negative)"]
    assert not path.exists()


def test_csv_file_is_kept_without_delete_after(ledger, book, tmp_path: Path) -> None:
    path = tmp_path / "upload.csv"
    path.write_text(CSV_TEXT, encoding="utf-8")

    ingest_csv_file(str(path), USER_ID, book.book_id, "Kobo")

    assert path.exists()


def test_file_is_deleted_even_when_batch_fails(ledger, book, tmp_path: Path) -> None:
    path = tmp_path / "upload.csv"
    path.write_text("date,units\n,3\n", encoding="utf-8")

    with pytest.raises(EmptyBatchError):
        ingest_csv_file(path, USER_ID, book.book_id, "Kobo", delete_after=True)

    assert not path.exists()


def test_foreign_book_is_rejected_and_file_deleted(ledger, other_book, tmp_path: Path) -> None:
    path = tmp_path / "upload.csv"
    path.write_text(CSV_TEXT, encoding="utf-8")

    with pytest.raises(OwnershipError):
        ingest_csv_file(path, USER_ID, other_book.book_id, "Kobo", delete_after=True)

    assert not path.exists()
    assert ledger.insert_attempts == 0


def test_stream_is_closed(ledger, book) -> None:
    stream = io.BytesIO(("\ufeff" + CSV_TEXT).encode("utf-8"))

    result = ingest_csv_file(stream, USER_ID, book.book_id, "Kobo")

    assert result.created_sales == 2
    assert stream.closed


def test_stream_is_closed_on_ownership_failure(ledger, other_book) -> None:
    stream = io.BytesIO(CSV_TEXT.encode("utf-8"))

    with pytest.raises(OwnershipError):
        ingest_csv_file(stream, USER_ID, other_book.book_id, "Kobo")

    assert stream.closed


def test_empty_file_is_invalid_upload(ledger, book) -> None:
    with pytest.raises(InvalidUploadError, match="empty or malformed"):
        ingest_csv_file(io.BytesIO(b""), USER_ID, book.book_id, "Kobo")


def test_non_utf8_file_is_invalid_upload(ledger, book) -> None:
    data = "date,units\n2024-01-01,2\n".encode("utf-16")

    with pytest.raises(InvalidUploadError, match="UTF-8"):
        ingest_csv_file(io.BytesIO(data), USER_ID, book.book_id, "Kobo")


def _late_bad_byte_csv() -> bytes:
    # Enough valid rows to fill several reader buffers before the bad byte
    valid = "".join("2024-01-01,1,1.00,0.50\n" for _ in range(800))
    return ("date,units,revenue,royalty\n" + valid).encode("utf-8") + b"2024-02-01,1,\xff,1\n"


def test_late_invalid_byte_rejects_upload_before_any_commit(ledger, book) -> None:
    data = _late_bad_byte_csv()
    assert len(data) > 8 * 1024
    stream = io.BytesIO(data)

    with pytest.raises(InvalidUploadError, match="UTF-8"):
        ingest_csv_file(stream, USER_ID, book.book_id, "Kobo")

    assert ledger.insert_attempts == 0
    assert ledger.sales == {}
    assert stream.closed


def test_late_invalid_byte_file_is_deleted_without_partial_import(ledger, book, tmp_path: Path) -> None:
    path = tmp_path / "upload.csv"
    path.write_bytes(_late_bad_byte_csv())

    with pytest.raises(InvalidUploadError):
        ingest_csv_file(path, USER_ID, book.book_id, "Kobo", delete_after=True)

    assert ledger.insert_attempts == 0
    assert not path.exists()


def test_row_numbers_count_blank_lines(ledger, book) -> None:
    stream = io.BytesIO(b"date,units\n2024-01-01,1\n\n2024-01-02,-1\n")

    result = ingest_csv_file(stream, USER_ID, book.book_id, "Kobo")

    assert result.total_rows == 2
    assert result.created_sales == 1
    assert result.errors == ["Row 4: Invalid units: -1 (must be non-negative)"]


def test_row_numbers_follow_multiline_quoted_fields(ledger, book) -> None:
    stream = io.BytesIO(b'date,units,notes\n2024-01-01,1,"first\nsecond"\n2024-01-02,-1,x\n')

    result = ingest_csv_file(stream, USER_ID, book.book_id, "Kobo")

    assert result.total_rows == 2
    assert result.created_sales == 1
    assert result.errors == ["Row 4: Invalid units: -1 (must be non-negative)"]


def test_read_csv_records_yields_start_lines() -> None:
    stream = io.BytesIO(b'date,units\n"2024-01-01",1\n\n"2024-\n01-02",2\n2024-01-03,3,extra\n')
    text, reader, header = open_csv_reader(stream)

    with text:
        records = list(read_csv_records(reader, header))

    assert [line for line, _ in records] == [2, 4, 6]
    assert records[1][1] == {"date": "2024-\n01-02", "units": "2"}
    assert records[2][1] == {"date": "2024-01-03", "units": "3", None: ["extra"]}


def test_launch_month_scenario_with_quantity_column(ledger, book) -> None:
    """Three vendor rows for one book; the negative quantity arrives through an alias."""

    rows = [
        {"date": "2024-01-05", "units": "12", "revenue": "59.88", "royalty": "20.96"},
        {"Date": "2024-01-12", "Units": "8", "revenue": "39.92", "royalty": "13.97"},
        {"sale_date": "2024-01-20", "quantity": "-1", "revenue": "10", "royalty": "5"},
    ]

    result = ingest_sales_rows(number_rows(rows), book.book_id, "Amazon KDP")

    assert result.created_sales == 2
    assert result.errors == ["Row 4: Invalid units: -1 (must be non-negative)"]

    overview = analytics_service.get_sales_analytics(USER_ID).overview
    assert overview.total_sales == 2
    assert overview.total_units == 20
    assert overview.total_revenue == Decimal("99.80")
    assert overview.total_royalty == Decimal("34.93")


def test_template_csv() -> None:
    lines = build_template_csv().splitlines()

    assert lines[0] == "date,units,revenue,royalty"
    assert lines[1] == "2024-01-15,5,24.99,8.75"
    assert len(lines) == 4
