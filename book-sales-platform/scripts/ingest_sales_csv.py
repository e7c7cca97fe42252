#!/usr/bin/env python3
"""
CSV Sales Ingestion Script

Imports a platform sales export into the ledger for one book, using the same
column mapping and row validation as the upload API:
- Vendor column names are mapped onto date / units / revenue / royalty
- Invalid rows are reported and skipped; valid rows are committed one by one
- Summary statistics and error logging

Usage:
    python ingest_sales_csv.py export.csv --user-id <uuid> --book-id <uuid> --platform "Amazon KDP"
    python ingest_sales_csv.py export.csv --book-id <uuid> --platform Kobo --dry-run
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from uuid import UUID, uuid4

# Add parent directory to path to import modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.errors import EmptyBatchError, InvalidUploadError, OwnershipError, StoreError
from domain.sale import SaleInput, SaleRecord
from services.ingestion_service import (
    IngestionResult,
    ingest_csv_file,
    ingest_sales_rows,
    open_csv_reader,
    read_csv_records,
)


def _dry_run_commit(book_id: UUID, sale: SaleInput) -> SaleRecord:
    """Build the record that would be inserted, without touching the database."""
    return SaleRecord(
        sale_id=uuid4(),
        book_id=book_id,
        sale_date=sale.sale_date,
        units=sale.units,
        revenue=sale.revenue,
        royalty=sale.royalty,
        platform=sale.platform,
        created_at=datetime.now(timezone.utc),
    )


def run_ingestion(
    csv_path: str,
    book_id: UUID,
    platform: str,
    user_id: UUID | None = None,
    dry_run: bool = False,
) -> IngestionResult:
    """
    Ingest a sales CSV file.

    A dry run parses and validates without any database access, so it needs
    no user id and performs no ownership check.

    Raises:
        FileNotFoundError: If the CSV file doesn't exist
        EmptyBatchError: If no row is valid
    """
    csv_file = Path(csv_path)
    if not csv_file.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    if dry_run:
        with open(csv_file, "rb") as raw:
            text, reader, header = open_csv_reader(raw)
            with text:
                return ingest_sales_rows(read_csv_records(reader, header), book_id, platform, commit=_dry_run_commit)

    if user_id is None:
        raise ValueError("--user-id is required unless --dry-run is given")
    return ingest_csv_file(csv_file, user_id, book_id, platform)


def print_summary(result: IngestionResult) -> None:
    """Print ingestion summary statistics."""
    total_units = sum(sale.units for sale in result.sales)
    total_revenue = sum((sale.revenue for sale in result.sales), start=Decimal("0.00"))
    total_royalty = sum((sale.royalty for sale in result.sales), start=Decimal("0.00"))

    print()
    print("=" * 60)
    print("INGESTION SUMMARY")
    print("=" * 60)
    print(f"Total Rows:       {result.total_rows}")
    print(f"Created Sales:    {result.created_sales}")
    print(f"Errors:           {result.error_count}")
    print()
    print(f"Units:            {total_units}")
    print(f"Revenue:          {total_revenue}")
    print(f"Royalty:          {total_royalty}")
    print()
    print_errors(result.errors)
    print("=" * 60)


def print_errors(errors: list[str]) -> None:
    if not errors:
        print("No errors!")
        return
    print("First 5 errors:")
    for error in errors[:5]:
        print(f"  - {error}")
    if len(errors) > 5:
        print(f"  ... and {len(errors) - 5} more")


def save_error_log(errors: list[str], output_path: str) -> None:
    """Save error details to JSON file."""
    if not errors:
        return

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(errors, f, indent=2)

    print(f"\nError log saved to: {output_path}")


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Ingest a platform sales CSV export into the sales ledger",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Basic import
  python ingest_sales_csv.py kdp_jan.csv --user-id U --book-id B --platform "Amazon KDP"

  # Dry run (parse and validate only, no database access)
  python ingest_sales_csv.py kdp_jan.csv --book-id B --platform "Amazon KDP" --dry-run

  # Save error log to custom path
  python ingest_sales_csv.py kdp_jan.csv --user-id U --book-id B --platform Kobo --error-log errors.json
        """
    )

    parser.add_argument("csv_path", help="Path to the CSV file to ingest")
    parser.add_argument("--user-id", type=UUID, help="Owner of the book")
    parser.add_argument("--book-id", type=UUID, required=True, help="Book the sales belong to")
    parser.add_argument("--platform", required=True, help="Platform label for every row")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and validate CSV without inserting to database"
    )
    parser.add_argument(
        "--error-log",
        default="ingestion_errors.json",
        help="Path to save error log (default: ingestion_errors.json)"
    )

    args = parser.parse_args()
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    try:
        print("Starting CSV ingestion...")
        print(f"Reading CSV: {args.csv_path}")
        print(f"Platform:    {args.platform}")
        print(f"Dry run:     {args.dry_run}")

        result = run_ingestion(
            csv_path=args.csv_path,
            book_id=args.book_id,
            platform=args.platform,
            user_id=args.user_id,
            dry_run=args.dry_run,
        )

        print_summary(result)

        if result.errors:
            save_error_log(result.errors, args.error_log)

        # Exit code based on results
        return 1 if result.errors else 0

    except EmptyBatchError as e:
        print(f"\nFAILED: {e}", file=sys.stderr)
        print_errors(e.errors)
        save_error_log(e.errors, args.error_log)
        return 1

    except OwnershipError:
        print(f"\nFAILED: Book not found for this user: {args.book_id}", file=sys.stderr)
        return 1

    except (FileNotFoundError, InvalidUploadError, StoreError, ValueError) as e:
        print(f"\nFAILED: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\n\nIngestion interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
