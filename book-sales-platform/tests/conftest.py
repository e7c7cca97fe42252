"""
Pytest configuration.

Adds the application directory to the Python path so tests can import
domain, repositories, services and api, and provides an in-memory ledger that
replaces the Supabase-backed repository functions.
"""

from __future__ import annotations

import sys
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple
from uuid import UUID, uuid4

import pytest

# Add the book-sales-platform directory to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.book import Book, BookDetails  # noqa: E402
from domain.errors import StoreError  # noqa: E402
from domain.sale import SaleInput, SaleRecord  # noqa: E402
from repositories import book_repository, sale_repository  # noqa: E402
from repositories.sale_repository import SalesQueryFilters  # noqa: E402

USER_ID = UUID("00000000-0000-0000-0000-0000000000a1")
OTHER_USER_ID = UUID("00000000-0000-0000-0000-0000000000b2")


class InMemoryLedger:
    """
    Stand-in for the books and sales tables.

    Mirrors the repository functions' signatures and owner scoping. Dates in
    `failing_dates` make create_sale raise StoreError, to simulate rejected
    inserts.
    """

    def __init__(self) -> None:
        self.books: Dict[UUID, Book] = {}
        self.sales: Dict[UUID, SaleRecord] = {}
        self.failing_dates: Set[date] = set()
        self.insert_attempts: int = 0

    # -- books ---------------------------------------------------------------

    def create_book(self, user_id: UUID, details: BookDetails) -> Book:
        now = datetime.now(timezone.utc)
        book = Book(book_id=uuid4(), user_id=user_id, details=details, created_at=now, updated_at=now)
        self.books[book.book_id] = book
        return book

    def get_book_owned_by(self, book_id: UUID, user_id: UUID) -> Optional[Book]:
        book = self.books.get(book_id)
        if book is None or book.user_id != user_id:
            return None
        return book

    def list_books_by_user(self, user_id: UUID) -> List[Book]:
        owned = [book for book in self.books.values() if book.user_id == user_id]
        owned.sort(key=lambda book: book.created_at, reverse=True)
        return [
            Book(
                book_id=book.book_id,
                user_id=book.user_id,
                details=book.details,
                created_at=book.created_at,
                updated_at=book.updated_at,
                sales_count=sum(1 for sale in self.sales.values() if sale.book_id == book.book_id),
            )
            for book in owned
        ]

    def replace_book(self, book_id: UUID, user_id: UUID, details: BookDetails) -> Optional[Book]:
        book = self.get_book_owned_by(book_id, user_id)
        if book is None:
            return None
        updated = Book(
            book_id=book.book_id,
            user_id=book.user_id,
            details=details,
            created_at=book.created_at,
            updated_at=datetime.now(timezone.utc),
        )
        self.books[book_id] = updated
        return updated

    def delete_book(self, book_id: UUID, user_id: UUID) -> bool:
        if self.get_book_owned_by(book_id, user_id) is None:
            return False
        del self.books[book_id]
        # ON DELETE CASCADE
        for sale_id in [s.sale_id for s in self.sales.values() if s.book_id == book_id]:
            del self.sales[sale_id]
        return True

    # -- sales ---------------------------------------------------------------

    def create_sale(
        self,
        book_id: UUID,
        sale_date: date,
        units: int,
        revenue: Decimal,
        royalty: Decimal,
        platform: str,
    ) -> SaleRecord:
        self.insert_attempts += 1
        if sale_date in self.failing_dates:
            raise StoreError("Failed to create sale record: connection reset")
        record = SaleRecord(
            sale_id=uuid4(),
            book_id=book_id,
            sale_date=sale_date,
            units=units,
            revenue=revenue,
            royalty=royalty,
            platform=platform,
            created_at=datetime.now(timezone.utc),
            book_title=self.books[book_id].title if book_id in self.books else None,
        )
        self.sales[record.sale_id] = record
        return record

    def _owner_of(self, sale: SaleRecord) -> Optional[UUID]:
        book = self.books.get(sale.book_id)
        return book.user_id if book else None

    def _matches(self, sale: SaleRecord, filters: SalesQueryFilters) -> bool:
        if self._owner_of(sale) != filters.user_id:
            return False
        if filters.book_id is not None and sale.book_id != filters.book_id:
            return False
        if filters.platform and sale.platform != filters.platform:
            return False
        if filters.start_date is not None and sale.sale_date < filters.start_date:
            return False
        if filters.end_date is not None and sale.sale_date > filters.end_date:
            return False
        return True

    def get_sale_owned_by(self, sale_id: UUID, user_id: UUID) -> Optional[SaleRecord]:
        sale = self.sales.get(sale_id)
        if sale is None or self._owner_of(sale) != user_id:
            return None
        return sale

    def fetch_sales(self, filters: SalesQueryFilters) -> List[SaleRecord]:
        return [sale for sale in self.sales.values() if self._matches(sale, filters)]

    def list_sales(
        self, filters: SalesQueryFilters, limit: int = 100, offset: int = 0
    ) -> Tuple[List[SaleRecord], int]:
        matching = self.fetch_sales(filters)
        matching.sort(key=lambda sale: (sale.sale_date, sale.created_at), reverse=True)
        return matching[offset:offset + limit], len(matching)

    def replace_sale(self, sale_id: UUID, sale: SaleInput) -> Optional[SaleRecord]:
        existing = self.sales.get(sale_id)
        if existing is None:
            return None
        updated = SaleRecord(
            sale_id=existing.sale_id,
            book_id=existing.book_id,
            sale_date=sale.sale_date,
            units=sale.units,
            revenue=sale.revenue,
            royalty=sale.royalty,
            platform=sale.platform,
            created_at=existing.created_at,
            book_title=existing.book_title,
        )
        self.sales[sale_id] = updated
        return updated

    def delete_sale(self, sale_id: UUID) -> bool:
        return self.sales.pop(sale_id, None) is not None


@pytest.fixture
def ledger(monkeypatch: pytest.MonkeyPatch) -> InMemoryLedger:
    """Route every repository call to a fresh in-memory ledger."""

    fake = InMemoryLedger()
    for name in ("create_book", "get_book_owned_by", "list_books_by_user", "replace_book", "delete_book"):
        monkeypatch.setattr(book_repository, name, getattr(fake, name))
    for name in ("create_sale", "get_sale_owned_by", "list_sales", "fetch_sales", "replace_sale", "delete_sale"):
        monkeypatch.setattr(sale_repository, name, getattr(fake, name))
    return fake


@pytest.fixture
def book(ledger: InMemoryLedger) -> Book:
    """A book owned by USER_ID."""
    return ledger.create_book(USER_ID, BookDetails(title="The Art of Storytelling"))


@pytest.fixture
def other_book(ledger: InMemoryLedger) -> Book:
    """A book owned by OTHER_USER_ID."""
    return ledger.create_book(OTHER_USER_ID, BookDetails(title="Someone Else's Memoir"))
