"""
Sales service: direct entry, lookup, replacement, deletion and listing.

Every operation walks the ownership chain Sale -> Book -> User before touching
the ledger. A sale or book owned by someone else is reported exactly like a
missing one (OwnershipError).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional
from uuid import UUID

from domain.errors import OwnershipError
from domain.sale import SaleInput, SaleRecord
from repositories import book_repository, sale_repository
from repositories.sale_repository import SalesQueryFilters

logger = logging.getLogger(__name__)

DEFAULT_PAGE_LIMIT: int = 100
MAX_PAGE_LIMIT: int = 1000


@dataclass(frozen=True, slots=True)
class SalesPage:
    """
    One page of a sales listing.

    has_more is True when rows exist beyond this page (total > offset + limit).
    """
    sales: List[SaleRecord]
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.total > self.offset + self.limit


def _require_owned_sale(sale_id: UUID, user_id: UUID) -> SaleRecord:
    sale = sale_repository.get_sale_owned_by(sale_id, user_id)
    if sale is None:
        raise OwnershipError("Sale", sale_id)
    return sale


def create_sale(user_id: UUID, book_id: UUID, sale: SaleInput) -> SaleRecord:
    """
    Record a single sale for one of the user's books.

    Raises:
        OwnershipError: If the book is not the user's
        StoreError: If the insert fails
    """

    if book_repository.get_book_owned_by(book_id, user_id) is None:
        raise OwnershipError("Book", book_id)

    record = sale_repository.create_sale(
        book_id=book_id,
        sale_date=sale.sale_date,
        units=sale.units,
        revenue=sale.revenue,
        royalty=sale.royalty,
        platform=sale.platform,
    )
    logger.info("Sale created", extra={"sale_id": str(record.sale_id), "book_id": str(book_id)})
    return record


def get_sale(user_id: UUID, sale_id: UUID) -> SaleRecord:
    return _require_owned_sale(sale_id, user_id)


def replace_sale(user_id: UUID, sale_id: UUID, sale: SaleInput) -> SaleRecord:
    """
    Replace every field of an owned sale. The owning book does not change.

    Raises:
        OwnershipError: If the sale is not the user's (or vanished meanwhile)
    """

    _require_owned_sale(sale_id, user_id)
    updated = sale_repository.replace_sale(sale_id, sale)
    if updated is None:
        raise OwnershipError("Sale", sale_id)
    return updated


def delete_sale(user_id: UUID, sale_id: UUID) -> None:
    _require_owned_sale(sale_id, user_id)
    if not sale_repository.delete_sale(sale_id):
        raise OwnershipError("Sale", sale_id)
    logger.info("Sale deleted", extra={"sale_id": str(sale_id)})


def list_sales(
    user_id: UUID,
    book_id: Optional[UUID] = None,
    platform: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = DEFAULT_PAGE_LIMIT,
    offset: int = 0,
) -> SalesPage:
    """
    Page through the user's sales, newest first.

    Filters are optional and combine: book, exact platform match, and an
    inclusive date range.

    Raises:
        ValueError: If limit/offset are out of range or start_date > end_date
    """

    if limit < 1 or limit > MAX_PAGE_LIMIT:
        raise ValueError(f"limit must be between 1 and {MAX_PAGE_LIMIT}")
    if offset < 0:
        raise ValueError("offset must be non-negative")
    if start_date is not None and end_date is not None and start_date > end_date:
        raise ValueError("startDate must not be after endDate")

    filters = SalesQueryFilters(
        user_id=user_id,
        book_id=book_id,
        platform=platform,
        start_date=start_date,
        end_date=end_date,
    )
    sales, total = sale_repository.list_sales(filters, limit=limit, offset=offset)
    return SalesPage(sales=sales, total=total, limit=limit, offset=offset)


__all__ = [
    "SalesPage",
    "create_sale",
    "get_sale",
    "replace_sale",
    "delete_sale",
    "list_sales",
]
