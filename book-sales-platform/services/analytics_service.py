"""
Analytics service.

Reads one owner-scoped slice of the ledger and folds it into the overview,
platform and monthly views. All three views come from the same fetched slice,
so they agree with each other for every request. Nothing is cached; each call
reflects the ledger at the time of its read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional
from uuid import UUID

from domain.analytics import SalesAnalytics, compute_sales_analytics
from domain.book import Book
from domain.errors import OwnershipError
from repositories import book_repository, sale_repository
from repositories.sale_repository import SalesQueryFilters

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BookStats:
    book: Book
    analytics: SalesAnalytics


def _check_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date is not None and end_date is not None and start_date > end_date:
        raise ValueError("startDate must not be after endDate")


def get_sales_analytics(
    user_id: UUID,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> SalesAnalytics:
    """
    Overview, platform breakdown and monthly breakdown of the user's sales.

    Args:
        user_id: Owner whose books' sales are aggregated
        start_date: Inclusive lower bound on sale_date (optional)
        end_date: Inclusive upper bound on sale_date (optional)

    Raises:
        ValueError: If start_date is after end_date
        StoreError: If the ledger cannot be read
    """

    _check_range(start_date, end_date)
    sales = sale_repository.fetch_sales(
        SalesQueryFilters(user_id=user_id, start_date=start_date, end_date=end_date)
    )
    logger.debug("Aggregating sales", extra={"user_id": str(user_id), "rows": len(sales)})
    return compute_sales_analytics(sales)


def get_book_stats(user_id: UUID, book_id: UUID) -> BookStats:
    """
    The same three views restricted to one of the user's books.

    Raises:
        OwnershipError: If the book does not exist or is not the user's
    """

    book = book_repository.get_book_owned_by(book_id, user_id)
    if book is None:
        raise OwnershipError("Book", book_id)

    sales = sale_repository.fetch_sales(SalesQueryFilters(user_id=user_id, book_id=book_id))
    return BookStats(book=book, analytics=compute_sales_analytics(sales))


__all__ = ["BookStats", "get_sales_analytics", "get_book_stats"]
