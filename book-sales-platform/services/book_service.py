"""
Book service.

Thin ownership-checked wrapper over the book repository. Deleting a book also
removes all of its sales (cascade in the store).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List
from uuid import UUID

from domain.book import Book, BookDetails
from domain.errors import OwnershipError
from domain.sale import SaleRecord
from repositories import book_repository, sale_repository
from repositories.sale_repository import SalesQueryFilters

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BookWithSales:
    book: Book
    sales: List[SaleRecord]  # newest first


def _require_owned_book(book_id: UUID, user_id: UUID) -> Book:
    book = book_repository.get_book_owned_by(book_id, user_id)
    if book is None:
        raise OwnershipError("Book", book_id)
    return book


def create_book(user_id: UUID, details: BookDetails) -> Book:
    book = book_repository.create_book(user_id, details)
    logger.info("Book created", extra={"book_id": str(book.book_id), "user_id": str(user_id)})
    return book


def list_books(user_id: UUID) -> List[Book]:
    return book_repository.list_books_by_user(user_id)


def get_book(user_id: UUID, book_id: UUID) -> BookWithSales:
    """An owned book with its sales, newest first."""

    book = _require_owned_book(book_id, user_id)
    sales = sale_repository.fetch_sales(SalesQueryFilters(user_id=user_id, book_id=book_id))
    sales.sort(key=lambda sale: sale.sale_date, reverse=True)
    return BookWithSales(book=book, sales=sales)


def replace_book(user_id: UUID, book_id: UUID, details: BookDetails) -> Book:
    _require_owned_book(book_id, user_id)
    updated = book_repository.replace_book(book_id, user_id, details)
    if updated is None:
        raise OwnershipError("Book", book_id)
    return updated


def delete_book(user_id: UUID, book_id: UUID) -> None:
    _require_owned_book(book_id, user_id)
    if not book_repository.delete_book(book_id, user_id):
        raise OwnershipError("Book", book_id)
    logger.info("Book deleted with its sales", extra={"book_id": str(book_id)})


__all__ = [
    "BookWithSales",
    "create_book",
    "list_books",
    "get_book",
    "replace_book",
    "delete_book",
]
