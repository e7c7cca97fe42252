"""
Books API Endpoints.

CRUD for the caller's books plus per-book statistics. A book owned by another
user answers exactly like a missing one (404).
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException

from api.dependencies import CurrentUserId
from api.errors import internal_error
from api.models import (
    AnalyticsResponse,
    BookDetailResponse,
    BookListResponse,
    BookRequest,
    BookResponse,
    BookStatsResponse,
    BookSummaryResponse,
    MessageResponse,
    SaleResponse,
)
from domain.errors import OwnershipError
from services import analytics_service, book_service

router = APIRouter()


@router.get("/books", response_model=BookListResponse, summary="List Books")
def list_books(user_id: CurrentUserId):
    """The caller's books, newest first, each with its number of sale records."""
    try:
        books = book_service.list_books(user_id)
        return BookListResponse(books=[BookResponse.from_domain(book) for book in books])
    except Exception as e:
        raise internal_error("Failed to fetch books", e)


@router.get("/books/{book_id}", response_model=BookDetailResponse, summary="Get Book")
def get_book(book_id: UUID, user_id: CurrentUserId):
    """One book with its sales, newest first."""
    try:
        result = book_service.get_book(user_id, book_id)
        return BookDetailResponse(
            book=BookResponse.from_domain(result.book),
            sales=[SaleResponse.from_domain(sale) for sale in result.sales],
        )
    except OwnershipError:
        raise HTTPException(status_code=404, detail="Book not found")
    except Exception as e:
        raise internal_error("Failed to fetch book", e)


@router.post("/books", response_model=BookResponse, status_code=201, summary="Create Book")
def create_book(request: BookRequest, user_id: CurrentUserId):
    try:
        details = request.to_details()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        return BookResponse.from_domain(book_service.create_book(user_id, details))
    except Exception as e:
        raise internal_error("Failed to create book", e)


@router.put("/books/{book_id}", response_model=BookResponse, summary="Replace Book")
def replace_book(book_id: UUID, request: BookRequest, user_id: CurrentUserId):
    """Full update: every editable field is replaced. The owner never changes."""
    try:
        details = request.to_details()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        return BookResponse.from_domain(book_service.replace_book(user_id, book_id, details))
    except OwnershipError:
        raise HTTPException(status_code=404, detail="Book not found")
    except Exception as e:
        raise internal_error("Failed to update book", e)


@router.delete("/books/{book_id}", response_model=MessageResponse, summary="Delete Book")
def delete_book(book_id: UUID, user_id: CurrentUserId):
    """Delete a book and, by cascade, all of its sales."""
    try:
        book_service.delete_book(user_id, book_id)
        return MessageResponse(message="Book deleted successfully")
    except OwnershipError:
        raise HTTPException(status_code=404, detail="Book not found")
    except Exception as e:
        raise internal_error("Failed to delete book", e)


@router.get("/books/{book_id}/stats", response_model=BookStatsResponse, summary="Book Statistics")
def get_book_stats(book_id: UUID, user_id: CurrentUserId):
    """Totals, platform breakdown and monthly breakdown for one book."""
    try:
        stats = analytics_service.get_book_stats(user_id, book_id)
        return BookStatsResponse(
            book=BookSummaryResponse(book_id=stats.book.book_id, title=stats.book.title),
            stats=AnalyticsResponse.from_domain(stats.analytics),
        )
    except OwnershipError:
        raise HTTPException(status_code=404, detail="Book not found")
    except Exception as e:
        raise internal_error("Failed to fetch book statistics", e)
