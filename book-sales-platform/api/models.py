"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
Fields are snake_case in Python and camelCase on the wire; monetary amounts
are serialized as exact decimal strings.
"""

from __future__ import annotations

from datetime import date as Date
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from domain.analytics import SalesAnalytics, SalesTotals
from domain.book import Book, BookDetails
from domain.sale import SaleInput, SaleRecord


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Book Models
# ============================================================================

class BookRequest(CamelModel):
    """Create or fully replace a book."""
    title: str = Field(..., min_length=1, max_length=200)
    isbn: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = Field(None, max_length=1000)
    cover_image: Optional[str] = None
    published_at: Optional[Date] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "The Art of Storytelling",
                "isbn": "978-1234567890",
                "description": "A guide to crafting compelling narratives.",
                "publishedAt": "2023-01-15",
            }
        }
    )

    def to_details(self) -> BookDetails:
        return BookDetails(
            title=self.title,
            isbn=self.isbn,
            description=self.description,
            cover_image=self.cover_image,
            published_at=self.published_at,
        )


class BookResponse(CamelModel):
    book_id: UUID
    title: str
    isbn: Optional[str] = None
    description: Optional[str] = None
    cover_image: Optional[str] = None
    published_at: Optional[Date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    sales_count: Optional[int] = None

    @classmethod
    def from_domain(cls, book: Book) -> "BookResponse":
        return cls(
            book_id=book.book_id,
            title=book.details.title,
            isbn=book.details.isbn,
            description=book.details.description,
            cover_image=book.details.cover_image,
            published_at=book.details.published_at,
            created_at=book.created_at,
            updated_at=book.updated_at,
            sales_count=book.sales_count,
        )


class BookListResponse(CamelModel):
    books: List[BookResponse]


# ============================================================================
# Sale Models
# ============================================================================

class SaleFields(CamelModel):
    """Every field of a sale; updates replace all of them."""
    sale_date: Date = Field(..., alias="date")
    units: int = Field(..., ge=0)
    revenue: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    royalty: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    platform: str = Field(..., min_length=1, max_length=100)

    def to_input(self) -> SaleInput:
        return SaleInput(
            sale_date=self.sale_date,
            units=self.units,
            revenue=self.revenue,
            royalty=self.royalty,
            platform=self.platform,
        )


class SaleCreateRequest(SaleFields):
    book_id: UUID

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "bookId": "123e4567-e89b-12d3-a456-426614174000",
                "date": "2024-01-15",
                "units": 5,
                "revenue": "24.99",
                "royalty": "8.75",
                "platform": "Amazon KDP",
            }
        }
    )


class SaleResponse(CamelModel):
    sale_id: UUID
    book_id: UUID
    book_title: Optional[str] = None
    sale_date: Date = Field(..., alias="date")
    units: int
    revenue: Decimal
    royalty: Decimal
    platform: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, sale: SaleRecord) -> "SaleResponse":
        return cls(
            sale_id=sale.sale_id,
            book_id=sale.book_id,
            book_title=sale.book_title,
            sale_date=sale.sale_date,
            units=sale.units,
            revenue=sale.revenue,
            royalty=sale.royalty,
            platform=sale.platform,
            created_at=sale.created_at,
        )


class PaginationResponse(CamelModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class SalesListResponse(CamelModel):
    sales: List[SaleResponse]
    pagination: PaginationResponse


class BookDetailResponse(CamelModel):
    book: BookResponse
    sales: List[SaleResponse]


# ============================================================================
# Analytics Models
# ============================================================================

class TotalsResponse(CamelModel):
    total_sales: int
    total_units: int
    total_revenue: Decimal
    total_royalty: Decimal

    @classmethod
    def from_domain(cls, totals: SalesTotals) -> "TotalsResponse":
        return cls(
            total_sales=totals.total_sales,
            total_units=totals.total_units,
            total_revenue=totals.total_revenue,
            total_royalty=totals.total_royalty,
        )


class PlatformBreakdownResponse(TotalsResponse):
    platform: str


class MonthlyBreakdownResponse(TotalsResponse):
    month: str  # YYYY-MM


class AnalyticsResponse(CamelModel):
    overview: TotalsResponse
    platform_breakdown: List[PlatformBreakdownResponse]
    monthly_breakdown: List[MonthlyBreakdownResponse]

    @classmethod
    def from_domain(cls, analytics: SalesAnalytics) -> "AnalyticsResponse":
        return cls(
            overview=TotalsResponse.from_domain(analytics.overview),
            platform_breakdown=[
                PlatformBreakdownResponse(
                    platform=row.platform,
                    **TotalsResponse.from_domain(row.totals).model_dump(),
                )
                for row in analytics.platform_breakdown
            ],
            monthly_breakdown=[
                MonthlyBreakdownResponse(
                    month=row.month,
                    **TotalsResponse.from_domain(row.totals).model_dump(),
                )
                for row in analytics.monthly_breakdown
            ],
        )


class BookSummaryResponse(CamelModel):
    book_id: UUID
    title: str


class BookStatsResponse(CamelModel):
    book: BookSummaryResponse
    stats: AnalyticsResponse


# ============================================================================
# Upload Models
# ============================================================================

class UploadSummaryResponse(CamelModel):
    total_rows: int
    created_sales: int
    error_count: int


class UploadResponse(CamelModel):
    """Ingestion batch result. `errors` is omitted when there were none."""
    message: str
    summary: UploadSummaryResponse
    sales: List[SaleResponse]
    errors: Optional[List[str]] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "message": "CSV file processed successfully",
                "summary": {"totalRows": 3, "createdSales": 2, "errorCount": 1},
                "sales": [],
                "errors": ["Row 4: Invalid units: -1 (must be non-negative)"],
            }
        }
    )


class PlatformsResponse(BaseModel):
    platforms: List[str]


# ============================================================================
# Common Models
# ============================================================================

class MessageResponse(BaseModel):
    message: str
