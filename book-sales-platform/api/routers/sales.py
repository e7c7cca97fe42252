"""
Sales API Endpoints.

Direct sale entry, listing with filters and pagination, and the analytics
overview. Every endpoint is scoped to the caller's books.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query

from api.dependencies import CurrentUserId
from api.errors import internal_error
from api.models import (
    AnalyticsResponse,
    MessageResponse,
    PaginationResponse,
    SaleCreateRequest,
    SaleFields,
    SaleResponse,
    SalesListResponse,
)
from domain.errors import OwnershipError
from services import analytics_service, sales_service

router = APIRouter()


@router.get(
    "/sales",
    response_model=SalesListResponse,
    summary="List Sales",
    description="The caller's sales, newest first, with optional filters and pagination.",
)
def list_sales(
    user_id: CurrentUserId,
    book_id: Optional[UUID] = Query(None, alias="bookId", description="Only sales of this book"),
    platform: Optional[str] = Query(None, description="Exact platform match"),
    start_date: Optional[date] = Query(None, alias="startDate", description="Inclusive lower date bound"),
    end_date: Optional[date] = Query(None, alias="endDate", description="Inclusive upper date bound"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of results to return"),
    offset: int = Query(0, ge=0, description="Number of results to skip"),
):
    """
    **Example usage:**
    - `GET /api/v1/sales?platform=Amazon%20KDP&limit=20`
    - `GET /api/v1/sales?startDate=2024-01-01&endDate=2024-03-31`
    """
    try:
        page = sales_service.list_sales(
            user_id,
            book_id=book_id,
            platform=platform,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
            offset=offset,
        )
        return SalesListResponse(
            sales=[SaleResponse.from_domain(sale) for sale in page.sales],
            pagination=PaginationResponse(
                total=page.total,
                limit=page.limit,
                offset=page.offset,
                has_more=page.has_more,
            ),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise internal_error("Failed to fetch sales", e)


@router.get(
    "/sales/analytics/overview",
    response_model=AnalyticsResponse,
    summary="Sales Analytics",
    description="Overview, platform breakdown and monthly breakdown over an optional date range.",
)
def get_analytics_overview(
    user_id: CurrentUserId,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
):
    """
    All three views are computed from the same slice of the ledger, so the
    platform rows and the month rows each add up to the overview exactly.
    Months are listed newest first.
    """
    try:
        analytics = analytics_service.get_sales_analytics(user_id, start_date, end_date)
        return AnalyticsResponse.from_domain(analytics)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise internal_error("Failed to fetch analytics", e)


@router.get("/sales/{sale_id}", response_model=SaleResponse, summary="Get Sale")
def get_sale(sale_id: UUID, user_id: CurrentUserId):
    try:
        return SaleResponse.from_domain(sales_service.get_sale(user_id, sale_id))
    except OwnershipError:
        raise HTTPException(status_code=404, detail="Sale not found")
    except Exception as e:
        raise internal_error("Failed to fetch sale", e)


@router.post("/sales", response_model=SaleResponse, status_code=201, summary="Create Sale")
def create_sale(request: SaleCreateRequest, user_id: CurrentUserId):
    try:
        sale = request.to_input()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        return SaleResponse.from_domain(sales_service.create_sale(user_id, request.book_id, sale))
    except OwnershipError:
        raise HTTPException(status_code=404, detail="Book not found")
    except Exception as e:
        raise internal_error("Failed to create sale", e)


@router.put("/sales/{sale_id}", response_model=SaleResponse, summary="Replace Sale")
def replace_sale(sale_id: UUID, request: SaleFields, user_id: CurrentUserId):
    """Full replacement of date, units, revenue, royalty and platform."""
    try:
        sale = request.to_input()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        return SaleResponse.from_domain(sales_service.replace_sale(user_id, sale_id, sale))
    except OwnershipError:
        raise HTTPException(status_code=404, detail="Sale not found")
    except Exception as e:
        raise internal_error("Failed to update sale", e)


@router.delete("/sales/{sale_id}", response_model=MessageResponse, summary="Delete Sale")
def delete_sale(sale_id: UUID, user_id: CurrentUserId):
    try:
        sales_service.delete_sale(user_id, sale_id)
        return MessageResponse(message="Sale deleted successfully")
    except OwnershipError:
        raise HTTPException(status_code=404, detail="Sale not found")
    except Exception as e:
        raise internal_error("Failed to delete sale", e)
