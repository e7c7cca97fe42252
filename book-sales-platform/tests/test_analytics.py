"""
Tests for `domain/analytics.py`.

Covers contract rules:
- Platform rows and month rows each sum to the overview exactly.
- Months are newest first; platforms are ordered by name.
- Aggregation is exact (Decimal) and independent of input order.
- Empty input yields zero totals and empty breakdowns.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from domain.analytics import SalesTotals, compute_sales_analytics, sum_totals
from domain.sale import SaleRecord

BOOK_ID = UUID("00000000-0000-0000-0000-000000000030")


def _sale(sale_date: date, units: int, revenue: str, royalty: str, platform: str) -> SaleRecord:
    return SaleRecord(
        sale_id=uuid4(),
        book_id=BOOK_ID,
        sale_date=sale_date,
        units=units,
        revenue=Decimal(revenue),
        royalty=Decimal(royalty),
        platform=platform,
    )


SLICE = [
    _sale(date(2024, 1, 15), 5, "24.99", "8.75", "Amazon KDP"),
    _sale(date(2024, 1, 20), 3, "14.99", "5.25", "Kobo"),
    _sale(date(2024, 2, 1), 8, "39.99", "14.00", "Amazon KDP"),
    _sale(date(2023, 12, 31), 1, "0.10", "0.07", "Gumroad"),
    _sale(date(2024, 2, 29), 0, "0.00", "0.00", "Kobo"),
]


def _as_tuple(totals: SalesTotals):
    return (totals.total_sales, totals.total_units, totals.total_revenue, totals.total_royalty)


def test_overview_totals() -> None:
    analytics = compute_sales_analytics(SLICE)

    assert _as_tuple(analytics.overview) == (5, 17, Decimal("80.07"), Decimal("28.07"))


def test_breakdowns_sum_to_overview() -> None:
    analytics = compute_sales_analytics(SLICE)

    by_platform = sum_totals(row.totals for row in analytics.platform_breakdown)
    by_month = sum_totals(row.totals for row in analytics.monthly_breakdown)

    assert _as_tuple(by_platform) == _as_tuple(analytics.overview)
    assert _as_tuple(by_month) == _as_tuple(analytics.overview)


def test_months_newest_first() -> None:
    analytics = compute_sales_analytics(SLICE)

    assert [row.month for row in analytics.monthly_breakdown] == ["2024-02", "2024-01", "2023-12"]
    assert _as_tuple(analytics.monthly_breakdown[0].totals) == (2, 8, Decimal("39.99"), Decimal("14.00"))


def test_platforms_ordered_by_name() -> None:
    analytics = compute_sales_analytics(SLICE)

    assert [row.platform for row in analytics.platform_breakdown] == ["Amazon KDP", "Gumroad", "Kobo"]
    kdp = analytics.platform_breakdown[0].totals
    assert _as_tuple(kdp) == (2, 13, Decimal("64.98"), Decimal("22.75"))


def test_order_independent_and_idempotent() -> None:
    forward = compute_sales_analytics(SLICE)
    backward = compute_sales_analytics(list(reversed(SLICE)))

    assert forward == backward
    assert compute_sales_analytics(SLICE) == forward


def test_decimal_sums_are_exact() -> None:
    sales = [_sale(date(2024, 3, 1), 1, "0.10", "0.01", "Kobo") for _ in range(10)]

    overview = compute_sales_analytics(sales).overview

    assert overview.total_revenue == Decimal("1.00")
    assert overview.total_royalty == Decimal("0.10")


def test_empty_slice() -> None:
    analytics = compute_sales_analytics([])

    assert _as_tuple(analytics.overview) == (0, 0, Decimal("0.00"), Decimal("0.00"))
    assert analytics.platform_breakdown == []
    assert analytics.monthly_breakdown == []


def test_accepts_a_generator() -> None:
    analytics = compute_sales_analytics(sale for sale in SLICE)

    assert analytics.overview.total_sales == len(SLICE)
