"""
Domain: sales aggregation.

Computes three views over one slice of the ledger:
- overview: totals over the whole slice
- platform breakdown: one row per distinct platform, ordered by platform name
- monthly breakdown: one row per distinct YYYY-MM, newest month first

All three views are built in the same pass over the same slice. Units are ints
and amounts are Decimals, so addition is exact and order independent: the
platform rows and the month rows each sum to the overview exactly.

Pure module: callers fetch the slice, this module only folds it.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List

from .sale import SaleRecord
from .time import month_key

ZERO: Decimal = Decimal("0.00")


@dataclass(slots=True)
class SalesTotals:
    """Running totals for a group of sales."""

    total_sales: int = 0
    total_units: int = 0
    total_revenue: Decimal = ZERO
    total_royalty: Decimal = ZERO

    def add(self, sale: SaleRecord) -> None:
        self.total_sales += 1
        self.total_units += sale.units
        self.total_revenue += sale.revenue
        self.total_royalty += sale.royalty

    def merged(self, other: "SalesTotals") -> "SalesTotals":
        return SalesTotals(
            total_sales=self.total_sales + other.total_sales,
            total_units=self.total_units + other.total_units,
            total_revenue=self.total_revenue + other.total_revenue,
            total_royalty=self.total_royalty + other.total_royalty,
        )


@dataclass(frozen=True, slots=True)
class PlatformBreakdown:
    platform: str
    totals: SalesTotals


@dataclass(frozen=True, slots=True)
class MonthlyBreakdown:
    month: str  # YYYY-MM
    totals: SalesTotals


@dataclass(frozen=True, slots=True)
class SalesAnalytics:
    """Overview plus the two breakdowns, all computed from the same slice."""

    overview: SalesTotals
    platform_breakdown: List[PlatformBreakdown]
    monthly_breakdown: List[MonthlyBreakdown]


def compute_sales_analytics(sales: Iterable[SaleRecord]) -> SalesAnalytics:
    """
    Fold a slice of sales into the overview, platform and monthly views.

    Args:
        sales: The already-filtered slice (ownership and date range applied)

    Returns:
        SalesAnalytics. Empty input yields zero totals and empty breakdowns.
    """

    overview = SalesTotals()
    by_platform: Dict[str, SalesTotals] = {}
    by_month: Dict[str, SalesTotals] = {}

    for sale in sales:
        overview.add(sale)
        by_platform.setdefault(sale.platform, SalesTotals()).add(sale)
        by_month.setdefault(month_key(sale.sale_date), SalesTotals()).add(sale)

    return SalesAnalytics(
        overview=overview,
        platform_breakdown=[
            PlatformBreakdown(platform=name, totals=by_platform[name])
            for name in sorted(by_platform)
        ],
        monthly_breakdown=[
            MonthlyBreakdown(month=month, totals=by_month[month])
            for month in sorted(by_month, reverse=True)
        ],
    )


def sum_totals(groups: Iterable[SalesTotals]) -> SalesTotals:
    """Combine group totals. Helper for checking a breakdown against its overview in tests."""

    combined = SalesTotals()
    for totals in groups:
        combined = combined.merged(totals)
    return combined
