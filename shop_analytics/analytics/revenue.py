"""
Revenue & Profit Aggregation

Sums realized line revenue, cost and units over revenue-recognized orders,
plus the authoritative order totals used for top-line figures.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Collection, Dict, Iterable, List, Mapping, Optional

import polars as pl

from shop_analytics.analytics.pricing import resolve_unit_price
from shop_analytics.models.schemas import (
    REVENUE_RECOGNIZED_STATUSES,
    Order,
    OrderDetail,
    OrderStatus,
    Product,
)
from shop_analytics.models.snapshot import LivePulse, MonthlyRevenuePoint, RollingRevenue
from shop_analytics.transformation.normalizers import round_half_up


@dataclass(frozen=True)
class RevenueTotals:
    """Revenue figures over one order set"""
    order_count: int = 0
    authoritative_revenue: int = 0
    gross_revenue: int = 0
    total_cost: int = 0
    units: int = 0

    @property
    def profit(self) -> int:
        return self.gross_revenue - self.total_cost

    @property
    def avg_sell_price(self) -> float:
        return self.gross_revenue / self.units if self.units else 0.0

    @property
    def avg_cost(self) -> float:
        return self.total_cost / self.units if self.units else 0.0

    @property
    def avg_order_value(self) -> float:
        return self.authoritative_revenue / self.order_count if self.order_count else 0.0

    def to_pulse(self) -> LivePulse:
        return LivePulse(
            revenue=self.authoritative_revenue,
            orders=self.order_count,
            units=self.units,
        )


@dataclass(frozen=True)
class RevenueSummary:
    """Window totals plus the live sub-aggregate"""
    totals: RevenueTotals
    live: RevenueTotals


def build_cost_lookup(products: Iterable[Product]) -> Dict[str, int]:
    """Per-variant unit cost in minor units; variants without a cost are omitted"""
    lookup: Dict[str, int] = {}
    for product in products:
        for variant in product.variants:
            if variant.cost_price is not None:
                lookup[variant.variant_id] = max(0, round_half_up(variant.cost_price))
    return lookup


class RevenueAggregator:
    """
    Aggregates revenue, cost and units over orders.

    Stateless; repeated calls over the same inputs return identical totals.

    Example:
        aggregator = RevenueAggregator()
        summary = aggregator.aggregate(orders, details, cost_lookup, now)
    """

    def __init__(
        self,
        recognized_statuses: Collection[OrderStatus] = REVENUE_RECOGNIZED_STATUSES,
        live_window: timedelta = timedelta(hours=1),
    ):
        self.recognized_statuses = frozenset(recognized_statuses)
        self.live_window = live_window

    def is_recognized(self, order: Order) -> bool:
        return order.status in self.recognized_statuses

    def totals(
        self,
        orders: Iterable[Order],
        details: Mapping[str, OrderDetail],
        cost_lookup: Optional[Mapping[str, int]] = None,
    ) -> RevenueTotals:
        """
        Sum revenue figures over the recognized orders in ``orders``.

        Orders without a detail entry still count toward the authoritative
        revenue and order count but contribute no line figures. Unknown
        variant costs count as zero.
        """
        cost_lookup = cost_lookup or {}
        order_count = authoritative = gross = cost = units = 0

        for order in orders:
            if not self.is_recognized(order):
                continue
            order_count += 1
            authoritative += order.total

            detail = details.get(order.order_id)
            if detail is None:
                continue
            for line in detail.items:
                gross += resolve_unit_price(line) * line.quantity
                unit_cost = cost_lookup.get(line.variant_id, 0) if line.variant_id else 0
                cost += unit_cost * line.quantity
                units += line.quantity

        return RevenueTotals(
            order_count=order_count,
            authoritative_revenue=authoritative,
            gross_revenue=gross,
            total_cost=cost,
            units=units,
        )

    def aggregate(
        self,
        orders: List[Order],
        details: Mapping[str, OrderDetail],
        cost_lookup: Optional[Mapping[str, int]],
        now: datetime,
    ) -> RevenueSummary:
        """Totals over ``orders`` plus the trailing live-window pulse among them"""
        return RevenueSummary(
            totals=self.totals(orders, details, cost_lookup),
            live=self.live(orders, details, cost_lookup, now),
        )

    def live(
        self,
        orders: Iterable[Order],
        details: Mapping[str, OrderDetail],
        cost_lookup: Optional[Mapping[str, int]],
        now: datetime,
    ) -> RevenueTotals:
        """Totals over orders created within the live window ending at ``now``"""
        live_start = now - self.live_window
        live_orders = [o for o in orders if live_start < o.created_at <= now]
        return self.totals(live_orders, details, cost_lookup)

    def rolling(self, orders: Iterable[Order], now: datetime) -> RollingRevenue:
        """Trailing hour/day/7-day/30-day recognized revenue"""
        horizons = {
            "last_hour": timedelta(hours=1),
            "last_day": timedelta(days=1),
            "last_7_days": timedelta(days=7),
            "last_30_days": timedelta(days=30),
        }
        sums = dict.fromkeys(horizons, 0)
        for order in orders:
            if not self.is_recognized(order) or order.created_at > now:
                continue
            for name, span in horizons.items():
                if order.created_at > now - span:
                    sums[name] += order.total
        return RollingRevenue(**sums)

    def monthly_series(self, orders: Iterable[Order], months: int) -> List[MonthlyRevenuePoint]:
        """
        Recognized revenue per calendar month, last ``months`` months with orders.

        Months that only saw unrecognized orders appear with zero revenue.
        """
        orders = list(orders)
        frame = pl.DataFrame(
            {
                "created_at": [o.created_at for o in orders],
                "status": [o.status.value for o in orders],
                "total": [o.total for o in orders],
            },
            schema={"created_at": pl.Datetime("us"), "status": pl.Utf8, "total": pl.Int64},
        )
        recognized = [s.value for s in self.recognized_statuses]

        series = (
            frame.with_columns(
                pl.col("created_at").dt.strftime("%Y-%m").alias("month"),
                pl.when(pl.col("status").is_in(recognized))
                .then(pl.col("total"))
                .otherwise(0)
                .alias("revenue"),
            )
            .group_by("month")
            .agg(pl.col("revenue").sum())
            .sort("month")
            .tail(months)
        )
        return [
            MonthlyRevenuePoint(month=row["month"], revenue=int(row["revenue"]))
            for row in series.iter_rows(named=True)
        ]
