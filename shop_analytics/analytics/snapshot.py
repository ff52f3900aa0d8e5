"""
Dashboard Snapshot Builder

Runs every aggregation over the current and previous windows and assembles
one immutable MetricsSnapshot.
"""

from datetime import datetime, timedelta
from typing import Collection, Dict, Iterable, List, Mapping, Optional

import structlog

from shop_analytics.analytics.categories import CategoryReconciler, share_pct
from shop_analytics.analytics.customers import CustomerAnalyzer, TierClassifier
from shop_analytics.analytics.inventory import InventoryAggregator
from shop_analytics.analytics.ranking import TopEntityRanker
from shop_analytics.analytics.revenue import RevenueAggregator, build_cost_lookup
from shop_analytics.analytics.windows import TimeWindow
from shop_analytics.config.settings import Settings, get_settings
from shop_analytics.ingestion.loader import SnapshotInputs
from shop_analytics.models.schemas import REVENUE_RECOGNIZED_STATUSES, Order, OrderDetail, OrderStatus
from shop_analytics.models.snapshot import (
    CustomerMetrics,
    MetricsSnapshot,
    OrderMetrics,
    RecentOrder,
    RevenueMetrics,
)
from shop_analytics.transformation.normalizers import to_naive_utc

logger = structlog.get_logger(__name__)


def percent_change(current: float, previous: float) -> float:
    """
    Percentage change from ``previous`` to ``current``, two decimals.

    0 when both are zero, 100 when growing from zero.
    """
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / previous * 100, 2)


def select_recent_orders(orders: Iterable[Order], now: datetime, limit: int) -> List[Order]:
    """The ``limit`` newest orders created at or before ``now``, any status"""
    eligible = [o for o in orders if o.created_at <= now]
    eligible.sort(key=lambda o: o.created_at, reverse=True)
    return eligible[:limit]


class DashboardSnapshotBuilder:
    """
    Builds the dashboard MetricsSnapshot for one window.

    Components are configured once from settings; each ``build`` call works
    only on the inputs it is given, so one builder can serve concurrent
    requests.

    Example:
        builder = DashboardSnapshotBuilder(get_settings())
        snapshot = builder.build(inputs, window, now)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        recognized_statuses: Collection[OrderStatus] = REVENUE_RECOGNIZED_STATUSES,
    ):
        settings = settings or get_settings()
        self.dashboard = settings.dashboard
        self.recognized_statuses = frozenset(recognized_statuses)

        self.revenue = RevenueAggregator(
            recognized_statuses=self.recognized_statuses,
            live_window=timedelta(minutes=self.dashboard.live_window_minutes),
        )
        self.customers = CustomerAnalyzer(TierClassifier(settings.tiers), self.recognized_statuses)
        self.inventory = InventoryAggregator(settings.stock)

    def _recognized(self, orders: List[Order]) -> int:
        return sum(1 for o in orders if o.status in self.recognized_statuses)

    @staticmethod
    def _status_breakdown(orders: List[Order]) -> Dict[str, int]:
        breakdown = {s.value: 0 for s in OrderStatus if s is not OrderStatus.UNKNOWN}
        for order in orders:
            breakdown[order.status.value] = breakdown.get(order.status.value, 0) + 1
        return breakdown

    def _order_metrics(self, current: List[Order], previous: List[Order], all_orders: List[Order], now: datetime) -> OrderMetrics:
        recognized = self._recognized(current)
        conversion = share_pct(recognized, len(current))
        previous_conversion = share_pct(self._recognized(previous), len(previous))
        live_start = now - self.revenue.live_window
        return OrderMetrics(
            total=len(current),
            previous_total=len(previous),
            delta_pct=percent_change(len(current), len(previous)),
            recognized=recognized,
            conversion_rate=conversion,
            previous_conversion_rate=previous_conversion,
            conversion_delta_pts=round(conversion - previous_conversion, 2),
            active_now=sum(1 for o in all_orders if live_start < o.created_at <= now),
            status_breakdown=self._status_breakdown(current),
        )

    @staticmethod
    def _recent_orders(orders: List[Order], details: Mapping[str, OrderDetail], now: datetime, limit: int) -> List[RecentOrder]:
        recent = []
        for order in select_recent_orders(orders, now, limit):
            detail = details.get(order.order_id)
            recent.append(
                RecentOrder(
                    order_id=order.order_id,
                    customer_name=order.customer_name,
                    item_count=sum(line.quantity for line in detail.items) if detail is not None else None,
                    total=order.total,
                    status=order.status.value,
                    created_at=order.created_at,
                )
            )
        return recent

    def build(self, inputs: SnapshotInputs, window: TimeWindow, now: datetime) -> MetricsSnapshot:
        """
        Assemble the snapshot.

        Args:
            inputs: Normalized orders, details, products and category lookup
            window: Current and comparison window
            now: Reference instant for the live and rolling figures
        """
        now = to_naive_utc(now)
        orders = inputs.orders
        current = [o for o in orders if window.contains(o.created_at)]
        previous = [o for o in orders if window.contains_previous(o.created_at)]

        cost_lookup = build_cost_lookup(inputs.products)
        totals = self.revenue.totals(current, inputs.details, cost_lookup)
        previous_totals = self.revenue.totals(previous, inputs.details, cost_lookup)
        live = self.revenue.live(orders, inputs.details, cost_lookup, now)

        revenue = RevenueMetrics(
            total=totals.authoritative_revenue,
            previous_total=previous_totals.authoritative_revenue,
            delta_pct=percent_change(totals.authoritative_revenue, previous_totals.authoritative_revenue),
            gross_revenue=totals.gross_revenue,
            previous_gross_revenue=previous_totals.gross_revenue,
            total_cost=totals.total_cost,
            profit=totals.profit,
            previous_profit=previous_totals.profit,
            profit_delta_pct=percent_change(totals.profit, previous_totals.profit),
            units_sold=totals.units,
            avg_sell_price=round(totals.avg_sell_price, 2),
            avg_cost=round(totals.avg_cost, 2),
            avg_order_value=round(totals.avg_order_value, 2),
            live=live.to_pulse(),
            rolling=self.revenue.rolling(orders, now),
        )

        customers = self.customers.build_customers(orders)
        segments = self.customers.segment(customers, orders, window.contains)
        previous_active = self.customers.active_count(orders, window.contains_previous)
        previous_new = self.customers.new_count(customers, window.contains_previous)
        customer_metrics = CustomerMetrics(
            total=segments.total,
            active=segments.active,
            previous_active=previous_active,
            active_delta_pct=percent_change(segments.active, previous_active),
            new=segments.new,
            previous_new=previous_new,
            new_delta_pct=percent_change(segments.new, previous_new),
            tiers=segments.tiers,
            vip=segments.vip,
            retention_rate=segments.retention_rate,
        )

        inventory, rollups = self.inventory.aggregate(inputs.products)

        reconciler = CategoryReconciler(inputs.category_names, self.recognized_statuses)
        breakdown = reconciler.reconcile(current, inputs.details)
        ranker = TopEntityRanker(reconciler, self.recognized_statuses)

        snapshot = MetricsSnapshot(
            generated_at=now,
            window=window.to_info(),
            revenue=revenue,
            orders=self._order_metrics(current, previous, orders, now),
            customers=customer_metrics,
            inventory=inventory.to_metrics(),
            category_revenue=breakdown.shares(),
            top_products=ranker.rank_products(
                current,
                inputs.details,
                inputs.products,
                rollups,
                limit=self.dashboard.top_products_limit,
            ),
            top_categories=ranker.rank_categories(breakdown, limit=self.dashboard.top_categories_limit),
            recent_orders=self._recent_orders(
                orders, inputs.details, now, self.dashboard.recent_orders_limit
            ),
            monthly_revenue=self.revenue.monthly_series(orders, self.dashboard.monthly_series_months),
            data_quality=inputs.data_quality(),
        )

        logger.info(
            "Snapshot built",
            period=window.period.value,
            window_start=window.start.isoformat(),
            window_end=window.end.isoformat(),
            orders=len(current),
            revenue=revenue.total,
        )
        return snapshot
