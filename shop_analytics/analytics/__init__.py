"""
Analytics Module

Pure aggregation components plus the snapshot builder and service that
orchestrate them.
"""
from .categories import UNCATEGORIZED, CategoryBreakdown, CategoryReconciler
from .customers import Customer, CustomerAnalyzer, CustomerTier, TierClassifier
from .inventory import InventoryAggregator, InventorySummary, ProductStock, StockStatus
from .pricing import apply_discount, line_revenue, resolve_unit_price
from .ranking import TopEntityRanker
from .revenue import RevenueAggregator, RevenueSummary, RevenueTotals, build_cost_lookup
from .service import DashboardService
from .snapshot import DashboardSnapshotBuilder, percent_change, select_recent_orders
from .windows import Period, TimeWindow, TimeWindowResolver, resolve_window

__all__ = [
    "UNCATEGORIZED",
    "CategoryBreakdown",
    "CategoryReconciler",
    "Customer",
    "CustomerAnalyzer",
    "CustomerTier",
    "DashboardService",
    "DashboardSnapshotBuilder",
    "InventoryAggregator",
    "InventorySummary",
    "Period",
    "ProductStock",
    "RevenueAggregator",
    "RevenueSummary",
    "RevenueTotals",
    "StockStatus",
    "TierClassifier",
    "TimeWindow",
    "TimeWindowResolver",
    "TopEntityRanker",
    "apply_discount",
    "build_cost_lookup",
    "line_revenue",
    "percent_change",
    "resolve_unit_price",
    "resolve_window",
    "select_recent_orders",
]
