"""
Metrics Snapshot Models

The engine's output: one read-only, JSON-serializable aggregate per
requested time window. Money values are integer minor units.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class _Snapshot(BaseModel):
    model_config = ConfigDict(frozen=True)


class WindowInfo(_Snapshot):
    """Current and comparison window bounds"""
    period: str
    start: datetime
    end: datetime
    prev_start: datetime
    prev_end: datetime
    label: str
    prev_label: str


class LivePulse(_Snapshot):
    """Recognized activity in the trailing live window"""
    revenue: int = 0
    orders: int = 0
    units: int = 0


class RollingRevenue(_Snapshot):
    """Trailing revenue relative to the reference instant"""
    last_hour: int = 0
    last_day: int = 0
    last_7_days: int = 0
    last_30_days: int = 0


class RevenueMetrics(_Snapshot):
    """Revenue and profit figures"""
    total: int
    previous_total: int
    delta_pct: float
    gross_revenue: int
    previous_gross_revenue: int
    total_cost: int
    profit: int
    previous_profit: int
    profit_delta_pct: float
    units_sold: int
    avg_sell_price: float
    avg_cost: float
    avg_order_value: float
    live: LivePulse
    rolling: RollingRevenue


class OrderMetrics(_Snapshot):
    """Order volume and status mix"""
    total: int
    previous_total: int
    delta_pct: float
    recognized: int
    conversion_rate: float
    previous_conversion_rate: float
    conversion_delta_pts: float
    active_now: int
    status_breakdown: Dict[str, int]


class CustomerMetrics(_Snapshot):
    """Customer base and loyalty tiers"""
    total: int
    active: int
    previous_active: int
    active_delta_pct: float
    new: int
    previous_new: int
    new_delta_pct: float
    tiers: Dict[str, int]
    vip: int
    retention_rate: float


class InventoryMetrics(_Snapshot):
    """Point-in-time stock health"""
    total_units: int
    variant_count: int
    product_count: int
    in_stock: int
    low_stock: int
    critical: int
    out_of_stock: int
    availability_pct: float


class CategoryShare(_Snapshot):
    """Reconciled revenue for one category"""
    name: str
    revenue: int
    share_pct: float


class TopProduct(_Snapshot):
    """One entry of the top products ranking"""
    rank: int
    key: str
    product_id: Optional[str] = None
    variant_id: Optional[str] = None
    name: str
    category: str
    revenue: int
    units_sold: int
    stock_status: Optional[str] = None


class TopCategory(_Snapshot):
    """One entry of the top categories ranking"""
    rank: int
    name: str
    revenue: int
    units_sold: int
    share_pct: float


class RecentOrder(_Snapshot):
    """One entry of the recent orders list"""
    order_id: str
    customer_name: Optional[str] = None
    item_count: Optional[int] = None
    total: int
    status: str
    created_at: datetime


class MonthlyRevenuePoint(_Snapshot):
    """Recognized revenue for one calendar month"""
    month: str
    revenue: int


class DataQuality(_Snapshot):
    """Input completeness counters"""
    orders_received: int = 0
    orders_dropped: int = 0
    order_details_failed: int = 0
    product_details_failed: int = 0


class MetricsSnapshot(_Snapshot):
    """
    Dashboard metrics for one time window.

    Created fresh per query; carries no behavior beyond serialization.
    """
    generated_at: datetime
    window: WindowInfo
    revenue: RevenueMetrics
    orders: OrderMetrics
    customers: CustomerMetrics
    inventory: InventoryMetrics
    category_revenue: List[CategoryShare]
    top_products: List[TopProduct]
    top_categories: List[TopCategory]
    recent_orders: List[RecentOrder]
    monthly_revenue: List[MonthlyRevenuePoint]
    data_quality: DataQuality
