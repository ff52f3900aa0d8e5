"""
Data Models Module
"""
from .schemas import (
    REVENUE_RECOGNIZED_STATUSES,
    Order,
    OrderDetail,
    OrderLine,
    OrderStatus,
    Product,
    Variant,
)
from .snapshot import (
    CategoryShare,
    CustomerMetrics,
    DataQuality,
    InventoryMetrics,
    LivePulse,
    MetricsSnapshot,
    MonthlyRevenuePoint,
    OrderMetrics,
    RecentOrder,
    RevenueMetrics,
    RollingRevenue,
    TopCategory,
    TopProduct,
    WindowInfo,
)

__all__ = [
    "REVENUE_RECOGNIZED_STATUSES",
    "Order",
    "OrderDetail",
    "OrderLine",
    "OrderStatus",
    "Product",
    "Variant",
    "CategoryShare",
    "CustomerMetrics",
    "DataQuality",
    "InventoryMetrics",
    "LivePulse",
    "MetricsSnapshot",
    "MonthlyRevenuePoint",
    "OrderMetrics",
    "RecentOrder",
    "RevenueMetrics",
    "RollingRevenue",
    "TopCategory",
    "TopProduct",
    "WindowInfo",
]
