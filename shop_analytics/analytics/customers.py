"""
Customer Tier Classification

Derives customers from orders sharing a ``user_id``, maps their cumulative
recognized spend onto loyalty tiers and counts active, new and returning
customers for a window.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Collection, Dict, Iterable, List, Optional

import polars as pl
import structlog

from shop_analytics.analytics.categories import share_pct
from shop_analytics.config.settings import TierSettings
from shop_analytics.models.schemas import REVENUE_RECOGNIZED_STATUSES, Order, OrderStatus

logger = structlog.get_logger(__name__)


class CustomerTier(str, Enum):
    """Loyalty tiers, lowest first"""
    BRONZE = "Bronze"
    SILVER = "Silver"
    GOLD = "Gold"
    DIAMOND = "Diamond"


VIP_TIERS = frozenset({CustomerTier.GOLD, CustomerTier.DIAMOND})


class TierClassifier:
    """
    Maps cumulative spend onto a tier.

    Thresholds are inclusive lower bounds: spend equal to the Gold threshold
    is Gold.
    """

    def __init__(self, thresholds: Optional[TierSettings] = None):
        self.thresholds = thresholds or TierSettings()

    def classify(self, spend: int) -> CustomerTier:
        if spend >= self.thresholds.diamond:
            return CustomerTier.DIAMOND
        if spend >= self.thresholds.gold:
            return CustomerTier.GOLD
        if spend >= self.thresholds.silver:
            return CustomerTier.SILVER
        return CustomerTier.BRONZE


@dataclass(frozen=True)
class Customer:
    """A customer derived from order history"""
    user_id: str
    name: Optional[str]
    order_count: int
    total_spend: int
    first_order_at: datetime
    last_order_at: datetime
    tier: CustomerTier


@dataclass(frozen=True)
class CustomerSegments:
    """Customer counts for one window"""
    total: int
    active: int
    new: int
    tiers: Dict[str, int]
    vip: int
    retention_rate: float


class CustomerAnalyzer:
    """
    Builds customers from all-time order history and segments them.

    Example:
        analyzer = CustomerAnalyzer(TierClassifier(settings.tiers))
        customers = analyzer.build_customers(orders)
        segments = analyzer.segment(customers, orders, window.contains)
    """

    def __init__(
        self,
        classifier: Optional[TierClassifier] = None,
        recognized_statuses: Collection[OrderStatus] = REVENUE_RECOGNIZED_STATUSES,
    ):
        self.classifier = classifier or TierClassifier()
        self.recognized_statuses = frozenset(recognized_statuses)

    def build_customers(self, orders: Iterable[Order]) -> List[Customer]:
        """
        Group orders by customer.

        Spend sums the authoritative totals of recognized orders only; the
        order count includes every status. Orders without a customer
        reference are ignored.
        """
        orders = [o for o in orders if o.user_id is not None]
        frame = pl.DataFrame(
            {
                "user_id": [o.user_id for o in orders],
                "customer_name": [o.customer_name for o in orders],
                "created_at": [o.created_at for o in orders],
                "status": [o.status.value for o in orders],
                "total": [o.total for o in orders],
            },
            schema={
                "user_id": pl.Utf8,
                "customer_name": pl.Utf8,
                "created_at": pl.Datetime("us"),
                "status": pl.Utf8,
                "total": pl.Int64,
            },
        )
        recognized = [s.value for s in self.recognized_statuses]

        grouped = (
            frame.sort("created_at")
            .with_columns(
                pl.when(pl.col("status").is_in(recognized))
                .then(pl.col("total"))
                .otherwise(0)
                .alias("spend")
            )
            .group_by("user_id", maintain_order=True)
            .agg(
                pl.col("customer_name").drop_nulls().last().alias("name"),
                pl.col("created_at").count().alias("order_count"),
                pl.col("spend").sum().alias("total_spend"),
                pl.col("created_at").min().alias("first_order_at"),
                pl.col("created_at").max().alias("last_order_at"),
            )
        )

        return [
            Customer(
                user_id=row["user_id"],
                name=row["name"],
                order_count=int(row["order_count"]),
                total_spend=int(row["total_spend"]),
                first_order_at=row["first_order_at"],
                last_order_at=row["last_order_at"],
                tier=self.classifier.classify(int(row["total_spend"])),
            )
            for row in grouped.iter_rows(named=True)
        ]

    @staticmethod
    def active_count(orders: Iterable[Order], in_window: Callable[[datetime], bool]) -> int:
        """Distinct customers with at least one order in the window"""
        return len({o.user_id for o in orders if o.user_id is not None and in_window(o.created_at)})

    @staticmethod
    def new_count(customers: Iterable[Customer], in_window: Callable[[datetime], bool]) -> int:
        """Customers whose first-ever order falls in the window"""
        return sum(1 for c in customers if in_window(c.first_order_at))

    @staticmethod
    def tier_counts(customers: Iterable[Customer]) -> Dict[str, int]:
        counts = {tier.value: 0 for tier in CustomerTier}
        for customer in customers:
            counts[customer.tier.value] += 1
        return counts

    def segment(
        self,
        customers: List[Customer],
        orders: Iterable[Order],
        in_window: Callable[[datetime], bool],
    ) -> CustomerSegments:
        """Window-scoped activity plus all-time tier and retention figures"""
        tiers = self.tier_counts(customers)
        returning = sum(1 for c in customers if c.order_count > 1)
        return CustomerSegments(
            total=len(customers),
            active=self.active_count(orders, in_window),
            new=self.new_count(customers, in_window),
            tiers=tiers,
            vip=sum(tiers[tier.value] for tier in VIP_TIERS),
            retention_rate=share_pct(returning, len(customers)),
        )
