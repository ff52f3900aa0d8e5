"""
Category Revenue Reconciliation

Splits each order's authoritative total across categories using resolved
line revenue, then corrects the split so that category totals always sum to
the order totals they came from.
"""

from dataclasses import dataclass, field
from typing import Collection, Dict, Iterable, List, Mapping, Optional

import structlog

from shop_analytics.analytics.pricing import line_revenue
from shop_analytics.models.schemas import (
    REVENUE_RECOGNIZED_STATUSES,
    Order,
    OrderDetail,
    OrderLine,
    OrderStatus,
)
from shop_analytics.models.snapshot import CategoryShare

logger = structlog.get_logger(__name__)

UNCATEGORIZED = "Uncategorized"


def share_pct(part: int, whole: int) -> float:
    """Percentage of ``whole`` represented by ``part``, two decimals"""
    return round(part / whole * 100, 2) if whole else 0.0


@dataclass
class CategoryBreakdown:
    """Reconciled per-category revenue and units for one window"""
    revenue: Dict[str, int] = field(default_factory=dict)
    units: Dict[str, int] = field(default_factory=dict)
    orders_reconciled: int = 0
    orders_adjusted: int = 0
    orders_uncategorized: int = 0

    @property
    def total(self) -> int:
        return sum(self.revenue.values())

    def shares(self) -> List[CategoryShare]:
        """Categories sorted by revenue (descending, stable) with their share"""
        total = self.total
        ordered = sorted(self.revenue.items(), key=lambda item: item[1], reverse=True)
        return [
            CategoryShare(name=name, revenue=revenue, share_pct=share_pct(revenue, total))
            for name, revenue in ordered
        ]


class CategoryReconciler:
    """
    Reconciles line-level category revenue against authoritative totals.

    Args:
        category_names: Optional category id → name lookup
        recognized_statuses: Statuses whose totals count as revenue
    """

    def __init__(
        self,
        category_names: Optional[Mapping[str, str]] = None,
        recognized_statuses: Collection[OrderStatus] = REVENUE_RECOGNIZED_STATUSES,
    ):
        self.category_names = dict(category_names or {})
        self.recognized_statuses = frozenset(recognized_statuses)

    def resolve_category(self, line: OrderLine) -> str:
        """Category id lookup, else the line's category name, else Uncategorized"""
        if line.category_id is not None and line.category_id in self.category_names:
            return self.category_names[line.category_id]
        return line.category_name or UNCATEGORIZED

    def order_breakdown(self, order: Order, detail: Optional[OrderDetail]) -> Dict[str, int]:
        """
        Split one order's authoritative total across its categories.

        The signed difference between the line sum and the total is applied
        to the largest category (first encountered on ties). Should that push
        it below zero it is floored at zero and the remainder moves on to the
        next largest. Categories left at zero are dropped.
        """
        breakdown: Dict[str, int] = {}
        for line in detail.items if detail is not None else ():
            revenue = line_revenue(line)
            if revenue <= 0:
                continue
            category = self.resolve_category(line)
            breakdown[category] = breakdown.get(category, 0) + revenue

        if not breakdown:
            return {UNCATEGORIZED: order.total} if order.total else {}

        remaining = order.total - sum(breakdown.values())
        for name in sorted(breakdown, key=lambda n: breakdown[n], reverse=True):
            if remaining == 0:
                break
            adjusted = breakdown[name] + remaining
            if adjusted >= 0:
                breakdown[name] = adjusted
                remaining = 0
            else:
                breakdown[name] = 0
                remaining = adjusted

        return {name: revenue for name, revenue in breakdown.items() if revenue}

    def reconcile(
        self,
        orders: Iterable[Order],
        details: Mapping[str, OrderDetail],
    ) -> CategoryBreakdown:
        """Sum reconciled category revenue over the recognized orders"""
        result = CategoryBreakdown()

        for order in orders:
            if order.status not in self.recognized_statuses:
                continue
            detail = details.get(order.order_id)
            line_sum = 0
            if detail is not None:
                for line in detail.items:
                    category = self.resolve_category(line)
                    result.units[category] = result.units.get(category, 0) + line.quantity
                    line_sum += line_revenue(line)

            split = self.order_breakdown(order, detail)
            for name, revenue in split.items():
                result.revenue[name] = result.revenue.get(name, 0) + revenue

            result.orders_reconciled += 1
            if list(split) == [UNCATEGORIZED] and line_sum == 0:
                result.orders_uncategorized += 1
            elif line_sum != order.total:
                result.orders_adjusted += 1

        logger.debug(
            "Category revenue reconciled",
            orders=result.orders_reconciled,
            adjusted=result.orders_adjusted,
            uncategorized=result.orders_uncategorized,
            categories=len(result.revenue),
        )
        return result
