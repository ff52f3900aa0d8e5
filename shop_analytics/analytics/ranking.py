"""
Top-Entity Ranking

Ranks products and categories by realized revenue within a window.
"""

from typing import Collection, Iterable, List, Mapping, Optional

import polars as pl

from shop_analytics.analytics.categories import (
    UNCATEGORIZED,
    CategoryBreakdown,
    CategoryReconciler,
    share_pct,
)
from shop_analytics.analytics.inventory import ProductStock
from shop_analytics.analytics.pricing import line_revenue
from shop_analytics.models.schemas import (
    REVENUE_RECOGNIZED_STATUSES,
    Order,
    OrderDetail,
    OrderLine,
    OrderStatus,
    Product,
)
from shop_analytics.models.snapshot import TopCategory, TopProduct

_PRODUCT_SCHEMA = {
    "key": pl.Utf8,
    "product_id": pl.Utf8,
    "variant_id": pl.Utf8,
    "name": pl.Utf8,
    "category": pl.Utf8,
    "revenue": pl.Int64,
    "units": pl.Int64,
}


class TopEntityRanker:
    """
    Ranks products and categories by revenue.

    Sorting is stable: entities with equal revenue keep the order in which
    they were first encountered.

    Example:
        ranker = TopEntityRanker(reconciler)
        top = ranker.rank_products(orders, details, products, rollups, limit=5)
    """

    def __init__(
        self,
        reconciler: Optional[CategoryReconciler] = None,
        recognized_statuses: Collection[OrderStatus] = REVENUE_RECOGNIZED_STATUSES,
    ):
        self.reconciler = reconciler or CategoryReconciler(recognized_statuses=recognized_statuses)
        self.recognized_statuses = frozenset(recognized_statuses)

    def rank_products(
        self,
        orders: Iterable[Order],
        details: Mapping[str, OrderDetail],
        products: Iterable[Product] = (),
        rollups: Optional[Mapping[str, ProductStock]] = None,
        limit: int = 5,
    ) -> List[TopProduct]:
        """
        Top products by revenue over the recognized orders.

        Lines are keyed by product id, else variant id; lines with neither,
        or with no realized revenue, are skipped. The stock label comes from
        the inventory rollup and is absent for unknown products.
        """
        catalog = {p.product_id: p for p in products}
        rollups = rollups or {}
        rows = {name: [] for name in _PRODUCT_SCHEMA}

        for order in orders:
            if order.status not in self.recognized_statuses:
                continue
            detail = details.get(order.order_id)
            if detail is None:
                continue
            for line in detail.items:
                key = line.product_id or line.variant_id
                revenue = line_revenue(line)
                if key is None or revenue <= 0:
                    continue
                product = catalog.get(line.product_id) if line.product_id else None
                rows["key"].append(key)
                rows["product_id"].append(line.product_id)
                rows["variant_id"].append(line.variant_id)
                rows["name"].append(line.product_title or (product.title if product else None) or key)
                rows["category"].append(self._line_category(line, product))
                rows["revenue"].append(revenue)
                rows["units"].append(line.quantity)

        ranked = (
            pl.DataFrame(rows, schema=_PRODUCT_SCHEMA)
            .group_by("key", maintain_order=True)
            .agg(
                pl.col("product_id").first(),
                pl.col("variant_id").first(),
                pl.col("name").first(),
                pl.col("category").first(),
                pl.col("revenue").sum(),
                pl.col("units").sum(),
            )
            .sort("revenue", descending=True, maintain_order=True)
            .head(limit)
        )

        top: List[TopProduct] = []
        for rank, row in enumerate(ranked.iter_rows(named=True), start=1):
            stock = rollups.get(row["product_id"]) if row["product_id"] else None
            top.append(
                TopProduct(
                    rank=rank,
                    key=row["key"],
                    product_id=row["product_id"],
                    variant_id=row["variant_id"],
                    name=row["name"],
                    category=row["category"],
                    revenue=int(row["revenue"]),
                    units_sold=int(row["units"]),
                    stock_status=stock.status.value if stock else None,
                )
            )
        return top

    def _line_category(self, line: OrderLine, product: Optional[Product]) -> str:
        category = self.reconciler.resolve_category(line)
        if category == UNCATEGORIZED and product is not None and product.category:
            return product.category
        return category

    @staticmethod
    def rank_categories(breakdown: CategoryBreakdown, limit: int = 5) -> List[TopCategory]:
        """Top categories from reconciled totals, with their share of window revenue"""
        total = breakdown.total
        ordered = sorted(breakdown.revenue.items(), key=lambda item: item[1], reverse=True)
        return [
            TopCategory(
                rank=rank,
                name=name,
                revenue=revenue,
                units_sold=breakdown.units.get(name, 0),
                share_pct=share_pct(revenue, total),
            )
            for rank, (name, revenue) in enumerate(ordered[:limit], start=1)
        ]
