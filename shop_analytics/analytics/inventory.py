"""
Inventory Status Aggregation

Buckets every variant by stock level and rolls the buckets up per product
and across the catalog. Inventory is a point-in-time view and ignores the
analysis window.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple

import polars as pl
import structlog

from shop_analytics.analytics.categories import share_pct
from shop_analytics.config.settings import StockSettings
from shop_analytics.models.schemas import Product
from shop_analytics.models.snapshot import InventoryMetrics

logger = structlog.get_logger(__name__)


class StockStatus(str, Enum):
    """Stock health buckets"""
    OUT_OF_STOCK = "Out of Stock"
    CRITICAL = "Critical"
    LOW_STOCK = "Low Stock"
    IN_STOCK = "In Stock"


def _empty_counts() -> Dict[StockStatus, int]:
    return {status: 0 for status in StockStatus}


@dataclass(frozen=True)
class ProductStock:
    """Stock rollup for one product"""
    product_id: str
    title: Optional[str]
    total_units: int
    variant_count: int
    counts: Dict[StockStatus, int]
    status: StockStatus


@dataclass
class InventorySummary:
    """Catalog-wide stock rollup"""
    total_units: int = 0
    variant_count: int = 0
    product_count: int = 0
    counts: Dict[StockStatus, int] = field(default_factory=_empty_counts)

    @property
    def availability_pct(self) -> float:
        available = self.variant_count - self.counts[StockStatus.OUT_OF_STOCK]
        return share_pct(available, self.variant_count)

    def to_metrics(self) -> InventoryMetrics:
        return InventoryMetrics(
            total_units=self.total_units,
            variant_count=self.variant_count,
            product_count=self.product_count,
            in_stock=self.counts[StockStatus.IN_STOCK],
            low_stock=self.counts[StockStatus.LOW_STOCK],
            critical=self.counts[StockStatus.CRITICAL],
            out_of_stock=self.counts[StockStatus.OUT_OF_STOCK],
            availability_pct=self.availability_pct,
        )


class InventoryAggregator:
    """
    Classifies stock levels and aggregates inventory health.

    Args:
        thresholds: Critical / low stock thresholds
    """

    def __init__(self, thresholds: Optional[StockSettings] = None):
        self.thresholds = thresholds or StockSettings()

    def classify(self, stock: int) -> StockStatus:
        if stock <= 0:
            return StockStatus.OUT_OF_STOCK
        if stock < self.thresholds.critical_threshold:
            return StockStatus.CRITICAL
        if stock < self.thresholds.low_threshold:
            return StockStatus.LOW_STOCK
        return StockStatus.IN_STOCK

    @staticmethod
    def product_status(total_units: int, counts: Dict[StockStatus, int]) -> StockStatus:
        """
        Health label of a product from its variant buckets.

        Out of Stock when no units remain, else the worst of Critical and Low
        Stock that any variant falls in, else In Stock.
        """
        if total_units <= 0:
            return StockStatus.OUT_OF_STOCK
        for status in (StockStatus.CRITICAL, StockStatus.LOW_STOCK):
            if counts.get(status):
                return status
        return StockStatus.IN_STOCK

    def _status_expr(self, column: str) -> pl.Expr:
        """Polars expression equivalent of ``classify``"""
        stock = pl.col(column)
        return (
            pl.when(stock <= 0).then(pl.lit(StockStatus.OUT_OF_STOCK.value))
            .when(stock < self.thresholds.critical_threshold).then(pl.lit(StockStatus.CRITICAL.value))
            .when(stock < self.thresholds.low_threshold).then(pl.lit(StockStatus.LOW_STOCK.value))
            .otherwise(pl.lit(StockStatus.IN_STOCK.value))
        )

    def aggregate(self, products: Iterable[Product]) -> Tuple[InventorySummary, Dict[str, ProductStock]]:
        """
        Summarize stock across all variants of all products.

        Returns:
            The catalog summary and a per-product rollup keyed by product id
        """
        products = list(products)
        pairs = [(p.product_id, v.stock) for p in products for v in p.variants]
        frame = pl.DataFrame(
            {
                "product_id": [product_id for product_id, _ in pairs],
                "stock": [stock for _, stock in pairs],
            },
            schema={"product_id": pl.Utf8, "stock": pl.Int64},
        ).with_columns(self._status_expr("stock").alias("status"))

        per_product = frame.group_by("product_id", "status").agg(
            pl.col("stock").sum().alias("units"),
            pl.col("stock").count().alias("variants"),
        )

        summary = InventorySummary(product_count=len(products))
        rollup_rows: Dict[str, Dict[StockStatus, Tuple[int, int]]] = {}
        for row in per_product.iter_rows(named=True):
            status = StockStatus(row["status"])
            rollup_rows.setdefault(row["product_id"], {})[status] = (int(row["units"]), int(row["variants"]))
            summary.total_units += int(row["units"])
            summary.variant_count += int(row["variants"])
            summary.counts[status] += int(row["variants"])

        rollups: Dict[str, ProductStock] = {}
        for product in products:
            buckets = rollup_rows.get(product.product_id, {})
            counts = _empty_counts()
            total_units = variant_count = 0
            for status, (units, count) in buckets.items():
                counts[status] = count
                total_units += units
                variant_count += count
            rollups[product.product_id] = ProductStock(
                product_id=product.product_id,
                title=product.title,
                total_units=total_units,
                variant_count=variant_count,
                counts=counts,
                status=self.product_status(total_units, counts),
            )

        logger.debug(
            "Inventory aggregated",
            products=summary.product_count,
            variants=summary.variant_count,
            units=summary.total_units,
        )
        return summary, rollups
