"""
Snapshot Input Loader

Fetches everything one snapshot needs from the collaborators and
normalizes it. List calls run concurrently; per-order and per-product
detail fetches then fan out under a bounded semaphore. Aggregation only
starts once every fetch has settled.

Failure policy:
- list_orders / list_products failures propagate to the caller
- list_categories failure is tolerated (empty lookup)
- detail fetch failures are logged, counted and skipped
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import structlog

from shop_analytics.ingestion.sources import CatalogSource, OrderSource, RawRecord
from shop_analytics.models.schemas import Order, OrderDetail, Product
from shop_analytics.models.snapshot import DataQuality
from shop_analytics.transformation.normalizers import (
    NormalizationStats,
    RecordNormalizer,
    to_identifier,
)

logger = structlog.get_logger(__name__)


@dataclass
class SnapshotInputs:
    """Normalized inputs for one snapshot request"""
    orders: List[Order] = field(default_factory=list)
    details: Dict[str, OrderDetail] = field(default_factory=dict)
    products: List[Product] = field(default_factory=list)
    category_names: Dict[str, str] = field(default_factory=dict)
    normalization: NormalizationStats = field(default_factory=NormalizationStats)
    order_details_failed: int = 0
    product_details_failed: int = 0

    def data_quality(self) -> DataQuality:
        return DataQuality(
            orders_received=self.normalization.total_records,
            orders_dropped=self.normalization.records_dropped,
            order_details_failed=self.order_details_failed,
            product_details_failed=self.product_details_failed,
        )


class SnapshotInputLoader:
    """
    Loads and normalizes snapshot inputs from the storefront collaborators.

    Args:
        orders: Order collaborator
        catalog: Catalog collaborator
        concurrency: Maximum in-flight detail fetches
        normalizer: Record normalizer (a default instance when omitted)
    """

    def __init__(
        self,
        orders: OrderSource,
        catalog: CatalogSource,
        concurrency: int = 10,
        normalizer: Optional[RecordNormalizer] = None,
    ):
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")
        self.orders = orders
        self.catalog = catalog
        self.concurrency = concurrency
        self.normalizer = normalizer or RecordNormalizer()

    async def _list_categories(self) -> List[RawRecord]:
        try:
            return await self.catalog.list_categories()
        except Exception as e:
            logger.warning("Category list fetch failed, continuing without lookup", error=str(e))
            return []

    async def _fan_out(
        self,
        fetch: Callable[[str], Awaitable[Any]],
        keys: Sequence[str],
    ) -> List[Any]:
        """Run ``fetch`` for every key, at most ``concurrency`` at a time"""
        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(key: str) -> Any:
            async with semaphore:
                return await fetch(key)

        results = await asyncio.gather(*(bounded(key) for key in keys), return_exceptions=True)
        for result in results:
            # Cancellation is never a per-item failure
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result
        return results

    async def _load_details(self, orders: Sequence[Order]) -> Tuple[Dict[str, OrderDetail], int]:
        order_ids = [o.order_id for o in orders]
        results = await self._fan_out(self.orders.get_order_detail, order_ids)

        details: Dict[str, OrderDetail] = {}
        failed = 0
        for order_id, result in zip(order_ids, results):
            if isinstance(result, Exception):
                failed += 1
                logger.warning("Order detail fetch failed", order_id=order_id, error=str(result))
                continue
            details[order_id] = self.normalizer.normalize_order_detail(order_id, result)
        return details, failed

    async def _load_products(self, records: Sequence[RawRecord]) -> Tuple[List[Product], int]:
        keyed: List[Tuple[str, RawRecord]] = []
        seen = set()
        for record in records:
            if not isinstance(record, dict):
                continue
            product_id = to_identifier(record.get("product_id", record.get("id")))
            if product_id is None or product_id in seen:
                continue
            seen.add(product_id)
            keyed.append((product_id, record))

        results = await self._fan_out(self.catalog.get_product_detail, [pid for pid, _ in keyed])

        products: List[Product] = []
        failed = 0
        for (product_id, record), result in zip(keyed, results):
            detail = None
            if isinstance(result, Exception):
                failed += 1
                logger.warning("Product detail fetch failed", product_id=product_id, error=str(result))
            else:
                detail = result
            product = self.normalizer.normalize_product(record, detail)
            if product is not None:
                products.append(product)
        return products, failed

    async def load(
        self,
        detail_filter: Optional[Callable[[Order], bool]] = None,
        detail_selector: Optional[Callable[[List[Order]], Iterable[Order]]] = None,
    ) -> SnapshotInputs:
        """
        Fetch and normalize all snapshot inputs.

        Args:
            detail_filter: Restricts which orders get their line items
                fetched; every order is fetched when omitted
            detail_selector: Picks further orders for detail fetching from
                the full newest-first order list
        """
        logger.info("Fetching storefront records")
        raw_orders, raw_products, raw_categories = await asyncio.gather(
            self.orders.list_orders(),
            self.catalog.list_products(),
            self._list_categories(),
        )

        orders, stats = self.normalizer.normalize_orders(raw_orders or [])
        selected = {o.order_id for o in detail_selector(orders)} if detail_selector else set()
        targets = [
            o for o in orders
            if detail_filter is None or detail_filter(o) or o.order_id in selected
        ]

        (details, details_failed), (products, products_failed) = await asyncio.gather(
            self._load_details(targets),
            self._load_products(raw_products or []),
        )

        inputs = SnapshotInputs(
            orders=orders,
            details=details,
            products=products,
            category_names=self.normalizer.normalize_categories(raw_categories),
            normalization=stats,
            order_details_failed=details_failed,
            product_details_failed=products_failed,
        )
        logger.info(
            "Snapshot inputs loaded",
            orders=len(orders),
            orders_dropped=stats.records_dropped,
            details=len(details),
            details_failed=details_failed,
            products=len(products),
            products_failed=products_failed,
            categories=len(inputs.category_names),
        )
        return inputs
