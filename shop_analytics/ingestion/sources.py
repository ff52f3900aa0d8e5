"""
Storefront Collaborators

Read-only interfaces the engine fetches raw records through, plus an
in-memory implementation backed by a raw dataset (a JSON export or a
generated dataset).
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Union

import structlog

logger = structlog.get_logger(__name__)

RawRecord = Dict[str, Any]


class OrderSource(Protocol):
    """Supplies raw orders and their line items"""

    async def list_orders(self) -> List[RawRecord]:
        ...

    async def get_order_detail(self, order_id: str) -> RawRecord:
        ...


class CatalogSource(Protocol):
    """Supplies raw products, variants and categories"""

    async def list_products(self) -> List[RawRecord]:
        ...

    async def get_product_detail(self, product_id: str) -> RawRecord:
        ...

    async def list_categories(self) -> List[RawRecord]:
        ...


class InMemoryStorefront:
    """
    Order and catalog source over an in-memory raw dataset.

    Dataset layout::

        {
            "orders": [...],
            "order_details": {"<order id>": {"items": [...]}},
            "products": [...],
            "product_details": {"<product id>": {"variants": [...]}},
            "categories": [...]
        }

    Products without a ``product_details`` entry serve their list record
    as detail. Missing order details raise ``KeyError``.
    """

    def __init__(
        self,
        orders: Optional[List[RawRecord]] = None,
        order_details: Optional[Mapping[str, RawRecord]] = None,
        products: Optional[List[RawRecord]] = None,
        product_details: Optional[Mapping[str, RawRecord]] = None,
        categories: Optional[List[RawRecord]] = None,
    ):
        self.orders = list(orders or [])
        self.order_details = {str(k): v for k, v in (order_details or {}).items()}
        self.products = list(products or [])
        self.product_details = {str(k): v for k, v in (product_details or {}).items()}
        self.categories = list(categories or [])

    @classmethod
    def from_dataset(cls, dataset: Mapping[str, Any]) -> "InMemoryStorefront":
        return cls(
            orders=dataset.get("orders"),
            order_details=dataset.get("order_details"),
            products=dataset.get("products"),
            product_details=dataset.get("product_details"),
            categories=dataset.get("categories"),
        )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "InMemoryStorefront":
        """Load a dataset written as JSON"""
        path = Path(path)
        with path.open("r", encoding="utf-8") as fh:
            dataset = json.load(fh)
        logger.info(
            "Loaded storefront dataset",
            path=str(path),
            orders=len(dataset.get("orders") or []),
            products=len(dataset.get("products") or []),
        )
        return cls.from_dataset(dataset)

    async def list_orders(self) -> List[RawRecord]:
        return list(self.orders)

    async def get_order_detail(self, order_id: str) -> RawRecord:
        try:
            return self.order_details[str(order_id)]
        except KeyError:
            raise KeyError(f"No detail for order {order_id}") from None

    async def list_products(self) -> List[RawRecord]:
        return list(self.products)

    async def get_product_detail(self, product_id: str) -> RawRecord:
        product_id = str(product_id)
        if product_id in self.product_details:
            return self.product_details[product_id]
        for record in self.products:
            if str(record.get("product_id", record.get("id"))) == product_id:
                return record
        raise KeyError(f"No product {product_id}")

    async def list_categories(self) -> List[RawRecord]:
        return list(self.categories)
