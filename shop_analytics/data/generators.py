"""
Synthetic Storefront Data Generator

Generates raw storefront records shaped like the storefront API payloads,
for local runs and tests.
Includes:
- Categories and customers
- Products with variants, stock levels and cost prices
- Orders with line items across every status, spread over a time range

The output is a dataset dict accepted by ``InMemoryStorefront.from_dataset``.
"""

import json
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import numpy as np
import structlog
from faker import Faker

from shop_analytics.analytics.pricing import apply_discount
from shop_analytics.transformation.normalizers import round_half_up

logger = structlog.get_logger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

CATEGORY_NAMES = ["Shirts", "Pants", "Dresses", "Shoes", "Jackets", "Accessories"]

SIZES = ["S", "M", "L", "XL"]

ORDER_STATUSES = [
    ("pending", 0.10),
    ("paid", 0.20),
    ("shipped", 0.20),
    ("completed", 0.40),
    ("cancelled", 0.10),
]

# Flat shipping fee added to some orders so totals differ from line sums
SHIPPING_FEE = 30_000


# =============================================================================
# GENERATORS
# =============================================================================

class CustomerGenerator:
    """Generate storefront user accounts"""

    def __init__(self, fake: Faker):
        self.fake = fake

    def generate(self, n: int = 50) -> List[Dict[str, Any]]:
        return [
            {
                "user_id": i,
                "fullname": self.fake.name(),
                "email": self.fake.unique.email(),
            }
            for i in range(1, n + 1)
        ]


class ProductGenerator:
    """Generate catalog products with variants"""

    def __init__(self, fake: Faker, rng: np.random.Generator):
        self.fake = fake
        self.rng = rng

    def generate(
        self,
        categories: List[Dict[str, Any]],
        n: int = 30,
    ) -> Dict[str, Any]:
        """
        Generate n products.

        Returns:
            ``{"products": [...], "product_details": {id: {..., "variants": [...]}}}``
        """
        products = []
        details = {}
        variant_id = 0

        for product_id in range(1, n + 1):
            category = categories[int(self.rng.integers(len(categories)))]
            price = int(self.rng.integers(15, 200)) * 10_000
            discount = int(self.rng.choice([0, 0, 0, 10, 20, 30]))
            record = {
                "product_id": product_id,
                "title": f"{self.fake.color_name()} {category['name']} #{product_id}",
                "category_id": category["category_id"],
                "category_name": category["name"],
                "price": price,
                "discount": discount,
            }

            variants = []
            for size in SIZES[: int(self.rng.integers(1, len(SIZES) + 1))]:
                variant_id += 1
                variants.append({
                    "variant_id": variant_id,
                    "product_id": product_id,
                    "sku": f"SKU-{product_id:05d}-{size}",
                    "size": size,
                    "stock": int(self.rng.choice([0, 1, 2, 5, 8, 15, 40, 120])),
                    "cost_price": round_half_up(price * float(self.rng.uniform(0.35, 0.65))),
                    # Most variants inherit the product price
                    "price": price if self.rng.random() < 0.3 else None,
                })

            products.append(record)
            details[str(product_id)] = {**record, "variants": variants}

        return {"products": products, "product_details": details}


class OrderGenerator:
    """Generate orders and their line items"""

    def __init__(
        self,
        rng: np.random.Generator,
        customers: List[Dict[str, Any]],
        product_details: Dict[str, Dict[str, Any]],
    ):
        self.rng = rng
        self.customers = customers
        self.products = list(product_details.values())

    def _line(self, product: Dict[str, Any]) -> Dict[str, Any]:
        variant = product["variants"][int(self.rng.integers(len(product["variants"])))]
        return {
            "quantity": int(self.rng.integers(1, 4)),
            "variant_id": variant["variant_id"],
            "product_id": product["product_id"],
            "price": product["price"],
            "variant_price": variant["price"],
            "product_price": product["price"],
            "product_discount": product["discount"],
            "category_id": product["category_id"],
            "category_name": product["category_name"],
            "product_title": product["title"],
        }

    def generate(
        self,
        n: int,
        start: datetime,
        end: datetime,
        shipping_rate: float = 0.3,
    ) -> Dict[str, Any]:
        """
        Generate n orders created uniformly between start and end.

        Each order's ``total_price`` is the sum of its discounted lines, plus
        a flat shipping fee for a ``shipping_rate`` share of orders.
        """
        statuses = [s for s, _ in ORDER_STATUSES]
        weights = [w for _, w in ORDER_STATUSES]
        span = max(1, int((end - start).total_seconds()))

        orders = []
        details = {}
        for order_id in range(1, n + 1):
            customer = self.customers[int(self.rng.integers(len(self.customers)))]
            created_at = start + timedelta(seconds=int(self.rng.integers(span)))

            items = []
            for _ in range(int(self.rng.integers(1, 4))):
                items.append(self._line(self.products[int(self.rng.integers(len(self.products)))]))

            total = sum(
                apply_discount(item["variant_price"] or item["product_price"], item["product_discount"])
                * item["quantity"]
                for item in items
            )
            if self.rng.random() < shipping_rate:
                total += SHIPPING_FEE

            orders.append({
                "order_id": order_id,
                "created_at": created_at.isoformat() + "Z",
                "status": str(self.rng.choice(statuses, p=weights)),
                "total_price": total,
                "user_id": customer["user_id"],
                "user_fullname": customer["fullname"],
                "user_email": customer["email"],
            })
            details[str(order_id)] = {"order_id": order_id, "items": items}

        return {"orders": orders, "order_details": details}


# =============================================================================
# MAIN GENERATOR
# =============================================================================

class StorefrontDataGenerator:
    """
    Storefront dataset orchestrator.

    Seeded per instance so generated datasets are reproducible.

    Example:
        dataset = StorefrontDataGenerator(seed=7).generate_all(n_orders=500)
    """

    def __init__(self, seed: int = 42):
        self.fake = Faker()
        self.fake.seed_instance(seed)
        self.rng = np.random.default_rng(seed)

    def generate_categories(self) -> List[Dict[str, Any]]:
        return [{"category_id": i, "name": name} for i, name in enumerate(CATEGORY_NAMES, start=1)]

    def generate_all(
        self,
        n_customers: int = 50,
        n_products: int = 30,
        n_orders: int = 500,
        now: Optional[datetime] = None,
        days: int = 400,
    ) -> Dict[str, Any]:
        """Generate a complete storefront dataset ending at ``now``"""
        if min(n_customers, n_products) < 1:
            raise ValueError("n_customers and n_products must be positive")
        now = now or datetime(2024, 6, 15, 12, 0, 0)

        categories = self.generate_categories()
        customers = CustomerGenerator(self.fake).generate(n_customers)
        catalog = ProductGenerator(self.fake, self.rng).generate(categories, n_products)
        sales = OrderGenerator(self.rng, customers, catalog["product_details"]).generate(
            n_orders,
            start=now - timedelta(days=days),
            end=now,
        )

        logger.info(
            "Generated storefront dataset",
            customers=n_customers,
            products=n_products,
            orders=n_orders,
        )
        return {
            "categories": categories,
            "products": catalog["products"],
            "product_details": catalog["product_details"],
            "orders": sales["orders"],
            "order_details": sales["order_details"],
        }

    @staticmethod
    def save(dataset: Dict[str, Any], path: Union[str, Path]) -> Path:
        """Write a dataset as JSON"""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as fh:
            json.dump(dataset, fh, indent=2)
        logger.info("Saved storefront dataset", path=str(path))
        return path
