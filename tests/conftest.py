"""
Test Suite Configuration
"""
import asyncio
from datetime import datetime
from typing import Any, Callable, Dict, List

import pytest

from shop_analytics.config import Settings
from shop_analytics.ingestion import InMemoryStorefront, SnapshotInputLoader, SnapshotInputs
from shop_analytics.models import Order, OrderLine, OrderStatus

# Monday; order 3 falls inside the trailing live hour
NOW = datetime(2024, 5, 20, 12, 0, 0)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(app_env="testing")


@pytest.fixture
def raw_categories() -> List[Dict[str, Any]]:
    return [
        {"category_id": 1, "name": "Shirts"},
        {"category_id": 2, "name": "Pants"},
    ]


@pytest.fixture
def raw_orders() -> List[Dict[str, Any]]:
    """Sample storefront orders: five in May 2024, one in April, one unparseable"""
    return [
        {"order_id": 1, "created_at": "2024-05-01T10:00:00Z", "status": "completed",
         "total_price": 100000, "user_id": 1, "user_fullname": "Alice Nguyen"},
        {"order_id": 2, "created_at": "2024-05-10T09:00:00Z", "status": "paid",
         "total_price": "230000", "user_id": 2, "user_fullname": "Bao Tran"},
        {"order_id": 3, "created_at": "2024-05-20T11:30:00Z", "status": "Shipped",
         "total_price": 90000, "user_id": 1, "user_fullname": "Alice Nguyen"},
        {"order_id": 4, "created_at": "2024-05-15T08:00:00Z", "status": "cancelled",
         "total_price": 50000, "user_id": 3, "user_email": "chi@example.com"},
        {"order_id": 5, "created_at": "2024-04-12T10:00:00Z", "status": "completed",
         "total_price": 150000, "user_id": 2, "user_fullname": "Bao Tran"},
        {"order_id": 6, "created_at": "not-a-date", "status": "completed",
         "total_price": 1000, "user_id": 2},
        {"order_id": 7, "created_at": "2024-05-12T10:00:00Z", "status": "refunded",
         "total_price": 40000, "user_id": 3},
    ]


@pytest.fixture
def raw_order_details() -> Dict[str, Dict[str, Any]]:
    """Line items keyed by order id"""
    return {
        "1": {"order": {"order_id": 1, "items": [
            {"quantity": 1, "product_id": 1, "variant_id": 12, "price": 100000,
             "variant_price": None, "product_price": 100000, "product_discount": 0,
             "category_id": 1, "category_name": "Shirts", "product_title": "Classic Shirt"},
        ]}},
        "2": {"order": {"order_id": 2, "items": [
            {"quantity": 2, "product_id": 2, "variant_id": 21, "price": 100000,
             "variant_price": None, "product_price": 100000, "product_discount": 0,
             "category_id": 2, "category_name": "Pants", "product_title": "Chino Pants"},
        ]}},
        "3": {"order": {"order_id": 3, "items": [
            {"quantity": 1, "product_id": 1, "variant_id": 11, "price": 100000,
             "variant_price": 100000, "product_price": 100000, "product_discount": 10,
             "category_id": 1, "category_name": "Shirts", "product_title": "Classic Shirt"},
        ]}},
        "4": {"order": {"order_id": 4, "items": [
            {"quantity": 1, "product_id": 2, "variant_id": 21, "price": 50000,
             "product_price": 100000, "category_id": 2, "product_title": "Chino Pants"},
        ]}},
        "5": {"order": {"order_id": 5, "items": [
            {"quantity": 3, "product_id": 1, "variant_id": 12, "price": 50000,
             "variant_price": None, "product_price": 100000, "product_discount": 0,
             "category_id": 1, "category_name": "Shirts", "product_title": "Classic Shirt"},
        ]}},
        "7": {"order": {"order_id": 7, "items": [
            {"quantity": 1, "product_id": 1, "variant_id": 12, "price": 40000,
             "category_id": 1, "product_title": "Classic Shirt"},
        ]}},
    }


@pytest.fixture
def raw_products() -> List[Dict[str, Any]]:
    return [
        {"product_id": 1, "title": "Classic Shirt", "category_id": 1, "price": 100000, "discount": 0},
        {"product_id": 2, "title": "Chino Pants", "category_id": 2, "price": 100000, "discount": 0},
        {"product_id": 3, "title": "Linen Dress", "category_id": 1, "price": 300000, "discount": 0},
    ]


@pytest.fixture
def raw_product_details(raw_products) -> Dict[str, Dict[str, Any]]:
    """Product details with variants; product 3 has none"""
    variants = {
        1: [
            {"variant_id": 11, "stock": 0, "cost_price": 40000, "sku": "CS-S"},
            {"variant_id": 12, "stock": "2", "cost_price": "40000", "sku": "CS-M"},
        ],
        2: [
            {"variant_id": 21, "stock": 50, "cost_price": 60000, "sku": "CP-32"},
        ],
        3: [],
    }
    return {
        str(p["product_id"]): {"product": {**p, "variants": variants[p["product_id"]]}}
        for p in raw_products
    }


@pytest.fixture
def storefront(
    raw_orders,
    raw_order_details,
    raw_products,
    raw_product_details,
    raw_categories,
) -> InMemoryStorefront:
    """In-memory storefront over the sample records"""
    return InMemoryStorefront(
        orders=raw_orders,
        order_details=raw_order_details,
        products=raw_products,
        product_details=raw_product_details,
        categories=raw_categories,
    )


@pytest.fixture
def sample_inputs(storefront) -> SnapshotInputs:
    """Normalized inputs loaded from the sample storefront"""
    return asyncio.run(SnapshotInputLoader(storefront, storefront).load())


@pytest.fixture
def make_order() -> Callable[..., Order]:
    """Factory for canonical orders"""
    def _make(
        order_id: str = "1",
        created_at: datetime = NOW,
        status: OrderStatus = OrderStatus.COMPLETED,
        total: int = 0,
        user_id: str = None,
    ) -> Order:
        return Order(
            order_id=order_id,
            created_at=created_at,
            status=status,
            total=total,
            user_id=user_id,
        )
    return _make


@pytest.fixture
def make_line() -> Callable[..., OrderLine]:
    """Factory for canonical order lines"""
    def _make(**fields) -> OrderLine:
        fields.setdefault("quantity", 1)
        return OrderLine(**fields)
    return _make
