"""
Canonical Data Models

Validated, immutable representations of the records the engine consumes.
Raw collaborator payloads are turned into these types by
``shop_analytics.transformation.normalizers``; every analytics component
works on these types only.
"""

from datetime import datetime
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMERATIONS
# =============================================================================

class OrderStatus(str, Enum):
    """Order status enumeration"""
    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"  # Free-form status outside the known set

    @classmethod
    def parse(cls, value: object) -> "OrderStatus":
        """Map a free-form status string onto the enum"""
        text = str(value or "").strip().lower()
        try:
            return cls(text)
        except ValueError:
            return cls.UNKNOWN


# Statuses whose authoritative total counts toward realized revenue
REVENUE_RECOGNIZED_STATUSES: FrozenSet[OrderStatus] = frozenset({
    OrderStatus.PAID,
    OrderStatus.SHIPPED,
    OrderStatus.COMPLETED,
})


class _Canonical(BaseModel):
    model_config = ConfigDict(frozen=True)


# =============================================================================
# ORDERS
# =============================================================================

class Order(_Canonical):
    """A normalized order header"""
    order_id: str
    created_at: datetime
    status: OrderStatus
    total: int = Field(ge=0, description="Authoritative server-computed total, minor units")
    user_id: Optional[str] = None
    customer_name: Optional[str] = None


class OrderLine(_Canonical):
    """A normalized order line with its candidate price fields"""
    quantity: int = Field(gt=0)
    product_id: Optional[str] = None
    variant_id: Optional[str] = None
    variant_price: Optional[float] = None
    price_snapshot: Optional[float] = None
    product_price: Optional[float] = None
    discount_pct: float = 0.0
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    product_title: Optional[str] = None


class OrderDetail(_Canonical):
    """Line items of one order"""
    order_id: str
    items: Tuple[OrderLine, ...] = ()


# =============================================================================
# CATALOG
# =============================================================================

class Variant(_Canonical):
    """A sellable product variant with its stock position"""
    variant_id: str
    product_id: str
    stock: int = Field(default=0, ge=0)
    cost_price: Optional[float] = None
    price: Optional[float] = None
    sku: Optional[str] = None


class Product(_Canonical):
    """A catalog product and its variants"""
    product_id: str
    title: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = None
    discount: float = 0.0
    variants: Tuple[Variant, ...] = ()
