"""
Record Normalization Module

Shapes loosely-typed collaborator payloads into canonical models.
Handles:
- Timestamp parsing (ISO strings, dates, aware datetimes → naive UTC)
- Status normalization (free-form strings → OrderStatus)
- Currency/number coercion (numeric strings, currency symbols)
- Identifier canonicalization (ints and strings → str)
- Deduplication by order id
"""

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import pandas as pd
import structlog

from shop_analytics.models.schemas import (
    Order,
    OrderDetail,
    OrderLine,
    OrderStatus,
    Product,
    Variant,
)

logger = structlog.get_logger(__name__)

_CURRENCY_CHARS = re.compile(r"[$€£¥₫,\s]")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero"""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_number(value: Any) -> Optional[float]:
    """Coerce a raw numeric field; None when the value is not a finite number"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        text = _CURRENCY_CHARS.sub("", value)
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def to_identifier(value: Any) -> Optional[str]:
    """Canonicalize an id reference to a string"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        if value.is_integer():
            return str(int(value))
    text = str(value).strip()
    return text or None


def to_naive_utc(moment: datetime) -> datetime:
    """Aware datetimes are converted to UTC; naive ones are taken as UTC already"""
    if moment.tzinfo is not None:
        return moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a raw timestamp into a naive UTC datetime.

    Returns None for anything that cannot be parsed.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        stamp = pd.to_datetime(text, errors="coerce", utc=True)
        if pd.isna(stamp):
            return None
        return stamp.tz_convert(None).to_pydatetime()
    else:
        return None

    return to_naive_utc(parsed)


def _first_text(*values: Any) -> Optional[str]:
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _pick(item: Mapping[str, Any], nested: Mapping[str, Any], key: str, nested_key: Optional[str] = None) -> Any:
    """Line field with a fallback to the embedded product record"""
    value = item.get(key)
    if value is None:
        value = nested.get(nested_key or key)
    return value


def _unwrap(payload: Any, key: str) -> Any:
    """Accept both ``{key: {...}}`` envelopes and bare payloads"""
    if isinstance(payload, Mapping) and isinstance(payload.get(key), Mapping):
        return payload[key]
    return payload


@dataclass
class NormalizationStats:
    """Statistics from order normalization"""
    total_records: int = 0
    records_kept: int = 0
    unparseable_timestamps: int = 0
    missing_ids: int = 0
    duplicates_removed: int = 0

    @property
    def records_dropped(self) -> int:
        return self.total_records - self.records_kept


class RecordNormalizer:
    """
    Converts raw storefront records into canonical models.

    Stateless: one instance can serve concurrent snapshot requests.

    Example:
        normalizer = RecordNormalizer()
        orders, stats = normalizer.normalize_orders(raw_orders)
    """

    def normalize_order(self, record: Mapping[str, Any]) -> Optional[Order]:
        """Normalize one order header; None if it is unusable"""
        order_id = to_identifier(record.get("order_id", record.get("id")))
        created_at = parse_timestamp(record.get("created_at"))
        if order_id is None or created_at is None:
            return None

        total = to_number(record.get("total_price", record.get("total")))
        return Order(
            order_id=order_id,
            created_at=created_at,
            status=OrderStatus.parse(record.get("status")),
            total=max(0, round_half_up(total or 0.0)),
            user_id=to_identifier(record.get("user_id")),
            customer_name=_first_text(
                record.get("customer_name"),
                record.get("user_fullname"),
                record.get("user_email"),
            ),
        )

    def normalize_orders(
        self,
        records: Iterable[Mapping[str, Any]],
    ) -> Tuple[List[Order], NormalizationStats]:
        """
        Normalize raw order records.

        Orders with an unparseable timestamp are dropped silently; duplicate
        order ids keep their first occurrence. The result is sorted newest
        first.
        """
        stats = NormalizationStats()
        seen = set()
        orders: List[Order] = []

        for record in records:
            stats.total_records += 1
            if not isinstance(record, Mapping):
                stats.missing_ids += 1
                continue

            if to_identifier(record.get("order_id", record.get("id"))) is None:
                stats.missing_ids += 1
                continue

            order = self.normalize_order(record)
            if order is None:
                stats.unparseable_timestamps += 1
                logger.debug(
                    "Dropping order with unparseable timestamp",
                    order_id=record.get("order_id", record.get("id")),
                    created_at=record.get("created_at"),
                )
                continue

            if order.order_id in seen:
                stats.duplicates_removed += 1
                continue
            seen.add(order.order_id)
            orders.append(order)

        orders.sort(key=lambda o: o.created_at, reverse=True)
        stats.records_kept = len(orders)
        return orders, stats

    def normalize_line(self, item: Mapping[str, Any]) -> Optional[OrderLine]:
        """Normalize one order line; None when it has no positive quantity"""
        quantity = to_number(item.get("quantity"))
        if quantity is None or round_half_up(quantity) <= 0:
            return None

        product = item.get("product") if isinstance(item.get("product"), Mapping) else {}
        category_id = item.get("category_id")
        if category_id is None:
            category_id = product.get("category_id", product.get("categoryId"))

        return OrderLine(
            quantity=round_half_up(quantity),
            product_id=to_identifier(_pick(item, product, "product_id")),
            variant_id=to_identifier(item.get("variant_id")),
            variant_price=to_number(item.get("variant_price")),
            price_snapshot=to_number(item.get("price")),
            product_price=to_number(_pick(item, product, "product_price", "price")),
            discount_pct=to_number(item.get("product_discount", item.get("discount"))) or 0.0,
            category_id=to_identifier(category_id),
            category_name=_first_text(
                item.get("category_name"),
                product.get("category_name"),
                item.get("category"),
                product.get("category"),
            ),
            product_title=_first_text(item.get("product_title"), product.get("title")),
        )

    def normalize_order_detail(self, order_id: str, payload: Any) -> OrderDetail:
        """Normalize a ``get_order_detail`` payload"""
        detail = _unwrap(payload, "order")
        raw_items = detail.get("items") if isinstance(detail, Mapping) else None
        items = [
            line
            for line in (
                self.normalize_line(item)
                for item in (raw_items or [])
                if isinstance(item, Mapping)
            )
            if line is not None
        ]
        return OrderDetail(order_id=order_id, items=tuple(items))

    def normalize_variant(self, record: Mapping[str, Any], product_id: str) -> Optional[Variant]:
        """Normalize one variant; stock is clamped at zero"""
        variant_id = to_identifier(record.get("variant_id", record.get("id")))
        if variant_id is None:
            return None
        stock = to_number(record.get("stock"))
        return Variant(
            variant_id=variant_id,
            product_id=to_identifier(record.get("product_id")) or product_id,
            stock=max(0, round_half_up(stock or 0.0)),
            cost_price=to_number(record.get("cost_price")),
            price=to_number(record.get("price")),
            sku=_first_text(record.get("sku")),
        )

    def normalize_product(
        self,
        record: Mapping[str, Any],
        detail: Optional[Any] = None,
    ) -> Optional[Product]:
        """Merge a product list record with its detail payload"""
        detail = _unwrap(detail, "product") if detail is not None else {}
        if not isinstance(detail, Mapping):
            detail = {}
        merged = {**record, **detail}

        product_id = to_identifier(merged.get("product_id", merged.get("id")))
        if product_id is None:
            return None

        variants = [
            variant
            for variant in (
                self.normalize_variant(raw, product_id)
                for raw in (merged.get("variants") or [])
                if isinstance(raw, Mapping)
            )
            if variant is not None
        ]
        return Product(
            product_id=product_id,
            title=_first_text(merged.get("title"), merged.get("name")),
            category=_first_text(merged.get("category"), merged.get("category_name")),
            price=to_number(merged.get("price")),
            discount=to_number(merged.get("discount")) or 0.0,
            variants=tuple(variants),
        )

    def normalize_categories(self, records: Iterable[Any]) -> Dict[str, str]:
        """Build a category id → name lookup"""
        lookup: Dict[str, str] = {}
        for record in records or []:
            if not isinstance(record, Mapping):
                continue
            raw_id = None
            for key in ("category_id", "id", "value", "categoryId"):
                if record.get(key) is not None:
                    raw_id = record[key]
                    break
            category_id = to_identifier(raw_id)
            name = _first_text(record.get("name"))
            if category_id and name:
                lookup[category_id] = name
        return lookup


def normalize_orders(records: Iterable[Mapping[str, Any]]) -> List[Order]:
    """
    Convenience function to normalize raw order records.

    Args:
        records: Raw order payloads

    Returns:
        Canonical orders, newest first
    """
    orders, _ = RecordNormalizer().normalize_orders(records)
    return orders
