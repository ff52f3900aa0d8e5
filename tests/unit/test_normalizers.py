"""
Unit Tests - Record Normalization
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from shop_analytics.models import OrderStatus
from shop_analytics.transformation import (
    RecordNormalizer,
    normalize_orders,
    parse_timestamp,
    round_half_up,
    to_number,
)
from shop_analytics.transformation.normalizers import to_identifier


class TestHelpers:
    """Tests for scalar coercion helpers"""

    @pytest.mark.parametrize("value,expected", [
        (0.5, 1),
        (1.5, 2),
        (2.5, 3),
        (2.4999, 2),
        (-0.5, -1),
        (89999.5, 90000),
    ])
    def test_round_half_up(self, value, expected):
        """Halves round away from zero, unlike Python's banker's rounding"""
        assert round_half_up(value) == expected

    @pytest.mark.parametrize("value,expected", [
        (100, 100.0),
        ("250000", 250000.0),
        ("$1,299.50", 1299.5),
        ("120 000 ₫", 120000.0),
        ("abc", None),
        ("", None),
        (None, None),
        (True, None),
        (float("nan"), None),
        ({"price": 1}, None),
    ])
    def test_to_number(self, value, expected):
        """Test numeric coercion"""
        assert to_number(value) == expected

    def test_to_identifier(self):
        """Identifiers are canonicalized to strings"""
        assert to_identifier(42) == "42"
        assert to_identifier(42.0) == "42"
        assert to_identifier(" ord-1 ") == "ord-1"
        assert to_identifier("") is None
        assert to_identifier(None) is None

    def test_parse_timestamp_variants(self):
        """Strings, dates and aware datetimes become naive UTC"""
        assert parse_timestamp("2024-05-01T10:00:00Z") == datetime(2024, 5, 1, 10, 0)
        assert parse_timestamp("2024-05-01T10:00:00+07:00") == datetime(2024, 5, 1, 3, 0)
        assert parse_timestamp(date(2024, 5, 1)) == datetime(2024, 5, 1)

        aware = datetime(2024, 5, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        assert parse_timestamp(aware) == datetime(2024, 5, 1, 10, 0)

    @pytest.mark.parametrize("value", ["not-a-date", "", None, 12.5, True])
    def test_parse_timestamp_invalid(self, value):
        """Unparseable values return None"""
        assert parse_timestamp(value) is None


class TestOrderNormalization:
    """Tests for order header normalization"""

    def test_normalize_orders(self, raw_orders):
        """Unparseable timestamps are dropped and the rest sorted newest first"""
        orders, stats = RecordNormalizer().normalize_orders(raw_orders)

        assert [o.order_id for o in orders] == ["3", "4", "7", "2", "1", "5"]
        assert stats.total_records == 7
        assert stats.records_kept == 6
        assert stats.unparseable_timestamps == 1
        assert stats.records_dropped == 1

    def test_status_and_total_coercion(self, raw_orders):
        """Statuses are lower-cased; numeric-string totals are coerced"""
        orders = {o.order_id: o for o in normalize_orders(raw_orders)}

        assert orders["3"].status == OrderStatus.SHIPPED
        assert orders["7"].status == OrderStatus.UNKNOWN
        assert orders["2"].total == 230000
        assert orders["4"].customer_name == "chi@example.com"
        assert orders["1"].user_id == "1"

    def test_duplicates_keep_first(self):
        """Duplicate order ids keep their first occurrence"""
        records = [
            {"id": "a", "created_at": "2024-05-01", "status": "paid", "total_price": 10},
            {"id": "a", "created_at": "2024-05-02", "status": "paid", "total_price": 99},
            {"created_at": "2024-05-02", "status": "paid"},
        ]
        orders, stats = RecordNormalizer().normalize_orders(records)

        assert len(orders) == 1
        assert orders[0].total == 10
        assert stats.duplicates_removed == 1
        assert stats.missing_ids == 1

    def test_negative_total_clamped(self):
        """Totals are non-negative integers"""
        order = RecordNormalizer().normalize_order(
            {"order_id": 1, "created_at": "2024-05-01", "status": "paid", "total_price": "-5"}
        )
        assert order.total == 0


class TestDetailNormalization:
    """Tests for line, product and category normalization"""

    def test_order_detail_envelope(self, raw_order_details):
        """Both wrapped and bare detail payloads are accepted"""
        normalizer = RecordNormalizer()
        wrapped = normalizer.normalize_order_detail("3", raw_order_details["3"])
        bare = normalizer.normalize_order_detail("3", raw_order_details["3"]["order"])

        assert wrapped == bare
        line = wrapped.items[0]
        assert line.variant_price == 100000
        assert line.discount_pct == 10
        assert line.category_id == "1"
        assert line.product_title == "Classic Shirt"

    def test_non_positive_quantity_dropped(self):
        """Lines with zero or negative quantity are removed"""
        detail = RecordNormalizer().normalize_order_detail("9", {"items": [
            {"quantity": 0, "price": 100},
            {"quantity": -1, "price": 100},
            {"quantity": "2", "price": "abc"},
        ]})

        assert len(detail.items) == 1
        assert detail.items[0].quantity == 2
        assert detail.items[0].price_snapshot is None

    def test_line_falls_back_to_embedded_product(self):
        """Missing line fields are read from the embedded product record"""
        line = RecordNormalizer().normalize_line({
            "quantity": 1,
            "product": {"product_id": 8, "price": 70000, "title": "Wool Coat", "category_name": "Jackets"},
        })

        assert line.product_id == "8"
        assert line.product_price == 70000
        assert line.product_title == "Wool Coat"
        assert line.category_name == "Jackets"

    def test_normalize_product_merges_detail(self, raw_products, raw_product_details):
        """Variants come from the detail payload; stock is coerced and clamped"""
        normalizer = RecordNormalizer()
        product = normalizer.normalize_product(raw_products[0], raw_product_details["1"])

        assert product.product_id == "1"
        assert product.title == "Classic Shirt"
        assert [v.variant_id for v in product.variants] == ["11", "12"]
        assert product.variants[1].stock == 2
        assert product.variants[1].cost_price == 40000
        assert all(v.product_id == "1" for v in product.variants)

        negative = normalizer.normalize_variant({"id": 5, "stock": -4}, "1")
        assert negative.stock == 0

    def test_normalize_categories(self, raw_categories):
        """Category lists become an id → name lookup"""
        lookup = RecordNormalizer().normalize_categories(
            raw_categories + [{"id": 9, "name": "Hats"}, {"name": "No id"}, "junk"]
        )
        assert lookup == {"1": "Shirts", "2": "Pants", "9": "Hats"}
