"""
Unit Tests - Dashboard Snapshot
"""
import json
from datetime import datetime

import pytest

from shop_analytics.analytics.snapshot import DashboardSnapshotBuilder, percent_change, select_recent_orders
from shop_analytics.analytics.windows import resolve_window
from shop_analytics.config import DashboardSettings, Settings
from shop_analytics.ingestion import SnapshotInputs
from shop_analytics.models import Order, OrderDetail, OrderLine, OrderStatus


class TestPercentChange:
    """Tests for period-over-period deltas"""

    @pytest.mark.parametrize("current,previous,expected", [
        (500000, 0, 100.0),
        (0, 0, 0.0),
        (150, 100, 50.0),
        (50, 100, -50.0),
        (0, 100, -100.0),
        (1, 3, -66.67),
        (-50, -100, -50.0),
        (50, -100, -150.0),
    ])
    def test_percent_change(self, current, previous, expected):
        assert percent_change(current, previous) == expected


class TestSingleOrderSnapshot:
    """One completed order in May 2024"""

    @pytest.fixture
    def inputs(self):
        order = Order(
            order_id="1",
            created_at=datetime(2024, 5, 1, 9, 0),
            status=OrderStatus.COMPLETED,
            total=100000,
        )
        line = OrderLine(
            quantity=1,
            product_id="p1",
            price_snapshot=100000,
            product_price=100000,
            category_name="Shirts",
        )
        return SnapshotInputs(
            orders=[order],
            details={"1": OrderDetail(order_id="1", items=(line,))},
        )

    def test_may_window(self, inputs, test_settings):
        window = resolve_window("custom", datetime(2024, 6, 1), start=datetime(2024, 5, 1), end=datetime(2024, 5, 31))
        snapshot = DashboardSnapshotBuilder(test_settings).build(inputs, window, datetime(2024, 6, 1))

        assert {c.name: c.revenue for c in snapshot.category_revenue} == {"Shirts": 100000}
        assert snapshot.revenue.gross_revenue == 100000
        assert snapshot.revenue.units_sold == 1
        assert snapshot.revenue.total == 100000
        assert snapshot.revenue.previous_total == 0
        assert snapshot.revenue.delta_pct == 100.0
        assert snapshot.revenue.total_cost == 0
        assert snapshot.top_products[0].key == "p1"
        assert snapshot.top_products[0].stock_status is None

    def test_empty_window(self, inputs, test_settings):
        window = resolve_window("day", datetime(2024, 7, 1, 8, 0))
        snapshot = DashboardSnapshotBuilder(test_settings).build(inputs, window, datetime(2024, 7, 1, 8, 0))

        assert snapshot.revenue.total == 0
        assert snapshot.revenue.delta_pct == 0.0
        assert snapshot.orders.conversion_rate == 0.0
        assert snapshot.category_revenue == []
        assert snapshot.top_products == []
        assert snapshot.top_categories == []


class TestSampleSnapshot:
    """Full snapshot over the sample storefront, May 2024 to date"""

    @pytest.fixture
    def snapshot(self, sample_inputs, test_settings, now):
        window = resolve_window("month", now)
        return DashboardSnapshotBuilder(test_settings).build(sample_inputs, window, now)

    def test_window(self, snapshot):
        assert snapshot.window.start == datetime(2024, 5, 1)
        assert snapshot.window.prev_start == datetime(2024, 4, 1)
        assert snapshot.window.label == "This month"

    def test_revenue(self, snapshot):
        revenue = snapshot.revenue

        assert revenue.total == 420000
        assert revenue.previous_total == 150000
        assert revenue.delta_pct == 180.0
        assert revenue.gross_revenue == 390000
        assert revenue.total_cost == 200000
        assert revenue.profit == 190000
        assert revenue.previous_profit == 30000
        assert revenue.profit_delta_pct == 533.33
        assert revenue.units_sold == 4
        assert revenue.avg_sell_price == 97500
        assert revenue.avg_cost == 50000
        assert revenue.avg_order_value == 140000
        assert (revenue.live.revenue, revenue.live.orders, revenue.live.units) == (90000, 1, 1)
        assert revenue.rolling.last_hour == 90000
        assert revenue.rolling.last_30_days == 420000

    def test_orders(self, snapshot):
        orders = snapshot.orders

        assert orders.total == 5
        assert orders.previous_total == 1
        assert orders.delta_pct == 400.0
        assert orders.recognized == 3
        assert orders.conversion_rate == 60.0
        assert orders.previous_conversion_rate == 100.0
        assert orders.conversion_delta_pts == -40.0
        assert orders.active_now == 1
        assert orders.status_breakdown == {
            "pending": 0,
            "paid": 1,
            "shipped": 1,
            "completed": 1,
            "cancelled": 1,
            "unknown": 1,
        }

    def test_customers(self, snapshot):
        customers = snapshot.customers

        assert customers.total == 3
        assert (customers.active, customers.previous_active, customers.active_delta_pct) == (3, 1, 200.0)
        assert (customers.new, customers.previous_new, customers.new_delta_pct) == (2, 1, 100.0)
        assert customers.tiers["Bronze"] == 3
        assert customers.vip == 0
        assert customers.retention_rate == 100.0

    def test_inventory(self, snapshot):
        inventory = snapshot.inventory

        assert inventory.total_units == 52
        assert inventory.product_count == 3
        assert (inventory.in_stock, inventory.critical, inventory.out_of_stock) == (1, 1, 1)

    def test_categories_reconcile_to_revenue(self, snapshot):
        assert sum(c.revenue for c in snapshot.category_revenue) == snapshot.revenue.total
        assert [(c.name, c.revenue) for c in snapshot.top_categories] == [
            ("Pants", 230000),
            ("Shirts", 190000),
        ]

    def test_top_products(self, snapshot):
        assert [(p.key, p.revenue) for p in snapshot.top_products] == [("2", 200000), ("1", 190000)]

    def test_monthly_and_quality(self, snapshot):
        assert [(p.month, p.revenue) for p in snapshot.monthly_revenue] == [
            ("2024-04", 150000),
            ("2024-05", 420000),
        ]
        assert snapshot.data_quality.orders_received == 7
        assert snapshot.data_quality.orders_dropped == 1
        assert snapshot.data_quality.order_details_failed == 0

    def test_json_serializable(self, snapshot):
        payload = json.dumps(snapshot.model_dump(mode="json"))
        assert '"generated_at": "2024-05-20T12:00:00"' in payload

    def test_immutable(self, snapshot):
        with pytest.raises(Exception):
            snapshot.revenue.total = 0

    def test_recent_orders(self, snapshot):
        recent = snapshot.recent_orders

        assert [o.order_id for o in recent] == ["3", "4", "7", "2", "1", "5"]
        assert [(o.item_count, o.status) for o in recent[:4]] == [
            (1, "shipped"),
            (1, "cancelled"),
            (1, "unknown"),
            (2, "paid"),
        ]
        assert (recent[0].customer_name, recent[0].total) == ("Alice Nguyen", 90000)
        assert recent[0].created_at == datetime(2024, 5, 20, 11, 30)


class TestRecentOrders:
    """Tests for the newest-orders list"""

    def test_select_skips_future_orders(self, sample_inputs):
        selected = select_recent_orders(sample_inputs.orders, datetime(2024, 5, 12, 12, 0), 2)
        assert [o.order_id for o in selected] == ["7", "2"]

    def test_limit_and_reference_time(self, sample_inputs):
        settings = Settings(app_env="testing", dashboard=DashboardSettings(recent_orders_limit=2))
        now = datetime(2024, 5, 12, 12, 0)
        snapshot = DashboardSnapshotBuilder(settings).build(sample_inputs, resolve_window("month", now), now)

        assert [o.order_id for o in snapshot.recent_orders] == ["7", "2"]

    def test_missing_detail_leaves_item_count_empty(self, sample_inputs, test_settings, now):
        details = {k: v for k, v in sample_inputs.details.items() if k != "2"}
        inputs = SnapshotInputs(orders=sample_inputs.orders, details=details)
        snapshot = DashboardSnapshotBuilder(test_settings).build(inputs, resolve_window("month", now), now)
        items = {o.order_id: o.item_count for o in snapshot.recent_orders}

        assert items["2"] is None
        assert items["3"] == 1
