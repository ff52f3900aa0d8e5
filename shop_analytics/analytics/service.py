"""
Dashboard Service

Entry point for snapshot requests: resolves the window, loads inputs from
the collaborators and hands them to the snapshot builder.
"""

from datetime import datetime, timezone
from typing import Optional, Union

import structlog

from shop_analytics.analytics.snapshot import DashboardSnapshotBuilder, select_recent_orders
from shop_analytics.analytics.windows import DateLike, Period, TimeWindow, TimeWindowResolver
from shop_analytics.config.settings import Settings, get_settings
from shop_analytics.ingestion.loader import SnapshotInputLoader
from shop_analytics.ingestion.sources import CatalogSource, OrderSource
from shop_analytics.models.schemas import Order
from shop_analytics.models.snapshot import MetricsSnapshot
from shop_analytics.transformation.normalizers import to_naive_utc

logger = structlog.get_logger(__name__)


def utc_now() -> datetime:
    """Current instant as naive UTC, the engine's timestamp convention"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class DashboardService:
    """
    Serves dashboard snapshots from storefront collaborators.

    Example:
        async with StorefrontClient(settings.storefront) as client:
            service = DashboardService(client, client, settings)
            snapshot = await service.get_snapshot("week")
    """

    def __init__(
        self,
        orders: OrderSource,
        catalog: CatalogSource,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.resolver = TimeWindowResolver(default_period=Period(self.settings.dashboard.default_period))
        self.loader = SnapshotInputLoader(
            orders,
            catalog,
            concurrency=self.settings.storefront.fetch_concurrency,
        )
        self.builder = DashboardSnapshotBuilder(self.settings)

    def resolve_window(
        self,
        period: Union[Period, str, None],
        now: datetime,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
    ) -> TimeWindow:
        return self.resolver.resolve(period, now, start=start, end=end)

    async def get_snapshot(
        self,
        period: Union[Period, str, None] = None,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
        now: Optional[datetime] = None,
    ) -> MetricsSnapshot:
        """
        Build the snapshot for a period selector.

        Only orders in the current window, the previous window, the live
        window or the recent orders list get their line items fetched.
        """
        now = to_naive_utc(now) if now is not None else utc_now()
        window = self.resolve_window(period, now, start, end)
        live_start = now - self.builder.revenue.live_window

        def needs_detail(order: Order) -> bool:
            created = order.created_at
            return (
                window.contains(created)
                or window.contains_previous(created)
                or live_start < created <= now
            )

        recent_limit = self.settings.dashboard.recent_orders_limit
        with structlog.contextvars.bound_contextvars(period=window.period.value, window=window.label):
            logger.info("Snapshot requested")
            inputs = await self.loader.load(
                detail_filter=needs_detail,
                detail_selector=lambda orders: select_recent_orders(orders, now, recent_limit),
            )
            return self.builder.build(inputs, window, now)
