"""
Command Line Entry Point

Builds a dashboard snapshot from a JSON dataset or a live storefront API
and prints it as JSON.

Usage:
    shop-analytics snapshot --dataset data/storefront.json --period week
    shop-analytics snapshot --api-url http://localhost:3000/api --period custom \\
        --start 2024-05-01 --end 2024-05-31
"""

import argparse
import asyncio
import json
import sys
from datetime import datetime
from typing import List, Optional

import structlog

from shop_analytics.analytics.service import DashboardService
from shop_analytics.config import get_settings
from shop_analytics.config.logging import configure_logging
from shop_analytics.ingestion import InMemoryStorefront, StorefrontAPIError, StorefrontClient
from shop_analytics.models.snapshot import MetricsSnapshot
from shop_analytics.transformation.normalizers import parse_timestamp

logger = structlog.get_logger(__name__)


def _timestamp(value: str) -> datetime:
    parsed = parse_timestamp(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"invalid timestamp: {value!r}")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shop-analytics",
        description="Storefront sales & inventory analytics",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    snapshot = subparsers.add_parser("snapshot", help="Build a dashboard metrics snapshot")
    source = snapshot.add_mutually_exclusive_group(required=True)
    source.add_argument("--dataset", help="Path to a JSON storefront dataset")
    source.add_argument("--api-url", help="Storefront API base URL")
    snapshot.add_argument("--period", default=None, help="day | week | month | year | custom")
    snapshot.add_argument("--start", type=_timestamp, help="Custom range start date")
    snapshot.add_argument("--end", type=_timestamp, help="Custom range end date")
    snapshot.add_argument("--now", type=_timestamp, help="Reference instant (defaults to the current time)")
    snapshot.add_argument("--log-level", default=None, help="Override the configured log level")
    snapshot.add_argument("--indent", type=int, default=2, help="JSON indentation")
    return parser


async def run_snapshot(args: argparse.Namespace) -> MetricsSnapshot:
    settings = get_settings()

    if args.dataset:
        storefront = InMemoryStorefront.from_file(args.dataset)
        service = DashboardService(storefront, storefront, settings)
        return await service.get_snapshot(args.period, args.start, args.end, now=args.now)

    client_settings = settings.storefront.model_copy(update={"base_url": args.api_url})
    async with StorefrontClient(client_settings) as client:
        service = DashboardService(client, client, settings)
        return await service.get_snapshot(args.period, args.start, args.end, now=args.now)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        snapshot = asyncio.run(run_snapshot(args))
    except (StorefrontAPIError, OSError, ValueError) as e:
        logger.error("Snapshot failed", error=str(e))
        return 1

    json.dump(snapshot.model_dump(mode="json"), sys.stdout, indent=args.indent)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
