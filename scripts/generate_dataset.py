"""
Storefront Dataset Generator
Writes a synthetic storefront dataset (JSON) for `shop-analytics snapshot --dataset`
"""

import argparse
from pathlib import Path

from shop_analytics.analytics.service import utc_now
from shop_analytics.data.generators import StorefrontDataGenerator

OUTPUT_PATH = Path(__file__).parent.parent / "data" / "generated" / "storefront.json"


def main():
    parser = argparse.ArgumentParser(description="Generate a synthetic storefront dataset")
    parser.add_argument("--customers", type=int, default=200)
    parser.add_argument("--products", type=int, default=60)
    parser.add_argument("--orders", type=int, default=5000)
    parser.add_argument("--days", type=int, default=400, help="Days of order history")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--output", type=Path, default=OUTPUT_PATH)
    args = parser.parse_args()

    print("=" * 60)
    print("🛒 Storefront Dataset Generator")
    print("=" * 60 + "\n")

    dataset = StorefrontDataGenerator(seed=args.seed).generate_all(
        n_customers=args.customers,
        n_products=args.products,
        n_orders=args.orders,
        now=utc_now().replace(microsecond=0),
        days=args.days,
    )
    path = StorefrontDataGenerator.save(dataset, args.output)

    variants = sum(len(p["variants"]) for p in dataset["product_details"].values())
    print(f"   📄 categories: {len(dataset['categories']):,}")
    print(f"   📄 products:   {len(dataset['products']):,} ({variants:,} variants)")
    print(f"   📄 orders:     {len(dataset['orders']):,}")
    print(f"\n📁 Output: {path} ({path.stat().st_size / 1024 / 1024:.2f} MB)\n")


if __name__ == "__main__":
    main()
