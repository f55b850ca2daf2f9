"""Commerce database management CLI.

Usage:
    python src/manage.py setup-db    # Create all tables
    python src/manage.py drop-db     # Drop all tables
    python src/manage.py seed-demo   # Load a few catalog items and coupons
"""

import argparse
import sys
from datetime import UTC, datetime, timedelta


def setup_databases():
    from commerce.domain import commerce
    from commerce.utils.db import setup_db

    print("Initializing commerce domain...")
    commerce.init()
    print("Creating commerce database schema...")
    setup_db(commerce)
    print("Done.")


def drop_databases():
    from commerce.domain import commerce
    from commerce.utils.db import drop_db

    print("Initializing commerce domain...")
    commerce.init()
    print("Dropping commerce database schema...")
    drop_db(commerce)
    print("Done.")


def seed_demo():
    """Create demo catalog items and coupons, printing their ids."""
    from commerce.catalog.item import CatalogItem, ItemKind
    from commerce.coupon.coupon import Coupon, DiscountKind
    from commerce.domain import commerce

    commerce.init()
    with commerce.domain_context():
        items = [
            CatalogItem.create(name="Graphics Card RTX 4070", sku="GPU-4070", price=50000.0, stock_quantity=10, weight_kg=1.5),
            CatalogItem.create(name="Mechanical Keyboard", sku="KB-MECH", price=3499.0, stock_quantity=50, weight_kg=0.9),
            CatalogItem.create(
                name="Creator PC Build",
                sku="PC-CREATOR",
                kind=ItemKind.BUNDLE.value,
                price=125000.0,
                stock_quantity=3,
                weight_kg=12.0,
            ),
        ]
        now = datetime.now(UTC)
        coupons = [
            Coupon.create(
                "SAVE20",
                DiscountKind.PERCENTAGE.value,
                20,
                min_order_amount=10000.0,
                max_discount=5000.0,
                usage_limit=100,
                per_user_limit=1,
                ends_at=now + timedelta(days=30),
            ),
            Coupon.create("FLAT500", DiscountKind.FIXED.value, 500, min_order_amount=2000.0),
            Coupon.create("LAUNCH1", DiscountKind.FIXED.value, 1000, usage_limit=1),
        ]

        item_repo = commerce.repository_for(CatalogItem)
        for item in items:
            item_repo.add(item)
            print(f"  item   {item.sku:<12} {item.id}")
        coupon_repo = commerce.repository_for(Coupon)
        for coupon in coupons:
            coupon_repo.add(coupon)
            print(f"  coupon {coupon.code}")

    print(f"Seeded {len(items)} items and {len(coupons)} coupons.")


def main():
    parser = argparse.ArgumentParser(description="Commerce database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("seed-demo", help="Load demo catalog items and coupons")

    args = parser.parse_args()

    commands = {
        "setup-db": setup_databases,
        "drop-db": drop_databases,
        "seed-demo": seed_demo,
    }
    commands[args.command]()


if __name__ == "__main__":
    sys.exit(main())
