"""Storefront management CLI.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
    python src/manage.py cleanup    # Run one cleanup pass now
"""

import argparse
import sys


def _domain():
    from storefront.domain import storefront

    storefront.init()
    return storefront


def setup_database():
    from storefront.utils.db import setup_db

    print("Creating storefront database schema...")
    setup_db(_domain())
    print("Done.")


def drop_database():
    from storefront.utils.db import drop_db

    print("Dropping storefront database schema...")
    drop_db(_domain())
    print("Done.")


def run_cleanup_once():
    from storefront.inventory.scheduler import CleanupScheduler

    results = CleanupScheduler(_domain()).run_once()
    for sweep, count in results.items():
        print(f"  {sweep}: {'failed' if count is None else count}")
    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Storefront management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("cleanup", help="Expire stale reservations, unpaid orders and carts")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "cleanup":
        run_cleanup_once()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
