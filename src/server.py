"""Background runner for the storefront domain.

Starts the Protean Engine (outbox processing and async event handlers) and
the periodic cleanup scheduler that expires stale reservations, unpaid
orders and abandoned carts.

Usage:
    python src/server.py                 # Engine and cleanup scheduler
    python src/server.py --cleanup-only  # Only the cleanup scheduler
"""

import argparse
import asyncio

from protean.server.engine import Engine

from storefront.domain import storefront
from storefront.inventory.scheduler import CleanupScheduler
from storefront.utils.logging import configure_logging


async def run(cleanup_only=False, interval=None):
    scheduler = CleanupScheduler(storefront, interval=interval)
    await scheduler.start()
    try:
        if cleanup_only:
            await asyncio.Event().wait()
        else:
            await Engine(storefront).run()
    finally:
        await scheduler.stop()


def main():
    parser = argparse.ArgumentParser(description="Storefront background runner")
    parser.add_argument("--cleanup-only", action="store_true", help="Run only the cleanup scheduler")
    parser.add_argument("--interval", type=float, help="Cleanup interval in seconds (default: env or 300)")
    args = parser.parse_args()

    configure_logging()
    storefront.init()
    asyncio.run(run(cleanup_only=args.cleanup_only, interval=args.interval))


if __name__ == "__main__":
    main()
