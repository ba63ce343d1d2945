"""Runs the cleanup sweeps on a fixed interval inside the storefront domain."""

import asyncio
import os

import structlog

from storefront.domain import storefront
from storefront.inventory.cleanup import run_cleanup

logger = structlog.get_logger(__name__)

DEFAULT_INTERVAL_SECONDS = 300


def _interval_from_env() -> float:
    raw = os.environ.get("CLEANUP_INTERVAL_SECONDS")
    if not raw:
        return DEFAULT_INTERVAL_SECONDS
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid CLEANUP_INTERVAL_SECONDS, using default", value=raw)
        return DEFAULT_INTERVAL_SECONDS
    return value if value > 0 else DEFAULT_INTERVAL_SECONDS


class CleanupScheduler:
    """Periodic cleanup loop.

    ``start()`` schedules the loop on the running event loop. ``stop()``
    asks the loop to exit and waits until any pass already under way has
    finished, so a sweep is never abandoned halfway through a batch.
    ``run_once()`` performs a single pass synchronously and is what the
    loop calls.
    """

    def __init__(self, domain=storefront, interval: float | None = None):
        self.domain = domain
        self.interval = interval if interval is not None else _interval_from_env()
        self.is_running = False
        self._task: asyncio.Task | None = None
        self._stop_requested: asyncio.Event | None = None

    def run_once(self) -> dict:
        with self.domain.domain_context():
            return run_cleanup()

    async def start(self):
        if self.is_running:
            logger.warning("Cleanup scheduler is already running")
            return

        self.is_running = True
        self._stop_requested = asyncio.Event()
        self._task = asyncio.create_task(self._loop())
        logger.info("Cleanup scheduler started", interval_seconds=self.interval)

    async def stop(self):
        if not self.is_running:
            return

        self.is_running = False
        self._stop_requested.set()
        task, self._task = self._task, None
        if not task.cancelled():
            await task
        logger.info("Cleanup scheduler stopped")

    async def _loop(self):
        while not self._stop_requested.is_set():
            try:
                results = await asyncio.to_thread(self.run_once)
                logger.info("Cleanup pass finished", **results)
            except Exception:
                logger.exception("Cleanup pass failed")

            try:
                await asyncio.wait_for(self._stop_requested.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
