"""Background tasks: daily maintenance jobs and periodic store refresh.

Uses FastAPI's lifespan context to start/stop plain asyncio loops:

  - once per day at `SCHEDULER_HOUR` (UTC): expiration digest, then the
    inactive account sweep
  - every `STORE_REFRESH_SECONDS`: reload the InventoryStore so it
    reconciles with writes made by other processes

The store itself is created here and attached to `app.state.store`.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

from fastapi import FastAPI

from chemsphere.config import settings
from chemsphere.database import async_session
from chemsphere.services.accounts import deactivate_inactive_users
from chemsphere.services.expiration import check_expiration
from chemsphere.services.store import InventoryStore
from chemsphere.utils.cache import close_redis

logger = logging.getLogger("chemsphere.scheduler")


async def run_daily_jobs() -> None:
    """Expiration digest followed by the inactive account sweep."""
    logger.info("Starting daily maintenance run")

    try:
        async with async_session() as db:
            result = await check_expiration(db)
        logger.info(
            "Expiration digest: %d chemicals, %d admins, %d emails sent",
            result.processed, result.admin_count, result.emails_sent,
        )
    except Exception:
        logger.exception("Expiration check failed")

    try:
        async with async_session() as db:
            try:
                sweep = await deactivate_inactive_users(db)
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        logger.info("Inactive sweep deactivated %d users", sweep.deactivated)
    except Exception:
        logger.exception("Inactive account sweep failed")


def seconds_until(hour: int, now: datetime | None = None) -> float:
    """Seconds from `now` until the next HH:00 UTC."""
    now = now or datetime.now(timezone.utc)
    next_run = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if next_run <= now:
        next_run += timedelta(days=1)
    return (next_run - now).total_seconds()


async def _daily_loop() -> None:
    while True:
        wait_seconds = seconds_until(settings.scheduler_hour)
        logger.info("Next maintenance run in %.0f seconds", wait_seconds)
        await asyncio.sleep(wait_seconds)

        await run_daily_jobs()

        # Small buffer to avoid running twice in the same minute
        await asyncio.sleep(60)


async def _refresh_loop(store: InventoryStore) -> None:
    while True:
        await asyncio.sleep(settings.store_refresh_seconds)
        try:
            async with async_session() as db:
                await store.refresh(db)
        except Exception:
            logger.exception("Store refresh failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the store, start background loops, stop them on shutdown."""
    store = InventoryStore()
    app.state.store = store
    try:
        async with async_session() as db:
            await store.refresh(db)
    except Exception:
        logger.exception("Initial store load failed; collections load on first request")
        store.invalidate()

    tasks = [asyncio.create_task(_refresh_loop(store))]
    if settings.scheduler_enabled:
        tasks.append(asyncio.create_task(_daily_loop()))
        logger.info("Maintenance scheduler started")
    try:
        yield
    finally:
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        await close_redis()
        logger.info("Background tasks stopped")
