from __future__ import annotations

import asyncio
import logging
import time
from contextlib import suppress

from fastapi import FastAPI

from app.core.config import settings
from app.db.session import async_session_factory
from app.services.coupons import CouponService
from app.services.storage import LocalAssetStore

logger = logging.getLogger(__name__)


async def run_sweep() -> int:
    async with async_session_factory() as session:
        return await CouponService(session, LocalAssetStore()).sweep()


async def run_cleanup() -> int:
    async with async_session_factory() as session:
        service = CouponService(session, LocalAssetStore())
        # Flag first so coupons that expired since the last sweep are counted
        await service.sweep()
        return await service.cleanup()


async def _loop(stop: asyncio.Event) -> None:
    sweep_interval = max(1, settings.COUPON_SWEEP_INTERVAL_SECONDS)
    cleanup_interval = max(sweep_interval, settings.COUPON_CLEANUP_INTERVAL_SECONDS)
    last_cleanup: float | None = None

    while not stop.is_set():
        try:
            await run_sweep()
            if last_cleanup is None or time.monotonic() - last_cleanup >= cleanup_interval:
                purged = await run_cleanup()
                last_cleanup = time.monotonic()
                logger.info("coupon_cleanup_finished", extra={"purged": purged})
        except asyncio.CancelledError:
            break
        except Exception as exc:
            logger.warning("coupon_scheduler_failed", extra={"error": str(exc)})

        with suppress(asyncio.TimeoutError):
            await asyncio.wait_for(stop.wait(), timeout=sweep_interval)


def start(app: FastAPI) -> None:
    if not settings.COUPON_SCHEDULER_ENABLED:
        return
    if getattr(app.state, "coupon_scheduler_task", None) is not None:
        return

    stop_event = asyncio.Event()
    app.state.coupon_scheduler_stop = stop_event
    app.state.coupon_scheduler_task = asyncio.create_task(_loop(stop_event))


async def stop(app: FastAPI) -> None:
    stop_event = getattr(app.state, "coupon_scheduler_stop", None)
    task = getattr(app.state, "coupon_scheduler_task", None)
    if stop_event:
        stop_event.set()
    if task:
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
    app.state.coupon_scheduler_stop = None
    app.state.coupon_scheduler_task = None
