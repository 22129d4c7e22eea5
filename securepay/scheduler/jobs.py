"""APScheduler jobs: periodic purge of expired login sessions."""

import asyncio
from datetime import timezone
from typing import Optional

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from securepay.application.services.auth_service import TokenAuthority

logger = structlog.get_logger(__name__)


async def purge_expired_sessions_job(authority: TokenAuthority) -> None:
    """Delete sessions past their expiry. Validation ignores them regardless."""
    try:
        removed = await asyncio.to_thread(authority.purge_expired_sessions)
        logger.info("Session reaper finished", removed=removed)
    except Exception:
        logger.exception("Session reaper failed")


def start_scheduler(authority: TokenAuthority, interval_minutes: int) -> Optional[AsyncIOScheduler]:
    """Start the reaper; an interval of 0 disables it."""
    if interval_minutes <= 0:
        logger.info("Session reaper disabled")
        return None

    scheduler = AsyncIOScheduler(timezone=timezone.utc)
    scheduler.add_job(
        purge_expired_sessions_job,
        IntervalTrigger(minutes=interval_minutes),
        args=[authority],
        id="purge_expired_sessions",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    logger.info("Scheduler started", reaper_interval_minutes=interval_minutes)
    return scheduler


def stop_scheduler(scheduler: Optional[AsyncIOScheduler]) -> None:
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
