"""
Background scheduler service for periodic jobs.

Runs event regeneration once a day and once at startup, so a server that was
down at the scheduled time catches up. Uses APScheduler for in-process
scheduling; an external cron can call the job endpoint instead.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from gatherly.core.config import get_settings
from gatherly.core.logger import logger
from gatherly.interfaces.event_repository import IEventRepository
from gatherly.interfaces.group_repository import IGroupRepository
from gatherly.services.event_regeneration_service import (
    EventRegenerationJob,
    RegenerationResult,
)


class BackgroundScheduler:
    """Background scheduler for the daily event regeneration."""

    def __init__(self, group_repo: IGroupRepository, event_repo: IEventRepository):
        self._job = EventRegenerationJob(group_repo, event_repo)
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._startup_task: Optional[asyncio.Task] = None
        self._last_run: Optional[datetime] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    @property
    def last_run(self) -> Optional[datetime]:
        return self._last_run

    async def start(self):
        """Start the scheduler and kick off a catch-up run."""
        settings = get_settings()

        # Only run scheduler in non-test environments
        if settings.is_test:
            logger.info("Background scheduler disabled in test environment")
            return
        if not settings.SCHEDULER_ENABLED:
            logger.info("Background scheduler disabled by configuration")
            return

        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self.run_regeneration,
            CronTrigger(
                hour=settings.REGENERATION_CRON_HOUR,
                minute=settings.REGENERATION_CRON_MINUTE,
                timezone="UTC",
            ),
            id="event_regeneration",
            name="Event Regeneration",
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info(
            "Background scheduler started: event regeneration daily at "
            f"{settings.REGENERATION_CRON_HOUR:02d}:{settings.REGENERATION_CRON_MINUTE:02d} UTC"
        )

        # Catch up in background (non-blocking)
        self._startup_task = asyncio.create_task(self.run_regeneration())

    async def stop(self):
        """Stop the scheduler."""
        if self._startup_task and not self._startup_task.done():
            self._startup_task.cancel()
        if self._scheduler:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
            logger.info("Background scheduler stopped")

    async def run_regeneration(self) -> Optional[RegenerationResult]:
        """Run the regeneration job, logging instead of raising."""
        try:
            result = await self._job.run()
        except Exception as e:
            logger.error(f"Scheduled event regeneration failed: {e}")
            return None
        self._last_run = datetime.utcnow()
        return result


# Global scheduler instance
_scheduler: Optional[BackgroundScheduler] = None


async def get_background_scheduler() -> BackgroundScheduler:
    """Get the global background scheduler instance."""
    global _scheduler
    if _scheduler is None:
        from gatherly.api.deps import get_event_repository, get_group_repository

        _scheduler = BackgroundScheduler(
            group_repo=get_group_repository(),
            event_repo=get_event_repository(),
        )
    return _scheduler


async def start_background_scheduler():
    """Start the global background scheduler."""
    scheduler = await get_background_scheduler()
    await scheduler.start()


async def stop_background_scheduler():
    """Stop the global background scheduler."""
    global _scheduler
    if _scheduler:
        await _scheduler.stop()
        _scheduler = None
