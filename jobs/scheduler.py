"""
Task scheduler.

Enqueues periodic referral jobs into Dramatiq and serves health checks.

Run with: ``python -m jobs.scheduler``
"""

import asyncio
import signal

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger

from jobs.health import (
    set_engine,
    set_scheduler,
    start_health_server,
    stop_health_server,
)
from jobs.tasks.referral_analytics import recompute_referral_analytics
from jobs.utils.database import task_engine
from referral_ledger.config.logging import setup_logging
from referral_ledger.config.settings import settings

# Running scheduler, used by shutdown hooks
scheduler_instance: AsyncIOScheduler | None = None


def enqueue_referral_analytics() -> None:
    """Enqueue the analytics recompute for today."""
    recompute_referral_analytics.send(
        period_type=settings.analytics_period_type
    )
    logger.info("Referral analytics recompute enqueued")


def create_scheduler() -> AsyncIOScheduler:
    """
    Create scheduler with referral jobs registered.

    Returns:
        Configured (not started) scheduler
    """
    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        enqueue_referral_analytics,
        trigger=CronTrigger(
            hour=settings.analytics_run_hour,
            minute=settings.analytics_run_minute,
            timezone="UTC",
        ),
        id="referral_analytics",
        name="Referral analytics recompute",
        replace_existing=True,
        coalesce=True,
        max_instances=1,
    )
    return scheduler


async def main() -> None:
    """Start scheduler and health server, run until signalled."""
    global scheduler_instance

    setup_logging("referral-scheduler")

    scheduler = create_scheduler()
    scheduler.start()
    scheduler_instance = scheduler
    set_scheduler(scheduler)
    set_engine(task_engine)

    runner, _ = await start_health_server(port=settings.health_check_port)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    logger.info("Scheduler started")
    try:
        await stop_event.wait()
    finally:
        scheduler.shutdown(wait=False)
        await stop_health_server(runner)
        logger.info("Scheduler stopped")


if __name__ == "__main__":
    asyncio.run(main())
