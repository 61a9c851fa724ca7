"""
Sync scheduler.

Runs contract metrics sync, order history sync and total volume sync on
fixed intervals inside this process, plus a health check server.

Usage:
    python -m jobs.scheduler
"""

import asyncio
import signal
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from api.initialization.logging import setup_logging
from api.initialization.shutdown import shutdown_handler
from app.config.database import async_session_maker
from app.config.operational_constants import (
    HEALTH_SERVER_SHUTDOWN_TIMEOUT,
    INITIAL_ORDER_SYNC_STAGGER,
    SCHEDULER_MISFIRE_GRACE_TIME,
)
from app.config.settings import Settings, settings
from app.services.sync_context import SyncContext, init_sync_context
from app.utils.datetime_utils import utc_now
from jobs.health import (
    record_job_result,
    set_scheduler,
    start_health_server,
    stop_health_server,
)
from jobs.tasks.metrics_sync import run_metrics_sync
from jobs.tasks.order_history_sync import run_order_sync
from jobs.tasks.volume_sync import run_volume_sync

# Global scheduler reference for shutdown
scheduler_instance: AsyncIOScheduler | None = None

JobRunner = Callable[[SyncContext], Awaitable[dict[str, Any]]]


def make_job(
    job_id: str, runner: JobRunner, context: SyncContext
) -> Callable[[], Awaitable[None]]:
    """
    Wrap a sync runner for the scheduler.

    Exceptions stop here so the scheduler keeps running.
    """

    async def job() -> None:
        try:
            result = await runner(context)
        except Exception as e:
            logger.exception(f"[Scheduler] Job {job_id} failed: {e}")
            result = {"success": False, "error": str(e)}
        record_job_result(job_id, result)

    return job


def create_scheduler(context: SyncContext, config: Settings) -> AsyncIOScheduler:
    """
    Create the scheduler with all sync jobs registered.

    Args:
        context: Shared sync context
        config: Application settings (intervals, initial run)
    """
    scheduler = AsyncIOScheduler(
        timezone="UTC",
        job_defaults={
            "max_instances": 1,
            "coalesce": True,
            "misfire_grace_time": SCHEDULER_MISFIRE_GRACE_TIME,
        },
    )

    scheduler.add_job(
        make_job("metrics_sync", run_metrics_sync, context),
        IntervalTrigger(minutes=config.metrics_sync_interval_minutes),
        id="metrics_sync",
        name="Contract metrics sync",
        replace_existing=True,
    )
    scheduler.add_job(
        make_job("order_sync", run_order_sync, context),
        IntervalTrigger(hours=config.order_sync_interval_hours),
        id="order_sync",
        name="Order history sync",
        replace_existing=True,
    )
    scheduler.add_job(
        make_job("volume_sync", run_volume_sync, context),
        IntervalTrigger(minutes=config.volume_sync_interval_minutes),
        id="volume_sync",
        name="Total volume sync",
        replace_existing=True,
    )

    if config.run_initial_sync:
        first_run = utc_now() + timedelta(seconds=config.initial_sync_delay_seconds)
        scheduler.add_job(
            make_job("initial_metrics_sync", run_metrics_sync, context),
            DateTrigger(run_date=first_run),
            id="initial_metrics_sync",
            name="Initial contract metrics sync",
        )
        scheduler.add_job(
            make_job("initial_order_sync", run_order_sync, context),
            DateTrigger(
                run_date=first_run + timedelta(seconds=INITIAL_ORDER_SYNC_STAGGER)
            ),
            id="initial_order_sync",
            name="Initial order history sync",
        )

    logger.info(
        f"[Scheduler] Jobs: metrics every {config.metrics_sync_interval_minutes} min, "
        f"orders every {config.order_sync_interval_hours} h, "
        f"volume every {config.volume_sync_interval_minutes} min"
    )
    return scheduler


async def release_stale_runs(context: SyncContext) -> None:
    """Clear running flags a dead process left behind."""
    try:
        async with context.session_maker() as session:
            await context.chain_sync(session).release_stale_runs()
    except Exception as e:
        logger.error(f"[Scheduler] Could not release stale runs: {e}")


async def main() -> None:
    """Run the scheduler until SIGINT/SIGTERM."""
    global scheduler_instance

    setup_logging("scheduler")
    context = init_sync_context(settings, async_session_maker)
    await release_stale_runs(context)

    scheduler = create_scheduler(context, settings)
    scheduler_instance = scheduler
    set_scheduler(scheduler)
    scheduler.start()
    logger.success("[Scheduler] Started")

    health_runner = await start_health_server(port=settings.health_check_port)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    try:
        await stop_event.wait()
    finally:
        logger.info("[Scheduler] Shutting down...")
        scheduler.shutdown(wait=False)
        await stop_health_server(health_runner, timeout=HEALTH_SERVER_SHUTDOWN_TIMEOUT)
        await shutdown_handler(context)


if __name__ == "__main__":
    asyncio.run(main())
