"""
Force Sync Task.

Operator-triggered run of metrics sync, order sync and volume
aggregation, one after another, outside the schedule.
"""

from typing import Any

import dramatiq
from loguru import logger

from app.config.operational_constants import (
    DRAMATIQ_TIME_LIMIT_FORCE_SYNC,
    FORCE_SYNC_MAX_RETRIES,
)
from app.services.sync_context import SyncContext
from jobs.async_runner import run_async
from jobs.tasks.metrics_sync import run_metrics_sync
from jobs.tasks.order_history_sync import run_order_sync
from jobs.tasks.volume_sync import run_volume_sync
from jobs.utils.context import get_worker_context


@dramatiq.actor(
    max_retries=FORCE_SYNC_MAX_RETRIES,
    time_limit=DRAMATIQ_TIME_LIMIT_FORCE_SYNC,
)
def force_sync_all() -> None:
    """Run every sync job now (queued by the admin API)."""
    logger.info("[Force Sync] Force syncing all data...")

    try:
        run_async(run_force_sync(get_worker_context()))
    except Exception as e:
        logger.exception(f"[Force Sync] Force sync failed: {e}")


async def run_force_sync(context: SyncContext) -> dict[str, Any]:
    """
    Metrics, orders, then volume.

    Each step reports on its own; a failed step does not stop the next.

    Returns:
        Dict with success and the result of each step
    """
    results = {
        "metrics": await run_metrics_sync(context),
        "orders": await run_order_sync(context),
        "volume": await run_volume_sync(context),
    }
    success = all(step.get("success") for step in results.values())

    if success:
        logger.success("[Force Sync] Force sync completed")
    else:
        failed = [name for name, step in results.items() if not step.get("success")]
        logger.warning(f"[Force Sync] Completed with failures: {', '.join(failed)}")

    return {"success": success, **results}
