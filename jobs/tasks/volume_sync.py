"""
Total Volume Sync Task.

Stores one fiat snapshot of the token volume across all chains.
Runs every 15 minutes.
"""

import asyncio
from typing import Any

import dramatiq
from loguru import logger

from app.config.operational_constants import (
    DEFAULT_MAX_RETRIES,
    DRAMATIQ_TIME_LIMIT_MEDIUM,
)
from app.services.sync_context import SyncContext
from jobs.async_runner import run_async
from jobs.utils.context import get_worker_context


@dramatiq.actor(max_retries=DEFAULT_MAX_RETRIES, time_limit=DRAMATIQ_TIME_LIMIT_MEDIUM)
def sync_total_volume() -> None:
    """Build and store a volume snapshot (queued)."""
    logger.info("[Volume Task] Starting total volume sync...")

    try:
        run_async(run_volume_sync(get_worker_context()))
    except Exception as e:
        logger.exception(f"[Volume Task] Total volume sync failed: {e}")


async def run_volume_sync(context: SyncContext) -> dict[str, Any]:
    """
    Aggregate and store one snapshot.

    Returns:
        Dict with success, snapshot_id and totals
    """
    try:
        async with context.session_maker() as session:
            return await context.volume_aggregator(session).run()
    except asyncio.CancelledError:
        logger.info("[Volume Task] Task cancelled")
        raise
    except Exception as e:
        logger.exception(f"[Volume Task] Task failed: {e}")
        return {"success": False, "error": str(e)}
