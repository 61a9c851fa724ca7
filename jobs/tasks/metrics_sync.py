"""
Contract Metrics Sync Task.

Stores a snapshot of the contract counters of every enabled chain.
Runs every hour.
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
def sync_contract_metrics() -> None:
    """Sync contract metrics for all chains (queued)."""
    logger.info("[Metrics Task] Starting contract metrics sync...")

    try:
        run_async(run_metrics_sync(get_worker_context()))
    except Exception as e:
        logger.exception(f"[Metrics Task] Contract metrics sync failed: {e}")


async def run_metrics_sync(context: SyncContext) -> dict[str, Any]:
    """
    Metrics sync over every enabled chain.

    Returns:
        Dict with success and per-chain results
    """
    try:
        async with context.session_maker() as session:
            return await context.chain_sync(session).sync_metrics_all_chains()
    except asyncio.CancelledError:
        logger.info("[Metrics Task] Task cancelled")
        raise
    except Exception as e:
        logger.exception(f"[Metrics Task] Task failed: {e}")
        return {"success": False, "error": str(e)}
