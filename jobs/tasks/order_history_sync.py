"""
Order History Sync Task.

Ingests OrderCreated events of every enabled chain, resuming from the
stored block cursor. Runs every 12 hours.
"""

import asyncio
from typing import Any

import dramatiq
from loguru import logger

from app.config.operational_constants import (
    DEFAULT_MAX_RETRIES,
    DRAMATIQ_TIME_LIMIT_LONG,
)
from app.services.sync_context import SyncContext
from jobs.async_runner import run_async
from jobs.utils.context import get_worker_context


@dramatiq.actor(max_retries=DEFAULT_MAX_RETRIES, time_limit=DRAMATIQ_TIME_LIMIT_LONG)
def sync_order_history() -> None:
    """Sync order history for all chains (queued)."""
    logger.info("[Orders Task] Starting order history sync...")

    try:
        run_async(run_order_sync(get_worker_context()))
    except Exception as e:
        logger.exception(f"[Orders Task] Order history sync failed: {e}")


async def run_order_sync(context: SyncContext) -> dict[str, Any]:
    """
    Order history sync over every enabled chain.

    Returns:
        Dict with success and per-chain results
    """
    try:
        async with context.session_maker() as session:
            result = await context.chain_sync(session).sync_orders_all_chains()

        inserted = sum(
            chain.get("inserted", 0) for chain in result["chains"].values()
        )
        if inserted:
            logger.info(f"[Orders Task] Stored {inserted} new orders")
        return result
    except asyncio.CancelledError:
        logger.info("[Orders Task] Task cancelled")
        raise
    except Exception as e:
        logger.exception(f"[Orders Task] Task failed: {e}")
        return {"success": False, "error": str(e)}
