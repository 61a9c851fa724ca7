#!/usr/bin/env python3
"""
Failed Range Backfill Script.

Retries the block ranges an order sync had to skip and removes the
ones that now succeed.

Usage:
    python scripts/backfill_failed_ranges.py            # every enabled chain
    python scripts/backfill_failed_ranges.py 8453 42220 # selected chains
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger

from app.config.settings import settings
from app.services.sync_context import build_sync_context
from jobs.utils.database import task_session_maker

# Configure logger for script
logger.remove()
logger.add(sys.stderr, level="INFO")


async def backfill(chain_ids: list[int]) -> int:
    """
    Backfill the given chains (all enabled chains when empty).

    Returns:
        Process exit code
    """
    context = build_sync_context(settings, task_session_maker)
    targets = chain_ids or context.connector.enabled_chain_ids()
    failures = 0

    try:
        for chain_id in targets:
            async with context.session_maker() as session:
                result = await context.chain_sync(session).backfill_failed_ranges(
                    chain_id
                )
            if not result.get("success"):
                failures += 1
            logger.info(f"Chain {chain_id}: {result}")
    finally:
        await context.close()

    return 1 if failures else 0


if __name__ == "__main__":
    try:
        chains = [int(arg) for arg in sys.argv[1:]]
    except ValueError:
        logger.error("Chain ids must be integers")
        sys.exit(2)
    sys.exit(asyncio.run(backfill(chains)))
