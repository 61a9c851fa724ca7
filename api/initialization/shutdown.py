"""
API Initialization - Shutdown Module.

Module: shutdown.py
Handles graceful shutdown of a process: releases the sync context and
closes database connections.
"""

from loguru import logger

from app.services.sync_context import SyncContext


async def shutdown_handler(context: SyncContext | None = None) -> None:
    """Handle graceful shutdown."""
    logger.info("Graceful shutdown initiated...")

    if context is not None:
        try:
            await context.close()
            logger.info("Sync context closed")
        except Exception as e:
            logger.warning(f"Error closing sync context: {e}")

    try:
        from app.config.database import async_engine
        await async_engine.dispose()
        logger.info("Database connections closed")
    except Exception as e:
        logger.warning(f"Error closing database: {e}")

    logger.info("Graceful shutdown complete")
