"""
Sync context for worker threads.

Each dramatiq worker thread runs its own event loop (see async_runner),
so each thread gets its own connector and price service: their throttle
locks belong to the loop they were first used on.
"""

import threading

from loguru import logger

from app.config.settings import settings
from app.services.sync_context import SyncContext, build_sync_context
from jobs.utils.database import task_session_maker

_thread_local = threading.local()


def get_worker_context() -> SyncContext:
    """
    Get or lazily build the context of the current thread.

    Raises:
        ConfigurationError: If no chain can be initialized
    """
    context = getattr(_thread_local, "context", None)
    if context is None:
        context = build_sync_context(settings, task_session_maker)
        _thread_local.context = context
        logger.info(
            f"[Worker] Sync context built for thread "
            f"{threading.current_thread().name}"
        )
    return context
