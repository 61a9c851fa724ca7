"""
Application factory for the analytics API.
"""

from collections.abc import Callable
from typing import Any

from aiohttp import web
from loguru import logger
from sqlalchemy.ext.asyncio import async_sessionmaker

from api.handlers import ROUTE_TABLES
from api.keys import CHAINS, ENQUEUE_FORCE_SYNC, SESSION_MAKER, SETTINGS, STARTED_AT
from api.middlewares import error_middleware
from app.config.settings import Settings
from app.utils.datetime_utils import utc_now


def create_app(
    session_maker: async_sessionmaker,
    config: Settings,
    enqueue_force_sync: Callable[[], Any] | None = None,
    chains: list[dict[str, Any]] | None = None,
) -> web.Application:
    """
    Build the aiohttp application.

    Args:
        session_maker: Session factory for read queries
        config: Application settings
        enqueue_force_sync: Queues a force sync (admin trigger); None disables it
        chains: Public description of enabled chains

    Returns:
        Configured application
    """
    app = web.Application(middlewares=[error_middleware])
    app[SESSION_MAKER] = session_maker
    app[SETTINGS] = config
    app[ENQUEUE_FORCE_SYNC] = enqueue_force_sync
    app[CHAINS] = chains if chains is not None else []
    app[STARTED_AT] = utc_now()

    for table in ROUTE_TABLES:
        app.add_routes(table)

    logger.info(f"[API] Application created with {len(app.router.routes())} routes")
    return app
