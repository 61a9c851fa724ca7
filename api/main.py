"""
Analytics API entry point.

Usage:
    python -m api.main
"""

from aiohttp import web
from loguru import logger

from api.app import create_app
from api.initialization.logging import setup_logging
from api.initialization.shutdown import shutdown_handler
from app.config.database import async_session_maker
from app.config.settings import settings


async def _on_cleanup(app: web.Application) -> None:
    await shutdown_handler()


def main() -> None:
    """Run the API until interrupted."""
    setup_logging("api")

    # Importing the actor configures the Redis broker
    from jobs.tasks.force_sync import force_sync_all

    chains = [chain.describe() for chain in settings.get_chain_configs()]
    app = create_app(
        async_session_maker,
        settings,
        enqueue_force_sync=force_sync_all.send,
        chains=chains,
    )
    app.on_cleanup.append(_on_cleanup)

    logger.info(f"[API] Listening on {settings.api_host}:{settings.api_port}")
    web.run_app(app, host=settings.api_host, port=settings.api_port, print=None)


if __name__ == "__main__":
    main()
