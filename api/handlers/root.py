"""Service banner and health check."""

from aiohttp import web
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from api.keys import CHAINS, SESSION_MAKER
from app import __version__
from app.utils.datetime_utils import utc_now

routes = web.RouteTableDef()


@routes.get("/")
async def index(request: web.Request) -> web.Response:
    return web.json_response(
        {
            "name": "Paycrypt Indexer API",
            "version": __version__,
            "status": "running",
            "chains": request.app[CHAINS],
            "endpoints": {
                "stats": "/api/stats",
                "orders": "/api/orders",
                "analytics": "/api/analytics",
                "volume": "/api/volume",
                "admin": "/api/admin",
                "health": "/health",
            },
        }
    )


@routes.get("/health")
async def health(request: web.Request) -> web.Response:
    """Healthy when the database answers."""
    try:
        async with request.app[SESSION_MAKER]() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        return web.json_response(
            {
                "status": "unhealthy",
                "database": "unreachable",
                "error": str(e),
                "timestamp": utc_now().isoformat(),
            },
            status=503,
        )
    return web.json_response(
        {
            "status": "healthy",
            "database": "connected",
            "timestamp": utc_now().isoformat(),
        }
    )
