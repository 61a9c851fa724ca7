"""
Admin endpoints.

Require Authorization: Bearer <ADMIN_API_TOKEN>. With no token
configured every admin call is rejected.
"""

import platform

from aiohttp import web
from dramatiq.errors import BrokerError
from loguru import logger
from redis.exceptions import RedisError

from api.keys import CHAINS, ENQUEUE_FORCE_SYNC, SESSION_MAKER, SETTINGS, STARTED_AT
from api.middlewares import error_response
from app import __version__
from app.repositories.sync_status_repository import SyncStatusRepository
from app.services.chain_sync import group_statuses
from app.utils.datetime_utils import utc_now
from app.utils.security import tokens_match

routes = web.RouteTableDef()


def _authorized(request: web.Request) -> bool:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return False
    return tokens_match(token.strip(), request.app[SETTINGS].admin_api_token)


@routes.get("/api/admin/system/status")
async def system_status(request: web.Request) -> web.Response:
    """Process info and every sync cursor."""
    if not _authorized(request):
        return error_response("Unauthorized", 401)

    async with request.app[SESSION_MAKER]() as session:
        statuses = await SyncStatusRepository(session).list_by_type()

    started_at = request.app[STARTED_AT]
    return web.json_response(
        {
            "success": True,
            "data": {
                "server": {
                    "version": __version__,
                    "environment": request.app[SETTINGS].environment,
                    "python": platform.python_version(),
                    "startedAt": started_at.isoformat(),
                    "uptimeSeconds": int((utc_now() - started_at).total_seconds()),
                    "chains": request.app[CHAINS],
                },
                "sync": group_statuses(statuses),
                "timestamp": utc_now().isoformat(),
            },
        }
    )


@routes.post("/api/admin/system/sync")
async def trigger_sync(request: web.Request) -> web.Response:
    """Queue a force sync and return without waiting for it."""
    if not _authorized(request):
        return error_response("Unauthorized", 401)

    enqueue = request.app.get(ENQUEUE_FORCE_SYNC)
    if enqueue is None:
        return error_response("Task queue not configured", 503)

    try:
        message = enqueue()
    except (BrokerError, RedisError, OSError) as e:
        logger.error(f"[API] Could not queue force sync: {e}")
        return error_response("Task queue unavailable", 503)

    logger.info("[API] Force sync queued by admin")
    return web.json_response(
        {
            "success": True,
            "message": "Sync initiated successfully",
            "messageId": getattr(message, "message_id", None),
        },
        status=202,
    )
