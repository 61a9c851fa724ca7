"""
API middlewares.

Every error leaves the API as {"success": false, "error": "..."}.
"""

from aiohttp import web
from loguru import logger

from api.keys import SETTINGS
from app.utils.exceptions import RecordNotFound


def error_response(message: str, status: int) -> web.Response:
    return web.json_response({"success": False, "error": message}, status=status)


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    """
    Map exceptions to JSON error responses.

    ValueError (bad range, bad parameter) -> 400, RecordNotFound -> 404,
    HTTP errors keep their status, anything else -> 500.
    """
    try:
        return await handler(request)
    except web.HTTPException as ex:
        if ex.status < 400:
            raise
        return error_response(ex.reason, ex.status)
    except ValueError as e:
        return error_response(str(e), 400)
    except RecordNotFound as e:
        return error_response(str(e), 404)
    except Exception as e:
        logger.exception(f"[API] {request.method} {request.path} failed: {e}")
        debug = request.app[SETTINGS].debug
        return error_response(str(e) if debug else "Internal server error", 500)
