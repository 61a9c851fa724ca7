"""
Query parameter parsing.

Invalid input raises InvalidParameter, which the error middleware
turns into a 400 response.
"""

import re
from datetime import datetime
from typing import Any

from aiohttp import web

from app.config.constants import DEFAULT_PAGE_SIZE
from app.utils.time_range import get_start_time

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


class InvalidParameter(ValueError):
    """Raised when a request parameter is missing or malformed."""
    pass


def parse_int(
    value: str | None,
    name: str,
    default: int | None = None,
    minimum: int | None = None,
) -> int | None:
    """
    Parse an optional integer parameter.

    Raises:
        InvalidParameter: If the value is not an integer or below minimum
    """
    if value is None or value == "":
        return default
    try:
        number = int(value)
    except ValueError:
        raise InvalidParameter(f"{name} must be an integer") from None
    if minimum is not None and number < minimum:
        raise InvalidParameter(f"{name} must be at least {minimum}")
    return number


def parse_chain_id(request: web.Request) -> int | None:
    return parse_int(request.query.get("chainId"), "chainId", minimum=1)


def parse_address(value: str | None, name: str) -> str | None:
    """Validate an optional 0x address and lowercase it."""
    if not value:
        return None
    if not _ADDRESS_RE.match(value):
        raise InvalidParameter(f"{name} must be a 0x-prefixed 20-byte address")
    return value.lower()


def parse_start_time(
    request: web.Request, default: str | None = None
) -> tuple[str | None, datetime | None]:
    """
    Read the range parameter.

    Returns:
        Tuple of (range expression, range start); both None when absent
        and no default is given

    Raises:
        TimeRangeError: If the expression is not recognized
    """
    value = request.query.get("range") or default
    if value is None:
        return None, None
    return value, get_start_time(value)


def parse_pagination(request: web.Request, max_limit: int) -> tuple[int, int]:
    """
    Read page and limit.

    The limit is capped at max_limit.

    Returns:
        Tuple of (page, limit)
    """
    page = parse_int(request.query.get("page"), "page", default=1, minimum=1)
    limit = parse_int(
        request.query.get("limit"), "limit", default=DEFAULT_PAGE_SIZE, minimum=1
    )
    return page, min(limit, max_limit)


def pagination_payload(page: int, limit: int, total: int) -> dict[str, Any]:
    pages = (total + limit - 1) // limit if total else 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": pages,
        "hasNext": page < pages,
        "hasPrev": page > 1,
    }
