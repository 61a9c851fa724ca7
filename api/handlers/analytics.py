"""Order analytics endpoints: timeline and groupings."""

from aiohttp import web

from api.keys import SESSION_MAKER, SETTINGS
from api.params import (
    InvalidParameter,
    parse_address,
    parse_chain_id,
    parse_start_time,
)
from api.serializers import (
    serialize_bucket,
    serialize_group,
    serialize_order,
    serialize_summary,
)
from app.config.constants import (
    DEFAULT_RECENT_ORDERS,
    TIMELINE_INTERVALS,
    TOP_ENTRIES_LIMIT,
)
from app.repositories.order_repository import OrderFilters, OrderRepository

routes = web.RouteTableDef()


@routes.get("/api/analytics/timeline")
async def get_timeline(request: web.Request) -> web.Response:
    """Order count and volume per hour, day or month."""
    time_range, start_time = parse_start_time(request, default="24h")
    interval = request.query.get("interval", "hour")
    if interval not in TIMELINE_INTERVALS:
        raise InvalidParameter(
            f"interval must be one of: {', '.join(TIMELINE_INTERVALS)}"
        )
    filters = OrderFilters(
        chain_id=parse_chain_id(request),
        token_address=parse_address(
            request.query.get("tokenAddress"), "tokenAddress"
        ),
        start_time=start_time,
    )

    async with request.app[SESSION_MAKER]() as session:
        timeline = await OrderRepository(session).get_timeline(filters, interval)

    return web.json_response(
        {
            "success": True,
            "range": time_range,
            "interval": interval,
            "data": [serialize_bucket(bucket) for bucket in timeline],
        }
    )


@routes.get("/api/analytics/by-token")
async def by_token(request: web.Request) -> web.Response:
    """
    Volume per token.

    With tokenAddress, the response also carries that token's
    most recent orders.
    """
    time_range, start_time = parse_start_time(request)
    token = parse_address(request.query.get("tokenAddress"), "tokenAddress")
    filters = OrderFilters(
        chain_id=parse_chain_id(request),
        token_address=token,
        start_time=start_time,
    )

    async with request.app[SESSION_MAKER]() as session:
        repo = OrderRepository(session)
        tokens = await repo.get_top(
            "token", filters, limit=request.app[SETTINGS].api_max_page_size
        )
        recent = []
        if token:
            recent, _ = await repo.find_filtered(
                filters, page=1, limit=DEFAULT_RECENT_ORDERS
            )

    payload = {
        "success": True,
        "range": time_range,
        "data": [serialize_group(group) for group in tokens],
    }
    if token:
        payload["recentOrders"] = [serialize_order(order) for order in recent]
    return web.json_response(payload)


@routes.get("/api/analytics/by-chain")
async def by_chain(request: web.Request) -> web.Response:
    time_range, start_time = parse_start_time(request)
    filters = OrderFilters(chain_id=parse_chain_id(request), start_time=start_time)

    async with request.app[SESSION_MAKER]() as session:
        chains = await OrderRepository(session).get_top(
            "chain", filters, limit=request.app[SETTINGS].api_max_page_size
        )

    return web.json_response(
        {
            "success": True,
            "range": time_range,
            "data": [serialize_group(group) for group in chains],
        }
    )


@routes.get("/api/analytics/user/{wallet}")
async def user_analytics(request: web.Request) -> web.Response:
    """Totals, favourite tokens, daily activity and latest orders of a wallet."""
    wallet = parse_address(request.match_info["wallet"], "wallet")
    time_range, start_time = parse_start_time(request)
    filters = OrderFilters(
        chain_id=parse_chain_id(request),
        user_wallet=wallet,
        start_time=start_time,
    )

    async with request.app[SESSION_MAKER]() as session:
        repo = OrderRepository(session)
        summary = await repo.get_summary(filters)
        tokens = await repo.get_top("token", filters, limit=TOP_ENTRIES_LIMIT)
        timeline = await repo.get_timeline(filters, "day")
        recent, _ = await repo.find_filtered(
            filters, page=1, limit=DEFAULT_RECENT_ORDERS
        )

    return web.json_response(
        {
            "success": True,
            "userWallet": wallet,
            "range": time_range,
            "data": {
                "summary": serialize_summary(summary),
                "tokens": [serialize_group(group) for group in tokens],
                "dailyActivity": [serialize_bucket(bucket) for bucket in timeline],
                "recentOrders": [serialize_order(order) for order in recent],
            },
        }
    )
