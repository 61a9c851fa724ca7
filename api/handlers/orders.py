"""
Order endpoints.

Paginated listings and lookups over ingested orders.
"""

from aiohttp import web

from api.keys import SESSION_MAKER, SETTINGS
from api.params import (
    InvalidParameter,
    pagination_payload,
    parse_address,
    parse_chain_id,
    parse_pagination,
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
    ORDER_SORT_FIELDS,
    TOP_ENTRIES_LIMIT,
)
from app.repositories.order_repository import OrderFilters, OrderRepository
from app.utils.exceptions import RecordNotFound

routes = web.RouteTableDef()

MAX_RECENT_ORDERS = 100


def _parse_sort(request: web.Request) -> tuple[str, str]:
    sort_by = request.query.get("sortBy", "timestamp")
    if sort_by not in ORDER_SORT_FIELDS:
        raise InvalidParameter(
            f"sortBy must be one of: {', '.join(ORDER_SORT_FIELDS)}"
        )
    sort_order = request.query.get("sortOrder", "desc").lower()
    if sort_order not in ("asc", "desc"):
        raise InvalidParameter("sortOrder must be asc or desc")
    return sort_by, sort_order


async def _paginated(
    request: web.Request, filters: OrderFilters, extra: dict | None = None
) -> web.Response:
    """Run a filtered page query and shape the response."""
    page, limit = parse_pagination(request, request.app[SETTINGS].api_max_page_size)
    sort_by, sort_order = _parse_sort(request)

    async with request.app[SESSION_MAKER]() as session:
        orders, total = await OrderRepository(session).find_filtered(
            filters,
            page=page,
            limit=limit,
            sort_by=sort_by,
            descending=sort_order == "desc",
        )

    payload = {
        "success": True,
        "data": [serialize_order(order) for order in orders],
        "pagination": pagination_payload(page, limit, total),
        "sort": {"sortBy": sort_by, "sortOrder": sort_order},
    }
    if extra:
        payload.update(extra)
    return web.json_response(payload)


@routes.get("/api/orders")
async def list_orders(request: web.Request) -> web.Response:
    """Orders filtered by range, user, token and chainId."""
    time_range, start_time = parse_start_time(request)
    filters = OrderFilters(
        chain_id=parse_chain_id(request),
        user_wallet=parse_address(request.query.get("user"), "user"),
        token_address=parse_address(request.query.get("token"), "token"),
        start_time=start_time,
    )
    return await _paginated(
        request,
        filters,
        extra={
            "filters": {
                "range": time_range,
                "user": filters.user_wallet,
                "token": filters.token_address,
                "chainId": filters.chain_id,
            }
        },
    )


@routes.get("/api/orders/user/{wallet}")
async def list_user_orders(request: web.Request) -> web.Response:
    wallet = parse_address(request.match_info["wallet"], "wallet")
    filters = OrderFilters(chain_id=parse_chain_id(request), user_wallet=wallet)
    return await _paginated(request, filters, extra={"userWallet": wallet})


@routes.get("/api/orders/token/{address}")
async def list_token_orders(request: web.Request) -> web.Response:
    token = parse_address(request.match_info["address"], "address")
    filters = OrderFilters(chain_id=parse_chain_id(request), token_address=token)
    return await _paginated(request, filters, extra={"tokenAddress": token})


@routes.get("/api/orders/recent/{count}")
async def recent_orders(request: web.Request) -> web.Response:
    """Newest orders; count is clamped to 1..100."""
    try:
        count = int(request.match_info["count"])
    except ValueError:
        count = DEFAULT_RECENT_ORDERS
    count = min(max(count, 1), MAX_RECENT_ORDERS)

    async with request.app[SESSION_MAKER]() as session:
        orders = await OrderRepository(session).get_recent(count)

    return web.json_response(
        {
            "success": True,
            "data": [serialize_order(order) for order in orders],
            "count": len(orders),
        }
    )


@routes.get("/api/orders/analytics/summary")
async def orders_summary(request: web.Request) -> web.Response:
    """Totals, top tokens, top users and hourly volume over ?range= (24h)."""
    time_range, start_time = parse_start_time(request, default="24h")
    filters = OrderFilters(chain_id=parse_chain_id(request), start_time=start_time)

    async with request.app[SESSION_MAKER]() as session:
        repo = OrderRepository(session)
        summary = await repo.get_summary(filters)
        top_tokens = await repo.get_top("token", filters, limit=TOP_ENTRIES_LIMIT)
        top_users = await repo.get_top("user", filters, limit=TOP_ENTRIES_LIMIT)
        timeline = await repo.get_timeline(filters, "hour")

    return web.json_response(
        {
            "success": True,
            "range": time_range,
            "data": {
                "summary": serialize_summary(summary),
                "topTokens": [serialize_group(group) for group in top_tokens],
                "topUsers": [serialize_group(group) for group in top_users],
                "volumeOverTime": [serialize_bucket(bucket) for bucket in timeline],
            },
        }
    )


@routes.get("/api/orders/{orderId}")
async def get_order(request: web.Request) -> web.Response:
    """
    Look up an order by its on-chain id.

    The same id can exist on several chains; pass chainId to pick one.
    """
    order_id = request.match_info["orderId"]
    if not order_id.isdigit():
        raise InvalidParameter("orderId must be a non-negative integer")
    chain_id = parse_chain_id(request)

    async with request.app[SESSION_MAKER]() as session:
        orders = await OrderRepository(session).find_by_order_id(
            str(int(order_id)), chain_id=chain_id
        )

    if not orders:
        raise RecordNotFound("Order not found")

    return web.json_response(
        {
            "success": True,
            "data": [serialize_order(order) for order in orders],
            "count": len(orders),
        }
    )
