"""
Contract statistics endpoints.

Serve the stored contract metrics time series.
"""

from aiohttp import web

from api.keys import SESSION_MAKER
from api.params import parse_chain_id, parse_start_time
from api.serializers import serialize_metrics
from app.config.constants import METRICS_QUERY_LIMIT
from app.repositories.contract_metrics_repository import (
    ContractMetricsRepository,
)
from app.services.analytics_service import (
    aggregates_by_chain,
    metrics_aggregates,
)
from app.utils.exceptions import RecordNotFound
from app.utils.time_range import get_start_time

routes = web.RouteTableDef()

NO_DATA_MESSAGE = "No data available for the specified time range"


@routes.get("/api/stats")
async def get_stats(request: web.Request) -> web.Response:
    """
    Latest metrics per chain, or a series with aggregates for ?range=.

    The series is newest first and capped at METRICS_QUERY_LIMIT rows.
    Without chainId the aggregates are keyed by chain.
    """
    chain_id = parse_chain_id(request)
    time_range, start_time = parse_start_time(request)

    async with request.app[SESSION_MAKER]() as session:
        repo = ContractMetricsRepository(session)

        if start_time is None:
            if chain_id is not None:
                latest = await repo.get_latest(chain_id)
                rows = [latest] if latest else []
            else:
                rows = await repo.get_latest_per_chain()
            return web.json_response(
                {
                    "success": True,
                    "data": [serialize_metrics(row) for row in rows],
                    "count": len(rows),
                }
            )

        series = await repo.get_series(
            start_time,
            chain_id=chain_id,
            ascending=False,
            limit=METRICS_QUERY_LIMIT,
        )

    if not series:
        return web.json_response(
            {
                "success": True,
                "range": time_range,
                "message": NO_DATA_MESSAGE,
                "data": [],
                "count": 0,
            }
        )

    oldest_first = list(reversed(series))
    if chain_id is not None:
        aggregates = metrics_aggregates(oldest_first)
    else:
        aggregates = {
            str(key): value
            for key, value in aggregates_by_chain(oldest_first).items()
        }

    return web.json_response(
        {
            "success": True,
            "range": time_range,
            "aggregates": aggregates,
            "data": [serialize_metrics(row) for row in series],
            "count": len(series),
        }
    )


@routes.get("/api/stats/latest")
async def get_latest_stats(request: web.Request) -> web.Response:
    chain_id = parse_chain_id(request)
    async with request.app[SESSION_MAKER]() as session:
        latest = await ContractMetricsRepository(session).get_latest(chain_id)
    if latest is None:
        raise RecordNotFound("No metrics data available")
    return web.json_response({"success": True, "data": serialize_metrics(latest)})


@routes.get("/api/stats/chart/{period}")
async def get_stats_chart(request: web.Request) -> web.Response:
    """Metric series for charts, oldest first."""
    period = request.match_info["period"]
    start_time = get_start_time(period)
    chain_id = parse_chain_id(request)

    async with request.app[SESSION_MAKER]() as session:
        series = await ContractMetricsRepository(session).get_series(
            start_time, chain_id=chain_id, ascending=True, limit=None
        )

    data = [serialize_metrics(row) for row in series]
    return web.json_response(
        {"success": True, "period": period, "data": data, "count": len(data)}
    )


@routes.get("/api/stats/summary")
async def get_stats_summary(request: web.Request) -> web.Response:
    """Current values and change over ?range= (default 24h)."""
    chain_id = parse_chain_id(request)
    time_range, start_time = parse_start_time(request, default="24h")

    async with request.app[SESSION_MAKER]() as session:
        series = await ContractMetricsRepository(session).get_series(
            start_time, chain_id=chain_id, ascending=True, limit=None
        )

    if not series:
        return web.json_response(
            {
                "success": True,
                "range": time_range,
                "message": NO_DATA_MESSAGE,
                "summary": None,
            }
        )

    if chain_id is not None:
        summary = metrics_aggregates(series)
    else:
        summary = {
            str(key): value for key, value in aggregates_by_chain(series).items()
        }

    return web.json_response(
        {"success": True, "range": time_range, "summary": summary}
    )
