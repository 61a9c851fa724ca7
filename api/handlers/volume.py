"""
Volume endpoints.

Serve the fiat volume snapshots written by the volume aggregator.
"""

import re

from aiohttp import web

from api.keys import SESSION_MAKER
from api.params import InvalidParameter
from api.serializers import serialize_snapshot
from app.config.constants import VOLUME_CHART_HOURS
from app.repositories.volume_snapshot_repository import VolumeSnapshotRepository
from app.services.analytics_service import group_breakdown_by_chain, volume_statistics
from app.utils.datetime_utils import ensure_utc, utc_now
from app.utils.exceptions import RecordNotFound
from app.utils.time_range import get_start_time

routes = web.RouteTableDef()

_INTERVAL_RE = re.compile(r"^(\d+)h$")

NO_VOLUME_MESSAGE = "No volume data available"


async def _latest_snapshot(request: web.Request):
    async with request.app[SESSION_MAKER]() as session:
        snapshot = await VolumeSnapshotRepository(session).get_latest()
    if snapshot is None:
        raise RecordNotFound(NO_VOLUME_MESSAGE)
    return snapshot


@routes.get("/api/volume/total")
async def total_volume(request: web.Request) -> web.Response:
    snapshot = await _latest_snapshot(request)
    return web.json_response({"success": True, "data": serialize_snapshot(snapshot)})


@routes.get("/api/volume/latest")
async def latest_volume(request: web.Request) -> web.Response:
    """Latest snapshot and its age in minutes."""
    snapshot = await _latest_snapshot(request)
    age = (utc_now() - ensure_utc(snapshot.timestamp)).total_seconds() / 60
    data = serialize_snapshot(snapshot)
    data["ageMinutes"] = round(age, 1)
    return web.json_response({"success": True, "data": data})


@routes.get("/api/volume/chart")
async def volume_chart(request: web.Request) -> web.Response:
    """Snapshot history over the last 3, 12 or 24 hours."""
    interval = request.query.get("interval", "24h")
    match = _INTERVAL_RE.match(interval)
    if not match or int(match.group(1)) not in VOLUME_CHART_HOURS:
        supported = ", ".join(f"{hours}h" for hours in VOLUME_CHART_HOURS)
        raise InvalidParameter(f"Invalid interval. Supported: {supported}")

    async with request.app[SESSION_MAKER]() as session:
        history = await VolumeSnapshotRepository(session).get_history(
            get_start_time(interval)
        )

    data = [
        {
            "timestamp": ensure_utc(snapshot.timestamp).isoformat(),
            "totalVolumeUsd": round(snapshot.total_volume_usd, 2),
            "totalVolumeLocal": round(snapshot.total_volume_local, 2),
        }
        for snapshot in history
    ]
    return web.json_response(
        {
            "success": True,
            "interval": interval,
            "dataPoints": len(data),
            "data": data,
            "statistics": volume_statistics(history),
        }
    )


@routes.get("/api/volume/by-chain")
async def volume_by_chain(request: web.Request) -> web.Response:
    snapshot = await _latest_snapshot(request)
    return web.json_response(
        {
            "success": True,
            "data": {
                "totalVolumeUsd": round(snapshot.total_volume_usd, 2),
                "totalVolumeLocal": round(snapshot.total_volume_local, 2),
                "localCurrency": snapshot.local_currency,
                "byChain": group_breakdown_by_chain(snapshot.token_breakdown or []),
                "timestamp": ensure_utc(snapshot.timestamp).isoformat(),
            },
        }
    )
