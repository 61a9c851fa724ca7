"""Typed application keys shared by the API handlers."""

from collections.abc import Callable
from datetime import datetime
from typing import Any

from aiohttp import web
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.config.settings import Settings

SESSION_MAKER = web.AppKey("session_maker", async_sessionmaker)
SETTINGS = web.AppKey("settings", Settings)
CHAINS = web.AppKey("chains", list)
ENQUEUE_FORCE_SYNC = web.AppKey("enqueue_force_sync", Callable[[], Any])
STARTED_AT = web.AppKey("started_at", datetime)
