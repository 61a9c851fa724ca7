"""
Route handlers.

Each module exposes a RouteTableDef named routes.
"""

from api.handlers import admin, analytics, orders, root, stats, volume

ROUTE_TABLES = [
    root.routes,
    stats.routes,
    orders.routes,
    analytics.routes,
    volume.routes,
    admin.routes,
]

__all__ = ["ROUTE_TABLES"]
