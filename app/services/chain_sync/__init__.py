"""
Chain Sync Service.

Periodic synchronization of contract counters and order history from
every enabled chain into the database.

Key features:
- Per (sync type, chain) running flag taken with a conditional update
- Block cursor that only moves forward
- Idempotent order ingestion
- Failed block ranges kept for backfill
"""

from .core import ChainSyncService
from .metrics_sync_mixin import MetricsSyncMixin
from .order_sync_mixin import OrderSyncMixin
from .status_mixin import StatusMixin, group_statuses, serialize_status

__all__ = [
    "ChainSyncService",
    "MetricsSyncMixin",
    "OrderSyncMixin",
    "StatusMixin",
    "group_statuses",
    "serialize_status",
]
