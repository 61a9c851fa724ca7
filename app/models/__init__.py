"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from app.models.base import Base
from app.models.contract_metrics import ContractMetrics
from app.models.order import Order
from app.models.sync_status import (
    SYNC_TYPE_METRICS,
    SYNC_TYPE_ORDERS,
    SYNC_TYPES,
    SyncStatus,
)
from app.models.volume_snapshot import VolumeSnapshot

__all__ = [
    "Base",
    "ContractMetrics",
    "Order",
    "SYNC_TYPE_METRICS",
    "SYNC_TYPE_ORDERS",
    "SYNC_TYPES",
    "SyncStatus",
    "VolumeSnapshot",
]
