"""
Sync status model.

Progress cursor per (sync type, chain).
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base

SYNC_TYPE_METRICS = "metrics"
SYNC_TYPE_ORDERS = "orders"
SYNC_TYPES = (SYNC_TYPE_METRICS, SYNC_TYPE_ORDERS)


class SyncStatus(Base):
    """
    Tracks synchronization state of one sync type on one chain.

    Used to:
    - Resume order sync from the last synced block
    - Skip a run while the previous one is still running
    - Keep success/error counters and skipped block ranges
    """

    __tablename__ = "sync_status"
    __table_args__ = (
        UniqueConstraint("sync_type", "chain_id", name="uq_sync_status_type_chain"),
    )

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Identification
    sync_type: Mapped[str] = mapped_column(String(20), nullable=False)
    chain_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    # Cursor (only ever moves forward)
    last_sync_block: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0
    )
    last_sync_timestamp: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Running flag, acquired with a conditional update
    is_running: Mapped[bool] = mapped_column(default=False, nullable=False)
    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Error tracking
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    failed_ranges: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )

    # Statistics
    success_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    error_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<SyncStatus(sync_type={self.sync_type}, chain_id={self.chain_id}, "
            f"last_sync_block={self.last_sync_block}, running={self.is_running})>"
        )
