"""
Volume snapshot model.

Fiat rollup of cumulative token volume across all chains.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class VolumeSnapshot(Base):
    """
    Aggregated volume at one point in time.

    token_breakdown entries hold chain_id, token_address, token_name,
    token_symbol, total_volume (raw integer string), volume_usd,
    volume_local, price_usd and price_local. Their fiat values sum to
    the snapshot totals.
    """

    __tablename__ = "volume_snapshots"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    total_volume_usd: Mapped[float] = mapped_column(Float, nullable=False)
    total_volume_local: Mapped[float] = mapped_column(Float, nullable=False)
    local_currency: Mapped[str] = mapped_column(
        String(8), nullable=False, default="ngn"
    )

    token_breakdown: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return (
            f"<VolumeSnapshot(usd={self.total_volume_usd:.2f}, "
            f"tokens={len(self.token_breakdown or [])})>"
        )
