"""
Contract metrics model.

Time series of the contract's aggregate counters, one row per chain per sync.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DateTime, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.types import RawAmountType


class ContractMetrics(Base):
    """Point-in-time snapshot of the counters read from one chain."""

    __tablename__ = "contract_metrics"
    __table_args__ = (
        Index("ix_contract_metrics_chain_timestamp", "chain_id", "timestamp"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    chain_id: Mapped[int] = mapped_column(Integer, nullable=False)

    # Counters as returned by the contract
    order_count: Mapped[Decimal] = mapped_column(RawAmountType, nullable=False)
    total_volume: Mapped[Decimal] = mapped_column(RawAmountType, nullable=False)
    successful_orders: Mapped[Decimal] = mapped_column(
        RawAmountType, nullable=False
    )
    failed_orders: Mapped[Decimal] = mapped_column(RawAmountType, nullable=False)

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True,
    )

    @property
    def success_rate(self) -> float:
        """Successful orders as a percentage of finished orders."""
        total = self.successful_orders + self.failed_orders
        if total <= 0:
            return 0.0
        return round(float(self.successful_orders / total * 100), 2)

    def __repr__(self) -> str:
        return (
            f"<ContractMetrics(chain_id={self.chain_id}, "
            f"order_count={self.order_count})>"
        )
