"""
Order model.

One OrderCreated event observed on a chain.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import BigInteger, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.types import RawAmountType


class Order(Base):
    """
    On-chain order.

    Identity is (chain_id, order_id). Rows are only ever inserted;
    re-ingesting the same event is a no-op.
    """

    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("chain_id", "order_id", name="uq_orders_chain_order"),
        UniqueConstraint("chain_id", "tx_hash", name="uq_orders_chain_tx"),
        Index("ix_orders_chain_timestamp", "chain_id", "timestamp"),
        Index("ix_orders_user_timestamp", "user_wallet", "timestamp"),
        Index("ix_orders_token_timestamp", "token_address", "timestamp"),
    )

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Identification
    chain_id: Mapped[int] = mapped_column(Integer, nullable=False)
    order_id: Mapped[str] = mapped_column(String(78), nullable=False)
    request_id: Mapped[str] = mapped_column(
        String(66), nullable=False, index=True
    )  # bytes32 as 0x-hex

    # Addresses (normalized to lowercase)
    user_wallet: Mapped[str] = mapped_column(String(42), nullable=False)
    token_address: Mapped[str] = mapped_column(String(42), nullable=False)

    # Raw token amount in base units
    amount: Mapped[Decimal] = mapped_column(RawAmountType, nullable=False)

    # Chain position
    tx_hash: Mapped[str] = mapped_column(String(66), nullable=False)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )  # block time

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Order(chain_id={self.chain_id}, order_id={self.order_id})>"
