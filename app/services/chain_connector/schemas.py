"""
Chain Connector data types.

Values read from the contract. Raw token amounts stay Python ints.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any


@dataclass(frozen=True)
class ChainCounters:
    """Aggregate counters of the contract on one chain."""

    chain_id: int
    order_count: int
    total_volume: int
    successful_orders: int
    failed_orders: int


@dataclass(frozen=True)
class TokenDetails:
    """Supported token as described by the contract."""

    chain_id: int
    token_address: str  # lowercase
    order_limit: int
    total_volume: int
    successful_orders: int
    failed_orders: int
    name: str
    decimals: int
    is_active: bool


@dataclass(frozen=True)
class OrderEvent:
    """Decoded OrderCreated event."""

    chain_id: int
    order_id: str
    request_id: str
    user_wallet: str  # lowercase
    token_address: str  # lowercase
    amount: str  # base units, decimal integer string
    tx_hash: str
    block_number: int
    timestamp: datetime

    def to_row(self) -> dict[str, Any]:
        """Column values for the orders table."""
        row = asdict(self)
        row["amount"] = Decimal(self.amount)
        return row
