"""
Chain Connector.

Read-only access to the order contract on Base, Lisk and Celo.

Key features:
- One Web3 client and contract handle per enabled chain
- Shared throttle spacing every RPC call
- Batched event queries that skip (and report) failed block ranges
"""

from .constants import ORDER_CONTRACT_ABI
from .contract_mixin import ContractReadsMixin
from .core import ChainConnector, ChainHandle, default_web3_factory
from .events_mixin import OrderEventsMixin
from .schemas import ChainCounters, OrderEvent, TokenDetails

__all__ = [
    "ChainConnector",
    "ChainHandle",
    "ContractReadsMixin",
    "OrderEventsMixin",
    "default_web3_factory",
    "ChainCounters",
    "OrderEvent",
    "TokenDetails",
    "ORDER_CONTRACT_ABI",
]
