"""
Chain Connector Core.

Holds one Web3 connection and contract handle per enabled chain and runs
every synchronous web3 call in a thread pool behind a shared throttle.
"""

import asyncio
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, TypeVar

from loguru import logger
from web3 import Web3
from web3.contract import Contract

from app.config.chains import ChainConfig
from app.config.constants import (
    EVENT_QUERY_BATCH_BLOCKS,
    RPC_CALL_TIMEOUT,
    RPC_EXECUTOR_WORKERS,
    RPC_MIN_INTERVAL_SECONDS,
    SLOW_CHAIN_BATCH_DELAY,
)
from app.utils.exceptions import ChainNotConfigured, ChainUnavailable, ConfigurationError
from app.utils.throttle import CallThrottle

from .constants import ORDER_CONTRACT_ABI
from .contract_mixin import ContractReadsMixin
from .events_mixin import OrderEventsMixin

T = TypeVar("T")


@dataclass
class ChainHandle:
    """Connection objects of one chain."""

    config: ChainConfig
    w3: Web3
    contract: Contract


def default_web3_factory(chain: ChainConfig, timeout: float) -> Web3:
    """Create an HTTP Web3 client for a chain."""
    return Web3(
        Web3.HTTPProvider(chain.rpc_url, request_kwargs={"timeout": timeout})
    )


class ChainConnector(ContractReadsMixin, OrderEventsMixin):
    """
    Read-only access to the order contract on every enabled chain.

    One instance is created at process start and passed to the sync job
    and the volume aggregator. Its throttle is shared by all chains, so
    RPC calls are spaced by ``min_interval`` across the whole process.

    Failure modes:
    - ChainNotConfigured: chain id unknown or disabled (fails fast)
    - ChainUnavailable: endpoint unreachable, call reverted or timed out
    """

    def __init__(
        self,
        chains: list[ChainConfig],
        min_interval: float = RPC_MIN_INTERVAL_SECONDS,
        call_timeout: float = RPC_CALL_TIMEOUT,
        event_batch_blocks: int = EVENT_QUERY_BATCH_BLOCKS,
        slow_chain_delay: float = SLOW_CHAIN_BATCH_DELAY,
        web3_factory: Callable[[ChainConfig], Web3] | None = None,
        throttle: CallThrottle | None = None,
        max_workers: int = RPC_EXECUTOR_WORKERS,
    ) -> None:
        """
        Initialize connector.

        Args:
            chains: Enabled chain configs (with RPC URLs)
            min_interval: Cooldown between two RPC calls in seconds
            call_timeout: Timeout of a single RPC call in seconds
            event_batch_blocks: Max blocks per log query
            slow_chain_delay: Extra pause between log batches on slow chains
            web3_factory: Builds the Web3 client of a chain
            throttle: Shared throttle (default: new one with min_interval)
            max_workers: Thread pool size for web3 calls

        Raises:
            ConfigurationError: If no chain could be initialized
        """
        self.call_timeout = call_timeout
        self.event_batch_blocks = event_batch_blocks
        self.slow_chain_delay = slow_chain_delay
        self.throttle = throttle or CallThrottle(min_interval)
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="web3",
        )
        self._chains: dict[int, ChainHandle] = {}

        factory = web3_factory or (
            lambda chain: default_web3_factory(chain, call_timeout)
        )

        for chain in chains:
            try:
                w3 = factory(chain)
                contract = w3.eth.contract(
                    address=Web3.to_checksum_address(chain.contract_address),
                    abi=ORDER_CONTRACT_ABI,
                )
                self._chains[chain.chain_id] = ChainHandle(chain, w3, contract)
                logger.info(
                    f"[ChainConnector] {chain.name} ({chain.chain_id}) "
                    f"initialized, contract {chain.contract_address}"
                )
            except Exception as e:
                logger.error(
                    f"[ChainConnector] Failed to initialize {chain.name}: {e}"
                )

        if not self._chains:
            raise ConfigurationError(
                "No chain connection could be initialized. Set at least one of: "
                "BASE_RPC_URL, LISK_RPC_URL, CELO_RPC_URL"
            )

        logger.success(
            f"[ChainConnector] Ready with {len(self._chains)} chain(s): "
            f"{', '.join(str(c) for c in self._chains)}"
        )

    def get_chain(self, chain_id: int) -> ChainHandle:
        """
        Get the handle of an enabled chain.

        Raises:
            ChainNotConfigured: If the chain is unknown or disabled
        """
        handle = self._chains.get(chain_id)
        if handle is None:
            raise ChainNotConfigured(chain_id)
        return handle

    def enabled_chain_ids(self) -> list[int]:
        """Chain ids in configuration order."""
        return list(self._chains)

    def describe_chains(self) -> list[dict[str, Any]]:
        """Public description of enabled chains."""
        return [handle.config.describe() for handle in self._chains.values()]

    def chain_name(self, chain_id: int) -> str:
        handle = self._chains.get(chain_id)
        return handle.config.name if handle else str(chain_id)

    def is_slow(self, chain_id: int) -> bool:
        """Whether the chain's provider needs longer pauses."""
        return self.get_chain(chain_id).config.slow_provider

    async def _call(
        self,
        chain_id: int,
        operation: str,
        func: Callable[[ChainHandle], T],
    ) -> T:
        """
        Run a synchronous web3 call for a chain.

        Waits for the throttle, then runs ``func(handle)`` in the thread
        pool with a timeout.

        Args:
            chain_id: Chain identifier
            operation: Operation name for logging
            func: Synchronous function taking the chain handle

        Returns:
            Result of func

        Raises:
            ChainNotConfigured: If the chain is not enabled
            ChainUnavailable: If the call fails or times out
        """
        handle = self.get_chain(chain_id)
        loop = asyncio.get_running_loop()

        try:
            async with self.throttle:
                return await asyncio.wait_for(
                    loop.run_in_executor(self._executor, func, handle),
                    timeout=self.call_timeout,
                )
        except TimeoutError as e:
            logger.error(
                f"[ChainConnector] {operation} on {handle.config.name} "
                f"timed out after {self.call_timeout}s"
            )
            raise ChainUnavailable(
                chain_id, operation, f"timed out after {self.call_timeout}s"
            ) from e
        except asyncio.CancelledError:
            logger.warning(f"[ChainConnector] {operation} cancelled")
            raise
        except Exception as e:
            raise ChainUnavailable(chain_id, operation, str(e)) from e

    def close(self) -> None:
        """Shut down the thread pool."""
        self._executor.shutdown(wait=False, cancel_futures=True)
