"""
Chain Connector Contract Reads Mixin.

View calls on the order contract: counters, supported tokens, blocks.
"""

from loguru import logger
from web3 import Web3

from app.utils.exceptions import ChainUnavailable

from .schemas import ChainCounters, TokenDetails


class ContractReadsMixin:
    """Mixin providing contract view calls."""

    async def get_counters(self, chain_id: int) -> ChainCounters:
        """
        Read the four aggregate counters of the contract.

        Raises:
            ChainNotConfigured: Chain is not enabled
            ChainUnavailable: Any of the calls failed
        """

        def _read(handle) -> ChainCounters:
            functions = handle.contract.functions
            return ChainCounters(
                chain_id=chain_id,
                order_count=int(functions.getOrderCounter().call()),
                total_volume=int(functions.getTotalVolume().call()),
                successful_orders=int(functions.getTotalSuccessfulOrders().call()),
                failed_orders=int(functions.getTotalFailedOrders().call()),
            )

        return await self._call(chain_id, "get_counters", _read)

    async def get_current_block(self, chain_id: int) -> int:
        """Latest block number of the chain."""
        return await self._call(
            chain_id,
            "get_current_block",
            lambda handle: int(handle.w3.eth.block_number),
        )

    async def get_block_timestamp(self, chain_id: int, block_number: int) -> int:
        """Unix timestamp of a block."""
        return await self._call(
            chain_id,
            "get_block_timestamp",
            lambda handle: int(handle.w3.eth.get_block(block_number)["timestamp"]),
        )

    async def get_supported_tokens(self, chain_id: int) -> list[str]:
        """Token addresses supported by the contract (lowercase)."""
        addresses = await self._call(
            chain_id,
            "get_supported_tokens",
            lambda handle: handle.contract.functions.getSupportedTokens().call(),
        )
        return [address.lower() for address in addresses]

    async def get_token_details(
        self, chain_id: int, token_address: str
    ) -> TokenDetails:
        """
        Read the details struct of one supported token.

        Args:
            chain_id: Chain identifier
            token_address: Token address (any case)
        """

        def _read(handle):
            return handle.contract.functions.getTokenDetails(
                Web3.to_checksum_address(token_address)
            ).call()

        raw = await self._call(chain_id, "get_token_details", _read)
        (
            address,
            order_limit,
            total_volume,
            successful_orders,
            failed_orders,
            name,
            decimals,
            is_active,
        ) = raw
        return TokenDetails(
            chain_id=chain_id,
            token_address=(address or token_address).lower(),
            order_limit=int(order_limit),
            total_volume=int(total_volume),
            successful_orders=int(successful_orders),
            failed_orders=int(failed_orders),
            name=name,
            decimals=int(decimals),
            is_active=bool(is_active),
        )

    async def get_all_tokens(self, chain_id: int) -> list[TokenDetails]:
        """
        Details of every supported token of a chain.

        A token whose details cannot be read is logged and left out.

        Raises:
            ChainUnavailable: If the token list itself cannot be read
        """
        tokens: list[TokenDetails] = []
        for address in await self.get_supported_tokens(chain_id):
            try:
                tokens.append(await self.get_token_details(chain_id, address))
            except ChainUnavailable as e:
                logger.warning(f"[ChainConnector] Skipping token {address}: {e}")
        return tokens

    async def get_all_tokens_across_chains(
        self,
    ) -> tuple[list[TokenDetails], list[int]]:
        """
        Tokens of all enabled chains.

        Returns:
            Tuple of (tokens, ids of chains whose token list failed)
        """
        tokens: list[TokenDetails] = []
        failed_chains: list[int] = []
        for chain_id in self.enabled_chain_ids():
            try:
                tokens.extend(await self.get_all_tokens(chain_id))
            except ChainUnavailable as e:
                logger.error(
                    f"[ChainConnector] Token list of "
                    f"{self.chain_name(chain_id)} unavailable: {e}"
                )
                failed_chains.append(chain_id)
        return tokens, failed_chains

    async def get_all_counters(self) -> dict[int, ChainCounters | None]:
        """Counters per enabled chain, None where the read failed."""
        counters: dict[int, ChainCounters | None] = {}
        for chain_id in self.enabled_chain_ids():
            try:
                counters[chain_id] = await self.get_counters(chain_id)
            except ChainUnavailable as e:
                logger.error(f"[ChainConnector] {e}")
                counters[chain_id] = None
        return counters
