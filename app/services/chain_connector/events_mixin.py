"""
Chain Connector Events Mixin.

Fetches and decodes OrderCreated events in block batches.
"""

import asyncio
from functools import partial
from typing import Any

from loguru import logger
from web3 import Web3

from app.utils.block_ranges import failed_range, split_block_range
from app.utils.datetime_utils import from_unix
from app.utils.exceptions import ChainUnavailable

from .schemas import OrderEvent


def _fetch_order_logs(handle, from_block: int, to_block: int) -> list[Any]:
    return handle.contract.events.OrderCreated.get_logs(
        from_block=from_block,
        to_block=to_block,
    )


def _to_hex(value: Any) -> str:
    if isinstance(value, str):
        return value if value.startswith("0x") else f"0x{value}"
    return Web3.to_hex(value)


class OrderEventsMixin:
    """Mixin providing event log retrieval."""

    async def get_order_events(
        self,
        chain_id: int,
        from_block: int,
        to_block: int,
        failed_ranges: list[dict[str, Any]] | None = None,
    ) -> list[OrderEvent]:
        """
        Fetch OrderCreated events in an inclusive block range.

        The range is queried in batches of ``event_batch_blocks``. A batch
        whose query fails is logged, appended to ``failed_ranges`` and
        skipped, so one bad batch never loses the rest of the range.
        Block timestamps are looked up once per block; a block whose
        lookup fails is recorded once and its logs are skipped.

        Args:
            chain_id: Chain identifier
            from_block: First block (inclusive)
            to_block: Last block (inclusive)
            failed_ranges: Receives a record per skipped range

        Returns:
            Decoded events in log order

        Raises:
            ChainNotConfigured: Chain is not enabled
        """
        handle = self.get_chain(chain_id)
        if from_block > to_block:
            return []

        slow = handle.config.slow_provider
        events: list[OrderEvent] = []
        timestamps: dict[int, int] = {}
        failed_blocks: set[int] = set()
        first = True

        for batch_start, batch_end in split_block_range(
            from_block, to_block, self.event_batch_blocks
        ):
            if slow and not first:
                await asyncio.sleep(self.slow_chain_delay)
            first = False

            try:
                logs = await self._call(
                    chain_id,
                    "get_order_events",
                    partial(_fetch_order_logs, from_block=batch_start, to_block=batch_end),
                )
            except ChainUnavailable as e:
                logger.warning(
                    f"[ChainConnector] {handle.config.name} blocks "
                    f"{batch_start}-{batch_end} skipped: {e}"
                )
                if failed_ranges is not None:
                    failed_ranges.append(failed_range(batch_start, batch_end, str(e)))
                continue

            for log in logs:
                block_number = int(log["blockNumber"])
                if block_number in failed_blocks:
                    continue
                if block_number not in timestamps:
                    try:
                        timestamps[block_number] = await self.get_block_timestamp(
                            chain_id, block_number
                        )
                    except ChainUnavailable as e:
                        failed_blocks.add(block_number)
                        logger.warning(
                            f"[ChainConnector] No timestamp for block "
                            f"{block_number} on {handle.config.name}: {e}"
                        )
                        if failed_ranges is not None:
                            failed_ranges.append(
                                failed_range(block_number, block_number, str(e))
                            )
                        continue

                events.append(
                    self._decode_order_event(chain_id, log, timestamps[block_number])
                )

        logger.debug(
            f"[ChainConnector] {handle.config.name} {from_block}-{to_block}: "
            f"{len(events)} events"
        )
        return events

    @staticmethod
    def _decode_order_event(
        chain_id: int, log: Any, timestamp: int
    ) -> OrderEvent:
        args = log["args"]
        return OrderEvent(
            chain_id=chain_id,
            order_id=str(int(args["orderId"])),
            request_id=_to_hex(args["requestId"]),
            user_wallet=args["user"].lower(),
            token_address=args["tokenAddress"].lower(),
            amount=str(int(args["amount"])),
            tx_hash=_to_hex(log["transactionHash"]),
            block_number=int(log["blockNumber"]),
            timestamp=from_unix(timestamp),
        )
