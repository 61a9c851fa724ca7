"""Test doubles and record builders shared by the test modules."""

from datetime import timedelta

from app.config.chains import BASE_CHAIN_ID, CELO_CHAIN_ID
from app.services.chain_connector import ChainCounters, OrderEvent
from app.utils.block_ranges import failed_range
from app.utils.datetime_utils import utc_now
from app.utils.exceptions import ChainUnavailable

USER_WALLET = "0x" + "aa" * 20
OTHER_WALLET = "0x" + "cc" * 20
TOKEN_ADDRESS = "0x" + "bb" * 20


def make_event(
    order_id: int,
    block_number: int,
    chain_id: int = BASE_CHAIN_ID,
    user_wallet: str = USER_WALLET,
    token_address: str = TOKEN_ADDRESS,
    amount: int = 1_000_000,
) -> OrderEvent:
    """Decoded OrderCreated event with a unique tx hash."""
    return OrderEvent(
        chain_id=chain_id,
        order_id=str(order_id),
        request_id="0x" + f"{order_id:064x}",
        user_wallet=user_wallet,
        token_address=token_address,
        amount=str(amount),
        tx_hash="0x" + f"{chain_id:08x}{order_id:056x}",
        block_number=block_number,
        timestamp=utc_now() - timedelta(hours=1),
    )


class FakeConnector:
    """
    In-memory stand-in for ChainConnector.

    Events are served by block range; ranges listed in ``failing`` are
    reported as skipped, blocks listed in ``crash_at`` raise.
    """

    def __init__(
        self,
        chains: dict[int, str] | None = None,
        current_block: int = 200_000,
        events: list[OrderEvent] | None = None,
    ) -> None:
        self.chains = chains or {BASE_CHAIN_ID: "Base"}
        self.current_block = current_block
        self.events = list(events or [])
        self.failing: set[tuple[int, int]] = set()
        self.crash_at: set[int] = set()
        self.block_error: Exception | None = None
        self.counters: dict[int, ChainCounters] = {}
        self.calls: list[tuple[int, int, int]] = []

    def enabled_chain_ids(self) -> list[int]:
        return list(self.chains)

    def chain_name(self, chain_id: int) -> str:
        return self.chains.get(chain_id, str(chain_id))

    def is_slow(self, chain_id: int) -> bool:
        return chain_id == CELO_CHAIN_ID

    async def get_current_block(self, chain_id: int) -> int:
        if self.block_error is not None:
            raise self.block_error
        return self.current_block

    async def get_counters(self, chain_id: int) -> ChainCounters:
        if chain_id not in self.counters:
            raise ChainUnavailable(chain_id, "get_counters", "connection refused")
        return self.counters[chain_id]

    async def get_order_events(
        self, chain_id, from_block, to_block, failed_ranges=None
    ) -> list[OrderEvent]:
        self.calls.append((chain_id, from_block, to_block))
        if from_block in self.crash_at:
            raise RuntimeError(f"provider crashed at {from_block}")
        if (from_block, to_block) in self.failing:
            if failed_ranges is not None:
                failed_ranges.append(
                    failed_range(from_block, to_block, "query returned more than 10000 results")
                )
            return []
        return [
            event
            for event in self.events
            if event.chain_id == chain_id and from_block <= event.block_number <= to_block
        ]


async def no_sleep(_seconds: float) -> None:
    return None
