"""Unit tests for volume aggregation."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.config.chains import BASE_CHAIN_ID, CELO_CHAIN_ID
from app.repositories.volume_snapshot_repository import VolumeSnapshotRepository
from app.services.chain_connector import TokenDetails
from app.services.price_service import PriceService, load_token_table
from app.services.volume_aggregator import VolumeAggregatorService
from app.utils.exceptions import AggregationError, PriceUnavailable
from app.utils.throttle import CallThrottle


def make_token(
    name: str,
    total_volume: int,
    decimals: int = 6,
    chain_id: int = BASE_CHAIN_ID,
    is_active: bool = True,
    suffix: str = "11",
) -> TokenDetails:
    return TokenDetails(
        chain_id=chain_id,
        token_address="0x" + suffix * 20,
        order_limit=0,
        total_volume=total_volume,
        successful_orders=1,
        failed_orders=0,
        name=name,
        decimals=decimals,
        is_active=is_active,
    )


@pytest.fixture
def price_service():
    service = PriceService(load_token_table(), throttle=CallThrottle(0))
    service._request_prices = AsyncMock(
        return_value={
            "usd-coin": {"usd": 1.0, "ngn": 1500.0},
            "celo": {"usd": 0.5, "ngn": 750.0},
        }
    )
    return service


@pytest.fixture
def connector():
    connector = MagicMock()
    connector.enabled_chain_ids.return_value = [BASE_CHAIN_ID, CELO_CHAIN_ID]
    connector.get_all_tokens_across_chains = AsyncMock(return_value=([], []))
    return connector


@pytest.fixture
def aggregator(connector, price_service):
    return VolumeAggregatorService(AsyncMock(), connector, price_service)


class TestBuildSnapshot:
    """Tests for snapshot computation."""

    @pytest.mark.asyncio
    async def test_totals_equal_breakdown_sums(self, aggregator, connector):
        connector.get_all_tokens_across_chains.return_value = (
            [
                make_token("USD Coin", 2_500_000, suffix="11"),
                make_token("Celo", 4 * 10**18, decimals=18, chain_id=CELO_CHAIN_ID, suffix="22"),
            ],
            [],
        )

        snapshot = await aggregator.build_snapshot()

        breakdown = snapshot["token_breakdown"]
        assert len(breakdown) == 2
        assert snapshot["total_volume_usd"] == pytest.approx(2.5 + 2.0)
        assert snapshot["total_volume_local"] == pytest.approx(3750 + 3000)
        assert snapshot["total_volume_usd"] == pytest.approx(
            sum(entry["volume_usd"] for entry in breakdown)
        )
        assert snapshot["local_currency"] == "ngn"

    @pytest.mark.asyncio
    async def test_breakdown_entry(self, aggregator, connector):
        connector.get_all_tokens_across_chains.return_value = (
            [make_token("USD Coin", 1_000_000)],
            [],
        )

        snapshot = await aggregator.build_snapshot()

        entry = snapshot["token_breakdown"][0]
        assert entry == {
            "chain_id": BASE_CHAIN_ID,
            "token_address": "0x" + "11" * 20,
            "token_name": "USD Coin",
            "token_symbol": "usdc",
            "decimals": 6,
            "total_volume": "1000000",
            "token_amount": 1.0,
            "volume_usd": 1.0,
            "volume_local": 1500.0,
            "price_usd": 1.0,
            "price_local": 1500.0,
        }

    @pytest.mark.asyncio
    async def test_unpriceable_tokens_are_skipped(self, aggregator, connector):
        connector.get_all_tokens_across_chains.return_value = (
            [
                make_token("USD Coin", 1_000_000, suffix="11"),
                make_token("Mystery Token", 9_000_000, suffix="22"),
                make_token("USD Coin", 1_000_000, is_active=False, suffix="33"),
                make_token("USD Coin", 0, suffix="44"),
            ],
            [],
        )

        snapshot = await aggregator.build_snapshot()

        assert [e["token_address"] for e in snapshot["token_breakdown"]] == ["0x" + "11" * 20]
        assert snapshot["total_volume_usd"] == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_token_without_returned_price_is_skipped(
        self, aggregator, connector, price_service
    ):
        price_service._request_prices.return_value = {
            "usd-coin": {"usd": 1.0, "ngn": 1500.0}
        }
        connector.get_all_tokens_across_chains.return_value = (
            [
                make_token("USD Coin", 1_000_000, suffix="11"),
                make_token("Tether USD", 1_000_000, suffix="22"),
            ],
            [],
        )

        snapshot = await aggregator.build_snapshot()

        assert len(snapshot["token_breakdown"]) == 1

    @pytest.mark.asyncio
    async def test_one_failed_chain_is_left_out(self, aggregator, connector):
        connector.get_all_tokens_across_chains.return_value = (
            [make_token("USD Coin", 1_000_000)],
            [CELO_CHAIN_ID],
        )

        snapshot = await aggregator.build_snapshot()

        assert len(snapshot["token_breakdown"]) == 1

    @pytest.mark.asyncio
    async def test_all_chains_failed(self, aggregator, connector):
        connector.get_all_tokens_across_chains.return_value = (
            [],
            [BASE_CHAIN_ID, CELO_CHAIN_ID],
        )

        with pytest.raises(AggregationError):
            await aggregator.build_snapshot()

    @pytest.mark.asyncio
    async def test_price_feed_down(self, aggregator, connector, price_service):
        connector.get_all_tokens_across_chains.return_value = (
            [make_token("USD Coin", 1_000_000)],
            [],
        )
        price_service.fetch_prices = AsyncMock(side_effect=PriceUnavailable(["usd-coin"]))

        with pytest.raises(AggregationError):
            await aggregator.build_snapshot()

    @pytest.mark.asyncio
    async def test_nothing_to_price(self, aggregator, connector):
        connector.get_all_tokens_across_chains.return_value = (
            [make_token("Mystery Token", 1_000_000)],
            [],
        )

        assert await aggregator.build_snapshot() is None


class TestRun:
    """Tests for storing snapshots."""

    @pytest.mark.asyncio
    async def test_snapshot_is_stored(self, session_maker, connector, price_service):
        connector.get_all_tokens_across_chains.return_value = (
            [make_token("USD Coin", 3_000_000)],
            [],
        )

        async with session_maker() as session:
            result = await VolumeAggregatorService(
                session, connector, price_service
            ).run()

        assert result["success"] is True
        assert result["tokens"] == 1

        async with session_maker() as session:
            latest = await VolumeSnapshotRepository(session).get_latest()
        assert latest.id == result["snapshot_id"]
        assert latest.total_volume_usd == pytest.approx(3.0)
        assert latest.token_breakdown[0]["token_symbol"] == "usdc"

    @pytest.mark.asyncio
    async def test_failed_tick_stores_nothing(self, session_maker, connector, price_service):
        connector.get_all_tokens_across_chains.return_value = (
            [],
            [BASE_CHAIN_ID, CELO_CHAIN_ID],
        )

        async with session_maker() as session:
            result = await VolumeAggregatorService(
                session, connector, price_service
            ).run()

        assert result["success"] is False
        async with session_maker() as session:
            assert await VolumeSnapshotRepository(session).get_latest() is None

    @pytest.mark.asyncio
    async def test_skipped_tick(self, session_maker, connector, price_service):
        async with session_maker() as session:
            result = await VolumeAggregatorService(
                session, connector, price_service
            ).run()

        assert result == {"success": True, "skipped": True, "snapshot_id": None}
