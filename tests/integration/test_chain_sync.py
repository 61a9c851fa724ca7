"""Integration tests for chain sync against a SQLite database."""

from datetime import timedelta

import pytest

from app.config.chains import BASE_CHAIN_ID, CELO_CHAIN_ID
from app.models.sync_status import SYNC_TYPE_METRICS, SYNC_TYPE_ORDERS, SyncStatus
from app.repositories.contract_metrics_repository import ContractMetricsRepository
from app.repositories.order_repository import OrderRepository
from app.repositories.sync_status_repository import SyncStatusRepository
from app.services.chain_connector import ChainCounters
from app.services.chain_sync import ChainSyncService
from app.utils.datetime_utils import utc_now
from app.utils.exceptions import ChainUnavailable
from tests.fakes import FakeConnector, make_event, no_sleep


def make_service(session, connector) -> ChainSyncService:
    return ChainSyncService(
        session,
        connector,
        initial_lookback_blocks=100_000,
        batch_blocks=50_000,
        batch_delay=0,
        slow_batch_delay=0,
        sleep=no_sleep,
    )


async def load_status(session_maker, sync_type=SYNC_TYPE_ORDERS) -> SyncStatus:
    async with session_maker() as session:
        statuses = await SyncStatusRepository(session).list_by_type(sync_type)
    assert len(statuses) == 1
    return statuses[0]


async def count_orders(session_maker) -> int:
    async with session_maker() as session:
        return await OrderRepository(session).count_for_chain(BASE_CHAIN_ID)


class TestOrderSync:
    """Tests for order history sync."""

    @pytest.mark.asyncio
    async def test_first_sync_starts_at_lookback(self, session_maker, fake_connector):
        async with session_maker() as session:
            result = await make_service(session, fake_connector).sync_orders_for_chain(
                BASE_CHAIN_ID
            )

        assert result["success"] is True
        assert result["from_block"] == 100_000
        assert fake_connector.calls == [
            (BASE_CHAIN_ID, 100_000, 149_999),
            (BASE_CHAIN_ID, 150_000, 199_999),
            (BASE_CHAIN_ID, 200_000, 200_000),
        ]
        status = await load_status(session_maker)
        assert status.last_sync_block == 200_000
        assert status.is_running is False
        assert status.success_count == 1

    @pytest.mark.asyncio
    async def test_resumes_from_cursor(self, session_maker, fake_connector):
        async with session_maker() as session:
            await make_service(session, fake_connector).sync_orders_for_chain(
                BASE_CHAIN_ID
            )

        fake_connector.calls.clear()
        fake_connector.current_block = 210_000
        async with session_maker() as session:
            result = await make_service(session, fake_connector).sync_orders_for_chain(
                BASE_CHAIN_ID
            )

        assert result["from_block"] == 200_000
        assert fake_connector.calls == [(BASE_CHAIN_ID, 200_000, 210_000)]
        assert (await load_status(session_maker)).last_sync_block == 210_000

    @pytest.mark.asyncio
    async def test_ingestion_is_idempotent(self, session_maker, fake_connector):
        fake_connector.events = [
            make_event(1, 120_000),
            make_event(2, 160_000),
            make_event(3, 200_000),
        ]

        async with session_maker() as session:
            first = await make_service(session, fake_connector).sync_orders_for_chain(
                BASE_CHAIN_ID
            )
        async with session_maker() as session:
            second = await make_service(session, fake_connector).sync_orders_for_chain(
                BASE_CHAIN_ID
            )

        assert first["inserted"] == 3
        assert second["inserted"] == 0
        assert second["duplicates"] == 1
        assert await count_orders(session_maker) == 3

    @pytest.mark.asyncio
    async def test_stored_order_values(self, session_maker, fake_connector):
        fake_connector.events = [make_event(7, 120_000, amount=2_500_000)]

        async with session_maker() as session:
            await make_service(session, fake_connector).sync_orders_for_chain(
                BASE_CHAIN_ID
            )

        async with session_maker() as session:
            orders = await OrderRepository(session).find_by_order_id("7")

        assert len(orders) == 1
        order = orders[0]
        assert order.chain_id == BASE_CHAIN_ID
        assert order.block_number == 120_000
        assert int(order.amount) == 2_500_000
        assert order.user_wallet == "0x" + "aa" * 20

    @pytest.mark.asyncio
    async def test_failed_range_is_recorded_and_skipped(
        self, session_maker, fake_connector
    ):
        fake_connector.failing.add((150_000, 199_999))
        fake_connector.events = [make_event(1, 120_000), make_event(2, 160_000)]

        async with session_maker() as session:
            result = await make_service(session, fake_connector).sync_orders_for_chain(
                BASE_CHAIN_ID
            )

        assert result["success"] is True
        assert len(result["failed_ranges"]) == 1
        assert await count_orders(session_maker) == 1

        status = await load_status(session_maker)
        assert status.last_sync_block == 200_000
        assert status.last_error == "1 block range(s) skipped"
        assert [
            (r["from_block"], r["to_block"]) for r in status.failed_ranges
        ] == [(150_000, 199_999)]

    @pytest.mark.asyncio
    async def test_crash_keeps_progress(self, session_maker, fake_connector):
        fake_connector.crash_at.add(150_000)
        fake_connector.events = [make_event(1, 120_000)]

        async with session_maker() as session:
            result = await make_service(session, fake_connector).sync_orders_for_chain(
                BASE_CHAIN_ID
            )

        assert result["success"] is False
        assert "provider crashed" in result["error"]
        assert await count_orders(session_maker) == 1

        status = await load_status(session_maker)
        assert status.last_sync_block == 149_999
        assert status.is_running is False
        assert status.error_count == 1

    @pytest.mark.asyncio
    async def test_head_lookup_failure(self, session_maker, fake_connector):
        fake_connector.block_error = ConnectionError("rpc down")

        async with session_maker() as session:
            result = await make_service(session, fake_connector).sync_orders_for_chain(
                BASE_CHAIN_ID
            )

        assert result["success"] is False
        status = await load_status(session_maker)
        assert status.last_sync_block == 0
        assert status.is_running is False

    @pytest.mark.asyncio
    async def test_skips_when_already_running(self, session_maker, fake_connector):
        async with session_maker() as session:
            repo = SyncStatusRepository(session)
            status = await repo.get_or_create(SYNC_TYPE_ORDERS, BASE_CHAIN_ID)
            assert await repo.try_acquire(status.id) is True
            await session.commit()

        async with session_maker() as session:
            result = await make_service(session, fake_connector).sync_orders_for_chain(
                BASE_CHAIN_ID
            )

        assert result == {"success": True, "skipped": True, "chain_id": BASE_CHAIN_ID}
        assert fake_connector.calls == []

    @pytest.mark.asyncio
    async def test_cursor_never_moves_back(self, session_maker, fake_connector):
        async with session_maker() as session:
            await make_service(session, fake_connector).sync_orders_for_chain(
                BASE_CHAIN_ID
            )

        # Provider behind the stored cursor
        fake_connector.current_block = 150_000
        fake_connector.calls.clear()
        async with session_maker() as session:
            result = await make_service(session, fake_connector).sync_orders_for_chain(
                BASE_CHAIN_ID
            )

        assert result["success"] is True
        assert fake_connector.calls == []
        assert (await load_status(session_maker)).last_sync_block == 200_000

    @pytest.mark.asyncio
    async def test_all_chains_run_sequentially(self, session_maker):
        connector = FakeConnector(chains={BASE_CHAIN_ID: "Base", CELO_CHAIN_ID: "Celo"})
        connector.events = [
            make_event(1, 120_000, chain_id=BASE_CHAIN_ID),
            make_event(1, 130_000, chain_id=CELO_CHAIN_ID),
        ]

        async with session_maker() as session:
            result = await make_service(session, connector).sync_orders_all_chains()

        assert result["success"] is True
        assert set(result["chains"]) == {BASE_CHAIN_ID, CELO_CHAIN_ID}
        assert [call[0] for call in connector.calls] == [BASE_CHAIN_ID] * 3 + [
            CELO_CHAIN_ID
        ] * 3

        async with session_maker() as session:
            orders = await OrderRepository(session).find_by_order_id("1")
        assert {order.chain_id for order in orders} == {BASE_CHAIN_ID, CELO_CHAIN_ID}


class TestMetricsSync:
    """Tests for contract metrics sync."""

    @pytest.mark.asyncio
    async def test_snapshot_is_stored(self, session_maker, fake_connector):
        fake_connector.counters[BASE_CHAIN_ID] = ChainCounters(
            chain_id=BASE_CHAIN_ID,
            order_count=42,
            total_volume=5_000_000,
            successful_orders=40,
            failed_orders=2,
        )

        async with session_maker() as session:
            result = await make_service(session, fake_connector).sync_metrics_for_chain(
                BASE_CHAIN_ID
            )

        assert result["success"] is True
        assert result["order_count"] == "42"

        async with session_maker() as session:
            latest = await ContractMetricsRepository(session).get_latest(BASE_CHAIN_ID)
        assert int(latest.order_count) == 42
        assert int(latest.failed_orders) == 2

        status = await load_status(session_maker, SYNC_TYPE_METRICS)
        assert status.last_sync_block == 200_000

    @pytest.mark.asyncio
    async def test_unavailable_chain_stores_nothing(self, session_maker, fake_connector):
        async with session_maker() as session:
            result = await make_service(session, fake_connector).sync_metrics_for_chain(
                BASE_CHAIN_ID
            )

        assert result["success"] is False
        async with session_maker() as session:
            assert await ContractMetricsRepository(session).get_latest() is None

        status = await load_status(session_maker, SYNC_TYPE_METRICS)
        assert status.error_count == 1
        assert status.is_running is False

    @pytest.mark.asyncio
    async def test_head_failure_stores_no_snapshot(self, session_maker, fake_connector):
        fake_connector.counters[BASE_CHAIN_ID] = ChainCounters(BASE_CHAIN_ID, 5, 50, 5, 0)
        fake_connector.block_error = ChainUnavailable(
            BASE_CHAIN_ID, "get_current_block", "timeout"
        )

        async with session_maker() as session:
            result = await make_service(session, fake_connector).sync_metrics_for_chain(
                BASE_CHAIN_ID
            )

        assert result["success"] is False
        async with session_maker() as session:
            assert await ContractMetricsRepository(session).get_latest() is None

        status = await load_status(session_maker, SYNC_TYPE_METRICS)
        assert status.error_count == 1
        assert status.last_sync_block == 0

    @pytest.mark.asyncio
    async def test_overlapping_tick_is_skipped(self, session_maker, fake_connector):
        """A tick that finds the flag still set stores no second snapshot."""
        fake_connector.counters[BASE_CHAIN_ID] = ChainCounters(BASE_CHAIN_ID, 1, 1, 1, 0)
        async with session_maker() as session:
            repo = SyncStatusRepository(session)
            status = await repo.get_or_create(SYNC_TYPE_METRICS, BASE_CHAIN_ID)
            await repo.try_acquire(status.id)
            await session.commit()

        async with session_maker() as session:
            result = await make_service(session, fake_connector).sync_metrics_for_chain(
                BASE_CHAIN_ID
            )

        assert result["skipped"] is True
        async with session_maker() as session:
            assert await ContractMetricsRepository(session).get_latest() is None

    @pytest.mark.asyncio
    async def test_one_failing_chain_does_not_stop_the_next(self, session_maker):
        connector = FakeConnector(chains={BASE_CHAIN_ID: "Base", CELO_CHAIN_ID: "Celo"})
        connector.counters[CELO_CHAIN_ID] = ChainCounters(CELO_CHAIN_ID, 3, 10, 3, 0)

        async with session_maker() as session:
            result = await make_service(session, connector).sync_metrics_all_chains()

        assert result["success"] is False
        assert result["chains"][BASE_CHAIN_ID]["success"] is False
        assert result["chains"][CELO_CHAIN_ID]["success"] is True


class TestSyncStatus:
    """Tests for running flags, stale runs and backfill."""

    @pytest.mark.asyncio
    async def test_only_one_caller_acquires(self, session_maker):
        async with session_maker() as first, session_maker() as second:
            status = await SyncStatusRepository(first).get_or_create(
                SYNC_TYPE_ORDERS, BASE_CHAIN_ID
            )
            await first.commit()

            won_first = await SyncStatusRepository(first).try_acquire(status.id)
            await first.commit()
            won_second = await SyncStatusRepository(second).try_acquire(status.id)
            await second.commit()

        assert won_first is True
        assert won_second is False

    @pytest.mark.asyncio
    async def test_get_or_create_is_idempotent(self, db_session):
        repo = SyncStatusRepository(db_session)
        first = await repo.get_or_create(SYNC_TYPE_ORDERS, BASE_CHAIN_ID)
        second = await repo.get_or_create(SYNC_TYPE_ORDERS, BASE_CHAIN_ID)
        await db_session.commit()

        assert first.id == second.id
        assert len(await repo.list_by_type()) == 1

    @pytest.mark.asyncio
    async def test_release_stale_runs(self, session_maker, fake_connector):
        async with session_maker() as session:
            repo = SyncStatusRepository(session)
            status = await repo.get_or_create(SYNC_TYPE_ORDERS, BASE_CHAIN_ID)
            await repo.try_acquire(status.id)
            await session.commit()

        async with session_maker() as session:
            service = make_service(session, fake_connector)
            assert await service.release_stale_runs() == 0

            released = await service.status_repo.release_stale_runs(
                utc_now() + timedelta(minutes=1)
            )
            await session.commit()

        assert released == 1
        status = await load_status(session_maker)
        assert status.is_running is False
        assert status.last_error == "Run abandoned"

    @pytest.mark.asyncio
    async def test_backfill_recovers_ranges(self, session_maker, fake_connector):
        fake_connector.failing.add((150_000, 199_999))
        fake_connector.events = [make_event(1, 160_000)]
        async with session_maker() as session:
            await make_service(session, fake_connector).sync_orders_for_chain(
                BASE_CHAIN_ID
            )
        assert await count_orders(session_maker) == 0

        fake_connector.failing.clear()
        async with session_maker() as session:
            result = await make_service(session, fake_connector).backfill_failed_ranges(
                BASE_CHAIN_ID
            )

        assert result["retried"] == 1
        assert result["recovered"] == 1
        assert result["inserted"] == 1
        assert await count_orders(session_maker) == 1

        status = await load_status(session_maker)
        assert status.failed_ranges == []
        assert status.last_error is None
        assert status.last_sync_block == 200_000

    @pytest.mark.asyncio
    async def test_backfill_keeps_ranges_that_fail_again(
        self, session_maker, fake_connector
    ):
        fake_connector.failing.add((150_000, 199_999))
        async with session_maker() as session:
            await make_service(session, fake_connector).sync_orders_for_chain(
                BASE_CHAIN_ID
            )
            result = await make_service(session, fake_connector).backfill_failed_ranges(
                BASE_CHAIN_ID
            )

        assert result["recovered"] == 0
        assert result["remaining"] == 1
        status = await load_status(session_maker)
        assert len(status.failed_ranges) == 1

    @pytest.mark.asyncio
    async def test_status_report(self, session_maker, fake_connector):
        async with session_maker() as session:
            service = make_service(session, fake_connector)
            await service.sync_orders_for_chain(BASE_CHAIN_ID)
            report = await service.get_sync_status()

        assert report["metrics"] == []
        assert len(report["orders"]) == 1
        assert report["orders"][0]["last_sync_block"] == 200_000
        assert report["orders"][0]["chain_id"] == BASE_CHAIN_ID
