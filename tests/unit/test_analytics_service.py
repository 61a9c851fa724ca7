"""Unit tests for analytics computations."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from app.models.contract_metrics import ContractMetrics
from app.models.volume_snapshot import VolumeSnapshot
from app.services.analytics_service import (
    aggregates_by_chain,
    format_raw,
    group_breakdown_by_chain,
    metrics_aggregates,
    success_rate,
    volume_statistics,
)

START = datetime(2026, 3, 1, tzinfo=UTC)


def metrics(chain_id: int, hours: int, orders: int, volume: int, ok: int, failed: int):
    return ContractMetrics(
        chain_id=chain_id,
        order_count=Decimal(orders),
        total_volume=Decimal(volume),
        successful_orders=Decimal(ok),
        failed_orders=Decimal(failed),
        timestamp=START + timedelta(hours=hours),
    )


def snapshot(hours: int, usd: float) -> VolumeSnapshot:
    return VolumeSnapshot(
        total_volume_usd=usd,
        total_volume_local=usd * 1500,
        local_currency="ngn",
        token_breakdown=[],
        timestamp=START + timedelta(hours=hours),
    )


class TestMetricsAggregates:
    """Tests for metric series aggregation."""

    def test_success_rate(self):
        assert success_rate(3, 1) == 75.0
        assert success_rate(2, 1) == 66.67
        assert success_rate(0, 0) == 0.0

    def test_format_raw_keeps_precision(self):
        assert format_raw(Decimal(10**30)) == str(10**30)
        assert format_raw(None) == "0"

    def test_aggregates(self):
        series = [
            metrics(8453, 0, orders=100, volume=10**21, ok=90, failed=10),
            metrics(8453, 10, orders=150, volume=3 * 10**21, ok=135, failed=15),
        ]

        result = metrics_aggregates(series)

        assert result["current"]["orderCount"] == 150
        assert result["current"]["successRate"] == 90.0
        assert result["change"]["orderCount"] == 50
        assert result["change"]["totalVolume"] == str(2 * 10**21)
        assert result["period"]["dataPoints"] == 2
        assert result["period"]["averageOrdersPerHour"] == 5.0

    def test_single_point_has_no_rate(self):
        result = metrics_aggregates([metrics(8453, 0, 1, 1, 1, 0)])
        assert result["period"]["averageOrdersPerHour"] == 0.0

    def test_empty_series(self):
        assert metrics_aggregates([]) is None

    def test_chains_are_aggregated_separately(self):
        series = [
            metrics(8453, 0, orders=100, volume=0, ok=0, failed=0),
            metrics(42220, 1, orders=5, volume=0, ok=0, failed=0),
            metrics(8453, 2, orders=110, volume=0, ok=0, failed=0),
        ]

        result = aggregates_by_chain(series)

        assert list(result) == [8453, 42220]
        assert result[8453]["change"]["orderCount"] == 10
        assert result[42220]["change"]["orderCount"] == 0


class TestVolumeHelpers:
    """Tests for volume statistics and chain grouping."""

    def test_volume_statistics(self):
        history = [snapshot(0, 100.0), snapshot(1, 80.0), snapshot(2, 150.0)]

        stats = volume_statistics(history)

        assert stats["latestVolumeUsd"] == 150.0
        assert stats["earliestVolumeUsd"] == 100.0
        assert stats["changeUsd"] == 50.0
        assert stats["changePercent"] == 50.0
        assert stats["minVolumeUsd"] == 80.0
        assert stats["maxVolumeUsd"] == 150.0
        assert stats["avgVolumeUsd"] == pytest.approx(110.0)

    def test_volume_statistics_from_zero(self):
        stats = volume_statistics([snapshot(0, 0.0), snapshot(1, 10.0)])
        assert stats["changePercent"] == 0.0

    def test_volume_statistics_empty(self):
        assert volume_statistics([]) is None

    def test_group_breakdown_by_chain(self):
        breakdown = [
            {"chain_id": 42220, "volume_usd": 2.0, "volume_local": 3000.0},
            {"chain_id": 8453, "volume_usd": 1.0, "volume_local": 1500.0},
            {"chain_id": 8453, "volume_usd": 0.5, "volume_local": 750.0},
        ]

        grouped = group_breakdown_by_chain(breakdown)

        assert [entry["chainId"] for entry in grouped] == [8453, 42220]
        assert grouped[0]["volumeUsd"] == 1.5
        assert grouped[0]["volumeLocal"] == 2250.0
        assert grouped[0]["tokenCount"] == 2
        assert grouped[1]["tokenCount"] == 1
