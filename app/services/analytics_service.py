"""
Analytics helpers.

Pure computations over stored metrics and volume snapshots used by
the read endpoints.
"""

from collections.abc import Sequence
from decimal import Decimal
from typing import Any

from app.models.contract_metrics import ContractMetrics
from app.models.volume_snapshot import VolumeSnapshot
from app.utils.datetime_utils import ensure_utc


def format_raw(value: Decimal | int | None) -> str:
    """Raw on-chain integer as a decimal string (fractions dropped)."""
    if value is None:
        return "0"
    return str(int(value))


def success_rate(successful: Decimal | int, failed: Decimal | int) -> float:
    """Successful share of finished orders in percent, 2 decimals."""
    total = Decimal(successful) + Decimal(failed)
    if total <= 0:
        return 0.0
    return round(float(Decimal(successful) / total * 100), 2)


def metrics_counters(metrics: ContractMetrics) -> dict[str, Any]:
    return {
        "orderCount": int(metrics.order_count),
        "totalVolume": format_raw(metrics.total_volume),
        "successfulOrders": int(metrics.successful_orders),
        "failedOrders": int(metrics.failed_orders),
        "successRate": success_rate(
            metrics.successful_orders, metrics.failed_orders
        ),
    }


def metrics_change(
    latest: ContractMetrics, earliest: ContractMetrics
) -> dict[str, Any]:
    """Counter deltas between two snapshots of the same chain."""
    return {
        "orderCount": int(latest.order_count - earliest.order_count),
        "totalVolume": format_raw(latest.total_volume - earliest.total_volume),
        "successfulOrders": int(
            latest.successful_orders - earliest.successful_orders
        ),
        "failedOrders": int(latest.failed_orders - earliest.failed_orders),
    }


def average_orders_per_hour(
    latest: ContractMetrics, earliest: ContractMetrics
) -> float:
    hours = (
        ensure_utc(latest.timestamp) - ensure_utc(earliest.timestamp)
    ).total_seconds() / 3600
    if hours <= 0:
        return 0.0
    return round(float(latest.order_count - earliest.order_count) / hours, 2)


def metrics_aggregates(
    metrics: Sequence[ContractMetrics],
) -> dict[str, Any] | None:
    """
    Aggregate a snapshot series of one chain.

    Args:
        metrics: Snapshots, oldest first

    Returns:
        current/change/period blocks, or None for an empty series
    """
    if not metrics:
        return None

    earliest, latest = metrics[0], metrics[-1]
    return {
        "current": metrics_counters(latest),
        "change": metrics_change(latest, earliest),
        "period": {
            "start": ensure_utc(earliest.timestamp).isoformat(),
            "end": ensure_utc(latest.timestamp).isoformat(),
            "dataPoints": len(metrics),
            "averageOrdersPerHour": (
                average_orders_per_hour(latest, earliest)
                if len(metrics) > 1
                else 0.0
            ),
        },
    }


def aggregates_by_chain(
    metrics: Sequence[ContractMetrics],
) -> dict[int, dict[str, Any]]:
    """
    Aggregate a mixed series chain by chain.

    Counters of different chains are never subtracted from each other.
    """
    per_chain: dict[int, list[ContractMetrics]] = {}
    for row in metrics:
        per_chain.setdefault(row.chain_id, []).append(row)
    return {
        chain_id: metrics_aggregates(rows)
        for chain_id, rows in sorted(per_chain.items())
    }


def volume_statistics(snapshots: Sequence[VolumeSnapshot]) -> dict[str, Any] | None:
    """
    Summary of the USD totals in a snapshot history.

    Args:
        snapshots: Snapshots, oldest first
    """
    if not snapshots:
        return None

    volumes = [snapshot.total_volume_usd for snapshot in snapshots]
    latest, earliest = volumes[-1], volumes[0]
    change = latest - earliest
    change_percent = round(change / earliest * 100, 2) if earliest > 0 else 0.0
    return {
        "latestVolumeUsd": round(latest, 2),
        "earliestVolumeUsd": round(earliest, 2),
        "changeUsd": round(change, 2),
        "changePercent": change_percent,
        "minVolumeUsd": round(min(volumes), 2),
        "maxVolumeUsd": round(max(volumes), 2),
        "avgVolumeUsd": round(sum(volumes) / len(volumes), 2),
    }


def group_breakdown_by_chain(
    breakdown: Sequence[dict[str, Any]],
) -> list[dict[str, Any]]:
    """
    Regroup a snapshot's token breakdown per chain.

    Returns:
        One entry per chain with summed fiat volume and its tokens
    """
    chains: dict[int, dict[str, Any]] = {}
    for token in breakdown:
        entry = chains.setdefault(
            token["chain_id"],
            {
                "chainId": token["chain_id"],
                "volumeUsd": 0.0,
                "volumeLocal": 0.0,
                "tokens": [],
            },
        )
        entry["volumeUsd"] += float(token.get("volume_usd", 0))
        entry["volumeLocal"] += float(token.get("volume_local", 0))
        entry["tokens"].append(token)

    grouped = []
    for chain_id in sorted(chains):
        entry = chains[chain_id]
        entry["volumeUsd"] = round(entry["volumeUsd"], 2)
        entry["volumeLocal"] = round(entry["volumeLocal"], 2)
        entry["tokenCount"] = len(entry["tokens"])
        grouped.append(entry)
    return grouped
