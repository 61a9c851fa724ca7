"""
JSON views of stored records.

Raw on-chain integers are rendered as decimal strings, timestamps as
ISO 8601 in UTC.
"""

from typing import Any

from app.config.chains import CHAIN_NAMES
from app.models.contract_metrics import ContractMetrics
from app.models.order import Order
from app.models.volume_snapshot import VolumeSnapshot
from app.services.analytics_service import format_raw, metrics_counters
from app.utils.datetime_utils import ensure_utc


def _iso(value) -> str | None:
    return ensure_utc(value).isoformat() if value is not None else None


def serialize_order(order: Order) -> dict[str, Any]:
    return {
        "id": order.id,
        "chainId": order.chain_id,
        "chainName": CHAIN_NAMES.get(order.chain_id, str(order.chain_id)),
        "orderId": order.order_id,
        "requestId": order.request_id,
        "userWallet": order.user_wallet,
        "tokenAddress": order.token_address,
        "amount": format_raw(order.amount),
        "txnHash": order.tx_hash,
        "blockNumber": order.block_number,
        "timestamp": _iso(order.timestamp),
    }


def serialize_metrics(metrics: ContractMetrics) -> dict[str, Any]:
    return {
        "chainId": metrics.chain_id,
        "chainName": CHAIN_NAMES.get(metrics.chain_id, str(metrics.chain_id)),
        **metrics_counters(metrics),
        "timestamp": _iso(metrics.timestamp),
    }


def serialize_snapshot(snapshot: VolumeSnapshot) -> dict[str, Any]:
    breakdown = list(snapshot.token_breakdown or [])
    return {
        "id": snapshot.id,
        "totalVolumeUsd": round(snapshot.total_volume_usd, 2),
        "totalVolumeLocal": round(snapshot.total_volume_local, 2),
        "localCurrency": snapshot.local_currency,
        "tokenCount": len(breakdown),
        "tokens": breakdown,
        "timestamp": _iso(snapshot.timestamp),
    }


def serialize_summary(summary: dict[str, Any]) -> dict[str, Any]:
    """View of OrderRepository.get_summary output."""
    return {
        "totalOrders": summary["total_orders"],
        "totalVolume": format_raw(summary["total_volume"]),
        "averageAmount": format_raw(summary["average_amount"]),
        "uniqueUsers": summary["unique_users"],
        "uniqueTokens": summary["unique_tokens"],
    }


_GROUP_KEYS = {
    "chain_id": "chainId",
    "token_address": "tokenAddress",
    "user_wallet": "userWallet",
}


def serialize_group(group: dict[str, Any]) -> dict[str, Any]:
    """View of one OrderRepository.get_top entry."""
    view = {
        _GROUP_KEYS[key]: value
        for key, value in group.items()
        if key in _GROUP_KEYS
    }
    if "chainId" in view:
        view["chainName"] = CHAIN_NAMES.get(view["chainId"], str(view["chainId"]))
    view.update(
        orderCount=group["orders"],
        totalVolume=format_raw(group["volume"]),
        uniqueUsers=group["unique_users"],
        lastOrderAt=_iso(group["last_order_at"]),
    )
    return view


def serialize_bucket(bucket: dict[str, Any]) -> dict[str, Any]:
    """View of one OrderRepository.get_timeline bucket."""
    return {
        "timestamp": _iso(bucket["timestamp"]),
        "orderCount": bucket["order_count"],
        "totalVolume": format_raw(bucket["total_volume"]),
        "averageAmount": format_raw(bucket["average_amount"]),
        "uniqueUsers": bucket["unique_users"],
        "uniqueTokens": bucket["unique_tokens"],
    }
