"""
Chain Sync Status Mixin.

Sync status reporting, stale run release and failed range backfill.
"""

from datetime import timedelta
from typing import Any

from loguru import logger

from app.config.constants import STALE_RUN_SECONDS
from app.models.sync_status import SYNC_TYPE_ORDERS, SYNC_TYPES, SyncStatus
from app.utils.datetime_utils import utc_now


def serialize_status(status: SyncStatus) -> dict[str, Any]:
    """JSON-ready view of a status row."""
    return {
        "sync_type": status.sync_type,
        "chain_id": status.chain_id,
        "last_sync_block": status.last_sync_block,
        "last_sync_timestamp": (
            status.last_sync_timestamp.isoformat()
            if status.last_sync_timestamp
            else None
        ),
        "is_running": status.is_running,
        "last_error": status.last_error,
        "failed_ranges": list(status.failed_ranges or []),
        "success_count": status.success_count,
        "error_count": status.error_count,
    }


def group_statuses(
    statuses: list[SyncStatus],
) -> dict[str, list[dict[str, Any]]]:
    """Serialized status rows grouped by sync type."""
    report: dict[str, list[dict[str, Any]]] = {kind: [] for kind in SYNC_TYPES}
    for status in statuses:
        report.setdefault(status.sync_type, []).append(serialize_status(status))
    return report


class StatusMixin:
    """Mixin providing status and maintenance operations."""

    async def get_sync_status(self) -> dict[str, list[dict[str, Any]]]:
        """
        All cursors grouped by sync type.

        Returns:
            {"metrics": [...], "orders": [...]}
        """
        return group_statuses(await self.status_repo.list_by_type())

    async def release_stale_runs(
        self, max_age_seconds: int = STALE_RUN_SECONDS
    ) -> int:
        """
        Clear running flags left behind by a process that died mid-run.

        Args:
            max_age_seconds: Runs started longer ago are released

        Returns:
            Number of released flags
        """
        released = await self.status_repo.release_stale_runs(
            utc_now() - timedelta(seconds=max_age_seconds)
        )
        await self.session.commit()
        if released:
            logger.warning(f"[ChainSync] Released {released} stale running flag(s)")
        return released

    async def backfill_failed_ranges(self, chain_id: int) -> dict[str, Any]:
        """
        Retry the block ranges an order sync had to skip.

        Ranges that now succeed are removed from the status row; ranges
        that fail again stay recorded. The cursor is not moved.

        Args:
            chain_id: Chain identifier

        Returns:
            Dict with success, retried, recovered, remaining and inserted
        """
        chain_name = self.connector.chain_name(chain_id)
        status = await self._acquire(SYNC_TYPE_ORDERS, chain_id)
        if status is None:
            return {"success": True, "skipped": True, "chain_id": chain_id}

        status_id = status.id
        ranges = list(status.failed_ranges or [])
        if not ranges:
            await self._finish(status_id, 0, success=True)
            logger.info(f"[Backfill] No failed ranges recorded for {chain_name}")
            return {
                "success": True,
                "chain_id": chain_id,
                "retried": 0,
                "recovered": 0,
                "remaining": 0,
                "inserted": 0,
            }

        logger.info(
            f"[Backfill] Retrying {len(ranges)} range(s) on {chain_name}"
        )

        remaining: list[dict[str, Any]] = []
        inserted = 0
        done = 0

        try:
            for entry in ranges:
                still_failed: list[dict[str, Any]] = []
                events = await self.connector.get_order_events(
                    chain_id,
                    int(entry["from_block"]),
                    int(entry["to_block"]),
                    failed_ranges=still_failed,
                )
                if events:
                    stored = await self._store_events(
                        events, entry["from_block"], entry["to_block"], still_failed
                    )
                    inserted += stored or 0
                remaining.extend(still_failed)
                done += 1
                await self._sleep(self.batch_delay)
        except Exception as e:
            logger.exception(f"[Backfill] Backfill failed for {chain_name}: {e}")
            await self.session.rollback()
            remaining.extend(ranges[done:])
            await self.status_repo.update_failed_ranges(status_id, remaining)
            await self._finish(status_id, 0, success=False, error=str(e))
            return {"success": False, "chain_id": chain_id, "error": str(e)}

        await self.status_repo.update_failed_ranges(status_id, remaining)
        await self._finish(
            status_id,
            0,
            success=True,
            error=f"{len(remaining)} block range(s) skipped" if remaining else None,
        )

        recovered = len(ranges) - len(remaining)
        logger.success(
            f"[Backfill] {chain_name}: {recovered}/{len(ranges)} range(s) "
            f"recovered, {inserted} new orders"
        )
        return {
            "success": True,
            "chain_id": chain_id,
            "retried": len(ranges),
            "recovered": max(recovered, 0),
            "remaining": len(remaining),
            "inserted": inserted,
        }
