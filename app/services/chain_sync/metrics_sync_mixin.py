"""
Chain Sync Metrics Mixin.

Appends contract counter snapshots to the metrics time series.
"""

from decimal import Decimal
from typing import Any

from loguru import logger

from app.models.sync_status import SYNC_TYPE_METRICS
from app.utils.datetime_utils import utc_now


class MetricsSyncMixin:
    """Mixin providing contract metrics sync."""

    async def sync_metrics_for_chain(self, chain_id: int) -> dict[str, Any]:
        """
        Read the contract counters of one chain and store a snapshot.

        Args:
            chain_id: Chain identifier

        Returns:
            Dict with success, skipped, block and the stored counters
        """
        chain_name = self.connector.chain_name(chain_id)
        logger.info(f"[MetricsSync] Starting contract metrics sync for {chain_name}")

        status = await self._acquire(SYNC_TYPE_METRICS, chain_id)
        if status is None:
            return {"success": True, "skipped": True, "chain_id": chain_id}
        status_id = status.id

        try:
            current_block = await self.connector.get_current_block(chain_id)
            counters = await self.connector.get_counters(chain_id)
            await self.metrics_repo.create(
                chain_id=chain_id,
                order_count=Decimal(counters.order_count),
                total_volume=Decimal(counters.total_volume),
                successful_orders=Decimal(counters.successful_orders),
                failed_orders=Decimal(counters.failed_orders),
                timestamp=utc_now(),
            )
            await self.session.commit()
        except Exception as e:
            logger.exception(
                f"[MetricsSync] Metrics sync failed for {chain_name}: {e}"
            )
            await self.session.rollback()
            await self._finish(status_id, 0, success=False, error=str(e))
            return {"success": False, "chain_id": chain_id, "error": str(e)}

        await self._finish(status_id, current_block, success=True)

        logger.success(
            f"[MetricsSync] {chain_name}: {counters.order_count} orders, "
            f"volume {counters.total_volume}"
        )
        return {
            "success": True,
            "chain_id": chain_id,
            "block": current_block,
            "order_count": str(counters.order_count),
            "total_volume": str(counters.total_volume),
            "successful_orders": str(counters.successful_orders),
            "failed_orders": str(counters.failed_orders),
        }

    async def sync_metrics_all_chains(self) -> dict[str, Any]:
        """Metrics sync over every enabled chain, one at a time."""
        return await self._for_each_chain("metrics", self.sync_metrics_for_chain)
