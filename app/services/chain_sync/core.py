"""
Chain Sync Core Service.

Main service class that combines order history sync, metrics sync and
status reporting. One instance works on one database session.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import (
    INITIAL_LOOKBACK_BLOCKS,
    MAX_FAILED_RANGES,
    ORDER_SYNC_BATCH_BLOCKS,
    ORDER_SYNC_BATCH_DELAY,
    ORDER_SYNC_SLOW_CHAIN_BATCH_DELAY,
)
from app.models.sync_status import SyncStatus
from app.repositories.contract_metrics_repository import ContractMetricsRepository
from app.repositories.order_repository import OrderRepository
from app.repositories.sync_status_repository import SyncStatusRepository
from app.services.chain_connector import ChainConnector

from .metrics_sync_mixin import MetricsSyncMixin
from .order_sync_mixin import OrderSyncMixin
from .status_mixin import StatusMixin


class ChainSyncService(OrderSyncMixin, MetricsSyncMixin, StatusMixin):
    """
    Synchronizes contract data of every enabled chain into the database.

    Per (sync type, chain) the run is guarded by the running flag of its
    SyncStatus row. Chains are processed one after another; a failing
    chain never stops the next one.

    Key features:
    - Resumable order sync from the stored block cursor
    - Idempotent order ingestion (ON CONFLICT DO NOTHING)
    - Skipped block ranges recorded for a later backfill
    - Result dicts instead of exceptions at every entry point
    """

    def __init__(
        self,
        session: AsyncSession,
        connector: ChainConnector,
        initial_lookback_blocks: int = INITIAL_LOOKBACK_BLOCKS,
        batch_blocks: int = ORDER_SYNC_BATCH_BLOCKS,
        batch_delay: float = ORDER_SYNC_BATCH_DELAY,
        slow_batch_delay: float = ORDER_SYNC_SLOW_CHAIN_BATCH_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize sync service.

        Args:
            session: Database session
            connector: Shared chain connector
            initial_lookback_blocks: Blocks behind head for a first sync
            batch_blocks: Blocks per order batch
            batch_delay: Pause between batches (seconds)
            slow_batch_delay: Pause between batches on slow chains
            sleep: Async sleep function (injectable for tests)
        """
        self.session = session
        self.connector = connector
        self.status_repo = SyncStatusRepository(session)
        self.order_repo = OrderRepository(session)
        self.metrics_repo = ContractMetricsRepository(session)

        self.initial_lookback_blocks = initial_lookback_blocks
        self.batch_blocks = batch_blocks
        self.batch_delay = batch_delay
        self.slow_batch_delay = slow_batch_delay
        self._sleep = sleep

    async def _acquire(self, sync_type: str, chain_id: int) -> SyncStatus | None:
        """
        Load the status row and take its running flag.

        Returns:
            Status row, or None if another run holds the flag
        """
        status = await self.status_repo.get_or_create(sync_type, chain_id)
        acquired = False
        if not status.is_running:
            acquired = await self.status_repo.try_acquire(status.id)
        await self.session.commit()

        if not acquired:
            logger.warning(
                f"[ChainSync] {sync_type} sync for "
                f"{self.connector.chain_name(chain_id)} already running, skipping"
            )
            return None
        return status

    async def _finish(
        self,
        status_id: int,
        block: int,
        success: bool,
        error: str | None = None,
        previous_failed: list[dict[str, Any]] | None = None,
        new_failed: list[dict[str, Any]] | None = None,
    ) -> SyncStatus | None:
        """
        Close a run. Failures to persist are logged, not raised.

        Args:
            status_id: Status row ID
            block: Block reached (cursor only moves forward)
            success: Run outcome
            error: Error text
            previous_failed: Failed ranges stored before the run
            new_failed: Failed ranges of this run (appended)
        """
        failed_ranges = None
        if new_failed:
            failed_ranges = (list(previous_failed or []) + new_failed)[
                -MAX_FAILED_RANGES:
            ]

        try:
            status = await self.status_repo.finish(
                status_id, block, success, error, failed_ranges
            )
            await self.session.commit()
            return status
        except SQLAlchemyError as e:
            logger.error(f"[ChainSync] Failed to update sync status {status_id}: {e}")
            await self.session.rollback()
            return None

    async def _for_each_chain(
        self,
        label: str,
        run: Callable[[int], Awaitable[dict[str, Any]]],
    ) -> dict[str, Any]:
        """Run a per-chain sync on every enabled chain, sequentially."""
        chain_ids = self.connector.enabled_chain_ids()
        logger.info(
            f"[ChainSync] Syncing {label} for {len(chain_ids)} chain(s): "
            f"{', '.join(str(c) for c in chain_ids)}"
        )

        results: dict[int, dict[str, Any]] = {}
        for chain_id in chain_ids:
            try:
                results[chain_id] = await run(chain_id)
            except Exception as e:
                logger.exception(
                    f"[ChainSync] {label} sync crashed for chain {chain_id}: {e}"
                )
                await self.session.rollback()
                results[chain_id] = {
                    "success": False,
                    "chain_id": chain_id,
                    "error": str(e),
                }

        succeeded = sum(1 for r in results.values() if r.get("success"))
        logger.info(
            f"[ChainSync] {label} sync done: {succeeded}/{len(results)} chains ok"
        )
        return {
            "success": succeeded == len(results),
            "chains": results,
        }
