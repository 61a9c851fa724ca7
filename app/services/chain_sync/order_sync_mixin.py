"""
Chain Sync Order Mixin.

Walks block ranges and ingests OrderCreated events.
"""

from typing import Any

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from app.models.sync_status import SYNC_TYPE_ORDERS
from app.utils.block_ranges import failed_range, split_block_range


class OrderSyncMixin:
    """Mixin providing order history sync."""

    async def sync_orders_for_chain(self, chain_id: int) -> dict[str, Any]:
        """
        Sync order history of one chain.

        Resumes from the stored cursor, or starts ``initial_lookback_blocks``
        behind the head on the first run. Batches are walked in increasing
        block order; a failed batch is recorded and skipped.

        Args:
            chain_id: Chain identifier

        Returns:
            Dict with sync stats including:
            - success: False only if the run aborted
            - skipped: True if another run held the flag
            - from_block / to_block: Range covered
            - inserted / duplicates: Order counts
            - failed_ranges: Ranges skipped in this run
        """
        chain_name = self.connector.chain_name(chain_id)
        logger.info(f"[OrderSync] Starting order history sync for {chain_name}")

        status = await self._acquire(SYNC_TYPE_ORDERS, chain_id)
        if status is None:
            return {"success": True, "skipped": True, "chain_id": chain_id}

        # Session rollbacks expire ORM objects, keep plain values
        status_id = status.id
        cursor = status.last_sync_block
        previous_failed = list(status.failed_ranges or [])

        new_failed: list[dict[str, Any]] = []
        stats = {"inserted": 0, "duplicates": 0, "events": 0, "batches": 0}
        progress_block = 0
        from_block = cursor

        try:
            current_block = await self.connector.get_current_block(chain_id)

            if cursor == 0:
                from_block = max(0, current_block - self.initial_lookback_blocks)
                logger.info(
                    f"[OrderSync] Initial sync for {chain_name} "
                    f"starting from block {from_block}"
                )

            logger.info(
                f"[OrderSync] Syncing {chain_name} blocks "
                f"{from_block} -> {current_block}"
            )

            delay = (
                self.slow_batch_delay
                if self.connector.is_slow(chain_id)
                else self.batch_delay
            )

            for start, end in split_block_range(
                from_block, current_block, self.batch_blocks
            ):
                await self._sync_order_batch(chain_id, start, end, new_failed, stats)
                progress_block = end
                await self._sleep(delay)

        except Exception as e:
            logger.exception(f"[OrderSync] Order sync failed for {chain_name}: {e}")
            await self.session.rollback()
            await self._finish(
                status_id,
                progress_block,
                success=False,
                error=str(e),
                previous_failed=previous_failed,
                new_failed=new_failed,
            )
            return {
                "success": False,
                "chain_id": chain_id,
                "error": str(e),
                "from_block": from_block,
                "to_block": progress_block,
                "failed_ranges": new_failed,
                **stats,
            }

        error = None
        if new_failed:
            error = f"{len(new_failed)} block range(s) skipped"

        await self._finish(
            status_id,
            current_block,
            success=True,
            error=error,
            previous_failed=previous_failed,
            new_failed=new_failed,
        )

        logger.success(
            f"[OrderSync] {chain_name} synced to block {current_block}: "
            f"{stats['inserted']} new, {stats['duplicates']} duplicates, "
            f"{len(new_failed)} skipped range(s)"
        )
        return {
            "success": True,
            "chain_id": chain_id,
            "from_block": from_block,
            "to_block": current_block,
            "failed_ranges": new_failed,
            **stats,
        }

    async def sync_orders_all_chains(self) -> dict[str, Any]:
        """Order history sync over every enabled chain, one at a time."""
        return await self._for_each_chain("orders", self.sync_orders_for_chain)

    async def _sync_order_batch(
        self,
        chain_id: int,
        start: int,
        end: int,
        failed: list[dict[str, Any]],
        stats: dict[str, int],
    ) -> None:
        """Fetch and store the orders of one block batch."""
        events = await self.connector.get_order_events(
            chain_id, start, end, failed_ranges=failed
        )
        stats["batches"] += 1
        if not events:
            logger.debug(f"[OrderSync] Batch [{start}-{end}]: no orders")
            return

        inserted = await self._store_events(events, start, end, failed)
        if inserted is None:
            return

        stats["events"] += len(events)
        stats["inserted"] += inserted
        stats["duplicates"] += len(events) - inserted
        logger.info(
            f"[OrderSync] Batch [{start}-{end}]: {inserted} new orders, "
            f"{len(events) - inserted} duplicates skipped"
        )

    async def _store_events(
        self,
        events: list,
        start: int,
        end: int,
        failed: list[dict[str, Any]],
    ) -> int | None:
        """
        Upsert events and commit.

        Returns:
            Inserted row count, or None if the write failed (range recorded)
        """
        rows = list({(e.chain_id, e.order_id): e.to_row() for e in events}.values())
        try:
            inserted = await self.order_repo.upsert_many(rows)
            await self.session.commit()
            return inserted
        except SQLAlchemyError as e:
            logger.error(f"[OrderSync] Failed to store blocks {start}-{end}: {e}")
            failed.append(failed_range(start, end, str(e)))
            return None
