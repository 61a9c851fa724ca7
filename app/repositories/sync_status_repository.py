"""
Sync status repository.

Data access layer for per-(sync type, chain) progress cursors.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import case, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.sync_status import SyncStatus
from app.repositories.base import BaseRepository
from app.utils.datetime_utils import utc_now


class SyncStatusRepository(BaseRepository[SyncStatus]):
    """Repository for sync status rows."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(SyncStatus, session)

    async def get_or_create(self, sync_type: str, chain_id: int) -> SyncStatus:
        """
        Get the status row, creating it with cursor 0 if missing.

        Concurrent creators race on the (sync_type, chain_id) unique
        constraint; the loser's insert is a no-op.

        Args:
            sync_type: "metrics" or "orders"
            chain_id: Chain identifier

        Returns:
            Status row (fresh from the database)
        """
        now = utc_now()
        stmt = (
            self.insert()
            .values(
                sync_type=sync_type,
                chain_id=chain_id,
                last_sync_block=0,
                is_running=False,
                failed_ranges=[],
                success_count=0,
                error_count=0,
                created_at=now,
                updated_at=now,
            )
            .on_conflict_do_nothing(index_elements=["sync_type", "chain_id"])
        )
        await self.session.execute(stmt)

        result = await self.session.execute(
            select(SyncStatus)
            .where(
                SyncStatus.sync_type == sync_type,
                SyncStatus.chain_id == chain_id,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def try_acquire(self, status_id: int) -> bool:
        """
        Set the running flag only if it is currently clear.

        Single conditional UPDATE, so two callers can never both win.

        Args:
            status_id: Status row ID

        Returns:
            True if this caller now owns the run
        """
        now = utc_now()
        stmt = (
            update(SyncStatus)
            .where(
                SyncStatus.id == status_id,
                SyncStatus.is_running.is_(False),
            )
            .values(is_running=True, started_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def finish(
        self,
        status_id: int,
        block: int,
        success: bool,
        error: str | None = None,
        failed_ranges: list[dict[str, Any]] | None = None,
    ) -> SyncStatus:
        """
        Record the end of a run and clear the running flag.

        The cursor becomes max(previous, block); counters are incremented
        in SQL.

        Args:
            status_id: Status row ID
            block: Block reached by this run (0 if none)
            success: Whether the run completed
            error: Error message to record (None clears it)
            failed_ranges: New full list of skipped ranges (None keeps it)

        Returns:
            Updated status row
        """
        now = utc_now()
        values: dict[str, Any] = {
            "last_sync_block": case(
                (SyncStatus.last_sync_block < block, block),
                else_=SyncStatus.last_sync_block,
            ),
            "last_sync_timestamp": now,
            "is_running": False,
            "started_at": None,
            "last_error": error,
            "success_count": SyncStatus.success_count + (1 if success else 0),
            "error_count": SyncStatus.error_count + (0 if success else 1),
            "updated_at": now,
        }
        if failed_ranges is not None:
            values["failed_ranges"] = failed_ranges

        stmt = (
            update(SyncStatus)
            .where(SyncStatus.id == status_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)
        return await self.session.get(
            SyncStatus, status_id, populate_existing=True
        )

    async def update_failed_ranges(
        self, status_id: int, failed_ranges: list[dict[str, Any]]
    ) -> None:
        """Replace the skipped-range list without touching the cursor."""
        stmt = (
            update(SyncStatus)
            .where(SyncStatus.id == status_id)
            .values(failed_ranges=failed_ranges, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def release_stale_runs(self, started_before: datetime) -> int:
        """
        Clear running flags set before a point in time.

        Args:
            started_before: Runs started earlier are considered dead

        Returns:
            Number of rows released
        """
        stmt = (
            update(SyncStatus)
            .where(
                SyncStatus.is_running.is_(True),
                or_(
                    SyncStatus.started_at.is_(None),
                    SyncStatus.started_at < started_before,
                ),
            )
            .values(
                is_running=False,
                started_at=None,
                last_error="Run abandoned",
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def list_by_type(self, sync_type: str | None = None) -> list[SyncStatus]:
        """
        List status rows.

        Args:
            sync_type: Restrict to one sync type
        """
        stmt = select(SyncStatus).order_by(SyncStatus.sync_type, SyncStatus.chain_id)
        if sync_type:
            stmt = stmt.where(SyncStatus.sync_type == sync_type)
        stmt = stmt.execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
