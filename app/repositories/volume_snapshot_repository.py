"""
Volume snapshot repository.

Data access layer for aggregated volume snapshots.
"""

from datetime import datetime

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.volume_snapshot import VolumeSnapshot
from app.repositories.base import BaseRepository
from app.utils.datetime_utils import utc_now


class VolumeSnapshotRepository(BaseRepository[VolumeSnapshot]):
    """Repository for volume snapshots."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(VolumeSnapshot, session)

    async def get_latest(self) -> VolumeSnapshot | None:
        """Get the newest snapshot."""
        stmt = (
            select(VolumeSnapshot)
            .order_by(VolumeSnapshot.timestamp.desc(), VolumeSnapshot.id.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_history(
        self, start_time: datetime, end_time: datetime | None = None
    ) -> list[VolumeSnapshot]:
        """
        Get snapshots in a time window, oldest first.

        Args:
            start_time: Window start
            end_time: Window end (default: now)
        """
        end = end_time or utc_now()
        stmt = (
            select(VolumeSnapshot)
            .where(
                and_(
                    VolumeSnapshot.timestamp >= start_time,
                    VolumeSnapshot.timestamp <= end,
                )
            )
            .order_by(VolumeSnapshot.timestamp.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
