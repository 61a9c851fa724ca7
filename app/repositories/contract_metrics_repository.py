"""
Contract metrics repository.

Data access layer for the contract counter time series.
"""

from datetime import datetime

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import METRICS_QUERY_LIMIT
from app.models.contract_metrics import ContractMetrics
from app.repositories.base import BaseRepository


class ContractMetricsRepository(BaseRepository[ContractMetrics]):
    """Repository for contract metrics snapshots."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(ContractMetrics, session)

    async def get_latest(
        self, chain_id: int | None = None
    ) -> ContractMetrics | None:
        """
        Get the newest snapshot.

        Args:
            chain_id: Restrict to one chain (default: any chain)

        Returns:
            Latest snapshot or None
        """
        stmt = select(ContractMetrics)
        if chain_id is not None:
            stmt = stmt.where(ContractMetrics.chain_id == chain_id)
        stmt = stmt.order_by(
            ContractMetrics.timestamp.desc(), ContractMetrics.id.desc()
        ).limit(1)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_latest_per_chain(self) -> list[ContractMetrics]:
        """Get the newest snapshot of every chain."""
        newest = (
            select(
                ContractMetrics.chain_id,
                func.max(ContractMetrics.id).label("max_id"),
            )
            .group_by(ContractMetrics.chain_id)
            .subquery()
        )
        stmt = (
            select(ContractMetrics)
            .join(newest, ContractMetrics.id == newest.c.max_id)
            .order_by(ContractMetrics.chain_id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_series(
        self,
        start_time: datetime,
        chain_id: int | None = None,
        ascending: bool = True,
        limit: int | None = METRICS_QUERY_LIMIT,
    ) -> list[ContractMetrics]:
        """
        Get snapshots taken since a point in time.

        Args:
            start_time: Earliest snapshot time
            chain_id: Restrict to one chain
            ascending: Oldest first when True
            limit: Max rows (None for all)

        Returns:
            Snapshots ordered by time
        """
        conditions = [ContractMetrics.timestamp >= start_time]
        if chain_id is not None:
            conditions.append(ContractMetrics.chain_id == chain_id)

        order = (
            ContractMetrics.timestamp.asc()
            if ascending
            else ContractMetrics.timestamp.desc()
        )
        stmt = select(ContractMetrics).where(and_(*conditions)).order_by(order)
        if limit:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())
