"""
Order repository.

Data access layer for ingested on-chain orders.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import and_, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.order import Order
from app.repositories.base import BaseRepository
from app.utils.datetime_utils import ensure_utc
from app.utils.db_decorators import with_rollback_on_error

# API sort keys -> columns
SORT_COLUMNS = {
    "timestamp": Order.timestamp,
    "blockNumber": Order.block_number,
    "amount": Order.amount,
    "userWallet": Order.user_wallet,
}

# strftime patterns used to bucket timestamps on SQLite
_SQLITE_BUCKETS = {
    "hour": "%Y-%m-%d %H:00:00",
    "day": "%Y-%m-%d 00:00:00",
    "month": "%Y-%m-01 00:00:00",
}


@dataclass
class OrderFilters:
    """Optional filters shared by the order queries."""

    chain_id: int | None = None
    user_wallet: str | None = None
    token_address: str | None = None
    start_time: datetime | None = None

    def conditions(self) -> list[Any]:
        conditions = []
        if self.chain_id is not None:
            conditions.append(Order.chain_id == self.chain_id)
        if self.user_wallet:
            conditions.append(Order.user_wallet == self.user_wallet.lower())
        if self.token_address:
            conditions.append(Order.token_address == self.token_address.lower())
        if self.start_time is not None:
            conditions.append(Order.timestamp >= self.start_time)
        return conditions


class OrderRepository(BaseRepository[Order]):
    """Repository for orders."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(Order, session)

    @with_rollback_on_error
    async def upsert_many(self, rows: list[dict[str, Any]]) -> int:
        """
        Insert orders, ignoring ones that already exist.

        Conflicts on (chain_id, order_id) or (chain_id, tx_hash) leave
        the stored row untouched.

        Args:
            rows: Order column values

        Returns:
            Number of rows actually inserted
        """
        if not rows:
            return 0

        stmt = (
            self.insert()
            .values(rows)
            .on_conflict_do_nothing()
            .returning(Order.id)
        )
        result = await self.session.execute(stmt)
        inserted = len(result.all())
        await self.session.flush()
        return inserted

    async def count_for_chain(self, chain_id: int) -> int:
        """Count stored orders of one chain."""
        return await self.count(chain_id=chain_id)

    async def find_filtered(
        self,
        filters: OrderFilters,
        page: int = 1,
        limit: int = 50,
        sort_by: str = "timestamp",
        descending: bool = True,
    ) -> tuple[list[Order], int]:
        """
        Find orders page by page.

        Args:
            filters: Query filters
            page: Page number (1-indexed)
            limit: Items per page
            sort_by: One of SORT_COLUMNS
            descending: Sort direction

        Returns:
            Tuple of (orders, total_count)
        """
        conditions = filters.conditions()

        count_stmt = select(func.count(Order.id))
        if conditions:
            count_stmt = count_stmt.where(and_(*conditions))
        total = (await self.session.execute(count_stmt)).scalar() or 0

        column = SORT_COLUMNS.get(sort_by, Order.timestamp)
        order_by = column.desc() if descending else column.asc()

        stmt = select(Order)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        stmt = (
            stmt.order_by(order_by, Order.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def find_by_order_id(
        self, order_id: str, chain_id: int | None = None
    ) -> list[Order]:
        """
        Find orders by on-chain order id.

        The same id can exist on several chains.
        """
        filters: dict[str, Any] = {"order_id": order_id}
        if chain_id is not None:
            filters["chain_id"] = chain_id
        return await self.find_all(**filters)

    async def get_recent(self, count: int) -> list[Order]:
        """Get the newest orders across all chains."""
        stmt = (
            select(Order)
            .order_by(Order.timestamp.desc(), Order.id.desc())
            .limit(count)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_summary(self, filters: OrderFilters) -> dict[str, Any]:
        """
        Aggregate order count, raw volume and distinct participants.

        Returns:
            Dict with total_orders, total_volume (Decimal),
            average_amount (Decimal), unique_users, unique_tokens
        """
        stmt = select(
            func.count(Order.id),
            func.coalesce(func.sum(Order.amount), 0),
            func.count(distinct(Order.user_wallet)),
            func.count(distinct(Order.token_address)),
        )
        conditions = filters.conditions()
        if conditions:
            stmt = stmt.where(and_(*conditions))

        row = (await self.session.execute(stmt)).one()
        total_orders = row[0] or 0
        total_volume = Decimal(row[1] or 0)
        return {
            "total_orders": total_orders,
            "total_volume": total_volume,
            "average_amount": (
                total_volume / total_orders if total_orders else Decimal(0)
            ),
            "unique_users": row[2] or 0,
            "unique_tokens": row[3] or 0,
        }

    async def get_top(
        self,
        group_by: str,
        filters: OrderFilters,
        limit: int = 10,
    ) -> list[dict[str, Any]]:
        """
        Top groups by raw volume.

        Args:
            group_by: "token" (chain + token address), "user" or "chain"
            filters: Query filters
            limit: Max groups

        Returns:
            Dicts with the group keys, orders and volume
        """
        if group_by == "token":
            keys = [Order.chain_id, Order.token_address]
        elif group_by == "user":
            keys = [Order.user_wallet]
        elif group_by == "chain":
            keys = [Order.chain_id]
        else:
            raise ValueError(f"Unknown grouping: {group_by}")

        volume = func.coalesce(func.sum(Order.amount), 0)
        stmt = select(
            *keys,
            func.count(Order.id),
            volume,
            func.count(distinct(Order.user_wallet)),
            func.max(Order.timestamp),
        )
        conditions = filters.conditions()
        if conditions:
            stmt = stmt.where(and_(*conditions))
        stmt = stmt.group_by(*keys).order_by(volume.desc()).limit(limit)

        rows = (await self.session.execute(stmt)).all()
        groups = []
        for row in rows:
            entry = {key.key: value for key, value in zip(keys, row)}
            entry.update(
                orders=row[len(keys)],
                volume=Decimal(row[len(keys) + 1] or 0),
                unique_users=row[len(keys) + 2],
                last_order_at=(
                    ensure_utc(row[len(keys) + 3])
                    if row[len(keys) + 3] is not None
                    else None
                ),
            )
            groups.append(entry)
        return groups

    async def get_timeline(
        self, filters: OrderFilters, interval: str
    ) -> list[dict[str, Any]]:
        """
        Order count and raw volume per time bucket.

        Args:
            filters: Query filters
            interval: "hour", "day" or "month"

        Returns:
            Buckets in ascending time order
        """
        if interval not in _SQLITE_BUCKETS:
            raise ValueError(f"Unknown interval: {interval}")

        if self.dialect_name == "sqlite":
            bucket = func.strftime(_SQLITE_BUCKETS[interval], Order.timestamp)
        else:
            bucket = func.date_trunc(interval, Order.timestamp)
        bucket = bucket.label("bucket")

        stmt = select(
            bucket,
            func.count(Order.id),
            func.coalesce(func.sum(Order.amount), 0),
            func.count(distinct(Order.user_wallet)),
            func.count(distinct(Order.token_address)),
        )
        conditions = filters.conditions()
        if conditions:
            stmt = stmt.where(and_(*conditions))
        stmt = stmt.group_by(bucket).order_by(bucket)

        timeline = []
        for row in (await self.session.execute(stmt)).all():
            started = row[0]
            if isinstance(started, str):
                started = datetime.fromisoformat(started)
            order_count = row[1]
            volume = Decimal(row[2] or 0)
            timeline.append(
                {
                    "timestamp": ensure_utc(started),
                    "order_count": order_count,
                    "total_volume": volume,
                    "average_amount": volume / order_count if order_count else Decimal(0),
                    "unique_users": row[3],
                    "unique_tokens": row[4],
                }
            )
        return timeline
