"""
Base repository.

Shared data access for the indexer tables.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Repository bound to one model and one async session.

    Repositories never commit; the calling service owns the transaction.

    Example:
        class OrderRepository(BaseRepository[Order]):
            def __init__(self, session: AsyncSession):
                super().__init__(Order, session)
    """

    def __init__(
        self, model: type[ModelType], session: AsyncSession
    ) -> None:
        self.model = model
        self.session = session

    @property
    def dialect_name(self) -> str:
        """Name of the database dialect behind the session."""
        return self.session.get_bind().dialect.name

    def insert(self):
        """
        Dialect-specific INSERT for the model.

        PostgreSQL and SQLite inserts both support ON CONFLICT clauses,
        so upserts run unchanged against the test database.
        """
        if self.dialect_name == "sqlite":
            return sqlite.insert(self.model)
        return postgresql.insert(self.model)

    async def find_all(self, **filters: Any) -> list[ModelType]:
        """Rows matching equality filters, in insertion order."""
        stmt = select(self.model).filter_by(**filters).order_by(self.model.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, **data: Any) -> ModelType:
        """
        Add a row and flush it.

        Returns:
            The row, refreshed so server defaults are loaded
        """
        entity = self.model(**data)
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def count(self, **filters: Any) -> int:
        stmt = select(func.count()).select_from(self.model)
        if filters:
            stmt = stmt.filter_by(**filters)
        result = await self.session.execute(stmt)
        return result.scalar() or 0
