"""
Database configuration.

Async SQLAlchemy engines and session factories. Long-running processes
(API, scheduler) share a pooled engine; queued tasks build their own.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from app.config.settings import settings


def create_engine(pooled: bool = True) -> AsyncEngine:
    """
    Engine for settings.database_url.

    Args:
        pooled: Keep a connection pool; without it every session opens
            its own connection, which suits per-thread event loops
    """
    if pooled:
        return create_async_engine(
            settings.database_url,
            echo=settings.database_echo,
            pool_pre_ping=True,
        )
    return create_async_engine(
        settings.database_url,
        echo=settings.database_echo,
        poolclass=NullPool,
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async_engine = create_engine()
async_session_maker = create_session_maker(async_engine)
