"""
Database decorators for automatic error handling and rollback.

Provides decorators for service and repository methods that keep their
session on ``self.session``.
"""

from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from loguru import logger


T = TypeVar("T")


def with_rollback_on_error(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator that rolls back ``self.session`` on any exception.

    Usage:
        class OrderRepository:
            @with_rollback_on_error
            async def upsert_many(self, rows):
                ...

    The decorator will:
    1. Execute the wrapped method
    2. If an exception occurs, call self.session.rollback()
    3. Re-raise the exception for proper error handling

    Args:
        func: Async method whose instance has a ``session`` attribute

    Returns:
        Wrapped method with automatic rollback on error
    """
    @wraps(func)
    async def wrapper(self: Any, *args: Any, **kwargs: Any) -> T:
        session = getattr(self, "session", None)
        if session is None:
            logger.warning(
                f"Method {func.__name__} decorated with @with_rollback_on_error "
                f"but instance has no session. Rollback will not be performed."
            )
            return await func(self, *args, **kwargs)

        try:
            return await func(self, *args, **kwargs)
        except Exception as e:
            try:
                await session.rollback()
                logger.info(
                    f"Rollback performed in {func.__name__} due to error: {type(e).__name__}"
                )
            except Exception as rollback_error:
                logger.error(
                    f"Failed to rollback in {func.__name__}: {rollback_error}"
                )
            raise

    return wrapper
