"""
Block range helpers.
"""

from collections.abc import Iterator
from typing import Any

from app.utils.datetime_utils import utc_now


def split_block_range(
    from_block: int, to_block: int, batch_size: int
) -> Iterator[tuple[int, int]]:
    """
    Split an inclusive block range into consecutive batches.

    Examples:
        >>> list(split_block_range(0, 9999, 5000))
        [(0, 4999), (5000, 9999)]
        >>> list(split_block_range(10, 10, 5000))
        [(10, 10)]
    """
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")

    start = from_block
    while start <= to_block:
        end = min(start + batch_size - 1, to_block)
        yield start, end
        start = end + 1


def failed_range(from_block: int, to_block: int, error: str) -> dict[str, Any]:
    """Record of a block range that could not be fetched."""
    return {
        "from_block": from_block,
        "to_block": to_block,
        "error": error[:500],
        "recorded_at": utc_now().isoformat(),
    }
