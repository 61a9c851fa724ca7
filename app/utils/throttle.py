"""
Call throttle.

Single-slot rate limiter: every call waits until a fixed cooldown has
passed since the previous call started. Used in front of RPC endpoints
and the price API.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from types import TracebackType


class CallThrottle:
    """
    Enforce a minimum interval between calls.

    Usage:
        throttle = CallThrottle(min_interval=1.0)
        async with throttle:
            await do_rpc_call()

    The slot is held only while waiting, so calls are spaced by
    ``min_interval`` but are not serialized for their whole duration.
    """

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize throttle.

        Args:
            min_interval: Cooldown between two calls in seconds
            clock: Monotonic clock (injectable for tests)
            sleep: Async sleep function (injectable for tests)
        """
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_call: float | None = None
        self._lock = asyncio.Lock()

    def seconds_until_ready(self) -> float:
        """Seconds left before the next call may start."""
        if self._last_call is None:
            return 0.0
        elapsed = self._clock() - self._last_call
        return max(0.0, self.min_interval - elapsed)

    async def wait(self) -> float:
        """
        Wait for the cooldown and claim the slot.

        Returns:
            Seconds spent waiting
        """
        async with self._lock:
            delay = self.seconds_until_ready()
            if delay > 0:
                await self._sleep(delay)
            self._last_call = self._clock()
            return delay

    async def __aenter__(self) -> "CallThrottle":
        await self.wait()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        return None
