"""
Minimum-interval rate limiter for outbound embedding requests.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional
from rag_backend.utils.logging import get_logger

logger = get_logger(__name__)


class RateLimiter:
    """
    Spaces calls at least ``min_interval`` seconds apart.

    Behaves like a token bucket of size one. Owned by a single client
    instance; the clock and sleep are injectable for tests.
    """

    def __init__(
        self,
        min_interval: float,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None
    ):
        self.min_interval = max(0.0, float(min_interval))
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._last_request: Optional[float] = None
        self._lock = asyncio.Lock()

    async def acquire(self) -> float:
        """
        Block until the interval since the previous acquire has elapsed.

        Returns:
            Seconds spent waiting
        """
        async with self._lock:
            waited = 0.0
            if self._last_request is not None:
                elapsed = self._clock() - self._last_request
                if elapsed < self.min_interval:
                    waited = self.min_interval - elapsed
                    logger.info(f"⏱️ Rate limiting: waiting {waited:.2f}s before next embedding request")
                    await self._sleep(waited)

            self._last_request = self._clock()
            return waited
