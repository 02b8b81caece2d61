"""Rate limiter for respectful scraping."""
import asyncio
import time
from typing import Optional


class RateLimiter:
    """Enforces a minimum gap between request starts across all callers.

    A single instance is shared by every worker. Only dispatch times are
    spaced, so requests may still overlap on the wire.
    """

    def __init__(self, tick_interval: float = 0.1):
        self.tick_interval = tick_interval
        self._last_request: Optional[float] = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_milliseconds(cls, tick_interval_ms: int) -> "RateLimiter":
        return cls(tick_interval_ms / 1000.0)

    async def wait(self) -> None:
        """Wait until the next request may start, then claim the slot."""
        async with self._lock:
            if self._last_request is not None:  # Not first request
                elapsed = time.monotonic() - self._last_request
                if elapsed < self.tick_interval:
                    await asyncio.sleep(self.tick_interval - elapsed)

            self._last_request = time.monotonic()
