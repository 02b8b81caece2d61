"""Concurrent worker pool for scraping."""
import asyncio
import logging
from dataclasses import dataclass
from typing import TypeVar, Callable, Awaitable, List, Optional

from speedwayrs.schemas.game import GameInfo

logger = logging.getLogger(__name__)
T = TypeVar('T')
R = TypeVar('R')


@dataclass
class ScrapeResult:
    """Outcome of one match page: either a parsed game or the error that stopped it."""
    url: str
    game: Optional[GameInfo] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.game is not None


class WorkerPool:
    """Pool of concurrent workers with limited parallelism."""

    def __init__(self, max_workers: int = 2):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self._max_workers = max_workers
        self._semaphore = asyncio.Semaphore(max_workers)

    @property
    def max_workers(self) -> int:
        return self._max_workers

    async def run(
        self,
        items: List[T],
        task: Callable[[T], Awaitable[R]]
    ) -> List[R]:
        """Run task on all items with limited concurrency; waits for all of them."""

        async def bounded_task(item: T) -> R:
            async with self._semaphore:
                return await task(item)

        tasks = [bounded_task(item) for item in items]
        return await asyncio.gather(*tasks, return_exceptions=True)
