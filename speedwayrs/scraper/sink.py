"""Single writer for the scraper artifact."""
import asyncio
import logging
from pathlib import Path
from typing import IO, Optional

from speedwayrs.scraper.workers import ScrapeResult

logger = logging.getLogger(__name__)


class ResultSink:
    """Drains scrape results and appends each game to one output file.

    Games are written as pretty-printed JSON documents placed back to back,
    in the order results arrive. Failed pages are logged and dropped.
    """

    def __init__(self, path: Path):
        self._path = path
        self._file: Optional[IO[str]] = None
        self.written = 0
        self.failed = 0

    def open(self) -> None:
        """Create (or truncate) the output file. Errors here are fatal for the run."""
        self._file = open(self._path, "w", encoding="utf-8")

    async def run(self, queue: "asyncio.Queue[Optional[ScrapeResult]]") -> None:
        """Consume results until the ``None`` sentinel closes the channel."""
        if self._file is None:
            self.open()

        try:
            while True:
                result = await queue.get()
                try:
                    if result is None:
                        break
                    self._handle(result)
                finally:
                    queue.task_done()
        finally:
            self._close()

    def _handle(self, result: ScrapeResult) -> None:
        if not result.ok:
            self.failed += 1
            logger.error(f"Failed to scrape {result.url}: {result.error}")
            return

        try:
            self._file.write(result.game.model_dump_json(indent=2))
            self.written += 1
        except OSError as e:
            logger.error(f"Error while writing {result.url} to {self._path}: {e}")

    def _close(self) -> None:
        if self._file is None:
            return
        try:
            self._file.flush()
        except OSError as e:
            logger.error(f"Error while flushing {self._path}: {e}")
        finally:
            self._file.close()
            self._file = None
        logger.info(f"Wrote {self.written} games to {self._path} ({self.failed} pages failed)")
