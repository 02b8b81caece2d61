"""Scrape orchestration: discovery, bounded page workers and the single sink."""
import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from speedwayrs.core.exceptions import ScraperError
from speedwayrs.scraper.sink import ResultSink
from speedwayrs.scraper.sources.sportowefakty import GameSite, SportoweFaktyScraper
from speedwayrs.scraper.workers import ScrapeResult, WorkerPool

logger = logging.getLogger(__name__)


@dataclass
class ScrapeSummary:
    """Counts reported at the end of a scrape."""
    seasons: int
    game_sites: int
    written: int
    failed: int


class ScrapeManager:
    """Runs one pass over every match page discoverable from the schedule."""

    def __init__(
        self,
        scraper: SportoweFaktyScraper,
        output_path: Path,
        concurrency: int = 2,
    ):
        self._scraper = scraper
        self._output_path = output_path
        self._pool = WorkerPool(max_workers=concurrency)
        self._season_count = 0

    async def discover_game_sites(self) -> List[GameSite]:
        """Walk seasons one by one and collect every match link."""
        seasons = await self._scraper.get_seasons()
        self._season_count = len(seasons)
        logger.info(f"Found {len(seasons)} seasons")

        sites: List[GameSite] = []
        for season in seasons:
            season_sites = await self._scraper.get_game_sites(season)
            logger.info(f"Season {season.year}: {len(season_sites)} matches")
            sites.extend(season_sites)

        return sites

    async def _scrape_one(
        self,
        site: GameSite,
        queue: "asyncio.Queue[Optional[ScrapeResult]]",
    ) -> None:
        try:
            game = await self._scraper.get_game(site)
            result = ScrapeResult(url=site.url, game=game)
        except Exception as e:
            result = ScrapeResult(url=site.url, error=e)
        await queue.put(result)

    async def run(self) -> ScrapeSummary:
        """Discover, scrape and write everything; returns a summary."""
        sink = ResultSink(self._output_path)
        sink.open()

        queue: "asyncio.Queue[Optional[ScrapeResult]]" = asyncio.Queue()
        sink_task = asyncio.create_task(sink.run(queue))

        try:
            sites = await self.discover_game_sites()
            logger.info(f"Scraping {len(sites)} match pages with {self._pool.max_workers} workers")

            outcomes = await self._pool.run(sites, lambda site: self._scrape_one(site, queue))
            broken = [o for o in outcomes if isinstance(o, BaseException)]
            if broken:
                raise ScraperError(f"{len(broken)} workers could not deliver results: {broken[0]}")
        finally:
            await queue.put(None)
            await sink_task

        return ScrapeSummary(
            seasons=self._season_count,
            game_sites=len(sites),
            written=sink.written,
            failed=sink.failed,
        )
