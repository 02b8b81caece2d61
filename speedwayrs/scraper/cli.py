"""Scraper CLI interface."""
import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from speedwayrs.core.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Polish speedway match results scraper."
    )

    parser.add_argument(
        "--concurrency",
        type=int,
        default=settings.SCRAPER_CONCURRENCY,
        help="Number of match pages fetched concurrently (default: %(default)s)"
    )

    output = parser.add_mutually_exclusive_group(required=True)
    output.add_argument(
        "-o", "--output-file",
        type=Path,
        help="Location of the output file"
    )
    output.add_argument(
        "--output-folder",
        type=Path,
        help=f"Folder for the output file (written as {settings.SCRAPER_OUTPUT_FILE_NAME})"
    )

    parser.add_argument(
        "-i", "--tick-interval",
        type=int,
        default=settings.SCRAPER_TICK_INTERVAL_MS,
        help="Minimal gap between HTTP request starts, in milliseconds (default: %(default)s)"
    )

    parser.add_argument(
        "--log-file",
        type=str,
        nargs='?',
        const="auto",
        help="Path to save log output. Defaults to logs/scraper_{timestamp}.log if flag is present but no path provided"
    )

    parsed = parser.parse_args(args)
    if parsed.concurrency < 1:
        parser.error("--concurrency must be at least 1")
    if parsed.tick_interval < 0:
        parser.error("--tick-interval must not be negative")
    return parsed


def resolve_output_path(output_file: Optional[Path], output_folder: Optional[Path]) -> Path:
    """Pick the artifact path and make sure its folder exists."""
    if output_file is not None:
        path = output_file
    else:
        path = output_folder / settings.SCRAPER_OUTPUT_FILE_NAME

    path.parent.mkdir(parents=True, exist_ok=True)
    return path


async def run_scraper(
    output_path: Path,
    concurrency: int = 2,
    tick_interval_ms: int = 100,
) -> None:
    """Run one full scrape into ``output_path``."""
    from speedwayrs.scraper.base import RateLimiter
    from speedwayrs.scraper.manager import ScrapeManager
    from speedwayrs.scraper.sources.sportowefakty import SportoweFaktyScraper

    logger.info(
        f"Starting Scraper (concurrency: {concurrency}, tick: {tick_interval_ms}ms, output: {output_path})"
    )

    scraper = SportoweFaktyScraper(rate_limiter=RateLimiter.from_milliseconds(tick_interval_ms))
    try:
        manager = ScrapeManager(scraper, output_path, concurrency=concurrency)
        summary = await manager.run()
    finally:
        await scraper.close()

    logger.info(
        f"Scrape complete: {summary.seasons} seasons, {summary.game_sites} matches, "
        f"{summary.written} written, {summary.failed} failed"
    )


def configure_file_logging(log_file: str) -> str:
    if log_file == "auto":
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_dir = Path("logs")
        log_dir.mkdir(exist_ok=True)
        log_file = str(log_dir / f"scraper_{timestamp}.log")
    else:
        # Ensure the directory for custom path exists
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    logging.getLogger().addHandler(file_handler)
    return log_file


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    args = parse_args(argv)

    if args.log_file:
        log_file = configure_file_logging(args.log_file)
        logger.info(f"Logging to file: {log_file}")

    try:
        output_path = resolve_output_path(args.output_file, args.output_folder)
        asyncio.run(run_scraper(
            output_path=output_path,
            concurrency=args.concurrency,
            tick_interval_ms=args.tick_interval,
        ))
    except OSError as e:
        logger.error(f"Unable to create output: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Scraper aborted: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
