"""Loader CLI: reads a scraper artifact and writes it into the database."""
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from speedwayrs.core.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Load scraped speedway matches into the database. "
                    "The connection string is read from LOADER_POSTGRES."
    )
    parser.add_argument(
        "path",
        type=Path,
        help="Scraper output file"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=settings.LOADER_WORKERS,
        help="Number of records loaded in parallel (default: %(default)s)"
    )

    parsed = parser.parse_args(args)
    if parsed.workers < 1:
        parser.error("--workers must be at least 1")
    return parsed


async def run_loader(path: Path, database_url: str, workers: int = 3) -> int:
    """Load every record from ``path``. Returns the process exit code."""
    from speedwayrs.db.database import (
        check_db_connection,
        create_engine,
        create_session_maker,
        create_tables,
    )
    from speedwayrs.loader.ingest import IngestEngine
    from speedwayrs.loader.reader import iter_game_infos

    engine = create_engine(database_url)
    try:
        session_maker = create_session_maker(engine)
        if not await check_db_connection(session_maker):
            return 1

        if settings.LOADER_CREATE_SCHEMA:
            await create_tables(engine)

        ingest = IngestEngine(session_maker, workers=workers)
        summary = await ingest.run(iter_game_infos(path))
    finally:
        await engine.dispose()

    for failure in summary.failures:
        logger.warning(f"Not loaded: {failure.label} ({failure.error})")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    args = parse_args(argv)

    if not settings.LOADER_POSTGRES:
        logger.error("LOADER_POSTGRES is not set")
        return 1
    if not args.path.is_file():
        logger.error(f"Input file {args.path} does not exist")
        return 1

    try:
        return asyncio.run(run_loader(args.path, settings.LOADER_POSTGRES, workers=args.workers))
    except Exception as e:
        logger.exception(f"Loader aborted: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
