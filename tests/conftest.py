"""
Pytest configuration and fixtures.
"""
from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from speedwayrs.db.database import create_engine, create_session_maker, create_tables

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "sportowefakty"


@pytest.fixture
def html_samples():
    """Load HTML samples from fixtures."""
    samples = {}
    for path in FIXTURES_DIR.glob("*.html"):
        samples[path.stem] = path.read_text(encoding="utf-8")
    return samples


@pytest.fixture
def match_url() -> str:
    return "https://sportowefakty.wp.pl/zuzel/relacja/108001-falubaz-zielona-gora-unia-leszno"


@pytest.fixture
def game_info(html_samples, match_url):
    """GameInfo parsed from the Falubaz - Unia match page."""
    from speedwayrs.scraper.sources.sportowefakty import SportoweFaktyParser

    return SportoweFaktyParser().parse_game(html_samples["match_falubaz_unia"], match_url)


@pytest_asyncio.fixture
async def isolated_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Fresh file-backed SQLite database per test, schema created."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'speedway.db'}")
    await create_tables(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(isolated_engine) -> async_sessionmaker[AsyncSession]:
    return create_session_maker(isolated_engine)
