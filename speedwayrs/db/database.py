"""Engine and session management for async SQLAlchemy."""
import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker

from speedwayrs.core.config import settings
from speedwayrs.db.base import Base  # Unified Base import so metadata matches models
import speedwayrs.models  # noqa: F401  (registers tables on Base.metadata)

logger = logging.getLogger(__name__)


def create_engine(database_url: str, pool_size: Optional[int] = None) -> AsyncEngine:
    """Create the async engine shared by every ingestion task.

    The pool size bounds how many records are loaded in parallel.
    """
    kwargs = {"echo": settings.DEBUG, "future": True}
    if not database_url.startswith("sqlite"):
        kwargs["pool_size"] = pool_size or settings.LOADER_POOL_SIZE
        kwargs["pool_pre_ping"] = True
    return create_async_engine(database_url, **kwargs)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the given engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create missing tables from model metadata."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def check_db_connection(session_maker: async_sessionmaker[AsyncSession]) -> bool:
    """Return True if a simple query succeeds, else False."""
    try:
        async with session_maker() as session:
            await session.execute(text("SELECT 1"))
            return True
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False
