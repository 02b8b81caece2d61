"""Get-or-create for the append-only reference tables (team, player, stadium)."""
import logging
from typing import Any, Type

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from speedwayrs.core.exceptions import ResolutionError
from speedwayrs.db.base import Base
from speedwayrs.models import Player, Stadium, Team

logger = logging.getLogger(__name__)


class EntityResolver:
    """Maps natural keys to surrogate ids, inserting rows that do not exist yet.

    Each lookup runs in its own short session and commits immediately, so two
    loaders racing on the same key end up sharing one row: the loser of the
    insert hits the unique constraint and reads back the winner's id.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def _select_id(self, session: AsyncSession, id_column: Any, model: Type[Base], **natural_key: Any):
        stmt = select(id_column).where(
            *[getattr(model, column) == value for column, value in natural_key.items()]
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def resolve(self, model: Type[Base], id_column: Any, **natural_key: Any) -> int:
        async with self._session_maker() as session:
            existing = await self._select_id(session, id_column, model, **natural_key)
            if existing is not None:
                return existing

            row = model(**natural_key)
            session.add(row)
            try:
                await session.flush()
                new_id = getattr(row, id_column.key)
                await session.commit()
                logger.debug(f"Created {model.__tablename__} {natural_key} -> {new_id}")
                return new_id
            except IntegrityError:
                await session.rollback()
                logger.debug(f"Concurrent insert of {model.__tablename__} {natural_key}, re-reading")

            existing = await self._select_id(session, id_column, model, **natural_key)
            if existing is None:
                raise ResolutionError(f"Could not resolve {model.__tablename__} {natural_key}")
            return existing

    async def resolve_team(self, name: str) -> int:
        return await self.resolve(Team, Team.team_id, team_name=name.strip())

    async def resolve_player(self, name: str, surname: str) -> int:
        return await self.resolve(Player, Player.player_id, name=name, sname=surname)

    async def resolve_stadium(self, location: str) -> int:
        return await self.resolve(Stadium, Stadium.stadium_id, location_desc=location)
