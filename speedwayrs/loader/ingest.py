"""Loads GameInfo records into the relational schema.

Every record goes through the same lifecycle:

    PARSED -> ENTITIES_RESOLVING -> TRANSACTION_OPEN -> COMMITTED
                                                     -> ABORTED

Reference rows (teams, stadium, players) are resolved outside the game
transaction and survive an aborted record. Everything owned by the game is
written in one transaction and disappears together on failure.
"""
import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, Iterable, List, Optional, Set, Tuple, Union

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from speedwayrs.db.base import assume_utc
from speedwayrs.loader.resolver import EntityResolver
from speedwayrs.models import Game, PlayerScore, Run, RunSquad
from speedwayrs.schemas.game import GameInfo

logger = logging.getLogger(__name__)

PlayerKey = Tuple[str, str]


class IngestState(str, enum.Enum):
    PARSED = "parsed"
    ENTITIES_RESOLVING = "entities_resolving"
    TRANSACTION_OPEN = "transaction_open"
    COMMITTED = "committed"
    ABORTED = "aborted"


@dataclass
class IngestOutcome:
    """What happened to one record."""
    label: str
    state: IngestState = IngestState.PARSED
    game_id: Optional[int] = None
    error: Optional[Exception] = None


@dataclass
class IngestSummary:
    committed: int = 0
    aborted: int = 0
    failures: List[IngestOutcome] = field(default_factory=list)

    def record(self, outcome: IngestOutcome) -> None:
        if outcome.state == IngestState.COMMITTED:
            self.committed += 1
        else:
            self.aborted += 1
            self.failures.append(outcome)


def describe(game: GameInfo) -> str:
    return f"{game.team1.name} - {game.team2.name} ({game.date:%Y-%m-%d})"


class IngestEngine:
    """Writes records to the database with up to ``workers`` in flight."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession], workers: int = 3):
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self._session_maker = session_maker
        self._resolver = EntityResolver(session_maker)
        self._workers = workers

    async def _resolve_players(self, game: GameInfo) -> Dict[PlayerKey, int]:
        ids: Dict[PlayerKey, int] = {}

        for player in game.all_players():
            if player.is_placeholder:
                continue
            key = (player.name, player.surname)
            if key not in ids:
                ids[key] = await self._resolver.resolve_player(*key)

        # Heat participants are usually on a roster already, but not always
        for run in game.runs:
            for entry in run.player_score:
                key = entry.split_name()
                if key not in ids:
                    ids[key] = await self._resolver.resolve_player(*key)

        return ids

    async def ingest(self, game: GameInfo) -> IngestOutcome:
        """Load one record. Failures are logged and reported, never raised."""
        outcome = IngestOutcome(label=describe(game))

        try:
            outcome.state = IngestState.ENTITIES_RESOLVING
            team_1 = await self._resolver.resolve_team(game.team1.name)
            team_2 = await self._resolver.resolve_team(game.team2.name)
            stadium = await self._resolver.resolve_stadium(game.stadium)
            player_ids = await self._resolve_players(game)

            async with self._session_maker() as session:
                async with session.begin():
                    outcome.state = IngestState.TRANSACTION_OPEN
                    outcome.game_id = await self._write_game(
                        session, game, team_1, team_2, stadium, player_ids
                    )
            outcome.state = IngestState.COMMITTED
            logger.info(f"Loaded game {outcome.game_id}: {outcome.label}")

        except Exception as e:
            logger.error(f"Error loading {outcome.label} (stopped while {outcome.state.value}): {e}")
            outcome.state = IngestState.ABORTED
            outcome.game_id = None
            outcome.error = e

        return outcome

    async def _write_game(
        self,
        session: AsyncSession,
        game: GameInfo,
        team_1: int,
        team_2: int,
        stadium: int,
        player_ids: Dict[PlayerKey, int],
    ) -> int:
        row = Game(
            team_1=team_1,
            team_2=team_2,
            score_1=game.team1.points,
            score_2=game.team2.points,
            place=stadium,
            game_date=assume_utc(game.date),
        )
        session.add(row)
        await session.flush()

        seen: Set[int] = set()
        for player in game.all_players():
            if player.is_placeholder:
                continue
            player_id = player_ids[(player.name, player.surname)]
            if player_id in seen:
                logger.warning(f"Rider {player.name} {player.surname} listed twice in {describe(game)}")
                continue
            seen.add(player_id)
            for index, score in enumerate(player.scores):
                session.add(PlayerScore(
                    game_id=row.game_id,
                    player_id=player_id,
                    round=index,
                    score=score.to_db(),
                ))

        for run in game.runs:
            time_integer, time_decimal = run.time if run.time is not None else (None, None)
            run_row = Run(
                game_id=row.game_id,
                run_position=run.number,
                time_integer=time_integer,
                time_decimal=time_decimal,
            )
            session.add(run_row)
            await session.flush()

            for entry in run.player_score:
                session.add(RunSquad(
                    run_id=run_row.run_id,
                    player_id=player_ids[entry.split_name()],
                    result=entry.score.to_db(),
                    helmet=entry.helmet.value if entry.helmet else None,
                ))

        await session.flush()
        return row.game_id

    async def run(self, records: Union[Iterable[GameInfo], AsyncIterator[GameInfo]]) -> IngestSummary:
        """Feed records through a bounded queue to the worker tasks.

        A failure of the record source stops the workers and is re-raised;
        records already committed stay in the database.
        """
        summary = IngestSummary()
        queue: "asyncio.Queue[Optional[GameInfo]]" = asyncio.Queue(maxsize=self._workers * 2)

        async def worker() -> None:
            while True:
                game = await queue.get()
                try:
                    if game is None:
                        return
                    summary.record(await self.ingest(game))
                finally:
                    queue.task_done()

        tasks = [asyncio.create_task(worker()) for _ in range(self._workers)]
        try:
            if hasattr(records, "__aiter__"):
                async for game in records:
                    await queue.put(game)
            else:
                # File reads happen in a worker thread so ingestion keeps running
                iterator = iter(records)
                while True:
                    game = await asyncio.to_thread(next, iterator, None)
                    if game is None:
                        break
                    await queue.put(game)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        for _ in tasks:
            await queue.put(None)
        await asyncio.gather(*tasks)

        logger.info(f"Loading finished: {summary.committed} committed, {summary.aborted} aborted")
        return summary
