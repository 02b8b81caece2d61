from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from speedwayrs.db.base import Base, BigIntPK


class Game(Base):
    """One scraped match. There is no natural key: every load inserts a new row."""
    __tablename__ = "game"

    game_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_1: Mapped[int] = mapped_column(Integer, ForeignKey("team.team_id"), nullable=False)
    team_2: Mapped[int] = mapped_column(Integer, ForeignKey("team.team_id"), nullable=False)
    score_1: Mapped[int] = mapped_column(Integer, nullable=False)
    score_2: Mapped[int] = mapped_column(Integer, nullable=False)
    place: Mapped[int] = mapped_column(Integer, ForeignKey("stadium.stadium_id"), nullable=False)
    game_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class Run(Base):
    """A single heat of a match."""
    __tablename__ = "run"

    run_id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    game_id: Mapped[int] = mapped_column(Integer, ForeignKey("game.game_id", ondelete="CASCADE"), nullable=False)
    run_position: Mapped[int] = mapped_column(Integer, nullable=False)
    time_integer: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    time_decimal: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint("game_id", "run_position", name="uq_run_game_position"),
        CheckConstraint("run_position BETWEEN 1 AND 15", name="check_run_position"),
    )


class RunSquad(Base):
    """Result of one rider in one heat."""
    __tablename__ = "run_squad"

    run_id: Mapped[int] = mapped_column(BigIntPK, ForeignKey("run.run_id", ondelete="CASCADE"), primary_key=True)
    player_id: Mapped[int] = mapped_column(Integer, ForeignKey("player.player_id"), primary_key=True)
    result: Mapped[str] = mapped_column(String(64), nullable=False)  # tagged JSON, e.g. {"Score":3}
    helmet: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)


class PlayerScore(Base):
    """Per-round score cell from the match roster tables."""
    __tablename__ = "player_score"

    game_id: Mapped[int] = mapped_column(Integer, ForeignKey("game.game_id", ondelete="CASCADE"), primary_key=True)
    player_id: Mapped[int] = mapped_column(Integer, ForeignKey("player.player_id"), primary_key=True)
    round: Mapped[int] = mapped_column(Integer, primary_key=True)
    score: Mapped[str] = mapped_column(String(64), nullable=False)
