from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from speedwayrs.db.base import Base


class Team(Base):
    """Append-only team reference row, keyed by name."""
    __tablename__ = "team"

    team_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)


class Player(Base):
    """Append-only rider reference row, keyed by (name, surname)."""
    __tablename__ = "player"

    player_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sname: Mapped[str] = mapped_column(String(255), nullable=False)

    __table_args__ = (
        UniqueConstraint("name", "sname", name="uq_player_name_sname"),
    )


class Stadium(Base):
    """Append-only venue reference row, keyed by its description."""
    __tablename__ = "stadium"

    stadium_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    location_desc: Mapped[str] = mapped_column(String(500), unique=True, nullable=False)
