"""Database models package.

Ensure all model classes are imported so SQLAlchemy can register them,
avoiding lazy name resolution issues during mapper configuration.
"""

from speedwayrs.models.reference import Team, Player, Stadium  # noqa: F401
from speedwayrs.models.game import Game, Run, RunSquad, PlayerScore  # noqa: F401

__all__ = [
    "Team",
    "Player",
    "Stadium",
    "Game",
    "Run",
    "RunSquad",
    "PlayerScore",
]
