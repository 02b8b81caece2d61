"""Match record exchanged between the scraper and the loader.

One ``GameInfo`` is produced per scraped match page, serialized once into the
scraper artifact and consumed once by the loader. Result codes use the
externally tagged JSON shape (``{"Score": 3}``, ``"Fall"``) so artifacts and
stored score columns stay readable by the serving API.
"""
from __future__ import annotations

import enum
import json
import re
from datetime import datetime
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_serializer, model_validator

RUN_COUNT = 15
RIDERS_PER_RUN = 4

# Roster tables use this name for an empty slot
NO_PLAYER = ("brak", "zawodnika")

_INT_RE = re.compile(r"^\d+$")


class ResultKind(str, enum.Enum):
    SCORE = "Score"
    SCORE_WITH_STAR = "ScoreWithStar"
    FALL = "Fall"
    RESERVE = "Reserve"
    RESIGN = "Resign"
    TAPE = "Tape"
    NOT_FINISHED = "NotFinished"
    NONE = "None"


SCORED_KINDS = (ResultKind.SCORE, ResultKind.SCORE_WITH_STAR)


class Helmet(str, enum.Enum):
    RED = "Red"
    YELLOW = "Yellow"
    BLUE = "Blue"
    WHITE = "White"

    @classmethod
    def from_class_names(cls, text: str) -> Optional["Helmet"]:
        """Pick the helmet colour mentioned in a CSS class string."""
        for colour in (cls.RED, cls.BLUE, cls.YELLOW, cls.WHITE):
            if colour.value.lower() in text:
                return colour
        return None


class PlayerResult(BaseModel):
    """Coded outcome of one rider in one heat (or one roster round)."""
    kind: ResultKind
    points: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="before")
    @classmethod
    def from_tagged(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"kind": data}
        if isinstance(data, dict) and len(data) == 1 and "kind" not in data:
            (kind, points), = data.items()
            return {"kind": kind, "points": points}
        return data

    @model_validator(mode="after")
    def check_points(self) -> "PlayerResult":
        scored = self.kind in SCORED_KINDS
        if scored and self.points is None:
            raise ValueError(f"{self.kind.value} requires points")
        if not scored and self.points is not None:
            raise ValueError(f"{self.kind.value} does not carry points")
        return self

    @model_serializer
    def to_tagged(self) -> Any:
        if self.kind in SCORED_KINDS:
            return {self.kind.value: self.points}
        return self.kind.value

    @classmethod
    def score(cls, points: int) -> "PlayerResult":
        return cls(kind=ResultKind.SCORE, points=points)

    @classmethod
    def score_with_star(cls, points: int) -> "PlayerResult":
        return cls(kind=ResultKind.SCORE_WITH_STAR, points=points)

    @classmethod
    def of(cls, kind: ResultKind) -> "PlayerResult":
        return cls(kind=kind)

    @classmethod
    def parse(cls, code: str) -> "PlayerResult":
        """Decode a result code as printed on the match page.

        Raises:
            ValueError: if the code is not part of the grammar.
        """
        text = code.strip()
        if text == "":
            return cls.of(ResultKind.NONE)
        if text == "-":
            return cls.of(ResultKind.RESERVE)
        if text in ("u", "U", "w"):
            return cls.of(ResultKind.FALL)
        if text == "d":
            return cls.of(ResultKind.RESIGN)
        if text.endswith("*"):
            number = text.rstrip("*")
            if not _INT_RE.match(number):
                raise ValueError(f"Invalid starred score [{text}]")
            return cls.score_with_star(int(number))
        if not _INT_RE.match(text):
            raise ValueError(f"Invalid score [{text}]")
        return cls.score(int(text))

    def to_db(self) -> str:
        """Compact tagged JSON stored in score columns."""
        return json.dumps(self.model_dump(), separators=(",", ":"), ensure_ascii=False)


class Player(BaseModel):
    """Rider row from a team's roster table."""
    name: str
    surname: str
    number: int = Field(ge=0)
    scores: List[PlayerResult] = Field(default_factory=list)

    @property
    def is_placeholder(self) -> bool:
        return (self.name.lower(), self.surname.lower()) == NO_PLAYER

    def point_total(self) -> Tuple[int, int]:
        """Return (points, bonus count) summed over the roster rounds."""
        base = 0
        bonus = 0
        for result in self.scores:
            if result.kind in SCORED_KINDS:
                base += result.points
            if result.kind == ResultKind.SCORE_WITH_STAR:
                bonus += 1
        return base, bonus


class Team(BaseModel):
    name: str
    points: int = Field(ge=0)
    players: List[Player] = Field(default_factory=list)

    def roster_points(self) -> int:
        return sum(player.point_total()[0] for player in self.players)


class PlayerRunScore(BaseModel):
    """One rider's entry in a heat."""
    name: str
    score: PlayerResult
    helmet: Optional[Helmet] = None

    def split_name(self) -> Tuple[str, str]:
        """Return (name, surname) from the "Name Surname" label."""
        name, _, surname = self.name.strip().partition(" ")
        if not surname:
            raise ValueError(f"Rider label [{self.name}] has no surname")
        return name, surname.strip()


class Run(BaseModel):
    """One heat: position, optional time (seconds, hundredths) and four riders."""
    number: int = Field(ge=1, le=RUN_COUNT)
    time: Optional[Tuple[int, int]] = None
    player_score: List[PlayerRunScore] = Field(min_length=RIDERS_PER_RUN, max_length=RIDERS_PER_RUN)

    @field_validator("time")
    @classmethod
    def check_time(cls, v: Optional[Tuple[int, int]]) -> Optional[Tuple[int, int]]:
        if v is not None and (v[0] < 0 or v[1] < 0):
            raise ValueError("Run time components must be non-negative")
        return v


class GameInfo(BaseModel):
    """Canonical unit of work handed from the scraper to the loader."""
    team1: Team
    team2: Team
    stadium: str
    date: datetime
    runs: List[Run] = Field(default_factory=list)

    @field_validator("runs")
    @classmethod
    def check_unique_positions(cls, v: List[Run]) -> List[Run]:
        numbers = [run.number for run in v]
        if len(numbers) != len(set(numbers)):
            raise ValueError("Run positions must be unique within a game")
        return v

    def all_players(self) -> List[Player]:
        return [*self.team1.players, *self.team2.players]
