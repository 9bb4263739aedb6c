"""
Data models for the plus/minus ledger.
Domain objects only; no persistence or API logic.

Players and games are independent top-level records; stat rows belong to a
game and point at a player. Leaderboard rows and scheduled games are derived
and never stored.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any


# ---------- Team label ----------
class Team(str, Enum):
    A = "A"
    B = "B"

    @property
    def other(self) -> "Team":
        return Team.B if self is Team.A else Team.A


# ---------- Player ----------
@dataclass
class Player:
    """A pickup regular. Jersey number is optional."""
    id: str
    name: str
    number: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "number": self.number}


# ---------- Game ----------
@dataclass
class Game:
    """
    One scheduled match/session.
    score_a and score_b are both None until finalized, then both set.
    locked blocks team and score changes until explicitly cleared.
    """
    id: str
    date: date
    name: str
    score_a: int | None = None
    score_b: int | None = None
    locked: bool = False

    @property
    def is_finalized(self) -> bool:
        return self.score_a is not None and self.score_b is not None

    @property
    def winner(self) -> Team | None:
        """A if score_a is strictly greater, else B; None until finalized."""
        if not self.is_finalized:
            return None
        return Team.A if self.score_a > self.score_b else Team.B

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "name": self.name,
            "score_a": self.score_a,
            "score_b": self.score_b,
            "locked": self.locked,
        }


# ---------- StatRecord ----------
@dataclass
class StatRecord:
    """
    Per-player plus/minus for one game. At most one per (game_id, player_id).
    id is None for rows that have not been inserted yet.
    """
    id: str | None
    game_id: str
    player_id: str
    team: Team
    plus_minus: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "game_id": self.game_id,
            "player_id": self.player_id,
            "team": self.team.value,
            "plus_minus": self.plus_minus,
        }


# ---------- LeaderboardRow (derived) ----------
@dataclass
class LeaderboardRow:
    player: Player
    total_pm: int = 0
    wins: int = 0
    losses: int = 0

    @property
    def player_id(self) -> str:
        return self.player.id

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player.id,
            "name": self.player.name,
            "number": self.player.number,
            "total_pm": self.total_pm,
            "wins": self.wins,
            "losses": self.losses,
        }


# ---------- ScheduledGame (derived) ----------
@dataclass
class ScheduledGame:
    """One generated training game. Lists hold player ids in placement order."""
    index: int
    team_a: list[str] = field(default_factory=list)
    team_b: list[str] = field(default_factory=list)
    bench: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "team_a": list(self.team_a),
            "team_b": list(self.team_b),
            "bench": list(self.bench),
        }
