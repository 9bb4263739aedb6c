"""
Game finalization: turn a final score into per-player plus/minus.

Pure: takes the game, its current stat rows and the pending team selection,
returns a write-set (stat rows with absolute deltas + the locked game). The
ledger service applies it. Winners get +margin, losers -margin; a rerun sets
the same absolute values, so applying a write-set twice is harmless.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Iterable

from plusminus.errors import LedgerError
from plusminus.models import Game, StatRecord, Team


@dataclass
class FinalizeResult:
    """
    Outcome of finalize(). Exactly one of: ok (write-set present), cancelled
    (user declined to overwrite existing deltas), or error.
    applied is filled in by the service once writes hit storage.
    """
    stat_writes: list[StatRecord] = field(default_factory=list)
    updated_game: Game | None = None
    error: LedgerError | None = None
    cancelled: bool = False
    message: str | None = None
    applied: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None and not self.cancelled

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "ok": self.ok,
            "cancelled": self.cancelled,
            "stats": [s.to_dict() for s in self.stat_writes],
            "game": self.updated_game.to_dict() if self.updated_game else None,
            "applied": self.applied,
        }
        if self.error is not None:
            d["error"] = self.error.value
        if self.message is not None:
            d["message"] = self.message
        return d


def _failure(error: LedgerError, message: str) -> FinalizeResult:
    return FinalizeResult(error=error, message=message)


def parse_score(raw: Any) -> int | None:
    """Integer score from an int or a numeric string; None if it does not parse."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            return None
    return None


# ---------- Team selection ----------


@dataclass
class TeamSelection:
    """
    Pending A/B assignment for a game before it is saved.
    A player is on at most one side: adding to one side removes from the other.
    """
    team_a: list[str] = field(default_factory=list)
    team_b: list[str] = field(default_factory=list)

    def members(self, team: Team) -> list[str]:
        return self.team_a if team is Team.A else self.team_b

    def toggle(self, player_id: str, team: Team) -> None:
        """Checkbox semantics: on -> off, off -> on (and off the other side)."""
        side = self.members(team)
        if player_id in side:
            side.remove(player_id)
            return
        side.append(player_id)
        other = self.members(team.other)
        if player_id in other:
            other.remove(player_id)

    def is_empty(self) -> bool:
        return not self.team_a and not self.team_b

    def to_stat_records(self, game_id: str) -> list[StatRecord]:
        """Zero-delta rows, team A first."""
        return [
            StatRecord(id=None, game_id=game_id, player_id=pid, team=Team.A)
            for pid in self.team_a
        ] + [
            StatRecord(id=None, game_id=game_id, player_id=pid, team=Team.B)
            for pid in self.team_b
        ]

    @classmethod
    def from_lists(cls, team_a: Iterable[str], team_b: Iterable[str]) -> "TeamSelection":
        """Build via toggle so a player listed on both sides ends up on B only."""
        sel = cls()
        for pid in team_a:
            if pid not in sel.team_a:
                sel.toggle(pid, Team.A)
        for pid in team_b:
            if pid not in sel.team_b:
                sel.toggle(pid, Team.B)
        return sel


# ---------- Finalize ----------


def finalize(
    game: Game,
    final_score_a: Any,
    final_score_b: Any,
    existing_stats: Iterable[StatRecord],
    pending_team_a: Iterable[str],
    pending_team_b: Iterable[str],
    confirm_overwrite: Callable[[], bool],
) -> FinalizeResult:
    """
    Compute the write-set for finalizing game with the given score.

    Checks run in order: locked, unparseable score, tie. Existing non-zero
    deltas need confirm_overwrite() to return True; otherwise the result is
    cancelled with no writes. With no stored rows, rows are materialized from
    the pending teams (error if both are empty). Every row's delta is then
    overwritten with +margin (winner) or -margin (loser), and the returned
    game has both scores set and locked=True.
    """
    if game.locked:
        return _failure(LedgerError.GAME_LOCKED, "Game is locked and cannot be changed")

    a = parse_score(final_score_a)
    b = parse_score(final_score_b)
    if a is None or b is None:
        return _failure(LedgerError.INVALID_SCORE, "Both scores must be integers")
    if a == b:
        return _failure(LedgerError.TIED_SCORE, "A game cannot end tied when tracking plus/minus")

    diff = abs(a - b)
    winner = Team.A if a > b else Team.B

    game_stats = [s for s in existing_stats if s.game_id == game.id]
    if any(s.plus_minus != 0 for s in game_stats):
        if not confirm_overwrite():
            return FinalizeResult(cancelled=True, message="Existing plus/minus kept")

    if not game_stats:
        selection = TeamSelection.from_lists(pending_team_a, pending_team_b)
        if selection.is_empty():
            return _failure(LedgerError.NO_TEAMS_ASSIGNED, "Pick team A and team B first")
        game_stats = selection.to_stat_records(game.id)

    writes = [
        replace(st, plus_minus=diff if st.team == winner else -diff)
        for st in game_stats
    ]
    updated_game = replace(game, score_a=a, score_b=b, locked=True)
    return FinalizeResult(stat_writes=writes, updated_game=updated_game)
