"""
Training schedule generation for a pool of present players.

Each game picks the players who have played the fewest games so far (stronger
players first among equals), ranks the participants by plus/minus and deals
them onto A/B with one of three placement patterns. Rotating the pattern per
game keeps the same pairs from always playing together or against each other;
picking least-played first keeps playing time within one game of each other.

Deterministic: same pool order => same schedule.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from plusminus.errors import LedgerError
from plusminus.models import LeaderboardRow, ScheduledGame, Team

DEFAULT_GAME_COUNT = 3

A, B = Team.A, Team.B

# Preferred side per skill rank (index 0 = strongest participant).
PLACEMENT_PATTERNS: tuple[tuple[Team, ...], ...] = (
    (A, B, A, B, A, B, A, B),  # best players split
    (A, A, B, B, A, A, B, B),  # adjacent ranks paired
    (B, A, A, B, B, A, A, B),  # offset mix
)


@dataclass
class ScheduleResult:
    games: list[ScheduledGame] = field(default_factory=list)
    error: LedgerError | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"ok": self.ok, "games": [g.to_dict() for g in self.games]}
        if self.error is not None:
            d["error"] = self.error.value
        if self.message is not None:
            d["message"] = self.message
        return d


def placement_pattern(game_index: int) -> tuple[Team, ...]:
    return PLACEMENT_PATTERNS[game_index % len(PLACEMENT_PATTERNS)]


def split_teams(
    participants: list[LeaderboardRow], team_size: int, game_index: int
) -> tuple[list[str], list[str]]:
    """
    Deal participants onto A/B. Walk in plus/minus order (strongest first);
    each rank prefers the pattern's side, or the side with the lower running
    plus/minus once past the pattern. A full side always sends the player to
    the other one.
    """
    pattern = placement_pattern(game_index)
    ranked = sorted(participants, key=lambda r: -r.total_pm)
    team_a: list[str] = []
    team_b: list[str] = []
    sum_a = 0
    sum_b = 0
    for rank, row in enumerate(ranked):
        if rank < len(pattern):
            preferred = pattern[rank]
        else:
            preferred = A if sum_a <= sum_b else B
        if preferred is A:
            side = A if len(team_a) < team_size else B
        else:
            side = B if len(team_b) < team_size else A
        if side is A:
            team_a.append(row.player.id)
            sum_a += row.total_pm
        else:
            team_b.append(row.player.id)
            sum_b += row.total_pm
    return team_a, team_b


def generate_schedule(
    pool: list[LeaderboardRow],
    team_size: int,
    game_count: int = DEFAULT_GAME_COUNT,
) -> ScheduleResult:
    """
    Return game_count games of team_size vs team_size drawn from pool.
    Fails with INSUFFICIENT_PLAYERS if the pool cannot fill one game.
    games_played carries across games; bench is the rest of the pool in pool order.
    """
    if team_size < 1:
        raise ValueError(f"team_size must be at least 1, got {team_size}")
    if game_count < 0:
        raise ValueError(f"game_count must be non-negative, got {game_count}")
    per_game = team_size * 2
    if len(pool) < per_game:
        return ScheduleResult(
            error=LedgerError.INSUFFICIENT_PLAYERS,
            message=(
                f"Need at least {per_game} present players for {team_size}v{team_size} "
                f"(currently {len(pool)})"
            ),
        )

    games_played: dict[str, int] = {row.player.id: 0 for row in pool}
    games: list[ScheduledGame] = []
    for game_index in range(game_count):
        by_priority = sorted(pool, key=lambda r: (games_played[r.player.id], -r.total_pm))
        participants = by_priority[:per_game]
        team_a, team_b = split_teams(participants, team_size, game_index)
        playing = {r.player.id for r in participants}
        bench = [r.player.id for r in pool if r.player.id not in playing]
        for pid in playing:
            games_played[pid] += 1
        games.append(ScheduledGame(index=game_index, team_a=team_a, team_b=team_b, bench=bench))
    return ScheduleResult(games=games)
