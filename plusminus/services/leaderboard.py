"""
Leaderboard aggregation: fold stat rows into per-player plus/minus and W/L.
Pure functions over in-memory records; no storage access.
"""
from __future__ import annotations

from typing import Iterable

from plusminus.models import Game, LeaderboardRow, Player, StatRecord


def aggregate(
    players: Iterable[Player],
    games: Iterable[Game],
    stats: Iterable[StatRecord],
) -> list[LeaderboardRow]:
    """
    One row per player, sorted by total plus/minus descending.
    Every delta counts toward total_pm; W/L is only classified for rows whose
    game is finalized. Ties keep the input player order.
    """
    games_by_id = {g.id: g for g in games}
    stats_by_player: dict[str, list[StatRecord]] = {}
    for st in stats:
        stats_by_player.setdefault(st.player_id, []).append(st)

    rows: list[LeaderboardRow] = []
    for p in players:
        row = LeaderboardRow(player=p)
        for st in stats_by_player.get(p.id, []):
            row.total_pm += st.plus_minus
            game = games_by_id.get(st.game_id)
            if game is None or not game.is_finalized:
                continue
            if st.team == game.winner:
                row.wins += 1
            else:
                row.losses += 1
        rows.append(row)
    return sorted(rows, key=lambda r: -r.total_pm)


def match_history(games: Iterable[Game]) -> list[Game]:
    """Finalized games, newest first."""
    finalized = [g for g in games if g.is_finalized]
    return sorted(finalized, key=lambda g: g.date, reverse=True)


def build_pool(rows: Iterable[LeaderboardRow], present_player_ids: Iterable[str]) -> list[LeaderboardRow]:
    """Leaderboard rows for players marked present, in leaderboard order."""
    present = set(present_player_ids)
    return [r for r in rows if r.player.id in present]
