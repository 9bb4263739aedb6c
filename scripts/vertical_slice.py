#!/usr/bin/env python3
"""
Vertical slice: Add players → Pick teams → Finalize → Leaderboard → Training schedule.
Run from project root: python3 scripts/vertical_slice.py
"""
from __future__ import annotations

import sys
from datetime import date
from pathlib import Path

# Ensure project root on path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from plusminus.config import configure_logging
from plusminus.persistence import get_connection, init_db, set_db_path
from plusminus.services import LedgerService

NAMES = ["Avery", "Blake", "Casey", "Devon", "Emery", "Finley", "Harper", "Jordan", "Kendall", "Logan"]


def main() -> None:
    configure_logging()
    # Use data/vertical_slice.db for demo (distinct from plusminus.db)
    db_path = PROJECT_ROOT / "data" / "vertical_slice.db"
    if db_path.exists():
        db_path.unlink()
    set_db_path(db_path)
    init_db(db_path=db_path)

    conn = get_connection()
    try:
        ledger = LedgerService()

        # 1. Roster
        players = [ledger.add_player(conn, name, number=i) for i, name in enumerate(NAMES, start=1)]
        ids = [p.id for p in players]
        print(f"Added {len(players)} players")

        # 2. Two games: first with saved teams, second picked at finalize time
        g1 = ledger.create_game(conn, date(2025, 6, 3), "Game 1")
        ledger.save_teams(conn, g1.id, ids[:5], ids[5:])
        r1 = ledger.finalize_game(conn, g1.id, "21", "19")
        print(f"{g1.name}: 21-19, {len(r1.stat_writes)} rows, locked={r1.updated_game.locked}")

        g2 = ledger.create_game(conn, date(2025, 6, 10), "Game 2")
        r2 = ledger.finalize_game(conn, g2.id, 15, 21, ids[::2], ids[1::2])
        print(f"{g2.name}: 15-21, {len(r2.stat_writes)} rows")

        # 3. Finalizing a locked game is refused
        again = ledger.finalize_game(conn, g1.id, 30, 0)
        print(f"Re-finalize locked game: {again.error.value}")

        # 4. Leaderboard
        print("\nLeaderboard:")
        for row in ledger.leaderboard(conn):
            print(f"  {row.player.name:<8} {row.total_pm:+d}  {row.wins}-{row.losses}")

        # 5. Training schedule with nine players present
        present = ids[:9]
        schedule = ledger.training_schedule(conn, present, team_size=4)
        names = {p.id: p.name for p in players}
        print("\nTraining schedule:")
        for g in schedule.games:
            print(f"  Game {g.index + 1}: A={[names[p] for p in g.team_a]}")
            print(f"          B={[names[p] for p in g.team_b]}")
            print(f"          bench={[names[p] for p in g.bench]}")

        print("\nVertical slice complete.")
    finally:
        conn.close()


if __name__ == "__main__":
    main()
