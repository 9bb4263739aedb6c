"""
Repository interfaces for ledger data.
No business logic, only read/write operations. Every write commits on its own.
"""
from __future__ import annotations

import sqlite3
import uuid
from datetime import date, datetime, timezone
from typing import Any, Iterable

from plusminus.models import Game, Player, StatRecord, Team


def _row_to_player(r: sqlite3.Row) -> Player:
    return Player(id=r["id"], name=r["name"], number=r["number"])


def _row_to_game(r: sqlite3.Row) -> Game:
    return Game(
        id=r["id"],
        date=date.fromisoformat(r["date"]),
        name=r["name"],
        score_a=r["score_a"],
        score_b=r["score_b"],
        locked=bool(r["locked"]),
    )


def _row_to_stat(r: sqlite3.Row) -> StatRecord:
    return StatRecord(
        id=r["id"],
        game_id=r["game_id"],
        player_id=r["player_id"],
        team=Team(r["team"]),
        plus_minus=r["plus_minus"],
    )


# ---------- PlayerRepository ----------


class PlayerRepository:
    """CRUD for players. Deleting a player cascades to their stats."""

    def create(
        self,
        conn: sqlite3.Connection,
        name: str,
        number: int | None = None,
        id: str | None = None,
    ) -> Player:
        pid = id or str(uuid.uuid4())
        now = datetime.now(timezone.utc).isoformat()
        conn.execute(
            "INSERT INTO players (id, name, number, created_at) VALUES (?, ?, ?, ?)",
            (pid, name, number, now),
        )
        conn.commit()
        return Player(id=pid, name=name, number=number)

    def get(self, conn: sqlite3.Connection, player_id: str) -> Player | None:
        row = conn.execute(
            "SELECT id, name, number FROM players WHERE id = ?", (player_id,)
        ).fetchone()
        return _row_to_player(row) if row is not None else None

    def list_all(self, conn: sqlite3.Connection) -> list[Player]:
        rows = conn.execute("SELECT id, name, number FROM players ORDER BY name, id").fetchall()
        return [_row_to_player(r) for r in rows]

    def delete(self, conn: sqlite3.Connection, player_id: str) -> bool:
        cur = conn.execute("DELETE FROM players WHERE id = ?", (player_id,))
        conn.commit()
        return cur.rowcount > 0


# ---------- GameRepository ----------

_GAME_COLS = "id, date, name, score_a, score_b, locked"
_GAME_UPDATABLE = {"date", "name", "score_a", "score_b", "locked"}


class GameRepository:
    """CRUD for games. Deleting a game cascades to its stats."""

    def create(
        self,
        conn: sqlite3.Connection,
        game_date: date,
        name: str,
        id: str | None = None,
    ) -> Game:
        gid = id or str(uuid.uuid4())
        now = datetime.now(timezone.utc).isoformat()
        conn.execute(
            "INSERT INTO games (id, date, name, score_a, score_b, locked, created_at) VALUES (?, ?, ?, NULL, NULL, 0, ?)",
            (gid, game_date.isoformat(), name, now),
        )
        conn.commit()
        return Game(id=gid, date=game_date, name=name)

    def get(self, conn: sqlite3.Connection, game_id: str) -> Game | None:
        row = conn.execute(f"SELECT {_GAME_COLS} FROM games WHERE id = ?", (game_id,)).fetchone()
        return _row_to_game(row) if row is not None else None

    def list_all(self, conn: sqlite3.Connection) -> list[Game]:
        """Newest first."""
        rows = conn.execute(
            f"SELECT {_GAME_COLS} FROM games ORDER BY date DESC, created_at DESC"
        ).fetchall()
        return [_row_to_game(r) for r in rows]

    def update(self, conn: sqlite3.Connection, game_id: str, fields: dict[str, Any]) -> Game | None:
        """
        Partial update; returns the stored record afterwards (None if missing).
        Allowed fields: date, name, score_a, score_b, locked.
        """
        unknown = set(fields) - _GAME_UPDATABLE
        if unknown:
            raise ValueError(f"Cannot update game fields: {sorted(unknown)}")
        if fields:
            values: list[Any] = []
            for key, value in fields.items():
                if key == "date" and isinstance(value, date):
                    value = value.isoformat()
                elif key == "locked":
                    value = 1 if value else 0
                values.append(value)
            assignments = ", ".join(f"{k} = ?" for k in fields)
            conn.execute(f"UPDATE games SET {assignments} WHERE id = ?", (*values, game_id))
            conn.commit()
        return self.get(conn, game_id)

    def delete(self, conn: sqlite3.Connection, game_id: str) -> bool:
        cur = conn.execute("DELETE FROM games WHERE id = ?", (game_id,))
        conn.commit()
        return cur.rowcount > 0


# ---------- StatRepository ----------

_STAT_COLS = "id, game_id, player_id, team, plus_minus"


class StatRepository:
    """CRUD for per-game plus/minus rows."""

    def insert_many(self, conn: sqlite3.Connection, rows: Iterable[StatRecord]) -> list[StatRecord]:
        """Insert rows (ids assigned here when missing) in one statement batch; returns stored records."""
        inserted = [
            StatRecord(
                id=r.id or str(uuid.uuid4()),
                game_id=r.game_id,
                player_id=r.player_id,
                team=r.team,
                plus_minus=r.plus_minus,
            )
            for r in rows
        ]
        if not inserted:
            return []
        conn.executemany(
            f"INSERT INTO stats ({_STAT_COLS}) VALUES (?, ?, ?, ?, ?)",
            [(s.id, s.game_id, s.player_id, s.team.value, s.plus_minus) for s in inserted],
        )
        conn.commit()
        return inserted

    def update_plus_minus(self, conn: sqlite3.Connection, stat_id: str, plus_minus: int) -> None:
        conn.execute("UPDATE stats SET plus_minus = ? WHERE id = ?", (plus_minus, stat_id))
        conn.commit()

    def list_all(self, conn: sqlite3.Connection) -> list[StatRecord]:
        rows = conn.execute(f"SELECT {_STAT_COLS} FROM stats ORDER BY rowid").fetchall()
        return [_row_to_stat(r) for r in rows]

    def list_by_game(self, conn: sqlite3.Connection, game_id: str) -> list[StatRecord]:
        rows = conn.execute(
            f"SELECT {_STAT_COLS} FROM stats WHERE game_id = ? ORDER BY rowid", (game_id,)
        ).fetchall()
        return [_row_to_stat(r) for r in rows]

    def delete_by_game(self, conn: sqlite3.Connection, game_id: str) -> int:
        cur = conn.execute("DELETE FROM stats WHERE game_id = ?", (game_id,))
        conn.commit()
        return cur.rowcount
