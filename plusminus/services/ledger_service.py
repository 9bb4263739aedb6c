"""
Ledger service: the storage-facing half of the app.
Loads records through repositories, calls the pure core (leaderboard,
finalization, scheduling) and applies write-sets one statement at a time.
There is no transaction around a finalization write-set; a failure midway
leaves earlier writes applied and is reported as STORAGE_FAILURE. Other
writes that hit a sqlite3 error raise StorageFailure.
"""
from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import date
from typing import Any, Callable, Generator, Iterable

from plusminus.errors import LedgerError, StorageFailure
from plusminus.models import Game, LeaderboardRow, Player, StatRecord
from plusminus.persistence.repositories import GameRepository, PlayerRepository, StatRepository
from plusminus.services.finalization import FinalizeResult, TeamSelection, finalize
from plusminus.services.leaderboard import aggregate, build_pool, match_history
from plusminus.services.scheduling import DEFAULT_GAME_COUNT, ScheduleResult, generate_schedule

logger = logging.getLogger(__name__)

# ---------- Exceptions ----------


class GameNotFoundError(LookupError):
    """No game with the given id."""


class PlayerNotFoundError(LookupError):
    """No player with the given id."""


class GameLockedError(ValueError):
    """Teams cannot be changed while the game is locked."""


@contextmanager
def _storage(conn: sqlite3.Connection, operation: str) -> Generator[None, None, None]:
    """Re-raise sqlite3 errors from a single write as StorageFailure."""
    try:
        yield
    except sqlite3.Error as e:
        conn.rollback()
        raise StorageFailure(operation) from e


# ---------- LedgerService ----------


class LedgerService:
    """
    Domain orchestration for players, games and stat rows.
    Persistence is delegated to repositories (injectable for tests).
    """

    def __init__(
        self,
        player_repo: PlayerRepository | None = None,
        game_repo: GameRepository | None = None,
        stat_repo: StatRepository | None = None,
    ) -> None:
        self._player_repo = player_repo or PlayerRepository()
        self._game_repo = game_repo or GameRepository()
        self._stat_repo = stat_repo or StatRepository()

    # ---------- Players ----------

    def list_players(self, conn: sqlite3.Connection) -> list[Player]:
        return self._player_repo.list_all(conn)

    def add_player(self, conn: sqlite3.Connection, name: str, number: int | None = None) -> Player:
        clean = name.strip()
        if not clean:
            raise ValueError("Player name is required")
        with _storage(conn, "add_player"):
            player = self._player_repo.create(conn, clean, number=number)
        logger.info("added player %s (%s)", player.id, player.name)
        return player

    def remove_player(self, conn: sqlite3.Connection, player_id: str) -> None:
        """Delete a player; their stat rows go with them."""
        with _storage(conn, "remove_player"):
            deleted = self._player_repo.delete(conn, player_id)
        if not deleted:
            raise PlayerNotFoundError(f"Player not found: {player_id}")
        logger.info("removed player %s", player_id)

    def _require_players(self, conn: sqlite3.Connection, player_ids: Iterable[str]) -> None:
        for pid in player_ids:
            if self._player_repo.get(conn, pid) is None:
                raise PlayerNotFoundError(f"Player not found: {pid}")

    # ---------- Games ----------

    def list_games(self, conn: sqlite3.Connection) -> list[Game]:
        return self._game_repo.list_all(conn)

    def get_game(self, conn: sqlite3.Connection, game_id: str) -> Game:
        game = self._game_repo.get(conn, game_id)
        if game is None:
            raise GameNotFoundError(f"Game not found: {game_id}")
        return game

    def create_game(self, conn: sqlite3.Connection, game_date: date | None, name: str) -> Game:
        """New unlocked game with no score. Date and a non-blank name are required."""
        if game_date is None:
            raise ValueError("Game date is required")
        clean = name.strip()
        if not clean:
            raise ValueError("Game name is required (e.g. Game 1)")
        with _storage(conn, "create_game"):
            game = self._game_repo.create(conn, game_date, clean)
        logger.info("created game %s (%s %s)", game.id, game.date.isoformat(), game.name)
        return game

    def remove_game(self, conn: sqlite3.Connection, game_id: str) -> None:
        """Delete a game; its stat rows go with it."""
        with _storage(conn, "remove_game"):
            deleted = self._game_repo.delete(conn, game_id)
        if not deleted:
            raise GameNotFoundError(f"Game not found: {game_id}")
        logger.info("removed game %s", game_id)

    def set_locked(self, conn: sqlite3.Connection, game_id: str, locked: bool) -> Game:
        with _storage(conn, "set_locked"):
            game = self._game_repo.update(conn, game_id, {"locked": locked})
        if game is None:
            raise GameNotFoundError(f"Game not found: {game_id}")
        logger.info("game %s %s", game_id, "locked" if locked else "unlocked")
        return game

    def game_stats(self, conn: sqlite3.Connection, game_id: str) -> list[StatRecord]:
        self.get_game(conn, game_id)
        return self._stat_repo.list_by_game(conn, game_id)

    # ---------- Teams ----------

    def save_teams(
        self,
        conn: sqlite3.Connection,
        game_id: str,
        team_a: Iterable[str],
        team_b: Iterable[str],
    ) -> list[StatRecord]:
        """
        Replace the game's stat rows with zero-delta rows for the given teams.
        Rejected while the game is locked. A player listed on both sides is
        kept on team B only (last assignment wins).

        The old rows are deleted before the new ones are inserted; if the
        insert fails, StorageFailure reports the delete as applied and the
        game is left without teams until the save is repeated.
        """
        game = self.get_game(conn, game_id)
        if game.locked:
            raise GameLockedError(f"Game {game_id} is locked; unlock it to change teams")
        selection = TeamSelection.from_lists(team_a, team_b)
        self._require_players(conn, selection.team_a + selection.team_b)
        applied = 0
        try:
            self._stat_repo.delete_by_game(conn, game_id)
            applied += 1
            saved = self._stat_repo.insert_many(conn, selection.to_stat_records(game_id))
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("save teams for game %s failed after %d writes: %s", game_id, applied, e)
            raise StorageFailure("save_teams", applied=applied) from e
        logger.info(
            "saved teams for game %s: %d on A, %d on B",
            game_id, len(selection.team_a), len(selection.team_b),
        )
        return saved

    # ---------- Finalization ----------

    def finalize_game(
        self,
        conn: sqlite3.Connection,
        game_id: str,
        score_a: Any,
        score_b: Any,
        pending_team_a: Iterable[str] = (),
        pending_team_b: Iterable[str] = (),
        confirm_overwrite: Callable[[], bool] = lambda: False,
    ) -> FinalizeResult:
        """
        Finalize game_id and apply the write-set: insert materialized rows,
        update existing rows one at a time, then store the score and lock.
        Validation failures and cancellations come back without any writes.
        Raises PlayerNotFoundError, before writing, if a row would be
        materialized for an unknown player.
        """
        game = self.get_game(conn, game_id)
        existing = self._stat_repo.list_by_game(conn, game_id)
        result = finalize(
            game, score_a, score_b, existing,
            list(pending_team_a), list(pending_team_b), confirm_overwrite,
        )
        if result.cancelled:
            logger.info("finalize game %s cancelled: existing plus/minus kept", game_id)
            return result
        if result.error is not None:
            logger.info("finalize game %s rejected: %s", game_id, result.error.value)
            return result
        self._require_players(conn, [s.player_id for s in result.stat_writes if s.id is None])

        try:
            persisted = self._apply_finalization(conn, result)
        except StorageFailure as e:
            logger.error("finalize game %s: %s", game_id, e)
            return FinalizeResult(
                error=LedgerError.STORAGE_FAILURE,
                message=f"{e}. Re-run finalization to complete it.",
                applied=e.applied,
            )
        logger.info(
            "finalized game %s: %s-%s, %d stat rows, locked",
            game_id, persisted.updated_game.score_a, persisted.updated_game.score_b,
            len(persisted.stat_writes),
        )
        return persisted

    def _apply_finalization(self, conn: sqlite3.Connection, result: FinalizeResult) -> FinalizeResult:
        applied = 0
        new_rows = [s for s in result.stat_writes if s.id is None]
        stored: list[StatRecord] = []
        try:
            if new_rows:
                stored.extend(self._stat_repo.insert_many(conn, new_rows))
                applied += len(new_rows)
            for st in result.stat_writes:
                if st.id is None:
                    continue
                self._stat_repo.update_plus_minus(conn, st.id, st.plus_minus)
                stored.append(st)
                applied += 1
            game = result.updated_game
            updated = self._game_repo.update(
                conn, game.id,
                {"score_a": game.score_a, "score_b": game.score_b, "locked": True},
            )
            applied += 1
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageFailure("finalization", applied=applied) from e
        return FinalizeResult(stat_writes=stored, updated_game=updated or game, applied=applied)

    # ---------- Derived views ----------

    def leaderboard(self, conn: sqlite3.Connection) -> list[LeaderboardRow]:
        return aggregate(
            self._player_repo.list_all(conn),
            self._game_repo.list_all(conn),
            self._stat_repo.list_all(conn),
        )

    def match_history(self, conn: sqlite3.Connection) -> list[Game]:
        return match_history(self._game_repo.list_all(conn))

    def training_schedule(
        self,
        conn: sqlite3.Connection,
        present_player_ids: Iterable[str],
        team_size: int,
        game_count: int = DEFAULT_GAME_COUNT,
    ) -> ScheduleResult:
        """Schedule for the present players, ranked by current leaderboard plus/minus."""
        pool = build_pool(self.leaderboard(conn), present_player_ids)
        result = generate_schedule(pool, team_size, game_count)
        if result.ok:
            logger.info(
                "generated %d-game schedule, %dv%d from %d present",
                len(result.games), team_size, team_size, len(pool),
            )
        else:
            logger.info("schedule rejected: %s", result.message)
        return result
