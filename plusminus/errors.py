"""
Error codes shared by the ledger core and the service layer.
Core functions report these in their result objects instead of raising.
"""
from __future__ import annotations

from enum import Enum


class LedgerError(str, Enum):
    GAME_LOCKED = "game_locked"
    INVALID_SCORE = "invalid_score"
    TIED_SCORE = "tied_score"
    NO_TEAMS_ASSIGNED = "no_teams_assigned"
    INSUFFICIENT_PLAYERS = "insufficient_players"
    STORAGE_FAILURE = "storage_failure"


class StorageFailure(RuntimeError):
    """A repository call failed. Wraps the underlying sqlite3 error."""

    def __init__(self, operation: str, applied: int = 0) -> None:
        super().__init__(f"Storage failure during {operation} ({applied} writes applied)")
        self.operation = operation
        self.applied = applied
