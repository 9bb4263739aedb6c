"""
Service layer: pure ledger core plus the storage-facing orchestration.
leaderboard, finalization and scheduling never touch storage; ledger_service applies their results.
"""
from .finalization import FinalizeResult, TeamSelection, finalize
from .leaderboard import aggregate, build_pool, match_history
from .ledger_service import (
    GameLockedError,
    GameNotFoundError,
    LedgerService,
    PlayerNotFoundError,
)
from .scheduling import ScheduleResult, generate_schedule

__all__ = [
    "aggregate",
    "build_pool",
    "match_history",
    "finalize",
    "FinalizeResult",
    "TeamSelection",
    "generate_schedule",
    "ScheduleResult",
    "LedgerService",
    "GameLockedError",
    "GameNotFoundError",
    "PlayerNotFoundError",
]
