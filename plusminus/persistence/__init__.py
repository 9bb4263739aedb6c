"""
Persistence layer for ledger data.
No business logic, only read/write interfaces.
"""
from .db import get_connection, get_db_path, init_db, set_db_path
from .repositories import (
    GameRepository,
    PlayerRepository,
    StatRepository,
)

__all__ = [
    "get_connection",
    "get_db_path",
    "init_db",
    "set_db_path",
    "PlayerRepository",
    "GameRepository",
    "StatRepository",
]
