"""
Runtime settings from environment variables, with local-dev defaults.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent

DB_PATH = os.environ.get("PLUSMINUS_DB_PATH") or str(PROJECT_ROOT / "data" / "plusminus.db")
LOG_LEVEL = os.environ.get("PLUSMINUS_LOG_LEVEL", "INFO").upper()
DEFAULT_TEAM_SIZE = int(os.environ.get("PLUSMINUS_TEAM_SIZE", "4"))
GAMES_PER_SESSION = int(os.environ.get("PLUSMINUS_GAMES_PER_SESSION", "3"))
CORS_ORIGINS = [
    o.strip()
    for o in os.environ.get(
        "PLUSMINUS_CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"
    ).split(",")
    if o.strip()
]

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Root logging setup; called once at app startup."""
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL), logging.INFO),
        format=LOG_FORMAT,
    )
