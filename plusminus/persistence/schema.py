"""
SQLite schema for the plus/minus ledger.
Migration-friendly: each table created with IF NOT EXISTS.
Stats cascade on game and player deletion (requires PRAGMA foreign_keys = ON).
"""
from __future__ import annotations


def players_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS players (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        number INTEGER,
        created_at TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS ix_players_name ON players(name);
    """


def games_schema() -> str:
    """score_a/score_b NULL until finalized. locked: 0 | 1."""
    return """
    CREATE TABLE IF NOT EXISTS games (
        id TEXT PRIMARY KEY,
        date TEXT NOT NULL,
        name TEXT NOT NULL,
        score_a INTEGER,
        score_b INTEGER,
        locked INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        CHECK ((score_a IS NULL) = (score_b IS NULL))
    );
    CREATE INDEX IF NOT EXISTS ix_games_date ON games(date);
    """


def stats_schema() -> str:
    """One row per (game, player). team: 'A' | 'B'."""
    return """
    CREATE TABLE IF NOT EXISTS stats (
        id TEXT PRIMARY KEY,
        game_id TEXT NOT NULL,
        player_id TEXT NOT NULL,
        team TEXT NOT NULL CHECK (team IN ('A', 'B')),
        plus_minus INTEGER NOT NULL DEFAULT 0,
        FOREIGN KEY (game_id) REFERENCES games(id) ON DELETE CASCADE,
        FOREIGN KEY (player_id) REFERENCES players(id) ON DELETE CASCADE
    );
    CREATE UNIQUE INDEX IF NOT EXISTS ix_stats_game_player ON stats(game_id, player_id);
    CREATE INDEX IF NOT EXISTS ix_stats_player ON stats(player_id);
    """


def all_schema_sql() -> str:
    """Combine all schema DDL for a single execution. Order: players, games, stats."""
    return "\n".join([
        players_schema(),
        games_schema(),
        stats_schema(),
    ])
