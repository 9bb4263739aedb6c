"""
Shared fixtures: a fresh SQLite database per test.
"""
from __future__ import annotations

import pytest

from plusminus.persistence.db import get_connection, init_db, set_db_path


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "plusminus_test.db"
    set_db_path(path)
    init_db(db_path=path)
    return path


@pytest.fixture
def db_conn(db_path):
    """Temporary DB with schema."""
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()
