"""
API integration tests.
Uses TestClient to avoid starting a server (needs httpx).
"""
from __future__ import annotations

import sqlite3

import pytest
from fastapi.testclient import TestClient

from plusminus import api
from plusminus.api import app
from plusminus.persistence.repositories import StatRepository
from plusminus.services.ledger_service import LedgerService


class BrokenStatRepository(StatRepository):
    """Every stat write fails."""

    def insert_many(self, conn, rows):
        raise sqlite3.OperationalError("database is locked")

    def update_plus_minus(self, conn, stat_id, plus_minus):
        raise sqlite3.OperationalError("database is locked")


@pytest.fixture
def client(db_path):
    return TestClient(app)


def _players(client, n: int) -> list[str]:
    return [client.post("/players", json={"name": f"Player {i:02d}"}).json()["id"] for i in range(n)]


def _game(client, name: str = "Game 1", day: str = "2025-06-01") -> str:
    resp = client.post("/games", json={"date": day, "name": name})
    assert resp.status_code == 200
    return resp.json()["id"]


def test_players_crud(client):
    resp = client.post("/players", json={"name": "Zoe", "number": 11})
    assert resp.status_code == 200
    zoe = resp.json()
    client.post("/players", json={"name": "Al"})
    names = [p["name"] for p in client.get("/players").json()["players"]]
    assert names == ["Al", "Zoe"]
    assert client.delete(f"/players/{zoe['id']}").status_code == 200
    assert client.delete(f"/players/{zoe['id']}").status_code == 404


def test_blank_player_name_rejected(client):
    assert client.post("/players", json={"name": "   "}).status_code == 400
    assert client.post("/players", json={"name": ""}).status_code == 422


def test_create_game_unlocked_without_score(client):
    gid = _game(client)
    game = client.get("/games").json()["games"][0]
    assert game["id"] == gid
    assert (game["score_a"], game["score_b"], game["locked"]) == (None, None, False)


def test_full_game_flow(client):
    """Save teams -> finalize 21-19 -> leaderboard, history, lock."""
    ids = _players(client, 10)
    gid = _game(client)
    resp = client.put(f"/games/{gid}/teams", json={"team_a": ids[:5], "team_b": ids[5:]})
    assert resp.status_code == 200
    assert len(resp.json()["stats"]) == 10

    resp = client.post(f"/games/{gid}/finalize", json={"score_a": "21", "score_b": "19"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["game"]["locked"] is True
    assert sorted(s["plus_minus"] for s in body["stats"]) == [-2] * 5 + [2] * 5

    board = client.get("/leaderboard").json()["leaderboard"]
    assert [r["total_pm"] for r in board] == [2] * 5 + [-2] * 5
    assert board[0]["wins"] == 1 and board[-1]["losses"] == 1

    history = client.get("/history").json()["games"]
    assert [g["id"] for g in history] == [gid]

    # locked: no more team changes or finalizing
    assert client.put(f"/games/{gid}/teams", json={"team_a": ids[:2]}).status_code == 409
    resp = client.post(f"/games/{gid}/finalize", json={"score_a": 30, "score_b": 10})
    assert resp.status_code == 409
    assert resp.json()["detail"]["error"] == "game_locked"


def test_overwrite_requires_confirmation(client):
    ids = _players(client, 4)
    gid = _game(client)
    client.post(f"/games/{gid}/finalize", json={"score_a": 5, "score_b": 9, "team_a": ids[:2], "team_b": ids[2:]})
    client.put(f"/games/{gid}/lock", json={"locked": False})

    resp = client.post(f"/games/{gid}/finalize", json={"score_a": 9, "score_b": 5})
    assert resp.status_code == 409
    stats = client.get(f"/games/{gid}/stats").json()["stats"]
    assert {s["plus_minus"] for s in stats if s["team"] == "A"} == {-4}

    resp = client.post(f"/games/{gid}/finalize", json={"score_a": 9, "score_b": 5, "confirm_overwrite": True})
    assert resp.status_code == 200
    stats = client.get(f"/games/{gid}/stats").json()["stats"]
    assert {s["plus_minus"] for s in stats if s["team"] == "A"} == {4}


@pytest.mark.parametrize("payload,error", [
    ({"score_a": "ten", "score_b": 3}, "invalid_score"),
    ({"score_a": 12, "score_b": 12}, "tied_score"),
    ({"score_a": 12, "score_b": 10}, "no_teams_assigned"),
])
def test_finalize_validation(client, payload, error):
    gid = _game(client)
    resp = client.post(f"/games/{gid}/finalize", json=payload)
    assert resp.status_code == 400
    assert resp.json()["detail"]["error"] == error
    assert client.get(f"/games/{gid}/stats").json()["stats"] == []


def test_unknown_game_404(client):
    assert client.post("/games/nope/finalize", json={"score_a": 1, "score_b": 0}).status_code == 404
    assert client.put("/games/nope/lock", json={"locked": True}).status_code == 404
    assert client.get("/games/nope/stats").status_code == 404
    assert client.delete("/games/nope").status_code == 404


def test_delete_game_removes_its_plus_minus(client):
    ids = _players(client, 2)
    gid = _game(client)
    client.post(f"/games/{gid}/finalize", json={"score_a": 3, "score_b": 1, "team_a": ids[:1], "team_b": ids[1:]})
    assert client.delete(f"/games/{gid}").status_code == 200
    board = client.get("/leaderboard").json()["leaderboard"]
    assert all(r["total_pm"] == 0 and r["wins"] == 0 for r in board)


def test_training_schedule(client):
    ids = _players(client, 9)
    resp = client.post("/training/schedule", json={"present_player_ids": ids, "team_size": 4})
    assert resp.status_code == 200
    games = resp.json()["games"]
    assert len(games) == 3
    for g in games:
        assert len(g["team_a"]) == 4 and len(g["team_b"]) == 4
        assert len(g["bench"]) == 1

    resp = client.post("/training/schedule", json={"present_player_ids": ids[:5], "team_size": 3})
    assert resp.status_code == 400
    assert resp.json()["detail"]["error"] == "insufficient_players"


def test_finalize_unknown_player_404(client):
    ids = _players(client, 2)
    gid = _game(client)
    resp = client.post(f"/games/{gid}/finalize", json={"score_a": 21, "score_b": 19, "team_a": ["ghost"], "team_b": ids})
    assert resp.status_code == 404
    assert client.get(f"/games/{gid}/stats").json()["stats"] == []
    assert client.get("/games").json()["games"][0]["locked"] is False


def test_storage_failure_500(client, monkeypatch):
    ids = _players(client, 4)
    gid = _game(client)
    client.put(f"/games/{gid}/teams", json={"team_a": ids[:2], "team_b": ids[2:]})
    monkeypatch.setattr(api, "service", LedgerService(stat_repo=BrokenStatRepository()))

    resp = client.post(f"/games/{gid}/finalize", json={"score_a": 21, "score_b": 19})
    assert resp.status_code == 500
    detail = resp.json()["detail"]
    assert detail["error"] == "storage_failure"
    assert detail["applied"] == 0

    resp = client.put(f"/games/{gid}/teams", json={"team_a": ids[:1], "team_b": ids[1:2]})
    assert resp.status_code == 500
    detail = resp.json()["detail"]
    assert detail["error"] == "storage_failure"
    assert detail["applied"] == 1
