"""
FastAPI app for the plus/minus ledger.
Thin HTTP layer over LedgerService; the core decides, this maps results to status codes.
"""
from __future__ import annotations

import datetime
import logging
from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncGenerator, Generator

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from plusminus import config
from plusminus.errors import LedgerError, StorageFailure
from plusminus.persistence import get_connection, get_db_path, init_db
from plusminus.services.finalization import FinalizeResult
from plusminus.services.ledger_service import (
    GameLockedError,
    GameNotFoundError,
    LedgerService,
    PlayerNotFoundError,
)

logger = logging.getLogger(__name__)


@contextmanager
def db_conn() -> Generator:
    """Yield a DB connection, ensure close on exit."""
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


# ---------- Lifespan ----------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    config.configure_logging()
    init_db(db_path=get_db_path())
    logger.info("database ready at %s", get_db_path())
    yield


# ---------- FastAPI app ----------
app = FastAPI(
    title="Pickup Plus/Minus API",
    description="Plus/minus ledger, leaderboard and training schedules for pickup basketball",
    version="0.1.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

service = LedgerService()


@app.exception_handler(StorageFailure)
async def storage_failure_handler(request: Request, exc: StorageFailure) -> JSONResponse:
    """Writes that reached storage and failed: 500 with how many were applied."""
    logger.error("%s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={"detail": {
            "error": LedgerError.STORAGE_FAILURE.value,
            "message": str(exc),
            "applied": exc.applied,
        }},
    )


# ---------- Request models ----------


class CreatePlayerRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    number: int | None = Field(None, ge=0, le=99, description="Jersey number")


class CreateGameRequest(BaseModel):
    date: datetime.date
    name: str = Field(..., min_length=1, max_length=200, description="e.g. 'Game 1'")


class SetLockRequest(BaseModel):
    locked: bool


class SaveTeamsRequest(BaseModel):
    team_a: list[str] = Field(default_factory=list)
    team_b: list[str] = Field(default_factory=list)


class FinalizeRequest(BaseModel):
    score_a: int | str
    score_b: int | str
    team_a: list[str] = Field(default_factory=list, description="Used only if no teams were saved")
    team_b: list[str] = Field(default_factory=list, description="Used only if no teams were saved")
    confirm_overwrite: bool = Field(False, description="Overwrite existing non-zero plus/minus")


class ScheduleRequest(BaseModel):
    present_player_ids: list[str]
    team_size: int = Field(default=config.DEFAULT_TEAM_SIZE, ge=1, le=10)
    game_count: int = Field(default=config.GAMES_PER_SESSION, ge=1, le=10)


_ERROR_STATUS: dict[LedgerError, int] = {
    LedgerError.GAME_LOCKED: 409,
    LedgerError.INVALID_SCORE: 400,
    LedgerError.TIED_SCORE: 400,
    LedgerError.NO_TEAMS_ASSIGNED: 400,
    LedgerError.INSUFFICIENT_PLAYERS: 400,
    LedgerError.STORAGE_FAILURE: 500,
}


def _raise_for_result(result: FinalizeResult) -> None:
    if result.cancelled:
        raise HTTPException(
            status_code=409,
            detail="Game already has plus/minus; resend with confirm_overwrite=true to overwrite",
        )
    if result.error is not None:
        raise HTTPException(
            status_code=_ERROR_STATUS[result.error],
            detail={"error": result.error.value, "message": result.message, "applied": result.applied},
        )


# ---------- Players ----------


@app.get("/players")
def get_players() -> dict[str, Any]:
    """All players, ordered by name."""
    with db_conn() as conn:
        return {"players": [p.to_dict() for p in service.list_players(conn)]}


@app.post("/players")
def create_player(req: CreatePlayerRequest) -> dict[str, Any]:
    with db_conn() as conn:
        try:
            player = service.add_player(conn, req.name, number=req.number)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return player.to_dict()


@app.delete("/players/{player_id}")
def delete_player(player_id: str) -> dict[str, Any]:
    """Delete a player and all their plus/minus rows."""
    with db_conn() as conn:
        try:
            service.remove_player(conn, player_id)
        except PlayerNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return {"deleted": player_id}


# ---------- Games ----------


@app.get("/games")
def get_games() -> dict[str, Any]:
    """All games, newest first."""
    with db_conn() as conn:
        return {"games": [g.to_dict() for g in service.list_games(conn)]}


@app.post("/games")
def create_game(req: CreateGameRequest) -> dict[str, Any]:
    with db_conn() as conn:
        try:
            game = service.create_game(conn, req.date, req.name)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return game.to_dict()


@app.delete("/games/{game_id}")
def delete_game(game_id: str) -> dict[str, Any]:
    """Delete a game and all its plus/minus rows."""
    with db_conn() as conn:
        try:
            service.remove_game(conn, game_id)
        except GameNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return {"deleted": game_id}


@app.put("/games/{game_id}/lock")
def set_game_lock(game_id: str, req: SetLockRequest) -> dict[str, Any]:
    with db_conn() as conn:
        try:
            game = service.set_locked(conn, game_id, req.locked)
        except GameNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return game.to_dict()


@app.get("/games/{game_id}/stats")
def get_game_stats(game_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        try:
            stats = service.game_stats(conn, game_id)
        except GameNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return {"game_id": game_id, "stats": [s.to_dict() for s in stats]}


@app.put("/games/{game_id}/teams")
def save_teams(game_id: str, req: SaveTeamsRequest) -> dict[str, Any]:
    """Replace the game's team assignment (all plus/minus reset to 0)."""
    with db_conn() as conn:
        try:
            stats = service.save_teams(conn, game_id, req.team_a, req.team_b)
        except (GameNotFoundError, PlayerNotFoundError) as e:
            raise HTTPException(status_code=404, detail=str(e))
        except GameLockedError as e:
            raise HTTPException(status_code=409, detail=str(e))
        return {"game_id": game_id, "stats": [s.to_dict() for s in stats]}


@app.post("/games/{game_id}/finalize")
def finalize_game(game_id: str, req: FinalizeRequest) -> dict[str, Any]:
    """
    Record the final score, set every player's plus/minus and lock the game.
    409 if locked, or if existing plus/minus would be overwritten without confirm_overwrite.
    """
    with db_conn() as conn:
        try:
            result = service.finalize_game(
                conn, game_id, req.score_a, req.score_b,
                pending_team_a=req.team_a,
                pending_team_b=req.team_b,
                confirm_overwrite=lambda: req.confirm_overwrite,
            )
        except (GameNotFoundError, PlayerNotFoundError) as e:
            raise HTTPException(status_code=404, detail=str(e))
        _raise_for_result(result)
        return result.to_dict()


# ---------- Leaderboard / history ----------


@app.get("/leaderboard")
def get_leaderboard() -> dict[str, Any]:
    """Total plus/minus with W/L per player, best first."""
    with db_conn() as conn:
        return {"leaderboard": [r.to_dict() for r in service.leaderboard(conn)]}


@app.get("/history")
def get_history() -> dict[str, Any]:
    """Finalized games, newest first."""
    with db_conn() as conn:
        return {"games": [g.to_dict() for g in service.match_history(conn)]}


# ---------- Training ----------


@app.post("/training/schedule")
def create_training_schedule(req: ScheduleRequest) -> dict[str, Any]:
    """Balanced games for the present players; nothing is stored."""
    with db_conn() as conn:
        result = service.training_schedule(
            conn, req.present_player_ids, req.team_size, req.game_count
        )
    if result.error is not None:
        raise HTTPException(
            status_code=_ERROR_STATUS[result.error],
            detail={"error": result.error.value, "message": result.message},
        )
    return result.to_dict()


# ---------- Run with: uvicorn plusminus.api:app --reload ----------
