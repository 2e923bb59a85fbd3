"""Game CRUD and history endpoints."""

from fastapi import APIRouter, HTTPException

from gamemaster import storage

from .common import require_game

router = APIRouter()


@router.get("/games")
async def list_games(user_id: str | None = None):
    """List saved games, optionally for one user."""
    return storage.list_games(user_id)


@router.get("/games/{game_id}")
async def get_game(game_id: str):
    """Get a game's full state (character sheet + history)."""
    return require_game(game_id)


@router.delete("/games/{game_id}")
async def delete_game(game_id: str):
    """Delete a game."""
    if not storage.delete_game(game_id):
        raise HTTPException(404, "Game not found")
    return {"ok": True}


@router.get("/games/{game_id}/history")
async def get_history(game_id: str):
    """Get a game's history entries."""
    return require_game(game_id).history


@router.delete("/games/{game_id}/history/{index}")
async def delete_history_entry(game_id: str, index: int):
    """Delete a single history entry by index."""
    require_game(game_id)
    try:
        game = storage.delete_history_entry(game_id, index)
    except IndexError:
        raise HTTPException(404, "History entry not found")
    return game.history
