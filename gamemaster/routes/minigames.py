"""Mini-game settings and result endpoints."""

from dataclasses import asdict

from fastapi import APIRouter, HTTPException

from gamemaster import storage
from gamemaster.minigames import (
    MINI_GAME_TYPES,
    RHYTHM_SETTINGS,
    TIMING_SPEEDS,
    TIMING_ZONES,
    pending_mini_game,
    record_mini_game,
)

from .common import require_game, require_game_scenario
from .models import MiniGameResultBody

router = APIRouter()


@router.get("/mini-games")
async def mini_game_settings():
    """Per-difficulty settings for each mini-game, for clients that render them."""
    return {
        "types": list(MINI_GAME_TYPES),
        "timing_bar": {
            level: {"speed": TIMING_SPEEDS[level], "success_zone": list(TIMING_ZONES[level])}
            for level in TIMING_SPEEDS
        },
        "rhythm_matching": {
            level: asdict(settings) for level, settings in RHYTHM_SETTINGS.items()
        },
    }


@router.get("/games/{game_id}/mini-games")
async def pending(game_id: str):
    """Which mini-game (if any) should be offered now."""
    game = require_game(game_id)
    scenario = require_game_scenario(game)
    return {"mini_game": pending_mini_game(game, scenario)}


@router.post("/games/{game_id}/mini-games/result")
async def record_result(game_id: str, body: MiniGameResultBody):
    """Record the outcome of a mini-game."""
    game = require_game(game_id)
    try:
        updated = record_mini_game(game, body.type, body.success)
    except ValueError as e:
        raise HTTPException(400, str(e))
    storage.save_game(updated)
    return {"game": updated}
