"""Scenario listing, authoring, and character creation endpoints."""

import logging

from fastapi import APIRouter, HTTPException
from pydantic import ValidationError

from gamemaster import storage

from .models import CreateGame

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/scenarios")
async def list_scenarios():
    """List all scenarios (presets merged with user-authored)."""
    return storage.list_scenarios()


@router.get("/scenarios/{scenario_id}")
async def get_scenario(scenario_id: str):
    """Get a single scenario by id."""
    scenario = storage.get_scenario(scenario_id)
    if not scenario:
        raise HTTPException(404, "Scenario not found")
    return scenario


@router.post("/scenarios", status_code=201)
async def create_scenario(body: dict):
    """Create a user scenario from a scenario JSON document."""
    if not body.get("title"):
        raise HTTPException(400, "Scenario title is required")
    try:
        return storage.create_scenario(body)
    except FileExistsError as e:
        raise HTTPException(409, str(e))
    except ValidationError as e:
        raise HTTPException(400, f"Invalid scenario: {e.error_count()} error(s)")


@router.delete("/scenarios/{scenario_id}")
async def delete_scenario(scenario_id: str):
    """Delete a user scenario (presets cannot be deleted)."""
    if not storage.delete_scenario(scenario_id):
        raise HTTPException(404, "Scenario not found")
    return {"ok": True}


@router.post("/scenarios/{scenario_id}/games", status_code=201)
async def create_game(scenario_id: str, body: CreateGame):
    """Create a character from customization choices and start a game."""
    scenario = storage.get_scenario(scenario_id)
    if not scenario:
        raise HTTPException(404, "Scenario not found")
    try:
        game = storage.create_game(scenario, body.customizations, body.user_id)
    except ValueError as e:
        raise HTTPException(400, str(e))
    logger.info("game created id=%s scenario=%s", game.id, scenario_id)
    return game
