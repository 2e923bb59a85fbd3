"""Lookups and guards shared by the routers."""

from fastapi import HTTPException, Request

from gamemaster import storage
from gamemaster.llm import LLM, llm_from_config
from gamemaster.models import GameState, Scenario


def require_game(game_id: str) -> GameState:
    game = storage.get_game(game_id)
    if not game:
        raise HTTPException(404, "Game not found")
    return game


def require_game_scenario(game: GameState) -> Scenario:
    """Scenario of a running game. A missing scenario is a client error."""
    scenario = storage.get_scenario(game.scenario_id)
    if not scenario:
        raise HTTPException(400, "Invalid scenario")
    return scenario


def get_llm(request: Request) -> LLM:
    """The app's injected LLM, or one built from the current settings."""
    llm = getattr(request.app.state, "llm", None)
    if llm is not None:
        return llm
    llm = llm_from_config(storage.get_config())
    if llm is None:
        raise HTTPException(400, "LLM connection is not configured — set it in Settings")
    return llm


def prompt_overrides() -> dict[str, str]:
    return storage.get_config()["prompts"]


def check_rate_limit(request: Request) -> None:
    """Count one LLM-backed request for the calling client."""
    limiter = request.app.state.rate_limiter
    key = request.client.host if request.client else "anonymous"
    if not limiter.hit(key):
        raise HTTPException(429, "Too many requests, please slow down")
