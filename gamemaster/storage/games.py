"""Game state storage: one JSON file per game under data/games/.

History is append-only apart from delete_history_entry().
"""

import json
import uuid
from pathlib import Path

from gamemaster.characters import new_character_sheet
from gamemaster.models import GameState, HistoryEntry, Scenario

from .core import games_dir


def _game_path(game_id: str) -> Path:
    return games_dir() / f"{game_id}.json"


def welcome_message(scenario: Scenario) -> str:
    if scenario.starting_point:
        return scenario.starting_point
    return (
        f'Welcome to "{scenario.title}"! I am your AI game master. '
        "How would you like to begin your adventure?"
    )


def create_game(
    scenario: Scenario, choices: dict[str, str], user_id: str = "anonymous"
) -> GameState:
    """Create a character for `scenario` and persist a new game.

    Raises ValueError if the customization choices are incomplete or invalid.
    """
    sheet = new_character_sheet(scenario, choices)
    game = GameState(
        id=f"game_{uuid.uuid4().hex[:12]}",
        user_id=user_id or "anonymous",
        scenario_id=scenario.id,
        character_data=sheet,
        history=[HistoryEntry(message=welcome_message(scenario), sender="system")],
    )
    save_game(game)
    return game


def get_game(game_id: str) -> GameState | None:
    path = _game_path(game_id)
    if not path.is_file():
        return None
    return GameState.model_validate_json(path.read_text())


def list_games(user_id: str | None = None) -> list[GameState]:
    games = []
    for path in sorted(games_dir().glob("*.json")):
        game = GameState.model_validate_json(path.read_text())
        if user_id is None or game.user_id == user_id:
            games.append(game)
    return games


def save_game(game: GameState) -> None:
    _game_path(game.id).write_text(game.model_dump_json(indent=2))


def delete_game(game_id: str) -> bool:
    path = _game_path(game_id)
    if not path.is_file():
        return False
    path.unlink()
    return True


def append_history(game_id: str, entries: list[HistoryEntry]) -> GameState:
    """Append entries to a game's history. Raises KeyError for unknown games."""
    game = get_game(game_id)
    if game is None:
        raise KeyError(game_id)
    game.history.extend(entries)
    game.touch()
    save_game(game)
    return game


def delete_history_entry(game_id: str, index: int) -> GameState:
    """Delete a history entry by index. Raises IndexError when out of range."""
    game = get_game(game_id)
    if game is None:
        raise KeyError(game_id)
    if index < 0 or index >= len(game.history):
        raise IndexError(f"History index {index} out of range")
    game.history.pop(index)
    game.touch()
    save_game(game)
    return game
