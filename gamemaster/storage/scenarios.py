"""Scenario storage (built-in presets merged with user-authored scenarios).

Presets live in presets/scenarios/<id>.json and are read-only. User
scenarios live in data/scenarios/<id>.json and win on id collision.
"""

import json
from pathlib import Path
from typing import Any

from gamemaster.models import Scenario

from .core import preset_scenarios_dir, scenarios_dir, slugify


def _load(path: Path, source: str) -> Scenario:
    data = json.loads(path.read_text())
    data["id"] = path.stem
    data["source"] = source
    return Scenario.model_validate(data)


def list_scenarios() -> list[Scenario]:
    by_id: dict[str, Scenario] = {}
    # Presets first (lower priority)
    if preset_scenarios_dir().is_dir():
        for path in sorted(preset_scenarios_dir().glob("*.json")):
            by_id[path.stem] = _load(path, "preset")
    # User scenarios override
    for path in sorted(scenarios_dir().glob("*.json")):
        by_id[path.stem] = _load(path, "user")
    return list(by_id.values())


def get_scenario(scenario_id: str) -> Scenario | None:
    user_path = scenarios_dir() / f"{scenario_id}.json"
    if user_path.is_file():
        return _load(user_path, "user")
    preset_path = preset_scenarios_dir() / f"{scenario_id}.json"
    if preset_path.is_file():
        return _load(preset_path, "preset")
    return None


def create_scenario(data: dict[str, Any]) -> Scenario:
    """Validate and write a user scenario. The id is always the title slug."""
    scenario_id = slugify(data.get("title", ""))
    if (scenarios_dir() / f"{scenario_id}.json").exists():
        raise FileExistsError(f"Scenario '{scenario_id}' already exists")
    if (preset_scenarios_dir() / f"{scenario_id}.json").is_file():
        raise FileExistsError(f"Scenario '{scenario_id}' already exists as preset")
    scenario = Scenario.model_validate({**data, "id": scenario_id, "source": "user"})
    payload = scenario.model_dump(exclude={"id", "source"})
    (scenarios_dir() / f"{scenario_id}.json").write_text(json.dumps(payload, indent=2))
    return scenario


def delete_scenario(scenario_id: str) -> bool:
    """Delete a user scenario (a preset with the same id becomes visible again)."""
    path = scenarios_dir() / f"{scenario_id}.json"
    if not path.is_file():
        return False
    path.unlink()
    return True
