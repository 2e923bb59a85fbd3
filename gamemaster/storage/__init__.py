"""File-based JSON storage.

Data layout:
  data/
    config.json          App settings (LLM connection, prompt overrides, rate limits)
    scenarios/           User-authored scenarios (<id>.json)
    games/               One file per game (<id>.json): character sheet + history
  presets/
    scenarios/           Built-in read-only scenarios (merged at read time)

Preset merging: list_scenarios() and get_scenario() merge preset + user data;
user data wins on id collision. Deleting a user scenario reveals the preset.

Config: get_config() returns defaults merged with stored values.
update_config() merges each section key-by-key.
"""

# Re-export all public symbols so `from gamemaster import storage` works.

from .core import (  # noqa: F401
    data_dir,
    games_dir,
    init_storage,
    preset_scenarios_dir,
    presets_dir,
    scenarios_dir,
    slugify,
)

from .scenarios import (  # noqa: F401
    create_scenario,
    delete_scenario,
    get_scenario,
    list_scenarios,
)

from .games import (  # noqa: F401
    append_history,
    create_game,
    delete_game,
    delete_history_entry,
    get_game,
    list_games,
    save_game,
    welcome_message,
)

from .config import (  # noqa: F401
    get_config,
    update_config,
)
