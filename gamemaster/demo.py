"""Create demo games for development/testing."""

import shutil

from gamemaster import storage
from gamemaster.models import HistoryEntry, RollRecord

DEMO_GAMES = [
    {
        "scenario": "dragons-hollow",
        "customizations": {"Calling": "Scout"},
        "history": [
            ("user", "I climb the ruined bell tower to get a look at the mountain."),
            ("system", "The stones are slick with soot, but you find handholds. From the "
                       "top you spot a thin plume of smoke rising from a cave mouth."),
        ],
    },
    {
        "scenario": "royal-court",
        "customizations": {"Background": "Former Spy", "Reputation": "Unflappable"},
        "history": [],
    },
]


def create_demo_data() -> None:
    """Wipe existing games and create fresh demo games from the preset scenarios."""
    if storage.games_dir().exists():
        shutil.rmtree(storage.games_dir())
    storage.games_dir().mkdir(parents=True, exist_ok=True)

    for demo in DEMO_GAMES:
        scenario = storage.get_scenario(demo["scenario"])
        if scenario is None:
            continue
        game = storage.create_game(scenario, demo["customizations"], user_id="demo")
        entries = [HistoryEntry(message=text, sender=sender) for sender, text in demo["history"]]
        if entries:
            entries[0].roll = RollRecord(value=14, attribute="Agility", modified_value=16)
            game.history.extend(entries)
            game.conversation_round = len(entries) // 2
            storage.save_game(game)
