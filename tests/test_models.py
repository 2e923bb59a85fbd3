"""Tests for gamemaster.models."""

import pytest
from pydantic import ValidationError

from gamemaster.models import (
    GameState,
    HistoryEntry,
    Scenario,
    SkillCheckResult,
)


class TestHistoryEntry:
    def test_optional_records_default_to_none(self) -> None:
        e = HistoryEntry(message="Hello", sender="user")
        assert e.roll is None
        assert e.reward is None
        assert e.mini_game is None
        assert e.timestamp

    def test_invalid_sender_rejected(self) -> None:
        with pytest.raises(ValidationError):
            HistoryEntry(message="x", sender="narrator")

    def test_optional_records_excluded_from_dump_when_none(self) -> None:
        dumped = HistoryEntry(message="x", sender="system").model_dump(exclude_none=True)
        assert "roll" not in dumped
        assert "reward" not in dumped


class TestGameState:
    def test_defaults(self) -> None:
        g = GameState(id="game_1", scenario_id="royal-court")
        assert g.user_id == "anonymous"
        assert g.history == []
        assert g.conversation_round == 0
        assert g.mini_game_played is False
        assert g.mini_game_result is None

    def test_attribute_values_must_be_numbers(self) -> None:
        with pytest.raises(ValidationError):
            GameState.model_validate({
                "id": "g", "scenario_id": "s",
                "character_data": {"attributes": {"Wits": "lots"}},
            })

    def test_skill_flags_must_be_booleans(self) -> None:
        with pytest.raises(ValidationError):
            GameState.model_validate({
                "id": "g", "scenario_id": "s",
                "character_data": {"skills": {"Climbing": "maybe"}},
            })

    def test_invalid_mini_game_result_rejected(self) -> None:
        with pytest.raises(ValidationError):
            GameState(id="g", scenario_id="s", mini_game_result="draw")

    def test_json_roundtrip(self) -> None:
        g = GameState(id="g", scenario_id="s")
        g.history.append(HistoryEntry(message="Hi", sender="user"))
        assert GameState.model_validate_json(g.model_dump_json()) == g


class TestScenario:
    def test_nested_customizations(self) -> None:
        s = Scenario.model_validate({
            "id": "s",
            "title": "S",
            "player_customizations": {
                "Calling": {"content": {"Scout": {"attribute_bonus": {"Agility": 2}}}},
            },
        })
        option = s.player_customizations["Calling"].content["Scout"]
        assert option.attribute_bonus == {"Agility": 2}

    def test_skill_needs_attribute(self) -> None:
        with pytest.raises(ValidationError):
            Scenario.model_validate({
                "id": "s", "title": "S", "base_skills": {"Climbing": {"description": "up"}},
            })


def test_skill_check_total():
    r = SkillCheckResult(
        success=True, roll=12, difficulty=10, attribute="Wits",
        attribute_value=3, skill_name="Tracking", narrative_result="",
    )
    assert r.total == 15
