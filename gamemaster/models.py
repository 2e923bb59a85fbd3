"""Core domain models.

Scenarios, character sheets and game state are validated with pydantic at
every storage and API boundary. Field names are snake_case on disk and on
the wire.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

Sender = Literal["user", "system"]
MiniGameOutcome = Literal["success", "failure"]


def utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Scenario (static authored content)
# ---------------------------------------------------------------------------

class SkillInfo(BaseModel):
    attribute: str
    description: str = ""


class CustomizationOption(BaseModel):
    description: str = ""
    attribute_bonus: dict[str, int] = Field(default_factory=dict)


class CustomizationCategory(BaseModel):
    description: str = ""
    content: dict[str, CustomizationOption] = Field(default_factory=dict)


class Scenario(BaseModel):
    """A role-play setting loaded from a JSON file."""

    id: str
    title: str
    description: str = ""
    attributes: dict[str, str] = Field(default_factory=dict)
    base_skills: dict[str, SkillInfo] = Field(default_factory=dict)
    starting_point: str = ""
    player_customizations: dict[str, CustomizationCategory] = Field(default_factory=dict)
    mini_games: list[str] = Field(default_factory=list)
    source: Literal["preset", "user"] = "user"


# ---------------------------------------------------------------------------
# Game state
# ---------------------------------------------------------------------------

class Achievement(BaseModel):
    title: str
    description: str = ""
    attribute: str
    amount: float
    timestamp: str = Field(default_factory=utcnow)


class CharacterSheet(BaseModel):
    attributes: dict[str, float] = Field(default_factory=dict)
    skills: dict[str, bool] = Field(default_factory=dict)
    customizations: dict[str, str] = Field(default_factory=dict)
    achievements: list[Achievement] = Field(default_factory=list)


class RollRecord(BaseModel):
    value: int
    attribute: str
    modified_value: float


class RewardRecord(BaseModel):
    type: Literal["attribute", "achievement"] = "attribute"
    attribute: str
    amount: float
    achievement_title: str | None = None


class MiniGameRecord(BaseModel):
    type: str
    result: MiniGameOutcome


class HistoryEntry(BaseModel):
    """One entry in a game's append-only history."""

    message: str
    sender: Sender
    timestamp: str = Field(default_factory=utcnow)
    roll: RollRecord | None = None
    reward: RewardRecord | None = None
    mini_game: MiniGameRecord | None = None


class GameState(BaseModel):
    id: str
    user_id: str = "anonymous"
    scenario_id: str
    character_data: CharacterSheet = Field(default_factory=CharacterSheet)
    history: list[HistoryEntry] = Field(default_factory=list)
    created_at: str = Field(default_factory=utcnow)
    updated_at: str = Field(default_factory=utcnow)
    conversation_round: int = 0
    mini_game_played: bool = False
    mini_game_result: MiniGameOutcome | None = None

    def touch(self) -> None:
        self.updated_at = utcnow()


# ---------------------------------------------------------------------------
# Results exchanged with the client
# ---------------------------------------------------------------------------

class SkillCheckResult(BaseModel):
    success: bool
    roll: int
    difficulty: int
    attribute: str
    attribute_value: float
    skill_name: str
    narrative_result: str

    @property
    def total(self) -> float:
        return self.roll + self.attribute_value


class AttributeReward(BaseModel):
    attribute: str
    amount: float
    reason: str = ""
    achievement: bool = False
    achievement_title: str | None = None
