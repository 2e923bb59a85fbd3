"""Pydantic request models for API endpoints."""

from pydantic import BaseModel, Field

from gamemaster.models import SkillCheckResult


class CreateGame(BaseModel):
    customizations: dict[str, str] = Field(default_factory=dict)
    user_id: str = "anonymous"


class ChatBody(BaseModel):
    message: str


class SkillBody(BaseModel):
    skill_name: str


class NarrativeSkillBody(BaseModel):
    result: SkillCheckResult


class CheckRewardsBody(BaseModel):
    user_message: str
    ai_response: str


class RewardBody(BaseModel):
    attribute: str
    amount: float
    reason: str = ""
    achievement_title: str | None = None


class MiniGameResultBody(BaseModel):
    type: str
    success: bool


class DiceRollBody(BaseModel):
    count: int = Field(default=1, ge=1, le=100)
    sides: int = Field(default=20, ge=1, le=1000)
    modifier: int = 0


class CheckConnectionBody(BaseModel):
    provider_url: str
    api_key: str = ""
    provider_format: str = "openai"
