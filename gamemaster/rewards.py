"""Attribute rewards: frequency throttling and application.

Throttling (per character, keyed by game id):
  chance = clamp(0.1, 0.25 + time_bonus - 0.2 * consecutive_rewards, 0.9)
  time_bonus = 0.25 if more than 3 minutes since the last reward, else 0

A reward check runs only when a fresh uniform draw is <= chance. Only
"skill" messages (the word "skill" anywhere in the player message) are
throttled; every other message always reaches the reward check.

After a check: a granted reward stamps the time and bumps the consecutive
count; no reward resets the consecutive count but keeps the timestamp.

The tracker state lives in an injected mapping (one per app instance), so
it is process-local and resets on restart.

Application: the attribute must exist in the scenario and the amount must
satisfy 0 < amount <= 2. Skills tied to the attribute unlock once it
reaches 1.
"""

import logging
import math
import random
import time
from collections.abc import Callable, MutableMapping
from typing import Any

from gamemaster.models import (
    Achievement,
    AttributeReward,
    GameState,
    HistoryEntry,
    RewardRecord,
    Scenario,
)

logger = logging.getLogger(__name__)

BASE_CHANCE = 0.25
TIME_BONUS = 0.25
TIME_BONUS_AFTER_SECONDS = 3 * 60
CONSECUTIVE_PENALTY = 0.2
MIN_CHANCE = 0.1
MAX_CHANCE = 0.9
MAX_REWARD_AMOUNT = 2


class RewardError(ValueError):
    """Raised when a reward names an unknown attribute or an invalid amount."""


def reward_chance(seconds_since_last: float, consecutive_rewards: int) -> float:
    """Probability that a reward check is allowed to run."""
    bonus = TIME_BONUS if seconds_since_last > TIME_BONUS_AFTER_SECONDS else 0.0
    chance = BASE_CHANCE + bonus - CONSECUTIVE_PENALTY * consecutive_rewards
    return min(MAX_CHANCE, max(MIN_CHANCE, chance))


def is_skill_message(message: str) -> bool:
    return "skill" in message.lower()


class RewardTracker:
    """Remembers when each character was last rewarded.

    Args:
        store: Mapping of character id -> {"last_rewarded": float,
               "consecutive": int}. Defaults to a fresh dict.
        clock: Returns the current time in seconds.
        rng:   Source of the uniform draw.
    """

    def __init__(
        self,
        store: MutableMapping[str, dict[str, Any]] | None = None,
        clock: Callable[[], float] = time.time,
        rng: random.Random | None = None,
    ) -> None:
        self._store = store if store is not None else {}
        self._clock = clock
        self._rng = rng or random.Random()

    def _entry(self, character_id: str) -> dict[str, Any]:
        if character_id not in self._store:
            self._store[character_id] = {"last_rewarded": 0.0, "consecutive": 0}
        return self._store[character_id]

    def get(self, character_id: str) -> dict[str, Any]:
        return dict(self._entry(character_id))

    def chance(self, character_id: str) -> float:
        entry = self._entry(character_id)
        elapsed = self._clock() - entry["last_rewarded"]
        return reward_chance(elapsed, entry["consecutive"])

    def should_check(self, character_id: str) -> bool:
        """Draw against the current chance for this character."""
        chance = self.chance(character_id)
        draw = self._rng.random()
        entry = self._entry(character_id)
        logger.debug(
            "reward chance character=%s chance=%.2f draw=%.2f consecutive=%d",
            character_id, chance, draw, entry["consecutive"],
        )
        return draw <= chance

    def allow(self, character_id: str, user_message: str) -> bool:
        """Gate a reward check. Only skill messages are throttled."""
        if not is_skill_message(user_message):
            return True
        return self.should_check(character_id)

    def record(self, character_id: str, rewarded: bool) -> None:
        entry = self._entry(character_id)
        if rewarded:
            entry["last_rewarded"] = self._clock()
            entry["consecutive"] += 1
        else:
            entry["consecutive"] = 0
        # write back for stores that copy on read
        self._store[character_id] = entry


def validate_reward(scenario: Scenario, attribute: str, amount: Any) -> None:
    if attribute not in scenario.attributes:
        raise RewardError("Invalid attribute")
    if (
        isinstance(amount, bool)
        or not isinstance(amount, (int, float))
        or not math.isfinite(amount)
        or not 0 < amount <= MAX_REWARD_AMOUNT
    ):
        raise RewardError(f"Invalid reward amount. Must be a positive number <= {MAX_REWARD_AMOUNT}")


def reward_message(attribute: str, amount: float) -> str:
    shown = int(amount) if float(amount).is_integer() else amount
    plural = "" if amount == 1 else "s"
    return f"You've grown stronger! Your {attribute} increased by {shown} point{plural}."


def apply_attribute_reward(
    game: GameState, scenario: Scenario, reward: AttributeReward
) -> tuple[GameState, str]:
    """Return a copy of `game` with the reward applied, plus the reward message."""
    validate_reward(scenario, reward.attribute, reward.amount)
    updated = game.model_copy(deep=True)
    sheet = updated.character_data

    before = sheet.attributes.get(reward.attribute, 0)
    sheet.attributes[reward.attribute] = before + reward.amount
    logger.info(
        "reward game=%s attribute=%s %s -> %s",
        game.id, reward.attribute, before, sheet.attributes[reward.attribute],
    )

    for skill_name, info in scenario.base_skills.items():
        if info.attribute == reward.attribute and sheet.attributes[reward.attribute] >= 1:
            if not sheet.skills.get(skill_name):
                logger.info("skill unlocked game=%s skill=%s", game.id, skill_name)
            sheet.skills[skill_name] = True

    is_achievement = bool(reward.achievement and reward.achievement_title)
    if is_achievement:
        sheet.achievements.append(Achievement(
            title=reward.achievement_title,
            description=reward.reason,
            attribute=reward.attribute,
            amount=reward.amount,
        ))

    message = reward_message(reward.attribute, reward.amount)
    updated.history.append(HistoryEntry(
        message=message,
        sender="system",
        reward=RewardRecord(
            type="achievement" if is_achievement else "attribute",
            attribute=reward.attribute,
            amount=reward.amount,
            achievement_title=reward.achievement_title if is_achievement else None,
        ),
    ))
    updated.touch()
    return updated, message
