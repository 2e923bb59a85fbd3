"""Dice rolls and skill check resolution.

Skill checks roll a d20 and add the raw attribute value:

  total = roll + attribute_value      success iff total >= DIFFICULTY (10)

The D&D-style helpers (calculate_modifier, roll_d20, interpret_roll) treat the
attribute as an ability score instead:

  modifier = floor((score - 10) / 2)

  total <= 5   critical-failure
  total <= 10  failure
  total <= 19  success
  total >= 20  critical-success

Every function accepts an optional random.Random so tests can seed rolls.
"""

import math
import random
from typing import Literal

from gamemaster.models import SkillCheckResult

DIFFICULTY = 10

RollOutcome = Literal["critical-failure", "failure", "success", "critical-success"]


def _rng(rng: random.Random | None):
    # falls back to the random module's shared generator
    return rng if rng is not None else random


def roll_die(sides: int = 20, rng: random.Random | None = None) -> int:
    """Roll one die, uniform in [1, sides]."""
    if sides < 1:
        raise ValueError(f"A die needs at least one side, got {sides}")
    return _rng(rng).randint(1, sides)


def roll_dice(count: int, sides: int = 20, rng: random.Random | None = None) -> list[int]:
    """Roll `count` dice and return the individual results."""
    if count < 0:
        raise ValueError(f"Cannot roll a negative number of dice ({count})")
    return [roll_die(sides, rng) for _ in range(count)]


def roll_with_modifier(
    sides: int = 20, modifier: int = 0, rng: random.Random | None = None
) -> tuple[int, int]:
    """Roll one die and return (roll, roll + modifier)."""
    roll = roll_die(sides, rng)
    return roll, roll + modifier


def calculate_modifier(score: float) -> int:
    return math.floor((score - 10) / 2)


def roll_d20(score: float, rng: random.Random | None = None) -> dict[str, int]:
    """Roll a d20 and apply the ability modifier for `score`."""
    natural = roll_die(20, rng)
    modifier = calculate_modifier(score)
    return {"natural_roll": natural, "modifier": modifier, "total_roll": natural + modifier}


def interpret_roll(total: float) -> RollOutcome:
    if total <= 5:
        return "critical-failure"
    if total <= 10:
        return "failure"
    if total <= 19:
        return "success"
    return "critical-success"


def skill_check(
    skill_name: str,
    attribute: str,
    attribute_value: float,
    rng: random.Random | None = None,
) -> SkillCheckResult:
    """Resolve a skill check against the fixed difficulty."""
    roll = roll_die(20, rng)
    success = roll + attribute_value >= DIFFICULTY
    if success:
        narrative = f"You successfully used {skill_name}!"
    else:
        narrative = f"Your attempt at {skill_name} failed."
    return SkillCheckResult(
        success=success,
        roll=roll,
        difficulty=DIFFICULTY,
        attribute=attribute,
        attribute_value=attribute_value,
        skill_name=skill_name,
        narrative_result=narrative,
    )
