"""Game-master service: every LLM-backed operation of a game.

  generate_response        system prompt + history + player message → reply
  narrate_skill_check      skill check result → narrative continuation
  check_for_rewards        player action + GM reply → AttributeReward | None
  generate_story_structure history → {"acts", "current_act", "goal"}
  generate_portrait        customizations + setting → (image_url, prompt)

History entries map to chat roles by sender: "user" → user, "system" →
assistant. Structured replies are parsed as JSON after stripping markdown
fences; unparsable replies are logged and treated as "no result".
"""

import json
import logging
import math
from typing import Any

from gamemaster.llm import LLM, ChatMessage
from gamemaster.models import AttributeReward, GameState, Scenario, SkillCheckResult
from gamemaster.prompts import build_context, get_template, render_prompt
from gamemaster.rewards import MAX_REWARD_AMOUNT

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "I'm not sure how to respond to that."


def _parse_json_output(text: str) -> dict | None:
    """Parse JSON from LLM output, stripping markdown fences."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        lines = [l for l in lines[1:] if not l.strip().startswith("```")]
        cleaned = "\n".join(lines)
    try:
        data = json.loads(cleaned)
        return data if isinstance(data, dict) else None
    except json.JSONDecodeError as e:
        logger.warning("LLM output is not valid JSON: %s", e)
        return None


def history_messages(game: GameState) -> list[ChatMessage]:
    return [
        {
            "role": "user" if entry.sender == "user" else "assistant",
            "content": entry.message,
        }
        for entry in game.history
    ]


async def generate_response(
    llm: LLM,
    game: GameState,
    scenario: Scenario,
    message: str,
    prompts: dict[str, str] | None = None,
    stage: str = "chat",
) -> str:
    """Ask the game master to reply to `message` given the game so far."""
    system = render_prompt(
        get_template("game_master", prompts), build_context(game, scenario, message)
    )
    messages: list[ChatMessage] = [{"role": "system", "content": system}]
    messages.extend(history_messages(game))
    messages.append({"role": "user", "content": message})
    reply = await llm(stage, messages)
    return reply.strip() or FALLBACK_REPLY


async def narrate_skill_check(
    llm: LLM,
    game: GameState,
    scenario: Scenario,
    result: SkillCheckResult,
    prompts: dict[str, str] | None = None,
) -> str:
    """Continue the story from a resolved skill check."""
    skill_prompt = render_prompt(
        get_template("skill_narrative", prompts),
        build_context(game, scenario, check=result),
    )
    return await generate_response(
        llm, game, scenario, skill_prompt, prompts, stage="skill_narrative"
    )


def _parse_reward(data: dict[str, Any], scenario: Scenario) -> AttributeReward | None:
    if not data.get("reward"):
        return None
    attribute = data.get("attribute", "")
    if not isinstance(attribute, str):
        attribute = ""
    elif attribute not in scenario.attributes:
        # models sometimes change the case of attribute names
        by_lower = {a.lower(): a for a in scenario.attributes}
        attribute = by_lower.get(attribute.lower(), "")
    if not attribute:
        logger.warning("reward check named unknown attribute: %r", data.get("attribute"))
        return None
    amount = data.get("amount", 1)
    numeric = isinstance(amount, (int, float)) and not isinstance(amount, bool)
    if not numeric or not math.isfinite(amount):
        amount = 1
    amount = max(1, min(MAX_REWARD_AMOUNT, int(amount)))
    title = data.get("achievement_title") or None
    return AttributeReward(
        attribute=attribute,
        amount=amount,
        reason=str(data.get("reason", "")),
        achievement=bool(data.get("achievement")) and bool(title),
        achievement_title=title if data.get("achievement") else None,
    )


async def check_for_rewards(
    llm: LLM,
    game: GameState,
    scenario: Scenario,
    user_message: str,
    ai_response: str,
    prompts: dict[str, str] | None = None,
) -> AttributeReward | None:
    """Ask the model whether the last exchange earned an attribute reward."""
    prompt = render_prompt(
        get_template("reward_check", prompts),
        build_context(game, scenario, user_message, ai_response=ai_response),
    )
    text = await llm("reward_check", [{"role": "user", "content": prompt}])
    data = _parse_json_output(text)
    if not data:
        return None
    return _parse_reward(data, scenario)


async def generate_story_structure(
    llm: LLM,
    game: GameState,
    scenario: Scenario,
    prompts: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Outline the story arc. Non-JSON replies come back as {"summary": text}."""
    prompt = render_prompt(
        get_template("story_structure", prompts), build_context(game, scenario)
    )
    text = await llm("story_structure", [{"role": "user", "content": prompt}])
    data = _parse_json_output(text)
    if data is None:
        return {"acts": [], "current_act": None, "goal": "", "summary": text.strip()}
    acts = [
        {"title": str(a.get("title", "")), "summary": str(a.get("summary", ""))}
        for a in data.get("acts", [])
        if isinstance(a, dict)
    ]
    return {
        "acts": acts,
        "current_act": data.get("current_act"),
        "goal": str(data.get("goal", "")),
    }


def portrait_prompt(
    game: GameState, scenario: Scenario, prompts: dict[str, str] | None = None
) -> str:
    return render_prompt(get_template("portrait", prompts), build_context(game, scenario))


async def generate_portrait(
    llm: LLM,
    game: GameState,
    scenario: Scenario,
    prompts: dict[str, str] | None = None,
) -> tuple[str, str]:
    """Generate a character portrait. Returns (image_url, prompt)."""
    prompt = portrait_prompt(game, scenario, prompts)
    url = await llm.generate_image(prompt)
    return url, prompt
