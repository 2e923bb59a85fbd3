"""Handlebars prompt rendering for the game master.

Five templates, each overridable through config["prompts"][name]:
  game_master      — system prompt for every narrative reply
  skill_narrative  — player turn describing a resolved skill check
  reward_check     — asks for a JSON reward verdict
  story_structure  — asks for a JSON story outline
  portrait         — image prompt for the character portrait

Free text is rendered with triple braces so apostrophes and quotes in
scenario content are not HTML-escaped.
"""

from collections.abc import Callable
from typing import Any

import pybars

from gamemaster.models import GameState, Scenario, SkillCheckResult

_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


DEFAULT_GAME_MASTER_PROMPT = """\
You are a role-playing game master for the scenario: {{{scenario.title}}}.
{{#if scenario.description}}

## Setting
{{{scenario.description}}}
{{/if}}
{{#if char.customizations}}

## The Player Character
{{#each char.customizations}}
- {{{category}}}: {{{choice}}}
{{/each}}
{{/if}}
{{#if char.attributes}}

## Attributes
{{#each char.attributes}}
- {{{name}}}: {{value}}
{{/each}}
{{/if}}
{{#if char.skills}}

## Available Skills
{{#each char.skills}}
- {{{this}}}
{{/each}}
{{/if}}

The user is playing the role described above. Use the player's attributes \
and skills to influence outcomes. Respond in character and advance the story \
based on the user's input. Keep responses engaging, narrative, and within \
the scenario's theme.\
"""

DEFAULT_SKILL_NARRATIVE_PROMPT = """\
The player used the skill "{{{check.skill_name}}}" and \
{{#if check.success}}succeeded{{else}}failed{{/if}} with a roll of \
{{check.roll}} + {{check.attribute_value}} = {{check.total}} against a \
difficulty of {{check.difficulty}}.

Continue the narrative based on this \
{{#if check.success}}success{{else}}failure{{/if}}, making the outcome have \
a meaningful impact on the story. If successful, the player should gain an \
advantage or progress in their goal. If failed, there should be interesting \
consequences but the story should still progress.\
"""

DEFAULT_REWARD_CHECK_PROMPT = """\
You judge whether a player in the role-playing scenario \
"{{{scenario.title}}}" has earned an attribute reward.

## Attributes
{{#each scenario.attributes}}
- {{{name}}}: {{{description}}}
{{/each}}

## Player Action
{{{message}}}

## Game Master Response
{{{ai_response}}}

Rewards are rare. Only grant one when the action was clever, creative or \
persistent and clearly exercised one attribute. Reply with JSON only:
{"reward": true or false, "attribute": "<attribute name>", "amount": 1 or 2, \
"reason": "<one sentence>", "achievement": true or false, \
"achievement_title": "<short title, only for remarkable feats>"}\
"""

DEFAULT_STORY_STRUCTURE_PROMPT = """\
Outline the story arc for the role-playing scenario "{{{scenario.title}}}".
{{#if scenario.description}}
Setting: {{{scenario.description}}}
{{/if}}
{{#if scenario.starting_point}}
Starting point: {{{scenario.starting_point}}}
{{/if}}

## Story So Far
{{#last msgs 20}}
{{#if is_player}}> {{{text}}}{{else}}{{{text}}}{{/if}}

{{/last}}
Reply with JSON only:
{"acts": [{"title": "<act title>", "summary": "<one sentence>"}], \
"current_act": <1-based index of the act the story is in>, \
"goal": "<the player's current goal>"}\
"""

DEFAULT_PORTRAIT_PROMPT = """\
Create a detailed, high-quality character portrait for a role-playing game.
Character details: {{{char.details}}}
Setting: {{{scenario.description}}}

Create a portrait that represents this character, with details that reflect \
their role and background. Use vibrant colors and dramatic lighting. The \
character should look distinctive and memorable with facial features clearly \
visible.

IMPORTANT: DO NOT include any text, words, letters, numbers or writing in the image\
"""

DEFAULT_PROMPTS: dict[str, str] = {
    "game_master": DEFAULT_GAME_MASTER_PROMPT,
    "skill_narrative": DEFAULT_SKILL_NARRATIVE_PROMPT,
    "reward_check": DEFAULT_REWARD_CHECK_PROMPT,
    "story_structure": DEFAULT_STORY_STRUCTURE_PROMPT,
    "portrait": DEFAULT_PORTRAIT_PROMPT,
}


# ── Custom Handlebars helpers ────────────────────────────


def _helper_last(this, options, items, count):
    """{{#last array N}}...{{/last}} — iterate over the last N items."""
    result = []
    for item in list(items)[-int(count):]:
        result.extend(options["fn"](item))
    return result


_HELPERS: dict[str, Callable] = {
    "last": _helper_last,
}


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context, helpers=_HELPERS))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


def get_template(name: str, overrides: dict[str, str] | None = None) -> str:
    """Return the configured template for `name`, falling back to the default."""
    if overrides and overrides.get(name):
        return overrides[name]
    return DEFAULT_PROMPTS[name]


def _num(value: float) -> int | float:
    """2.0 → 2 so prompts read naturally."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def build_context(
    game: GameState,
    scenario: Scenario,
    message: str = "",
    check: SkillCheckResult | None = None,
    ai_response: str | None = None,
) -> dict[str, Any]:
    """Assemble template variables from game state.

    Returns a dict suitable for passing to render_prompt(). Nested objects
    (game, scenario, char, msgs) keep Handlebars paths short.
    """
    sheet = game.character_data
    msgs = [
        {
            "text": entry.message,
            "sender": entry.sender,
            "ts": entry.timestamp,
            "is_player": entry.sender == "user",
        }
        for entry in game.history
    ]

    ctx: dict[str, Any] = {
        "game": {"id": game.id, "round": game.conversation_round},
        "scenario": {
            "id": scenario.id,
            "title": scenario.title,
            "description": scenario.description,
            "starting_point": scenario.starting_point,
            "attributes": [
                {"name": name, "description": desc}
                for name, desc in scenario.attributes.items()
            ],
            "skills": [
                {"name": name, "attribute": info.attribute, "description": info.description}
                for name, info in scenario.base_skills.items()
            ],
        },
        "char": {
            "attributes": [
                {"name": name, "value": _num(value)}
                for name, value in sheet.attributes.items()
            ],
            "skills": [name for name, unlocked in sheet.skills.items() if unlocked],
            "customizations": [
                {"category": cat, "choice": choice}
                for cat, choice in sheet.customizations.items()
            ],
            "achievements": [a.title for a in sheet.achievements],
            "details": ", ".join(
                f"{cat}: {choice}" for cat, choice in sheet.customizations.items()
            ),
        },
        "msgs": msgs,
        "message": message,
    }

    if check is not None:
        ctx["check"] = {
            "skill_name": check.skill_name,
            "success": check.success,
            "roll": check.roll,
            "attribute": check.attribute,
            "attribute_value": _num(check.attribute_value),
            "total": _num(check.total),
            "difficulty": check.difficulty,
        }
    if ai_response is not None:
        ctx["ai_response"] = ai_response

    return ctx
