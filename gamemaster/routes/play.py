"""Game-master endpoints: chat, skill checks, story structure, portrait.

Every endpoint that calls the LLM is rate limited per client. LLM failures
are logged and surface as 502 with a static message.
"""

import logging

from fastapi import APIRouter, HTTPException, Request

from gamemaster import dice, gm, storage
from gamemaster.llm import LLMError
from gamemaster.minigames import pending_mini_game
from gamemaster.models import HistoryEntry, RollRecord
from gamemaster.prompts import PromptError

from .common import (
    check_rate_limit,
    get_llm,
    prompt_overrides,
    require_game,
    require_game_scenario,
)
from .models import ChatBody, NarrativeSkillBody, SkillBody

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/games/{game_id}/chat")
async def chat(game_id: str, body: ChatBody, request: Request):
    """Send a player message and get the game master's reply."""
    game = require_game(game_id)
    scenario = require_game_scenario(game)
    message = body.message.strip()
    if not message:
        raise HTTPException(400, "Missing required parameters")
    check_rate_limit(request)
    llm = get_llm(request)

    try:
        reply = await gm.generate_response(llm, game, scenario, message, prompt_overrides())
    except PromptError as e:
        raise HTTPException(400, str(e))
    except LLMError as e:
        logger.error("chat failed game=%s: %s", game_id, e)
        raise HTTPException(502, "Failed to generate response")

    game.history.append(HistoryEntry(message=message, sender="user"))
    game.history.append(HistoryEntry(message=reply, sender="system"))
    game.conversation_round += 1
    game.touch()
    storage.save_game(game)

    return {
        "response": reply,
        "game": game,
        "mini_game": pending_mini_game(game, scenario),
    }


@router.post("/games/{game_id}/skills")
async def skill_check(game_id: str, body: SkillBody):
    """Roll a skill check for one of the character's unlocked skills."""
    game = require_game(game_id)
    scenario = require_game_scenario(game)
    skill = scenario.base_skills.get(body.skill_name)
    if skill is None:
        raise HTTPException(400, "Invalid skill or scenario")
    if not game.character_data.skills.get(body.skill_name):
        raise HTTPException(400, f"Skill '{body.skill_name}' is locked")

    value = game.character_data.attributes.get(skill.attribute, 0)
    result = dice.skill_check(body.skill_name, skill.attribute, value)
    logger.info(
        "skill check game=%s skill=%s roll=%d value=%s success=%s",
        game_id, body.skill_name, result.roll, value, result.success,
    )

    game.history.append(HistoryEntry(
        message=f"I use my {body.skill_name} skill.",
        sender="user",
        roll=RollRecord(
            value=result.roll,
            attribute=skill.attribute,
            modified_value=result.total,
        ),
    ))
    game.touch()
    storage.save_game(game)
    return result


@router.post("/games/{game_id}/narrative-skill")
async def narrative_skill(game_id: str, body: NarrativeSkillBody, request: Request):
    """Continue the story from a skill check result."""
    game = require_game(game_id)
    scenario = require_game_scenario(game)
    check_rate_limit(request)
    llm = get_llm(request)

    try:
        narrative = await gm.narrate_skill_check(
            llm, game, scenario, body.result, prompt_overrides()
        )
    except PromptError as e:
        raise HTTPException(400, str(e))
    except LLMError as e:
        logger.error("skill narrative failed game=%s: %s", game_id, e)
        raise HTTPException(502, "Failed to generate narrative response")

    game.history.append(HistoryEntry(message=narrative, sender="system"))
    game.conversation_round += 1
    game.touch()
    storage.save_game(game)
    return {
        "response": narrative,
        "game": game,
        "mini_game": pending_mini_game(game, scenario),
    }


@router.post("/games/{game_id}/story-structure")
async def story_structure(game_id: str, request: Request):
    """Outline the story arc so far."""
    game = require_game(game_id)
    scenario = require_game_scenario(game)
    check_rate_limit(request)
    llm = get_llm(request)

    try:
        structure = await gm.generate_story_structure(llm, game, scenario, prompt_overrides())
    except PromptError as e:
        raise HTTPException(400, str(e))
    except LLMError as e:
        logger.error("story structure failed game=%s: %s", game_id, e)
        raise HTTPException(502, "Failed to generate story structure")
    return {"story_structure": structure}


@router.post("/games/{game_id}/image")
async def generate_image(game_id: str, request: Request):
    """Generate a portrait of the game's character."""
    game = require_game(game_id)
    scenario = require_game_scenario(game)
    check_rate_limit(request)
    llm = get_llm(request)

    try:
        image_url, prompt = await gm.generate_portrait(llm, game, scenario, prompt_overrides())
    except PromptError as e:
        raise HTTPException(400, str(e))
    except LLMError as e:
        logger.error("image generation failed game=%s: %s", game_id, e)
        raise HTTPException(502, "Failed to generate image")
    return {"image_url": image_url, "prompt": prompt}
