"""Reward check and attribute reward endpoints."""

import logging

from fastapi import APIRouter, HTTPException, Request

from gamemaster import gm, storage
from gamemaster.llm import LLMError
from gamemaster.models import AttributeReward
from gamemaster.prompts import PromptError
from gamemaster.rewards import RewardError, apply_attribute_reward

from .common import (
    check_rate_limit,
    get_llm,
    prompt_overrides,
    require_game,
    require_game_scenario,
)
from .models import CheckRewardsBody, RewardBody

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/games/{game_id}/check-rewards")
async def check_rewards(game_id: str, body: CheckRewardsBody, request: Request):
    """Ask the game master whether the last exchange earned a reward.

    Returns {} when rewards are disabled, throttled, or not earned.
    """
    game = require_game(game_id)
    scenario = require_game_scenario(game)
    if not body.user_message or not body.ai_response:
        raise HTTPException(400, "Missing required parameters")
    if not storage.get_config()["rewards"].get("enabled", True):
        return {}

    tracker = request.app.state.reward_tracker
    if not tracker.allow(game.id, body.user_message):
        logger.info("reward check skipped due to frequency limiting game=%s", game_id)
        return {}

    check_rate_limit(request)
    llm = get_llm(request)
    try:
        reward = await gm.check_for_rewards(
            llm, game, scenario, body.user_message, body.ai_response, prompt_overrides()
        )
    except PromptError as e:
        raise HTTPException(400, str(e))
    except LLMError as e:
        logger.error("reward check failed game=%s: %s", game_id, e)
        raise HTTPException(502, "Failed to check for rewards")

    tracker.record(game.id, reward is not None)
    if reward is None:
        return {}
    logger.info(
        "reward offered game=%s attribute=%s amount=%s achievement=%s",
        game_id, reward.attribute, reward.amount, reward.achievement_title,
    )
    return {"attribute_reward": reward}


@router.post("/games/{game_id}/reward")
async def apply_reward(game_id: str, body: RewardBody):
    """Apply an attribute reward to the game's character."""
    game = require_game(game_id)
    scenario = require_game_scenario(game)
    reward = AttributeReward(
        attribute=body.attribute,
        amount=body.amount,
        reason=body.reason,
        achievement=bool(body.achievement_title),
        achievement_title=body.achievement_title,
    )
    try:
        updated, message = apply_attribute_reward(game, scenario, reward)
    except RewardError as e:
        raise HTTPException(400, str(e))
    storage.save_game(updated)
    return {"game": updated, "reward_message": message}
