"""FastAPI API endpoints under /api.

Endpoint groups: settings, scenarios (+ character creation), games
(state + history), play (chat, skill checks, story structure, portrait),
rewards, mini-games, dice. Each game's actions are nested under
/api/games/{game_id}/.
"""

from fastapi import APIRouter

from .dice import router as dice_router
from .games import router as games_router
from .minigames import router as minigames_router
from .play import router as play_router
from .rewards import router as rewards_router
from .scenarios import router as scenarios_router
from .settings import router as settings_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(scenarios_router)
router.include_router(games_router)
router.include_router(play_router)
router.include_router(rewards_router)
router.include_router(minigames_router)
router.include_router(dice_router)
