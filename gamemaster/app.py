import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gamemaster.llm import LLM
from gamemaster.ratelimit import RateLimiter
from gamemaster.rewards import RewardTracker
from gamemaster.routes import router
from gamemaster import storage

load_dotenv(Path(__file__).parent.parent / ".env")

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"

logger = logging.getLogger(__name__)


def create_app(data_dir: Path | None = None, llm: LLM | None = None) -> FastAPI:
    """Build the API app.

    `llm` overrides the connection from settings (tests, smoke runs). The
    reward tracker and rate limiter are per-app, in-memory stores.
    """
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
    resolved = data_dir or Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR)))
    storage.init_storage(resolved)
    limits = storage.get_config()["rate_limit"]

    app = FastAPI(title="RPG Game Master")
    app.state.llm = llm
    app.state.reward_tracker = RewardTracker()
    app.state.rate_limiter = RateLimiter(limits["max_requests"], limits["window_seconds"])
    app.include_router(router, prefix="/api")

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"detail": "Internal server error"}, status_code=500)

    return app


# Default app instance for uvicorn (uses DATA_DIR env var or default)
app = create_app()
