"""Health check, settings, and connection check endpoints."""

import logging

import httpx
from fastapi import APIRouter, Request

from gamemaster import storage

from .models import CheckConnectionBody

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.post("/check-connection")
async def check_connection(body: CheckConnectionBody):
    """Quick health check against an LLM provider URL."""
    base = body.provider_url.rstrip("/")
    if body.provider_format == "koboldcpp":
        url = f"{base}/api/v1/model"
    else:
        url = f"{base}/v1/models"
    headers: dict[str, str] = {}
    if body.api_key:
        headers["Authorization"] = f"Bearer {body.api_key}"
    try:
        async with httpx.AsyncClient(timeout=5) as client:
            resp = await client.get(url, headers=headers)
            resp.raise_for_status()
        return {"ok": True}
    except httpx.HTTPError as e:
        logger.info("connection check failed url=%s: %s", url, e)
        return {"ok": False}


@router.get("/settings")
async def get_settings():
    """Get global app settings (LLM connection, prompt overrides, limits)."""
    return storage.get_config()


@router.patch("/settings")
async def update_settings(body: dict, request: Request):
    """Update global app settings (partial merge)."""
    config = storage.update_config(body)
    limiter = request.app.state.rate_limiter
    limiter.max_requests = config["rate_limit"]["max_requests"]
    limiter.window_seconds = config["rate_limit"]["window_seconds"]
    return config
