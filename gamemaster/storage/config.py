"""Global app configuration (LLM connection, prompt overrides, rate limits).

Defaults for the LLM connection come from the environment (.env is loaded by
the app), so a fresh data directory works without a config.json.
"""

import json
import os
from pathlib import Path
from typing import Any

from .core import data_dir

_SECTIONS = ("llm", "prompts", "rewards", "rate_limit")


def _defaults() -> dict[str, Any]:
    return {
        "llm": {
            "provider_url": os.getenv("LLM_PROVIDER_URL", ""),
            "api_key": os.getenv("LLM_API_KEY", ""),
            "provider_format": os.getenv("LLM_PROVIDER_FORMAT", "openai"),
            "model": os.getenv("LLM_MODEL", "gpt-4o"),
            "image_model": os.getenv("LLM_IMAGE_MODEL", "dall-e-3"),
            "temperature": 0.7,
            "max_tokens": 500,
            "timeout": 120,
        },
        "prompts": {
            "game_master": "",
            "skill_narrative": "",
            "reward_check": "",
            "story_structure": "",
            "portrait": "",
        },
        "rewards": {
            "enabled": True,
        },
        "rate_limit": {
            "max_requests": 30,
            "window_seconds": 60,
        },
    }


def _config_path() -> Path:
    return data_dir() / "config.json"


def get_config() -> dict[str, Any]:
    """Read config, returning defaults merged with stored values."""
    config = _defaults()
    path = _config_path()
    if path.is_file():
        stored = json.loads(path.read_text())
        for section in _SECTIONS:
            vals = stored.get(section)
            if isinstance(vals, dict):
                config[section].update(vals)
    return config


def update_config(fields: dict[str, Any]) -> dict[str, Any]:
    """Merge fields into config and persist. Returns full config.

    Each section is merged key-by-key; unknown top-level keys are ignored.
    """
    config = get_config()
    for section in _SECTIONS:
        vals = fields.get(section)
        if isinstance(vals, dict):
            config[section].update(vals)
    _config_path().write_text(json.dumps(config, indent=2))
    return config
