"""LLM client — HTTP connection to a chat-completion backend.

The game-master service takes an LLM object matching the protocol:

    async def __call__(self, stage: str, messages: list[ChatMessage]) -> str: ...
    async def generate_image(self, prompt: str) -> str: ...

`stage` identifies the caller (e.g. "chat", "reward_check"). It is used
for logging only.

Two implementations are provided:

    ChatLLM  — real HTTP client, supports OpenAI-compatible and KoboldCpp
               backends. Selected by provider_format.
    EchoLLM  — returns the last user message unchanged. Useful for
               smoke-testing the routes without a running model.

Routes build a ChatLLM from config via llm_from_config(). Tests pass a StubLLM
to create_app() instead.
"""

from __future__ import annotations

import logging
from typing import Any, Literal, Protocol, TypedDict

import httpx

logger = logging.getLogger(__name__)


class ChatMessage(TypedDict):
    role: Literal["system", "user", "assistant"]
    content: str


# ---------------------------------------------------------------------------
# Protocol: every LLM implementation must match this signature
# ---------------------------------------------------------------------------

class LLM(Protocol):
    async def __call__(self, stage: str, messages: list[ChatMessage]) -> str: ...

    async def generate_image(self, prompt: str) -> str: ...


# ---------------------------------------------------------------------------
# ChatLLM: connects to a real backend
# ---------------------------------------------------------------------------

ProviderFormat = Literal["openai", "koboldcpp"]

_ROLE_LABELS = {"system": "", "user": "Player", "assistant": "Game Master"}


def flatten_messages(messages: list[ChatMessage]) -> str:
    """Render chat messages as a single completion prompt (KoboldCpp)."""
    parts: list[str] = []
    for msg in messages:
        label = _ROLE_LABELS.get(msg["role"], "")
        parts.append(f"{label}: {msg['content']}" if label else msg["content"])
    parts.append("Game Master:")
    return "\n\n".join(parts)


class ChatLLM:
    """Async HTTP client for chat-completion backends.

    Supported formats:
      "openai"     — POST /v1/chat/completions  {"model", "messages", ...}
                     Response: {"choices": [{"message": {"content": "..."}}]}
                     Images:   POST /v1/images/generations
      "koboldcpp"  — POST /api/v1/generate  {"prompt": ...}
                     Response: {"results": [{"text": "..."}]}
                     Images are not supported.

    Args:
        provider_url:    Base URL of the backend, e.g. "https://api.openai.com".
        api_key:         Bearer token, or empty string if not required.
        provider_format: Wire format to use. Defaults to "openai".
        model:           Chat model identifier (openai format only).
        image_model:     Image model identifier.
        temperature:     Sampling temperature.
        max_tokens:      Reply length limit.
        timeout:         HTTP timeout in seconds. Defaults to 120.
    """

    def __init__(
        self,
        provider_url: str,
        api_key: str = "",
        provider_format: ProviderFormat = "openai",
        model: str = "",
        image_model: str = "",
        temperature: float = 0.7,
        max_tokens: int = 500,
        timeout: float = 120.0,
    ) -> None:
        self._base_url = provider_url.rstrip("/")
        self._api_key = api_key
        self._format = provider_format
        self._model = model
        self._image_model = image_model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _build_request(self, messages: list[ChatMessage]) -> tuple[str, dict]:
        """Return (url, body) for the configured format."""
        if self._format == "koboldcpp":
            url = f"{self._base_url}/api/v1/generate"
            return url, {
                "prompt": flatten_messages(messages),
                "max_length": self._max_tokens,
                "temperature": self._temperature,
            }

        # openai (default)
        url = f"{self._base_url}/v1/chat/completions"
        body: dict[str, Any] = {
            "messages": list(messages),
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
        }
        if self._model:
            body["model"] = self._model
        return url, body

    def _parse_response(self, data: dict) -> str:
        """Extract the reply text from the response body."""
        if self._format == "koboldcpp":
            results = data.get("results")
            if not results or "text" not in results[0]:
                raise LLMError("Unexpected response format from KoboldCpp backend")
            return results[0]["text"]

        choices = data.get("choices")
        if not choices or "message" not in choices[0]:
            raise LLMError("Unexpected response format from OpenAI-compatible backend")
        return choices[0]["message"].get("content") or ""

    async def _post(self, url: str, body: dict) -> dict:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to LLM backend at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise LLMError(
                f"LLM backend returned HTTP {e.response.status_code}"
            ) from e
        except httpx.TimeoutException as e:
            raise LLMError(f"LLM backend timed out after {self._timeout}s") from e
        return resp.json()

    async def __call__(self, stage: str, messages: list[ChatMessage]) -> str:
        url, body = self._build_request(messages)
        logger.debug("llm call stage=%s url=%s messages=%d", stage, url, len(messages))
        text = self._parse_response(await self._post(url, body))
        logger.debug("llm response stage=%s len=%d", stage, len(text))
        return text

    async def generate_image(self, prompt: str) -> str:
        """Generate one image and return its URL."""
        if self._format != "openai":
            raise LLMError("Image generation requires an OpenAI-compatible backend")
        url = f"{self._base_url}/v1/images/generations"
        body: dict[str, Any] = {
            "prompt": prompt,
            "n": 1,
            "size": "1024x1024",
            "quality": "standard",
            "style": "vivid",
        }
        if self._image_model:
            body["model"] = self._image_model
        logger.debug("image call url=%s prompt_len=%d", url, len(prompt))
        data = await self._post(url, body)
        images = data.get("data")
        if not images or not images[0].get("url"):
            raise LLMError("Failed to generate image")
        return images[0]["url"]


# ---------------------------------------------------------------------------
# EchoLLM: echoes the player back; useful for route smoke tests
# ---------------------------------------------------------------------------

class EchoLLM:
    """Returns the last user message as-is. No network calls.

    Lets you verify that the route wiring (prompt building, history
    appends, storage writes) works end-to-end without a running model.
    The output won't be valid JSON for structured stages — use StubLLM
    in tests when you need controlled responses.
    """

    async def __call__(self, stage: str, messages: list[ChatMessage]) -> str:
        logger.debug("EchoLLM stage=%s messages=%d", stage, len(messages))
        for msg in reversed(messages):
            if msg["role"] == "user":
                return msg["content"]
        return ""

    async def generate_image(self, prompt: str) -> str:
        return ""


def llm_from_config(config: dict[str, Any]) -> ChatLLM | None:
    """Build a ChatLLM from the "llm" config section, or None if unconfigured."""
    conn = config.get("llm", {})
    if not conn.get("provider_url"):
        return None
    return ChatLLM(
        provider_url=conn["provider_url"],
        api_key=conn.get("api_key", ""),
        provider_format=conn.get("provider_format", "openai"),
        model=conn.get("model", ""),
        image_model=conn.get("image_model", ""),
        temperature=conn.get("temperature", 0.7),
        max_tokens=conn.get("max_tokens", 500),
        timeout=conn.get("timeout", 120),
    )


# ---------------------------------------------------------------------------
# LLMError: raised by ChatLLM for all connection and protocol failures
# ---------------------------------------------------------------------------

class LLMError(RuntimeError):
    """Raised when the LLM backend cannot be reached or returns an error."""
