"""LLM clients: one completion call per ``generate``; retries live in the summarizer."""

import logging
import os
from typing import Any, Dict, Optional

import requests
from openhands.sdk import LLM
from openhands.sdk.llm import Message, TextContent

from glance.errors import GlanceError
from glance.llm.model_config import resolve_model_config

logger = logging.getLogger(__name__)

OPENROUTER_API_URL = "https://openrouter.ai/api/v1"


class LLMClientError(GlanceError):
    """A single completion attempt failed."""


class LLMClient:
    """Sends one prompt, returns the generated text."""

    name = "llm"

    def generate(self, prompt: str) -> str:
        raise NotImplementedError


class OpenHandsClient(LLMClient):
    """Completion through the OpenHands SDK ``LLM`` (litellm underneath).

    Args:
        model: litellm model id, e.g. ``gemini/gemini-2.5-flash``.
        api_key: Provider key. Optional for local endpoints.
        base_url: Optional endpoint override (Ollama, a proxy, ...).
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: int = 120,
    ):
        self.model = model
        self.name = f"openhands:{model}"
        self.model_config = resolve_model_config(model)

        kwargs: Dict[str, Any] = {}
        if base_url:
            kwargs["base_url"] = base_url
        if api_key:
            kwargs["api_key"] = api_key

        self.llm = LLM(
            model=model,
            timeout=timeout,
            max_output_tokens=self.model_config.max_output_tokens,
            **kwargs,
        )
        logger.debug("Configured %s (%s)", self.name, self.model_config)

    def generate(self, prompt: str) -> str:
        try:
            response = self.llm.completion(
                messages=[Message(role="user", content=[TextContent(text=prompt)])],
            )
        except Exception as exc:
            raise LLMClientError(f"{self.name} completion failed: {type(exc).__name__}: {exc}") from exc

        # LLMResponse.message.content is a list of content objects
        text = ""
        for block in response.message.content:
            if hasattr(block, "text"):
                text += block.text
        return text


class OpenRouterClient(LLMClient):
    """Client for OpenRouter's chat completions REST API.

    Args:
        model: OpenRouter model id, e.g. ``google/gemini-2.5-flash``.
        api_key: Bearer token. Defaults to ``OPENROUTER_API_KEY``.
        api_url: Base URL. Defaults to ``OPENROUTER_API_URL`` env var or the public endpoint.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: int = 120,
    ):
        self.model = model
        self.name = f"openrouter:{model}"
        self.api_key = api_key or os.getenv("OPENROUTER_API_KEY", "")
        self.api_url = (api_url or os.getenv("OPENROUTER_API_URL", OPENROUTER_API_URL)).rstrip("/")
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def generate(self, prompt: str) -> str:
        endpoint = f"{self.api_url}/chat/completions"
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
        }

        try:
            response = requests.post(endpoint, json=payload, timeout=self.timeout, headers=self._headers())
        except requests.exceptions.RequestException as exc:
            raise LLMClientError(f"OpenRouter request failed: {type(exc).__name__}: {exc}") from exc

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code >= 400:
            message = _error_message(data)
            raise LLMClientError(
                f"OpenRouter returned status {response.status_code}: {message or response.reason}"
            )

        if _error_message(data):
            raise LLMClientError(f"OpenRouter error: {_error_message(data)}")

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise LLMClientError("OpenRouter response had no choices")

        return _content_text(content)


def _content_text(content: Any) -> str:
    """OpenRouter returns either a string or a list of ``{"type": "text", "text": ...}`` parts."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(part.get("text", "") for part in content if isinstance(part, dict))
    return ""


def _error_message(data: Any) -> Optional[str]:
    if not isinstance(data, dict) or not data.get("error"):
        return None
    error = data["error"]
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(error)
