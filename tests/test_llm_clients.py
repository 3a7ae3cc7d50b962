"""Tests for the LLM clients.

OpenRouter is exercised with mocked HTTP via the responses library; the
OpenHands SDK ``LLM`` class is patched out entirely.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
import requests.exceptions
import responses

from glance.llm.clients import LLMClientError, OpenHandsClient, OpenRouterClient
from glance.llm.model_config import MODEL_OVERRIDES

ENDPOINT = "http://router.test/api/v1/chat/completions"


@pytest.fixture
def router():
    return OpenRouterClient(model="google/gemini-2.5-flash", api_key="sk-test", api_url="http://router.test/api/v1/")


# ---------------------------------------------------------------------------
# OpenRouterClient
# ---------------------------------------------------------------------------

class TestOpenRouterClient:

    @responses.activate
    def test_success(self, router):
        responses.add(
            responses.POST, ENDPOINT,
            json={"choices": [{"message": {"content": "# summary"}}]}, status=200,
        )

        assert router.generate("prompt") == "# summary"
        assert len(responses.calls) == 1

        request = responses.calls[0].request
        assert request.headers["Authorization"] == "Bearer sk-test"
        assert b'"model": "google/gemini-2.5-flash"' in request.body

    @responses.activate
    def test_content_parts(self, router):
        responses.add(
            responses.POST, ENDPOINT,
            json={"choices": [{"message": {"content": [
                {"type": "text", "text": "part one, "},
                {"type": "text", "text": "part two"},
            ]}}]},
        )

        assert router.generate("prompt") == "part one, part two"

    @responses.activate
    def test_http_error(self, router):
        responses.add(responses.POST, ENDPOINT, json={"error": {"message": "rate limited"}}, status=429)

        with pytest.raises(LLMClientError, match="status 429: rate limited"):
            router.generate("prompt")

    @responses.activate
    def test_http_error_without_body(self, router):
        responses.add(responses.POST, ENDPOINT, body="oops", status=502)

        with pytest.raises(LLMClientError, match="status 502"):
            router.generate("prompt")

    @responses.activate
    def test_error_field_on_200(self, router):
        responses.add(responses.POST, ENDPOINT, json={"error": "model overloaded"})

        with pytest.raises(LLMClientError, match="model overloaded"):
            router.generate("prompt")

    @responses.activate
    def test_no_choices(self, router):
        responses.add(responses.POST, ENDPOINT, json={"choices": []})

        with pytest.raises(LLMClientError, match="no choices"):
            router.generate("prompt")

    @responses.activate
    def test_connection_error(self, router):
        responses.add(responses.POST, ENDPOINT, body=requests.exceptions.ConnectionError())

        with pytest.raises(LLMClientError, match="request failed"):
            router.generate("prompt")

    def test_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("OPENROUTER_API_KEY", "sk-env")
        monkeypatch.delenv("OPENROUTER_API_URL", raising=False)

        client = OpenRouterClient(model="m")

        assert client.api_key == "sk-env"
        assert client.api_url == "https://openrouter.ai/api/v1"


# ---------------------------------------------------------------------------
# OpenHandsClient
# ---------------------------------------------------------------------------

class TestOpenHandsClient:

    @patch("glance.llm.clients.LLM")
    def test_builds_llm_with_model_limits(self, mock_llm_cls):
        client = OpenHandsClient(
            model="gemini/gemini-2.5-flash", api_key="key", base_url="http://local:11434", timeout=30,
        )

        kwargs = mock_llm_cls.call_args.kwargs
        assert kwargs["model"] == "gemini/gemini-2.5-flash"
        assert kwargs["api_key"] == "key"
        assert kwargs["base_url"] == "http://local:11434"
        assert kwargs["timeout"] == 30
        assert kwargs["max_output_tokens"] == MODEL_OVERRIDES["gemini-2.5-flash"].max_output_tokens
        assert client.name == "openhands:gemini/gemini-2.5-flash"

    @patch("glance.llm.clients.LLM")
    def test_optional_kwargs_omitted(self, mock_llm_cls):
        OpenHandsClient(model="gemini/gemini-2.5-flash")

        kwargs = mock_llm_cls.call_args.kwargs
        assert "api_key" not in kwargs
        assert "base_url" not in kwargs

    @patch("glance.llm.clients.LLM")
    def test_generate_joins_text_blocks(self, mock_llm_cls):
        mock_llm = MagicMock()
        mock_llm.completion.return_value = SimpleNamespace(
            message=SimpleNamespace(content=[
                SimpleNamespace(text="hello "),
                SimpleNamespace(image_urls=["x"]),
                SimpleNamespace(text="world"),
            ])
        )
        mock_llm_cls.return_value = mock_llm

        client = OpenHandsClient(model="gemini/gemini-2.5-flash")

        assert client.generate("prompt") == "hello world"
        message = mock_llm.completion.call_args.kwargs["messages"][0]
        assert message.role == "user"
        assert message.content[0].text == "prompt"

    @patch("glance.llm.clients.LLM")
    def test_generate_wraps_sdk_errors(self, mock_llm_cls):
        mock_llm_cls.return_value.completion.side_effect = TimeoutError("deadline")

        client = OpenHandsClient(model="gemini/gemini-2.5-flash")

        with pytest.raises(LLMClientError, match="TimeoutError: deadline"):
            client.generate("prompt")
