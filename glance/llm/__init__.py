"""LLM summarization backend."""

from .clients import LLMClient, LLMClientError, OpenHandsClient, OpenRouterClient
from .prompt import DEFAULT_TEMPLATE, load_template, render_prompt
from .summarizer import LLMSummarizer

__all__ = [
    "DEFAULT_TEMPLATE",
    "LLMClient",
    "LLMClientError",
    "LLMSummarizer",
    "OpenHandsClient",
    "OpenRouterClient",
    "load_template",
    "render_prompt",
]
