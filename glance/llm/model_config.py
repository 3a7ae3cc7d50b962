"""
Model configuration and constraint resolution.

Single source of truth for LLM output limits. litellm's registry is used
when it knows the model; a small override table covers models it reports
wrongly and a conservative default covers the rest.
"""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelConfig:
    """Constraints for a specific LLM model."""

    context_window: int        # max input tokens the model accepts
    max_output_tokens: int     # actual provider limit for completions

    def __str__(self) -> str:
        return f"ctx={self.context_window:,} out={self.max_output_tokens:,}"


# Keys are the model identifier WITHOUT the provider prefix
# (e.g., "gemini-2.5-flash" not "gemini/gemini-2.5-flash").
MODEL_OVERRIDES: dict[str, ModelConfig] = {
    "gemini-2.5-flash": ModelConfig(
        context_window=1_048_576,
        max_output_tokens=65_536,
    ),
    "gemini-2.0-flash": ModelConfig(
        context_window=1_048_576,
        max_output_tokens=8_192,
    ),
    # OpenRouter-hosted Gemini
    "google/gemini-2.5-flash": ModelConfig(
        context_window=1_048_576,
        max_output_tokens=65_536,
    ),
    "qwen3-coder:30b": ModelConfig(
        context_window=32_768,
        max_output_tokens=8_192,
    ),
}

# Conservative fallback when model is completely unknown
_DEFAULT_CONFIG = ModelConfig(
    context_window=32_768,
    max_output_tokens=4_096,
)

PROVIDER_PREFIXES = ("gemini/", "openrouter/", "ollama/", "litellm_proxy/", "hosted_vllm/")


def strip_provider_prefix(model: str) -> str:
    """Strip provider routing prefixes like 'gemini/' or 'openrouter/'.

    Examples:
        'gemini/gemini-2.5-flash'           → 'gemini-2.5-flash'
        'openrouter/google/gemini-2.5-flash' → 'google/gemini-2.5-flash'
        'ollama/qwen3-coder:30b'            → 'qwen3-coder:30b'
    """
    for prefix in PROVIDER_PREFIXES:
        if model.startswith(prefix):
            return model[len(prefix):]
    return model


def resolve_model_config(model: str) -> ModelConfig:
    """Resolve the actual constraints for a model.

    Resolution order:
    1. Check override table (exact match after stripping provider prefix)
    2. Query litellm's model registry
    3. Fall back to conservative defaults
    """
    bare = strip_provider_prefix(model)

    if bare in MODEL_OVERRIDES:
        return MODEL_OVERRIDES[bare]

    try:
        import litellm
        info = litellm.get_model_info(model)
        if info:
            ctx = info.get("max_input_tokens") or info.get("max_tokens") or _DEFAULT_CONFIG.context_window
            out = info.get("max_output_tokens") or _DEFAULT_CONFIG.max_output_tokens
            # max_output should never exceed the context window
            if out > ctx:
                out = ctx // 2
            return ModelConfig(context_window=ctx, max_output_tokens=out)
    except Exception as exc:
        logger.debug("litellm has no info for %s: %s", model, exc)

    return _DEFAULT_CONFIG
