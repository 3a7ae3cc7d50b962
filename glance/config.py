"""
Run configuration.

Command-line flags override environment variables, which may come from a
``.env`` file. Nothing here touches the target tree; the trust boundary is
established separately once the config is loaded.
"""

import argparse
import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from glance.errors import ConfigurationError
from glance.llm.prompt import load_template
from glance.reader import DEFAULT_MAX_FILE_BYTES

DEFAULT_MODEL = "gemini/gemini-2.5-flash"
DEFAULT_MAX_RETRIES = 3
DEFAULT_TIMEOUT = 120


@dataclass(frozen=True)
class GlanceConfig:
    """Settings for one run."""

    target_dir: str
    force: bool = False
    force_dirs: Tuple[str, ...] = ()
    verbose: bool = False
    prompt_template: str = ""
    model: str = DEFAULT_MODEL
    fallback_model: str = ""
    base_url: str = ""
    api_key: Optional[str] = field(default=None, repr=False)
    openrouter_api_key: Optional[str] = field(default=None, repr=False)
    max_retries: int = DEFAULT_MAX_RETRIES
    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES
    timeout: int = DEFAULT_TIMEOUT


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="glance",
        description="Generate a .glance.md summary in every directory, bottom-up and incrementally",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s ./my-project
  %(prog)s --force ./my-project
  %(prog)s --force-dir src/api --verbose ./my-project
        """,
    )
    parser.add_argument("directory", help="Directory to summarize (the trust boundary)")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Regenerate every .glance.md even if it looks fresh",
    )
    parser.add_argument(
        "--force-dir",
        action="append",
        default=[],
        metavar="PATH",
        help="Regenerate this directory unconditionally (repeatable; relative to the target)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--prompt-file", default=None, help="Custom prompt template file")
    parser.add_argument("--model", default=None, help="Primary model (default: GLANCE_MODEL or %s)" % DEFAULT_MODEL)
    parser.add_argument(
        "--fallback-model",
        default=None,
        help="OpenRouter model used when the primary model keeps failing",
    )
    parser.add_argument("--base-url", default=None, help="Override the primary model's base URL")
    return parser


def _resolve_api_key() -> Optional[str]:
    """Resolve API key: LLM_API_KEY → GEMINI_API_KEY → Docker secret file."""
    key = os.getenv("LLM_API_KEY") or os.getenv("GEMINI_API_KEY")
    if not key:
        key_file = os.getenv("LLM_API_KEY_FILE")
        if key_file and os.path.exists(key_file):
            with open(key_file) as f:
                key = f.read().strip()
    return key or None


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative, got {value}")
    return value


def load_config(argv: Optional[List[str]] = None) -> GlanceConfig:
    """
    Parse arguments and environment into a ``GlanceConfig``.

    Raises:
        ConfigurationError: On missing credentials, bad numbers or an unusable prompt file
    """
    args = build_parser().parse_args(argv)

    # .env is optional; real environment variables win
    load_dotenv()

    if not args.directory or not args.directory.strip():
        raise ConfigurationError("Target directory is empty")

    model = args.model or os.getenv("GLANCE_MODEL") or DEFAULT_MODEL
    fallback_model = args.fallback_model or os.getenv("GLANCE_FALLBACK_MODEL", "")
    base_url = args.base_url or os.getenv("LLM_BASE_URL", "")
    api_key = _resolve_api_key()
    openrouter_api_key = os.getenv("OPENROUTER_API_KEY") or None

    has_primary = bool(api_key or base_url)
    has_fallback = bool(fallback_model and openrouter_api_key)
    if not has_primary and not has_fallback:
        raise ConfigurationError(
            "No usable LLM configured",
            suggestion="set GEMINI_API_KEY (or LLM_API_KEY / LLM_BASE_URL), "
            "or GLANCE_FALLBACK_MODEL with OPENROUTER_API_KEY, in the environment or .env",
        )

    return GlanceConfig(
        target_dir=args.directory,
        force=args.force,
        force_dirs=tuple(args.force_dir),
        verbose=args.verbose,
        prompt_template=load_template(args.prompt_file),
        model=model,
        fallback_model=fallback_model,
        base_url=base_url,
        api_key=api_key,
        openrouter_api_key=openrouter_api_key,
        max_retries=_env_int("GLANCE_MAX_RETRIES", DEFAULT_MAX_RETRIES),
        max_file_bytes=_env_int("GLANCE_MAX_FILE_BYTES", DEFAULT_MAX_FILE_BYTES),
        timeout=_env_int("GLANCE_TIMEOUT", DEFAULT_TIMEOUT),
    )
