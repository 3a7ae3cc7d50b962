"""Prompt template loading and rendering."""

import logging
from pathlib import Path
from string import Template
from typing import List, Optional, Tuple

from glance.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = """you are an expert code reviewer and technical writer.
generate a descriptive technical overview of this directory:
- highlight purpose, architecture, and key file roles
- mention important dependencies or gotchas
- do NOT provide recommendations or next steps

directory: $directory

subdirectory summaries:
$sub_glances

local file contents:
$file_contents
"""

DEFAULT_TEMPLATE_FILE = "prompt.txt"


def load_template(path: Optional[str] = None, cwd: Optional[Path] = None) -> str:
    """
    Resolve the prompt template.

    Order: explicit ``path``, then ``prompt.txt`` in ``cwd``, then the
    built-in default.

    Raises:
        ConfigurationError: If an explicit path is missing, a directory, or unreadable
    """
    if path:
        template_path = Path(path).expanduser()
        if not template_path.exists():
            raise ConfigurationError(f"Prompt template not found: {path}")
        if template_path.is_dir():
            raise ConfigurationError(f"Prompt template path is a directory, not a file: {path}")
        try:
            return template_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(f"Failed to read prompt template {path}: {exc}") from exc

    default_path = (cwd or Path.cwd()) / DEFAULT_TEMPLATE_FILE
    if default_path.is_file():
        try:
            logger.info("Using prompt template from %s", default_path)
            return default_path.read_text(encoding="utf-8")
        except OSError as exc:
            logger.warning("Failed to read %s, using default template: %s", default_path, exc)

    return DEFAULT_TEMPLATE


def format_file_contents(files: List[Tuple[str, str]]) -> str:
    """Format (name, content) pairs as ``=== file: name ===`` blocks."""
    return "".join(f"=== file: {name} ===\n{content}\n\n" for name, content in files)


def render_prompt(
    template: str,
    relative_dir: str,
    local_files: List[Tuple[str, str]],
    child_summaries: str,
) -> str:
    """Fill ``$directory``, ``$sub_glances`` and ``$file_contents``.

    Unknown placeholders and stray ``$`` signs are left untouched.
    """
    return Template(template).safe_substitute(
        directory=relative_dir,
        sub_glances=child_summaries,
        file_contents=format_file_contents(local_files),
    )
