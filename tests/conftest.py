"""Shared fixtures for the glance test suite.

All tests run with zero API calls, zero network access, zero LLM credits.
External deps (OpenHands SDK, OpenRouter) are mocked.
"""

import sys
from pathlib import Path

import pytest

# Ensure the repo root is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from glance.security import establish_boundary  # noqa: E402
from tests.fixtures import RecordingSummarizer  # noqa: E402


@pytest.fixture
def boundary(tmp_path):
    """Resolved, empty trust boundary."""
    root = tmp_path / "root"
    root.mkdir()
    return establish_boundary(root)


@pytest.fixture
def sample_tree(boundary):
    """Tree ``root/{a/b, c}`` with one file in ``a/b``."""
    (boundary / "a" / "b").mkdir(parents=True)
    (boundary / "c").mkdir()
    (boundary / "a" / "b" / "file.txt").write_text("first version\n")
    return boundary


@pytest.fixture
def summarizer():
    return RecordingSummarizer()
