"""Tests for prompt template loading and rendering."""

import pytest

from glance.errors import ConfigurationError
from glance.llm.prompt import (
    DEFAULT_TEMPLATE,
    DEFAULT_TEMPLATE_FILE,
    format_file_contents,
    load_template,
    render_prompt,
)


class TestLoadTemplate:

    def test_explicit_file(self, tmp_path):
        custom = tmp_path / "custom.txt"
        custom.write_text("summarize $directory")

        assert load_template(str(custom), cwd=tmp_path) == "summarize $directory"

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_template(str(tmp_path / "nope.txt"), cwd=tmp_path)

    def test_explicit_directory(self, tmp_path):
        with pytest.raises(ConfigurationError, match="directory"):
            load_template(str(tmp_path), cwd=tmp_path)

    def test_prompt_txt_in_cwd(self, tmp_path):
        (tmp_path / DEFAULT_TEMPLATE_FILE).write_text("local $directory")

        assert load_template(cwd=tmp_path) == "local $directory"

    def test_builtin_default(self, tmp_path):
        assert load_template(cwd=tmp_path) == DEFAULT_TEMPLATE


class TestRenderPrompt:

    def test_default_template_sections(self):
        prompt = render_prompt(
            DEFAULT_TEMPLATE, "src/api", [("app.py", "import flask")], "# child\n\nchild summary",
        )

        assert "directory: src/api" in prompt
        assert "# child\n\nchild summary" in prompt
        assert "=== file: app.py ===\nimport flask\n" in prompt
        assert "$" not in prompt

    def test_unknown_placeholders_kept(self):
        prompt = render_prompt("$directory costs $5 and $unknown", "x", [], "")

        assert prompt == "x costs $5 and $unknown"

    def test_file_contents_order(self):
        text = format_file_contents([("b.py", "B"), ("a.py", "A")])

        assert text == "=== file: b.py ===\nB\n\n=== file: a.py ===\nA\n\n"
