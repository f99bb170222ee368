"""Tests for gitpilot/workflow/prompts.py: built-in and overridden templates."""

import pytest

from gitpilot.core.config import PromptLoader
from gitpilot.core.exceptions import ConfigError
from gitpilot.workflow.events import CommitRequest
from gitpilot.workflow.prompts import COMMIT_PROMPT_FILE, PR_PROMPT_FILE, PromptBuilder

REQUEST = CommitRequest(diff="+print('hi')", commit_type="feat", scope="auth")


class TestDefaultPrompts:
    def test_commit_prompt(self, tmp_path):
        prompt = PromptBuilder(PromptLoader(tmp_path)).commit_prompt(REQUEST)
        assert "The commit type is: feat" in prompt
        assert "The scope is: auth" in prompt
        assert "Format: feat(auth): <description>" in prompt
        assert prompt.rstrip().endswith("no explanations or markdown formatting.")
        assert "+print('hi')" in prompt

    def test_pr_prompt_names_separator(self, tmp_path):
        prompt = PromptBuilder(PromptLoader(tmp_path)).pr_prompt("feat: a\n---\nfix: b\n---")
        assert "---BODY---" in prompt
        assert "fix: b" in prompt

    def test_diff_with_braces_is_not_a_template(self, tmp_path):
        request = CommitRequest(diff="+x = {'a': 1}", commit_type="fix", scope="")
        prompt = PromptBuilder(PromptLoader(tmp_path)).commit_prompt(request)
        assert "+x = {'a': 1}" in prompt


class TestOverrides:
    def test_commit_override(self, tmp_path):
        (tmp_path / COMMIT_PROMPT_FILE).write_text("Write {commit_type}/{scope} for:\n{diff}\n")
        prompt = PromptBuilder(PromptLoader(tmp_path)).commit_prompt(REQUEST)
        assert prompt == "Write feat/auth for:\n+print('hi')"

    def test_pr_override(self, tmp_path):
        (tmp_path / PR_PROMPT_FILE).write_text("Log:\n{git_log}\nSplit with {separator}")
        prompt = PromptBuilder(PromptLoader(tmp_path)).pr_prompt("feat: a")
        assert prompt == "Log:\nfeat: a\nSplit with ---BODY---"

    def test_unknown_field_raises_config_error(self, tmp_path):
        (tmp_path / COMMIT_PROMPT_FILE).write_text("{nope}")
        with pytest.raises(ConfigError, match="commit_prompt.txt is invalid"):
            PromptBuilder(PromptLoader(tmp_path)).commit_prompt(REQUEST)

    def test_default_loader_reads_config_dir(self, isolated_config_dir):
        prompts = isolated_config_dir / "prompts"
        prompts.mkdir()
        (prompts / PR_PROMPT_FILE).write_text("custom {git_log}")
        assert PromptBuilder().pr_prompt("x") == "custom x"
