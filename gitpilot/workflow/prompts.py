"""Prompt templates for commit message and PR generation.

Templates can be overridden by dropping commit_prompt.txt / pr_prompt.txt
into the prompts directory; they are filled with str.format.
"""

from __future__ import annotations

from typing import Optional

from gitpilot.core.config import PromptLoader
from gitpilot.core.exceptions import ConfigError
from gitpilot.llm.response_parser import PR_BODY_SEPARATOR
from gitpilot.workflow.events import CommitRequest

COMMIT_PROMPT_FILE = "commit_prompt.txt"
PR_PROMPT_FILE = "pr_prompt.txt"

DEFAULT_COMMIT_PROMPT = """\
You are a commit message generator. Based on the following git diff, generate a concise commit message using conventional commits format.

The commit type is: {commit_type}
The scope is: {scope}

Format: {commit_type}({scope}): <description>

The description should be:
- Clear and concise (max 72 characters for the first line)
- In imperative mood (e.g., "add" not "added")
- Explain WHAT and WHY, not HOW

If the changes warrant it, you can add a body after a blank line with more details.

Git diff:
{diff}

Respond with ONLY the commit message, no explanations or markdown formatting."""

DEFAULT_PR_PROMPT = """\
You are a pull request generator. Based on the following git log from a branch, generate a clear and concise pull request title and body.

Git log:
{git_log}

Generate:
1. A clear, concise PR title (max 72 characters) that summarizes the changes
2. A detailed PR body that:
   - Summarizes the changes in bullet points
   - Explains the motivation and context
   - Notes any breaking changes or important details

Format your response as:
[PR Title]
{separator}
[PR Body]

Respond with ONLY the title and body in this format, no explanations or markdown code blocks."""


class PromptBuilder:
    def __init__(self, loader: Optional[PromptLoader] = None):
        self.loader = loader or PromptLoader()

    def commit_prompt(self, request: CommitRequest) -> str:
        template = self.loader.load(COMMIT_PROMPT_FILE, DEFAULT_COMMIT_PROMPT)
        return _fill(
            template,
            COMMIT_PROMPT_FILE,
            commit_type=request.commit_type,
            scope=request.scope,
            diff=request.diff,
        )

    def pr_prompt(self, git_log: str) -> str:
        template = self.loader.load(PR_PROMPT_FILE, DEFAULT_PR_PROMPT)
        return _fill(
            template,
            PR_PROMPT_FILE,
            git_log=git_log,
            separator=PR_BODY_SEPARATOR.strip(),
        )


def _fill(template: str, name: str, **values: str) -> str:
    try:
        return template.format(**values)
    except (KeyError, IndexError, ValueError) as e:
        raise ConfigError(f"prompt template {name} is invalid: {e}") from e
