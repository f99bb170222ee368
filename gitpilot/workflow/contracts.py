"""Interfaces of the external collaborators the workflow runner drives.

GitRepository, GitHubForge and the llm clients satisfy these structurally;
tests supply in-memory fakes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol


class VersionControl(Protocol):
    def staged_diff(self) -> str: ...

    def has_changes(self) -> bool: ...

    def stage_all(self) -> None: ...

    def count_staged_files(self) -> int:
        """Best effort: 0 when the count cannot be determined."""
        ...

    def commit(self, message: str) -> None: ...

    def push(self) -> None:
        """Raises NoUpstreamError when the branch has no upstream."""
        ...

    def push_set_upstream(self, branch: str) -> None: ...

    def current_branch(self) -> str: ...

    def create_and_checkout_branch(self, name: str) -> str: ...

    def branch_log(self, branch: str) -> str: ...

    def default_branch_name(self, now: Optional[datetime] = None) -> str: ...


class Forge(Protocol):
    def ensure_supported_origin(self) -> str:
        """Raises UnsupportedForgeError when PRs cannot be opened for origin."""
        ...

    def has_existing_pr(self, branch: str) -> bool:
        """Best effort: False when the lookup fails."""
        ...

    def create_pr(self, title: str, body: str) -> None: ...


class TextGenerator(Protocol):
    def generate(self, prompt: str, model: str, max_tokens: int = 1024) -> str:
        """Raises LLMError (retryable) on any backend failure."""
        ...

    def close(self) -> None: ...
