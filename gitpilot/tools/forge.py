"""Forge operations for gitpilot.

Pull requests are created through the GitHub CLI (gh). Only GitHub origins
are supported; ensure_supported_origin() is the gate the workflow checks
before offering PR creation.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from gitpilot.core.exceptions import ForgeError, GitOperationError, ToolError, UnsupportedForgeError
from gitpilot.tools.git_ops import get_origin_url
from gitpilot.tools.shell import run_command

logger = logging.getLogger("gitpilot.tools.forge")

SUPPORTED_HOSTS = ("github.com",)


def ensure_supported_origin(repo_path: Optional[str] = None) -> str:
    """Return the origin URL if it points at a supported forge.

    Raises:
        UnsupportedForgeError: If origin is missing or not hosted on GitHub.
    """
    try:
        origin_url = get_origin_url(repo_path)
    except GitOperationError as e:
        raise UnsupportedForgeError(str(e)) from e

    if not any(host in origin_url for host in SUPPORTED_HOSTS):
        raise UnsupportedForgeError(
            f"origin is not GitHub (found: {origin_url}). "
            "Only GitHub repositories are supported for PR creation"
        )
    return origin_url


def has_existing_pr(branch: str, repo_path: Optional[str] = None) -> bool:
    """Best-effort check for an open PR whose head is branch.

    Any failure (gh missing, not authenticated, bad output) reads as "no PR".
    """
    try:
        result = run_command(
            ["gh", "pr", "list", "--head", branch, "--json", "number"],
            cwd=repo_path,
        )
    except ToolError as e:
        logger.debug("gh pr list unavailable: %s", e)
        return False
    if not result.success:
        logger.debug("gh pr list failed: %s", result.output)
        return False

    raw = result.stdout.strip()
    if not raw:
        return False
    try:
        return bool(json.loads(raw))
    except json.JSONDecodeError:
        return raw != "[]"


def create_pr(title: str, body: str, repo_path: Optional[str] = None) -> None:
    """Open a PR for the current branch.

    Raises:
        ForgeError: If gh pr create fails.
    """
    result = run_command(
        ["gh", "pr", "create", "--title", title, "--body", body],
        cwd=repo_path,
    )
    if not result.success:
        raise ForgeError(f"gh pr create failed: {result.output}")
    logger.info("Created PR: %s", title)


class GitHubForge:
    """ForgeClient bound to one working tree."""

    def __init__(self, repo_path: Optional[str] = None):
        self.repo_path = repo_path

    def ensure_supported_origin(self) -> str:
        return ensure_supported_origin(self.repo_path)

    def has_existing_pr(self, branch: str) -> bool:
        return has_existing_pr(branch, self.repo_path)

    def create_pr(self, title: str, body: str) -> None:
        create_pr(title, body, self.repo_path)
