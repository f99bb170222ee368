"""Git operations for gitpilot.

Staged diff retrieval, staging, committing, pushing and branch creation.
Every structural failure raises GitOperationError; the two best-effort
queries (count_staged_files, user_name) degrade to a safe default instead.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from gitpilot.core.exceptions import (
    BranchNameError,
    GitOperationError,
    NoUpstreamError,
    ToolError,
)
from gitpilot.tools.shell import run_command

logger = logging.getLogger("gitpilot.tools.git_ops")

PROTECTED_BRANCHES = ("main", "master")
INVALID_BRANCH_SEQUENCES = ("..", "~", "^", ":", "?", "*", "[", "\\", " ")
_NO_UPSTREAM_MARKERS = ("no upstream branch", "has no upstream branch")


def get_staged_diff(repo_path: Optional[str] = None) -> str:
    """Return the staged diff (empty string when nothing is staged).

    Raises:
        GitOperationError: If git diff fails.
    """
    result = run_command(["git", "diff", "--staged"], cwd=repo_path, truncate=False)
    if not result.success:
        raise GitOperationError(f"git diff failed: {result.output}")
    return result.stdout


def has_changes(repo_path: Optional[str] = None) -> bool:
    """True when the working tree has any change, staged or not, tracked or not."""
    result = run_command(["git", "status", "--porcelain"], cwd=repo_path)
    if not result.success:
        raise GitOperationError(f"git status failed: {result.output}")
    return bool(result.stdout.strip())


def stage_all(repo_path: Optional[str] = None) -> None:
    result = run_command(["git", "add", "."], cwd=repo_path)
    if not result.success:
        raise GitOperationError(f"git add failed: {result.output}")
    logger.info("Staged all changes")


def count_staged_files(repo_path: Optional[str] = None) -> int:
    """Number of files in the staged diff; 0 if git cannot tell."""
    try:
        result = run_command(["git", "diff", "--staged", "--name-only"], cwd=repo_path)
    except ToolError as e:
        logger.warning("Could not count staged files: %s", e)
        return 0
    if not result.success:
        return 0
    return len([line for line in result.stdout.splitlines() if line.strip()])


def commit(message: str, repo_path: Optional[str] = None) -> None:
    """Create a commit from the staged changes with the given message.

    Raises:
        GitOperationError: If git commit fails.
    """
    # list-form so the message never reaches a shell
    result = run_command(["git", "commit", "-m", message], cwd=repo_path)
    if not result.success:
        raise GitOperationError(f"git commit failed: {result.output}")
    logger.info("Committed: %s", message.splitlines()[0] if message else "<empty>")


def push(repo_path: Optional[str] = None) -> None:
    """Push the current branch.

    Raises:
        NoUpstreamError: If the branch has no upstream configured.
        GitOperationError: For any other push failure.
    """
    result = run_command(["git", "push"], cwd=repo_path)
    if result.success:
        logger.info("Pushed")
        return
    output = result.output
    if any(marker in output for marker in _NO_UPSTREAM_MARKERS):
        raise NoUpstreamError(f"git push failed: {output}")
    raise GitOperationError(f"git push failed: {output}")


def push_set_upstream(branch: str, repo_path: Optional[str] = None) -> None:
    result = run_command(["git", "push", "--set-upstream", "origin", branch], cwd=repo_path)
    if not result.success:
        raise GitOperationError(f"git push --set-upstream failed: {result.output}")
    logger.info("Pushed and set upstream to origin/%s", branch)


def get_current_branch(repo_path: Optional[str] = None) -> str:
    result = run_command(["git", "branch", "--show-current"], cwd=repo_path)
    if not result.success:
        raise GitOperationError(f"git branch failed: {result.output}")
    return result.stdout.strip()


def create_and_checkout_branch(name: str, repo_path: Optional[str] = None) -> str:
    """Create a branch from HEAD and switch to it. Returns the branch name."""
    validate_branch_name(name)
    result = run_command(["git", "checkout", "-b", name], cwd=repo_path)
    if not result.success:
        raise GitOperationError(f"Failed to create branch: {result.output}")
    logger.info("Created and switched to branch %s", name)
    return name


def get_user_name(repo_path: Optional[str] = None) -> Optional[str]:
    """git config user.name, or None when unset or unavailable."""
    try:
        result = run_command(["git", "config", "user.name"], cwd=repo_path)
    except ToolError as e:
        logger.debug("git config user.name unavailable: %s", e)
        return None
    name = result.stdout.strip()
    if not result.success or not name:
        return None
    return name


def get_origin_url(repo_path: Optional[str] = None) -> str:
    result = run_command(["git", "remote", "get-url", "origin"], cwd=repo_path)
    if not result.success:
        raise GitOperationError(f"failed to get origin URL: {result.output}")
    return result.stdout.strip()


def get_remote_default_branch(repo_path: Optional[str] = None) -> str:
    """The origin HEAD branch as reported by `git remote show origin`."""
    result = run_command(["git", "remote", "show", "origin"], cwd=repo_path)
    if not result.success:
        raise GitOperationError(f"failed to get remote info: {result.output}")
    for line in result.stdout.splitlines():
        if "HEAD branch:" in line:
            branch = line.split(":", 1)[1].strip()
            if branch:
                return branch
            break
    return "main"


def get_branch_log(branch: str, repo_path: Optional[str] = None) -> str:
    """Commit subjects and bodies on branch that are not on the origin default branch.

    Falls back to the last 10 commits when the comparison range is unknown
    to git (for example before the first fetch).
    """
    default_branch = get_remote_default_branch(repo_path)
    log_format = "--pretty=format:%s%n%b%n---"
    result = run_command(
        ["git", "log", f"origin/{default_branch}..{branch}", log_format],
        cwd=repo_path,
    )
    if result.success:
        return result.stdout

    logger.debug("Range log failed for %s, using recent commits", branch)
    result = run_command(["git", "log", "-10", log_format], cwd=repo_path)
    if not result.success:
        raise GitOperationError(f"failed to get git log: {result.output}")
    return result.stdout


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def is_protected_branch(name: str) -> bool:
    return name in PROTECTED_BRANCHES


def validate_branch_name(name: str) -> None:
    """Reject names git would refuse (or that would read as an option).

    Raises:
        BranchNameError: Describing the first problem found.
    """
    if not name:
        raise BranchNameError("branch name cannot be empty")
    if name.startswith("-"):
        raise BranchNameError("branch name cannot start with a hyphen")
    for invalid in INVALID_BRANCH_SEQUENCES:
        if invalid in name:
            raise BranchNameError(f"branch name contains invalid character: {invalid}")


def default_branch_name(now: datetime, identity: Optional[str]) -> str:
    """Suggested branch name: "<identity>/feature-YYYY-MM-DD"."""
    user = (identity or "").strip().lower().replace(" ", "-") or "dev"
    return f"{user}/feature-{now.strftime('%Y-%m-%d')}"


class GitRepository:
    """VersionControlRunner bound to one working tree.

    Thin object wrapper around the module functions so the workflow runner
    can be handed a single collaborator (and tests a fake one).
    """

    def __init__(self, repo_path: Optional[str] = None):
        self.repo_path = repo_path

    def staged_diff(self) -> str:
        return get_staged_diff(self.repo_path)

    def has_changes(self) -> bool:
        return has_changes(self.repo_path)

    def stage_all(self) -> None:
        stage_all(self.repo_path)

    def count_staged_files(self) -> int:
        return count_staged_files(self.repo_path)

    def commit(self, message: str) -> None:
        commit(message, self.repo_path)

    def push(self) -> None:
        push(self.repo_path)

    def push_set_upstream(self, branch: str) -> None:
        push_set_upstream(branch, self.repo_path)

    def current_branch(self) -> str:
        return get_current_branch(self.repo_path)

    def create_and_checkout_branch(self, name: str) -> str:
        return create_and_checkout_branch(name, self.repo_path)

    def branch_log(self, branch: str) -> str:
        return get_branch_log(branch, self.repo_path)

    def origin_url(self) -> str:
        return get_origin_url(self.repo_path)

    def user_name(self) -> Optional[str]:
        return get_user_name(self.repo_path)

    def default_branch_name(self, now: Optional[datetime] = None) -> str:
        return default_branch_name(now or datetime.now(), self.user_name())
