"""Shared fixtures for gitpilot tests.

Git adapter tests run against REAL temporary repositories; tests that need
the git binary are skipped when it is not installed. Nothing here talks to a
text generation backend: HTTP tests use httpx.MockTransport.
"""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load .env from project root so API keys are available to opt-in checks
load_dotenv(Path(__file__).parent.parent / ".env", override=True)

from gitpilot.core.config import AppConfig


# ---------------------------------------------------------------------------
# Tool availability checks
# ---------------------------------------------------------------------------

def _git_available() -> bool:
    return shutil.which("git") is not None


requires_git = pytest.mark.skipif(
    not _git_available(),
    reason="git not installed",
)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path_factory, monkeypatch) -> Path:
    """Point the config directory at a temp dir so no test touches ~/.config."""
    directory = tmp_path_factory.mktemp("gitpilot-config")
    monkeypatch.setenv("GITPILOT_CONFIG_DIR", str(directory))
    return directory


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig()


# ---------------------------------------------------------------------------
# Git fixtures
# ---------------------------------------------------------------------------

def git(path: Path, *args: str) -> str:
    """Run git in path and return stdout; fails the test on a non-zero exit."""
    result = subprocess.run(
        ["git", *args],
        cwd=str(path),
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


def init_git_repo(path: Path, branch: str = "main") -> Path:
    """Initialize a fresh git repo on branch with an initial commit."""
    git(path, "init")
    git(path, "symbolic-ref", "HEAD", f"refs/heads/{branch}")
    git(path, "config", "user.email", "test@test.com")
    git(path, "config", "user.name", "Test User")
    git(path, "config", "commit.gpgsign", "false")
    (path / "initial.txt").write_text("initial content\n")
    git(path, "add", "-A")
    git(path, "commit", "-m", "initial commit")
    return path


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """A repository on main with one commit and a clean working tree."""
    return init_git_repo(tmp_path)
