"""Tests for gitpilot/tools/forge.py: GitHub origin check and gh wrappers.

gh is never invoked: run_command is replaced with a recorder.
"""

import pytest

import gitpilot.tools.forge as forge_module
from gitpilot.core.exceptions import ForgeError, GitOperationError, ToolError, UnsupportedForgeError
from gitpilot.tools.forge import GitHubForge, create_pr, ensure_supported_origin, has_existing_pr
from gitpilot.tools.shell import ShellResult


class FakeShell:
    def __init__(self, return_code=0, stdout="", stderr="", exc=None):
        self.result = ShellResult(command="", return_code=return_code, stdout=stdout, stderr=stderr)
        self.exc = exc
        self.calls: list[list[str]] = []

    def __call__(self, command, cwd=None, **kwargs):
        self.calls.append(list(command))
        if self.exc is not None:
            raise self.exc
        return self.result


@pytest.fixture
def shell(monkeypatch):
    def install(**kwargs):
        fake = FakeShell(**kwargs)
        monkeypatch.setattr(forge_module, "run_command", fake)
        return fake
    return install


class TestEnsureSupportedOrigin:
    def test_github_https(self, monkeypatch):
        monkeypatch.setattr(forge_module, "get_origin_url", lambda repo_path=None: "https://github.com/o/r.git")
        assert ensure_supported_origin() == "https://github.com/o/r.git"

    def test_github_ssh(self, monkeypatch):
        monkeypatch.setattr(forge_module, "get_origin_url", lambda repo_path=None: "git@github.com:o/r.git")
        assert ensure_supported_origin() == "git@github.com:o/r.git"

    def test_other_host(self, monkeypatch):
        monkeypatch.setattr(forge_module, "get_origin_url", lambda repo_path=None: "https://gitlab.com/o/r.git")
        with pytest.raises(UnsupportedForgeError, match="origin is not GitHub"):
            ensure_supported_origin()

    def test_missing_origin(self, monkeypatch):
        def fail(repo_path=None):
            raise GitOperationError("failed to get origin URL: No such remote 'origin'")
        monkeypatch.setattr(forge_module, "get_origin_url", fail)
        with pytest.raises(UnsupportedForgeError, match="No such remote"):
            ensure_supported_origin()


class TestHasExistingPR:
    def test_existing(self, shell):
        fake = shell(stdout='[{"number": 12}]')
        assert has_existing_pr("feature/x") is True
        assert fake.calls == [["gh", "pr", "list", "--head", "feature/x", "--json", "number"]]

    def test_none(self, shell):
        shell(stdout="[]")
        assert has_existing_pr("feature/x") is False

    def test_empty_output(self, shell):
        shell(stdout="")
        assert has_existing_pr("feature/x") is False

    def test_gh_failure_reads_as_no_pr(self, shell):
        shell(return_code=1, stderr="gh: not logged in")
        assert has_existing_pr("feature/x") is False

    def test_gh_missing_reads_as_no_pr(self, shell):
        shell(exc=ToolError("Command not found: gh"))
        assert has_existing_pr("feature/x") is False


class TestCreatePR:
    def test_passes_title_and_body_as_arguments(self, shell):
        fake = shell(stdout="https://github.com/o/r/pull/1")
        create_pr("Add login", "- form\n- route")
        assert fake.calls == [["gh", "pr", "create", "--title", "Add login", "--body", "- form\n- route"]]

    def test_failure_raises(self, shell):
        shell(return_code=1, stderr="pull request create failed")
        with pytest.raises(ForgeError, match="gh pr create failed"):
            create_pr("t", "b")


class TestGitHubForge:
    def test_delegates(self, shell, monkeypatch):
        monkeypatch.setattr(forge_module, "get_origin_url", lambda repo_path=None: "https://github.com/o/r")
        fake = shell(stdout="[]")
        forge = GitHubForge("/tmp/repo")
        assert forge.ensure_supported_origin() == "https://github.com/o/r"
        assert forge.has_existing_pr("b") is False
        forge.create_pr("t", "b")
        assert fake.calls[-1][:3] == ["gh", "pr", "create"]
