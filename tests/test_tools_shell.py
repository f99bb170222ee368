"""Tests for gitpilot/tools/shell.py: subprocess execution."""

import sys

import pytest

from gitpilot.core.exceptions import ShellTimeoutError, ToolError
from gitpilot.tools.shell import MAX_OUTPUT_BYTES, ShellResult, _truncate_output, run_command

PY = sys.executable


class TestShellResult:
    def test_success_property(self):
        result = ShellResult(command="git status", return_code=0, stdout="ok\n", stderr="")
        assert result.success is True

    def test_failure_property(self):
        result = ShellResult(command="git push", return_code=1, stdout="", stderr="error")
        assert result.success is False

    def test_timeout_property(self):
        result = ShellResult(command="git", return_code=0, stdout="", stderr="", timed_out=True)
        assert result.success is False

    def test_output_combines_streams(self):
        result = ShellResult(command="git push", return_code=1, stdout=" out \n", stderr="err\n")
        assert result.output == "out\nerr"

    def test_output_skips_empty_streams(self):
        result = ShellResult(command="git push", return_code=1, stdout="", stderr="fatal: no\n")
        assert result.output == "fatal: no"


class TestRunCommand:
    def test_captures_stdout(self):
        result = run_command([PY, "-c", "print('hello')"])
        assert result.success
        assert result.stdout.strip() == "hello"
        assert result.return_code == 0

    def test_captures_stderr(self):
        result = run_command([PY, "-c", "import sys; sys.stderr.write('error')"])
        assert "error" in result.stderr

    def test_captures_return_code(self):
        result = run_command([PY, "-c", "raise SystemExit(42)"])
        assert result.return_code == 42
        assert result.success is False

    def test_arguments_not_shell_expanded(self):
        result = run_command([PY, "-c", "import sys; print(sys.argv[1])", "$HOME && echo hi"])
        assert result.stdout.strip() == "$HOME && echo hi"

    def test_command_string(self):
        result = run_command([PY, "-c", "pass"])
        assert result.command == f"{PY} -c pass"

    def test_cwd_parameter(self, tmp_path):
        result = run_command([PY, "-c", "import os; print(os.getcwd())"], cwd=str(tmp_path))
        assert result.success
        assert tmp_path.resolve().name in result.stdout

    def test_env_merged(self):
        result = run_command(
            [PY, "-c", "import os; print(os.environ['GITPILOT_TEST_VAR'])"],
            env={"GITPILOT_TEST_VAR": "set"},
        )
        assert result.stdout.strip() == "set"

    def test_timeout_raises(self):
        with pytest.raises(ShellTimeoutError, match="timed out"):
            run_command([PY, "-c", "import time; time.sleep(10)"], timeout=1)

    def test_undecodable_output_replaced(self):
        result = run_command([PY, "-c", "import sys; sys.stdout.buffer.write(b'caf\\xe9\\n')"])
        assert result.success
        assert result.stdout == "caf\ufffd\n"

    def test_truncate_disabled_keeps_full_output(self):
        size = MAX_OUTPUT_BYTES + 100
        result = run_command([PY, "-c", f"print('x' * {size})"], truncate=False)
        assert len(result.stdout.strip()) == size
        assert "[output truncated]" not in result.stdout

    def test_nonexistent_command_raises(self):
        with pytest.raises(ToolError, match="Command not found"):
            run_command(["completely_nonexistent_binary_xyz"])


class TestTruncateOutput:
    def test_short_output_untouched(self):
        assert _truncate_output("short") == "short"

    def test_long_output_truncated(self):
        text = "x" * (MAX_OUTPUT_BYTES + 10)
        truncated = _truncate_output(text)
        assert truncated.endswith("... [output truncated]")
        assert len(truncated) < len(text)
