"""Unit tests for shell utilities."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest
from tunectl.utils.shell import CommandResult, command_exists, is_root, run_command, sudo_prefix


class TestCommandResult:
    """Tests for CommandResult."""

    def test_success(self) -> None:
        """Exit 0 is success."""
        assert CommandResult("", "", 0).success
        assert not CommandResult("", "", 1).success

    def test_output_combines_streams(self) -> None:
        """output joins non-empty stripped streams."""
        assert CommandResult("out\n", "err\n", 1).output == "out\nerr"
        assert CommandResult("", "err\n", 1).output == "err"
        assert CommandResult("", "", 0).output == ""


class TestRunCommand:
    """Tests for run_command."""

    def test_captures_output(self) -> None:
        """stdout, stderr and exit code are captured."""
        completed = MagicMock(stdout="hi\n", stderr="", returncode=0)
        with patch("tunectl.utils.shell.subprocess.run", return_value=completed) as mock_run:
            result = run_command(["echo", "hi"], timeout=5)

        assert result == CommandResult("hi\n", "", 0, ("echo", "hi"))
        assert mock_run.call_args.kwargs["timeout"] == 5
        assert mock_run.call_args.kwargs["capture_output"] is True

    def test_nonzero_exit_is_returned(self) -> None:
        """A failing command yields a result instead of raising."""
        completed = MagicMock(stdout="", stderr="boom\n", returncode=2)
        with patch("tunectl.utils.shell.subprocess.run", return_value=completed) as mock_run:
            result = run_command(["false"])

        assert result.returncode == 2
        assert not result.success
        assert mock_run.call_args.kwargs["check"] is False
        assert "cwd" not in mock_run.call_args.kwargs

    def test_timeout_propagates(self) -> None:
        """Timeouts are raised to the caller."""
        with (
            patch(
                "tunectl.utils.shell.subprocess.run",
                side_effect=subprocess.TimeoutExpired(["sleep"], 1),
            ),
            pytest.raises(subprocess.TimeoutExpired),
        ):
            run_command(["sleep", "10"], timeout=1)


class TestPrivileges:
    """Tests for privilege helpers."""

    def test_command_exists(self) -> None:
        """command_exists uses PATH lookup."""
        with patch("tunectl.utils.shell.shutil.which", return_value=None):
            assert not command_exists("sdboot-manage")

    def test_sudo_prefix_as_root(self) -> None:
        """Root needs no prefix."""
        with patch("tunectl.utils.shell.os.geteuid", return_value=0):
            assert is_root()
            assert sudo_prefix() == []

    def test_sudo_prefix_as_user(self) -> None:
        """Users escalate with sudo."""
        with patch("tunectl.utils.shell.os.geteuid", return_value=1000):
            assert sudo_prefix() == ["sudo"]
