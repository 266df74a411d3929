"""Unit tests for the command boundary."""

import subprocess
from unittest.mock import patch

import pytest
from tunectl.core.runner import (
    EXIT_NOT_FOUND,
    EXIT_OS_ERROR,
    EXIT_TIMEOUT,
    REDACTED,
    CommandRunner,
    redact,
)
from tunectl.utils.shell import CommandResult


class TestRedact:
    """Tests for secret redaction."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("iwctl --passphrase hunter2 station wlan0", f"iwctl --passphrase {REDACTED} station wlan0"),
            ("password=hunter2", f"password={REDACTED}"),
            ("PSK: abcdef", f"PSK: {REDACTED}"),
            ("api_token=xyz other=1", f"api_token={REDACTED} other=1"),
        ],
    )
    def test_masks_secret_values(self, text: str, expected: str) -> None:
        """Values after secret-like keys are masked."""
        assert redact(text) == expected

    def test_leaves_plain_text(self) -> None:
        """Text without secret-like keys is unchanged."""
        text = "pacman -S --needed --noconfirm htop"
        assert redact(text) == text


class TestCommandRunner:
    """Tests for CommandRunner.run."""

    def test_returns_result(self) -> None:
        """Successful commands return their result."""
        expected = CommandResult(stdout="ok\n", stderr="", returncode=0, args=("true",))
        with patch("tunectl.core.runner.run_command", return_value=expected) as mock_run:
            result = CommandRunner(timeout=30).run(["true"])

        assert result is expected
        mock_run.assert_called_once_with(["true"], timeout=30)

    def test_dry_run_skips_mutations(self) -> None:
        """Mutating commands are not executed in dry-run mode."""
        with patch("tunectl.core.runner.run_command") as mock_run:
            result = CommandRunner(dry_run=True).run(["pacman", "-S", "htop"])

        mock_run.assert_not_called()
        assert result.success
        assert result.args == ("pacman", "-S", "htop")

    def test_dry_run_still_queries(self) -> None:
        """Read-only queries run even in dry-run mode."""
        expected = CommandResult(stdout="", stderr="", returncode=0)
        with patch("tunectl.core.runner.run_command", return_value=expected) as mock_run:
            CommandRunner(dry_run=True).query(["pacman", "-Q", "htop"])

        mock_run.assert_called_once()

    def test_missing_command_is_127(self) -> None:
        """A missing executable is reported as exit 127."""
        with patch("tunectl.core.runner.run_command", side_effect=FileNotFoundError):
            result = CommandRunner().run(["sdboot-manage", "gen"])

        assert result.returncode == EXIT_NOT_FOUND
        assert "command not found" in result.stderr

    def test_timeout_is_124(self) -> None:
        """A timed out command is reported as exit 124."""
        with patch(
            "tunectl.core.runner.run_command",
            side_effect=subprocess.TimeoutExpired(["mkinitcpio"], 10),
        ):
            result = CommandRunner(timeout=10).run(["mkinitcpio", "-P"])

        assert result.returncode == EXIT_TIMEOUT
        assert result.stderr == "timed out after 10s"

    def test_os_error_is_126(self) -> None:
        """Other start failures are reported as exit 126."""
        with patch("tunectl.core.runner.run_command", side_effect=PermissionError("denied")):
            result = CommandRunner().run(["/etc/passwd"])

        assert result.returncode == EXIT_OS_ERROR
        assert not result.success

    def test_log_is_redacted(self, caplog: pytest.LogCaptureFixture) -> None:
        """Logged command lines never contain secret values."""
        caplog.set_level("DEBUG", logger="tunectl")
        expected = CommandResult(stdout="", stderr="", returncode=0)
        with patch("tunectl.core.runner.run_command", return_value=expected):
            CommandRunner().run(["nmcli", "connection", "modify", "x", "wifi-sec.psk", "hunter2"])

        assert "hunter2" not in caplog.text
        assert REDACTED in caplog.text
