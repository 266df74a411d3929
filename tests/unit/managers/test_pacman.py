"""Unit tests for PacmanManager.

Tests for the pacman package manager implementation.
"""

from unittest.mock import patch

import pytest
from tunectl.core.runner import CommandRunner
from tunectl.managers.pacman import PacmanManager
from tunectl.utils.shell import CommandResult


class TestPacmanManager:
    """Tests for PacmanManager class."""

    @pytest.fixture
    def manager(self) -> PacmanManager:
        """Create PacmanManager instance."""
        return PacmanManager(CommandRunner())

    def test_is_available(self, manager: PacmanManager) -> None:
        """is_available checks for pacman."""
        with patch("tunectl.managers.pacman.command_exists", return_value=True) as mock_exists:
            assert manager.is_available() is True
        mock_exists.assert_called_once_with("pacman")

    def test_is_installed_true(self, manager: PacmanManager) -> None:
        """pacman -Q exit 0 means installed."""
        with (
            patch("tunectl.managers.pacman.command_exists", return_value=True),
            patch("tunectl.core.runner.run_command") as mock_run,
        ):
            mock_run.return_value = CommandResult(stdout="htop 3.3.0-1\n", stderr="", returncode=0)
            assert manager.is_installed("htop") is True

        assert mock_run.call_args[0][0] == ["pacman", "-Q", "htop"]

    def test_is_installed_false(self, manager: PacmanManager) -> None:
        """'was not found' means not installed."""
        with (
            patch("tunectl.managers.pacman.command_exists", return_value=True),
            patch("tunectl.core.runner.run_command") as mock_run,
        ):
            mock_run.return_value = CommandResult(
                stdout="", stderr="error: package 'nano' was not found\n", returncode=1
            )
            assert manager.is_installed("nano") is False

    def test_is_installed_unexpected_error(self, manager: PacmanManager) -> None:
        """Other failures are undeterminable."""
        with (
            patch("tunectl.managers.pacman.command_exists", return_value=True),
            patch("tunectl.core.runner.run_command") as mock_run,
        ):
            mock_run.return_value = CommandResult(
                stdout="", stderr="error: could not open database\n", returncode=1
            )
            assert manager.is_installed("htop") is None

    def test_is_installed_unavailable(self, manager: PacmanManager) -> None:
        """Without pacman the state is unknown."""
        with patch("tunectl.managers.pacman.command_exists", return_value=False):
            assert manager.is_installed("htop") is None

    def test_install_command(self, manager: PacmanManager) -> None:
        """install uses --needed --noconfirm."""
        with (
            patch("tunectl.managers.pacman.sudo_prefix", return_value=["sudo"]),
            patch("tunectl.core.runner.run_command") as mock_run,
        ):
            mock_run.return_value = CommandResult(stdout="", stderr="", returncode=0)
            result = manager.install(["htop", "iwd"])

        assert result.success
        assert mock_run.call_args[0][0] == [
            "sudo",
            "pacman",
            "-S",
            "--needed",
            "--noconfirm",
            "htop",
            "iwd",
        ]

    def test_remove_command(self, manager: PacmanManager) -> None:
        """remove uses -Rns."""
        with (
            patch("tunectl.managers.pacman.sudo_prefix", return_value=[]),
            patch("tunectl.core.runner.run_command") as mock_run,
        ):
            mock_run.return_value = CommandResult(stdout="", stderr="", returncode=0)
            manager.remove(["wpa_supplicant"])

        assert mock_run.call_args[0][0] == ["pacman", "-Rns", "--noconfirm", "wpa_supplicant"]

    def test_dry_run_install_not_executed(self) -> None:
        """Dry-run installs never reach the shell."""
        manager = PacmanManager(CommandRunner(dry_run=True))
        with patch("tunectl.core.runner.run_command") as mock_run:
            result = manager.install(["htop"])

        mock_run.assert_not_called()
        assert result.success
