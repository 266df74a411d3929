"""pacman package manager.

Queries and changes installed packages using pacman.
"""

import logging

from tunectl.managers.base import PackageManager
from tunectl.utils.shell import CommandResult, command_exists, sudo_prefix

logger = logging.getLogger(__name__)


class PacmanManager(PackageManager):
    """Package manager for Arch Linux.

    Installation uses ``--needed`` so already installed packages are not
    reinstalled, and removal uses ``-Rns`` to drop unneeded dependencies
    and backup files of the removed packages.
    """

    def is_available(self) -> bool:
        """Check if pacman is available."""
        return command_exists("pacman")

    def is_installed(self, name: str) -> bool | None:
        """Check if a package is installed using ``pacman -Q``.

        Args:
            name: Package name.

        Returns:
            True if installed, False if not, None if pacman is unavailable
            or returned an unexpected error.
        """
        if not self.is_available():
            return None

        result = self.runner.query(["pacman", "-Q", name])
        if result.success:
            return True
        if result.returncode == 1 and "was not found" in result.stderr:
            return False

        logger.warning("Could not query package %s: %s", name, result.output)
        return None

    def install(self, names: list[str]) -> CommandResult:
        """Install packages using ``pacman -S --needed``.

        Args:
            names: Package names.

        Returns:
            CommandResult of the pacman run.
        """
        logger.info("Installing packages: %s", ", ".join(names))
        return self.runner.run(
            [*sudo_prefix(), "pacman", "-S", "--needed", "--noconfirm", *names]
        )

    def remove(self, names: list[str]) -> CommandResult:
        """Remove packages using ``pacman -Rns``.

        Args:
            names: Package names.

        Returns:
            CommandResult of the pacman run.
        """
        logger.info("Removing packages: %s", ", ".join(names))
        return self.runner.run([*sudo_prefix(), "pacman", "-Rns", "--noconfirm", *names])
