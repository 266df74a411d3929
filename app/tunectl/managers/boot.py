"""Initramfs builder and boot loader manager.

Both are opaque to the reconciler: they are invoked once, after all file
and hook changes have been staged.
"""

import logging

from tunectl.core.runner import CommandRunner
from tunectl.utils.shell import CommandResult, sudo_prefix

logger = logging.getLogger(__name__)


class InitramfsBuilder:
    """Rebuilds initramfs images with mkinitcpio."""

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    def rebuild(self) -> CommandResult:
        """Regenerate all presets with ``mkinitcpio -P``."""
        logger.info("Rebuilding initramfs images")
        return self._runner.run([*sudo_prefix(), "mkinitcpio", "-P"])


class BootloaderManager:
    """Regenerates systemd-boot entries with sdboot-manage."""

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    def rebuild(self) -> CommandResult:
        """Regenerate entries with ``sdboot-manage gen``."""
        logger.info("Regenerating boot loader entries")
        return self._runner.run([*sudo_prefix(), "sdboot-manage", "gen"])
