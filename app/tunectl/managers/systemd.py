"""systemd service manager.

Queries and toggles unit enablement using systemctl.
"""

import logging

from tunectl.managers.base import ServiceManager, ServiceState
from tunectl.utils.shell import CommandResult, command_exists, sudo_prefix

logger = logging.getLogger(__name__)

# Mapping from ``systemctl is-enabled`` output to enablement states
_STATE_MAP: dict[str, ServiceState] = {
    "enabled": ServiceState.ENABLED,
    "enabled-runtime": ServiceState.ENABLED,
    "static": ServiceState.ENABLED,
    "alias": ServiceState.ENABLED,
    "linked": ServiceState.ENABLED,
    "linked-runtime": ServiceState.ENABLED,
    "generated": ServiceState.ENABLED,
    "transient": ServiceState.ENABLED,
    "indirect": ServiceState.INDIRECT,
    "disabled": ServiceState.DISABLED,
    "masked": ServiceState.MASKED,
    "masked-runtime": ServiceState.MASKED,
}


def parse_enablement(output: str) -> ServiceState:
    """Map ``systemctl is-enabled`` output to a ServiceState.

    Args:
        output: First line printed by ``systemctl is-enabled``.

    Returns:
        Mapped state; UNKNOWN for missing units and unrecognized output.
    """
    lines = output.strip().splitlines()
    if not lines:
        return ServiceState.UNKNOWN
    return _STATE_MAP.get(lines[0].strip(), ServiceState.UNKNOWN)


class SystemdManager(ServiceManager):
    """Service manager backed by systemctl."""

    def is_available(self) -> bool:
        """Check if systemctl is available."""
        return command_exists("systemctl")

    def enablement_state(self, unit: str) -> ServiceState | None:
        """Query enablement with ``systemctl is-enabled``.

        ``is-enabled`` exits non-zero for disabled and masked units, so the
        state is taken from its output rather than its exit code.

        Args:
            unit: Unit name.

        Returns:
            Mapped state, or None if systemctl is unavailable.
        """
        if not self.is_available():
            return None
        result = self.runner.query(["systemctl", "is-enabled", unit])
        return parse_enablement(result.stdout)

    def active_state(self, unit: str) -> str | None:
        """Query runtime state with ``systemctl is-active``.

        Args:
            unit: Unit name.

        Returns:
            State such as ``active`` or ``inactive``, or None if systemctl is
            unavailable.
        """
        if not self.is_available():
            return None
        result = self.runner.query(["systemctl", "is-active", unit])
        return result.stdout.strip() or None

    def mask(self, units: list[str]) -> CommandResult:
        """Mask and stop units with ``systemctl mask --now``."""
        logger.info("Masking units: %s", ", ".join(units))
        return self.runner.run([*sudo_prefix(), "systemctl", "mask", "--now", *units])

    def enable(self, units: list[str]) -> CommandResult:
        """Enable and start units with ``systemctl enable --now``."""
        logger.info("Enabling units: %s", ", ".join(units))
        return self.runner.run([*sudo_prefix(), "systemctl", "enable", "--now", *units])

    def daemon_reload(self) -> CommandResult:
        """Reload unit files with ``systemctl daemon-reload``."""
        return self.runner.run([*sudo_prefix(), "systemctl", "daemon-reload"])
