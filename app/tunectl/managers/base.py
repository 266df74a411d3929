"""Abstract interfaces for external collaborators.

The reconciler only talks to the package manager and the service manager
through these narrow contracts, which keeps the planner and executor
testable with in-memory fakes.
"""

from abc import ABC, abstractmethod
from enum import Enum

from tunectl.core.runner import CommandRunner
from tunectl.utils.shell import CommandResult


class ServiceState(str, Enum):
    """Enablement state of a unit, as reported by the service manager.

    Attributes:
        MASKED: Unit is linked to /dev/null.
        ENABLED: Unit is enabled (including runtime, static, alias, ...).
        INDIRECT: Unit is enabled through another unit.
        DISABLED: Unit exists but is not enabled.
        UNKNOWN: Unit does not exist or its state could not be mapped.
    """

    MASKED = "masked"
    ENABLED = "enabled"
    INDIRECT = "indirect"
    DISABLED = "disabled"
    UNKNOWN = "unknown"


class PackageManager(ABC):
    """Contract for the system package manager.

    Attributes:
        runner: Command boundary used for queries and mutations.

    Example:
        >>> packages = PacmanManager(CommandRunner(dry_run=True))
        >>> if packages.is_installed("iwd") is False:
        ...     packages.install(["iwd"])
    """

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    @property
    def runner(self) -> CommandRunner:
        """Command boundary used by this manager."""
        return self._runner

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the package manager can be used on this system."""

    @abstractmethod
    def is_installed(self, name: str) -> bool | None:
        """Check if a package is installed.

        Returns:
            True or False, or None when the state cannot be determined.
        """

    @abstractmethod
    def install(self, names: list[str]) -> CommandResult:
        """Install packages."""

    @abstractmethod
    def remove(self, names: list[str]) -> CommandResult:
        """Remove packages."""


class ServiceManager(ABC):
    """Contract for the service manager."""

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    @property
    def runner(self) -> CommandRunner:
        """Command boundary used by this manager."""
        return self._runner

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the service manager can be used on this system."""

    @abstractmethod
    def enablement_state(self, unit: str) -> ServiceState | None:
        """Query a unit's enablement state.

        Returns:
            Mapped state, or None when the service manager is unavailable.
        """

    @abstractmethod
    def active_state(self, unit: str) -> str | None:
        """Query a unit's runtime state (``active``, ``inactive``, ...)."""

    @abstractmethod
    def mask(self, units: list[str]) -> CommandResult:
        """Mask units and stop them."""

    @abstractmethod
    def enable(self, units: list[str]) -> CommandResult:
        """Enable units and start them."""

    @abstractmethod
    def daemon_reload(self) -> CommandResult:
        """Reload unit files."""
