"""udev control."""

from tunectl.core.runner import CommandRunner
from tunectl.utils.shell import CommandResult, sudo_prefix


class UdevControl:
    """Reloads rules and replays device events with udevadm."""

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    def reload_rules(self) -> CommandResult:
        """Reload rule files with ``udevadm control --reload-rules``."""
        return self._runner.run([*sudo_prefix(), "udevadm", "control", "--reload-rules"])

    def trigger(self) -> CommandResult:
        """Replay device events with ``udevadm trigger``."""
        return self._runner.run([*sudo_prefix(), "udevadm", "trigger"])
