"""External command boundary.

Every side effect on the system that goes through an external program is
routed through CommandRunner. It redacts secret-like substrings before
logging, captures combined output, and never raises: callers decide the
pass/fail semantics from the returned CommandResult.
"""

import logging
import re
import subprocess

from tunectl.utils.shell import CommandResult, run_command

logger = logging.getLogger(__name__)

# Conventional exit codes for failures that happen before the command runs
EXIT_NOT_FOUND = 127
EXIT_TIMEOUT = 124
EXIT_OS_ERROR = 126

_SENSITIVE = re.compile(
    r"(?i)((?:--?)?[\w.-]*(?:password|passphrase|secret|token|psk)[\w.-]*(?:[=:]\s*|\s+))(\S+)"
)

REDACTED = "********"


def redact(text: str) -> str:
    """Mask values that follow secret-like keys.

    Args:
        text: Command line or command output.

    Returns:
        Text with the value after ``password=``, ``--passphrase x``,
        ``psk:`` and similar replaced.
    """
    return _SENSITIVE.sub(lambda m: f"{m.group(1)}{REDACTED}", text)


class CommandRunner:
    """Runs external commands on behalf of collaborators.

    Attributes:
        dry_run: If True, mutating commands are logged but not executed.
        timeout: Maximum seconds a command may run.
    """

    def __init__(self, *, dry_run: bool = False, timeout: float = 600.0) -> None:
        self._dry_run = dry_run
        self._timeout = timeout

    @property
    def dry_run(self) -> bool:
        """Check if runner is in dry-run mode."""
        return self._dry_run

    @property
    def timeout(self) -> float:
        """Maximum seconds a command may run."""
        return self._timeout

    def run(self, args: list[str], *, mutating: bool = True) -> CommandResult:
        """Run a command and return its structured result.

        Args:
            args: Command and arguments.
            mutating: Whether the command changes the system. Mutating
                commands are replaced by a no-op in dry-run mode.

        Returns:
            CommandResult. Failures to start the command are reported as
            non-zero exit codes instead of exceptions.
        """
        shown = redact(" ".join(args))

        if mutating and self._dry_run:
            logger.info("Dry-run: would run: %s", shown)
            return CommandResult(stdout="", stderr="", returncode=0, args=tuple(args))

        logger.debug("Running: %s", shown)
        try:
            result = run_command(args, timeout=self._timeout)
        except FileNotFoundError:
            logger.warning("Command not found: %s", args[0])
            return CommandResult(
                stdout="",
                stderr=f"{args[0]}: command not found",
                returncode=EXIT_NOT_FOUND,
                args=tuple(args),
            )
        except subprocess.TimeoutExpired:
            logger.warning("Command timed out after %.0fs: %s", self._timeout, shown)
            return CommandResult(
                stdout="",
                stderr=f"timed out after {self._timeout:.0f}s",
                returncode=EXIT_TIMEOUT,
                args=tuple(args),
            )
        except OSError as e:
            logger.warning("Command failed to start: %s: %s", shown, e)
            return CommandResult(
                stdout="", stderr=str(e), returncode=EXIT_OS_ERROR, args=tuple(args)
            )

        level = logging.INFO if mutating else logging.DEBUG
        logger.log(level, "Ran: %s (exit %d)", shown, result.returncode)
        if mutating and result.output:
            logger.info("Output of %s:\n%s", args[0], redact(result.output))
        return result

    def query(self, args: list[str]) -> CommandResult:
        """Run a read-only command; executed even in dry-run mode."""
        return self.run(args, mutating=False)
