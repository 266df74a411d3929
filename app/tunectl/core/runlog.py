"""Per-invocation run log.

Every inspected, decided and applied step of one invocation is appended to
``<log_dir>/run-<run_id>.log``. The log is a debugging artifact for the
operator; tunectl never reads it back.
"""

import logging
from datetime import UTC, datetime
from pathlib import Path
from types import TracebackType

from rich.markup import escape

from tunectl.core.paths import ensure_dir
from tunectl.core.runner import redact
from tunectl.utils.formatting import console, print_diff, print_status

logger = logging.getLogger(__name__)

# Root logger of the package; module loggers propagate here
PACKAGE_LOGGER = "tunectl"

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def new_run_id(now: datetime | None = None) -> str:
    """Generate the run id used to key logs and backups.

    Args:
        now: Timestamp to use. Defaults to the current UTC time.

    Returns:
        UTC timestamp such as ``20260314T091500Z``.
    """
    return (now or datetime.now(UTC)).strftime("%Y%m%dT%H%M%SZ")


class RunLog:
    """Append-only log for one invocation.

    Attaches a file handler to the ``tunectl`` logger while open, so module
    loggers land in the same file as the status lines.

    Attributes:
        run_id: Timestamp key of this invocation.
        path: Log file path.
    """

    def __init__(
        self,
        log_dir: Path,
        run_id: str,
        *,
        verbose: bool = False,
        echo: bool = True,
    ) -> None:
        """Initialize the run log.

        Args:
            log_dir: Directory for run logs.
            run_id: Timestamp key of this invocation.
            verbose: Record DEBUG messages as well.
            echo: Also print status lines to the console.
        """
        self.run_id = run_id
        self.path = log_dir / f"run-{run_id}.log"
        self._verbose = verbose
        self._echo = echo
        self._handler: logging.FileHandler | None = None

    def open(self) -> "RunLog":
        """Create the log file and start recording.

        Raises:
            RuntimeError: If the log directory cannot be created.
        """
        ensure_dir(self.path.parent, "log")
        handler = logging.FileHandler(self.path, mode="a", encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.setLevel(logging.DEBUG if self._verbose else logging.INFO)

        package_logger = logging.getLogger(PACKAGE_LOGGER)
        package_logger.addHandler(handler)
        package_logger.setLevel(logging.DEBUG if self._verbose else logging.INFO)
        self._handler = handler

        logger.info("Run %s started", self.run_id)
        return self

    def close(self) -> None:
        """Stop recording and close the log file."""
        if self._handler is None:
            return
        logger.info("Run %s finished", self.run_id)
        logging.getLogger(PACKAGE_LOGGER).removeHandler(self._handler)
        self._handler.close()
        self._handler = None

    def __enter__(self) -> "RunLog":
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc is not None:
            logger.error("Run %s aborted: %s", self.run_id, exc)
        self.close()

    def status(self, tag: str, subject: str, message: str) -> None:
        """Record a one-line resource status and echo it to the console.

        Args:
            tag: One of OK, FAIL, INFO, WARN.
            subject: Resource or check id.
            message: What happened.
        """
        level = {"FAIL": logging.ERROR, "WARN": logging.WARNING}.get(tag, logging.INFO)
        logger.log(level, "[%s] %s: %s", tag, subject, message)
        if self._echo:
            print_status(tag, subject, message)

    def note(self, message: str, *args: object) -> None:
        """Record a plain informational line (not echoed)."""
        logger.info(message, *args)

    def diff(self, diff_text: str) -> None:
        """Record a diff and show it inline."""
        logger.info("Diff:\n%s", diff_text)
        if self._echo:
            print_diff(diff_text)

    def output(self, text: str) -> None:
        """Show captured command output inline.

        The command boundary already wrote the output to the log.
        """
        if self._echo and text:
            console.print(f"[muted]{escape(redact(text))}[/]")
