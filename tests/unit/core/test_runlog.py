"""Unit tests for the per-invocation run log."""

import logging
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import patch

import pytest
from tunectl.core.runlog import PACKAGE_LOGGER, RunLog, new_run_id


class TestRunId:
    """Tests for new_run_id."""

    def test_format(self) -> None:
        """Run ids are compact UTC timestamps."""
        now = datetime(2026, 3, 14, 9, 15, 0, tzinfo=UTC)
        assert new_run_id(now) == "20260314T091500Z"


class TestRunLog:
    """Tests for RunLog."""

    def test_records_status_lines(self, tmp_path: Path) -> None:
        """Status lines and module logs land in the run log file."""
        with RunLog(tmp_path / "logs", "run1", echo=False) as run_log:
            run_log.status("OK", "pkg-htop", "installed")
            logging.getLogger("tunectl.core.planner").info("from a module")

        text = (tmp_path / "logs" / "run-run1.log").read_text()
        assert "[OK] pkg-htop: installed" in text
        assert "from a module" in text
        assert "Run run1 finished" in text

    def test_handler_removed_on_close(self, tmp_path: Path) -> None:
        """Closing detaches the file handler."""
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        before = list(package_logger.handlers)

        run_log = RunLog(tmp_path, "run1", echo=False).open()
        assert len(package_logger.handlers) == len(before) + 1
        run_log.close()

        assert package_logger.handlers == before

    def test_debug_only_when_verbose(self, tmp_path: Path) -> None:
        """DEBUG records are kept only in verbose mode."""
        with RunLog(tmp_path, "quiet", echo=False):
            logging.getLogger("tunectl.test").debug("hidden detail")
        with RunLog(tmp_path, "loud", verbose=True, echo=False):
            logging.getLogger("tunectl.test").debug("visible detail")

        assert "hidden detail" not in (tmp_path / "run-quiet.log").read_text()
        assert "visible detail" in (tmp_path / "run-loud.log").read_text()

    def test_echo_prints_status(self, tmp_path: Path) -> None:
        """Status lines are echoed to the console when enabled."""
        with patch("tunectl.core.runlog.print_status") as mock_print:
            with RunLog(tmp_path, "run1") as run_log:
                run_log.status("FAIL", "svc", "mask failed")

        mock_print.assert_called_once_with("FAIL", "svc", "mask failed")

    def test_output_is_redacted(self, tmp_path: Path) -> None:
        """Echoed command output is redacted."""
        with patch("tunectl.core.runlog.console") as mock_console:
            RunLog(tmp_path, "run1").output("password=hunter2")

        printed = mock_console.print.call_args[0][0]
        assert "hunter2" not in printed

    def test_abort_is_logged(self, tmp_path: Path) -> None:
        """An exception leaving the context is recorded."""
        with pytest.raises(ValueError), RunLog(tmp_path, "run1", echo=False):
            raise ValueError("boom")

        assert "Run run1 aborted: boom" in (tmp_path / "run-run1.log").read_text()
