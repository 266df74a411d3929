"""Action execution.

The Executor applies one Action at a time, in plan order. Resource-local
failures become FAIL results and the run continues; only a declined
confirmation or an uncreatable backup directory stop the run early, as
HardStopError.
"""

import logging
import os
import shutil
import tempfile
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from tunectl.core.backup import BackupRecord, BackupStore
from tunectl.core.edits import render_text
from tunectl.core.errors import (
    BackupFailedError,
    HardStopError,
    MutationFailedError,
    SourceMissingError,
)
from tunectl.core.inspector import decode, read_source
from tunectl.core.planner import (
    DESTRUCTIVE_PHASES,
    REASON_MATCHES,
    REASON_UNKNOWN,
    Plan,
    phase_of,
)
from tunectl.core.runlog import RunLog
from tunectl.core.runner import CommandRunner
from tunectl.core.state import StateManager
from tunectl.managers.base import PackageManager, ServiceManager
from tunectl.managers.boot import BootloaderManager, InitramfsBuilder
from tunectl.managers.udev import UdevControl
from tunectl.models.action import Action, ActionType, ExecutionResult, Outcome
from tunectl.models.resource import Resource, ResourceKind, Trigger
from tunectl.utils.shell import CommandResult, is_root, sudo_prefix

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[str], bool]

_VERBS: dict[ResourceKind, tuple[str, str]] = {
    ResourceKind.PACKAGE_PRESENT: ("install", "installed"),
    ResourceKind.PACKAGE_ABSENT: ("remove", "removed"),
    ResourceKind.SERVICE_ENABLE: ("enable", "enabled"),
    ResourceKind.SERVICE_MASK: ("mask", "masked"),
}


@dataclass(slots=True)
class RunSummary:
    """Everything one execution pass produced.

    Attributes:
        results: One result per action, in execution order.
        backups: Backups taken during the run.
        trigger_failures: Triggers whose collaborator call failed.
        reboot_required: Ids of applied resources that need a reboot.
    """

    results: list[ExecutionResult] = field(default_factory=list)
    backups: list[BackupRecord] = field(default_factory=list)
    trigger_failures: list[str] = field(default_factory=list)
    reboot_required: list[str] = field(default_factory=list)

    @property
    def failed(self) -> list[ExecutionResult]:
        """Results with a FAIL outcome."""
        return [r for r in self.results if r.failed]

    @property
    def applied(self) -> list[ExecutionResult]:
        """Results that actually changed the system."""
        return [r for r in self.results if r.applied]

    @property
    def has_failures(self) -> bool:
        """Check if any resource or trigger failed."""
        return bool(self.failed or self.trigger_failures)

    def count(self, outcome: Outcome) -> int:
        """Number of results with the given outcome."""
        return sum(1 for r in self.results if r.outcome == outcome)


class Executor:
    """Applies planned actions through the collaborators.

    Attributes:
        dry_run: Simulate mutations without touching the system.
    """

    def __init__(
        self,
        *,
        packages: PackageManager,
        services: ServiceManager,
        backups: BackupStore,
        run_log: RunLog,
        runner: CommandRunner,
        initramfs: InitramfsBuilder | None = None,
        bootloader: BootloaderManager | None = None,
        udev: UdevControl | None = None,
        state: StateManager | None = None,
        boot_id: str | None = None,
        confirm: ConfirmCallback | None = None,
        auto_accept: bool = False,
        dry_run: bool = False,
    ) -> None:
        """Initialize the executor.

        Args:
            packages: Package manager collaborator.
            services: Service manager collaborator.
            backups: Backup directory of this run.
            run_log: Run log receiving every status line.
            runner: Command boundary for privileged file writes.
            initramfs: Initramfs builder for the ``initramfs`` trigger.
            bootloader: Boot loader manager for the ``bootloader`` trigger.
            udev: udev control for the ``udev_reload`` trigger.
            state: Reboot marker storage. None disables the marker.
            boot_id: Boot id stored in the reboot marker.
            confirm: Asks the operator to accept a change.
            auto_accept: Accept every confirmation without asking.
            dry_run: Simulate mutations.
        """
        self._packages = packages
        self._services = services
        self._backups = backups
        self._log = run_log
        self._runner = runner
        self._initramfs = initramfs or InitramfsBuilder(runner)
        self._bootloader = bootloader or BootloaderManager(runner)
        self._udev = udev or UdevControl(runner)
        self._state = state
        self._boot_id = boot_id
        self._confirm = confirm
        self._auto_accept = auto_accept
        self.dry_run = dry_run

    def execute(self, plan: Plan) -> RunSummary:
        """Execute every action of a plan.

        Args:
            plan: Ordered actions.

        Returns:
            RunSummary of the run.

        Raises:
            HardStopError: If the operator declines a confirmation or the
                backup directory cannot be created. Triggers of changes
                applied before the stop still run, and the partial
                RunSummary is attached as ``summary``.
        """
        summary = RunSummary()
        pending: set[Trigger] = set()
        try:
            self._execute_actions(plan, summary, pending)
        except HardStopError as e:
            self._finish(summary, pending)
            e.summary = summary
            raise
        self._finish(summary, pending)
        return summary

    def _execute_actions(self, plan: Plan, summary: RunSummary, pending: set[Trigger]) -> None:
        file_failed = False
        daemon_reloaded = False

        for action in plan:
            kind = action.resource.kind

            if action.is_mutating and kind.is_service and not daemon_reloaded:
                if Trigger.DAEMON_RELOAD in pending:
                    self._run_trigger(summary, Trigger.DAEMON_RELOAD)
                daemon_reloaded = True

            result = self._execute_one(action, file_failed)
            summary.results.append(result)
            self._log.status(result.outcome.value, action.resource_id, result.message)
            if result.output and result.failed:
                self._log.output(result.output)

            if result.failed and kind.is_file:
                file_failed = True
            if result.outcome == Outcome.OK and action.is_mutating:
                pending.update(action.resource.triggers)
                if action.requires_reboot:
                    summary.reboot_required.append(action.resource_id)

    def _finish(self, summary: RunSummary, pending: set[Trigger]) -> None:
        """Run pending triggers once each and record backups and the reboot marker."""
        pending.discard(Trigger.DAEMON_RELOAD)
        for trigger in (Trigger.UDEV_RELOAD, Trigger.INITRAMFS, Trigger.BOOTLOADER):
            if trigger in pending:
                self._run_trigger(summary, trigger)

        summary.backups = list(self._backups.records)
        self._mark_reboot(summary)

    def _execute_one(self, action: Action, file_failed: bool) -> ExecutionResult:
        if action.error is not None:
            return ExecutionResult(action, Outcome.FAIL, action.error, dry_run=self.dry_run)

        if action.is_skip:
            if action.reason == REASON_MATCHES:
                outcome = Outcome.OK
            elif action.reason == REASON_UNKNOWN:
                outcome = Outcome.WARN
            else:
                outcome = Outcome.INFO
            return ExecutionResult(action, outcome, action.reason, dry_run=self.dry_run)

        if file_failed and phase_of(action.resource.kind) in DESTRUCTIVE_PHASES:
            return ExecutionResult(
                action,
                Outcome.WARN,
                "skipped: an earlier file change failed",
                dry_run=self.dry_run,
            )

        if action.requires_confirmation:
            self._require_confirmation(action)

        if action.diff_text:
            self._log.diff(action.diff_text)

        if action.resource.kind.is_file:
            return self._apply_file(action)
        return self._apply_command(action)

    # =========================================================================
    # Confirmation
    # =========================================================================

    def _require_confirmation(self, action: Action) -> None:
        """Ask the operator to accept an action.

        Raises:
            HardStopError: If the operator declines.
        """
        if self._auto_accept or self.dry_run:
            return

        resource = action.resource
        prompt = f"{resource.id}: {resource.description or 'apply change to ' + resource.target}?"
        accepted = self._confirm(prompt) if self._confirm is not None else False
        self._log.note("Confirmation for %s: %s", resource.id, "accepted" if accepted else "declined")
        if accepted:
            return

        self._log.status(Outcome.FAIL.value, resource.id, "declined by operator")
        raise HardStopError(
            f"{resource.id} was declined; continuing could leave the system unbootable",
            remediation=(
                f"Apply {resource.id} to {resource.target} manually, or re-run and accept it."
            ),
        )

    # =========================================================================
    # File kinds
    # =========================================================================

    def _desired_bytes(self, resource: Resource) -> bytes:
        """Render the content a file resource must end up with.

        Raises:
            SourceMissingError: If a FILE_COPY source is missing.
            ValueError: If the current content cannot be edited safely.
        """
        if resource.kind == ResourceKind.FILE_COPY:
            return read_source(resource)
        try:
            current: str | None = decode(resource.path.read_bytes())
        except FileNotFoundError:
            current = None
        return render_text(resource, current).encode("utf-8")

    def _apply_file(self, action: Action) -> ExecutionResult:
        resource = action.resource
        verb = "created" if action.action_type == ActionType.CREATE else "updated"

        try:
            data = self._desired_bytes(resource)
        except (SourceMissingError, ValueError, OSError) as e:
            return ExecutionResult(action, Outcome.FAIL, str(e), dry_run=self.dry_run)

        if self.dry_run:
            message = f"would be {verb}"
            if resource.path.exists():
                message += f" (backup to {self._backups.planned_path(resource.path)})"
            return ExecutionResult(action, Outcome.OK, message, dry_run=True)

        try:
            self._backups.prepare()
        except BackupFailedError as e:
            raise HardStopError(
                str(e),
                remediation="Fix permissions on the backup directory or set backup_dir "
                "in config.toml, then re-run.",
            ) from e

        try:
            record = self._backups.backup(resource.path)
        except BackupFailedError as e:
            return ExecutionResult(action, Outcome.FAIL, str(e))

        try:
            self._write(resource, data)
        except MutationFailedError as e:
            return ExecutionResult(
                action,
                Outcome.FAIL,
                str(e),
                backup_path=record.backup_path if record else None,
            )

        return ExecutionResult(
            action,
            Outcome.OK,
            verb,
            backup_path=record.backup_path if record else None,
        )

    def _write(self, resource: Resource, data: bytes) -> None:
        """Replace a target's content atomically.

        Raises:
            MutationFailedError: If the target cannot be written.
        """
        if resource.requires_sudo and not is_root():
            self._write_privileged(resource, data)
            return

        target = resource.path
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                dir=target.parent,
                prefix=f".{target.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp.write(data)
                tmp_path = Path(tmp.name)
            if target.exists():
                shutil.copymode(target, tmp_path)
            else:
                tmp_path.chmod(0o644)
            os.replace(tmp_path, target)
        except OSError as e:
            raise MutationFailedError(f"Cannot write {target}: {e}") from e
        logger.info("Wrote %s (%d bytes)", target, len(data))

    def _write_privileged(self, resource: Resource, data: bytes) -> None:
        """Write a root-owned target through ``sudo install``.

        Raises:
            MutationFailedError: If staging or the install command fails.
        """
        try:
            with tempfile.NamedTemporaryFile(prefix="tunectl-", delete=False) as tmp:
                tmp.write(data)
                staged = Path(tmp.name)
        except OSError as e:
            raise MutationFailedError(f"Cannot stage {resource.target}: {e}") from e

        try:
            result = self._runner.run(
                [*sudo_prefix(), "install", "-D", "-m", "0644", str(staged), resource.target]
            )
        finally:
            staged.unlink(missing_ok=True)

        if not result.success:
            raise MutationFailedError(f"Cannot write {resource.target}: {result.output}")

    # =========================================================================
    # Package and service kinds
    # =========================================================================

    def _apply_command(self, action: Action) -> ExecutionResult:
        resource = action.resource
        kind = resource.kind
        names = [resource.target]

        if kind == ResourceKind.PACKAGE_PRESENT:
            result = self._packages.install(names)
        elif kind == ResourceKind.PACKAGE_ABSENT:
            result = self._packages.remove(names)
        elif kind == ResourceKind.SERVICE_ENABLE:
            result = self._services.enable(names)
        elif kind == ResourceKind.SERVICE_MASK:
            result = self._services.mask(names)
        else:
            msg = f"Unhandled resource kind: {kind}"
            raise ValueError(msg)

        infinitive, past = _VERBS[kind]
        if not result.success:
            return ExecutionResult(
                action,
                Outcome.FAIL,
                f"{infinitive} failed (exit {result.returncode})",
                output=result.output or None,
                dry_run=self.dry_run,
            )
        message = f"would be {past}" if self.dry_run else past
        return ExecutionResult(
            action,
            Outcome.OK,
            message,
            output=result.output or None,
            dry_run=self.dry_run,
        )

    # =========================================================================
    # Triggers and reboot marker
    # =========================================================================

    def _run_trigger(self, summary: RunSummary, trigger: Trigger) -> None:
        results: list[CommandResult]
        if trigger == Trigger.DAEMON_RELOAD:
            results = [self._services.daemon_reload()]
        elif trigger == Trigger.UDEV_RELOAD:
            results = [self._udev.reload_rules()]
            if results[0].success:
                results.append(self._udev.trigger())
        elif trigger == Trigger.INITRAMFS:
            results = [self._initramfs.rebuild()]
        else:
            results = [self._bootloader.rebuild()]

        subject = f"trigger:{trigger.value}"
        failed = next((r for r in results if not r.success), None)
        if failed is None:
            message = "would run" if self.dry_run else "done"
            self._log.status(Outcome.OK.value, subject, message)
            return

        summary.trigger_failures.append(trigger.value)
        self._log.status(Outcome.FAIL.value, subject, f"exit {failed.returncode}")
        self._log.output(failed.output)

    def _mark_reboot(self, summary: RunSummary) -> None:
        if self.dry_run or not summary.reboot_required or self._state is None:
            return
        try:
            self._state.mark_reboot_pending(
                self._boot_id, self._backups.run_id, summary.reboot_required
            )
        except (OSError, RuntimeError) as e:
            logger.warning("Failed to write reboot marker: %s", e)
            self._log.status(Outcome.WARN.value, "reboot-marker", str(e))
