"""Install command implementation.

Plans the catalog against the current system and applies every change,
one resource at a time, with a status line per resource.
"""

from typing import Annotated

import typer

from tunectl.cli.display import print_run_summary
from tunectl.cli.session import Session, get_options, open_session
from tunectl.core.backup import BackupStore
from tunectl.core.errors import HardStopError
from tunectl.core.executor import Executor
from tunectl.core.planner import Planner
from tunectl.core.state import StateManager, current_boot_id
from tunectl.managers.boot import BootloaderManager, InitramfsBuilder
from tunectl.managers.udev import UdevControl
from tunectl.utils.formatting import console, print_error, print_info

app = typer.Typer(
    help="Reconcile the system with the catalog.",
    invoke_without_command=True,
)


def _confirm(prompt: str) -> bool:
    """Ask the operator to accept a change."""
    return typer.confirm(prompt, default=False)


def run_install(session: Session) -> None:
    """Plan and execute the catalog.

    Args:
        session: Loaded session.

    Raises:
        typer.Exit: 1 if any resource failed or the run log cannot be
            opened, 2 on a hard stop.
    """
    run_log = session.open_run_log()
    try:
        mode = " (dry run)" if session.dry_run else ""
        if not session.quiet:
            console.print(
                f"[header]tunectl[/] [muted]run {session.run_id}, "
                f"catalog '{session.catalog.name}'{mode}[/]"
            )

        plan = Planner(session.inspector, session.facts).plan(session.catalog)
        run_log.note("Planned %d action(s), %d mutating", len(plan), len(plan.mutating))

        executor = Executor(
            packages=session.packages,
            services=session.services,
            backups=BackupStore(session.settings.effective_backup_dir, session.run_id),
            run_log=run_log,
            runner=session.runner,
            initramfs=InitramfsBuilder(session.runner),
            bootloader=BootloaderManager(session.runner),
            udev=UdevControl(session.runner),
            state=StateManager(),
            boot_id=current_boot_id(),
            confirm=_confirm,
            auto_accept=session.auto_accept,
            dry_run=session.dry_run,
        )

        try:
            summary = executor.execute(plan)
        except HardStopError as e:
            if e.summary is not None:
                print_run_summary(
                    e.summary, dry_run=session.dry_run, log_path=run_log.path, stopped=True
                )
            print_error(f"Run stopped: {e}")
            print_info(e.remediation)
            raise typer.Exit(code=2) from e

        print_run_summary(summary, dry_run=session.dry_run, log_path=run_log.path)
        if summary.has_failures:
            raise typer.Exit(code=1)
    finally:
        run_log.close()


@app.callback(invoke_without_command=True)
def install(
    ctx: typer.Context,
    yes: Annotated[
        bool,
        typer.Option(
            "--all",
            "-a",
            help="Accept every confirmation without asking.",
        ),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show what would be done without making changes.",
        ),
    ] = False,
) -> None:
    """Reconcile the system with the catalog.

    Installs packages first, then writes files, then enables services.
    Package removal and service masking run last and are skipped when a
    file change failed. Every overwritten file is backed up first.

    Examples:
        tunectl install --dry-run      # Preview changes
        tunectl install --all          # Apply without confirmation prompts
    """
    if ctx.invoked_subcommand is not None:
        return

    options = get_options(ctx)
    if yes:
        options["all"] = True
    if dry_run:
        options["dry_run"] = True

    run_install(open_session(ctx))
