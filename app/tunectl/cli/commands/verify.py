"""Verify commands implementation.

Runs the static and/or runtime verification passes. Verification never
changes the system; it exits 1 when any check fails unless
``--report-only`` is given. Every result is one status line in the run log
and, unless JSON is requested, on the console.
"""

import json
from enum import Enum
from typing import Annotated

import typer

from tunectl.cli.session import open_session
from tunectl.core.state import StateManager, current_boot_id
from tunectl.core.verifier import Verifier
from tunectl.models.verification import VerificationResult, has_failures
from tunectl.utils.formatting import console, print_success, print_warning


class Pass(str, Enum):
    """Verification passes to run."""

    STATIC = "static"
    RUNTIME = "runtime"
    ALL = "all"


_PASSES: dict[Pass, tuple[str, ...]] = {
    Pass.STATIC: ("static",),
    Pass.RUNTIME: ("runtime",),
    Pass.ALL: ("static", "runtime"),
}


JsonOption = Annotated[
    bool,
    typer.Option(
        "--json",
        "-j",
        help="Output in JSON format.",
    ),
]

ReportOnlyOption = Annotated[
    bool,
    typer.Option(
        "--report-only",
        help="Always exit 0, even if checks fail.",
    ),
]


def run_verification(ctx: typer.Context, which: Pass, json_output: bool, report_only: bool) -> None:
    """Run verification passes and report the results.

    Args:
        ctx: Typer context carrying the global options.
        which: Passes to run.
        json_output: Print JSON instead of status lines.
        report_only: Never exit non-zero because of failed checks.

    Raises:
        typer.Exit: With code 1 if a check failed and report_only is False.
    """
    session = open_session(ctx, dry_run=True)
    pending = StateManager().reboot_pending(current_boot_id())
    verifier = Verifier(
        session.catalog,
        session.inspector,
        session.facts,
        session.services,
        reboot_pending=pending,
    )

    passes: dict[str, list[VerificationResult]] = {}
    run_log = session.open_run_log(echo=not json_output)
    try:
        for name in _PASSES[which]:
            if not json_output and not session.quiet:
                console.print(f"[header]{name.title()} verification[/]")
            run_log.note("Starting %s verification", name)
            pass_results = (
                verifier.verify_static() if name == "static" else verifier.verify_runtime()
            )
            for result in pass_results:
                run_log.status(result.tag, result.check_id, result.message)
            passes[name] = pass_results

        results = [r for rs in passes.values() for r in rs]
        failed = has_failures(results)
        run_log.note(
            "Verification: %d check(s), %d failed", len(results), sum(r.failed for r in results)
        )
    finally:
        run_log.close()

    if json_output:
        data = {name: [r.to_dict() for r in rs] for name, rs in passes.items()}
        data_out: dict[str, object] = {**data, "failed": failed, "reboot_pending": pending}
        console.print_json(json.dumps(data_out))
    else:
        if pending:
            print_warning("A reboot is pending; reboot-dependent checks are informational.")
        failures = sum(1 for r in results if r.failed)
        if failures:
            print_warning(f"{failures} check(s) failed.")
        else:
            print_success("All checks passed.")

    if failed and not report_only:
        raise typer.Exit(code=1)


def verify(
    ctx: typer.Context,
    json_output: JsonOption = False,
    report_only: ReportOnlyOption = False,
) -> None:
    """Run the static and runtime verification passes.

    Examples:
        tunectl verify                    # Both passes
        tunectl verify --report-only      # Never fail the exit status
    """
    run_verification(ctx, Pass.ALL, json_output, report_only)


def verify_static(
    ctx: typer.Context,
    json_output: JsonOption = False,
    report_only: ReportOnlyOption = False,
) -> None:
    """Check configuration files, packages and unit enablement."""
    run_verification(ctx, Pass.STATIC, json_output, report_only)


def verify_runtime(
    ctx: typer.Context,
    json_output: JsonOption = False,
    report_only: ReportOnlyOption = False,
) -> None:
    """Check the live kernel command line, sysfs values and unit states."""
    run_verification(ctx, Pass.RUNTIME, json_output, report_only)
