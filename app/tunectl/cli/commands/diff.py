"""Diff command implementation.

Plans the catalog against the current system and shows every change that
``install`` would make, without making it. The plan is also recorded in
the run log.
"""

import json
from typing import Annotated

import typer

from tunectl.cli.display import print_plan, print_plan_summary
from tunectl.cli.session import open_session
from tunectl.core.planner import Planner
from tunectl.utils.formatting import console, print_success

app = typer.Typer(
    help="Show what install would change.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def show_diff(
    ctx: typer.Context,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            "-j",
            help="Output in JSON format.",
        ),
    ] = False,
) -> None:
    """Show planned changes with their diffs.

    Skipped resources are not listed. The exit status is 0 whether or not
    changes are pending.

    Examples:
        tunectl diff                 # Show pending changes
        tunectl diff --json          # JSON output for scripting
    """
    if ctx.invoked_subcommand is not None:
        return

    session = open_session(ctx, dry_run=True)
    run_log = session.open_run_log(echo=False)
    try:
        plan = Planner(session.inspector, session.facts).plan(session.catalog)
        for action in plan:
            tag = "FAIL" if action.error else "INFO"
            message = f"{action.action_type.value}: {action.error or action.reason}"
            run_log.status(tag, action.resource_id, message)
            if action.diff_text:
                run_log.diff(action.diff_text)
    finally:
        run_log.close()
    actions = plan.mutating

    if json_output:
        console.print_json(json.dumps(plan.to_dict()))
        return

    if not actions:
        print_success("System matches the catalog. Nothing to change.")
        return

    print_plan(actions)
    print_plan_summary(actions)
