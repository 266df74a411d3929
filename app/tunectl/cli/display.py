"""Shared Rich display functions for plans, runs and verification.

Provides table builders and summary printers used by the install, diff
and catalog commands.
"""

from pathlib import Path

from rich.markup import escape
from rich.table import Table

from tunectl.core.catalog import Catalog, unmet_precondition
from tunectl.core.executor import RunSummary
from tunectl.core.facts import SystemFacts
from tunectl.models.action import Action, ActionType, Outcome
from tunectl.models.resource import Resource
from tunectl.utils.formatting import console, print_diff, print_success, print_warning

_ACTION_STYLES: dict[ActionType, tuple[str, str]] = {
    ActionType.CREATE: ("+create", "added"),
    ActionType.UPDATE: ("~update", "changed"),
    ActionType.REMOVE: ("-remove", "removed"),
    ActionType.SKIP: ("skip", "muted"),
}


def print_plan(actions: list[Action]) -> None:
    """Print mutating actions with their diff text, one block per action.

    Args:
        actions: Actions of type other than Skip.
    """
    for action in actions:
        label, style = _ACTION_STYLES[action.action_type]
        flags = []
        if action.requires_reboot:
            flags.append("reboot")
        if action.requires_confirmation:
            flags.append("confirm")
        suffix = f" [muted]({', '.join(flags)})[/]" if flags else ""
        console.print(
            f"[{style}]{label}[/] [text]{escape(action.resource_id)}[/] "
            f"[muted]{escape(action.resource.target)}: {escape(action.reason)}[/]{suffix}"
        )
        if action.diff_text:
            print_diff(action.diff_text)
        console.print()


def print_plan_summary(actions: list[Action]) -> None:
    """Print counts of planned changes per action type."""
    parts: list[str] = []
    for action_type in (ActionType.CREATE, ActionType.UPDATE, ActionType.REMOVE):
        count = sum(1 for a in actions if a.action_type == action_type)
        if count:
            _, style = _ACTION_STYLES[action_type]
            parts.append(f"[{style}]{count} to {action_type.value}[/]")
    if parts:
        console.print(f"Summary: {', '.join(parts)}")


def print_run_summary(
    summary: RunSummary,
    *,
    dry_run: bool,
    log_path: Path | None,
    stopped: bool = False,
) -> None:
    """Print the end-of-run summary.

    Args:
        summary: Result of the execution pass.
        dry_run: Whether mutations were simulated.
        log_path: Run log file, if one was written.
        stopped: The run ended early; no success line is printed.
    """
    counts = ", ".join(
        f"[{style}]{summary.count(outcome)} {outcome.value}[/]"
        for outcome, style in (
            (Outcome.OK, "success"),
            (Outcome.FAIL, "error"),
            (Outcome.WARN, "warning"),
            (Outcome.INFO, "info"),
        )
    )
    console.print(f"\nResources: {counts}")

    if summary.trigger_failures:
        print_warning(f"Failed triggers: {', '.join(summary.trigger_failures)}")
    if summary.backups:
        backup_dir = Path(summary.backups[0].backup_path)
        console.print(f"[muted]{len(summary.backups)} backup(s) under {backup_dir.parent}[/]")
    if summary.reboot_required:
        verb = "would require" if dry_run else "require"
        print_warning(f"{len(summary.reboot_required)} change(s) {verb} a reboot.")
    if log_path is not None:
        console.print(f"[muted]Run log: {log_path}[/]")

    if not summary.has_failures and not stopped:
        if dry_run:
            print_success("Dry run complete. No changes were made.")
        else:
            print_success("System is reconciled with the catalog.")


def create_catalog_table(catalog: Catalog, resources: list[Resource], facts: SystemFacts) -> Table:
    """Create a Rich table listing catalog resources and their scope.

    Args:
        catalog: Catalog the resources belong to.
        resources: Resources to list.
        facts: Evaluates preconditions for the scope column.

    Returns:
        Rich Table with Id, Kind, Target, Desired and Scope columns.
    """
    table = Table(
        title=f"Catalog: {catalog.name}",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Id", no_wrap=True)
    table.add_column("Kind")
    table.add_column("Target")
    table.add_column("Desired")
    table.add_column("Scope")

    for resource in resources:
        unmet = unmet_precondition(resource.preconditions, facts)
        scope = "[success]in scope[/]" if unmet is None else f"[muted]{escape(unmet)}[/]"
        table.add_row(
            escape(resource.id),
            resource.kind.value,
            escape(resource.target),
            escape(describe_desired(resource)),
            scope,
        )

    return table


def describe_desired(resource: Resource) -> str:
    """Short desired-state label for listings."""
    if resource.source is not None:
        return resource.source.name
    if resource.key and isinstance(resource.desired, str):
        return f"{resource.key}: {resource.desired}"
    return resource.kind.value.split("_", 1)[1]
