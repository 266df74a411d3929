"""Catalog command implementation.

Lists catalog resources and whether their preconditions hold on this
system.
"""

import json
from typing import Annotated

import typer

from tunectl.cli.display import create_catalog_table
from tunectl.cli.session import open_session
from tunectl.core.catalog import unmet_precondition
from tunectl.models.resource import ResourceKind
from tunectl.utils.formatting import console, print_info

app = typer.Typer(
    help="List catalog resources.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def list_catalog(
    ctx: typer.Context,
    kind: Annotated[
        ResourceKind | None,
        typer.Option(
            "--kind",
            "-k",
            help="Only list resources of this kind.",
            case_sensitive=False,
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            "-j",
            help="Output in JSON format.",
        ),
    ] = False,
) -> None:
    """List catalog resources with their scope on this system.

    Examples:
        tunectl catalog                       # All resources
        tunectl catalog --kind file_copy      # Only copied files
    """
    if ctx.invoked_subcommand is not None:
        return

    session = open_session(ctx, dry_run=True)
    catalog = session.catalog
    resources = list(catalog.resources_for(kind) if kind else catalog.resources)

    if json_output:
        data = [
            {
                "id": r.id,
                "kind": r.kind.value,
                "target": r.target,
                "requires_reboot": r.requires_reboot,
                "skip_reason": unmet_precondition(r.preconditions, session.facts),
            }
            for r in resources
        ]
        console.print_json(json.dumps({"catalog": catalog.name, "resources": data}))
        return

    if not resources:
        print_info("No resources match.")
        return

    console.print(create_catalog_table(catalog, resources, session.facts))
    if catalog.runtime_checks and kind is None:
        console.print(f"[muted]{len(catalog.runtime_checks)} runtime check(s) defined.[/]")
