"""Main CLI application entry point.

Defines the Typer application and global options.
"""

from pathlib import Path
from typing import Annotated

import typer

from tunectl import __version__
from tunectl.cli.commands import catalog, diff, install, verify
from tunectl.cli.session import open_session

# Create main Typer app
app = typer.Typer(
    name="tunectl",
    help="Declarative performance tuning for Arch-based systems.",
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"tunectl version {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Record debug messages in the run log.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress per-resource status lines.",
        ),
    ] = False,
    catalog_path: Annotated[
        Path | None,
        typer.Option(
            "--catalog",
            "-c",
            help="Catalog file to use instead of the configured one.",
        ),
    ] = None,
    accept_all: Annotated[
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
    """tunectl - Declarative performance tuning for Arch-based systems.

    Describe kernel parameters, config files, services and packages in a
    catalog; tunectl brings the system in line and verifies the result.
    Without a command, runs [bold]install[/bold].
    """
    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["catalog"] = catalog_path
    ctx.obj["all"] = accept_all
    ctx.obj["dry_run"] = dry_run

    if ctx.invoked_subcommand is None:
        install.run_install(open_session(ctx))


# Register commands
app.add_typer(install.app, name="install")
app.add_typer(diff.app, name="diff")
app.add_typer(catalog.app, name="catalog")
app.command("verify")(verify.verify)
app.command("verify-static")(verify.verify_static)
app.command("verify-runtime")(verify.verify_runtime)


if __name__ == "__main__":
    app()
