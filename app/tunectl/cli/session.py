"""Per-invocation wiring shared by all commands.

Loads settings and the catalog once and builds the collaborators every
command needs. Load failures are reported and turned into exit code 1.
"""

from dataclasses import dataclass
from pathlib import Path

import typer

from tunectl.core.catalog import Catalog, CatalogError, CatalogNotFoundError, load_catalog
from tunectl.core.facts import SystemFacts
from tunectl.core.inspector import StateInspector
from tunectl.core.runlog import RunLog, new_run_id
from tunectl.core.runner import CommandRunner
from tunectl.core.settings import Settings, SettingsError, load_settings
from tunectl.managers.base import PackageManager, ServiceManager
from tunectl.managers.pacman import PacmanManager
from tunectl.managers.systemd import SystemdManager
from tunectl.utils.formatting import print_error, print_info, print_warning


@dataclass(slots=True)
class Session:
    """Everything one command invocation works with.

    Attributes:
        settings: Effective settings.
        catalog: Desired state, loaded once.
        runner: Command boundary.
        packages: Package manager collaborator.
        services: Service manager collaborator.
        facts: Precondition evaluator.
        inspector: State inspector.
        run_id: Timestamp key for logs and backups.
        verbose: Record DEBUG messages in the run log.
        quiet: Suppress status lines on the console.
        auto_accept: Accept every confirmation.
        dry_run: Simulate mutations.
    """

    settings: Settings
    catalog: Catalog
    runner: CommandRunner
    packages: PackageManager
    services: ServiceManager
    facts: SystemFacts
    inspector: StateInspector
    run_id: str
    verbose: bool = False
    quiet: bool = False
    auto_accept: bool = False
    dry_run: bool = False

    def run_log(self, *, echo: bool = True) -> RunLog:
        """Create the run log for this invocation.

        Args:
            echo: Print status lines to the console unless ``--quiet``.
        """
        return RunLog(
            self.settings.effective_log_dir,
            self.run_id,
            verbose=self.verbose,
            echo=echo and not self.quiet,
        )

    def open_run_log(self, *, echo: bool = True) -> RunLog:
        """Create and open the run log for this invocation.

        Args:
            echo: Print status lines to the console unless ``--quiet``.

        Raises:
            typer.Exit: With code 1 if the log directory cannot be created.
        """
        run_log = self.run_log(echo=echo)
        try:
            run_log.open()
        except RuntimeError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        return run_log


def get_options(ctx: typer.Context) -> dict[str, object]:
    """Global options stored by the main callback."""
    ctx.ensure_object(dict)
    return ctx.obj  # type: ignore[no-any-return]


def _load_settings(catalog_override: Path | None) -> Settings:
    try:
        settings = load_settings()
    except SettingsError as e:
        print_error(f"Failed to load settings: {e}")
        raise typer.Exit(code=1) from e
    if catalog_override is not None:
        settings = settings.model_copy(update={"catalog": catalog_override})
    return settings


def _load_catalog(settings: Settings) -> Catalog:
    path = settings.effective_catalog
    try:
        return load_catalog(path, settings.effective_source_dir)
    except CatalogNotFoundError as e:
        print_error(f"Catalog not found: {path}")
        print_info("Pass --catalog PATH or set 'catalog' in config.toml.")
        raise typer.Exit(code=1) from e
    except CatalogError as e:
        print_error(f"Failed to load catalog: {e}")
        raise typer.Exit(code=1) from e


def open_session(ctx: typer.Context, *, dry_run: bool | None = None) -> Session:
    """Build the session for a command.

    Args:
        ctx: Typer context carrying the global options.
        dry_run: Force dry-run on or off. None uses the global option.

    Returns:
        Ready-to-use Session.

    Raises:
        typer.Exit: With code 1 if settings or the catalog cannot be loaded.
    """
    options = get_options(ctx)
    catalog_path = options.get("catalog")
    settings = _load_settings(catalog_path if isinstance(catalog_path, Path) else None)
    catalog = _load_catalog(settings)

    effective_dry_run = bool(options.get("dry_run")) if dry_run is None else dry_run
    runner = CommandRunner(dry_run=effective_dry_run, timeout=settings.command_timeout)
    packages = PacmanManager(runner)
    services = SystemdManager(runner)

    if not packages.is_available():
        print_warning("pacman is not available; package state will be unknown.")
    if not services.is_available():
        print_warning("systemctl is not available; service state will be unknown.")

    return Session(
        settings=settings,
        catalog=catalog,
        runner=runner,
        packages=packages,
        services=services,
        facts=SystemFacts(packages, runner),
        inspector=StateInspector(packages, services),
        run_id=new_run_id(),
        verbose=bool(options.get("verbose")),
        quiet=bool(options.get("quiet")),
        auto_accept=bool(options.get("all")),
        dry_run=effective_dry_run,
    )
