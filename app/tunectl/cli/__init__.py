"""CLI package for tunectl.

This package contains the Typer application and all subcommands.
"""

from tunectl.cli.main import app

__all__ = ["app"]
