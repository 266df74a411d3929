"""CLI commands for tunectl.

This package contains all subcommand implementations.
"""

from tunectl.cli.commands import catalog, diff, install, verify

__all__ = ["catalog", "diff", "install", "verify"]
