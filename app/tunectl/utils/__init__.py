"""Utility modules for tunectl.

This module exports commonly used utility functions.
"""

from tunectl.utils.formatting import (
    console,
    err_console,
    print_error,
    print_info,
    print_status,
    print_success,
    print_warning,
)
from tunectl.utils.shell import CommandResult, command_exists, run_command

__all__ = [
    "CommandResult",
    "command_exists",
    "console",
    "err_console",
    "print_error",
    "print_info",
    "print_status",
    "print_success",
    "print_warning",
    "run_command",
]
