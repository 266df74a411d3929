"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

import sys

from rich.console import Console
from rich.markup import escape

from tunectl.core.theme import get_theme


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())

# Style per status tag
TAG_STYLES: dict[str, str] = {
    "OK": "success",
    "FAIL": "error",
    "INFO": "info",
    "WARN": "warning",
}


def format_tag(tag: str) -> str:
    """Format a status tag as a fixed-width, styled label.

    Args:
        tag: One of OK, FAIL, INFO, WARN.

    Returns:
        Rich markup such as ``[success][  OK  ][/]``.
    """
    style = TAG_STYLES.get(tag, "text")
    return f"[{style}]\\[{tag:^6}][/]"


def print_status(tag: str, subject: str, message: str) -> None:
    """Print a one-line resource status.

    Args:
        tag: One of OK, FAIL, INFO, WARN.
        subject: Resource or check id.
        message: What happened.
    """
    console.print(f"{format_tag(tag)} [text]{escape(subject)}[/] [muted]{escape(message)}[/]")


def print_diff(diff_text: str) -> None:
    """Print diff text with added and removed lines highlighted."""
    for line in diff_text.splitlines():
        if line.startswith(("+++", "---")):
            console.print(f"[bold_header]{escape(line)}[/]")
        elif line.startswith("+"):
            console.print(f"[added]{escape(line)}[/]")
        elif line.startswith("-"):
            console.print(f"[removed]{escape(line)}[/]")
        elif line.startswith("@@"):
            console.print(f"[changed]{escape(line)}[/]")
        else:
            console.print(f"[muted]{escape(line)}[/]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
