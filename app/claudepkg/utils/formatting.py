"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

import sys

from rich.console import Console
from rich.markup import escape
from rich.theme import Theme

# Fixed palette. Status helpers also print a text marker.
THEME = Theme(
    {
        "text": "#ffffff",
        "muted": "#b2bec3",
        "header": "#69B9A1",
        "bold_header": "bold #69B9A1",
        "border": "#29526d",
        "success": "#03b971",
        "warning": "#f5b332",
        "error": "bold #f53263",
        "info": "#0ec1c8",
        "stage": "bold #0e8ac8",
    }
)


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances
console = Console(theme=THEME, color_system=_detect_color_system())
err_console = Console(theme=THEME, stderr=True, color_system=_detect_color_system())


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


def print_stage(stage: str, state: str, detail: str = "") -> None:
    """Print a pipeline status line.

    Args:
        stage: Stage label (e.g. "fetch").
        state: One of "start", "ok", "failed".
        detail: Optional trailing text.
    """
    markers = {
        "start": "[stage]==>[/]",
        "ok": "[success] ok[/]",
        "failed": "[error]!! [/]",
    }
    marker = markers.get(state, "   ")
    suffix = f" {escape(detail)}" if detail else ""
    console.print(f"{marker} [bold]{stage}[/]{suffix}", highlight=False)
