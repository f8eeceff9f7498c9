"""Shared console helpers for the blueprint CLI.

Provides Rich-based status messages, summary tables, problem listings and a
few string helpers.  Every printing helper takes an optional ``console`` so
callers can pass their own (tests pass a recording console); the module-level
``console`` is only the default for the CLI.
"""

from __future__ import annotations

import re
from typing import Iterable

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from blueprint.errors import BlueprintError

console = Console()


# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def sanitize_package_name(name: str) -> str:
    """Convert an arbitrary project name into a Dart package name candidate.

    * Lowercases the input.
    * Replaces runs of non-alphanumeric characters with a single underscore.
    * Strips leading/trailing underscores and leading digits.

    Examples::

        sanitize_package_name("My Cool App") -> "my_cool_app"
        sanitize_package_name("2FA-helper") -> "fa_helper"
    """
    result = re.sub(r"[^a-z0-9]+", "_", name.strip().lower())
    result = result.strip("_")
    return result.lstrip("0123456789_")


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(0.25)  -> "250ms"
        format_duration(3.7)   -> "3.7s"
        format_duration(65.2)  -> "1m 5s"
    """
    if seconds < 0:
        return "0ms"
    if seconds < 1:
        return f"{int(seconds * 1000)}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds // 60)
    return f"{minutes}m {int(seconds % 60)}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_success(message: str, *, console: Console = console) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str, *, console: Console = console) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str, *, console: Console = console) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")


def print_summary_table(
    data: dict[str, str], title: str = "Summary", *, console: Console = console
) -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_problems(
    errors: Iterable[BlueprintError], title: str = "Generation blocked", *, console: Console = console
) -> None:
    """Print every independently detected problem in one panel."""
    lines: list[str] = []
    for err in errors:
        problems = getattr(err, "problems", None)
        if problems:
            lines.extend(f"[red]{err.code}[/red] {escape(problem)}" for problem in problems)
        else:
            lines.append(f"[red]{err.code}[/red] {escape(err.message)}")
    console.print(Panel("\n".join(lines) or "unknown problem", title=title, style="red"))
