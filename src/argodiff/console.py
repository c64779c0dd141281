"""Rich console output utilities for the argodiff CLI.

Everything the tool reports while running goes through these helpers:
progress on stdout, failures on stderr.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

    from argodiff.models import Application

from rich.console import Console
from rich.live import Live
from rich.spinner import Spinner
from rich.syntax import Syntax
from rich.table import Table
from rich.theme import Theme

ARGODIFF_THEME = Theme(
    {
        "info": "cyan",
        "success": "green",
        "warning": "yellow",
        "error": "bold red",
        "heading": "bold magenta",
        "muted": "dim",
        "app": "bold green",
        "path": "dim cyan",
    }
)


console = Console(theme=ARGODIFF_THEME)
err_console = Console(theme=ARGODIFF_THEME, stderr=True)


def print_success(message: str, prefix: str = "✓") -> None:
    """Print a success message."""
    console.print(f"[success]{prefix}[/success] {message}")


def print_error(message: str, prefix: str = "✗") -> None:
    """Print an error message to stderr."""
    err_console.print(f"[error]{prefix}[/error] {message}")


def print_warning(message: str, prefix: str = "⚠") -> None:
    """Print a warning message."""
    console.print(f"[warning]{prefix}[/warning] {message}")


def print_info(message: str, prefix: str = "•") -> None:
    """Print an info message."""
    console.print(f"[info]{prefix}[/info] {message}")


def print_step(message: str, step: int | None = None) -> None:
    """Print a step in a process."""
    if step is not None:
        console.print(f"[muted]({step})[/muted] {message}")
    else:
        console.print(f"[muted]→[/muted] {message}")


def print_header(title: str) -> None:
    """Print a section header."""
    console.print(f"\n[heading]{title}[/heading]")
    console.print(f"[muted]{'─' * len(title)}[/muted]")


def print_key_value(key: str, value: str, indent: int = 0) -> None:
    spaces = "  " * indent
    console.print(f"{spaces}[muted]{key}:[/muted] {value}")


def format_app(name: str) -> str:
    return f"[app]{name}[/app]"


def format_path(path: str) -> str:
    return f"[path]{path}[/path]"


def format_status(status: str) -> str:
    """Format an ArgoCD sync status for display."""
    if status == "Synced":
        return f"[success]{status}[/success]"
    if status == "OutOfSync":
        return f"[warning]{status}[/warning]"
    return f"[muted]{status}[/muted]"


def create_table(title: str | None = None, show_header: bool = True) -> Table:
    """Create a styled table."""
    return Table(
        title=title,
        show_header=show_header,
        header_style="bold",
        border_style="muted",
        title_style="heading",
    )


def print_app_list(apps: list[Application]) -> None:
    """Print ArgoCD applications with their source and sync status."""
    table: Table = create_table()
    table.add_column("Application", style="app")
    table.add_column("Path", style="path")
    table.add_column("Revision")
    table.add_column("Sync")

    for app in apps:
        table.add_row(
            app.name,
            app.source.path or "-",
            app.source.target_revision or "-",
            format_status(str(app.sync_status)),
        )

    console.print(table)


def print_label_index(index: dict[str, str | None], app_name: str) -> None:
    """Print which tracking label each changed file carries."""
    table: Table = create_table()
    table.add_column("", justify="center", width=2)
    table.add_column("File", style="path")
    table.add_column("Tracking label")

    for path, label in index.items():
        matched = "[success]✓[/success]" if label == app_name else ""
        table.add_row(matched, path, label or "[muted]-[/muted]")

    console.print(table)


def print_diff(diff_lines: list[str]) -> None:
    """Print diff output with appropriate coloring."""
    for line in diff_lines:
        if line.startswith("====="):
            console.print(f"[heading]{_escape(line.rstrip())}[/heading]")
        elif line.startswith(("+", ">")) and not line.startswith("+++"):
            console.print(f"[green]{_escape(line.rstrip())}[/green]")
        elif line.startswith(("-", "<")) and not line.startswith("---"):
            console.print(f"[red]{_escape(line.rstrip())}[/red]")
        elif line.startswith("@@"):
            console.print(f"[cyan]{_escape(line.rstrip())}[/cyan]")
        else:
            console.print(line.rstrip(), markup=False, highlight=False)


def _escape(text: str) -> str:
    return text.replace("[", "\\[")


def print_yaml(content: str) -> None:
    """Print YAML content with syntax highlighting."""
    console.print(Syntax(content, "yaml", theme="monokai", line_numbers=False))


def print_summary(success: int, errors: int) -> None:
    """Print a summary of operations."""
    console.print()
    if errors == 0:
        console.print(f"[success]✓ All done![/success] {success} successful")
    else:
        console.print(
            f"[warning]Complete[/warning]: "
            f"[success]{success} successful[/success], "
            f"[error]{errors} errors[/error]"
        )


def print_hint(message: str) -> None:
    """Print a hint for the user."""
    console.print(f"  [muted]💡 Hint:[/muted] [dim]{message}[/dim]")


@contextmanager
def status(message: str) -> Generator[None]:
    """Context manager that shows a spinner while the block runs.

    Usage:
        with status("Fetching applications..."):
            apps = client.list_applications()
    """
    spinner = Spinner("dots", text=f" {message}", style="cyan")
    with Live(spinner, console=console, refresh_per_second=10, transient=True):
        yield
