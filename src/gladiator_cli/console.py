"""Shared rich console and output helpers for the gladiator CLI.

Status lines carry a one-character marker so they stay readable when
colors are stripped (pipes, CI logs).
"""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()

# Reflection action -> (label, style)
ACTION_LABELS = {
    "update": ("UPDATE", "yellow"),
    "create": ("NEW", "green"),
}


def print_success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    console.print(f"[red]✗[/red] {message}")


def print_warning(message: str) -> None:
    console.print(f"[yellow]⚠[/yellow] {message}")


def print_info(message: str) -> None:
    console.print(f"[blue]ℹ[/blue] {message}")


def print_panel(title: str, body: str, style: str = "blue") -> None:
    """Render body text inside a titled, bordered panel."""
    console.print(Panel(body, title=title, border_style=style))


def action_label(action: str) -> str:
    """Colored UPDATE/NEW label for a reflection group action."""
    label, style = ACTION_LABELS.get(action, (action.upper(), "white"))
    return f"[{style}]{label}[/{style}]"


def create_table(title: str = "") -> Table:
    """Create a rich table, titled if a title is given."""
    return Table(title=title) if title else Table()


def print_table(table: Table) -> None:
    console.print(table)


__all__ = [
    "ACTION_LABELS",
    "action_label",
    "console",
    "create_table",
    "print_error",
    "print_info",
    "print_panel",
    "print_success",
    "print_table",
    "print_warning",
]
