"""Rich-based console output.

Everything goes to stderr: stdout carries the MCP stdio transport.
"""

from typing import Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# Global console instance
console = Console(stderr=True)

# Headless mode flag
_headless = False


def set_headless(headless: bool):
    """Set headless mode (disables rich output)."""
    global _headless
    _headless = headless


def is_headless() -> bool:
    """Check if running in headless mode."""
    return _headless


def print_header(title: str, subtitle: Optional[str] = None):
    """Print a styled header."""
    if _headless:
        console.print(f"\n=== {title} ===")
        if subtitle:
            console.print(f"    {subtitle}")
        return

    content = f"[bold magenta]{title}[/bold magenta]"
    if subtitle:
        content += f"\n[dim]{subtitle}[/dim]"

    console.print(Panel(content, box=box.DOUBLE_EDGE, padding=(1, 2)))


def print_status_table(title: str, rows: list[tuple[str, str, str]]):
    """Print a three-column status table (name, state, detail)."""
    table = Table(title=title, box=box.ROUNDED if not _headless else None)
    table.add_column("Name", style="cyan")
    table.add_column("State")
    table.add_column("Detail", style="dim")

    for name, state, detail in rows:
        table.add_row(name, state, detail)

    console.print(table)


def print_success(message: str):
    """Print a success message."""
    console.print(f"[bold green]✓[/bold green] {message}")


def print_error(message: str):
    """Print an error message."""
    console.print(f"[bold red]✗[/bold red] {message}")


def print_warning(message: str):
    """Print a warning message."""
    console.print(f"[bold yellow]⚠[/bold yellow] {message}")


def print_info(message: str):
    """Print an info message."""
    console.print(f"[bold blue]ℹ[/bold blue] {message}")
