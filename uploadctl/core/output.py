"""Output formatting for uploadctl.

Provides JSON, table, and status output plus transfer progress bars using Rich.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from enum import Enum
from typing import Any

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)
from rich.table import Table

# =============================================================================
# Console Instances
# =============================================================================

console = Console()
err_console = Console(stderr=True)


# =============================================================================
# Output Format
# =============================================================================


class OutputFormat(Enum):
    """Output format options."""

    JSON = "json"
    TABLE = "table"

    @classmethod
    def from_string(cls, value: str) -> OutputFormat:
        """Create from string value."""
        return cls(value.lower())


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return json.dumps(sorted(value) if isinstance(value, (set, frozenset)) else value)
    return str(value)


# =============================================================================
# Table Output
# =============================================================================


def print_table(
    rows: Sequence[dict[str, Any]],
    columns: Sequence[str],
    *,
    title: str | None = None,
    column_labels: dict[str, str] | None = None,
) -> None:
    """Print data as a Rich table.

    Args:
        rows: List of dictionaries with data.
        columns: Column keys to display.
        title: Optional table title.
        column_labels: Optional mapping of column keys to display labels.
    """
    if not rows:
        console.print("[dim]No results[/dim]")
        return

    table = Table(title=title, show_header=True, header_style="bold")

    labels = column_labels or {}
    for col in columns:
        table.add_column(labels.get(col, col.replace("_", " ").title()))

    for row in rows:
        table.add_row(*(_cell(row.get(col, "")) for col in columns))

    console.print(table)


def print_key_value(
    data: dict[str, Any],
    *,
    title: str | None = None,
    key_labels: dict[str, str] | None = None,
) -> None:
    """Print key-value pairs in a formatted way.

    Args:
        data: Dictionary of key-value pairs.
        title: Optional title.
        key_labels: Optional mapping of keys to display labels.
    """
    if title:
        console.print(f"[bold]{title}[/bold]")

    labels = key_labels or {}
    display = {k: labels.get(k, k.replace("_", " ").title()) for k in data}
    width = max((len(v) for v in display.values()), default=0)

    for key, value in data.items():
        if value is None:
            value = "[dim]-[/dim]"
        elif isinstance(value, bool):
            value = "[green]Yes[/green]" if value else "[red]No[/red]"
        elif isinstance(value, (list, tuple, set, frozenset, dict)):
            value = _cell(value)

        console.print(f"  {display[key]:<{width}}  {value}")


# =============================================================================
# JSON Output
# =============================================================================


def print_json(data: Any, *, indent: int = 2) -> None:
    """Print data as JSON."""
    print(json.dumps(data, indent=indent, default=str))


# =============================================================================
# Unified Output
# =============================================================================


def print_output(
    data: Any,
    *,
    format: OutputFormat = OutputFormat.TABLE,
    columns: Sequence[str] | None = None,
    column_labels: dict[str, str] | None = None,
    title: str | None = None,
    quiet: bool = False,
    id_field: str = "id",
) -> None:
    """Print data in the specified format.

    Args:
        data: Data to print (dict, list, or scalar).
        format: Output format.
        columns: Columns for table format.
        column_labels: Labels for columns.
        title: Optional title.
        quiet: If True, only print IDs.
        id_field: Field to use for IDs in quiet mode.
    """
    if quiet:
        items = data if isinstance(data, list) else [data]
        for item in items:
            print(item.get(id_field, "") if isinstance(item, dict) else item)
        return

    if format == OutputFormat.JSON:
        print_json(data)
        return

    if isinstance(data, list) and columns:
        print_table(data, columns, title=title, column_labels=column_labels)
    elif isinstance(data, dict):
        if columns:
            print_table([data], columns, title=title, column_labels=column_labels)
        else:
            print_key_value(data, title=title, key_labels=column_labels)
    else:
        print_json(data)


# =============================================================================
# Status Messages
# =============================================================================


def print_error(message: str) -> None:
    """Print error message to stderr."""
    err_console.print(f"[red]Error:[/red] {message}")


def print_warning(message: str) -> None:
    """Print warning message to stderr."""
    err_console.print(f"[yellow]Warning:[/yellow] {message}")


def print_success(message: str) -> None:
    """Print success message."""
    console.print(f"[green]✓[/green] {message}")


def print_info(message: str) -> None:
    """Print info message."""
    console.print(f"[blue]Info:[/blue] {message}")


# =============================================================================
# Progress
# =============================================================================


def create_transfer_progress() -> Progress:
    """Create a Rich progress bar for byte transfers.

    Returns:
        Progress instance.
    """
    return Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        TimeRemainingColumn(),
        console=err_console,
        transient=False,
    )
