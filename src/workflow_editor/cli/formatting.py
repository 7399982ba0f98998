"""Rich formatting helpers for the workflow editor CLI.

Rich auto-detects TTY and degrades gracefully when piped (no ANSI codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from workflow_editor.agent.models import EditResult
    from workflow_editor.toolkit.models import ToolDefinition
    from workflow_editor.validation.failures import ValidationOutcome


def get_console() -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=False)


def format_outcome(outcome: ValidationOutcome, console: Console) -> None:
    """Display a validation outcome: status line, then failures and warnings."""
    if outcome.valid:
        console.print("[green]Valid[/green]", highlight=False)
    else:
        console.print(
            f"[red]Invalid[/red]: {len(outcome.failures)} failure(s)", highlight=False
        )

    rows = [("error", f) for f in outcome.failures] + [("warning", w) for w in outcome.warnings]
    if not rows:
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Level")
    table.add_column("Kind", style="cyan")
    table.add_column("Location", style="yellow")
    table.add_column("Detail")
    for level, failure in rows:
        style = "red" if level == "error" else "dim"
        table.add_row(
            f"[{style}]{level}[/{style}]",
            failure.kind.value,
            escape(failure.location),
            escape(failure.detail),
        )
    console.print(table)


def format_tools(tools: list[ToolDefinition], console: Console) -> None:
    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Tool", style="cyan")
    table.add_column("Required params", style="yellow")
    table.add_column("Description")
    for tool in tools:
        table.add_row(tool.name, ", ".join(tool.required_params), escape(tool.description))
    console.print(table)


def format_edit_result(result: EditResult, console: Console) -> None:
    """Display the outcome of an edit request."""
    if result.success:
        console.print(f"[green]{escape(result.message)}[/green]", highlight=False)
    else:
        console.print(f"[red]{escape(result.message)}[/red]", highlight=False)
        if result.error_details:
            console.print(f"  Details:  {escape(result.error_details)}", highlight=False)
    console.print(f"  Attempts: {result.attempts}", highlight=False)
    for call in result.tool_calls:
        console.print(f"  - [cyan]{call.tool}[/cyan]", highlight=False)


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
