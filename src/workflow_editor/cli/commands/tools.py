"""workflow-editor tools -- list the editing tools."""

from __future__ import annotations

import json

import click

from workflow_editor.cli.formatting import format_tools, get_console


@click.command()
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["table", "openai", "anthropic"]),
    default="table",
    help="Output as a table or as provider tool definitions (JSON).",
)
def tools(fmt: str) -> None:
    """List every tool the agent can call."""
    from workflow_editor.toolkit.definitions import get_all_tools

    all_tools = get_all_tools()
    if fmt == "openai":
        click.echo(json.dumps([t.to_openai() for t in all_tools], indent=2))
    elif fmt == "anthropic":
        click.echo(json.dumps([t.to_anthropic() for t in all_tools], indent=2))
    else:
        format_tools(all_tools, get_console())
