"""workflow-editor summary -- print the workflow summary the agent sends."""

from __future__ import annotations

import click

from workflow_editor.cli.formatting import format_error, get_console


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def summary(path: str) -> None:
    """Show name, version, goal breakdown and metadata of the template in PATH."""
    from workflow_editor.cli import _load_template
    from workflow_editor.prompts.editing import generate_workflow_summary

    console = get_console()
    try:
        template = _load_template(path)
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None
    console.print(generate_workflow_summary(template), markup=False, highlight=False)
