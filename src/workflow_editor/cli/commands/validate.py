"""workflow-editor validate -- check a template against the schema rules."""

from __future__ import annotations

import click

from workflow_editor.cli.formatting import format_error, format_outcome, get_console


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def validate(path: str) -> None:
    """Validate the template in PATH. Exits 1 when it is invalid."""
    from workflow_editor.cli import _load_template
    from workflow_editor.validation.validator import SchemaValidator

    console = get_console()
    try:
        template = _load_template(path)
        outcome = SchemaValidator().validate(template)
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None

    format_outcome(outcome, console)
    if not outcome.valid:
        raise SystemExit(1)
