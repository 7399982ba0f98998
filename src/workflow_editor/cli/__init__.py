"""Workflow editor CLI -- validate, inspect and edit workflow templates.

This module is NEVER imported from workflow_editor/__init__.py.
It is only loaded via the ``workflow-editor`` entry point defined in pyproject.toml.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

try:
    import click
except ImportError:
    raise ImportError(
        "CLI dependencies not installed. Install with: pip install workflow-editor[cli]"
    ) from None

if TYPE_CHECKING:
    from workflow_editor.models.template import WorkflowTemplate


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Workflow editor: validate and edit goal-based workflow templates."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_template(path: str) -> WorkflowTemplate:
    """Read a JSON template file.

    Raises:
        ValueError: The file is not a JSON object.
    """
    from workflow_editor.models.template import WorkflowTemplate

    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object at the top level")
    return WorkflowTemplate.from_dict(data)


# Register subcommands after cli group is defined
from workflow_editor.cli.commands.validate import validate  # noqa: E402
from workflow_editor.cli.commands.summary import summary  # noqa: E402
from workflow_editor.cli.commands.tools import tools  # noqa: E402
from workflow_editor.cli.commands.edit import edit  # noqa: E402

cli.add_command(validate)
cli.add_command(summary)
cli.add_command(tools)
cli.add_command(edit)
