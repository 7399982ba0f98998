"""workflow-editor edit -- apply a natural-language edit to a template."""

from __future__ import annotations

import json
import uuid
from typing import TYPE_CHECKING

import click

from workflow_editor.cli.formatting import format_edit_result, format_error, get_console
from workflow_editor.llm.client import API_KEY_ENV, BASE_URL_ENV

if TYPE_CHECKING:
    from workflow_editor.llm.client import OpenAIClient
    from workflow_editor.llm.protocols import EditGenerator


def _build_generator(
    api_key: str | None, base_url: str | None, model: str
) -> tuple[EditGenerator, OpenAIClient | None]:
    """Return the generator and the client to close afterwards."""
    from workflow_editor.llm.client import OpenAIClient
    from workflow_editor.llm.generator import ChatGenerator

    client = OpenAIClient(api_key=api_key, base_url=base_url, default_model=model)
    return ChatGenerator(client, model=model), client


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.argument("message")
@click.option("-o", "--output", type=click.Path(dir_okay=False), default=None,
              help="Write the updated template here (default: print JSON).")
@click.option("--model", default="gpt-4o-mini", envvar="WORKFLOW_EDITOR_MODEL",
              show_default=True, help="Model name sent to the API.")
@click.option("--base-url", default=None, envvar=BASE_URL_ENV,
              help="OpenAI-compatible API base URL.")
@click.option("--api-key", default=None, envvar=API_KEY_ENV, help="API key.")
@click.option("--max-attempts", default=3, show_default=True, type=click.IntRange(min=1),
              help="Generator attempts before giving up.")
@click.option("--audit-db", type=click.Path(dir_okay=False), default=None,
              help="SQLite file to persist audit events to.")
@click.option("--no-screen", is_flag=True, help="Skip unsafe-request screening.")
def edit(
    path: str,
    message: str,
    output: str | None,
    model: str,
    base_url: str | None,
    api_key: str | None,
    max_attempts: int,
    audit_db: str | None,
    no_screen: bool,
) -> None:
    """Apply MESSAGE as an edit to the template in PATH.

    Exits 1 when the edit is rejected or every attempt fails.
    """
    from workflow_editor.agent.config import AgentConfig
    from workflow_editor.agent.loop import WorkflowEditingAgent
    from workflow_editor.agent.models import EditRequest
    from workflow_editor.cli import _load_template

    console = get_console()
    try:
        template = _load_template(path)
        generator, client = _build_generator(api_key, base_url, model)
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None

    audit_sink = None
    engine = None
    if audit_db is not None:
        from workflow_editor.storage import SqlAuditSink, create_audit_engine

        engine = create_audit_engine(audit_db)
        audit_sink = SqlAuditSink(engine)

    try:
        agent = WorkflowEditingAgent(
            generator,
            config=AgentConfig(max_attempts=max_attempts, screen_requests=not no_screen),
            audit=audit_sink,
        )
        result = agent.process_edit_request(
            EditRequest(
                workflow_id=template.id or path,
                current_workflow=template,
                user_message=message,
                session_id=f"cli_{uuid.uuid4().hex[:8]}",
            )
        )
    finally:
        if client is not None:
            client.close()
        if engine is not None:
            engine.dispose()

    format_edit_result(result, console)
    if not result.success:
        raise SystemExit(1)

    payload = json.dumps(result.updated_workflow.to_dict(), indent=2)
    if output is not None:
        with open(output, "w", encoding="utf-8") as fh:
            fh.write(payload + "\n")
        console.print(f"Wrote {output}", highlight=False)
    else:
        click.echo(payload)
