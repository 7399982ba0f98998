"""Request, response and result models for the editing agent.

GeneratorResponse is pydantic because it is parsed from untrusted
generator text; EditRequest and EditResult are frozen dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from workflow_editor.toolkit.models import ToolCall

if TYPE_CHECKING:
    from workflow_editor.models.template import WorkflowTemplate


class GeneratorResponse(BaseModel):
    """The JSON object the generator must return."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    tool_calls: list[ToolCall] = Field(alias="toolCalls")
    reasoning: str = ""


@dataclass(frozen=True)
class EditRequest:
    """Immutable input to one process_edit_request() run.

    Attributes:
        workflow_id: Id of the workflow being edited.
        current_workflow: The template value to edit; never mutated.
        user_message: Free-text instruction.
        user_id: Requesting user, for audit.
        session_id: Caller session, for audit.
    """

    workflow_id: str
    current_workflow: WorkflowTemplate
    user_message: str
    user_id: str | None = None
    session_id: str | None = None


@dataclass(frozen=True)
class EditResult:
    """The only output of process_edit_request().

    On failure ``updated_workflow`` is None and ``error_details`` holds the
    last failure text.

    Attributes:
        success: Whether the batch was applied and validated.
        updated_workflow: New template value on success.
        message: Human-readable outcome.
        tool_calls: Tool calls of the deciding attempt.
        reasoning: Generator's reasoning for the deciding attempt.
        error_details: Last failure text on failure.
        validation_errors: Validation failure messages, one per failed attempt.
        attempts: Generator attempts made (0 when rejected up front).
    """

    success: bool
    updated_workflow: WorkflowTemplate | None = None
    message: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    reasoning: str = ""
    error_details: str | None = None
    validation_errors: list[str] = field(default_factory=list)
    attempts: int = 0
