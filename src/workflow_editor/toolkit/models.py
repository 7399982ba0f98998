"""Toolkit data models for workflow editing tools.

Frozen dataclasses for tool definitions, apply context and candidates;
ToolCall is a pydantic model because it is parsed from generator output.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from collections.abc import Callable

    from workflow_editor.models.template import WorkflowTemplate

logger = logging.getLogger(__name__)


class ToolCall(BaseModel):
    """One mutation intent produced by the generator: ``{tool, params}``."""

    model_config = {"extra": "ignore"}

    tool: str
    params: dict[str, Any] = Field(default_factory=dict)


@dataclass(frozen=True)
class ToolDefinition:
    """A single tool definition for LLM consumption.

    Attributes:
        name: Tool name (e.g. "addGoal", "deleteTask").
        description: Human-readable description of when/why to use this tool.
        parameters: JSON Schema dict describing tool parameters.
        handler: Callable ``(template, params, ctx) -> ChangedEntity | None``
            that edits the working copy in place.
    """

    name: str
    description: str
    parameters: dict
    handler: Callable[..., Optional[ChangedEntity]]

    @property
    def required_params(self) -> list[str]:
        return list(self.parameters.get("required", []))

    def to_openai(self) -> dict:
        """Convert to OpenAI function-calling format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def to_anthropic(self) -> dict:
        """Convert to Anthropic tool-use format."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.parameters,
        }


@dataclass(frozen=True)
class ApplyContext:
    """Per-apply services handed to tool handlers.

    Attributes:
        new_id: Callable taking a prefix ("goal", "task", ...) and
            returning a fresh id.
        now: ISO timestamp of this apply.
    """

    new_id: Callable[[str], str]
    now: str


@dataclass(frozen=True)
class ChangedEntity:
    """The record a tool call created or modified.

    Attributes:
        entity: Record kind ("goal", "task", "constraint", "policy", "form").
        record: The record as it now stands in the candidate template.
        goal_id: Owning goal for child records.
    """

    entity: str
    record: Any
    goal_id: str | None = None


@dataclass(frozen=True)
class TemplateCandidate:
    """A template with one tool call applied, awaiting validation.

    Attributes:
        template: New template value (never the caller's instance).
        tool_name: Tool that produced it.
        changed: Entity the call created or modified, if any.
    """

    template: WorkflowTemplate
    tool_name: str
    changed: ChangedEntity | None = None
