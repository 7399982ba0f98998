"""Tool catalogue and applier for workflow template edits."""

from workflow_editor.toolkit.applier import ToolCallApplier, default_id_factory
from workflow_editor.toolkit.definitions import (
    format_tool_definitions,
    get_all_tools,
    get_tool,
    tool_names,
)
from workflow_editor.toolkit.models import (
    ApplyContext,
    ChangedEntity,
    TemplateCandidate,
    ToolCall,
    ToolDefinition,
)

__all__ = [
    "ApplyContext",
    "ChangedEntity",
    "TemplateCandidate",
    "ToolCall",
    "ToolCallApplier",
    "ToolDefinition",
    "default_id_factory",
    "format_tool_definitions",
    "get_all_tools",
    "get_tool",
    "tool_names",
]
