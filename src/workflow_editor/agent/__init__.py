"""Workflow editing agent: config, request/result models and the control loop."""

from workflow_editor.agent.config import AgentConfig, EditState, EmptyBatchPolicy
from workflow_editor.agent.loop import WorkflowEditingAgent, parse_generator_output
from workflow_editor.agent.models import EditRequest, EditResult, GeneratorResponse
from workflow_editor.toolkit.models import ToolCall

__all__ = [
    "AgentConfig",
    "EditRequest",
    "EditResult",
    "EditState",
    "EmptyBatchPolicy",
    "GeneratorResponse",
    "ToolCall",
    "WorkflowEditingAgent",
    "parse_generator_output",
]
