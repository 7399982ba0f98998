"""Workflow editor: natural-language editing of goal-based workflow templates.

The editing agent turns a free-text instruction into validated tool calls
against a WorkflowTemplate, retrying with targeted guidance when the
generator's output fails validation.
"""

from workflow_editor._version import __version__
from workflow_editor.agent import (
    AgentConfig,
    EditRequest,
    EditResult,
    EditState,
    EmptyBatchPolicy,
    WorkflowEditingAgent,
)
from workflow_editor.audit import (
    AgentEvent,
    AuditSink,
    InMemoryAuditSink,
    LoggingAuditSink,
)
from workflow_editor.exceptions import (
    ApplyError,
    GeneratorError,
    InvalidRequestError,
    ResponseParseError,
    RetryExhaustedError,
    SchemaValidationError,
    WorkflowEditorError,
)
from workflow_editor.models import (
    Constraint,
    Form,
    Goal,
    Policy,
    Task,
    WorkflowTemplate,
)
from workflow_editor.prompts import generate_validation_error_guidance
from workflow_editor.toolkit import ToolCall, ToolCallApplier
from workflow_editor.validation import (
    FailureKind,
    SchemaValidator,
    ValidationFailure,
    ValidationOutcome,
)

__all__ = [
    "__version__",
    "AgentConfig",
    "AgentEvent",
    "ApplyError",
    "AuditSink",
    "Constraint",
    "EditRequest",
    "EditResult",
    "EditState",
    "EmptyBatchPolicy",
    "FailureKind",
    "Form",
    "GeneratorError",
    "Goal",
    "InMemoryAuditSink",
    "InvalidRequestError",
    "LoggingAuditSink",
    "Policy",
    "ResponseParseError",
    "RetryExhaustedError",
    "SchemaValidationError",
    "SchemaValidator",
    "Task",
    "ToolCall",
    "ToolCallApplier",
    "ValidationFailure",
    "ValidationOutcome",
    "WorkflowEditingAgent",
    "WorkflowEditorError",
    "WorkflowTemplate",
    "generate_validation_error_guidance",
]
