"""Domain models for workflow templates."""

from workflow_editor.models.template import (
    DEFAULT_GLOBAL_SETTINGS,
    AssigneeType,
    Constraint,
    ConstraintType,
    EnforcementLevel,
    Form,
    FormType,
    GlobalSettings,
    Goal,
    Policy,
    PolicyAction,
    PolicyCondition,
    Task,
    TaskAssignee,
    TriggerType,
    WorkflowMetadata,
    WorkflowTemplate,
    WorkflowTrigger,
    enum_values,
)

__all__ = [
    "DEFAULT_GLOBAL_SETTINGS",
    "AssigneeType",
    "Constraint",
    "ConstraintType",
    "EnforcementLevel",
    "Form",
    "FormType",
    "GlobalSettings",
    "Goal",
    "Policy",
    "PolicyAction",
    "PolicyCondition",
    "Task",
    "TaskAssignee",
    "TriggerType",
    "WorkflowMetadata",
    "WorkflowTemplate",
    "WorkflowTrigger",
    "enum_values",
]
