"""Schema validation: tagged failures and the SchemaValidator."""

from workflow_editor.validation.failures import (
    FailureKind,
    ValidationFailure,
    ValidationOutcome,
    classify_detail,
    parse_failure_message,
    scope_name,
    split_path,
)
from workflow_editor.validation.validator import (
    VALID_ASSIGNEE_TYPES,
    VALID_CONSTRAINT_TYPES,
    VALID_ENFORCEMENT_LEVELS,
    VALID_FORM_TYPES,
    VALID_TRIGGER_TYPES,
    SchemaValidator,
    validate_constraint,
    validate_entity,
    validate_form,
    validate_goal,
    validate_policy,
    validate_task,
    validate_template,
)

__all__ = [
    "FailureKind",
    "ValidationFailure",
    "ValidationOutcome",
    "classify_detail",
    "parse_failure_message",
    "scope_name",
    "split_path",
    "SchemaValidator",
    "VALID_ASSIGNEE_TYPES",
    "VALID_CONSTRAINT_TYPES",
    "VALID_ENFORCEMENT_LEVELS",
    "VALID_FORM_TYPES",
    "VALID_TRIGGER_TYPES",
    "validate_constraint",
    "validate_entity",
    "validate_form",
    "validate_goal",
    "validate_policy",
    "validate_task",
    "validate_template",
]
