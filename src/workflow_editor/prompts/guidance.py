"""Corrective guidance for failed edit attempts.

Maps a ValidationFailure to a targeted instruction appended to the next
generator prompt. Dispatch is on the failure's kind, entity and field,
never on message wording. The string entry point
generate_validation_error_guidance() lifts a message back into failures
first, so callers that only hold text get the same guidance.

Everything here is pure and deterministic: the same input always gives
the same guidance string.
"""

from __future__ import annotations

import re

from workflow_editor.models.template import (
    AssigneeType,
    ConstraintType,
    EnforcementLevel,
    FormType,
    TriggerType,
    enum_values,
)
from workflow_editor.toolkit.definitions import tool_names
from workflow_editor.validation.failures import (
    FailureKind,
    ValidationFailure,
    parse_failure_message,
)

GUIDANCE_MARKER = "VALIDATION ERROR GUIDANCE"

REQUIRED_FIELDS_GUIDANCE = (
    "All required fields must be present. Goals need name and description. "
    "Tasks need description and assignee. Constraints need description, type "
    "and enforcement. Policies need name, if and then. Forms need name and "
    "type. Check the schema for required fields."
)

ID_GUIDANCE = (
    "Ensure all elements have unique 'id' fields. Use descriptive naming like "
    "'goal_user_registration' or 'task_email_validation'."
)

ASSIGNEE_GUIDANCE = (
    "Task assignee must have 'type' field set to either "
    + " or ".join(f"'{v}'" for v in enum_values(AssigneeType))
    + ". AI agents should specify 'model', humans should specify 'role'."
)

ENFORCEMENT_GUIDANCE = (
    "Constraint enforcement must be one of: "
    + ", ".join(enum_values(EnforcementLevel))
    + "."
)

CONSTRAINT_TYPE_GUIDANCE = (
    "Check that constraint types are one of: "
    + ", ".join(enum_values(ConstraintType))
    + "."
)

FORM_TYPE_GUIDANCE = (
    "Form type must be one of: " + ", ".join(enum_values(FormType)) + "."
)

TRIGGER_TYPE_GUIDANCE = (
    "Trigger type must be one of: " + ", ".join(enum_values(TriggerType)) + "."
)

DUPLICATE_GUIDANCE = (
    "Ids and goal orders must be unique across the workflow. Omit 'id' and "
    "'order' on new elements to have them assigned automatically."
)

REFERENCE_GUIDANCE = (
    "Referenced ids must exist in the current workflow. Use the goal and "
    "element ids listed in the workflow summary, and only list existing task "
    "ids in depends_on."
)

TYPE_GUIDANCE = (
    "Check parameter types: strings, numbers, arrays and objects must match "
    "the tool definition."
)

PARAMS_GUIDANCE = (
    "Include every required parameter for the tool and match its parameter "
    "schema exactly. Required parameters are listed in the tool definitions."
)

RESPONSE_FORMAT_GUIDANCE = (
    'Respond with a single JSON object of the form {"toolCalls": [{"tool": '
    '"<toolName>", "params": {...}}], "reasoning": "..."} and nothing else.'
)

FALLBACK_GUIDANCE = (
    "Please re-read the schema requirements and ensure all fields are "
    "properly formatted."
)


def _unknown_tool_guidance() -> str:
    return (
        "Use only tool names from the available tools: "
        + ", ".join(tool_names())
        + ". Tool names are case-sensitive."
    )


def _enum_guidance(failure: ValidationFailure) -> str:
    if failure.leaf == "enforcement":
        return ENFORCEMENT_GUIDANCE
    if failure.leaf == "type":
        if failure.entity == "constraint":
            return CONSTRAINT_TYPE_GUIDANCE
        if failure.entity == "form":
            return FORM_TYPE_GUIDANCE
        if failure.entity == "trigger":
            return TRIGGER_TYPE_GUIDANCE
    return FALLBACK_GUIDANCE


def guidance_for(failure: ValidationFailure) -> str:
    """Return the corrective instruction for one failure."""
    if failure.field.startswith("assignee"):
        return ASSIGNEE_GUIDANCE

    kind = failure.kind
    if kind is FailureKind.MISSING_FIELD:
        return ID_GUIDANCE if failure.leaf == "id" else REQUIRED_FIELDS_GUIDANCE
    if kind is FailureKind.INVALID_ENUM:
        return _enum_guidance(failure)
    if kind is FailureKind.INVALID_TYPE:
        return TYPE_GUIDANCE
    if kind is FailureKind.DUPLICATE_ID:
        return DUPLICATE_GUIDANCE
    if kind is FailureKind.UNKNOWN_REFERENCE:
        return REFERENCE_GUIDANCE
    if kind is FailureKind.UNKNOWN_TOOL:
        return _unknown_tool_guidance()
    if kind is FailureKind.MALFORMED_PARAMS:
        return PARAMS_GUIDANCE
    if kind is FailureKind.MALFORMED_RESPONSE:
        return RESPONSE_FORMAT_GUIDANCE
    return FALLBACK_GUIDANCE


def guidance_for_failures(failures: list[ValidationFailure]) -> str:
    """Join the guidance for several failures, each distinct text once, in order."""
    seen: list[str] = []
    for failure in failures:
        text = guidance_for(failure)
        if text not in seen:
            seen.append(text)
    return " ".join(seen) if seen else FALLBACK_GUIDANCE


# Loose wording seen in hand-written or foreign error strings that lack
# the "<path>: <reason>" structure.
_TEXT_SIGNATURES: list[tuple[re.Pattern[str], ValidationFailure]] = [
    (
        re.compile(r"name.*required|required.*name", re.IGNORECASE),
        ValidationFailure(FailureKind.MISSING_FIELD, "goal", "name", "name is required"),
    ),
    (
        re.compile(r"id.*required|required.*\bid\b", re.IGNORECASE),
        ValidationFailure(FailureKind.MISSING_FIELD, "goal", "id", "id is required"),
    ),
    (
        re.compile(r"invalid.*assignee|assignee.*invalid", re.IGNORECASE),
        ValidationFailure(FailureKind.INVALID_ENUM, "task", "assignee.type", "invalid assignee"),
    ),
    (
        re.compile(r"invalid.*enforcement|enforcement.*invalid", re.IGNORECASE),
        ValidationFailure(FailureKind.INVALID_ENUM, "constraint", "enforcement", "invalid enforcement"),
    ),
    (
        re.compile(r"invalid.*constraint type|constraint type.*invalid", re.IGNORECASE),
        ValidationFailure(FailureKind.INVALID_ENUM, "constraint", "type", "invalid constraint type"),
    ),
    (
        re.compile(r"unknown tool", re.IGNORECASE),
        ValidationFailure(FailureKind.UNKNOWN_TOOL, "tool_call", "tool", "unknown tool"),
    ),
]


def _failures_from_text(message: str) -> list[ValidationFailure]:
    failures = parse_failure_message(message)
    if failures:
        return failures
    for pattern, failure in _TEXT_SIGNATURES:
        if pattern.search(message):
            return [failure]
    return []


def format_guidance(guidance: str, original_error: str) -> str:
    return f"{GUIDANCE_MARKER}: {guidance}\n\nOriginal error: {original_error}"


def generate_validation_error_guidance(error_message: str) -> str:
    """Build the guidance block for a validation error message.

    >>> text = generate_validation_error_guidance(
    ...     "Goal validation failed: goal.name: Required field 'name' is missing"
    ... )
    >>> "Goals need name and description" in text
    True
    """
    failures = _failures_from_text(error_message)
    return format_guidance(guidance_for_failures(failures), error_message)


def generate_failure_guidance(
    failures: list[ValidationFailure], original_error: str
) -> str:
    """Build the guidance block from already-structured failures."""
    return format_guidance(guidance_for_failures(failures), original_error)
