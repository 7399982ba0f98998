"""Structured validation failures.

The SchemaValidator reports problems as tagged ValidationFailure records
rather than bare strings. Guidance generation dispatches on the tag
(kind + entity + field); the human-readable message is derived from the
record and keeps the historical shape::

    Goal validation failed: goal.name: Required field 'name' is missing

parse_failure_message() lifts such a message back into records so that
callers holding only the text (logs, older integrations) reach the same
guidance.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass


class FailureKind(str, enum.Enum):
    """What went wrong with a field."""

    MISSING_FIELD = "missing_field"
    INVALID_TYPE = "invalid_type"
    INVALID_ENUM = "invalid_enum"
    INVALID_VALUE = "invalid_value"
    DUPLICATE_ID = "duplicate_id"
    UNKNOWN_REFERENCE = "unknown_reference"
    UNKNOWN_TOOL = "unknown_tool"
    MALFORMED_PARAMS = "malformed_params"
    MALFORMED_RESPONSE = "malformed_response"


_SCOPE_NAMES: dict[str, str] = {
    "workflow": "Workflow",
    "goal": "Goal",
    "task": "Task",
    "constraint": "Constraint",
    "policy": "Policy",
    "form": "Form",
    "metadata": "Metadata",
    "trigger": "Trigger",
    "tool_call": "ToolCall",
    "response": "Response",
}

_SINGULAR: dict[str, str] = {
    "goals": "goal",
    "tasks": "task",
    "constraints": "constraint",
    "policies": "policy",
    "forms": "form",
    "triggers": "trigger",
}


def scope_name(entity: str) -> str:
    """Return the message header for an entity ("goal" -> "Goal")."""
    return _SCOPE_NAMES.get(entity, entity.replace("_", " ").title().replace(" ", ""))


@dataclass(frozen=True)
class ValidationFailure:
    """One field-addressable problem.

    Attributes:
        kind: The failure tag guidance dispatches on.
        entity: Record type the field belongs to ("goal", "task", ...).
        field: Field path relative to the entity ("name", "assignee.type").
        detail: Human-readable reason.
        path: Full location when it differs from ``entity.field``
            (e.g. ``goals[1].name`` for template-level checks).
    """

    kind: FailureKind
    entity: str
    field: str
    detail: str
    path: str | None = None

    @property
    def location(self) -> str:
        return self.path or f"{self.entity}.{self.field}"

    @property
    def message(self) -> str:
        return f"{scope_name(self.entity)} validation failed: {self.location}: {self.detail}"

    @property
    def leaf(self) -> str:
        """Last segment of the field path ("assignee.type" -> "type")."""
        return self.field.rsplit(".", 1)[-1]

    def __str__(self) -> str:
        return f"{self.location}: {self.detail}"


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of validating a candidate.

    Valid when ``failures`` is empty. Warnings never affect validity.

    Attributes:
        scope: Header used in the message ("Goal", "Workflow", ...).
        failures: Gating problems, in discovery order.
        warnings: Non-gating observations.
    """

    scope: str = "Workflow"
    failures: tuple[ValidationFailure, ...] = ()
    warnings: tuple[ValidationFailure, ...] = ()

    @property
    def valid(self) -> bool:
        return not self.failures

    @property
    def message(self) -> str:
        if self.valid:
            return ""
        details = "; ".join(str(f) for f in self.failures)
        return f"{self.scope} validation failed: {details}"

    def __repr__(self) -> str:
        status = "valid" if self.valid else f"invalid, {len(self.failures)} failure(s)"
        return f"ValidationOutcome({self.scope}: {status})"

    def __str__(self) -> str:
        return "valid" if self.valid else self.message


# ---------------------------------------------------------------------------
# Message parsing
# ---------------------------------------------------------------------------

_HEADER_RE = re.compile(r"(?P<scope>[A-Za-z][\w ]*?) validation failed: ")
_PATH_RE = re.compile(r"^[A-Za-z_][\w\[\]\.]*$")
_INDEXED_RE = re.compile(r"^(?P<name>\w+)\[\d+\]$")


def classify_detail(detail: str) -> FailureKind:
    """Infer a FailureKind from a free-text reason."""
    text = detail.lower()
    if "required field" in text or "is missing" in text or "must not be empty" in text:
        return FailureKind.MISSING_FIELD
    if "unknown tool" in text:
        return FailureKind.UNKNOWN_TOOL
    if "must be of type" in text:
        return FailureKind.INVALID_TYPE
    if "must be one of" in text or text.startswith("invalid"):
        return FailureKind.INVALID_ENUM
    if "duplicate" in text:
        return FailureKind.DUPLICATE_ID
    if "not found" in text or "unknown reference" in text or "does not exist" in text:
        return FailureKind.UNKNOWN_REFERENCE
    return FailureKind.INVALID_VALUE


def split_path(path: str) -> tuple[str, str]:
    """Split a location into (entity, field).

    The entity is the innermost indexed collection item (singularised)
    or, failing that, the root segment::

        goal.name                         -> ("goal", "name")
        goals[1].tasks[0].assignee.type   -> ("task", "assignee.type")
        workflow.id                       -> ("workflow", "id")
    """
    segments = path.split(".")
    anchor = 0
    for i, segment in enumerate(segments):
        if _INDEXED_RE.match(segment):
            anchor = i
    head = segments[anchor]
    indexed = _INDEXED_RE.match(head)
    name = indexed.group("name") if indexed else head
    entity = _SINGULAR.get(name, name)
    field = ".".join(segments[anchor + 1:])
    return entity, field


def parse_failure_message(message: str) -> list[ValidationFailure]:
    """Lift a ``"<Entity> validation failed: <path>: <reason>"`` message into records.

    Wrapped messages ("Schema validation failed after addGoal: Goal
    validation failed: ...") are handled by reading from the innermost
    header. Items that do not look like ``path: reason`` are skipped, so
    an unrecognised message yields an empty list.
    """
    headers = list(_HEADER_RE.finditer(message))
    if not headers:
        return []
    body = message[headers[-1].end():]

    failures: list[ValidationFailure] = []
    for item in body.split("; "):
        path, sep, detail = item.partition(": ")
        path = path.strip()
        if not sep or not _PATH_RE.match(path):
            continue
        entity, field = split_path(path)
        detail = detail.strip()
        failures.append(
            ValidationFailure(
                kind=classify_detail(detail),
                entity=entity,
                field=field,
                detail=detail,
                path=path if path != f"{entity}.{field}" else None,
            )
        )
    return failures
