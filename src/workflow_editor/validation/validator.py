"""Schema validation for workflow templates.

Checks required fields, enum membership, uniqueness and references.
Validation is pure and total: every check appends to a collector and
nothing here raises for bad input. The only success signal is an
outcome with no failures.

Two entry levels exist:

- entity level (validate_goal, validate_task, ...) with paths rooted at
  the entity name, e.g. ``goal.name``;
- template level (validate_template) with paths rooted at the template,
  e.g. ``goals[1].name``.

SchemaValidator.validate() runs the entity level on whatever a tool
call just touched, then the template level.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable

from workflow_editor.models.template import (
    AssigneeType,
    Constraint,
    ConstraintType,
    EnforcementLevel,
    Form,
    FormType,
    Goal,
    Policy,
    Task,
    TriggerType,
    WorkflowMetadata,
    WorkflowTemplate,
    enum_values,
)
from workflow_editor.validation.failures import (
    FailureKind,
    ValidationFailure,
    ValidationOutcome,
    scope_name,
)

if TYPE_CHECKING:
    from workflow_editor.toolkit.models import TemplateCandidate

logger = logging.getLogger(__name__)

VALID_ASSIGNEE_TYPES = enum_values(AssigneeType)
VALID_CONSTRAINT_TYPES = enum_values(ConstraintType)
VALID_ENFORCEMENT_LEVELS = enum_values(EnforcementLevel)
VALID_FORM_TYPES = enum_values(FormType)
VALID_TRIGGER_TYPES = enum_values(TriggerType)

_VERSION_RE = re.compile(r"^\d+(\.\d+)*([-+][\w.]+)?$")

_JSON_TYPE_NAMES: dict[type, str] = {
    str: "string",
    bool: "boolean",
    int: "number",
    float: "number",
    list: "array",
    dict: "object",
}


def _type_name(value: Any) -> str:
    for py_type, name in _JSON_TYPE_NAMES.items():
        if isinstance(value, py_type):
            return name
    return type(value).__name__


class _Collector:
    """Accumulates failures and warnings for one validation run."""

    def __init__(self) -> None:
        self.failures: list[ValidationFailure] = []
        self.warnings: list[ValidationFailure] = []

    @staticmethod
    def _make(
        kind: FailureKind, entity: str, base: str, field: str, detail: str
    ) -> ValidationFailure:
        location = f"{base}.{field}" if field else base
        natural = f"{entity}.{field}"
        return ValidationFailure(
            kind=kind,
            entity=entity,
            field=field,
            detail=detail,
            path=None if location == natural else location,
        )

    def fail(
        self, kind: FailureKind, entity: str, base: str, field: str, detail: str
    ) -> None:
        self.failures.append(self._make(kind, entity, base, field, detail))

    def warn(self, entity: str, base: str, field: str, detail: str) -> None:
        self.warnings.append(
            self._make(FailureKind.INVALID_VALUE, entity, base, field, detail)
        )

    def outcome(self, scope: str) -> ValidationOutcome:
        return ValidationOutcome(
            scope=scope,
            failures=tuple(self.failures),
            warnings=tuple(self.warnings),
        )


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _require_text(
    record: Any, name: str, entity: str, base: str, out: _Collector
) -> None:
    value = getattr(record, name, None)
    if value is None:
        out.fail(
            FailureKind.MISSING_FIELD, entity, base, name,
            f"Required field '{name}' is missing",
        )
    elif not isinstance(value, str):
        out.fail(
            FailureKind.INVALID_TYPE, entity, base, name,
            f"Field '{name}' must be of type string, got {_type_name(value)}",
        )
    elif not value.strip():
        out.fail(
            FailureKind.MISSING_FIELD, entity, base, name,
            f"Required field '{name}' must not be empty",
        )


def _require_present(
    record: Any, name: str, attr: str, entity: str, base: str, out: _Collector
) -> bool:
    if getattr(record, attr, None) is None:
        out.fail(
            FailureKind.MISSING_FIELD, entity, base, name,
            f"Required field '{name}' is missing",
        )
        return False
    return True


def _check_enum(
    value: str | None,
    allowed: list[str],
    label: str,
    entity: str,
    base: str,
    field: str,
    out: _Collector,
) -> None:
    if isinstance(value, str) and value not in allowed:
        out.fail(
            FailureKind.INVALID_ENUM, entity, base, field,
            f"Invalid {label}. Must be one of: {', '.join(allowed)}",
        )


def _is_iso_timestamp(value: str) -> bool:
    if "T" not in value:
        return False
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return False
    return True


# ---------------------------------------------------------------------------
# Per-entity checks
# ---------------------------------------------------------------------------


def _check_task(task: Task, base: str, out: _Collector) -> None:
    _require_text(task, "id", "task", base, out)
    _require_text(task, "description", "task", base, out)
    if not _require_present(task, "assignee", "assignee", "task", base, out):
        return

    assignee = task.assignee
    if assignee.type is None:
        out.fail(
            FailureKind.MISSING_FIELD, "task", base, "assignee.type",
            "Required field 'type' is missing",
        )
    else:
        _check_enum(
            assignee.type, VALID_ASSIGNEE_TYPES, "assignee type",
            "task", base, "assignee.type", out,
        )
    if assignee.type == AssigneeType.AI_AGENT.value and not (
        assignee.model or assignee.capabilities
    ):
        out.warn(
            "task", base, "assignee",
            "AI agents should have a model or capabilities defined",
        )
    if task.timeout_minutes is not None and task.timeout_minutes <= 0:
        out.warn("task", base, "timeout_minutes", "Timeout should be positive")


def _check_constraint(constraint: Constraint, base: str, out: _Collector) -> None:
    _require_text(constraint, "id", "constraint", base, out)
    _require_text(constraint, "description", "constraint", base, out)
    _require_text(constraint, "type", "constraint", base, out)
    _require_text(constraint, "enforcement", "constraint", base, out)
    _check_enum(
        constraint.type, VALID_CONSTRAINT_TYPES, "constraint type",
        "constraint", base, "type", out,
    )
    _check_enum(
        constraint.enforcement, VALID_ENFORCEMENT_LEVELS, "enforcement level",
        "constraint", base, "enforcement", out,
    )


def _check_policy(policy: Policy, base: str, out: _Collector) -> None:
    _require_text(policy, "id", "policy", base, out)
    _require_text(policy, "name", "policy", base, out)
    _require_present(policy, "if", "if_", "policy", base, out)
    if not _require_present(policy, "then", "then", "policy", base, out):
        return
    if not policy.then.action:
        out.fail(
            FailureKind.MISSING_FIELD, "policy", base, "then.action",
            "Required field 'action' is missing",
        )
    if policy.then.params is None:
        out.fail(
            FailureKind.MISSING_FIELD, "policy", base, "then.params",
            "Required field 'params' is missing",
        )


def _check_form(form: Form, base: str, out: _Collector) -> None:
    _require_text(form, "id", "form", base, out)
    _require_text(form, "name", "form", base, out)
    _require_text(form, "type", "form", base, out)
    _check_enum(form.type, VALID_FORM_TYPES, "form type", "form", base, "type", out)

    extra = form.model_extra or {}
    if form.type == FormType.STRUCTURED.value and not (
        form.form_schema or extra.get("fields") or extra.get("sections")
    ):
        out.warn(
            "form", base, "schema",
            "Structured forms should have schema, fields, or sections defined",
        )
    if form.type == FormType.CONVERSATIONAL.value and not form.initial_prompt:
        out.warn(
            "form", base, "initial_prompt",
            "Conversational forms should have an initial_prompt",
        )
    if form.type == FormType.AUTOMATED.value and not (
        extra.get("data_sources") or extra.get("generation")
    ):
        out.warn(
            "form", base, "data_sources",
            "Automated forms should have data_sources or generation config",
        )


def _check_goal(goal: Goal, base: str, out: _Collector) -> None:
    _require_text(goal, "id", "goal", base, out)
    _require_text(goal, "name", "goal", base, out)
    _require_text(goal, "description", "goal", base, out)
    if goal.order is None:
        out.fail(
            FailureKind.MISSING_FIELD, "goal", base, "order",
            "Required field 'order' is missing",
        )
    elif goal.order < 1:
        out.warn("goal", base, "order", "Goal order should be 1 or greater")

    for i, constraint in enumerate(goal.constraints):
        _check_constraint(constraint, f"{base}.constraints[{i}]", out)
    for i, policy in enumerate(goal.policies):
        _check_policy(policy, f"{base}.policies[{i}]", out)
    for i, task in enumerate(goal.tasks):
        _check_task(task, f"{base}.tasks[{i}]", out)
    for i, form in enumerate(goal.forms):
        _check_form(form, f"{base}.forms[{i}]", out)


def _check_metadata(metadata: WorkflowMetadata, out: _Collector) -> None:
    base = "metadata"
    _require_text(metadata, "author", "metadata", base, out)
    _require_text(metadata, "created_at", "metadata", base, out)
    _require_text(metadata, "last_modified", "metadata", base, out)
    _require_present(metadata, "tags", "tags", "metadata", base, out)
    for name in ("created_at", "last_modified"):
        value = getattr(metadata, name)
        if isinstance(value, str) and value and not _is_iso_timestamp(value):
            out.warn("metadata", base, name, f"Field '{name}' should be in ISO format")


def _check_references(template: WorkflowTemplate, out: _Collector) -> None:
    """Uniqueness of ids/orders and existence of referenced task ids."""
    seen_goal_ids: set[str] = set()
    seen_orders: dict[int, str] = {}
    seen_children: dict[str, set[str]] = {
        "constraints": set(), "policies": set(), "tasks": set(), "forms": set(),
    }
    task_ids = {t.id for g in template.goals for t in g.tasks if t.id}

    for gi, goal in enumerate(template.goals):
        base = f"goals[{gi}]"
        if goal.id:
            if goal.id in seen_goal_ids:
                out.fail(
                    FailureKind.DUPLICATE_ID, "goal", base, "id",
                    f"Duplicate goal id '{goal.id}'",
                )
            seen_goal_ids.add(goal.id)
        if goal.order is not None:
            if goal.order in seen_orders:
                out.fail(
                    FailureKind.DUPLICATE_ID, "goal", base, "order",
                    f"Duplicate goal order {goal.order} "
                    f"(already used by goal '{seen_orders[goal.order]}')",
                )
            else:
                seen_orders[goal.order] = goal.id or base

        for collection, seen in seen_children.items():
            for ci, record in enumerate(getattr(goal, collection)):
                if not record.id:
                    continue
                entity = collection[:-1] if collection != "policies" else "policy"
                if record.id in seen:
                    out.fail(
                        FailureKind.DUPLICATE_ID, entity,
                        f"{base}.{collection}[{ci}]", "id",
                        f"Duplicate {entity} id '{record.id}'",
                    )
                seen.add(record.id)

        for ti, task in enumerate(goal.tasks):
            for dep in task.depends_on or []:
                if dep not in task_ids:
                    out.fail(
                        FailureKind.UNKNOWN_REFERENCE, "task",
                        f"{base}.tasks[{ti}]", "depends_on",
                        f"Task '{dep}' referenced in depends_on does not exist",
                    )


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def _validate_entity(
    check: Callable[[Any, str, _Collector], None], entity: str, record: Any
) -> ValidationOutcome:
    out = _Collector()
    check(record, entity, out)
    return out.outcome(scope_name(entity))


def validate_goal(goal: Goal) -> ValidationOutcome:
    return _validate_entity(_check_goal, "goal", goal)


def validate_task(task: Task) -> ValidationOutcome:
    return _validate_entity(_check_task, "task", task)


def validate_constraint(constraint: Constraint) -> ValidationOutcome:
    return _validate_entity(_check_constraint, "constraint", constraint)


def validate_policy(policy: Policy) -> ValidationOutcome:
    return _validate_entity(_check_policy, "policy", policy)


def validate_form(form: Form) -> ValidationOutcome:
    return _validate_entity(_check_form, "form", form)


_ENTITY_VALIDATORS: dict[str, Callable[[Any], ValidationOutcome]] = {
    "goal": validate_goal,
    "task": validate_task,
    "constraint": validate_constraint,
    "policy": validate_policy,
    "form": validate_form,
}


def validate_entity(entity: str, record: Any) -> ValidationOutcome:
    """Validate one record by entity name; unknown entities pass."""
    validator = _ENTITY_VALIDATORS.get(entity)
    if validator is None:
        return ValidationOutcome(scope=scope_name(entity))
    return validator(record)


def validate_template(template: WorkflowTemplate) -> ValidationOutcome:
    """Validate a complete template, including cross-record references."""
    out = _Collector()
    for name in ("id", "name", "version", "objective"):
        _require_text(template, name, "workflow", "workflow", out)

    if isinstance(template.version, str) and template.version and not _VERSION_RE.match(
        template.version
    ):
        out.warn(
            "workflow", "workflow", "version",
            "Version should be a dotted number such as '2.0' or '1.0.0'",
        )
    if template.metadata is not None:
        _check_metadata(template.metadata, out)
    for i, trigger in enumerate(template.triggers or []):
        base = f"triggers[{i}]"
        if trigger.type is None:
            out.fail(
                FailureKind.MISSING_FIELD, "trigger", base, "type",
                "Required field 'type' is missing",
            )
        _check_enum(
            trigger.type, VALID_TRIGGER_TYPES, "trigger type", "trigger", base, "type", out,
        )
    for i, goal in enumerate(template.goals):
        _check_goal(goal, f"goals[{i}]", out)
    _check_references(template, out)
    return out.outcome("Workflow")


class SchemaValidator:
    """Validates tool-call candidates.

    Usage::

        validator = SchemaValidator()
        outcome = validator.validate(candidate)
        if not outcome.valid:
            print(outcome.message)
    """

    def validate(self, candidate: TemplateCandidate | WorkflowTemplate) -> ValidationOutcome:
        """Validate a candidate (or a bare template).

        The entity a tool call touched is checked first so its failures
        use entity-rooted paths; then the whole template is checked.
        """
        if isinstance(candidate, WorkflowTemplate):
            return validate_template(candidate)

        changed = candidate.changed
        if changed is not None:
            outcome = validate_entity(changed.entity, changed.record)
            if not outcome.valid:
                logger.debug("Entity validation failed: %s", outcome.message)
                return outcome
        outcome = validate_template(candidate.template)
        if not outcome.valid:
            logger.debug("Template validation failed: %s", outcome.message)
        return outcome
