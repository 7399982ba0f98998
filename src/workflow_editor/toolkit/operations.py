"""Tool handlers: the structural edits behind each tool name.

Every handler has the signature ``handler(template, params, ctx)`` and
edits ``template`` in place. The applier only ever passes a deep copy,
so in-place edits never reach the caller's template. Handlers return
the ChangedEntity for entity-level validation, or None when the edit
has no single record to check (deletes, reorders, settings).

Handlers are purely structural. Business rules (required fields, enum
membership) are the SchemaValidator's job and run after apply.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel

from workflow_editor.exceptions import ApplyError
from workflow_editor.models.template import (
    DEFAULT_GLOBAL_SETTINGS,
    Constraint,
    Form,
    GlobalSettings,
    Goal,
    Policy,
    Task,
    WorkflowMetadata,
    WorkflowTemplate,
)
from workflow_editor.toolkit.models import ApplyContext, ChangedEntity
from workflow_editor.validation.failures import FailureKind, ValidationFailure

logger = logging.getLogger(__name__)

CHILD_COLLECTIONS: dict[str, str] = {
    "task": "tasks",
    "constraint": "constraints",
    "policy": "policies",
    "form": "forms",
}

CHILD_MODELS: dict[str, type[BaseModel]] = {
    "task": Task,
    "constraint": Constraint,
    "policy": Policy,
    "form": Form,
}

# Top-level template fields updateWorkflowMetadata may change.
_TEMPLATE_FIELDS = ("name", "version", "objective")


# ---------------------------------------------------------------------------
# Failure helpers
# ---------------------------------------------------------------------------


def _malformed(field: str, detail: str) -> ApplyError:
    return ApplyError(
        ValidationFailure(
            kind=FailureKind.MALFORMED_PARAMS,
            entity="tool_call",
            field=field,
            detail=detail,
        )
    )


def _not_found(param: str, entity: str, element_id: Any) -> ApplyError:
    return ApplyError(
        ValidationFailure(
            kind=FailureKind.UNKNOWN_REFERENCE,
            entity="tool_call",
            field=f"params.{param}",
            detail=f"{entity.capitalize()} with id '{element_id}' not found",
        )
    )


def _param(params: dict, name: str, expected: type) -> Any:
    """Fetch a required param and check its JSON type."""
    if name not in params or params[name] is None:
        raise _malformed(f"params.{name}", f"Required parameter '{name}' is missing")
    value = params[name]
    if not isinstance(value, expected):
        type_name = {dict: "object", list: "array", str: "string"}.get(expected, expected.__name__)
        raise _malformed(
            f"params.{name}",
            f"Parameter '{name}' must be of type {type_name}, got {type(value).__name__}",
        )
    if expected is str and not value.strip():
        raise _malformed(f"params.{name}", f"Parameter '{name}' must not be empty")
    return value


def _merge(record: BaseModel, updates: dict) -> dict:
    """Overlay ``updates`` on the record's wire form, keeping its id."""
    merged = record.model_dump(by_alias=True, exclude_none=True)
    merged.update(updates)
    merged["id"] = getattr(record, "id", None)
    return merged


# ---------------------------------------------------------------------------
# Lookup helpers
# ---------------------------------------------------------------------------


def _find_goal(template: WorkflowTemplate, goal_id: str, param: str = "goalId") -> Goal:
    goal = template.find_goal(goal_id)
    if goal is None:
        raise _not_found(param, "goal", goal_id)
    return goal


def _locate(
    template: WorkflowTemplate, entity: str, element_id: str, param: str
) -> tuple[Goal, int]:
    collection = CHILD_COLLECTIONS[entity]
    for goal in template.goals:
        for index, record in enumerate(getattr(goal, collection)):
            if record.id == element_id:
                return goal, index
    raise _not_found(param, entity, element_id)


def _next_order(template: WorkflowTemplate) -> int:
    orders = [g.order for g in template.goals if g.order is not None]
    return max(orders, default=0) + 1


def _assign_child_ids(goal: Goal, ctx: ApplyContext) -> None:
    for entity, collection in CHILD_COLLECTIONS.items():
        for record in getattr(goal, collection):
            if not record.id:
                record.id = ctx.new_id(entity)


def _strip_dependencies(template: WorkflowTemplate, task_ids: set[str]) -> None:
    for goal in template.goals:
        for task in goal.tasks:
            if task.depends_on:
                task.depends_on = [d for d in task.depends_on if d not in task_ids]


# ---------------------------------------------------------------------------
# Goal tools
# ---------------------------------------------------------------------------


def add_goal(template: WorkflowTemplate, params: dict, ctx: ApplyContext) -> ChangedEntity:
    goal = Goal.model_validate(_param(params, "goal", dict))
    if not goal.id:
        goal.id = ctx.new_id("goal")
    if goal.order is None:
        goal.order = _next_order(template)
    _assign_child_ids(goal, ctx)
    template.goals.append(goal)
    logger.debug("Added goal %s at order %d", goal.id, goal.order)
    return ChangedEntity(entity="goal", record=goal)


def update_goal(template: WorkflowTemplate, params: dict, ctx: ApplyContext) -> ChangedEntity:
    goal = _find_goal(template, _param(params, "goalId", str))
    updates = _param(params, "updates", dict)
    updated = Goal.model_validate(_merge(goal, updates))
    _assign_child_ids(updated, ctx)
    index = next(i for i, g in enumerate(template.goals) if g is goal)
    template.goals[index] = updated
    return ChangedEntity(entity="goal", record=updated)


def delete_goal(template: WorkflowTemplate, params: dict, ctx: ApplyContext) -> None:
    goal = _find_goal(template, _param(params, "goalId", str))
    template.goals.remove(goal)
    _strip_dependencies(template, {t.id for t in goal.tasks if t.id})
    return None


def reorder_goals(template: WorkflowTemplate, params: dict, ctx: ApplyContext) -> None:
    goal_ids = _param(params, "goalIds", list)
    for goal_id in goal_ids:
        if template.find_goal(goal_id) is None:
            raise _not_found("goalIds", "goal", goal_id)
    existing = [g.id for g in template.goals]
    if len(goal_ids) != len(existing) or set(goal_ids) != set(existing):
        raise _malformed(
            "params.goalIds",
            "goalIds must list every goal id in the workflow exactly once",
        )
    reordered = [template.find_goal(goal_id) for goal_id in goal_ids]
    for order, goal in enumerate(reordered, start=1):
        goal.order = order
    template.goals = reordered
    return None


def duplicate_goal(template: WorkflowTemplate, params: dict, ctx: ApplyContext) -> ChangedEntity:
    source = _find_goal(template, _param(params, "goalId", str))
    copy = source.model_copy(deep=True)
    copy.id = ctx.new_id("goal")
    new_name = params.get("newName")
    copy.name = new_name if isinstance(new_name, str) and new_name.strip() else f"{source.name} (Copy)"
    copy.order = _next_order(template)
    for entity, collection in CHILD_COLLECTIONS.items():
        for record in getattr(copy, collection):
            record.id = ctx.new_id(entity)
    for task in copy.tasks:
        task.depends_on = None
    template.goals.append(copy)
    return ChangedEntity(entity="goal", record=copy)


# ---------------------------------------------------------------------------
# Child record tools
# ---------------------------------------------------------------------------


def _make_add(entity: str):
    model = CHILD_MODELS[entity]
    collection = CHILD_COLLECTIONS[entity]

    def handler(template: WorkflowTemplate, params: dict, ctx: ApplyContext) -> ChangedEntity:
        goal = _find_goal(template, _param(params, "goalId", str))
        record = model.model_validate(_param(params, entity, dict))
        if not record.id:
            record.id = ctx.new_id(entity)
        getattr(goal, collection).append(record)
        return ChangedEntity(entity=entity, record=record, goal_id=goal.id)

    handler.__name__ = f"add_{entity}"
    return handler


def _make_update(entity: str):
    model = CHILD_MODELS[entity]
    collection = CHILD_COLLECTIONS[entity]
    id_param = f"{entity}Id"

    def handler(template: WorkflowTemplate, params: dict, ctx: ApplyContext) -> ChangedEntity:
        goal, index = _locate(template, entity, _param(params, id_param, str), id_param)
        records = getattr(goal, collection)
        updated = model.model_validate(_merge(records[index], _param(params, "updates", dict)))
        records[index] = updated
        return ChangedEntity(entity=entity, record=updated, goal_id=goal.id)

    handler.__name__ = f"update_{entity}"
    return handler


def _make_delete(entity: str):
    collection = CHILD_COLLECTIONS[entity]
    id_param = f"{entity}Id"

    def handler(template: WorkflowTemplate, params: dict, ctx: ApplyContext) -> None:
        element_id = _param(params, id_param, str)
        goal, index = _locate(template, entity, element_id, id_param)
        del getattr(goal, collection)[index]
        if entity == "task":
            _strip_dependencies(template, {element_id})
        return None

    handler.__name__ = f"delete_{entity}"
    return handler


add_task = _make_add("task")
add_constraint = _make_add("constraint")
add_policy = _make_add("policy")
add_form = _make_add("form")

update_task = _make_update("task")
update_constraint = _make_update("constraint")
update_policy = _make_update("policy")
update_form = _make_update("form")

delete_task = _make_delete("task")
delete_constraint = _make_delete("constraint")
delete_policy = _make_delete("policy")
delete_form = _make_delete("form")


def move_element_between_goals(
    template: WorkflowTemplate, params: dict, ctx: ApplyContext
) -> ChangedEntity:
    element_type = _param(params, "elementType", str)
    entity = element_type.rstrip("s") if element_type != "policies" else "policy"
    if entity not in CHILD_COLLECTIONS:
        raise _malformed(
            "params.elementType",
            f"Invalid element type '{element_type}'. Must be one of: "
            + ", ".join(CHILD_COLLECTIONS),
        )
    element_id = _param(params, "elementId", str)
    source = _find_goal(template, _param(params, "fromGoalId", str), "fromGoalId")
    target = _find_goal(template, _param(params, "toGoalId", str), "toGoalId")

    collection = CHILD_COLLECTIONS[entity]
    records = getattr(source, collection)
    for index, record in enumerate(records):
        if record.id == element_id:
            break
    else:
        raise _not_found("elementId", entity, element_id)

    moved = records.pop(index)
    getattr(target, collection).append(moved)
    return ChangedEntity(entity=entity, record=moved, goal_id=target.id)


# ---------------------------------------------------------------------------
# Workflow-level tools
# ---------------------------------------------------------------------------


def update_workflow_metadata(
    template: WorkflowTemplate, params: dict, ctx: ApplyContext
) -> None:
    """Merge metadata updates; name/version/objective go to the template itself."""
    updates = dict(_param(params, "updates", dict))
    for name in _TEMPLATE_FIELDS:
        if name in updates:
            setattr(template, name, updates.pop(name))
    if updates:
        current = (
            template.metadata.model_dump(exclude_none=True)
            if template.metadata is not None
            else {}
        )
        current.update(updates)
        template.metadata = WorkflowMetadata.model_validate(current)
    return None


def update_global_settings(
    template: WorkflowTemplate, params: dict, ctx: ApplyContext
) -> None:
    settings = _param(params, "settings", dict)
    merged: dict[str, Any] = dict(DEFAULT_GLOBAL_SETTINGS)
    if template.global_settings is not None:
        merged.update(template.global_settings.model_dump(exclude_none=True))
    merged.update(settings)
    template.global_settings = GlobalSettings.model_validate(merged)
    return None
