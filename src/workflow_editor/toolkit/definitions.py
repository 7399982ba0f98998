"""Hand-crafted tool definitions for every workflow editing operation.

Each definition pairs an action-oriented description and a JSON Schema
for its params with the structural handler in toolkit.operations. The
same definitions drive the system prompt, the OpenAI/Anthropic tool
formats and the applier's dispatch table.
"""

from __future__ import annotations

import json
import logging

from workflow_editor.models.template import (
    AssigneeType,
    ConstraintType,
    EnforcementLevel,
    FormType,
    enum_values,
)
from workflow_editor.toolkit import operations as ops
from workflow_editor.toolkit.models import ToolDefinition

logger = logging.getLogger(__name__)


def _string(description: str) -> dict:
    return {"type": "string", "description": description}


def _object(description: str) -> dict:
    return {"type": "object", "description": description}


_GOAL_SCHEMA: dict = {
    "type": "object",
    "description": (
        "The goal to add. 'name' and 'description' are required. 'id' and "
        "'order' are assigned automatically when omitted (order appends at end)."
    ),
    "properties": {
        "id": _string("Optional unique goal id."),
        "name": _string("Short goal name."),
        "description": _string("What this goal achieves."),
        "order": {"type": "integer", "description": "Optional display order (1-based)."},
        "timeout_minutes": {"type": "number"},
        "constraints": {"type": "array", "items": {"type": "object"}},
        "policies": {"type": "array", "items": {"type": "object"}},
        "tasks": {"type": "array", "items": {"type": "object"}},
        "forms": {"type": "array", "items": {"type": "object"}},
    },
    "required": ["name", "description"],
}

_TASK_SCHEMA: dict = {
    "type": "object",
    "description": "The task to add. 'description' and 'assignee' are required.",
    "properties": {
        "id": _string("Optional unique task id."),
        "description": _string("What the task does."),
        "assignee": {
            "type": "object",
            "properties": {
                "type": {"type": "string", "enum": enum_values(AssigneeType)},
                "model": _string("Model name for ai_agent assignees."),
                "role": _string("Role for human assignees."),
                "capabilities": {"type": "array", "items": {"type": "string"}},
            },
            "required": ["type"],
        },
        "timeout_minutes": {"type": "number"},
        "depends_on": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["description", "assignee"],
}

_CONSTRAINT_SCHEMA: dict = {
    "type": "object",
    "description": (
        "The constraint to add. 'description', 'type' and 'enforcement' are required."
    ),
    "properties": {
        "id": _string("Optional unique constraint id."),
        "description": _string("The rule being enforced."),
        "type": {"type": "string", "enum": enum_values(ConstraintType)},
        "enforcement": {"type": "string", "enum": enum_values(EnforcementLevel)},
        "value": {"description": "Optional limit value."},
        "unit": _string("Optional unit for value."),
    },
    "required": ["description", "type", "enforcement"],
}

_POLICY_SCHEMA: dict = {
    "type": "object",
    "description": "The policy to add. 'name', 'if' and 'then' are required.",
    "properties": {
        "id": _string("Optional unique policy id."),
        "name": _string("Policy name."),
        "if": _object("Condition, e.g. {field, operator, value} or {all_of: [...]}."),
        "then": {
            "type": "object",
            "properties": {
                "action": _string("Action to take."),
                "params": {"type": "object"},
            },
            "required": ["action", "params"],
        },
    },
    "required": ["name", "if", "then"],
}

_FORM_SCHEMA: dict = {
    "type": "object",
    "description": "The form to add. 'name' and 'type' are required.",
    "properties": {
        "id": _string("Optional unique form id."),
        "name": _string("Form name."),
        "type": {"type": "string", "enum": enum_values(FormType)},
        "schema": _object("Field schema for structured forms."),
        "initial_prompt": _string("Opening prompt for conversational forms."),
    },
    "required": ["name", "type"],
}

_CHILD_SCHEMAS: dict[str, dict] = {
    "task": _TASK_SCHEMA,
    "constraint": _CONSTRAINT_SCHEMA,
    "policy": _POLICY_SCHEMA,
    "form": _FORM_SCHEMA,
}


def _child_tools(entity: str) -> list[ToolDefinition]:
    """add/update/delete definitions for one child record kind."""
    title = entity.capitalize()
    id_param = f"{entity}Id"
    return [
        ToolDefinition(
            name=f"add{title}",
            description=f"Add a new {entity} to an existing goal.",
            parameters={
                "type": "object",
                "properties": {
                    "goalId": _string(f"Id of the goal that will own the {entity}."),
                    entity: _CHILD_SCHEMAS[entity],
                },
                "required": ["goalId", entity],
            },
            handler=getattr(ops, f"add_{entity}"),
        ),
        ToolDefinition(
            name=f"update{title}",
            description=(
                f"Update fields of an existing {entity}. Only the given fields "
                "change; the id cannot be changed."
            ),
            parameters={
                "type": "object",
                "properties": {
                    id_param: _string(f"Id of the {entity} to update."),
                    "updates": _object("Fields to overwrite."),
                },
                "required": [id_param, "updates"],
            },
            handler=getattr(ops, f"update_{entity}"),
        ),
        ToolDefinition(
            name=f"delete{title}",
            description=(
                f"Delete a {entity}."
                + (" Its id is also removed from every task's depends_on." if entity == "task" else "")
            ),
            parameters={
                "type": "object",
                "properties": {id_param: _string(f"Id of the {entity} to delete.")},
                "required": [id_param],
            },
            handler=getattr(ops, f"delete_{entity}"),
        ),
    ]


def get_all_tools() -> list[ToolDefinition]:
    """Build the complete tool catalogue in prompt order."""
    tools = [
        # 1. addGoal
        ToolDefinition(
            name="addGoal",
            description=(
                "Add a new goal to the workflow. Use when the user wants a new "
                "stage or objective. The goal is appended after existing goals "
                "unless an order is given."
            ),
            parameters={
                "type": "object",
                "properties": {"goal": _GOAL_SCHEMA},
                "required": ["goal"],
            },
            handler=ops.add_goal,
        ),
        # 2. updateGoal
        ToolDefinition(
            name="updateGoal",
            description=(
                "Update fields of an existing goal (name, description, order, "
                "timeout). Child lists are only replaced when given."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "goalId": _string("Id of the goal to update."),
                    "updates": _object("Fields to overwrite."),
                },
                "required": ["goalId", "updates"],
            },
            handler=ops.update_goal,
        ),
        # 3. deleteGoal
        ToolDefinition(
            name="deleteGoal",
            description="Delete a goal together with all of its constraints, policies, tasks and forms.",
            parameters={
                "type": "object",
                "properties": {"goalId": _string("Id of the goal to delete.")},
                "required": ["goalId"],
            },
            handler=ops.delete_goal,
        ),
        # 4. reorderGoals
        ToolDefinition(
            name="reorderGoals",
            description=(
                "Reorder goals. goalIds must list every goal id exactly once, "
                "in the new order; orders become 1..n."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "goalIds": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "All goal ids in their new order.",
                    },
                },
                "required": ["goalIds"],
            },
            handler=ops.reorder_goals,
        ),
        # 5. duplicateGoal
        ToolDefinition(
            name="duplicateGoal",
            description=(
                "Copy a goal and all its children under fresh ids, appended at "
                "the end. Task dependencies are not copied."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "goalId": _string("Id of the goal to copy."),
                    "newName": _string("Optional name for the copy; defaults to '<name> (Copy)'."),
                },
                "required": ["goalId"],
            },
            handler=ops.duplicate_goal,
        ),
    ]

    # 6-17. add/update/delete for each child record kind
    for entity in ("task", "constraint", "policy", "form"):
        tools.extend(_child_tools(entity))

    tools.extend([
        # 18. moveElementBetweenGoals
        ToolDefinition(
            name="moveElementBetweenGoals",
            description="Move a task, constraint, policy or form from one goal to another.",
            parameters={
                "type": "object",
                "properties": {
                    "elementType": {
                        "type": "string",
                        "enum": ["task", "constraint", "policy", "form"],
                    },
                    "elementId": _string("Id of the element to move."),
                    "fromGoalId": _string("Goal currently holding the element."),
                    "toGoalId": _string("Goal that will receive the element."),
                },
                "required": ["elementType", "elementId", "fromGoalId", "toGoalId"],
            },
            handler=ops.move_element_between_goals,
        ),
        # 19. updateWorkflowMetadata
        ToolDefinition(
            name="updateWorkflowMetadata",
            description=(
                "Update workflow name, version or objective, and metadata "
                "fields such as author and tags."
            ),
            parameters={
                "type": "object",
                "properties": {"updates": _object("Fields to overwrite.")},
                "required": ["updates"],
            },
            handler=ops.update_workflow_metadata,
        ),
        # 20. updateGlobalSettings
        ToolDefinition(
            name="updateGlobalSettings",
            description=(
                "Update global settings (max_execution_time_hours, "
                "data_retention_days, default_timezone, notification_channels, "
                "integrations). Unset settings fall back to defaults."
            ),
            parameters={
                "type": "object",
                "properties": {"settings": _object("Settings to overwrite.")},
                "required": ["settings"],
            },
            handler=ops.update_global_settings,
        ),
    ])
    return tools


_TOOLS: dict[str, ToolDefinition] = {tool.name: tool for tool in get_all_tools()}


def get_tool(name: str) -> ToolDefinition | None:
    return _TOOLS.get(name)


def tool_names() -> list[str]:
    return list(_TOOLS)


def format_tool_definitions() -> str:
    """Render the catalogue as the JSON block embedded in the system prompt."""
    payload = [
        {"name": t.name, "description": t.description, "parameters": t.parameters}
        for t in _TOOLS.values()
    ]
    return json.dumps(payload, indent=2)
