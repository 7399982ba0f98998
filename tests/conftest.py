"""Shared test fixtures for the workflow editor.

Provides a sample template, a scripted generator double, a deterministic
applier, an in-memory audit sink and an in-memory SQLite engine.
"""

from __future__ import annotations

import copy
import itertools
import json
from datetime import datetime, timezone
from typing import Any

import pytest

from workflow_editor.audit import InMemoryAuditSink
from workflow_editor.models.template import WorkflowTemplate
from workflow_editor.storage.engine import create_audit_engine, init_db
from workflow_editor.toolkit.applier import ToolCallApplier

FIXED_NOW = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

SAMPLE_TEMPLATE: dict[str, Any] = {
    "id": "wf_onboarding",
    "name": "Customer Onboarding",
    "version": "1.0.0",
    "objective": "Onboard new customers end to end",
    "metadata": {
        "author": "ops-team",
        "created_at": "2024-01-01T00:00:00Z",
        "last_modified": "2024-01-02T00:00:00Z",
        "tags": ["onboarding", "customers"],
    },
    "goals": [
        {
            "id": "goal_registration",
            "name": "Registration",
            "description": "Register the customer",
            "order": 1,
            "constraints": [
                {
                    "id": "constraint_time",
                    "description": "Complete within 30 minutes",
                    "type": "time_limit",
                    "enforcement": "hard_stop",
                    "value": 30,
                }
            ],
            "policies": [
                {
                    "id": "policy_vip",
                    "name": "VIP routing",
                    "if": {"field": "tier", "operator": "equals", "value": "vip"},
                    "then": {"action": "notify", "params": {"channel": "vip"}},
                }
            ],
            "tasks": [
                {
                    "id": "task_collect",
                    "description": "Collect customer details",
                    "assignee": {"type": "human", "role": "onboarding_agent"},
                },
                {
                    "id": "task_verify_email",
                    "description": "Verify email address",
                    "assignee": {"type": "ai_agent", "model": "email_validator_v1"},
                    "depends_on": ["task_collect"],
                },
            ],
            "forms": [
                {
                    "id": "form_signup",
                    "name": "Signup",
                    "type": "structured",
                    "schema": {"fields": ["email", "name"]},
                }
            ],
        },
        {
            "id": "goal_activation",
            "name": "Activation",
            "description": "Activate the customer account",
            "order": 2,
            "tasks": [
                {
                    "id": "task_activate",
                    "description": "Activate account",
                    "assignee": {"type": "ai_agent", "model": "activator_v2"},
                    "depends_on": ["task_verify_email"],
                }
            ],
        },
    ],
}


def make_template(**overrides: Any) -> WorkflowTemplate:
    """Fresh sample template; top-level keys can be overridden."""
    data = copy.deepcopy(SAMPLE_TEMPLATE)
    data.update(overrides)
    return WorkflowTemplate.from_dict(data)


def sequential_ids():
    """Id factory yielding goal_0001, task_0002, ... in call order."""
    counter = itertools.count(1)
    return lambda prefix: f"{prefix}_{next(counter):04d}"


def make_applier() -> ToolCallApplier:
    return ToolCallApplier(clock=lambda: FIXED_NOW, id_factory=sequential_ids())


def tool_call(tool: str, **params: Any) -> dict[str, Any]:
    return {"tool": tool, "params": params}


def add_goal_call(
    name: str | None = "Compliance Review",
    description: str | None = "Review the account for compliance",
    **extra: Any,
) -> dict[str, Any]:
    goal: dict[str, Any] = dict(extra)
    if name is not None:
        goal["name"] = name
    if description is not None:
        goal["description"] = description
    return tool_call("addGoal", goal=goal)


def generator_reply(*calls: dict[str, Any], reasoning: str = "Added the requested goal") -> dict[str, str]:
    """Wrap tool calls the way a generator returns them."""
    return {"response": json.dumps({"toolCalls": list(calls), "reasoning": reasoning})}


class ScriptedGenerator:
    """Generator double that replays scripted replies and records every call.

    Each scripted item is returned in turn; an Exception item is raised
    instead. The last item repeats once the script runs out.
    """

    def __init__(self, *replies: Any) -> None:
        self.replies = list(replies)
        self.calls: list[tuple[str, list[dict[str, str]]]] = []

    def __call__(self, system_prompt: str, messages: list[dict[str, str]]) -> Any:
        self.calls.append((system_prompt, messages))
        reply = self.replies[min(len(self.calls), len(self.replies)) - 1]
        if isinstance(reply, Exception):
            raise reply
        return reply

    @property
    def call_count(self) -> int:
        return len(self.calls)

    @property
    def prompts(self) -> list[str]:
        """User prompt content of each call."""
        return [messages[-1]["content"] for _, messages in self.calls]


@pytest.fixture
def template() -> WorkflowTemplate:
    return make_template()


@pytest.fixture
def applier() -> ToolCallApplier:
    return make_applier()


@pytest.fixture
def audit_sink() -> InMemoryAuditSink:
    return InMemoryAuditSink()


@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables created."""
    eng = create_audit_engine(":memory:")
    init_db(eng)
    yield eng
    eng.dispose()
