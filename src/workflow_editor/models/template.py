"""Workflow template domain models.

WorkflowTemplate is the document the agent edits: a versioned, named
template holding an ordered list of Goals, each with constraints,
policies, tasks and forms.

Fields that the schema treats as required are still declared Optional
here. Templates arrive from untrusted sources (the generator, files on
disk) and the SchemaValidator owns requiredness, so a record with a
missing name must still load and be reported, not crash on parse.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class AssigneeType(str, enum.Enum):
    """Who a task is assigned to."""

    AI_AGENT = "ai_agent"
    HUMAN = "human"


class ConstraintType(str, enum.Enum):
    """Kinds of declarative rule a constraint can express."""

    TIME_LIMIT = "time_limit"
    DATA_VALIDATION = "data_validation"
    BUSINESS_RULE = "business_rule"
    RATE_LIMIT = "rate_limit"
    ACCESS_CONTROL = "access_control"
    TIMING = "timing"
    CHANGE_MANAGEMENT = "change_management"
    DATA_PROTECTION = "data_protection"
    PRIVACY = "privacy"
    CONTENT_VALIDATION = "content_validation"


class EnforcementLevel(str, enum.Enum):
    """How strictly a constraint is enforced."""

    HARD_STOP = "hard_stop"
    BLOCK_PROGRESSION = "block_progression"
    REQUIRE_APPROVAL = "require_approval"
    WARN = "warn"
    SKIP_WORKFLOW = "skip_workflow"
    DELAY_UNTIL_ALLOWED = "delay_until_allowed"
    FILTER_RECIPIENTS = "filter_recipients"
    CONTENT_REVIEW = "content_review"
    BLOCK_UNTIL_MET = "block_until_met"
    BLOCK_DUPLICATE = "block_duplicate"


class FormType(str, enum.Enum):
    """Information collection mechanisms."""

    STRUCTURED = "structured"
    CONVERSATIONAL = "conversational"
    AUTOMATED = "automated"


class TriggerType(str, enum.Enum):
    """When a workflow is initiated."""

    WEBHOOK = "webhook"
    SCHEDULE = "schedule"
    MANUAL = "manual"
    EVENT = "event"


def enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Return the string values of an enum in declaration order."""
    return [member.value for member in enum_cls]


class _Record(BaseModel):
    """Base for template records.

    Unknown keys are kept so templates round-trip without losing the
    long tail of optional fields real templates carry.
    """

    model_config = {"extra": "allow", "populate_by_name": True}


class TaskAssignee(_Record):
    type: Optional[str] = None
    model: Optional[str] = None
    role: Optional[str] = None
    capabilities: Optional[list[str]] = None
    skills: Optional[list[str]] = None
    routing: Optional[str] = None


class Task(_Record):
    """Work item assignable to a human or an AI agent."""

    id: Optional[str] = None
    description: Optional[str] = None
    assignee: Optional[TaskAssignee] = None
    inputs: Optional[list[str]] = None
    outputs: Optional[list[str]] = None
    timeout_minutes: Optional[float] = None
    depends_on: Optional[list[str]] = None


class Constraint(_Record):
    """Declarative rule that bounds a goal."""

    id: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None
    enforcement: Optional[str] = None
    value: Any = None
    unit: Optional[str] = None
    condition: Optional[str] = None


class PolicyCondition(_Record):
    condition: Optional[str] = None
    type: Optional[str] = None
    field: Optional[str] = None
    operator: Optional[str] = None
    value: Any = None
    all_of: Optional[list[PolicyCondition]] = None
    any_of: Optional[list[PolicyCondition]] = None


class PolicyAction(_Record):
    action: Optional[str] = None
    params: Optional[dict[str, Any]] = None


class Policy(_Record):
    """If-then rule that triggers an action when a condition holds."""

    id: Optional[str] = None
    name: Optional[str] = None
    if_: Optional[PolicyCondition] = Field(default=None, alias="if")
    then: Optional[PolicyAction] = None


class Form(_Record):
    """Structured, conversational or automated data collection."""

    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None
    form_schema: Optional[dict[str, Any]] = Field(default=None, alias="schema")
    agent: Optional[str] = None
    template: Optional[str] = None
    initial_prompt: Optional[str] = None


class Goal(_Record):
    """A high-level objective containing the four child collections."""

    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    order: Optional[int] = None
    timeout_minutes: Optional[float] = None
    constraints: list[Constraint] = Field(default_factory=list)
    policies: list[Policy] = Field(default_factory=list)
    tasks: list[Task] = Field(default_factory=list)
    forms: list[Form] = Field(default_factory=list)


class WorkflowMetadata(_Record):
    author: Optional[str] = None
    created_at: Optional[str] = None
    last_modified: Optional[str] = None
    tags: Optional[list[str]] = None


class WorkflowTrigger(_Record):
    type: Optional[str] = None
    event: Optional[str] = None
    conditions: Optional[dict[str, Any]] = None


class GlobalSettings(_Record):
    max_execution_time_hours: Optional[float] = None
    data_retention_days: Optional[int] = None
    default_timezone: Optional[str] = None
    notification_channels: Optional[dict[str, list[str]]] = None
    integrations: Optional[dict[str, Any]] = None


DEFAULT_GLOBAL_SETTINGS: dict[str, Any] = {
    "max_execution_time_hours": 24,
    "data_retention_days": 30,
    "default_timezone": "UTC",
    "notification_channels": {"urgent": [], "normal": [], "reports": []},
    "integrations": {},
}


class WorkflowTemplate(_Record):
    """A complete workflow template.

    Treated as a value: the agent and the applier always work on deep
    copies and hand back new instances.
    """

    id: Optional[str] = None
    name: Optional[str] = None
    version: Optional[str] = None
    objective: Optional[str] = None
    metadata: Optional[WorkflowMetadata] = None
    triggers: Optional[list[WorkflowTrigger]] = None
    goals: list[Goal] = Field(default_factory=list)
    global_settings: Optional[GlobalSettings] = None
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkflowTemplate:
        """Build a template from its JSON-style dict form."""
        return cls.model_validate(data)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-style dict form (wire aliases, None fields dropped)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def find_goal(self, goal_id: str) -> Goal | None:
        for goal in self.goals:
            if goal.id == goal_id:
                return goal
        return None

    def sorted_goals(self) -> list[Goal]:
        """Goals in display order; goals without an order keep list position."""
        return sorted(
            self.goals,
            key=lambda g: (g.order is None, g.order if g.order is not None else 0),
        )

    def element_count(self) -> int:
        return sum(
            len(g.constraints) + len(g.policies) + len(g.tasks) + len(g.forms)
            for g in self.goals
        )
