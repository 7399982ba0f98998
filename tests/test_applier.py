"""Tests for ToolCallApplier and the tool handlers."""

from __future__ import annotations

import pytest
from hypothesis import given, settings

from tests.conftest import FIXED_NOW, add_goal_call, make_applier, make_template, tool_call
from tests.strategies import goal_payload
from workflow_editor.exceptions import ApplyError
from workflow_editor.models.template import DEFAULT_GLOBAL_SETTINGS
from workflow_editor.toolkit.applier import ToolCallApplier, default_id_factory
from workflow_editor.toolkit.models import ToolCall
from workflow_editor.validation.failures import FailureKind


def _call(tool: str, **params) -> ToolCall:
    return ToolCall.model_validate(tool_call(tool, **params))


def _apply_error(applier, template, call) -> ApplyError:
    with pytest.raises(ApplyError) as exc_info:
        applier.apply(template, call)
    return exc_info.value


# ---------------------------------------------------------------------------
# Dispatch and copy-on-write
# ---------------------------------------------------------------------------


class TestApplierBasics:
    def test_unknown_tool(self, applier, template):
        error = _apply_error(applier, template, _call("launchRocket"))
        assert error.failure.kind is FailureKind.UNKNOWN_TOOL
        assert str(error) == "ToolCall validation failed: tool_call.tool: Unknown tool: launchRocket"

    def test_tool_names_are_case_sensitive(self, applier, template):
        error = _apply_error(applier, template, _call("addgoal", goal={}))
        assert error.failure.kind is FailureKind.UNKNOWN_TOOL

    def test_input_template_is_not_mutated(self, applier, template):
        before = template.to_dict()
        applier.apply(template, ToolCall.model_validate(add_goal_call()))
        assert template.to_dict() == before

    def test_failed_apply_leaves_input_intact(self, applier, template):
        before = template.to_dict()
        _apply_error(applier, template, _call("deleteGoal", goalId="goal_nope"))
        assert template.to_dict() == before

    def test_timestamps_stamped(self, applier, template):
        candidate = applier.apply(template, ToolCall.model_validate(add_goal_call()))
        assert candidate.template.metadata.last_modified == FIXED_NOW.isoformat()
        assert candidate.template.updated_at == FIXED_NOW.isoformat()
        assert candidate.template.to_dict()["updatedAt"] == FIXED_NOW.isoformat()

    def test_template_without_metadata_gets_no_metadata(self, applier):
        template = make_template(metadata=None)
        candidate = applier.apply(template, ToolCall.model_validate(add_goal_call()))
        assert candidate.template.metadata is None
        assert candidate.template.updated_at == FIXED_NOW.isoformat()

    def test_candidate_records_tool_name(self, applier, template):
        candidate = applier.apply(template, _call("deleteGoal", goalId="goal_activation"))
        assert candidate.tool_name == "deleteGoal"
        assert candidate.changed is None

    def test_default_id_factory_prefix(self):
        new_id = default_id_factory("goal")
        assert new_id.startswith("goal_")
        assert default_id_factory("goal") != new_id

    def test_default_clock_used(self, template):
        candidate = ToolCallApplier().apply(template, ToolCall.model_validate(add_goal_call()))
        assert candidate.template.updated_at is not None


class TestParamChecks:
    def test_missing_required_param(self, applier, template):
        error = _apply_error(applier, template, _call("addGoal"))
        assert error.failure.kind is FailureKind.MALFORMED_PARAMS
        assert error.failure.field == "params.goal"
        assert "Required parameter 'goal' is missing" in str(error)

    def test_wrong_param_type(self, applier, template):
        error = _apply_error(applier, template, _call("addGoal", goal="a goal"))
        assert "must be of type object, got str" in str(error)

    def test_malformed_record_fields(self, applier, template):
        error = _apply_error(applier, template, ToolCall.model_validate(add_goal_call(name=5)))
        assert error.failure.kind is FailureKind.MALFORMED_PARAMS
        assert "Malformed params for addGoal" in str(error)
        assert "name" in str(error)

    def test_unknown_goal_id(self, applier, template):
        error = _apply_error(applier, template, _call("updateGoal", goalId="goal_x", updates={}))
        assert error.failure.kind is FailureKind.UNKNOWN_REFERENCE
        assert error.failure.field == "params.goalId"
        assert "Goal with id 'goal_x' not found" in str(error)


# ---------------------------------------------------------------------------
# Goal tools
# ---------------------------------------------------------------------------


class TestGoalTools:
    def test_add_goal_appends_with_next_order(self, applier, template):
        candidate = applier.apply(template, ToolCall.model_validate(add_goal_call()))
        goal = candidate.template.goals[-1]
        assert goal.id == "goal_0001"
        assert goal.order == 3
        assert goal.name == "Compliance Review"
        assert candidate.changed.entity == "goal"
        assert candidate.changed.record is goal

    def test_add_goal_keeps_explicit_id_and_order(self, applier, template):
        call = ToolCall.model_validate(add_goal_call(id="goal_compliance", order=7))
        goal = applier.apply(template, call).template.goals[-1]
        assert (goal.id, goal.order) == ("goal_compliance", 7)

    def test_add_goal_assigns_child_ids(self, applier, template):
        call = ToolCall.model_validate(add_goal_call(
            tasks=[{"description": "Check", "assignee": {"type": "human"}}]
        ))
        goal = applier.apply(template, call).template.goals[-1]
        assert goal.id == "goal_0001"
        assert goal.tasks[0].id == "task_0002"

    def test_add_goal_to_empty_template(self, applier):
        candidate = applier.apply(make_template(goals=[]), ToolCall.model_validate(add_goal_call()))
        assert candidate.template.goals[0].order == 1

    def test_update_goal_keeps_id(self, applier, template):
        call = _call("updateGoal", goalId="goal_activation",
                     updates={"name": "Go Live", "id": "goal_hijack"})
        candidate = applier.apply(template, call)
        goal = candidate.template.goals[1]
        assert goal.id == "goal_activation"
        assert goal.name == "Go Live"
        assert goal.description == "Activate the customer account"
        assert goal.tasks[0].id == "task_activate"

    def test_delete_goal_strips_dependencies(self, applier, template):
        candidate = applier.apply(template, _call("deleteGoal", goalId="goal_registration"))
        assert [g.id for g in candidate.template.goals] == ["goal_activation"]
        assert candidate.template.goals[0].tasks[0].depends_on == []

    def test_reorder_goals(self, applier, template):
        call = _call("reorderGoals", goalIds=["goal_activation", "goal_registration"])
        goals = applier.apply(template, call).template.goals
        assert [(g.id, g.order) for g in goals] == [
            ("goal_activation", 1), ("goal_registration", 2),
        ]

    def test_reorder_with_unknown_id(self, applier, template):
        error = _apply_error(applier, template,
                             _call("reorderGoals", goalIds=["goal_activation", "goal_x"]))
        assert error.failure.kind is FailureKind.UNKNOWN_REFERENCE

    @pytest.mark.parametrize("goal_ids", [
        ["goal_activation"],
        ["goal_activation", "goal_activation"],
    ])
    def test_reorder_must_list_every_goal_once(self, applier, template, goal_ids):
        error = _apply_error(applier, template, _call("reorderGoals", goalIds=goal_ids))
        assert error.failure.kind is FailureKind.MALFORMED_PARAMS

    def test_duplicate_goal(self, applier, template):
        candidate = applier.apply(template, _call("duplicateGoal", goalId="goal_registration"))
        copy = candidate.template.goals[-1]
        assert copy.id == "goal_0001"
        assert copy.name == "Registration (Copy)"
        assert copy.order == 3
        assert [t.id for t in copy.tasks] == ["task_0002", "task_0003"]
        assert all(t.depends_on is None for t in copy.tasks)
        original_ids = {t.id for t in template.goals[0].tasks}
        assert original_ids.isdisjoint(t.id for t in copy.tasks)

    def test_duplicate_goal_with_new_name(self, applier, template):
        call = _call("duplicateGoal", goalId="goal_activation", newName="Reactivation")
        assert applier.apply(template, call).template.goals[-1].name == "Reactivation"


# ---------------------------------------------------------------------------
# Child record tools
# ---------------------------------------------------------------------------


class TestChildTools:
    def test_add_task(self, applier, template):
        call = _call("addTask", goalId="goal_activation",
                     task={"description": "Send welcome", "assignee": {"type": "human"}})
        candidate = applier.apply(template, call)
        task = candidate.template.goals[1].tasks[-1]
        assert task.id == "task_0001"
        assert candidate.changed.goal_id == "goal_activation"

    def test_add_constraint_keeps_given_id(self, applier, template):
        call = _call("addConstraint", goalId="goal_activation", constraint={
            "id": "constraint_rate", "description": "Rate limit",
            "type": "rate_limit", "enforcement": "warn",
        })
        goal = applier.apply(template, call).template.goals[1]
        assert [c.id for c in goal.constraints] == ["constraint_rate"]

    def test_add_policy_uses_wire_alias(self, applier, template):
        call = _call("addPolicy", goalId="goal_activation", policy={
            "name": "Escalate", "if": {"field": "risk", "operator": "gt", "value": 5},
            "then": {"action": "escalate", "params": {}},
        })
        policy = applier.apply(template, call).template.goals[1].policies[0]
        assert policy.if_.field == "risk"

    def test_update_form_keeps_schema(self, applier, template):
        call = _call("updateForm", formId="form_signup", updates={"name": "Sign up"})
        form = applier.apply(template, call).template.goals[0].forms[0]
        assert form.name == "Sign up"
        assert form.form_schema == {"fields": ["email", "name"]}

    def test_update_task_unknown_id(self, applier, template):
        error = _apply_error(applier, template,
                             _call("updateTask", taskId="task_x", updates={}))
        assert error.failure.field == "params.taskId"
        assert "Task with id 'task_x' not found" in str(error)

    def test_delete_task_strips_dependency(self, applier, template):
        candidate = applier.apply(template, _call("deleteTask", taskId="task_verify_email"))
        goals = candidate.template.goals
        assert [t.id for t in goals[0].tasks] == ["task_collect"]
        assert goals[1].tasks[0].depends_on == []

    def test_delete_policy(self, applier, template):
        candidate = applier.apply(template, _call("deletePolicy", policyId="policy_vip"))
        assert candidate.template.goals[0].policies == []

    @pytest.mark.parametrize("element_type", ["tasks", "task"])
    def test_move_task(self, applier, template, element_type):
        call = _call("moveElementBetweenGoals", elementType=element_type,
                     elementId="task_collect", fromGoalId="goal_registration",
                     toGoalId="goal_activation")
        candidate = applier.apply(template, call)
        goals = candidate.template.goals
        assert "task_collect" not in [t.id for t in goals[0].tasks]
        assert goals[1].tasks[-1].id == "task_collect"
        assert candidate.changed.goal_id == "goal_activation"

    def test_move_policy(self, applier, template):
        call = _call("moveElementBetweenGoals", elementType="policies",
                     elementId="policy_vip", fromGoalId="goal_registration",
                     toGoalId="goal_activation")
        goals = applier.apply(template, call).template.goals
        assert goals[1].policies[0].id == "policy_vip"

    def test_move_invalid_element_type(self, applier, template):
        call = _call("moveElementBetweenGoals", elementType="widgets",
                     elementId="x", fromGoalId="goal_registration",
                     toGoalId="goal_activation")
        error = _apply_error(applier, template, call)
        assert "Invalid element type 'widgets'" in str(error)

    def test_move_element_not_in_source(self, applier, template):
        call = _call("moveElementBetweenGoals", elementType="tasks",
                     elementId="task_activate", fromGoalId="goal_registration",
                     toGoalId="goal_activation")
        error = _apply_error(applier, template, call)
        assert error.failure.field == "params.elementId"


# ---------------------------------------------------------------------------
# Workflow-level tools
# ---------------------------------------------------------------------------


class TestWorkflowTools:
    def test_metadata_routes_top_level_fields(self, applier, template):
        call = _call("updateWorkflowMetadata",
                     updates={"name": "Onboarding v2", "version": "2.0.0", "tags": ["v2"]})
        result = applier.apply(template, call).template
        assert result.name == "Onboarding v2"
        assert result.version == "2.0.0"
        assert result.metadata.tags == ["v2"]
        assert result.metadata.author == "ops-team"

    def test_metadata_created_when_absent(self, applier):
        template = make_template(metadata=None)
        call = _call("updateWorkflowMetadata", updates={"author": "someone"})
        result = applier.apply(template, call).template
        assert result.metadata.author == "someone"
        assert result.metadata.last_modified == FIXED_NOW.isoformat()

    def test_global_settings_merge_over_defaults(self, applier, template):
        call = _call("updateGlobalSettings", settings={"default_timezone": "Europe/Paris"})
        settings_ = applier.apply(template, call).template.global_settings
        assert settings_.default_timezone == "Europe/Paris"
        assert settings_.data_retention_days == DEFAULT_GLOBAL_SETTINGS["data_retention_days"]

    def test_global_settings_keep_existing_values(self, applier):
        template = make_template(global_settings={"data_retention_days": 90})
        call = _call("updateGlobalSettings", settings={"max_execution_time_hours": 2})
        settings_ = applier.apply(template, call).template.global_settings
        assert settings_.data_retention_days == 90
        assert settings_.max_execution_time_hours == 2


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


class TestApplierProperties:
    @given(goal=goal_payload)
    @settings(max_examples=30, deadline=None)
    def test_add_goal_never_mutates_input(self, goal):
        template = make_template()
        before = template.to_dict()
        candidate = make_applier().apply(template, _call("addGoal", goal=goal))
        assert template.to_dict() == before
        assert len(candidate.template.goals) == len(template.goals) + 1
