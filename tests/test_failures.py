"""Tests for structured validation failures and message parsing."""

from __future__ import annotations

import pytest

from workflow_editor.validation.failures import (
    FailureKind,
    ValidationFailure,
    ValidationOutcome,
    classify_detail,
    parse_failure_message,
    scope_name,
    split_path,
)


class TestValidationFailure:
    def test_message_shape(self):
        failure = ValidationFailure(
            FailureKind.MISSING_FIELD, "goal", "name", "Required field 'name' is missing"
        )
        assert failure.message == (
            "Goal validation failed: goal.name: Required field 'name' is missing"
        )

    def test_location_prefers_path(self):
        failure = ValidationFailure(
            FailureKind.MISSING_FIELD, "goal", "name", "missing", path="goals[1].name"
        )
        assert failure.location == "goals[1].name"
        assert str(failure) == "goals[1].name: missing"

    def test_leaf(self):
        failure = ValidationFailure(FailureKind.INVALID_ENUM, "task", "assignee.type", "bad")
        assert failure.leaf == "type"

    def test_tool_call_scope(self):
        failure = ValidationFailure(
            FailureKind.UNKNOWN_TOOL, "tool_call", "tool", "Unknown tool: frobnicate"
        )
        assert failure.message == (
            "ToolCall validation failed: tool_call.tool: Unknown tool: frobnicate"
        )


class TestValidationOutcome:
    def test_valid_outcome(self):
        outcome = ValidationOutcome()
        assert outcome.valid
        assert outcome.message == ""
        assert str(outcome) == "valid"

    def test_joined_message(self):
        outcome = ValidationOutcome(
            scope="Goal",
            failures=(
                ValidationFailure(FailureKind.MISSING_FIELD, "goal", "name", "Required field 'name' is missing"),
                ValidationFailure(FailureKind.MISSING_FIELD, "goal", "description", "Required field 'description' is missing"),
            ),
        )
        assert not outcome.valid
        assert outcome.message == (
            "Goal validation failed: goal.name: Required field 'name' is missing; "
            "goal.description: Required field 'description' is missing"
        )
        assert "2 failure(s)" in repr(outcome)

    def test_warnings_do_not_invalidate(self):
        warning = ValidationFailure(FailureKind.INVALID_VALUE, "workflow", "version", "odd")
        assert ValidationOutcome(warnings=(warning,)).valid


class TestHelpers:
    @pytest.mark.parametrize(
        "path, expected",
        [
            ("goal.name", ("goal", "name")),
            ("goals[1].name", ("goal", "name")),
            ("goals[1].tasks[0].assignee.type", ("task", "assignee.type")),
            ("goals[0].policies[2].then.action", ("policy", "then.action")),
            ("workflow.id", ("workflow", "id")),
            ("tool_call.params.goalId", ("tool_call", "params.goalId")),
        ],
    )
    def test_split_path(self, path, expected):
        assert split_path(path) == expected

    @pytest.mark.parametrize(
        "detail, kind",
        [
            ("Required field 'name' is missing", FailureKind.MISSING_FIELD),
            ("Invalid assignee type. Must be one of: ai_agent, human", FailureKind.INVALID_ENUM),
            ("Field 'order' must be of type number, got string", FailureKind.INVALID_TYPE),
            ("Duplicate goal id 'goal_a'", FailureKind.DUPLICATE_ID),
            ("Goal with id 'goal_x' not found", FailureKind.UNKNOWN_REFERENCE),
            ("Unknown tool: frobnicate", FailureKind.UNKNOWN_TOOL),
            ("something else entirely", FailureKind.INVALID_VALUE),
        ],
    )
    def test_classify_detail(self, detail, kind):
        assert classify_detail(detail) is kind

    def test_scope_name_fallback(self):
        assert scope_name("goal") == "Goal"
        assert scope_name("global_settings") == "GlobalSettings"


class TestParseFailureMessage:
    def test_single_failure(self):
        [failure] = parse_failure_message(
            "Goal validation failed: goal.name: Required field 'name' is missing"
        )
        assert failure.kind is FailureKind.MISSING_FIELD
        assert failure.entity == "goal"
        assert failure.field == "name"
        assert failure.path is None

    def test_multiple_failures(self):
        failures = parse_failure_message(
            "Goal validation failed: goal.name: Required field 'name' is missing; "
            "goal.description: Required field 'description' is missing"
        )
        assert [f.field for f in failures] == ["name", "description"]

    def test_wrapped_message_uses_innermost_header(self):
        failures = parse_failure_message(
            "Schema validation failed after addTask: Task validation failed: "
            "task.assignee.type: Invalid assignee type. Must be one of: ai_agent, human"
        )
        assert len(failures) == 1
        assert failures[0].entity == "task"
        assert failures[0].field == "assignee.type"
        assert failures[0].kind is FailureKind.INVALID_ENUM

    def test_template_level_path_kept(self):
        [failure] = parse_failure_message(
            "Workflow validation failed: goals[1].name: Required field 'name' is missing"
        )
        assert failure.path == "goals[1].name"
        assert failure.entity == "goal"

    def test_round_trip_of_outcome_message(self):
        original = ValidationFailure(
            FailureKind.INVALID_ENUM,
            "constraint",
            "enforcement",
            "Invalid enforcement level. Must be one of: hard_stop, warn",
        )
        [parsed] = parse_failure_message(original.message)
        assert parsed == original

    @pytest.mark.parametrize("message", ["", "boom", "validation failed", "Goal validation failed: nonsense"])
    def test_unrecognised_messages_yield_nothing(self, message):
        assert parse_failure_message(message) == []
