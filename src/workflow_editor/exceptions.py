"""Workflow editor exception hierarchy.

All workflow-editor exceptions inherit from WorkflowEditorError.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from workflow_editor.validation.failures import (
        ValidationFailure,
        ValidationOutcome,
    )


class WorkflowEditorError(Exception):
    """Base exception for all workflow editor errors."""


class InvalidRequestError(WorkflowEditorError):
    """Raised when a user request is rejected before reaching the generator."""

    def __init__(self, issues: list[str]) -> None:
        self.issues = list(issues)
        super().__init__(f"Invalid request: {', '.join(self.issues)}")


class GeneratorError(WorkflowEditorError):
    """Raised when the external generator call itself fails."""


class _FailureError(WorkflowEditorError):
    """Shared base for errors that carry a structured ValidationFailure."""

    def __init__(self, failure: ValidationFailure) -> None:
        self.failure = failure
        super().__init__(failure.message)


class ResponseParseError(_FailureError):
    """Raised when generator output is not a well-formed tool-call batch."""


class ApplyError(_FailureError):
    """Raised when a tool call cannot be applied.

    Covers unknown tool names, malformed params and references to ids that
    do not exist in the template.
    """


class SchemaValidationError(WorkflowEditorError):
    """Raised when a candidate template fails schema validation.

    Named SchemaValidationError (not ValidationError) to avoid
    collision with pydantic.ValidationError.
    """

    def __init__(self, outcome: ValidationOutcome) -> None:
        self.outcome = outcome
        super().__init__(outcome.message)


class RetryExhaustedError(WorkflowEditorError):
    """All retry attempts failed."""

    def __init__(
        self, attempts: int, last_diagnosis: str, last_result: object = None
    ) -> None:
        self.attempts = attempts
        self.last_diagnosis = last_diagnosis
        self.last_result = last_result
        super().__init__(
            f"All {attempts} retry attempts failed. Last diagnosis: {last_diagnosis}"
        )
