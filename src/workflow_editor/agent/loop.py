"""Workflow editing agent: the draft, validate, retry control loop.

Provides WorkflowEditingAgent, which turns a free-text instruction into a
validated, applied edit of a WorkflowTemplate:

1. Screen and sanitise the request
2. Draft: prompt the generator, parse ``{toolCalls, reasoning}``
3. Validate: apply each tool call to a copy, validate the candidate
4. On failure: turn the failure into guidance, add it to the next
   prompt and draft again, up to ``max_attempts`` in total

Every attempt starts from the caller's template, never from a previous
attempt's partial edits. process_edit_request() always returns an
EditResult; nothing it calls can make it raise.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from workflow_editor import audit as audit_events
from workflow_editor.agent.config import AgentConfig, EditState, EmptyBatchPolicy
from workflow_editor.agent.models import EditResult, GeneratorResponse
from workflow_editor.audit import AgentEvent, LoggingAuditSink, safe_record
from workflow_editor.exceptions import (
    ApplyError,
    GeneratorError,
    InvalidRequestError,
    ResponseParseError,
    RetryExhaustedError,
    SchemaValidationError,
    WorkflowEditorError,
)
from workflow_editor.models.template import WorkflowTemplate
from workflow_editor.prompts.editing import (
    build_user_prompt,
    generate_error_correction_prompt,
    generate_system_prompt,
    generate_workflow_summary,
    sanitize_user_input,
    screen_user_request,
    summarize_changes,
)
from workflow_editor.prompts.guidance import generate_failure_guidance
from workflow_editor.retry import retry_with_steering
from workflow_editor.toolkit.applier import ToolCallApplier
from workflow_editor.validation.failures import FailureKind, ValidationFailure
from workflow_editor.validation.validator import SchemaValidator

if TYPE_CHECKING:
    from workflow_editor.agent.models import EditRequest
    from workflow_editor.audit import AuditSink
    from workflow_editor.llm.protocols import EditGenerator
    from workflow_editor.toolkit.models import ToolCall

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)

INTERNAL_ERROR_MESSAGE = "Internal error processing your request. Please try again."
EXHAUSTED_MESSAGE = (
    "I was unable to make the requested changes after {attempts} attempts. "
    "Please check your request and try again."
)


def _response_failure(field_name: str, detail: str) -> ResponseParseError:
    return ResponseParseError(
        ValidationFailure(
            kind=FailureKind.MALFORMED_RESPONSE,
            entity="response",
            field=field_name,
            detail=detail,
        )
    )


def parse_generator_output(raw: Any) -> GeneratorResponse:
    """Parse generator output into a GeneratorResponse.

    Accepts ``{"response": "<json>"}`` (the generator contract), a bare
    JSON string, or an already-decoded dict. A surrounding Markdown code
    fence is tolerated.

    Raises:
        ResponseParseError: The output is not a ``{toolCalls, reasoning}``
            object with well-formed tool calls.
    """
    payload: Any = raw
    if isinstance(raw, dict) and "response" in raw:
        payload = raw["response"]

    if isinstance(payload, str):
        text = payload.strip()
        fenced = _FENCE_RE.match(text)
        if fenced:
            text = fenced.group(1)
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise _response_failure("response", f"Invalid JSON: {exc.msg}") from exc

    if not isinstance(payload, dict):
        raise _response_failure("response", "Response must be a JSON object")
    if not isinstance(payload.get("toolCalls"), list):
        raise _response_failure("toolCalls", "missing toolCalls array")
    try:
        return GeneratorResponse.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors()[0]
        loc = first.get("loc") or ("response",)
        location = ".".join(str(part) for part in loc)
        field_name = str(loc[0])
        if field_name == "toolCalls":
            detail = f"Malformed tool call at {location}: {first.get('msg')}"
        else:
            detail = f"Invalid {location}: {first.get('msg')}"
        raise _response_failure(field_name, detail) from exc


@dataclass
class _AttemptOutcome:
    """What one Draft/Validate cycle produced."""

    number: int
    template: WorkflowTemplate | None = None
    response: GeneratorResponse | None = None
    error: WorkflowEditorError | None = None
    error_text: str | None = None
    failures: list[ValidationFailure] = field(default_factory=list)
    empty_batch: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def tool_calls(self) -> list[ToolCall]:
        return list(self.response.tool_calls) if self.response is not None else []


@dataclass
class _EditRun:
    """State local to one process_edit_request() call."""

    request: EditRequest
    template: WorkflowTemplate
    user_request: str
    summary: str
    feedback: list[str] = field(default_factory=list)
    validation_errors: list[str] = field(default_factory=list)
    last: _AttemptOutcome | None = None
    state: EditState = EditState.DRAFTING


class WorkflowEditingAgent:
    """Edits workflow templates from natural-language requests.

    Usage::

        agent = WorkflowEditingAgent(generator)
        result = agent.process_edit_request(
            EditRequest(workflow_id="wf_1", current_workflow=template,
                        user_message="Add a goal for onboarding")
        )
        if result.success:
            store.save(result.updated_workflow)

    Args:
        generator: EditGenerator called as ``generator(system_prompt, messages)``.
        config: AgentConfig; defaults to three attempts.
        audit: AuditSink receiving AgentEvents; defaults to LoggingAuditSink.
        validator: SchemaValidator override.
        applier: ToolCallApplier override (e.g. with a fixed clock).
    """

    def __init__(
        self,
        generator: EditGenerator,
        config: AgentConfig | None = None,
        audit: AuditSink | None = None,
        validator: SchemaValidator | None = None,
        applier: ToolCallApplier | None = None,
    ) -> None:
        self._generator = generator
        self._config = config or AgentConfig()
        self._audit = audit if audit is not None else LoggingAuditSink()
        self._validator = validator or SchemaValidator()
        self._applier = applier or ToolCallApplier()
        self._system_prompt = self._config.system_prompt or generate_system_prompt()

    @property
    def config(self) -> AgentConfig:
        return self._config

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def process_edit_request(self, request: EditRequest) -> EditResult:
        """Run one edit request to success, rejection or exhaustion.

        Never raises: unexpected errors are logged and reported as an
        unsuccessful EditResult.
        """
        try:
            return self._process(request)
        except Exception as exc:
            logger.exception(
                "Error processing edit request for workflow %s",
                getattr(request, "workflow_id", None),
            )
            self._emit(request, audit_events.EDIT_CRASHED, error=str(exc))
            return EditResult(
                success=False,
                message=INTERNAL_ERROR_MESSAGE,
                error_details=str(exc) or type(exc).__name__,
            )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _emit(
        self, request: EditRequest, event: str, attempt: int | None = None, **data: Any
    ) -> None:
        safe_record(
            self._audit,
            AgentEvent(
                event=event,
                workflow_id=getattr(request, "workflow_id", None),
                session_id=getattr(request, "session_id", None),
                user_id=getattr(request, "user_id", None),
                attempt=attempt,
                data=data,
            ),
        )

    def _transition(self, run: _EditRun, state: EditState, attempt: int | None = None) -> None:
        previous = run.state
        run.state = state
        logger.debug("Edit %s: %s -> %s", run.request.workflow_id, previous.value, state.value)
        self._emit(
            run.request, audit_events.STATE_CHANGED, attempt,
            previous=previous.value, state=state.value,
        )

    def _process(self, request: EditRequest) -> EditResult:
        logger.info("Processing edit request for workflow %s", request.workflow_id)
        self._emit(request, audit_events.REQUEST_RECEIVED, message=request.user_message)

        if self._config.screen_requests:
            issues = screen_user_request(
                request.user_message,
                min_chars=self._config.min_request_chars,
                max_chars=self._config.max_request_chars,
            )
            if issues:
                rejection = InvalidRequestError(issues)
                logger.info("Rejected edit request: %s", rejection)
                self._emit(request, audit_events.REQUEST_REJECTED, issues=issues)
                return EditResult(
                    success=False,
                    message=str(rejection),
                    error_details="Request validation failed",
                )

        template = request.current_workflow
        if not isinstance(template, WorkflowTemplate):
            template = WorkflowTemplate.from_dict(template)

        run = _EditRun(
            request=request,
            template=template,
            user_request=sanitize_user_input(
                request.user_message, max_chars=self._config.max_prompt_chars
            ),
            summary=generate_workflow_summary(template),
        )

        try:
            result = retry_with_steering(
                attempt=lambda n: self._attempt(run, n),
                validate=lambda outcome: self._check(run, outcome),
                steer=lambda n, diagnosis: self._steer(run, n),
                max_retries=self._config.max_attempts,
            )
        except RetryExhaustedError as exc:
            return self._exhausted(run, exc)
        return self._succeeded(run, result.value)

    def _attempt(self, run: _EditRun, number: int) -> _AttemptOutcome:
        self._transition(run, EditState.DRAFTING, number)
        messages = [
            {
                "role": "user",
                "content": build_user_prompt(run.summary, run.user_request, run.feedback),
            }
        ]
        try:
            raw = self._call_generator(run, messages, number)
            response = parse_generator_output(raw)
        except GeneratorError as exc:
            return _AttemptOutcome(number, error=exc, error_text=str(exc))
        except ResponseParseError as exc:
            return _AttemptOutcome(
                number, error=exc, error_text=str(exc), failures=[exc.failure]
            )

        if not response.tool_calls:
            if self._config.empty_batch is EmptyBatchPolicy.NOOP:
                return _AttemptOutcome(
                    number,
                    template=run.template.model_copy(deep=True),
                    response=response,
                    empty_batch=True,
                )
            exc = _response_failure(
                "toolCalls", "toolCalls array is empty; at least one tool call is required"
            )
            return _AttemptOutcome(
                number, response=response, error=exc, error_text=str(exc),
                failures=[exc.failure],
            )

        self._transition(run, EditState.VALIDATING, number)
        return self._apply_batch(run, number, response)

    def _call_generator(
        self, run: _EditRun, messages: list[dict[str, str]], number: int
    ) -> Any:
        self._emit(run.request, audit_events.GENERATOR_CALLED, number)
        try:
            return self._generator(self._system_prompt, messages)
        except Exception as exc:
            logger.warning("Generator call failed on attempt %d: %s", number, exc)
            self._emit(run.request, audit_events.GENERATOR_FAILED, number, error=str(exc))
            raise GeneratorError(f"Generator call failed: {exc}") from exc

    def _apply_batch(
        self, run: _EditRun, number: int, response: GeneratorResponse
    ) -> _AttemptOutcome:
        template = run.template
        for call in response.tool_calls:
            try:
                candidate = self._applier.apply(template, call)
            except ApplyError as exc:
                self._emit(
                    run.request, audit_events.TOOL_CALL_FAILED, number,
                    tool=call.tool, params=call.params, error=str(exc),
                )
                return _AttemptOutcome(
                    number, response=response, error=exc, error_text=str(exc),
                    failures=[exc.failure],
                )

            outcome = self._validator.validate(candidate)
            if not outcome.valid:
                exc = SchemaValidationError(outcome)
                text = f"Schema validation failed after {call.tool}: {outcome.message}"
                self._emit(
                    run.request, audit_events.TOOL_CALL_FAILED, number,
                    tool=call.tool, params=call.params, error=text,
                )
                return _AttemptOutcome(
                    number, response=response, error=exc, error_text=text,
                    failures=list(outcome.failures),
                )

            self._emit(
                run.request, audit_events.TOOL_CALL_APPLIED, number,
                tool=call.tool, params=call.params,
            )
            template = candidate.template

        return _AttemptOutcome(number, template=template, response=response)

    def _check(self, run: _EditRun, outcome: _AttemptOutcome) -> tuple[bool, str | None]:
        run.last = outcome
        if outcome.ok:
            return True, None

        if isinstance(outcome.error, (SchemaValidationError, ApplyError)):
            run.validation_errors.append(outcome.error_text)
        logger.warning("Attempt %d failed: %s", outcome.number, outcome.error_text)
        self._emit(
            run.request, audit_events.ATTEMPT_FAILED, outcome.number,
            error=outcome.error_text, error_type=type(outcome.error).__name__,
        )
        return False, outcome.error_text

    def _steer(self, run: _EditRun, number: int) -> None:
        """Add guidance for the failed attempt to the next prompt."""
        self._transition(run, EditState.RETRYING, number)
        outcome = run.last
        max_attempts = self._config.max_attempts
        parts = [f"--- Attempt {number} of {max_attempts} failed ---"]
        if outcome.failures:
            parts.append(generate_failure_guidance(outcome.failures, outcome.error_text))
        if isinstance(outcome.error, (GeneratorError, ResponseParseError)):
            parts.append(
                generate_error_correction_prompt(outcome.error_text, number, max_attempts)
            )
        run.feedback.append("\n".join(parts))

    def _succeeded(self, run: _EditRun, outcome: _AttemptOutcome) -> EditResult:
        self._transition(run, EditState.SUCCEEDED, outcome.number)
        reasoning = outcome.response.reasoning if outcome.response is not None else ""
        if outcome.empty_batch:
            message = "No changes were made: no tool calls were needed for this request."
        else:
            message = f"Successfully {summarize_changes(outcome.tool_calls)}."
        if reasoning:
            message = f"{message} {reasoning}"
        self._emit(
            run.request, audit_events.EDIT_SUCCEEDED, outcome.number,
            tools=[call.tool for call in outcome.tool_calls],
        )
        logger.info(
            "Edit for workflow %s succeeded after %d attempt(s)",
            run.request.workflow_id, outcome.number,
        )
        return EditResult(
            success=True,
            updated_workflow=outcome.template,
            message=message,
            tool_calls=outcome.tool_calls,
            reasoning=reasoning,
            validation_errors=list(run.validation_errors),
            attempts=outcome.number,
        )

    def _exhausted(self, run: _EditRun, exc: RetryExhaustedError) -> EditResult:
        self._transition(run, EditState.EXHAUSTED, exc.attempts)
        last = run.last
        self._emit(run.request, audit_events.EDIT_EXHAUSTED, exc.attempts, error=exc.last_diagnosis)
        logger.warning(
            "Edit for workflow %s exhausted %d attempts: %s",
            run.request.workflow_id, exc.attempts, exc.last_diagnosis,
        )
        return EditResult(
            success=False,
            message=EXHAUSTED_MESSAGE.format(attempts=exc.attempts),
            tool_calls=last.tool_calls if last is not None else [],
            reasoning=last.response.reasoning if last is not None and last.response else "",
            error_details=exc.last_diagnosis,
            validation_errors=list(run.validation_errors),
            attempts=exc.attempts,
        )
