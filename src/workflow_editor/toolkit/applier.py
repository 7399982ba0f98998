"""ToolCallApplier: applies one tool call to a template value.

Copy-on-write: the caller's template is deep-copied before the handler
runs, so a failed apply or a later failed validation leaves it intact.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable

from pydantic import ValidationError

from workflow_editor.exceptions import ApplyError
from workflow_editor.toolkit.definitions import get_tool
from workflow_editor.toolkit.models import ApplyContext, TemplateCandidate
from workflow_editor.validation.failures import FailureKind, ValidationFailure

if TYPE_CHECKING:
    from workflow_editor.models.template import WorkflowTemplate
    from workflow_editor.toolkit.models import ToolCall

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def default_id_factory(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def _describe_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    if location:
        return f"{location}: {first.get('msg', 'invalid value')}"
    return first.get("msg", "invalid value")


class ToolCallApplier:
    """Applies tool calls to copies of a template.

    Usage::

        applier = ToolCallApplier()
        candidate = applier.apply(template, ToolCall(tool="addGoal", params={...}))
        candidate.template  # new value; ``template`` is unchanged

    Args:
        clock: Returns the current time; stamps ``metadata.last_modified``
            and ``updatedAt``. Defaults to UTC now.
        id_factory: Maps a prefix ("goal", "task", ...) to a fresh id.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[str], str] | None = None,
    ) -> None:
        self._clock = clock or _utc_now
        self._id_factory = id_factory or default_id_factory

    def apply(self, template: WorkflowTemplate, call: ToolCall) -> TemplateCandidate:
        """Apply ``call`` to a copy of ``template``.

        Raises:
            ApplyError: Unknown tool, malformed params, or a reference to
                an id that is not in the template.
        """
        definition = get_tool(call.tool)
        if definition is None:
            raise ApplyError(
                ValidationFailure(
                    kind=FailureKind.UNKNOWN_TOOL,
                    entity="tool_call",
                    field="tool",
                    detail=f"Unknown tool: {call.tool}",
                )
            )
        if not isinstance(call.params, dict):
            raise ApplyError(
                ValidationFailure(
                    kind=FailureKind.MALFORMED_PARAMS,
                    entity="tool_call",
                    field="params",
                    detail="Field 'params' must be of type object",
                )
            )

        now = self._clock().isoformat()
        working = template.model_copy(deep=True)
        ctx = ApplyContext(new_id=self._id_factory, now=now)
        try:
            changed = definition.handler(working, call.params, ctx)
        except ValidationError as exc:
            raise ApplyError(
                ValidationFailure(
                    kind=FailureKind.MALFORMED_PARAMS,
                    entity="tool_call",
                    field="params",
                    detail=f"Malformed params for {call.tool}: {_describe_validation_error(exc)}",
                )
            ) from exc

        if working.metadata is not None:
            working.metadata.last_modified = now
        working.updated_at = now
        logger.debug("Applied %s to workflow %s", call.tool, working.id)
        return TemplateCandidate(template=working, tool_name=call.tool, changed=changed)
