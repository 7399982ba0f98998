"""Structured audit events for the workflow editing agent.

The agent never writes to a console or log directly for its audit trail;
it hands AgentEvent records to an injected AuditSink. Three sinks ship
with the package: LoggingAuditSink (default), InMemoryAuditSink (tests,
per-session audit logs) and storage.SqlAuditSink (persistent).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

# Event names
REQUEST_RECEIVED = "request.received"
REQUEST_REJECTED = "request.rejected"
STATE_CHANGED = "state.changed"
GENERATOR_CALLED = "generator.called"
GENERATOR_FAILED = "generator.failed"
TOOL_CALL_APPLIED = "tool_call.applied"
TOOL_CALL_FAILED = "tool_call.failed"
ATTEMPT_FAILED = "attempt.failed"
EDIT_SUCCEEDED = "edit.succeeded"
EDIT_EXHAUSTED = "edit.exhausted"
EDIT_CRASHED = "edit.crashed"


@dataclass(frozen=True)
class AgentEvent:
    """One audit record.

    Attributes:
        event: Event name, e.g. "tool_call.applied".
        workflow_id: Workflow the request targets.
        session_id: Caller session, if known.
        user_id: Requesting user, if known.
        attempt: 1-based attempt number, or None outside the retry loop.
        data: Event-specific payload (JSON-serialisable).
        timestamp: When the event was created (UTC).
    """

    event: str
    workflow_id: str | None = None
    session_id: str | None = None
    user_id: str | None = None
    attempt: int | None = None
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@runtime_checkable
class AuditSink(Protocol):
    """Receives audit events. Implementations should not raise."""

    def record(self, event: AgentEvent) -> None: ...


class LoggingAuditSink:
    """Writes every event to a stdlib logger."""

    def __init__(self, logger_name: str = "workflow_editor.audit", level: int = logging.INFO) -> None:
        self._logger = logging.getLogger(logger_name)
        self._level = level

    def record(self, event: AgentEvent) -> None:
        self._logger.log(
            self._level,
            "%s workflow=%s attempt=%s data=%s",
            event.event,
            event.workflow_id,
            event.attempt,
            event.data,
        )


class InMemoryAuditSink:
    """Keeps events in a list; exposes the tool-call audit log."""

    def __init__(self) -> None:
        self.events: list[AgentEvent] = []

    def record(self, event: AgentEvent) -> None:
        self.events.append(event)

    def named(self, name: str) -> list[AgentEvent]:
        return [e for e in self.events if e.event == name]

    def tool_calls(self) -> list[AgentEvent]:
        """Applied and failed tool-call events, in order."""
        return [
            e for e in self.events
            if e.event in (TOOL_CALL_APPLIED, TOOL_CALL_FAILED)
        ]

    def clear(self) -> None:
        self.events.clear()


def safe_record(sink: AuditSink, event: AgentEvent) -> None:
    """Deliver ``event``; a failing sink is logged and never propagates."""
    try:
        sink.record(event)
    except Exception:
        logger.exception("Audit sink %r failed to record %s", sink, event.event)
