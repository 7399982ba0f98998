"""SqlAuditSink: persists AgentEvents through SQLAlchemy."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select

from workflow_editor.audit import AgentEvent
from workflow_editor.storage.engine import create_session_factory, init_db
from workflow_editor.storage.schema import AgentEventRow

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


def _row_to_event(row: AgentEventRow) -> AgentEvent:
    return AgentEvent(
        event=row.event,
        workflow_id=row.workflow_id,
        session_id=row.session_id,
        user_id=row.user_id,
        attempt=row.attempt,
        data=dict(row.data_json or {}),
        timestamp=row.created_at,
    )


class SqlAuditSink:
    """Audit sink writing one row per event to ``agent_events``.

    Usage::

        engine = create_audit_engine("audit.db")
        sink = SqlAuditSink(engine)
        agent = WorkflowEditingAgent(generator, audit=sink)
        ...
        sink.list_events(workflow_id="wf_1")

    Tables are created on construction.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        init_db(engine)
        self._session_factory = create_session_factory(engine)

    def record(self, event: AgentEvent) -> None:
        row = AgentEventRow(
            event=event.event,
            workflow_id=event.workflow_id,
            session_id=event.session_id,
            user_id=event.user_id,
            attempt=event.attempt,
            data_json=event.data,
            created_at=event.timestamp,
        )
        with self._session_factory() as session:
            session.add(row)
            session.commit()
        logger.debug("Persisted audit event %s", event.event)

    def list_events(
        self,
        *,
        workflow_id: str | None = None,
        event: str | None = None,
        limit: int | None = None,
    ) -> list[AgentEvent]:
        """Events in insertion order, optionally filtered."""
        stmt = select(AgentEventRow).order_by(AgentEventRow.id)
        if workflow_id is not None:
            stmt = stmt.where(AgentEventRow.workflow_id == workflow_id)
        if event is not None:
            stmt = stmt.where(AgentEventRow.event == event)
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._session_factory() as session:
            rows = session.execute(stmt).scalars().all()
            return [_row_to_event(row) for row in rows]
