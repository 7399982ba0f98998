"""SQLAlchemy-backed persistence for the agent audit trail."""

from workflow_editor.storage.engine import (
    create_audit_engine,
    create_session_factory,
    init_db,
)
from workflow_editor.storage.schema import AgentEventRow, Base
from workflow_editor.storage.sink import SqlAuditSink

__all__ = [
    "AgentEventRow",
    "Base",
    "SqlAuditSink",
    "create_audit_engine",
    "create_session_factory",
    "init_db",
]
