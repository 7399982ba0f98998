"""Tests for the audit SQLAlchemy schema and engine helpers.

Covers:
- The agent_events table and its indexes are created
- AgentEventRow round-trip including the JSON payload
- File-backed engines and explicit URLs
"""

from datetime import datetime

from sqlalchemy import inspect, select

from workflow_editor.storage.engine import (
    create_audit_engine,
    create_session_factory,
    init_db,
)
from workflow_editor.storage.schema import AgentEventRow


class TestTableCreation:
    def test_agent_events_table_exists(self, engine):
        inspector = inspect(engine)
        assert "agent_events" in inspector.get_table_names()

    def test_indexes_exist(self, engine):
        inspector = inspect(engine)
        names = {ix["name"] for ix in inspector.get_indexes("agent_events")}
        assert {"ix_agent_events_workflow_created", "ix_agent_events_event"} <= names

    def test_init_db_is_idempotent(self, engine):
        init_db(engine)
        assert "agent_events" in inspect(engine).get_table_names()


class TestAgentEventRow:
    def test_round_trip(self, engine):
        factory = create_session_factory(engine)
        created = datetime(2025, 3, 1, 12, 0, 0)
        with factory() as session:
            session.add(AgentEventRow(
                event="tool_call.applied",
                workflow_id="wf_1",
                attempt=2,
                data_json={"tool": "addGoal", "params": {"goal": {"name": "X"}}},
                created_at=created,
            ))
            session.commit()

        with factory() as session:
            row = session.execute(select(AgentEventRow)).scalar_one()
            assert row.id == 1
            assert row.event == "tool_call.applied"
            assert row.attempt == 2
            assert row.session_id is None
            assert row.data_json["params"]["goal"]["name"] == "X"
            assert row.created_at == created


class TestEngine:
    def test_file_backed_engine(self, tmp_path):
        db_path = tmp_path / "audit.db"
        eng = create_audit_engine(str(db_path))
        try:
            init_db(eng)
            assert db_path.exists()
            assert eng.dialect.name == "sqlite"
        finally:
            eng.dispose()

    def test_explicit_url(self, tmp_path):
        eng = create_audit_engine(url=f"sqlite:///{tmp_path / 'other.db'}")
        try:
            init_db(eng)
            assert "agent_events" in inspect(eng).get_table_names()
        finally:
            eng.dispose()
