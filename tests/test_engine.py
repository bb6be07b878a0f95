"""Tests for edit sessions and the session store."""

from datetime import datetime, timedelta, timezone

import pytest

from tablesmith.ops import SessionStore, TableEditSession, UpdateCell
from tablesmith.table import TableModel


class TestTableEditSession:
    """Test applying edits through a session."""

    def test_execute_applies_and_records(self, session):
        result = session.execute(UpdateCell(row=0, col=0, value="kiwi"))

        assert result.success
        assert result.action == "update_cell"
        assert result.table.rows[0][0] == "kiwi"
        assert result.can_undo
        assert not result.can_redo

    def test_rejected_operation(self, session):
        result = session.execute(UpdateCell(row=10, col=0, value="x"))

        assert not result.success
        assert result.errors
        assert not result.can_undo
        assert session.table.rows[0][0] == "apple"

    def test_result_table_is_a_snapshot(self, session):
        result = session.execute(UpdateCell(row=0, col=0, value="kiwi"))
        session.execute(UpdateCell(row=0, col=0, value="lime"))

        assert result.table.rows[0][0] == "kiwi"

    def test_undo_redo(self, session):
        session.execute(UpdateCell(row=0, col=0, value="kiwi"))

        undone = session.undo()
        assert undone.success
        assert undone.table.rows[0][0] == "apple"
        assert undone.can_redo

        redone = session.redo()
        assert redone.success
        assert redone.table.rows[0][0] == "kiwi"

    def test_undo_with_nothing_to_undo(self, session):
        result = session.undo()
        assert not result.success
        assert result.message == "Nothing to undo"

    def test_group(self, session):
        with session.group("fill"):
            session.execute(UpdateCell(row=0, col=1, value="1"))
            session.execute(UpdateCell(row=1, col=1, value="1"))

        assert session.history.get_stats()["undo_count"] == 1
        session.undo()
        assert [row[1] for row in session.table.rows] == ["3", "10", "7"]

    def test_from_markdown(self, sample_markdown):
        session = TableEditSession.from_markdown(sample_markdown)
        assert session.table.headers == ["Name", "Qty", "Price"]
        assert session.session_id


class TestExecuteCommand:
    def test_edit_command(self, session):
        result = session.execute_command(
            {"command": "updateCell", "data": {"row": 2, "col": 0, "value": "date"}}
        )
        assert result.success
        assert session.table.rows[2][0] == "date"

    def test_undo_and_redo_commands(self, session):
        session.execute_command({"command": "addRow", "data": {}})
        assert session.table.row_count == 4

        assert session.execute_command({"command": "undo"}).success
        assert session.table.row_count == 3
        assert session.execute_command({"command": "redo"}).success
        assert session.table.row_count == 4

    def test_unknown_command(self, session):
        result = session.execute_command({"command": "explode", "data": {}})
        assert not result.success
        assert "Unknown command" in result.errors[0]

    def test_malformed_message(self, session):
        result = session.execute_command({"data": {}})
        assert not result.success
        assert result.action == "command"

    def test_cannot_delete_last_column(self):
        session = TableEditSession(TableModel.from_cells(["Only"], [["x"]]))
        result = session.execute_command({"command": "deleteColumns", "data": {"indices": [0]}})

        assert not result.success
        assert "Cannot delete the last column" in result.errors[0]
        assert session.table.headers == ["Only"]


class TestChangeListeners:
    def test_listener_notified_on_edit_and_undo(self, session):
        seen = []
        session.add_change_listener(seen.append)

        session.execute(UpdateCell(row=0, col=0, value="kiwi"))
        session.undo()

        assert [table.rows[0][0] for table in seen] == ["kiwi", "apple"]

    def test_listener_not_notified_on_rejected_edit(self, session):
        seen = []
        session.add_change_listener(seen.append)
        session.execute(UpdateCell(row=10, col=0, value="x"))
        assert seen == []

    def test_failing_listener_does_not_break_edit(self, session):
        def broken(table):
            raise RuntimeError("listener failed")

        seen = []
        session.add_change_listener(broken)
        session.add_change_listener(seen.append)

        result = session.execute(UpdateCell(row=0, col=0, value="kiwi"))

        assert result.success
        assert len(seen) == 1

    def test_remove_listener(self, session):
        seen = []
        session.add_change_listener(seen.append)
        assert session.remove_change_listener(seen.append)
        assert not session.remove_change_listener(seen.append)

        session.execute(UpdateCell(row=0, col=0, value="kiwi"))
        assert seen == []


class TestSessionDiff:
    def test_diff_against_old_markdown(self, session, sample_markdown):
        session.execute(UpdateCell(row=1, col=1, value="11"))

        diff = session.diff_against(sample_markdown)

        assert [entry.status for entry in diff.rows] == ["kept", "modified", "kept"]
        assert diff.modified_rows[0].changed_columns == [1]

    def test_reconcile_against_old_table(self, session):
        old = session.snapshot()
        session.execute_command({"command": "deleteRows", "data": {"indices": [0]}})

        grid = session.reconcile_against(old)

        assert [row.status for row in grid.rows] == ["deleted", "kept", "kept"]
        assert [cell.value for cell in grid.rows[0].cells] == ["apple", "3", "1.20"]

    def test_state(self, session):
        session.execute(UpdateCell(row=0, col=0, value="kiwi"), label="Rename fruit")
        state = session.get_state()

        assert state["session_id"] == "test-session"
        assert state["can_undo"] is True
        assert state["undo_label"] == "Rename fruit"
        assert "| kiwi |" in state["markdown"]


class TestSessionStore:
    """Test the in-memory session store."""

    def test_create_and_get(self, sample_table):
        store = SessionStore(ttl_minutes=10)
        session = store.create(sample_table)

        assert store.get(session.session_id) is session
        assert store.size() == 1

    def test_get_missing(self):
        assert SessionStore().get("missing") is None

    def test_remove(self, sample_table):
        store = SessionStore()
        session = store.create(sample_table)

        assert store.remove(session.session_id)
        assert not store.remove(session.session_id)
        assert store.get(session.session_id) is None

    def test_expired_session_is_dropped(self, sample_table):
        store = SessionStore(ttl_minutes=10)
        session = store.create(sample_table)
        store._expires_at[session.session_id] = datetime.now(timezone.utc) - timedelta(minutes=1)

        assert store.get(session.session_id) is None
        assert store.size() == 0

    def test_cleanup_expired(self, sample_table):
        store = SessionStore(ttl_minutes=10)
        expired = store.create(sample_table)
        store.create(sample_table.snapshot())
        store._expires_at[expired.session_id] = datetime.now(timezone.utc) - timedelta(minutes=1)

        assert store.cleanup_expired() == 1
        assert store.size() == 1

    def test_max_history_passed_to_session(self, sample_table):
        session = SessionStore().create(sample_table, max_history=5)
        assert session.history.max_history == 5

    def test_invalid_max_history_leaves_store_untouched(self, sample_table):
        store = SessionStore()

        with pytest.raises(ValueError):
            store.create(sample_table, max_history=-1)
        assert store.size() == 0
        assert sample_table.rows[0][0] == "apple"

    def test_invalid_ttl_rejected(self):
        with pytest.raises(ValueError, match="ttl_minutes"):
            SessionStore(ttl_minutes=0)

    def test_async_access(self, sample_table):
        import asyncio

        store = SessionStore()

        async def scenario():
            session = await store.create_async(sample_table)
            found = await store.get_async(session.session_id)
            removed = await store.remove_async(session.session_id)
            return session, found, removed

        session, found, removed = asyncio.run(scenario())
        assert found is session
        assert removed
