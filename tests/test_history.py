"""Tests for the undo/redo history."""

import logging

import pytest

from tablesmith.ops import (
    AddRow,
    DeleteColumns,
    HistoryEntry,
    UndoRedoManager,
    UpdateCell,
)
from tablesmith.table import TableModel


def edit(manager: UndoRedoManager, operation, label=None):
    inverse = manager.table.apply(operation)
    manager.record_operation(operation, inverse, label)


@pytest.fixture
def manager(sample_table) -> UndoRedoManager:
    return UndoRedoManager(sample_table, max_history=50)


class TestUndoRedo:
    """Test basic undo/redo behaviour."""

    def test_undo_restores_previous_state(self, manager):
        edit(manager, UpdateCell(row=0, col=0, value="kiwi"))

        result = manager.undo()

        assert result.applied
        assert result.action == "undo"
        assert manager.table.rows[0][0] == "apple"
        assert manager.can_redo()
        assert not manager.can_undo()

    def test_redo_reapplies(self, manager):
        edit(manager, UpdateCell(row=0, col=0, value="kiwi"))
        manager.undo()

        result = manager.redo()

        assert result.applied
        assert manager.table.rows[0][0] == "kiwi"
        assert manager.can_undo()
        assert not manager.can_redo()

    def test_undo_order_is_last_in_first_out(self, manager):
        edit(manager, UpdateCell(row=0, col=0, value="one"))
        edit(manager, UpdateCell(row=0, col=0, value="two"))

        manager.undo()
        assert manager.table.rows[0][0] == "one"
        manager.undo()
        assert manager.table.rows[0][0] == "apple"

    def test_new_edit_clears_redo(self, manager):
        edit(manager, UpdateCell(row=0, col=0, value="one"))
        manager.undo()
        assert manager.can_redo()

        edit(manager, UpdateCell(row=1, col=0, value="two"))

        assert not manager.can_redo()
        assert not manager.redo().applied

    def test_undo_redo_cycle_is_stable(self, manager, sample_table):
        original = sample_table.snapshot()
        edit(manager, DeleteColumns(indices=(1,)))
        edit(manager, AddRow(index=0))
        edited = sample_table.snapshot()

        for _ in range(3):
            manager.undo()
            manager.undo()
            assert sample_table.rows == original.rows
            assert sample_table.headers == original.headers
            manager.redo()
            manager.redo()
            assert sample_table.rows == edited.rows
            assert sample_table.headers == edited.headers

    def test_labels(self, manager):
        edit(manager, UpdateCell(row=0, col=0, value="x"), label="Edit name")
        assert manager.get_undo_label() == "Edit name"

        manager.undo()
        assert manager.get_undo_label() == ""
        assert manager.get_redo_label() == "Edit name"

    def test_default_label_is_operation_kind(self, manager):
        edit(manager, AddRow())
        assert manager.get_undo_label() == "add_row"


class TestUnderflow:
    def test_undo_with_empty_stack_is_a_no_op(self, manager, sample_table):
        before = sample_table.snapshot()

        result = manager.undo()

        assert not result.applied
        assert result.message == "Nothing to undo"
        assert sample_table.rows == before.rows

    def test_redo_with_empty_stack_is_a_no_op(self, manager):
        result = manager.redo()
        assert not result.applied
        assert result.message == "Nothing to redo"


class TestCapacity:
    def test_oldest_entries_evicted(self, sample_table):
        manager = UndoRedoManager(sample_table, max_history=3)
        for value in ["a", "b", "c", "d", "e"]:
            edit(manager, UpdateCell(row=0, col=0, value=value))

        assert manager.get_stats()["undo_count"] == 3

        while manager.undo().applied:
            pass
        # Only the three newest edits can be undone
        assert sample_table.rows[0][0] == "b"

    def test_default_capacity_from_settings(self, sample_table):
        from tablesmith.config import settings

        assert UndoRedoManager(sample_table).max_history == settings.history_max_size

    def test_capacity_of_one_keeps_latest_edit(self, sample_table):
        manager = UndoRedoManager(sample_table, max_history=1)
        edit(manager, UpdateCell(row=0, col=0, value="a"))
        edit(manager, UpdateCell(row=0, col=0, value="b"))

        assert manager.max_history == 1
        assert manager.undo().applied
        assert sample_table.rows[0][0] == "a"

    @pytest.mark.parametrize("capacity", [0, -1])
    def test_capacity_below_one_rejected(self, sample_table, capacity):
        with pytest.raises(ValueError, match="max_history"):
            UndoRedoManager(sample_table, max_history=capacity)


class TestGroups:
    """Test coalescing several operations into one entry."""

    def test_group_is_one_undo_step(self, manager, sample_table):
        manager.group_start("paste")
        edit(manager, UpdateCell(row=0, col=0, value="x"))
        edit(manager, UpdateCell(row=1, col=0, value="y"))
        entry = manager.group_end()

        assert isinstance(entry, HistoryEntry)
        assert entry.label == "paste"
        assert len(entry.operations) == 2
        assert manager.get_stats()["undo_count"] == 1

        manager.undo()
        assert [row[0] for row in sample_table.rows] == ["apple", "pear", "fig"]

        manager.redo()
        assert [row[0] for row in sample_table.rows] == ["x", "y", "fig"]

    def test_group_inverses_run_in_reverse(self, manager, sample_table):
        with manager.group("rows"):
            edit(manager, AddRow(index=0))
            edit(manager, UpdateCell(row=0, col=0, value="new"))

        manager.undo()
        assert sample_table.row_count == 3
        assert sample_table.rows[0][0] == "apple"

    def test_nested_groups_record_once(self, manager):
        manager.group_start("outer")
        edit(manager, UpdateCell(row=0, col=0, value="x"))
        manager.group_start("inner")
        edit(manager, UpdateCell(row=1, col=0, value="y"))
        assert manager.group_end() is None
        entry = manager.group_end()

        assert entry.label == "outer"
        assert len(entry.operations) == 2
        assert manager.get_stats()["undo_count"] == 1

    def test_empty_group_records_nothing(self, manager):
        manager.group_start("nothing")
        assert manager.group_end() is None
        assert not manager.can_undo()

    def test_unmatched_group_end_logs_warning(self, manager, caplog):
        with caplog.at_level(logging.WARNING):
            assert manager.group_end() is None
        assert "without a matching group_start" in caplog.text

    def test_context_manager_abandons_on_error(self, manager, sample_table):
        with pytest.raises(RuntimeError):
            with manager.group("broken"):
                edit(manager, UpdateCell(row=0, col=0, value="x"))
                raise RuntimeError("boom")

        assert sample_table.rows[0][0] == "apple"
        assert not manager.can_undo()
        assert not manager.in_group

    def test_undo_refused_inside_group(self, manager):
        edit(manager, UpdateCell(row=0, col=0, value="x"))
        manager.group_start("open")

        result = manager.undo()

        assert not result.applied
        assert "group is open" in result.message
        manager.group_end()
        assert manager.undo().applied


class TestFailureRollback:
    def test_failed_undo_leaves_table_and_stack(self, manager, sample_table):
        bad_entry = HistoryEntry(
            sequence=manager.next_sequence(),
            label="bad",
            operations=(UpdateCell(row=0, col=0, value="x"),),
            # Run last-to-first: the valid update applies, then the invalid one fails
            inverses=(UpdateCell(row=99, col=0, value="z"), UpdateCell(row=0, col=0, value="y")),
        )
        manager.record(bad_entry)
        before = sample_table.snapshot()

        result = manager.undo()

        assert not result.applied
        assert result.errors
        assert sample_table.rows == before.rows
        assert manager.get_undo_label() == "bad"


class TestChangeNotification:
    def test_on_change_receives_snapshot(self, sample_table):
        seen: list[TableModel] = []
        manager = UndoRedoManager(sample_table, on_change=seen.append)
        edit(manager, UpdateCell(row=0, col=0, value="x"))

        manager.undo()

        assert len(seen) == 1
        assert seen[0].rows[0][0] == "apple"
        assert seen[0] is not sample_table

    def test_clear(self, manager):
        edit(manager, UpdateCell(row=0, col=0, value="x"))
        manager.clear()
        assert not manager.can_undo()
        assert not manager.can_redo()
