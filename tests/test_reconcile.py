"""Tests for reconciling a diff with the current table."""

import pytest

from tablesmith.diff import ColumnDiffComputer, Reconciler, RowDiffEntry, TableDiffer
from tablesmith.diff.models import PLACEHOLDER_GLYPH, PLACEHOLDER_TITLE
from tablesmith.table import TableModel


@pytest.fixture
def columns() -> ColumnDiffComputer:
    return ColumnDiffComputer(ignore_case=True, detect_renames=True, rename_threshold=0.75)


def values(row) -> list[str]:
    return [cell.value for cell in row.cells]


def placeholders(row) -> list[bool]:
    return [cell.placeholder for cell in row.cells]


class TestDeletedRowPlacement:
    """Deleted rows are laid out over the merged old/new columns."""

    def test_column_inserted_in_the_middle(self, columns):
        table = TableModel.from_cells(["A", "B", "C"], [])
        column_diff = columns.compute(["A", "C"], ["A", "B", "C"])
        entries = [RowDiffEntry(status="deleted", old_index=0, old_cells=["1", "3"])]

        grid = Reconciler(column_computer=columns).reconcile(table, column_diff, entries)

        row = grid.rows[0]
        assert values(row) == ["1", "", "3"]
        assert placeholders(row) == [False, True, False]
        assert row.cells[1].title == PLACEHOLDER_TITLE
        assert row.cells[1].column_status == "added"

    def test_column_deleted_in_the_middle(self, columns):
        table = TableModel.from_cells(["A", "C"], [])
        column_diff = columns.compute(["A", "B", "C"], ["A", "C"])
        entries = [RowDiffEntry(status="deleted", old_index=0, old_cells=["1", "2", "3"])]

        grid = Reconciler(column_computer=columns).reconcile(table, column_diff, entries)

        row = grid.rows[0]
        assert values(row) == ["1", "2", "3"]
        assert placeholders(row) == [False, False, False]
        assert [c.column_status for c in row.cells] == ["kept", "deleted", "kept"]

    def test_columns_added_and_deleted_together(self):
        columns = ColumnDiffComputer(ignore_case=True, detect_renames=False)
        table = TableModel.from_cells(["A", "D", "C"], [])
        column_diff = columns.compute(["A", "B", "C"], ["A", "D", "C"])
        entries = [RowDiffEntry(status="deleted", old_index=0, old_cells=["1", "2", "3"])]

        grid = Reconciler(column_computer=columns).reconcile(table, column_diff, entries)

        row = grid.rows[0]
        # One cell per old column plus a placeholder for each added column
        assert len(row.cells) == column_diff.old_column_count + len(column_diff.added_columns)
        assert values(row) == ["1", "2", "", "3"]
        assert placeholders(row) == [False, False, True, False]
        assert [c.column_status for c in row.cells] == ["kept", "deleted", "added", "kept"]
        assert [c.value for c in row.cells if not c.placeholder] == ["1", "2", "3"]

    def test_renamed_column_keeps_old_content_in_place(self, columns):
        table = TableModel.from_cells(["Name", "Address", "Phone"], [])
        column_diff = columns.compute(["Name", "Adress", "Phone"], ["Name", "Address", "Phone"])
        entries = [RowDiffEntry(status="deleted", old_index=0, old_cells=["Ann", "1 Main St", "555"])]

        grid = Reconciler(column_computer=columns).reconcile(table, column_diff, entries)

        row = grid.rows[0]
        assert values(row) == ["Ann", "1 Main St", "555"]
        assert placeholders(row) == [False, False, False]
        assert [c.column_status for c in row.cells] == ["kept", "kept", "kept"]

    def test_ragged_old_row_is_padded(self, columns, caplog):
        table = TableModel.from_cells(["A", "B"], [])
        column_diff = columns.compute(["A", "B"], ["A", "B"])
        entries = [RowDiffEntry(status="deleted", old_index=4, old_cells=["1"])]

        grid = Reconciler(column_computer=columns).reconcile(table, column_diff, entries)

        assert values(grid.rows[0]) == ["1", ""]
        assert "Old row 4 has 1 cell(s), expected 2" in caplog.text

    def test_ragged_old_row_is_truncated(self, columns):
        table = TableModel.from_cells(["A"], [])
        column_diff = columns.compute(["A"], ["A"])
        entries = [RowDiffEntry(status="deleted", old_index=0, old_cells=["1", "2", "3"])]

        grid = Reconciler(column_computer=columns).reconcile(table, column_diff, entries)

        assert values(grid.rows[0]) == ["1"]

    def test_row_with_its_own_old_headers(self, columns):
        table = TableModel.from_cells(["A", "B", "C"], [])
        column_diff = columns.compute(["A", "B"], ["A", "B", "C"])
        entries = [
            RowDiffEntry(status="deleted", old_index=0, old_cells=["1", "2"], old_headers=["A", "B"]),
            RowDiffEntry(status="deleted", old_index=1, old_cells=["1", "3"], old_headers=["A", "C"]),
        ]

        grid = Reconciler(column_computer=columns).reconcile(table, column_diff, entries)

        assert values(grid.rows[0]) == ["1", "2", ""]
        assert placeholders(grid.rows[0]) == [False, False, True]
        assert values(grid.rows[1]) == ["1", "", "3"]
        assert placeholders(grid.rows[1]) == [False, True, False]

    def test_row_headers_differing_only_in_case_share_the_layout(self, columns, monkeypatch):
        table = TableModel.from_cells(["A", "B", "C"], [])
        column_diff = columns.compute(["A", "B"], ["A", "B", "C"])
        entries = [
            RowDiffEntry(status="deleted", old_index=0, old_cells=["1", "2"], old_headers=["a", " b "]),
        ]
        calls = []
        monkeypatch.setattr(columns, "compute", lambda *args: calls.append(args))

        grid = Reconciler(column_computer=columns).reconcile(table, column_diff, entries)

        assert calls == []
        assert values(grid.rows[0]) == ["1", "2", ""]


class TestCurrentRows:
    def test_kept_and_added_rows_use_current_cells(self, columns):
        table = TableModel.from_cells(["A", "B", "C"], [["1", "2", "3"], ["4", "5", "6"]])
        column_diff = columns.compute(["A", "C"], ["A", "B", "C"])
        entries = [
            RowDiffEntry(status="kept", old_index=0, new_index=0),
            RowDiffEntry(status="added", new_index=1),
        ]

        grid = Reconciler(align_current_rows=False, column_computer=columns).reconcile(
            table, column_diff, entries
        )

        assert values(grid.rows[0]) == ["1", "2", "3"]
        assert [c.column_status for c in grid.rows[0].cells] == ["kept", "added", "kept"]
        assert grid.rows[1].status == "added"
        assert values(grid.rows[1]) == ["4", "5", "6"]

    def test_modified_row_flags_changed_cells(self, columns):
        table = TableModel.from_cells(["A", "B"], [["1", "x"]])
        column_diff = columns.compute(["A", "B"], ["A", "B"])
        entries = [
            RowDiffEntry(status="modified", old_index=0, new_index=0, old_cells=["1", "2"], changed_columns=[1])
        ]

        grid = Reconciler(column_computer=columns).reconcile(table, column_diff, entries)

        assert [c.changed for c in grid.rows[0].cells] == [False, True]

    def test_current_rows_aligned_to_old_layout(self, columns):
        table = TableModel.from_cells(["A", "C"], [["1", "3"]])
        column_diff = columns.compute(["A", "B", "C"], ["A", "C"])
        entries = [RowDiffEntry(status="added", new_index=0)]

        grid = Reconciler(align_current_rows=True, column_computer=columns).reconcile(
            table, column_diff, entries
        )

        row = grid.rows[0]
        assert values(row) == ["1", "", "3"]
        assert placeholders(row) == [False, True, False]
        assert row.cells[1].column_status == "deleted"
        assert grid.aligned_to_layout


class TestDeletedHeader:
    def test_old_header_rendered_when_columns_change(self, columns):
        table = TableModel.from_cells(["A", "B", "C"], [])
        column_diff = columns.compute(["A", "C"], ["A", "B", "C"])

        grid = Reconciler(column_computer=columns).reconcile(table, column_diff, [])

        assert values(grid.deleted_header) == ["A", "", "C"]
        assert placeholders(grid.deleted_header) == [False, True, False]

    def test_no_old_header_without_column_changes(self, columns):
        table = TableModel.from_cells(["A"], [])
        column_diff = columns.compute(["A"], ["A"])

        grid = Reconciler(column_computer=columns).reconcile(table, column_diff, [])

        assert grid.deleted_header is None


class TestDifferReconcile:
    """End to end: old Markdown against the current table."""

    def test_column_insertion(self):
        old = "| A | C |\n| --- | --- |\n| 1 | 3 |\n"
        table = TableModel.from_cells(["A", "B", "C"], [["1", "2", "3"]])

        grid = TableDiffer().reconcile(old, table)

        assert [row.status for row in grid.rows] == ["deleted", "added"]
        assert values(grid.rows[0]) == ["1", "", "3"]
        assert placeholders(grid.rows[0]) == [False, True, False]
        assert values(grid.rows[1]) == ["1", "2", "3"]

    def test_to_text(self):
        old = "| A | C |\n| --- | --- |\n| 1 | 3 |\n"
        table = TableModel.from_cells(["A", "B", "C"], [["1", "2", "3"]])

        text = TableDiffer().reconcile(old, table).to_text()

        assert text.splitlines() == [
            "  | A | B | C |",
            f"- | A | {PLACEHOLDER_GLYPH} | C |",
            f"- | 1 | {PLACEHOLDER_GLYPH} | 3 |",
            "+ | 1 | 2 | 3 |",
        ]

    def test_to_text_marks_modified_cells(self, sample_table, sample_markdown):
        sample_table.rows[0][1] = "4"

        text = TableDiffer().reconcile(sample_markdown, sample_table).to_text()

        assert "~ | apple | *4* | 1.20 |" in text.splitlines()
