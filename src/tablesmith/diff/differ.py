"""Diff generation for table versions."""

import logging
from typing import Optional, Union

from ..table.cells import count_row_cells
from ..table.markdown import parse_row_lines
from ..table.models import TableModel
from .columns import ColumnDiffComputer
from .models import ColumnDiff, ReconciledGrid, TableDiff
from .reconcile import Reconciler
from .rows import RowDiffComputer

logger = logging.getLogger(__name__)

OldTable = Union[str, TableModel]


class TableDiffer:
    """
    Compares an old version of a table with the current one.

    The old version is either Markdown text (for example a committed copy of
    the file) or a TableModel snapshot.
    """

    def __init__(
        self,
        column_computer: Optional[ColumnDiffComputer] = None,
        row_computer: Optional[RowDiffComputer] = None,
        reconciler: Optional[Reconciler] = None,
    ):
        self.column_computer = column_computer or ColumnDiffComputer()
        self.row_computer = row_computer or RowDiffComputer()
        self.reconciler = reconciler or Reconciler(column_computer=self.column_computer)

    def diff(self, old: OldTable, new_table: TableModel) -> TableDiff:
        """
        Compute the column and row diff of ``old`` against ``new_table``.

        When the old version has no header line only its column count is
        known, and columns are assumed to have changed at the end.
        """
        old_headers, old_lines = self._old_version(old)

        column_diff = self._column_diff(old_headers, old_lines, new_table)
        rows = self.row_computer.compute(old_lines, new_table, old_headers or None)

        result = TableDiff(
            column_diff=column_diff,
            rows=rows,
            old_row_count=len(old_lines),
            new_row_count=new_table.row_count,
        )
        logger.info(f"Table diff: {result.get_summary()}")
        return result

    def reconcile(self, old: OldTable, new_table: TableModel) -> ReconciledGrid:
        """Diff ``old`` against ``new_table`` and merge the result into a grid."""
        result = self.diff(old, new_table)
        return self.reconciler.reconcile(new_table, result.column_diff, result.rows)

    def _old_version(self, old: OldTable) -> tuple[list[str], list[str]]:
        if isinstance(old, TableModel):
            return list(old.headers), old.row_lines()

        parsed = parse_row_lines(old)
        return parsed.headers, parsed.row_lines

    def _column_diff(
        self,
        old_headers: list[str],
        old_lines: list[str],
        new_table: TableModel,
    ) -> ColumnDiff:
        if old_headers:
            return self.column_computer.compute(old_headers, new_table.headers)

        old_count = count_row_cells(old_lines[0]) if old_lines else new_table.column_count
        return self.column_computer.compute_from_counts(
            old_count, new_table.column_count, new_table.headers
        )
