"""Merge a table diff with the current table into an annotated grid."""

import logging
from typing import Optional

from ..config import settings
from ..table.models import TableModel
from .columns import ColumnDiffComputer
from .headers import headers_equal
from .models import (
    DELETED_COLUMN_TITLE,
    PLACEHOLDER_TITLE,
    ColumnDiff,
    ColumnSlot,
    ReconciledCell,
    ReconciledGrid,
    ReconciledRow,
    RowDiffEntry,
)

logger = logging.getLogger(__name__)


class Reconciler:
    """
    Builds a ReconciledGrid from the current table and a diff.

    Deleted rows are laid out over the merged old/new column layout: their
    own cells go to every column that existed in the old layout (kept or
    deleted), and a placeholder cell fills every column that was added
    since. Rows that still exist are taken from the current table.
    """

    def __init__(
        self,
        align_current_rows: Optional[bool] = None,
        column_computer: Optional[ColumnDiffComputer] = None,
    ):
        self.align_current_rows = (
            settings.align_current_rows_to_old_layout
            if align_current_rows is None
            else align_current_rows
        )
        self.column_computer = column_computer or ColumnDiffComputer()

    def reconcile(
        self,
        table: TableModel,
        column_diff: ColumnDiff,
        entries: list[RowDiffEntry],
    ) -> ReconciledGrid:
        """
        Reconcile row diff entries with the current table.

        Args:
            table: The current table (read only)
            column_diff: Column diff between the old layout and ``table``
            entries: Row diff entries in merged order

        Returns:
            The annotated grid
        """
        entry_layouts: dict[tuple[str, ...], list[ColumnSlot]] = {}
        rows = []

        for entry in entries:
            if entry.status == "deleted":
                layout = self._layout_for(entry, table, column_diff, entry_layouts)
                rows.append(
                    ReconciledRow(
                        status="deleted",
                        old_index=entry.old_index,
                        cells=self._old_cells(entry.old_cells, layout, entry.old_index),
                    )
                )
            else:
                rows.append(self._current_row(table, column_diff.layout, entry))

        deleted_header = None
        if column_diff.has_changes and column_diff.old_headers:
            deleted_header = ReconciledRow(
                status="deleted",
                cells=self._old_cells(column_diff.old_headers, column_diff.layout, None),
            )

        logger.debug(
            f"Reconciled {len(rows)} row(s) over {len(column_diff.layout)} layout column(s)"
        )
        return ReconciledGrid(
            headers=list(table.headers),
            layout=column_diff.layout,
            column_diff=column_diff,
            rows=rows,
            deleted_header=deleted_header,
            aligned_to_layout=self.align_current_rows,
        )

    def _layout_for(
        self,
        entry: RowDiffEntry,
        table: TableModel,
        column_diff: ColumnDiff,
        cache: dict[tuple[str, ...], list[ColumnSlot]],
    ) -> list[ColumnSlot]:
        """Layout for a deleted row, honouring headers recorded on the row itself."""
        if entry.old_headers is None or not column_diff.old_headers:
            return column_diff.layout

        ignore_case = self.column_computer.ignore_case
        if len(entry.old_headers) == len(column_diff.old_headers) and all(
            headers_equal(own, shared, ignore_case=ignore_case)
            for own, shared in zip(entry.old_headers, column_diff.old_headers)
        ):
            return column_diff.layout

        key = tuple(entry.old_headers)
        if key not in cache:
            logger.debug(f"Row {entry.old_index} has its own old headers, computing its column diff")
            cache[key] = self.column_computer.compute(entry.old_headers, table.headers).layout
        return cache[key]

    def _old_cells(
        self,
        values: list[str],
        layout: list[ColumnSlot],
        old_index: Optional[int],
    ) -> list[ReconciledCell]:
        old_width = sum(1 for slot in layout if slot.old_index is not None)
        if len(values) != old_width:
            logger.warning(
                f"Old row {old_index} has {len(values)} cell(s), expected {old_width}; "
                f"padding/truncating"
            )
            values = (list(values) + [""] * old_width)[:old_width]

        cells = []
        for slot in layout:
            if slot.old_index is None:
                cells.append(
                    ReconciledCell(column_status="added", placeholder=True, title=PLACEHOLDER_TITLE)
                )
            else:
                cells.append(ReconciledCell(value=values[slot.old_index], column_status=slot.status))
        return cells

    def _current_row(
        self,
        table: TableModel,
        layout: list[ColumnSlot],
        entry: RowDiffEntry,
    ) -> ReconciledRow:
        values = table.rows[entry.new_index]
        changed = set(entry.changed_columns) if entry.status == "modified" else set()
        status_by_new = {slot.new_index: slot.status for slot in layout if slot.new_index is not None}

        cells = []
        if self.align_current_rows:
            for slot in layout:
                if slot.new_index is None:
                    cells.append(
                        ReconciledCell(
                            column_status="deleted", placeholder=True, title=DELETED_COLUMN_TITLE
                        )
                    )
                else:
                    cells.append(
                        ReconciledCell(
                            value=values[slot.new_index],
                            column_status=slot.status,
                            changed=slot.new_index in changed,
                        )
                    )
        else:
            for index, value in enumerate(values):
                cells.append(
                    ReconciledCell(
                        value=value,
                        column_status=status_by_new.get(index, "kept"),
                        changed=index in changed,
                    )
                )

        return ReconciledRow(
            status=entry.status,
            old_index=entry.old_index,
            new_index=entry.new_index,
            cells=cells,
        )
