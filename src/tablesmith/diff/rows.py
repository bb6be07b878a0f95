"""Row-level diff of old serialized rows against a current table."""

import logging
from typing import Optional

from ..config import settings
from ..table.cells import parse_row_cells
from ..table.models import TableModel
from .alignment import align_sequences, pair_gaps
from .models import RowDiffEntry

logger = logging.getLogger(__name__)


class RowDiffComputer:
    """
    Aligns old rows with the rows of the current table.

    Two rows are the same row when their parsed cells are equal. Within a
    run of unmatched rows, a deleted and an added row with the same number
    of cells are paired in order and reported as ``modified``.
    """

    def __init__(self, pair_modified: Optional[bool] = None, trim_cells: Optional[bool] = None):
        self.pair_modified = settings.pair_modified_rows if pair_modified is None else pair_modified
        self.trim_cells = settings.trim_cells if trim_cells is None else trim_cells

    def compute(
        self,
        old_lines: list[str],
        new_table: TableModel,
        old_headers: Optional[list[str]] = None,
    ) -> list[RowDiffEntry]:
        """
        Diff old row lines against the current table.

        Args:
            old_lines: Old data rows, one pipe-delimited line each
            new_table: The current table
            old_headers: Header row the old lines were written against;
                attached to deleted entries

        Returns:
            Entries in merged order; deletions precede additions inside a gap
        """
        # Both sides go through the same parser so whitespace and escapes
        # compare alike.
        old_rows = [parse_row_cells(line, trim_cells=self.trim_cells) for line in old_lines]
        new_rows = [
            parse_row_cells(line, trim_cells=self.trim_cells) for line in new_table.row_lines()
        ]

        alignment = align_sequences(
            [tuple(row) for row in old_rows], [tuple(row) for row in new_rows]
        )
        if alignment.ambiguities:
            logger.debug(f"{len(alignment.ambiguities)} duplicate row match(es) resolved by position")

        pairs = alignment.pairs
        modified: set[tuple[int, int]] = set()
        if self.pair_modified:
            pairs, modified = pair_gaps(
                alignment, lambda o, n: len(old_rows[o]) == len(new_rows[n])
            )

        entries = []
        for pair in pairs:
            if pair.status == "added":
                entries.append(RowDiffEntry(status="added", new_index=pair.new_index))
                continue

            old_cells = old_rows[pair.old_index]
            common = dict(
                old_index=pair.old_index,
                old_content=old_lines[pair.old_index],
                old_cells=old_cells,
            )
            if pair.status == "deleted":
                entries.append(
                    RowDiffEntry(
                        status="deleted",
                        old_headers=list(old_headers) if old_headers is not None else None,
                        **common,
                    )
                )
            elif (pair.old_index, pair.new_index) in modified:
                new_cells = new_rows[pair.new_index]
                changed = [i for i, (a, b) in enumerate(zip(old_cells, new_cells)) if a != b]
                entries.append(
                    RowDiffEntry(
                        status="modified",
                        new_index=pair.new_index,
                        changed_columns=changed,
                        **common,
                    )
                )
            else:
                entries.append(RowDiffEntry(status="kept", new_index=pair.new_index, **common))

        logger.debug(
            f"Row diff {len(old_rows)} -> {len(new_rows)}: "
            f"{sum(e.status == 'added' for e in entries)} added, "
            f"{sum(e.status == 'deleted' for e in entries)} deleted, "
            f"{len(modified)} modified"
        )
        return entries
