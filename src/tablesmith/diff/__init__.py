"""Structural diffs of table versions and their reconciliation."""

from .alignment import AlignedPair, Alignment, Ambiguity, align_sequences, pair_gaps
from .columns import ColumnDiffComputer
from .differ import TableDiffer
from .headers import header_similarity, headers_equal, normalize_header
from .models import (
    ColumnDiff,
    ColumnSlot,
    ReconciledCell,
    ReconciledGrid,
    ReconciledRow,
    RenamedColumn,
    RowDiffEntry,
    TableDiff,
)
from .reconcile import Reconciler
from .rows import RowDiffComputer

__all__ = [
    "AlignedPair",
    "Alignment",
    "Ambiguity",
    "align_sequences",
    "pair_gaps",
    "ColumnDiffComputer",
    "TableDiffer",
    "header_similarity",
    "headers_equal",
    "normalize_header",
    "ColumnDiff",
    "ColumnSlot",
    "ReconciledCell",
    "ReconciledGrid",
    "ReconciledRow",
    "RenamedColumn",
    "RowDiffEntry",
    "TableDiff",
    "Reconciler",
    "RowDiffComputer",
]
