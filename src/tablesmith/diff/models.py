"""Data models for table diffs and reconciled grids."""

from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

SlotStatus = Literal["kept", "deleted", "added"]
RowStatus = Literal["kept", "modified", "added", "deleted"]
DetectionMethod = Literal["header-comparison", "fallback-end-columns", "no-change"]

PLACEHOLDER_GLYPH = "▨"
PLACEHOLDER_TITLE = "does not exist in old layout"
DELETED_COLUMN_TITLE = "column was deleted"


class ColumnSlot(BaseModel):
    """One column position of the merged old/new layout."""

    status: SlotStatus
    old_index: Optional[int] = None
    new_index: Optional[int] = None
    header: str = ""
    old_header: Optional[str] = None


class RenamedColumn(BaseModel):
    old_index: int
    new_index: int
    old_header: str
    new_header: str
    similarity: float


class ColumnDiff(BaseModel):
    """
    Column-level difference between an old and a new table layout.

    ``added_columns`` holds new-layout indices, ``deleted_columns`` old-layout
    indices. Column counts are always conserved:
    ``new_column_count == old_column_count - len(deleted) + len(added)``.
    """

    old_column_count: int
    new_column_count: int
    added_columns: list[int] = Field(default_factory=list)
    deleted_columns: list[int] = Field(default_factory=list)
    old_headers: list[str] = Field(default_factory=list)
    new_headers: list[str] = Field(default_factory=list)
    column_mapping: dict[int, int] = Field(default_factory=dict)
    renamed_columns: list[RenamedColumn] = Field(default_factory=list)
    layout: list[ColumnSlot] = Field(default_factory=list)
    detection_method: DetectionMethod = "header-comparison"
    confidence: float = 1.0
    warnings: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_conservation(self) -> "ColumnDiff":
        expected = self.old_column_count - len(self.deleted_columns) + len(self.added_columns)
        if self.new_column_count != expected:
            raise ValueError(
                f"Column counts do not add up: {self.old_column_count} old - "
                f"{len(self.deleted_columns)} deleted + {len(self.added_columns)} added "
                f"!= {self.new_column_count} new"
            )
        return self

    @property
    def has_changes(self) -> bool:
        return bool(self.added_columns or self.deleted_columns or self.renamed_columns)

    def new_index_for(self, old_index: int) -> Optional[int]:
        return self.column_mapping.get(old_index)


class RowDiffEntry(BaseModel):
    """One row of the row-level diff, in merged order."""

    status: RowStatus
    old_index: Optional[int] = None
    new_index: Optional[int] = None
    old_content: Optional[str] = None
    old_cells: list[str] = Field(default_factory=list)
    # Header layout the old row was written against, when it differs per row
    old_headers: Optional[list[str]] = None
    changed_columns: list[int] = Field(default_factory=list)


class TableDiff(BaseModel):
    """Column diff plus row diff of one old/new table pair."""

    column_diff: ColumnDiff
    rows: list[RowDiffEntry] = Field(default_factory=list)
    old_row_count: int = 0
    new_row_count: int = 0

    def _with_status(self, status: RowStatus) -> list[RowDiffEntry]:
        return [entry for entry in self.rows if entry.status == status]

    @property
    def added_rows(self) -> list[RowDiffEntry]:
        return self._with_status("added")

    @property
    def deleted_rows(self) -> list[RowDiffEntry]:
        return self._with_status("deleted")

    @property
    def modified_rows(self) -> list[RowDiffEntry]:
        return self._with_status("modified")

    @property
    def has_changes(self) -> bool:
        return self.column_diff.has_changes or any(e.status != "kept" for e in self.rows)

    def get_summary(self) -> dict:
        return {
            "columns_added": len(self.column_diff.added_columns),
            "columns_deleted": len(self.column_diff.deleted_columns),
            "columns_renamed": len(self.column_diff.renamed_columns),
            "rows_added": len(self.added_rows),
            "rows_deleted": len(self.deleted_rows),
            "rows_modified": len(self.modified_rows),
        }


class ReconciledCell(BaseModel):
    value: str = ""
    column_status: SlotStatus = "kept"
    placeholder: bool = False
    changed: bool = False
    title: Optional[str] = None


class ReconciledRow(BaseModel):
    status: RowStatus
    old_index: Optional[int] = None
    new_index: Optional[int] = None
    cells: list[ReconciledCell] = Field(default_factory=list)


class ReconciledGrid(BaseModel):
    """The current table annotated with the rows and columns of a diff."""

    headers: list[str]
    layout: list[ColumnSlot]
    column_diff: ColumnDiff
    rows: list[ReconciledRow] = Field(default_factory=list)
    deleted_header: Optional[ReconciledRow] = None
    # Current rows were rendered over the merged layout instead of the current headers
    aligned_to_layout: bool = False

    def to_text(self) -> str:
        """
        Render the grid as plain text.

        Each line starts with a marker: ``+`` added, ``-`` deleted,
        ``~`` modified, blank for kept. Placeholder cells show a hatch glyph
        and changed cells are wrapped in ``*``.
        """
        headers = [slot.header for slot in self.layout] if self.aligned_to_layout else self.headers
        lines = ["  | " + " | ".join(headers) + " |"]
        if self.deleted_header is not None:
            lines.append(_render_row("-", self.deleted_header))

        markers = {"kept": " ", "modified": "~", "added": "+", "deleted": "-"}
        for row in self.rows:
            lines.append(_render_row(markers[row.status], row))
        return "\n".join(lines) + "\n"


def _render_row(marker: str, row: ReconciledRow) -> str:
    texts = []
    for cell in row.cells:
        if cell.placeholder:
            texts.append(PLACEHOLDER_GLYPH)
        elif cell.changed:
            texts.append(f"*{cell.value}*")
        else:
            texts.append(cell.value)
    return f"{marker} | " + " | ".join(texts) + " |"
