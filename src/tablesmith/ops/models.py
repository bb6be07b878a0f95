"""Data models for table edit operations."""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..table.models import ColumnAlignment, TableModel


class OperationType(str, Enum):
    """Supported edit operation kinds."""

    UPDATE_CELL = "update_cell"
    BULK_UPDATE_CELLS = "bulk_update_cells"
    UPDATE_HEADER = "update_header"
    ADD_ROW = "add_row"
    DELETE_ROWS = "delete_rows"
    INSERT_ROWS = "insert_rows"
    ADD_COLUMN = "add_column"
    DELETE_COLUMNS = "delete_columns"
    INSERT_COLUMNS = "insert_columns"
    SORT_ROWS = "sort_rows"
    REORDER_ROWS = "reorder_rows"
    MOVE_ROW = "move_row"
    MOVE_COLUMN = "move_column"


class _Operation(BaseModel):
    """Base for edit operations; instances are immutable."""

    model_config = ConfigDict(frozen=True)


class CellChange(_Operation):
    """A value written to one cell."""

    row: int
    col: int
    value: str


class IndexedRow(_Operation):
    """A row and the index it occupies after insertion."""

    index: int
    cells: tuple[str, ...]


class IndexedColumn(_Operation):
    """A column and the index it occupies after insertion."""

    index: int
    header: str
    alignment: ColumnAlignment = "left"
    cells: tuple[str, ...]


class UpdateCell(_Operation):
    kind: Literal["update_cell"] = "update_cell"
    row: int
    col: int
    value: str


class BulkUpdateCells(_Operation):
    """Several cell writes applied in order, e.g. a paste."""

    kind: Literal["bulk_update_cells"] = "bulk_update_cells"
    updates: tuple[CellChange, ...]


class UpdateHeader(_Operation):
    kind: Literal["update_header"] = "update_header"
    col: int
    value: str


class AddRow(_Operation):
    """Insert ``count`` empty rows at ``index`` (end of table when omitted)."""

    kind: Literal["add_row"] = "add_row"
    index: Optional[int] = None
    count: int = Field(default=1, ge=1)


class DeleteRows(_Operation):
    kind: Literal["delete_rows"] = "delete_rows"
    indices: tuple[int, ...]


class InsertRows(_Operation):
    """Re-insert rows with known content; the inverse of a row deletion."""

    kind: Literal["insert_rows"] = "insert_rows"
    rows: tuple[IndexedRow, ...]


class AddColumn(_Operation):
    """Insert ``count`` empty columns at ``index`` (end of table when omitted)."""

    kind: Literal["add_column"] = "add_column"
    index: Optional[int] = None
    count: int = Field(default=1, ge=1)
    header: Optional[str] = None


class DeleteColumns(_Operation):
    kind: Literal["delete_columns"] = "delete_columns"
    indices: tuple[int, ...]


class InsertColumns(_Operation):
    """Re-insert columns with known content; the inverse of a column deletion."""

    kind: Literal["insert_columns"] = "insert_columns"
    columns: tuple[IndexedColumn, ...]


class SortRows(_Operation):
    kind: Literal["sort_rows"] = "sort_rows"
    column: int
    direction: Literal["asc", "desc", "none"] = "asc"


class ReorderRows(_Operation):
    """Rearrange rows so that new row ``i`` is old row ``order[i]``."""

    kind: Literal["reorder_rows"] = "reorder_rows"
    order: tuple[int, ...]


class MoveRow(_Operation):
    kind: Literal["move_row"] = "move_row"
    from_index: int
    to_index: int


class MoveColumn(_Operation):
    kind: Literal["move_column"] = "move_column"
    from_index: int
    to_index: int


EditOperation = Annotated[
    Union[
        UpdateCell,
        BulkUpdateCells,
        UpdateHeader,
        AddRow,
        DeleteRows,
        InsertRows,
        AddColumn,
        DeleteColumns,
        InsertColumns,
        SortRows,
        ReorderRows,
        MoveRow,
        MoveColumn,
    ],
    Field(discriminator="kind"),
]


class EditResult(BaseModel):
    """Result of applying an edit, undo or redo to a session."""

    success: bool
    action: str
    operation: Optional[EditOperation] = None
    errors: list[str] = Field(default_factory=list)
    message: str = ""
    table: Optional[TableModel] = None
    can_undo: bool = False
    can_redo: bool = False
    applied_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
