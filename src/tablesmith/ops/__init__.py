"""Table edit operations, undo/redo history and edit sessions."""

from .apply import apply_operation
from .commands import CommandMessage, parse_command, parse_message
from .engine import TableEditSession
from .history import HistoryEntry, HistoryResult, UndoRedoManager
from .models import (
    AddColumn,
    AddRow,
    BulkUpdateCells,
    CellChange,
    DeleteColumns,
    DeleteRows,
    EditOperation,
    EditResult,
    IndexedColumn,
    IndexedRow,
    InsertColumns,
    InsertRows,
    MoveColumn,
    MoveRow,
    OperationType,
    ReorderRows,
    SortRows,
    UpdateCell,
    UpdateHeader,
)
from .sessions import SessionStore

__all__ = [
    "apply_operation",
    "CommandMessage",
    "parse_command",
    "parse_message",
    "TableEditSession",
    "HistoryEntry",
    "HistoryResult",
    "UndoRedoManager",
    "SessionStore",
    "OperationType",
    "EditOperation",
    "EditResult",
    # Operations
    "UpdateCell",
    "BulkUpdateCells",
    "CellChange",
    "UpdateHeader",
    "AddRow",
    "DeleteRows",
    "InsertRows",
    "IndexedRow",
    "AddColumn",
    "DeleteColumns",
    "InsertColumns",
    "IndexedColumn",
    "SortRows",
    "ReorderRows",
    "MoveRow",
    "MoveColumn",
]
