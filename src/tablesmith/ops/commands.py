"""Map inbound editor commands onto edit operations."""

import logging
from typing import Any, Callable, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from ..errors import InvalidCommandError, UnknownCommandError
from .models import (
    AddColumn,
    AddRow,
    BulkUpdateCells,
    CellChange,
    DeleteColumns,
    DeleteRows,
    EditOperation,
    MoveColumn,
    MoveRow,
    SortRows,
    UpdateCell,
    UpdateHeader,
)

logger = logging.getLogger(__name__)

HISTORY_COMMANDS = {"undo", "redo"}


class CommandMessage(BaseModel):
    """A message as sent by the editor surface."""

    command: str
    data: dict[str, Any] = Field(default_factory=dict)


class _CommandData(BaseModel):
    """Payload base: accepts camelCase keys (``fromIndex``) or snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class UpdateCellData(_CommandData):
    row: int
    col: int
    value: str


class BulkUpdateCellsData(_CommandData):
    updates: list[UpdateCellData]


class UpdateHeaderData(_CommandData):
    col: int
    value: str


class AddRowData(_CommandData):
    index: Optional[int] = None
    count: int = Field(default=1, ge=1)


class DeleteRowsData(_CommandData):
    indices: list[int]


class AddColumnData(_CommandData):
    index: Optional[int] = None
    count: int = Field(default=1, ge=1)
    header: Optional[str] = None


class DeleteColumnsData(_CommandData):
    indices: list[int]


class SortData(_CommandData):
    column: int
    direction: Literal["asc", "desc", "none"]


class MoveData(_CommandData):
    from_index: int
    to_index: int


def _update_cell(data: UpdateCellData) -> EditOperation:
    return UpdateCell(row=data.row, col=data.col, value=data.value)


def _bulk_update_cells(data: BulkUpdateCellsData) -> EditOperation:
    return BulkUpdateCells(
        updates=tuple(CellChange(row=u.row, col=u.col, value=u.value) for u in data.updates)
    )


def _update_header(data: UpdateHeaderData) -> EditOperation:
    return UpdateHeader(col=data.col, value=data.value)


def _add_row(data: AddRowData) -> EditOperation:
    return AddRow(index=data.index, count=data.count)


def _delete_rows(data: DeleteRowsData) -> EditOperation:
    return DeleteRows(indices=tuple(data.indices))


def _add_column(data: AddColumnData) -> EditOperation:
    return AddColumn(index=data.index, count=data.count, header=data.header)


def _delete_columns(data: DeleteColumnsData) -> EditOperation:
    return DeleteColumns(indices=tuple(data.indices))


def _sort(data: SortData) -> EditOperation:
    return SortRows(column=data.column, direction=data.direction)


def _move_row(data: MoveData) -> EditOperation:
    return MoveRow(from_index=data.from_index, to_index=data.to_index)


def _move_column(data: MoveData) -> EditOperation:
    return MoveColumn(from_index=data.from_index, to_index=data.to_index)


COMMAND_HANDLERS: dict[str, tuple[type[_CommandData], Callable[[Any], EditOperation]]] = {
    "updateCell": (UpdateCellData, _update_cell),
    "bulkUpdateCells": (BulkUpdateCellsData, _bulk_update_cells),
    "updateHeader": (UpdateHeaderData, _update_header),
    "addRow": (AddRowData, _add_row),
    "deleteRows": (DeleteRowsData, _delete_rows),
    "addColumn": (AddColumnData, _add_column),
    "deleteColumns": (DeleteColumnsData, _delete_columns),
    "sort": (SortData, _sort),
    "moveRow": (MoveData, _move_row),
    "moveColumn": (MoveData, _move_column),
}


def is_history_command(command: str) -> bool:
    return command in HISTORY_COMMANDS


def parse_command(command: str, data: Optional[dict[str, Any]] = None) -> EditOperation:
    """
    Convert an editor command into an edit operation.

    Args:
        command: Command name, e.g. ``"updateCell"``
        data: Command payload, e.g. ``{"row": 0, "col": 1, "value": "x"}``

    Raises:
        UnknownCommandError: If the command has no edit operation
        InvalidCommandError: If the payload does not validate
    """
    handler = COMMAND_HANDLERS.get(command)
    if handler is None:
        raise UnknownCommandError(f"Unknown command: {command}")

    data_model, build = handler
    try:
        payload = data_model.model_validate(data or {})
    except ValidationError as e:
        logger.warning(f"Rejected '{command}' payload: {e.error_count()} error(s)")
        raise InvalidCommandError(f"Invalid data for '{command}': {e}") from e

    return build(payload)


def parse_message(message: dict[str, Any]) -> EditOperation:
    """Convert a ``{"command": ..., "data": {...}}`` message into an operation."""
    try:
        parsed = CommandMessage.model_validate(message)
    except ValidationError as e:
        raise InvalidCommandError(f"Malformed command message: {e}") from e
    return parse_command(parsed.command, parsed.data)
