"""Apply edit operations to a table and build their inverses."""

import logging
import re
from functools import cmp_to_key
from typing import Optional, assert_never

from ..errors import InvalidOperationError
from ..table.models import TableModel
from .models import (
    AddColumn,
    AddRow,
    BulkUpdateCells,
    CellChange,
    DeleteColumns,
    DeleteRows,
    EditOperation,
    IndexedColumn,
    IndexedRow,
    InsertColumns,
    InsertRows,
    MoveColumn,
    MoveRow,
    ReorderRows,
    SortRows,
    UpdateCell,
    UpdateHeader,
)

logger = logging.getLogger(__name__)

NUMBER_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


def apply_operation(table: TableModel, operation: EditOperation) -> EditOperation:
    """
    Apply an operation to a table in place and return its inverse.

    All validation happens before the first mutation, so a rejected
    operation leaves the table untouched.

    Raises:
        InvalidOperationError: If indices are out of range or the operation
            would break the one-cell-per-header invariant.
    """
    logger.debug(f"Applying {operation.kind} to {table.row_count}x{table.column_count} table")

    match operation:
        case UpdateCell():
            return _update_cell(table, operation)
        case BulkUpdateCells():
            return _bulk_update_cells(table, operation)
        case UpdateHeader():
            return _update_header(table, operation)
        case AddRow():
            return _add_row(table, operation)
        case DeleteRows():
            return _delete_rows(table, operation)
        case InsertRows():
            return _insert_rows(table, operation)
        case AddColumn():
            return _add_column(table, operation)
        case DeleteColumns():
            return _delete_columns(table, operation)
        case InsertColumns():
            return _insert_columns(table, operation)
        case SortRows():
            return _sort_rows(table, operation)
        case ReorderRows():
            return _reorder_rows(table, operation)
        case MoveRow():
            return _move_row(table, operation)
        case MoveColumn():
            return _move_column(table, operation)
        case _:
            assert_never(operation)


def _require_position(table: TableModel, row: int, col: int) -> None:
    if not table.is_valid_position(row, col):
        raise InvalidOperationError(f"Invalid cell position: row {row}, col {col}")


def _require_column(table: TableModel, col: int) -> None:
    if not table.is_valid_column(col):
        raise InvalidOperationError(f"Invalid column index: {col}")


def _unique_sorted(indices: tuple[int, ...], what: str) -> list[int]:
    unique = sorted(set(indices))
    if not unique:
        raise InvalidOperationError(f"No {what} indices given")
    return unique


def _update_cell(table: TableModel, op: UpdateCell) -> UpdateCell:
    _require_position(table, op.row, op.col)
    previous = table.rows[op.row][op.col]
    table.rows[op.row][op.col] = op.value
    return UpdateCell(row=op.row, col=op.col, value=previous)


def _bulk_update_cells(table: TableModel, op: BulkUpdateCells) -> BulkUpdateCells:
    for change in op.updates:
        _require_position(table, change.row, change.col)

    previous = []
    for change in op.updates:
        previous.append(
            CellChange(row=change.row, col=change.col, value=table.rows[change.row][change.col])
        )
        table.rows[change.row][change.col] = change.value

    # Restore in reverse so repeated writes to one cell unwind correctly
    return BulkUpdateCells(updates=tuple(reversed(previous)))


def _update_header(table: TableModel, op: UpdateHeader) -> UpdateHeader:
    _require_column(table, op.col)
    previous = table.headers[op.col]
    table.headers[op.col] = op.value
    return UpdateHeader(col=op.col, value=previous)


def _add_row(table: TableModel, op: AddRow) -> DeleteRows:
    index = op.index if op.index is not None else table.row_count
    if index < 0 or index > table.row_count:
        raise InvalidOperationError(f"Invalid row index: {index}")

    for _ in range(op.count):
        table.rows.insert(index, [""] * table.column_count)

    return DeleteRows(indices=tuple(range(index, index + op.count)))


def _delete_rows(table: TableModel, op: DeleteRows) -> InsertRows:
    indices = _unique_sorted(op.indices, "row")
    for index in indices:
        if not table.is_valid_row(index):
            raise InvalidOperationError(f"Invalid row index: {index}")

    removed = [IndexedRow(index=index, cells=tuple(table.rows[index])) for index in indices]
    for index in reversed(indices):
        del table.rows[index]

    return InsertRows(rows=tuple(removed))


def _insert_rows(table: TableModel, op: InsertRows) -> DeleteRows:
    entries = sorted(op.rows, key=lambda entry: entry.index)
    if len({entry.index for entry in entries}) != len(entries):
        raise InvalidOperationError("Duplicate row indices in insertion")

    for offset, entry in enumerate(entries):
        if entry.index < 0 or entry.index > table.row_count + offset:
            raise InvalidOperationError(f"Invalid row index: {entry.index}")
        if len(entry.cells) != table.column_count:
            raise InvalidOperationError(
                f"Row for index {entry.index} has {len(entry.cells)} cells, "
                f"expected {table.column_count}"
            )

    for entry in entries:
        table.rows.insert(entry.index, list(entry.cells))

    return DeleteRows(indices=tuple(entry.index for entry in entries))


def _add_column(table: TableModel, op: AddColumn) -> DeleteColumns:
    """Insert empty columns; ``header`` names the first of them."""
    index = op.index if op.index is not None else table.column_count
    if index < 0 or index > table.column_count:
        raise InvalidOperationError(f"Invalid column index: {index}")

    for offset in range(op.count):
        position = index + offset
        if offset == 0 and op.header is not None:
            header = op.header
        else:
            header = f"Column {position + 1}"
        table.headers.insert(position, header)
        table.alignment.insert(position, "left")

    for row in table.rows:
        row[index:index] = [""] * op.count

    return DeleteColumns(indices=tuple(range(index, index + op.count)))


def _delete_columns(table: TableModel, op: DeleteColumns) -> InsertColumns:
    indices = _unique_sorted(op.indices, "column")
    for index in indices:
        _require_column(table, index)
    if len(indices) >= table.column_count:
        raise InvalidOperationError("Cannot delete the last column")

    removed = [
        IndexedColumn(
            index=index,
            header=table.headers[index],
            alignment=table.alignment[index],
            cells=tuple(row[index] for row in table.rows),
        )
        for index in indices
    ]

    for index in reversed(indices):
        del table.headers[index]
        del table.alignment[index]
        for row in table.rows:
            del row[index]

    return InsertColumns(columns=tuple(removed))


def _insert_columns(table: TableModel, op: InsertColumns) -> DeleteColumns:
    entries = sorted(op.columns, key=lambda entry: entry.index)
    if len({entry.index for entry in entries}) != len(entries):
        raise InvalidOperationError("Duplicate column indices in insertion")

    for offset, entry in enumerate(entries):
        if entry.index < 0 or entry.index > table.column_count + offset:
            raise InvalidOperationError(f"Invalid column index: {entry.index}")
        if len(entry.cells) != table.row_count:
            raise InvalidOperationError(
                f"Column for index {entry.index} has {len(entry.cells)} cells, "
                f"expected {table.row_count}"
            )

    for entry in entries:
        table.headers.insert(entry.index, entry.header)
        table.alignment.insert(entry.index, entry.alignment)
        for row, value in zip(table.rows, entry.cells):
            row.insert(entry.index, value)

    return DeleteColumns(indices=tuple(entry.index for entry in entries))


def _as_number(value: str) -> Optional[float]:
    if NUMBER_PATTERN.match(value):
        return float(value)
    return None


def _compare_cells(a: str, b: str) -> int:
    """Order cells numerically when both are numbers, otherwise as text."""
    num_a, num_b = _as_number(a), _as_number(b)
    if num_a is not None and num_b is not None:
        return (num_a > num_b) - (num_a < num_b)
    a, b = a.casefold(), b.casefold()
    return (a > b) - (a < b)


def _sort_rows(table: TableModel, op: SortRows) -> ReorderRows:
    _require_column(table, op.column)

    order = list(range(table.row_count))
    if op.direction != "none":
        descending = op.direction == "desc"

        def compare(i: int, j: int) -> int:
            a = table.rows[i][op.column].strip()
            b = table.rows[j][op.column].strip()
            # Empty cells always go last
            if not a or not b:
                return (not a) - (not b)
            result = _compare_cells(a, b)
            return -result if descending else result

        order.sort(key=cmp_to_key(compare))

    table.rows[:] = [table.rows[i] for i in order]
    return ReorderRows(order=tuple(_invert_permutation(order)))


def _invert_permutation(order: list[int]) -> list[int]:
    inverse = [0] * len(order)
    for position, source in enumerate(order):
        inverse[source] = position
    return inverse


def _reorder_rows(table: TableModel, op: ReorderRows) -> ReorderRows:
    if sorted(op.order) != list(range(table.row_count)):
        raise InvalidOperationError(
            f"Row order must be a permutation of {table.row_count} rows"
        )

    order = list(op.order)
    table.rows[:] = [table.rows[i] for i in order]
    return ReorderRows(order=tuple(_invert_permutation(order)))


def _move_row(table: TableModel, op: MoveRow) -> MoveRow:
    if not table.is_valid_row(op.from_index) or not table.is_valid_row(op.to_index):
        raise InvalidOperationError(
            f"Invalid row indices: from {op.from_index}, to {op.to_index}"
        )

    row = table.rows.pop(op.from_index)
    table.rows.insert(op.to_index, row)
    return MoveRow(from_index=op.to_index, to_index=op.from_index)


def _move_column(table: TableModel, op: MoveColumn) -> MoveColumn:
    if not table.is_valid_column(op.from_index) or not table.is_valid_column(op.to_index):
        raise InvalidOperationError(
            f"Invalid column indices: from {op.from_index}, to {op.to_index}"
        )

    def move(items: list) -> None:
        items.insert(op.to_index, items.pop(op.from_index))

    move(table.headers)
    move(table.alignment)
    for row in table.rows:
        move(row)

    return MoveColumn(from_index=op.to_index, to_index=op.from_index)
