"""Cell-level parsing of Markdown pipe-table rows.

Escaped pipes (``\\|``) inside a cell are kept as part of the cell value
instead of being treated as column separators.
"""

import re
from typing import Optional

from ..config import settings

ESCAPED_PIPE_PLACEHOLDER = "\x00ESCAPED_PIPE\x00"

SEPARATOR_CELL_PATTERN = re.compile(r"^\s*:?-+:?\s*$")
ESCAPED_PIPE_PATTERN = re.compile(r"\\\|")


def _strip_outer_pipes(line: str) -> str:
    result = line.strip()
    if result.startswith("|"):
        result = result[1:]
    if result.endswith("|"):
        result = result[:-1]
    return result


def parse_row_cells(
    line: str,
    handle_escaped_pipes: Optional[bool] = None,
    trim_cells: Optional[bool] = None,
) -> list[str]:
    """
    Split a pipe-delimited table row into its cell values.

    Args:
        line: Row text, e.g. ``"| a | b \\| c |"``
        handle_escaped_pipes: Treat ``\\|`` as a literal pipe (settings default)
        trim_cells: Strip whitespace around each value (settings default)

    Returns:
        Cell values, e.g. ``["a", "b | c"]``. Lines without a pipe yield ``[]``.
    """
    if handle_escaped_pipes is None:
        handle_escaped_pipes = settings.handle_escaped_pipes
    if trim_cells is None:
        trim_cells = settings.trim_cells

    if not line or "|" not in line:
        return []

    content = line
    if handle_escaped_pipes:
        content = ESCAPED_PIPE_PATTERN.sub(ESCAPED_PIPE_PLACEHOLDER, content)

    stripped = _strip_outer_pipes(content)
    if not stripped:
        return []

    cells = []
    for cell in stripped.split("|"):
        if handle_escaped_pipes:
            cell = cell.replace(ESCAPED_PIPE_PLACEHOLDER, "|")
        if trim_cells:
            cell = cell.strip()
        cells.append(cell)
    return cells


def count_row_cells(line: str, handle_escaped_pipes: Optional[bool] = None) -> int:
    """Count the cells of a pipe-delimited row."""
    return len(parse_row_cells(line, handle_escaped_pipes=handle_escaped_pipes, trim_cells=False))


def is_separator_row(line: str) -> bool:
    """Check whether a row is the header separator (``| --- | :---: |``)."""
    cells = parse_row_cells(line)
    if not cells:
        return False
    return all(SEPARATOR_CELL_PATTERN.match(cell) for cell in cells)


def parse_alignment(cell: str) -> str:
    """Map a separator cell such as ``:---:`` to its column alignment."""
    cell = cell.strip()
    if cell.startswith(":") and cell.endswith(":") and len(cell) > 1:
        return "center"
    if cell.endswith(":"):
        return "right"
    return "left"


def escape_cell(value: str) -> str:
    """Escape a cell value for writing into a pipe row."""
    value = value.replace("\r\n", "<br/>").replace("\n", "<br/>")
    return value.replace("|", r"\|")


def format_row(cells: list[str]) -> str:
    """Serialize cell values into a pipe-delimited row."""
    return "| " + " | ".join(escape_cell(cell) for cell in cells) + " |"
