"""Locate and parse pipe tables in Markdown text."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..errors import TableParseError
from .cells import is_separator_row, parse_alignment, parse_row_cells

logger = logging.getLogger(__name__)


@dataclass
class ParsedTable:
    """A pipe table as found in Markdown text."""

    headers: list[str]
    alignment: list[str]
    rows: list[list[str]]
    row_lines: list[str] = field(default_factory=list)
    start_line: int = 0
    end_line: int = 0

    @property
    def header_line_present(self) -> bool:
        return bool(self.headers)


def _is_table_line(line: str) -> bool:
    return "|" in line and bool(line.strip())


def find_table_start(lines: list[str]) -> Optional[int]:
    """Return the index of the first header line followed by a separator line."""
    for index in range(len(lines) - 1):
        if _is_table_line(lines[index]) and not is_separator_row(lines[index]):
            if is_separator_row(lines[index + 1]):
                return index
    return None


def parse_markdown_table(text: str) -> ParsedTable:
    """
    Parse the first pipe table in Markdown text.

    The table starts at a header line directly followed by a separator line
    and ends at the first line that is not a table row.

    Raises:
        TableParseError: If the text contains no pipe table.
    """
    lines = text.splitlines()
    start = find_table_start(lines)
    if start is None:
        raise TableParseError("No Markdown table found")

    headers = parse_row_cells(lines[start])
    alignment = [parse_alignment(cell) for cell in parse_row_cells(lines[start + 1])]
    alignment = (alignment + ["left"] * len(headers))[: len(headers)]

    rows = []
    row_lines = []
    end = start + 1
    for index in range(start + 2, len(lines)):
        line = lines[index]
        if not _is_table_line(line):
            break
        row_lines.append(line)
        rows.append(parse_row_cells(line))
        end = index

    ragged = [i for i, row in enumerate(rows) if len(row) != len(headers)]
    if ragged:
        logger.warning(f"Table has {len(ragged)} row(s) whose width differs from the header")

    return ParsedTable(
        headers=headers,
        alignment=alignment,
        rows=rows,
        row_lines=row_lines,
        start_line=start,
        end_line=end,
    )


def parse_row_lines(text: str) -> ParsedTable:
    """
    Parse Markdown text that may hold only data rows.

    Used for prior snapshots where the header line was not captured: when no
    header/separator pair is found, every pipe line is treated as a data row
    and ``headers`` is left empty.
    """
    try:
        return parse_markdown_table(text)
    except TableParseError:
        row_lines = [
            line for line in text.splitlines()
            if _is_table_line(line) and not is_separator_row(line)
        ]
        logger.debug(f"No header line found, treating {len(row_lines)} line(s) as data rows")
        return ParsedTable(
            headers=[],
            alignment=[],
            rows=[parse_row_cells(line) for line in row_lines],
            row_lines=row_lines,
        )
