"""Markdown table models and parsing."""

from .models import TableModel, ValidationResult, ColumnAlignment
from .cells import (
    parse_row_cells,
    count_row_cells,
    is_separator_row,
    escape_cell,
    format_row,
)
from .markdown import ParsedTable, parse_markdown_table, parse_row_lines

__all__ = [
    "TableModel",
    "ValidationResult",
    "ColumnAlignment",
    "parse_row_cells",
    "count_row_cells",
    "is_separator_row",
    "escape_cell",
    "format_row",
    "ParsedTable",
    "parse_markdown_table",
    "parse_row_lines",
]
