"""Data models for Markdown tables."""

from typing import TYPE_CHECKING, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from ..errors import InvalidOperationError
from .cells import format_row

if TYPE_CHECKING:
    from ..ops.models import EditOperation

ColumnAlignment = Literal["left", "center", "right"]

_SEPARATORS = {
    "left": ":---",
    "center": ":---:",
    "right": "---:",
}


class ValidationResult(BaseModel):
    """Result of checking a table's structure."""

    is_valid: bool
    issues: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class TableModel(BaseModel):
    """
    The grid of a single Markdown table.

    Every row holds exactly one cell per header, and ``alignment`` holds one
    entry per header. The model is mutated only through edit operations
    (see :meth:`apply`).
    """

    headers: list[str] = Field(default_factory=list)
    rows: list[list[str]] = Field(default_factory=list)
    alignment: list[ColumnAlignment] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_grid(self) -> "TableModel":
        if not self.alignment and self.headers:
            self.alignment = ["left"] * len(self.headers)
        if len(self.alignment) != len(self.headers):
            raise InvalidOperationError(
                f"Alignment has {len(self.alignment)} entries, expected {len(self.headers)}"
            )
        for index, row in enumerate(self.rows):
            if len(row) != len(self.headers):
                raise InvalidOperationError(
                    f"Row {index} has {len(row)} cells, expected {len(self.headers)}"
                )
        return self

    @classmethod
    def from_cells(
        cls,
        headers: list[str],
        rows: list[list[str]],
        alignment: Optional[list[ColumnAlignment]] = None,
    ) -> "TableModel":
        """Build a table, padding or truncating ragged rows to the header width."""
        width = len(headers)
        normalized = [(list(row) + [""] * width)[:width] for row in rows]
        return cls(
            headers=list(headers),
            rows=normalized,
            alignment=list(alignment) if alignment else ["left"] * width,
        )

    @classmethod
    def from_markdown(cls, text: str) -> "TableModel":
        """Build a table from the first pipe table found in Markdown text."""
        from .markdown import parse_markdown_table

        parsed = parse_markdown_table(text)
        return cls.from_cells(parsed.headers, parsed.rows, parsed.alignment)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.headers)

    def is_valid_row(self, index: int) -> bool:
        return 0 <= index < len(self.rows)

    def is_valid_column(self, index: int) -> bool:
        return 0 <= index < len(self.headers)

    def is_valid_position(self, row: int, col: int) -> bool:
        return self.is_valid_row(row) and self.is_valid_column(col)

    def cell(self, row: int, col: int) -> str:
        """Return the value at a data-row position."""
        if not self.is_valid_position(row, col):
            raise InvalidOperationError(f"Invalid cell position: row {row}, col {col}")
        return self.rows[row][col]

    def snapshot(self) -> "TableModel":
        """Return a deep copy that shares no lists with this table."""
        return TableModel.model_construct(
            headers=list(self.headers),
            rows=[list(row) for row in self.rows],
            alignment=list(self.alignment),
        )

    def apply(self, operation: "EditOperation") -> "EditOperation":
        """
        Apply an edit operation in place.

        Returns:
            The inverse operation, carrying the values overwritten by this edit

        Raises:
            InvalidOperationError: If the operation does not fit this table.
                The table is left unchanged.
        """
        from ..ops.apply import apply_operation

        return apply_operation(self, operation)

    def apply_inverse(self, inverse: "EditOperation") -> "EditOperation":
        """Apply an inverse returned by :meth:`apply`, restoring the prior state."""
        return self.apply(inverse)

    def to_markdown(self) -> str:
        """Serialize the table as a Markdown pipe table."""
        lines = [format_row(self.headers)]
        lines.append("| " + " | ".join(_SEPARATORS[a] for a in self.alignment) + " |")
        for row in self.rows:
            lines.append(format_row(row))
        return "\n".join(lines) + "\n"

    def row_lines(self) -> list[str]:
        """Serialize each data row as a pipe-delimited line."""
        return [format_row(row) for row in self.rows]

    def validate_structure(self) -> ValidationResult:
        """Check the table for structural problems."""
        issues = []
        warnings = []

        if not self.headers:
            issues.append("Table has no headers")

        for index, header in enumerate(self.headers):
            if not header.strip():
                warnings.append(f"Header {index + 1} is empty")

        for index, row in enumerate(self.rows):
            if len(row) != len(self.headers):
                issues.append(
                    f"Row {index + 1} has {len(row)} columns, expected {len(self.headers)}"
                )

        if len(self.alignment) != len(self.headers):
            issues.append(
                f"Alignment array length ({len(self.alignment)}) doesn't match "
                f"column count ({len(self.headers)})"
            )

        return ValidationResult(is_valid=not issues, issues=issues, warnings=warnings)

    def get_statistics(self) -> dict:
        """Calculate fill statistics for this table."""
        total_cells = len(self.headers) * len(self.rows)
        empty_cells = 0
        column_widths = []

        for col, header in enumerate(self.headers):
            max_width = len(header)
            for row in self.rows:
                value = row[col]
                if not value.strip():
                    empty_cells += 1
                max_width = max(max_width, len(value))
            column_widths.append(max_width)

        return {
            "total_cells": total_cells,
            "empty_cells": empty_cells,
            "fill_rate": (total_cells - empty_cells) / total_cells if total_cells else 0.0,
            "column_widths": column_widths,
            "row_count": len(self.rows),
            "column_count": len(self.headers),
        }
