"""Undo/redo history for table edits."""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterator, Optional

from ..config import settings
from ..errors import HistoryUnderflowError, InvalidOperationError
from ..table.models import TableModel
from .models import EditOperation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistoryEntry:
    """One undoable user action: one or more operations applied together."""

    sequence: int
    label: str
    operations: tuple[EditOperation, ...]
    inverses: tuple[EditOperation, ...]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class HistoryResult:
    """Outcome of an undo or redo request."""

    applied: bool
    action: str
    label: str = ""
    message: str = ""
    errors: list[str] = field(default_factory=list)


class UndoRedoManager:
    """
    Two-stack edit history over a single table.

    Entries move between the undo and redo stacks; no entry is ever held by
    both. The undo stack is capped at ``max_history`` entries and the oldest
    are dropped first. Each entry carries its own inverses, so eviction never
    affects the entries that remain.
    """

    def __init__(
        self,
        table: TableModel,
        max_history: Optional[int] = None,
        on_change: Optional[Callable[[TableModel], None]] = None,
    ):
        """
        Initialize the history.

        Args:
            table: The table that undo/redo applies to
            max_history: Maximum number of undo entries (settings default)
            on_change: Called with a table snapshot after every undo/redo

        Raises:
            ValueError: If max_history is below 1
        """
        if max_history is None:
            max_history = settings.history_max_size
        if max_history < 1:
            raise ValueError(f"max_history must be at least 1, got {max_history}")

        self.table = table
        self.max_history = max_history
        self._on_change = on_change
        self._undo_stack: list[HistoryEntry] = []
        self._redo_stack: list[HistoryEntry] = []
        self._sequence = 0

        self._group_depth = 0
        self._group_label = ""
        self._group_operations: list[EditOperation] = []
        self._group_inverses: list[EditOperation] = []

    # Recording

    def next_sequence(self) -> int:
        self._sequence += 1
        return self._sequence

    def record(self, entry: HistoryEntry) -> None:
        """Push an entry onto the undo stack and invalidate the redo stack."""
        self._undo_stack.append(entry)
        self._redo_stack.clear()

        while len(self._undo_stack) > self.max_history:
            evicted = self._undo_stack.pop(0)
            logger.debug(f"Evicted history entry {evicted.sequence} ({evicted.label})")

    def record_operation(
        self,
        operation: EditOperation,
        inverse: EditOperation,
        label: Optional[str] = None,
    ) -> None:
        """Record an operation that has already been applied to the table."""
        if self.in_group:
            self._group_operations.append(operation)
            self._group_inverses.append(inverse)
            return

        self.record(
            HistoryEntry(
                sequence=self.next_sequence(),
                label=label or operation.kind,
                operations=(operation,),
                inverses=(inverse,),
            )
        )

    # Grouping

    @property
    def in_group(self) -> bool:
        return self._group_depth > 0

    def group_start(self, label: str = "group") -> None:
        """Start coalescing recorded operations into a single entry."""
        if self._group_depth == 0:
            self._group_label = label
            self._group_operations = []
            self._group_inverses = []
        self._group_depth += 1

    def group_end(self) -> Optional[HistoryEntry]:
        """
        Close the current group.

        Returns:
            The recorded entry when the outermost group closes with at least
            one operation, otherwise None
        """
        if self._group_depth == 0:
            logger.warning("group_end() called without a matching group_start()")
            return None

        self._group_depth -= 1
        if self._group_depth > 0 or not self._group_operations:
            return None

        entry = HistoryEntry(
            sequence=self.next_sequence(),
            label=self._group_label,
            operations=tuple(self._group_operations),
            inverses=tuple(self._group_inverses),
        )
        self._group_operations = []
        self._group_inverses = []
        self.record(entry)
        logger.debug(f"Recorded group '{entry.label}' with {len(entry.operations)} operation(s)")
        return entry

    def abandon_group(self) -> int:
        """
        Roll back every operation of the open group and record nothing.

        Returns:
            Number of operations rolled back
        """
        if self._group_depth == 0:
            return 0

        inverses = list(self._group_inverses)
        for inverse in reversed(inverses):
            self.table.apply(inverse)

        self._group_depth = 0
        self._group_operations = []
        self._group_inverses = []
        if inverses:
            self._notify()
        logger.info(f"Abandoned group '{self._group_label}' ({len(inverses)} operation(s))")
        return len(inverses)

    @contextmanager
    def group(self, label: str = "group") -> Iterator["UndoRedoManager"]:
        """Record everything inside the ``with`` block as one entry."""
        self.group_start(label)
        try:
            yield self
        except Exception:
            self.abandon_group()
            raise
        self.group_end()

    # Undo / redo

    def can_undo(self) -> bool:
        return len(self._undo_stack) > 0

    def can_redo(self) -> bool:
        return len(self._redo_stack) > 0

    def undo(self) -> HistoryResult:
        """Revert the most recent entry, last-applied operation first."""
        try:
            entry = self._pop(self._undo_stack, "undo")
        except HistoryUnderflowError as e:
            return HistoryResult(applied=False, action="undo", message=str(e))

        try:
            self._run(entry.inverses[::-1])
        except InvalidOperationError as e:
            self._undo_stack.append(entry)
            logger.error(f"Undo of entry {entry.sequence} failed: {e}")
            return HistoryResult(
                applied=False, action="undo", label=entry.label,
                message="Undo failed", errors=[str(e)],
            )

        self._redo_stack.append(entry)
        self._notify()
        logger.info(f"Undid '{entry.label}' (entry {entry.sequence})")
        return HistoryResult(
            applied=True, action="undo", label=entry.label, message=f"Undid {entry.label}"
        )

    def redo(self) -> HistoryResult:
        """Re-apply the most recently undone entry in its original order."""
        try:
            entry = self._pop(self._redo_stack, "redo")
        except HistoryUnderflowError as e:
            return HistoryResult(applied=False, action="redo", message=str(e))

        try:
            inverses = self._run(entry.operations)
        except InvalidOperationError as e:
            self._redo_stack.append(entry)
            logger.error(f"Redo of entry {entry.sequence} failed: {e}")
            return HistoryResult(
                applied=False, action="redo", label=entry.label,
                message="Redo failed", errors=[str(e)],
            )

        # Fresh inverses, captured from the state the redo was applied to
        self._undo_stack.append(
            HistoryEntry(
                sequence=entry.sequence,
                label=entry.label,
                operations=entry.operations,
                inverses=tuple(inverses),
                timestamp=entry.timestamp,
            )
        )
        self._notify()
        logger.info(f"Redid '{entry.label}' (entry {entry.sequence})")
        return HistoryResult(
            applied=True, action="redo", label=entry.label, message=f"Redid {entry.label}"
        )

    def _pop(self, stack: list[HistoryEntry], action: str) -> HistoryEntry:
        if self.in_group:
            raise HistoryUnderflowError(f"Cannot {action} while a group is open")
        if not stack:
            raise HistoryUnderflowError(f"Nothing to {action}")
        return stack.pop()

    def _run(self, operations) -> list[EditOperation]:
        """Apply operations in order; on failure roll back the ones already applied."""
        applied: list[EditOperation] = []
        try:
            for operation in operations:
                applied.append(self.table.apply(operation))
        except InvalidOperationError:
            for inverse in reversed(applied):
                self.table.apply(inverse)
            raise
        return applied

    # Introspection

    def get_undo_label(self) -> str:
        return self._undo_stack[-1].label if self._undo_stack else ""

    def get_redo_label(self) -> str:
        return self._redo_stack[-1].label if self._redo_stack else ""

    def get_stats(self) -> dict:
        return {
            "undo_count": len(self._undo_stack),
            "redo_count": len(self._redo_stack),
            "max_history": self.max_history,
            "in_group": self.in_group,
        }

    def clear(self) -> None:
        """Drop all undo/redo history."""
        self._undo_stack.clear()
        self._redo_stack.clear()

    def _notify(self) -> None:
        if self._on_change:
            self._on_change(self.table.snapshot())
