"""Edit session: one table, its history and its diff views."""

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Iterator, Optional

from pydantic import ValidationError

from ..diff import ReconciledGrid, TableDiff, TableDiffer
from ..diff.differ import OldTable
from ..errors import InvalidCommandError, InvalidOperationError, UnknownCommandError
from ..table.models import TableModel
from .commands import CommandMessage, is_history_command, parse_command
from .history import HistoryResult, UndoRedoManager
from .models import EditOperation, EditResult

logger = logging.getLogger(__name__)

ChangeListener = Callable[[TableModel], None]


class TableEditSession:
    """
    Editing session over a single table.

    Every edit goes through ``execute`` so that it is validated, applied,
    recorded for undo and announced to change listeners. Listeners receive a
    snapshot of the table, never the live model.
    """

    def __init__(
        self,
        table: TableModel,
        session_id: Optional[str] = None,
        max_history: Optional[int] = None,
        differ: Optional[TableDiffer] = None,
    ):
        """
        Initialize the session.

        Args:
            table: The table to edit (owned by the session from now on)
            session_id: Session identifier (generated if not provided)
            max_history: Undo stack capacity (settings default)
            differ: Differ used for diff/reconcile views
        """
        self.session_id = session_id or str(uuid.uuid4())
        self.table = table
        self.history = UndoRedoManager(table, max_history, on_change=self._notify_listeners)
        self.differ = differ or TableDiffer()
        self.created_at = datetime.now(timezone.utc)
        self._listeners: list[ChangeListener] = []

        logger.info(
            f"Session {self.session_id} opened on a "
            f"{table.row_count}x{table.column_count} table"
        )

    @classmethod
    def from_markdown(cls, text: str, **kwargs) -> "TableEditSession":
        return cls(TableModel.from_markdown(text), **kwargs)

    # Editing

    def execute(self, operation: EditOperation, label: Optional[str] = None) -> EditResult:
        """
        Apply an edit operation and record it for undo.

        Returns:
            EditResult; a rejected operation leaves the table and the history
            unchanged and is reported with ``success=False``
        """
        try:
            inverse = self.table.apply(operation)
        except InvalidOperationError as e:
            logger.warning(f"Session {self.session_id}: rejected {operation.kind}: {e}")
            return self._result(False, operation.kind, operation=operation, errors=[str(e)])

        self.history.record_operation(operation, inverse, label)
        self._notify_listeners(self.table.snapshot())
        logger.info(f"Session {self.session_id}: applied {operation.kind}")
        return self._result(True, operation.kind, operation=operation, message=f"Applied {operation.kind}")

    def execute_command(self, message: dict[str, Any]) -> EditResult:
        """
        Handle an inbound ``{"command": ..., "data": {...}}`` message.

        ``undo`` and ``redo`` are routed to the history; every other command
        is mapped onto an edit operation.
        """
        try:
            parsed = CommandMessage.model_validate(message)
        except ValidationError as e:
            return self._result(False, "command", errors=[f"Malformed command message: {e}"])

        if is_history_command(parsed.command):
            return self.undo() if parsed.command == "undo" else self.redo()

        try:
            operation = parse_command(parsed.command, parsed.data)
        except (UnknownCommandError, InvalidCommandError) as e:
            logger.warning(f"Session {self.session_id}: {e}")
            return self._result(False, parsed.command, errors=[str(e)])

        return self.execute(operation)

    def undo(self) -> EditResult:
        return self._from_history(self.history.undo())

    def redo(self) -> EditResult:
        return self._from_history(self.history.redo())

    @contextmanager
    def group(self, label: str = "group") -> Iterator["TableEditSession"]:
        """Record every edit made inside the ``with`` block as one undo step."""
        with self.history.group(label):
            yield self

    # Views

    def snapshot(self) -> TableModel:
        return self.table.snapshot()

    def to_markdown(self) -> str:
        return self.table.to_markdown()

    def diff_against(self, old: OldTable) -> TableDiff:
        """Diff an old version (Markdown or TableModel) against the current table."""
        return self.differ.diff(old, self.snapshot())

    def reconcile_against(self, old: OldTable) -> ReconciledGrid:
        """Reconcile an old version with the current table into an annotated grid."""
        return self.differ.reconcile(old, self.snapshot())

    def get_state(self) -> dict:
        return {
            "session_id": self.session_id,
            "table": self.snapshot(),
            "markdown": self.to_markdown(),
            "can_undo": self.history.can_undo(),
            "can_redo": self.history.can_redo(),
            "undo_label": self.history.get_undo_label(),
            "redo_label": self.history.get_redo_label(),
            "history": self.history.get_stats(),
            "created_at": self.created_at,
        }

    # Change listeners

    def add_change_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def remove_change_listener(self, listener: ChangeListener) -> bool:
        if listener in self._listeners:
            self._listeners.remove(listener)
            return True
        return False

    def _notify_listeners(self, snapshot: TableModel) -> None:
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                # Listener failures never roll back an applied edit
                logger.exception(f"Session {self.session_id}: change listener failed")

    def _from_history(self, result: HistoryResult) -> EditResult:
        if not result.applied:
            logger.info(f"Session {self.session_id}: {result.action} not applied: {result.message}")
        return self._result(
            result.applied,
            result.action,
            errors=result.errors,
            message=result.message,
        )

    def _result(
        self,
        success: bool,
        action: str,
        operation: Optional[EditOperation] = None,
        errors: Optional[list[str]] = None,
        message: str = "",
    ) -> EditResult:
        return EditResult(
            success=success,
            action=action,
            operation=operation,
            errors=errors or [],
            message=message,
            table=self.snapshot(),
            can_undo=self.history.can_undo(),
            can_redo=self.history.can_redo(),
        )
