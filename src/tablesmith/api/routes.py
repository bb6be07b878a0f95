"""API routes for TableSmith."""

from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ..diff import TableDiffer
from ..errors import InvalidCommandError, InvalidOperationError, TableParseError, UnknownCommandError
from ..ops import CommandMessage, SessionStore, TableEditSession, parse_command
from ..ops.commands import is_history_command
from ..table import TableModel

router = APIRouter()

# Global session store
_session_store: Optional[SessionStore] = None


def get_session_store() -> SessionStore:
    """Get the global session store."""
    global _session_store
    if _session_store is None:
        _session_store = SessionStore()
    return _session_store


class CreateSessionRequest(BaseModel):
    """Open a session from Markdown text or from explicit cells."""

    markdown: Optional[str] = None
    headers: Optional[list[str]] = None
    rows: list[list[str]] = []
    max_history: Optional[int] = Field(default=None, ge=1)


class SessionDiffRequest(BaseModel):
    """Diff an old version of the table against the session's table."""

    old_markdown: str


class DiffRequest(BaseModel):
    """Diff two Markdown versions of a table."""

    old_markdown: str
    new_markdown: str


async def _require_session(session_id: str) -> TableEditSession:
    session = await get_session_store().get_async(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found or has expired")
    return session


def _diff_payload(differ: TableDiffer, old_markdown: str, table: TableModel) -> dict:
    diff = differ.diff(old_markdown, table)
    grid = differ.reconciler.reconcile(table, diff.column_diff, diff.rows)
    return {
        "summary": diff.get_summary(),
        "has_changes": diff.has_changes,
        "diff": diff,
        "grid": grid,
        "text": grid.to_text(),
    }


# Sessions


@router.post("/sessions")
async def create_session(request: CreateSessionRequest):
    """
    Open an edit session.

    Provide either ``markdown`` (the first pipe table is used) or
    ``headers`` with optional ``rows``.
    """
    try:
        if request.markdown is not None:
            table = TableModel.from_markdown(request.markdown)
        elif request.headers is not None:
            table = TableModel.from_cells(request.headers, request.rows)
        else:
            raise HTTPException(status_code=400, detail="Provide markdown or headers")
    except (TableParseError, InvalidOperationError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    session = await get_session_store().create_async(table, request.max_history)
    return session.get_state()


@router.get("/sessions/{session_id}")
async def get_session(session_id: str):
    session = await _require_session(session_id)
    return session.get_state()


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str):
    removed = await get_session_store().remove_async(session_id)
    if not removed:
        raise HTTPException(status_code=404, detail="Session not found")
    return {"success": True}


@router.post("/sessions/{session_id}/commands")
async def execute_command(session_id: str, message: CommandMessage):
    """
    Apply an editor command, e.g. ``{"command": "updateCell", "data": {...}}``.

    Unknown commands and malformed payloads are rejected with 400. A valid
    command that cannot be applied to the table returns ``success: false``.
    """
    session = await _require_session(session_id)

    if is_history_command(message.command):
        return session.undo() if message.command == "undo" else session.redo()

    try:
        operation = parse_command(message.command, message.data)
    except (UnknownCommandError, InvalidCommandError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    return session.execute(operation)


@router.post("/sessions/{session_id}/undo")
async def undo(session_id: str):
    session = await _require_session(session_id)
    return session.undo()


@router.post("/sessions/{session_id}/redo")
async def redo(session_id: str):
    session = await _require_session(session_id)
    return session.redo()


@router.post("/sessions/{session_id}/diff")
async def diff_session(session_id: str, request: SessionDiffRequest):
    """Diff and reconcile an old Markdown version against the session's table."""
    session = await _require_session(session_id)
    return _diff_payload(session.differ, request.old_markdown, session.snapshot())


# Stateless diff


@router.post("/diff")
async def diff_tables(request: DiffRequest):
    """Diff and reconcile two Markdown versions of a table."""
    try:
        new_table = TableModel.from_markdown(request.new_markdown)
    except TableParseError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _diff_payload(TableDiffer(), request.old_markdown, new_table)


# Health check


@router.get("/health")
async def health_check():
    """Health check endpoint with diagnostics."""
    return {
        "status": "ok",
        "service": "tablesmith",
        "sessions": get_session_store().size(),
    }


@router.get("/config/limits")
async def get_config_limits():
    """Get history limits and diff configuration."""
    from ..config import settings

    return {
        "history": {
            "max_size": settings.history_max_size,
            "session_ttl_minutes": settings.session_ttl_minutes,
        },
        "diff": {
            "header_ignore_case": settings.header_ignore_case,
            "detect_column_renames": settings.detect_column_renames,
            "rename_similarity_threshold": settings.rename_similarity_threshold,
            "pair_modified_rows": settings.pair_modified_rows,
            "align_current_rows_to_old_layout": settings.align_current_rows_to_old_layout,
        },
    }
