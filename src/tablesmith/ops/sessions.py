"""In-memory store of edit sessions."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from ..config import settings
from ..table.models import TableModel
from .engine import TableEditSession

logger = logging.getLogger(__name__)


class SessionStore:
    """In-memory store for edit sessions.

    Sessions expire after ``ttl_minutes`` without access. Async variants
    serialize access with an asyncio.Lock.
    """

    def __init__(self, ttl_minutes: Optional[int] = None):
        self._sessions: dict[str, TableEditSession] = {}
        self._expires_at: dict[str, datetime] = {}
        if ttl_minutes is None:
            ttl_minutes = settings.session_ttl_minutes
        if ttl_minutes <= 0:
            raise ValueError(f"ttl_minutes must be positive, got {ttl_minutes}")
        self._ttl = ttl_minutes
        self._lock = asyncio.Lock()

    def _touch(self, session_id: str) -> None:
        self._expires_at[session_id] = datetime.now(timezone.utc) + timedelta(minutes=self._ttl)

    def create(self, table: TableModel, max_history: Optional[int] = None) -> TableEditSession:
        """
        Open a new session on a table.

        Args:
            table: The table to edit
            max_history: Undo stack capacity (settings default)

        Returns:
            The new session
        """
        session = TableEditSession(table, max_history=max_history)
        self._sessions[session.session_id] = session
        self._touch(session.session_id)
        return session

    async def create_async(
        self, table: TableModel, max_history: Optional[int] = None
    ) -> TableEditSession:
        """Lock-protected async version of create."""
        async with self._lock:
            return self.create(table, max_history)

    def get(self, session_id: str) -> Optional[TableEditSession]:
        """
        Retrieve a session and extend its lifetime.

        Returns:
            The session if found and not expired, None otherwise
        """
        session = self._sessions.get(session_id)
        if session is None:
            return None

        if datetime.now(timezone.utc) > self._expires_at[session_id]:
            logger.info(f"Session {session_id} expired")
            self.remove(session_id)
            return None

        self._touch(session_id)
        return session

    async def get_async(self, session_id: str) -> Optional[TableEditSession]:
        """Lock-protected async version of get."""
        async with self._lock:
            return self.get(session_id)

    def remove(self, session_id: str) -> bool:
        """
        Remove a session.

        Returns:
            True if removed, False if not found
        """
        if session_id in self._sessions:
            del self._sessions[session_id]
            del self._expires_at[session_id]
            return True
        return False

    async def remove_async(self, session_id: str) -> bool:
        """Lock-protected async version of remove."""
        async with self._lock:
            return self.remove(session_id)

    def cleanup_expired(self) -> int:
        """
        Remove all expired sessions.

        Returns:
            Number of sessions removed
        """
        now = datetime.now(timezone.utc)
        expired_ids = [
            session_id
            for session_id, expires_at in self._expires_at.items()
            if now > expires_at
        ]

        for session_id in expired_ids:
            self.remove(session_id)

        if expired_ids:
            logger.info(f"Removed {len(expired_ids)} expired session(s)")
        return len(expired_ids)

    async def cleanup_expired_async(self) -> int:
        """Lock-protected async version of cleanup_expired."""
        async with self._lock:
            return self.cleanup_expired()

    def clear(self):
        """Drop every session."""
        self._sessions.clear()
        self._expires_at.clear()

    def size(self) -> int:
        return len(self._sessions)
