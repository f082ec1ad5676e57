"""Session management for the query router."""

import asyncio
import datetime
import logging
import uuid
from typing import Dict, Optional

from solana_router.router.context import ConversationContext

logger = logging.getLogger(__name__)


class SessionStore:
    """In-memory conversation contexts keyed by session id, with TTL expiry."""

    def __init__(self, ttl_minutes: float = 30, history_limit: int = 20):
        self.ttl_minutes = ttl_minutes
        self.history_limit = history_limit
        self._sessions: Dict[str, ConversationContext] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    async def get_or_create(self, session_id: Optional[str] = None) -> ConversationContext:
        """Get an existing context or create a new one.

        Args:
            session_id: Optional session ID; unknown or expired ids start a
                fresh context under the same id

        Returns:
            The conversation context
        """
        async with self._lock:
            self._remove_expired()
            if session_id and session_id in self._sessions:
                context = self._sessions[session_id]
                context.touch()
                return context

            context = ConversationContext(
                session_id=session_id or str(uuid.uuid4()),
                history_limit=self.history_limit,
            )
            self._sessions[context.session_id] = context
            return context

    async def get(self, session_id: str) -> Optional[ConversationContext]:
        async with self._lock:
            context = self._sessions.get(session_id)
            if context is None or context.is_expired(self.ttl_minutes):
                return None
            return context

    async def delete(self, session_id: str) -> bool:
        """Delete a session. Returns False if it did not exist."""
        async with self._lock:
            return self._sessions.pop(session_id, None) is not None

    async def cleanup(self, now: Optional[datetime.datetime] = None) -> int:
        """Remove expired sessions.

        Returns:
            Number of sessions removed
        """
        async with self._lock:
            return self._remove_expired(now)

    def _remove_expired(self, now: Optional[datetime.datetime] = None) -> int:
        expired = [
            session_id for session_id, context in self._sessions.items()
            if context.is_expired(self.ttl_minutes, now)
        ]
        for session_id in expired:
            del self._sessions[session_id]
        if expired:
            logger.debug(f"Cleaned {len(expired)} expired sessions")
        return len(expired)
