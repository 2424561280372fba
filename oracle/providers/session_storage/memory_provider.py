"""
In-memory session storage provider.

Suitable for development, testing, and single-process deployments.
Sessions are stored as deep copies so callers never alias stored state.
"""
import logging
from typing import Dict, List, Optional

from oracle.models.interview import InterviewSession, SessionFilters
from oracle.providers.session_storage.base import SessionStorageProvider

logger = logging.getLogger(__name__)


class MemorySessionStorage(SessionStorageProvider):
    """
    Store sessions in a process-local dict.

    list() orders sessions by created_at, newest first, the same order as
    the MongoDB provider. Ties put the later-created session first.
    """

    def __init__(self):
        self._sessions: Dict[str, InterviewSession] = {}

    async def save(self, session: InterviewSession) -> None:
        self._sessions[session.id] = session.model_copy(deep=True)
        logger.debug(f"Saved session {session.id}")

    async def load(self, session_id: str) -> Optional[InterviewSession]:
        session = self._sessions.get(session_id)
        return session.model_copy(deep=True) if session else None

    async def list(self, filters: Optional[SessionFilters] = None) -> List[InterviewSession]:
        filters = filters or SessionFilters()
        indexed = [(i, s) for i, s in enumerate(self._sessions.values()) if filters.matches(s)]
        indexed.sort(key=lambda pair: (pair[1].created_at, pair[0]), reverse=True)
        matched = [s for _, s in indexed]

        matched = matched[filters.offset:]
        if filters.limit is not None:
            matched = matched[:filters.limit]

        return [s.model_copy(deep=True) for s in matched]

    async def delete(self, session_id: str) -> bool:
        if session_id in self._sessions:
            del self._sessions[session_id]
            logger.debug(f"Deleted session {session_id}")
            return True
        return False

    def clear(self) -> None:
        """Remove every stored session."""
        self._sessions.clear()
