"""
Abstract base class for session storage providers.

Defines the interface that all session storage backends must implement.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from oracle.models.interview import InterviewSession, SessionFilters


class SessionStorageProvider(ABC):
    """
    Abstract interface for step-based session persistence.

    Implementations:
    - MemorySessionStorage: process-local dict, for tests and development
    - MongoSessionStorage: MongoDB "sessions" collection

    All methods may raise StorageError. A missing session is reported as
    None (load) or False (delete), never as an error.
    """

    @abstractmethod
    async def save(self, session: InterviewSession) -> None:
        """Insert or replace a session keyed by its id."""
        pass

    @abstractmethod
    async def load(self, session_id: str) -> Optional[InterviewSession]:
        """Load a session, or None if it does not exist."""
        pass

    @abstractmethod
    async def list(self, filters: Optional[SessionFilters] = None) -> List[InterviewSession]:
        """
        List sessions matching filters.

        Pagination (offset, then limit) applies after filtering.
        """
        pass

    @abstractmethod
    async def delete(self, session_id: str) -> bool:
        """
        Delete a session.

        Returns:
            True if deleted, False if not found
        """
        pass
