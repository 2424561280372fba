"""
MongoDB session storage provider.

One document per session in the "sessions" collection, keyed by session id.
Responses and context data are stored as embedded documents.
"""
import logging
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from oracle.core.database import mongodb_client
from oracle.core.exceptions import StorageError
from oracle.models.interview import InterviewSession, SessionFilters
from oracle.providers.session_storage.base import SessionStorageProvider

logger = logging.getLogger(__name__)


def session_to_document(session: InterviewSession) -> Dict[str, Any]:
    """Convert a session to a MongoDB document. Timestamps stay native datetimes."""
    doc = session.model_dump(mode="json")
    doc["_id"] = doc.pop("id")
    doc["created_at"] = session.created_at
    doc["updated_at"] = session.updated_at
    doc["completed_at"] = session.completed_at
    return doc


def document_to_session(doc: Dict[str, Any]) -> InterviewSession:
    data = dict(doc)
    data["id"] = data.pop("_id")
    return InterviewSession.model_validate(data)


def build_query(filters: SessionFilters) -> Dict[str, Any]:
    """Translate filters to a MongoDB query."""
    query: Dict[str, Any] = {}
    if filters.user_id is not None:
        query["user_id"] = filters.user_id
    if filters.interview_type is not None:
        query["interview_type"] = filters.interview_type
    if filters.status is not None:
        query["status"] = filters.status.value
    created: Dict[str, Any] = {}
    if filters.created_after is not None:
        created["$gt"] = filters.created_after
    if filters.created_before is not None:
        created["$lt"] = filters.created_before
    if created:
        query["created_at"] = created
    return query


class MongoSessionStorage(SessionStorageProvider):
    """
    Store sessions in MongoDB via Motor.

    list() returns sessions ordered by created_at descending.
    """

    def __init__(self, collection=None):
        """
        Args:
            collection: Optional Motor collection. Defaults to the global
                        client's "sessions" collection, resolved lazily.
        """
        self._collection = collection

    @property
    def collection(self):
        if self._collection is not None:
            return self._collection
        return mongodb_client.sessions

    async def save(self, session: InterviewSession) -> None:
        try:
            await self.collection.replace_one(
                {"_id": session.id},
                session_to_document(session),
                upsert=True,
            )
        except PyMongoError as e:
            logger.error(f"Failed to save session {session.id}: {e}")
            raise StorageError(f"Failed to save session: {session.id}", details={"error": str(e)}) from e

    async def load(self, session_id: str) -> Optional[InterviewSession]:
        try:
            doc = await self.collection.find_one({"_id": session_id})
        except PyMongoError as e:
            logger.error(f"Failed to load session {session_id}: {e}")
            raise StorageError(f"Failed to load session: {session_id}", details={"error": str(e)}) from e
        return document_to_session(doc) if doc else None

    async def list(self, filters: Optional[SessionFilters] = None) -> List[InterviewSession]:
        filters = filters or SessionFilters()
        try:
            cursor = self.collection.find(build_query(filters)).sort("created_at", DESCENDING)
            if filters.offset:
                cursor = cursor.skip(filters.offset)
            if filters.limit is not None:
                cursor = cursor.limit(filters.limit)
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error(f"Failed to list sessions: {e}")
            raise StorageError("Failed to list sessions", details={"error": str(e)}) from e
        return [document_to_session(doc) for doc in docs]

    async def delete(self, session_id: str) -> bool:
        try:
            result = await self.collection.delete_one({"_id": session_id})
        except PyMongoError as e:
            logger.error(f"Failed to delete session {session_id}: {e}")
            raise StorageError(f"Failed to delete session: {session_id}", details={"error": str(e)}) from e
        return result.deleted_count > 0
