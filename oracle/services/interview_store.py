"""
Snapshot store for adaptive interviews.

Each workflow has one record keyed by workflow id. Saving upserts the record,
keeps the original created_at, and stamps completed_at the first time the
interview reaches the complete phase.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from oracle.core.database import mongodb_client
from oracle.core.exceptions import StorageError
from oracle.models.interview import utcnow
from oracle.models.workflow import InterviewSnapshot, WorkflowPhase

logger = logging.getLogger(__name__)


class InterviewStore(ABC):
    """Persistence for interview snapshots."""

    @abstractmethod
    async def save_snapshot(self, snapshot: InterviewSnapshot) -> None:
        pass

    @abstractmethod
    async def get(self, workflow_id: str) -> Optional[InterviewSnapshot]:
        pass

    @abstractmethod
    async def list(self, limit: int = 50) -> List[InterviewSnapshot]:
        """Most recently updated first."""
        pass

    @abstractmethod
    async def delete(self, workflow_id: str) -> bool:
        pass


class MemoryInterviewStore(InterviewStore):
    """In-process snapshot store."""

    def __init__(self):
        self._snapshots: Dict[str, InterviewSnapshot] = {}

    async def save_snapshot(self, snapshot: InterviewSnapshot) -> None:
        now = utcnow()
        existing = self._snapshots.get(snapshot.workflow_id)
        record = snapshot.model_copy(deep=True)
        record.updated_at = now
        if existing is not None:
            record.created_at = existing.created_at
            record.completed_at = existing.completed_at
        else:
            record.completed_at = None
        if record.phase == WorkflowPhase.COMPLETE and record.completed_at is None:
            record.completed_at = now
        self._snapshots[snapshot.workflow_id] = record

    async def get(self, workflow_id: str) -> Optional[InterviewSnapshot]:
        snapshot = self._snapshots.get(workflow_id)
        return snapshot.model_copy(deep=True) if snapshot else None

    async def list(self, limit: int = 50) -> List[InterviewSnapshot]:
        snapshots = sorted(self._snapshots.values(), key=lambda s: s.updated_at, reverse=True)
        return [s.model_copy(deep=True) for s in snapshots[:limit]]

    async def delete(self, workflow_id: str) -> bool:
        return self._snapshots.pop(workflow_id, None) is not None


class MongoInterviewStore(InterviewStore):
    """Snapshot store on the "interviews" collection."""

    def __init__(self, collection=None):
        self._collection = collection

    @property
    def collection(self):
        if self._collection is not None:
            return self._collection
        return mongodb_client.interviews

    async def save_snapshot(self, snapshot: InterviewSnapshot) -> None:
        now = utcnow()
        fields: Dict[str, Any] = snapshot.model_dump(
            mode="json",
            exclude={"workflow_id", "created_at", "updated_at", "completed_at"},
        )
        fields["updated_at"] = now

        try:
            await self.collection.update_one(
                {"_id": snapshot.workflow_id},
                {"$set": fields, "$setOnInsert": {"created_at": now, "completed_at": None}},
                upsert=True,
            )
            if snapshot.phase == WorkflowPhase.COMPLETE:
                await self.collection.update_one(
                    {"_id": snapshot.workflow_id, "completed_at": None},
                    {"$set": {"completed_at": now}},
                )
        except PyMongoError as e:
            logger.error(f"Failed to save interview {snapshot.workflow_id}: {e}")
            raise StorageError(
                f"Failed to save interview: {snapshot.workflow_id}",
                details={"error": str(e)},
            ) from e

    async def get(self, workflow_id: str) -> Optional[InterviewSnapshot]:
        try:
            doc = await self.collection.find_one({"_id": workflow_id})
        except PyMongoError as e:
            raise StorageError(f"Failed to load interview: {workflow_id}", details={"error": str(e)}) from e
        return self._to_snapshot(doc) if doc else None

    async def list(self, limit: int = 50) -> List[InterviewSnapshot]:
        try:
            cursor = self.collection.find({}).sort("updated_at", DESCENDING).limit(limit)
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise StorageError("Failed to list interviews", details={"error": str(e)}) from e
        return [self._to_snapshot(doc) for doc in docs]

    async def delete(self, workflow_id: str) -> bool:
        try:
            result = await self.collection.delete_one({"_id": workflow_id})
        except PyMongoError as e:
            raise StorageError(f"Failed to delete interview: {workflow_id}", details={"error": str(e)}) from e
        return result.deleted_count > 0

    @staticmethod
    def _to_snapshot(doc: Dict[str, Any]) -> InterviewSnapshot:
        data = dict(doc)
        data["workflow_id"] = data.pop("_id")
        return InterviewSnapshot.model_validate(data)


# Global store instance (lazy loaded)
_interview_store: Optional[InterviewStore] = None


def get_interview_store() -> InterviewStore:
    """Get or create the store matching the configured storage backend."""
    global _interview_store
    if _interview_store is None:
        from oracle.core.config import get_settings
        if get_settings().uses_mongodb:
            _interview_store = MongoInterviewStore()
        else:
            _interview_store = MemoryInterviewStore()
    return _interview_store


def set_interview_store(store: Optional[InterviewStore]) -> None:
    """Replace the global store (used by tests)."""
    global _interview_store
    _interview_store = store
