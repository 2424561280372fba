"""
Session Manager Service.

CRUD and lifecycle transitions for step-based interview sessions. Storage is
the single source of truth between operations: every call loads the current
session, applies a change, and saves it back in one write. There is no
optimistic-concurrency check, so concurrent writers are last-write-wins.
"""
import logging
import uuid
from typing import Any, List, Mapping, Optional, Union

from oracle.core.exceptions import (
    InvalidTransitionError,
    SessionNotFoundError,
)
from oracle.models.interview import (
    AnalysisResult,
    CreateSessionParams,
    InterviewSession,
    ProcessResult,
    ProgressInfo,
    Question,
    SessionFilters,
    SessionStatus,
    SessionUpdate,
    utcnow,
)
from oracle.providers.session_storage import SessionStorageProvider, get_session_storage
from oracle.services.analyzer import Analyzer, get_analyzer
from oracle.services.interview_engine import InterviewEngine, get_interview_engine
from oracle.services.question_bank import QuestionBank, get_question_bank

logger = logging.getLogger(__name__)


class SessionManager:
    """
    Owns session persistence and lifecycle.

    The engine computes deltas; this class commits them.
    """

    def __init__(
        self,
        storage: Optional[SessionStorageProvider] = None,
        question_bank: Optional[QuestionBank] = None,
        engine: Optional[InterviewEngine] = None,
        analyzer: Optional[Analyzer] = None,
    ):
        self._storage = storage
        self._question_bank = question_bank
        self._engine = engine
        self._analyzer = analyzer

    @property
    def storage(self) -> SessionStorageProvider:
        if self._storage is None:
            self._storage = get_session_storage()
        return self._storage

    @property
    def question_bank(self) -> QuestionBank:
        return self._question_bank or get_question_bank()

    @property
    def engine(self) -> InterviewEngine:
        if self._engine is None:
            self._engine = get_interview_engine()
        return self._engine

    @property
    def analyzer(self) -> Analyzer:
        if self._analyzer is None:
            self._analyzer = get_analyzer()
        return self._analyzer

    async def create_session(self, params: CreateSessionParams) -> InterviewSession:
        """
        Create and persist a new active session.

        Raises:
            InvalidInterviewTypeError: if the interview type is unknown
            StorageError: if persistence fails
        """
        self.question_bank.require(params.interview_type)

        now = utcnow()
        session = InterviewSession(
            id=str(uuid.uuid4()),
            user_id=params.user_id,
            interview_type=params.interview_type,
            status=SessionStatus.ACTIVE,
            current_step=0,
            responses={},
            context_data=dict(params.initial_context or {}),
            created_at=now,
            updated_at=now,
        )
        await self.storage.save(session)

        logger.info(f"Session {session.id} created: type={session.interview_type}, user={session.user_id}")
        return session

    async def get_session(self, session_id: str) -> Optional[InterviewSession]:
        """Stored session, or None if it does not exist."""
        return await self.storage.load(session_id)

    async def _require_session(self, session_id: str) -> InterviewSession:
        session = await self.storage.load(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    async def update_session(
        self,
        session_id: str,
        updates: Union[SessionUpdate, Mapping[str, Any]],
    ) -> InterviewSession:
        """
        Merge partial fields into a stored session and persist it.

        completed_at is set only on the first transition into completed.

        Raises:
            SessionNotFoundError: if the session does not exist
        """
        session = await self._require_session(session_id)

        if isinstance(updates, SessionUpdate):
            fields = updates.model_dump(exclude_unset=True)
        else:
            fields = dict(updates)
        fields.pop("id", None)
        fields.pop("created_at", None)

        now = utcnow()
        merged = session.model_dump()
        merged.update(fields)
        merged["updated_at"] = now

        if SessionStatus(merged["status"]) == SessionStatus.COMPLETED:
            if session.completed_at is None:
                merged["completed_at"] = fields.get("completed_at") or now
            else:
                merged["completed_at"] = session.completed_at

        updated = InterviewSession.model_validate(merged)
        await self.storage.save(updated)

        if updated.status != session.status:
            logger.info(f"Session {session_id}: {session.status.value} -> {updated.status.value}")
        return updated

    async def pause_session(self, session_id: str) -> InterviewSession:
        """
        Raises:
            SessionNotFoundError: if the session does not exist
            InvalidTransitionError: if the session is completed
        """
        session = await self._require_session(session_id)
        if session.status == SessionStatus.COMPLETED:
            raise InvalidTransitionError(
                f"Cannot pause completed session: {session_id}",
                details={"session_id": session_id},
            )
        return await self.update_session(session_id, SessionUpdate(status=SessionStatus.PAUSED))

    async def resume_session(self, session_id: str) -> InterviewSession:
        """
        Raises:
            SessionNotFoundError: if the session does not exist
            InvalidTransitionError: if the session is completed
        """
        session = await self._require_session(session_id)
        if session.status == SessionStatus.COMPLETED:
            raise InvalidTransitionError(
                f"Cannot resume completed session: {session_id}",
                details={"session_id": session_id},
            )
        return await self.update_session(session_id, SessionUpdate(status=SessionStatus.ACTIVE))

    async def list_sessions(self, filters: Optional[SessionFilters] = None) -> List[InterviewSession]:
        """Sessions matching filters, newest first."""
        return await self.storage.list(filters or SessionFilters())

    async def delete_session(self, session_id: str) -> None:
        """
        Raises:
            SessionNotFoundError: if the session does not exist
        """
        if not await self.storage.delete(session_id):
            raise SessionNotFoundError(session_id)
        logger.info(f"Session {session_id} deleted")

    async def get_current_question(self, session_id: str) -> Optional[Question]:
        session = await self._require_session(session_id)
        return self.engine.get_next_question(session)

    async def submit_response(self, session_id: str, response: Any) -> ProcessResult:
        """
        Validate a response against the current question and commit the result.

        Invalid responses come back as an unsuccessful ProcessResult and
        leave the stored session unchanged.

        Raises:
            SessionNotFoundError: if the session does not exist
            InvalidTransitionError: if the session is paused or completed
        """
        session = await self._require_session(session_id)
        if session.status != SessionStatus.ACTIVE:
            raise InvalidTransitionError(
                f"Cannot respond to {session.status.value} session: {session_id}",
                details={"session_id": session_id, "status": session.status.value},
            )

        result = self.engine.process_response(session, response)
        if result.success:
            await self.update_session(session_id, result.updates)
        return result

    async def get_progress(self, session_id: str) -> ProgressInfo:
        session = await self._require_session(session_id)
        return self.engine.get_progress(session)

    async def get_analysis(self, session_id: str) -> AnalysisResult:
        """
        Raises:
            SessionNotFoundError: if the session does not exist
            IncompleteSessionError: if the session has not completed
        """
        session = await self._require_session(session_id)
        return self.analyzer.generate_analysis(session)


# Global session manager instance (lazy loaded)
_session_manager: Optional[SessionManager] = None


def get_session_manager() -> SessionManager:
    """Get or create the session manager instance."""
    global _session_manager
    if _session_manager is None:
        _session_manager = SessionManager()
    return _session_manager


def set_session_manager(manager: Optional[SessionManager]) -> None:
    """Replace the session manager instance (used by tests)."""
    global _session_manager
    _session_manager = manager
