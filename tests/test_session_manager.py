"""
Session Manager Tests.

Lifecycle, persistence and response submission against in-memory storage.
"""
from unittest.mock import AsyncMock

import pytest

from oracle.core.exceptions import (
    IncompleteSessionError,
    InvalidInterviewTypeError,
    InvalidTransitionError,
    SessionNotFoundError,
    StorageError,
)
from oracle.models.interview import (
    CreateSessionParams,
    QuestionType,
    SessionFilters,
    SessionStatus,
    SessionUpdate,
)
from oracle.models.interview_types import BUILTIN_INTERVIEWS
from oracle.services.session_manager import SessionManager


async def create(manager, user_id="user-1", interview_type="general", **kwargs):
    return await manager.create_session(
        CreateSessionParams(user_id=user_id, interview_type=interview_type, **kwargs)
    )


def valid_answer(question):
    if question.type == QuestionType.MULTIPLE_CHOICE:
        return question.options[0]
    if question.type == QuestionType.MULTIPLE_SELECT:
        return list(question.options[:2])
    return {
        QuestionType.NUMBER: 4200,
        QuestionType.YES_NO: "yes",
        QuestionType.SCALE: "4",
        QuestionType.DATE: "2026-12-01",
    }.get(question.type, f"Answer for {question.id}")


class TestCreateAndGet:
    """Creating and loading sessions."""

    @pytest.mark.asyncio
    async def test_create_session(self, session_manager):
        session = await create(session_manager, initial_context={"source": "web"})

        assert session.id
        assert session.status == SessionStatus.ACTIVE
        assert session.current_step == 0
        assert session.responses == {}
        assert session.context_data == {"source": "web"}
        assert session.completed_at is None

        loaded = await session_manager.get_session(session.id)
        assert loaded == session

    @pytest.mark.asyncio
    async def test_create_unknown_type(self, session_manager):
        with pytest.raises(InvalidInterviewTypeError):
            await create(session_manager, interview_type="astrology")

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, session_manager):
        assert await session_manager.get_session("missing") is None

    @pytest.mark.asyncio
    async def test_unique_ids(self, session_manager):
        first = await create(session_manager)
        second = await create(session_manager)
        assert first.id != second.id


class TestUpdate:
    """Merging partial updates."""

    @pytest.mark.asyncio
    async def test_update_merges_fields(self, session_manager):
        session = await create(session_manager)
        updated = await session_manager.update_session(session.id, {"context_data": {"k": "v"}})
        assert updated.context_data == {"k": "v"}
        assert updated.current_step == 0
        assert updated.updated_at >= session.updated_at

    @pytest.mark.asyncio
    async def test_id_and_created_at_are_immutable(self, session_manager):
        session = await create(session_manager)
        updated = await session_manager.update_session(
            session.id,
            {"id": "hijacked", "created_at": "2000-01-01T00:00:00+00:00"},
        )
        assert updated.id == session.id
        assert updated.created_at == session.created_at

    @pytest.mark.asyncio
    async def test_completed_at_set_once(self, session_manager):
        session = await create(session_manager)
        first = await session_manager.update_session(session.id, SessionUpdate(status=SessionStatus.COMPLETED))
        assert first.completed_at is not None

        second = await session_manager.update_session(session.id, SessionUpdate(status=SessionStatus.COMPLETED))
        assert second.completed_at == first.completed_at

    @pytest.mark.asyncio
    async def test_update_missing(self, session_manager):
        with pytest.raises(SessionNotFoundError, match="Session not found: missing"):
            await session_manager.update_session("missing", {"context_data": {}})


class TestLifecycle:
    """Pause, resume and delete."""

    @pytest.mark.asyncio
    async def test_pause_and_resume(self, session_manager):
        session = await create(session_manager)
        paused = await session_manager.pause_session(session.id)
        assert paused.status == SessionStatus.PAUSED

        resumed = await session_manager.resume_session(session.id)
        assert resumed.status == SessionStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_cannot_pause_or_resume_completed(self, session_manager):
        session = await create(session_manager)
        await session_manager.update_session(session.id, SessionUpdate(status=SessionStatus.COMPLETED))

        with pytest.raises(InvalidTransitionError, match="Cannot pause completed session"):
            await session_manager.pause_session(session.id)
        with pytest.raises(InvalidTransitionError, match="Cannot resume completed session"):
            await session_manager.resume_session(session.id)

    @pytest.mark.asyncio
    async def test_delete(self, session_manager):
        session = await create(session_manager)
        await session_manager.delete_session(session.id)
        assert await session_manager.get_session(session.id) is None

        with pytest.raises(SessionNotFoundError):
            await session_manager.delete_session(session.id)


class TestList:
    """Filtering and pagination, newest first."""

    @pytest.mark.asyncio
    async def test_filters_and_order(self, session_manager):
        a = await create(session_manager, user_id="alice")
        b = await create(session_manager, user_id="bob", interview_type="tenant-screening")
        c = await create(session_manager, user_id="alice", interview_type="customer-onboarding")
        await session_manager.pause_session(c.id)

        everything = await session_manager.list_sessions()
        assert [s.id for s in everything] == [c.id, b.id, a.id]

        alice = await session_manager.list_sessions(SessionFilters(user_id="alice"))
        assert {s.id for s in alice} == {a.id, c.id}

        paused = await session_manager.list_sessions(SessionFilters(status=SessionStatus.PAUSED))
        assert [s.id for s in paused] == [c.id]

        tenant = await session_manager.list_sessions(SessionFilters(interview_type="tenant-screening"))
        assert [s.id for s in tenant] == [b.id]

    @pytest.mark.asyncio
    async def test_pagination(self, session_manager):
        ids = [(await create(session_manager)).id for _ in range(5)]
        page = await session_manager.list_sessions(SessionFilters(limit=2, offset=1))
        assert [s.id for s in page] == [ids[3], ids[2]]


class TestSubmitResponse:
    """Responses flow through the engine and are persisted."""

    @pytest.mark.asyncio
    async def test_full_generic_interview(self, session_manager):
        session = await create(session_manager)
        for answer in ["I need help with apartment management", "3", "Less stress", "This quarter"]:
            result = await session_manager.submit_response(session.id, answer)
            assert result.success
            assert not result.completed

        result = await session_manager.submit_response(session.id, "")
        assert result.success
        assert result.completed

        stored = await session_manager.get_session(session.id)
        assert stored.status == SessionStatus.COMPLETED
        assert stored.current_step == 5
        assert len(stored.responses) == 4
        assert stored.completed_at is not None

        progress = await session_manager.get_progress(session.id)
        assert progress.completion_percentage == 100

        analysis = await session_manager.get_analysis(session.id)
        assert analysis.response_count == 4
        assert analysis.completion_rate == 1.0
        assert 0 <= analysis.score <= 100

    @pytest.mark.asyncio
    @pytest.mark.parametrize("definition", BUILTIN_INTERVIEWS, ids=lambda d: d.type)
    async def test_every_question_answered(self, session_manager, definition):
        session = await create(session_manager, interview_type=definition.type)
        results = []
        for question in definition.questions:
            result = await session_manager.submit_response(session.id, valid_answer(question))
            assert result.success, result.error
            results.append(result)

        assert [r.completed for r in results] == [False] * (definition.max_steps - 1) + [True]
        stored = await session_manager.get_session(session.id)
        assert stored.status == SessionStatus.COMPLETED
        assert len(stored.responses) == definition.max_steps

        analysis = await session_manager.get_analysis(session.id)
        assert analysis.response_count == definition.max_steps
        assert analysis.completion_rate == 1.0

    @pytest.mark.asyncio
    async def test_invalid_response_leaves_session_unchanged(self, session_manager):
        session = await create(session_manager, interview_type="tenant-screening")
        await session_manager.submit_response(session.id, "Jane Doe")

        result = await session_manager.submit_response(session.id, "Invalid Option")
        assert not result.success
        assert "must be one of" in result.error

        stored = await session_manager.get_session(session.id)
        assert stored.current_step == 1
        assert list(stored.responses) == ["contact_info"]

    @pytest.mark.asyncio
    async def test_paused_session_rejects_responses(self, session_manager):
        session = await create(session_manager)
        await session_manager.pause_session(session.id)
        with pytest.raises(InvalidTransitionError, match="Cannot respond to paused session"):
            await session_manager.submit_response(session.id, "hello")

    @pytest.mark.asyncio
    async def test_analysis_requires_completion(self, session_manager):
        session = await create(session_manager)
        with pytest.raises(IncompleteSessionError):
            await session_manager.get_analysis(session.id)

    @pytest.mark.asyncio
    async def test_current_question(self, session_manager):
        session = await create(session_manager)
        question = await session_manager.get_current_question(session.id)
        assert question.id == "purpose"

    @pytest.mark.asyncio
    async def test_storage_errors_propagate(self, question_bank, engine, analyzer):
        storage = AsyncMock()
        storage.load.side_effect = StorageError("database unavailable")
        manager = SessionManager(storage=storage, question_bank=question_bank, engine=engine, analyzer=analyzer)

        with pytest.raises(StorageError):
            await manager.get_session("any")
