"""
Step-based interview session API endpoints.

Sessions walk through a fixed archetype one question at a time. Invalid
answers come back with success=false and do not advance the session.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import AliasChoices, BaseModel, Field

from oracle.core.exceptions import (
    IncompleteSessionError,
    InvalidTransitionError,
    NotFoundError,
    OracleError,
    StorageError,
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
)
from oracle.services.question_bank import get_question_bank
from oracle.services.session_manager import get_session_manager
from oracle.services.validation import validate_create_session_params

logger = logging.getLogger(__name__)

router = APIRouter()


class InterviewTypeInfo(BaseModel):
    """Summary of an interview archetype."""
    type: str
    description: str
    max_steps: int


class CreateSessionRequest(BaseModel):
    """Request to create a session. Accepts camelCase or snake_case keys."""
    user_id: str = Field(validation_alias=AliasChoices("userId", "user_id"))
    interview_type: str = Field(validation_alias=AliasChoices("interviewType", "interview_type"))
    initial_context: Optional[Dict[str, Any]] = Field(
        default=None,
        validation_alias=AliasChoices("initialContext", "initial_context"),
    )


class RespondRequest(BaseModel):
    """Answer to the current question. Shape depends on the question type."""
    response: Any = None


class CurrentQuestionResponse(BaseModel):
    session_id: str
    question: Optional[Question] = None
    progress: ProgressInfo


def _to_http_error(e: OracleError) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    if isinstance(e, (InvalidTransitionError, IncompleteSessionError)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    if isinstance(e, StorageError):
        logger.error(f"Storage failure: {e.message}")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)


@router.get("/types", response_model=List[InterviewTypeInfo])
async def list_interview_types():
    """List available interview archetypes."""
    bank = get_question_bank()
    return [
        InterviewTypeInfo(type=d.type, description=d.description, max_steps=d.max_steps)
        for d in bank.definitions.values()
    ]


@router.post("/", response_model=InterviewSession, status_code=status.HTTP_201_CREATED)
async def create_session(request: CreateSessionRequest):
    """
    Create a session.

    Malformed bodies are rejected with 422; blank ids and unknown interview
    types with 400.
    """
    params = CreateSessionParams(
        user_id=request.user_id,
        interview_type=request.interview_type,
        initial_context=request.initial_context,
    )
    validation = validate_create_session_params(params)
    if not validation.valid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=validation.errors)

    try:
        return await get_session_manager().create_session(params)
    except OracleError as e:
        raise _to_http_error(e)


@router.get("/", response_model=List[InterviewSession])
async def list_sessions(
    user_id: Optional[str] = Query(None),
    interview_type: Optional[str] = Query(None),
    session_status: Optional[SessionStatus] = Query(None, alias="status"),
    created_after: Optional[datetime] = Query(None),
    created_before: Optional[datetime] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    """List sessions, newest first."""
    filters = SessionFilters(
        user_id=user_id,
        interview_type=interview_type,
        status=session_status,
        created_after=created_after,
        created_before=created_before,
        limit=limit,
        offset=offset,
    )
    try:
        return await get_session_manager().list_sessions(filters)
    except OracleError as e:
        raise _to_http_error(e)


@router.get("/{session_id}", response_model=InterviewSession)
async def get_session(session_id: str):
    session = await get_session_manager().get_session(session_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Session not found: {session_id}")
    return session


@router.get("/{session_id}/question", response_model=CurrentQuestionResponse)
async def get_current_question(session_id: str):
    """Current question, or null once every step is answered."""
    manager = get_session_manager()
    try:
        question = await manager.get_current_question(session_id)
        progress = await manager.get_progress(session_id)
    except OracleError as e:
        raise _to_http_error(e)
    return CurrentQuestionResponse(session_id=session_id, question=question, progress=progress)


@router.post("/{session_id}/respond", response_model=ProcessResult)
async def submit_response(session_id: str, request: RespondRequest):
    """
    Answer the current question.

    Validation failures are returned as success=false, not as an HTTP error.
    """
    try:
        result = await get_session_manager().submit_response(session_id, request.response)
    except OracleError as e:
        raise _to_http_error(e)

    if result.success:
        logger.info(f"Response accepted: session={session_id}, completed={result.completed}")
    return result


@router.get("/{session_id}/progress", response_model=ProgressInfo)
async def get_progress(session_id: str):
    try:
        return await get_session_manager().get_progress(session_id)
    except OracleError as e:
        raise _to_http_error(e)


@router.post("/{session_id}/pause", response_model=InterviewSession)
async def pause_session(session_id: str):
    try:
        return await get_session_manager().pause_session(session_id)
    except OracleError as e:
        raise _to_http_error(e)


@router.post("/{session_id}/resume", response_model=InterviewSession)
async def resume_session(session_id: str):
    try:
        return await get_session_manager().resume_session(session_id)
    except OracleError as e:
        raise _to_http_error(e)


@router.get("/{session_id}/analysis", response_model=AnalysisResult)
async def get_analysis(session_id: str):
    """Score, insights and recommendations for a completed session."""
    try:
        return await get_session_manager().get_analysis(session_id)
    except OracleError as e:
        raise _to_http_error(e)


@router.delete("/{session_id}")
async def delete_session(session_id: str):
    try:
        await get_session_manager().delete_session(session_id)
    except OracleError as e:
        raise _to_http_error(e)
    return {"message": "Session deleted successfully", "session_id": session_id}
