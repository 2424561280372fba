"""
Adaptive interview API endpoints.

Each interview runs as a background workflow. Answers and context edits are
delivered as signals and applied asynchronously, so callers poll
GET /{workflow_id} to see the next question.
"""
import logging
from typing import List, Optional, Union

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, Field

from oracle.core.exceptions import WorkflowNotFoundError
from oracle.models.workflow import ContextDocument, InterviewSnapshot
from oracle.services.workflow_runner import WorkflowStatus, get_workflow_runner

logger = logging.getLogger(__name__)

router = APIRouter()


class StartInterviewRequest(BaseModel):
    """Request to start an adaptive interview."""
    domain: str
    objective: str
    constraints: Optional[str] = None
    guiding_questions: Optional[List[str]] = None
    include_introduction: Optional[bool] = None


class StartInterviewResponse(BaseModel):
    workflow_id: str
    message: str = "Interview started"


class RespondRequest(BaseModel):
    response: str = Field(..., min_length=1)


class SignalAccepted(BaseModel):
    workflow_id: str
    accepted: bool = True


@router.post("/", response_model=StartInterviewResponse, status_code=status.HTTP_201_CREATED)
async def start_interview(request: StartInterviewRequest):
    """Start an adaptive interview."""
    if not request.domain.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Domain is required")
    if not request.objective.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Objective is required")

    workflow_id = await get_workflow_runner().start(
        domain=request.domain,
        objective=request.objective,
        constraints=request.constraints,
        guiding_questions=request.guiding_questions,
        include_introduction=request.include_introduction,
    )
    return StartInterviewResponse(workflow_id=workflow_id)


@router.get("/", response_model=List[InterviewSnapshot])
async def list_interviews(limit: int = Query(50, ge=1, le=500)):
    """List persisted interviews, most recently updated first."""
    return await get_workflow_runner().list_workflows(limit=limit)


@router.get("/{workflow_id}", response_model=Union[WorkflowStatus, InterviewSnapshot])
async def get_interview(workflow_id: str):
    """
    Live state of a running interview.

    Interviews no longer held by this process are served from their
    persisted snapshot.
    """
    runner = get_workflow_runner()
    if runner.is_known(workflow_id):
        return runner.get_status(workflow_id)

    snapshot = await runner.get_snapshot(workflow_id)
    if snapshot is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Interview not found: {workflow_id}")
    return snapshot


@router.post("/{workflow_id}/respond", response_model=SignalAccepted, status_code=status.HTTP_202_ACCEPTED)
async def respond(workflow_id: str, request: RespondRequest):
    """Answer the current question (or approve the context document)."""
    try:
        get_workflow_runner().respond(workflow_id, request.response)
    except WorkflowNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    return SignalAccepted(workflow_id=workflow_id)


@router.post("/{workflow_id}/context", response_model=SignalAccepted, status_code=status.HTTP_202_ACCEPTED)
async def edit_context(workflow_id: str, document: ContextDocument):
    """Replace the context document. During review this also approves it."""
    try:
        get_workflow_runner().edit_context(workflow_id, document)
    except WorkflowNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    return SignalAccepted(workflow_id=workflow_id)


@router.delete("/{workflow_id}")
async def delete_interview(workflow_id: str):
    """Cancel a running interview and delete its snapshot."""
    if not await get_workflow_runner().delete(workflow_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Interview not found: {workflow_id}")
    return {"message": "Interview deleted successfully", "workflow_id": workflow_id}
