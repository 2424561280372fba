"""
Workflow Runner.

Starts adaptive interviews as asyncio tasks on the in-process host, routes
signals and queries to them by workflow id, and persists a snapshot on
every state change.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel

from oracle.core.config import Settings, get_settings
from oracle.core.exceptions import StorageError, WorkflowError, WorkflowNotFoundError
from oracle.models.workflow import AdaptiveInterviewState, ContextDocument, InterviewSnapshot
from oracle.services.activities import InterviewActivities, get_interview_activities
from oracle.services.interview_store import InterviewStore, get_interview_store
from oracle.services.interview_workflow import (
    EDIT_CONTEXT_SIGNAL,
    GET_STATE_QUERY,
    RESPOND_SIGNAL,
    AdaptiveInterviewWorkflow,
)
from oracle.services.workflow_host import InProcessWorkflowHost, RetryPolicy

logger = logging.getLogger(__name__)


class WorkflowStatus(BaseModel):
    """Live view of a running or finished workflow."""
    workflow_id: str
    running: bool
    error: Optional[str] = None
    state: AdaptiveInterviewState


@dataclass
class _RunningWorkflow:
    host: InProcessWorkflowHost
    workflow: AdaptiveInterviewWorkflow
    task: "asyncio.Task[Any]"
    error: Optional[str] = None


class WorkflowRunner:
    """
    Registry of adaptive interviews running in this process.

    Usage:
        runner = WorkflowRunner()
        workflow_id = await runner.start("hiring", "Hire a staff engineer")
        runner.respond(workflow_id, "I'm the engineering manager")
    """

    def __init__(
        self,
        activities: Optional[InterviewActivities] = None,
        store: Optional[InterviewStore] = None,
        settings: Optional[Settings] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.settings = settings or get_settings()
        self._activities = activities
        self._store = store
        self.retry_policy = retry_policy or RetryPolicy(
            maximum_attempts=self.settings.activity_max_attempts,
            start_to_close_timeout=timedelta(seconds=self.settings.activity_timeout_seconds),
            initial_interval=timedelta(seconds=self.settings.activity_retry_interval_seconds),
        )
        self._workflows: Dict[str, _RunningWorkflow] = {}

    @property
    def activities(self) -> InterviewActivities:
        if self._activities is None:
            self._activities = get_interview_activities()
        return self._activities

    @property
    def store(self) -> InterviewStore:
        if self._store is None:
            self._store = get_interview_store()
        return self._store

    async def start(
        self,
        domain: str,
        objective: str,
        constraints: Optional[str] = None,
        guiding_questions: Optional[List[str]] = None,
        include_introduction: Optional[bool] = None,
        workflow_id: Optional[str] = None,
    ) -> str:
        """Start an interview and return its workflow id."""
        workflow_id = workflow_id or str(uuid.uuid4())
        if include_introduction is None:
            include_introduction = self.settings.include_introduction

        host = InProcessWorkflowHost(self.retry_policy)
        workflow = AdaptiveInterviewWorkflow(
            host,
            self.activities,
            include_introduction=include_introduction,
            max_exchanges=self.settings.max_interview_exchanges,
            response_timeout=timedelta(hours=self.settings.response_timeout_hours),
            on_state_change=self._persist,
        )
        task = asyncio.create_task(
            workflow.run(domain, objective, constraints, guiding_questions, workflow_id=workflow_id)
        )
        running = _RunningWorkflow(host=host, workflow=workflow, task=task)
        task.add_done_callback(lambda t: self._on_done(workflow_id, running, t))
        self._workflows[workflow_id] = running

        # Let the workflow register its handlers before returning
        await asyncio.sleep(0)
        logger.info(f"Started interview workflow {workflow_id} (domain={domain!r})")
        return workflow_id

    def _on_done(self, workflow_id: str, running: _RunningWorkflow, task: "asyncio.Task[Any]") -> None:
        if task.cancelled():
            running.error = "Workflow task was cancelled"
        else:
            error = task.exception()
            if error is not None:
                running.error = str(error)
                if isinstance(error, WorkflowError):
                    logger.warning(f"Workflow {workflow_id} ended: {type(error).__name__}: {error}")
                else:
                    logger.error(f"Workflow {workflow_id} crashed: {error}", exc_info=error)

        # Reads after eviction fall back to the persisted snapshot
        retention = self.settings.finished_workflow_retention_seconds
        if retention <= 0:
            self._evict(workflow_id, running)
        else:
            asyncio.get_running_loop().call_later(retention, self._evict, workflow_id, running)

    def _evict(self, workflow_id: str, running: _RunningWorkflow) -> None:
        if self._workflows.get(workflow_id) is running:
            del self._workflows[workflow_id]
            logger.debug(f"Evicted finished workflow {workflow_id}")

    async def _persist(self, state: AdaptiveInterviewState) -> None:
        try:
            await self.store.save_snapshot(InterviewSnapshot.from_state(state))
        except StorageError as e:
            logger.warning(f"Failed to persist snapshot for {state.workflow_id}: {e}")

    def _require(self, workflow_id: str) -> _RunningWorkflow:
        running = self._workflows.get(workflow_id)
        if running is None:
            raise WorkflowNotFoundError(workflow_id)
        return running

    def is_known(self, workflow_id: str) -> bool:
        return workflow_id in self._workflows

    def respond(self, workflow_id: str, response: str) -> None:
        """Deliver the user's answer."""
        self._require(workflow_id).host.signal(RESPOND_SIGNAL, response)

    def edit_context(self, workflow_id: str, document: Union[ContextDocument, Mapping[str, Any]]) -> None:
        """Replace the context document; approves it during synthesis."""
        if not isinstance(document, ContextDocument):
            document = ContextDocument.model_validate(document)
        self._require(workflow_id).host.signal(EDIT_CONTEXT_SIGNAL, document)

    def get_state(self, workflow_id: str) -> AdaptiveInterviewState:
        return self._require(workflow_id).host.query(GET_STATE_QUERY)

    def get_status(self, workflow_id: str) -> WorkflowStatus:
        running = self._require(workflow_id)
        return WorkflowStatus(
            workflow_id=workflow_id,
            running=not running.task.done(),
            error=running.error,
            state=running.host.query(GET_STATE_QUERY),
        )

    async def wait(self, workflow_id: str) -> AdaptiveInterviewState:
        """Wait for a workflow to finish and return its final state, re-raising fatal errors."""
        return await self._require(workflow_id).task

    async def cancel(self, workflow_id: str, grace_seconds: float = 5.0) -> None:
        """
        Cancel a workflow and wait for it to stop.

        Cancellation is cooperative; a workflow still inside an activity
        after grace_seconds has its task cancelled outright.
        """
        running = self._require(workflow_id)
        if running.task.done():
            return
        running.host.cancel()
        done, _ = await asyncio.wait({running.task}, timeout=grace_seconds)
        if not done:
            running.task.cancel()
            await asyncio.wait({running.task})
        logger.info(f"Cancelled interview workflow {workflow_id}")

    async def delete(self, workflow_id: str) -> bool:
        """Cancel if running and remove both the live handle and the snapshot."""
        known = workflow_id in self._workflows
        if known:
            await self.cancel(workflow_id)
            self._workflows.pop(workflow_id, None)
        stored = await self.store.delete(workflow_id)
        return known or stored

    async def get_snapshot(self, workflow_id: str) -> Optional[InterviewSnapshot]:
        return await self.store.get(workflow_id)

    async def list_workflows(self, limit: int = 50) -> List[InterviewSnapshot]:
        return await self.store.list(limit=limit)

    async def shutdown(self) -> None:
        """Cancel every running workflow."""
        for workflow_id in list(self._workflows):
            await self.cancel(workflow_id)


# Global runner instance (lazy loaded)
_workflow_runner: Optional[WorkflowRunner] = None


def get_workflow_runner() -> WorkflowRunner:
    """Get or create the workflow runner."""
    global _workflow_runner
    if _workflow_runner is None:
        _workflow_runner = WorkflowRunner()
    return _workflow_runner


def set_workflow_runner(runner: Optional[WorkflowRunner]) -> None:
    """Replace the global runner (used by tests)."""
    global _workflow_runner
    _workflow_runner = runner
