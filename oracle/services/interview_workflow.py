"""
Adaptive Interview Workflow.

A phase machine that primes, optionally introduces, interviews, synthesizes
and recommends. The machine suspends only while waiting for user input and
while an activity runs; everything else is deterministic so it can be
driven by any WorkflowHost.
"""
import logging
from datetime import timedelta
from typing import Any, Awaitable, Callable, List, Optional

from oracle.core.exceptions import EmptyResponseError, WorkflowTimeoutError
from oracle.models.workflow import (
    AdaptiveInterviewState,
    ContextDocument,
    Exchange,
    WorkflowPhase,
)
from oracle.services.activities import InterviewActivities
from oracle.services.workflow_host import WorkflowHost

logger = logging.getLogger(__name__)


RESPOND_SIGNAL = "respond"
EDIT_CONTEXT_SIGNAL = "editContext"
GET_STATE_QUERY = "getState"

StateListener = Callable[[AdaptiveInterviewState], Awaitable[None]]


class AdaptiveInterviewWorkflow:
    """
    One adaptive interview run.

    Usage:
        workflow = AdaptiveInterviewWorkflow(host, activities)
        final_state = await workflow.run("product launch", "Plan the launch")
    """

    def __init__(
        self,
        host: WorkflowHost,
        activities: InterviewActivities,
        include_introduction: bool = True,
        max_exchanges: int = 20,
        response_timeout: timedelta = timedelta(hours=24),
        on_state_change: Optional[StateListener] = None,
    ):
        self.host = host
        self.activities = activities
        self.include_introduction = include_introduction
        self.max_exchanges = max_exchanges
        self.response_timeout = response_timeout
        self.on_state_change = on_state_change
        self.state: Optional[AdaptiveInterviewState] = None

    # Signal and query handlers

    def _on_respond(self, payload: Any) -> None:
        self.state.user_response = "" if payload is None else str(payload)

    def _on_edit_context(self, payload: Any) -> None:
        document = payload if isinstance(payload, ContextDocument) else ContextDocument.model_validate(payload)
        self.state.context_document = document
        if self.state.phase == WorkflowPhase.SYNTHESIZE:
            self.state.awaiting_response = False

    def _get_state(self) -> AdaptiveInterviewState:
        return self.state.model_copy(deep=True)

    async def _notify(self) -> None:
        if self.on_state_change is not None:
            await self.on_state_change(self._get_state())

    async def _enter(self, phase: WorkflowPhase) -> None:
        logger.info(f"Workflow {self.state.workflow_id}: {self.state.phase.value} -> {phase.value}")
        self.state.phase = phase
        await self._notify()

    async def _await_response(self) -> str:
        """
        Wait for a respond signal.

        Raises:
            WorkflowTimeoutError: if nothing arrives before the response timeout
            EmptyResponseError: if the response is blank
        """
        self.state.user_response = None
        self.state.awaiting_response = True
        await self._notify()

        received = await self.host.wait_condition(
            lambda: self.state.user_response is not None,
            timeout=self.response_timeout,
        )
        self.state.awaiting_response = False
        if not received:
            raise WorkflowTimeoutError(
                f"No response received within {self.response_timeout}",
                details={"phase": self.state.phase.value},
            )

        response = self.state.user_response.strip()
        self.state.user_response = None
        if not response:
            raise EmptyResponseError(
                "A non-empty response is required",
                details={"phase": self.state.phase.value},
            )
        return response

    async def run(
        self,
        domain: str,
        objective: str,
        constraints: Optional[str] = None,
        guiding_questions: Optional[List[str]] = None,
        workflow_id: Optional[str] = None,
    ) -> AdaptiveInterviewState:
        """
        Run the interview to completion and return the final state.

        Raises:
            WorkflowError: any fatal failure (invalid input, timeout, empty
                response, exhausted activity retries, cancellation)
        """
        self.state = AdaptiveInterviewState(
            workflow_id=workflow_id,
            domain=domain,
            objective=objective,
            constraints=constraints,
            guiding_questions=guiding_questions,
        )
        self.host.set_signal_handler(RESPOND_SIGNAL, self._on_respond)
        self.host.set_signal_handler(EDIT_CONTEXT_SIGNAL, self._on_edit_context)
        self.host.set_query_handler(GET_STATE_QUERY, self._get_state)

        await self._notify()
        await self.host.execute_activity(self.activities.prime_interview, domain, objective, constraints)

        if self.include_introduction:
            await self._run_introduction()

        await self._run_interview()
        await self._run_synthesis()
        await self._run_recommendations()

        self.state.current_question = None
        await self._enter(WorkflowPhase.COMPLETE)
        logger.info(f"Workflow {self.state.workflow_id} complete after {len(self.state.exchanges)} exchanges")
        return self._get_state()

    async def _run_introduction(self) -> None:
        await self._enter(WorkflowPhase.INTRODUCE)
        state = self.state

        introduction = await self.host.execute_activity(
            self.activities.generate_introduction,
            state.domain,
            state.objective,
            state.constraints,
        )
        state.introduction = introduction
        state.current_question = introduction

        answer = await self._await_response()
        state.exchanges.append(Exchange(question=introduction, answer=answer))
        state.current_question = None

    async def _run_interview(self) -> None:
        await self._enter(WorkflowPhase.INTERVIEW)
        state = self.state

        while len(state.exchanges) < self.max_exchanges:
            question = await self.host.execute_activity(
                self.activities.generate_question,
                state.domain,
                state.objective,
                list(state.exchanges),
                state.guiding_questions,
            )
            state.current_question = question

            answer = await self._await_response()
            assessment = await self.host.execute_activity(
                self.activities.process_response,
                question,
                answer,
                list(state.exchanges),
            )
            state.exchanges.append(Exchange(question=question, answer=answer))
            state.current_question = None
            await self._notify()

            if assessment.complete:
                logger.info(f"Interview loop finished: {assessment.reason}")
                break

    async def _run_synthesis(self) -> None:
        await self._enter(WorkflowPhase.SYNTHESIZE)
        state = self.state

        state.context_document = await self.host.execute_activity(
            self.activities.synthesize_context,
            state.domain,
            state.objective,
            list(state.exchanges),
        )

        # Released by respond (approve) or editContext (replace and approve)
        state.user_response = None
        state.awaiting_response = True
        await self._notify()

        released = await self.host.wait_condition(
            lambda: state.user_response is not None or not state.awaiting_response,
            timeout=self.response_timeout,
        )
        state.awaiting_response = False
        state.user_response = None
        if not released:
            raise WorkflowTimeoutError(
                f"Context review not received within {self.response_timeout}",
                details={"phase": state.phase.value},
            )

    async def _run_recommendations(self) -> None:
        await self._enter(WorkflowPhase.RECOMMEND)
        state = self.state

        state.recommendations = await self.host.execute_activity(
            self.activities.generate_recommendations,
            state.context_document,
            state.objective,
        )
