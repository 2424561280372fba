"""
Adaptive interview workflow tests.

The workflow runs on the in-process host against activities whose
completion always fails, so every step takes its deterministic fallback.
"""
import asyncio
import contextlib
from datetime import timedelta

import pytest

from oracle.core.exceptions import (
    ActivityFailedError,
    EmptyResponseError,
    InvalidWorkflowInputError,
    WorkflowCancelledError,
    WorkflowTimeoutError,
)
from oracle.models.interview import Priority
from oracle.models.workflow import ContextDocument, WorkflowPhase
from oracle.services.activities import FALLBACK_INTRODUCTION, InterviewActivities
from oracle.services.interview_workflow import (
    EDIT_CONTEXT_SIGNAL,
    GET_STATE_QUERY,
    RESPOND_SIGNAL,
    AdaptiveInterviewWorkflow,
)
from oracle.services.workflow_host import InProcessWorkflowHost


async def settle(predicate, rounds=1000):
    """Yield to the loop until predicate() holds."""
    for _ in range(rounds):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("Condition not reached")


async def stop(task):
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task


def waiting_for_input(workflow, task):
    state = workflow.state
    return task.done() or (
        state is not None and state.awaiting_response and state.user_response is None
    )


async def answer_all(host, workflow, task, answer=lambda state: f"Detailed answer {len(state.exchanges)}"):
    """Answer every prompt (and approve the context) until the run finishes."""
    while True:
        await settle(lambda: waiting_for_input(workflow, task))
        if task.done():
            return await task
        host.signal(RESPOND_SIGNAL, answer(workflow.state))
        await asyncio.sleep(0)


@pytest.fixture
def host(fast_retry_policy):
    return InProcessWorkflowHost(fast_retry_policy)


@pytest.fixture
def activities(fake_completion):
    return InterviewActivities(fake_completion)


def start(workflow, domain="product launch", objective="Plan the Q3 launch", **kwargs):
    return asyncio.create_task(workflow.run(domain, objective, **kwargs))


class TestHappyPath:
    """Full runs through every phase."""

    @pytest.mark.asyncio
    async def test_with_introduction(self, host, activities):
        phases = []

        async def record(state):
            if not phases or phases[-1] != state.phase:
                phases.append(state.phase)

        workflow = AdaptiveInterviewWorkflow(host, activities, on_state_change=record)
        task = start(workflow, workflow_id="wf-1")

        def answer(state):
            # The third exchange ends the interview loop
            return "That's all" if len(state.exchanges) == 2 else "We launch in September with a small team"

        final = await answer_all(host, workflow, task, answer)

        assert final.phase == WorkflowPhase.COMPLETE
        assert final.workflow_id == "wf-1"
        assert final.introduction == FALLBACK_INTRODUCTION.format(domain="product launch", objective="Plan the Q3 launch")
        assert final.exchanges[0].question == final.introduction
        assert len(final.exchanges) == 3
        assert final.context_document is not None
        assert final.context_document.is_degraded
        assert 2 <= len(final.recommendations.recommendations) <= 4
        assert all(r.facets["Confidence Level"] == "Low" for r in final.recommendations.recommendations)
        assert final.current_question is None
        assert final.awaiting_response is False

        assert phases == [
            WorkflowPhase.PRIME,
            WorkflowPhase.INTRODUCE,
            WorkflowPhase.INTERVIEW,
            WorkflowPhase.SYNTHESIZE,
            WorkflowPhase.RECOMMEND,
            WorkflowPhase.COMPLETE,
        ]

    @pytest.mark.asyncio
    async def test_without_introduction(self, host, activities):
        workflow = AdaptiveInterviewWorkflow(host, activities, include_introduction=False)
        task = start(workflow)

        await settle(lambda: waiting_for_input(workflow, task))
        assert workflow.state.phase == WorkflowPhase.INTERVIEW
        assert workflow.state.introduction is None
        assert workflow.state.current_question

        def answer(state):
            return "done" if len(state.exchanges) >= 2 else "Budget is tight and the timeline is fixed"

        final = await answer_all(host, workflow, task, answer)
        assert final.phase == WorkflowPhase.COMPLETE
        assert len(final.exchanges) == 3

    @pytest.mark.asyncio
    async def test_guiding_questions_asked_in_fallback(self, host, activities):
        workflow = AdaptiveInterviewWorkflow(host, activities, include_introduction=False)
        task = start(workflow, guiding_questions=["What is the marketing budget?"])

        await settle(lambda: waiting_for_input(workflow, task))
        assert workflow.state.current_question == "What is the marketing budget?"
        await stop(task)


class TestExchangeCap:
    """The loop stops at the exchange limit."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("include_introduction", [True, False])
    async def test_stops_at_twenty(self, host, activities, include_introduction):
        workflow = AdaptiveInterviewWorkflow(host, activities, include_introduction=include_introduction)
        task = start(workflow)

        final = await answer_all(host, workflow, task)

        assert len(final.exchanges) == 20
        assert final.phase == WorkflowPhase.COMPLETE

    @pytest.mark.asyncio
    async def test_custom_cap(self, host, fake_completion):
        workflow = AdaptiveInterviewWorkflow(
            host,
            InterviewActivities(fake_completion, max_exchanges=4),
            include_introduction=False,
            max_exchanges=4,
        )
        final = await answer_all(host, workflow, start(workflow))
        assert len(final.exchanges) == 4


class TestSignals:
    """Respond and editContext handling."""

    @pytest.mark.asyncio
    async def test_respond_while_not_awaiting_is_discarded(self, host, fake_completion):
        release = asyncio.Event()

        class SlowIntroduction(InterviewActivities):
            async def generate_introduction(self, domain, objective, constraints=None):
                await release.wait()
                return "Welcome. What brings you here?"

        workflow = AdaptiveInterviewWorkflow(host, SlowIntroduction(fake_completion))
        task = start(workflow)

        await settle(lambda: workflow.state is not None and workflow.state.phase == WorkflowPhase.INTRODUCE)
        host.signal(RESPOND_SIGNAL, "stray answer")

        assert workflow.state.phase == WorkflowPhase.INTRODUCE
        assert workflow.state.exchanges == []

        release.set()
        await settle(lambda: waiting_for_input(workflow, task))
        assert workflow.state.user_response is None
        assert workflow.state.exchanges == []
        assert workflow.state.current_question == "Welcome. What brings you here?"

        host.signal(RESPOND_SIGNAL, "real answer")
        await settle(lambda: len(workflow.state.exchanges) == 1)
        assert workflow.state.exchanges[0].answer == "real answer"
        await stop(task)

    @pytest.mark.asyncio
    async def test_edit_context_approves_synthesis(self, host, activities):
        workflow = AdaptiveInterviewWorkflow(host, activities, include_introduction=False)
        task = start(workflow)

        while True:
            await settle(lambda: waiting_for_input(workflow, task))
            if workflow.state.phase == WorkflowPhase.SYNTHESIZE:
                break
            answer = "done" if len(workflow.state.exchanges) >= 2 else "Some useful detail here"
            host.signal(RESPOND_SIGNAL, answer)
            await asyncio.sleep(0)

        assert workflow.state.context_document is not None
        edited = {
            "summary": "Edited summary",
            "facts": ["Launch is in September"],
            "constraints": ["Budget is fixed"],
            "priorities": ["Hit the date"],
            "assumptions": ["Team stays the same"],
            "uncertainties": ["Vendor readiness"],
        }
        host.signal(EDIT_CONTEXT_SIGNAL, edited)

        final = await asyncio.wait_for(task, timeout=5)
        assert final.context_document.summary == "Edited summary"
        recs = final.recommendations.recommendations
        assert any("Budget is fixed" in r.rationale for r in recs)
        # An edited document is no longer marked as degraded
        assert all(r.facets["Confidence Level"] == "Medium" for r in recs)
        assert recs[0].priority == Priority.HIGH

    @pytest.mark.asyncio
    async def test_edit_context_outside_synthesis_keeps_waiting(self, host, activities):
        workflow = AdaptiveInterviewWorkflow(host, activities, include_introduction=False)
        task = start(workflow)

        await settle(lambda: waiting_for_input(workflow, task))
        host.signal(EDIT_CONTEXT_SIGNAL, ContextDocument(summary="Early edit"))

        assert workflow.state.phase == WorkflowPhase.INTERVIEW
        assert workflow.state.awaiting_response is True
        assert workflow.state.context_document.summary == "Early edit"
        await stop(task)

    @pytest.mark.asyncio
    async def test_get_state_is_a_copy(self, host, activities):
        workflow = AdaptiveInterviewWorkflow(host, activities, include_introduction=False)
        task = start(workflow)
        await settle(lambda: waiting_for_input(workflow, task))

        snapshot = host.query(GET_STATE_QUERY)
        snapshot.domain = "changed"
        assert workflow.state.domain == "product launch"
        assert snapshot.phase == WorkflowPhase.INTERVIEW
        await stop(task)


class TestFailures:
    """Fatal conditions."""

    @pytest.mark.asyncio
    async def test_blank_domain(self, host, activities):
        workflow = AdaptiveInterviewWorkflow(host, activities)
        with pytest.raises(InvalidWorkflowInputError, match="Domain is required"):
            await workflow.run("  ", "Objective")

    @pytest.mark.asyncio
    async def test_blank_objective(self, host, activities):
        workflow = AdaptiveInterviewWorkflow(host, activities)
        with pytest.raises(InvalidWorkflowInputError, match="Objective is required"):
            await workflow.run("Domain", "")

    @pytest.mark.asyncio
    async def test_response_timeout(self, host, activities):
        workflow = AdaptiveInterviewWorkflow(
            host,
            activities,
            response_timeout=timedelta(milliseconds=20),
        )
        with pytest.raises(WorkflowTimeoutError):
            await workflow.run("Domain", "Objective")
        assert workflow.state.phase == WorkflowPhase.INTRODUCE

    @pytest.mark.asyncio
    async def test_empty_response(self, host, activities):
        workflow = AdaptiveInterviewWorkflow(host, activities, include_introduction=False)
        task = start(workflow)
        await settle(lambda: waiting_for_input(workflow, task))

        host.signal(RESPOND_SIGNAL, "   ")
        with pytest.raises(EmptyResponseError):
            await asyncio.wait_for(task, timeout=5)

    @pytest.mark.asyncio
    async def test_activity_exhausts_retries(self, host, fake_completion):
        class BrokenSynthesis(InterviewActivities):
            async def synthesize_context(self, domain, objective, exchanges):
                raise RuntimeError("synthesis backend down")

        workflow = AdaptiveInterviewWorkflow(
            host,
            BrokenSynthesis(fake_completion),
            include_introduction=False,
        )
        task = start(workflow)
        with pytest.raises(ActivityFailedError):
            await answer_all(host, workflow, task, lambda state: "done" if len(state.exchanges) >= 2 else "Detail")
        assert workflow.state.phase == WorkflowPhase.SYNTHESIZE

    @pytest.mark.asyncio
    async def test_cancel(self, host, activities):
        workflow = AdaptiveInterviewWorkflow(host, activities)
        task = start(workflow)
        await settle(lambda: waiting_for_input(workflow, task))

        host.cancel()
        with pytest.raises(WorkflowCancelledError):
            await asyncio.wait_for(task, timeout=5)
