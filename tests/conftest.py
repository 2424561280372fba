"""
pytest configuration and shared fixtures.
"""
import os
from datetime import timedelta
from typing import Callable, List, Optional, Union

import pytest

# Keep tests on the in-memory backends
os.environ["SESSION_STORAGE_BACKEND"] = "memory"

from oracle.core.exceptions import CompletionError
from oracle.models.interview_types import BUILTIN_INTERVIEWS
from oracle.providers.session_storage import MemorySessionStorage, set_session_storage
from oracle.services.analyzer import Analyzer
from oracle.services.interview_engine import InterviewEngine
from oracle.services.interview_store import MemoryInterviewStore, set_interview_store
from oracle.services.question_bank import QuestionBank, set_question_bank
from oracle.services.session_manager import SessionManager, set_session_manager
from oracle.services.workflow_host import RetryPolicy
from oracle.services.workflow_runner import set_workflow_runner


class FakeCompletion:
    """
    Scripted stand-in for TextCompletion.

    Each call pops the next scripted reply. A reply may be a string, an
    exception instance (raised), or a callable taking the prompt. With an
    empty script every call raises CompletionError, so activities take
    their fallback paths.
    """

    def __init__(self, replies: Optional[List[Union[str, Exception, Callable[[str], str]]]] = None):
        self.replies = list(replies or [])
        self.calls: List[dict] = []

    async def complete(self, prompt, system_prompt_suffix=None, max_tokens=1024, temperature=0.7):
        self.calls.append({
            "prompt": prompt,
            "system_prompt_suffix": system_prompt_suffix,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        if not self.replies:
            raise CompletionError("No scripted reply")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(prompt)
        return reply


@pytest.fixture(autouse=True)
def reset_globals():
    """Drop lazily created service singletons between tests."""
    yield
    set_question_bank(None)
    set_session_storage(None)
    set_session_manager(None)
    set_interview_store(None)
    set_workflow_runner(None)


@pytest.fixture
def question_bank():
    return QuestionBank(BUILTIN_INTERVIEWS)


@pytest.fixture
def engine(question_bank):
    return InterviewEngine(question_bank=question_bank)


@pytest.fixture
def analyzer(question_bank):
    return Analyzer(question_bank=question_bank)


@pytest.fixture
def memory_storage():
    return MemorySessionStorage()


@pytest.fixture
def session_manager(memory_storage, question_bank, engine, analyzer):
    return SessionManager(
        storage=memory_storage,
        question_bank=question_bank,
        engine=engine,
        analyzer=analyzer,
    )


@pytest.fixture
def fake_completion():
    return FakeCompletion()


@pytest.fixture
def scripted_completion():
    """Factory: scripted_completion(["reply", CompletionError(...), ...])."""
    return FakeCompletion


@pytest.fixture
def interview_store():
    return MemoryInterviewStore()


@pytest.fixture
def fast_retry_policy():
    """Retry policy with no real waiting between attempts."""
    return RetryPolicy(
        maximum_attempts=3,
        start_to_close_timeout=timedelta(seconds=2),
        initial_interval=timedelta(seconds=0),
    )
