"""
Workflow host.

The host owns everything a long-running workflow needs from its runtime:
signal and query routing, durable-style waits, and activity execution with
retries. The workflow itself only talks to this interface, so the same
phase machine runs against the in-process host or any other runtime that
implements it.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Type

from oracle.core.exceptions import (
    ActivityFailedError,
    InvalidWorkflowInputError,
    WorkflowCancelledError,
)

logger = logging.getLogger(__name__)


SignalHandler = Callable[[Any], None]
QueryHandler = Callable[[], Any]


@dataclass
class RetryPolicy:
    """Retry and timeout settings applied to every activity call."""
    maximum_attempts: int = 3
    start_to_close_timeout: timedelta = timedelta(minutes=5)
    initial_interval: timedelta = timedelta(seconds=1)
    backoff_coefficient: float = 2.0
    non_retryable_error_types: Tuple[Type[BaseException], ...] = field(
        default_factory=lambda: (InvalidWorkflowInputError,)
    )

    def interval_for(self, attempt: int) -> float:
        """Seconds to wait after the given (1-based) failed attempt."""
        return self.initial_interval.total_seconds() * (self.backoff_coefficient ** (attempt - 1))


class WorkflowHost(ABC):
    """Runtime services for a single workflow instance."""

    @abstractmethod
    def set_signal_handler(self, name: str, handler: SignalHandler) -> None:
        pass

    @abstractmethod
    def set_query_handler(self, name: str, handler: QueryHandler) -> None:
        pass

    @abstractmethod
    async def wait_condition(self, predicate: Callable[[], bool], timeout: Optional[timedelta] = None) -> bool:
        """
        Suspend until predicate() is true.

        Returns:
            True if the predicate was satisfied, False on timeout
        """
        pass

    @abstractmethod
    async def execute_activity(self, activity: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """
        Run an activity under the retry policy.

        Raises:
            ActivityFailedError: once every attempt has failed
        """
        pass


class InProcessWorkflowHost(WorkflowHost):
    """
    Host backed by the running asyncio loop.

    Signals that arrive before a handler is registered are buffered and
    replayed in delivery order when the handler appears.
    """

    def __init__(self, retry_policy: Optional[RetryPolicy] = None):
        self.retry_policy = retry_policy or RetryPolicy()
        self._signal_handlers: Dict[str, SignalHandler] = {}
        self._query_handlers: Dict[str, QueryHandler] = {}
        self._pending_signals: List[Tuple[str, Any]] = []
        self._changed = asyncio.Event()
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def set_signal_handler(self, name: str, handler: SignalHandler) -> None:
        self._signal_handlers[name] = handler

        pending, self._pending_signals = self._pending_signals, []
        for signal_name, payload in pending:
            if signal_name == name:
                handler(payload)
            else:
                self._pending_signals.append((signal_name, payload))
        self._changed.set()

    def set_query_handler(self, name: str, handler: QueryHandler) -> None:
        self._query_handlers[name] = handler

    def signal(self, name: str, payload: Any = None) -> None:
        """Deliver a signal to the workflow."""
        handler = self._signal_handlers.get(name)
        if handler is None:
            logger.debug(f"Buffering signal '{name}' until a handler is registered")
            self._pending_signals.append((name, payload))
            return
        handler(payload)
        self._changed.set()

    def query(self, name: str) -> Any:
        """
        Raises:
            KeyError: if no handler is registered under name
        """
        handler = self._query_handlers.get(name)
        if handler is None:
            raise KeyError(f"No query handler registered: {name}")
        return handler()

    def cancel(self) -> None:
        """Request cancellation; takes effect at the next wait or activity call."""
        self._cancelled = True
        self._changed.set()

    def _check_cancelled(self) -> None:
        if self._cancelled:
            raise WorkflowCancelledError("Workflow was cancelled")

    async def wait_condition(self, predicate: Callable[[], bool], timeout: Optional[timedelta] = None) -> bool:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout.total_seconds() if timeout is not None else None

        while True:
            self._check_cancelled()
            if predicate():
                return True

            self._changed.clear()
            remaining = None
            if deadline is not None:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    return False
            try:
                await asyncio.wait_for(self._changed.wait(), timeout=remaining)
            except asyncio.TimeoutError:
                self._check_cancelled()
                return predicate()

    async def execute_activity(self, activity: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        policy = self.retry_policy
        name = getattr(activity, "__name__", repr(activity))
        last_error: Optional[BaseException] = None

        for attempt in range(1, policy.maximum_attempts + 1):
            self._check_cancelled()
            try:
                return await asyncio.wait_for(
                    activity(*args, **kwargs),
                    timeout=policy.start_to_close_timeout.total_seconds(),
                )
            except policy.non_retryable_error_types:
                raise
            except asyncio.TimeoutError as e:
                last_error = e
                logger.warning(f"Activity {name} timed out (attempt {attempt}/{policy.maximum_attempts})")
            except Exception as e:
                last_error = e
                logger.warning(f"Activity {name} failed (attempt {attempt}/{policy.maximum_attempts}): {e}")

            if attempt < policy.maximum_attempts:
                await asyncio.sleep(policy.interval_for(attempt))

        logger.error(f"Activity {name} exhausted {policy.maximum_attempts} attempts")
        raise ActivityFailedError(
            f"Activity {name} failed after {policy.maximum_attempts} attempts: {last_error}",
            details={"activity": name, "attempts": policy.maximum_attempts},
        ) from last_error
