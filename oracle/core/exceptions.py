"""
Error types for the Oracle interview system.

Validation failures are reported as result objects, not raised. Everything
here is an explicit failure that callers are expected to distinguish; the
HTTP layer maps not-found errors to 404 and transition errors to 409.
"""
from typing import Any, Dict, Optional


class OracleError(Exception):
    """Base error. Carries a message and optional structured details."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(OracleError):
    """A referenced entity does not exist."""


class InvalidInterviewTypeError(NotFoundError):
    """Interview type does not resolve in the question bank."""

    def __init__(self, interview_type: str):
        super().__init__(
            f"Invalid interview type: {interview_type}",
            details={"interview_type": interview_type},
        )
        self.interview_type = interview_type


class SessionNotFoundError(NotFoundError):
    """Session id is not present in storage."""

    def __init__(self, session_id: str):
        super().__init__(
            f"Session not found: {session_id}",
            details={"session_id": session_id},
        )
        self.session_id = session_id


class InvalidTransitionError(OracleError):
    """Lifecycle transition is not allowed from the current status."""


class IncompleteSessionError(OracleError):
    """Analysis requested for a session that has not completed."""


class StorageError(OracleError):
    """The storage collaborator failed."""


class CompletionError(OracleError):
    """Text completion failed (transport, empty output or unparseable output)."""


class WorkflowError(OracleError):
    """Fatal failure of an adaptive interview workflow."""


class InvalidWorkflowInputError(WorkflowError):
    """Domain or objective missing at prime."""


class WorkflowTimeoutError(WorkflowError):
    """No user input arrived before the response timeout."""


class EmptyResponseError(WorkflowError):
    """User input was required but the response was empty."""


class ActivityFailedError(WorkflowError):
    """An activity exhausted its retry attempts."""


class WorkflowCancelledError(WorkflowError):
    """The workflow was cancelled by an operator."""


class WorkflowNotFoundError(NotFoundError):
    """Workflow id is not known to the runner."""

    def __init__(self, workflow_id: str):
        super().__init__(
            f"Interview not found: {workflow_id}",
            details={"workflow_id": workflow_id},
        )
        self.workflow_id = workflow_id
