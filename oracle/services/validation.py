"""
Validation utilities for session parameters.

Request shape and types are enforced by the API models. The checks here are
the domain rules on top of that, reported as a ValidationResult instead of
raised so the HTTP layer can return every error at once.
"""
from typing import List

from pydantic import BaseModel, Field

from oracle.models.interview import CreateSessionParams
from oracle.services.question_bank import get_question_bank


class ValidationResult(BaseModel):
    """Outcome of a parameter check."""
    valid: bool
    errors: List[str] = Field(default_factory=list)


def _result(errors: List[str]) -> ValidationResult:
    return ValidationResult(valid=not errors, errors=errors)


def validate_user_id(user_id: str) -> ValidationResult:
    errors = []
    if not user_id.strip():
        errors.append("userId cannot be empty")
    return _result(errors)


def validate_interview_type(interview_type: str) -> ValidationResult:
    errors = []
    if not interview_type.strip():
        errors.append("interviewType cannot be empty")
    elif not get_question_bank().is_valid(interview_type):
        errors.append(f"Invalid interview type: {interview_type}")
    return _result(errors)


def validate_create_session_params(params: CreateSessionParams) -> ValidationResult:
    """Every domain error for a session-creation request."""
    errors = validate_user_id(params.user_id).errors + validate_interview_type(params.interview_type).errors
    return _result(errors)
