"""
Interview Engine Service.

Pure state-transition logic for step-based interviews: which question comes
next, whether a response is valid, and whether the interview is finished.

The engine never mutates a session. process_response() evaluates a projected
state and returns the fields to persist as a SessionUpdate; committing that
delta belongs to the SessionManager.
"""
import logging
import math
import re
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Optional

from oracle.models.interview import (
    CompletionRule,
    InterviewSession,
    ProcessResult,
    ProgressInfo,
    Question,
    QuestionType,
    ResponseData,
    ResponseMetadata,
    SessionStatus,
    SessionUpdate,
    utcnow,
)
from oracle.services.question_bank import QuestionBank, get_question_bank

logger = logging.getLogger(__name__)


# Short replies that signal the user wants to stop
USER_DONE_PATTERN = re.compile(
    r"\b(done|finished|that'?s all|no more|that covers it|nothing else)\b",
    re.IGNORECASE,
)
DEFAULT_DONE_MAX_CHARS = 50

# Non-ISO date layouts accepted in addition to ISO 8601
DATE_FORMATS = (
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
)

YES_NO_STRINGS = frozenset({"yes", "no", "true", "false"})


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def is_empty_response(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "") or (isinstance(value, list) and not value)


def to_finite_number(value: Any) -> Optional[float]:
    """Coerce a response to a finite float, or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _option_form(value: Any) -> str:
    """String form of a response for comparison against option labels."""
    if isinstance(value, str):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _parse_date(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        # Epoch milliseconds
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        iso_text = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
        try:
            return datetime.fromisoformat(iso_text)
        except ValueError:
            pass
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(text, fmt)
            except ValueError:
                continue
    return None


# ==================== Per-type validators ====================
# Each returns an error message or None.

def _validate_text(question: Question, value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return "Response must be text"
    return None


def _validate_number(question: Question, value: Any) -> Optional[str]:
    if to_finite_number(value) is None:
        return "Response must be a number"
    return None


def _validate_yes_no(question: Question, value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str) and value in YES_NO_STRINGS:
        return None
    return "Response must be yes/no or true/false"


def _validate_scale(question: Question, value: Any) -> Optional[str]:
    if to_finite_number(value) is None:
        return "Scale response must be a number"
    if question.options and _option_form(value) not in question.options:
        return f"Response must be one of: {', '.join(question.options)}"
    return None


def _validate_multiple_choice(question: Question, value: Any) -> Optional[str]:
    if question.options and value not in question.options:
        return f"Response must be one of: {', '.join(question.options)}"
    return None


def _validate_multiple_select(question: Question, value: Any) -> Optional[str]:
    if not isinstance(value, list):
        return "Multiple select response must be an array"
    if question.options:
        invalid = [item for item in value if item not in question.options]
        if invalid:
            return f"Invalid options: {', '.join(str(item) for item in invalid)}"
    return None


def _validate_date(question: Question, value: Any) -> Optional[str]:
    if _parse_date(value) is None:
        return "Response must be a valid date"
    return None


RESPONSE_VALIDATORS: Dict[QuestionType, Callable[[Question, Any], Optional[str]]] = {
    QuestionType.TEXT: _validate_text,
    QuestionType.NUMBER: _validate_number,
    QuestionType.YES_NO: _validate_yes_no,
    QuestionType.SCALE: _validate_scale,
    QuestionType.DATE: _validate_date,
    QuestionType.MULTIPLE_CHOICE: _validate_multiple_choice,
    QuestionType.MULTIPLE_SELECT: _validate_multiple_select,
}


class InterviewEngine:
    """
    Drives a step-based interview over a QuestionBank.

    Usage:
        engine = InterviewEngine()
        question = engine.get_next_question(session)
        result = engine.process_response(session, "My answer")
        if result.success:
            await session_manager.update_session(session.id, result.updates)
    """

    def __init__(
        self,
        question_bank: Optional[QuestionBank] = None,
        done_max_chars: int = DEFAULT_DONE_MAX_CHARS,
        done_pattern: re.Pattern = USER_DONE_PATTERN,
    ):
        self._question_bank = question_bank
        self.done_max_chars = done_max_chars
        self.done_pattern = done_pattern

    @property
    def question_bank(self) -> QuestionBank:
        return self._question_bank or get_question_bank()

    def get_next_question(self, session: InterviewSession) -> Optional[Question]:
        """
        Question at the session's current step.

        Raises:
            InvalidInterviewTypeError: if the session's type is unknown
        """
        definition = self.question_bank.require(session.interview_type)
        if session.current_step >= definition.max_steps:
            return None
        return definition.questions[session.current_step]

    def validate_response(self, question: Question, response: Any) -> Optional[str]:
        """
        Check a raw response against a question's rules.

        Returns:
            None when valid, otherwise a human-readable reason
        """
        if is_empty_response(response):
            if question.required:
                return "Response is required for this question"
            return None

        validator = RESPONSE_VALIDATORS.get(question.type)
        if validator is None:
            question_type = getattr(question.type, "value", question.type)
            return f"Unknown question type: {question_type}"
        return validator(question, response)

    def process_response(self, session: InterviewSession, response: Any) -> ProcessResult:
        """
        Validate and record a response against the current question.

        The input session is left untouched; on success the result carries
        the fields to persist in `updates`.
        """
        definition = self.question_bank.require(session.interview_type)
        question = self.get_next_question(session)
        if question is None:
            return ProcessResult(success=False, error="No current question found")

        error = self.validate_response(question, response)
        if error:
            logger.debug(f"Session {session.id}: rejected response for {question.id}: {error}")
            return ProcessResult(success=False, error=error)

        now = utcnow()
        responses = dict(session.responses)
        if not is_empty_response(response):
            responses[question.id] = ResponseData(
                response=response,
                metadata=ResponseMetadata(
                    question_id=question.id,
                    question_text=question.text,
                    question_type=question.type.value,
                    step=session.current_step,
                ),
                timestamp=now.isoformat(),
            )

        next_step = session.current_step + 1
        projected = session.model_copy(update={
            "responses": responses,
            "current_step": next_step,
            "updated_at": now,
        })
        completed = self.check_completion(projected)

        update_fields: Dict[str, Any] = {
            "current_step": next_step,
            "responses": responses,
            "updated_at": now,
        }
        if completed:
            update_fields["status"] = SessionStatus.COMPLETED
            update_fields["completed_at"] = session.completed_at or now
            logger.info(f"Session {session.id}: interview completed at step {next_step}")
        else:
            update_fields["status"] = session.status

        return ProcessResult(
            success=True,
            completed=completed,
            next_question=None if completed else definition.question_at(next_step),
            updates=SessionUpdate(**update_fields),
        )

    def check_completion(self, session: InterviewSession) -> bool:
        """True if any completion rule declared by the archetype holds."""
        definition = self.question_bank.get(session.interview_type)
        if definition is None:
            return False

        for rule in definition.completion_criteria:
            if rule == CompletionRule.STEP_LIMIT_REACHED:
                if session.current_step >= definition.max_steps:
                    return True
            elif rule == CompletionRule.ALL_REQUIRED_ANSWERED:
                answered = all(qid in session.responses for qid in definition.required_question_ids)
                if answered and session.current_step >= len(definition.questions):
                    return True
            elif rule == CompletionRule.USER_INDICATED_DONE:
                if self._user_indicated_done(session):
                    return True
            # TIMEOUT is enforced by the caller's scheduling, not from session data

        return False

    def get_progress(self, session: InterviewSession) -> ProgressInfo:
        """
        Raises:
            InvalidInterviewTypeError: if the session's type is unknown
        """
        definition = self.question_bank.require(session.interview_type)
        percentage = round_half_up(session.current_step / definition.max_steps * 100)
        return ProgressInfo(
            current_step=session.current_step,
            total_steps=definition.max_steps,
            completion_percentage=min(percentage, 100),
        )

    def _user_indicated_done(self, session: InterviewSession) -> bool:
        if not session.responses:
            return False
        latest = max(session.responses.values(), key=lambda r: r.metadata.step)
        if not isinstance(latest.response, str):
            return False
        text = latest.response.strip()
        if len(text) > self.done_max_chars:
            return False
        return bool(self.done_pattern.search(text))


# Global engine instance (lazy loaded)
_interview_engine: Optional[InterviewEngine] = None


def get_interview_engine() -> InterviewEngine:
    """Get or create the interview engine instance."""
    global _interview_engine
    if _interview_engine is None:
        from oracle.core.config import get_settings
        _interview_engine = InterviewEngine(done_max_chars=get_settings().engine_done_max_chars)
    return _interview_engine
