"""
Pydantic models for step-based interview sessions.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class QuestionType(str, Enum):
    """Closed set of question kinds. Each kind has exactly one validator."""
    TEXT = "text"
    NUMBER = "number"
    YES_NO = "yes_no"
    SCALE = "scale"
    DATE = "date"
    MULTIPLE_CHOICE = "multiple_choice"
    MULTIPLE_SELECT = "multiple_select"


# Question kinds that must carry a non-empty options list
OPTION_QUESTION_TYPES = frozenset({
    QuestionType.SCALE,
    QuestionType.MULTIPLE_CHOICE,
    QuestionType.MULTIPLE_SELECT,
})


class CompletionRule(str, Enum):
    """Rules that can end a step-based interview."""
    ALL_REQUIRED_ANSWERED = "all_required_answered"
    STEP_LIMIT_REACHED = "step_limit_reached"
    USER_INDICATED_DONE = "user_indicated_done"
    TIMEOUT = "timeout"


class SessionStatus(str, Enum):
    """Status of an interview session."""
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


class Priority(str, Enum):
    """Recommendation priority."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Question(BaseModel):
    """A single step of an interview archetype."""
    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    type: QuestionType
    required: bool = True
    options: Optional[Tuple[str, ...]] = None
    metadata: Dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_options(self) -> "Question":
        needs_options = self.type in OPTION_QUESTION_TYPES
        if needs_options and not self.options:
            raise ValueError(f"Question {self.id} of type {self.type.value} requires options")
        if not needs_options and self.options is not None:
            raise ValueError(f"Question {self.id} of type {self.type.value} cannot have options")
        return self


class InterviewDefinition(BaseModel):
    """Static, immutable definition of one interview archetype."""
    model_config = ConfigDict(frozen=True)

    type: str
    description: str = ""
    max_steps: int = Field(ge=1)
    questions: Tuple[Question, ...]
    completion_criteria: Tuple[CompletionRule, ...]

    @model_validator(mode="after")
    def _check_questions(self) -> "InterviewDefinition":
        if len(self.questions) != self.max_steps:
            raise ValueError(
                f"Interview {self.type} declares {self.max_steps} steps "
                f"but has {len(self.questions)} questions"
            )
        ids = [q.id for q in self.questions]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Interview {self.type} has duplicate question ids")
        return self

    @property
    def required_question_ids(self) -> List[str]:
        return [q.id for q in self.questions if q.required]

    def question_at(self, step: int) -> Optional[Question]:
        """Question for a 0-based step, or None past the end."""
        if 0 <= step < len(self.questions):
            return self.questions[step]
        return None


class ResponseMetadata(BaseModel):
    """Snapshot of the question at the time it was answered."""
    question_id: str
    question_text: str
    question_type: str
    step: int


class ResponseData(BaseModel):
    """A recorded answer."""
    response: Any
    metadata: ResponseMetadata
    timestamp: str


class InterviewSession(BaseModel):
    """Mutable aggregate for one step-based interview."""
    id: str
    user_id: str
    interview_type: str
    status: SessionStatus = SessionStatus.ACTIVE
    current_step: int = Field(default=0, ge=0)
    responses: Dict[str, ResponseData] = Field(default_factory=dict)
    context_data: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.status == SessionStatus.COMPLETED


class SessionUpdate(BaseModel):
    """Partial session fields. Only explicitly set fields are applied."""
    status: Optional[SessionStatus] = None
    current_step: Optional[int] = Field(default=None, ge=0)
    responses: Optional[Dict[str, ResponseData]] = None
    context_data: Optional[Dict[str, Any]] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class CreateSessionParams(BaseModel):
    """Parameters for creating a session."""
    user_id: str
    interview_type: str
    initial_context: Optional[Dict[str, Any]] = None


class SessionFilters(BaseModel):
    """Filters and pagination for listing sessions."""
    user_id: Optional[str] = None
    interview_type: Optional[str] = None
    status: Optional[SessionStatus] = None
    created_after: Optional[datetime] = None
    created_before: Optional[datetime] = None
    limit: Optional[int] = Field(default=None, ge=1)
    offset: int = Field(default=0, ge=0)

    @field_validator("created_after", "created_before")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        """Naive bounds are read as UTC; stored timestamps are always aware."""
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def matches(self, session: InterviewSession) -> bool:
        """Whether a session passes every set filter (pagination excluded)."""
        if self.user_id is not None and session.user_id != self.user_id:
            return False
        if self.interview_type is not None and session.interview_type != self.interview_type:
            return False
        if self.status is not None and session.status != self.status:
            return False
        if self.created_after is not None and session.created_at <= self.created_after:
            return False
        if self.created_before is not None and session.created_at >= self.created_before:
            return False
        return True


class ProcessResult(BaseModel):
    """Outcome of processing one response. `updates` is a delta, never applied here."""
    success: bool
    completed: bool = False
    next_question: Optional[Question] = None
    error: Optional[str] = None
    updates: Optional[SessionUpdate] = None


class ProgressInfo(BaseModel):
    """Progress through an interview."""
    current_step: int
    total_steps: int
    completion_percentage: int


class Recommendation(BaseModel):
    """An actionable recommendation."""
    title: str
    rationale: str
    next_steps: List[str] = Field(default_factory=list)
    priority: Optional[Priority] = None
    agent_to_execute: Optional[str] = None
    pros: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)
    facets: Dict[str, str] = Field(default_factory=dict)


class AnalysisResult(BaseModel):
    """Derived analysis of a completed session. Recomputed on demand."""
    completion_time: int = 0
    response_count: int = 0
    completion_rate: float = 1.0
    insights: List[str] = Field(default_factory=list)
    score: int = Field(default=0, ge=0, le=100)
    recommendations: List[Recommendation] = Field(default_factory=list)
