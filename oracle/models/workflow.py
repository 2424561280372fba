"""
Pydantic models for the adaptive interview workflow.
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from oracle.models.interview import Recommendation, utcnow


# Entries written into fallback context documents so downstream logic can
# detect that synthesis did not run
SYNTHESIS_UNAVAILABLE_ASSUMPTION = "Context extracted without AI synthesis; review for accuracy"
SYNTHESIS_UNAVAILABLE_UNCERTAINTY = "AI synthesis was unavailable; manual review recommended"


class WorkflowPhase(str, Enum):
    """Phases of the adaptive interview, in order."""
    PRIME = "prime"
    INTRODUCE = "introduce"
    INTERVIEW = "interview"
    SYNTHESIZE = "synthesize"
    RECOMMEND = "recommend"
    COMPLETE = "complete"


class Exchange(BaseModel):
    """One question/answer pair in the transcript."""
    question: str
    answer: str


class ContextDocument(BaseModel):
    """Structured synthesis of an interview transcript."""
    summary: str
    facts: List[str] = Field(default_factory=list)
    constraints: List[str] = Field(default_factory=list)
    priorities: List[str] = Field(default_factory=list)
    assumptions: List[str] = Field(default_factory=list)
    uncertainties: List[str] = Field(default_factory=list)
    strategic_analysis: Optional[str] = None

    @property
    def is_degraded(self) -> bool:
        return SYNTHESIS_UNAVAILABLE_UNCERTAINTY in self.uncertainties

    def missing_sections(self) -> List[str]:
        """Names of sections that are empty."""
        missing = []
        if not self.summary.strip():
            missing.append("summary")
        for name in ("facts", "constraints", "priorities", "assumptions", "uncertainties"):
            if not getattr(self, name):
                missing.append(name)
        return missing


class RecommendationSet(BaseModel):
    """Recommendations produced at the end of an adaptive interview."""
    recommendations: List[Recommendation] = Field(default_factory=list)
    comparison_markdown: Optional[str] = None


class ResponseAssessment(BaseModel):
    """Whether the interview loop should stop after an answer."""
    complete: bool
    reason: Optional[str] = None


class AdaptiveInterviewState(BaseModel):
    """Working memory of one adaptive interview."""
    workflow_id: Optional[str] = None
    phase: WorkflowPhase = WorkflowPhase.PRIME
    domain: str
    objective: str
    constraints: Optional[str] = None
    guiding_questions: Optional[List[str]] = None
    exchanges: List[Exchange] = Field(default_factory=list)
    introduction: Optional[str] = None
    current_question: Optional[str] = None
    context_document: Optional[ContextDocument] = None
    recommendations: Optional[RecommendationSet] = None
    user_response: Optional[str] = None
    awaiting_response: bool = False


class InterviewSnapshot(BaseModel):
    """Persisted record of an adaptive interview, keyed by workflow id."""
    workflow_id: str
    domain: str
    objective: str
    constraints: Optional[str] = None
    phase: WorkflowPhase
    exchanges: List[Exchange] = Field(default_factory=list)
    context_document: Optional[ContextDocument] = None
    recommendations: Optional[RecommendationSet] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None

    @classmethod
    def from_state(cls, state: AdaptiveInterviewState) -> "InterviewSnapshot":
        return cls(
            workflow_id=state.workflow_id or "",
            domain=state.domain,
            objective=state.objective,
            constraints=state.constraints,
            phase=state.phase,
            exchanges=[e.model_copy() for e in state.exchanges],
            context_document=state.context_document.model_copy(deep=True) if state.context_document else None,
            recommendations=state.recommendations.model_copy(deep=True) if state.recommendations else None,
        )
