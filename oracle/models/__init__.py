"""
Models package.
"""
from oracle.models.interview import (
    QuestionType,
    CompletionRule,
    SessionStatus,
    Priority,
    Question,
    InterviewDefinition,
    ResponseMetadata,
    ResponseData,
    InterviewSession,
    SessionUpdate,
    CreateSessionParams,
    SessionFilters,
    ProcessResult,
    ProgressInfo,
    Recommendation,
    AnalysisResult,
)
from oracle.models.workflow import (
    WorkflowPhase,
    Exchange,
    ContextDocument,
    RecommendationSet,
    ResponseAssessment,
    AdaptiveInterviewState,
    InterviewSnapshot,
)

__all__ = [
    # Step-based interviews
    "QuestionType",
    "CompletionRule",
    "SessionStatus",
    "Priority",
    "Question",
    "InterviewDefinition",
    "ResponseMetadata",
    "ResponseData",
    "InterviewSession",
    "SessionUpdate",
    "CreateSessionParams",
    "SessionFilters",
    "ProcessResult",
    "ProgressInfo",
    "Recommendation",
    "AnalysisResult",
    # Adaptive workflow
    "WorkflowPhase",
    "Exchange",
    "ContextDocument",
    "RecommendationSet",
    "ResponseAssessment",
    "AdaptiveInterviewState",
    "InterviewSnapshot",
]
