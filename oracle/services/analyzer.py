"""
Interview Analyzer Service.

Post-completion scoring, insight extraction and recommendations for
step-based interview sessions. Analysis is derived on demand and is never
stored as the record of truth.
"""
import logging
from typing import Callable, Dict, List, Optional

from oracle.core.exceptions import IncompleteSessionError
from oracle.models.interview import (
    AnalysisResult,
    InterviewSession,
    Priority,
    Recommendation,
    SessionStatus,
)
from oracle.services.interview_engine import round_half_up, to_finite_number
from oracle.services.question_bank import QuestionBank, get_question_bank

logger = logging.getLogger(__name__)


# Score weights
COMPLETENESS_WEIGHT = 40
QUALITY_WEIGHT = 30
TIME_WEIGHT = 30
DEFAULT_TIME_SCORE = 15

# Minutes considered a normal interview length for scoring
OPTIMAL_MINUTES_MIN = 5
OPTIMAL_MINUTES_MAX = 15


RECOMMENDATION_TEMPLATES: Dict[str, Dict] = {
    "tenant-screening": {
        "title": "Review Application",
        "rationale": "Complete tenant screening interview ready for review",
        "next_steps": ["Verify employment information", "Check references", "Review financial documents"],
        "priority": Priority.HIGH,
    },
    "maintenance-request": {
        "title": "Schedule Maintenance",
        "rationale": "Maintenance request details collected and categorized",
        "next_steps": ["Assign appropriate technician", "Schedule access time", "Prepare required tools/parts"],
        "priority": Priority.MEDIUM,
    },
    "customer-onboarding": {
        "title": "Follow-up Contact",
        "rationale": "Customer onboarding information collected",
        "next_steps": ["Prepare service proposal", "Schedule follow-up call", "Send welcome materials"],
        "priority": Priority.MEDIUM,
    },
    "general": {
        "title": "Process Context",
        "rationale": "General context gathering completed successfully",
        "next_steps": ["Review responses for key themes", "Identify next best action", "Schedule appropriate follow-up"],
        "priority": Priority.MEDIUM,
    },
}


def completion_time_ms(session: InterviewSession) -> int:
    """Milliseconds from creation to completion, 0 if either is missing."""
    if session.completed_at is None or session.created_at is None:
        return 0
    return int((session.completed_at - session.created_at).total_seconds() * 1000)


def _response_value(session: InterviewSession, question_id: str):
    data = session.responses.get(question_id)
    return data.response if data is not None else None


# ==================== Archetype insight extractors ====================

def _tenant_screening_insights(session: InterviewSession) -> List[str]:
    insights = []

    employment = _response_value(session, "employment_status")
    if employment == "Employed full-time":
        insights.append("Stable employment status")
    elif employment == "Self-employed":
        insights.append("Self-employed - may require additional income verification")

    income = to_finite_number(_response_value(session, "monthly_income"))
    if income is not None:
        if income > 5000:
            insights.append("Strong financial profile")
        elif income < 2000:
            insights.append("May need additional financial documentation")

    history = _response_value(session, "rental_history")
    if history is not None:
        history = str(history).lower()
        if "no" in history or "first time" in history:
            insights.append("First-time renter - may need additional references")

    return insights


def _maintenance_insights(session: InterviewSession) -> List[str]:
    insights = []

    urgency = _response_value(session, "urgency_level")
    if urgency == "Emergency (immediate)":
        insights.append("Emergency request - immediate attention required")
    elif urgency == "Urgent (within 24 hours)":
        insights.append("Urgent request - prioritize scheduling")

    category = _response_value(session, "issue_category")
    if category:
        insights.append(f"{category} maintenance request identified")
        if category in ("Plumbing", "Electrical"):
            insights.append("May require specialized technician")

    return insights


def _onboarding_insights(session: InterviewSession) -> List[str]:
    insights = []

    urgency = to_finite_number(_response_value(session, "urgency"))
    if urgency is not None and urgency >= 4:
        insights.append("High urgency customer - prioritize follow-up")

    source = _response_value(session, "welcome")
    if source:
        insights.append(f"Acquired via {str(source).lower()}")

    budget = _response_value(session, "budget_range")
    if budget == "Over $5000":
        insights.append("High-value customer prospect")
    elif budget == "Not sure":
        insights.append("May need budget discussion and guidance")

    return insights


def _general_insights(session: InterviewSession) -> List[str]:
    insights = []

    experience = to_finite_number(_response_value(session, "experience"))
    if experience is not None:
        if experience <= 2:
            insights.append("New to this type of interaction - may need additional guidance")
        elif experience >= 4:
            insights.append("Experienced user - can handle advanced topics")

    goals = _response_value(session, "goals")
    if goals is not None and len(str(goals)) > 50:
        insights.append("Clear and detailed goals provided")

    return insights


INSIGHT_EXTRACTORS: Dict[str, Callable[[InterviewSession], List[str]]] = {
    "tenant-screening": _tenant_screening_insights,
    "maintenance-request": _maintenance_insights,
    "customer-onboarding": _onboarding_insights,
    "general": _general_insights,
}


class Analyzer:
    """
    Scores completed sessions and derives insights and recommendations.
    """

    def __init__(
        self,
        question_bank: Optional[QuestionBank] = None,
        maintenance_agent: str = "maintenance-dispatcher",
    ):
        self._question_bank = question_bank
        self.maintenance_agent = maintenance_agent

    @property
    def question_bank(self) -> QuestionBank:
        return self._question_bank or get_question_bank()

    def generate_analysis(self, session: InterviewSession) -> AnalysisResult:
        """
        Full analysis of a completed session.

        Raises:
            IncompleteSessionError: if the session has not completed
        """
        if session.status != SessionStatus.COMPLETED:
            raise IncompleteSessionError(
                f"Cannot analyze incomplete session: {session.id}",
                details={"session_id": session.id, "status": session.status},
            )

        insights = self.extract_insights(session)
        result = AnalysisResult(
            completion_time=completion_time_ms(session),
            response_count=len(session.responses),
            # Completion is binary in this model
            completion_rate=1.0,
            insights=insights,
            score=self.calculate_score(session),
            recommendations=self._generate_recommendations(session, insights),
        )
        logger.info(f"Analysis generated for session {session.id}: score={result.score}")
        return result

    def calculate_score(self, session: InterviewSession) -> int:
        """Overall score 0-100. Unknown interview types score 0."""
        definition = self.question_bank.get(session.interview_type)
        if definition is None:
            return 0

        completeness = min(len(session.responses) / definition.max_steps * COMPLETENESS_WEIGHT, COMPLETENESS_WEIGHT)
        quality = self._quality_score(session)
        timing = self._time_score(session)

        return min(round_half_up(min(completeness + quality + timing, 100)), 100)

    def extract_insights(self, session: InterviewSession) -> List[str]:
        """Ordered insights. Unknown interview types yield none."""
        definition = self.question_bank.get(session.interview_type)
        if definition is None:
            return []

        insights = []
        response_count = len(session.responses)
        if response_count == definition.max_steps:
            insights.append("Completed all interview questions")
        else:
            insights.append(f"Completed {response_count} of {definition.max_steps} questions")

        elapsed = completion_time_ms(session)
        if elapsed > 0:
            minutes = round_half_up(elapsed / 60000)
            if minutes < 5:
                insights.append("Completed interview quickly, indicating clear objectives")
            elif minutes > 30:
                insights.append("Took considerable time, suggesting thoughtful consideration")
            else:
                insights.append("Completed interview at a normal pace")

        extractor = INSIGHT_EXTRACTORS.get(session.interview_type)
        if extractor is not None:
            insights.extend(extractor(session))

        return insights

    def _quality_score(self, session: InterviewSession) -> float:
        responses = list(session.responses.values())
        if not responses:
            return 0

        points = 0
        for data in responses:
            value = data.response
            if value and str(value).strip():
                points += 2
                if isinstance(value, str) and len(value) > 20:
                    points += 1
                if isinstance(value, list) and len(value) > 1:
                    points += 1

        max_points = len(responses) * 3
        return min(points / max_points * QUALITY_WEIGHT, QUALITY_WEIGHT)

    def _time_score(self, session: InterviewSession) -> float:
        elapsed = completion_time_ms(session)
        if elapsed <= 0:
            return DEFAULT_TIME_SCORE

        minutes = elapsed / 60000
        if OPTIMAL_MINUTES_MIN <= minutes <= OPTIMAL_MINUTES_MAX:
            return TIME_WEIGHT
        if minutes < OPTIMAL_MINUTES_MIN:
            # Rushed
            return max(10, TIME_WEIGHT - (OPTIMAL_MINUTES_MIN - minutes) * 4)
        # Disengaged
        return max(10, TIME_WEIGHT - (minutes - OPTIMAL_MINUTES_MAX) * 2)

    def _generate_recommendations(self, session: InterviewSession, insights: List[str]) -> List[Recommendation]:
        template = RECOMMENDATION_TEMPLATES.get(session.interview_type, RECOMMENDATION_TEMPLATES["general"])
        recommendation = Recommendation(**{**template, "next_steps": list(template["next_steps"])})

        if session.interview_type == "maintenance-request":
            urgent = any("Emergency" in i or "Urgent" in i for i in insights)
            recommendation.priority = Priority.HIGH if urgent else Priority.MEDIUM
            recommendation.agent_to_execute = self.maintenance_agent

        return [recommendation]


# Global analyzer instance (lazy loaded)
_analyzer: Optional[Analyzer] = None


def get_analyzer() -> Analyzer:
    """Get or create the analyzer instance."""
    global _analyzer
    if _analyzer is None:
        from oracle.core.config import get_settings
        _analyzer = Analyzer(maintenance_agent=get_settings().maintenance_agent_name)
    return _analyzer
