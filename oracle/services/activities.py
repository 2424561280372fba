"""
Interview Activities.

The external calls made by the adaptive interview workflow. Every activity
that asks the LLM degrades to a deterministic fallback when text completion
fails; only prime validation raises. Fallback output describes itself so
downstream steps can tell it apart from generated output.
"""
import logging
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

from oracle.core.exceptions import CompletionError, InvalidWorkflowInputError
from oracle.models.interview import Priority, Recommendation
from oracle.models.workflow import (
    SYNTHESIS_UNAVAILABLE_ASSUMPTION,
    SYNTHESIS_UNAVAILABLE_UNCERTAINTY,
    ContextDocument,
    Exchange,
    RecommendationSet,
    ResponseAssessment,
)
from oracle.providers.llm.completion import TextCompletion, parse_json_object
from oracle.services.prompts import (
    COMPARISON_FACETS,
    INTRODUCTION_SUFFIX,
    ORACLE_SYSTEM_PROMPT,
    QUESTION_SUFFIX,
    RECOMMENDATIONS_SUFFIX,
    SYNTHESIS_SUFFIX,
    build_introduction_prompt,
    build_question_prompt,
    build_recommendations_prompt,
    build_synthesis_prompt,
)

logger = logging.getLogger(__name__)


# Completion policy for the adaptive interview loop
INTERVIEW_DONE_PATTERN = re.compile(
    r"\b(done|finished|that'?s (all|it)|no more|that covers it|nothing else|i'?m good|all set)\b",
    re.IGNORECASE,
)
NEGATIVE_REPLY_PATTERN = re.compile(r"^(no|nope|no thanks|not really|nothing|none)\.?$", re.IGNORECASE)
DEFAULT_MAX_EXCHANGES = 20
DEFAULT_DONE_MAX_CHARS = 80
DONE_MIN_EXCHANGES = 3
NEGATIVE_REPLY_MAX_CHARS = 30
NEGATIVE_REPLY_MIN_EXCHANGES = 5

MIN_RECOMMENDATIONS = 2
MAX_RECOMMENDATIONS = 4

# Share of a guiding topic's keywords a question must mention to cover it
TOPIC_COVERAGE_THRESHOLD = 0.6

FALLBACK_QUESTIONS = [
    "Let's start with the fundamentals: what's the timeline for {domain}, and how flexible is it?",
    "Who are the key stakeholders involved in this {domain}?",
    "What are the main constraints or limitations you're working within?",
    "What does success look like for this {domain}?",
    "Is there anything else important about {domain} that we haven't covered yet?",
]

FALLBACK_INTRODUCTION = (
    "Welcome. I'm The Oracle, and I specialize in strategic analysis for {domain}. "
    "I'll be conducting a structured interview to understand your situation in depth: "
    "your goals, your constraints, and the full context around \"{objective}\". "
    "This produces far more actionable results than conventional Q&A because it removes "
    "assumptions and forces the kind of clarity that leads to real insight.\n\n"
    "To begin, tell me about yourself. Who are you, what's your role in relation to this "
    "objective, and what's driving this initiative right now?"
)

FALLBACK_STRATEGIC_ANALYSIS = (
    "Strategic analysis unavailable because AI synthesis failed. "
    "Manual review of the interview transcript is recommended."
)

NOT_SPECIFIED = "Not specified"


TOPIC_STOPWORDS = frozenset({
    "what", "what's", "when", "where", "which", "whom", "does", "your", "have",
    "that", "this", "with", "there", "about", "would", "could", "should", "they",
})


def _keywords(text: str) -> List[str]:
    return [
        w for w in re.findall(r"[a-z0-9']+", text.lower())
        if len(w) > 3 and w not in TOPIC_STOPWORDS
    ]


def _normalize(text: str) -> str:
    return " ".join(re.findall(r"[a-z0-9']+", text.lower()))


def topic_is_covered(topic: str, exchanges: Sequence[Exchange]) -> bool:
    """A guiding topic is covered once a prior question asks it or mentions most of its keywords."""
    normalized_topic = _normalize(topic)
    topic_words = set(_keywords(topic))
    for exchange in exchanges:
        normalized_question = _normalize(exchange.question)
        if normalized_topic and normalized_topic in normalized_question:
            return True
        if topic_words:
            overlap = len(topic_words & set(_keywords(exchange.question))) / len(topic_words)
            if overlap >= TOPIC_COVERAGE_THRESHOLD:
                return True
    return False


def partition_guiding_questions(
    guiding_questions: Sequence[str],
    exchanges: Sequence[Exchange],
) -> Tuple[List[str], List[str]]:
    """Split guiding questions into (covered, uncovered), preserving order."""
    covered, uncovered = [], []
    for topic in guiding_questions:
        (covered if topic_is_covered(topic, exchanges) else uncovered).append(topic)
    return covered, uncovered


def _clean_question(text: str) -> str:
    lines = [line.strip().strip('"').strip() for line in text.strip().splitlines() if line.strip()]
    if not lines:
        return ""
    questions = [line for line in lines if line.endswith("?")]
    question = questions[-1] if questions else lines[-1]
    return re.sub(r"^(question|q)\s*[:.]\s*", "", question, flags=re.IGNORECASE).strip()


def _as_text_list(value: Any) -> List[str]:
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    if isinstance(value, str) and value.strip():
        return [value.strip()]
    return []


def _table_cell(text: str) -> str:
    return " ".join(text.split()).replace("|", "\\|")


def build_comparison_markdown(recommendations: Sequence[Recommendation]) -> str:
    """Side-by-side markdown table of recommendations across the fixed facets."""
    header = "| Facet | " + " | ".join(f"Option {i}" for i in range(1, len(recommendations) + 1)) + " |"
    divider = "|---|" + "---|" * len(recommendations)
    rows = [header, divider]

    for facet in COMPARISON_FACETS:
        cells = []
        for rec in recommendations:
            if facet == "Approach":
                value = rec.facets.get(facet) or rec.title
            elif facet == "Key Advantage":
                value = rec.facets.get(facet) or (rec.pros[0] if rec.pros else NOT_SPECIFIED)
            elif facet == "Key Risk":
                value = rec.facets.get(facet) or (rec.cons[0] if rec.cons else NOT_SPECIFIED)
            else:
                value = rec.facets.get(facet) or NOT_SPECIFIED
            cells.append(_table_cell(value))
        rows.append(f"| {facet} | " + " | ".join(cells) + " |")

    return "\n".join(rows)


class InterviewActivities:
    """
    Activities for the adaptive interview workflow.

    Usage:
        activities = InterviewActivities(TextCompletion(provider, ORACLE_SYSTEM_PROMPT))
        question = await activities.generate_question(domain, objective, exchanges)
    """

    def __init__(
        self,
        completion: Optional[TextCompletion] = None,
        max_exchanges: int = DEFAULT_MAX_EXCHANGES,
        done_max_chars: int = DEFAULT_DONE_MAX_CHARS,
    ):
        self.completion = completion or TextCompletion(system_prompt=ORACLE_SYSTEM_PROMPT)
        self.max_exchanges = max_exchanges
        self.done_max_chars = done_max_chars

    async def prime_interview(self, domain: str, objective: str, constraints: Optional[str] = None) -> None:
        """
        Validate interview input.

        Raises:
            InvalidWorkflowInputError: if domain or objective is blank
        """
        if not domain or not domain.strip():
            raise InvalidWorkflowInputError("Domain is required")
        if not objective or not objective.strip():
            raise InvalidWorkflowInputError("Objective is required")

        logger.info(f"Interview primed: domain={domain.strip()!r}, constraints={'yes' if constraints else 'no'}")

    async def generate_introduction(self, domain: str, objective: str, constraints: Optional[str] = None) -> str:
        """Opening message that establishes authority and asks for the user's context."""
        try:
            intro = await self.completion.complete(
                build_introduction_prompt(domain, objective, constraints),
                system_prompt_suffix=INTRODUCTION_SUFFIX,
                max_tokens=1024,
            )
            return intro.strip()
        except CompletionError as e:
            logger.warning(f"Introduction generation failed, using fallback: {e}")
            return FALLBACK_INTRODUCTION.format(domain=domain, objective=objective)

    async def generate_question(
        self,
        domain: str,
        objective: str,
        exchanges: List[Exchange],
        guiding_questions: Optional[List[str]] = None,
    ) -> str:
        """
        Next interview question.

        While guiding questions remain uncovered the prompt works through
        them as a checklist; once every one is covered, questions are
        generated freely.
        """
        logger.info(f"Generating interview question (exchanges so far: {len(exchanges)})")

        covered: List[str] = []
        uncovered: List[str] = []
        if guiding_questions:
            covered, uncovered = partition_guiding_questions(guiding_questions, exchanges)

        try:
            raw = await self.completion.complete(
                build_question_prompt(
                    domain,
                    objective,
                    exchanges,
                    covered_topics=covered if uncovered else None,
                    uncovered_topics=uncovered or None,
                ),
                system_prompt_suffix=QUESTION_SUFFIX,
                max_tokens=256,
            )
            question = _clean_question(raw)
            if not question:
                raise CompletionError("Generated question was empty")
            return question
        except CompletionError as e:
            logger.warning(f"Question generation failed, using fallback: {e}")
            if uncovered:
                return uncovered[0]
            index = min(len(exchanges), len(FALLBACK_QUESTIONS) - 1)
            return FALLBACK_QUESTIONS[index].format(domain=domain)

    async def process_response(
        self,
        question: str,
        answer: str,
        exchanges: List[Exchange],
    ) -> ResponseAssessment:
        """Decide whether the interview loop should stop after this answer."""
        total = len(exchanges) + 1

        if total >= self.max_exchanges:
            return ResponseAssessment(complete=True, reason="Maximum exchanges reached")

        text = answer.strip()
        if total >= DONE_MIN_EXCHANGES and len(text) <= self.done_max_chars:
            if INTERVIEW_DONE_PATTERN.search(text):
                return ResponseAssessment(complete=True, reason="User indicated completion")

        if total >= NEGATIVE_REPLY_MIN_EXCHANGES and len(text) <= NEGATIVE_REPLY_MAX_CHARS:
            if NEGATIVE_REPLY_PATTERN.match(text):
                return ResponseAssessment(complete=True, reason="Sufficient context gathered")

        return ResponseAssessment(complete=False)

    async def synthesize_context(self, domain: str, objective: str, exchanges: List[Exchange]) -> ContextDocument:
        """Structured context document from the transcript."""
        logger.info(f"Synthesizing context from {len(exchanges)} exchanges")
        try:
            raw = await self.completion.complete(
                build_synthesis_prompt(domain, objective, exchanges),
                system_prompt_suffix=SYNTHESIS_SUFFIX,
                max_tokens=2048,
                temperature=0.3,
            )
            data = parse_json_object(raw)
            document = ContextDocument(
                summary=str(data.get("summary") or "").strip(),
                facts=_as_text_list(data.get("facts")),
                constraints=_as_text_list(data.get("constraints")),
                priorities=_as_text_list(data.get("priorities")),
                assumptions=_as_text_list(data.get("assumptions")),
                uncertainties=_as_text_list(data.get("uncertainties")),
                strategic_analysis=str(data.get("strategicAnalysis") or data.get("strategic_analysis") or "").strip() or None,
            )
            missing = document.missing_sections()
            if missing:
                raise CompletionError(f"Context document missing sections: {', '.join(missing)}")
            return document
        except CompletionError as e:
            logger.warning(f"Context synthesis failed, building from transcript: {e}")
            return self.build_fallback_context(domain, objective, exchanges)

    def build_fallback_context(self, domain: str, objective: str, exchanges: List[Exchange]) -> ContextDocument:
        """Keyword-bucketed context document built directly from the transcript."""
        facts: List[str] = []
        constraints: List[str] = []
        priorities: List[str] = []

        for exchange in exchanges:
            question = exchange.question.lower()
            if any(k in question for k in ("timeline", "when", "deadline")):
                facts.append(f"Timeline: {exchange.answer}")
            elif any(k in question for k in ("stakeholder", "who")):
                facts.append(f"Stakeholders: {exchange.answer}")
            elif any(k in question for k in ("constraint", "limitation", "blocker")):
                constraints.append(exchange.answer)
            elif any(k in question for k in ("success", "goal", "priority")):
                priorities.append(exchange.answer)
            else:
                facts.append(exchange.answer)

        return ContextDocument(
            summary=f"Context for {domain}: {objective}",
            facts=facts or ["Interview responses collected"],
            constraints=constraints,
            priorities=priorities,
            assumptions=[SYNTHESIS_UNAVAILABLE_ASSUMPTION],
            uncertainties=[SYNTHESIS_UNAVAILABLE_UNCERTAINTY],
            strategic_analysis=FALLBACK_STRATEGIC_ANALYSIS,
        )

    async def generate_recommendations(self, context_document: ContextDocument, objective: str) -> RecommendationSet:
        """Two to four recommendations plus a markdown comparison table."""
        logger.info("Generating recommendations")
        try:
            raw = await self.completion.complete(
                build_recommendations_prompt(context_document, objective),
                system_prompt_suffix=RECOMMENDATIONS_SUFFIX,
                max_tokens=2048,
                temperature=0.4,
            )
            recommendations = self._parse_recommendations(parse_json_object(raw))
        except CompletionError as e:
            logger.warning(f"Recommendation generation failed, using fallback: {e}")
            recommendations = self.build_fallback_recommendations(context_document)

        if context_document.is_degraded:
            for rec in recommendations:
                rec.facets["Confidence Level"] = "Low"

        return RecommendationSet(
            recommendations=recommendations,
            comparison_markdown=build_comparison_markdown(recommendations),
        )

    def _parse_recommendations(self, data: Dict[str, Any]) -> List[Recommendation]:
        items = data.get("recommendations")
        if not isinstance(items, list):
            raise CompletionError("Recommendations payload has no list")

        recommendations = []
        for item in items:
            if not isinstance(item, dict):
                continue
            title = str(item.get("title") or "").strip()
            rationale = str(item.get("rationale") or "").strip()
            if not title or not rationale:
                continue

            priority = str(item.get("priority") or "").strip().lower()
            facets = item.get("facets") if isinstance(item.get("facets"), dict) else {}
            recommendations.append(Recommendation(
                title=title,
                rationale=rationale,
                next_steps=_as_text_list(item.get("nextSteps") or item.get("next_steps")),
                pros=_as_text_list(item.get("pros")),
                cons=_as_text_list(item.get("cons")),
                priority=Priority(priority) if priority in Priority._value2member_map_ else None,
                facets={str(k): str(v) for k, v in facets.items() if k in COMPARISON_FACETS and str(v).strip()},
            ))

        if len(recommendations) < MIN_RECOMMENDATIONS:
            raise CompletionError(f"Expected at least {MIN_RECOMMENDATIONS} recommendations, got {len(recommendations)}")
        return recommendations[:MAX_RECOMMENDATIONS]

    def build_fallback_recommendations(self, context_document: ContextDocument) -> List[Recommendation]:
        """Canned recommendations, anchored to the document where it has content."""
        constraint_note = (
            f" The most pressing known constraint is: {context_document.constraints[0]}"
            if context_document.constraints else ""
        )
        priority_note = (
            f" The top stated priority is: {context_document.priorities[0]}"
            if context_document.priorities else ""
        )

        return [
            Recommendation(
                title="Establish Clear Timeline",
                rationale="Timeline clarity is essential for planning." + priority_note,
                next_steps=["Define key milestones", "Identify dependencies", "Set buffer time for unknowns"],
                pros=["Creates shared expectations", "Exposes scheduling risk early"],
                cons=["Requires up-front estimation effort"],
                priority=Priority.HIGH,
                facets={"Time to Impact": "Short", "Resource Intensity": "Low", "Confidence Level": "Medium"},
            ),
            Recommendation(
                title="Engage Stakeholders Early",
                rationale="Early stakeholder alignment prevents downstream issues.",
                next_steps=["Schedule kickoff meeting", "Document roles and responsibilities", "Establish communication cadence"],
                pros=["Builds buy-in", "Surfaces conflicting requirements"],
                cons=["Adds coordination overhead"],
                priority=Priority.MEDIUM,
                facets={"Time to Impact": "Medium", "Resource Intensity": "Medium", "Confidence Level": "Medium"},
            ),
            Recommendation(
                title="Address Constraints Proactively",
                rationale="Known constraints should shape the approach from the start." + constraint_note,
                next_steps=["Document all constraints", "Identify mitigation strategies", "Build contingency plans"],
                pros=["Reduces late surprises"],
                cons=["May narrow the option space too early"],
                priority=Priority.MEDIUM,
                facets={"Time to Impact": "Medium", "Resource Intensity": "Low", "Confidence Level": "Medium"},
            ),
        ]


# Global activities instance (lazy loaded)
_activities: Optional[InterviewActivities] = None


def get_interview_activities() -> InterviewActivities:
    """Get or create the activities instance."""
    global _activities
    if _activities is None:
        from oracle.core.config import get_settings
        settings = get_settings()
        _activities = InterviewActivities(
            max_exchanges=settings.max_interview_exchanges,
            done_max_chars=settings.workflow_done_max_chars,
        )
    return _activities
