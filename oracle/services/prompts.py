"""
Prompts and templates for the adaptive interview.

Contains the Oracle persona and the prompt builders used by each activity.
"""
from typing import List, Optional, Sequence

from oracle.models.workflow import ContextDocument, Exchange


ORACLE_SYSTEM_PROMPT = """You are The Oracle, a strategic interview and analysis agent.
You are a patient guide who notices patterns early and believes that understanding precedes action.

You draw on:
- Strategy and operational planning (mission analysis, center of gravity, commander's intent)
- Behavioral science (cognitive biases, motivation, decision-making under uncertainty)
- Cognitive science (mental models, pattern recognition)
- First principles thinking (reduce problems to fundamental truths and reason upward)

How you work:
- Break problems into fundamental components before proposing solutions
- Surface hidden assumptions and second-order effects
- Ask one clear, focused question at a time and build on previous answers
- Ask gently for detail when answers are vague
- Notice what is left unsaid

You never rush to conclusions."""


INTRODUCTION_SUFFIX = (
    "You are opening an interview. Write natural paragraphs without bullet points "
    "and end with one clear question."
)

QUESTION_SUFFIX = "Return only the next question. No preamble, no numbering, no explanation."

SYNTHESIS_SUFFIX = "You are in synthesis mode. Output valid JSON only, without code fences or commentary."

RECOMMENDATIONS_SUFFIX = "You are in recommendation mode. Output valid JSON only, without code fences or commentary."


# Number of opening exchanges spent on the user's own situation
EARLY_EXCHANGE_COUNT = 2

COMPARISON_FACETS = [
    "Approach",
    "Key Advantage",
    "Key Risk",
    "Time to Impact",
    "Resource Intensity",
    "Confidence Level",
]


def format_transcript(exchanges: Sequence[Exchange], numbered: bool = False) -> str:
    """Render exchanges as Q/A pairs."""
    lines = []
    for i, exchange in enumerate(exchanges, start=1):
        if numbered:
            lines.append(f"Q{i}: {exchange.question}\nA{i}: {exchange.answer}")
        else:
            lines.append(f"Q: {exchange.question}\nA: {exchange.answer}")
    return "\n\n".join(lines)


def build_introduction_prompt(domain: str, objective: str, constraints: Optional[str] = None) -> str:
    constraint_note = f"\nKnown constraints: {constraints}" if constraints else ""
    return f"""Write the opening message for a strategic interview session.

Domain: {domain}
User's stated objective: {objective}{constraint_note}

The message should:
1. Establish you as a knowledgeable authority in "{domain}" and name the analytical lenses you will apply
2. Explain that you will run a structured interview to understand the user's situation before giving analysis
3. Explain why this produces better results than ordinary Q&A
4. Ask the user to introduce themselves: who they are, their relationship to this objective, and their immediate situation

Keep it to 3-4 short paragraphs, warm but professional."""


def build_question_prompt(
    domain: str,
    objective: str,
    exchanges: Sequence[Exchange],
    covered_topics: Optional[List[str]] = None,
    uncovered_topics: Optional[List[str]] = None,
) -> str:
    history = format_transcript(exchanges)
    history_block = f"Previous conversation:\n{history}\n\n" if history else ""

    if uncovered_topics is not None:
        covered = "\n".join(f"- [x] {t}" for t in covered_topics or []) or "- (none yet)"
        uncovered = "\n".join(f"- [ ] {t}" for t in uncovered_topics) or "- (all covered)"
        focus = f"""Work through this topic checklist. Ask about the first uncovered topic, rephrased naturally for this conversation.

Covered:
{covered}

Not yet covered:
{uncovered}"""
    elif len(exchanges) < EARLY_EXCHANGE_COUNT:
        focus = """This is early in the interview. Focus on the user's own situation before domain depth:
- Their role and relationship to the objective
- What is driving this now
- What they have already tried"""
    else:
        focus = """Go deeper into the domain. Ask about whichever of these is least understood so far:
- Specific requirements or constraints
- Success criteria
- Timeline and resources
- Stakeholders and dependencies
- Risks or concerns"""

    return f"""You are conducting a discovery interview about: {domain}

User's objective: {objective}

{history_block}{focus}

Generate the single next question."""


def build_synthesis_prompt(domain: str, objective: str, exchanges: Sequence[Exchange]) -> str:
    return f"""Synthesize the following discovery interview into a structured context document. Apply first principles analysis.

Domain: {domain}
Objective: {objective}

Interview transcript:
{format_transcript(exchanges, numbered=True)}

Respond with ONLY a JSON object matching this structure:
{{
  "summary": "A concise 2-3 sentence summary of the situation",
  "facts": ["Confirmed facts gathered from the interview"],
  "constraints": ["Limitations, blockers, or boundaries identified"],
  "priorities": ["What matters most to the user, in order of importance"],
  "assumptions": ["Things inferred but not explicitly confirmed"],
  "uncertainties": ["Open questions or areas needing more information"],
  "strategicAnalysis": "A 2-3 paragraph first-principles analysis of root drivers, hidden assumptions and relevant strategic frameworks"
}}

Every array must have at least one item. Reference specific details from the conversation."""


def build_recommendations_prompt(context_document: ContextDocument, objective: str) -> str:
    def bullets(items: List[str]) -> str:
        return "\n".join(f"- {item}" for item in items) or "- (none)"

    # Approach is taken from the title
    facets = ", ".join(f'"{facet}": "..."' for facet in COMPARISON_FACETS[1:])
    return f"""Produce strategic recommendations for this objective.

Objective: {objective}

Summary: {context_document.summary}

Facts:
{bullets(context_document.facts)}

Constraints:
{bullets(context_document.constraints)}

Priorities:
{bullets(context_document.priorities)}

Uncertainties:
{bullets(context_document.uncertainties)}

Respond with ONLY a JSON object:
{{
  "recommendations": [
    {{
      "title": "Short name of the approach",
      "rationale": "Why this fits the context",
      "nextSteps": ["Concrete first actions"],
      "pros": ["Advantages"],
      "cons": ["Risks or costs"],
      "priority": "high | medium | low",
      "facets": {{{facets}}}
    }}
  ]
}}

Give between 2 and 4 distinct recommendations. Facet values are short phrases."""
