"""
Question Bank Service.

Read-only registry of interview archetypes keyed by type id. The registry is
built once from a sequence of definitions and cannot be mutated afterwards;
tests substitute an alternate registry through set_question_bank().
"""
import logging
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional

from oracle.core.exceptions import InvalidInterviewTypeError
from oracle.models.interview import InterviewDefinition
from oracle.models.interview_types import BUILTIN_INTERVIEWS

logger = logging.getLogger(__name__)


class QuestionBank:
    """
    Immutable mapping of archetype id to InterviewDefinition.
    """

    def __init__(self, definitions: Iterable[InterviewDefinition]):
        registry = {}
        for definition in definitions:
            if definition.type in registry:
                raise ValueError(f"Duplicate interview type: {definition.type}")
            registry[definition.type] = definition
        self._definitions: Mapping[str, InterviewDefinition] = MappingProxyType(registry)
        logger.debug(f"Question bank initialized with types: {list(registry)}")

    @property
    def definitions(self) -> Mapping[str, InterviewDefinition]:
        return self._definitions

    def get(self, interview_type: str) -> Optional[InterviewDefinition]:
        """Definition for a type id, or None if unknown."""
        return self._definitions.get(interview_type)

    def require(self, interview_type: str) -> InterviewDefinition:
        """Definition for a type id; raises InvalidInterviewTypeError if unknown."""
        definition = self._definitions.get(interview_type)
        if definition is None:
            raise InvalidInterviewTypeError(interview_type)
        return definition

    def list_types(self) -> List[str]:
        """Known type ids, in registration order."""
        return list(self._definitions)

    def is_valid(self, interview_type: str) -> bool:
        return interview_type in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, interview_type: object) -> bool:
        return interview_type in self._definitions


# Global question bank instance (lazy loaded)
_question_bank: Optional[QuestionBank] = None


def get_question_bank() -> QuestionBank:
    """Get or create the process-wide question bank."""
    global _question_bank
    if _question_bank is None:
        _question_bank = QuestionBank(BUILTIN_INTERVIEWS)
    return _question_bank


def set_question_bank(bank: Optional[QuestionBank]) -> None:
    """
    Replace the process-wide question bank.

    Passing None restores the built-in archetypes on next access.
    """
    global _question_bank
    _question_bank = bank
