"""Content Data Transfer Objects.

Questions and flashcards arrive from the content-generation service as loose
JSON. They only become these types after passing the validation boundary in
learning_core.validation, so the rest of the core never sees a partially
formed record.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, Tuple, TypeVar, Union

T = TypeVar("T")


class Difficulty(Enum):
    """Question difficulty as labelled by the content generator."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


@dataclass(frozen=True)
class QuestionOption:
    """One answer option of a multiple-choice question."""

    id: str
    text: str
    is_correct: bool


@dataclass(frozen=True)
class Question:
    """Diagnostic, quiz or final-test question.

    The core reads only the ids, difficulty and correctness; text and
    explanation are carried through untouched for the host application.
    """

    id: str
    topic_id: str
    section_id: str
    difficulty: Difficulty
    options: Tuple[QuestionOption, ...]
    correct_answer: str
    text: str = ""
    explanation: Optional[str] = None

    def is_correct_answer(self, option_id: str) -> bool:
        """Grade a selected option id."""
        return option_id == self.correct_answer


@dataclass(frozen=True)
class Flashcard:
    """Flashcard content (front/back), scheduled by its id."""

    id: str
    front: str
    back: str
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Valid(Generic[T]):
    """Content item that passed validation."""

    value: T


@dataclass(frozen=True)
class Invalid:
    """Content item rejected at the validation boundary."""

    reason: str
    item_id: Optional[str] = None


ParseResult = Union[Valid[T], Invalid]
