"""Diagnostic session Data Transfer Objects."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class DiagnosticStatus(Enum):
    """Lifecycle of a diagnostic session. Completion is terminal."""

    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class SelectorPhase(Enum):
    """States of the adaptive diagnostic selector."""

    IDLE = "idle"
    SELECTING = "selecting"
    AWAITING_ANSWER = "awaiting-answer"
    DONE = "done"


class EndReason(Enum):
    """Why the adaptive diagnostic stopped asking questions."""

    ALL_SECTIONS_COVERED = "all_sections_covered"
    QUESTION_CAP = "question_cap"
    POOL_EXHAUSTED = "pool_exhausted"


@dataclass(frozen=True)
class DiagnosticAnswer:
    """One answered diagnostic question."""

    question_id: str
    topic_id: str
    section_id: str
    user_answer: str
    is_correct: bool
    time_spent_seconds: int = 0
    answered_at: Optional[datetime] = None


@dataclass(frozen=True)
class DiagnosticSession:
    """Append-only record of one diagnostic run.

    Attributes:
        id: Session identifier
        subject_id: Subject being diagnosed
        started_at: When the session started
        answers: Answers in the order they were given
        status: in-progress or completed
        completed_at: Set once on completion
    """

    id: str
    subject_id: str
    started_at: datetime
    answers: Tuple[DiagnosticAnswer, ...] = ()
    status: DiagnosticStatus = DiagnosticStatus.IN_PROGRESS
    completed_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.status == DiagnosticStatus.COMPLETED


@dataclass(frozen=True)
class SectionConfidence:
    """How well a section's mastery has been estimated in this session.

    Confidence rises on every answer, right or wrong: it measures the amount
    of evidence gathered, not how well the section is known. Never persisted.
    """

    section_id: str
    correct_answers: int = 0
    total_answers: int = 0
    confidence: float = 0.0

    @property
    def recent_performance(self) -> float:
        if self.total_answers == 0:
            return 0.5
        return self.correct_answers / self.total_answers
