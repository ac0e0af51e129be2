"""Data Transfer Objects for the learning core."""

from .content import (
    Difficulty,
    Flashcard,
    Invalid,
    ParseResult,
    Question,
    QuestionOption,
    Valid,
)
from .diagnostic import (
    DiagnosticAnswer,
    DiagnosticSession,
    DiagnosticStatus,
    EndReason,
    SectionConfidence,
    SelectorPhase,
)
from .final_test import (
    FinalTestAnswer,
    FinalTestHistory,
    FinalTestSession,
    SectionScore,
)
from .flashcard import (
    FlashcardProgress,
    ReviewHistoryEntry,
    ReviewStats,
)
from .mastery import (
    KnowledgeState,
    SectionKnowledge,
    SectionMastery,
    SubjectKnowledge,
)
from .progress import (
    CourseSummary,
    SectionResult,
)

__all__ = [
    # Enums
    "Difficulty",
    "DiagnosticStatus",
    "SelectorPhase",
    "EndReason",
    # Content DTOs
    "Question",
    "QuestionOption",
    "Flashcard",
    "Valid",
    "Invalid",
    "ParseResult",
    # Knowledge DTOs
    "KnowledgeState",
    "SectionMastery",
    "SectionKnowledge",
    "SubjectKnowledge",
    # Diagnostic DTOs
    "DiagnosticAnswer",
    "DiagnosticSession",
    "SectionConfidence",
    # Flashcard DTOs
    "FlashcardProgress",
    "ReviewHistoryEntry",
    "ReviewStats",
    # Final test DTOs
    "FinalTestAnswer",
    "FinalTestSession",
    "FinalTestHistory",
    "SectionScore",
    # Progress DTOs
    "SectionResult",
    "CourseSummary",
]
