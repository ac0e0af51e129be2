"""
StudyPath learning core - knowledge tracking and review scheduling.

Main components:
- classify: Mastery classification shared by every caller
- KnowledgeTracker: Per-topic knowledge and section/subject roll-ups
- AdaptiveDiagnosticSelector: Adaptive diagnostic question selection
- SM2Scheduler: Spaced repetition scheduling for flashcards
- StudyService: Stateless facade over LearnerState
"""

from learning_core.diagnostic import AdaptiveDiagnosticSelector
from learning_core.exceptions import (
    InvalidInputError,
    LearningCoreError,
    MalformedInputError,
    SessionStateError,
    SnapshotError,
    UnknownCardError,
)
from learning_core.final_test import FinalTestTracker
from learning_core.knowledge_tracker import KnowledgeTracker
from learning_core.mastery import MasteryLevel, classify
from learning_core.review_deck import ReviewQueue, format_interval
from learning_core.service import StudyService
from learning_core.sm2 import SM2Scheduler
from learning_core.state import LearnerState

__all__ = [
    "classify",
    "MasteryLevel",
    "KnowledgeTracker",
    "AdaptiveDiagnosticSelector",
    "SM2Scheduler",
    "ReviewQueue",
    "format_interval",
    "FinalTestTracker",
    "LearnerState",
    "StudyService",
    # Errors
    "LearningCoreError",
    "MalformedInputError",
    "InvalidInputError",
    "SessionStateError",
    "UnknownCardError",
    "SnapshotError",
]
