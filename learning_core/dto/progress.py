"""Progress-related Data Transfer Objects.

DTOs for end-of-course summaries.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from learning_core.mastery import MasteryLevel


@dataclass(frozen=True)
class SectionResult:
    """Score and level for one section."""

    section_id: str
    score: int
    level: MasteryLevel


@dataclass
class CourseSummary:
    """End-of-course summary for a subject.

    Attributes:
        subject_id: Subject identifier
        final_test_score: Score of the final test being summarised
        overall_mastery: Level from the share of mastered topics
        total_topics: Topics in the subject
        mastered_topics: Topics classified as mastered
        learning_topics: Topics classified as learning
        struggling_topics: Topics classified as struggling
        total_attempts: Sum of attempts over all topics
        section_scores: Per-section results in outline order
        best_section: Highest-scoring section, None if every score is 0
        total_flashcards: Review-deck cards for the subject
        mastered_flashcards: Deck cards with 3+ repetitions and EF >= 2.5
    """

    subject_id: str
    final_test_score: int
    overall_mastery: MasteryLevel
    total_topics: int
    mastered_topics: int
    learning_topics: int
    struggling_topics: int
    total_attempts: int
    section_scores: List[SectionResult] = field(default_factory=list)
    best_section: Optional[SectionResult] = None
    total_flashcards: int = 0
    mastered_flashcards: int = 0
