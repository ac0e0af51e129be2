"""
End-of-course summary.

Aggregates the knowledge map, the review deck and a final test score into
one CourseSummary for a subject. Pure calculation, no I/O.
"""

import logging
from typing import AbstractSet, Mapping, Optional, Sequence

from learning_core.dto.flashcard import FlashcardProgress
from learning_core.dto.mastery import KnowledgeState
from learning_core.dto.progress import CourseSummary, SectionResult
from learning_core.knowledge_tracker import KnowledgeTracker
from learning_core.mastery import MasteryLevel, classify, percentage
from learning_core.sm2 import SM2Scheduler

logger = logging.getLogger(__name__)

# A deck card counts as mastered from this many repetitions at default EF or better
MASTERED_CARD_REPETITIONS = 3


def is_card_mastered(progress: FlashcardProgress) -> bool:
    return (
        progress.repetitions >= MASTERED_CARD_REPETITIONS
        and progress.ease_factor >= SM2Scheduler.DEFAULT_EF
    )


def course_summary(
    states: Mapping[str, KnowledgeState],
    progress: Mapping[str, FlashcardProgress],
    deck: AbstractSet[str],
    subject_id: str,
    sections: Mapping[str, Sequence[str]],
    final_test_score: int,
) -> CourseSummary:
    """
    Build the course summary for a subject.

    Args:
        states: Knowledge map keyed by topic id
        progress: Flashcard progress keyed by card id
        deck: Card ids in the review deck
        subject_id: Subject identifier
        sections: Section id -> topic ids, in outline order
        final_test_score: Score of the final test being summarised

    Returns:
        CourseSummary. Overall mastery is the share of mastered topics,
        classified with attempts = number of topics.
    """
    level_counts = {level: 0 for level in MasteryLevel}
    total_topics = 0
    total_attempts = 0
    section_scores = []
    best_section: Optional[SectionResult] = None

    for section_id, topic_ids in sections.items():
        for topic_id in topic_ids:
            total_topics += 1
            state = states.get(topic_id)
            if state is not None:
                total_attempts += state.attempts
            level_counts[KnowledgeTracker.topic_mastery(states, topic_id)] += 1

        mastery = KnowledgeTracker.section_mastery(states, topic_ids)
        result = SectionResult(section_id=section_id, score=mastery.score, level=mastery.level)
        section_scores.append(result)

        # Strictly greater: first section wins ties, none if all are zero
        if result.score > (best_section.score if best_section else 0):
            best_section = result

    cards = [p for card_id, p in progress.items() if card_id in deck and p.subject_id == subject_id]
    mastered_topics = level_counts[MasteryLevel.MASTERED]
    overall_score = percentage(mastered_topics, total_topics)

    summary = CourseSummary(
        subject_id=subject_id,
        final_test_score=final_test_score,
        overall_mastery=classify(overall_score, total_topics),
        total_topics=total_topics,
        mastered_topics=mastered_topics,
        learning_topics=level_counts[MasteryLevel.LEARNING],
        struggling_topics=level_counts[MasteryLevel.STRUGGLING],
        total_attempts=total_attempts,
        section_scores=section_scores,
        best_section=best_section,
        total_flashcards=len(cards),
        mastered_flashcards=sum(1 for p in cards if is_card_mastered(p)),
    )

    logger.debug(
        "Summary for %s: %d/%d topics mastered, %d/%d cards mastered",
        subject_id,
        mastered_topics,
        total_topics,
        summary.mastered_flashcards,
        summary.total_flashcards,
    )
    return summary
