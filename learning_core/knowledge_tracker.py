"""Per-topic knowledge tracking and section/subject roll-ups.

All methods are static and pure: they take the current map of
KnowledgeState keyed by topic id and return a new map (or a query result).
The input map is never mutated.

Usage:
    states = KnowledgeTracker.record_answer({}, "limits", is_correct=True)
    states = KnowledgeTracker.set_topic_score(states, "limits", 4, 5)
    KnowledgeTracker.section_mastery(states, ["limits", "continuity"])
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterable, Mapping, Optional, Sequence

from learning_core.dto.mastery import (
    KnowledgeState,
    SectionKnowledge,
    SectionMastery,
    SubjectKnowledge,
)
from learning_core.exceptions import InvalidInputError
from learning_core.mastery import MasteryLevel, classify, percentage, round_half_up

logger = logging.getLogger(__name__)

KnowledgeMap = Mapping[str, KnowledgeState]


def _require_topic_id(topic_id: str) -> None:
    if not topic_id:
        raise InvalidInputError("topic_id must be a non-empty string")


class KnowledgeTracker:
    """Reducer and queries over the per-topic knowledge map."""

    # ==================== Mutations (return a new map) ====================

    @staticmethod
    def record_answer(
        states: KnowledgeMap,
        topic_id: str,
        is_correct: bool,
        now: Optional[datetime] = None,
    ) -> Dict[str, KnowledgeState]:
        """Accumulate one answer into a topic.

        Creates the topic lazily on its first answer. Increments total,
        correct (if correct) and attempts, then recomputes the score.

        Args:
            states: Current knowledge map
            topic_id: Topic the question belongs to
            is_correct: Whether the answer was correct
            now: Timestamp for last_attempt_at (defaults to now)

        Returns:
            New knowledge map with the topic's entry replaced
        """
        _require_topic_id(topic_id)
        current = states.get(topic_id) or KnowledgeState(topic_id=topic_id)

        correct = current.correct_answers + (1 if is_correct else 0)
        total = current.total_answers + 1
        updated = replace(
            current,
            score=percentage(correct, total),
            attempts=current.attempts + 1,
            correct_answers=correct,
            total_answers=total,
            last_attempt_at=now or datetime.now(),
        )

        logger.debug(
            "Recorded %s answer for %s: %d/%d -> %d (%s)",
            "correct" if is_correct else "incorrect",
            topic_id,
            correct,
            total,
            updated.score,
            updated.mastery_level.value,
        )

        new_states = dict(states)
        new_states[topic_id] = updated
        return new_states

    @staticmethod
    def set_topic_score(
        states: KnowledgeMap,
        topic_id: str,
        correct: int,
        total: int,
        now: Optional[datetime] = None,
    ) -> Dict[str, KnowledgeState]:
        """Replace a topic's result with a definitive quiz outcome.

        Unlike record_answer this does not accumulate: the latest quiz
        supersedes earlier diagnostic answers, and attempts becomes 1.

        Raises:
            InvalidInputError: If total < 1 or correct is outside 0..total
        """
        _require_topic_id(topic_id)
        if total < 1:
            raise InvalidInputError(f"total must be at least 1, got {total}")
        if correct < 0 or correct > total:
            raise InvalidInputError(f"correct must be within 0..{total}, got {correct}")

        updated = KnowledgeState(
            topic_id=topic_id,
            score=percentage(correct, total),
            attempts=1,
            correct_answers=correct,
            total_answers=total,
            last_attempt_at=now or datetime.now(),
        )

        logger.debug(
            "Set score for %s: %d/%d -> %d (%s)",
            topic_id,
            correct,
            total,
            updated.score,
            updated.mastery_level.value,
        )

        new_states = dict(states)
        new_states[topic_id] = updated
        return new_states

    # ==================== Queries ====================

    @staticmethod
    def topic_mastery(states: KnowledgeMap, topic_id: str) -> MasteryLevel:
        """Mastery level of a topic, unknown if it was never answered."""
        state = states.get(topic_id)
        return state.mastery_level if state else MasteryLevel.UNKNOWN

    @staticmethod
    def section_mastery(states: KnowledgeMap, topic_ids: Iterable[str]) -> SectionMastery:
        """Average score over the touched topics of a section.

        Topics without attempts are ignored rather than counted as zero, so
        one studied topic among several untouched ones reports its own
        score. With no touched topics the result is (unknown, 0).
        """
        scores = [
            states[topic_id].score
            for topic_id in topic_ids
            if topic_id in states and states[topic_id].attempts > 0
        ]
        if not scores:
            return SectionMastery(level=MasteryLevel.UNKNOWN, score=0)

        average = round_half_up(sum(scores) / len(scores))
        return SectionMastery(level=classify(average, len(scores)), score=average)

    @staticmethod
    def section_knowledge(
        states: KnowledgeMap, section_id: str, topic_ids: Sequence[str]
    ) -> SectionKnowledge:
        """Section roll-up including topic counts."""
        mastery = KnowledgeTracker.section_mastery(states, topic_ids)
        mastered = sum(
            1
            for topic_id in topic_ids
            if KnowledgeTracker.topic_mastery(states, topic_id) == MasteryLevel.MASTERED
        )
        return SectionKnowledge(
            section_id=section_id,
            average_score=mastery.score,
            mastery_level=mastery.level,
            topics_count=len(topic_ids),
            mastered_count=mastered,
        )

    @staticmethod
    def subject_knowledge(
        states: KnowledgeMap,
        subject_id: str,
        sections: Mapping[str, Sequence[str]],
    ) -> SubjectKnowledge:
        """Subject roll-up over its sections.

        Args:
            states: Current knowledge map
            subject_id: Subject identifier
            sections: Section id -> topic ids, in outline order

        Sections with no touched topic are left out of the average, the same
        rule section_mastery applies to topics.
        """
        section_results = [
            KnowledgeTracker.section_mastery(states, topic_ids) for topic_ids in sections.values()
        ]
        known = [r.score for r in section_results if r.level != MasteryLevel.UNKNOWN]
        average = round_half_up(sum(known) / len(known)) if known else 0

        return SubjectKnowledge(
            subject_id=subject_id,
            average_score=average,
            mastery_level=classify(average, len(known)),
            sections_count=len(sections),
            mastered_sections=sum(1 for r in section_results if r.level == MasteryLevel.MASTERED),
        )

    @staticmethod
    def can_take_final_test(states: KnowledgeMap, topic_ids: Sequence[str]) -> bool:
        """True once every topic of the subject has been studied at least once."""
        if not topic_ids:
            return False
        return all(
            topic_id in states and states[topic_id].attempts > 0 for topic_id in topic_ids
        )
