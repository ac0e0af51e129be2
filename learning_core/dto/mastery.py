"""Mastery-related Data Transfer Objects.

KnowledgeState is the per-topic aggregate owned by the learner state.
Its mastery level is derived from (score, attempts) on every read and is
never stored separately, so a persisted snapshot cannot hold a stale badge.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from learning_core.mastery import MasteryLevel, classify


@dataclass(frozen=True)
class KnowledgeState:
    """Aggregated performance for one topic.

    Attributes:
        topic_id: Topic identifier
        score: Rounded percentage of correct answers (0-100)
        attempts: Number of classification events (not answers)
        correct_answers: Correct answers accumulated into this topic
        total_answers: Answers accumulated into this topic
        last_attempt_at: When the topic last changed
    """

    topic_id: str
    score: int = 0
    attempts: int = 0
    correct_answers: int = 0
    total_answers: int = 0
    last_attempt_at: Optional[datetime] = None

    @property
    def mastery_level(self) -> MasteryLevel:
        return classify(self.score, self.attempts)


@dataclass(frozen=True)
class SectionMastery:
    """Roll-up of topic scores for a section (touched topics only)."""

    level: MasteryLevel
    score: int


@dataclass(frozen=True)
class SectionKnowledge:
    """Section roll-up with topic counts, as shown on the knowledge map.

    Attributes:
        section_id: Section identifier
        average_score: Rounded average over touched topics
        mastery_level: Classified average_score
        topics_count: Topics in the section (touched or not)
        mastered_count: Topics currently classified as mastered
    """

    section_id: str
    average_score: int
    mastery_level: MasteryLevel
    topics_count: int
    mastered_count: int


@dataclass(frozen=True)
class SubjectKnowledge:
    """Subject roll-up over its sections.

    Attributes:
        subject_id: Subject identifier
        average_score: Rounded average over sections with any touched topic
        mastery_level: Classified average_score
        sections_count: Sections in the subject
        mastered_sections: Sections classified as mastered
    """

    subject_id: str
    average_score: int
    mastery_level: MasteryLevel
    sections_count: int
    mastered_sections: int
