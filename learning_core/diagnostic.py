"""
Adaptive diagnostic testing.

Estimates per-section mastery with as few questions as possible before a
learning plan is built.

Features:
    - Per-section confidence that grows with every answer
    - Section ranking: fewest answers first, then lowest confidence
    - Difficulty targeting from the section's running accuracy
    - Stopping rules (every section covered, question cap, pool exhausted)
    - Seedable random source for reproducible sessions

Selector states:
    idle -> selecting -> awaiting-answer -> selecting -> ... -> done

Usage:
    selector = AdaptiveDiagnosticSelector(questions, rng=random.Random(7))
    question = selector.start()
    while question is not None:
        selector.submit_answer(question.is_correct_answer(choice))
        question = selector.next_question()
"""

import logging
import random
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from learning_core.dto.content import Difficulty, Question
from learning_core.dto.diagnostic import (
    DiagnosticAnswer,
    DiagnosticSession,
    DiagnosticStatus,
    EndReason,
    SectionConfidence,
    SelectorPhase,
)
from learning_core.dto.progress import SectionResult
from learning_core.exceptions import SessionStateError
from learning_core.mastery import classify, percentage

logger = logging.getLogger(__name__)


class AdaptiveDiagnosticSelector:
    """
    Adaptive question selection for one diagnostic session.

    Confidence measures how well a section has been estimated, not how well
    it is known, so both correct and incorrect answers raise it. A section
    is considered settled once it has enough confidence AND enough answers.
    """

    # Confidence increments per answer
    CORRECT_CONFIDENCE_STEP = 0.35
    INCORRECT_CONFIDENCE_STEP = 0.25
    MAX_CONFIDENCE = 1.0

    # A section is skipped once both hold
    SKIP_CONFIDENCE = 0.7
    SKIP_MIN_ANSWERS = 2

    # Stopping criteria
    MIN_ANSWERS_PER_SECTION = 2
    MAX_QUESTIONS = 12

    # Difficulty targeting by running accuracy
    ADVANCED_PERFORMANCE = 0.7
    INTERMEDIATE_PERFORMANCE = 0.4

    def __init__(
        self,
        questions: Sequence[Question],
        section_ids: Optional[Sequence[str]] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize a selector over a validated question pool.

        Args:
            questions: Validated questions (see learning_core.validation)
            section_ids: Sections of the subject, in outline order. Defaults
                to the sections present in the pool, in first-seen order.
                Sections without questions still count for the coverage rule.
                Questions of other sections are left out of the pool.
            rng: Random source for tie-breaking among candidates
        """
        self.questions = list(questions)
        self.rng = rng or random.Random()

        if section_ids is None:
            section_ids = list(dict.fromkeys(q.section_id for q in self.questions))
        else:
            outline = set(section_ids)
            self.questions = [q for q in self.questions if q.section_id in outline]
            if len(self.questions) < len(questions):
                logger.debug(
                    "Ignoring %d question(s) outside the outline",
                    len(questions) - len(self.questions),
                )

        self.confidences: Dict[str, SectionConfidence] = {
            section_id: SectionConfidence(section_id=section_id) for section_id in section_ids
        }
        self.asked_ids: List[str] = []
        self.phase = SelectorPhase.IDLE
        self.current_question: Optional[Question] = None
        self.end_reason: Optional[EndReason] = None

    # ==================== Properties ====================

    @property
    def answered_count(self) -> int:
        return sum(c.total_answers for c in self.confidences.values())

    @property
    def is_done(self) -> bool:
        return self.phase == SelectorPhase.DONE

    # ==================== Transitions ====================

    def start(self) -> Optional[Question]:
        """
        Begin the session and return the first question.

        The first question is drawn from the beginner questions of the whole
        pool when there are any, regardless of section ranking.
        """
        if self.phase != SelectorPhase.IDLE:
            raise SessionStateError(f"Cannot start selector in phase '{self.phase.value}'")

        self.phase = SelectorPhase.SELECTING
        beginner = [q for q in self.questions if q.difficulty == Difficulty.BEGINNER]
        candidates = beginner or self.questions

        if not candidates:
            self._finish(EndReason.POOL_EXHAUSTED)
            return None

        return self._present(self.rng.choice(candidates))

    def submit_answer(self, is_correct: bool) -> SectionConfidence:
        """
        Record the answer to the pending question.

        Updates the question's section confidence, then checks the stopping
        rules before any further question is requested.

        Returns:
            Updated confidence for the answered section
        """
        if self.phase != SelectorPhase.AWAITING_ANSWER or self.current_question is None:
            raise SessionStateError("No question is awaiting an answer")

        question = self.current_question
        current = self.confidences.get(question.section_id) or SectionConfidence(
            section_id=question.section_id
        )
        step = self.CORRECT_CONFIDENCE_STEP if is_correct else self.INCORRECT_CONFIDENCE_STEP
        updated = replace(
            current,
            correct_answers=current.correct_answers + (1 if is_correct else 0),
            total_answers=current.total_answers + 1,
            confidence=min(self.MAX_CONFIDENCE, current.confidence + step),
        )
        self.confidences[question.section_id] = updated
        self.current_question = None

        logger.debug(
            "Section %s: %d/%d correct, confidence %.2f",
            updated.section_id,
            updated.correct_answers,
            updated.total_answers,
            updated.confidence,
        )

        reason = self._stop_reason()
        if reason is not None:
            self._finish(reason)
        else:
            self.phase = SelectorPhase.SELECTING
        return updated

    def next_question(self) -> Optional[Question]:
        """
        Select the next question, or None when the session is over.

        Returns None (and moves to done) when no section has a candidate.
        """
        if self.phase == SelectorPhase.DONE:
            return None
        if self.phase != SelectorPhase.SELECTING:
            raise SessionStateError(f"Cannot select a question in phase '{self.phase.value}'")

        question = self._select()
        if question is None:
            self._finish(EndReason.POOL_EXHAUSTED)
            return None
        return self._present(question)

    # ==================== Selection ====================

    def ranked_sections(self) -> List[SectionConfidence]:
        """Sections ordered by (answers, confidence), outline order on ties."""
        return sorted(self.confidences.values(), key=lambda c: (c.total_answers, c.confidence))

    def is_settled(self, section: SectionConfidence) -> bool:
        """True when a section no longer needs questions."""
        return (
            section.confidence >= self.SKIP_CONFIDENCE
            and section.total_answers >= self.SKIP_MIN_ANSWERS
        )

    def target_difficulty(self, section: SectionConfidence) -> Difficulty:
        """Difficulty to aim for given the section's running accuracy."""
        performance = section.recent_performance
        if performance >= self.ADVANCED_PERFORMANCE:
            return Difficulty.ADVANCED
        if performance >= self.INTERMEDIATE_PERFORMANCE:
            return Difficulty.INTERMEDIATE
        return Difficulty.BEGINNER

    def _remaining_for_section(self, section_id: str) -> List[Question]:
        asked = set(self.asked_ids)
        return [q for q in self.questions if q.section_id == section_id and q.id not in asked]

    def _select(self) -> Optional[Question]:
        for section in self.ranked_sections():
            if self.is_settled(section):
                continue

            pool = self._remaining_for_section(section.section_id)
            target = self.target_difficulty(section)
            candidates = [q for q in pool if q.difficulty == target] or pool

            if candidates:
                return self.rng.choice(candidates)

        return None

    # ==================== Stopping Rules ====================

    def _stop_reason(self) -> Optional[EndReason]:
        if self.confidences and all(
            c.total_answers >= self.MIN_ANSWERS_PER_SECTION for c in self.confidences.values()
        ):
            return EndReason.ALL_SECTIONS_COVERED
        if self.answered_count >= self.MAX_QUESTIONS:
            return EndReason.QUESTION_CAP
        return None

    def _present(self, question: Question) -> Question:
        self.asked_ids.append(question.id)
        self.current_question = question
        self.phase = SelectorPhase.AWAITING_ANSWER
        logger.debug(
            "Selected %s (section %s, %s)",
            question.id,
            question.section_id,
            question.difficulty.value,
        )
        return question

    def _finish(self, reason: EndReason) -> None:
        self.phase = SelectorPhase.DONE
        self.end_reason = reason
        self.current_question = None
        logger.debug("Diagnostic done after %d answers: %s", self.answered_count, reason.value)

    # ==================== Results ====================

    def section_results(self) -> List[SectionResult]:
        """Per-section score and level from this session's answers."""
        return section_results(self.confidences.values())


def section_results(confidences) -> List[SectionResult]:
    """Score and mastery level per section from transient confidences."""
    return [
        SectionResult(
            section_id=c.section_id,
            score=percentage(c.correct_answers, c.total_answers),
            level=classify(percentage(c.correct_answers, c.total_answers), c.total_answers),
        )
        for c in confidences
    ]


# ==================== Session Record ====================


def start_session(subject_id: str, now: Optional[datetime] = None) -> DiagnosticSession:
    """Open a new, empty diagnostic session."""
    return DiagnosticSession(
        id=str(uuid.uuid4()),
        subject_id=subject_id,
        started_at=now or datetime.now(),
    )


def append_answer(session: DiagnosticSession, answer: DiagnosticAnswer) -> DiagnosticSession:
    """Return the session with one more answer appended."""
    if session.is_completed:
        raise SessionStateError(f"Diagnostic session {session.id} is already completed")
    return replace(session, answers=session.answers + (answer,))


def complete_session(session: DiagnosticSession, now: Optional[datetime] = None) -> DiagnosticSession:
    """Mark the session completed. Completion is irreversible."""
    if session.is_completed:
        raise SessionStateError(f"Diagnostic session {session.id} is already completed")
    return replace(session, status=DiagnosticStatus.COMPLETED, completed_at=now or datetime.now())
