"""
StudyService - Service Layer over the learning core

This module provides a stateless service interface for the core operations.
Every method takes a LearnerState and returns a new one (or a query result);
the host owns persistence and calls a SnapshotRepository before and after.

Architecture Pattern:
    - Stateless service design (no global state)
    - Injected random source and clock
    - Clean separation between CLI and business logic

Usage:
    service = StudyService(rng=random.Random(7))
    with Database() as db:
        state = db.load(learner_id)
        state = service.review_card(state, "fc-1", quality=4)
        db.save(learner_id, state)
"""

import logging
import random
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from learning_core import review_deck
from learning_core.diagnostic import (
    AdaptiveDiagnosticSelector,
    append_answer,
    complete_session,
    start_session,
)
from learning_core.dto.content import Question
from learning_core.dto.diagnostic import DiagnosticAnswer, DiagnosticSession
from learning_core.dto.final_test import FinalTestSession
from learning_core.dto.flashcard import FlashcardProgress, ReviewStats
from learning_core.dto.mastery import SectionKnowledge, SectionMastery, SubjectKnowledge
from learning_core.dto.progress import CourseSummary
from learning_core.exceptions import SessionStateError, UnknownCardError
from learning_core.final_test import FinalTestTracker
from learning_core.knowledge_tracker import KnowledgeTracker
from learning_core.progress_summary import course_summary
from learning_core.sm2 import SM2Scheduler
from learning_core.state import LearnerState

logger = logging.getLogger(__name__)


class StudyService:
    """
    Stateless service layer for learner operations.

    Example:
        service = StudyService()
        state = service.start_diagnostic(LearnerState(), "calculus")
        selector = service.new_selector(questions)
        question = selector.start()
        state = service.submit_diagnostic_answer(state, question, "a", selector=selector)
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize service.

        Args:
            rng: Random source for diagnostic selection. Defaults to an
                unseeded random.Random.
            clock: Returns the current time. Defaults to datetime.now.
        """
        self.rng = rng or random.Random()
        self.clock = clock or datetime.now

    def now(self) -> datetime:
        return self.clock()

    def today(self) -> date:
        return self.clock().date()

    # =========================================================================
    # KNOWLEDGE
    # =========================================================================

    def record_answer(self, state: LearnerState, topic_id: str, is_correct: bool) -> LearnerState:
        """Accumulate one quiz or diagnostic answer into a topic."""
        states = KnowledgeTracker.record_answer(
            state.knowledge_states, topic_id, is_correct, self.now()
        )
        return replace(state, knowledge_states=states)

    def set_topic_score(
        self, state: LearnerState, topic_id: str, correct: int, total: int
    ) -> LearnerState:
        """Replace a topic's result with a definitive quiz outcome."""
        states = KnowledgeTracker.set_topic_score(
            state.knowledge_states, topic_id, correct, total, self.now()
        )
        return replace(state, knowledge_states=states)

    def section_mastery(self, state: LearnerState, topic_ids: Iterable[str]) -> SectionMastery:
        return KnowledgeTracker.section_mastery(state.knowledge_states, topic_ids)

    def section_knowledge(
        self, state: LearnerState, section_id: str, topic_ids: Sequence[str]
    ) -> SectionKnowledge:
        return KnowledgeTracker.section_knowledge(state.knowledge_states, section_id, topic_ids)

    def subject_knowledge(
        self, state: LearnerState, subject_id: str, sections: Mapping[str, Sequence[str]]
    ) -> SubjectKnowledge:
        return KnowledgeTracker.subject_knowledge(state.knowledge_states, subject_id, sections)

    # =========================================================================
    # DIAGNOSTIC
    # =========================================================================

    def start_diagnostic(self, state: LearnerState, subject_id: str) -> LearnerState:
        """Open a new diagnostic session, abandoning any unfinished one."""
        previous = state.diagnostic_session
        if previous is not None and not previous.is_completed:
            logger.info("Abandoning unfinished diagnostic %s", previous.id)
        return replace(state, diagnostic_session=start_session(subject_id, self.now()))

    def new_selector(
        self,
        questions: Sequence[Question],
        section_ids: Optional[Sequence[str]] = None,
    ) -> AdaptiveDiagnosticSelector:
        """Selector over a validated pool, sharing the service's random source."""
        return AdaptiveDiagnosticSelector(questions, section_ids=section_ids, rng=self.rng)

    def submit_diagnostic_answer(
        self,
        state: LearnerState,
        question: Question,
        user_answer: str,
        time_spent_seconds: float = 0,
        selector: Optional[AdaptiveDiagnosticSelector] = None,
    ) -> LearnerState:
        """
        Grade and record a diagnostic answer.

        The answer is appended to the session AND accumulated into the
        question's topic. When a selector is given it is advanced too.

        Raises:
            SessionStateError: If no diagnostic is in progress, or the
                selector is not awaiting an answer to this question
        """
        session = self._active_diagnostic(state)
        if selector is not None:
            pending = selector.current_question
            if pending is None or pending.id != question.id:
                raise SessionStateError(
                    f"Selector is awaiting {pending.id if pending else 'no question'}, got {question.id}"
                )
        is_correct = question.is_correct_answer(user_answer)
        now = self.now()

        answer = DiagnosticAnswer(
            question_id=question.id,
            topic_id=question.topic_id,
            section_id=question.section_id,
            user_answer=user_answer,
            is_correct=is_correct,
            time_spent_seconds=time_spent_seconds,
            answered_at=now,
        )
        if selector is not None:
            selector.submit_answer(is_correct)

        states = KnowledgeTracker.record_answer(
            state.knowledge_states, question.topic_id, is_correct, now
        )
        return replace(
            state,
            diagnostic_session=append_answer(session, answer),
            knowledge_states=states,
        )

    def complete_diagnostic(self, state: LearnerState) -> LearnerState:
        """Mark the current diagnostic completed."""
        session = self._active_diagnostic(state)
        return replace(state, diagnostic_session=complete_session(session, self.now()))

    @staticmethod
    def _active_diagnostic(state: LearnerState) -> DiagnosticSession:
        session = state.diagnostic_session
        if session is None:
            raise SessionStateError("No diagnostic session in progress")
        if session.is_completed:
            raise SessionStateError(f"Diagnostic session {session.id} is already completed")
        return session

    # =========================================================================
    # FLASHCARDS
    # =========================================================================

    def add_card_to_deck(
        self, state: LearnerState, card_id: str, topic_id: str, subject_id: str
    ) -> LearnerState:
        progress, deck = review_deck.add_card(
            state.flashcard_progress, state.review_deck, card_id, topic_id, subject_id, self.today()
        )
        return replace(state, flashcard_progress=progress, review_deck=deck)

    def remove_card_from_deck(self, state: LearnerState, card_id: str) -> LearnerState:
        return replace(state, review_deck=review_deck.remove_card(state.review_deck, card_id))

    def review_card(self, state: LearnerState, card_id: str, quality: int) -> LearnerState:
        """
        Apply a review to one card.

        Raises:
            UnknownCardError: If the card has no progress record
            InvalidInputError: If quality is not an integer 0-5
        """
        progress = self._progress(state, card_id)
        updated = SM2Scheduler.process_review(progress, quality, self.today())

        new_progress = dict(state.flashcard_progress)
        new_progress[card_id] = updated
        return replace(state, flashcard_progress=new_progress)

    def preview_intervals(
        self,
        state: LearnerState,
        card_id: str,
        qualities: Sequence[int] = review_deck.REVIEW_BUTTONS,
    ) -> Dict[int, int]:
        """Interval each quality would produce for a card, without reviewing it."""
        progress = self._progress(state, card_id)
        return {q: SM2Scheduler.preview_next_interval(progress, q) for q in qualities}

    def due_cards(
        self,
        state: LearnerState,
        subject_id: Optional[str] = None,
        topic_id: Optional[str] = None,
    ) -> List[FlashcardProgress]:
        """Due cards, hardest first.

        By topic: every card of the topic. By subject or overall: deck
        members only.
        """
        today = self.today()
        if topic_id is not None:
            return review_deck.due_cards_for_topic(state.flashcard_progress, topic_id, today)
        if subject_id is not None:
            return review_deck.due_cards_for_subject(
                state.flashcard_progress, state.review_deck, subject_id, today
            )
        return review_deck.all_due_cards(state.flashcard_progress, state.review_deck, today)

    def review_stats(self, state: LearnerState, subject_id: Optional[str] = None) -> ReviewStats:
        """Statistics over deck cards, optionally restricted to one subject."""
        cards = [
            p
            for card_id, p in state.flashcard_progress.items()
            if card_id in state.review_deck and (subject_id is None or p.subject_id == subject_id)
        ]
        return SM2Scheduler.review_stats(cards, self.today())

    @staticmethod
    def _progress(state: LearnerState, card_id: str) -> FlashcardProgress:
        progress = state.flashcard_progress.get(card_id)
        if progress is None:
            raise UnknownCardError(card_id)
        return progress

    # =========================================================================
    # FINAL TEST
    # =========================================================================

    def can_take_final_test(self, state: LearnerState, topic_ids: Sequence[str]) -> bool:
        return KnowledgeTracker.can_take_final_test(state.knowledge_states, topic_ids)

    def start_final_test(
        self, state: LearnerState, subject_id: str, questions: Sequence[Question]
    ) -> LearnerState:
        session = FinalTestTracker.start(subject_id, questions, self.now())
        return replace(state, current_final_test=session)

    def answer_final_test(
        self, state: LearnerState, question: Question, answer: str
    ) -> LearnerState:
        """
        Grade and record a final-test answer.

        Raises:
            SessionStateError: If no final test is in progress or the
                question was already answered
            InvalidInputError: If the question is not part of the test
        """
        session = self._active_final_test(state)
        updated = FinalTestTracker.answer(
            session,
            question.id,
            answer,
            question.is_correct_answer(answer),
            question.section_id,
            self.now(),
        )
        return replace(state, current_final_test=updated)

    def complete_final_test(self, state: LearnerState) -> Tuple[LearnerState, FinalTestSession]:
        """Score the current final test and move it into history.

        Returns:
            (new state without a current test, the completed session)
        """
        session = self._active_final_test(state)
        completed, history = FinalTestTracker.complete(
            session, state.final_test_history.get(session.subject_id), self.now()
        )

        histories = dict(state.final_test_history)
        histories[session.subject_id] = history
        return replace(state, current_final_test=None, final_test_history=histories), completed

    @staticmethod
    def _active_final_test(state: LearnerState) -> FinalTestSession:
        if state.current_final_test is None:
            raise SessionStateError("No final test in progress")
        return state.current_final_test

    # =========================================================================
    # SUMMARY
    # =========================================================================

    def course_summary(
        self,
        state: LearnerState,
        subject_id: str,
        sections: Mapping[str, Sequence[str]],
        final_test_score: Optional[int] = None,
    ) -> CourseSummary:
        """Course summary. Defaults to the latest final test score, else 0."""
        if final_test_score is None:
            history = state.final_test_history.get(subject_id)
            final_test_score = history.attempts[-1].score if history and history.attempts else 0

        return course_summary(
            state.knowledge_states,
            state.flashcard_progress,
            state.review_deck,
            subject_id,
            sections,
            final_test_score,
        )
