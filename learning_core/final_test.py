"""Final test over a whole subject.

A final test is one pass over a fixed question list. Answers are tallied per
section as they arrive; the overall score is computed once, on completion,
against the number of questions in the test (unanswered questions count as
wrong). Completed tests are kept in a per-subject history with the best
score so far.

The final test never touches knowledge states. Applying its section results
to topics is the caller's decision (see KnowledgeTracker.set_topic_score).
"""

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Optional, Sequence, Tuple

from learning_core.dto.content import Question
from learning_core.dto.diagnostic import DiagnosticStatus
from learning_core.dto.final_test import (
    FinalTestAnswer,
    FinalTestHistory,
    FinalTestSession,
    SectionScore,
)
from learning_core.exceptions import InvalidInputError, SessionStateError
from learning_core.mastery import percentage

logger = logging.getLogger(__name__)


class FinalTestTracker:
    """Pure transforms over FinalTestSession and FinalTestHistory."""

    @staticmethod
    def start(
        subject_id: str,
        questions: Sequence[Question],
        now: Optional[datetime] = None,
    ) -> FinalTestSession:
        """Open a final test over the given questions, in order."""
        session = FinalTestSession(
            id=str(uuid.uuid4()),
            subject_id=subject_id,
            started_at=now or datetime.now(),
            question_ids=tuple(q.id for q in questions),
        )
        logger.debug("Started final test %s with %d questions", session.id, len(questions))
        return session

    @staticmethod
    def answer(
        session: FinalTestSession,
        question_id: str,
        answer: str,
        is_correct: bool,
        section_id: str,
        now: Optional[datetime] = None,
    ) -> FinalTestSession:
        """Append an answer and update the section tally.

        Each question of the test is answered at most once.

        Raises:
            SessionStateError: If the test is completed or the question was already answered
            InvalidInputError: If the question is not part of this test
        """
        if session.status == DiagnosticStatus.COMPLETED:
            raise SessionStateError(f"Final test {session.id} is already completed")
        if question_id not in session.question_ids:
            raise InvalidInputError(f"Question {question_id} is not part of final test {session.id}")
        if any(a.question_id == question_id for a in session.answers):
            raise SessionStateError(f"Question {question_id} was already answered")

        entry = FinalTestAnswer(
            question_id=question_id,
            answer=answer,
            is_correct=is_correct,
            answered_at=now or datetime.now(),
        )

        tally = session.section_scores.get(section_id, SectionScore())
        section_scores = dict(session.section_scores)
        section_scores[section_id] = SectionScore(
            correct=tally.correct + (1 if is_correct else 0),
            total=tally.total + 1,
        )

        return replace(
            session,
            answers=session.answers + (entry,),
            section_scores=section_scores,
        )

    @staticmethod
    def complete(
        session: FinalTestSession,
        history: Optional[FinalTestHistory] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[FinalTestSession, FinalTestHistory]:
        """Score the test and append it to the subject's history.

        Returns:
            (completed session, updated history)

        Raises:
            SessionStateError: If the test is already completed
        """
        if session.status == DiagnosticStatus.COMPLETED:
            raise SessionStateError(f"Final test {session.id} is already completed")

        now = now or datetime.now()
        correct = sum(1 for a in session.answers if a.is_correct)
        score = percentage(correct, len(session.question_ids))

        completed = replace(
            session,
            status=DiagnosticStatus.COMPLETED,
            score=score,
            completed_at=now,
        )

        history = history or FinalTestHistory(subject_id=session.subject_id)
        updated_history = replace(
            history,
            attempts=history.attempts + (completed,),
            best_score=max(history.best_score, score),
            last_attempt_at=now,
        )

        logger.debug(
            "Completed final test %s: %d/%d -> %d (best %d)",
            session.id,
            correct,
            len(session.question_ids),
            score,
            updated_history.best_score,
        )
        return completed, updated_history

    @staticmethod
    def section_percentages(session: FinalTestSession) -> dict:
        """Rounded percentage per answered section."""
        return {
            section_id: percentage(tally.correct, tally.total)
            for section_id, tally in session.section_scores.items()
        }
