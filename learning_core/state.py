"""
Per-learner state container and its snapshot format.

LearnerState holds everything the core owns for one learner. It is
immutable: service operations return a new state, and the host persists it
through a SnapshotRepository.

Snapshot format (version 1) is a JSON-compatible dict with camelCase keys:

    {
        "version": 1,
        "knowledgeStates": {topicId: {...}},
        "flashcardProgress": {cardId: {...}},
        "reviewDeck": [cardId, ...],
        "diagnosticSession": {...} | null,
        "currentFinalTest": {...} | null,
        "finalTestHistory": {subjectId: {...}}
    }

Dates are written as YYYY-MM-DD, timestamps as ISO-8601.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, FrozenSet, Mapping, Optional

from learning_core.dto.diagnostic import DiagnosticAnswer, DiagnosticSession, DiagnosticStatus
from learning_core.dto.final_test import (
    FinalTestAnswer,
    FinalTestHistory,
    FinalTestSession,
    SectionScore,
)
from learning_core.dto.flashcard import FlashcardProgress, ReviewHistoryEntry
from learning_core.dto.mastery import KnowledgeState
from learning_core.exceptions import SnapshotError
from learning_core.sm2 import SM2Scheduler

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


@dataclass(frozen=True)
class LearnerState:
    """Everything the core tracks for one learner."""

    knowledge_states: Dict[str, KnowledgeState] = field(default_factory=dict)
    flashcard_progress: Dict[str, FlashcardProgress] = field(default_factory=dict)
    review_deck: FrozenSet[str] = frozenset()
    diagnostic_session: Optional[DiagnosticSession] = None
    current_final_test: Optional[FinalTestSession] = None
    final_test_history: Dict[str, FinalTestHistory] = field(default_factory=dict)

    # ==================== Snapshot Encoding ====================

    def to_snapshot(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "version": SNAPSHOT_VERSION,
            "knowledgeStates": {
                topic_id: _encode_knowledge(state)
                for topic_id, state in self.knowledge_states.items()
            },
            "flashcardProgress": {
                card_id: _encode_progress(progress)
                for card_id, progress in self.flashcard_progress.items()
            },
            "reviewDeck": sorted(self.review_deck),
            "diagnosticSession": (
                _encode_diagnostic(self.diagnostic_session) if self.diagnostic_session else None
            ),
            "currentFinalTest": (
                _encode_final_test(self.current_final_test) if self.current_final_test else None
            ),
            "finalTestHistory": {
                subject_id: _encode_history(history)
                for subject_id, history in self.final_test_history.items()
            },
        }

    @classmethod
    def from_snapshot(cls, data: Mapping[str, Any]) -> "LearnerState":
        """
        Rebuild state from a snapshot dict.

        masteryLevel is recomputed from (score, attempts) and easeFactor is
        clamped to the floor. Unknown keys are ignored.

        Raises:
            SnapshotError: On unsupported version or malformed content
        """
        if not isinstance(data, Mapping):
            raise SnapshotError("snapshot must be an object")

        version = data.get("version")
        if version != SNAPSHOT_VERSION:
            raise SnapshotError(f"unsupported snapshot version {version!r}")

        try:
            diagnostic = data.get("diagnosticSession")
            final_test = data.get("currentFinalTest")
            return cls(
                knowledge_states={
                    topic_id: _decode_knowledge(raw)
                    for topic_id, raw in (data.get("knowledgeStates") or {}).items()
                },
                flashcard_progress={
                    card_id: _decode_progress(raw)
                    for card_id, raw in (data.get("flashcardProgress") or {}).items()
                },
                review_deck=frozenset(data.get("reviewDeck") or ()),
                diagnostic_session=_decode_diagnostic(diagnostic) if diagnostic else None,
                current_final_test=_decode_final_test(final_test) if final_test else None,
                final_test_history={
                    subject_id: _decode_history(raw)
                    for subject_id, raw in (data.get("finalTestHistory") or {}).items()
                },
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise SnapshotError(f"malformed snapshot: {e!r}") from e


# ==================== Field Helpers ====================


def _ts(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _day(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_day(value: Optional[str]) -> Optional[date]:
    # Tolerate full timestamps written by older hosts
    return date.fromisoformat(value[:10]) if value else None


# ==================== Knowledge ====================


def _encode_knowledge(state: KnowledgeState) -> Dict[str, Any]:
    return {
        "topicId": state.topic_id,
        "score": state.score,
        "attempts": state.attempts,
        "correctAnswers": state.correct_answers,
        "totalAnswers": state.total_answers,
        "masteryLevel": state.mastery_level.value,
        "lastAttemptAt": _ts(state.last_attempt_at),
    }


def _decode_knowledge(raw: Mapping[str, Any]) -> KnowledgeState:
    return KnowledgeState(
        topic_id=raw["topicId"],
        score=int(raw["score"]),
        attempts=int(raw["attempts"]),
        correct_answers=int(raw["correctAnswers"]),
        total_answers=int(raw["totalAnswers"]),
        last_attempt_at=_parse_ts(raw.get("lastAttemptAt")),
    )


# ==================== Flashcards ====================


def _encode_progress(progress: FlashcardProgress) -> Dict[str, Any]:
    return {
        "cardId": progress.card_id,
        "topicId": progress.topic_id,
        "subjectId": progress.subject_id,
        "easeFactor": progress.ease_factor,
        "interval": progress.interval,
        "repetitions": progress.repetitions,
        "nextReviewDate": _day(progress.next_review_date),
        "lastReviewDate": _day(progress.last_review_date),
        "reviewHistory": [
            {"date": _day(entry.date), "quality": entry.quality, "interval": entry.interval}
            for entry in progress.review_history
        ],
    }


def _decode_progress(raw: Mapping[str, Any]) -> FlashcardProgress:
    if not raw.get("nextReviewDate"):
        raise ValueError(f"card {raw.get('cardId')!r} has no nextReviewDate")
    return FlashcardProgress(
        card_id=raw["cardId"],
        topic_id=raw["topicId"],
        subject_id=raw["subjectId"],
        ease_factor=max(SM2Scheduler.MIN_EF, float(raw["easeFactor"])),
        interval=max(0, int(raw["interval"])),
        repetitions=max(0, int(raw["repetitions"])),
        next_review_date=_parse_day(raw["nextReviewDate"]),
        last_review_date=_parse_day(raw.get("lastReviewDate")),
        review_history=tuple(
            ReviewHistoryEntry(
                date=_parse_day(entry["date"]),
                quality=int(entry["quality"]),
                interval=int(entry["interval"]),
            )
            for entry in raw.get("reviewHistory") or ()
        ),
    )


# ==================== Diagnostic ====================


def _encode_diagnostic(session: DiagnosticSession) -> Dict[str, Any]:
    return {
        "id": session.id,
        "subjectId": session.subject_id,
        "startedAt": _ts(session.started_at),
        "completedAt": _ts(session.completed_at),
        "status": session.status.value,
        "answers": [
            {
                "questionId": a.question_id,
                "topicId": a.topic_id,
                "sectionId": a.section_id,
                "userAnswer": a.user_answer,
                "isCorrect": a.is_correct,
                "timeSpentSeconds": a.time_spent_seconds,
                "answeredAt": _ts(a.answered_at),
            }
            for a in session.answers
        ],
    }


def _decode_diagnostic(raw: Mapping[str, Any]) -> DiagnosticSession:
    return DiagnosticSession(
        id=raw["id"],
        subject_id=raw["subjectId"],
        started_at=_parse_ts(raw["startedAt"]),
        completed_at=_parse_ts(raw.get("completedAt")),
        status=DiagnosticStatus(raw.get("status", DiagnosticStatus.IN_PROGRESS.value)),
        answers=tuple(
            DiagnosticAnswer(
                question_id=a["questionId"],
                topic_id=a["topicId"],
                section_id=a["sectionId"],
                user_answer=a["userAnswer"],
                is_correct=bool(a["isCorrect"]),
                time_spent_seconds=a.get("timeSpentSeconds", 0),
                answered_at=_parse_ts(a.get("answeredAt")),
            )
            for a in raw.get("answers") or ()
        ),
    )


# ==================== Final Test ====================


def _encode_final_test(session: FinalTestSession) -> Dict[str, Any]:
    return {
        "id": session.id,
        "subjectId": session.subject_id,
        "startedAt": _ts(session.started_at),
        "completedAt": _ts(session.completed_at),
        "questionIds": list(session.question_ids),
        "status": session.status.value,
        "score": session.score,
        "sectionScores": {
            section_id: {"correct": tally.correct, "total": tally.total}
            for section_id, tally in session.section_scores.items()
        },
        "answers": [
            {
                "questionId": a.question_id,
                "answer": a.answer,
                "isCorrect": a.is_correct,
                "answeredAt": _ts(a.answered_at),
            }
            for a in session.answers
        ],
    }


def _decode_final_test(raw: Mapping[str, Any]) -> FinalTestSession:
    return FinalTestSession(
        id=raw["id"],
        subject_id=raw["subjectId"],
        started_at=_parse_ts(raw["startedAt"]),
        completed_at=_parse_ts(raw.get("completedAt")),
        question_ids=tuple(raw.get("questionIds") or ()),
        status=DiagnosticStatus(raw.get("status", DiagnosticStatus.IN_PROGRESS.value)),
        score=int(raw.get("score", 0)),
        section_scores={
            section_id: SectionScore(correct=int(tally["correct"]), total=int(tally["total"]))
            for section_id, tally in (raw.get("sectionScores") or {}).items()
        },
        answers=tuple(
            FinalTestAnswer(
                question_id=a["questionId"],
                answer=a["answer"],
                is_correct=bool(a["isCorrect"]),
                answered_at=_parse_ts(a["answeredAt"]),
            )
            for a in raw.get("answers") or ()
        ),
    )


def _encode_history(history: FinalTestHistory) -> Dict[str, Any]:
    return {
        "subjectId": history.subject_id,
        "attempts": [_encode_final_test(session) for session in history.attempts],
        "bestScore": history.best_score,
        "lastAttemptAt": _ts(history.last_attempt_at),
    }


def _decode_history(raw: Mapping[str, Any]) -> FinalTestHistory:
    return FinalTestHistory(
        subject_id=raw["subjectId"],
        attempts=tuple(_decode_final_test(session) for session in raw.get("attempts") or ()),
        best_score=int(raw.get("bestScore", 0)),
        last_attempt_at=_parse_ts(raw.get("lastAttemptAt")),
    )
