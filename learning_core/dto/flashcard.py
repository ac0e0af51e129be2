"""Flashcard scheduling Data Transfer Objects."""

from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple


@dataclass(frozen=True)
class ReviewHistoryEntry:
    """One review of a card.

    Attributes:
        date: Day of the review
        quality: Quality signal given (0-5)
        interval: Interval in days the card had BEFORE this review
    """

    date: date
    quality: int
    interval: int


@dataclass(frozen=True)
class FlashcardProgress:
    """SM-2 scheduling state for one flashcard.

    Attributes:
        card_id: Flashcard id
        topic_id: Topic the card belongs to
        subject_id: Subject the card belongs to
        ease_factor: EF, never below 1.3
        interval: Days until next review (0 = due again in this session)
        repetitions: Consecutive successful reviews
        next_review_date: Calendar day the card becomes due
        last_review_date: Day of the most recent review
        review_history: Every review, oldest first, never trimmed
    """

    card_id: str
    topic_id: str
    subject_id: str
    ease_factor: float
    interval: int
    repetitions: int
    next_review_date: date
    last_review_date: Optional[date] = None
    review_history: Tuple[ReviewHistoryEntry, ...] = ()


@dataclass(frozen=True)
class ReviewStats:
    """Aggregate statistics over a set of progress records."""

    due_today: int
    new_cards: int
    learning: int
    mastered: int
    average_ease_factor: float

    @property
    def total(self) -> int:
        return self.new_cards + self.learning + self.mastered
