"""
SM-2 (SuperMemo 2) Spaced Repetition Scheduler

This module implements the SM-2 variant used for flashcard review. It decides
when a card should next be shown, which cards are due, and in what order.

Quality Scale:
--------------
The review screen offers four buttons, but the algorithm accepts the full
canonical 0-5 range:

   - 0: Don't know. Card stays due and is re-queued within the session
   - 1: Forgot. Card comes back tomorrow
   - 2, 3: Recalled with serious difficulty
   - 4: Good
   - 5: Easy

Easiness Factor Adjustment:
---------------------------
EF' = max(1.3, EF + (0.1 - (5 - q) × (0.08 + (5 - q) × 0.02)))

EF' is computed on every review, whichever branch below applies. There is no
upper cap: easy cards keep getting easier.

Interval Calculation:
---------------------
- q = 0: repetitions = 0, interval = 0 (due again today)
- q = 1: repetitions = 0, interval = 1 day
- q >= 2: repetitions += 1, then by the NEW repetition count
    - 1st: 1 day (4 days if q = 5)
    - 2nd: 6 days (10 days if q = 5)
    - later: base = round(previous_interval × EF'),
             base × 1.5 rounded if q = 5, else base

Each rounding step is applied as it happens (half-up), matching the intervals
learners already have on record.

Example Progression:
--------------------
Start EF=2.5, I=0, R=0:
- q=4 -> R=1, I=1
- q=4 -> R=2, I=6
- q=5 -> R=3, EF=2.6, base=round(6 × 2.6)=16, I=round(16 × 1.5)=24

Due dates are calendar days: time of day is not tracked.

References:
-----------
- Original paper: https://www.supermemo.com/english/ol/sm2.htm
"""

import logging
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Iterable, List, Optional

from learning_core.dto.flashcard import FlashcardProgress, ReviewHistoryEntry, ReviewStats
from learning_core.exceptions import InvalidInputError
from learning_core.mastery import round_half_up

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SM2Result:
    """Result of one SM-2 step."""

    ease_factor: float
    interval: int
    repetitions: int


class SM2Scheduler:
    """SM-2 spaced repetition scheduler for flashcards."""

    MIN_EF = 1.3  # Minimum easiness factor
    DEFAULT_EF = 2.5  # Starting easiness factor for new cards

    MIN_QUALITY = 0
    MAX_QUALITY = 5

    DONT_KNOW_QUALITY = 0  # Re-queue within the session
    FORGOT_QUALITY = 1  # Back tomorrow
    EASY_QUALITY = 5

    FIRST_INTERVAL = 1
    FIRST_INTERVAL_EASY = 4
    SECOND_INTERVAL = 6
    SECOND_INTERVAL_EASY = 10
    EASY_BONUS = 1.5

    # Interval (days) from which a card counts as mastered in stats
    MASTERED_INTERVAL = 21

    # ==================== Core Algorithm ====================

    @classmethod
    def validate_quality(cls, quality) -> int:
        """Reject anything that is not an integer 0-5.

        Out-of-range values are rejected rather than clamped so that caller
        bugs surface instead of silently rescheduling a card.
        """
        if isinstance(quality, bool) or not isinstance(quality, int):
            raise InvalidInputError(f"quality must be an integer 0-5, got {quality!r}")
        if not cls.MIN_QUALITY <= quality <= cls.MAX_QUALITY:
            raise InvalidInputError(f"quality must be between 0 and 5, got {quality}")
        return quality

    @classmethod
    def next_ease_factor(cls, ease_factor: float, quality: int) -> float:
        """EF' = max(1.3, EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)))"""
        delta = 0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02)
        return max(cls.MIN_EF, ease_factor + delta)

    @classmethod
    def calculate(
        cls,
        quality: int,
        ease_factor: float = DEFAULT_EF,
        interval: int = 0,
        repetitions: int = 0,
    ) -> SM2Result:
        """
        Calculate the next scheduling state from a quality signal.

        This is the single implementation of the branch logic; reviews and
        previews both go through it so they can never disagree.

        Args:
            quality: Recall quality from 0-5
            ease_factor: Current easiness factor
            interval: Current interval in days
            repetitions: Current consecutive successful reviews

        Returns:
            SM2Result with the new EF, interval and repetitions

        Example:
            >>> SM2Scheduler.calculate(quality=5, ease_factor=2.5, interval=6, repetitions=2)
            SM2Result(ease_factor=2.6, interval=24, repetitions=3)
        """
        quality = cls.validate_quality(quality)
        new_ef = cls.next_ease_factor(ease_factor, quality)

        if quality == cls.DONT_KNOW_QUALITY:
            new_repetitions = 0
            new_interval = 0
        elif quality == cls.FORGOT_QUALITY:
            new_repetitions = 0
            new_interval = 1
        else:
            new_repetitions = repetitions + 1
            easy = quality == cls.EASY_QUALITY

            if new_repetitions == 1:
                new_interval = cls.FIRST_INTERVAL_EASY if easy else cls.FIRST_INTERVAL
            elif new_repetitions == 2:
                new_interval = cls.SECOND_INTERVAL_EASY if easy else cls.SECOND_INTERVAL
            else:
                # Uses the previous interval and the new EF
                base = round_half_up(interval * new_ef)
                new_interval = round_half_up(base * cls.EASY_BONUS) if easy else base

        return SM2Result(
            ease_factor=new_ef,
            interval=max(0, new_interval),
            repetitions=new_repetitions,
        )

    # ==================== Card Progress ====================

    @classmethod
    def create_initial_progress(
        cls,
        card_id: str,
        topic_id: str,
        subject_id: str,
        today: Optional[date] = None,
    ) -> FlashcardProgress:
        """Progress for a card that has never been reviewed. It is due today."""
        return FlashcardProgress(
            card_id=card_id,
            topic_id=topic_id,
            subject_id=subject_id,
            ease_factor=cls.DEFAULT_EF,
            interval=0,
            repetitions=0,
            next_review_date=today or date.today(),
        )

    @classmethod
    def process_review(
        cls,
        progress: FlashcardProgress,
        quality: int,
        today: Optional[date] = None,
    ) -> FlashcardProgress:
        """
        Apply one review to a card.

        The history entry records the interval the card had before this
        review.

        Raises:
            InvalidInputError: If quality is not an integer 0-5
        """
        today = today or date.today()
        result = cls.calculate(
            quality,
            ease_factor=progress.ease_factor,
            interval=progress.interval,
            repetitions=progress.repetitions,
        )

        entry = ReviewHistoryEntry(date=today, quality=quality, interval=progress.interval)

        logger.debug(
            "Reviewed %s q=%d: EF %.2f -> %.2f, interval %d -> %d, reps %d -> %d",
            progress.card_id,
            quality,
            progress.ease_factor,
            result.ease_factor,
            progress.interval,
            result.interval,
            progress.repetitions,
            result.repetitions,
        )

        return replace(
            progress,
            ease_factor=result.ease_factor,
            interval=result.interval,
            repetitions=result.repetitions,
            next_review_date=today + timedelta(days=result.interval),
            last_review_date=today,
            review_history=progress.review_history + (entry,),
        )

    @classmethod
    def preview_next_interval(cls, progress: FlashcardProgress, quality: int) -> int:
        """Interval a review with this quality would produce. Does not mutate."""
        return cls.calculate(
            quality,
            ease_factor=progress.ease_factor,
            interval=progress.interval,
            repetitions=progress.repetitions,
        ).interval

    # ==================== Due Cards ====================

    @staticmethod
    def is_due(progress: FlashcardProgress, today: Optional[date] = None) -> bool:
        """A card is due on or after its next review day."""
        return progress.next_review_date <= (today or date.today())

    @classmethod
    def due_cards(
        cls, progress_list: Iterable[FlashcardProgress], today: Optional[date] = None
    ) -> List[FlashcardProgress]:
        """Cards due today or earlier, in input order."""
        today = today or date.today()
        return [p for p in progress_list if cls.is_due(p, today)]

    @classmethod
    def sort_by_review_priority(
        cls, progress_list: Iterable[FlashcardProgress], today: Optional[date] = None
    ) -> List[FlashcardProgress]:
        """
        Order cards for presentation.

        Due cards come first, hardest (lowest EF) first. Cards not yet due
        follow, soonest first; they only matter for "next review" previews.
        """
        today = today or date.today()

        def priority(progress: FlashcardProgress):
            if cls.is_due(progress, today):
                return (0, progress.ease_factor, 0)
            return (1, 0.0, progress.next_review_date.toordinal())

        return sorted(progress_list, key=priority)

    @classmethod
    def review_stats(
        cls, progress_list: Iterable[FlashcardProgress], today: Optional[date] = None
    ) -> ReviewStats:
        """
        Aggregate statistics over progress records.

        new = never successfully reviewed (repetitions == 0)
        mastered = interval of 21+ days
        learning = everything else
        """
        today = today or date.today()
        cards = list(progress_list)

        new_cards = sum(1 for p in cards if p.repetitions == 0)
        mastered = sum(1 for p in cards if p.repetitions > 0 and p.interval >= cls.MASTERED_INTERVAL)

        return ReviewStats(
            due_today=sum(1 for p in cards if cls.is_due(p, today)),
            new_cards=new_cards,
            learning=len(cards) - new_cards - mastered,
            mastered=mastered,
            average_ease_factor=(
                sum(p.ease_factor for p in cards) / len(cards) if cards else cls.DEFAULT_EF
            ),
        )
