"""
Review deck membership and in-session review queue.

The deck is the set of flashcards a learner chose to review. A card enters
the deck with fresh SM-2 progress (due today) unless it already has a
progress record, in which case its schedule is kept.

Usage:
    progress, deck = add_card(progress, deck, "fc-1", "limits", "calc", today)
    queue = ReviewQueue([p.card_id for p in all_due_cards(progress, deck, today)])
    while not queue.is_empty:
        card_id = queue.current
        ...
        queue.apply(quality)
"""

import logging
from collections import deque
from datetime import date
from typing import AbstractSet, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from learning_core.dto.flashcard import FlashcardProgress
from learning_core.exceptions import SessionStateError
from learning_core.mastery import round_half_up
from learning_core.sm2 import SM2Scheduler

logger = logging.getLogger(__name__)

ProgressMap = Mapping[str, FlashcardProgress]

# Button labels per quality value
QUALITY_LABELS = {
    0: "don't know",
    1: "forgot",
    2: "hard",
    3: "with effort",
    4: "good",
    5: "easy",
}

# Qualities offered on the review screen
REVIEW_BUTTONS = (0, 1, 4, 5)


# ==================== Deck Membership ====================


def add_card(
    progress: ProgressMap,
    deck: AbstractSet[str],
    card_id: str,
    topic_id: str,
    subject_id: str,
    today: Optional[date] = None,
) -> Tuple[Dict[str, FlashcardProgress], FrozenSet[str]]:
    """Add a card to the deck, creating its progress if missing.

    Returns:
        (new progress map, new deck)
    """
    new_progress = dict(progress)
    if card_id not in new_progress:
        new_progress[card_id] = SM2Scheduler.create_initial_progress(
            card_id, topic_id, subject_id, today
        )
        logger.debug("Created progress for %s (topic %s)", card_id, topic_id)
    return new_progress, frozenset(deck) | {card_id}


def remove_card(deck: AbstractSet[str], card_id: str) -> FrozenSet[str]:
    """Remove a card from the deck. Its progress record is kept."""
    return frozenset(deck) - {card_id}


def in_deck(deck: AbstractSet[str], card_id: str) -> bool:
    return card_id in deck


# ==================== Due Queries ====================


def due_cards_for_topic(
    progress: ProgressMap, topic_id: str, today: Optional[date] = None
) -> List[FlashcardProgress]:
    """Due cards of a topic, deck membership not required."""
    cards = [p for p in progress.values() if p.topic_id == topic_id]
    return SM2Scheduler.sort_by_review_priority(SM2Scheduler.due_cards(cards, today), today)


def due_cards_for_subject(
    progress: ProgressMap,
    deck: AbstractSet[str],
    subject_id: str,
    today: Optional[date] = None,
) -> List[FlashcardProgress]:
    """Due deck cards of a subject, hardest first."""
    cards = [p for p in _deck_cards(progress, deck) if p.subject_id == subject_id]
    return SM2Scheduler.sort_by_review_priority(SM2Scheduler.due_cards(cards, today), today)


def all_due_cards(
    progress: ProgressMap, deck: AbstractSet[str], today: Optional[date] = None
) -> List[FlashcardProgress]:
    """Every due deck card, hardest first."""
    cards = list(_deck_cards(progress, deck))
    return SM2Scheduler.sort_by_review_priority(SM2Scheduler.due_cards(cards, today), today)


def _deck_cards(progress: ProgressMap, deck: AbstractSet[str]) -> Iterable[FlashcardProgress]:
    return (p for card_id, p in progress.items() if card_id in deck)


# ==================== Review Queue ====================


class ReviewQueue:
    """
    Order of cards within one review session.

    A card answered "don't know" (quality 0) goes to the back of the queue
    and is shown again before the session ends. Any other answer removes it.
    """

    def __init__(self, card_ids: Iterable[str]):
        self._queue = deque(card_ids)
        self.reviewed_count = 0

    @property
    def current(self) -> Optional[str]:
        return self._queue[0] if self._queue else None

    @property
    def remaining(self) -> int:
        return len(self._queue)

    @property
    def is_empty(self) -> bool:
        return not self._queue

    def apply(self, quality: int) -> Optional[str]:
        """Advance past the current card.

        Returns:
            The next card id, or None when the queue is empty

        Raises:
            SessionStateError: If the queue is already empty
            InvalidInputError: If quality is not an integer 0-5
        """
        SM2Scheduler.validate_quality(quality)
        if not self._queue:
            raise SessionStateError("Review queue is empty")

        card_id = self._queue.popleft()
        self.reviewed_count += 1
        if quality == SM2Scheduler.DONT_KNOW_QUALITY:
            self._queue.append(card_id)
            logger.debug("Re-queued %s", card_id)

        return self.current


# ==================== Display Helpers ====================


def quality_label(quality: int) -> str:
    return QUALITY_LABELS[SM2Scheduler.validate_quality(quality)]


def format_interval(days: int) -> str:
    """Human-readable interval.

    Interval 0 means "again in this session", shown as 10 minutes.
    """
    if days <= 0:
        return "10 min"
    if days == 1:
        return "1 day"
    if days < 7:
        return f"{days} days"
    if days < 30:
        return f"{round_half_up(days / 7)} wk"
    return f"{round_half_up(days / 30)} mo"
