"""
Tests for review deck membership, due queries and the review queue.
"""

from datetime import date, timedelta

import pytest

from learning_core.exceptions import InvalidInputError, SessionStateError
from learning_core.review_deck import (
    ReviewQueue,
    add_card,
    all_due_cards,
    due_cards_for_subject,
    due_cards_for_topic,
    format_interval,
    in_deck,
    quality_label,
    remove_card,
)
from learning_core.sm2 import SM2Scheduler

TODAY = date(2024, 1, 1)


def _deck():
    progress, deck = {}, frozenset()
    progress, deck = add_card(progress, deck, "c1", "t1", "calc", TODAY)
    progress, deck = add_card(progress, deck, "c2", "t2", "calc", TODAY)
    progress, deck = add_card(progress, deck, "c3", "t1", "algebra", TODAY)
    return progress, deck


class TestMembership:
    """Adding and removing deck cards."""

    def test_add_card_creates_due_progress(self):
        progress, deck = add_card({}, frozenset(), "c1", "t1", "calc", TODAY)

        card = progress["c1"]
        assert in_deck(deck, "c1")
        assert card.ease_factor == 2.5
        assert card.interval == 0
        assert card.repetitions == 0
        assert card.next_review_date == TODAY
        assert card.topic_id == "t1"
        assert card.subject_id == "calc"

    def test_re_adding_keeps_schedule(self):
        progress, deck = add_card({}, frozenset(), "c1", "t1", "calc", TODAY)
        progress["c1"] = SM2Scheduler.process_review(progress["c1"], 5, TODAY)
        deck = remove_card(deck, "c1")

        progress, deck = add_card(progress, deck, "c1", "t1", "calc", TODAY + timedelta(days=1))

        assert in_deck(deck, "c1")
        assert progress["c1"].interval == 4

    def test_remove_card_keeps_progress(self):
        progress, deck = _deck()

        deck = remove_card(deck, "c1")

        assert not in_deck(deck, "c1")
        assert "c1" in progress

    def test_add_does_not_mutate_inputs(self):
        progress, deck = {}, frozenset()
        add_card(progress, deck, "c1", "t1", "calc", TODAY)

        assert progress == {}
        assert deck == frozenset()


class TestDueQueries:
    """Due cards by topic, subject and overall."""

    def test_due_by_subject_requires_membership(self):
        progress, deck = _deck()
        deck = remove_card(deck, "c2")

        due = due_cards_for_subject(progress, deck, "calc", TODAY)

        assert [p.card_id for p in due] == ["c1"]

    def test_due_by_topic_ignores_membership(self):
        progress, deck = _deck()
        deck = remove_card(deck, "c1")

        due = due_cards_for_topic(progress, "t1", TODAY)

        assert sorted(p.card_id for p in due) == ["c1", "c3"]

    def test_all_due_cards_sorted_by_ease(self):
        progress, deck = _deck()
        progress["c2"] = SM2Scheduler.process_review(progress["c2"], 0, TODAY)  # EF 1.7, still due
        progress["c3"] = SM2Scheduler.process_review(progress["c3"], 4, TODAY)  # due tomorrow

        due = all_due_cards(progress, deck, TODAY)

        assert [p.card_id for p in due] == ["c2", "c1"]


class TestReviewQueue:
    """In-session ordering."""

    def test_dont_know_requeues_at_end(self):
        queue = ReviewQueue(["a", "b"])

        assert queue.apply(0) == "b"
        assert queue.remaining == 2
        assert queue.apply(4) == "a"
        assert queue.remaining == 1
        assert queue.apply(5) is None
        assert queue.is_empty
        assert queue.reviewed_count == 3

    def test_forgot_drops_card(self):
        queue = ReviewQueue(["a"])

        assert queue.apply(1) is None
        assert queue.is_empty

    def test_apply_on_empty_queue(self):
        with pytest.raises(SessionStateError):
            ReviewQueue([]).apply(4)

    def test_apply_rejects_bad_quality(self):
        queue = ReviewQueue(["a"])

        with pytest.raises(InvalidInputError):
            queue.apply(7)
        assert queue.current == "a"


# ============================================================================
# Display helpers
# ============================================================================


@pytest.mark.parametrize(
    "days,expected",
    [
        (0, "10 min"),
        (1, "1 day"),
        (3, "3 days"),
        (6, "6 days"),
        (7, "1 wk"),
        (11, "2 wk"),
        (24, "3 wk"),
        (29, "4 wk"),
        (30, "1 mo"),
        (45, "2 mo"),
        (120, "4 mo"),
    ],
)
def test_format_interval(days, expected):
    assert format_interval(days) == expected


def test_quality_labels():
    assert quality_label(0) == "don't know"
    assert quality_label(1) == "forgot"
    assert quality_label(4) == "good"
    assert quality_label(5) == "easy"
    with pytest.raises(InvalidInputError):
        quality_label(9)
