"""
Unit tests for KnowledgeTracker.

Tests cover answer accumulation, quiz score replacement and the section and
subject roll-ups, without any persistence.
"""

from datetime import datetime

import pytest

from learning_core.dto.mastery import KnowledgeState
from learning_core.exceptions import InvalidInputError
from learning_core.knowledge_tracker import KnowledgeTracker
from learning_core.mastery import MasteryLevel

NOW = datetime(2024, 1, 1, 12, 0)


def _answers(*results, topic_id="t1"):
    states = {}
    for is_correct in results:
        states = KnowledgeTracker.record_answer(states, topic_id, is_correct, NOW)
    return states


# ============================================================================
# Test record_answer()
# ============================================================================


def test_record_answer_creates_topic_lazily():
    states = KnowledgeTracker.record_answer({}, "t1", True, NOW)

    state = states["t1"]
    assert state.score == 100
    assert state.attempts == 1
    assert state.correct_answers == 1
    assert state.total_answers == 1
    assert state.last_attempt_at == NOW
    assert state.mastery_level == MasteryLevel.MASTERED
    print("✓ test_record_answer_creates_topic_lazily passed")


def test_record_answer_three_right_one_wrong_scores_75():
    states = _answers(True, True, True, False)

    state = states["t1"]
    assert state.score == 75
    assert state.mastery_level == MasteryLevel.LEARNING
    assert state.attempts == 4
    print("✓ test_record_answer_three_right_one_wrong_scores_75 passed")


def test_record_answer_does_not_mutate_input():
    before = _answers(True)
    after = KnowledgeTracker.record_answer(before, "t1", False, NOW)

    assert before["t1"].total_answers == 1
    assert after["t1"].total_answers == 2
    assert after is not before


def test_record_answer_rejects_empty_topic():
    with pytest.raises(InvalidInputError):
        KnowledgeTracker.record_answer({}, "", True, NOW)


# ============================================================================
# Test set_topic_score()
# ============================================================================


def test_set_topic_score_replaces_history():
    states = _answers(False, False, False)
    states = KnowledgeTracker.set_topic_score(states, "t1", 4, 5, NOW)

    state = states["t1"]
    assert state.score == 80
    assert state.correct_answers == 4
    assert state.total_answers == 5
    assert state.attempts == 1
    assert state.mastery_level == MasteryLevel.MASTERED
    print("✓ test_set_topic_score_replaces_history passed")


@pytest.mark.parametrize("correct,total", [(0, 0), (3, 2), (-1, 4)])
def test_set_topic_score_rejects_bad_counts(correct, total):
    with pytest.raises(InvalidInputError):
        KnowledgeTracker.set_topic_score({}, "t1", correct, total, NOW)


# ============================================================================
# Test section_mastery()
# ============================================================================


def test_section_mastery_ignores_untouched_topics():
    states = {"t2": KnowledgeState(topic_id="t2", score=90, attempts=1)}

    result = KnowledgeTracker.section_mastery(states, ["t1", "t2"])

    assert result.level == MasteryLevel.MASTERED
    assert result.score == 90
    print("✓ test_section_mastery_ignores_untouched_topics passed")


def test_section_mastery_ignores_zero_attempt_entries():
    states = {
        "t1": KnowledgeState(topic_id="t1", score=0, attempts=0),
        "t2": KnowledgeState(topic_id="t2", score=60, attempts=2),
    }

    result = KnowledgeTracker.section_mastery(states, ["t1", "t2"])

    assert result.score == 60
    assert result.level == MasteryLevel.LEARNING


def test_section_mastery_without_touched_topics_is_unknown():
    result = KnowledgeTracker.section_mastery({}, ["t1", "t2"])

    assert result.level == MasteryLevel.UNKNOWN
    assert result.score == 0


def test_section_mastery_rounds_average_half_up():
    states = {
        "t1": KnowledgeState(topic_id="t1", score=75, attempts=1),
        "t2": KnowledgeState(topic_id="t2", score=80, attempts=1),
    }

    result = KnowledgeTracker.section_mastery(states, ["t1", "t2"])

    assert result.score == 78
    assert result.level == MasteryLevel.LEARNING


# ============================================================================
# Test roll-ups
# ============================================================================


class TestRollUps:
    """Section and subject knowledge."""

    STATES = {
        "t1": KnowledgeState(topic_id="t1", score=90, attempts=1),
        "t2": KnowledgeState(topic_id="t2", score=50, attempts=2),
    }

    def test_topic_mastery(self):
        assert KnowledgeTracker.topic_mastery(self.STATES, "t1") == MasteryLevel.MASTERED
        assert KnowledgeTracker.topic_mastery(self.STATES, "missing") == MasteryLevel.UNKNOWN

    def test_section_knowledge_counts_topics(self):
        result = KnowledgeTracker.section_knowledge(self.STATES, "s1", ["t1", "t2", "t3"])

        assert result.section_id == "s1"
        assert result.average_score == 70
        assert result.mastery_level == MasteryLevel.LEARNING
        assert result.topics_count == 3
        assert result.mastered_count == 1

    def test_subject_knowledge_skips_untouched_sections(self):
        sections = {"s1": ["t1"], "s2": ["t2"], "s3": ["t3"]}

        result = KnowledgeTracker.subject_knowledge(self.STATES, "calc", sections)

        assert result.subject_id == "calc"
        assert result.average_score == 70
        assert result.mastery_level == MasteryLevel.LEARNING
        assert result.sections_count == 3
        assert result.mastered_sections == 1

    def test_subject_knowledge_without_progress_is_unknown(self):
        result = KnowledgeTracker.subject_knowledge({}, "calc", {"s1": ["t1"]})

        assert result.average_score == 0
        assert result.mastery_level == MasteryLevel.UNKNOWN

    def test_can_take_final_test(self):
        assert KnowledgeTracker.can_take_final_test(self.STATES, ["t1", "t2"]) is True
        assert KnowledgeTracker.can_take_final_test(self.STATES, ["t1", "t3"]) is False
        assert KnowledgeTracker.can_take_final_test(self.STATES, []) is False
