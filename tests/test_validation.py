"""
Tests for the content validation boundary.
"""

import logging

import pytest

from learning_core.dto.content import Difficulty, Flashcard, Invalid, Question, Valid
from learning_core.exceptions import MalformedInputError
from learning_core.validation import (
    parse_flashcard,
    parse_question,
    partition_flashcards,
    partition_questions,
    require_valid,
)


class TestParseQuestion:
    """Questions from the content generator."""

    def test_valid_question(self, make_raw_question):
        result = parse_question(make_raw_question("q1", "s1", "t1", "advanced"))

        assert isinstance(result, Valid)
        question = result.value
        assert isinstance(question, Question)
        assert question.id == "q1"
        assert question.section_id == "s1"
        assert question.topic_id == "t1"
        assert question.difficulty == Difficulty.ADVANCED
        assert [o.id for o in question.options] == ["a", "b"]
        assert question.is_correct_answer("a")
        assert not question.is_correct_answer("b")

    def test_missing_correct_answer_is_derived(self, make_raw_question):
        raw = make_raw_question("q1")
        del raw["correctAnswer"]

        result = parse_question(raw)

        assert isinstance(result, Valid)
        assert result.value.correct_answer == "a"

    def test_correct_answer_must_match_marked_option(self, make_raw_question):
        raw = make_raw_question("q1")
        raw["correctAnswer"] = "b"

        result = parse_question(raw)

        assert isinstance(result, Invalid)
        assert result.item_id == "q1"

    def test_exactly_one_correct_option(self, make_raw_question):
        raw = make_raw_question("q1")
        raw["options"][1]["isCorrect"] = True
        assert isinstance(parse_question(raw), Invalid)

        raw["options"][0]["isCorrect"] = False
        raw["options"][1]["isCorrect"] = False
        assert isinstance(parse_question(raw), Invalid)

    def test_needs_two_options(self, make_raw_question):
        raw = make_raw_question("q1")
        raw["options"] = raw["options"][:1]

        result = parse_question(raw)

        assert isinstance(result, Invalid)
        assert "options" in result.reason

    def test_duplicate_option_ids(self, make_raw_question):
        raw = make_raw_question("q1")
        raw["options"][1]["id"] = "a"

        assert isinstance(parse_question(raw), Invalid)

    def test_unknown_difficulty(self, make_raw_question):
        assert isinstance(parse_question(make_raw_question("q1", difficulty="expert")), Invalid)

    @pytest.mark.parametrize("key", ["id", "topicId", "sectionId"])
    def test_missing_required_ids(self, make_raw_question, key):
        raw = make_raw_question("q1")
        del raw[key]

        assert isinstance(parse_question(raw), Invalid)

    def test_non_boolean_is_correct(self, make_raw_question):
        raw = make_raw_question("q1")
        raw["options"][0]["isCorrect"] = "true"

        assert isinstance(parse_question(raw), Invalid)

    def test_not_an_object(self):
        result = parse_question(["q1"])

        assert isinstance(result, Invalid)
        assert result.item_id is None


class TestParseFlashcard:
    """Flashcards from the content generator."""

    def test_valid_flashcard(self):
        result = parse_flashcard({"id": "fc-1", "front": "Q", "back": "A", "tags": ["x"]})

        assert result == Valid(Flashcard(id="fc-1", front="Q", back="A", tags=("x",)))

    def test_tags_are_optional(self):
        result = parse_flashcard({"id": "fc-1", "front": "Q", "back": "A"})

        assert isinstance(result, Valid)
        assert result.value.tags == ()

    def test_missing_back(self):
        result = parse_flashcard({"id": "fc-1", "front": "Q"})

        assert isinstance(result, Invalid)
        assert result.item_id == "fc-1"

    def test_bad_tags(self):
        assert isinstance(parse_flashcard({"id": "fc-1", "front": "Q", "back": "A", "tags": "x"}), Invalid)


# ============================================================================
# Test partitioning
# ============================================================================


def test_partition_questions_logs_rejects(make_raw_question, caplog):
    bad = make_raw_question("q2")
    bad["options"] = []

    with caplog.at_level(logging.WARNING, logger="learning_core.validation"):
        valid, invalid = partition_questions([make_raw_question("q1"), bad])

    assert [q.id for q in valid] == ["q1"]
    assert len(invalid) == 1
    assert invalid[0].item_id == "q2"
    assert "q2" in caplog.text


def test_partition_flashcards():
    valid, invalid = partition_flashcards(
        [{"id": "fc-1", "front": "Q", "back": "A"}, {"front": "Q", "back": "A"}]
    )

    assert [c.id for c in valid] == ["fc-1"]
    assert len(invalid) == 1


def test_require_valid(make_raw_question):
    assert require_valid(parse_question(make_raw_question("q1"))).id == "q1"

    with pytest.raises(MalformedInputError) as exc_info:
        require_valid(Invalid("missing back", "fc-9"))

    assert exc_info.value.item_id == "fc-9"
    assert exc_info.value.reason == "missing back"
