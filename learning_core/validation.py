"""
Validation boundary for generated content.

Questions and flashcards come from a text-generation service as loosely
shaped JSON. Every item is parsed here into a tagged result:

    Valid(Question) | Invalid(reason)

Invalid items are reported to the caller (who may discard or regenerate
them) and never reach the selector, the tracker or the scheduler. Nothing is
back-filled with defaults except a missing correctAnswer, which is derived
from the single option marked correct.

Expected question shape (camelCase, as produced by the generator):
    {
        "id": "q1", "topicId": "t1", "sectionId": "s1",
        "difficulty": "beginner" | "intermediate" | "advanced",
        "options": [{"id": "a", "text": "...", "isCorrect": true}, ...],
        "correctAnswer": "a",
        "text": "...", "explanation": "..."
    }
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from learning_core.dto.content import (
    Difficulty,
    Flashcard,
    Invalid,
    ParseResult,
    Question,
    QuestionOption,
    Valid,
)
from learning_core.exceptions import MalformedInputError

logger = logging.getLogger(__name__)

MIN_OPTIONS = 2

_DIFFICULTIES = {d.value: d for d in Difficulty}


def _non_empty_str(raw: Mapping[str, Any], key: str) -> Optional[str]:
    value = raw.get(key)
    if isinstance(value, str) and value.strip():
        return value
    return None


def _item_id(raw: Any) -> Optional[str]:
    if isinstance(raw, Mapping):
        value = raw.get("id")
        return value if isinstance(value, str) and value else None
    return None


def parse_question(raw: Any) -> ParseResult[Question]:
    """Validate one generated question.

    Args:
        raw: Decoded JSON object for the question

    Returns:
        Valid(Question) or Invalid(reason)
    """
    if not isinstance(raw, Mapping):
        return Invalid("question is not an object")

    item_id = _item_id(raw)
    if item_id is None:
        return Invalid("missing id")

    for key in ("topicId", "sectionId"):
        if _non_empty_str(raw, key) is None:
            return Invalid(f"missing {key}", item_id)

    difficulty = _DIFFICULTIES.get(raw.get("difficulty"))
    if difficulty is None:
        return Invalid(f"unknown difficulty {raw.get('difficulty')!r}", item_id)

    raw_options = raw.get("options")
    if not isinstance(raw_options, list) or len(raw_options) < MIN_OPTIONS:
        return Invalid(f"needs at least {MIN_OPTIONS} options", item_id)

    options = []
    for raw_option in raw_options:
        if not isinstance(raw_option, Mapping):
            return Invalid("option is not an object", item_id)
        option_id = _non_empty_str(raw_option, "id")
        text = raw_option.get("text")
        if option_id is None or not isinstance(text, str):
            return Invalid("option missing id or text", item_id)
        is_correct = raw_option.get("isCorrect", False)
        if not isinstance(is_correct, bool):
            return Invalid(f"option {option_id} has non-boolean isCorrect", item_id)
        options.append(QuestionOption(id=option_id, text=text, is_correct=is_correct))

    option_ids = [o.id for o in options]
    if len(set(option_ids)) != len(option_ids):
        return Invalid("duplicate option ids", item_id)

    correct_ids = [o.id for o in options if o.is_correct]
    if len(correct_ids) != 1:
        return Invalid(f"expected exactly one correct option, found {len(correct_ids)}", item_id)

    correct_answer = raw.get("correctAnswer", correct_ids[0])
    if correct_answer != correct_ids[0]:
        return Invalid(
            f"correctAnswer {correct_answer!r} does not match correct option {correct_ids[0]!r}",
            item_id,
        )

    explanation = raw.get("explanation")
    return Valid(
        Question(
            id=item_id,
            topic_id=raw["topicId"],
            section_id=raw["sectionId"],
            difficulty=difficulty,
            options=tuple(options),
            correct_answer=correct_answer,
            text=raw.get("text") if isinstance(raw.get("text"), str) else "",
            explanation=explanation if isinstance(explanation, str) else None,
        )
    )


def parse_flashcard(raw: Any) -> ParseResult[Flashcard]:
    """Validate one generated flashcard."""
    if not isinstance(raw, Mapping):
        return Invalid("flashcard is not an object")

    item_id = _item_id(raw)
    if item_id is None:
        return Invalid("missing id")

    for key in ("front", "back"):
        if _non_empty_str(raw, key) is None:
            return Invalid(f"missing {key}", item_id)

    tags = raw.get("tags", [])
    if tags is None:
        tags = []
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        return Invalid("tags must be a list of strings", item_id)

    return Valid(Flashcard(id=item_id, front=raw["front"], back=raw["back"], tags=tuple(tags)))


def _partition(raws: Iterable[Any], parser, kind: str) -> Tuple[list, List[Invalid]]:
    valid = []
    invalid = []
    for raw in raws:
        result = parser(raw)
        if isinstance(result, Valid):
            valid.append(result.value)
        else:
            logger.warning("Rejected %s %s: %s", kind, result.item_id or "<no id>", result.reason)
            invalid.append(result)
    return valid, invalid


def partition_questions(raws: Iterable[Any]) -> Tuple[List[Question], List[Invalid]]:
    """Split a generated question pool into valid questions and rejections."""
    return _partition(raws, parse_question, "question")


def partition_flashcards(raws: Iterable[Any]) -> Tuple[List[Flashcard], List[Invalid]]:
    """Split a generated flashcard pool into valid cards and rejections."""
    return _partition(raws, parse_flashcard, "flashcard")


def require_valid(result: ParseResult):
    """Unwrap a Valid result or raise MalformedInputError."""
    if isinstance(result, Valid):
        return result.value
    raise MalformedInputError(result.reason, result.item_id)
