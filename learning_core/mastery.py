"""
Mastery classification shared by every part of the learning core.

A topic's mastery level is a pure function of its score (0-100) and the
number of classification events (attempts) behind it:

    attempts == 0   -> unknown
    score >= 80     -> mastered
    score >= 50     -> learning
    otherwise       -> struggling

Diagnostic answers, lesson quizzes, final tests, section and subject roll-ups
all go through classify(); no caller keeps its own copy of the thresholds.

Scores are rounded half-up (62.5 -> 63), not with Python's banker's rounding,
so percentages agree with the values learners already have on record.
"""

import math
from enum import Enum

MASTERED_THRESHOLD = 80
LEARNING_THRESHOLD = 50


class MasteryLevel(Enum):
    """Knowledge level for a topic, section or subject."""

    UNKNOWN = "unknown"
    STRUGGLING = "struggling"
    LEARNING = "learning"
    MASTERED = "mastered"


def classify(score: float, attempts: int) -> MasteryLevel:
    """Map (score, attempts) to a mastery level.

    Args:
        score: Score from 0 to 100
        attempts: Number of classification events behind the score

    Returns:
        MasteryLevel for the given score
    """
    if attempts == 0:
        return MasteryLevel.UNKNOWN
    if score >= MASTERED_THRESHOLD:
        return MasteryLevel.MASTERED
    if score >= LEARNING_THRESHOLD:
        return MasteryLevel.LEARNING
    return MasteryLevel.STRUGGLING


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def percentage(correct: int, total: int) -> int:
    """Rounded percentage of correct answers, 0 when there are none."""
    if total <= 0:
        return 0
    return round_half_up(correct / total * 100)
