"""Exception hierarchy for the learning core.

"No next diagnostic question" is deliberately not an exception: the selector
returns None and the caller ends the session.
"""

from typing import Optional


class LearningCoreError(Exception):
    """Base class for all learning core errors."""


class MalformedInputError(LearningCoreError):
    """A question or flashcard from the content pool failed validation."""

    def __init__(self, reason: str, item_id: Optional[str] = None):
        self.reason = reason
        self.item_id = item_id
        label = f"'{item_id}'" if item_id else "item"
        super().__init__(f"Malformed content {label}: {reason}")


class InvalidInputError(LearningCoreError, ValueError):
    """Caller passed an out-of-range value (quality, counts, ids)."""


class SessionStateError(LearningCoreError):
    """Operation is not valid in the current session or selector phase."""


class UnknownCardError(LearningCoreError, KeyError):
    """No scheduling progress exists for the requested flashcard."""

    def __init__(self, card_id: str):
        self.card_id = card_id
        super().__init__(f"No progress found for card {card_id}")

    def __str__(self):
        return self.args[0]


class SnapshotError(LearningCoreError):
    """A persisted learner snapshot could not be decoded."""
