"""Abstract repository interface for learner state snapshots.

Implementations:
- storage.database.Database: SQLite table, one row per learner
- storage.file_manager.FileManager: one JSON file per learner
"""

from abc import ABC, abstractmethod

from learning_core.state import LearnerState


class SnapshotRepository(ABC):
    """Load/save contract over a single serializable learner snapshot.

    All methods take learner_id so one store can hold several learners,
    even though the core itself is single-learner.
    """

    @abstractmethod
    def load(self, learner_id: str) -> LearnerState:
        """Load a learner's state.

        Args:
            learner_id: Learner identifier

        Returns:
            Stored LearnerState, or an empty LearnerState if nothing is saved

        Raises:
            SnapshotError: If the stored snapshot cannot be decoded
        """
        pass

    @abstractmethod
    def save(self, learner_id: str, state: LearnerState) -> None:
        """Replace a learner's stored state."""
        pass

    @abstractmethod
    def delete(self, learner_id: str) -> bool:
        """Delete a learner's stored state.

        Returns:
            True if something was deleted
        """
        pass

    def close(self) -> None:
        """Release any held resources. Nothing to release by default."""
        pass
