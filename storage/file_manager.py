"""
File management for StudyPath.
Handles JSON learner snapshots and generated content pools on disk.
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Optional, Tuple

from config import Config
from learning_core.dto.content import Flashcard, Invalid, Question
from learning_core.exceptions import SnapshotError
from learning_core.ports import SnapshotRepository
from learning_core.state import LearnerState
from learning_core.validation import partition_flashcards, partition_questions

logger = logging.getLogger(__name__)


class FileManager(SnapshotRepository):
    """Manages file operations for StudyPath."""

    def __init__(self, snapshots_path: Optional[Path] = None):
        """Initialize file manager.

        Args:
            snapshots_path: Directory for learner snapshots. Uses
                Config.SNAPSHOTS_DIR if not provided.
        """
        self.snapshots_path = Path(snapshots_path or Config.SNAPSHOTS_DIR)

    def snapshot_path(self, learner_id: str) -> Path:
        """Path of a learner's snapshot file."""
        return self.snapshots_path / f"{learner_id}.json"

    # ==================== Snapshot Repository ====================

    def load(self, learner_id: str) -> LearnerState:
        """Load a learner's state, empty if no file exists."""
        path = self.snapshot_path(learner_id)
        if not path.exists():
            logger.debug("No snapshot at %s, starting empty", path)
            return LearnerState()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise SnapshotError(f"{path} is not valid JSON: {e}") from e
        return LearnerState.from_snapshot(data)

    def save(self, learner_id: str, state: LearnerState) -> None:
        """Write a learner's snapshot.

        Writes to a temporary file first and renames it over the old
        snapshot, so an interrupted save leaves the previous one intact.
        """
        self.snapshots_path.mkdir(parents=True, exist_ok=True)
        path = self.snapshot_path(learner_id)
        tmp_path = path.with_suffix(".json.tmp")

        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(state.to_snapshot(), f, indent=2, ensure_ascii=False)
        tmp_path.replace(path)
        logger.debug("Saved snapshot for %s to %s", learner_id, path)

    def delete(self, learner_id: str) -> bool:
        """Delete a learner's snapshot file."""
        path = self.snapshot_path(learner_id)
        if not path.exists():
            return False
        path.unlink()
        return True

    # ==================== Content Pools ====================

    @staticmethod
    def read_json_list(file_path: Path) -> List[Any]:
        """Read a JSON file holding a list of items.

        A top-level object with a "questions" or "flashcards" key is also
        accepted, as produced by the content generator.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file is not JSON or holds no list
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"Content file not found: {file_path}")

        with open(file_path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Not a valid JSON file: {file_path} ({e})") from e

        if isinstance(data, dict):
            for key in ("questions", "flashcards"):
                if isinstance(data.get(key), list):
                    return data[key]
        if not isinstance(data, list):
            raise ValueError(f"Expected a list of items in {file_path}")
        return data

    def load_question_pool(self, file_path: Path) -> Tuple[List[Question], List[Invalid]]:
        """Load and validate a question pool.

        Returns:
            (valid questions, rejected items)
        """
        return partition_questions(self.read_json_list(file_path))

    def load_flashcards(self, file_path: Path) -> Tuple[List[Flashcard], List[Invalid]]:
        """Load and validate a flashcard pool.

        Returns:
            (valid flashcards, rejected items)
        """
        return partition_flashcards(self.read_json_list(file_path))
