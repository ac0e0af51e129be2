"""Ports (interfaces) for learning_core dependency inversion.

The core never does I/O. Hosts persist LearnerState through these
interfaces (SQLite or JSON files for the CLI, anything else elsewhere).
"""

from .snapshot_repository import SnapshotRepository

__all__ = [
    "SnapshotRepository",
]
