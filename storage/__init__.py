"""Concrete snapshot stores and content-pool loading."""

from typing import Optional

from config import Config
from learning_core.ports import SnapshotRepository

from .database import Database
from .file_manager import FileManager


def get_snapshot_repository(backend: Optional[str] = None) -> SnapshotRepository:
    """Create the snapshot store selected by Config.STORAGE_BACKEND.

    Raises:
        ValueError: If the backend is not supported
    """
    backend = (backend or Config.STORAGE_BACKEND).lower()
    if backend == "sqlite":
        return Database(Config.DB_PATH)
    if backend == "json":
        return FileManager(Config.SNAPSHOTS_DIR)
    raise ValueError(
        f"Unsupported storage backend '{backend}'. Choose from: {', '.join(Config.SUPPORTED_BACKENDS)}"
    )


__all__ = [
    "Database",
    "FileManager",
    "get_snapshot_repository",
]
