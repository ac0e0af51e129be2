"""
Database management for StudyPath.
Handles SQLite operations and schema management for learner snapshots.
"""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from config import Config
from learning_core.exceptions import SnapshotError
from learning_core.ports import SnapshotRepository
from learning_core.state import LearnerState

logger = logging.getLogger(__name__)


class Database(SnapshotRepository):
    """Stores one JSON snapshot per learner in SQLite."""

    def __init__(self, db_path: Optional[Path] = None):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. Uses Config.DB_PATH if not provided.
        """
        self.db_path = db_path or Config.DB_PATH
        self.conn: Optional[sqlite3.Connection] = None
        self._initialized = False

    def connect(self):
        """Establish database connection."""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.db_path))
        self.conn.row_factory = sqlite3.Row  # Enable dict-like access
        self._initialized = False

    def close(self):
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
            self._initialized = False

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        if self.conn:
            if exc_type is None:
                self.conn.commit()
            else:
                self.conn.rollback()
            self.close()

    def initialize(self):
        """Create all tables and indexes."""
        if not self.conn:
            self.connect()

        self._create_tables()
        self._create_indexes()
        self.conn.commit()
        self._initialized = True

    def _create_tables(self):
        """Create all database tables."""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS learner_snapshots (
                learner_id TEXT PRIMARY KEY,
                snapshot TEXT NOT NULL,
                saved_at TIMESTAMP NOT NULL
            )
        """)

    def _create_indexes(self):
        """Create indexes for common queries."""
        self.conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_learner_snapshots_saved_at ON learner_snapshots(saved_at)"
        )

    def _ensure_ready(self):
        # An open connection (e.g. from __enter__) does not mean the tables exist
        if not self._initialized:
            self.initialize()

    # ==================== Snapshot Repository ====================

    def load(self, learner_id: str) -> LearnerState:
        """Load a learner's state, empty if nothing is saved."""
        self._ensure_ready()
        row = self.conn.execute(
            "SELECT snapshot FROM learner_snapshots WHERE learner_id = ?", (learner_id,)
        ).fetchone()

        if row is None:
            logger.debug("No snapshot for %s, starting empty", learner_id)
            return LearnerState()

        try:
            data = json.loads(row["snapshot"])
        except json.JSONDecodeError as e:
            raise SnapshotError(f"stored snapshot for {learner_id} is not valid JSON: {e}") from e
        return LearnerState.from_snapshot(data)

    def save(self, learner_id: str, state: LearnerState) -> None:
        """Insert or replace a learner's snapshot."""
        self._ensure_ready()
        self.conn.execute(
            """
            INSERT INTO learner_snapshots (learner_id, snapshot, saved_at)
            VALUES (?, ?, ?)
            ON CONFLICT(learner_id) DO UPDATE SET
                snapshot = excluded.snapshot,
                saved_at = excluded.saved_at
            """,
            (learner_id, json.dumps(state.to_snapshot()), datetime.now().isoformat()),
        )
        self.conn.commit()
        logger.debug("Saved snapshot for %s to %s", learner_id, self.db_path)

    def delete(self, learner_id: str) -> bool:
        """Delete a learner's snapshot."""
        self._ensure_ready()
        cursor = self.conn.execute(
            "DELETE FROM learner_snapshots WHERE learner_id = ?", (learner_id,)
        )
        self.conn.commit()
        return cursor.rowcount > 0

    def list_learners(self) -> List[str]:
        """Learner ids with a stored snapshot, most recently saved first."""
        self._ensure_ready()
        rows = self.conn.execute(
            "SELECT learner_id FROM learner_snapshots ORDER BY saved_at DESC"
        ).fetchall()
        return [row["learner_id"] for row in rows]
