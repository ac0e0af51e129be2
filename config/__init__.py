"""
Configuration settings for StudyPath.

This module provides the Config class with all settings.
When installed as a package, paths are relative to the package location
or can be overridden via environment variables.

Algorithm thresholds (mastery cut-offs, diagnostic cap, SM-2 constants) are
intentionally absent here: they are module constants in learning_core so
every caller shares the same values.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Try multiple locations for .env
for env_path in [
    Path.cwd() / ".env",  # Current working directory
    Path(__file__).parent.parent / ".env",  # Project root (when running from source)
    Path.home() / ".studypath" / ".env",  # User config directory
]:
    if env_path.exists():
        load_dotenv(env_path, override=True)
        break


def _get_base_dir():
    """Get base directory, preferring environment variable or user config."""
    if os.getenv("STUDYPATH_BASE_DIR"):
        return Path(os.getenv("STUDYPATH_BASE_DIR"))
    # Default: ~/.studypath for installed package, or project root for dev
    user_dir = Path.home() / ".studypath"
    if user_dir.exists():
        return user_dir
    return Path(__file__).parent.parent


def _get_seed():
    seed = os.getenv("STUDYPATH_SEED")
    return int(seed) if seed else None


class Config:
    """Main configuration class for StudyPath."""

    # Paths - can be overridden via STUDYPATH_BASE_DIR env var
    BASE_DIR = _get_base_dir()
    DATA_DIR = BASE_DIR / "data"
    DB_PATH = DATA_DIR / "studypath.db"
    SNAPSHOTS_DIR = DATA_DIR / "snapshots"  # JSON backend, one file per learner

    # Storage Settings
    STORAGE_BACKEND = os.getenv("STUDYPATH_STORAGE", "sqlite")  # Options: sqlite, json
    LEARNER_ID = os.getenv("STUDYPATH_LEARNER", "default")  # Single learner per device

    # Logging
    LOG_LEVEL = os.getenv("STUDYPATH_LOG_LEVEL", "WARNING")

    # Randomness for diagnostic question selection (None = system randomness)
    RANDOM_SEED = _get_seed()

    SUPPORTED_BACKENDS = ["sqlite", "json"]

    @classmethod
    def ensure_dirs(cls):
        """Create all necessary directories."""
        cls.DATA_DIR.mkdir(parents=True, exist_ok=True)

    @classmethod
    def set_base_dir(cls, base_dir):
        """Point all data paths at a different base directory."""
        cls.BASE_DIR = Path(base_dir)
        cls.DATA_DIR = cls.BASE_DIR / "data"
        cls.DB_PATH = cls.DATA_DIR / "studypath.db"
        cls.SNAPSHOTS_DIR = cls.DATA_DIR / "snapshots"
