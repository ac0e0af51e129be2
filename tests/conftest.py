"""Shared fixtures for learning core tests."""

import json
import random
from datetime import date, datetime

import pytest

from config import Config
from learning_core.dto.content import Difficulty, Question, QuestionOption
from learning_core.service import StudyService

TODAY = date(2024, 1, 1)
NOW = datetime(2024, 1, 1, 9, 30)


def build_question(question_id, section_id="s1", topic_id="t1", difficulty=Difficulty.BEGINNER):
    """Two-option question whose correct answer is 'a'."""
    return Question(
        id=question_id,
        topic_id=topic_id,
        section_id=section_id,
        difficulty=difficulty,
        options=(
            QuestionOption(id="a", text="right", is_correct=True),
            QuestionOption(id="b", text="wrong", is_correct=False),
        ),
        correct_answer="a",
        text=f"Question {question_id}",
    )


def raw_question(question_id, section_id="s1", topic_id="t1", difficulty="beginner"):
    """Generator-shaped question dict."""
    return {
        "id": question_id,
        "topicId": topic_id,
        "sectionId": section_id,
        "difficulty": difficulty,
        "text": f"Question {question_id}",
        "options": [
            {"id": "a", "text": "right", "isCorrect": True},
            {"id": "b", "text": "wrong", "isCorrect": False},
        ],
        "correctAnswer": "a",
    }


@pytest.fixture
def make_question():
    return build_question


@pytest.fixture
def make_raw_question():
    return raw_question


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def service():
    """Service with a fixed clock and seeded random source."""
    return StudyService(rng=random.Random(7), clock=lambda: NOW)


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Point all Config paths at a temporary directory."""
    data_dir = tmp_path / "data"
    monkeypatch.setattr(Config, "BASE_DIR", tmp_path)
    monkeypatch.setattr(Config, "DATA_DIR", data_dir)
    monkeypatch.setattr(Config, "DB_PATH", data_dir / "studypath.db")
    monkeypatch.setattr(Config, "SNAPSHOTS_DIR", data_dir / "snapshots")
    monkeypatch.setattr(Config, "STORAGE_BACKEND", "sqlite")
    monkeypatch.setattr(Config, "LEARNER_ID", "tester")
    monkeypatch.setattr(Config, "RANDOM_SEED", 7)
    return tmp_path


@pytest.fixture
def pool_file(tmp_path):
    """Question pool with two sections of two topics each."""
    questions = []
    for section in ("s1", "s2"):
        for topic in ("t1", "t2"):
            for n, difficulty in enumerate(("beginner", "intermediate", "advanced")):
                questions.append(
                    raw_question(f"{section}-{topic}-{n}", section, f"{section}-{topic}", difficulty)
                )
    path = tmp_path / "pool.json"
    path.write_text(json.dumps({"questions": questions}), encoding="utf-8")
    return path


@pytest.fixture
def cards_file(tmp_path):
    cards = [
        {"id": "fc-1", "front": "d/dx x^2", "back": "2x"},
        {"id": "fc-2", "front": "d/dx sin x", "back": "cos x", "tags": ["trig"]},
        {"id": "fc-bad", "front": "no back"},
    ]
    path = tmp_path / "cards.json"
    path.write_text(json.dumps(cards), encoding="utf-8")
    return path
