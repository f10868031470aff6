from datetime import date, datetime, timedelta

import pytest

from mnemos.application.analysis.performance import time_of_day
from mnemos.domain.adaptive.models import SessionPerformanceRecord
from mnemos.domain.cards.models import (
    CardProgress,
    Direction,
    ErrorType,
    Flashcard,
    Gender,
    MistakeRecord,
    StudyMode,
)

NOW = datetime(2024, 3, 15, 10, 0)
TODAY = NOW.date()


def make_progress(card_id, direction=Direction.FORWARD, **kwargs) -> CardProgress:
    kwargs.setdefault("next_review_date", TODAY)
    return CardProgress(card_id=card_id, direction=direction, **kwargs)


def make_session(
    mode=StudyMode.FLIP,
    accuracy=80.0,
    quality=4.0,
    response_ms=4000.0,
    cards=20,
    timestamp=None,
    index=0,
) -> SessionPerformanceRecord:
    timestamp = timestamp or NOW - timedelta(days=30 - index)
    return SessionPerformanceRecord(
        session_id=f"s{index}",
        timestamp=timestamp,
        time_of_day=time_of_day(timestamp),
        mode=mode,
        cards_reviewed=cards,
        accuracy=accuracy,
        average_quality=quality,
        average_response_time_ms=response_ms,
    )


def make_mistake(
    card_id="c1",
    error_type=ErrorType.WRONG,
    user_answer="x",
    correct_answer="y",
    timestamp=None,
) -> MistakeRecord:
    return MistakeRecord(
        card_id=card_id,
        direction=Direction.FORWARD,
        timestamp=timestamp or NOW - timedelta(hours=1),
        error_type=error_type,
        user_answer=user_answer,
        correct_answer=correct_answer,
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def flashcards():
    return [
        Flashcard(id="c1", front="house", back="casa", category="Home", gender=Gender.FEMININE),
        Flashcard(id="c2", front="table", back="taula", category="Home", gender=Gender.FEMININE),
        Flashcard(id="c3", front="dog", back="gos", category="Animals", gender=Gender.MASCULINE),
        Flashcard(id="c4", front="cat", back="gat", category="Animals", gender=Gender.MASCULINE),
        Flashcard(id="c5", front="coffee", back="cafè", category="Food"),
    ]


@pytest.fixture
def sample_snapshot():
    """A small snapshot document as it would appear in a YAML file."""
    return {
        "now": "2024-03-15T10:00:00",
        "cards": [
            {"id": "c1", "front": "house", "back": "casa", "category": "Home"},
            {"id": "c2", "front": "dog", "back": "gos", "category": "Animals"},
            {"id": "c3", "front": "cat", "back": "gat", "category": "Animals"},
        ],
        "progress": [
            {
                "card_id": "c1",
                "direction": "forward",
                "ease_factor": 2.36,
                "interval": 6,
                "repetitions": 2,
                "next_review_date": "2024-03-14",
                "total_reviews": 3,
                "correct_reviews": 2,
            },
        ],
        "mistakes": [
            {
                "card_id": "c2",
                "timestamp": "2024-03-14T09:00:00",
                "error_type": "wrong",
                "user_answer": "gat",
                "correct_answer": "gos",
            },
        ],
        "sessions": [
            {
                "timestamp": f"2024-03-1{i}T09:00:00",
                "mode": "flip",
                "cards_reviewed": 20,
                "accuracy": 80,
                "average_quality": 4,
                "average_response_time_ms": 4000,
            }
            for i in range(1, 5)
        ],
        "learner": {"current_streak": 3, "last_study_date": "2024-03-14"},
    }


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def today() -> date:
    return TODAY
