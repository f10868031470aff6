"""
Learner snapshot loader: Infrastructure adapter for YAML/JSON snapshot files.

A snapshot is a read-only dump of one learner's deck, progress records,
mistake log, session log and streak counters. The same pydantic schema
doubles as the request body of the HTTP API.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from mnemos.application.analysis.performance import time_of_day
from mnemos.domain.adaptive.models import DifficultyProfile, SessionPerformanceRecord, TimeOfDay
from mnemos.domain.cards.models import (
    CardProgress,
    Direction,
    ErrorType,
    Flashcard,
    Gender,
    MistakeRecord,
    StudyMode,
)
from mnemos.domain.constants import (
    DEFAULT_DIFFICULTY_LEVEL,
    DEFAULT_EASE_FACTOR,
    MAX_DIFFICULTY_LEVEL,
    MIN_DIFFICULTY_LEVEL,
)

logger = logging.getLogger(__name__)


class SnapshotError(ValueError):
    """A snapshot file is missing, unreadable or does not match the schema."""


class CardModel(BaseModel):
    id: str
    front: str
    back: str
    category: str = "General"
    subcategory: str | None = None
    gender: Gender | None = None


class ProgressModel(BaseModel):
    card_id: str
    direction: Direction = Direction.FORWARD
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval: int = Field(default=0, ge=0)
    repetitions: int = Field(default=0, ge=0)
    next_review_date: date | None = None
    last_review_date: date | None = None
    total_reviews: int = Field(default=0, ge=0)
    correct_reviews: int = Field(default=0, ge=0)
    last_quality: int | None = None
    mastery_level: int = Field(default=0, ge=0, le=4)
    consecutive_correct: int = Field(default=0, ge=0)


class MistakeModel(BaseModel):
    card_id: str
    direction: Direction = Direction.FORWARD
    timestamp: datetime
    error_type: ErrorType
    user_answer: str
    correct_answer: str


class SessionModel(BaseModel):
    session_id: str | None = None
    timestamp: datetime
    time_of_day: TimeOfDay | None = None
    mode: StudyMode
    cards_reviewed: int = Field(ge=0)
    accuracy: float = Field(ge=0, le=100)
    average_quality: float = Field(ge=0, le=5)
    average_response_time_ms: float = Field(ge=0)
    duration_ms: int = Field(default=0, ge=0)


class LearnerModel(BaseModel):
    current_streak: int = Field(default=0, ge=0)
    last_study_date: date | None = None
    perfect_streak: int = Field(default=0, ge=0)
    daily_goal: int | None = Field(default=None, ge=1)
    difficulty_level: int = Field(
        default=DEFAULT_DIFFICULTY_LEVEL, ge=MIN_DIFFICULTY_LEVEL, le=MAX_DIFFICULTY_LEVEL
    )


class SnapshotModel(BaseModel):
    """Schema of a snapshot document."""

    now: datetime | None = None
    cards: list[CardModel] = Field(default_factory=list)
    progress: list[ProgressModel] = Field(default_factory=list)
    mistakes: list[MistakeModel] = Field(default_factory=list)
    sessions: list[SessionModel] = Field(default_factory=list)
    learner: LearnerModel = Field(default_factory=LearnerModel)


@dataclass
class LearnerSnapshot:
    """Domain view of a snapshot, ready to seed the in-memory stores."""

    flashcards: list[Flashcard]
    progress: list[CardProgress]
    mistakes: list[MistakeRecord]
    sessions: list[SessionPerformanceRecord]
    difficulty: DifficultyProfile = field(default_factory=DifficultyProfile)
    current_streak: int = 0
    last_study_date: date | None = None
    perfect_streak: int = 0
    daily_goal: int | None = None
    now: datetime | None = None


def to_domain(model: SnapshotModel) -> LearnerSnapshot:
    known = {card.id for card in model.cards}
    unknown = sorted(
        {p.card_id for p in model.progress if p.card_id not in known}
        | {m.card_id for m in model.mistakes if m.card_id not in known}
    )
    if unknown:
        raise SnapshotError(f"Snapshot references unknown card ids: {', '.join(unknown)}")

    today = (model.now or datetime.now()).date()
    progress = [
        CardProgress(
            **p.model_dump(exclude={"next_review_date"}),
            next_review_date=p.next_review_date or today,
        )
        for p in model.progress
    ]
    sessions = [
        SessionPerformanceRecord(
            session_id=s.session_id or f"session-{i + 1}",
            timestamp=s.timestamp,
            time_of_day=s.time_of_day or time_of_day(s.timestamp),
            mode=s.mode,
            cards_reviewed=s.cards_reviewed,
            accuracy=s.accuracy,
            average_quality=s.average_quality,
            average_response_time_ms=s.average_response_time_ms,
            duration_ms=s.duration_ms,
        )
        for i, s in enumerate(model.sessions)
    ]

    return LearnerSnapshot(
        flashcards=[Flashcard(**c.model_dump()) for c in model.cards],
        progress=progress,
        mistakes=sorted(
            (MistakeRecord(**m.model_dump()) for m in model.mistakes),
            key=lambda m: m.timestamp,
        ),
        sessions=sorted(sessions, key=lambda s: s.timestamp),
        difficulty=DifficultyProfile(global_level=model.learner.difficulty_level),
        current_streak=model.learner.current_streak,
        last_study_date=model.learner.last_study_date,
        perfect_streak=model.learner.perfect_streak,
        daily_goal=model.learner.daily_goal,
        now=model.now,
    )


def parse_snapshot(data: dict[str, Any]) -> LearnerSnapshot:
    """Validate an already-decoded snapshot document."""
    try:
        model = SnapshotModel.model_validate(data)
    except ValidationError as e:
        raise SnapshotError(f"Invalid snapshot: {e}") from e
    return to_domain(model)


def load_snapshot(path: Path) -> LearnerSnapshot:
    """
    Read a snapshot file. JSON is accepted as well, being a subset of YAML.

    Raises:
        SnapshotError: The file is missing, is not valid YAML, or does not
            match the snapshot schema.
    """
    if not path.is_file():
        raise SnapshotError(f"Snapshot not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise SnapshotError(f"Could not parse {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise SnapshotError(f"{path}: top level must be a mapping")

    snapshot = parse_snapshot(data)
    logger.info(
        f"Loaded snapshot {path.name}: {len(snapshot.flashcards)} cards, "
        f"{len(snapshot.progress)} progress records, {len(snapshot.mistakes)} mistakes, "
        f"{len(snapshot.sessions)} sessions"
    )
    return snapshot
