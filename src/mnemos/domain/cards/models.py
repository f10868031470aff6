"""
Domain models for vocabulary cards and their per-direction review state.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from mnemos.domain.constants import DEFAULT_EASE_FACTOR


class Direction(str, Enum):
    """Which side of the card is shown as the prompt."""

    FORWARD = "forward"  # front -> back
    REVERSE = "reverse"  # back -> front


class StudyMode(str, Enum):
    FLIP = "flip"
    MULTIPLE_CHOICE = "multiple-choice"
    TYPE_ANSWER = "type-answer"
    MIXED = "mixed"
    LISTENING = "listening"
    SENTENCES = "sentences"
    DICTATION = "dictation"
    SPEAK = "speak"


class ErrorType(str, Enum):
    ACCENT = "accent"
    SPELLING = "spelling"
    GENDER = "gender"
    WRONG = "wrong"


class Gender(str, Enum):
    MASCULINE = "masculine"
    FEMININE = "feminine"


@dataclass(frozen=True)
class Flashcard:
    """
    A vocabulary item.

    Attributes:
        id: Stable card identifier.
        front: Prompt side (e.g. the learner's language).
        back: Answer side (the target-language word).
        category: Topic bucket used for category analysis.
        gender: Grammatical gender of the target word, when known.
    """

    id: str
    front: str
    back: str
    category: str = "General"
    subcategory: str | None = None
    gender: Gender | None = None


ProgressKey = tuple[str, Direction]


@dataclass(frozen=True)
class CardProgress:
    """
    Review state for one (card, direction) pair.

    Attributes:
        ease_factor: SM-2 ease, never below the configured minimum.
        interval: Days until the next review (0 for never reviewed).
        repetitions: Successful reviews in a row; reset on failure.
        next_review_date: Day the card is next due.
        last_review_date: Day of the most recent review.
        total_reviews / correct_reviews: Monotonic counters.
        last_quality: Last 0-5 quality rating.
        mastery_level: 0-4 gate controlling which study modes are offered.
        consecutive_correct: Qualifying successes at the current mastery level.
    """

    card_id: str
    direction: Direction
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval: int = 0
    repetitions: int = 0
    next_review_date: date = field(default_factory=date.today)
    last_review_date: date | None = None
    total_reviews: int = 0
    correct_reviews: int = 0
    last_quality: int | None = None
    mastery_level: int = 0
    consecutive_correct: int = 0

    @property
    def key(self) -> ProgressKey:
        return (self.card_id, self.direction)

    @property
    def accuracy(self) -> float | None:
        if self.total_reviews == 0:
            return None
        return self.correct_reviews / self.total_reviews


@dataclass(frozen=True)
class MistakeRecord:
    """An append-only log entry for a wrong or imperfect answer."""

    card_id: str
    direction: Direction
    timestamp: datetime
    error_type: ErrorType
    user_answer: str
    correct_answer: str


@dataclass(frozen=True)
class ConfusionPair:
    """
    Two normalized answers mistaken for each other at least twice.

    Derived from the mistake log on every analysis pass; never stored as truth.
    """

    word1: str
    word2: str
    confusion_count: int
    last_confused: datetime

    def involves(self, answer: str) -> bool:
        return answer in (self.word1, self.word2)


@dataclass(frozen=True)
class ErrorPatternAnalysis:
    accent_errors: int
    spelling_errors: int
    gender_errors: int
    wrong_answers: int
    total: int
    most_common_type: ErrorType
    confusion_pairs: list[ConfusionPair] = field(default_factory=list)
