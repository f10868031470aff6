"""
Domain models for the personalization layer.

Profiles are immutable snapshots: every analysis pass returns a new value
instead of patching the previous one.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from mnemos.domain.cards.models import ErrorType, StudyMode
from mnemos.domain.constants import DEFAULT_DIFFICULTY_LEVEL, NEUTRAL_STYLE_SCORE


class TimeOfDay(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"


class LearningStyle(str, Enum):
    VISUAL = "visual"
    AUDITORY = "auditory"
    KINESTHETIC = "kinesthetic"
    READING = "reading"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class WeakSpotType(str, Enum):
    CATEGORY = "category"
    ERROR_TYPE = "error_type"
    TIME_BASED = "time_based"
    CONFUSION = "confusion"


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class PerformanceTrend(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


class RecommendationType(str, Enum):
    STREAK_PROTECTION = "streak_protection"
    WEAKNESS_DRILL = "weakness_drill"
    CATEGORY_FOCUS = "category_focus"
    REVIEW_DUE = "review_due"
    NEW_CARDS = "new_cards"


@dataclass(frozen=True)
class SessionPerformanceRecord:
    """
    One completed study session.

    Attributes:
        accuracy: Percentage of correct answers (0-100).
        average_quality: Mean 0-5 quality over the session.
    """

    session_id: str
    timestamp: datetime
    time_of_day: TimeOfDay
    mode: StudyMode
    cards_reviewed: int
    accuracy: float
    average_quality: float
    average_response_time_ms: float
    duration_ms: int = 0


@dataclass(frozen=True)
class CategoryPerformance:
    category: str
    total_cards: int
    reviewed_cards: int
    correct_count: int
    incorrect_count: int
    average_ease_factor: float
    mastered_count: int
    struggling_count: int
    last_reviewed: date | None
    error_distribution: dict[ErrorType, int]
    trend: PerformanceTrend
    confidence_score: float  # 0-100, grows with sample size

    @property
    def accuracy(self) -> float | None:
        total = self.correct_count + self.incorrect_count
        if total == 0:
            return None
        return self.correct_count / total


@dataclass(frozen=True)
class TimePerformance:
    time_of_day: TimeOfDay
    sessions_count: int
    average_accuracy: float  # 0-100
    average_response_time_ms: float
    average_cards_per_session: float
    optimal_score: float


@dataclass(frozen=True)
class WeakSpot:
    """
    A detected, scored problem area.

    Regenerated wholesale on each analysis pass.
    """

    id: str
    type: WeakSpotType
    target: str
    severity: Severity
    score: float  # 0-100, higher = worse
    description: str
    suggested_action: str
    affected_card_ids: tuple[str, ...]
    detected_at: datetime


@dataclass(frozen=True)
class TriggerMetrics:
    recent_accuracy: float
    average_response_time_ms: float
    streak_length: int


@dataclass(frozen=True)
class DifficultyAdjustment:
    timestamp: datetime
    previous_level: int
    new_level: int
    reason: str
    trigger_metrics: TriggerMetrics | None = None


@dataclass(frozen=True)
class DifficultyProfile:
    global_level: int = DEFAULT_DIFFICULTY_LEVEL
    recent_trend: Trend = Trend.STABLE
    last_adjustment: datetime | None = None
    adjustment_history: tuple[DifficultyAdjustment, ...] = ()


@dataclass(frozen=True)
class ModeEffectiveness:
    mode: StudyMode
    sessions_count: int
    cards_reviewed: int
    average_accuracy: float
    average_quality: float
    retention_rate: float
    average_response_time_ms: float
    effectiveness_score: float  # composite 0-100


def _neutral_style_scores() -> dict[LearningStyle, float]:
    return {style: NEUTRAL_STYLE_SCORE for style in LearningStyle}


@dataclass(frozen=True)
class LearningStyleProfile:
    primary_style: LearningStyle | None = None
    secondary_style: LearningStyle | None = None
    style_scores: dict[LearningStyle, float] = field(default_factory=_neutral_style_scores)
    mode_effectiveness: dict[StudyMode, ModeEffectiveness] = field(default_factory=dict)
    confidence_level: float = 0.0
    sessions_analyzed: int = 0


@dataclass(frozen=True)
class ScheduleFactors:
    """
    The five smart-scheduling multipliers applied over the SM-2 interval.

    ``reasons`` holds one human-readable line per factor that moved away
    from 1.0, so every adjusted interval can be explained.
    """

    base_interval: int
    time_of_day: float = 1.0
    category_difficulty: float = 1.0
    mistake_recency: float = 1.0
    interference: float = 1.0
    fatigue: float = 1.0
    reasons: tuple[str, ...] = ()

    @property
    def combined_multiplier(self) -> float:
        return (
            self.time_of_day
            * self.category_difficulty
            * self.mistake_recency
            * self.interference
            * self.fatigue
        )


@dataclass(frozen=True)
class StudyRecommendation:
    id: str
    priority: int  # 1 = highest
    type: RecommendationType
    title: str
    description: str
    suggested_card_count: int
    estimated_time_minutes: int
    expected_benefit: str
    reasoning: str
    target_category: str | None = None


@dataclass(frozen=True)
class DailyRecommendation:
    id: str
    date: date
    recommendations: tuple[StudyRecommendation, ...]
    focus_areas: tuple[str, ...]
    suggested_duration_minutes: int
    optimal_time_slots: tuple[TimeOfDay, ...]
    generated_at: datetime


@dataclass(frozen=True)
class DifficultyDistribution:
    easy: int
    medium: int
    hard: int


@dataclass(frozen=True)
class SessionComposition:
    """A concrete card and modality mix for the next session."""

    total_cards: int
    new_cards: int
    review_cards: int
    weakness_cards: int
    category_breakdown: dict[str, int]
    mode_breakdown: dict[StudyMode, int]
    estimated_duration_minutes: int
    difficulty_distribution: DifficultyDistribution
