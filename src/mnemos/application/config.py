from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from mnemos.domain import constants as c


def config_files() -> list[Path]:
    return [
        Path.home() / ".config/mnemos/config.toml",
        Path.home() / ".mnemos.toml",
    ]


class SchedulingSettings(BaseModel):
    """SM-2 bounds and the smart-scheduling multiplier ranges."""

    default_ease: float = c.DEFAULT_EASE_FACTOR
    min_ease: float = Field(default=c.MIN_EASE_FACTOR, gt=0)
    max_interval_days: int = Field(default=c.MAX_INTERVAL_DAYS, ge=1)
    time_multiplier_min: float = c.TIME_MULTIPLIER_MIN
    time_multiplier_max: float = c.TIME_MULTIPLIER_MAX
    category_multiplier_hard: float = c.CATEGORY_MULTIPLIER_HARD
    category_multiplier_easy: float = c.CATEGORY_MULTIPLIER_EASY
    mistake_penalty_per_recent: float = Field(default=c.MISTAKE_PENALTY_PER_RECENT, ge=0)
    mistake_penalty_max: float = Field(default=c.MISTAKE_PENALTY_MAX, ge=0, lt=1)
    interference_penalty: float = Field(default=c.INTERFERENCE_PENALTY, ge=0, lt=1)
    fatigue_threshold_cards: int = Field(default=c.FATIGUE_THRESHOLD_CARDS, ge=0)
    fatigue_penalty: float = Field(default=c.FATIGUE_PENALTY, ge=0)
    fatigue_penalty_max: float = Field(default=c.FATIGUE_PENALTY_MAX, ge=0, lt=1)
    recent_mistake_window_days: int = Field(default=c.RECENT_MISTAKE_WINDOW_DAYS, ge=0)
    typo_threshold: float = Field(default=c.TYPO_SIMILARITY_THRESHOLD, gt=0, le=1)

    @model_validator(mode="after")
    def check_ranges(self) -> "SchedulingSettings":
        if self.time_multiplier_min > self.time_multiplier_max:
            raise ValueError("time_multiplier_min must not exceed time_multiplier_max")
        if self.category_multiplier_hard > self.category_multiplier_easy:
            raise ValueError("category_multiplier_hard must not exceed category_multiplier_easy")
        if self.min_ease > self.default_ease:
            raise ValueError("min_ease must not exceed default_ease")
        return self


class WeakSpotSettings(BaseModel):
    weak_ease_threshold: float = c.WEAK_EASE_FACTOR_THRESHOLD
    weak_accuracy_threshold: float = Field(default=c.WEAK_ACCURACY_THRESHOLD, ge=0, le=1)
    error_dominance_threshold: float = Field(default=c.ERROR_TYPE_DOMINANCE_THRESHOLD, ge=0, le=1)
    error_window: int = Field(default=c.ERROR_TYPE_WINDOW, ge=1)
    min_mistake_samples: int = Field(default=c.MIN_SAMPLES_FOR_ANALYSIS, ge=1)
    min_category_samples: int = Field(default=c.MIN_CATEGORY_SAMPLES, ge=1)
    critical_threshold: float = c.CRITICAL_SEVERITY_THRESHOLD
    warning_threshold: float = c.WARNING_SEVERITY_THRESHOLD
    time_gap_threshold: float = c.TIME_ACCURACY_DIFFERENCE_THRESHOLD
    min_time_bucket_sessions: int = Field(default=c.MIN_TIME_BUCKET_SESSIONS, ge=1)
    confusion_min: int = Field(default=c.CONFUSION_WEAK_SPOT_MIN, ge=1)
    confusion_critical_min: int = Field(default=c.CONFUSION_CRITICAL_MIN, ge=1)
    max_confusion_spots: int = Field(default=c.MAX_CONFUSION_WEAK_SPOTS, ge=0)

    @model_validator(mode="after")
    def check_severity_order(self) -> "WeakSpotSettings":
        if self.warning_threshold > self.critical_threshold:
            raise ValueError("warning_threshold must not exceed critical_threshold")
        if self.confusion_min > self.confusion_critical_min:
            raise ValueError("confusion_min must not exceed confusion_critical_min")
        return self


class DifficultySettings(BaseModel):
    min_level: int = c.MIN_DIFFICULTY_LEVEL
    max_level: int = c.MAX_DIFFICULTY_LEVEL
    default_level: int = c.DEFAULT_DIFFICULTY_LEVEL
    smoothing_factor: float = Field(default=c.DIFFICULTY_SMOOTHING_FACTOR, gt=0, le=1)
    accuracy_increase: float = c.ACCURACY_THRESHOLD_INCREASE
    accuracy_decrease: float = c.ACCURACY_THRESHOLD_DECREASE
    fast_response_ms: float = c.RESPONSE_TIME_FAST_MS
    slow_response_ms: float = c.RESPONSE_TIME_SLOW_MS
    min_sessions: int = Field(default=c.MIN_SESSIONS_FOR_ADJUSTMENT, ge=1)
    window: int = Field(default=c.RECENT_SESSIONS_WINDOW, ge=1)
    excellent_streak: int = c.EXCELLENT_STREAK_THRESHOLD
    strong_streak: int = c.PERFECT_STREAK_THRESHOLD
    history_size: int = Field(default=c.MAX_ADJUSTMENT_HISTORY, ge=1)

    @model_validator(mode="after")
    def check_levels(self) -> "DifficultySettings":
        if not self.min_level <= self.default_level <= self.max_level:
            raise ValueError("difficulty levels must satisfy min <= default <= max")
        return self


class LearningStyleSettings(BaseModel):
    min_sessions: int = Field(default=c.MIN_SESSIONS_FOR_DETECTION, ge=1)
    min_mode_sessions: int = Field(default=c.MIN_SESSIONS_PER_MODE, ge=1)
    accuracy_weight: float = c.ACCURACY_WEIGHT
    retention_weight: float = c.RETENTION_WEIGHT
    quality_weight: float = c.QUALITY_WEIGHT
    speed_weight: float = c.SPEED_WEIGHT
    max_response_time_ms: float = Field(default=c.MAX_RESPONSE_TIME_MS, gt=0)
    secondary_min_score: float = c.SECONDARY_STYLE_MIN_SCORE
    confidence_saturation: int = Field(default=c.CONFIDENCE_SATURATION_SESSIONS, ge=1)
    primary_ratio: float = Field(default=c.PRIMARY_STYLE_RATIO, ge=0, le=1)
    secondary_ratio: float = Field(default=c.SECONDARY_STYLE_RATIO, ge=0, le=1)


class RecommendationSettings(BaseModel):
    max_daily: int = Field(default=c.MAX_DAILY_RECOMMENDATIONS, ge=1)
    max_critical_drills: int = c.MAX_CRITICAL_DRILLS
    streak_risk_days: int = c.STREAK_RISK_THRESHOLD
    new_ratio_beginner: float = c.NEW_CARD_RATIO_BEGINNER
    new_ratio_advanced: float = c.NEW_CARD_RATIO_ADVANCED
    advanced_level: int = c.ADVANCED_DIFFICULTY_LEVEL
    weakness_ratio: float = c.WEAKNESS_CARD_RATIO
    seconds_per_card: int = c.SECONDS_PER_CARD_ESTIMATE
    new_card_suggestion_max: int = c.NEW_CARD_SUGGESTION_MAX
    minutes_per_new_card: int = c.MINUTES_PER_NEW_CARD
    new_card_capacity_ratio: float = c.NEW_CARD_CAPACITY_RATIO
    daily_goal: int = Field(default=c.DEFAULT_DAILY_GOAL, ge=1)
    session_cards: int = Field(default=c.DEFAULT_SESSION_CARDS, ge=1)


class EngineConfig(BaseSettings):
    """
    Engine configuration.
    Supports loading from:
    1. Environment variables (MNEMOS_*, nested with __)
    2. Config file (~/.config/mnemos/config.toml)
    3. Manual overrides (CLI / API)
    """

    model_config = SettingsConfigDict(
        env_prefix="MNEMOS_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    scheduling: SchedulingSettings = Field(default_factory=SchedulingSettings)
    weak_spots: WeakSpotSettings = Field(default_factory=WeakSpotSettings)
    difficulty: DifficultySettings = Field(default_factory=DifficultySettings)
    learning_style: LearningStyleSettings = Field(default_factory=LearningStyleSettings)
    recommendations: RecommendationSettings = Field(default_factory=RecommendationSettings)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        toml_file = next((f for f in config_files() if f.exists()), None)

        # First source wins: overrides, then env, then the file.
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)


def resolve_config(overrides: dict[str, Any] | None = None) -> EngineConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults from mnemos.domain.constants
    2. ~/.config/mnemos/config.toml (if exists)
    3. Environment variables (MNEMOS_*)
    4. overrides (passed from Typer or the HTTP API)
    """
    return EngineConfig(**(overrides or {}))
