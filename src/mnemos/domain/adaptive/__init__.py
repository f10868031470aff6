# Domain Adaptive Package
from .models import (
    CategoryPerformance,
    DailyRecommendation,
    DifficultyAdjustment,
    DifficultyDistribution,
    DifficultyProfile,
    LearningStyle,
    LearningStyleProfile,
    ModeEffectiveness,
    PerformanceTrend,
    RecommendationType,
    ScheduleFactors,
    SessionComposition,
    SessionPerformanceRecord,
    Severity,
    StudyRecommendation,
    TimeOfDay,
    TimePerformance,
    Trend,
    TriggerMetrics,
    WeakSpot,
    WeakSpotType,
)

__all__ = [
    "CategoryPerformance",
    "DailyRecommendation",
    "DifficultyAdjustment",
    "DifficultyDistribution",
    "DifficultyProfile",
    "LearningStyle",
    "LearningStyleProfile",
    "ModeEffectiveness",
    "PerformanceTrend",
    "RecommendationType",
    "ScheduleFactors",
    "SessionComposition",
    "SessionPerformanceRecord",
    "Severity",
    "StudyRecommendation",
    "TimeOfDay",
    "TimePerformance",
    "Trend",
    "TriggerMetrics",
    "WeakSpot",
    "WeakSpotType",
]
