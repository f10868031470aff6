# Domain Cards Package
from .models import (
    CardProgress,
    ConfusionPair,
    Direction,
    ErrorPatternAnalysis,
    ErrorType,
    Flashcard,
    Gender,
    MistakeRecord,
    ProgressKey,
    StudyMode,
)

__all__ = [
    "CardProgress",
    "ConfusionPair",
    "Direction",
    "ErrorPatternAnalysis",
    "ErrorType",
    "Flashcard",
    "Gender",
    "MistakeRecord",
    "ProgressKey",
    "StudyMode",
]
