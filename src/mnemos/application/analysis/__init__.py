# Application Analysis Package
from .difficulty import adjust_difficulty, set_difficulty_level
from .learning_style import detect_learning_style, recommend_mode
from .mistakes import analyze_error_patterns, classify_mistake, derive_confusion_pairs
from .performance import analyze_category_performance, analyze_time_performance
from .weak_spots import detect_weak_spots

__all__ = [
    "adjust_difficulty",
    "set_difficulty_level",
    "detect_learning_style",
    "recommend_mode",
    "analyze_error_patterns",
    "classify_mistake",
    "derive_confusion_pairs",
    "analyze_category_performance",
    "analyze_time_performance",
    "detect_weak_spots",
]
