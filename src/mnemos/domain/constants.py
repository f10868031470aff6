"""Centralized constants for the mnemos engine.

All thresholds and tunable defaults live here so every layer
imports from a single source of truth. Runtime overrides go through
``mnemos.application.config``.
"""

# ---------- SM-2 ----------
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
MAX_INTERVAL_DAYS = 365
FIRST_INTERVAL = 1
SECOND_INTERVAL = 6
PASSING_QUALITY = 3
NEUTRAL_QUALITY = 3
MAX_QUALITY = 5
STRUGGLING_EASE_FACTOR = 2.0
MASTERED_INTERVAL_DAYS = 21
LEARNING_INTERVAL_DAYS = 7

# ---------- Mastery levels ----------
MASTERY_ADVANCEMENT_THRESHOLD = 3
MAX_MASTERY_LEVEL = 4

# ---------- Quality mapping (seconds) ----------
TYPED_FAST_SECONDS = 3
TYPED_NORMAL_SECONDS = 6
CHOICE_FAST_SECONDS = 2
CHOICE_NORMAL_SECONDS = 4

# ---------- Answer matching ----------
TYPO_SIMILARITY_THRESHOLD = 0.85
SPELLING_SIMILARITY_THRESHOLD = 0.5

# ---------- Smart scheduling ----------
TIME_MULTIPLIER_MIN = 0.8
TIME_MULTIPLIER_MAX = 1.0
CATEGORY_MULTIPLIER_HARD = 0.85
CATEGORY_MULTIPLIER_EASY = 1.1
MISTAKE_PENALTY_PER_RECENT = 0.1
MISTAKE_PENALTY_MAX = 0.3
INTERFERENCE_PENALTY = 0.1
FATIGUE_THRESHOLD_CARDS = 15
FATIGUE_PENALTY = 0.05
FATIGUE_PENALTY_MAX = 0.15
RECENT_MISTAKE_WINDOW_DAYS = 7

# ---------- Weak spots ----------
WEAK_EASE_FACTOR_THRESHOLD = 2.0
WEAK_ACCURACY_THRESHOLD = 0.7
ERROR_TYPE_DOMINANCE_THRESHOLD = 0.3
ERROR_TYPE_WINDOW = 200
MIN_SAMPLES_FOR_ANALYSIS = 10
MIN_CATEGORY_SAMPLES = 5
CRITICAL_SEVERITY_THRESHOLD = 70
WARNING_SEVERITY_THRESHOLD = 40
TIME_ACCURACY_DIFFERENCE_THRESHOLD = 0.15
MIN_TIME_BUCKET_SESSIONS = 3
CONFUSION_WEAK_SPOT_MIN = 3
CONFUSION_CRITICAL_MIN = 5
CONFUSION_SCORE_PER_EVENT = 15
MAX_CONFUSION_WEAK_SPOTS = 5
CONFIDENCE_SAMPLE_CURVE = 50
TREND_WINDOW_DAYS = 7

# ---------- Confusion pairs ----------
MIN_CONFUSION_COUNT = 2
MIN_CONFUSION_ANSWER_LENGTH = 2
MAX_CONFUSION_PAIRS = 10

# ---------- Difficulty ----------
MIN_DIFFICULTY_LEVEL = 1
MAX_DIFFICULTY_LEVEL = 10
DEFAULT_DIFFICULTY_LEVEL = 5
DIFFICULTY_SMOOTHING_FACTOR = 0.3
ACCURACY_THRESHOLD_INCREASE = 90.0
ACCURACY_THRESHOLD_DECREASE = 60.0
STRONG_STREAK_ACCURACY = 85.0
REINFORCE_ACCURACY_CEILING = 75.0
RESPONSE_TIME_FAST_MS = 3000
RESPONSE_TIME_SLOW_MS = 10000
MIN_SESSIONS_FOR_ADJUSTMENT = 3
EXCELLENT_STREAK_THRESHOLD = 5
PERFECT_STREAK_THRESHOLD = 10
MAX_ADJUSTMENT_HISTORY = 20
RECENT_SESSIONS_WINDOW = 5

# ---------- Learning style ----------
MIN_SESSIONS_FOR_DETECTION = 5
MIN_SESSIONS_PER_MODE = 3
ACCURACY_WEIGHT = 0.3
RETENTION_WEIGHT = 0.4
QUALITY_WEIGHT = 0.2
SPEED_WEIGHT = 0.1
MAX_RESPONSE_TIME_MS = 60000
SECONDARY_STYLE_MIN_SCORE = 50.0
CONFIDENCE_SATURATION_SESSIONS = 20
NEUTRAL_STYLE_SCORE = 50.0
PRIMARY_STYLE_RATIO = 0.6
SECONDARY_STYLE_RATIO = 0.3
EASY_MODE_MAX_LEVEL = 3
HARD_MODE_MIN_LEVEL = 7

# ---------- Recommendations ----------
MAX_DAILY_RECOMMENDATIONS = 5
MAX_CRITICAL_DRILLS = 2
STREAK_RISK_THRESHOLD = 7
NEW_CARD_RATIO_BEGINNER = 0.2
NEW_CARD_RATIO_ADVANCED = 0.1
ADVANCED_DIFFICULTY_LEVEL = 7
WEAKNESS_CARD_RATIO = 0.25
SECONDS_PER_CARD_ESTIMATE = 20
NEW_CARD_SUGGESTION_MAX = 5
MINUTES_PER_NEW_CARD = 2
NEW_CARD_CAPACITY_RATIO = 0.8
MAX_DRILL_CARDS = 15
BOOT_CAMP_CARDS = 20
DEFAULT_DAILY_GOAL = 20
DEFAULT_SESSION_CARDS = 20
WEAKNESS_DECK_LIMIT = 20
STREAK_PROTECTION_MAX_CARDS = 10
STREAK_PROTECTION_MINUTES = 5
DRILL_MINUTES = 10
BOOT_CAMP_MINUTES = 15
MAX_FOCUS_AREAS = 3
MAX_OPTIMAL_TIME_SLOTS = 2
