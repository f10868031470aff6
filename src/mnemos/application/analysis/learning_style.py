"""
Learning-style inference from per-mode session effectiveness.

Below the minimum session count the neutral profile is returned (flat
scores, no primary style) instead of a low-confidence guess.
"""

import logging
from typing import Iterable

from mnemos.application.config import LearningStyleSettings
from mnemos.application.utils.common import mean
from mnemos.domain.adaptive.models import (
    LearningStyle,
    LearningStyleProfile,
    ModeEffectiveness,
    SessionPerformanceRecord,
)
from mnemos.domain.cards.models import StudyMode
from mnemos.domain.constants import EASY_MODE_MAX_LEVEL, HARD_MODE_MIN_LEVEL, MAX_QUALITY

logger = logging.getLogger(__name__)

STYLE_MODE_MAPPING: dict[LearningStyle, tuple[StudyMode, ...]] = {
    LearningStyle.VISUAL: (StudyMode.FLIP, StudyMode.MULTIPLE_CHOICE),
    LearningStyle.AUDITORY: (StudyMode.LISTENING, StudyMode.DICTATION, StudyMode.SPEAK),
    LearningStyle.KINESTHETIC: (StudyMode.TYPE_ANSWER, StudyMode.SENTENCES),
    LearningStyle.READING: (StudyMode.FLIP, StudyMode.TYPE_ANSWER),
}

# Modes that belong to at least one style, in first-mapped order
TRACKED_MODES = tuple(dict.fromkeys(m for modes in STYLE_MODE_MAPPING.values() for m in modes))


def mode_effectiveness(
    mode: StudyMode,
    sessions: list[SessionPerformanceRecord],
    settings: LearningStyleSettings,
) -> ModeEffectiveness:
    """
    Composite 0-100 score for one mode.

    retention is approximated as min(100, quality * 20); speed drops linearly
    to zero at ``max_response_time_ms``.
    """
    accuracy = mean([s.accuracy for s in sessions])
    quality = mean([s.average_quality for s in sessions])
    response = mean([s.average_response_time_ms for s in sessions])

    retention = min(100.0, quality * 20)
    speed = max(0.0, 100 - response / settings.max_response_time_ms * 100)
    score = (
        accuracy * settings.accuracy_weight
        + retention * settings.retention_weight
        + quality / MAX_QUALITY * 100 * settings.quality_weight
        + speed * settings.speed_weight
    )

    return ModeEffectiveness(
        mode=mode,
        sessions_count=len(sessions),
        cards_reviewed=sum(s.cards_reviewed for s in sessions),
        average_accuracy=accuracy,
        average_quality=quality,
        retention_rate=retention,
        average_response_time_ms=response,
        effectiveness_score=score,
    )


def detect_learning_style(
    sessions: Iterable[SessionPerformanceRecord],
    settings: LearningStyleSettings | None = None,
) -> LearningStyleProfile:
    """
    Rank the four styles by the mean effectiveness of their modes.

    Modes with fewer than ``min_mode_sessions`` sessions are ignored. The
    runner-up becomes the secondary style only above ``secondary_min_score``.
    """
    settings = settings or LearningStyleSettings()
    sessions = list(sessions)
    if len(sessions) < settings.min_sessions:
        return LearningStyleProfile(sessions_analyzed=len(sessions))

    effectiveness: dict[StudyMode, ModeEffectiveness] = {}
    for mode in TRACKED_MODES:
        mode_sessions = [s for s in sessions if s.mode == mode]
        if len(mode_sessions) >= settings.min_mode_sessions:
            effectiveness[mode] = mode_effectiveness(mode, mode_sessions, settings)

    scores: dict[LearningStyle, float] = {}
    for style, modes in STYLE_MODE_MAPPING.items():
        members = [effectiveness[m].effectiveness_score for m in modes if m in effectiveness]
        scores[style] = mean(members)

    ranked = sorted(scores, key=lambda s: scores[s], reverse=True)
    primary = ranked[0] if scores[ranked[0]] > 0 else None
    secondary = None
    if primary is not None and scores[ranked[1]] > settings.secondary_min_score:
        secondary = ranked[1]

    confidence = min(100.0, len(sessions) / settings.confidence_saturation * 100)
    logger.info(
        f"Learning style: primary={primary.value if primary else None} "
        f"secondary={secondary.value if secondary else None} "
        f"from {len(sessions)} sessions"
    )
    return LearningStyleProfile(
        primary_style=primary,
        secondary_style=secondary,
        style_scores=scores,
        mode_effectiveness=effectiveness,
        confidence_level=confidence,
        sessions_analyzed=len(sessions),
    )


def recommend_mode(
    profile: LearningStyleProfile,
    difficulty_level: int,
    needs_typing: bool = False,
) -> StudyMode:
    """
    Pick a study mode for the next card.

    Typing practice overrides style preference. Otherwise low difficulty
    prefers recognition modes and high difficulty prefers production modes
    within the primary style.
    """
    if needs_typing:
        return StudyMode.TYPE_ANSWER

    if profile.primary_style is None:
        if difficulty_level <= EASY_MODE_MAX_LEVEL:
            return StudyMode.MULTIPLE_CHOICE
        if difficulty_level >= HARD_MODE_MIN_LEVEL:
            return StudyMode.TYPE_ANSWER
        return StudyMode.MIXED

    modes = STYLE_MODE_MAPPING[profile.primary_style]
    if difficulty_level <= EASY_MODE_MAX_LEVEL:
        preferred = (StudyMode.FLIP, StudyMode.MULTIPLE_CHOICE)
    elif difficulty_level >= HARD_MODE_MIN_LEVEL:
        preferred = (StudyMode.TYPE_ANSWER, StudyMode.DICTATION)
    else:
        preferred = ()

    for mode in preferred:
        if mode in modes:
            return mode
    return modes[0]
