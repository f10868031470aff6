"""
SM-2 spaced repetition scheduler.

This is a pure computation module with no I/O. The same progress record,
quality and day always produce the same result, so the scheduler doubles as
a "what-if" previewer.

Quality ratings:
    0 - Complete blackout
    1 - Wrong, but recognized the answer
    2 - Wrong, but the answer felt easy once seen
    3 - Correct with serious difficulty
    4 - Correct with hesitation
    5 - Perfect recall
"""

import logging
import math
from dataclasses import replace
from datetime import date, timedelta
from typing import Any

from mnemos.application.config import SchedulingSettings
from mnemos.application.scheduling.mastery import advance_mastery
from mnemos.application.utils.common import clamp, round_half_up
from mnemos.domain.cards.models import CardProgress, Direction
from mnemos.domain.constants import (
    FIRST_INTERVAL,
    LEARNING_INTERVAL_DAYS,
    MASTERED_INTERVAL_DAYS,
    MAX_QUALITY,
    NEUTRAL_QUALITY,
    PASSING_QUALITY,
    SECOND_INTERVAL,
    STRUGGLING_EASE_FACTOR,
)

logger = logging.getLogger(__name__)


def create_initial_progress(
    card_id: str,
    direction: Direction,
    today: date | None = None,
    settings: SchedulingSettings | None = None,
) -> CardProgress:
    """Default record for a (card, direction) pair on first exposure."""
    settings = settings or SchedulingSettings()
    return CardProgress(
        card_id=card_id,
        direction=direction,
        ease_factor=settings.default_ease,
        next_review_date=today or date.today(),
    )


def normalize_quality(quality: Any) -> int:
    """
    Coerce upstream input to an integer in [0, 5].

    Non-numeric input (None, strings, NaN, booleans) is treated as a neutral
    pass instead of raising.
    """
    if isinstance(quality, bool) or not isinstance(quality, (int, float)):
        logger.debug(f"Non-numeric quality {quality!r}, using {NEUTRAL_QUALITY}")
        return NEUTRAL_QUALITY
    if math.isnan(quality) or math.isinf(quality):
        logger.debug(f"Non-finite quality {quality!r}, using {NEUTRAL_QUALITY}")
        return NEUTRAL_QUALITY
    return int(clamp(round_half_up(quality), 0, MAX_QUALITY))


def next_ease_factor(ease_factor: float, quality: int, min_ease: float) -> float:
    """EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)), floored at min_ease."""
    miss = MAX_QUALITY - quality
    return max(min_ease, ease_factor + (0.1 - miss * (0.08 + miss * 0.02)))


def schedule(
    progress: CardProgress,
    quality: Any,
    today: date | None = None,
    settings: SchedulingSettings | None = None,
) -> CardProgress:
    """
    Apply one review to a progress record and return the updated copy.

    Args:
        progress: Current state for the (card, direction) pair.
        quality: 0-5 rating; malformed values become 3.
        today: Review day. Defaults to the current date.
        settings: Ease/interval bounds; defaults from mnemos.domain.constants.

    Returns:
        A new CardProgress; the input is never mutated.
    """
    settings = settings or SchedulingSettings()
    today = today or date.today()
    q = normalize_quality(quality)
    passed = q >= PASSING_QUALITY

    ease = max(settings.min_ease, progress.ease_factor)
    if passed:
        ease = next_ease_factor(ease, q, settings.min_ease)
        if progress.repetitions == 0:
            interval = FIRST_INTERVAL
        elif progress.repetitions == 1:
            interval = SECOND_INTERVAL
        else:
            interval = round_half_up(progress.interval * ease)
        repetitions = progress.repetitions + 1
    else:
        interval = FIRST_INTERVAL
        repetitions = 0

    interval = int(clamp(interval, 1, settings.max_interval_days))
    level, consecutive = advance_mastery(
        progress.mastery_level, progress.consecutive_correct, passed, q
    )

    return replace(
        progress,
        ease_factor=ease,
        interval=interval,
        repetitions=repetitions,
        next_review_date=today + timedelta(days=interval),
        last_review_date=today,
        last_quality=q,
        total_reviews=progress.total_reviews + 1,
        correct_reviews=progress.correct_reviews + (1 if passed else 0),
        mastery_level=level,
        consecutive_correct=consecutive,
    )


# ---------- Predicates ----------


def is_due(progress: CardProgress, today: date | None = None) -> bool:
    return progress.next_review_date <= (today or date.today())


def is_new(progress: CardProgress) -> bool:
    return progress.repetitions < 2


def is_struggling(progress: CardProgress) -> bool:
    return progress.ease_factor < STRUGGLING_EASE_FACTOR


def requires_typing(progress: CardProgress) -> bool:
    return is_new(progress) or is_struggling(progress)


def mastery_stage(progress: CardProgress) -> str:
    """Coarse label from SM-2 state: new, learning, reviewing or mastered."""
    if progress.repetitions == 0:
        return "new"
    if progress.interval < LEARNING_INTERVAL_DAYS:
        return "learning"
    if progress.interval < MASTERED_INTERVAL_DAYS:
        return "reviewing"
    return "mastered"
