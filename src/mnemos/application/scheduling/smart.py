"""
Smart scheduling: contextual multipliers over the SM-2 base interval.

Five factors are computed independently of one another, each clamped to its
configured range, then multiplied together:

    final = round(base * time_of_day * category * mistakes * interference * fatigue)

Every factor that moves away from 1.0 contributes one human-readable reason.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from typing import Any

from mnemos.application.analysis.mistakes import answer_key
from mnemos.application.analysis.performance import best_time_bucket, time_of_day
from mnemos.application.config import SchedulingSettings
from mnemos.application.scheduling.sm2 import schedule
from mnemos.application.utils.common import clamp, round_half_up
from mnemos.domain.adaptive.models import CategoryPerformance, ScheduleFactors, TimePerformance
from mnemos.domain.cards.models import (
    CardProgress,
    ConfusionPair,
    Direction,
    Flashcard,
    MistakeRecord,
)

logger = logging.getLogger(__name__)

Factor = tuple[float, str | None]


@dataclass(frozen=True)
class ScheduleContext:
    """
    Aggregates consulted when scheduling one card.

    The snapshot may be slightly stale relative to the latest review.
    """

    time_performances: list[TimePerformance] = field(default_factory=list)
    category_performances: list[CategoryPerformance] = field(default_factory=list)
    recent_mistakes: list[MistakeRecord] = field(default_factory=list)
    confusion_pairs: list[ConfusionPair] = field(default_factory=list)
    cards_reviewed_this_session: int = 0
    now: datetime | None = None


def time_of_day_factor(
    performances: list[TimePerformance],
    now: datetime,
    settings: SchedulingSettings,
) -> Factor:
    """Accuracy now relative to the best time bucket, mapped into [min, max]."""
    bucket = time_of_day(now)
    current = next((p for p in performances if p.time_of_day == bucket), None)
    best = best_time_bucket(performances)

    if current is None or current.sessions_count == 0 or best is None:
        return 1.0, None
    if best.average_accuracy <= 0:
        return 1.0, None

    low, high = settings.time_multiplier_min, settings.time_multiplier_max
    ratio = current.average_accuracy / best.average_accuracy
    value = clamp(low + ratio * (high - low), low, high)
    if value == 1.0:
        return value, None
    return value, (
        f"{bucket.value} accuracy is {ratio:.0%} of your best time "
        f"({best.time_of_day.value}), interval x{value:.2f}"
    )


def category_factor(
    card: Flashcard,
    performances: list[CategoryPerformance],
    settings: SchedulingSettings,
) -> Factor:
    """Harder categories (low average ease) shrink the interval."""
    perf = next((p for p in performances if p.category == card.category), None)
    if perf is None or perf.reviewed_cards == 0:
        return 1.0, None

    hard, easy = settings.category_multiplier_hard, settings.category_multiplier_easy
    ease_range = settings.default_ease - settings.min_ease
    position = (perf.average_ease_factor - settings.min_ease) / ease_range if ease_range else 1.0
    value = clamp(hard + position * (easy - hard), hard, easy)
    if value == 1.0:
        return value, None
    label = "harder" if value < 1.0 else "easier"
    return value, (
        f"category '{card.category}' is {label} than average "
        f"(ease {perf.average_ease_factor:.2f}), interval x{value:.2f}"
    )


def mistake_recency_factor(
    card: Flashcard,
    mistakes: list[MistakeRecord],
    now: datetime,
    settings: SchedulingSettings,
) -> Factor:
    """Each recent mistake on this card shrinks the interval, down to a floor."""
    cutoff = now - timedelta(days=settings.recent_mistake_window_days)
    count = sum(1 for m in mistakes if m.card_id == card.id and m.timestamp >= cutoff)
    if count == 0:
        return 1.0, None

    value = max(
        1 - settings.mistake_penalty_max,
        1 - count * settings.mistake_penalty_per_recent,
    )
    plural = "" if count == 1 else "s"
    return value, (
        f"{count} mistake{plural} on this card in the last "
        f"{settings.recent_mistake_window_days} days, interval x{value:.2f}"
    )


def interference_factor(
    answer: str,
    pairs: list[ConfusionPair],
    settings: SchedulingSettings,
) -> Factor:
    """A fixed shrink when the answer belongs to a known confusion pair."""
    key = answer_key(answer)
    pair = next((p for p in pairs if p.involves(key)), None)
    if pair is None:
        return 1.0, None

    value = 1 - settings.interference_penalty
    return value, (
        f'"{pair.word1}" and "{pair.word2}" are often confused '
        f"({pair.confusion_count} times), interval x{value:.2f}"
    )


def fatigue_factor(cards_reviewed: int, settings: SchedulingSettings) -> Factor:
    """Cards late in a long session come back sooner."""
    over = cards_reviewed - settings.fatigue_threshold_cards
    if over <= 0:
        return 1.0, None

    value = max(1 - settings.fatigue_penalty_max, 1 - over * settings.fatigue_penalty)
    return value, (
        f"{cards_reviewed} cards into the session (fatigue threshold "
        f"{settings.fatigue_threshold_cards}), interval x{value:.2f}"
    )


def expected_answer(card: Flashcard, direction: Direction) -> str:
    return card.back if direction == Direction.FORWARD else card.front


def compute_factors(
    card: Flashcard,
    progress: CardProgress,
    quality: Any,
    context: ScheduleContext,
    today: date | None = None,
    settings: SchedulingSettings | None = None,
) -> ScheduleFactors:
    """
    Compute the SM-2 base interval and the five contextual multipliers.

    Args:
        card: The card being reviewed.
        progress: Its state before this review.
        quality: 0-5 rating for this review.
        context: Aggregates from the latest analysis pass.
    """
    settings = settings or SchedulingSettings()
    now = context.now or datetime.now()
    base = schedule(progress, quality, today=today or now.date(), settings=settings)

    factors = [
        time_of_day_factor(context.time_performances, now, settings),
        category_factor(card, context.category_performances, settings),
        mistake_recency_factor(card, context.recent_mistakes, now, settings),
        interference_factor(
            expected_answer(card, progress.direction), context.confusion_pairs, settings
        ),
        fatigue_factor(context.cards_reviewed_this_session, settings),
    ]
    (time_m, _), (category_m, _), (mistake_m, _), (interference_m, _), (fatigue_m, _) = factors

    result = ScheduleFactors(
        base_interval=base.interval,
        time_of_day=time_m,
        category_difficulty=category_m,
        mistake_recency=mistake_m,
        interference=interference_m,
        fatigue=fatigue_m,
        reasons=tuple(reason for _, reason in factors if reason),
    )
    logger.debug(
        f"Factors for {card.id}/{progress.direction.value}: base={result.base_interval} "
        f"x{result.combined_multiplier:.3f}"
    )
    return result


def apply_factors(
    factors: ScheduleFactors,
    max_interval_days: int | None = None,
) -> int:
    """Compose the multipliers over the base interval; never below one day."""
    if max_interval_days is None:
        max_interval_days = SchedulingSettings().max_interval_days
    adjusted = round_half_up(factors.base_interval * factors.combined_multiplier)
    return int(clamp(adjusted, 1, max_interval_days))


def schedule_smart(
    card: Flashcard,
    progress: CardProgress,
    quality: Any,
    context: ScheduleContext,
    today: date | None = None,
    settings: SchedulingSettings | None = None,
) -> tuple[CardProgress, ScheduleFactors]:
    """
    SM-2 update with the smart-scheduling interval substituted in.

    Ease, repetitions, counters and mastery follow plain SM-2; only the
    interval and due date reflect the contextual factors.
    """
    settings = settings or SchedulingSettings()
    today = today or (context.now or datetime.now()).date()
    updated = schedule(progress, quality, today=today, settings=settings)
    factors = compute_factors(card, progress, quality, context, today=today, settings=settings)
    interval = apply_factors(factors, settings.max_interval_days)

    return (
        replace(updated, interval=interval, next_review_date=today + timedelta(days=interval)),
        factors,
    )
