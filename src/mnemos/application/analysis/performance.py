"""
Category and time-of-day performance aggregates.

Pure functions over snapshots of the progress store and the session/mistake
logs. Results are recomputed wholesale on every call.
"""

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Iterable, Mapping

from mnemos.application.config import SchedulingSettings, WeakSpotSettings
from mnemos.application.utils.common import mean
from mnemos.domain.adaptive.models import (
    CategoryPerformance,
    PerformanceTrend,
    SessionPerformanceRecord,
    TimeOfDay,
    TimePerformance,
)
from mnemos.domain.cards.models import (
    CardProgress,
    Direction,
    ErrorType,
    Flashcard,
    MistakeRecord,
)
from mnemos.domain.constants import (
    CONFIDENCE_SAMPLE_CURVE,
    MASTERED_INTERVAL_DAYS,
    TREND_WINDOW_DAYS,
)

ProgressMap = Mapping[tuple[str, Direction], CardProgress]

# Hour ranges [start, end); night wraps around midnight.
TIME_BUCKETS = {
    TimeOfDay.MORNING: (6, 12),
    TimeOfDay.AFTERNOON: (12, 17),
    TimeOfDay.EVENING: (17, 21),
}


def time_of_day(moment: datetime) -> TimeOfDay:
    for bucket, (start, end) in TIME_BUCKETS.items():
        if start <= moment.hour < end:
            return bucket
    return TimeOfDay.NIGHT


def progress_for_card(progress_map: ProgressMap, card_id: str) -> list[CardProgress]:
    records = [progress_map.get((card_id, direction)) for direction in Direction]
    return [p for p in records if p is not None]


def analyze_category_performance(
    flashcards: Iterable[Flashcard],
    progress_map: ProgressMap,
    mistakes: Iterable[MistakeRecord],
    now: datetime | None = None,
    settings: WeakSpotSettings | None = None,
) -> list[CategoryPerformance]:
    """
    Aggregate review state per category, in first-seen category order.

    Each reviewed (card, direction) pair counts once toward ``reviewed_cards``.
    Trend compares mistakes in the last week with older ones.
    """
    settings = settings or WeakSpotSettings()
    now = now or datetime.now()
    default_ease = SchedulingSettings().default_ease

    cards_by_category: dict[str, list[Flashcard]] = defaultdict(list)
    category_of: dict[str, str] = {}
    for card in flashcards:
        cards_by_category[card.category].append(card)
        category_of[card.id] = card.category

    mistakes_by_category: dict[str, list[MistakeRecord]] = defaultdict(list)
    for mistake in mistakes:
        category = category_of.get(mistake.card_id)
        if category is not None:
            mistakes_by_category[category].append(mistake)

    results = []
    for category, cards in cards_by_category.items():
        reviewed = correct = incorrect = mastered = struggling = 0
        ease_total = 0.0
        last_reviewed = None

        for card in cards:
            for progress in progress_for_card(progress_map, card.id):
                if progress.total_reviews == 0:
                    continue
                reviewed += 1
                correct += progress.correct_reviews
                incorrect += progress.total_reviews - progress.correct_reviews
                ease_total += progress.ease_factor
                if progress.interval >= MASTERED_INTERVAL_DAYS:
                    mastered += 1
                elif progress.ease_factor < settings.weak_ease_threshold:
                    struggling += 1
                if progress.last_review_date and (
                    last_reviewed is None or progress.last_review_date > last_reviewed
                ):
                    last_reviewed = progress.last_review_date

        category_mistakes = mistakes_by_category.get(category, [])
        distribution = {error_type: 0 for error_type in ErrorType}
        for mistake in category_mistakes:
            distribution[mistake.error_type] += 1

        interactions = correct + incorrect
        results.append(
            CategoryPerformance(
                category=category,
                total_cards=len(cards),
                reviewed_cards=reviewed,
                correct_count=correct,
                incorrect_count=incorrect,
                average_ease_factor=ease_total / reviewed if reviewed else default_ease,
                mastered_count=mastered,
                struggling_count=struggling,
                last_reviewed=last_reviewed,
                error_distribution=distribution,
                trend=_mistake_trend(category_mistakes, interactions, now, settings),
                confidence_score=min(100.0, interactions / CONFIDENCE_SAMPLE_CURVE * 100),
            )
        )

    return results


def _mistake_trend(
    mistakes: list[MistakeRecord],
    interactions: int,
    now: datetime,
    settings: WeakSpotSettings,
) -> PerformanceTrend:
    if interactions < settings.min_mistake_samples:
        return PerformanceTrend.STABLE

    cutoff = now - timedelta(days=TREND_WINDOW_DAYS)
    recent = sum(1 for m in mistakes if m.timestamp > cutoff)
    older = len(mistakes) - recent

    if recent < older * 0.7:
        return PerformanceTrend.IMPROVING
    if recent > older * 1.3:
        return PerformanceTrend.DECLINING
    return PerformanceTrend.STABLE


def analyze_time_performance(
    sessions: Iterable[SessionPerformanceRecord],
) -> list[TimePerformance]:
    """
    Per-bucket averages, always one entry per TimeOfDay in enum order.

    optimal_score = 0.6 * accuracy + 0.3 * speed + 0.1 * volume, where speed
    drops one point per 100 ms of average response time.
    """
    by_bucket: dict[TimeOfDay, list[SessionPerformanceRecord]] = {t: [] for t in TimeOfDay}
    for session in sessions:
        by_bucket[session.time_of_day].append(session)

    results = []
    for bucket, bucket_sessions in by_bucket.items():
        if not bucket_sessions:
            results.append(TimePerformance(bucket, 0, 0.0, 0.0, 0.0, 0.0))
            continue

        accuracy = mean([s.accuracy for s in bucket_sessions])
        response = mean([s.average_response_time_ms for s in bucket_sessions])
        volume = mean([float(s.cards_reviewed) for s in bucket_sessions])
        speed_score = max(0.0, 100 - response / 100)
        optimal = accuracy * 0.6 + speed_score * 0.3 + min(100.0, volume * 5) * 0.1

        results.append(
            TimePerformance(
                time_of_day=bucket,
                sessions_count=len(bucket_sessions),
                average_accuracy=accuracy,
                average_response_time_ms=response,
                average_cards_per_session=volume,
                optimal_score=optimal,
            )
        )

    return results


def best_time_bucket(performances: Iterable[TimePerformance]) -> TimePerformance | None:
    """Highest optimal score among buckets with data; earliest bucket wins ties."""
    best = None
    for perf in performances:
        if perf.sessions_count == 0:
            continue
        if best is None or perf.optimal_score > best.optimal_score:
            best = perf
    return best
