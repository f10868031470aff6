"""
Weak-spot detection.

Four independent detectors (category, error type, time of day, confusion
pairs) each emit scored WeakSpot values. Every detector is gated by a
minimum sample size, so small histories produce no output. The combined list
is sorted by score, highest first; equal scores keep detector order.
"""

import logging
from datetime import datetime
from typing import Iterable

from mnemos.application.analysis.mistakes import answer_key
from mnemos.application.analysis.performance import (
    ProgressMap,
    analyze_category_performance,
    analyze_time_performance,
    best_time_bucket,
)
from mnemos.application.config import WeakSpotSettings
from mnemos.application.utils.common import slugify
from mnemos.domain.adaptive.models import (
    CategoryPerformance,
    SessionPerformanceRecord,
    Severity,
    TimePerformance,
    WeakSpot,
    WeakSpotType,
)
from mnemos.domain.cards.models import ConfusionPair, ErrorType, Flashcard, MistakeRecord
from mnemos.domain.constants import CONFUSION_SCORE_PER_EVENT

logger = logging.getLogger(__name__)

ERROR_DESCRIPTIONS = {
    ErrorType.ACCENT: "Accent marks are causing frequent errors",
    ErrorType.SPELLING: "Spelling mistakes are common",
    ErrorType.GENDER: "Gender (masculine/feminine) confusion is frequent",
    ErrorType.WRONG: "Many completely incorrect answers",
}

ERROR_ACTIONS = {
    ErrorType.ACCENT: "Practice with typing mode to reinforce accent placement",
    ErrorType.SPELLING: "Focus on dictation mode for spelling practice",
    ErrorType.GENDER: "Pay attention to article hints (el/la, un/una)",
    ErrorType.WRONG: "Review cards more frequently with flip mode first",
}


def weakness_score(ease_factor: float, accuracy: float, struggling_count: int) -> float:
    """
    Blend of ease deficit (up to 51), accuracy deficit (up to 40) and
    struggling cards (up to 30), capped at 100.
    """
    ease_score = (3 - ease_factor) * 30
    accuracy_score = (1 - accuracy) * 40
    struggling_score = min(30, struggling_count * 5)
    return max(0.0, min(100.0, ease_score + accuracy_score + struggling_score))


def severity_for(score: float, settings: WeakSpotSettings | None = None) -> Severity:
    settings = settings or WeakSpotSettings()
    if score >= settings.critical_threshold:
        return Severity.CRITICAL
    if score >= settings.warning_threshold:
        return Severity.WARNING
    return Severity.INFO


def detect_category_weak_spots(
    flashcards: list[Flashcard],
    categories: list[CategoryPerformance],
    now: datetime,
    settings: WeakSpotSettings,
) -> list[WeakSpot]:
    spots = []
    for perf in categories:
        if perf.reviewed_cards < settings.min_category_samples or perf.accuracy is None:
            continue

        weak_ease = perf.average_ease_factor < settings.weak_ease_threshold
        weak_accuracy = perf.accuracy < settings.weak_accuracy_threshold
        if not (weak_ease or weak_accuracy):
            continue

        score = weakness_score(perf.average_ease_factor, perf.accuracy, perf.struggling_count)
        spots.append(
            WeakSpot(
                id=f"category-{slugify(perf.category)}",
                type=WeakSpotType.CATEGORY,
                target=perf.category,
                severity=severity_for(score, settings),
                score=score,
                description=(
                    f"Struggling with {perf.category} cards "
                    f"({round(perf.accuracy * 100)}% accuracy)"
                ),
                suggested_action=f"Focus on {perf.category} with intensive typing practice",
                affected_card_ids=tuple(c.id for c in flashcards if c.category == perf.category),
                detected_at=now,
            )
        )
    return spots


def detect_error_type_weak_spots(
    mistakes: list[MistakeRecord],
    now: datetime,
    settings: WeakSpotSettings,
) -> list[WeakSpot]:
    """Flag error types whose share of the most recent mistakes is dominant."""
    window = mistakes[-settings.error_window :]
    if len(window) < settings.min_mistake_samples:
        return []

    counts = {error_type: 0 for error_type in ErrorType}
    for mistake in window:
        counts[mistake.error_type] += 1

    spots = []
    for error_type, count in counts.items():
        share = count / len(window)
        if share <= settings.error_dominance_threshold:
            continue

        score = share * 100
        affected = dict.fromkeys(m.card_id for m in mistakes if m.error_type == error_type)
        spots.append(
            WeakSpot(
                id=f"error-{error_type.value}",
                type=WeakSpotType.ERROR_TYPE,
                target=error_type.value,
                severity=severity_for(score, settings),
                score=score,
                description=ERROR_DESCRIPTIONS[error_type],
                suggested_action=ERROR_ACTIONS[error_type],
                affected_card_ids=tuple(affected),
                detected_at=now,
            )
        )
    return spots


def detect_time_weak_spots(
    performances: list[TimePerformance],
    now: datetime,
    settings: WeakSpotSettings,
) -> list[WeakSpot]:
    """Advisory only: time-of-day spots are always INFO."""
    best = best_time_bucket(performances)
    if best is None:
        return []

    spots = []
    for perf in performances:
        if perf.sessions_count < settings.min_time_bucket_sessions:
            continue
        gap = (best.average_accuracy - perf.average_accuracy) / 100
        if gap <= settings.time_gap_threshold:
            continue

        spots.append(
            WeakSpot(
                id=f"time-{perf.time_of_day.value}",
                type=WeakSpotType.TIME_BASED,
                target=perf.time_of_day.value,
                severity=Severity.INFO,
                score=gap * 100,
                description=f"Lower performance during {perf.time_of_day.value} sessions",
                suggested_action=(
                    f"Try studying during {best.time_of_day.value} for better results"
                ),
                affected_card_ids=(),
                detected_at=now,
            )
        )
    return spots


def detect_confusion_weak_spots(
    pairs: list[ConfusionPair],
    flashcards: list[Flashcard],
    now: datetime,
    settings: WeakSpotSettings,
) -> list[WeakSpot]:
    significant = [p for p in pairs if p.confusion_count >= settings.confusion_min]

    spots = []
    for pair in significant[: settings.max_confusion_spots]:
        severity = (
            Severity.CRITICAL
            if pair.confusion_count >= settings.confusion_critical_min
            else Severity.WARNING
        )
        affected = tuple(
            c.id
            for c in flashcards
            if pair.involves(answer_key(c.back)) or pair.involves(answer_key(c.front))
        )
        spots.append(
            WeakSpot(
                id=f"confusion-{slugify(pair.word1)}-{slugify(pair.word2)}",
                type=WeakSpotType.CONFUSION,
                target=f"{pair.word1} / {pair.word2}",
                severity=severity,
                score=float(min(100, pair.confusion_count * CONFUSION_SCORE_PER_EVENT)),
                description=f'Often confusing "{pair.word1}" with "{pair.word2}"',
                suggested_action="Practice these words separately to strengthen distinction",
                affected_card_ids=affected,
                detected_at=now,
            )
        )
    return spots


def detect_weak_spots(
    flashcards: Iterable[Flashcard],
    progress_map: ProgressMap,
    mistakes: Iterable[MistakeRecord],
    sessions: Iterable[SessionPerformanceRecord],
    confusion_pairs: Iterable[ConfusionPair],
    now: datetime | None = None,
    settings: WeakSpotSettings | None = None,
) -> list[WeakSpot]:
    """
    Run all four detectors and return their spots, highest score first.

    Args:
        flashcards: The learner's deck.
        progress_map: (card_id, direction) -> CardProgress.
        mistakes: Mistake log, oldest first.
        sessions: Session log, oldest first.
        confusion_pairs: Output of derive_confusion_pairs().

    Returns:
        A fresh list; previous results are never patched.
    """
    settings = settings or WeakSpotSettings()
    now = now or datetime.now()
    flashcards = list(flashcards)
    mistakes = list(mistakes)

    categories = analyze_category_performance(
        flashcards, progress_map, mistakes, now=now, settings=settings
    )
    by_detector = {
        WeakSpotType.CATEGORY: detect_category_weak_spots(flashcards, categories, now, settings),
        WeakSpotType.ERROR_TYPE: detect_error_type_weak_spots(mistakes, now, settings),
        WeakSpotType.TIME_BASED: detect_time_weak_spots(
            analyze_time_performance(sessions), now, settings
        ),
        WeakSpotType.CONFUSION: detect_confusion_weak_spots(
            list(confusion_pairs), flashcards, now, settings
        ),
    }

    spots = []
    for detector, found in by_detector.items():
        logger.debug(f"{detector.value} detector: {len(found)} weak spot(s)")
        spots.extend(found)

    # sorted() is stable, so ties keep detector order
    return sorted(spots, key=lambda s: s.score, reverse=True)
