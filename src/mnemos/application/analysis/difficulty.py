"""
Global difficulty adjustment.

The profile is an immutable snapshot: callers pass the current one in and
persist whatever comes back. A level never moves more than one step per call
and never leaves [min_level, max_level].
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime

from mnemos.application.config import DifficultySettings
from mnemos.application.utils.common import clamp, mean, round_half_up
from mnemos.domain.adaptive.models import (
    DifficultyAdjustment,
    DifficultyProfile,
    SessionPerformanceRecord,
    Trend,
    TriggerMetrics,
)
from mnemos.domain.constants import REINFORCE_ACCURACY_CEILING, STRONG_STREAK_ACCURACY

logger = logging.getLogger(__name__)

EXCELLENT_REASON = "Excellent performance - increasing challenge"
STREAK_REASON = "Strong streak - you're ready for more"
FLOW_REASON = "Adjusting to improve learning flow"
REINFORCE_REASON = "Taking time to think - let's reinforce basics"


@dataclass(frozen=True)
class RecentMetrics:
    rolling_accuracy: float  # 0-100
    average_response_time_ms: float


def recent_metrics(
    sessions: list[SessionPerformanceRecord],
    window: int,
) -> RecentMetrics:
    """
    Recency-weighted accuracy and plain mean response time over the window.

    Session i (oldest first, 1-based) gets weight i, so the latest session
    counts most.
    """
    recent = sessions[-window:]
    weights = range(1, len(recent) + 1)
    weighted = sum(s.accuracy * w for s, w in zip(recent, weights))
    return RecentMetrics(
        rolling_accuracy=weighted / sum(weights) if recent else 0.0,
        average_response_time_ms=mean([s.average_response_time_ms for s in recent]),
    )


def propose_step(
    metrics: RecentMetrics,
    perfect_streak: int,
    settings: DifficultySettings,
) -> tuple[int, str | None]:
    """First matching rule wins: (+1 | -1 | 0, reason)."""
    accuracy = metrics.rolling_accuracy
    response = metrics.average_response_time_ms

    if (
        accuracy >= settings.accuracy_increase
        and response < settings.fast_response_ms
        and perfect_streak >= settings.excellent_streak
    ):
        return 1, EXCELLENT_REASON
    if accuracy >= STRONG_STREAK_ACCURACY and perfect_streak >= settings.strong_streak:
        return 1, STREAK_REASON
    if accuracy < settings.accuracy_decrease:
        return -1, FLOW_REASON
    if response > settings.slow_response_ms and accuracy < REINFORCE_ACCURACY_CEILING:
        return -1, REINFORCE_REASON
    return 0, None


def smooth_level(current: int, proposed: int, settings: DifficultySettings) -> int:
    """
    Blend the proposed level into the current one, then clamp.

    A blend that rounds back to the current level still moves one step toward
    the proposal; the blend only damps larger jumps.
    """
    alpha = settings.smoothing_factor
    level = round_half_up(current * (1 - alpha) + proposed * alpha)
    if level == current and proposed != current:
        level = current + (1 if proposed > current else -1)
    return int(clamp(level, settings.min_level, settings.max_level))


def _record(
    profile: DifficultyProfile,
    new_level: int,
    reason: str,
    now: datetime,
    metrics: TriggerMetrics | None,
    settings: DifficultySettings,
) -> DifficultyProfile:
    adjustment = DifficultyAdjustment(
        timestamp=now,
        previous_level=profile.global_level,
        new_level=new_level,
        reason=reason,
        trigger_metrics=metrics,
    )
    history = (profile.adjustment_history + (adjustment,))[-settings.history_size :]
    if new_level > profile.global_level:
        trend = Trend.UP
    elif new_level < profile.global_level:
        trend = Trend.DOWN
    else:
        trend = Trend.STABLE

    logger.info(f"Difficulty adjusted: {profile.global_level} -> {new_level} ({reason})")
    return replace(
        profile,
        global_level=new_level,
        recent_trend=trend,
        last_adjustment=now,
        adjustment_history=history,
    )


def adjust_difficulty(
    profile: DifficultyProfile,
    recent_sessions: list[SessionPerformanceRecord],
    perfect_streak: int,
    now: datetime | None = None,
    settings: DifficultySettings | None = None,
) -> DifficultyProfile:
    """
    Re-evaluate the global difficulty level from recent sessions.

    Args:
        profile: Current difficulty snapshot.
        recent_sessions: Session log, oldest first.
        perfect_streak: Current run of perfect answers.

    Returns:
        The input profile when there are too few sessions or nothing changes,
        otherwise a new profile with one more history entry. An out-of-range
        level is clamped to the configured bounds first.
    """
    settings = settings or DifficultySettings()
    current = int(clamp(profile.global_level, settings.min_level, settings.max_level))
    if current != profile.global_level:
        logger.debug(f"Difficulty level {profile.global_level} out of range, using {current}")
        profile = replace(profile, global_level=current)
    if len(recent_sessions) < settings.min_sessions:
        return profile

    metrics = recent_metrics(recent_sessions, settings.window)
    step, reason = propose_step(metrics, perfect_streak, settings)
    if step == 0 or reason is None:
        return profile

    proposed = int(clamp(current + step, settings.min_level, settings.max_level))
    new_level = smooth_level(current, proposed, settings)
    if new_level == current:
        return profile

    trigger = TriggerMetrics(
        recent_accuracy=metrics.rolling_accuracy,
        average_response_time_ms=metrics.average_response_time_ms,
        streak_length=perfect_streak,
    )
    return _record(profile, new_level, reason, now or datetime.now(), trigger, settings)


def set_difficulty_level(
    profile: DifficultyProfile,
    level: int,
    reason: str = "Manual adjustment",
    now: datetime | None = None,
    settings: DifficultySettings | None = None,
) -> DifficultyProfile:
    """Manual override. Clamped to the configured bounds and recorded in history."""
    settings = settings or DifficultySettings()
    level = int(clamp(level, settings.min_level, settings.max_level))
    if level == profile.global_level:
        return profile
    return _record(profile, level, reason, now or datetime.now(), None, settings)
