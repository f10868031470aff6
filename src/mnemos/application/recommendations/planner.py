"""
Daily recommendations and session planning.

Builds what the learner should do next by:
1. Ranking recommendations (streak, critical drills, boot camp, reviews, new cards)
2. Splitting a session into new / review / weakness cards and study modes
3. Filling those buckets with concrete (card, direction) keys

Every ratio is a deterministic function of its inputs. Only the order of
cards inside a bucket may be shuffled, and only when a seed is given.
"""

import logging
import math
import random
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable

from mnemos.application.analysis.learning_style import STYLE_MODE_MAPPING
from mnemos.application.analysis.performance import ProgressMap
from mnemos.application.config import LearningStyleSettings, RecommendationSettings
from mnemos.application.utils.common import clamp, round_half_up
from mnemos.domain.adaptive.models import (
    DailyRecommendation,
    DifficultyDistribution,
    LearningStyleProfile,
    RecommendationType,
    SessionComposition,
    Severity,
    StudyRecommendation,
    TimeOfDay,
    TimePerformance,
    WeakSpot,
    WeakSpotType,
)
from mnemos.domain.cards.models import Direction, Flashcard, ProgressKey, StudyMode
from mnemos.domain.constants import (
    BOOT_CAMP_CARDS,
    BOOT_CAMP_MINUTES,
    DRILL_MINUTES,
    MAX_DIFFICULTY_LEVEL,
    MAX_DRILL_CARDS,
    MAX_FOCUS_AREAS,
    MAX_OPTIMAL_TIME_SLOTS,
    MIN_DIFFICULTY_LEVEL,
    STREAK_PROTECTION_MAX_CARDS,
    STREAK_PROTECTION_MINUTES,
)

logger = logging.getLogger(__name__)

DEFAULT_TIME_SLOTS = (TimeOfDay.MORNING, TimeOfDay.EVENING)


# ---------- Card state helpers ----------


def is_new_pair(progress_map: ProgressMap, key: ProgressKey) -> bool:
    progress = progress_map.get(key)
    return progress is None or progress.total_reviews == 0


def due_keys(
    flashcards: Iterable[Flashcard],
    progress_map: ProgressMap,
    today: date,
) -> list[ProgressKey]:
    """Reviewed pairs due on or before ``today``, most overdue first."""
    keys = []
    for card in flashcards:
        for direction in Direction:
            progress = progress_map.get((card.id, direction))
            if progress and progress.total_reviews > 0 and progress.next_review_date <= today:
                keys.append(progress.key)
    return sorted(keys, key=lambda k: progress_map[k].next_review_date)


def new_card_ids(flashcards: Iterable[Flashcard], progress_map: ProgressMap) -> list[str]:
    """Cards never reviewed in either direction."""
    return [
        card.id
        for card in flashcards
        if all(is_new_pair(progress_map, (card.id, d)) for d in Direction)
    ]


# ---------- Daily recommendations ----------


def generate_daily_recommendations(
    weak_spots: list[WeakSpot],
    flashcards: list[Flashcard],
    progress_map: ProgressMap,
    time_performances: list[TimePerformance],
    current_streak: int = 0,
    last_study_date: date | None = None,
    daily_goal: int | None = None,
    now: datetime | None = None,
    settings: RecommendationSettings | None = None,
) -> DailyRecommendation:
    """
    Priority-ordered study plan for today (1 = most urgent).

    Args:
        weak_spots: Output of detect_weak_spots(), highest score first.
        flashcards: The learner's deck.
        progress_map: (card_id, direction) -> CardProgress.
        time_performances: Output of analyze_time_performance().
        current_streak: Consecutive study days so far.
        last_study_date: Day of the last completed session, if any.
        daily_goal: Cards per day; defaults to settings.daily_goal.

    Returns:
        A DailyRecommendation capped at ``settings.max_daily`` entries. Each
        entry carries its reasoning string.
    """
    settings = settings or RecommendationSettings()
    now = now or datetime.now()
    today = now.date()
    goal = daily_goal if daily_goal is not None else settings.daily_goal
    recommendations: list[StudyRecommendation] = []

    if current_streak >= settings.streak_risk_days and last_study_date != today:
        recommendations.append(
            StudyRecommendation(
                id="streak-protect",
                priority=1,
                type=RecommendationType.STREAK_PROTECTION,
                title="Protect Your Streak!",
                description=(
                    f"You're on a {current_streak}-day streak. Complete a quick review!"
                ),
                suggested_card_count=min(STREAK_PROTECTION_MAX_CARDS, math.ceil(goal / 2)),
                estimated_time_minutes=STREAK_PROTECTION_MINUTES,
                expected_benefit="Maintain learning momentum",
                reasoning=(
                    f"A {current_streak}-day streak has not been extended today; "
                    "streak protection is key to long-term success"
                ),
            )
        )

    critical = [w for w in weak_spots if w.severity == Severity.CRITICAL]
    for spot in critical[: settings.max_critical_drills]:
        recommendations.append(
            StudyRecommendation(
                id=f"weakness-{spot.id}",
                priority=2,
                type=RecommendationType.WEAKNESS_DRILL,
                title=f"Focus on {spot.target}",
                description=spot.description,
                suggested_card_count=min(MAX_DRILL_CARDS, len(spot.affected_card_ids)),
                estimated_time_minutes=DRILL_MINUTES,
                expected_benefit=spot.suggested_action,
                reasoning=f"This area needs attention (score: {round(spot.score)})",
                target_category=spot.target if spot.type == WeakSpotType.CATEGORY else None,
            )
        )

    warning_categories = [
        w
        for w in weak_spots
        if w.type == WeakSpotType.CATEGORY and w.severity == Severity.WARNING
    ]
    if warning_categories:
        top = warning_categories[0]
        recommendations.append(
            StudyRecommendation(
                id=f"category-focus-{top.id.removeprefix('category-')}",
                priority=3,
                type=RecommendationType.CATEGORY_FOCUS,
                title=f"{top.target} Boot Camp",
                description=(
                    f"Intensive practice to strengthen your {top.target.lower()} vocabulary"
                ),
                suggested_card_count=BOOT_CAMP_CARDS,
                estimated_time_minutes=BOOT_CAMP_MINUTES,
                expected_benefit="Build confidence in this category",
                reasoning=(
                    f"{top.target} is the weakest warning-level category "
                    f"(score: {round(top.score)}); focused practice accelerates mastery"
                ),
                target_category=top.target,
            )
        )

    due_count = len(due_keys(flashcards, progress_map, today))
    if due_count > 0:
        count = min(due_count, goal)
        recommendations.append(
            StudyRecommendation(
                id="daily-review",
                priority=4,
                type=RecommendationType.REVIEW_DUE,
                title="Daily Review",
                description=f"{due_count} cards are waiting for review",
                suggested_card_count=count,
                estimated_time_minutes=math.ceil(count * settings.seconds_per_card / 60),
                expected_benefit="Maintain and strengthen memory",
                reasoning="Consistent review is the core of spaced repetition",
            )
        )

    new_count = len(new_card_ids(flashcards, progress_map))
    if new_count > 0 and due_count < goal * settings.new_card_capacity_ratio:
        count = min(settings.new_card_suggestion_max, new_count)
        recommendations.append(
            StudyRecommendation(
                id="new-cards",
                priority=5,
                type=RecommendationType.NEW_CARDS,
                title="Learn New Words",
                description=f"{new_count} new words available to learn",
                suggested_card_count=count,
                estimated_time_minutes=count * settings.minutes_per_new_card,
                expected_benefit="Expand your vocabulary",
                reasoning=(
                    f"Only {due_count} reviews are due against a goal of {goal}, "
                    "so there is room to introduce new cards gradually"
                ),
            )
        )

    kept = tuple(recommendations[: settings.max_daily])
    slots = sorted(
        (t for t in time_performances if t.sessions_count > 0),
        key=lambda t: t.optimal_score,
        reverse=True,
    )[:MAX_OPTIMAL_TIME_SLOTS]

    logger.debug(f"{len(kept)} recommendation(s) for {today}, {due_count} due, {new_count} new")
    return DailyRecommendation(
        id=f"daily-{today.isoformat()}",
        date=today,
        recommendations=kept,
        focus_areas=tuple(w.target for w in weak_spots[:MAX_FOCUS_AREAS]),
        suggested_duration_minutes=sum(r.estimated_time_minutes for r in kept),
        optimal_time_slots=tuple(t.time_of_day for t in slots) or DEFAULT_TIME_SLOTS,
        generated_at=now,
    )


# ---------- Session composition ----------


@dataclass
class CandidateBuckets:
    """Ordered candidate keys per bucket, before any counts are applied."""

    weakness: list[ProgressKey]
    new: list[ProgressKey]
    review: list[ProgressKey]


def weakness_card_ids(weak_spots: Iterable[WeakSpot]) -> list[str]:
    """Affected card ids across all weak spots, deduplicated in score order."""
    return list(dict.fromkeys(cid for spot in weak_spots for cid in spot.affected_card_ids))


def candidate_buckets(
    flashcards: list[Flashcard],
    progress_map: ProgressMap,
    weak_spots: list[WeakSpot],
    today: date,
) -> CandidateBuckets:
    """
    Weakness: one key per affected card, its lower-ease direction first.
    New: never-reviewed pairs in deck order.
    Review: due pairs (most overdue first), then other reviewed pairs by due date.
    """
    known = {card.id for card in flashcards}

    def ease(key: ProgressKey) -> float:
        progress = progress_map.get(key)
        return progress.ease_factor if progress else float("inf")

    weakness = []
    for card_id in weakness_card_ids(weak_spots):
        if card_id in known:
            weakness.append(min(((card_id, d) for d in Direction), key=ease))

    new = [
        (card.id, d)
        for card in flashcards
        for d in Direction
        if is_new_pair(progress_map, (card.id, d))
    ]

    due = due_keys(flashcards, progress_map, today)
    due_set = set(due)
    later = sorted(
        (
            (card.id, d)
            for card in flashcards
            for d in Direction
            if not is_new_pair(progress_map, (card.id, d)) and (card.id, d) not in due_set
        ),
        key=lambda k: progress_map[k].next_review_date,
    )
    return CandidateBuckets(weakness=weakness, new=new, review=due + later)


def mode_breakdown(
    total: int,
    profile: LearningStyleProfile,
    primary_ratio: float,
    secondary_ratio: float,
) -> dict[StudyMode, int]:
    """
    Primary style's lead mode gets ceil(total * primary_ratio), the secondary
    style's first distinct mode ceil(total * secondary_ratio), the rest is mixed.
    """
    breakdown = {mode: 0 for mode in StudyMode}
    if profile.primary_style is None:
        breakdown[StudyMode.MIXED] = total
        return breakdown

    primary_mode = STYLE_MODE_MAPPING[profile.primary_style][0]
    primary = min(total, math.ceil(total * primary_ratio))
    breakdown[primary_mode] = primary

    secondary = 0
    if profile.secondary_style is not None:
        secondary_mode = next(
            (m for m in STYLE_MODE_MAPPING[profile.secondary_style] if m != primary_mode),
            None,
        )
        if secondary_mode is not None:
            secondary = min(total - primary, math.ceil(total * secondary_ratio))
            breakdown[secondary_mode] = secondary

    breakdown[StudyMode.MIXED] = total - primary - secondary
    return breakdown


def difficulty_distribution(total: int, difficulty_level: int) -> DifficultyDistribution:
    """The hard share grows and the easy share shrinks as difficulty rises."""
    difficulty_level = int(clamp(difficulty_level, MIN_DIFFICULTY_LEVEL, MAX_DIFFICULTY_LEVEL))
    easy_ratio = max(0.2, 0.5 - difficulty_level * 0.03)
    hard_ratio = min(0.5, 0.1 + difficulty_level * 0.04)
    easy = round_half_up(total * easy_ratio)
    hard = round_half_up(total * hard_ratio)
    return DifficultyDistribution(easy=easy, medium=total - easy - hard, hard=hard)


def generate_session_composition(
    flashcards: list[Flashcard],
    progress_map: ProgressMap,
    weak_spots: list[WeakSpot],
    difficulty_level: int,
    learning_style: LearningStyleProfile,
    target_cards: int | None = None,
    today: date | None = None,
    settings: RecommendationSettings | None = None,
    style_settings: LearningStyleSettings | None = None,
) -> SessionComposition:
    """
    Card and mode mix for the next session.

    new = min(ceil(total * new_ratio), available new pairs), where new_ratio
    drops at advanced difficulty; weakness = min(ceil(total * weakness_ratio),
    weak cards, total - new); review fills the remainder. The bucket counts,
    the mode counts and the easy/medium/hard counts each sum to ``total_cards``.
    """
    settings = settings or RecommendationSettings()
    style_settings = style_settings or LearningStyleSettings()
    today = today or date.today()
    target = target_cards if target_cards is not None else settings.session_cards
    total = max(0, min(target, len(flashcards) * len(Direction)))

    buckets = candidate_buckets(flashcards, progress_map, weak_spots, today)
    advanced = difficulty_level >= settings.advanced_level
    new_ratio = settings.new_ratio_advanced if advanced else settings.new_ratio_beginner

    new = min(math.ceil(total * new_ratio), len(buckets.new))
    weakness = min(math.ceil(total * settings.weakness_ratio), len(buckets.weakness), total - new)
    review = total - new - weakness

    queue = fill_session_queue(buckets, new, review, weakness)
    category_of = {card.id: card.category for card in flashcards}
    categories: dict[str, int] = {}
    for item in queue.items:
        category = category_of[item.card_id]
        categories[category] = categories.get(category, 0) + 1

    return SessionComposition(
        total_cards=total,
        new_cards=new,
        review_cards=review,
        weakness_cards=weakness,
        category_breakdown=categories,
        mode_breakdown=mode_breakdown(
            total,
            learning_style,
            style_settings.primary_ratio,
            style_settings.secondary_ratio,
        ),
        estimated_duration_minutes=math.ceil(total * settings.seconds_per_card / 60),
        difficulty_distribution=difficulty_distribution(total, difficulty_level),
    )


# ---------- Session queue ----------


@dataclass(frozen=True)
class QueueItem:
    card_id: str
    direction: Direction
    bucket: str  # "weakness", "new" or "review"


@dataclass
class SessionQueue:
    """Result of filling a composition with concrete cards."""

    items: list[QueueItem] = field(default_factory=list)
    shortfall: int = 0  # Slots no candidate could fill


def _take(
    candidates: list[ProgressKey],
    count: int,
    used: set[ProgressKey],
    bucket: str,
) -> list[QueueItem]:
    picked = []
    for key in candidates:
        if len(picked) >= count:
            break
        if key in used:
            continue
        used.add(key)
        picked.append(QueueItem(key[0], key[1], bucket))
    return picked


def fill_session_queue(
    buckets: CandidateBuckets,
    new: int,
    review: int,
    weakness: int,
    rng: random.Random | None = None,
) -> SessionQueue:
    """
    Take cards for each bucket, weakness first so drills are never crowded out.

    A short review bucket is topped up from unused new pairs, so a fresh deck
    still yields a full session. Remaining gaps are reported as shortfall.
    """
    if rng is not None:
        buckets = CandidateBuckets(
            weakness=rng.sample(buckets.weakness, len(buckets.weakness)),
            new=rng.sample(buckets.new, len(buckets.new)),
            review=rng.sample(buckets.review, len(buckets.review)),
        )

    used: set[ProgressKey] = set()
    items = _take(buckets.weakness, weakness, used, "weakness")
    items += _take(buckets.new, new, used, "new")
    reviews = _take(buckets.review, review, used, "review")
    items += reviews
    if len(reviews) < review:
        items += _take(buckets.new, review - len(reviews), used, "new")

    total = new + review + weakness
    return SessionQueue(items=items, shortfall=max(0, total - len(items)))


def build_session_queue(
    composition: SessionComposition,
    flashcards: list[Flashcard],
    progress_map: ProgressMap,
    weak_spots: list[WeakSpot],
    today: date | None = None,
    seed: int | None = None,
) -> SessionQueue:
    """
    Concrete (card, direction) keys for a composition.

    Args:
        composition: Output of generate_session_composition().
        seed: When given, cards are shuffled within each bucket using
            random.Random(seed). The bucket sizes never change.

    Returns:
        SessionQueue with items in weakness, new, review order.
    """
    buckets = candidate_buckets(flashcards, progress_map, weak_spots, today or date.today())
    rng = random.Random(seed) if seed is not None else None
    queue = fill_session_queue(
        buckets,
        composition.new_cards,
        composition.review_cards,
        composition.weakness_cards,
        rng=rng,
    )
    if queue.shortfall:
        logger.warning(f"Session queue is {queue.shortfall} card(s) short of the composition")
    return queue
