from datetime import date, datetime, timedelta

import pytest

from mnemos.application.config import SchedulingSettings
from mnemos.application.scheduling.sm2 import schedule
from mnemos.application.scheduling.smart import (
    ScheduleContext,
    apply_factors,
    category_factor,
    compute_factors,
    expected_answer,
    fatigue_factor,
    interference_factor,
    mistake_recency_factor,
    schedule_smart,
    time_of_day_factor,
)
from mnemos.domain.adaptive.models import (
    CategoryPerformance,
    PerformanceTrend,
    ScheduleFactors,
    TimeOfDay,
    TimePerformance,
)
from mnemos.domain.cards.models import (
    CardProgress,
    ConfusionPair,
    Direction,
    ErrorType,
    Flashcard,
    MistakeRecord,
)

NOW = datetime(2024, 3, 15, 19, 0)  # evening
TODAY = NOW.date()
SETTINGS = SchedulingSettings()

CARD = Flashcard(id="c1", front="house", back="Casa", category="Home")


def time_perf(bucket, accuracy, score, sessions=3):
    return TimePerformance(bucket, sessions, accuracy, 3000.0, 20.0, score)


def category_perf(ease, reviewed=5):
    return CategoryPerformance(
        category="Home",
        total_cards=5,
        reviewed_cards=reviewed,
        correct_count=10,
        incorrect_count=5,
        average_ease_factor=ease,
        mastered_count=0,
        struggling_count=0,
        last_reviewed=None,
        error_distribution={t: 0 for t in ErrorType},
        trend=PerformanceTrend.STABLE,
        confidence_score=30.0,
    )


def mistake(card_id="c1", days_ago=1):
    return MistakeRecord(
        card_id=card_id,
        direction=Direction.FORWARD,
        timestamp=NOW - timedelta(days=days_ago),
        error_type=ErrorType.WRONG,
        user_answer="cosa",
        correct_answer="casa",
    )


@pytest.fixture
def progress():
    return CardProgress(
        card_id="c1",
        direction=Direction.FORWARD,
        interval=6,
        repetitions=2,
        next_review_date=TODAY,
        total_reviews=2,
        correct_reviews=2,
    )


# --- Individual factors ---


def test_time_of_day_factor_scales_with_accuracy():
    performances = [
        time_perf(TimeOfDay.MORNING, 90.0, 80.0),
        time_perf(TimeOfDay.EVENING, 45.0, 40.0),
    ]
    value, reason = time_of_day_factor(performances, NOW, SETTINGS)
    assert value == pytest.approx(0.9)
    assert "evening" in reason

    morning = NOW.replace(hour=9)
    assert time_of_day_factor(performances, morning, SETTINGS) == (1.0, None)


def test_time_of_day_factor_without_data():
    assert time_of_day_factor([], NOW, SETTINGS) == (1.0, None)
    performances = [time_perf(TimeOfDay.MORNING, 90.0, 80.0)]
    assert time_of_day_factor(performances, NOW, SETTINGS) == (1.0, None)


def test_category_factor_range():
    hard, reason = category_factor(CARD, [category_perf(1.3)], SETTINGS)
    assert hard == pytest.approx(0.85)
    assert "harder" in reason

    easy, reason = category_factor(CARD, [category_perf(3.0)], SETTINGS)
    assert easy == pytest.approx(1.1)
    assert "easier" in reason


def test_category_factor_neutral_without_reviews():
    assert category_factor(CARD, [category_perf(1.3, reviewed=0)], SETTINGS) == (1.0, None)
    assert category_factor(CARD, [], SETTINGS) == (1.0, None)


def test_mistake_recency_factor():
    value, reason = mistake_recency_factor(CARD, [mistake(), mistake()], NOW, SETTINGS)
    assert value == pytest.approx(0.8)
    assert "2 mistakes" in reason

    many = [mistake() for _ in range(6)]
    assert mistake_recency_factor(CARD, many, NOW, SETTINGS)[0] == pytest.approx(0.7)


def test_mistake_recency_ignores_old_and_other_cards():
    mistakes = [mistake(days_ago=10), mistake(card_id="c2")]
    assert mistake_recency_factor(CARD, mistakes, NOW, SETTINGS) == (1.0, None)


def test_interference_factor_uses_normalized_answer():
    pairs = [ConfusionPair("casa", "cosa", 3, NOW)]
    value, reason = interference_factor("Casa", pairs, SETTINGS)
    assert value == pytest.approx(0.9)
    assert "often confused" in reason
    assert interference_factor("gos", pairs, SETTINGS) == (1.0, None)


def test_fatigue_factor():
    assert fatigue_factor(15, SETTINGS) == (1.0, None)
    assert fatigue_factor(17, SETTINGS)[0] == pytest.approx(0.9)
    assert fatigue_factor(40, SETTINGS)[0] == pytest.approx(0.85)


def test_expected_answer_depends_on_direction():
    assert expected_answer(CARD, Direction.FORWARD) == "Casa"
    assert expected_answer(CARD, Direction.REVERSE) == "house"


# --- Composition ---


def test_neutral_context_keeps_base_interval(progress):
    factors = compute_factors(CARD, progress, 5, ScheduleContext(now=NOW))
    assert factors.base_interval == schedule(progress, 5, today=TODAY).interval
    assert factors.combined_multiplier == 1.0
    assert factors.reasons == ()
    assert apply_factors(factors) == factors.base_interval


def test_factors_stay_in_range_and_interval_at_least_one(progress):
    context = ScheduleContext(
        time_performances=[
            time_perf(TimeOfDay.MORNING, 100.0, 90.0),
            time_perf(TimeOfDay.EVENING, 0.0, 10.0),
        ],
        category_performances=[category_perf(1.3)],
        recent_mistakes=[mistake() for _ in range(5)],
        confusion_pairs=[ConfusionPair("casa", "cosa", 4, NOW)],
        cards_reviewed_this_session=50,
        now=NOW,
    )
    fresh = CardProgress(card_id="c1", direction=Direction.FORWARD, next_review_date=TODAY)
    factors = compute_factors(CARD, fresh, 4, context)

    assert 0.8 <= factors.time_of_day <= 1.0
    assert 0.85 <= factors.category_difficulty <= 1.1
    assert 0.7 <= factors.mistake_recency <= 1.0
    assert factors.interference == pytest.approx(0.9)
    assert 0.85 <= factors.fatigue <= 1.0
    assert len(factors.reasons) == 5
    assert apply_factors(factors) == 1


def test_factors_are_independent(progress):
    """Changing one input moves exactly one factor."""
    base = ScheduleContext(now=NOW)
    tired = ScheduleContext(now=NOW, cards_reviewed_this_session=20)

    a = compute_factors(CARD, progress, 4, base)
    b = compute_factors(CARD, progress, 4, tired)
    assert b.fatigue < a.fatigue
    assert (a.time_of_day, a.category_difficulty, a.mistake_recency, a.interference) == (
        b.time_of_day,
        b.category_difficulty,
        b.mistake_recency,
        b.interference,
    )


def test_apply_factors_clamps_to_max_interval():
    factors = ScheduleFactors(base_interval=365, category_difficulty=1.1)
    assert apply_factors(factors) == 365
    assert apply_factors(factors, max_interval_days=100) == 100


def test_schedule_smart_replaces_interval_only(progress):
    context = ScheduleContext(cards_reviewed_this_session=17, now=NOW)
    plain = schedule(progress, 5, today=TODAY)
    updated, factors = schedule_smart(CARD, progress, 5, context, today=TODAY)

    assert plain.interval == 16
    assert factors.fatigue == pytest.approx(0.9)
    assert updated.interval == 14
    assert updated.next_review_date == date(2024, 3, 29)
    assert updated.ease_factor == plain.ease_factor
    assert updated.repetitions == plain.repetitions
    assert updated.mastery_level == plain.mastery_level
