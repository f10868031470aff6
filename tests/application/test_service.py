import asyncio
from datetime import timedelta

import pytest
from conftest import NOW, make_mistake, make_progress, make_session

from mnemos.application.factory import build_service
from mnemos.application.service import CardNotFoundError, StudyService
from mnemos.application.utils.text import MatchType
from mnemos.domain.adaptive.models import DifficultyProfile, TimeOfDay
from mnemos.domain.cards.models import Direction, ErrorType, StudyMode
from mnemos.infrastructure.adapters.memory import (
    InMemoryMistakeLog,
    InMemoryProgressStore,
    InMemorySessionLog,
)
from mnemos.infrastructure.adapters.snapshot import LearnerSnapshot

F, R = Direction.FORWARD, Direction.REVERSE


@pytest.fixture
def stores():
    return InMemoryProgressStore(), InMemoryMistakeLog(), InMemorySessionLog()


@pytest.fixture
def service(flashcards, stores):
    progress, mistakes, sessions = stores
    return StudyService(flashcards, progress, mistakes, sessions)


# --- Reviews ---


@pytest.mark.asyncio
async def test_review_with_quality_stores_progress(service, stores):
    outcome = await service.review("c1", F, quality=4, now=NOW)

    assert outcome.quality == 4
    assert outcome.progress.interval == 1
    assert outcome.progress.next_review_date == NOW.date() + timedelta(days=1)
    assert outcome.mistake is None
    assert await stores[0].get("c1", F) == outcome.progress
    assert await stores[0].get("c1", R) is None


@pytest.mark.asyncio
async def test_correct_typed_answer(service, stores):
    outcome = await service.review("c1", F, user_answer="casa", time_spent_ms=1500, now=NOW)

    assert outcome.match.match_type == MatchType.EXACT
    assert outcome.quality == 5
    assert await stores[1].query() == []


@pytest.mark.asyncio
async def test_wrong_answer_logs_mistake(service, stores):
    outcome = await service.review("c3", F, user_answer="gat", time_spent_ms=2000, now=NOW)

    assert outcome.quality == 1
    assert outcome.progress.repetitions == 0
    assert outcome.mistake.error_type == ErrorType.WRONG
    assert outcome.mistake.correct_answer == "gos"
    assert await stores[1].query(card_id="c3") == [outcome.mistake]


@pytest.mark.asyncio
async def test_accent_slip_is_acceptable_but_logged(service, stores):
    outcome = await service.review("c5", F, user_answer="cafe", time_spent_ms=1000, now=NOW)

    assert outcome.match.is_acceptable
    assert outcome.quality == 3
    assert outcome.mistake.error_type == ErrorType.ACCENT
    # The new mistake already shrinks the interval
    assert outcome.factors.mistake_recency < 1.0


@pytest.mark.asyncio
async def test_reverse_direction_expects_front(service):
    outcome = await service.review("c1", R, user_answer="house", time_spent_ms=1000, now=NOW)
    assert outcome.match.is_correct


@pytest.mark.asyncio
async def test_unknown_card(service):
    with pytest.raises(CardNotFoundError):
        await service.review("nope", F, quality=5, now=NOW)


@pytest.mark.asyncio
async def test_concurrent_reviews_of_same_key_are_serialized(service, stores):
    await asyncio.gather(*(service.review("c1", F, quality=5, now=NOW) for _ in range(5)))

    progress = await stores[0].get("c1", F)
    assert progress.total_reviews == 5
    assert progress.repetitions == 5


@pytest.mark.asyncio
async def test_concurrent_reviews_of_different_keys(service, stores):
    keys = [("c1", F), ("c1", R), ("c2", F), ("c3", R)]
    await asyncio.gather(*(service.review(c, d, quality=4, now=NOW) for c, d in keys))

    stored = await stores[0].all()
    assert set(stored) == set(keys)
    assert all(p.total_reviews == 1 for p in stored.values())


@pytest.mark.asyncio
async def test_fatigue_applies_late_in_session(service):
    await service.review("c1", F, quality=5, now=NOW)
    await service.review("c1", F, quality=5, now=NOW)
    fresh = await service.review("c2", F, quality=5, now=NOW)
    tired = await service.review("c1", F, quality=5, cards_reviewed_this_session=30, now=NOW)

    assert fresh.factors.fatigue == 1.0
    assert tired.factors.fatigue == pytest.approx(0.85)
    assert tired.progress.interval < tired.factors.base_interval


# --- Sessions and analysis ---


@pytest.mark.asyncio
async def test_record_session(service, stores):
    record = await service.record_session(
        StudyMode.FLIP,
        cards_reviewed=20,
        accuracy=85,
        average_quality=4.1,
        average_response_time_ms=3500,
        timestamp=NOW,
    )

    assert record.session_id.startswith("session_")
    assert record.time_of_day == TimeOfDay.MORNING
    assert await stores[2].list() == [record]


@pytest.mark.asyncio
async def test_analyze_reports_every_aggregate(flashcards):
    mistakes = [make_mistake(card_id="c1", error_type=ErrorType.ACCENT) for _ in range(10)]
    snapshot = LearnerSnapshot(
        flashcards=flashcards,
        progress=[make_progress("c1", total_reviews=3, correct_reviews=1, ease_factor=1.9)],
        mistakes=mistakes,
        sessions=[make_session(index=i) for i in range(6)],
    )
    service = build_service(snapshot)
    report = await service.analyze(now=NOW)

    assert report.generated_at == NOW
    assert [w.id for w in report.weak_spots] == ["error-accent"]
    assert report.error_patterns.accent_errors == 10
    assert report.learning_style.primary_style is not None
    assert len(report.time_performance) == 4
    assert report.difficulty.global_level == 5


@pytest.mark.asyncio
async def test_adjust_and_set_difficulty(flashcards):
    snapshot = LearnerSnapshot(
        flashcards=flashcards,
        progress=[],
        mistakes=[],
        sessions=[make_session(accuracy=40, index=i) for i in range(4)],
        difficulty=DifficultyProfile(global_level=6),
    )
    service = build_service(snapshot)

    profile = await service.adjust_difficulty(perfect_streak=0, now=NOW)
    assert profile.global_level == 5
    assert service.difficulty is profile

    manual = service.set_difficulty(9, "Learner asked for harder cards", now=NOW)
    assert manual.global_level == 9
    assert manual.adjustment_history[-1].reason == "Learner asked for harder cards"


@pytest.mark.asyncio
async def test_plan(service):
    await service.review("c1", F, quality=4, now=NOW - timedelta(days=2))
    result = await service.plan(target_cards=6, seed=3, now=NOW)

    comp = result.composition
    assert comp.total_cards == 6
    assert comp.new_cards + comp.review_cards + comp.weakness_cards == 6
    assert len(result.queue.items) == 6
    assert result.queue.shortfall == 0
    assert "daily-review" in [r.id for r in result.daily.recommendations]
