from datetime import date

from mnemos.application.scheduling.mastery import (
    advance_mastery,
    allowed_modes,
    filter_allowed_modes,
    is_mode_allowed,
    level_progress,
    mode_recommendation,
    next_level_requirement,
)
from mnemos.application.scheduling.sm2 import create_initial_progress, schedule
from mnemos.domain.cards.models import Direction, StudyMode


def test_three_successes_advance_one_level():
    assert advance_mastery(0, 0, True, 4) == (0, 1)
    assert advance_mastery(0, 1, True, 4) == (0, 2)
    assert advance_mastery(0, 2, True, 4) == (1, 0)


def test_failure_resets_counter_without_demotion():
    assert advance_mastery(3, 2, False, 1) == (3, 0)
    assert advance_mastery(2, 1, True, 2) == (2, 0)


def test_level_capped_at_mastered():
    assert advance_mastery(4, 2, True, 5) == (4, 3)


def test_schedule_tracks_mastery():
    progress = create_initial_progress("c1", Direction.FORWARD, today=date(2024, 1, 1))
    for _ in range(3):
        progress = schedule(progress, 5, today=date(2024, 1, 1))
    assert progress.mastery_level == 1
    assert progress.consecutive_correct == 0

    failed = schedule(progress, 1, today=date(2024, 1, 1))
    assert failed.mastery_level == 1


def test_allowed_modes_grow_with_level():
    assert allowed_modes(0) == [StudyMode.MULTIPLE_CHOICE]
    assert is_mode_allowed(StudyMode.FLIP, 2)
    assert not is_mode_allowed(StudyMode.FLIP, 1)
    assert StudyMode.DICTATION in allowed_modes(4)
    # Out-of-range levels clamp
    assert allowed_modes(9) == allowed_modes(4)


def test_filter_allowed_modes():
    modes = [StudyMode.FLIP, StudyMode.TYPE_ANSWER, StudyMode.SPEAK]
    assert filter_allowed_modes(modes, 1) == [StudyMode.TYPE_ANSWER]


def test_level_progress_and_requirement():
    assert level_progress(1, 0) == 33
    assert level_progress(0, 4) == 100
    assert next_level_requirement(4, 0) is None
    assert next_level_requirement(0, 2) == (
        "1 more correct answer to reach Learning. Unlocks: type-answer"
    )


def test_mode_recommendation():
    mode, reason = mode_recommendation(0)
    assert mode == StudyMode.MULTIPLE_CHOICE
    assert reason
