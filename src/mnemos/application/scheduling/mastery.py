"""
Mastery levels gate which study modes a card is offered in.

Levels only move up: a failure resets the consecutive counter but never
demotes the card. This ladder is independent of the global difficulty level.
"""

from mnemos.domain.cards.models import StudyMode
from mnemos.domain.constants import (
    MASTERY_ADVANCEMENT_THRESHOLD,
    MAX_MASTERY_LEVEL,
    PASSING_QUALITY,
)

M = StudyMode

MODES_BY_LEVEL: dict[int, list[StudyMode]] = {
    0: [M.MULTIPLE_CHOICE],
    1: [M.MULTIPLE_CHOICE, M.TYPE_ANSWER],
    2: [M.MULTIPLE_CHOICE, M.TYPE_ANSWER, M.FLIP],
    3: [M.MULTIPLE_CHOICE, M.TYPE_ANSWER, M.FLIP, M.LISTENING, M.SPEAK],
    4: [
        M.MULTIPLE_CHOICE,
        M.TYPE_ANSWER,
        M.FLIP,
        M.LISTENING,
        M.SPEAK,
        M.MIXED,
        M.SENTENCES,
        M.DICTATION,
    ],
}

LEVEL_NAMES = {0: "New", 1: "Learning", 2: "Practicing", 3: "Advanced", 4: "Mastered"}

DEFAULT_MODE_BY_LEVEL = {
    0: (M.MULTIPLE_CHOICE, "Start with multiple choice to learn the basics"),
    1: (M.TYPE_ANSWER, "Practice typing to strengthen recall"),
    2: (M.FLIP, "Use flashcards for quick review"),
    3: (M.LISTENING, "Train your listening skills"),
    4: (M.MIXED, "Challenge yourself with all modes"),
}


def _level(level: int) -> int:
    return max(0, min(MAX_MASTERY_LEVEL, int(level)))


def advance_mastery(
    level: int,
    consecutive_correct: int,
    was_correct: bool,
    quality: int,
) -> tuple[int, int]:
    """
    Compute (new_level, new_consecutive) after one answer.

    Three qualifying successes in a row advance the level by one and reset
    the counter; any failure resets the counter without demoting.
    """
    level = _level(level)
    if not was_correct or quality < PASSING_QUALITY:
        return level, 0

    consecutive = consecutive_correct + 1
    if consecutive >= MASTERY_ADVANCEMENT_THRESHOLD and level < MAX_MASTERY_LEVEL:
        return level + 1, 0
    return level, consecutive


def allowed_modes(level: int) -> list[StudyMode]:
    return list(MODES_BY_LEVEL[_level(level)])


def is_mode_allowed(mode: StudyMode, level: int) -> bool:
    return mode in MODES_BY_LEVEL[_level(level)]


def filter_allowed_modes(modes: list[StudyMode], level: int) -> list[StudyMode]:
    allowed = MODES_BY_LEVEL[_level(level)]
    return [m for m in modes if m in allowed]


def mode_recommendation(level: int) -> tuple[StudyMode, str]:
    return DEFAULT_MODE_BY_LEVEL[_level(level)]


def level_progress(consecutive_correct: int, level: int) -> int:
    """Percentage of the way to the next level (100 at full mastery)."""
    if _level(level) >= MAX_MASTERY_LEVEL:
        return 100
    return min(100, round(consecutive_correct / MASTERY_ADVANCEMENT_THRESHOLD * 100))


def next_level_requirement(level: int, consecutive_correct: int) -> str | None:
    level = _level(level)
    if level >= MAX_MASTERY_LEVEL:
        return None

    remaining = MASTERY_ADVANCEMENT_THRESHOLD - consecutive_correct
    next_level = level + 1
    unlocked = [m.value for m in MODES_BY_LEVEL[next_level] if m not in MODES_BY_LEVEL[level]]
    plural = "" if remaining == 1 else "s"
    text = f"{remaining} more correct answer{plural} to reach {LEVEL_NAMES[next_level]}."
    if unlocked:
        text += f" Unlocks: {', '.join(unlocked)}"
    return text
