"""Map answer outcomes to the 0-5 SM-2 quality scale."""

from mnemos.application.utils.text import MatchResult
from mnemos.domain.constants import (
    CHOICE_FAST_SECONDS,
    CHOICE_NORMAL_SECONDS,
    TYPED_FAST_SECONDS,
    TYPED_NORMAL_SECONDS,
)

WRONG_QUALITY = 1
HESITANT_QUALITY = 3


def quality_from_answer(is_correct: bool, is_acceptable: bool, time_spent_ms: float) -> int:
    """
    Typed answers.

    wrong -> 1, acceptable but imperfect -> 3, correct under 3 s -> 5,
    under 6 s -> 4, slower -> 3.
    """
    if not is_correct and not is_acceptable:
        return WRONG_QUALITY
    if not is_correct:
        return HESITANT_QUALITY

    seconds = time_spent_ms / 1000
    if seconds < TYPED_FAST_SECONDS:
        return 5
    if seconds < TYPED_NORMAL_SECONDS:
        return 4
    return HESITANT_QUALITY


def quality_from_choice(is_correct: bool, time_spent_ms: float) -> int:
    """Multiple choice: wrong -> 1, under 2 s -> 5, under 4 s -> 4, slower -> 3."""
    if not is_correct:
        return WRONG_QUALITY

    seconds = time_spent_ms / 1000
    if seconds < CHOICE_FAST_SECONDS:
        return 5
    if seconds < CHOICE_NORMAL_SECONDS:
        return 4
    return HESITANT_QUALITY


def quality_from_match(result: MatchResult, time_spent_ms: float) -> int:
    return quality_from_answer(result.is_correct, result.is_acceptable, time_spent_ms)
