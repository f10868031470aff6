"""
Mistake-log analysis: error classification, confusion pairs and weakness decks.

Confusion pairs are a derived view, recomputed from the full mistake history
on every call and never patched incrementally.
"""

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Mapping

from mnemos.application.utils.text import similarity, strip_accents
from mnemos.domain.cards.models import (
    CardProgress,
    ConfusionPair,
    Direction,
    ErrorPatternAnalysis,
    ErrorType,
    Flashcard,
    Gender,
    MistakeRecord,
)
from mnemos.domain.constants import (
    MAX_CONFUSION_PAIRS,
    MIN_CONFUSION_ANSWER_LENGTH,
    MIN_CONFUSION_COUNT,
    SPELLING_SIMILARITY_THRESHOLD,
    WEAKNESS_DECK_LIMIT,
)


def answer_key(text: str) -> str:
    """Normalized form shared by confusion pairs and interference checks."""
    return text.lower().strip()


GENDER_MARKERS = {
    Gender.MASCULINE: ("el ", "un ", "lo "),
    Gender.FEMININE: ("la ", "una "),
}


def classify_mistake(
    user_answer: str,
    correct_answer: str,
    gender: Gender | None = None,
) -> ErrorType:
    """
    Classify a wrong answer.

    gender: the answer starts with the opposite gender's article.
    accent: identical once accents are stripped.
    spelling: similarity above 0.5. Anything else is wrong.
    """
    user = user_answer.lower().strip()
    correct = correct_answer.lower().strip()

    if gender is not None:
        opposite = Gender.FEMININE if gender == Gender.MASCULINE else Gender.MASCULINE
        if user.startswith(GENDER_MARKERS[opposite]):
            return ErrorType.GENDER

    if strip_accents(user) == strip_accents(correct):
        return ErrorType.ACCENT
    if similarity(user, correct) > SPELLING_SIMILARITY_THRESHOLD:
        return ErrorType.SPELLING
    return ErrorType.WRONG


def derive_confusion_pairs(
    mistakes: Iterable[MistakeRecord],
    min_count: int = MIN_CONFUSION_COUNT,
    limit: int = MAX_CONFUSION_PAIRS,
) -> list[ConfusionPair]:
    """
    Group mistakes by the unordered pair (given answer, expected answer).

    Pairs seen at least ``min_count`` times are returned, most frequent first;
    ties keep first-seen order.
    """
    counts: dict[tuple[str, str], int] = {}
    last_seen: dict[tuple[str, str], datetime] = {}

    for mistake in mistakes:
        first, second = sorted(
            (answer_key(mistake.user_answer), answer_key(mistake.correct_answer))
        )
        if min(len(first), len(second)) < MIN_CONFUSION_ANSWER_LENGTH:
            continue
        key = (first, second)
        counts[key] = counts.get(key, 0) + 1
        if key not in last_seen or mistake.timestamp > last_seen[key]:
            last_seen[key] = mistake.timestamp

    pairs = [
        ConfusionPair(word1=k[0], word2=k[1], confusion_count=n, last_confused=last_seen[k])
        for k, n in counts.items()
        if n >= min_count
    ]
    pairs.sort(key=lambda p: p.confusion_count, reverse=True)
    return pairs[:limit]


def analyze_error_patterns(mistakes: list[MistakeRecord]) -> ErrorPatternAnalysis:
    counts = Counter(m.error_type for m in mistakes)
    most_common = max(ErrorType, key=lambda t: counts[t]) if mistakes else ErrorType.WRONG

    return ErrorPatternAnalysis(
        accent_errors=counts[ErrorType.ACCENT],
        spelling_errors=counts[ErrorType.SPELLING],
        gender_errors=counts[ErrorType.GENDER],
        wrong_answers=counts[ErrorType.WRONG],
        total=len(mistakes),
        most_common_type=most_common,
        confusion_pairs=derive_confusion_pairs(mistakes),
    )


def recent_mistakes(
    mistakes: Iterable[MistakeRecord],
    days: int,
    now: datetime | None = None,
) -> list[MistakeRecord]:
    cutoff = (now or datetime.now()) - timedelta(days=days)
    return [m for m in mistakes if m.timestamp >= cutoff]


def error_rate_by_type(mistakes: list[MistakeRecord], error_type: ErrorType) -> int:
    """Share of mistakes of one type, as a whole percentage."""
    if not mistakes:
        return 0
    matching = sum(1 for m in mistakes if m.error_type == error_type)
    return round(matching / len(mistakes) * 100)


@dataclass(frozen=True)
class DailyMistakes:
    day: date
    count: int
    by_type: dict[ErrorType, int]


def mistake_trend(
    mistakes: Iterable[MistakeRecord],
    days: int = 7,
    today: date | None = None,
) -> list[DailyMistakes]:
    """Mistake counts per day for the last ``days`` days, oldest first."""
    today = today or date.today()
    buckets = {today - timedelta(days=offset): Counter() for offset in range(days - 1, -1, -1)}
    for mistake in mistakes:
        bucket = buckets.get(mistake.timestamp.date())
        if bucket is not None:
            bucket[mistake.error_type] += 1

    return [
        DailyMistakes(
            day=day,
            count=sum(counter.values()),
            by_type={t: counter[t] for t in ErrorType},
        )
        for day, counter in buckets.items()
    ]


@dataclass(frozen=True)
class WeakCard:
    card: Flashcard
    direction: Direction
    score: float


def build_weakness_deck(
    flashcards: Iterable[Flashcard],
    progress_map: Mapping[tuple[str, Direction], CardProgress],
    mistakes: Iterable[MistakeRecord],
    limit: int = WEAKNESS_DECK_LIMIT,
) -> list[WeakCard]:
    """
    Rank (card, direction) pairs by how much they need drilling.

    score = (3 - ease) * 10 + (1 - accuracy) * 20 + 5 per logged mistake.
    Only pairs with a positive score are returned, highest first.
    """
    mistakes_by_card = Counter(m.card_id for m in mistakes)
    weak: list[WeakCard] = []

    for card in flashcards:
        for direction in Direction:
            progress = progress_map.get((card.id, direction))
            score = 0.0
            if progress is not None:
                score += (3 - progress.ease_factor) * 10
                if progress.accuracy is not None:
                    score += (1 - progress.accuracy) * 20
            score += mistakes_by_card[card.id] * 5

            if score > 0:
                weak.append(WeakCard(card, direction, score))

    weak.sort(key=lambda w: w.score, reverse=True)
    return weak[:limit]
