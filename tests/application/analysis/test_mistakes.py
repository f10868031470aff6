from datetime import timedelta

from conftest import NOW, TODAY, make_mistake, make_progress

from mnemos.application.analysis.mistakes import (
    analyze_error_patterns,
    answer_key,
    build_weakness_deck,
    classify_mistake,
    derive_confusion_pairs,
    error_rate_by_type,
    mistake_trend,
    recent_mistakes,
)
from mnemos.domain.cards.models import Direction, ErrorType, Gender

# ---------- Classification ----------


def test_classify_accent():
    assert classify_mistake("cafe", "cafè") == ErrorType.ACCENT


def test_classify_gender_uses_opposite_article():
    assert classify_mistake("la gos", "el gos", Gender.MASCULINE) == ErrorType.GENDER
    assert classify_mistake("el casa", "la casa", Gender.FEMININE) == ErrorType.GENDER
    # Without a known gender the article is not special
    assert classify_mistake("la gos", "el gos") == ErrorType.SPELLING


def test_classify_spelling_and_wrong():
    assert classify_mistake("gatto", "gat") == ErrorType.SPELLING
    assert classify_mistake("perro", "gat") == ErrorType.WRONG


# ---------- Confusion pairs ----------


def test_confusion_pairs_are_unordered_and_normalized():
    mistakes = [
        make_mistake(user_answer="gat", correct_answer="gos", timestamp=NOW - timedelta(days=3)),
        make_mistake(user_answer="Gos ", correct_answer="gat", timestamp=NOW - timedelta(days=1)),
        make_mistake(user_answer="gat", correct_answer="gos", timestamp=NOW - timedelta(days=2)),
        make_mistake(user_answer="casa", correct_answer="cosa"),
    ]
    pairs = derive_confusion_pairs(mistakes)

    assert len(pairs) == 1
    pair = pairs[0]
    assert (pair.word1, pair.word2) == ("gat", "gos")
    assert pair.confusion_count == 3
    assert pair.last_confused == NOW - timedelta(days=1)
    assert pair.involves(answer_key("GOS"))


def test_confusion_pairs_skip_short_answers():
    mistakes = [make_mistake(user_answer="a", correct_answer="la") for _ in range(3)]
    assert derive_confusion_pairs(mistakes) == []

    # The short answer sorts last here
    mistakes = [make_mistake(user_answer="apple", correct_answer="z") for _ in range(3)]
    assert derive_confusion_pairs(mistakes) == []


def test_confusion_pairs_sorted_and_limited():
    mistakes = [make_mistake(user_answer="aa", correct_answer="bb") for _ in range(2)]
    mistakes += [make_mistake(user_answer="cc", correct_answer="dd") for _ in range(4)]
    pairs = derive_confusion_pairs(mistakes)
    assert [p.word1 for p in pairs] == ["cc", "aa"]
    assert len(derive_confusion_pairs(mistakes, limit=1)) == 1


# ---------- Aggregates ----------


def test_analyze_error_patterns():
    mistakes = [
        make_mistake(error_type=ErrorType.ACCENT),
        make_mistake(error_type=ErrorType.ACCENT),
        make_mistake(error_type=ErrorType.GENDER),
    ]
    analysis = analyze_error_patterns(mistakes)
    assert analysis.accent_errors == 2
    assert analysis.gender_errors == 1
    assert analysis.total == 3
    assert analysis.most_common_type == ErrorType.ACCENT


def test_analyze_error_patterns_empty():
    analysis = analyze_error_patterns([])
    assert analysis.total == 0
    assert analysis.most_common_type == ErrorType.WRONG
    assert analysis.confusion_pairs == []


def test_recent_mistakes_and_rates():
    mistakes = [
        make_mistake(error_type=ErrorType.SPELLING, timestamp=NOW - timedelta(days=10)),
        make_mistake(error_type=ErrorType.WRONG, timestamp=NOW - timedelta(days=2)),
    ]
    assert len(recent_mistakes(mistakes, 7, now=NOW)) == 1
    assert error_rate_by_type(mistakes, ErrorType.SPELLING) == 50
    assert error_rate_by_type([], ErrorType.SPELLING) == 0


def test_mistake_trend_covers_each_day():
    mistakes = [
        make_mistake(timestamp=NOW),
        make_mistake(timestamp=NOW, error_type=ErrorType.ACCENT),
        make_mistake(timestamp=NOW - timedelta(days=2)),
        make_mistake(timestamp=NOW - timedelta(days=30)),
    ]
    trend = mistake_trend(mistakes, days=7, today=TODAY)
    assert len(trend) == 7
    assert trend[-1].day == TODAY
    assert trend[-1].count == 2
    assert trend[-1].by_type[ErrorType.ACCENT] == 1
    assert trend[-3].count == 1
    assert sum(d.count for d in trend) == 3


def test_build_weakness_deck(flashcards):
    progress_map = {
        ("c1", Direction.FORWARD): make_progress(
            "c1", ease_factor=1.5, total_reviews=4, correct_reviews=2
        ),
    }
    mistakes = [make_mistake(card_id="c1"), make_mistake(card_id="c1")]
    deck = build_weakness_deck(flashcards, progress_map, mistakes)

    assert (deck[0].card.id, deck[0].direction) == ("c1", Direction.FORWARD)
    assert deck[0].score == 35
    assert {(w.card.id, w.direction) for w in deck} == {
        ("c1", Direction.FORWARD),
        ("c1", Direction.REVERSE),
    }
