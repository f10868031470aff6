"""Consolidated tests for mnemos.application.utils.text and mnemos.application.utils.common."""

import pytest

from mnemos.application.utils.common import clamp, mean, round_half_up, slugify
from mnemos.application.utils.text import (
    MatchType,
    expand_contractions,
    extract_forms,
    find_corrections,
    levenshtein,
    match_answer,
    normalize_answer,
    normalize_loose,
    similarity,
    strip_article,
    strip_bracketed,
)

# ---------- Normalization ----------


def test_normalize_answer():
    assert normalize_answer("  ¿Qué   tal?  ") == "que tal"
    assert normalize_answer("col·legi") == "collegi"


def test_normalize_loose():
    assert normalize_loose("ice-cream") == normalize_loose("ice cream")


def test_strip_bracketed_and_forms():
    assert strip_bracketed("Platja (F)") == "Platja"
    assert extract_forms("vell / vella (M/F)") == ["vell", "vella"]
    assert extract_forms("casa") == ["casa"]


def test_strip_article():
    assert strip_article("la casa") == "casa"
    assert strip_article("l'aigua") == "aigua"
    assert strip_article("casa") == "casa"
    # A lone article is kept
    assert strip_article("la") == "la"


def test_expand_contractions():
    assert expand_contractions("I'm sure it's fine") == "i am sure it is fine"


# ---------- Similarity ----------


def test_levenshtein():
    assert levenshtein("kitten", "sitting") == 3
    assert levenshtein("", "abc") == 3
    assert levenshtein("same", "same") == 0


def test_similarity():
    assert similarity("Casa", "casa") == 1.0
    assert similarity("", "") == 1.0
    assert similarity("abcd", "abce") == pytest.approx(0.75)


def test_find_corrections():
    corrections = find_corrections("cafe", "cafè")
    assert len(corrections) == 1
    assert corrections[0].position == 3
    assert corrections[0].kind == "accent"

    kinds = [c.kind for c in find_corrections("gat", "gats")]
    assert kinds == ["missing"]


# ---------- Matching ----------


@pytest.mark.parametrize(
    "user, correct, match_type, is_correct",
    [
        ("casa", "casa", MatchType.EXACT, True),
        ("Casa", "casa", MatchType.CASE, True),
        ("cafe", "cafè", MatchType.ACCENT, False),
        ("casa", "la casa", MatchType.ARTICLE, True),
        ("la casa", "casa", MatchType.ARTICLE, True),
        ("do not", "don't", MatchType.CONTRACTION, True),
        ("ice-cream", "ice cream", MatchType.LOOSE, True),
        ("restaurantt", "restaurant", MatchType.TYPO, False),
        ("vella", "vell / vella", MatchType.EXACT, True),
    ],
)
def test_match_tiers(user, correct, match_type, is_correct):
    result = match_answer(user, correct)
    assert result.match_type == match_type
    assert result.is_correct is is_correct
    assert result.is_acceptable


def test_match_synonyms():
    result = match_answer("automòbil", "cotxe", synonyms=[("cotxe", "automòbil")])
    assert result.match_type == MatchType.SYNONYM
    assert result.is_correct


def test_match_all_forms():
    result = match_answer("vell / vella", "vell / vella (adj)")
    assert result.match_type == MatchType.EXACT


def test_no_match():
    result = match_answer("gos", "gat")
    assert result.match_type == MatchType.NONE
    assert not result.is_correct
    assert not result.is_acceptable
    assert result.corrections


def test_typo_threshold_is_configurable():
    assert match_answer("restaurnat", "restaurant").match_type == MatchType.NONE
    assert match_answer("restaurnat", "restaurant", typo_threshold=0.75).has_typo


# ---------- Common ----------


@pytest.mark.parametrize("value, expected", [(2.5, 3), (3.5, 4), (2.4, 2), (-2.5, -3), (0, 0)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


def test_clamp_and_mean():
    assert clamp(5, 1, 3) == 3
    assert clamp(-1, 0, 3) == 0
    assert mean([]) == 0.0
    assert mean([1, 2, 3]) == 2


def test_slugify():
    assert slugify("Daily  Life") == "daily-life"
