import re
import unicodedata
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from mnemos.domain.constants import TYPO_SIMILARITY_THRESHOLD


class MatchType(str, Enum):
    EXACT = "exact"
    CASE = "case"
    ACCENT = "accent"
    SYNONYM = "synonym"
    ARTICLE = "article"
    CONTRACTION = "contraction"
    LOOSE = "loose"
    TYPO = "typo"
    NONE = "none"


@dataclass(frozen=True)
class Correction:
    position: int
    expected: str
    received: str
    kind: str  # accent | spelling | missing | extra


@dataclass(frozen=True)
class MatchResult:
    """
    Outcome of comparing a typed answer with the expected one.

    ``is_correct`` means the answer counts as a clean hit; ``is_acceptable``
    also admits accent slips and small typos.
    """

    match_type: MatchType
    is_correct: bool
    is_acceptable: bool
    user_answer: str
    correct_answer: str
    corrections: tuple[Correction, ...] = ()
    feedback: str | None = None

    @property
    def has_typo(self) -> bool:
        return self.match_type == MatchType.TYPO


# ---------- Normalization ----------

_PUNCTUATION = re.compile(r"[.,!?;:'\"¿¡…]+")
_BRACKETED = re.compile(r"\s*\([^)]*\)\s*")
_FORM_SEPARATOR = re.compile(r"\s*/\s*")

DEFAULT_ARTICLES = ("el", "la", "els", "les", "un", "una", "uns", "unes", "the", "a", "an")
ELIDED_ARTICLES = ("l'", "d'")

ENGLISH_CONTRACTIONS = {
    "don't": "do not", "doesn't": "does not", "didn't": "did not",
    "won't": "will not", "wouldn't": "would not", "couldn't": "could not",
    "shouldn't": "should not", "can't": "cannot", "isn't": "is not",
    "aren't": "are not", "wasn't": "was not", "weren't": "were not",
    "haven't": "have not", "hasn't": "has not", "hadn't": "had not",
    "i'm": "i am", "you're": "you are", "we're": "we are", "they're": "they are",
    "he's": "he is", "she's": "she is", "it's": "it is", "that's": "that is",
    "i've": "i have", "you've": "you have", "we've": "we have", "they've": "they have",
    "i'll": "i will", "you'll": "you will", "we'll": "we will", "they'll": "they will",
    "i'd": "i would", "you'd": "you would", "we'd": "we would", "they'd": "they would",
    "let's": "let us", "who's": "who is", "what's": "what is", "where's": "where is",
}


def strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_answer(text: str) -> str:
    """Lowercase, drop accents, punctuation and the middle dot, collapse spaces."""
    out = strip_accents(text.lower().strip())
    out = out.replace("·", "")
    out = _PUNCTUATION.sub("", out)
    return " ".join(out.split())


def normalize_loose(text: str) -> str:
    """Like normalize_answer but also ignores spaces and hyphens."""
    return re.sub(r"[-\s]+", "", normalize_answer(text))


def strip_bracketed(text: str) -> str:
    """Drop notes like ``(F)`` or ``(M Pl)``: ``"Platja (F)"`` -> ``"Platja"``."""
    return " ".join(_BRACKETED.sub(" ", text).split())


def extract_forms(text: str) -> list[str]:
    """Split alternatives: ``"vell / vella"`` -> ``["vell", "vella"]``."""
    parts = _FORM_SEPARATOR.split(strip_bracketed(text))
    return [p.strip() for p in parts if p.strip()]


def expand_contractions(text: str) -> str:
    out = text.lower()
    for short, full in ENGLISH_CONTRACTIONS.items():
        out = out.replace(short, full)
    return out


def strip_article(text: str, articles: Iterable[str] = DEFAULT_ARTICLES) -> str:
    words = text.strip().split()
    if not words:
        return text
    first = words[0].lower()
    for elided in ELIDED_ARTICLES:
        if first.startswith(elided):
            words[0] = words[0][len(elided):]
            return " ".join(words).strip()
    if first in articles and len(words) > 1:
        return " ".join(words[1:])
    return text


# ---------- Similarity ----------


def levenshtein(a: str, b: str) -> int:
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """1.0 for identical strings after normalization, 0.0 for nothing in common."""
    na, nb = normalize_answer(a), normalize_answer(b)
    if na == nb:
        return 1.0
    longest = max(len(na), len(nb))
    if longest == 0:
        return 1.0
    return 1 - levenshtein(na, nb) / longest


def find_corrections(user_answer: str, correct_answer: str) -> tuple[Correction, ...]:
    """Character-by-character diff used for feedback highlighting."""
    corrections = []
    user_lower, correct_lower = user_answer.lower(), correct_answer.lower()

    for i in range(max(len(user_lower), len(correct_lower))):
        got = user_lower[i] if i < len(user_lower) else ""
        want = correct_lower[i] if i < len(correct_lower) else ""
        if got == want:
            continue

        expected = correct_answer[i] if want else ""
        received = user_answer[i] if got else ""
        if got and want and strip_accents(got) == strip_accents(want):
            kind = "accent"
        elif not got:
            kind = "missing"
        elif not want:
            kind = "extra"
        else:
            kind = "spelling"
        corrections.append(Correction(i, expected, received, kind))

    return tuple(corrections)


# ---------- Matching ----------


def _are_synonyms(user: str, correct: str, groups: Iterable[Iterable[str]]) -> bool:
    nu, nc = normalize_answer(user), normalize_answer(correct)
    for group in groups:
        normalized = {normalize_answer(word) for word in group}
        if nu in normalized and nc in normalized:
            return True
    return False


def _match_form(
    user: str,
    form: str,
    synonyms: Iterable[Iterable[str]],
    articles: Iterable[str],
    typo_threshold: float,
) -> tuple[MatchType, str | None] | None:
    if user == form:
        return MatchType.EXACT, None
    if user.lower() == form.lower():
        return MatchType.CASE, None
    if normalize_answer(user) == normalize_answer(form):
        return MatchType.ACCENT, "Acceptable! Watch the accents next time."
    if _are_synonyms(user, form, synonyms):
        return MatchType.SYNONYM, f'Correct! "{user}" is a valid synonym.'

    user_bare, form_bare = strip_article(user, articles), strip_article(form, articles)
    if (user_bare != user or form_bare != form) and normalize_answer(
        user_bare
    ) == normalize_answer(form_bare):
        if user_bare == user:
            return MatchType.ARTICLE, f'Correct! The full form includes the article: "{form}"'
        return MatchType.ARTICLE, "Correct! Article not required here."

    expanded_user, expanded_form = expand_contractions(user), expand_contractions(form)
    if normalize_answer(expanded_user) == normalize_answer(expanded_form):
        return MatchType.CONTRACTION, "Correct! Contraction accepted."
    if normalize_loose(user) == normalize_loose(form):
        return MatchType.LOOSE, None
    if similarity(expanded_user, expanded_form) >= typo_threshold:
        return MatchType.TYPO, "Acceptable, but there was a small typo."
    return None


def match_answer(
    user_answer: str,
    correct_answer: str,
    synonyms: Iterable[Iterable[str]] = (),
    articles: Iterable[str] = DEFAULT_ARTICLES,
    typo_threshold: float = TYPO_SIMILARITY_THRESHOLD,
) -> MatchResult:
    """
    Compare a typed answer against every valid form of the expected answer.

    Tiers are tried from strictest to most lenient; the first hit wins.
    Accent slips and typos are acceptable but not correct.
    """
    user = user_answer.strip()
    correct = correct_answer.strip()
    forms = extract_forms(correct) or [correct]
    articles = tuple(articles)
    synonyms = [tuple(group) for group in synonyms]

    user_forms = extract_forms(user)
    if len(user_forms) > 1:
        normalized_forms = {normalize_answer(f) for f in forms}
        if any(normalize_answer(u) in normalized_forms for u in user_forms):
            return MatchResult(MatchType.EXACT, True, True, user, correct)

    for form in forms:
        hit = _match_form(user, form, synonyms, articles, typo_threshold)
        if hit is None:
            continue
        match_type, feedback = hit
        lenient = match_type in (MatchType.ACCENT, MatchType.TYPO)
        corrections = find_corrections(user, form) if lenient else ()
        return MatchResult(
            match_type=match_type,
            is_correct=not lenient,
            is_acceptable=True,
            user_answer=user,
            correct_answer=correct,
            corrections=corrections,
            feedback=feedback,
        )

    return MatchResult(
        match_type=MatchType.NONE,
        is_correct=False,
        is_acceptable=False,
        user_answer=user,
        correct_answer=correct,
        corrections=find_corrections(user, forms[0]),
    )
