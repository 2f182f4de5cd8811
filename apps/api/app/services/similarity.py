"""
Duplicate detection for research titles and abstracts.

A candidate field is scored against every corpus record with a weighted
blend of three measures on normalised text:

    combined = round(0.5 * levenshtein + 0.3 * jaccard + 0.2 * trigram cosine)

and classified in strict priority order:

    exact_match          same-field normalised text is identical   (blocking)
    cross_field_match    opposite field scores >= cross_field      (blocking)
    high_similarity      same field scores >= high                 (blocking)
    moderate_similarity  same field scores >= moderate             (warning)
    clear

No I/O, no shared state. Every function is total over its inputs.
"""
from __future__ import annotations

import math
import re
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple

from rapidfuzz.distance import Levenshtein

from app.core.config import settings

STOP_WORDS = ("the", "a", "an", "and", "or", "of", "in", "on", "at", "to", "for", "with", "by")

LEVENSHTEIN_WEIGHT = 0.5
JACCARD_WEIGHT = 0.3
COSINE_WEIGHT = 0.2

NGRAM_SIZE = 3
MIN_WORD_LENGTH = 3  # Jaccard ignores words shorter than this

_NON_WORD_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")
_STOP_WORD_RE = re.compile(r"\b(?:" + "|".join(STOP_WORDS) + r")\b", re.IGNORECASE)


class Field(str, Enum):
    TITLE = "title"
    ABSTRACT = "abstract"

    @property
    def opposite(self) -> Field:
        return Field.ABSTRACT if self is Field.TITLE else Field.TITLE


class Classification(str, Enum):
    EXACT_MATCH = "exact_match"
    CROSS_FIELD_MATCH = "cross_field_match"
    HIGH_SIMILARITY = "high_similarity"
    MODERATE_SIMILARITY = "moderate_similarity"
    CLEAR = "clear"

    @property
    def blocking(self) -> bool:
        return self in _BLOCKING


_BLOCKING = frozenset(
    {Classification.EXACT_MATCH, Classification.CROSS_FIELD_MATCH, Classification.HIGH_SIMILARITY}
)


@dataclass(frozen=True)
class CorpusRecord:
    title: str
    abstract: str
    researcher: str  # attribution only, not unique

    def get(self, field: Field) -> str:
        return self.title if field is Field.TITLE else self.abstract


@dataclass(frozen=True)
class SimilarityResult:
    field: Field           # candidate field
    matched_field: Field   # corpus field it was compared to
    score: int             # 0..100
    record: CorpusRecord


@dataclass(frozen=True)
class Thresholds:
    cross_field: int = 75
    high: int = 70
    moderate: int = 50

    @classmethod
    def from_settings(cls) -> Thresholds:
        return cls(
            cross_field=settings.similarity_cross_field_threshold,
            high=settings.similarity_high_threshold,
            moderate=settings.similarity_moderate_threshold,
        )


@dataclass(frozen=True)
class ValidationOutcome:
    classification: Classification
    top_match: Optional[SimilarityResult] = None

    @property
    def blocking(self) -> bool:
        return self.classification.blocking

    @property
    def score_percent(self) -> Optional[int]:
        return self.top_match.score if self.top_match else None

    @property
    def matched_field(self) -> Optional[Field]:
        return self.top_match.matched_field if self.top_match else None

    @property
    def matched_title(self) -> Optional[str]:
        return self.top_match.record.title if self.top_match else None

    @property
    def matched_researcher(self) -> Optional[str]:
        return self.top_match.record.researcher if self.top_match else None


# ── Normalisation ──────────────────────────────────────────────────────────

def normalize(text: Optional[str]) -> str:
    """Lowercase, drop punctuation and stop words, collapse whitespace."""
    if not text:
        return ""
    text = text.lower()
    text = _NON_WORD_RE.sub("", text)
    text = _WHITESPACE_RE.sub(" ", text).strip()
    text = _STOP_WORD_RE.sub("", text)
    # Removing stop words leaves gaps behind
    return _WHITESPACE_RE.sub(" ", text).strip()


# ── Individual measures (all 0..100) ───────────────────────────────────────

def levenshtein_similarity(a: Optional[str], b: Optional[str]) -> float:
    norm_a = normalize(a)
    norm_b = normalize(b)
    if norm_a == norm_b:
        return 100.0
    max_len = max(len(norm_a), len(norm_b))
    if not norm_a or not norm_b:
        return 0.0
    distance = Levenshtein.distance(norm_a, norm_b)
    return (max_len - distance) / max_len * 100


def _significant_words(text: str) -> set:
    return {w for w in text.split() if len(w) >= MIN_WORD_LENGTH}


def jaccard_similarity(a: Optional[str], b: Optional[str]) -> float:
    words_a = _significant_words(normalize(a))
    words_b = _significant_words(normalize(b))
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union) * 100


def _ngrams(text: str, n: int) -> Counter:
    return Counter(text[i:i + n] for i in range(len(text) - n + 1))


def ngram_cosine_similarity(a: Optional[str], b: Optional[str], n: int = NGRAM_SIZE) -> float:
    grams_a = _ngrams(normalize(a), n)
    grams_b = _ngrams(normalize(b), n)
    if not grams_a or not grams_b:
        return 0.0

    dot = sum(count * grams_b[gram] for gram, count in grams_a.items())
    norm_a = math.sqrt(sum(c * c for c in grams_a.values()))
    norm_b = math.sqrt(sum(c * c for c in grams_b.values()))
    return min(dot / (norm_a * norm_b) * 100, 100.0)


def combined_score(a: Optional[str], b: Optional[str]) -> int:
    """Weighted blend of the three measures, rounded half-up."""
    raw = (
        LEVENSHTEIN_WEIGHT * levenshtein_similarity(a, b)
        + JACCARD_WEIGHT * jaccard_similarity(a, b)
        + COSINE_WEIGHT * ngram_cosine_similarity(a, b)
    )
    return max(0, min(100, math.floor(raw + 0.5)))


# ── Classification ─────────────────────────────────────────────────────────

def _best_match(
    candidate: str,
    field: Field,
    matched_field: Field,
    corpus: Tuple[CorpusRecord, ...],
) -> Optional[SimilarityResult]:
    """Highest-scoring record for one corpus field; ties keep the earliest."""
    best: Optional[SimilarityResult] = None
    for record in corpus:
        other = record.get(matched_field)
        if not normalize(other):
            continue
        score = combined_score(candidate, other)
        if best is None or score > best.score:
            best = SimilarityResult(field, matched_field, score, record)
    return best


def classify(
    candidate: Optional[str],
    field: Field,
    corpus: Iterable[CorpusRecord],
    thresholds: Optional[Thresholds] = None,
) -> ValidationOutcome:
    """
    Classify one candidate field against the corpus.

    Tiers are checked in priority order and the first that applies wins.
    Exact matches short-circuit before any scoring happens.
    """
    thresholds = thresholds or Thresholds()
    corpus = tuple(corpus)
    field = Field(field)

    norm_candidate = normalize(candidate)
    if not norm_candidate:
        return ValidationOutcome(Classification.CLEAR)

    for record in corpus:
        if normalize(record.get(field)) == norm_candidate:
            return ValidationOutcome(
                Classification.EXACT_MATCH,
                SimilarityResult(field, field, 100, record),
            )

    cross = _best_match(candidate, field, field.opposite, corpus)
    if cross is not None and cross.score >= thresholds.cross_field:
        return ValidationOutcome(Classification.CROSS_FIELD_MATCH, cross)

    same = _best_match(candidate, field, field, corpus)
    if same is not None:
        if same.score >= thresholds.high:
            return ValidationOutcome(Classification.HIGH_SIMILARITY, same)
        if same.score >= thresholds.moderate:
            return ValidationOutcome(Classification.MODERATE_SIMILARITY, same)

    return ValidationOutcome(Classification.CLEAR)
