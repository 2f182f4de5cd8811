"""
Gate a research submission on title/abstract duplicate checks.

Both fields must be checked before a submission is allowed. A submission
is refused while any check is still pending or any outcome is blocking.
"""
from __future__ import annotations

import asyncio
from typing import Dict, Iterable, List, Optional, Tuple

from app.core.config import settings
from app.services.debounce import Debouncer
from app.services.similarity import (
    Classification,
    CorpusRecord,
    Field,
    Thresholds,
    ValidationOutcome,
    classify,
)

GATED_FIELDS = (Field.TITLE, Field.ABSTRACT)

_MESSAGES = {
    Classification.EXACT_MATCH: 'This {field} already exists: "{title}" by {researcher}.',
    Classification.CROSS_FIELD_MATCH: (
        'This {field} matches the {matched_field} of "{title}" by {researcher} '
        "({score}% similar)."
    ),
    Classification.HIGH_SIMILARITY: (
        'This {field} is {score}% similar to "{title}" by {researcher}. '
        "Please revise it before submitting."
    ),
    Classification.MODERATE_SIMILARITY: (
        'This {field} is {score}% similar to "{title}" by {researcher}. '
        "You can still submit."
    ),
}


def describe_outcome(field: Field, outcome: ValidationOutcome) -> Optional[str]:
    """User-facing message for an outcome, or None when the field is clear."""
    template = _MESSAGES.get(outcome.classification)
    if template is None or outcome.top_match is None:
        return None
    return template.format(
        field=Field(field).value,
        matched_field=outcome.matched_field.value,
        title=outcome.matched_title,
        researcher=outcome.matched_researcher,
        score=outcome.score_percent,
    )


def evaluate_submission(
    title: Optional[str],
    abstract: Optional[str],
    corpus: Iterable[CorpusRecord],
    thresholds: Optional[Thresholds] = None,
) -> Dict[Field, ValidationOutcome]:
    corpus = tuple(corpus)
    thresholds = thresholds or Thresholds.from_settings()
    return {
        Field.TITLE: classify(title, Field.TITLE, corpus, thresholds),
        Field.ABSTRACT: classify(abstract, Field.ABSTRACT, corpus, thresholds),
    }


class SubmissionGate:
    """
    Debounced per-field checks for a submission form.

    Each ``update`` restarts that field's debounce window and discards the
    field's previous outcome; a superseded check never records a result.
    """

    def __init__(
        self,
        corpus: Iterable[CorpusRecord],
        thresholds: Optional[Thresholds] = None,
        delay: Optional[float] = None,
    ) -> None:
        self._corpus: Tuple[CorpusRecord, ...] = tuple(corpus)
        self._thresholds = thresholds or Thresholds.from_settings()
        self._debouncer = Debouncer(
            settings.similarity_debounce_seconds if delay is None else delay
        )
        self._outcomes: Dict[Field, ValidationOutcome] = {}

    def update(self, field: Field, text: Optional[str]) -> asyncio.Task:
        field = Field(field)
        self._outcomes.pop(field, None)
        return self._debouncer.schedule(field.value, self._evaluate, field, text)

    def _evaluate(self, field: Field, text: Optional[str]) -> ValidationOutcome:
        outcome = classify(text, field, self._corpus, self._thresholds)
        self._outcomes[field] = outcome
        return outcome

    def outcome(self, field: Field) -> Optional[ValidationOutcome]:
        return self._outcomes.get(Field(field))

    def is_pending(self, field: Optional[Field] = None) -> bool:
        if field is not None:
            return self._debouncer.is_pending(Field(field).value)
        return any(self._debouncer.is_pending(f.value) for f in GATED_FIELDS)

    def blocking_outcomes(self) -> List[Tuple[Field, ValidationOutcome]]:
        return [(f, o) for f, o in self._outcomes.items() if o.blocking]

    @property
    def can_submit(self) -> bool:
        if self.is_pending():
            return False
        if any(f not in self._outcomes for f in GATED_FIELDS):
            return False
        return not self.blocking_outcomes()

    def close(self) -> None:
        self._debouncer.cancel_all()
