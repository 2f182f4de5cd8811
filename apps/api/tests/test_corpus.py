"""Tests for corpus assembly and the fail-open / fail-closed fetch policy."""
from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.services.corpus import (
    CorpusUnavailableError,
    assemble_corpus,
    fetch_corpus,
    fetch_titles,
)
from app.services.similarity import Classification, CorpusRecord, Field, classify


def _result(rows):
    result = MagicMock()
    result.mappings.return_value.all.return_value = rows
    return result


AI_EDU, SOIL, AI_TUTORS = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()

TITLES = [
    {"id": AI_EDU, "title": "Impact of AI on Education", "researcher": "Jane Mwangi"},
    {"id": SOIL, "title": "Soil Fertility Management", "researcher": "John Okello"},
    {"id": AI_TUTORS, "title": "AI Tutors in Rural Schools", "researcher": "Jane Mwangi"},
]
ABSTRACTS = [
    {"id": AI_EDU, "abstract": "How AI tools change teaching.", "researcher": "Jane Mwangi"},
    {"id": SOIL, "abstract": "Fertiliser regimes on maize.", "researcher": "John Okello"},
]


# ── assemble_corpus ────────────────────────────────────────────────────────

def test_assemble_groups_by_researcher_in_order():
    corpus = assemble_corpus(TITLES, ABSTRACTS)
    assert corpus == (
        CorpusRecord("Impact of AI on Education", "How AI tools change teaching.", "Jane Mwangi"),
        CorpusRecord("AI Tutors in Rural Schools", "", "Jane Mwangi"),
        CorpusRecord("Soil Fertility Management", "Fertiliser regimes on maize.", "John Okello"),
    )


def test_assemble_pairs_abstract_with_its_own_title():
    # Jane's earlier research has no abstract, so the abstract read skips it
    literacy, tutors = uuid.uuid4(), uuid.uuid4()
    titles = [
        {"id": literacy, "title": "Early Childhood Literacy", "researcher": "Jane"},
        {"id": tutors, "title": "AI Tutors in Rural Schools", "researcher": "Jane"},
    ]
    abstracts = [
        {"id": tutors, "abstract": "We deploy AI tutors across rural schools.", "researcher": "Jane"},
    ]
    corpus = assemble_corpus(titles, abstracts)
    assert corpus == (
        CorpusRecord("Early Childhood Literacy", "", "Jane"),
        CorpusRecord("AI Tutors in Rural Schools", "We deploy AI tutors across rural schools.", "Jane"),
    )

    outcome = classify("We deploy AI tutors across rural schools.", Field.ABSTRACT, corpus)
    assert outcome.classification == Classification.EXACT_MATCH
    assert outcome.matched_title == "AI Tutors in Rural Schools"
    assert outcome.matched_researcher == "Jane"


def test_assemble_same_researcher_name_keeps_works_apart():
    first, second = uuid.uuid4(), uuid.uuid4()
    corpus = assemble_corpus(
        [{"id": first, "title": "Maize Yields", "researcher": "Ola"}],
        [{"id": second, "abstract": "Only an abstract.", "researcher": "Ola"}],
    )
    assert corpus == (
        CorpusRecord("Maize Yields", "", "Ola"),
        CorpusRecord("", "Only an abstract.", "Ola"),
    )


def test_assemble_abstract_only_research():
    row = {"id": uuid.uuid4(), "abstract": "Only an abstract.", "researcher": "Ola"}
    corpus = assemble_corpus([], [row])
    assert corpus == (CorpusRecord("", "Only an abstract.", "Ola"),)


def test_assemble_empty():
    assert assemble_corpus([], []) == ()


# ── fetch_* ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_fetch_titles_returns_rows():
    db = AsyncMock()
    db.execute.return_value = _result(TITLES)
    rows = await fetch_titles(db)
    assert rows == TITLES
    db.execute.assert_awaited_once()
    stmt = db.execute.await_args.args[0]
    assert [c.name for c in stmt.selected_columns] == ["id", "title", "researcher"]


@pytest.mark.asyncio
async def test_fetch_corpus_joins_title_and_abstract_reads():
    db = AsyncMock()
    db.execute.side_effect = [_result(TITLES), _result(ABSTRACTS)]
    corpus = await fetch_corpus(db)
    assert len(corpus) == 3
    assert db.execute.await_count == 2


@pytest.mark.asyncio
async def test_fetch_corpus_fail_open_returns_empty():
    db = AsyncMock()
    db.execute.side_effect = SQLAlchemyError("connection refused")
    with patch.object(settings, "corpus_fetch_fail_open", True):
        corpus = await fetch_corpus(db)
    assert corpus == ()
    db.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_fetch_corpus_fail_closed_raises():
    db = AsyncMock()
    db.execute.side_effect = SQLAlchemyError("connection refused")
    with patch.object(settings, "corpus_fetch_fail_open", False):
        with pytest.raises(CorpusUnavailableError):
            await fetch_corpus(db)
    db.rollback.assert_awaited_once()
