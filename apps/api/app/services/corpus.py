"""
Corpus of existing research used as the duplicate-detection baseline.

Three reads mirror the endpoints the submission form calls:
titles (id, title, researcher), abstracts (id, abstract, researcher) and
researchers (researcher, institution, school). Titles and abstracts are
joined on the research id into CorpusRecord triples attributed to the
researcher; the researcher read only feeds the form's attribution list.
"""
from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.research import Research
from app.services.similarity import CorpusRecord

logger = logging.getLogger(__name__)


class CorpusUnavailableError(RuntimeError):
    """The corpus could not be loaded and the fail-closed policy is active."""


def _ordered(stmt, exclude_id: Optional[uuid.UUID]):
    if exclude_id is not None:
        stmt = stmt.where(Research.id != exclude_id)
    return stmt.order_by(Research.created_at, Research.id)


async def fetch_titles(
    db: AsyncSession, exclude_id: Optional[uuid.UUID] = None
) -> List[Dict[str, Any]]:
    stmt = select(Research.id, Research.title, Research.researcher).where(Research.title != "")
    result = await db.execute(_ordered(stmt, exclude_id))
    return [dict(row) for row in result.mappings().all()]


async def fetch_abstracts(
    db: AsyncSession, exclude_id: Optional[uuid.UUID] = None
) -> List[Dict[str, Any]]:
    stmt = select(Research.id, Research.abstract, Research.researcher).where(
        Research.abstract.is_not(None), Research.abstract != ""
    )
    result = await db.execute(_ordered(stmt, exclude_id))
    return [dict(row) for row in result.mappings().all()]


async def fetch_researchers(db: AsyncSession) -> List[Dict[str, Optional[str]]]:
    stmt = (
        select(Research.researcher, Research.institution, Research.school)
        .where(Research.researcher != "")
        .distinct()
        .order_by(Research.researcher)
    )
    result = await db.execute(stmt)
    return [dict(row) for row in result.mappings().all()]


def assemble_corpus(
    titles: Sequence[Dict[str, Any]],
    abstracts: Sequence[Dict[str, Any]],
) -> Tuple[CorpusRecord, ...]:
    """
    Join the title and abstract reads into CorpusRecord triples.

    Title and abstract rows are joined on the research id, so a research
    without an abstract yields (title, "", researcher) and never borrows
    another research's abstract. Records are grouped by researcher in
    order of first appearance, then by row order.
    """
    # researcher -> research id -> [title, abstract]
    by_researcher: Dict[str, Dict[Any, List[str]]] = defaultdict(dict)

    for row in titles:
        texts = by_researcher[row["researcher"]].setdefault(row["id"], ["", ""])
        texts[0] = row["title"] or ""
    for row in abstracts:
        texts = by_researcher[row["researcher"]].setdefault(row["id"], ["", ""])
        texts[1] = row["abstract"] or ""

    records: List[CorpusRecord] = []
    for name, works in by_researcher.items():
        for title, abstract in works.values():
            records.append(CorpusRecord(title=title, abstract=abstract, researcher=name))
    return tuple(records)


async def fetch_corpus(
    db: AsyncSession, exclude_id: Optional[uuid.UUID] = None
) -> Tuple[CorpusRecord, ...]:
    """
    Load a fresh corpus snapshot.

    On a database error the configured policy applies: fail open returns an
    empty corpus, fail closed raises CorpusUnavailableError.
    """
    try:
        titles = await fetch_titles(db, exclude_id)
        abstracts = await fetch_abstracts(db, exclude_id)
    except SQLAlchemyError as exc:
        await db.rollback()
        if settings.corpus_fetch_fail_open:
            logger.warning("Corpus fetch failed, continuing with an empty corpus: %s", exc)
            return ()
        logger.error("Corpus fetch failed: %s", exc)
        raise CorpusUnavailableError("Research corpus is unavailable") from exc

    return assemble_corpus(titles, abstracts)
