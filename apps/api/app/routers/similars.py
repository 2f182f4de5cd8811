"""
Corpus reads and duplicate checks for the research submission form.

GET  /api/v1/research/similars/titles
GET  /api/v1/research/similars/abstracts
GET  /api/v1/research/similars/researchers
POST /api/v1/research/similars/check
"""
from __future__ import annotations

from typing import Annotated, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.similarity import (
    AbstractEntry,
    FieldCheck,
    ResearcherEntry,
    SimilarityCheckRequest,
    SimilarityCheckResponse,
    TitleEntry,
)
from app.services import corpus as corpus_svc
from app.services import similarity as similarity_svc
from app.services.similarity import Field, ValidationOutcome
from app.services.submission_gate import describe_outcome

router = APIRouter()


def to_field_check(field: Field, outcome: ValidationOutcome) -> FieldCheck:
    return FieldCheck(
        field=field.value,
        classification=outcome.classification.value,
        blocking=outcome.blocking,
        score_percent=outcome.score_percent,
        matched_field=outcome.matched_field.value if outcome.matched_field else None,
        matched_title=outcome.matched_title,
        matched_researcher=outcome.matched_researcher,
        message=describe_outcome(field, outcome),
    )


@router.get("/titles", response_model=List[TitleEntry])
async def list_titles(db: Annotated[AsyncSession, Depends(get_db)]):
    return await corpus_svc.fetch_titles(db)


@router.get("/abstracts", response_model=List[AbstractEntry])
async def list_abstracts(db: Annotated[AsyncSession, Depends(get_db)]):
    return await corpus_svc.fetch_abstracts(db)


@router.get("/researchers", response_model=List[ResearcherEntry])
async def list_researchers(db: Annotated[AsyncSession, Depends(get_db)]):
    return await corpus_svc.fetch_researchers(db)


@router.post("/check", response_model=SimilarityCheckResponse)
async def check_similarity(
    body: SimilarityCheckRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> SimilarityCheckResponse:
    try:
        corpus = await corpus_svc.fetch_corpus(db)
    except corpus_svc.CorpusUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))

    thresholds = similarity_svc.Thresholds.from_settings()
    checks: Dict[Field, FieldCheck] = {}
    for field, text in ((Field.TITLE, body.title), (Field.ABSTRACT, body.abstract)):
        if text is None:
            continue
        outcome = similarity_svc.classify(text, field, corpus, thresholds)
        checks[field] = to_field_check(field, outcome)

    blocking = any(c.blocking for c in checks.values())
    return SimilarityCheckResponse(
        title=checks.get(Field.TITLE),
        abstract=checks.get(Field.ABSTRACT),
        corpus_size=len(corpus),
        blocking=blocking,
        can_submit=len(checks) == 2 and not blocking,
    )
