from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Annotated, Dict, List, Literal, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.models.research import Research
from app.routers.similars import to_field_check
from app.schemas.research import (
    ResearchCreate,
    ResearchList,
    ResearchRead,
    ResearchSaved,
    ResearchUpdate,
    StatusReversal,
    StatusReversalResponse,
)
from app.schemas.similarity import BlockedSubmission, FieldCheck
from app.services import corpus as corpus_svc
from app.services import submission_gate as gate_svc
from app.services.similarity import CorpusRecord, Field, ValidationOutcome

logger = logging.getLogger(__name__)

router = APIRouter()


async def _load_corpus(
    db: AsyncSession, exclude_id: Optional[uuid.UUID] = None
) -> Tuple[CorpusRecord, ...]:
    try:
        return await corpus_svc.fetch_corpus(db, exclude_id=exclude_id)
    except corpus_svc.CorpusUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


def _gate(outcomes: Dict[Field, ValidationOutcome]) -> List[FieldCheck]:
    """Raise 409 for blocking outcomes; return the non-blocking warnings."""
    checks = [to_field_check(field, outcome) for field, outcome in outcomes.items()]
    blocked = [c for c in checks if c.blocking]
    if blocked:
        logger.info(
            "Submission blocked: %s",
            ", ".join(f"{c.field}={c.classification}" for c in blocked),
        )
        detail = BlockedSubmission(message=blocked[0].message or "Duplicate research", checks=blocked)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail.model_dump())
    return [c for c in checks if c.classification != "clear"]


async def _get_or_404(db: AsyncSession, research_id: uuid.UUID) -> Research:
    research = await db.get(Research, research_id)
    if not research:
        raise HTTPException(status_code=404, detail="Research not found")
    return research


@router.get("", response_model=ResearchList)
async def list_researches(
    db: Annotated[AsyncSession, Depends(get_db)],
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    status_filter: str | None = Query(None, alias="status"),
    department: str | None = Query(None),
    search: str | None = Query(None),
    sort: Literal["new", "old", "title"] | None = Query(None),
):
    stmt = select(Research)
    count_stmt = select(func.count()).select_from(Research)

    conditions = []
    if status_filter:
        conditions.append(Research.status == status_filter)
    if department:
        conditions.append(Research.department == department)
    if search:
        pattern = f"%{search}%"
        conditions.append(
            or_(
                Research.title.ilike(pattern),
                Research.researcher.ilike(pattern),
                Research.category.ilike(pattern),
                Research.year.ilike(pattern),
            )
        )
    if conditions:
        stmt = stmt.where(*conditions)
        count_stmt = count_stmt.where(*conditions)

    if sort == "old":
        order = Research.created_at.asc()
    elif sort == "title":
        order = Research.title.asc()
    else:
        order = Research.created_at.desc()

    total = await db.scalar(count_stmt)
    result = await db.execute(stmt.order_by(order).offset(skip).limit(limit))
    researches = [ResearchRead.model_validate(r) for r in result.scalars().all()]
    return ResearchList(researches=researches, total=total or 0, skip=skip, limit=limit)


@router.get("/{research_id}", response_model=ResearchRead)
async def get_research(
    research_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    return await _get_or_404(db, research_id)


@router.post("", response_model=ResearchSaved, status_code=status.HTTP_201_CREATED)
async def create_research(
    body: ResearchCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ResearchSaved:
    corpus = await _load_corpus(db)
    outcomes = gate_svc.evaluate_submission(body.title, body.abstract, corpus)
    warnings = _gate(outcomes)

    research = Research(**body.model_dump(), status="Draft")
    db.add(research)
    await db.flush()
    await db.refresh(research)
    return ResearchSaved(research=ResearchRead.model_validate(research), warnings=warnings)


@router.patch("/{research_id}", response_model=ResearchSaved)
async def update_research(
    research_id: uuid.UUID,
    body: ResearchUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ResearchSaved:
    changes = body.model_dump(exclude_unset=True)
    recheck = "title" in changes or "abstract" in changes
    # Load the corpus first: a failed corpus read rolls the session back
    corpus = await _load_corpus(db, exclude_id=research_id) if recheck else ()

    research = await _get_or_404(db, research_id)

    warnings: List[FieldCheck] = []
    if recheck:
        outcomes = gate_svc.evaluate_submission(
            changes.get("title", research.title),
            changes.get("abstract", research.abstract),
            corpus,
        )
        warnings = _gate(outcomes)

    for field, value in changes.items():
        setattr(research, field, value)

    await db.flush()
    await db.refresh(research)
    return ResearchSaved(research=ResearchRead.model_validate(research), warnings=warnings)


@router.delete("/{research_id}", status_code=204)
async def delete_research(
    research_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    research = await _get_or_404(db, research_id)
    await db.delete(research)


# action -> (required status, reason column, timestamp column, actor column)
_REVERSALS = {
    "unhold": ("On Hold", "unhold_reason", "unheld_at", "unheld_by_id"),
    "unreject": ("Rejected", "unreject_reason", "unrejected_at", "unrejected_by_id"),
}


async def _reverse_status(
    db: AsyncSession,
    research_id: uuid.UUID,
    body: StatusReversal,
    action: str,
) -> Research:
    expected, reason_col, at_col, by_col = _REVERSALS[action]
    research = await _get_or_404(db, research_id)
    if research.status != expected:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Research is {research.status!r}, not {expected!r}",
        )
    research.status = "Pending"
    setattr(research, reason_col, body.reason)
    setattr(research, at_col, datetime.now(timezone.utc))
    setattr(research, by_col, body.supervisor_id)
    await db.flush()
    return research


@router.put("/{research_id}/unhold", response_model=StatusReversalResponse)
async def unhold_research(
    research_id: uuid.UUID,
    body: StatusReversal,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> StatusReversalResponse:
    research = await _reverse_status(db, research_id, body, "unhold")
    return StatusReversalResponse(
        id=research.id, status=research.status, message="Research hold reversed successfully"
    )


@router.put("/{research_id}/unreject", response_model=StatusReversalResponse)
async def unreject_research(
    research_id: uuid.UUID,
    body: StatusReversal,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> StatusReversalResponse:
    research = await _reverse_status(db, research_id, body, "unreject")
    return StatusReversalResponse(
        id=research.id, status=research.status, message="Research rejection reversed successfully"
    )
