"""
Comment threads on a research.

GET    /api/v1/research/{research_id}/comments
POST   /api/v1/research/{research_id}/comments
PATCH  /api/v1/research/{research_id}/comments/{comment_id}
DELETE /api/v1/research/{research_id}/comments/{comment_id}?author_id=...
"""
from __future__ import annotations

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.models.comment import Comment
from app.models.research import Research
from app.schemas.comment import CommentCreate, CommentRead, CommentThread, CommentUpdate
from app.services.comment_threads import build_threads, to_read

logger = logging.getLogger(__name__)

router = APIRouter()


async def _research_or_404(db: AsyncSession, research_id: uuid.UUID) -> Research:
    research = await db.get(Research, research_id)
    if not research:
        raise HTTPException(status_code=404, detail="Research not found")
    return research


async def _comment_or_404(
    db: AsyncSession, research_id: uuid.UUID, comment_id: uuid.UUID
) -> Comment:
    comment = await db.get(Comment, comment_id)
    if not comment or comment.research_id != research_id or comment.is_deleted:
        raise HTTPException(status_code=404, detail="Comment not found")
    return comment


def _check_owner(comment: Comment, author_id: uuid.UUID, action: str) -> None:
    if comment.author_id != author_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Unauthorized to {action} this comment",
        )


@router.get("", response_model=CommentThread)
async def list_comments(
    research_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CommentThread:
    await _research_or_404(db, research_id)
    result = await db.execute(
        select(Comment)
        .where(Comment.research_id == research_id)
        .order_by(Comment.created_at, Comment.id)
    )
    comments = result.scalars().all()
    return CommentThread(
        research_id=research_id, comments=build_threads(comments), total=len(comments)
    )


@router.post("", response_model=CommentRead, status_code=status.HTTP_201_CREATED)
async def add_comment(
    research_id: uuid.UUID,
    body: CommentCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CommentRead:
    await _research_or_404(db, research_id)
    if body.parent_id is not None:
        parent = await db.get(Comment, body.parent_id)
        if not parent or parent.research_id != research_id:
            raise HTTPException(status_code=404, detail="Parent comment not found")

    comment = Comment(research_id=research_id, **body.model_dump())
    db.add(comment)
    await db.flush()
    await db.refresh(comment)
    return to_read(comment)


@router.patch("/{comment_id}", response_model=CommentRead)
async def edit_comment(
    research_id: uuid.UUID,
    comment_id: uuid.UUID,
    body: CommentUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CommentRead:
    comment = await _comment_or_404(db, research_id, comment_id)
    _check_owner(comment, body.author_id, "edit")
    comment.content = body.content
    comment.is_edited = True
    await db.flush()
    await db.refresh(comment)
    return to_read(comment)


@router.delete("/{comment_id}", status_code=204)
async def delete_comment(
    research_id: uuid.UUID,
    comment_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    author_id: uuid.UUID = Query(...),
):
    comment = await _comment_or_404(db, research_id, comment_id)
    _check_owner(comment, author_id, "delete")
    comment.is_deleted = True
    await db.flush()
    logger.info("Comment %s on research %s deleted by %s", comment_id, research_id, author_id)
