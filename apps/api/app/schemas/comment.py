from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CommentCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(min_length=1)
    author_id: uuid.UUID
    identifier: Optional[str] = Field(None, max_length=255)
    # Reply target; None starts a new thread
    parent_id: Optional[uuid.UUID] = None


class CommentUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(min_length=1)
    author_id: uuid.UUID


class CommentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    research_id: uuid.UUID
    parent_id: Optional[uuid.UUID] = None
    author_id: uuid.UUID
    identifier: Optional[str] = None
    # None once the comment is deleted
    content: Optional[str] = None
    is_edited: bool
    is_deleted: bool
    created_at: datetime
    updated_at: datetime
    replies: List[CommentRead] = Field(default_factory=list)


class CommentThread(BaseModel):
    research_id: uuid.UUID
    comments: List[CommentRead]
    total: int
