from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.schemas.similarity import FieldCheck

ResearchStatus = Literal["Draft", "Pending", "Approved", "Rejected", "On Hold"]
YEAR_PATTERN = r"^\d{4}$"
# Columns ResearchUpdate may omit but never null out
NON_NULLABLE = frozenset({"title", "researcher", "year", "status"})


class ResearchCreate(BaseModel):
    title: str = Field(min_length=1)
    researcher: str = Field(min_length=1)
    category: str = Field(min_length=1)
    year: str = Field(pattern=YEAR_PATTERN)
    institution: str = Field(min_length=1)
    school: str = Field(min_length=1)
    progress_status: str = Field(min_length=1)
    abstract: Optional[str] = None
    department: Optional[str] = None
    keywords: Optional[str] = None
    document_url: Optional[str] = None
    document_type: Optional[str] = None


class ResearchUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    researcher: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = None
    year: Optional[str] = Field(None, pattern=YEAR_PATTERN)
    status: Optional[ResearchStatus] = None
    progress_status: Optional[str] = None
    abstract: Optional[str] = None
    department: Optional[str] = None
    keywords: Optional[str] = None

    @model_validator(mode="after")
    def check_required_not_null(self) -> "ResearchUpdate":
        # Omitting a field leaves it unchanged; null would blank a NOT NULL column
        nulled = sorted(
            name for name in self.model_fields_set
            if name in NON_NULLABLE and getattr(self, name) is None
        )
        if nulled:
            raise ValueError(f"Fields cannot be null: {', '.join(nulled)}")
        return self


class StatusReversal(BaseModel):
    reason: Optional[str] = None
    supervisor_id: Optional[uuid.UUID] = None


class ResearchRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    abstract: Optional[str] = None
    researcher: str
    category: Optional[str] = None
    keywords: Optional[str] = None
    year: str
    institution: Optional[str] = None
    school: Optional[str] = None
    department: Optional[str] = None
    document_url: Optional[str] = None
    document_type: Optional[str] = None
    status: str
    progress_status: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ResearchSaved(BaseModel):
    research: ResearchRead
    # Non-blocking similarity warnings raised during the save
    warnings: List[FieldCheck] = []


class ResearchList(BaseModel):
    researches: List[ResearchRead]
    total: int
    skip: int
    limit: int


class StatusReversalResponse(BaseModel):
    id: uuid.UUID
    status: str
    message: str
