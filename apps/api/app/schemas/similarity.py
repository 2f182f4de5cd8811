from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, model_validator

FieldName = Literal["title", "abstract"]
ClassificationName = Literal[
    "exact_match", "cross_field_match", "high_similarity", "moderate_similarity", "clear"
]


class TitleEntry(BaseModel):
    title: str
    researcher: str


class AbstractEntry(BaseModel):
    abstract: str
    researcher: str


class ResearcherEntry(BaseModel):
    researcher: str
    institution: Optional[str] = None
    school: Optional[str] = None


class SimilarityCheckRequest(BaseModel):
    title: Optional[str] = None
    abstract: Optional[str] = None

    @model_validator(mode="after")
    def _require_a_field(self) -> "SimilarityCheckRequest":
        if self.title is None and self.abstract is None:
            raise ValueError("title or abstract is required")
        return self


class FieldCheck(BaseModel):
    field: FieldName
    classification: ClassificationName
    blocking: bool
    score_percent: Optional[int] = None
    matched_field: Optional[FieldName] = None
    matched_title: Optional[str] = None
    matched_researcher: Optional[str] = None
    message: Optional[str] = None


class SimilarityCheckResponse(BaseModel):
    title: Optional[FieldCheck] = None
    abstract: Optional[FieldCheck] = None
    corpus_size: int
    blocking: bool
    # True only when both fields were checked and neither blocks
    can_submit: bool


class BlockedSubmission(BaseModel):
    message: str
    checks: List[FieldCheck]
