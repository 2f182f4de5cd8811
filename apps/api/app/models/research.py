from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from app.models.comment import Comment

# Lifecycle: Draft -> Pending -> Approved | Rejected | On Hold
RESEARCH_STATUSES = ("Draft", "Pending", "Approved", "Rejected", "On Hold")


class Research(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "researches"
    __table_args__ = (
        Index(
            "ix_researches_title_trgm",
            "title",
            postgresql_using="gin",
            postgresql_ops={"title": "gin_trgm_ops"},
        ),
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)
    abstract: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    researcher: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    keywords: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    year: Mapped[str] = mapped_column(String(4), nullable=False)
    institution: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    school: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    department: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    document_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    document_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Review workflow
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="Draft", server_default="Draft", index=True
    )
    progress_status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    unhold_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    unheld_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    unheld_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    unreject_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    unrejected_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    unrejected_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)

    # Rows cascade in the database; the ORM never loads the thread to delete it
    comments: Mapped[List[Comment]] = relationship(
        "Comment", back_populates="research", passive_deletes=True, lazy="noload"
    )

    def __repr__(self) -> str:
        return f"<Research id={self.id} title={self.title!r} status={self.status!r}>"
