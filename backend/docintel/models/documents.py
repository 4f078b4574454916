"""
SQLAlchemy ORM Models — Documents

One row per uploaded document. The row is also the artifact cache: the
summary_text and keywords columns are populated lazily by
services.artifacts.ArtifactCache and never invalidated, because
content_text is immutable after upload.

Ownership: every query against this table MUST be scoped by owner_id
(see db.repository.DocumentRepository). There is no cross-owner visibility.

Column types are the portable SQLAlchemy 2.x generics (Uuid, JSON) so the
same model runs on PostgreSQL (asyncpg) in production and SQLite
(aiosqlite) in tests.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    DateTime,
    Index,
    Text,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Declarative base — shared across all models
# ---------------------------------------------------------------------------

class Base(DeclarativeBase):
    pass


# ---------------------------------------------------------------------------
# Document model — documents
# ---------------------------------------------------------------------------

class Document(Base):
    """
    An uploaded document with its extracted text and derived artifacts.

    Lifecycle:
        created   — extraction, validation and embedding all succeeded
        enriched  — summary_text / keywords filled in on first request
        deleted   — hard delete by owner, or cascade when the owner is purged
    """

    __tablename__ = "documents"
    __table_args__ = (
        CheckConstraint(
            "file_type IN ('pdf', 'docx', 'txt')",
            name="documents_file_type_check",
        ),
        CheckConstraint(
            "length(content_text) > 0",
            name="documents_content_not_empty",
        ),
        Index("idx_documents_owner_upload", "owner_id", "upload_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # Owner scope: always taken from the caller's identity, never from input
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    file_name: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Sanitized original filename",
    )
    file_type: Mapped[str] = mapped_column(Text, nullable=False)
    file_size: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        comment="Raw upload size in bytes",
    )

    content_text: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Normalized extracted text, bounded by settings.max_content_chars",
    )

    # Cached artifacts
    summary_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)
    keywords: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    embedding: Mapped[list[float]] = mapped_column(
        JSON,
        nullable=False,
        comment="Fixed-dimension feature vector derived from content_text",
    )

    upload_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    last_processed: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    def __repr__(self) -> str:
        return (
            f"<Document id={self.id} owner={self.owner_id} "
            f"type={self.file_type} file={self.file_name!r}>"
        )
