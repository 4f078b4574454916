"""
Document Intelligence — Pydantic Result Schemas

Projections returned by DocumentService. Each is built from the ORM row with
``model_validate(document)`` (from_attributes), so a field that is not
declared here never leaves the service:

  DocumentListItem   every field except content_text and embedding
  DocumentDetail     DocumentListItem + content_text
  SearchHit          DocumentListItem + similarity (semantic hits only)

Design decisions:
  - Identity is supplied by the caller and trusted; owner_id is never read
    from request input.
  - All timestamps are timezone-aware UTC datetimes.
  - Errors leave the core as DocIntelError subclasses; ErrorResponse is the
    uniform envelope an outer layer may render them with.
"""

from __future__ import annotations

import math
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from docintel.core.exceptions import DocIntelError
from docintel.processing.analyzer import ContentAnalysis


# ---------------------------------------------------------------------------
# Caller identity
# ---------------------------------------------------------------------------

class Role(str, Enum):
    USER  = "user"
    ADMIN = "admin"


class Identity(BaseModel):
    """Authenticated caller, resolved outside the core."""
    model_config = ConfigDict(frozen=True)

    owner_id: UUID
    role:     Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


# ---------------------------------------------------------------------------
# Document projections
# ---------------------------------------------------------------------------

class DocumentListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id:             UUID
    owner_id:       UUID
    file_name:      str
    file_type:      str
    file_size:      int
    summary_text:   str | None = None
    keywords:       list[str]  = Field(default_factory=list)
    upload_date:    datetime
    last_processed: datetime


class DocumentDetail(DocumentListItem):
    content_text: str


class SearchHit(DocumentListItem):
    similarity: float | None = Field(
        None,
        description="Cosine similarity to the query; set only for semantic hits",
    )


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------

class Pagination(BaseModel):
    current_page:  int
    total_pages:   int
    total_docs:    int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = math.ceil(total / limit) if total else 0
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_docs=total,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )


class DocumentPage(BaseModel):
    documents:  list[DocumentListItem]
    pagination: Pagination


# ---------------------------------------------------------------------------
# Operation results
# ---------------------------------------------------------------------------

class UploadResult(BaseModel):
    """Returned by DocumentService.upload: the stored document plus statistics."""
    document:          DocumentListItem
    analysis:          ContentAnalysis
    file_size_display: str = Field(..., description='Human-readable size, e.g. "1.5 KB"')


class SegmentResult(BaseModel):
    """One position-anchored passage found by in-document search."""
    start:       int = Field(..., ge=0)
    end:         int = Field(..., ge=0)
    text:        str
    description: str
    importance:  int


class InDocumentSearchResult(BaseModel):
    results:       list[SegmentResult]
    query:         str
    total_results: int


# ---------------------------------------------------------------------------
# Structured error bodies
# ---------------------------------------------------------------------------

class ErrorDetail(BaseModel):
    """Single structured error item."""
    field:   str | None = Field(None, description="Input field that caused the error, if applicable")
    message: str
    code:    str        = Field(..., description="Machine-readable error code for client handling")


class ErrorResponse(BaseModel):
    """
    Uniform error envelope.
    Clients should check `error_code` for programmatic handling.
    """
    error_code: str               = Field(..., description="Stable machine-readable code")
    message:    str               = Field(..., description="Human-readable summary")
    retryable:  bool              = False
    details:    list[ErrorDetail] = Field(default_factory=list)

    @classmethod
    def from_exception(cls, exc: Exception) -> "ErrorResponse":
        if not isinstance(exc, DocIntelError):
            return cls(
                error_code="INTERNAL_ERROR",
                message="An unexpected error occurred.",
            )
        details = [
            ErrorDetail(field=key, message=_stringify(value), code=exc.code)
            for key, value in exc.details.items()
        ]
        return cls(
            error_code=exc.code,
            message=exc.message,
            retryable=exc.retryable,
            details=details,
        )


def _stringify(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)
