"""
Error taxonomy for the document intelligence core.

Every error carries a stable machine-readable ``code`` (mirrored into
ErrorResponse.error_code) and a human-readable message. ``retryable`` tells
the caller whether trying again later may succeed.

    DocIntelError
    ├── UnsupportedTypeError      UNSUPPORTED_FILE_TYPE
    ├── ExtractionError           EXTRACTION_FAILED
    ├── EmptyContentError         EMPTY_CONTENT
    ├── ContentTooLargeError      CONTENT_TOO_LARGE
    ├── InvalidQueryError         INVALID_QUERY
    ├── InvalidInputError         INVALID_INPUT
    ├── EmptyInputError           EMPTY_INPUT
    ├── DocumentNotFoundError     DOCUMENT_NOT_FOUND
    ├── PermissionDeniedError     FORBIDDEN
    └── UpstreamError             UPSTREAM_ERROR
        └── RateLimited           RATE_LIMITED
"""

from __future__ import annotations

from typing import Any


class DocIntelError(Exception):
    """Base class for all caller-visible errors."""

    code:      str  = "INTERNAL_ERROR"
    retryable: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# ---------------------------------------------------------------------------
# Upload / extraction
# ---------------------------------------------------------------------------

class UnsupportedTypeError(DocIntelError):
    code = "UNSUPPORTED_FILE_TYPE"

    def __init__(self, file_type: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["file_type"] = file_type
        super().__init__(
            f"Unsupported file type '{file_type}'. Allowed: pdf, docx, txt.",
            details,
        )


class ExtractionError(DocIntelError):
    code = "EXTRACTION_FAILED"


class EmptyContentError(DocIntelError):
    code = "EMPTY_CONTENT"

    def __init__(self, message: str = "Document content must not be empty.") -> None:
        super().__init__(message)


class ContentTooLargeError(DocIntelError):
    code = "CONTENT_TOO_LARGE"

    def __init__(self, length: int, max_length: int) -> None:
        super().__init__(
            f"Document content is too large. Maximum is {max_length:,} characters.",
            {"length": length, "max_length": max_length},
        )


# ---------------------------------------------------------------------------
# Query / input validation
# ---------------------------------------------------------------------------

class InvalidQueryError(DocIntelError):
    code = "INVALID_QUERY"


class InvalidInputError(DocIntelError):
    code = "INVALID_INPUT"


class EmptyInputError(DocIntelError):
    code = "EMPTY_INPUT"


class DocumentNotFoundError(DocIntelError):
    code = "DOCUMENT_NOT_FOUND"

    def __init__(self, document_id: Any) -> None:
        super().__init__(
            f"Document '{document_id}' was not found or you do not have access to it.",
            {"document_id": str(document_id)},
        )


class PermissionDeniedError(DocIntelError):
    code = "FORBIDDEN"


# ---------------------------------------------------------------------------
# Generative capability
# ---------------------------------------------------------------------------

class UpstreamError(DocIntelError):
    """The generative capability is unavailable or returned an unusable response."""
    code = "UPSTREAM_ERROR"


class RateLimited(UpstreamError):
    """The generative capability is throttling; retry later, not immediately."""
    code      = "RATE_LIMITED"
    retryable = True
