"""
Text Extraction
═══════════════

Converts raw upload bytes into normalised plain text.

Strategy selection by declared file type:
  pdf   1. PyMuPDF (fitz)   native text layer, fast, in-process
        2. pypdf            pure-Python fallback when PyMuPDF cannot open
                            the file or finds no text layer
  docx  python-docx         paragraph text joined with newlines
  txt   UTF-8 decode        invalid sequences replaced, never fails

Every strategy returns raw text. TextExtractor.clean() is applied to the
result before validation and storage; validate() enforces the non-empty and
maximum-length invariants of Document.content_text.

Blocking parsers run in the default thread executor so the event loop is
never stalled by a large document.
"""

from __future__ import annotations

import asyncio
import io
import logging
import re
import time
from abc import ABC, abstractmethod
from enum import Enum

from docintel.core.config import settings
from docintel.core.exceptions import (
    ContentTooLargeError,
    EmptyContentError,
    ExtractionError,
    UnsupportedTypeError,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Supported types
# ---------------------------------------------------------------------------

class FileType(str, Enum):
    PDF  = "pdf"
    DOCX = "docx"
    TXT  = "txt"


SUPPORTED_FILE_TYPES: frozenset[str] = frozenset(t.value for t in FileType)


def parse_file_type(declared_type: str) -> FileType:
    """Case-insensitive FileType lookup; raises UnsupportedTypeError."""
    normalized = (declared_type or "").strip().lower().lstrip(".")
    try:
        return FileType(normalized)
    except ValueError:
        raise UnsupportedTypeError(normalized or "<none>") from None


def file_type_from_name(file_name: str) -> FileType:
    """Derive the FileType from a filename extension."""
    parts = (file_name or "").rsplit(".", 1)
    ext   = parts[-1] if len(parts) == 2 else ""
    return parse_file_type(ext)


# ---------------------------------------------------------------------------
# Filename / size helpers
# ---------------------------------------------------------------------------

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9._\-]")
_UNDERSCORE_RUNS       = re.compile(r"_+")

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def sanitize_filename(file_name: str) -> str:
    """Replace unsafe characters with '_', squeeze repeats, cap at 255 chars."""
    safe = _UNSAFE_FILENAME_CHARS.sub("_", file_name)
    safe = _UNDERSCORE_RUNS.sub("_", safe)
    return safe[:255]


def format_file_size(size_bytes: int) -> str:
    """Human-readable size: 0 → '0 Bytes', 1536 → '1.5 KB'."""
    if size_bytes <= 0:
        return "0 Bytes"

    exponent = 0
    while size_bytes >= 1024 ** (exponent + 1) and exponent < len(_SIZE_UNITS) - 1:
        exponent += 1
    value    = round(size_bytes / (1024 ** exponent), 2)
    text     = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[exponent]}"


# ---------------------------------------------------------------------------
# Abstract strategy
# ---------------------------------------------------------------------------

class BaseTextExtractor(ABC):
    """
    One parsing strategy for one file format.

    Implementations receive raw bytes (never a path) and return raw text.
    They raise on unreadable input; the orchestrator decides what that means.
    """

    @property
    @abstractmethod
    def strategy_name(self) -> str:
        """Unique name for logging."""

    @abstractmethod
    def extract_sync(self, data: bytes) -> str:
        """Blocking extraction — runs in a thread executor."""


class PyMuPDFExtractor(BaseTextExtractor):
    """Reads the native PDF text layer with PyMuPDF."""

    @property
    def strategy_name(self) -> str:
        return "pymupdf"

    def extract_sync(self, data: bytes) -> str:
        import fitz  # PyMuPDF; imported here to avoid module-level import cost

        with fitz.open(stream=data, filetype="pdf") as doc:
            pages = [(page.get_text("text") or "").strip() for page in doc]
        return "\n\n".join(p for p in pages if p)


class PypdfExtractor(BaseTextExtractor):
    """Pure-Python PDF fallback."""

    @property
    def strategy_name(self) -> str:
        return "pypdf"

    def extract_sync(self, data: bytes) -> str:
        from pypdf import PdfReader

        reader = PdfReader(io.BytesIO(data))
        pages  = [(page.extract_text() or "").strip() for page in reader.pages]
        return "\n\n".join(p for p in pages if p)


class DocxExtractor(BaseTextExtractor):
    """Paragraph text from a Word document."""

    @property
    def strategy_name(self) -> str:
        return "python-docx"

    def extract_sync(self, data: bytes) -> str:
        import docx

        document = docx.Document(io.BytesIO(data))
        return "\n".join(para.text for para in document.paragraphs if para.text.strip())


class PlainTextExtractor(BaseTextExtractor):

    @property
    def strategy_name(self) -> str:
        return "utf8"

    def extract_sync(self, data: bytes) -> str:
        return data.decode("utf-8", errors="replace")


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

_INLINE_WHITESPACE = re.compile(r"[^\S\n]+")
_NEWLINE_RUNS      = re.compile(r" ?\n[ \n]*")


class TextExtractor:
    """
    Stateless orchestrator — select the strategy chain for a file type,
    run it off the event loop, then normalise and validate the result.

    Usage:
        extractor = TextExtractor()
        text = await extractor.extract_clean_validate(data, "pdf")
    """

    def __init__(self, max_chars: int | None = None) -> None:
        self._max_chars = max_chars or settings.max_content_chars
        self._chains: dict[FileType, list[BaseTextExtractor]] = {
            FileType.PDF:  [PyMuPDFExtractor(), PypdfExtractor()],
            FileType.DOCX: [DocxExtractor()],
            FileType.TXT:  [PlainTextExtractor()],
        }

    @property
    def max_chars(self) -> int:
        return self._max_chars

    async def extract(self, data: bytes, declared_type: str) -> str:
        """
        Extract raw text for the declared type.

        Raises:
            UnsupportedTypeError: declared_type is not pdf, docx or txt.
            ExtractionError:      no strategy could read the bytes, or a PDF
                                  has no text layer (image-only).
        """
        file_type = parse_file_type(declared_type)
        loop      = asyncio.get_running_loop()
        errors: list[str] = []

        for strategy in self._chains[file_type]:
            t0 = time.monotonic()
            try:
                text = await loop.run_in_executor(None, strategy.extract_sync, data)
            except Exception as exc:
                logger.warning(
                    "Extraction | strategy=%s type=%s failed: %s",
                    strategy.strategy_name, file_type.value, exc,
                )
                errors.append(f"{strategy.strategy_name}: {type(exc).__name__}: {exc}")
                continue

            logger.info(
                "Extraction | strategy=%s type=%s bytes=%d chars=%d elapsed_ms=%.0f",
                strategy.strategy_name, file_type.value, len(data), len(text),
                (time.monotonic() - t0) * 1000,
            )

            if text.strip() or file_type is not FileType.PDF:
                return text

            errors.append(f"{strategy.strategy_name}: no text layer")

        if file_type is FileType.PDF and all(e.endswith("no text layer") for e in errors):
            raise ExtractionError(
                "Could not extract text from the PDF. Make sure it contains a text layer.",
                {"attempts": errors},
            )
        raise ExtractionError(
            f"Could not extract text from the {file_type.value} file.",
            {"attempts": errors},
        )

    @staticmethod
    def clean(text: str | None) -> str:
        """
        Normalise extracted text.

        Runs of spaces/tabs collapse to one space, runs of blank lines (and
        the spaces around them) collapse to one newline, ends are trimmed.
        """
        if not text:
            return ""
        text = _INLINE_WHITESPACE.sub(" ", text)
        text = _NEWLINE_RUNS.sub("\n", text)
        return text.strip()

    def validate(self, text: str) -> str:
        """Enforce the content_text invariants; returns the text unchanged."""
        if not text:
            raise EmptyContentError()
        if len(text) > self._max_chars:
            raise ContentTooLargeError(len(text), self._max_chars)
        return text

    async def extract_clean_validate(self, data: bytes, declared_type: str) -> str:
        raw = await self.extract(data, declared_type)
        return self.validate(self.clean(raw))
