"""
Root conftest.py — Shared fixtures for ALL tests

Fixture hierarchy:
  function-scoped : db_engine, db_session, owner ids, identities,
                    fake chat models, generative clients, embedders,
                    sample PDF / DOCX / TXT bytes, make_document

Environment strategy:
  - Every test gets a fresh in-memory SQLite database (aiosqlite + StaticPool).
  - The generative capability is a LangChain fake chat model; no network.
  - Sample PDF and DOCX files are generated with PyMuPDF / python-docx, so
    extraction runs through the real parsers.

How to run:
  pytest                               # all tests
  pytest -m unit                       # unit tests only
  pytest -m search                     # one area
  pytest backend/tests/unit/test_search.py
"""

from __future__ import annotations

import io
import os
import random
import uuid
from typing import Any, AsyncGenerator

import pytest

# ─────────────────────────────────────────────────────────────────────────────
# Patch settings BEFORE any docintel imports so modules read test config
# ─────────────────────────────────────────────────────────────────────────────

os.environ.setdefault("DATABASE_URL",   "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("OPENAI_API_KEY", "sk-test-key")
os.environ.setdefault("APP_ENV",        "development")
os.environ.setdefault("LOG_LEVEL",      "DEBUG")

from langchain_core.language_models.fake_chat_models import FakeListChatModel  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from docintel.db.session import make_session_factory  # noqa: E402
from docintel.llm.gateway import GenerativeClient  # noqa: E402
from docintel.models.documents import Base, Document  # noqa: E402
from docintel.processing.embeddings import HeuristicEmbedder  # noqa: E402
from docintel.schemas.documents import Identity, Role  # noqa: E402


# ─────────────────────────────────────────────────────────────────────────────
# Fake chat models
# ─────────────────────────────────────────────────────────────────────────────

class RateLimitError(Exception):
    """Named like the OpenAI SDK exception so the gateway classifies it as throttling."""


class FailingChatModel(FakeListChatModel):
    """Fake chat model whose every call raises."""

    responses:    list = []
    rate_limited: bool = False

    @property
    def _llm_type(self) -> str:
        return "failing-fake-chat-model"

    def _call(self, *args: Any, **kwargs: Any) -> str:
        if self.rate_limited:
            raise RateLimitError("Error code: 429 - rate limit reached for requests")
        raise ConnectionError("connection refused")


@pytest.fixture
def make_generator():
    """
    Factory fixture: GenerativeClient over a FakeListChatModel.

    Usage:
        generator = make_generator("summary text")
        generator = make_generator("first reply", "second reply")
    """
    def _build(*responses: str) -> GenerativeClient:
        return GenerativeClient(llm=FakeListChatModel(responses=list(responses)))
    return _build


@pytest.fixture
def failing_generator() -> GenerativeClient:
    return GenerativeClient(llm=FailingChatModel())


@pytest.fixture
def rate_limited_generator() -> GenerativeClient:
    return GenerativeClient(llm=FailingChatModel(rate_limited=True))


# ─────────────────────────────────────────────────────────────────────────────
# Embedders
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def embedder() -> HeuristicEmbedder:
    """Seeded, probe-free embedder: deterministic vectors, no AI calls."""
    return HeuristicEmbedder(rng=random.Random(42))


# ─────────────────────────────────────────────────────────────────────────────
# Database
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Session for one test; everything is rolled back afterwards."""
    factory = make_session_factory(db_engine)
    async with factory() as session:
        yield session
        await session.rollback()


# ─────────────────────────────────────────────────────────────────────────────
# Owners and identities
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def owner_id() -> uuid.UUID:
    """A stable UUID used as the calling owner across all tests."""
    return uuid.UUID("aaaaaaaa-aaaa-aaaa-aaaa-aaaaaaaaaaaa")


@pytest.fixture
def other_owner_id() -> uuid.UUID:
    return uuid.UUID("bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb")


@pytest.fixture
def user_identity(owner_id) -> Identity:
    return Identity(owner_id=owner_id, role=Role.USER)


@pytest.fixture
def admin_identity(owner_id) -> Identity:
    return Identity(owner_id=owner_id, role=Role.ADMIN)


# ─────────────────────────────────────────────────────────────────────────────
# Stored documents
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def make_document(db_session, owner_id):
    """
    Factory fixture: persist a Document row directly (bypassing upload).

    Usage:
        doc = await make_document("invoice text", file_name="a.txt")
        doc = await make_document("x", owner=other_owner_id, embedding=[0, 0, 0, 1])
    """
    async def _build(
        content:   str,
        *,
        owner:     uuid.UUID | None   = None,
        file_name: str                = "notes.txt",
        file_type: str                = "txt",
        file_size: int | None         = None,
        embedding: list[float] | None = None,
        **extra:   Any,
    ) -> Document:
        document = Document(
            owner_id=owner or owner_id,
            file_name=file_name,
            file_type=file_type,
            file_size=file_size if file_size is not None else len(content.encode()),
            content_text=content,
            embedding=embedding if embedding is not None else [0.5, 0.5, 0.5, 0.5],
            keywords=extra.pop("keywords", []),
            **extra,
        )
        db_session.add(document)
        await db_session.flush()
        return document

    return _build


# ─────────────────────────────────────────────────────────────────────────────
# Sample file bytes
# ─────────────────────────────────────────────────────────────────────────────

SAMPLE_TEXT = (
    "Quarterly revenue grew by twelve percent.\n"
    "The refund policy covers annual plans only."
)


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """One-page PDF with a real text layer."""
    import fitz

    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), "Quarterly revenue grew by twelve percent.")
    page.insert_text((72, 96), "The refund policy covers annual plans only.")
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def blank_pdf_bytes() -> bytes:
    """Valid PDF with no text layer (what a scanned document looks like)."""
    import fitz

    doc = fitz.open()
    doc.new_page()
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def sample_docx_bytes() -> bytes:
    import docx

    document = docx.Document()
    for line in SAMPLE_TEXT.split("\n"):
        document.add_paragraph(line)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def sample_txt_bytes() -> bytes:
    return SAMPLE_TEXT.encode("utf-8")
