"""
Document Service

Request-scoped façade over the whole pipeline. Upload flow:
  1. Sanitize the filename and derive the file type from its extension
  2. Extract text (PDF / DOCX / TXT) in a worker thread
  3. Normalise whitespace and enforce the content bounds
  4. Compute structural statistics (reported, not stored)
  5. Embed the text (neutral vector if the AI probe fails)
  6. Persist the document row (single flush, last step)

Query-time operations (listing, fetch, delete, summaries, keywords,
cross-document and in-document search, free-text analysis) all resolve
documents through the owner-scoped repository.

Security invariants enforced here:
  - owner_id is ALWAYS taken from the caller's Identity, never from input.
  - A document that exists but belongs to someone else is reported exactly
    like one that does not exist (DocumentNotFoundError).
  - Only an admin may purge another owner's documents.

Transactions:
  The service flushes but never commits. The caller's session_scope()
  commits on success and rolls back on any exception, so a failed upload
  leaves no row behind.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from docintel.core.config import Settings, settings
from docintel.core.exceptions import (
    DocumentNotFoundError,
    PermissionDeniedError,
    UpstreamError,
)
from docintel.db.repository import DocumentRepository
from docintel.llm.gateway import GenerativeCapability
from docintel.models.documents import Document
from docintel.processing.analyzer import analyze_content
from docintel.processing.embeddings import EmbeddingProvider
from docintel.processing.extractor import (
    TextExtractor,
    file_type_from_name,
    format_file_size,
    sanitize_filename,
)
from docintel.rag.in_document import InDocumentSearcher
from docintel.rag.search import SearchEngine
from docintel.schemas.documents import (
    DocumentDetail,
    DocumentListItem,
    DocumentPage,
    Identity,
    InDocumentSearchResult,
    Pagination,
    SearchHit,
    UploadResult,
)
from docintel.services.artifacts import ArtifactCache, ArtifactResult
from docintel.services.intelligence import DocumentIntelligence

logger = logging.getLogger(__name__)


class DocumentService:
    """
    Stateless service object — one instance per request.
    All dependencies are injected (testable, no hidden globals).

    Usage::

        async with session_scope() as session:
            service = DocumentService(session, identity, GenerativeClient(), embedder)
            result  = await service.upload("report.pdf", data)
    """

    def __init__(
        self,
        session:   AsyncSession,
        identity:  Identity,
        generator: GenerativeCapability,
        embedder:  EmbeddingProvider,
        extractor: TextExtractor | None = None,
        config:    Settings | None      = None,
    ) -> None:
        self._config       = config or settings
        self._identity     = identity
        self._repo         = DocumentRepository(session)
        self._cache        = ArtifactCache(session)
        self._embedder     = embedder
        self._extractor    = extractor or TextExtractor(max_chars=self._config.max_content_chars)
        self._intelligence = DocumentIntelligence(generator, self._config)
        self._searcher     = InDocumentSearcher(generator, self._config)
        self._engine       = SearchEngine(self._repo, embedder, self._config)

    @property
    def owner_id(self) -> uuid.UUID:
        return self._identity.owner_id

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    async def upload(self, file_name: str, data: bytes) -> UploadResult:
        safe_name = sanitize_filename(file_name)
        file_type = file_type_from_name(file_name)

        logger.info(
            "Upload start | owner=%s file=%s type=%s size=%d",
            self.owner_id, safe_name, file_type.value, len(data),
        )

        content   = await self._extractor.extract_clean_validate(data, file_type.value)
        analysis  = analyze_content(content)
        embedding = await self._embedder.embed(content)
        if len(embedding) != self._embedder.dimensions:
            raise UpstreamError(
                "The embedding provider returned a vector of the wrong length.",
                {"expected": self._embedder.dimensions, "actual": len(embedding)},
            )

        document = await self._repo.create(
            Document(
                owner_id=self.owner_id,
                file_name=safe_name,
                file_type=file_type.value,
                file_size=len(data),
                content_text=content,
                embedding=embedding,
                keywords=[],
            )
        )

        logger.info(
            "Upload complete | owner=%s doc=%s chars=%d words=%d",
            self.owner_id, document.id, analysis.character_count, analysis.word_count,
        )
        return UploadResult(
            document=DocumentListItem.model_validate(document),
            analysis=analysis,
            file_size_display=format_file_size(len(data)),
        )

    # ------------------------------------------------------------------
    # Listing / fetch / delete
    # ------------------------------------------------------------------

    async def list_documents(
        self,
        page:  int = 1,
        limit: int = 10,
        sort:  str = "-upload_date",
    ) -> DocumentPage:
        documents, total = await self._repo.list_for_owner(self.owner_id, page, limit, sort)
        return DocumentPage(
            documents=[DocumentListItem.model_validate(d) for d in documents],
            pagination=Pagination.build(page, limit, total),
        )

    async def get_document(self, document_id: uuid.UUID) -> DocumentDetail:
        return DocumentDetail.model_validate(await self._load(document_id))

    async def delete_document(self, document_id: uuid.UUID) -> None:
        if not await self._repo.delete(self.owner_id, document_id):
            raise DocumentNotFoundError(document_id)
        logger.info("Document deleted | owner=%s doc=%s", self.owner_id, document_id)

    async def purge_owner(self, owner_id: uuid.UUID) -> int:
        """Delete every document of ``owner_id``; returns how many were removed."""
        if owner_id != self.owner_id and not self._identity.is_admin:
            logger.warning(
                "Purge denied | caller=%s role=%s target=%s",
                self.owner_id, self._identity.role.value, owner_id,
            )
            raise PermissionDeniedError(
                "Only an administrator may delete another owner's documents.",
                {"owner_id": str(owner_id)},
            )
        deleted = await self._repo.delete_all_for_owner(owner_id)
        logger.info("Owner purged | caller=%s target=%s deleted=%d", self.owner_id, owner_id, deleted)
        return deleted

    # ------------------------------------------------------------------
    # Cached artifacts
    # ------------------------------------------------------------------

    async def get_summary(self, document_id: uuid.UUID) -> ArtifactResult[str]:
        document = await self._load(document_id)
        return await self._cache.summary(
            document,
            lambda: self._intelligence.summarize(document.content_text),
        )

    async def get_keywords(self, document_id: uuid.UUID) -> ArtifactResult[list[str]]:
        document = await self._load(document_id)
        return await self._cache.keywords(
            document,
            lambda: self._intelligence.extract_keywords(document.content_text),
        )

    async def analyze_document(self, document_id: uuid.UUID) -> str:
        document = await self._load(document_id)
        return await self._intelligence.analyze_text(document.content_text)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(self, query: str, limit: int | None = None) -> list[SearchHit]:
        return await self._engine.search(self.owner_id, query, limit)

    async def search_in_document(
        self,
        document_id: uuid.UUID,
        query:       str,
    ) -> InDocumentSearchResult:
        document = await self._load(document_id)
        results  = await self._searcher.search_in_document(document.content_text, query)
        return InDocumentSearchResult(
            results=results,
            query=query,
            total_results=len(results),
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _load(self, document_id: uuid.UUID) -> Document:
        document = await self._repo.get(self.owner_id, document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)
        return document
