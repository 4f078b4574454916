"""
Search Engine — Lexical + Embedding-Similarity Search over an Owner's Documents

  ┌─────────────────────────────────────────────────────────────┐
  │  User Query                                                 │
  │       │                                                     │
  │       ▼                                                     │
  │  [1] Validate (non-blank, limit ≥ 1)                        │
  │       │                                                     │
  │       ▼                                                     │
  │  [2] Embed Query (EmbeddingProvider)                        │
  │       │                                                     │
  │       ├───────────────────────┐                             │
  │       ▼                       ▼                             │
  │  [3] Lexical pass          [4] Semantic pass                │
  │   store text match,         cosine over every owned         │
  │   BM25-ordered, ≤ limit     document, > threshold,          │
  │       │                     sorted desc, ≤ limit            │
  │       └────────┬──────────────┘                             │
  │                ▼                                            │
  │       [5] Union, lexical first, de-duplicate by id          │
  │           (first occurrence wins)                           │
  │                │                                            │
  │                ▼                                            │
  │       [6] Truncate to limit                                 │
  └─────────────────────────────────────────────────────────────┘

Owner isolation:
  Both passes go through DocumentRepository, which scopes every query by
  owner_id. No code path here sees another owner's rows.

De-duplication quirk:
  A document found by both passes is returned as its lexical record, so it
  carries no ``similarity`` even though it cleared the threshold.
"""

from __future__ import annotations

import logging
import time
import uuid

from docintel.core.config import Settings, settings
from docintel.core.exceptions import InvalidQueryError
from docintel.db.repository import DocumentRepository
from docintel.processing.embeddings import EmbeddingProvider
from docintel.rag.bm25 import rank_documents
from docintel.schemas.documents import SearchHit

logger = logging.getLogger(__name__)


class SearchEngine:
    """
    Instantiate once per request::

        engine = SearchEngine(DocumentRepository(session), embedder)
        hits   = await engine.search(owner_id, "quarterly revenue", limit=10)
    """

    def __init__(
        self,
        repository: DocumentRepository,
        embedder:   EmbeddingProvider,
        config:     Settings | None = None,
    ) -> None:
        self._repo      = repository
        self._embedder  = embedder
        self._config    = config or settings
        self._threshold = self._config.similarity_threshold

    # -----------------------------------------------------------------------
    # Public interface
    # -----------------------------------------------------------------------

    async def search(
        self,
        owner_id: uuid.UUID,
        query:    str,
        limit:    int | None = None,
    ) -> list[SearchHit]:
        limit = self._config.search_default_limit if limit is None else limit
        if not query or not query.strip():
            raise InvalidQueryError("Search query must not be empty.")
        if limit < 1:
            raise InvalidQueryError("Search limit must be at least 1.", {"limit": limit})

        query = query.strip()
        t0    = time.perf_counter()

        # ── Step 1: Embed query ──────────────────────────────────────────────
        query_vector = await self._embedder.embed(query)

        # ── Step 2: Lexical pass ─────────────────────────────────────────────
        lexical = await self._lexical_pass(owner_id, query, limit)

        # ── Step 3: Semantic pass ────────────────────────────────────────────
        semantic = await self._semantic_pass(owner_id, query_vector, limit)

        # ── Step 4: Union + dedupe (first occurrence wins) ───────────────────
        seen: set[uuid.UUID] = set()
        merged: list[SearchHit] = []
        for hit in [*lexical, *semantic]:
            if hit.id in seen:
                continue
            seen.add(hit.id)
            merged.append(hit)

        elapsed_ms = (time.perf_counter() - t0) * 1000
        logger.info(
            "SearchEngine | owner=%s lexical=%d semantic=%d merged=%d limit=%d latency_ms=%.1f",
            owner_id, len(lexical), len(semantic), len(merged), limit, elapsed_ms,
        )
        return merged[:limit]

    # -----------------------------------------------------------------------
    # Passes
    # -----------------------------------------------------------------------

    async def _lexical_pass(
        self,
        owner_id: uuid.UUID,
        query:    str,
        limit:    int,
    ) -> list[SearchHit]:
        candidates = await self._repo.text_search(owner_id, query, limit)
        ranked     = rank_documents(query, candidates)
        return [SearchHit.model_validate(hit.document) for hit in ranked]

    async def _semantic_pass(
        self,
        owner_id:     uuid.UUID,
        query_vector: list[float],
        limit:        int,
    ) -> list[SearchHit]:
        scored: list[tuple[float, SearchHit]] = []
        for document in await self._repo.all_for_owner(owner_id):
            similarity = self._embedder.similarity(query_vector, document.embedding)
            if similarity > self._threshold:
                hit = SearchHit.model_validate(document).model_copy(
                    update={"similarity": similarity}
                )
                scored.append((similarity, hit))

        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [hit for _, hit in scored[:limit]]
