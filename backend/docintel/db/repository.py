"""
Document store — owner-scoped data access over an AsyncSession.

Every query here filters on owner_id. Callers pass the owner from the
trusted Identity, never from request input, so no method can return or
modify another owner's documents.

The repository flushes but never commits; the surrounding
``session_scope()`` owns the transaction.
"""

from __future__ import annotations

import logging
import uuid
from typing import Sequence

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from docintel.core.exceptions import InvalidQueryError
from docintel.models.documents import Document
from docintel.rag.bm25 import query_terms

logger = logging.getLogger(__name__)

# Public sort keys → mapped columns
_SORT_COLUMNS = {
    "upload_date": Document.upload_date,
    "file_name":   Document.file_name,
    "file_size":   Document.file_size,
}


def _resolve_sort(sort: str):
    """'-upload_date' → Document.upload_date.desc(); unknown keys are rejected."""
    key        = (sort or "").strip()
    descending = key.startswith("-")
    key        = key.lstrip("-")
    column     = _SORT_COLUMNS.get(key)
    if column is None:
        raise InvalidQueryError(
            f"Unsupported sort key '{sort}'.",
            {"allowed": sorted(_SORT_COLUMNS)},
        )
    return column.desc() if descending else column.asc()


class DocumentRepository:

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, document: Document) -> Document:
        self._session.add(document)
        await self._session.flush()   # assigns id and defaults
        return document

    async def delete(self, owner_id: uuid.UUID, document_id: uuid.UUID) -> bool:
        document = await self.get(owner_id, document_id)
        if document is None:
            return False
        await self._session.delete(document)
        await self._session.flush()
        return True

    async def delete_all_for_owner(self, owner_id: uuid.UUID) -> int:
        result = await self._session.execute(
            delete(Document).where(Document.owner_id == owner_id)
        )
        await self._session.flush()
        return result.rowcount or 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, owner_id: uuid.UUID, document_id: uuid.UUID) -> Document | None:
        stmt = select(Document).where(
            Document.id == document_id,
            Document.owner_id == owner_id,
        )
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def list_for_owner(
        self,
        owner_id: uuid.UUID,
        page:     int = 1,
        limit:    int = 10,
        sort:     str = "-upload_date",
    ) -> tuple[list[Document], int]:
        """Return one page of the owner's documents and the owner's total count."""
        if page < 1 or limit < 1:
            raise InvalidQueryError(
                "page and limit must be positive integers.",
                {"page": page, "limit": limit},
            )
        order_by = _resolve_sort(sort)

        total = await self._session.scalar(
            select(func.count()).select_from(Document).where(Document.owner_id == owner_id)
        )
        stmt = (
            select(Document)
            .where(Document.owner_id == owner_id)
            .order_by(order_by, Document.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all()), int(total or 0)

    async def all_for_owner(self, owner_id: uuid.UUID) -> Sequence[Document]:
        stmt = (
            select(Document)
            .where(Document.owner_id == owner_id)
            .order_by(Document.upload_date.desc(), Document.id)
        )
        result = await self._session.execute(stmt)
        return result.scalars().all()

    async def text_search(
        self,
        owner_id: uuid.UUID,
        query:    str,
        limit:    int,
    ) -> list[Document]:
        """
        Case-insensitive term match of the query's tokens against content_text.

        A document matches when it contains any query term. The returned set
        is capped at ``limit`` and carries no relevance order; ranking is the
        caller's concern (see rag.bm25.rank_documents).
        """
        terms = query_terms(query)
        if not terms:
            return []

        stmt = (
            select(Document)
            .where(
                Document.owner_id == owner_id,
                or_(*(Document.content_text.icontains(term, autoescape=True) for term in terms)),
            )
            .order_by(Document.upload_date.desc(), Document.id)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        documents = list(result.scalars().all())
        logger.debug(
            "Text search | owner=%s terms=%s matched=%d", owner_id, terms, len(documents)
        )
        return documents
