"""
Artifact Cache — compute-once storage for per-document AI artifacts.

The cache is the document row itself:

  ArtifactKind.SUMMARY   → documents.summary_text   (hit when not NULL)
  ArtifactKind.KEYWORDS  → documents.keywords       (hit when non-empty)

  get_or_compute(document, kind, compute_fn)
       │
       ├── field populated → ArtifactResult(value, cached=True)   no call, no write
       │
       └── miss → await compute_fn()
                   ├── raises   → propagates, nothing written
                   └── returns  → field + last_processed set, flush,
                                  ArtifactResult(value, cached=False)

Content is immutable after upload, so entries never expire. There is no
in-flight guard: two concurrent misses both compute and the later write
wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from docintel.models.documents import Document

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ArtifactKind(str, Enum):
    SUMMARY  = "summary"
    KEYWORDS = "keywords"


# kind → (column attribute, "is populated" test)
_FIELDS: dict[ArtifactKind, tuple[str, Callable[[Any], bool]]] = {
    ArtifactKind.SUMMARY:  ("summary_text", lambda v: v is not None),
    ArtifactKind.KEYWORDS: ("keywords",     lambda v: bool(v)),
}


@dataclass
class ArtifactResult(Generic[T]):
    value:  T
    cached: bool


class ArtifactCache:

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_or_compute(
        self,
        document:   Document,
        kind:       ArtifactKind,
        compute_fn: Callable[[], Awaitable[T]],
    ) -> ArtifactResult[T]:
        attr, is_populated = _FIELDS[kind]

        current = getattr(document, attr)
        if is_populated(current):
            logger.debug("Artifact cache hit | doc=%s kind=%s", document.id, kind.value)
            return ArtifactResult(value=current, cached=True)

        value = await compute_fn()

        setattr(document, attr, value)
        document.last_processed = datetime.now(timezone.utc)
        await self._session.flush()

        logger.info("Artifact computed | doc=%s kind=%s", document.id, kind.value)
        return ArtifactResult(value=value, cached=False)

    async def summary(
        self,
        document:   Document,
        compute_fn: Callable[[], Awaitable[str]],
    ) -> ArtifactResult[str]:
        return await self.get_or_compute(document, ArtifactKind.SUMMARY, compute_fn)

    async def keywords(
        self,
        document:   Document,
        compute_fn: Callable[[], Awaitable[list[str]]],
    ) -> ArtifactResult[list[str]]:
        return await self.get_or_compute(document, ArtifactKind.KEYWORDS, compute_fn)
