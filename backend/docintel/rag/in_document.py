"""
In-Document Search — locate passages of one document relevant to a query.

The generative capability is asked to answer in a fixed line format
(see llm.prompts.IN_DOCUMENT_SEARCH_TEMPLATE):

    SEGMENT 1: 120-348 - refund window for annual plans - Importance: 8

parse_segment_results() turns that free text into SegmentResult records.
Model output is untrusted, so the parser is line-tolerant:

  line without "SEGMENT" or " - "      → skipped
  fewer than 3 " - " fields            → skipped
  no <int>-<int> position              → skipped
  no "Importance: <int>"               → importance 5
  offsets outside the document         → clamped to [0, len(text)]
  end < start after clamping           → skipped

Any unexpected failure while parsing yields an empty result rather than an
error: a malformed answer is "nothing found", not an outage.
"""

from __future__ import annotations

import logging
import re

from docintel.core.config import Settings, settings
from docintel.core.exceptions import InvalidInputError
from docintel.llm.gateway import GenerativeCapability
from docintel.llm.prompts import (
    IMPORTANCE_LABEL,
    SEGMENT_MARKER,
    in_document_search_prompt,
)
from docintel.schemas.documents import SegmentResult

logger = logging.getLogger(__name__)

DEFAULT_IMPORTANCE = 5
FIELD_SEPARATOR    = " - "

_SEGMENT_LABEL = re.compile(rf"^.*?{SEGMENT_MARKER}\s*\d*\s*[:.]?", re.IGNORECASE)
_POSITION      = re.compile(r"(\d+)\s*-\s*(\d+)")
_IMPORTANCE    = re.compile(rf"{IMPORTANCE_LABEL}\s*:\s*(\d+)", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def _parse_line(line: str, document_text: str) -> SegmentResult | None:
    if SEGMENT_MARKER not in line or FIELD_SEPARATOR not in line:
        return None

    fields = line.split(FIELD_SEPARATOR)
    if len(fields) < 3:
        return None

    position_field   = _SEGMENT_LABEL.sub("", fields[0], count=1).strip()
    description      = FIELD_SEPARATOR.join(fields[1:-1]).strip()
    importance_field = fields[-1]

    position = _POSITION.search(position_field)
    if position is None:
        return None

    length = len(document_text)
    start  = min(max(int(position.group(1)), 0), length)
    end    = min(max(int(position.group(2)), 0), length)
    if end < start:
        return None

    importance = _IMPORTANCE.search(importance_field)

    return SegmentResult(
        start=start,
        end=end,
        text=document_text[start:end],
        description=description,
        importance=int(importance.group(1)) if importance else DEFAULT_IMPORTANCE,
    )


def parse_segment_results(response: str, document_text: str) -> list[SegmentResult]:
    """Parse the model's answer; results are ordered by importance, highest first."""
    try:
        results = []
        for line in response.splitlines():
            if not line.strip():
                continue
            segment = _parse_line(line, document_text)
            if segment is not None:
                results.append(segment)
        # sorted() is stable: equal importance keeps response order
        return sorted(results, key=lambda r: r.importance, reverse=True)
    except Exception as exc:
        logger.warning(
            "Segment parser | unparseable response, returning no results: %s %s",
            type(exc).__name__, exc,
        )
        return []


# ---------------------------------------------------------------------------
# Searcher
# ---------------------------------------------------------------------------

class InDocumentSearcher:

    def __init__(
        self,
        generator: GenerativeCapability,
        config:    Settings | None = None,
    ) -> None:
        self._generator   = generator
        self._max_results = (config or settings).in_document_max_results

    async def search_in_document(self, document_text: str, query: str) -> list[SegmentResult]:
        """
        Raises:
            InvalidInputError: blank document text or query.
            UpstreamError / RateLimited: from the generative capability.
        """
        if not document_text or not document_text.strip():
            raise InvalidInputError("Document text must not be empty.")
        if not query or not query.strip():
            raise InvalidInputError("Search query must not be empty.")

        prompt   = in_document_search_prompt(document_text, query.strip(), self._max_results)
        response = await self._generator.generate(prompt)

        results = parse_segment_results(response, document_text)
        logger.info(
            "InDocumentSearcher | query_len=%d segments=%d", len(query.strip()), len(results)
        )
        return results
