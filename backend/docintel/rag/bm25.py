"""
BM25 Lexical Ranking — keyword scoring for hybrid search.

Role in the hybrid pipeline:
  Lexical pass   → exact terminology (what the user *said*)
  Semantic pass  → embedding similarity over the owner's documents
  Union          → lexical hits first, then semantic hits

The store's text query (DocumentRepository.text_search) selects the lexical
candidate set using query_terms(); this module orders that set with
BM25Okapi built over the candidates only (late-fusion pattern), so no
separate search cluster is needed.

Dependencies:
  pip install rank-bm25>=0.2.2
"""

from __future__ import annotations

import string
from dataclasses import dataclass
from typing import Sequence

from rank_bm25 import BM25Okapi

from docintel.models.documents import Document


# ---------------------------------------------------------------------------
# Minimal English stopword list for BM25 tokenisation
# ---------------------------------------------------------------------------

_STOPWORDS = frozenset({
    "a", "an", "the", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "is", "it", "as", "be", "was", "are",
    "that", "this", "which", "have", "has", "had", "not", "no", "can",
    "will", "would", "could", "should", "may", "might", "do", "does",
    "did", "its", "their", "our", "your", "my", "his", "her",
})

_PUNCT_TABLE = str.maketrans("", "", string.punctuation.replace("-", ""))


def query_terms(text: str) -> list[str]:
    """
    Lowercase → strip punctuation → drop stopwords, de-duplicated in order.

    Preserves hyphens (important for identifiers like "SN-48291"); tokens
    made only of hyphens are dropped.
    May return an empty list for stopword-only input.
    """
    text = text.lower().translate(_PUNCT_TABLE)
    seen: dict[str, None] = {}
    for token in text.split():
        if token.strip("-") and token not in _STOPWORDS:
            seen.setdefault(token, None)
    return list(seen)


def _tokenize(text: str) -> list[str]:
    """Like query_terms but keeps repeats and never returns an empty list."""
    text   = text.lower().translate(_PUNCT_TABLE)
    tokens = [t for t in text.split() if t.strip("-") and t not in _STOPWORDS]
    return tokens or ["<empty>"]


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------

@dataclass
class LexicalHit:
    """One BM25-scored document."""
    document:   Document
    bm25_score: float
    rank:       int        # 1-based rank in the BM25 result list


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------

def rank_documents(query: str, candidates: Sequence[Document]) -> list[LexicalHit]:
    """
    Score the candidate documents against the query with BM25Okapi.

    Sorting is stable, so candidates with equal scores keep the order the
    store returned them in. An empty candidate list yields an empty result.
    """
    if not candidates:
        return []

    bm25   = BM25Okapi([_tokenize(doc.content_text) for doc in candidates])
    scores = bm25.get_scores(_tokenize(query))

    indexed = sorted(enumerate(scores), key=lambda x: x[1], reverse=True)
    return [
        LexicalHit(document=candidates[idx], bm25_score=float(score), rank=rank)
        for rank, (idx, score) in enumerate(indexed, start=1)
    ]
