"""
Retrieval package.

  in_document.py  passage search inside one document via the generative capability
  search.py       cross-document lexical + embedding-similarity search
  bm25.py         BM25 tokenisation and ranking used by the lexical pass

SearchEngine depends on the document store, which itself uses rag.bm25, so
it is not re-exported here — import it from docintel.rag.search.
"""

from docintel.rag.in_document import InDocumentSearcher, parse_segment_results

__all__ = [
    "InDocumentSearcher",
    "parse_segment_results",
    # SearchEngine: import directly from docintel.rag.search
]
