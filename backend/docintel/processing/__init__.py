"""
Document Processing Package
════════════════════════════

Everything that happens to an upload before it is stored:

  Text Extraction → Normalisation → Validation → Analysis → Embedding

Modules
───────
  extractor.py   Strategy chain per file type (PyMuPDF → pypdf, python-docx, UTF-8)
  analyzer.py    Structural statistics reported with every upload
  embeddings.py  Fixed-dimension heuristic embedder and cosine similarity

Design principles
─────────────────
  • Every component is stateless and dependency-injected.
  • Blocking parsers run in a thread executor, never on the event loop.
  • An AI outage degrades embeddings to the neutral vector; it never blocks upload.
"""

from docintel.processing.analyzer import ContentAnalysis, analyze_content
from docintel.processing.embeddings import EmbeddingProvider, HeuristicEmbedder, cosine_similarity
from docintel.processing.extractor import FileType, TextExtractor

__all__ = [
    "ContentAnalysis",
    "analyze_content",
    "EmbeddingProvider",
    "HeuristicEmbedder",
    "cosine_similarity",
    "FileType",
    "TextExtractor",
]
