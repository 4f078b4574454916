"""
Embedding Provider  —  Fixed-Dimension Feature Vectors & Cosine Similarity
══════════════════════════════════════════════════════════════════════════

HeuristicEmbedder is NOT a semantic embedding model. It captures coarse
size/diversity signals of a text blob:

  dim 0  normalised length          min(chars / 10 000, 1)
  dim 1  normalised token count     min(words / 1 000, 1)
  dim 2  normalised unique tokens   min(unique lowercase \\w+ tokens / 500, 1)
  dim 3  stochastic variation       uniform [0.9, 1.0)

All values lie in [0, 1]. Downstream code depends only on the contract
"fixed dimensionality, comparable with similarity()", so any embedding
source of the same dimension can replace it without other changes.

Availability over accuracy:
  Before computing, the embedder sends a short probe prompt to the
  generative capability. If that call fails for any reason the neutral
  vector [0.5] * dimensions is returned instead, so document ingestion is
  never blocked by an AI outage.
"""

from __future__ import annotations

import logging
import math
import random
import re
from abc import ABC, abstractmethod
from typing import Sequence

from docintel.llm.gateway import GenerativeCapability
from docintel.llm.prompts import embedding_probe_prompt

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

HEURISTIC_DIMENSIONS = 4
NEUTRAL_VALUE        = 0.5

LENGTH_NORMALIZER = 10_000
WORD_NORMALIZER   = 1_000
UNIQUE_NORMALIZER = 500

# Only the head of the text is sent with the probe
PROBE_MAX_CHARS = 2_000

_WORD_TOKEN = re.compile(r"\b\w+\b")


# ---------------------------------------------------------------------------
# Similarity
# ---------------------------------------------------------------------------

def cosine_similarity(a: Sequence[float] | None, b: Sequence[float] | None) -> float:
    """
    dot(a, b) / (||a|| * ||b||), in [-1, 1].

    Returns 0.0 when either vector is missing or empty, when the
    dimensions differ, or when either norm is zero. Never raises.
    """
    if not a or not b or len(a) != len(b):
        return 0.0

    dot    = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))

    if norm_a == 0 or norm_b == 0:
        return 0.0
    return max(-1.0, min(1.0, dot / (norm_a * norm_b)))


# ---------------------------------------------------------------------------
# Provider contract
# ---------------------------------------------------------------------------

class EmbeddingProvider(ABC):
    """Fixed-dimension vector source used by ingestion and search."""

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Length of every vector this provider returns."""

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Return a vector of length ``dimensions``. Must not raise on outages."""

    @staticmethod
    def similarity(a: Sequence[float] | None, b: Sequence[float] | None) -> float:
        return cosine_similarity(a, b)

    def neutral_vector(self) -> list[float]:
        return [NEUTRAL_VALUE] * self.dimensions


# ---------------------------------------------------------------------------
# Heuristic implementation
# ---------------------------------------------------------------------------

class HeuristicEmbedder(EmbeddingProvider):
    """
    Size/diversity heuristic embedder.

    Usage:
        embedder = HeuristicEmbedder(generator=GenerativeClient())
        vector   = await embedder.embed(text)       # 4 floats in [0, 1]

    Args:
        generator: capability probed before computing; None skips the probe.
        rng:       random source for the stochastic dimension (seed it in tests).
    """

    def __init__(
        self,
        generator: GenerativeCapability | None = None,
        rng:       random.Random | None        = None,
    ) -> None:
        self._generator = generator
        self._rng       = rng or random.Random()

    @property
    def dimensions(self) -> int:
        return HEURISTIC_DIMENSIONS

    async def embed(self, text: str) -> list[float]:
        if self._generator is not None:
            try:
                await self._generator.generate(embedding_probe_prompt(text[:PROBE_MAX_CHARS]))
            except Exception as exc:
                logger.warning(
                    "HeuristicEmbedder | generative probe failed, using neutral vector: %s %s",
                    type(exc).__name__, exc,
                )
                return self.neutral_vector()

        return self.features(text)

    def features(self, text: str) -> list[float]:
        """The deterministic three dimensions plus the stochastic one."""
        word_count   = len(text.split())
        unique_words = len(set(_WORD_TOKEN.findall(text.lower())))

        return [
            min(len(text) / LENGTH_NORMALIZER, 1.0),
            min(word_count / WORD_NORMALIZER, 1.0),
            min(unique_words / UNIQUE_NORMALIZER, 1.0),
            self._rng.random() * 0.1 + 0.9,
        ]
