"""
Document intelligence — summaries, keywords and free-text analysis.

Thin prompt-and-postprocess layer over the generative capability. Nothing
here caches; ArtifactCache decides whether these are called at all.
"""

from __future__ import annotations

import logging

from docintel.core.config import Settings, settings
from docintel.core.exceptions import EmptyInputError
from docintel.llm.gateway import GenerativeCapability
from docintel.llm.prompts import analysis_prompt, keywords_prompt, summary_prompt

logger = logging.getLogger(__name__)


def _require_text(text: str | None, what: str) -> str:
    if not text or not text.strip():
        raise EmptyInputError(f"Text to {what} must not be empty.")
    return text


def split_keywords(raw: str, max_keywords: int) -> list[str]:
    """'a, b, , c' → ['a', 'b', 'c'], first max_keywords kept."""
    keywords = [k.strip() for k in raw.split(",")]
    return [k for k in keywords if k][:max_keywords]


class DocumentIntelligence:

    def __init__(
        self,
        generator: GenerativeCapability,
        config:    Settings | None = None,
    ) -> None:
        self._generator = generator
        self._config    = config or settings

    async def summarize(self, text: str, max_words: int | None = None) -> str:
        """
        Summarise ``text`` in at most ``max_words`` words (a request to the
        model, not enforced). The stored form is capped at summary_max_chars.
        """
        text      = _require_text(text, "summarize")
        max_words = max_words or self._config.summary_max_words

        summary = (await self._generator.generate(summary_prompt(text, max_words))).strip()
        if len(summary) > self._config.summary_max_chars:
            logger.info(
                "Summary truncated | chars=%d max=%d",
                len(summary), self._config.summary_max_chars,
            )
            summary = summary[: self._config.summary_max_chars]
        return summary

    async def extract_keywords(self, text: str, max_keywords: int | None = None) -> list[str]:
        text         = _require_text(text, "extract keywords from")
        max_keywords = max_keywords or self._config.max_keywords

        raw = await self._generator.generate(keywords_prompt(text, max_keywords))
        return split_keywords(raw, max_keywords)

    async def analyze_text(self, text: str) -> str:
        """Topic, genre, key concepts and tone, as free text."""
        text = _require_text(text, "analyze")
        return (await self._generator.generate(analysis_prompt(text))).strip()
