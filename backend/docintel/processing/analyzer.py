"""
Content Analyzer — structural statistics over normalised text.

Pure function, no I/O. Reported to the caller alongside every upload.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

WORDS_PER_MINUTE = 200

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


@dataclass(frozen=True)
class ContentAnalysis:
    """
    character_count      : len(text)
    word_count           : whitespace-delimited non-empty tokens
    line_count           : newline-separated lines (0 for empty text)
    paragraph_count      : non-empty blocks separated by blank lines
    average_word_length  : mean token length, 2 decimals (0 if no words)
    reading_time_minutes : ceil(word_count / 200)
    """
    character_count:      int   = 0
    word_count:           int   = 0
    line_count:           int   = 0
    paragraph_count:      int   = 0
    average_word_length:  float = 0.0
    reading_time_minutes: int   = 0


def analyze_content(text: str | None) -> ContentAnalysis:
    if not text:
        return ContentAnalysis()

    words = text.split()
    avg   = round(sum(len(w) for w in words) / len(words), 2) if words else 0.0

    return ContentAnalysis(
        character_count=len(text),
        word_count=len(words),
        line_count=len(text.split("\n")),
        paragraph_count=sum(1 for block in _PARAGRAPH_BREAK.split(text) if block.strip()),
        average_word_length=avg,
        reading_time_minutes=math.ceil(len(words) / WORDS_PER_MINUTE),
    )
