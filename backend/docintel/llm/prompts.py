"""
Prompt templates for every generative call in the core.

Templates are plain ``str.format`` strings. The in-document search template
fixes the exact line format that rag.in_document.parse_segment_results
reads back.
"""

from __future__ import annotations

from typing import Final

SEGMENT_MARKER: Final[str] = "SEGMENT"
IMPORTANCE_LABEL: Final[str] = "Importance"

SUMMARY_TEMPLATE: Final[str] = """\
Summarise the following text. Keep the summary under {max_words} words and
cover the main ideas of the text.

{text}

Summary:
"""

KEYWORDS_TEMPLATE: Final[str] = """\
Extract the {max_keywords} most important keywords or key phrases from the
following text. Reply ONLY with the keywords separated by commas, with no
other explanation.

{text}
"""

ANALYSIS_TEMPLATE: Final[str] = """\
Analyse this text and report:
1. What is the main topic?
2. What kind of text is it? (article, report, e-mail, etc.)
3. What are the key concepts?
4. What is the tone? (formal, casual, technical, etc.)

Text: {text}
"""

EMBEDDING_PROBE_TEMPLATE: Final[str] = """\
Analyse this text and determine its semantic features:
{text}

Reply only with numeric values between 0 and 1.
"""

IN_DOCUMENT_SEARCH_TEMPLATE: Final[str] = """\
Find the sections of the document below that relate to the query "{query}"
and analyse them.

Document:
{document}

Query: {query}

For each relevant section give:
1. Its start and end positions (as character offsets into the document)
2. A short description
3. Its importance (1-10)

Return at most {max_results} sections, one per line, in EXACTLY this format:
{marker} 1: <start>-<end> - <description> - {importance}: <1-10>
{marker} 2: <start>-<end> - <description> - {importance}: <1-10>
...
"""


def summary_prompt(text: str, max_words: int) -> str:
    return SUMMARY_TEMPLATE.format(text=text, max_words=max_words)


def keywords_prompt(text: str, max_keywords: int) -> str:
    return KEYWORDS_TEMPLATE.format(text=text, max_keywords=max_keywords)


def analysis_prompt(text: str) -> str:
    return ANALYSIS_TEMPLATE.format(text=text)


def embedding_probe_prompt(text: str) -> str:
    return EMBEDDING_PROBE_TEMPLATE.format(text=text)


def in_document_search_prompt(document: str, query: str, max_results: int) -> str:
    return IN_DOCUMENT_SEARCH_TEMPLATE.format(
        document=document,
        query=query,
        max_results=max_results,
        marker=SEGMENT_MARKER,
        importance=IMPORTANCE_LABEL,
    )
