"""
Generative Capability Gateway — "produce text from a prompt"

The gateway is the single call site for every LLM request in the core:
summaries, keywords, free-text analysis, in-document search and the
embedding probe.

  ┌─────────────────────────────────────────────────────┐
  │  GenerativeClient.generate(prompt)                  │
  │       │                                             │
  │       ▼                                             │
  │  BaseChatModel.ainvoke([HumanMessage])  ← timeout   │
  │       │                                             │
  │       ├── ok       → text content (stripped)        │
  │       ├── throttle → RateLimited   (retry later)    │
  │       └── anything else → UpstreamError             │
  └─────────────────────────────────────────────────────┘

The chat model is a passed-in dependency, never a module singleton: tests
substitute LangChain's fake chat models, production builds ChatOpenAI or
AzureChatOpenAI from settings on first use.

There is no retry loop here. Throttling and outages are
surfaced synchronously; backoff is the caller's concern.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Protocol

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage

from docintel.core.config import Settings, settings
from docintel.core.exceptions import DocIntelError, RateLimited, UpstreamError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Capability contract
# ---------------------------------------------------------------------------

class GenerativeCapability(Protocol):
    """Anything that can turn a prompt into text."""

    async def generate(self, prompt: str) -> str: ...


# ---------------------------------------------------------------------------
# Upstream exception classification
# ---------------------------------------------------------------------------

_RATE_LIMIT_EXCEPTION_TYPES = (
    # openai
    "RateLimitError",
    # google / grpc
    "ResourceExhausted",
    "TooManyRequests",
)

_RATE_LIMIT_MARKERS = ("rate limit", "rate_limit", "quota", "429", "too many requests")


def _is_rate_limit(exc: Exception) -> bool:
    """True if the exception class name or message signals throttling."""
    name = type(exc).__name__
    if any(name.endswith(r) for r in _RATE_LIMIT_EXCEPTION_TYPES):
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _RATE_LIMIT_MARKERS)


def classify_upstream_error(exc: Exception) -> UpstreamError:
    """Map a provider exception onto the caller-visible taxonomy."""
    detail = {"provider_error": type(exc).__name__}
    if _is_rate_limit(exc):
        return RateLimited(
            "The AI service rate limit was exceeded. Please wait and try again.",
            detail,
        )
    return UpstreamError(f"The AI service is unavailable: {exc}", detail)


def _estimate_tokens(messages: list[BaseMessage]) -> int:
    """Rough token count: 4 chars ≈ 1 token (OpenAI heuristic)."""
    total_chars = sum(len(m.content) for m in messages if isinstance(m.content, str))
    return max(1, total_chars // 4)


def _content_to_text(content: object) -> str:
    """Chat models may return a string or a list of content blocks."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        return "".join(parts)
    return ""


# ---------------------------------------------------------------------------
# Chat model construction
# ---------------------------------------------------------------------------

def build_chat_model(config: Settings | None = None) -> BaseChatModel:
    """
    Instantiate the LangChain chat model selected by ``llm_provider``.

    Returns a BaseChatModel — the client only ever calls .ainvoke().
    """
    cfg = config or settings

    if cfg.llm_provider == "openai":
        from langchain_openai import ChatOpenAI
        return ChatOpenAI(
            model=cfg.llm_model,
            api_key=cfg.openai_api_key,
            temperature=cfg.llm_temperature,
            max_tokens=cfg.llm_max_tokens,
        )

    if cfg.llm_provider == "azure_openai":
        from langchain_openai import AzureChatOpenAI
        return AzureChatOpenAI(
            azure_deployment=cfg.azure_openai_deployment,
            azure_endpoint=cfg.azure_openai_endpoint,
            api_key=cfg.azure_openai_api_key,
            api_version=cfg.azure_openai_api_version,
            temperature=cfg.llm_temperature,
            max_tokens=cfg.llm_max_tokens,
        )

    raise ValueError(f"Unsupported LLM provider: {cfg.llm_provider}")


# ---------------------------------------------------------------------------
# GenerativeClient
# ---------------------------------------------------------------------------

class GenerativeClient:
    """
    Prompt-in, text-out wrapper over a LangChain chat model.

    Safe for concurrent use; holds no per-request state.

    Usage::

        client = GenerativeClient()                       # model from settings
        client = GenerativeClient(llm=FakeListChatModel(responses=["..."]))
        text   = await client.generate("Summarise: ...")
    """

    def __init__(
        self,
        llm:             BaseChatModel | None = None,
        timeout_seconds: float | None         = None,
        config:          Settings | None      = None,
    ) -> None:
        self._config  = config or settings
        self._llm     = llm
        self._timeout = timeout_seconds or self._config.llm_timeout_seconds

    @property
    def llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = build_chat_model(self._config)
        return self._llm

    async def generate(self, prompt: str) -> str:
        """
        Send one prompt and return the stripped text response.

        Raises:
            RateLimited:   the provider is throttling.
            UpstreamError: timeout, network/auth failure or an empty response.
        """
        messages = [HumanMessage(content=prompt)]
        t0 = time.perf_counter()

        try:
            result = await asyncio.wait_for(self.llm.ainvoke(messages), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning("GenerativeClient | timed out after %.0fs", self._timeout)
            raise UpstreamError(
                f"The AI service did not respond within {self._timeout:.0f} seconds.",
                {"timeout_seconds": self._timeout},
            ) from None
        except DocIntelError:
            raise
        except Exception as exc:
            error = classify_upstream_error(exc)
            logger.warning(
                "GenerativeClient | provider error kind=%s type=%s: %s",
                error.code, type(exc).__name__, exc,
            )
            raise error from exc

        text = _content_to_text(getattr(result, "content", None)).strip()
        latency_ms = (time.perf_counter() - t0) * 1000

        if not text:
            logger.warning("GenerativeClient | empty response latency_ms=%.1f", latency_ms)
            raise UpstreamError("The AI service returned an empty response.")

        logger.info(
            "GenerativeClient | tokens_in≈%d tokens_out≈%d latency_ms=%.1f",
            _estimate_tokens(messages), max(1, len(text) // 4), latency_ms,
        )
        return text
