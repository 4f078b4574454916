"""
Unit Tests — ArtifactCache and DocumentIntelligence
════════════════════════════════════════════════════

Coverage targets:
  ✅ Miss → compute once, store, cached=False
  ✅ Hit  → no compute, cached=True
  ✅ Summary and keywords cached independently
  ✅ Failing compute → error propagates, nothing stored
  ✅ last_processed refreshed on compute
  ✅ Summary truncation, keyword splitting and capping
  ✅ Empty input → EmptyInputError
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from docintel.core.config import Settings
from docintel.core.exceptions import EmptyInputError, UpstreamError
from docintel.services.artifacts import ArtifactCache, ArtifactKind
from docintel.services.intelligence import DocumentIntelligence, split_keywords


class CountingCompute:
    """Async callable that records how often it ran."""

    def __init__(self, value):
        self.value = value
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        return self.value


# ─────────────────────────────────────────────────────────────────────────────
# ArtifactCache
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.unit
@pytest.mark.artifacts
class TestArtifactCache:

    async def test_second_request_is_served_from_cache(self, db_session, make_document):
        doc = await make_document("Some content")
        cache = ArtifactCache(db_session)
        compute = CountingCompute("A short summary")

        first  = await cache.get_or_compute(doc, ArtifactKind.SUMMARY, compute)
        second = await cache.get_or_compute(doc, ArtifactKind.SUMMARY, compute)

        assert compute.calls == 1
        assert (first.value, first.cached) == ("A short summary", False)
        assert (second.value, second.cached) == ("A short summary", True)
        assert doc.summary_text == "A short summary"

    async def test_prepopulated_summary_is_a_hit(self, db_session, make_document):
        doc = await make_document("Some content", summary_text="stored")
        compute = CountingCompute("fresh")

        result = await ArtifactCache(db_session).summary(doc, compute)

        assert compute.calls == 0
        assert result.value == "stored"
        assert result.cached is True

    async def test_empty_keyword_list_is_a_miss(self, db_session, make_document):
        doc = await make_document("Some content", keywords=[])
        compute = CountingCompute(["alpha", "beta"])

        result = await ArtifactCache(db_session).keywords(doc, compute)

        assert compute.calls == 1
        assert result.cached is False
        assert doc.keywords == ["alpha", "beta"]

    async def test_artifacts_are_cached_independently(self, db_session, make_document):
        doc = await make_document("Some content")
        cache = ArtifactCache(db_session)

        await cache.summary(doc, CountingCompute("summary"))
        keywords = await cache.keywords(doc, CountingCompute(["k1"]))

        assert keywords.cached is False
        assert doc.summary_text == "summary"
        assert doc.keywords == ["k1"]

    async def test_compute_failure_propagates_and_writes_nothing(self, db_session, make_document):
        doc = await make_document("Some content")
        processed_before = doc.last_processed

        async def boom():
            raise UpstreamError("The AI service is unavailable")

        with pytest.raises(UpstreamError):
            await ArtifactCache(db_session).summary(doc, boom)

        assert doc.summary_text is None
        assert doc.last_processed == processed_before

    async def test_compute_refreshes_last_processed(self, db_session, make_document):
        old = datetime(2020, 1, 1, tzinfo=timezone.utc)
        doc = await make_document("Some content", last_processed=old)

        await ArtifactCache(db_session).summary(doc, CountingCompute("s"))

        assert doc.last_processed > old

    async def test_computed_value_is_persisted(self, db_session, make_document):
        from docintel.db.repository import DocumentRepository

        doc = await make_document("Some content")
        await ArtifactCache(db_session).keywords(doc, CountingCompute(["x", "y"]))

        owner, doc_id = doc.owner_id, doc.id
        db_session.expire(doc)
        reloaded = await DocumentRepository(db_session).get(owner, doc_id)
        assert reloaded.keywords == ["x", "y"]


# ─────────────────────────────────────────────────────────────────────────────
# DocumentIntelligence
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.unit
@pytest.mark.artifacts
class TestDocumentIntelligence:

    async def test_summary_is_trimmed(self, make_generator):
        intelligence = DocumentIntelligence(make_generator("  The gist.  "))
        assert await intelligence.summarize("long text") == "The gist."

    async def test_summary_is_capped_at_max_chars(self, make_generator):
        config = Settings(summary_max_chars=10)
        intelligence = DocumentIntelligence(make_generator("x" * 50), config)
        assert await intelligence.summarize("long text") == "x" * 10

    async def test_keywords_are_split_trimmed_and_capped(self, make_generator):
        reply = ", ".join(f"kw{i}" for i in range(15)) + ", ,"
        intelligence = DocumentIntelligence(make_generator(reply))

        keywords = await intelligence.extract_keywords("text")

        assert keywords == [f"kw{i}" for i in range(10)]

    async def test_explicit_keyword_cap(self, make_generator):
        intelligence = DocumentIntelligence(make_generator("a, b, c, d"))
        assert await intelligence.extract_keywords("text", max_keywords=2) == ["a", "b"]

    async def test_analysis_returns_model_text(self, make_generator):
        intelligence = DocumentIntelligence(make_generator("Topic: finance. Tone: formal."))
        assert await intelligence.analyze_text("Q3 report") == "Topic: finance. Tone: formal."

    @pytest.mark.parametrize("method", ["summarize", "extract_keywords", "analyze_text"])
    @pytest.mark.parametrize("text", ["", "   \n"])
    async def test_empty_input_is_rejected(self, failing_generator, method, text):
        intelligence = DocumentIntelligence(failing_generator)
        with pytest.raises(EmptyInputError):
            await getattr(intelligence, method)(text)

    async def test_upstream_failure_propagates(self, rate_limited_generator):
        from docintel.core.exceptions import RateLimited

        with pytest.raises(RateLimited):
            await DocumentIntelligence(rate_limited_generator).summarize("text")

    def test_split_keywords_drops_blanks(self):
        assert split_keywords(" a ,, b,\nc ,", 10) == ["a", "b", "c"]
