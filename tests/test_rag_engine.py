"""Tests for the RAG engine: retrieval, store/update entry points, usage."""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, Mock

import pytest

from brand_memory.config import ConfigStore
from brand_memory.errors import RateLimitExceeded
from brand_memory.models import RAGContext, RetrievalOptions
from brand_memory.rag_engine import RAGEngine
from brand_memory.rate_limiter import AdmissionDecision
from brand_memory.storage.settings.memory import InMemorySettingsStore
from brand_memory.storage.vector.memory import InMemoryVectorRecordStore

NOW = datetime(2025, 6, 15, 12, 0, 0)


class KeywordEmbedding:
    """
    Deterministic embedder for tests: one weighted dimension per keyword.

    "skincare" dominates, so any two skincare texts are highly similar and
    unrelated texts score zero.
    """

    KEYWORDS = {
        "skincare": 5.0,
        "serum": 1.0,
        "photo": 1.0,
        "organic": 1.0,
        "coffee": 5.0,
        "roast": 1.0,
    }

    def __init__(self):
        self.calls = []

    async def embed(self, text):
        if not text or not text.strip():
            raise ValueError("Cannot embed empty text")
        self.calls.append(text)
        lowered = text.lower()
        return [weight if word in lowered else 0.0 for word, weight in self.KEYWORDS.items()]


def clock():
    return NOW


@pytest.fixture
def records():
    return InMemoryVectorRecordStore()


@pytest.fixture
def settings():
    return InMemorySettingsStore()


@pytest.fixture
def embedding():
    return KeywordEmbedding()


@pytest.fixture
def engine(records, embedding, settings):
    return RAGEngine(records, embedding, settings_store=settings, clock=clock)


@pytest.mark.asyncio
async def test_brand_profile_is_retrieved_for_related_query(engine):
    """Test that a stored brand description shapes context for a related request."""
    await engine.store_content_vector(
        "user1",
        "brand_profile",
        "brand_user1",
        "Organic skincare for sensitive skin, minimalist aesthetic",
    )

    context = await engine.retrieve_relevant_context(
        "skincare serum product photo", RetrievalOptions(user_id="user1")
    )

    assert "Organic skincare for sensitive skin" in context.brand_patterns


@pytest.mark.asyncio
async def test_unrelated_content_is_not_retrieved(engine):
    """Test that dissimilar content stays out of the context."""
    await engine.store_content_vector(
        "user1", "brand_profile", "brand_user1", "Small batch coffee roast"
    )

    context = await engine.retrieve_relevant_context(
        "skincare serum product photo", RetrievalOptions(user_id="user1")
    )

    assert context.brand_patterns == ""


@pytest.mark.asyncio
async def test_retrieval_is_scoped_to_user(engine):
    """Test that another user's content is never read."""
    await engine.store_content_vector(
        "user2", "brand_profile", "brand_user2", "Organic skincare essentials"
    )

    context = await engine.retrieve_relevant_context(
        "skincare serum", RetrievalOptions(user_id="user1")
    )

    assert context.is_empty()


@pytest.mark.asyncio
async def test_retrieval_uses_configured_threshold(records, embedding):
    """Test that the similarity threshold comes from the system config."""
    settings = InMemorySettingsStore({"performance": {"similarityThreshold": 0.99}})
    engine = RAGEngine(records, embedding, settings_store=settings, clock=clock)
    await engine.store_content_vector(
        "user1", "brand_profile", "brand_user1", "Organic skincare for sensitive skin"
    )

    context = await engine.retrieve_relevant_context(
        "skincare serum product photo", RetrievalOptions(user_id="user1")
    )

    assert context.brand_patterns == ""


@pytest.mark.asyncio
async def test_retrieval_social_context(engine):
    """Test end-to-end social media context."""
    await engine.store_content_vector(
        "user1",
        "social_media",
        "post1",
        "Organic skincare that loves your skin. Shop the serum.",
        metadata={"performance": 0.9, "tags": ["skincare", "organic"], "style": "minimalist"},
    )

    context = await engine.retrieve_relevant_context(
        "skincare serum post", RetrievalOptions(user_id="user1", content_type="social_media")
    )

    assert context.voice_patterns == (
        "Successful voice patterns: Organic skincare that loves your skin"
    )
    assert context.effective_hashtags == "#skincare #organic"
    assert context.successful_styles == "minimalist (used 1 times successfully)"
    assert context.performance_insights == "Your content consistently performs well"


@pytest.mark.asyncio
async def test_retrieval_respects_max_context_length(records, embedding):
    """Test that the context budget from the config is applied."""
    settings = InMemorySettingsStore({"performance": {"maxContextLength": 60}})
    engine = RAGEngine(records, embedding, settings_store=settings, clock=clock)
    await engine.store_content_vector(
        "user1", "brand_profile", "brand_user1", "Organic skincare " * 30
    )

    context = await engine.retrieve_relevant_context("skincare", RetrievalOptions(user_id="user1"))

    assert context.brand_patterns.endswith("...")
    assert sum(len(v) for v in context.model_dump().values()) <= 60


@pytest.mark.asyncio
async def test_retrieval_limiter_error_returns_empty_context(engine):
    """Test that a throwing limiter degrades retrieval to an empty context."""
    await engine.store_content_vector(
        "user1", "brand_profile", "brand_user1", "Organic skincare for sensitive skin"
    )
    engine.rate_limiter.check_admission = AsyncMock(side_effect=RuntimeError("limiter down"))

    context = await engine.retrieve_relevant_context(
        "skincare serum", RetrievalOptions(user_id="user1")
    )

    assert context == RAGContext()


@pytest.mark.asyncio
async def test_retrieval_rate_limited_returns_empty_context(engine, embedding):
    """Test that a denied retrieval degrades instead of raising."""
    await engine.store_content_vector(
        "user1", "brand_profile", "brand_user1", "Organic skincare for sensitive skin"
    )
    engine.rate_limiter.check_admission = AsyncMock(
        return_value=AdmissionDecision(allowed=False, reason="Rate limit exceeded")
    )
    calls_before = len(embedding.calls)

    context = await engine.retrieve_relevant_context(
        "skincare serum", RetrievalOptions(user_id="user1")
    )

    assert context.is_empty()
    assert len(embedding.calls) == calls_before


@pytest.mark.asyncio
async def test_store_rate_limited_raises(engine):
    """Test that writes surface an explicit rate limit denial."""
    engine.rate_limiter.check_admission = AsyncMock(
        return_value=AdmissionDecision(
            allowed=False, reason="Rate limit exceeded: 50/50", current=50, limit=50, window="hour"
        )
    )

    with pytest.raises(RateLimitExceeded):
        await engine.store_content_vector("user1", "social_media", "post1", "Organic skincare")

    with pytest.raises(RateLimitExceeded):
        await engine.update_content_vector("user1", "post1", "New skincare caption")


@pytest.mark.asyncio
async def test_store_limiter_error_still_writes(engine, records):
    """Test that writes proceed when the limiter itself fails."""
    engine.rate_limiter.check_admission = AsyncMock(side_effect=RuntimeError("limiter down"))

    record_id = await engine.store_content_vector(
        "user1", "social_media", "post1", "Organic skincare"
    )

    assert record_id is not None
    assert await records.count("user1") == 1


@pytest.mark.asyncio
async def test_store_rate_limit_from_config(records, embedding):
    """Test the real limiter against stored records."""
    settings = InMemorySettingsStore(
        {"rateLimiting": {"enabled": True, "userMaxPerHour": 2, "userMaxPerDay": 10}}
    )
    engine = RAGEngine(records, embedding, settings_store=settings, clock=clock)

    await engine.store_content_vector("user1", "social_media", "post1", "Skincare one")
    await engine.store_content_vector("user1", "social_media", "post2", "Skincare two")

    with pytest.raises(RateLimitExceeded) as exc_info:
        await engine.store_content_vector("user1", "social_media", "post3", "Skincare three")

    assert str(exc_info.value) == "Rate limit exceeded: 2/2 embeddings used in the last hour"

    # Retrieval over the same budget degrades instead of raising
    context = await engine.retrieve_relevant_context("skincare", RetrievalOptions(user_id="user1"))
    assert context.is_empty()


@pytest.mark.asyncio
async def test_update_metadata_only(engine, records, embedding):
    """Test the metadata-only update path through the engine."""
    await engine.store_content_vector("user1", "social_media", "post1", "Skincare caption")
    calls_before = len(embedding.calls)

    assert await engine.update_content_vector("user1", "post1", metadata={"performance": 0.9})

    stored = await records.get_by_content_id("user1", "post1")
    assert stored.text_content == "Skincare caption"
    assert stored.metadata.performance == 0.9
    assert len(embedding.calls) == calls_before


@pytest.mark.asyncio
async def test_retrieval_store_failure_returns_empty_context(embedding):
    """Test that an unavailable store degrades retrieval."""
    records = Mock()
    records.list = AsyncMock(side_effect=RuntimeError("store down"))
    records.count_created_since = AsyncMock(return_value=0)
    engine = RAGEngine(records, embedding, clock=clock)

    context = await engine.retrieve_relevant_context("skincare", RetrievalOptions(user_id="user1"))

    assert context.is_empty()


@pytest.mark.asyncio
async def test_industry_patterns_are_a_stub(engine):
    """Test that industry patterns never add anything."""
    await engine.store_content_vector(
        "user1", "brand_profile", "brand_user1", "Organic skincare for sensitive skin"
    )
    options = RetrievalOptions(user_id="user1", include_industry_patterns=True, industry="beauty")

    context = await engine.retrieve_relevant_context("skincare serum", options)

    assert context.industry_insights == ""
    assert await engine._query_industry_vectors([1.0], options) == []


@pytest.mark.asyncio
async def test_get_user_usage(records, embedding):
    """Test usage reporting from stored vectors."""
    settings = InMemorySettingsStore({"embedding": {"costPer1K": 0.5}})
    engine = RAGEngine(
        records, embedding, config_store=ConfigStore(settings, clock=clock), clock=clock
    )
    await engine.store_content_vector("user1", "social_media", "post1", "Skincare one")
    await engine.store_content_vector("user1", "social_media", "post2", "Skincare two")

    usage = await engine.get_user_usage("user1")

    assert usage.user_id == "user1"
    assert usage.total_embeddings == 2
    assert usage.estimated_cost == pytest.approx(0.001)
    assert usage.avg_performance == pytest.approx(0.5)
    assert usage.last_activity == NOW
    assert usage.recent_embeddings == 2


@pytest.mark.asyncio
async def test_get_user_usage_store_failure(embedding):
    """Test that usage reporting degrades to zeros."""
    records = Mock()
    records.list = AsyncMock(side_effect=RuntimeError("store down"))
    engine = RAGEngine(records, embedding, clock=clock)

    usage = await engine.get_user_usage("user1")

    assert usage.total_embeddings == 0
    assert usage.last_activity is None


@pytest.mark.asyncio
async def test_recent_timeframe_excludes_old_vectors(engine, records):
    """Test timeframe filtering end to end."""
    await engine.store_content_vector(
        "user1", "brand_profile", "brand_user1", "Organic skincare for sensitive skin"
    )
    stored = await records.get_by_content_id("user1", "brand_user1")
    stored.metadata.created_at = NOW - timedelta(days=45)
    await records.save(stored)

    recent = await engine.retrieve_relevant_context(
        "skincare serum", RetrievalOptions(user_id="user1", timeframe="recent")
    )
    quarter = await engine.retrieve_relevant_context(
        "skincare serum", RetrievalOptions(user_id="user1", timeframe="90days")
    )

    assert recent.brand_patterns == ""
    assert "Organic skincare" in quarter.brand_patterns
