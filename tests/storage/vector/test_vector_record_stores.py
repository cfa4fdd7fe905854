"""
Contract tests for vector record storage.

Every test runs against the in-memory store and the SQLAlchemy store backed
by in-memory SQLite.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from brand_memory.models import VectorMetadata, VectorRecord
from brand_memory.storage.vector.memory import InMemoryVectorRecordStore
from brand_memory.storage.vector.sqlalchemy import SQLAlchemyVectorRecordStore

NOW = datetime(2025, 6, 15, 12, 0, 0)


def make_sqlalchemy_store():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    store = SQLAlchemyVectorRecordStore(engine)
    store.create_tables()
    return store


@pytest.fixture(params=["memory", "sqlalchemy"])
def store(request):
    if request.param == "memory":
        return InMemoryVectorRecordStore()
    return make_sqlalchemy_store()


def make_record(user_id="user1", content_id="post_1", content_type="social_media", **metadata):
    metadata.setdefault("created_at", NOW)
    metadata.setdefault("updated_at", NOW)
    return VectorRecord(
        user_id=user_id,
        content_type=content_type,
        content_id=content_id,
        embedding=[0.1, 0.2, 0.3],
        text_content=f"text for {content_id}",
        metadata=VectorMetadata(**metadata),
        source_collection="social_posts",
        source_doc_id=content_id,
    )


@pytest.mark.asyncio
async def test_add_and_get_by_content_id(store):
    """Test that a stored record round-trips with all its fields."""
    record_id = await store.add(
        make_record(style="minimalist", platform="instagram", tags=["glow"], performance=0.9)
    )

    found = await store.get_by_content_id("user1", "post_1")

    assert found is not None
    assert found.id == record_id
    assert found.embedding == [0.1, 0.2, 0.3]
    assert found.text_content == "text for post_1"
    assert found.metadata.style == "minimalist"
    assert found.metadata.platform == "instagram"
    assert found.metadata.tags == ["glow"]
    assert found.metadata.performance == 0.9
    assert found.metadata.created_at == NOW
    assert found.metadata.version == 1
    assert found.source_collection == "social_posts"


@pytest.mark.asyncio
async def test_add_assigns_fresh_ids(store):
    """Test that the store ignores caller IDs."""
    first = await store.add(make_record().model_copy(update={"id": "caller-id"}))
    second = await store.add(make_record(content_id="post_2"))

    assert first != "caller-id"
    assert first != second


@pytest.mark.asyncio
async def test_get_by_content_id_is_user_scoped(store):
    """Test that records are never read across users."""
    await store.add(make_record(user_id="user1"))

    assert await store.get_by_content_id("user2", "post_1") is None
    assert await store.get_by_content_id("user1", "missing") is None


@pytest.mark.asyncio
async def test_get_by_content_id_returns_first_match(store):
    """Test that duplicates resolve to the earliest record."""
    first_id = await store.add(make_record(style="first"))
    await store.add(make_record(style="second"))

    found = await store.get_by_content_id("user1", "post_1")

    assert found.id == first_id
    assert found.metadata.style == "first"


@pytest.mark.asyncio
async def test_list_keeps_insertion_order_and_filters(store):
    """Test listing by user and content type."""
    await store.add(make_record(content_id="a"))
    await store.add(make_record(content_id="b", content_type="blog_post"))
    await store.add(make_record(content_id="c"))
    await store.add(make_record(user_id="user2", content_id="d"))

    everything = await store.list("user1")
    social = await store.list("user1", "social_media")

    assert [r.content_id for r in everything] == ["a", "b", "c"]
    assert [r.content_id for r in social] == ["a", "c"]


@pytest.mark.asyncio
async def test_save_overwrites(store):
    """Test a plain overwrite."""
    await store.add(make_record())
    record = await store.get_by_content_id("user1", "post_1")

    record.metadata.performance = 0.2
    assert await store.save(record) is True

    saved = await store.get_by_content_id("user1", "post_1")
    assert saved.metadata.performance == 0.2


@pytest.mark.asyncio
async def test_save_with_version_guard(store):
    """Test optimistic concurrency on save."""
    await store.add(make_record())
    record = await store.get_by_content_id("user1", "post_1")

    record.metadata.version = 2
    assert await store.save(record, expected_version=1) is True

    # A writer still holding version 1 loses
    record.metadata.performance = 0.1
    assert await store.save(record, expected_version=1) is False

    saved = await store.get_by_content_id("user1", "post_1")
    assert saved.metadata.version == 2
    assert saved.metadata.performance == 0.5


@pytest.mark.asyncio
async def test_save_missing_record(store):
    """Test saving a record that was never added."""
    assert await store.save(make_record().model_copy(update={"id": "nope"})) is False


@pytest.mark.asyncio
async def test_returned_records_are_copies(store):
    """Test that mutating a returned record does not touch the store."""
    await store.add(make_record())

    record = await store.get_by_content_id("user1", "post_1")
    record.metadata.tags.append("mutated")

    fresh = await store.get_by_content_id("user1", "post_1")
    assert fresh.metadata.tags == []


@pytest.mark.asyncio
async def test_count_created_since(store):
    """Test the rate limiting window count."""
    await store.add(make_record(content_id="old", created_at=NOW - timedelta(hours=2)))
    await store.add(make_record(content_id="edge", created_at=NOW - timedelta(hours=1)))
    await store.add(make_record(content_id="new", created_at=NOW))

    assert await store.count_created_since("user1", NOW - timedelta(hours=1)) == 2
    assert await store.count_created_since("user2", NOW - timedelta(days=1)) == 0


@pytest.mark.asyncio
async def test_delete_and_count(store):
    """Test batch deletion."""
    keep = await store.add(make_record(content_id="keep"))
    drop_a = await store.add(make_record(content_id="drop_a"))
    drop_b = await store.add(make_record(content_id="drop_b"))

    deleted = await store.delete("user1", [drop_a, drop_b, "missing"])

    assert deleted == 2
    assert await store.count("user1") == 1
    assert [r.id for r in await store.list("user1")] == [keep]
    assert await store.delete("user1", []) == 0


@pytest.mark.asyncio
async def test_delete_is_user_scoped(store):
    """Test that one user cannot delete another user's records."""
    record_id = await store.add(make_record(user_id="user1"))

    assert await store.delete("user2", [record_id]) == 0
    assert await store.count("user1") == 1


@pytest.mark.asyncio
async def test_list_user_ids(store):
    """Test listing users that own records."""
    assert await store.list_user_ids() == []

    await store.add(make_record(user_id="user2"))
    await store.add(make_record(user_id="user1"))

    assert sorted(await store.list_user_ids()) == ["user1", "user2"]


@pytest.mark.asyncio
async def test_aware_datetimes_are_stored_as_naive_utc(store):
    """Test that timezone-aware timestamps compare cleanly after a round trip."""
    plus_two = timezone(timedelta(hours=2))
    created = datetime(2025, 6, 15, 14, 0, 0, tzinfo=plus_two)
    await store.add(make_record(created_at=created, updated_at=created))

    found = await store.get_by_content_id("user1", "post_1")

    assert found.metadata.created_at == NOW
    assert found.metadata.created_at.tzinfo is None

    # Aware and naive window bounds both work against stored rows
    aware_since = datetime(2025, 6, 15, 11, 0, 0, tzinfo=timezone.utc)
    assert await store.count_created_since("user1", aware_since) == 1
    assert await store.count_created_since("user1", aware_since + timedelta(hours=2)) == 0
    assert await store.count_created_since("user1", NOW) == 1
