"""Fixtures and helpers for integration tests."""

import os

import pytest
from sqlalchemy import create_engine

from brand_memory.storage.feedback.sqlalchemy import SQLAlchemyFeedbackStore
from brand_memory.storage.settings.sqlalchemy import SQLAlchemySettingsStore
from brand_memory.storage.vector.sqlalchemy import SQLAlchemyVectorRecordStore


def has_openai_key() -> bool:
    """Check for a usable (non-placeholder) OpenAI API key."""
    key = os.getenv("OPENAI_API_KEY", "")
    return bool(key) and not key.startswith("sk-test")


@pytest.fixture
def skip_if_no_openai():
    """Skip test if no real OpenAI API key is configured."""
    if not has_openai_key():
        pytest.skip("OPENAI_API_KEY not set")


@pytest.fixture
def sqlite_engine(tmp_path):
    """File-backed SQLite database shared by all stores of one test."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'brand_memory.db'}",
        connect_args={"check_same_thread": False},
    )
    yield engine
    engine.dispose()


@pytest.fixture
def stores(sqlite_engine):
    """(records, feedback, settings) SQLAlchemy stores with tables created."""
    records = SQLAlchemyVectorRecordStore(sqlite_engine)
    feedback = SQLAlchemyFeedbackStore(sqlite_engine)
    settings = SQLAlchemySettingsStore(sqlite_engine)

    for store in (records, feedback, settings):
        store.create_tables()

    return records, feedback, settings
