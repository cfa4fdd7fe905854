"""
Storage protocols and backends for the personalization engine.

Provides protocol definitions for the document store the engine reads and
writes, plus two backends for each: in-memory (tests, single process) and
SQLAlchemy (any SQLAlchemy-compatible database).
"""

from brand_memory.storage.feedback.memory import InMemoryFeedbackStore
from brand_memory.storage.feedback.sqlalchemy import SQLAlchemyFeedbackStore
from brand_memory.storage.protocols import FeedbackStore, SettingsStore, VectorRecordStore
from brand_memory.storage.settings.memory import InMemorySettingsStore
from brand_memory.storage.settings.sqlalchemy import SQLAlchemySettingsStore
from brand_memory.storage.vector.memory import InMemoryVectorRecordStore
from brand_memory.storage.vector.sqlalchemy import SQLAlchemyVectorRecordStore

__all__ = [
    "VectorRecordStore",
    "FeedbackStore",
    "SettingsStore",
    "InMemoryVectorRecordStore",
    "SQLAlchemyVectorRecordStore",
    "InMemoryFeedbackStore",
    "SQLAlchemyFeedbackStore",
    "InMemorySettingsStore",
    "SQLAlchemySettingsStore",
]
