"""
Storage protocol definitions for the personalization engine.

These protocols describe the read/write contract the engine needs from the
document store. They are implementation-agnostic: the bundled backends are an
in-memory store for tests and a SQLAlchemy store for real databases, but any
multi-tenant document database can satisfy them.

All methods are coroutines; every store call is a suspension point.
"""

from datetime import datetime
from typing import List, Optional, Protocol

from brand_memory.models import (
    ContentFeedback,
    PatternStats,
    PerformanceMetrics,
    RateLimitOverride,
    VectorRecord,
)


class VectorRecordStore(Protocol):
    """
    Protocol for per-user vector record storage.

    Records are partitioned by user_id and never read across users.
    """

    async def add(self, record: VectorRecord) -> str:
        """
        Append a record to the user's partition.

        Args:
            record: Record to store (its id is ignored and assigned by the store)

        Returns:
            The generated record ID
        """
        ...

    async def get_by_content_id(self, user_id: str, content_id: str) -> Optional[VectorRecord]:
        """
        Find the first record with an exact content_id match.

        Args:
            user_id: Owning user
            content_id: Logical ID of the source entity

        Returns:
            The record if found, None otherwise
        """
        ...

    async def save(self, record: VectorRecord, expected_version: Optional[int] = None) -> bool:
        """
        Overwrite an existing record.

        Args:
            record: Full record to write (must carry its id)
            expected_version: If given, only write when the stored version still matches

        Returns:
            True if written, False if the record is missing or the version moved on
        """
        ...

    async def list(self, user_id: str, content_type: Optional[str] = None) -> List[VectorRecord]:
        """
        Return every record for a user in insertion order.

        Args:
            user_id: Owning user
            content_type: Optional exact content type filter

        Returns:
            List of records
        """
        ...

    async def count_created_since(self, user_id: str, since: datetime) -> int:
        """
        Count records whose metadata.created_at is at or after `since`.

        Args:
            user_id: Owning user
            since: Start of the window

        Returns:
            Number of records
        """
        ...

    async def delete(self, user_id: str, ids: List[str]) -> int:
        """
        Delete records by ID in one batch.

        Args:
            user_id: Owning user
            ids: Record IDs to delete

        Returns:
            Number of records deleted
        """
        ...

    async def count(self, user_id: str) -> int:
        """Number of records stored for a user."""
        ...

    async def list_user_ids(self) -> List[str]:
        """IDs of every user that owns at least one record."""
        ...


class FeedbackStore(Protocol):
    """
    Protocol for feedback records and the aggregates derived from them.
    """

    async def add_feedback(self, feedback: ContentFeedback) -> str:
        """
        Persist a raw feedback record.

        Args:
            feedback: The feedback to store

        Returns:
            The feedback ID
        """
        ...

    async def count_feedback_since(self, user_id: str, since: datetime) -> int:
        """
        Count feedback records submitted after `since`.

        Args:
            user_id: The user ID
            since: Start of the window (exclusive)

        Returns:
            Number of feedback records
        """
        ...

    async def list_recent_feedback(self, user_id: str, limit: int = 10) -> List[ContentFeedback]:
        """
        Get the most recent feedback for a user.

        Args:
            user_id: The user ID
            limit: Maximum number of records to return

        Returns:
            Feedback records, newest first
        """
        ...

    async def get_performance_metrics(self, user_id: str) -> Optional[PerformanceMetrics]:
        """Get the user's running metrics, None if no feedback was recorded yet."""
        ...

    async def save_performance_metrics(self, metrics: PerformanceMetrics) -> None:
        """Create or replace the user's running metrics."""
        ...

    async def get_pattern_stats(self, user_id: str) -> Optional[PatternStats]:
        """Get the user's pattern statistics, None if none recorded yet."""
        ...

    async def save_pattern_stats(self, stats: PatternStats) -> None:
        """Create or replace the user's pattern statistics."""
        ...


class SettingsStore(Protocol):
    """
    Protocol for admin-managed settings: the system config document and
    per-user rate limit overrides.
    """

    async def get_system_config(self) -> Optional[dict]:
        """
        Get the raw system configuration document.

        Returns:
            The stored document, None if never written
        """
        ...

    async def put_system_config(self, config: dict) -> None:
        """Replace the system configuration document."""
        ...

    async def get_rate_limit_override(self, user_id: str) -> Optional[RateLimitOverride]:
        """
        Get a user's custom rate limits.

        Args:
            user_id: The user ID

        Returns:
            The override if one was set, None otherwise
        """
        ...

    async def put_rate_limit_override(self, user_id: str, override: RateLimitOverride) -> None:
        """Create or replace a user's custom rate limits."""
        ...
