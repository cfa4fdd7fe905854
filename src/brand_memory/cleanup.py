"""
Retention cleanup for vector records.

A record is evicted only when it is both older than the retention period and
below the performance floor. Age alone never deletes anything: content that
keeps performing well is kept forever.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from pydantic import BaseModel

from brand_memory.clock import normalized_clock, to_naive_utc
from brand_memory.config import ConfigStore
from brand_memory.models import VectorRecord
from brand_memory.storage.protocols import VectorRecordStore

logger = logging.getLogger(__name__)


class CleanupSummary(BaseModel):
    total_cleaned: int = 0
    users_processed: int = 0


def select_expired(
    records: List[VectorRecord],
    cutoff: datetime,
    min_performance: float,
) -> List[VectorRecord]:
    """Records created before the cutoff AND performing below the floor."""
    cutoff = to_naive_utc(cutoff)
    return [
        record
        for record in records
        if record.metadata.created_at < cutoff and record.metadata.performance < min_performance
    ]


class CleanupScheduler:
    """
    Config-driven eviction of aged, low-value vectors.

    Meant to be invoked by an external scheduler (weekly in production).
    Does nothing when vector cleanup is disabled in the system config.
    """

    def __init__(
        self,
        records: VectorRecordStore,
        config_store: ConfigStore,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.records = records
        self.config_store = config_store
        self._clock = normalized_clock(clock)

    async def cleanup(self, user_id: str, retention_days: Optional[int] = None) -> int:
        """
        Remove aged, low-performing vectors for one user.

        Args:
            user_id: The user ID
            retention_days: Override for the configured retention period

        Returns:
            Number of vectors deleted (0 when disabled or on error)
        """
        try:
            config = await self.config_store.load()
            if not config.vector_cleanup.enabled:
                logger.info("Vector cleanup is disabled in system settings")
                return 0

            return await self._cleanup_user(user_id, retention_days)

        except Exception as e:
            logger.error(f"Failed to clean up vectors for user {user_id}: {e}")
            return 0

    async def cleanup_all(self) -> CleanupSummary:
        """
        Run cleanup for every user that owns vectors.

        A failure for one user is logged and skipped; it never aborts the
        sweep. Only users whose cleanup completed count as processed.
        """
        try:
            config = await self.config_store.load()
            if not config.vector_cleanup.enabled:
                logger.info("Vector cleanup is disabled in system settings")
                return CleanupSummary()

            user_ids = await self.records.list_user_ids()
        except Exception as e:
            logger.error(f"Failed to start cleanup for all users: {e}")
            return CleanupSummary()

        logger.info(f"Starting vector cleanup for {len(user_ids)} users")
        summary = CleanupSummary()

        for user_id in user_ids:
            try:
                cleaned = await self._cleanup_user(user_id)
            except Exception as e:
                logger.error(f"Failed to clean up vectors for user {user_id}: {e}")
                continue

            summary.total_cleaned += cleaned
            summary.users_processed += 1

        logger.info(
            f"Cleanup complete: {summary.total_cleaned} vectors cleaned "
            f"across {summary.users_processed} users"
        )
        return summary

    async def _cleanup_user(self, user_id: str, retention_days: Optional[int] = None) -> int:
        config = await self.config_store.load()
        policy = config.vector_cleanup

        retention = retention_days or policy.retention_days
        cutoff = self._clock() - timedelta(days=retention)

        records = await self.records.list(user_id)
        expired = select_expired(records, cutoff, policy.min_performance_threshold)

        if not expired:
            logger.debug(f"No old vectors found for cleanup (user {user_id})")
            return 0

        deleted = await self.records.delete(user_id, [record.id for record in expired])

        logger.info(
            f"Cleaned up {deleted} old vectors for user {user_id} "
            f"(retention: {retention} days, min performance: {policy.min_performance_threshold})"
        )
        return deleted
