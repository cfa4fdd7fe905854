"""
In-memory vector record storage.

Provides a simple in-memory store for vector records, suitable for testing
and development. For persistence, use the SQLAlchemy implementation.
"""

import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from brand_memory.clock import to_naive_utc
from brand_memory.models import VectorRecord

logger = logging.getLogger(__name__)


class InMemoryVectorRecordStore:
    """
    In-memory implementation of the VectorRecordStore protocol.

    Records are kept per user in insertion order and copied on the way in and
    out, so callers never share state with the store. Data is lost on restart.
    """

    def __init__(self):
        # user_id -> {record_id: record}
        self._records: Dict[str, Dict[str, VectorRecord]] = {}

        logger.info("InMemoryVectorRecordStore initialized")

    async def add(self, record: VectorRecord) -> str:
        """Append a record to the user's partition."""
        record_id = str(uuid.uuid4())
        stored = record.model_copy(update={"id": record_id}, deep=True)

        self._records.setdefault(record.user_id, {})[record_id] = stored

        logger.debug(f"Inserted vector {record_id}: '{record.text_content[:50]}...'")
        return record_id

    async def get_by_content_id(self, user_id: str, content_id: str) -> Optional[VectorRecord]:
        """Find the first record with an exact content_id match."""
        for record in self._records.get(user_id, {}).values():
            if record.content_id == content_id:
                return record.model_copy(deep=True)
        return None

    async def save(self, record: VectorRecord, expected_version: Optional[int] = None) -> bool:
        """Overwrite an existing record, optionally guarded by its version."""
        partition = self._records.get(record.user_id, {})
        current = partition.get(record.id)

        if current is None:
            logger.error(f"Vector {record.id} not found")
            return False

        if expected_version is not None and current.metadata.version != expected_version:
            logger.debug(
                f"Version conflict on vector {record.id}: "
                f"expected {expected_version}, found {current.metadata.version}"
            )
            return False

        partition[record.id] = record.model_copy(deep=True)
        return True

    async def list(self, user_id: str, content_type: Optional[str] = None) -> List[VectorRecord]:
        """Return every record for a user in insertion order."""
        return [
            record.model_copy(deep=True)
            for record in self._records.get(user_id, {}).values()
            if content_type is None or record.content_type == content_type
        ]

    async def count_created_since(self, user_id: str, since: datetime) -> int:
        """Count records created at or after `since`."""
        since = to_naive_utc(since)
        return sum(
            1
            for record in self._records.get(user_id, {}).values()
            if record.metadata.created_at >= since
        )

    async def delete(self, user_id: str, ids: List[str]) -> int:
        """Delete records by ID."""
        partition = self._records.get(user_id, {})
        count = 0

        for record_id in ids:
            if partition.pop(record_id, None) is not None:
                count += 1

        logger.info(f"Deleted {count} vectors for user_id={user_id}")
        return count

    async def count(self, user_id: str) -> int:
        return len(self._records.get(user_id, {}))

    async def list_user_ids(self) -> List[str]:
        return [user_id for user_id, records in self._records.items() if records]

    def clear(self):
        """Clear ALL records from the store."""
        count = sum(len(records) for records in self._records.values())
        self._records.clear()
        logger.info(f"Cleared all vectors ({count} total)")
