"""
Vector store: rate-limited writes and scans over a VectorRecordStore.

Writes are a best-effort side channel. A rate limit denial is raised as
RateLimitExceeded; every other failure (embedding, storage, bad metadata)
is logged and the call returns normally.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from brand_memory.clock import normalized_clock
from brand_memory.embeddings.protocol import TextEmbedding
from brand_memory.errors import RateLimitExceeded
from brand_memory.models import VectorMetadata, VectorRecord
from brand_memory.rate_limiter import AdmissionDecision, RateLimiter
from brand_memory.storage.protocols import VectorRecordStore

logger = logging.getLogger(__name__)

MAX_UPDATE_ATTEMPTS = 3

# Managed by the store, never taken from a caller's metadata
_MANAGED_METADATA_FIELDS = ("created_at", "updated_at", "version")


def _clean_patch(metadata: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not metadata:
        return {}
    return {
        key: value
        for key, value in metadata.items()
        if key not in _MANAGED_METADATA_FIELDS and key in VectorMetadata.model_fields
    }


class VectorStore:
    """
    Per-user vector collection with embedding generation on write.

    Example:
        >>> store = VectorStore(records, embedder, rate_limiter)
        >>> await store.insert("user_123", "brand_profile", "brand_user_123",
        ...                    "Organic skincare for sensitive skin")
        >>> await store.upsert_by_content_id("user_123", "brand_user_123",
        ...                                  metadata_patch={"performance": 0.9})
    """

    def __init__(
        self,
        records: VectorRecordStore,
        embedding: TextEmbedding,
        rate_limiter: RateLimiter,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.records = records
        self.embedding = embedding
        self.rate_limiter = rate_limiter
        self._clock = normalized_clock(clock)

    async def _admit(self, user_id: str) -> None:
        """Raise RateLimitExceeded if the limiter explicitly denies the user."""
        try:
            decision = await self.rate_limiter.check_admission(user_id)
        except Exception as e:
            logger.warning(f"Rate limiter failed for user {user_id}, allowing write: {e}")
            decision = AdmissionDecision(allowed=True)

        if not decision.allowed:
            logger.warning(f"Rate limit exceeded for user {user_id}: {decision.reason}")
            raise RateLimitExceeded(
                decision.reason or "Rate limit exceeded",
                current=decision.current,
                limit=decision.limit,
                window=decision.window,
            )

    async def insert(
        self,
        user_id: str,
        content_type: str,
        content_id: str,
        text: str,
        metadata: Optional[Dict[str, Any]] = None,
        source_collection: str = "",
        source_doc_id: str = "",
    ) -> Optional[str]:
        """
        Embed text and append a new record with version 1.

        Args:
            user_id: Owning user
            content_type: One of the ContentType values
            content_id: Logical ID of the source entity
            text: Text to embed and store
            metadata: Initial metadata (unknown keys are ignored)
            source_collection: Originating collection, for audit
            source_doc_id: Originating document ID, for audit

        Returns:
            The new record ID, or None if nothing was stored

        Raises:
            RateLimitExceeded: If the user is over their embedding budget
        """
        if not text or not text.strip():
            logger.info(f"Skipping vector insert for {content_id}: no text content")
            return None

        await self._admit(user_id)

        try:
            vector = await self.embedding.embed(text)

            now = self._clock()
            record = VectorRecord(
                user_id=user_id,
                content_type=content_type,
                content_id=content_id,
                embedding=vector,
                text_content=text,
                metadata=VectorMetadata(
                    **_clean_patch(metadata), created_at=now, updated_at=now, version=1
                ),
                source_collection=source_collection,
                source_doc_id=source_doc_id,
            )

            record_id = await self.records.add(record)

        except Exception as e:
            logger.error(f"Failed to store vector for {content_type} {content_id}: {e}")
            return None

        logger.info(f"Stored vector {record_id} for {content_type} (user {user_id})")
        return record_id

    async def upsert_by_content_id(
        self,
        user_id: str,
        content_id: str,
        text: Optional[str] = None,
        metadata_patch: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Update the record for a content_id in place.

        With non-empty text the embedding is regenerated and both text and
        embedding are overwritten. Without text only the metadata patch is
        merged; the stored text and embedding are left untouched. Either way
        the version is bumped by one.

        The write is guarded by the record's version and retried on conflict,
        so two concurrent updates to the same content never lose one another.

        Args:
            user_id: Owning user
            content_id: Logical ID of the source entity
            text: New text to embed (None or blank = metadata only)
            metadata_patch: Metadata fields to merge

        Returns:
            True if a record was updated, False otherwise

        Raises:
            RateLimitExceeded: If the user is over their embedding budget
        """
        has_new_text = bool(text and text.strip())

        await self._admit(user_id)

        try:
            vector = await self.embedding.embed(text) if has_new_text else None
            patch = _clean_patch(metadata_patch)

            for attempt in range(1, MAX_UPDATE_ATTEMPTS + 1):
                existing = await self.records.get_by_content_id(user_id, content_id)
                if existing is None:
                    logger.info(f"No existing vector found for {content_id}, skipping update")
                    return False

                current_version = existing.metadata.version
                metadata = existing.metadata.model_copy(
                    update={
                        **patch,
                        "updated_at": self._clock(),
                        "version": current_version + 1,
                    }
                )
                # Re-validate so the patch can't smuggle in out-of-range values
                metadata = VectorMetadata.model_validate(metadata.model_dump())

                update: Dict[str, Any] = {"metadata": metadata}
                if has_new_text:
                    update["embedding"] = vector
                    update["text_content"] = text

                updated = existing.model_copy(update=update)

                if await self.records.save(updated, expected_version=current_version):
                    logger.info(
                        f"Updated vector for {content_id} "
                        f"({'text+embedding' if has_new_text else 'metadata-only'}, "
                        f"version {metadata.version})"
                    )
                    return True

                logger.debug(f"Version conflict updating {content_id} (attempt {attempt})")

            logger.warning(
                f"Giving up on vector update for {content_id} after "
                f"{MAX_UPDATE_ATTEMPTS} version conflicts"
            )
            return False

        except Exception as e:
            logger.error(f"Failed to update vector for {content_id}: {e}")
            return False

    async def scan(self, user_id: str, content_type: Optional[str] = None) -> List[VectorRecord]:
        """
        Return every record of a user, optionally of one content type.

        Storage errors propagate; the retrieval path decides how to degrade.
        """
        return await self.records.list(user_id, content_type)

    async def delete_batch(self, user_id: str, ids: List[str]) -> int:
        """Delete records by ID. Used only by cleanup."""
        if not ids:
            return 0
        return await self.records.delete(user_id, ids)
