"""
The personalization engine.

RAGEngine wires the config store, rate limiter, embedder and vector store
together and exposes the operations the rest of the application calls:
retrieval of context for a generation request, and the store/update entry
points used whenever source content changes.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from brand_memory.clock import normalized_clock
from brand_memory.config import ConfigStore
from brand_memory.context import assemble_context
from brand_memory.embeddings.protocol import TextEmbedding
from brand_memory.models import RAGContext, RetrievalOptions, VectorRecord
from brand_memory.ranking import rank
from brand_memory.rate_limiter import RateLimiter
from brand_memory.storage.protocols import SettingsStore, VectorRecordStore
from brand_memory.usage import UsageSummary, summarize_usage
from brand_memory.vector_store import VectorStore

logger = logging.getLogger(__name__)


class RAGEngine:
    """
    Retrieval-augmented personalization over a user's past content.

    Retrieval never raises: rate limiting, provider trouble and storage
    failures all degrade to an empty RAGContext. Writes raise only
    RateLimitExceeded.

    Example:
        >>> engine = RAGEngine(records, embedder, settings_store=settings)
        >>> await engine.store_content_vector(
        ...     "user_123", "brand_profile", "brand_user_123",
        ...     "Organic skincare for sensitive skin, minimalist aesthetic",
        ... )
        >>> context = await engine.retrieve_relevant_context(
        ...     "skincare serum product photo", RetrievalOptions(user_id="user_123")
        ... )
        >>> context.brand_patterns
        'Brand essence: Organic skincare for sensitive skin, minimalist aesthetic...'
    """

    def __init__(
        self,
        records: VectorRecordStore,
        embedding: TextEmbedding,
        config_store: Optional[ConfigStore] = None,
        settings_store: Optional[SettingsStore] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Args:
            records: Vector record storage
            embedding: Embedding provider
            config_store: Shared config store (None = build one over settings_store)
            settings_store: Admin settings and per-user rate limit overrides
            clock: Time source, injectable for tests
        """
        self.records = records
        self.embedding = embedding
        self.config_store = config_store or ConfigStore(settings_store, clock=clock)
        self.rate_limiter = RateLimiter(records, self.config_store, settings_store, clock=clock)
        self.vector_store = VectorStore(records, embedding, self.rate_limiter, clock=clock)
        self._clock = normalized_clock(clock)

    async def retrieve_relevant_context(
        self, query_text: str, options: RetrievalOptions
    ) -> RAGContext:
        """
        Build personalization context for a generation request.

        Steps run strictly in order: rate limit check, query embedding,
        scan of the user's records, ranking, context assembly.

        Args:
            query_text: Text describing what is about to be generated
            options: Retrieval options (user_id is required)

        Returns:
            RAGContext, with every field empty if anything went wrong
        """
        user_id = options.user_id

        try:
            decision = await self.rate_limiter.check_admission(user_id)
            if not decision.allowed:
                logger.warning(
                    f"Rate limit exceeded for user {user_id}, returning empty context: "
                    f"{decision.reason}"
                )
                return RAGContext()

            config = await self.config_store.load()
            now = self._clock()

            query_vector = await self.embedding.embed(query_text)

            candidates = await self.vector_store.scan(user_id, options.content_type)
            user_records = rank(
                query_vector,
                candidates,
                options,
                config.performance.similarity_threshold,
                now=now,
            )

            industry_records: List[VectorRecord] = []
            if options.include_industry_patterns and options.industry:
                industry_records = await self._query_industry_vectors(query_vector, options)

            context = assemble_context(
                user_records,
                industry_records,
                options,
                config.performance.max_context_length,
                now=now,
            )

            logger.info(
                f"Retrieved context for user {user_id} with {len(user_records)} user vectors "
                f"and {len(industry_records)} industry vectors"
            )
            return context

        except Exception as e:
            logger.error(f"Failed to retrieve context for user {user_id}: {e}")
            return RAGContext()

    async def _query_industry_vectors(
        self, query_vector: List[float], options: RetrievalOptions
    ) -> List[VectorRecord]:
        # Cross-tenant industry patterns are reserved and not implemented:
        # no records are ever read outside the requesting user's partition.
        return []

    async def store_content_vector(
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
        Vectorize newly created content.

        Raises:
            RateLimitExceeded: If the user is over their embedding budget
        """
        return await self.vector_store.insert(
            user_id,
            content_type,
            content_id,
            text,
            metadata=metadata,
            source_collection=source_collection,
            source_doc_id=source_doc_id,
        )

    async def update_content_vector(
        self,
        user_id: str,
        content_id: str,
        text: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Update the vector of changed content.

        Pass text only when the change is significant enough to re-embed;
        otherwise only the metadata is merged.

        Raises:
            RateLimitExceeded: If the user is over their embedding budget
        """
        return await self.vector_store.upsert_by_content_id(
            user_id, content_id, text=text, metadata_patch=metadata
        )

    async def get_user_usage(self, user_id: str) -> UsageSummary:
        """Embedding usage and estimated cost for a user (zeros on error)."""
        try:
            config = await self.config_store.load()
            records = await self.records.list(user_id)
            return summarize_usage(user_id, records, config.embedding.cost_per_1k, self._clock())
        except Exception as e:
            logger.error(f"Failed to compute usage for user {user_id}: {e}")
            return UsageSummary(user_id=user_id)
