"""
Feedback and performance tracking.

Raw feedback is stored as submitted. Aggregates are folded in one sample at
a time (no raw-sample recomputation), and the rating of RAG-enhanced content
is written back into the rated vector's performance score so future
retrieval favours what worked.
"""

import asyncio
import logging
import weakref
from datetime import datetime
from typing import Callable, List, Literal, Optional

from pydantic import BaseModel

from brand_memory.clock import normalized_clock
from brand_memory.errors import RateLimitExceeded
from brand_memory.models import (
    ContentFeedback,
    FeedbackSubmission,
    PatternStat,
    PatternStats,
    PerformanceMetrics,
    RAGFeedbackContext,
)
from brand_memory.rate_limiter import FeedbackRateLimiter
from brand_memory.storage.protocols import FeedbackStore
from brand_memory.vector_store import VectorStore

logger = logging.getLogger(__name__)

SUCCESS_RATING = 4
MIN_FEEDBACK_FOR_COMPARISON = 5
MEDIUM_CONFIDENCE_FEEDBACK = 10
HIGH_CONFIDENCE_FEEDBACK = 20


class RAGPerformanceSummary(BaseModel):
    """Whether RAG-enhanced content rates at least as well as plain content."""

    is_performing: bool = True
    rag_avg: float = 0.0
    non_rag_avg: float = 0.0
    confidence: Literal["low", "medium", "high"] = "low"


def _fold_mean(mean: float, count: int, sample: float) -> float:
    """Fold one sample into a running mean over `count` previous samples."""
    return (mean * count + sample) / (count + 1)


def fold_performance_metrics(
    metrics: Optional[PerformanceMetrics],
    feedback: ContentFeedback,
    now: datetime,
) -> PerformanceMetrics:
    """
    Fold a single feedback item into the user's running metrics.

    Ratings are folded into the RAG or non-RAG mean depending on whether the
    content was RAG-enhanced. Helpfulness rates are percentages folded the
    same way (a helpful answer counts as 100, anything else as 0).
    """
    if metrics is None:
        metrics = PerformanceMetrics(user_id=feedback.user_id)
    else:
        metrics = metrics.model_copy()

    helpful = 100.0 if feedback.was_helpful else 0.0

    if feedback.was_rag_enhanced:
        count = metrics.rag_enhanced_feedback
        metrics.avg_rating_rag = _fold_mean(metrics.avg_rating_rag, count, feedback.rating)
        metrics.helpfulness_rate_rag = _fold_mean(metrics.helpfulness_rate_rag, count, helpful)
        metrics.rag_enhanced_feedback = count + 1
    else:
        count = metrics.non_rag_feedback
        metrics.avg_rating_non_rag = _fold_mean(metrics.avg_rating_non_rag, count, feedback.rating)
        metrics.helpfulness_rate_non_rag = _fold_mean(
            metrics.helpfulness_rate_non_rag, count, helpful
        )
        metrics.non_rag_feedback = count + 1

    metrics.total_feedback += 1
    metrics.last_updated = now
    return metrics


def fold_pattern_stats(
    stats: Optional[PatternStats],
    user_id: str,
    patterns: List[str],
    rating: int,
    now: datetime,
) -> PatternStats:
    """Fold a rating into every pattern that contributed to the content."""
    if stats is None:
        stats = PatternStats(user_id=user_id)
    else:
        stats = stats.model_copy(deep=True)

    success = rating >= SUCCESS_RATING

    for pattern in patterns:
        current = stats.patterns.get(pattern) or PatternStat(last_used=now)
        stats.patterns[pattern] = PatternStat(
            success_count=current.success_count + (1 if success else 0),
            total_count=current.total_count + 1,
            avg_rating=_fold_mean(current.avg_rating, current.total_count, rating),
            last_used=now,
        )

    stats.last_updated = now
    return stats


class FeedbackTracker:
    """
    Records feedback and maintains per-user aggregates.

    Only the feedback rate limit is raised to the caller. Once the raw
    feedback is stored, the aggregate and vector updates are best effort.

    Example:
        >>> tracker = FeedbackTracker(feedback_store, vector_store)
        >>> await tracker.submit_feedback(
        ...     "user_123", "post_1", "social_media",
        ...     FeedbackSubmission(rating=5, was_helpful=True),
        ...     RAGFeedbackContext(was_rag_enhanced=True, rag_context_used=["brand_patterns"]),
        ... )
    """

    def __init__(
        self,
        feedback_store: FeedbackStore,
        vector_store: Optional[VectorStore] = None,
        rate_limiter: Optional[FeedbackRateLimiter] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Args:
            feedback_store: Where feedback and aggregates are stored
            vector_store: Receives performance updates for rated content (None = skip)
            rate_limiter: Feedback cap (None = default 10 per hour)
            clock: Time source, injectable for tests
        """
        self.feedback_store = feedback_store
        self.vector_store = vector_store
        self.rate_limiter = rate_limiter or FeedbackRateLimiter(feedback_store, clock=clock)
        self._clock = normalized_clock(clock)
        # Serializes read-modify-write of a user's aggregates within this process.
        # An entry lives only while some task holds or waits on the lock.
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    async def submit_feedback(
        self,
        user_id: str,
        content_id: str,
        content_type: str,
        feedback: FeedbackSubmission,
        rag_context: Optional[RAGFeedbackContext] = None,
    ) -> Optional[str]:
        """
        Record feedback on a piece of generated content.

        Args:
            user_id: The user ID
            content_id: ID of the rated content
            content_type: One of the FeedbackContentType values
            feedback: Rating, helpfulness and comment
            rag_context: How RAG was used for the content (None = not enhanced)

        Returns:
            The feedback ID, or None if it could not be stored

        Raises:
            FeedbackRateLimitExceeded: If the user submitted too much feedback this hour
        """
        await self.rate_limiter.check(user_id)

        rag_context = rag_context or RAGFeedbackContext()
        now = self._clock()

        try:
            record = ContentFeedback(
                user_id=user_id,
                content_id=content_id,
                content_type=content_type,
                rating=feedback.rating,
                was_helpful=feedback.was_helpful,
                was_rag_enhanced=rag_context.was_rag_enhanced,
                rag_context_used=rag_context.rag_context_used,
                rag_insights=rag_context.rag_insights,
                user_comment=feedback.comment,
                platform=rag_context.platform or "unknown",
                language=rag_context.language or "english",
                timestamp=now,
            )
            feedback_id = await self.feedback_store.add_feedback(record)
        except Exception as e:
            logger.error(f"Failed to store feedback for content {content_id}: {e}")
            return None

        lock = self._user_lock(user_id)
        async with lock:
            await self._update_performance_metrics(record)

            if record.was_rag_enhanced and record.rag_context_used:
                await self._update_pattern_stats(user_id, record.rag_context_used, record.rating)

        if record.was_rag_enhanced:
            await self._update_vector_performance(user_id, content_id, record.rating)

        logger.info(f"Submitted feedback {feedback_id} for content {content_id}")
        return feedback_id

    def _user_lock(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    async def _update_performance_metrics(self, feedback: ContentFeedback) -> None:
        try:
            current = await self.feedback_store.get_performance_metrics(feedback.user_id)
            metrics = fold_performance_metrics(current, feedback, self._clock())
            await self.feedback_store.save_performance_metrics(metrics)
        except Exception as e:
            logger.error(f"Failed to update performance metrics for user {feedback.user_id}: {e}")

    async def _update_pattern_stats(self, user_id: str, patterns: List[str], rating: int) -> None:
        try:
            current = await self.feedback_store.get_pattern_stats(user_id)
            stats = fold_pattern_stats(current, user_id, patterns, rating, self._clock())
            await self.feedback_store.save_pattern_stats(stats)
        except Exception as e:
            logger.error(f"Failed to update pattern stats for user {user_id}: {e}")

    async def _update_vector_performance(self, user_id: str, content_id: str, rating: int) -> None:
        """Write rating / 5 into the rated vector's performance (metadata only)."""
        if self.vector_store is None:
            return

        performance = rating / 5
        try:
            await self.vector_store.upsert_by_content_id(
                user_id, content_id, metadata_patch={"performance": performance}
            )
            logger.debug(f"Updated vector performance for {content_id}: {performance}")
        except RateLimitExceeded as e:
            logger.warning(f"Skipped vector performance update for {content_id}: {e}")
        except Exception as e:
            logger.error(f"Failed to update vector performance for {content_id}: {e}")

    async def get_performance_metrics(self, user_id: str) -> Optional[PerformanceMetrics]:
        try:
            return await self.feedback_store.get_performance_metrics(user_id)
        except Exception as e:
            logger.error(f"Failed to get performance metrics for user {user_id}: {e}")
            return None

    async def get_pattern_stats(self, user_id: str) -> Optional[PatternStats]:
        try:
            return await self.feedback_store.get_pattern_stats(user_id)
        except Exception as e:
            logger.error(f"Failed to get pattern stats for user {user_id}: {e}")
            return None

    async def get_recent_feedback(self, user_id: str, limit: int = 10) -> List[ContentFeedback]:
        """Most recent feedback, newest first (empty on error)."""
        try:
            return await self.feedback_store.list_recent_feedback(user_id, limit)
        except Exception as e:
            logger.error(f"Failed to get recent feedback for user {user_id}: {e}")
            return []

    async def is_rag_performing_well(self, user_id: str) -> RAGPerformanceSummary:
        """
        Compare RAG-enhanced and plain content ratings.

        Users with fewer than 5 feedback items get the benefit of the doubt
        (performing, low confidence). Confidence is medium from 10 items and
        high from 20.
        """
        metrics = await self.get_performance_metrics(user_id)

        if metrics is None or metrics.total_feedback < MIN_FEEDBACK_FOR_COMPARISON:
            return RAGPerformanceSummary()

        if metrics.total_feedback >= HIGH_CONFIDENCE_FEEDBACK:
            confidence = "high"
        elif metrics.total_feedback >= MEDIUM_CONFIDENCE_FEEDBACK:
            confidence = "medium"
        else:
            confidence = "low"

        return RAGPerformanceSummary(
            is_performing=metrics.avg_rating_rag >= metrics.avg_rating_non_rag,
            rag_avg=metrics.avg_rating_rag,
            non_rag_avg=metrics.avg_rating_non_rag,
            confidence=confidence,
        )
