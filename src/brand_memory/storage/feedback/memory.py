"""
In-memory feedback storage implementation.

Suitable for testing and single-instance deployments. For persistence,
use the SQLAlchemy implementation instead.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from brand_memory.clock import to_naive_utc
from brand_memory.models import ContentFeedback, PatternStats, PerformanceMetrics

logger = logging.getLogger(__name__)


class InMemoryFeedbackStore:
    """
    In-memory implementation of the FeedbackStore protocol.

    Data is lost on restart.
    """

    def __init__(self):
        self._feedback: Dict[str, List[ContentFeedback]] = {}  # user_id -> feedback
        self._metrics: Dict[str, PerformanceMetrics] = {}
        self._pattern_stats: Dict[str, PatternStats] = {}

        logger.info("InMemoryFeedbackStore initialized")

    async def add_feedback(self, feedback: ContentFeedback) -> str:
        """Persist a raw feedback record."""
        self._feedback.setdefault(feedback.user_id, []).append(feedback.model_copy(deep=True))

        logger.debug(f"Stored feedback {feedback.id} for user {feedback.user_id}")
        return feedback.id

    async def count_feedback_since(self, user_id: str, since: datetime) -> int:
        since = to_naive_utc(since)
        return sum(1 for feedback in self._feedback.get(user_id, []) if feedback.timestamp > since)

    async def list_recent_feedback(self, user_id: str, limit: int = 10) -> List[ContentFeedback]:
        """Get the most recent feedback for a user, newest first."""
        feedback = sorted(
            self._feedback.get(user_id, []), key=lambda f: f.timestamp, reverse=True
        )
        return [f.model_copy(deep=True) for f in feedback[:limit]]

    async def get_performance_metrics(self, user_id: str) -> Optional[PerformanceMetrics]:
        metrics = self._metrics.get(user_id)
        return metrics.model_copy(deep=True) if metrics else None

    async def save_performance_metrics(self, metrics: PerformanceMetrics) -> None:
        self._metrics[metrics.user_id] = metrics.model_copy(deep=True)

    async def get_pattern_stats(self, user_id: str) -> Optional[PatternStats]:
        stats = self._pattern_stats.get(user_id)
        return stats.model_copy(deep=True) if stats else None

    async def save_pattern_stats(self, stats: PatternStats) -> None:
        self._pattern_stats[stats.user_id] = stats.model_copy(deep=True)
