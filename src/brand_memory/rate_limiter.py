"""
Per-user admission control.

Embedding usage is not counted separately: every stored vector record is one
embedding, so the sliding windows are computed by counting records created in
the last hour and the last 24 hours. Feedback submissions get their own,
independent hourly cap counted the same way over stored feedback.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from brand_memory.clock import normalized_clock
from brand_memory.config import ConfigStore
from brand_memory.errors import FeedbackRateLimitExceeded
from brand_memory.storage.protocols import FeedbackStore, SettingsStore, VectorRecordStore

logger = logging.getLogger(__name__)

FEEDBACK_RATE_LIMIT = 10
FEEDBACK_RATE_LIMIT_WINDOW = timedelta(hours=1)


@dataclass
class AdmissionDecision:
    """
    Outcome of an admission check.

    Attributes:
        allowed: Whether the request may go ahead
        reason: Why it was refused (None when allowed)
        current: Count in the window that tripped the limit
        limit: Cap of that window
        window: "hour" or "day"
    """

    allowed: bool
    reason: Optional[str] = None
    current: Optional[int] = None
    limit: Optional[int] = None
    window: Optional[str] = None


class RateLimiter:
    """
    Sliding-window limiter over embedding generation.

    Resolution order: if rate limiting is disabled globally, allow. Otherwise
    use the user's override when they have one enabled, else the global
    per-user limits. The hourly window is checked before the daily one.
    Any internal error allows the request (fail open).
    """

    def __init__(
        self,
        records: VectorRecordStore,
        config_store: ConfigStore,
        settings_store: Optional[SettingsStore] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.records = records
        self.config_store = config_store
        self.settings_store = settings_store
        self._clock = normalized_clock(clock)

    async def check_admission(self, user_id: str) -> AdmissionDecision:
        """
        Decide whether the user may generate another embedding.

        Args:
            user_id: The user ID

        Returns:
            AdmissionDecision (allowed on any internal error)
        """
        try:
            config = await self.config_store.load()
            limits = config.rate_limiting

            if not limits.enabled:
                return AdmissionDecision(allowed=True)

            max_per_hour = limits.user_max_per_hour
            max_per_day = limits.user_max_per_day

            if self.settings_store is not None:
                override = await self.settings_store.get_rate_limit_override(user_id)
                if override is not None and override.enabled:
                    max_per_hour = override.max_embeddings_per_hour or max_per_hour
                    max_per_day = override.max_embeddings_per_day or max_per_day

            now = self._clock()

            hourly = await self.records.count_created_since(user_id, now - timedelta(hours=1))
            if hourly >= max_per_hour:
                return AdmissionDecision(
                    allowed=False,
                    reason=(
                        f"Rate limit exceeded: {hourly}/{max_per_hour} embeddings used "
                        f"in the last hour"
                    ),
                    current=hourly,
                    limit=max_per_hour,
                    window="hour",
                )

            daily = await self.records.count_created_since(user_id, now - timedelta(days=1))
            if daily >= max_per_day:
                return AdmissionDecision(
                    allowed=False,
                    reason=(
                        f"Daily rate limit exceeded: {daily}/{max_per_day} embeddings used "
                        f"in the last 24 hours"
                    ),
                    current=daily,
                    limit=max_per_day,
                    window="day",
                )

            return AdmissionDecision(allowed=True)

        except Exception as e:
            logger.error(f"Error checking rate limit for user {user_id}, allowing request: {e}")
            return AdmissionDecision(allowed=True)


class FeedbackRateLimiter:
    """Caps feedback submissions per user per hour."""

    def __init__(
        self,
        feedback_store: FeedbackStore,
        max_per_hour: int = FEEDBACK_RATE_LIMIT,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.feedback_store = feedback_store
        self.max_per_hour = max_per_hour
        self._clock = normalized_clock(clock)

    async def check(self, user_id: str) -> None:
        """
        Raise if the user already hit the hourly feedback cap.

        Store errors are logged and the submission is allowed.

        Raises:
            FeedbackRateLimitExceeded: If the cap is reached
        """
        try:
            since = self._clock() - FEEDBACK_RATE_LIMIT_WINDOW
            recent = await self.feedback_store.count_feedback_since(user_id, since)
        except Exception as e:
            logger.warning(f"Failed to check feedback rate limit for user {user_id}: {e}")
            return

        if recent >= self.max_per_hour:
            raise FeedbackRateLimitExceeded(
                f"Rate limit exceeded. You can only submit {self.max_per_hour} feedback items "
                f"per hour. Please wait before submitting more feedback.",
                current=recent,
                limit=self.max_per_hour,
                window="hour",
            )

        logger.debug(
            f"Feedback rate limit for user {user_id}: "
            f"{recent}/{self.max_per_hour} submissions in the last hour"
        )
