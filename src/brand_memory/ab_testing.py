"""
A/B rollout of RAG enhancement.

Users are bucketed deterministically from their ID, so a user stays in the
same group across requests and processes. The rollout is controlled with
two environment variables:

    RAG_AB_TEST_PERCENTAGE  share of users (0-100) that get RAG, default 80
    RAG_AB_TEST_ACTIVE      "false" disables the test (everyone gets RAG)
"""

import logging
import os
from datetime import datetime
from typing import Dict, Iterable, List, Literal, Optional, Tuple

from pydantic import BaseModel

from brand_memory.clock import Timestamp, resolve_now

logger = logging.getLogger(__name__)

TestGroup = Literal["rag", "baseline"]

DEFAULT_TEST_NAME = "rag_effectiveness_test"
DEFAULT_RAG_PERCENTAGE = 80
DEFAULT_START_DATE = datetime(2024, 1, 1)


class ABTestConfig(BaseModel):
    test_name: str = DEFAULT_TEST_NAME
    rag_percentage: int = DEFAULT_RAG_PERCENTAGE
    is_active: bool = True
    start_date: Timestamp = DEFAULT_START_DATE
    end_date: Optional[Timestamp] = None


class ABTestFeedback(BaseModel):
    test_group: TestGroup
    content_type: str
    rating: float
    was_helpful: Optional[bool] = None


class ABTestMetrics(BaseModel):
    test_group: TestGroup
    content_type: str
    average_rating: float
    total_feedback: int
    helpful_percentage: float
    last_updated: datetime


def user_bucket(user_id: str) -> int:
    """Stable bucket in [0, 100) derived from the user ID."""
    return sum(ord(char) for char in user_id) % 100


def should_use_rag_for_user(user_id: str, rag_percentage: int = DEFAULT_RAG_PERCENTAGE) -> bool:
    return user_bucket(user_id) < rag_percentage


def get_ab_test_config() -> ABTestConfig:
    """Read the rollout settings from the environment."""
    raw_percentage = os.getenv("RAG_AB_TEST_PERCENTAGE")
    rag_percentage = DEFAULT_RAG_PERCENTAGE

    if raw_percentage:
        try:
            rag_percentage = int(raw_percentage)
        except ValueError:
            logger.warning(
                f"Invalid RAG_AB_TEST_PERCENTAGE={raw_percentage!r}, "
                f"using {DEFAULT_RAG_PERCENTAGE}"
            )

    return ABTestConfig(
        rag_percentage=max(0, min(100, rag_percentage)),
        is_active=os.getenv("RAG_AB_TEST_ACTIVE") != "false",
    )


def should_enhance_with_rag(
    user_id: str,
    content_type: str = "social_media",
    config: Optional[ABTestConfig] = None,
    now: Optional[datetime] = None,
) -> Tuple[bool, TestGroup, str]:
    """
    Decide whether a generation request for this user gets RAG context.

    Args:
        user_id: The user ID
        content_type: Content being generated (for logging)
        config: Rollout settings (None = read from the environment)
        now: Reference time for the test window

    Returns:
        (use_rag, test_group, reason)
    """
    config = config or get_ab_test_config()
    now = resolve_now(now)

    if not config.is_active:
        return True, "rag", "A/B testing disabled - RAG always enabled"

    if now < config.start_date:
        return False, "baseline", "A/B test not started yet"

    if config.end_date is not None and now > config.end_date:
        return True, "rag", "A/B test ended - RAG enabled for all"

    use_rag = should_use_rag_for_user(user_id, config.rag_percentage)
    test_group: TestGroup = "rag" if use_rag else "baseline"

    logger.debug(f"User {user_id} assigned to {test_group} group for {content_type}")

    return (
        use_rag,
        test_group,
        f"A/B test assignment: {config.rag_percentage}% RAG, "
        f"{100 - config.rag_percentage}% baseline",
    )


def calculate_ab_test_metrics(
    feedback: Iterable[ABTestFeedback],
    now: Optional[datetime] = None,
) -> List[ABTestMetrics]:
    """
    Aggregate feedback per (test group, content type).

    Groups are returned in order of first appearance.
    """
    now = resolve_now(now)
    grouped: Dict[Tuple[str, str], List[ABTestFeedback]] = {}

    for item in feedback:
        grouped.setdefault((item.test_group, item.content_type), []).append(item)

    metrics = []
    for (test_group, content_type), items in grouped.items():
        helpful = sum(1 for item in items if item.was_helpful)
        metrics.append(
            ABTestMetrics(
                test_group=test_group,
                content_type=content_type,
                average_rating=sum(item.rating for item in items) / len(items),
                total_feedback=len(items),
                helpful_percentage=helpful / len(items) * 100,
                last_updated=now,
            )
        )

    return metrics
