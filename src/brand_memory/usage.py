"""
Embedding usage and cost reporting.

Every stored vector record is one embedding call, so usage is derived from
the records themselves.
"""

from datetime import datetime, timedelta
from typing import Optional, Sequence

from pydantic import BaseModel

from brand_memory.clock import resolve_now
from brand_memory.models import VectorRecord

RECENT_ACTIVITY_DAYS = 30


class UsageSummary(BaseModel):
    """Per-user embedding usage."""

    user_id: str
    total_embeddings: int = 0
    estimated_cost: float = 0.0
    avg_performance: float = 0.0
    last_activity: Optional[datetime] = None
    recent_embeddings: int = 0


def summarize_usage(
    user_id: str,
    records: Sequence[VectorRecord],
    cost_per_1k: float,
    now: Optional[datetime] = None,
) -> UsageSummary:
    """
    Summarize a user's embedding usage.

    Args:
        user_id: The user ID
        records: All of the user's vector records
        cost_per_1k: Provider price per 1000 embeddings
        now: Reference time for the recent-activity window

    Returns:
        UsageSummary. avg_performance only counts records with a positive
        performance score.
    """
    now = resolve_now(now)
    recent_cutoff = now - timedelta(days=RECENT_ACTIVITY_DAYS)

    performances = [r.metadata.performance for r in records if r.metadata.performance > 0]
    created = [r.metadata.created_at for r in records]

    return UsageSummary(
        user_id=user_id,
        total_embeddings=len(records),
        estimated_cost=len(records) / 1000 * cost_per_1k,
        avg_performance=sum(performances) / len(performances) if performances else 0.0,
        last_activity=max(created) if created else None,
        recent_embeddings=sum(1 for created_at in created if created_at >= recent_cutoff),
    )
