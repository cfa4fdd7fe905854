"""
Exact cosine-similarity ranking over a user's vector records.

There is no vector index: every candidate in the user's partition is scored
against the query. Ranking and filtering are pure and never touch storage.

Order of operations:
1. Score every candidate, keep those strictly above the threshold
2. Sort by score, highest first (ties keep scan order)
3. Truncate to the limit
4. Apply content type, minimum performance and timeframe filters

Because step 4 runs after truncation, the result can hold fewer than `limit`
records even when more matching candidates exist further down the ranking.
"""

import logging
import math
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from brand_memory.clock import resolve_now, to_naive_utc
from brand_memory.models import RetrievalOptions, VectorRecord

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10

TIMEFRAME_DAYS = {
    "recent": 30,
    "30days": 30,
    "90days": 90,
}


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """
    Calculate cosine similarity between two vectors.

    Returns 0.0 when either vector is empty or all zeros, or when their
    lengths differ (e.g. vectors from a different embedding model).
    """
    if len(vec_a) != len(vec_b) or len(vec_a) == 0:
        return 0.0

    dot_product = 0.0
    norm_a = 0.0
    norm_b = 0.0

    for a, b in zip(vec_a, vec_b):
        dot_product += a * b
        norm_a += a * a
        norm_b += b * b

    if norm_a == 0 or norm_b == 0:
        return 0.0

    similarity = dot_product / math.sqrt(norm_a * norm_b)

    # Guard against float drift outside [-1, 1]
    return max(-1.0, min(1.0, similarity))


def score_candidates(
    query_vector: Sequence[float],
    candidates: Sequence[VectorRecord],
    threshold: float,
    limit: int = DEFAULT_LIMIT,
) -> List[Tuple[VectorRecord, float]]:
    """
    Score, threshold, sort and truncate candidates.

    Args:
        query_vector: Embedding of the query text
        candidates: Records in scan order
        threshold: Candidates must score strictly above this
        limit: Maximum number of results

    Returns:
        (record, similarity) pairs, best first
    """
    scored = []
    for record in candidates:
        similarity = cosine_similarity(query_vector, record.embedding)
        if similarity > threshold:
            scored.append((record, similarity))

    # sorted() is stable, so equal scores keep scan order
    scored = sorted(scored, key=lambda pair: pair[1], reverse=True)
    return scored[:limit]


def within_timeframe(record: VectorRecord, timeframe: Optional[str], now: datetime) -> bool:
    """Whether the record's creation time falls inside the requested timeframe."""
    if not timeframe or timeframe == "all":
        return True

    max_days = TIMEFRAME_DAYS.get(timeframe)
    if max_days is None:
        return True

    age_days = (to_naive_utc(now) - record.metadata.created_at).total_seconds() / 86400
    return age_days <= max_days


def apply_post_filters(
    records: Sequence[VectorRecord],
    options: RetrievalOptions,
    now: Optional[datetime] = None,
) -> List[VectorRecord]:
    """
    Apply the business filters to an already ranked and truncated list.

    Filters, in order: content type match, minimum performance, timeframe.
    """
    now = resolve_now(now)
    filtered = []

    for record in records:
        if options.content_type and record.content_type != options.content_type:
            continue

        if options.min_performance and record.metadata.performance < options.min_performance:
            continue

        if not within_timeframe(record, options.timeframe, now):
            continue

        filtered.append(record)

    return filtered


def rank(
    query_vector: Sequence[float],
    candidates: Sequence[VectorRecord],
    options: RetrievalOptions,
    threshold: float,
    now: Optional[datetime] = None,
) -> List[VectorRecord]:
    """
    Rank candidates against a query vector and apply retrieval filters.

    Args:
        query_vector: Embedding of the query text
        candidates: The user's records, in scan order
        options: Retrieval options (limit and filters)
        threshold: Similarity threshold (strict)
        now: Reference time for timeframe filtering

    Returns:
        Matching records, best first
    """
    limit = options.limit or DEFAULT_LIMIT

    top = score_candidates(query_vector, candidates, threshold, limit)
    results = apply_post_filters([record for record, _ in top], options, now)

    logger.debug(
        f"Ranked {len(candidates)} candidates: {len(top)} above threshold {threshold}, "
        f"{len(results)} after filters"
    )

    return results
