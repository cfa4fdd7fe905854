"""
Context assembly: ranked records in, bounded RAGContext out.
"""

import logging
from datetime import datetime
from typing import Optional, Sequence

from brand_memory.context.extractors import (
    extract_avoid_patterns,
    extract_brand_patterns,
    extract_effective_hashtags,
    extract_industry_insights,
    extract_language_patterns,
    extract_performance_insights,
    extract_platform_patterns,
    extract_seasonal_trends,
    extract_seo_keywords,
    extract_successful_styles,
    extract_voice_patterns,
    is_high_performing,
    is_low_performing,
)
from brand_memory.models import RAGContext, RetrievalOptions, VectorRecord

logger = logging.getLogger(__name__)

ELLIPSIS = "..."


def _truncate_text(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    # No room for the ellipsis: a hard cut keeps the field within its share
    if max_length <= len(ELLIPSIS):
        return text[: max(max_length, 0)]
    return text[: max_length - len(ELLIPSIS)] + ELLIPSIS


def truncate_context(context: RAGContext, max_length: int) -> RAGContext:
    """
    Fit a context into a global character budget.

    If the summed length of all fields exceeds max_length, each field gets
    an equal share (max_length // number of non-empty fields). Fields longer
    than their share are cut and end with "..." (a share of 3 or fewer
    characters is a plain cut); shorter fields are left
    alone and their unused budget is not redistributed.

    Args:
        context: Fully populated context
        max_length: Global character budget

    Returns:
        The same context if it fits, otherwise a truncated copy
    """
    fields = context.model_dump()
    total_length = sum(len(value) for value in fields.values())

    if total_length <= max_length:
        return context

    field_count = sum(1 for value in fields.values() if value)
    max_per_field = max_length // field_count

    logger.debug(
        f"Truncating context from {total_length} to {max_length} chars "
        f"({max_per_field} per field across {field_count} fields)"
    )

    return RAGContext(
        **{name: _truncate_text(value, max_per_field) for name, value in fields.items()}
    )


def assemble_context(
    user_records: Sequence[VectorRecord],
    industry_records: Sequence[VectorRecord],
    options: RetrievalOptions,
    max_context_length: int,
    now: Optional[datetime] = None,
) -> RAGContext:
    """
    Build the structured context for a generation request.

    The first five fields are always computed. Voice patterns and hashtags
    are added for social media requests (plus platform and language patterns
    when those options are set), SEO keywords for blog requests. Performance
    insights are always computed last, then the whole bundle is truncated.

    Args:
        user_records: The user's ranked records
        industry_records: Records from other tenants in the same industry
        options: The retrieval options of the request
        max_context_length: Global character budget
        now: Reference time for seasonal trends

    Returns:
        RAGContext
    """
    high_performing = [r for r in user_records if is_high_performing(r)]
    low_performing = [r for r in user_records if is_low_performing(r)]

    brand_records = [r for r in user_records if r.content_type == "brand_profile"]
    social_records = [r for r in user_records if r.content_type == "social_media"]
    blog_records = [r for r in user_records if r.content_type == "blog_post"]

    context = RAGContext(
        brand_patterns=extract_brand_patterns(brand_records, high_performing),
        successful_styles=extract_successful_styles(high_performing),
        avoid_patterns=extract_avoid_patterns(low_performing),
        industry_insights=extract_industry_insights(industry_records),
        seasonal_trends=extract_seasonal_trends(user_records, now),
    )

    if options.content_type == "social_media":
        context.voice_patterns = extract_voice_patterns(social_records)
        context.effective_hashtags = extract_effective_hashtags(social_records)

        if options.platform:
            context.platform_patterns = extract_platform_patterns(social_records, options.platform)

        if options.language:
            context.language_patterns = extract_language_patterns(social_records, options.language)

    if options.content_type == "blog_post":
        context.seo_keywords = extract_seo_keywords(blog_records)

    context.performance_insights = extract_performance_insights(user_records)

    return truncate_context(context, max_context_length)
