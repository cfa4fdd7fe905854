"""
Context assembly for brand-memory.

Turns ranked vector records into a RAGContext bounded by the configured
maximum context length.
"""

from brand_memory.context.assembler import assemble_context, truncate_context
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
)

__all__ = [
    "assemble_context",
    "truncate_context",
    "extract_avoid_patterns",
    "extract_brand_patterns",
    "extract_effective_hashtags",
    "extract_industry_insights",
    "extract_language_patterns",
    "extract_performance_insights",
    "extract_platform_patterns",
    "extract_seasonal_trends",
    "extract_seo_keywords",
    "extract_successful_styles",
    "extract_voice_patterns",
]
