"""
Extraction rules that turn ranked vector records into context text.

Every function here is pure: it takes records (already ranked and filtered)
and returns a string, empty when there is nothing worth saying. Frequency
rankings break ties by first appearance in the ranked list.
"""

from collections import Counter
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from brand_memory.clock import resolve_now
from brand_memory.models import VectorRecord

HIGH_PERFORMANCE = 0.7
LOW_PERFORMANCE = 0.3

BRAND_ESSENCE_CHARS = 200
PLATFORM_SNIPPET_CHARS = 100
LANGUAGE_SNIPPET_CHARS = 80


def is_high_performing(record: VectorRecord) -> bool:
    return record.metadata.performance > HIGH_PERFORMANCE


def is_low_performing(record: VectorRecord) -> bool:
    return record.metadata.performance < LOW_PERFORMANCE


def _top(values: Iterable[Optional[str]], n: int) -> List[tuple]:
    """Most common non-empty values with counts, ties in first-seen order."""
    return Counter(value for value in values if value).most_common(n)


def common_styles(records: Sequence[VectorRecord], n: int = 3) -> List[str]:
    return [style for style, _ in _top((r.metadata.style for r in records), n)]


def _top_tags(records: Sequence[VectorRecord], n: int) -> List[str]:
    tags = (tag for record in records for tag in record.metadata.tags)
    return [tag for tag, _ in _top(tags, n)]


def extract_brand_patterns(
    brand_records: Sequence[VectorRecord],
    high_performing: Sequence[VectorRecord],
) -> str:
    """
    Brand essence from brand profile records plus the styles that work.

    Args:
        brand_records: Records of type brand_profile
        high_performing: Records of any type with performance above 0.7

    Returns:
        One line per brand profile, then a line of successful styles
    """
    patterns = []

    for record in brand_records:
        if record.text_content:
            patterns.append(f"Brand essence: {record.text_content[:BRAND_ESSENCE_CHARS]}...")

    styles = common_styles(high_performing)
    if styles:
        patterns.append(f"Successful brand styles: {', '.join(styles)}")

    return "\n".join(patterns)


def extract_successful_styles(high_performing: Sequence[VectorRecord]) -> str:
    top = _top((r.metadata.style for r in high_performing), 5)
    return ", ".join(f"{style} (used {count} times successfully)" for style, count in top)


def extract_avoid_patterns(low_performing: Sequence[VectorRecord]) -> str:
    styles = common_styles(low_performing)
    if not styles:
        return ""
    return f"Avoid these styles that performed poorly: {', '.join(styles)}"


def extract_industry_insights(industry_records: Sequence[VectorRecord]) -> str:
    # Cross-tenant pattern mining is not implemented; industry records are
    # always empty today.
    return ""


def extract_seasonal_trends(records: Sequence[VectorRecord], now: Optional[datetime] = None) -> str:
    """Common styles among records created in the current calendar month."""
    now = resolve_now(now)
    seasonal = [r for r in records if r.metadata.created_at.month == now.month]

    styles = common_styles(seasonal)
    if not styles:
        return ""
    return f"Current seasonal trends: {', '.join(styles)}"


def extract_voice_patterns(social_records: Sequence[VectorRecord]) -> str:
    """First sentences of up to three high-performing social posts."""
    phrases = []
    for record in social_records:
        if not is_high_performing(record):
            continue
        phrase = record.text_content.split(".")[0]
        if 10 < len(phrase) < 100:
            phrases.append(phrase)

    phrases = phrases[:3]
    if not phrases:
        return ""
    return f"Successful voice patterns: {' | '.join(phrases)}"


def extract_effective_hashtags(social_records: Sequence[VectorRecord]) -> str:
    high_performing = [r for r in social_records if is_high_performing(r)]
    return " ".join(f"#{tag}" for tag in _top_tags(high_performing, 10))


def extract_seo_keywords(blog_records: Sequence[VectorRecord]) -> str:
    high_performing = [r for r in blog_records if is_high_performing(r)]
    return ", ".join(_top_tags(high_performing, 8))


def extract_performance_insights(records: Sequence[VectorRecord]) -> str:
    """Qualitative read of the mean performance across all ranked records."""
    if not records:
        return ""

    avg_performance = sum(r.metadata.performance for r in records) / len(records)

    if avg_performance > HIGH_PERFORMANCE:
        return "Your content consistently performs well"
    if avg_performance < LOW_PERFORMANCE:
        return "Consider adjusting your content strategy based on successful patterns"
    return ""


def extract_platform_patterns(social_records: Sequence[VectorRecord], platform: str) -> str:
    """
    Content snippets and hashtags that worked on a specific platform.

    Args:
        social_records: Records of type social_media
        platform: Platform name, matched exactly against metadata.platform

    Returns:
        Up to two lines: content style snippets, then top platform hashtags
    """
    matching = [
        r for r in social_records if r.metadata.platform == platform and is_high_performing(r)
    ]
    if not matching:
        return ""

    patterns = []

    snippets = [r.text_content[:PLATFORM_SNIPPET_CHARS] for r in matching[:3]]
    patterns.append(f"Your successful {platform} content style: {' | '.join(snippets)}")

    hashtags = [f"#{tag}" for tag in _top_tags(matching, 5)]
    if hashtags:
        patterns.append(f"Top {platform} hashtags: {' '.join(hashtags)}")

    return "\n".join(patterns)


def extract_language_patterns(social_records: Sequence[VectorRecord], language: str) -> str:
    """Content snippets that worked in a specific language, plus an engagement note."""
    matching = [
        r for r in social_records if r.metadata.language == language and is_high_performing(r)
    ]
    if not matching:
        return ""

    patterns = []

    snippets = [r.text_content[:LANGUAGE_SNIPPET_CHARS] for r in matching[:3]]
    patterns.append(f"Your successful {language} content style: {' | '.join(snippets)}")

    avg_engagement = sum(r.metadata.engagement for r in matching) / len(matching)
    if avg_engagement > 0.5:
        patterns.append(f"{language} content performs well for your audience")

    return "\n".join(patterns)
