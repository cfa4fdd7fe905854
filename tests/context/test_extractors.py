"""Tests for context extraction rules."""

from datetime import datetime

import pytest

from brand_memory.context.extractors import (
    common_styles,
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
from brand_memory.models import VectorMetadata, VectorRecord

NOW = datetime(2025, 6, 15, 12, 0, 0)


def make_record(
    text="",
    content_type="social_media",
    performance=0.5,
    style=None,
    tags=None,
    platform=None,
    language=None,
    engagement=0.0,
    created_at=NOW,
):
    return VectorRecord(
        user_id="user1",
        content_type=content_type,
        content_id="c",
        embedding=[1.0],
        text_content=text,
        metadata=VectorMetadata(
            performance=performance,
            style=style,
            tags=tags or [],
            platform=platform,
            language=language,
            engagement=engagement,
            created_at=created_at,
        ),
    )


@pytest.fixture
def styled_records():
    return [
        make_record(style="minimalist", performance=0.9),
        make_record(style="bold", performance=0.8),
        make_record(style="minimalist", performance=0.95),
        make_record(style="vintage", performance=0.75),
        make_record(style="bold", performance=0.9),
        make_record(style="minimalist", performance=0.8),
    ]


def test_common_styles_ranked_by_frequency(styled_records):
    """Test frequency ranking with first-seen tie breaking."""
    assert common_styles(styled_records) == ["minimalist", "bold", "vintage"]


def test_common_styles_ignores_missing_style():
    """Test that records without a style are skipped."""
    records = [make_record(style=None), make_record(style="bold")]

    assert common_styles(records) == ["bold"]


def test_brand_patterns():
    """Test brand essence lines plus successful styles."""
    brand = make_record(
        text="Organic skincare for sensitive skin, minimalist aesthetic",
        content_type="brand_profile",
    )
    high = [make_record(style="minimalist", performance=0.9)]

    result = extract_brand_patterns([brand], high)

    assert result == (
        "Brand essence: Organic skincare for sensitive skin, minimalist aesthetic...\n"
        "Successful brand styles: minimalist"
    )


def test_brand_patterns_truncates_essence():
    """Test that only the first 200 characters of the brand text are used."""
    brand = make_record(text="x" * 500, content_type="brand_profile")

    result = extract_brand_patterns([brand], [])

    assert result == "Brand essence: " + "x" * 200 + "..."


def test_brand_patterns_empty():
    """Test no brand records and no high performers."""
    assert extract_brand_patterns([], []) == ""


def test_successful_styles(styled_records):
    """Test top style rendering with counts."""
    result = extract_successful_styles(styled_records)

    assert result == (
        "minimalist (used 3 times successfully), "
        "bold (used 2 times successfully), "
        "vintage (used 1 times successfully)"
    )


def test_successful_styles_top_five():
    """Test that at most five styles are listed."""
    records = [make_record(style=f"style{i}", performance=0.9) for i in range(8)]

    result = extract_successful_styles(records)

    assert result.count("times successfully") == 5


def test_avoid_patterns():
    """Test the avoid sentence for low performers."""
    records = [
        make_record(style="cluttered", performance=0.1),
        make_record(style="neon", performance=0.2),
        make_record(style="cluttered", performance=0.1),
    ]

    result = extract_avoid_patterns(records)

    assert result == "Avoid these styles that performed poorly: cluttered, neon"


def test_avoid_patterns_empty():
    """Test that nothing to avoid yields an empty string."""
    assert extract_avoid_patterns([make_record(performance=0.1)]) == ""


def test_industry_insights_always_empty():
    """Test the unimplemented industry insights."""
    assert extract_industry_insights([make_record(style="bold")]) == ""


def test_seasonal_trends_current_month_only():
    """Test that only records from the current calendar month count."""
    records = [
        make_record(style="summer", created_at=datetime(2025, 6, 1)),
        make_record(style="summer", created_at=datetime(2024, 6, 20)),
        make_record(style="winter", created_at=datetime(2025, 1, 10)),
    ]

    result = extract_seasonal_trends(records, now=NOW)

    assert result == "Current seasonal trends: summer"


def test_seasonal_trends_empty():
    """Test no records from this month."""
    records = [make_record(style="winter", created_at=datetime(2025, 1, 10))]

    assert extract_seasonal_trends(records, now=NOW) == ""


def test_voice_patterns():
    """Test first sentences of high performers, length filtered."""
    records = [
        make_record(text="Glow naturally every single day. Shop now.", performance=0.9),
        make_record(text="Short. Too short to count.", performance=0.9),
        make_record(text="Low performer sentence here. Ignore.", performance=0.2),
        make_record(text="Gentle care for sensitive skin. Try it.", performance=0.8),
    ]

    result = extract_voice_patterns(records)

    assert result == (
        "Successful voice patterns: Glow naturally every single day | "
        "Gentle care for sensitive skin"
    )


def test_voice_patterns_at_most_three():
    """Test that at most three phrases are used."""
    records = [make_record(text=f"Sentence number {i} is here.", performance=0.9) for i in range(5)]

    result = extract_voice_patterns(records)

    assert result.count(" | ") == 2


def test_effective_hashtags():
    """Test hashtag ranking from high performers."""
    records = [
        make_record(tags=["skincare", "organic"], performance=0.9),
        make_record(tags=["skincare", "glow"], performance=0.8),
        make_record(tags=["ignored"], performance=0.4),
    ]

    result = extract_effective_hashtags(records)

    assert result == "#skincare #organic #glow"


def test_effective_hashtags_top_ten():
    """Test that at most ten hashtags are listed."""
    records = [make_record(tags=[f"tag{i}" for i in range(15)], performance=0.9)]

    assert extract_effective_hashtags(records).count("#") == 10


def test_seo_keywords():
    """Test keyword ranking from high-performing blog posts."""
    records = [
        make_record(content_type="blog_post", tags=["serum", "routine"], performance=0.9),
        make_record(content_type="blog_post", tags=["serum"], performance=0.8),
        make_record(content_type="blog_post", tags=["unused"], performance=0.1),
    ]

    assert extract_seo_keywords(records) == "serum, routine"


def test_seo_keywords_top_eight():
    """Test that at most eight keywords are listed."""
    records = [
        make_record(content_type="blog_post", tags=[f"kw{i}" for i in range(12)], performance=0.9)
    ]

    assert len(extract_seo_keywords(records).split(", ")) == 8


@pytest.mark.parametrize(
    "performances,expected",
    [
        ([0.9, 0.8], "Your content consistently performs well"),
        ([0.1, 0.2], "Consider adjusting your content strategy based on successful patterns"),
        ([0.5, 0.6], ""),
        ([0.7], ""),
        ([], ""),
    ],
)
def test_performance_insights(performances, expected):
    """Test qualitative framing of the mean performance."""
    records = [make_record(performance=p) for p in performances]

    assert extract_performance_insights(records) == expected


def test_platform_patterns():
    """Test platform-scoped content and hashtag lines."""
    records = [
        make_record(
            text="Morning routine reel", platform="instagram", tags=["glow"], performance=0.9
        ),
        make_record(text="Tweet thread", platform="twitter", tags=["thread"], performance=0.9),
        make_record(text="Weak post", platform="instagram", tags=["meh"], performance=0.5),
    ]

    result = extract_platform_patterns(records, "instagram")

    assert result == (
        "Your successful instagram content style: Morning routine reel\n"
        "Top instagram hashtags: #glow"
    )


def test_platform_patterns_snippet_length():
    """Test that content snippets are cut at 100 characters."""
    records = [make_record(text="y" * 300, platform="instagram", performance=0.9)]

    result = extract_platform_patterns(records, "instagram")

    assert result == f"Your successful instagram content style: {'y' * 100}"


def test_platform_patterns_no_match():
    """Test no high performers on the platform."""
    records = [make_record(text="Post", platform="twitter", performance=0.9)]

    assert extract_platform_patterns(records, "instagram") == ""


def test_language_patterns_with_engagement():
    """Test language-scoped snippets and the engagement line."""
    records = [
        make_record(text="z" * 120, language="spanish", engagement=0.8, performance=0.9),
        make_record(text="Hola", language="spanish", engagement=0.4, performance=0.8),
    ]

    result = extract_language_patterns(records, "spanish")

    assert result == (
        f"Your successful spanish content style: {'z' * 80} | Hola\n"
        "spanish content performs well for your audience"
    )


def test_language_patterns_low_engagement():
    """Test that low engagement omits the engagement line."""
    records = [make_record(text="Hola", language="spanish", engagement=0.1, performance=0.9)]

    result = extract_language_patterns(records, "spanish")

    assert result == "Your successful spanish content style: Hola"
