"""
Feedback-adaptive retrieval and user-facing insights.

Insights describe, for display next to generated content, which parts of
the user's history shaped it. Adaptive retrieval tightens or widens the
retrieval options based on the user's feedback so far.
"""

import logging
from typing import TYPE_CHECKING, List, Optional, Tuple

from brand_memory.models import PerformanceMetrics, RAGContext, RAGInsight, RetrievalOptions

if TYPE_CHECKING:
    from brand_memory.feedback import FeedbackTracker
    from brand_memory.rag_engine import RAGEngine

logger = logging.getLogger(__name__)

DEFAULT_ADAPTIVE_LIMIT = 8
ENGAGED_USER_LIMIT = 15


def create_rag_insights_from_context(context: RAGContext) -> List[RAGInsight]:
    """List the context categories that are active in a RAGContext."""
    insights = []

    if context.brand_patterns:
        insights.append(
            RAGInsight(
                type="brand_patterns",
                description="Using your established brand voice and messaging patterns",
                confidence=0.85,
            )
        )

    if context.voice_patterns:
        insights.append(
            RAGInsight(
                type="voice_patterns",
                description="Applying your most engaging communication style",
                confidence=0.78,
            )
        )

    if context.effective_hashtags:
        hashtag_count = context.effective_hashtags.count("#")
        if hashtag_count > 0:
            insights.append(
                RAGInsight(
                    type="hashtags",
                    description=f"Suggesting {hashtag_count} of your best-performing hashtags",
                    confidence=0.82,
                )
            )

    if context.successful_styles:
        insights.append(
            RAGInsight(
                type="styles",
                description="Using visual and content styles from your top posts",
                confidence=0.75,
            )
        )

    if context.performance_insights:
        insights.append(
            RAGInsight(
                type="performance",
                description="Optimized based on your content performance data",
                confidence=0.88,
            )
        )

    return insights


def adapt_retrieval_options(
    options: RetrievalOptions, metrics: Optional[PerformanceMetrics]
) -> RetrievalOptions:
    """
    Adjust retrieval options to the user's feedback history.

    Users who rate RAG content above 4 on average get a stricter performance
    floor (0.8 instead of 0.6). Users with more than 10 feedback items get a
    wider result set (15); everyone else keeps their limit, or 8.
    """
    high_raters = metrics is not None and metrics.avg_rating_rag > 4
    engaged = metrics is not None and metrics.total_feedback > 10

    return options.model_copy(
        update={
            "min_performance": 0.8 if high_raters else 0.6,
            "limit": ENGAGED_USER_LIMIT if engaged else (options.limit or DEFAULT_ADAPTIVE_LIMIT),
        }
    )


async def get_adaptive_context(
    engine: "RAGEngine",
    tracker: "FeedbackTracker",
    query_text: str,
    options: RetrievalOptions,
) -> Tuple[RAGContext, List[RAGInsight]]:
    """
    Retrieve context with options adapted to the user's feedback.

    Falls back to plain retrieval with the caller's options if adapting fails.

    Returns:
        (context, insights)
    """
    try:
        metrics = await tracker.get_performance_metrics(options.user_id)
        adapted = adapt_retrieval_options(options, metrics)

        context = await engine.retrieve_relevant_context(query_text, adapted)
        insights = create_rag_insights_from_context(context)

        if metrics is not None and metrics.avg_rating_rag < 3:
            insights.append(
                RAGInsight(
                    type="performance",
                    description="Adjusting recommendations based on your recent feedback",
                    confidence=0.65,
                )
            )

        return context, insights

    except Exception as e:
        logger.error(f"Adaptive context retrieval failed for user {options.user_id}: {e}")
        context = await engine.retrieve_relevant_context(query_text, options)
        return context, create_rag_insights_from_context(context)
