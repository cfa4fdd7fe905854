"""
Personalization Flow Example

Demonstrates the full loop against OpenAI embeddings and a SQLite database:
store content, retrieve context for a generation request, show insights,
submit feedback and run retention cleanup.

Requires OPENAI_API_KEY in the environment.
"""

import asyncio
import logging

from sqlalchemy import create_engine

from brand_memory import (
    CleanupScheduler,
    ConfigStore,
    FeedbackTracker,
    RAGEngine,
    RetrievalOptions,
)
from brand_memory.ab_testing import should_enhance_with_rag
from brand_memory.embeddings import OpenAIEmbedding
from brand_memory.insights import get_adaptive_context
from brand_memory.models import FeedbackSubmission, RAGFeedbackContext
from brand_memory.storage import (
    SQLAlchemyFeedbackStore,
    SQLAlchemySettingsStore,
    SQLAlchemyVectorRecordStore,
)

USER_ID = "user_123"


async def main():
    logging.basicConfig(level=logging.INFO)
    print("=== Personalization Flow Example ===\n")

    engine = create_engine("sqlite:///brand_memory_demo.db")
    records = SQLAlchemyVectorRecordStore(engine)
    feedback_store = SQLAlchemyFeedbackStore(engine)
    settings = SQLAlchemySettingsStore(engine)
    for store in (records, feedback_store, settings):
        store.create_tables()

    config_store = ConfigStore(settings)
    rag = RAGEngine(
        records, OpenAIEmbedding(config_store), config_store=config_store, settings_store=settings
    )
    tracker = FeedbackTracker(feedback_store, vector_store=rag.vector_store)

    # 1. Vectorize content as it is created
    await rag.store_content_vector(
        USER_ID,
        "brand_profile",
        f"brand_{USER_ID}",
        "Organic skincare for sensitive skin, minimalist aesthetic",
        metadata={"industry": "beauty", "performance": 0.9},
    )
    await rag.store_content_vector(
        USER_ID,
        "social_media",
        "post_1",
        "New vitamin C serum, glow naturally #skincare #organic",
        metadata={"platform": "instagram", "style": "minimalist", "performance": 0.8},
    )

    # 2. Decide whether this request gets RAG context at all
    use_rag, group, reason = should_enhance_with_rag(USER_ID)
    print(f"A/B group: {group} ({reason})\n")

    if use_rag:
        # 3. Retrieve context adapted to the user's feedback so far
        context, insights = await get_adaptive_context(
            rag,
            tracker,
            "skincare serum product photo",
            RetrievalOptions(user_id=USER_ID, content_type="social_media", platform="instagram"),
        )

        print("Context:")
        for field, value in context.model_dump().items():
            if value:
                print(f"  {field}: {value}")

        print("\nInsights:")
        for insight in insights:
            print(f"  [{insight.confidence:.2f}] {insight.description}")

    # 4. The user rates the generated post
    await tracker.submit_feedback(
        USER_ID,
        "post_1",
        "social_media",
        FeedbackSubmission(rating=5, was_helpful=True),
        RAGFeedbackContext(was_rag_enhanced=use_rag, rag_context_used=["brand_patterns"]),
    )

    summary = await tracker.is_rag_performing_well(USER_ID)
    print(f"\nRAG performing well: {summary.is_performing} (confidence {summary.confidence})")

    usage = await rag.get_user_usage(USER_ID)
    print(f"Embeddings: {usage.total_embeddings}, estimated cost ${usage.estimated_cost:.6f}")

    # 5. Weekly maintenance
    cleaned = await CleanupScheduler(records, config_store).cleanup_all()
    print(f"Cleanup: {cleaned.total_cleaned} vectors across {cleaned.users_processed} users")


if __name__ == "__main__":
    asyncio.run(main())
