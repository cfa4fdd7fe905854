"""
Custom Embedding Provider Example

Demonstrates how to plug your own embedding provider into the engine using
the TextEmbedding protocol. Runs fully offline.
"""

import asyncio
from typing import List

from brand_memory import RAGEngine, RetrievalOptions
from brand_memory.storage import InMemorySettingsStore, InMemoryVectorRecordStore


class KeywordEmbedding:
    """
    Toy embedder with one dimension per known keyword.

    Implements TextEmbedding protocol via duck typing. In production, this
    would call a real embedding model.
    """

    VOCABULARY = ["skincare", "serum", "organic", "glow", "coffee", "roast", "photo"]

    async def embed(self, text: str) -> List[float]:
        if not text or not text.strip():
            raise ValueError("Cannot embed empty text")

        lowered = text.lower()
        return [1.0 if word in lowered else 0.0 for word in self.VOCABULARY]


async def main():
    print("=== Custom Embedding Provider Example ===\n")

    settings = InMemorySettingsStore({"performance": {"similarityThreshold": 0.3}})
    engine = RAGEngine(InMemoryVectorRecordStore(), KeywordEmbedding(), settings_store=settings)

    await engine.store_content_vector(
        "user_123",
        "brand_profile",
        "brand_user_123",
        "Organic skincare for sensitive skin, minimalist aesthetic",
        metadata={"industry": "beauty", "performance": 0.9},
    )
    await engine.store_content_vector(
        "user_123",
        "social_media",
        "post_1",
        "Glow with our new organic serum #skincare #glow",
        metadata={"platform": "instagram", "style": "minimalist", "performance": 0.8},
    )
    await engine.store_content_vector(
        "user_123",
        "social_media",
        "post_2",
        "Dark roast coffee, small batch",
        metadata={"platform": "instagram", "performance": 0.9},
    )

    context = await engine.retrieve_relevant_context(
        "skincare serum product photo",
        RetrievalOptions(user_id="user_123", content_type="social_media"),
    )

    for field, value in context.model_dump().items():
        if value:
            print(f"{field}:\n  {value}\n")


if __name__ == "__main__":
    asyncio.run(main())
