"""
Text embedding protocol for brand-memory.

Provides a unified interface for embedding text into dense vectors
for semantic similarity search.
"""

from typing import List, Protocol

from typing_extensions import runtime_checkable


@runtime_checkable
class TextEmbedding(Protocol):
    """
    Protocol for text embedding providers.

    Implementations used by the engine must never raise on provider trouble:
    a failed or timed-out call returns a zero vector of the configured
    dimension, which never ranks above the similarity threshold.

    Example:
        >>> embedder = OpenAIEmbedding(config_store)
        >>> vector = await embedder.embed("Organic skincare for sensitive skin")
        >>> len(vector)
        1536
    """

    async def embed(self, text: str) -> List[float]:
        """
        Generate an embedding for a piece of text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector (a zero vector when the provider failed)

        Raises:
            ValueError: If text is empty
        """
        ...
