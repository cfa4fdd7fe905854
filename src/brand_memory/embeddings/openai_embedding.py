"""OpenAI embedding adapter for brand-memory."""

import asyncio
import logging
import os
from typing import List, Optional

from openai import AsyncOpenAI

from brand_memory.config import ConfigStore

logger = logging.getLogger(__name__)


class OpenAIEmbedding:
    """
    Embedding adapter using OpenAI's embedding API.

    The model and expected dimension are read from the config store on every
    call, so an admin change takes effect on the next request without a
    restart. Provider errors, malformed responses and timeouts all degrade to
    a zero vector of the configured dimension.

    Also compatible with OpenAI-compatible APIs (Azure, OpenRouter, etc.)

    Example:
        >>> embedder = OpenAIEmbedding(config_store, api_key="sk-...")
        >>> vector = await embedder.embed("skincare serum product photo")
    """

    def __init__(
        self,
        config_store: ConfigStore,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        max_retries: int = 2,
        client: Optional[AsyncOpenAI] = None,
    ):
        """
        Initialize OpenAI embedder.

        Args:
            config_store: Source of the embedding model and dimension
            api_key: OpenAI API key (None = use OPENAI_API_KEY env var)
            base_url: Custom endpoint (None = official OpenAI, or Azure/OpenRouter)
            timeout: Upper bound in seconds for a single embedding call
            max_retries: Number of retry attempts made by the client
            client: Pre-built client (mainly for tests)
        """
        self._config_store = config_store
        self._timeout = timeout

        self._client = client or AsyncOpenAI(
            api_key=api_key or os.getenv("OPENAI_API_KEY"),
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
        )

        logger.info(f"OpenAI embedder initialized (timeout={timeout}s)")

    async def embed(self, text: str) -> List[float]:
        """
        Generate an embedding for a piece of text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector, or a zero vector if the provider call failed

        Raises:
            ValueError: If text is empty
        """
        if not text or not text.strip():
            raise ValueError("Cannot embed empty text")

        config = await self._config_store.load()
        model = config.embedding.model
        dimensions = config.embedding.dimensions

        try:
            response = await asyncio.wait_for(
                self._client.embeddings.create(model=model, input=text),
                timeout=self._timeout,
            )
            embedding = list(response.data[0].embedding)
        except Exception as e:
            logger.warning(f"Embedding request failed for model {model}, using zero vector: {e!r}")
            return [0.0] * dimensions

        if len(embedding) != dimensions:
            logger.warning(
                f"Embedding dimension mismatch: expected {dimensions}, got {len(embedding)} "
                f"(model {model})"
            )

        return embedding
