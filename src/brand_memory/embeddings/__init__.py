"""
Text embedding abstractions for brand-memory.

Provides a protocol-based embedding interface and the OpenAI adapter used
in production.
"""

from brand_memory.embeddings.openai_embedding import OpenAIEmbedding
from brand_memory.embeddings.protocol import TextEmbedding

__all__ = [
    "TextEmbedding",
    "OpenAIEmbedding",
]
