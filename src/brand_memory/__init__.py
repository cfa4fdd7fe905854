"""
brand-memory: Retrieval-augmented personalization over a brand's past content.

Core components:
- rag_engine: Context retrieval and the store/update entry points
- vector_store: Rate-limited vector writes and scans
- ranking: Exact cosine-similarity ranking and retrieval filters
- context: Extraction of context categories and budget truncation
- feedback: Feedback tracking and performance aggregates
- cleanup: Retention-based eviction of low-value vectors
- storage: Protocol abstractions and backends for the document store
- embeddings: Embedding provider adapters
"""

__version__ = "0.1.0"

from brand_memory.cleanup import CleanupScheduler, CleanupSummary
from brand_memory.config import ConfigStore, SystemConfig
from brand_memory.errors import FeedbackRateLimitExceeded, RateLimitExceeded
from brand_memory.feedback import FeedbackTracker
from brand_memory.models import (
    ContentFeedback,
    FeedbackSubmission,
    PatternStats,
    PerformanceMetrics,
    RAGContext,
    RAGFeedbackContext,
    RAGInsight,
    RetrievalOptions,
    VectorMetadata,
    VectorRecord,
)
from brand_memory.rag_engine import RAGEngine
from brand_memory.vector_store import VectorStore

__all__ = [
    "__version__",
    # Models
    "VectorRecord",
    "VectorMetadata",
    "RAGContext",
    "RetrievalOptions",
    "FeedbackSubmission",
    "RAGFeedbackContext",
    "ContentFeedback",
    "PerformanceMetrics",
    "PatternStats",
    "RAGInsight",
    # Config
    "ConfigStore",
    "SystemConfig",
    # Errors
    "RateLimitExceeded",
    "FeedbackRateLimitExceeded",
    # Services
    "RAGEngine",
    "VectorStore",
    "FeedbackTracker",
    "CleanupScheduler",
    "CleanupSummary",
]
