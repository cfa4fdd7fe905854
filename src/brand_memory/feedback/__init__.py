"""
Feedback tracking for brand-memory.
"""

from brand_memory.feedback.tracker import (
    FeedbackTracker,
    RAGPerformanceSummary,
    fold_pattern_stats,
    fold_performance_metrics,
)

__all__ = [
    "FeedbackTracker",
    "RAGPerformanceSummary",
    "fold_pattern_stats",
    "fold_performance_metrics",
]
