"""
SQLAlchemy-based feedback storage.

Stores raw feedback, per-user running metrics and per-pattern statistics in
three tables. Sessions are synchronous and run in a worker thread.
"""

import asyncio
import json
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Boolean, Column, Engine, Float, Index, Integer, String, Text
from sqlalchemy.orm import Session, declarative_base

from brand_memory.models import ContentFeedback, PatternStat, PatternStats, PerformanceMetrics
from brand_memory.storage.columns import NaiveUTCDateTime

logger = logging.getLogger(__name__)

Base = declarative_base()


class ContentFeedbackDB(Base):
    """SQLAlchemy model for raw feedback."""

    __tablename__ = "content_feedback"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    content_id = Column(String, nullable=False)
    content_type = Column(String, nullable=False)
    rating = Column(Integer, nullable=False)
    was_helpful = Column(Boolean, nullable=True)
    was_rag_enhanced = Column(Boolean, nullable=False, default=False)
    rag_context_used_json = Column(Text, nullable=False, default="[]")
    rag_insights_json = Column(Text, nullable=True)
    user_comment = Column(Text, nullable=True)
    platform = Column(String, nullable=False, default="unknown")
    language = Column(String, nullable=False, default="english")
    timestamp = Column(NaiveUTCDateTime, nullable=False, default=datetime.now)

    __table_args__ = (Index("idx_feedback_user_timestamp", "user_id", "timestamp"),)

    def to_content_feedback(self) -> ContentFeedback:
        return ContentFeedback(
            id=self.id,
            user_id=self.user_id,
            content_id=self.content_id,
            content_type=self.content_type,
            rating=self.rating,
            was_helpful=self.was_helpful,
            was_rag_enhanced=self.was_rag_enhanced,
            rag_context_used=json.loads(self.rag_context_used_json or "[]"),
            rag_insights=json.loads(self.rag_insights_json) if self.rag_insights_json else None,
            user_comment=self.user_comment,
            platform=self.platform,
            language=self.language,
            timestamp=self.timestamp,
        )

    @staticmethod
    def from_content_feedback(feedback: ContentFeedback) -> "ContentFeedbackDB":
        return ContentFeedbackDB(
            id=feedback.id,
            user_id=feedback.user_id,
            content_id=feedback.content_id,
            content_type=feedback.content_type,
            rating=feedback.rating,
            was_helpful=feedback.was_helpful,
            was_rag_enhanced=feedback.was_rag_enhanced,
            rag_context_used_json=json.dumps(feedback.rag_context_used),
            rag_insights_json=json.dumps(feedback.rag_insights) if feedback.rag_insights else None,
            user_comment=feedback.user_comment,
            platform=feedback.platform,
            language=feedback.language,
            timestamp=feedback.timestamp,
        )


class PerformanceMetricsDB(Base):
    """SQLAlchemy model for per-user running metrics (one row per user)."""

    __tablename__ = "rag_performance_metrics"

    user_id = Column(String, primary_key=True)
    total_feedback = Column(Integer, nullable=False, default=0)
    rag_enhanced_feedback = Column(Integer, nullable=False, default=0)
    non_rag_feedback = Column(Integer, nullable=False, default=0)
    avg_rating_rag = Column(Float, nullable=False, default=0.0)
    avg_rating_non_rag = Column(Float, nullable=False, default=0.0)
    helpfulness_rate_rag = Column(Float, nullable=False, default=0.0)
    helpfulness_rate_non_rag = Column(Float, nullable=False, default=0.0)
    last_updated = Column(NaiveUTCDateTime, nullable=False, default=datetime.now)


class PatternStatDB(Base):
    """SQLAlchemy model for a single pattern's statistics."""

    __tablename__ = "rag_pattern_stats"

    user_id = Column(String, primary_key=True)
    pattern = Column(String, primary_key=True)
    success_count = Column(Integer, nullable=False, default=0)
    total_count = Column(Integer, nullable=False, default=0)
    avg_rating = Column(Float, nullable=False, default=0.0)
    last_used = Column(NaiveUTCDateTime, nullable=False, default=datetime.now)


class SQLAlchemyFeedbackStore:
    """
    SQLAlchemy-based feedback storage.

    Example:
        engine = create_engine("sqlite:///feedback.db")
        store = SQLAlchemyFeedbackStore(engine)
        store.create_tables()
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        logger.info(f"SQLAlchemyFeedbackStore initialized (engine={engine.url})")

    @contextmanager
    def _session(self):
        """Context manager for database sessions with automatic commit/rollback."""
        session = Session(self.engine)
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Database error: {e}")
            raise
        finally:
            session.close()

    def create_tables(self):
        """Create database tables if they don't exist."""
        Base.metadata.create_all(self.engine)
        logger.info("Feedback tables created/verified")

    async def add_feedback(self, feedback: ContentFeedback) -> str:
        return await asyncio.to_thread(self._add_feedback, feedback)

    def _add_feedback(self, feedback: ContentFeedback) -> str:
        with self._session() as session:
            session.add(ContentFeedbackDB.from_content_feedback(feedback))

        logger.debug(f"Stored feedback {feedback.id} for user {feedback.user_id}")
        return feedback.id

    async def count_feedback_since(self, user_id: str, since: datetime) -> int:
        return await asyncio.to_thread(self._count_feedback_since, user_id, since)

    def _count_feedback_since(self, user_id: str, since: datetime) -> int:
        with self._session() as session:
            return (
                session.query(ContentFeedbackDB)
                .filter(ContentFeedbackDB.user_id == user_id, ContentFeedbackDB.timestamp > since)
                .count()
            )

    async def list_recent_feedback(self, user_id: str, limit: int = 10) -> List[ContentFeedback]:
        return await asyncio.to_thread(self._list_recent_feedback, user_id, limit)

    def _list_recent_feedback(self, user_id: str, limit: int) -> List[ContentFeedback]:
        with self._session() as session:
            rows = (
                session.query(ContentFeedbackDB)
                .filter(ContentFeedbackDB.user_id == user_id)
                .order_by(ContentFeedbackDB.timestamp.desc())
                .limit(limit)
                .all()
            )
            return [row.to_content_feedback() for row in rows]

    async def get_performance_metrics(self, user_id: str) -> Optional[PerformanceMetrics]:
        return await asyncio.to_thread(self._get_performance_metrics, user_id)

    def _get_performance_metrics(self, user_id: str) -> Optional[PerformanceMetrics]:
        with self._session() as session:
            row = session.get(PerformanceMetricsDB, user_id)
            if not row:
                return None

            return PerformanceMetrics(
                user_id=row.user_id,
                total_feedback=row.total_feedback,
                rag_enhanced_feedback=row.rag_enhanced_feedback,
                non_rag_feedback=row.non_rag_feedback,
                avg_rating_rag=row.avg_rating_rag,
                avg_rating_non_rag=row.avg_rating_non_rag,
                helpfulness_rate_rag=row.helpfulness_rate_rag,
                helpfulness_rate_non_rag=row.helpfulness_rate_non_rag,
                last_updated=row.last_updated,
            )

    async def save_performance_metrics(self, metrics: PerformanceMetrics) -> None:
        await asyncio.to_thread(self._save_performance_metrics, metrics)

    def _save_performance_metrics(self, metrics: PerformanceMetrics) -> None:
        with self._session() as session:
            session.merge(PerformanceMetricsDB(**metrics.model_dump()))

    async def get_pattern_stats(self, user_id: str) -> Optional[PatternStats]:
        return await asyncio.to_thread(self._get_pattern_stats, user_id)

    def _get_pattern_stats(self, user_id: str) -> Optional[PatternStats]:
        with self._session() as session:
            rows = session.query(PatternStatDB).filter(PatternStatDB.user_id == user_id).all()
            if not rows:
                return None

            patterns = {
                row.pattern: PatternStat(
                    success_count=row.success_count,
                    total_count=row.total_count,
                    avg_rating=row.avg_rating,
                    last_used=row.last_used,
                )
                for row in rows
            }
            return PatternStats(
                user_id=user_id,
                patterns=patterns,
                last_updated=max(stat.last_used for stat in patterns.values()),
            )

    async def save_pattern_stats(self, stats: PatternStats) -> None:
        await asyncio.to_thread(self._save_pattern_stats, stats)

    def _save_pattern_stats(self, stats: PatternStats) -> None:
        with self._session() as session:
            for pattern, stat in stats.patterns.items():
                session.merge(
                    PatternStatDB(user_id=stats.user_id, pattern=pattern, **stat.model_dump())
                )
