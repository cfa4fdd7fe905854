import uuid
from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from brand_memory.clock import Timestamp

ContentType = Literal[
    "brand_profile", "social_media", "blog_post", "ad_campaign", "saved_image", "brand_logo"
]

FeedbackContentType = Literal[
    "social_media", "blog_post", "ad_campaign", "image", "saved_image", "brand_logo"
]

Timeframe = Literal["recent", "all", "30days", "90days"]


class VectorMetadata(BaseModel):
    """Metadata stored alongside a vector. Unknown keys are dropped."""

    model_config = ConfigDict(extra="ignore")

    industry: Optional[str] = None
    style: Optional[str] = None
    platform: Optional[str] = None
    language: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    performance: float = Field(default=0.5, ge=0.0, le=1.0)
    engagement: float = Field(default=0.0, ge=0.0)
    created_at: Timestamp = Field(default_factory=datetime.now)
    updated_at: Timestamp = Field(default_factory=datetime.now)
    version: int = Field(default=1, ge=1)

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value):
        if value is None:
            return []
        tags = []
        for tag in value:
            tag = str(tag).strip().lower()
            if tag:
                tags.append(tag)
        return tags


class VectorRecord(BaseModel):
    id: Optional[str] = None
    user_id: str
    content_type: ContentType
    content_id: str
    embedding: List[float]
    text_content: str = ""
    metadata: VectorMetadata = Field(default_factory=VectorMetadata)
    source_collection: str = ""
    source_doc_id: str = ""


class RAGContext(BaseModel):
    """
    Structured context handed to content-generation flows.

    The first five fields are always populated (possibly empty); the rest are
    filled only for the content types they apply to.
    """

    brand_patterns: str = ""
    successful_styles: str = ""
    avoid_patterns: str = ""
    industry_insights: str = ""
    seasonal_trends: str = ""
    voice_patterns: str = ""
    effective_hashtags: str = ""
    seo_keywords: str = ""
    performance_insights: str = ""
    platform_patterns: str = ""
    language_patterns: str = ""

    def is_empty(self) -> bool:
        return not any(self.model_dump().values())


class RetrievalOptions(BaseModel):
    user_id: str
    content_type: Optional[ContentType] = None
    industry: Optional[str] = None
    platform: Optional[str] = None
    language: Optional[str] = None
    min_performance: Optional[float] = None
    limit: Optional[int] = None
    include_industry_patterns: bool = False
    timeframe: Optional[Timeframe] = None


class RateLimitOverride(BaseModel):
    """Per-user embedding limits set by an administrator."""

    enabled: bool = False
    max_embeddings_per_hour: Optional[int] = None
    max_embeddings_per_day: Optional[int] = None


class FeedbackSubmission(BaseModel):
    rating: int = Field(default=3, ge=1, le=5)
    was_helpful: Optional[bool] = None
    comment: Optional[str] = None


class RAGFeedbackContext(BaseModel):
    """What the generation flow reports about RAG usage for a piece of content."""

    was_rag_enhanced: bool = False
    rag_context_used: List[str] = Field(default_factory=list)
    rag_insights: Optional[Dict[str, bool]] = None
    platform: Optional[str] = None
    language: Optional[str] = None


class ContentFeedback(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    content_id: str
    content_type: FeedbackContentType
    rating: int = Field(ge=1, le=5)
    was_helpful: Optional[bool] = None
    was_rag_enhanced: bool = False
    rag_context_used: List[str] = Field(default_factory=list)
    rag_insights: Optional[Dict[str, bool]] = None
    user_comment: Optional[str] = None
    platform: str = "unknown"
    language: str = "english"
    timestamp: Timestamp = Field(default_factory=datetime.now)


class PerformanceMetrics(BaseModel):
    """Running per-user feedback aggregates. Means are folded, never recomputed."""

    user_id: str
    total_feedback: int = 0
    rag_enhanced_feedback: int = 0
    non_rag_feedback: int = 0
    avg_rating_rag: float = 0.0
    avg_rating_non_rag: float = 0.0
    helpfulness_rate_rag: float = 0.0
    helpfulness_rate_non_rag: float = 0.0
    last_updated: Timestamp = Field(default_factory=datetime.now)


class PatternStat(BaseModel):
    success_count: int = 0
    total_count: int = 0
    avg_rating: float = 0.0
    last_used: Timestamp = Field(default_factory=datetime.now)


class PatternStats(BaseModel):
    user_id: str
    patterns: Dict[str, PatternStat] = Field(default_factory=dict)
    last_updated: Timestamp = Field(default_factory=datetime.now)


class RAGInsight(BaseModel):
    type: Literal["brand_patterns", "voice_patterns", "hashtags", "styles", "performance"]
    description: str
    confidence: float = Field(ge=0.0, le=1.0)
    is_active: bool = True
