"""
Analytics Schemas
Citations, brand snapshots, competitor snapshots and share of voice
"""

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

AnalyticsScope = Literal["latest", "lifetime"]
VisibilityTrend = Literal["improving", "declining", "stable"]
MentionTrend = Literal["increasing", "decreasing", "stable"]
CompetitiveIntensity = Literal["low", "medium", "high"]
MarketPosition = Literal["leader", "challenger", "follower"]
CitationProviderLabel = Literal["chatgpt", "googleAI", "perplexity"]


class Citation(BaseModel):
    """A normalized reference returned by an AI provider"""
    id: str
    url: str
    domain: Optional[str] = None
    text: str = ""
    source: str = ""
    provider: CitationProviderLabel
    type: str = "text_extraction"
    query: str = ""
    query_id: str = ""
    processing_session_id: str = "unknown"
    timestamp: Optional[datetime] = None
    is_brand_mention: bool = False
    is_domain_citation: bool = False

    @model_validator(mode="after")
    def domain_citation_needs_domain(self) -> "Citation":
        if self.is_domain_citation and not self.domain:
            raise ValueError("is_domain_citation requires a domain")
        return self


# ============================================================================
# BRAND ANALYTICS
# ============================================================================

class ProviderStats(BaseModel):
    """Per-provider brand totals"""
    queries_processed: int = 0
    web_search_queries: int = 0
    brand_mentions: int = 0
    citations: int = 0
    domain_citations: int = 0
    average_response_time: Optional[float] = None


class ProviderRanking(BaseModel):
    """Where a provider ranks for the brand"""
    rank: int
    brand_mentions: int
    domain_citations_ratio: float  # percent of the provider's citations
    total_citations: int


class AnalyticsInsights(BaseModel):
    """Derived brand insights"""
    top_performing_provider: str = "none"
    top_providers: List[str] = []
    brand_visibility_trend: VisibilityTrend = "stable"
    average_brand_mentions_per_query: float = 0.0
    average_citations_per_query: float = 0.0
    first_query_processed: Optional[datetime] = None
    last_query_processed: Optional[datetime] = None
    provider_ranking_details: Dict[str, ProviderRanking] = {}


class AnalyticsSnapshot(BaseModel):
    """Brand analytics for one processing session (latest) or the full history (lifetime)"""
    scope: AnalyticsScope
    brand_id: Optional[str] = None
    brand_name: str
    brand_domain: Optional[str] = None
    processing_session_id: Optional[str] = None
    processing_session_timestamp: Optional[datetime] = None

    total_queries_processed: int = 0
    total_processing_sessions: int = 0
    skipped_records: int = 0

    total_brand_mentions: int = 0
    queries_with_brand_mention: int = 0
    total_citations: int = 0
    total_domain_citations: int = 0
    brand_visibility_score: float = Field(0.0, ge=0, le=100)

    provider_stats: Dict[str, ProviderStats] = {}
    insights: AnalyticsInsights = AnalyticsInsights()
    history_digest: Optional[str] = None


class AnalyticsTrend(BaseModel):
    """Change between the latest and previous processing session"""
    brand_mentions_change: int = 0
    citations_change: int = 0
    visibility_change: float = 0.0


class AnalyticsHistory(BaseModel):
    """Latest and previous session analytics for a brand"""
    brand_id: Optional[str] = None
    total_sessions: int = 0
    latest: Optional[AnalyticsSnapshot] = None
    previous: Optional[AnalyticsSnapshot] = None
    trend: AnalyticsTrend = AnalyticsTrend()


# ============================================================================
# COMPETITOR ANALYTICS
# ============================================================================

class ProviderMentionBreakdown(BaseModel):
    mentions: int = 0
    queries_with_mentions: int = 0


class CompetitorStats(BaseModel):
    """Rollup for one competitor"""
    name: str
    domain: Optional[str] = None
    total_mentions: int = 0
    queries_with_mentions: int = 0
    visibility_score: float = 0.0
    average_mentions_per_query: float = 0.0
    domain_citations: int = 0
    top_provider: str = "none"
    mention_trend: MentionTrend = "stable"
    provider_breakdown: Dict[str, ProviderMentionBreakdown] = {}


class CompetitorProviderStats(BaseModel):
    queries_processed: int = 0
    competitor_mentions: int = 0
    unique_competitors: int = 0


class CompetitorInsights(BaseModel):
    top_competitor: str = "none"
    most_competitive_provider: str = "none"
    average_competitors_per_query: float = 0.0
    competitive_intensity: CompetitiveIntensity = "low"
    market_position: MarketPosition = "leader"


class CompetitorAnalyticsSnapshot(BaseModel):
    """Competitor analytics for one scope"""
    scope: AnalyticsScope
    brand_id: Optional[str] = None
    processing_session_id: Optional[str] = None
    total_queries_processed: int = 0
    total_competitor_mentions: int = 0
    competitor_visibility_score: float = 0.0
    unique_competitors_detected: int = 0
    competitor_stats: Dict[str, CompetitorStats] = {}
    provider_stats: Dict[str, CompetitorProviderStats] = {}
    insights: CompetitorInsights = CompetitorInsights()


# ============================================================================
# SHARE OF VOICE
# ============================================================================

class RankedEntity(BaseModel):
    rank: int
    name: str
    mentions: int
    share_pct: float
    is_brand: bool = False


class ShareOfVoice(BaseModel):
    """Brand voice versus all tracked competitors combined"""
    total_market: int
    brand_mentions: int
    competitor_mentions: int
    brand_share_pct: int
    competitor_share_pct: int
    ranked_entities: List[RankedEntity] = []
    brand_rank: Optional[int] = None
    top_entity: Optional[str] = None
    competitive_intensity: CompetitiveIntensity
    market_position: MarketPosition


# ============================================================================
# CITATION REPORTING
# ============================================================================

class CitationStats(BaseModel):
    total_citations: int = 0
    unique_domains: int = 0
    brand_mentions: int = 0
    domain_citations: int = 0
    by_provider: Dict[str, int] = {}


class DomainSummary(BaseModel):
    """One row of the cited-domains leaderboard"""
    domain: str
    source_type: Literal["brand", "competitor", "third_party"]
    total_citations: int
    providers: List[str]


class CitationListResponse(BaseModel):
    scope: AnalyticsScope
    citations: List[Citation]
    stats: CitationStats
