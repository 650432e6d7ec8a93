"""
Pydantic Schemas for API Request/Response validation
"""

from .brand import (
    EntityDescriptor,
    BrandDescriptor,
    CompetitorDescriptor,
    BrandCreate,
    BrandResponse,
    CompetitorCreate,
    CompetitorResponse,
)
from .query import (
    QueryResultRecord,
    QueryResultsAppend,
    QueryResultsAppended,
)
from .analytics import (
    Citation,
    ProviderStats,
    ProviderRanking,
    AnalyticsInsights,
    AnalyticsSnapshot,
    AnalyticsTrend,
    AnalyticsHistory,
    ProviderMentionBreakdown,
    CompetitorStats,
    CompetitorProviderStats,
    CompetitorInsights,
    CompetitorAnalyticsSnapshot,
    RankedEntity,
    ShareOfVoice,
    CitationStats,
    DomainSummary,
    CitationListResponse,
)

__all__ = [
    # Brand
    "EntityDescriptor",
    "BrandDescriptor",
    "CompetitorDescriptor",
    "BrandCreate",
    "BrandResponse",
    "CompetitorCreate",
    "CompetitorResponse",
    # Query history
    "QueryResultRecord",
    "QueryResultsAppend",
    "QueryResultsAppended",
    # Analytics
    "Citation",
    "ProviderStats",
    "ProviderRanking",
    "AnalyticsInsights",
    "AnalyticsSnapshot",
    "AnalyticsTrend",
    "AnalyticsHistory",
    "ProviderMentionBreakdown",
    "CompetitorStats",
    "CompetitorProviderStats",
    "CompetitorInsights",
    "CompetitorAnalyticsSnapshot",
    "RankedEntity",
    "ShareOfVoice",
    "CitationStats",
    "DomainSummary",
    "CitationListResponse",
]
