"""
Business Logic Services
"""

from .query_analyzer import QueryAnalyzer, PerQueryAnalysis, analyze_query
from .aggregator import aggregate, analyze_history, build_snapshot
from .competitor_analytics import aggregate_competitors
from .sov_calculator import ShareOfVoiceCalculator, compute_share_of_voice
from .citation_export import export_citations_csv, summarize_domains, citation_stats
from .analytics_service import BrandAnalyticsService
from .history_service import HistoryRepository, BrandNotFoundError, DuplicateCompetitorError, HistoryConflictError

__all__ = [
    "QueryAnalyzer",
    "PerQueryAnalysis",
    "analyze_query",
    "aggregate",
    "analyze_history",
    "build_snapshot",
    "aggregate_competitors",
    "ShareOfVoiceCalculator",
    "compute_share_of_voice",
    "export_citations_csv",
    "summarize_domains",
    "citation_stats",
    "BrandAnalyticsService",
    "HistoryRepository",
    "BrandNotFoundError",
    "DuplicateCompetitorError",
    "HistoryConflictError",
]
