"""
Brand Analytics Service
Composes the analytics pipeline for one brand and caches derived views
"""

import logging
from functools import cached_property
from typing import Any, Callable, List, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel

from getcito.config import get_settings
from getcito.schemas.analytics import (
    AnalyticsHistory,
    AnalyticsSnapshot,
    AnalyticsTrend,
    Citation,
    CitationListResponse,
    CompetitorAnalyticsSnapshot,
    DomainSummary,
    ShareOfVoice,
)
from getcito.schemas.brand import BrandDescriptor, CompetitorDescriptor
from getcito.services.aggregator import (
    AnalyzedHistory,
    SessionSlice,
    analyze_history,
    build_session_snapshot,
    build_snapshot,
)
from getcito.services.citation_export import (
    citation_stats,
    export_citations_csv,
    filter_citations,
    summarize_domains,
)
from getcito.services.competitor_analytics import aggregate_competitors
from getcito.services.query_analyzer import PerQueryAnalysis
from getcito.services.sov_calculator import compute_share_of_voice
from getcito.utils.cache import AnalyticsCache
from getcito.utils.security import generate_history_digest

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

SCOPES = ("latest", "lifetime")


class BrandAnalyticsService:
    """
    Analytics views over one brand's full history.

    Every view is recomputed from the history on a cache miss; the cache
    key includes a digest of brand, competitors and history so a changed
    history never serves a stale view.
    """

    def __init__(
        self,
        brand: BrandDescriptor,
        competitors: Sequence[CompetitorDescriptor],
        records: Sequence[Any],
        cache: Optional[AnalyticsCache] = None,
    ):
        self.brand = brand
        self.competitors = list(competitors)
        self.records = list(records)
        self.cache = cache

    @property
    def brand_id(self) -> str:
        return self.brand.id or self.brand.name

    @cached_property
    def digest(self) -> str:
        return generate_history_digest(self.brand, self.competitors, self.records)

    @cached_property
    def analyzed(self) -> AnalyzedHistory:
        history = analyze_history(self.records, self.brand, self.competitors)
        if history.skipped_records:
            logger.warning(
                "Brand %s: skipped %d corrupt query result records",
                self.brand_id, history.skipped_records,
            )
        return history

    def _slice(self, scope: str) -> Tuple[List[PerQueryAnalysis], Optional[SessionSlice]]:
        if scope not in SCOPES:
            raise ValueError(f"Unknown analytics scope: {scope}")
        if scope == "lifetime":
            return self.analyzed.analyses, None
        session = self.analyzed.latest_session
        return (session.analyses if session else []), session

    async def _cached(self, view: str, model: Type[ModelT], build: Callable[[], ModelT]) -> ModelT:
        if self.cache is not None:
            cached = await self.cache.get_view(self.brand_id, view, self.digest)
            if cached is not None:
                return model.model_validate(cached)

        result = build()

        if self.cache is not None:
            await self.cache.set_view(
                self.brand_id, view, self.digest, result.model_dump(mode="json")
            )
        return result

    # ------------------------------------------------------------------
    # Brand snapshots
    # ------------------------------------------------------------------

    def snapshot(self, scope: str) -> AnalyticsSnapshot:
        return build_snapshot(
            self.analyzed,
            self.brand,
            scope,
            brand_id=self.brand.id,
            history_digest=self.digest,
        )

    async def latest(self) -> AnalyticsSnapshot:
        return await self._cached("latest", AnalyticsSnapshot, lambda: self.snapshot("latest"))

    async def lifetime(self) -> AnalyticsSnapshot:
        return await self._cached("lifetime", AnalyticsSnapshot, lambda: self.snapshot("lifetime"))

    def build_history(self) -> AnalyticsHistory:
        """Latest and previous session side by side with their deltas"""
        latest_session = self.analyzed.latest_session
        previous_session = self.analyzed.previous_session

        latest = self.snapshot("latest") if latest_session else None
        previous = (
            build_session_snapshot(previous_session, self.brand, brand_id=self.brand.id)
            if previous_session else None
        )

        trend = AnalyticsTrend()
        if latest and previous:
            trend = AnalyticsTrend(
                brand_mentions_change=latest.total_brand_mentions - previous.total_brand_mentions,
                citations_change=latest.total_citations - previous.total_citations,
                visibility_change=round(
                    latest.brand_visibility_score - previous.brand_visibility_score, 2
                ),
            )

        return AnalyticsHistory(
            brand_id=self.brand.id,
            total_sessions=len(self.analyzed.sessions),
            latest=latest,
            previous=previous,
            trend=trend,
        )

    async def history(self) -> AnalyticsHistory:
        return await self._cached("history", AnalyticsHistory, self.build_history)

    # ------------------------------------------------------------------
    # Competitors & share of voice
    # ------------------------------------------------------------------

    def competitor_snapshot(self, scope: str) -> CompetitorAnalyticsSnapshot:
        analyses, session = self._slice(scope)
        latest = self.analyzed.latest_session
        previous = self.analyzed.previous_session

        return aggregate_competitors(
            analyses,
            self.competitors,
            scope,
            latest=latest.analyses if latest else [],
            previous=previous.analyses if previous else None,
            brand_id=self.brand.id,
            processing_session_id=session.session_id if session else None,
        )

    async def competitors_view(self, scope: str = "latest") -> CompetitorAnalyticsSnapshot:
        return await self._cached(
            f"competitors:{scope}", CompetitorAnalyticsSnapshot,
            lambda: self.competitor_snapshot(scope),
        )

    def build_share_of_voice(self, scope: str) -> ShareOfVoice:
        brand_mentions = self.snapshot(scope).total_brand_mentions
        competitor_stats = self.competitor_snapshot(scope).competitor_stats
        return compute_share_of_voice(
            brand_mentions,
            {c.name: competitor_stats[c.name].total_mentions for c in self.competitors},
            brand_name=self.brand.name,
        )

    async def share_of_voice(self, scope: str = "latest") -> ShareOfVoice:
        return await self._cached(
            f"sov:{scope}", ShareOfVoice, lambda: self.build_share_of_voice(scope)
        )

    # ------------------------------------------------------------------
    # Citations
    # ------------------------------------------------------------------

    def citation_list(self, scope: str = "lifetime", provider: Optional[str] = None) -> List[Citation]:
        analyses, _ = self._slice(scope)
        return filter_citations((c for a in analyses for c in a.citations), provider)

    def citations(self, scope: str = "lifetime", provider: Optional[str] = None) -> CitationListResponse:
        citations = self.citation_list(scope, provider)
        return CitationListResponse(scope=scope, citations=citations, stats=citation_stats(citations))

    def domains(self, scope: str = "lifetime") -> List[DomainSummary]:
        return summarize_domains(
            self.citation_list(scope),
            self.brand.domain,
            self.competitors,
            excluded_domains=get_settings().excluded_citation_domains,
        )

    def export_csv(self, scope: str = "lifetime", provider: Optional[str] = None) -> str:
        return export_citations_csv(self.citation_list(scope, provider))
