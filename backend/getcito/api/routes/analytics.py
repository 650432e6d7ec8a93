"""
Brand Analytics Routes
Snapshots, competitor analytics, share of voice and citations
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from getcito.api.dependencies import get_analytics_cache, get_repository, load_analytics_service
from getcito.api.middleware.auth import get_current_user_id
from getcito.schemas.analytics import (
    AnalyticsHistory,
    AnalyticsScope,
    AnalyticsSnapshot,
    CitationListResponse,
    CitationProviderLabel,
    CompetitorAnalyticsSnapshot,
    DomainSummary,
    ShareOfVoice,
)
from getcito.services.history_service import HistoryRepository
from getcito.utils import AnalyticsCache

router = APIRouter()


# ============================================================================
# BRAND SNAPSHOTS
# ============================================================================

@router.get("/{brand_id}/analytics/latest", response_model=AnalyticsSnapshot)
async def get_latest_analytics(
    brand_id: str,
    user_id: str = Depends(get_current_user_id),
    repo: HistoryRepository = Depends(get_repository),
    cache: Optional[AnalyticsCache] = Depends(get_analytics_cache),
):
    """Brand analytics for the most recent processing session"""
    service = await load_analytics_service(brand_id, user_id, repo, cache)
    return await service.latest()


@router.get("/{brand_id}/analytics/lifetime", response_model=AnalyticsSnapshot)
async def get_lifetime_analytics(
    brand_id: str,
    user_id: str = Depends(get_current_user_id),
    repo: HistoryRepository = Depends(get_repository),
    cache: Optional[AnalyticsCache] = Depends(get_analytics_cache),
):
    """Brand analytics over the entire history"""
    service = await load_analytics_service(brand_id, user_id, repo, cache)
    return await service.lifetime()


@router.get("/{brand_id}/analytics/history", response_model=AnalyticsHistory)
async def get_analytics_history(
    brand_id: str,
    user_id: str = Depends(get_current_user_id),
    repo: HistoryRepository = Depends(get_repository),
    cache: Optional[AnalyticsCache] = Depends(get_analytics_cache),
):
    """Latest vs. previous session comparison"""
    service = await load_analytics_service(brand_id, user_id, repo, cache)
    return await service.history()


# ============================================================================
# COMPETITORS & SHARE OF VOICE
# ============================================================================

@router.get("/{brand_id}/competitors/analytics", response_model=CompetitorAnalyticsSnapshot)
async def get_competitor_analytics(
    brand_id: str,
    scope: AnalyticsScope = Query("latest"),
    user_id: str = Depends(get_current_user_id),
    repo: HistoryRepository = Depends(get_repository),
    cache: Optional[AnalyticsCache] = Depends(get_analytics_cache),
):
    service = await load_analytics_service(brand_id, user_id, repo, cache)
    return await service.competitors_view(scope)


@router.get("/{brand_id}/share-of-voice", response_model=ShareOfVoice)
async def get_share_of_voice(
    brand_id: str,
    scope: AnalyticsScope = Query("latest"),
    user_id: str = Depends(get_current_user_id),
    repo: HistoryRepository = Depends(get_repository),
    cache: Optional[AnalyticsCache] = Depends(get_analytics_cache),
):
    """Brand share of all brand + competitor mentions"""
    service = await load_analytics_service(brand_id, user_id, repo, cache)
    return await service.share_of_voice(scope)


# ============================================================================
# CITATIONS
# ============================================================================

@router.get("/{brand_id}/citations", response_model=CitationListResponse)
async def list_citations(
    brand_id: str,
    scope: AnalyticsScope = Query("lifetime"),
    provider: Optional[CitationProviderLabel] = Query(None),
    user_id: str = Depends(get_current_user_id),
    repo: HistoryRepository = Depends(get_repository),
):
    service = await load_analytics_service(brand_id, user_id, repo, None)
    return service.citations(scope, provider)


@router.get("/{brand_id}/citations/domains", response_model=List[DomainSummary])
async def list_cited_domains(
    brand_id: str,
    scope: AnalyticsScope = Query("lifetime"),
    user_id: str = Depends(get_current_user_id),
    repo: HistoryRepository = Depends(get_repository),
):
    """Cited domains leaderboard"""
    service = await load_analytics_service(brand_id, user_id, repo, None)
    return service.domains(scope)


@router.get("/{brand_id}/citations/export")
async def export_citations(
    brand_id: str,
    scope: AnalyticsScope = Query("lifetime"),
    provider: Optional[CitationProviderLabel] = Query(None),
    user_id: str = Depends(get_current_user_id),
    repo: HistoryRepository = Depends(get_repository),
):
    """Download citations as CSV"""
    service = await load_analytics_service(brand_id, user_id, repo, None)
    return Response(
        content=service.export_csv(scope, provider),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="citations-{brand_id}-{scope}.csv"'},
    )
