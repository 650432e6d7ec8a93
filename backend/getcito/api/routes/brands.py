"""
Brand Management Routes
Brands, competitors and query result history
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status

from getcito.api.dependencies import brand_not_found, get_analytics_cache, get_repository
from getcito.api.middleware.auth import get_current_user_id
from getcito.schemas.brand import BrandCreate, BrandResponse, CompetitorCreate, CompetitorResponse
from getcito.schemas.query import QueryResultsAppend, QueryResultsAppended
from getcito.services.history_service import (
    BrandNotFoundError,
    DuplicateCompetitorError,
    HistoryConflictError,
    HistoryRepository,
)
from getcito.utils import AnalyticsCache

logger = logging.getLogger(__name__)

router = APIRouter()


def _duplicate(exc: DuplicateCompetitorError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=f"Competitor already tracked: {exc}",
    )


@router.post("", response_model=BrandResponse, status_code=status.HTTP_201_CREATED)
async def create_brand(
    brand_data: BrandCreate,
    user_id: str = Depends(get_current_user_id),
    repo: HistoryRepository = Depends(get_repository),
):
    """Create a brand with its initial competitors"""
    try:
        brand = await repo.create_brand(user_id, brand_data)
    except DuplicateCompetitorError as e:
        raise _duplicate(e)
    return BrandResponse.model_validate(brand)


@router.get("", response_model=List[BrandResponse])
async def list_brands(
    user_id: str = Depends(get_current_user_id),
    repo: HistoryRepository = Depends(get_repository),
):
    """List the current user's brands"""
    brands = await repo.list_brands(user_id)
    return [BrandResponse.model_validate(b) for b in brands]


@router.get("/{brand_id}", response_model=BrandResponse)
async def get_brand(
    brand_id: str,
    user_id: str = Depends(get_current_user_id),
    repo: HistoryRepository = Depends(get_repository),
):
    """Get a brand with its competitors"""
    try:
        brand = await repo.get_brand(brand_id, user_id)
    except BrandNotFoundError:
        raise brand_not_found(brand_id)
    return BrandResponse.model_validate(brand)


@router.post(
    "/{brand_id}/competitors",
    response_model=CompetitorResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_competitor(
    brand_id: str,
    competitor_data: CompetitorCreate,
    user_id: str = Depends(get_current_user_id),
    repo: HistoryRepository = Depends(get_repository),
    cache: Optional[AnalyticsCache] = Depends(get_analytics_cache),
):
    """Track a new competitor"""
    try:
        competitor = await repo.add_competitor(brand_id, user_id, competitor_data)
    except BrandNotFoundError:
        raise brand_not_found(brand_id)
    except DuplicateCompetitorError as e:
        raise _duplicate(e)

    if cache is not None:
        await cache.invalidate_brand(brand_id)
    return CompetitorResponse.model_validate(competitor)


@router.delete("/{brand_id}/competitors/{competitor_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_competitor(
    brand_id: str,
    competitor_id: str,
    user_id: str = Depends(get_current_user_id),
    repo: HistoryRepository = Depends(get_repository),
    cache: Optional[AnalyticsCache] = Depends(get_analytics_cache),
):
    """Stop tracking a competitor"""
    try:
        await repo.remove_competitor(brand_id, user_id, competitor_id)
    except BrandNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Brand or competitor not found",
        )

    if cache is not None:
        await cache.invalidate_brand(brand_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{brand_id}/query-results",
    response_model=QueryResultsAppended,
    status_code=status.HTTP_201_CREATED,
)
async def append_query_results(
    brand_id: str,
    payload: QueryResultsAppend,
    user_id: str = Depends(get_current_user_id),
    repo: HistoryRepository = Depends(get_repository),
    cache: Optional[AnalyticsCache] = Depends(get_analytics_cache),
):
    """
    Append one processing session of query results to the brand history.

    History is append-only; cached analytics for the brand are dropped.
    """
    try:
        appended = await repo.append_records(brand_id, user_id, payload)
    except BrandNotFoundError:
        raise brand_not_found(brand_id)
    except HistoryConflictError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Another append to this brand history is in progress, retry",
        )

    if cache is not None:
        await cache.invalidate_brand(brand_id)
    return appended
