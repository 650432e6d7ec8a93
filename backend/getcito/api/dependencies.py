"""
Shared route dependencies
"""

from typing import Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from getcito.config import get_settings
from getcito.services.analytics_service import BrandAnalyticsService
from getcito.services.history_service import (
    BrandNotFoundError,
    HistoryRepository,
    to_descriptors,
)
from getcito.utils import get_db, analytics_cache, AnalyticsCache


async def get_repository(db: AsyncSession = Depends(get_db)) -> HistoryRepository:
    return HistoryRepository(db)


def get_analytics_cache() -> Optional[AnalyticsCache]:
    """Shared analytics cache, None when caching is disabled"""
    if not get_settings().ANALYTICS_CACHE_ENABLED:
        return None
    return analytics_cache


def brand_not_found(brand_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Brand {brand_id} not found",
    )


async def load_analytics_service(
    brand_id: str,
    user_id: str,
    repo: HistoryRepository,
    cache: Optional[AnalyticsCache],
) -> BrandAnalyticsService:
    """Analytics service over the brand's full stored history"""
    try:
        brand = await repo.get_brand(brand_id, user_id)
    except BrandNotFoundError:
        raise brand_not_found(brand_id)

    descriptor, competitors = to_descriptors(brand)
    records = await repo.load_records(brand_id)
    return BrandAnalyticsService(descriptor, competitors, records, cache=cache)
