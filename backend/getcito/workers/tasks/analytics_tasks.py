"""
Analytics Tasks
Recompute lifetime snapshots off the request path and warm the cache
"""

import asyncio
from typing import Dict

from celery.utils.log import get_task_logger

from getcito.workers.celery_app import celery_app
from getcito.services.analytics_service import BrandAnalyticsService
from getcito.services.history_service import (
    BrandNotFoundError,
    HistoryRepository,
    to_descriptors,
)
from getcito.utils import analytics_cache, close_db, close_redis, get_db_context

logger = get_task_logger(__name__)


def run_async(coro):
    """Run async function in sync context"""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


async def _with_fresh_connections(coro):
    # Engine and Redis pool are bound to the loop that created them
    try:
        return await coro
    finally:
        await close_db()
        await close_redis()


async def _refresh_brand(repo: HistoryRepository, brand_id: str) -> Dict:
    brand = await repo.get_brand(brand_id)
    descriptor, competitors = to_descriptors(brand)
    records = await repo.load_records(brand_id)

    service = BrandAnalyticsService(descriptor, competitors, records, cache=analytics_cache)
    snapshot = await service.lifetime()
    return {
        "brand_id": brand_id,
        "total_queries_processed": snapshot.total_queries_processed,
        "brand_visibility_score": snapshot.brand_visibility_score,
        "skipped_records": snapshot.skipped_records,
    }


@celery_app.task(
    bind=True,
    name="getcito.workers.tasks.analytics_tasks.refresh_lifetime_analytics",
    max_retries=2,
    default_retry_delay=30,
)
def refresh_lifetime_analytics(self, brand_id: str) -> Dict:
    """
    Recompute the lifetime snapshot for one brand.

    Args:
        brand_id: Brand to refresh

    Returns:
        Dict with the refreshed headline numbers
    """
    async def refresh():
        async with get_db_context() as db:
            return await _refresh_brand(HistoryRepository(db), brand_id)

    try:
        result = run_async(_with_fresh_connections(refresh()))
    except BrandNotFoundError:
        logger.warning(f"Lifetime refresh skipped, brand {brand_id} not found")
        return {"success": False, "brand_id": brand_id, "error": "Brand not found"}
    except Exception as e:
        logger.error(f"Lifetime refresh failed for brand {brand_id}: {e}")
        raise self.retry(exc=e)

    logger.info(
        f"Lifetime analytics refreshed for brand {brand_id}: "
        f"{result['brand_visibility_score']:.2f}% over {result['total_queries_processed']} queries"
    )
    return {"success": True, **result}


@celery_app.task(
    name="getcito.workers.tasks.analytics_tasks.refresh_all_lifetime_analytics",
)
def refresh_all_lifetime_analytics() -> Dict:
    """
    Queue a lifetime refresh for every brand.
    Runs every LIFETIME_REFRESH_INTERVAL seconds from beat.
    """
    async def brand_ids():
        async with get_db_context() as db:
            return await HistoryRepository(db).list_brand_ids()

    ids = run_async(_with_fresh_connections(brand_ids()))
    for brand_id in ids:
        refresh_lifetime_analytics.delay(brand_id)

    logger.info(f"Queued lifetime refresh for {len(ids)} brands")
    return {"queued": len(ids)}
