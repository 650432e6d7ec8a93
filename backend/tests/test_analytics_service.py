"""
Tests for the brand analytics service: views, history comparison and caching.
"""

from unittest.mock import AsyncMock

import pytest

from getcito.services.analytics_service import BrandAnalyticsService


@pytest.fixture
def service(brand, competitors, two_session_history):
    return BrandAnalyticsService(brand, competitors, two_session_history)


class TestViews:

    def test_history_deltas(self, service):
        history = service.build_history()

        assert history.total_sessions == 2
        assert history.latest.processing_session_id == "s2"
        assert history.previous.processing_session_id == "s1"
        assert history.trend.visibility_change == 100.0
        # s2: 1 + 2 brand mentions, s1: none
        assert history.trend.brand_mentions_change == 3
        # s2: 1 + 2 citations, s1: 1
        assert history.trend.citations_change == 2

    def test_history_single_session(self, brand, two_session_history):
        service = BrandAnalyticsService(brand, [], two_session_history[:2])
        history = service.build_history()

        assert history.previous is None
        assert history.trend.visibility_change == 0.0

    def test_share_of_voice(self, service):
        latest = service.build_share_of_voice("latest")
        lifetime = service.build_share_of_voice("lifetime")

        assert latest.brand_mentions == 3
        assert latest.competitor_mentions == 0
        assert latest.brand_share_pct == 100

        # Profound 2, Peec 1 in s1
        assert lifetime.competitor_mentions == 3
        assert lifetime.brand_share_pct == 50
        assert [e.name for e in lifetime.ranked_entities] == ["GetCito", "Profound", "Peec"]

    def test_citations_and_domains(self, service):
        response = service.citations("lifetime")
        assert response.stats.total_citations == 4

        latest = service.citations("latest", provider="chatgpt")
        assert [c.url for c in latest.citations] == ["https://getcito.com/pricing"]

        domains = service.domains("lifetime")
        assert domains[0].domain == "getcito.com"
        assert domains[0].total_citations == 2
        assert domains[0].source_type == "brand"

    def test_export(self, service):
        lines = service.export_csv("lifetime", "perplexity").splitlines()
        assert len(lines) == 4

    def test_unknown_scope(self, service):
        with pytest.raises(ValueError):
            service.citation_list("weekly")

    def test_corrupt_records_reported(self, brand, two_session_history):
        service = BrandAnalyticsService(brand, [], two_session_history + [{"results": []}])
        assert service.snapshot("lifetime").skipped_records == 1
        assert service.snapshot("latest").skipped_records == 1


class TestCaching:

    @pytest.mark.asyncio
    async def test_miss_builds_and_stores(self, brand, competitors, two_session_history):
        cache = AsyncMock()
        cache.get_view.return_value = None
        service = BrandAnalyticsService(brand, competitors, two_session_history, cache=cache)

        snapshot = await service.lifetime()

        assert snapshot.total_queries_processed == 4
        cache.get_view.assert_awaited_once_with("brand-1", "lifetime", service.digest)
        stored = cache.set_view.await_args.args
        assert stored[:3] == ("brand-1", "lifetime", service.digest)
        assert stored[3]["total_queries_processed"] == 4

    @pytest.mark.asyncio
    async def test_hit_skips_recompute(self, brand, competitors, two_session_history):
        fresh = BrandAnalyticsService(brand, competitors, two_session_history)
        cached_view = fresh.snapshot("latest").model_dump(mode="json")

        cache = AsyncMock()
        cache.get_view.return_value = cached_view
        service = BrandAnalyticsService(brand, competitors, two_session_history, cache=cache)

        snapshot = await service.latest()

        assert snapshot.model_dump(mode="json") == cached_view
        cache.set_view.assert_not_awaited()
        assert "analyzed" not in service.__dict__

    @pytest.mark.asyncio
    async def test_digest_tracks_history(self, brand, competitors, two_session_history):
        before = BrandAnalyticsService(brand, competitors, two_session_history[:3])
        after = BrandAnalyticsService(brand, competitors, two_session_history)
        assert before.digest != after.digest

    @pytest.mark.asyncio
    async def test_views_without_cache(self, service):
        assert (await service.competitors_view("latest")).scope == "latest"
        assert (await service.share_of_voice("lifetime")).total_market == 6
        assert (await service.history()).total_sessions == 2
