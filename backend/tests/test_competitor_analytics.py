"""
Tests for competitor analytics.
"""

import pytest

from conftest import chatgpt_result, make_record, perplexity_result

from getcito.services.aggregator import analyze_history
from getcito.services.analytics_service import BrandAnalyticsService
from getcito.services.competitor_analytics import aggregate_competitors, mention_trend


@pytest.fixture
def analyses(brand, competitors):
    records = [
        make_record(
            query="q1", timestamp="2026-01-05T10:00:00Z",
            chatgpt=chatgpt_result("Profound and Peec are options."),
            perplexity=perplexity_result("Profound again."),
        ),
        make_record(query="q2", timestamp="2026-01-05T10:01:00Z", chatgpt=chatgpt_result("Nothing.")),
        make_record(query="q3", timestamp="2026-01-05T10:02:00Z", chatgpt=chatgpt_result("Peec, Peec.")),
    ]
    return analyze_history(records, brand, competitors).analyses


class TestCompetitorStats:

    def test_query_counted_once_across_providers(self, analyses, competitors):
        result = aggregate_competitors(analyses, competitors)
        profound = result.competitor_stats["Profound"]

        assert profound.total_mentions == 2
        assert profound.queries_with_mentions == 1
        assert profound.visibility_score == 33.33
        assert profound.provider_breakdown["chatgpt"].mentions == 1
        assert profound.provider_breakdown["perplexity"].queries_with_mentions == 1
        assert profound.top_provider == "chatgpt"

    def test_totals(self, analyses, competitors):
        result = aggregate_competitors(analyses, competitors)
        peec = result.competitor_stats["Peec"]

        assert peec.total_mentions == 3
        assert peec.queries_with_mentions == 2
        assert peec.average_mentions_per_query == 1.0
        assert result.total_competitor_mentions == 5
        assert result.total_queries_processed == 3
        assert result.competitor_visibility_score == 66.67
        assert result.unique_competitors_detected == 2

    def test_provider_stats(self, analyses, competitors):
        stats = aggregate_competitors(analyses, competitors).provider_stats

        assert stats["chatgpt"].queries_processed == 3
        assert stats["chatgpt"].competitor_mentions == 4
        assert stats["chatgpt"].unique_competitors == 2
        assert stats["perplexity"].unique_competitors == 1
        assert stats["google"].queries_processed == 0

    def test_insights(self, analyses, competitors):
        insights = aggregate_competitors(analyses, competitors).insights

        assert insights.top_competitor == "Peec"
        assert insights.most_competitive_provider == "chatgpt"
        assert insights.average_competitors_per_query == 1.0
        assert insights.competitive_intensity == "high"
        assert insights.market_position == "follower"

    def test_no_competitors(self, analyses):
        result = aggregate_competitors(analyses, [])

        assert result.competitor_stats == {}
        assert result.insights.top_competitor == "none"
        assert result.insights.competitive_intensity == "low"
        assert result.insights.market_position == "leader"

    def test_empty_history(self, competitors):
        result = aggregate_competitors([], competitors)

        assert result.competitor_stats["Peec"].visibility_score == 0.0
        assert result.competitor_stats["Peec"].top_provider == "none"
        assert result.insights.most_competitive_provider == "none"


class TestCompetitorTrends:

    def test_trend_from_session_history(self, brand, competitors, two_session_history):
        service = BrandAnalyticsService(brand, competitors, two_session_history)

        for scope in ("latest", "lifetime"):
            stats = service.competitor_snapshot(scope).competitor_stats
            assert stats["Profound"].mention_trend == "decreasing"
            assert stats["Peec"].mention_trend == "decreasing"

    def test_single_session_stable(self, analyses, competitors):
        result = aggregate_competitors(analyses, competitors)
        assert all(s.mention_trend == "stable" for s in result.competitor_stats.values())

    def test_domain_citations_per_competitor(self, brand, competitors, two_session_history):
        service = BrandAnalyticsService(brand, competitors, two_session_history)
        stats = service.competitor_snapshot("lifetime").competitor_stats

        assert stats["Peec"].domain_citations == 1
        assert stats["Profound"].domain_citations == 0

    @pytest.mark.parametrize("current,previous,expected", [
        (60.0, 40.0, "increasing"),
        (40.0, 60.0, "decreasing"),
        (40.0, 40.0, "stable"),
        (40.0, None, "stable"),
    ])
    def test_mention_trend(self, current, previous, expected):
        assert mention_trend(current, previous) == expected
