"""
Competitor Analytics
Per-competitor rollups, provider breakdowns and competitive insights
"""

import logging
from typing import Dict, Optional, Sequence

from getcito.adapters.providers import ALL_PROVIDERS
from getcito.config import NONE_LABEL, TREND_DELTA_THRESHOLD
from getcito.schemas.analytics import (
    CompetitorAnalyticsSnapshot,
    CompetitorInsights,
    CompetitorProviderStats,
    CompetitorStats,
    ProviderMentionBreakdown,
)
from getcito.schemas.brand import EntityDescriptor
from getcito.services.query_analyzer import PerQueryAnalysis
from getcito.services.sov_calculator import (
    classify_competitive_intensity,
    classify_market_position,
)

logger = logging.getLogger(__name__)


def _pct(part: float, whole: float) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


def _leader(counts: Dict[str, int]) -> str:
    """Highest count, ties broken alphabetically; "none" when all are zero"""
    best = max(counts.values(), default=0)
    if best <= 0:
        return NONE_LABEL
    return min(name for name, count in counts.items() if count == best)


def mention_trend(current: float, previous: Optional[float]) -> str:
    if previous is None:
        return "stable"
    delta = current - previous
    if delta > TREND_DELTA_THRESHOLD:
        return "increasing"
    if delta < -TREND_DELTA_THRESHOLD:
        return "decreasing"
    return "stable"


def competitor_visibility(analyses: Sequence[PerQueryAnalysis], name: str) -> float:
    """Percent of queries where at least one provider mentioned the competitor"""
    hits = sum(1 for a in analyses if a.competitor_mentioned(name))
    return _pct(hits, len(analyses))


def aggregate_competitors(
    analyses: Sequence[PerQueryAnalysis],
    competitors: Sequence[EntityDescriptor],
    scope: str = "lifetime",
    *,
    latest: Optional[Sequence[PerQueryAnalysis]] = None,
    previous: Optional[Sequence[PerQueryAnalysis]] = None,
    brand_id: Optional[str] = None,
    processing_session_id: Optional[str] = None,
) -> CompetitorAnalyticsSnapshot:
    """
    Aggregate competitor mentions across analyses.

    Args:
        analyses: Analyses for the scope being reported
        competitors: Tracked competitors, in display order
        latest: Analyses of the latest session; defaults to analyses
        previous: Analyses of the prior session; mention trends compare
            latest against it and are "stable" without it

    Returns:
        CompetitorAnalyticsSnapshot
    """
    total_queries = len(analyses)
    trend_window = analyses if latest is None else latest
    providers = [p.value for p in ALL_PROVIDERS]

    stats: Dict[str, CompetitorStats] = {
        c.name: CompetitorStats(
            name=c.name,
            domain=c.domain,
            provider_breakdown={p: ProviderMentionBreakdown() for p in providers},
        )
        for c in competitors
    }
    provider_stats = {p: CompetitorProviderStats() for p in providers}
    provider_competitors = {p: set() for p in providers}

    total_mentions = 0
    queries_with_competitor = 0
    competitors_per_query = 0

    for analysis in analyses:
        for provider, result in analysis.providers.items():
            pstats = provider_stats[provider.value]
            pstats.queries_processed += 1

            for name, mentions in result.competitors.items():
                cstats = stats.get(name)
                if cstats is None:
                    continue
                cstats.domain_citations += mentions.domain_citations
                if not mentions.mentioned:
                    continue

                breakdown = cstats.provider_breakdown[provider.value]
                breakdown.mentions += mentions.mention_count
                breakdown.queries_with_mentions += 1
                cstats.total_mentions += mentions.mention_count

                pstats.competitor_mentions += mentions.mention_count
                provider_competitors[provider.value].add(name)
                total_mentions += mentions.mention_count

        mentioned_here = [n for n in analysis.competitors_mentioned() if n in stats]
        for name in mentioned_here:
            stats[name].queries_with_mentions += 1
        if mentioned_here:
            queries_with_competitor += 1
        competitors_per_query += len(mentioned_here)

    for provider, names in provider_competitors.items():
        provider_stats[provider].unique_competitors = len(names)

    for name, cstats in stats.items():
        cstats.visibility_score = _pct(cstats.queries_with_mentions, total_queries)
        cstats.average_mentions_per_query = (
            round(cstats.total_mentions / total_queries, 2) if total_queries else 0.0
        )
        cstats.top_provider = _leader(
            {p: b.mentions for p, b in cstats.provider_breakdown.items()}
        )
        prior = competitor_visibility(previous, name) if previous else None
        cstats.mention_trend = mention_trend(competitor_visibility(trend_window, name), prior)

    visibility = _pct(queries_with_competitor, total_queries)

    insights = CompetitorInsights(
        top_competitor=_leader({name: s.total_mentions for name, s in stats.items()}),
        most_competitive_provider=_leader(
            {p: s.competitor_mentions for p, s in provider_stats.items()}
        ),
        average_competitors_per_query=(
            round(competitors_per_query / total_queries, 2) if total_queries else 0.0
        ),
        competitive_intensity=classify_competitive_intensity(visibility),
        market_position=classify_market_position(visibility),
    )

    logger.debug(
        "Competitor analytics (%s): %d queries, %d mentions",
        scope, total_queries, total_mentions,
    )

    return CompetitorAnalyticsSnapshot(
        scope=scope,
        brand_id=brand_id,
        processing_session_id=processing_session_id,
        total_queries_processed=total_queries,
        total_competitor_mentions=total_mentions,
        competitor_visibility_score=visibility,
        unique_competitors_detected=sum(1 for s in stats.values() if s.total_mentions > 0),
        competitor_stats=stats,
        provider_stats=provider_stats,
        insights=insights,
    )
