"""
Cumulative Aggregator
Rolls per-query analyses up into latest-session and lifetime brand snapshots
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from getcito.adapters.providers import ALL_PROVIDERS
from getcito.config import NONE_LABEL, TREND_DELTA_THRESHOLD
from getcito.schemas.analytics import (
    AnalyticsInsights,
    AnalyticsSnapshot,
    ProviderRanking,
    ProviderStats,
)
from getcito.schemas.brand import EntityDescriptor
from getcito.schemas.query import QueryResultRecord
from getcito.services.query_analyzer import PerQueryAnalysis, QueryAnalyzer

logger = logging.getLogger(__name__)


@dataclass
class SessionSlice:
    """Analyses belonging to one processing session"""
    session_id: str
    timestamp: datetime
    analyses: List[PerQueryAnalysis] = field(default_factory=list)


@dataclass
class AnalyzedHistory:
    """A brand's full history, validated, ordered and analyzed"""
    analyses: List[PerQueryAnalysis] = field(default_factory=list)
    sessions: List[SessionSlice] = field(default_factory=list)  # oldest first
    skipped_records: int = 0

    @property
    def latest_session(self) -> Optional[SessionSlice]:
        return self.sessions[-1] if self.sessions else None

    @property
    def previous_session(self) -> Optional[SessionSlice]:
        return self.sessions[-2] if len(self.sessions) > 1 else None


# ============================================================================
# HISTORY PREPARATION
# ============================================================================

def validate_records(records: Iterable[Any]) -> Tuple[List[QueryResultRecord], int]:
    """
    Validate raw history records, skipping corrupt ones.

    Returns:
        (valid records in chronological order, number of skipped records)
    """
    valid: List[QueryResultRecord] = []
    skipped = 0

    for index, raw in enumerate(records):
        if isinstance(raw, QueryResultRecord):
            valid.append(raw)
            continue
        try:
            record = QueryResultRecord.model_validate(raw)
        except ValidationError as e:
            skipped += 1
            logger.warning(
                "Skipping corrupt query result record #%d: %s", index, e.error_count()
            )
            continue
        if not (isinstance(raw, dict) and "sequence" in raw):
            record.sequence = index
        valid.append(record)

    return order_records(valid), skipped


def order_records(records: Sequence[QueryResultRecord]) -> List[QueryResultRecord]:
    """Chronological order, ties broken by submission order"""
    return sorted(records, key=lambda r: (r.effective_timestamp, r.sequence))


def group_sessions(analyses: Sequence[PerQueryAnalysis]) -> List[SessionSlice]:
    """Split analyses by processing session, oldest session first"""
    sessions: Dict[str, SessionSlice] = {}
    last_seen: Dict[str, int] = {}

    for analysis in analyses:
        record = analysis.record
        session = sessions.get(record.processing_session_id)
        if session is None:
            session = SessionSlice(record.processing_session_id, record.session_timestamp)
            sessions[record.processing_session_id] = session
        elif record.session_timestamp > session.timestamp:
            session.timestamp = record.session_timestamp
        session.analyses.append(analysis)
        last_seen[record.processing_session_id] = record.sequence

    return sorted(
        sessions.values(),
        key=lambda s: (s.timestamp, last_seen[s.session_id]),
    )


def analyze_history(
    records: Iterable[Any],
    brand: EntityDescriptor,
    competitors: Sequence[EntityDescriptor] = (),
) -> AnalyzedHistory:
    """Validate, order and analyze a brand's query history"""
    valid, skipped = validate_records(records)
    analyzer = QueryAnalyzer(brand, competitors)
    analyses = [analyzer.analyze(record) for record in valid]

    return AnalyzedHistory(
        analyses=analyses,
        sessions=group_sessions(analyses),
        skipped_records=skipped,
    )


# ============================================================================
# METRICS
# ============================================================================

def _pct(part: float, whole: float) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


def _avg(total: float, count: int) -> float:
    return round(total / count, 2) if count else 0.0


def brand_visibility(analyses: Sequence[PerQueryAnalysis]) -> float:
    """Percent of queries where at least one provider mentioned the brand"""
    mentioned = sum(1 for a in analyses if a.brand_mentioned)
    return _pct(mentioned, len(analyses))


def visibility_trend(current: Optional[float], previous: Optional[float]) -> str:
    """Compare two visibility scores: improving, declining or stable"""
    if current is None or previous is None:
        return "stable"
    delta = current - previous
    if delta > TREND_DELTA_THRESHOLD:
        return "improving"
    if delta < -TREND_DELTA_THRESHOLD:
        return "declining"
    return "stable"


def top_providers(mentions_by_provider: Dict[str, int]) -> List[str]:
    """Every provider tied at the highest mention count, alphabetically"""
    best = max(mentions_by_provider.values(), default=0)
    if best <= 0:
        return []
    return sorted(name for name, count in mentions_by_provider.items() if count == best)


def rank_providers(provider_stats: Dict[str, ProviderStats]) -> Dict[str, ProviderRanking]:
    """Rank by brand mentions, then domain citation ratio, then citations, then name"""
    ratios = {
        name: _pct(stats.domain_citations, stats.citations)
        for name, stats in provider_stats.items()
    }
    ordered = sorted(
        provider_stats.items(),
        key=lambda item: (
            -item[1].brand_mentions,
            -ratios[item[0]],
            -item[1].citations,
            item[0],
        ),
    )
    return {
        name: ProviderRanking(
            rank=rank,
            brand_mentions=stats.brand_mentions,
            domain_citations_ratio=ratios[name],
            total_citations=stats.citations,
        )
        for rank, (name, stats) in enumerate(ordered, 1)
    }


# ============================================================================
# AGGREGATION
# ============================================================================

def aggregate(
    analyses: Sequence[PerQueryAnalysis],
    brand: EntityDescriptor,
    scope: str = "lifetime",
    *,
    brand_id: Optional[str] = None,
    session: Optional[SessionSlice] = None,
    skipped_records: int = 0,
    trend: str = "stable",
    history_digest: Optional[str] = None,
) -> AnalyticsSnapshot:
    """
    Aggregate per-query analyses into one snapshot in a single pass.

    Args:
        analyses: Analyses in chronological order
        brand: The tracked brand
        scope: "latest" or "lifetime"; only the slice passed in differs
        session: The processing session a latest snapshot describes
        skipped_records: Corrupt records dropped before analysis
        trend: Visibility trend between the last two sessions

    Returns:
        AnalyticsSnapshot
    """
    provider_stats = {p.value: ProviderStats() for p in ALL_PROVIDERS}
    response_times: Dict[str, List[float]] = {p.value: [] for p in ALL_PROVIDERS}

    total_brand_mentions = 0
    queries_with_mention = 0
    total_citations = 0
    total_domain_citations = 0
    session_ids = set()
    first_processed: Optional[datetime] = None
    last_processed: Optional[datetime] = None

    for analysis in analyses:
        session_ids.add(analysis.processing_session_id)

        processed_at = analysis.processed_at
        if processed_at is not None:
            if first_processed is None or processed_at < first_processed:
                first_processed = processed_at
            if last_processed is None or processed_at > last_processed:
                last_processed = processed_at

        if analysis.brand_mentioned:
            queries_with_mention += 1

        for provider, result in analysis.providers.items():
            stats = provider_stats[provider.value]
            stats.queries_processed += 1
            stats.brand_mentions += result.brand.mention_count
            stats.citations += result.citation_count
            stats.domain_citations += result.domain_citation_count
            if result.web_search_used:
                stats.web_search_queries += 1
            if result.response_time is not None:
                response_times[provider.value].append(result.response_time)

            total_brand_mentions += result.brand.mention_count
            total_citations += result.citation_count
            total_domain_citations += result.domain_citation_count

    for name, times in response_times.items():
        if times:
            provider_stats[name].average_response_time = _avg(sum(times), len(times))

    total_queries = len(analyses)
    leaders = top_providers({name: s.brand_mentions for name, s in provider_stats.items()})

    insights = AnalyticsInsights(
        top_performing_provider=leaders[0] if leaders else NONE_LABEL,
        top_providers=leaders,
        brand_visibility_trend=trend,
        average_brand_mentions_per_query=_avg(total_brand_mentions, total_queries),
        average_citations_per_query=_avg(total_citations, total_queries),
        first_query_processed=first_processed,
        last_query_processed=last_processed,
        provider_ranking_details=rank_providers(provider_stats),
    )

    return AnalyticsSnapshot(
        scope=scope,
        brand_id=brand_id,
        brand_name=brand.name,
        brand_domain=brand.domain,
        processing_session_id=session.session_id if session else None,
        processing_session_timestamp=session.timestamp if session else None,
        total_queries_processed=total_queries,
        total_processing_sessions=len(session_ids),
        skipped_records=skipped_records,
        total_brand_mentions=total_brand_mentions,
        queries_with_brand_mention=queries_with_mention,
        total_citations=total_citations,
        total_domain_citations=total_domain_citations,
        brand_visibility_score=_pct(queries_with_mention, total_queries),
        provider_stats=provider_stats,
        insights=insights,
        history_digest=history_digest,
    )


def session_trend(history: AnalyzedHistory) -> str:
    """Visibility trend between the latest and the previous session"""
    latest, previous = history.latest_session, history.previous_session
    if latest is None or previous is None:
        return "stable"
    return visibility_trend(
        brand_visibility(latest.analyses), brand_visibility(previous.analyses)
    )


def build_snapshot(
    history: AnalyzedHistory,
    brand: EntityDescriptor,
    scope: str,
    *,
    brand_id: Optional[str] = None,
    history_digest: Optional[str] = None,
) -> AnalyticsSnapshot:
    """Latest-session or lifetime snapshot of an analyzed history"""
    if scope not in ("latest", "lifetime"):
        raise ValueError(f"Unknown analytics scope: {scope}")

    trend = session_trend(history)

    if scope == "latest":
        session = history.latest_session
        analyses = session.analyses if session else []
    else:
        session = None
        analyses = history.analyses

    return aggregate(
        analyses,
        brand,
        scope,
        brand_id=brand_id,
        session=session,
        skipped_records=history.skipped_records,
        trend=trend,
        history_digest=history_digest,
    )


def build_session_snapshot(
    session: SessionSlice,
    brand: EntityDescriptor,
    *,
    brand_id: Optional[str] = None,
) -> AnalyticsSnapshot:
    """Snapshot of one specific session, without a trend"""
    return aggregate(session.analyses, brand, "latest", brand_id=brand_id, session=session)
