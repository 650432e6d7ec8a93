"""
Per-Query Analyzer
Runs mention matching and citation extraction over one query's provider results
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from getcito.adapters.parsing import CitationExtractor, MentionMatcher, QueryContext
from getcito.adapters.providers import (
    PayloadError,
    ProviderKind,
    ProviderPayload,
    parse_provider_payload,
    resolve_provider_key,
)
from getcito.schemas.analytics import Citation
from getcito.schemas.brand import EntityDescriptor
from getcito.schemas.query import QueryResultRecord
from getcito.utils.domains import normalize_domain

logger = logging.getLogger(__name__)


@dataclass
class EntityMentions:
    """Mentions of one entity in one provider response"""
    mention_count: int = 0
    domain_citations: int = 0

    @property
    def mentioned(self) -> bool:
        return self.mention_count > 0


@dataclass
class ProviderAnalysis:
    """What one provider said about the brand and its competitors"""
    provider: ProviderKind
    brand: EntityMentions
    competitors: Dict[str, EntityMentions] = field(default_factory=dict)
    citations: List[Citation] = field(default_factory=list)
    response_time: Optional[float] = None
    web_search_used: bool = False

    @property
    def citation_count(self) -> int:
        return len(self.citations)

    @property
    def domain_citation_count(self) -> int:
        return sum(1 for c in self.citations if c.is_domain_citation)

    @property
    def competitor_mentions(self) -> int:
        return sum(m.mention_count for m in self.competitors.values())

    @property
    def mentioned_competitors(self) -> List[str]:
        return [name for name, m in self.competitors.items() if m.mentioned]


@dataclass
class PerQueryAnalysis:
    """Analysis of a single query across every provider that answered it"""
    record: QueryResultRecord
    providers: Dict[ProviderKind, ProviderAnalysis] = field(default_factory=dict)

    @property
    def query_key(self) -> str:
        return self.record.record_key

    @property
    def processing_session_id(self) -> str:
        return self.record.processing_session_id

    @property
    def processed_at(self) -> Optional[datetime]:
        return self.record.date or self.record.processing_session_timestamp

    @property
    def brand_mentioned(self) -> bool:
        """True when at least one provider mentioned the brand"""
        return any(p.brand.mentioned for p in self.providers.values())

    @property
    def brand_mention_count(self) -> int:
        return sum(p.brand.mention_count for p in self.providers.values())

    @property
    def citations(self) -> List[Citation]:
        return [c for p in self.providers.values() for c in p.citations]

    def competitor_mentioned(self, name: str) -> bool:
        return any(
            p.competitors.get(name, EntityMentions()).mentioned
            for p in self.providers.values()
        )

    def competitors_mentioned(self) -> List[str]:
        """Distinct competitors mentioned by any provider, in competitor order"""
        seen: Dict[str, None] = {}
        for provider in self.providers.values():
            for name in provider.mentioned_competitors:
                seen.setdefault(name, None)
        return list(seen)


class QueryAnalyzer:
    """
    Analyzes query results for one brand.

    Matchers and the citation extractor are built once and reused for
    every query in the history.
    """

    def __init__(
        self,
        brand: EntityDescriptor,
        competitors: Sequence[EntityDescriptor] = (),
    ):
        self.brand = brand
        self.competitors = list(competitors)
        self.brand_matcher = MentionMatcher(brand)
        self.competitor_matchers = [MentionMatcher(c) for c in self.competitors]
        self.competitor_domains = {c.name: normalize_domain(c.domain) for c in self.competitors}
        self.extractor = CitationExtractor(brand)

    def _payloads(self, record: QueryResultRecord) -> Dict[ProviderKind, ProviderPayload]:
        """Typed payloads for every usable provider result in the record"""
        payloads: Dict[ProviderKind, ProviderPayload] = {}

        for key, raw in record.results.items():
            provider = resolve_provider_key(key)
            if provider is None:
                logger.warning(
                    "Skipping unknown provider %r in query %s", key, record.record_key
                )
                continue

            if provider in payloads:
                logger.warning(
                    "Duplicate %s result under key %r in query %s, keeping the first",
                    provider.value, key, record.record_key,
                )
                continue

            if raw is None:
                continue

            try:
                payload = parse_provider_payload(provider, raw)
            except PayloadError as e:
                logger.warning(
                    "Malformed %s payload in query %s: %s",
                    provider.value, record.record_key, e,
                )
                continue

            if payload.failed:
                logger.info(
                    "Ignoring failed %s result in query %s: %s",
                    provider.value, record.record_key, payload.error,
                )
                continue

            payloads[provider] = payload

        return payloads

    def analyze_provider(
        self,
        payload: ProviderPayload,
        context: QueryContext,
    ) -> ProviderAnalysis:
        text = payload.text
        citations = self.extractor.extract(payload, context)

        competitors = {}
        for matcher in self.competitor_matchers:
            domain = self.competitor_domains[matcher.name]
            competitors[matcher.name] = EntityMentions(
                mention_count=matcher.count_mentions(text),
                domain_citations=sum(1 for c in citations if domain and c.domain == domain),
            )

        return ProviderAnalysis(
            provider=payload.kind,
            brand=EntityMentions(
                mention_count=self.brand_matcher.count_mentions(text),
                domain_citations=sum(1 for c in citations if c.is_domain_citation),
            ),
            competitors=competitors,
            citations=citations,
            response_time=payload.response_time,
            web_search_used=payload.web_search_used,
        )

    def analyze(self, record: QueryResultRecord) -> PerQueryAnalysis:
        """
        Analyze one query result record.

        Missing, malformed and failed provider results contribute nothing;
        the remaining providers are analyzed independently.
        """
        context = QueryContext(
            query=record.query,
            query_key=record.record_key,
            processing_session_id=record.processing_session_id,
            timestamp=record.date or record.processing_session_timestamp,
        )

        analysis = PerQueryAnalysis(record=record)
        for provider, payload in self._payloads(record).items():
            try:
                analysis.providers[provider] = self.analyze_provider(payload, context)
            except (ValueError, TypeError) as e:
                # pydantic ValidationError is a ValueError
                logger.warning(
                    "Unusable %s result in query %s: %s",
                    provider.value, record.record_key, e,
                )

        return analysis


def analyze_query(
    record: QueryResultRecord,
    brand: EntityDescriptor,
    competitors: Sequence[EntityDescriptor] = (),
) -> PerQueryAnalysis:
    return QueryAnalyzer(brand, competitors).analyze(record)
