"""
Citation Reporting
CSV export, cited-domain leaderboard and citation totals
"""

import csv
import io
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence

from getcito.schemas.analytics import Citation, CitationStats, DomainSummary
from getcito.schemas.brand import EntityDescriptor
from getcito.utils.domains import normalize_domain

CSV_HEADER = [
    "Query",
    "Platform",
    "Source",
    "Citation Text",
    "URL",
    "Domain",
    "Brand Mention",
    "Domain Citation",
    "Timestamp",
]

PLATFORM_LABELS = {
    "chatgpt": "ChatGPT",
    "googleAI": "Google AI Overview",
    "perplexity": "Perplexity",
}


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


def export_citations_csv(citations: Iterable[Citation]) -> str:
    """Render citations as CSV text with every field quoted, one citation per row"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)

    for citation in citations:
        writer.writerow([
            citation.query,
            PLATFORM_LABELS.get(citation.provider, citation.provider),
            citation.source,
            citation.text,
            citation.url,
            citation.domain or "",
            _yes_no(citation.is_brand_mention),
            _yes_no(citation.is_domain_citation),
            citation.timestamp.isoformat() if citation.timestamp else "",
        ])

    return buffer.getvalue()


def filter_citations(
    citations: Iterable[Citation],
    provider: Optional[str] = None,
) -> List[Citation]:
    if provider is None:
        return list(citations)
    return [c for c in citations if c.provider == provider]


def summarize_domains(
    citations: Iterable[Citation],
    brand_domain: Optional[str],
    competitors: Sequence[EntityDescriptor] = (),
    excluded_domains: Sequence[str] = ("google.com",),
) -> List[DomainSummary]:
    """
    Cited-domain leaderboard, most cited first.

    Citations without a domain and excluded domains (the search engine
    itself) are left out; ties are ordered by domain name.
    """
    brand_domain = normalize_domain(brand_domain)
    competitor_domains = {normalize_domain(c.domain) for c in competitors if c.domain}
    excluded = {d.lower() for d in excluded_domains}

    counts: Dict[str, int] = defaultdict(int)
    providers: Dict[str, List[str]] = defaultdict(list)

    for citation in citations:
        domain = citation.domain
        if not domain or domain in excluded:
            continue
        counts[domain] += 1
        if citation.provider not in providers[domain]:
            providers[domain].append(citation.provider)

    def source_type(domain: str) -> str:
        if brand_domain and domain == brand_domain:
            return "brand"
        if domain in competitor_domains:
            return "competitor"
        return "third_party"

    return [
        DomainSummary(
            domain=domain,
            source_type=source_type(domain),
            total_citations=count,
            providers=sorted(providers[domain]),
        )
        for domain, count in sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    ]


def citation_stats(citations: Iterable[Citation]) -> CitationStats:
    citations = list(citations)
    by_provider: Dict[str, int] = defaultdict(int)
    for citation in citations:
        by_provider[citation.provider] += 1

    return CitationStats(
        total_citations=len(citations),
        unique_domains=len({c.domain for c in citations if c.domain}),
        brand_mentions=sum(1 for c in citations if c.is_brand_mention),
        domain_citations=sum(1 for c in citations if c.is_domain_citation),
        by_provider=dict(by_provider),
    )
