"""
Citation Extractor
Normalizes per-provider citation data into Citation records
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Union
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from getcito.adapters.parsing.text_matcher import MatchableEntity, MentionMatcher
from getcito.adapters.providers import (
    ChatGPTPayload,
    GoogleAIPayload,
    PayloadError,
    PerplexityPayload,
    ProviderKind,
    ProviderPayload,
    PROVIDER_TO_CITATION_PROVIDER,
    DEFAULT_SOURCE_LABELS,
    parse_provider_payload,
)
from getcito.schemas.analytics import Citation
from getcito.utils.domains import domain_from_url, normalize_domain

logger = logging.getLogger(__name__)


GOOGLE_SEARCH_LABEL = "Google Search"


@dataclass
class QueryContext:
    """The query a provider payload answered"""
    query: str = ""
    query_key: str = ""
    processing_session_id: str = "unknown"
    timestamp: Optional[datetime] = None


@dataclass
class ExtractedCitation:
    """A citation candidate before brand flags are applied"""
    url: str
    text: str
    source: str
    type: str


class CitationExtractor:
    """
    Extracts citations from a provider payload for one brand.
    Handles annotation lists, flattened Perplexity fields, SERP references,
    markdown links, plain URLs and bare "(domain.tld)" references.
    """

    GOOGLE_SEARCH_PATTERN = re.compile(r'https://www\.google\.com/search\?[^\s<>"{}|\\^`\[\]]+')
    SOURCE_ANCHOR_PATTERN = re.compile(r'\(source=([^"]+)"\s+target="_blank"[^>]*>([^)]+)\)')
    NUMBERED_PATTERN = re.compile(r'\[\[(\d+)\]\]\(([^)]+)\)')
    MARKDOWN_PATTERN = re.compile(r'\[([^\]]+)\]\((https?://[^)\s]+)\)')
    PLAIN_URL_PATTERN = re.compile(r'https?://[^\s<>"{}|\\^`\[\]]+')
    DOMAIN_REF_PATTERN = re.compile(r'\(([a-zA-Z0-9.-]+\.[a-zA-Z]{2,})\)')

    # Query parameters ignored when deduplicating URLs
    TRACKING_PARAMS = {"utm_source", "utm_medium", "utm_campaign"}

    def __init__(self, brand: MatchableEntity):
        self.brand = brand
        self.brand_matcher = MentionMatcher(brand)
        self.brand_domain = normalize_domain(brand.domain)

    def _clean_url(self, url: str) -> str:
        """Strip trailing punctuation and Google SERP session noise"""
        url = url.strip()
        url = re.sub(r'[.,;:!?\'")\]]+$', '', url)
        url = re.sub(r'esv=[^&\s]+&[^&\s]*', '', url)
        url = re.sub(r'&+', '&', url)
        url = re.sub(r'[&?]$', '', url)

        if url.startswith("www."):
            url = "https://" + url

        return url

    def _dedupe_key(self, url: str) -> str:
        """URL without tracking parameters or fragment"""
        try:
            parts = urlsplit(url.strip())
        except ValueError:
            return url.strip()

        if not parts.scheme or not parts.netloc:
            return url.strip()

        query = [
            (key, value)
            for key, value in parse_qsl(parts.query, keep_blank_values=True)
            if key not in self.TRACKING_PARAMS
        ]
        return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), ""))

    @staticmethod
    def _is_google_search(url: str) -> bool:
        return "google.com/search?" in url

    @staticmethod
    def _display_host(url: str) -> str:
        return domain_from_url(url) or url

    # ------------------------------------------------------------------
    # Text extraction
    # ------------------------------------------------------------------

    def _extract_from_text(
        self,
        text: str,
        source: str,
        numbered: bool = False,
        source_anchors: bool = False,
    ) -> List[ExtractedCitation]:
        """
        Extract citations from free text, in priority order:
        Google search URLs, source anchors, numbered [[n]](url) links,
        markdown links, plain URLs, then (domain.tld) references.
        """
        if not text:
            return []

        found: List[ExtractedCitation] = []

        for match in self.GOOGLE_SEARCH_PATTERN.finditer(text):
            found.append(ExtractedCitation(
                url=self._clean_url(match.group()),
                text=GOOGLE_SEARCH_LABEL,
                source=GOOGLE_SEARCH_LABEL,
                type="google_search",
            ))

        if source_anchors:
            for match in self.SOURCE_ANCHOR_PATTERN.finditer(text):
                domain = match.group(2).strip()
                if not domain:
                    continue
                url = domain if domain.startswith("http") else f"https://{domain}"
                found.append(self._labelled(url, domain, source, "source_anchor"))

        if numbered:
            for match in self.NUMBERED_PATTERN.finditer(text):
                url = self._clean_url(match.group(2))
                if not url:
                    continue
                label = f"Citation {match.group(1)}: {self._display_host(url)}"
                found.append(self._labelled(url, label, source, "numbered"))

        for match in self.MARKDOWN_PATTERN.finditer(text):
            anchor_text = match.group(1)
            # [1](url) style footnotes are handled as numbered citations
            if anchor_text.isdigit() or anchor_text.startswith("["):
                continue
            url = self._clean_url(match.group(2))
            found.append(self._labelled(url, anchor_text, source, "markdown_link"))

        for match in self.PLAIN_URL_PATTERN.finditer(text):
            url = self._clean_url(match.group())
            if url:
                found.append(self._labelled(url, self._display_host(url), source, "plain_url"))

        for match in self.DOMAIN_REF_PATTERN.finditer(text):
            domain = match.group(1)
            found.append(self._labelled(f"https://{domain}", domain, source, "domain_reference"))

        return found

    def _labelled(self, url: str, text: str, source: str, kind: str) -> ExtractedCitation:
        if self._is_google_search(url):
            return ExtractedCitation(url, GOOGLE_SEARCH_LABEL, GOOGLE_SEARCH_LABEL, kind)
        return ExtractedCitation(url, text or url, source, kind)

    # ------------------------------------------------------------------
    # Provider variants
    # ------------------------------------------------------------------

    def _extract_chatgpt(self, payload: ChatGPTPayload) -> List[ExtractedCitation]:
        source = DEFAULT_SOURCE_LABELS[ProviderKind.CHATGPT]

        annotations = [
            a for a in payload.annotations
            if isinstance(a.get("url"), str) and a["url"].strip()
        ]
        if annotations:
            return [
                self._labelled(
                    a["url"].strip(),
                    str(a.get("title") or self._display_host(a["url"])),
                    source,
                    "annotation",
                )
                for a in annotations
            ]

        return self._extract_from_text(
            payload.response, source, numbered=True, source_anchors=True
        )

    def _extract_google(self, payload: GoogleAIPayload) -> List[ExtractedCitation]:
        found: List[ExtractedCitation] = []

        for ref in payload.references:
            url = ref.get("url")
            if not isinstance(url, str) or not url.strip():
                continue
            text = ref.get("title") or ref.get("text") or ref.get("domain") or url
            found.append(self._labelled(url.strip(), str(text), "AI Overview Reference", "reference"))

        found.extend(self._extract_from_text(payload.ai_overview, "AI Overview Content", numbered=True))
        return found

    def _extract_perplexity(self, payload: PerplexityPayload) -> List[ExtractedCitation]:
        found: List[ExtractedCitation] = []

        for url in _split(payload.citations_data, "|||"):
            found.append(ExtractedCitation(url, url, "Perplexity Citation", "structured"))

        for entry in _split(payload.search_results_data, "###"):
            title, _, url = entry.partition("|||")
            url = url.strip()
            if url:
                found.append(ExtractedCitation(url, title.strip() or url, "Perplexity Search Result", "search_result"))

        for url in _split(payload.structured_citations_data, "|||"):
            found.append(ExtractedCitation(url, url, "Perplexity Structured Citation", "structured"))

        for url in payload.citation_urls:
            if url.strip():
                found.append(ExtractedCitation(url.strip(), url.strip(), "Perplexity Citation", "structured"))

        for result in payload.search_results:
            url = result.get("url")
            if isinstance(url, str) and url.strip():
                title = result.get("title") or url
                found.append(ExtractedCitation(url.strip(), str(title), "Perplexity Search Result", "search_result"))

        for item in payload.structured_citations:
            url = item.get("url") if isinstance(item, dict) else item
            if isinstance(url, str) and url.strip():
                found.append(ExtractedCitation(url.strip(), url.strip(), "Perplexity Structured Citation", "structured"))

        for item in payload.citations_list:
            url = item.get("url")
            if isinstance(url, str) and url.strip():
                text = item.get("text") or item.get("title") or url.strip()
                found.append(ExtractedCitation(
                    url.strip(), str(text), str(item.get("source") or "Perplexity Citation"), "legacy"
                ))

        if not found:
            found = self._extract_from_text(
                payload.response, DEFAULT_SOURCE_LABELS[ProviderKind.PERPLEXITY]
            )

        return found

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract(self, payload: ProviderPayload, context: QueryContext) -> List[Citation]:
        """
        Extract citations from one provider payload.

        Args:
            payload: Parsed provider payload
            context: The query the payload answered

        Returns:
            Citations in first-seen order, deduplicated by URL
        """
        extractors: Dict[ProviderKind, Callable[[Any], List[ExtractedCitation]]] = {
            ProviderKind.CHATGPT: self._extract_chatgpt,
            ProviderKind.GOOGLE: self._extract_google,
            ProviderKind.PERPLEXITY: self._extract_perplexity,
        }
        extractor = extractors.get(payload.kind)
        if extractor is None:
            raise PayloadError(f"No citation extractor for {payload.kind}", payload.kind)

        candidates = self._dedupe(extractor(payload))
        provider_label = PROVIDER_TO_CITATION_PROVIDER[payload.kind].value

        return [
            self._to_citation(candidate, provider_label, index, context)
            for index, candidate in enumerate(candidates, 1)
        ]

    def _dedupe(self, candidates: Iterable[ExtractedCitation]) -> List[ExtractedCitation]:
        seen: Set[str] = set()
        unique = []
        for candidate in candidates:
            key = self._dedupe_key(candidate.url)
            if key in seen:
                continue
            seen.add(key)
            unique.append(candidate)
        return unique

    def _to_citation(
        self,
        candidate: ExtractedCitation,
        provider_label: str,
        index: int,
        context: QueryContext,
    ) -> Citation:
        domain = domain_from_url(candidate.url)
        if domain is None:
            logger.debug("Unparsable citation URL %r", candidate.url)

        return Citation(
            id=f"{provider_label}-{context.query_key}-{index}",
            url=candidate.url,
            domain=domain,
            text=candidate.text,
            source=candidate.source,
            provider=provider_label,
            type=candidate.type,
            query=context.query,
            query_id=context.query_key,
            processing_session_id=context.processing_session_id,
            timestamp=context.timestamp,
            is_brand_mention=self.brand_matcher.is_mentioned(f"{candidate.text} {candidate.source}"),
            is_domain_citation=bool(domain) and domain == self.brand_domain,
        )


def _split(value: str, separator: str) -> List[str]:
    return [part.strip() for part in (value or "").split(separator) if part.strip()]


def extract_citations(
    provider: ProviderKind,
    payload: Union[ProviderPayload, Mapping[str, Any]],
    brand: MatchableEntity,
    context: Optional[QueryContext] = None,
) -> List[Citation]:
    """
    Extract citations from a raw or parsed provider payload.

    Raises:
        PayloadError: If a raw payload is malformed
    """
    if isinstance(payload, Mapping):
        payload = parse_provider_payload(provider, payload)
    elif payload.kind is not provider:
        raise PayloadError(f"Expected a {provider.value} payload, got {payload.kind.value}", provider)

    return CitationExtractor(brand).extract(payload, context or QueryContext())
