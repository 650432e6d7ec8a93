"""
Provider Payload Variants
Typed view over the per-provider result payloads stored with each query
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union


class ProviderKind(str, Enum):
    """Supported AI answer engines"""
    CHATGPT = "chatgpt"
    GOOGLE = "google"
    PERPLEXITY = "perplexity"


class CitationProvider(str, Enum):
    """Provider label carried by Citation records"""
    CHATGPT = "chatgpt"
    GOOGLE_AI = "googleAI"
    PERPLEXITY = "perplexity"


# Stored result key -> provider. "googleAI" is the stored name for Google AI Overview.
STORED_KEY_TO_PROVIDER: Dict[str, ProviderKind] = {
    "chatgpt": ProviderKind.CHATGPT,
    "googleAI": ProviderKind.GOOGLE,
    "google": ProviderKind.GOOGLE,
    "perplexity": ProviderKind.PERPLEXITY,
}

PROVIDER_TO_CITATION_PROVIDER: Dict[ProviderKind, CitationProvider] = {
    ProviderKind.CHATGPT: CitationProvider.CHATGPT,
    ProviderKind.GOOGLE: CitationProvider.GOOGLE_AI,
    ProviderKind.PERPLEXITY: CitationProvider.PERPLEXITY,
}

# Source label used when a citation carries none of its own
DEFAULT_SOURCE_LABELS: Dict[ProviderKind, str] = {
    ProviderKind.CHATGPT: "ChatGPT",
    ProviderKind.GOOGLE: "Google AI Overview",
    ProviderKind.PERPLEXITY: "Perplexity",
}

ALL_PROVIDERS: List[ProviderKind] = [
    ProviderKind.CHATGPT,
    ProviderKind.GOOGLE,
    ProviderKind.PERPLEXITY,
]


class PayloadError(Exception):
    """A stored provider payload does not have the expected shape"""
    def __init__(self, message: str, provider: Optional[ProviderKind] = None):
        super().__init__(message)
        self.provider = provider


def resolve_provider_key(key: str) -> Optional[ProviderKind]:
    """Map a stored result key to its provider, None when unknown"""
    return STORED_KEY_TO_PROVIDER.get(key)


@dataclass
class ChatGPTPayload:
    """ChatGPT Search result"""
    response: str = ""
    annotations: List[Dict[str, Any]] = field(default_factory=list)
    web_search_used: bool = False
    error: Optional[str] = None
    response_time: Optional[float] = None
    timestamp: Optional[str] = None

    kind = ProviderKind.CHATGPT

    @property
    def text(self) -> str:
        return self.response

    @property
    def failed(self) -> bool:
        return bool(self.error) and not self.response


@dataclass
class GoogleAIPayload:
    """Google AI Overview (SERP) result"""
    ai_overview: str = ""
    references: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None
    response_time: Optional[float] = None
    timestamp: Optional[str] = None

    kind = ProviderKind.GOOGLE
    # AI Overviews and Perplexity answers are always grounded in search
    web_search_used = True

    @property
    def text(self) -> str:
        return self.ai_overview

    @property
    def failed(self) -> bool:
        return bool(self.error) and not self.ai_overview


@dataclass
class PerplexityPayload:
    """Perplexity result with its flattened and list-form citation data"""
    response: str = ""
    citations_data: str = ""
    search_results_data: str = ""
    structured_citations_data: str = ""
    citation_urls: List[str] = field(default_factory=list)
    search_results: List[Dict[str, Any]] = field(default_factory=list)
    structured_citations: List[Any] = field(default_factory=list)
    citations_list: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None
    response_time: Optional[float] = None
    timestamp: Optional[str] = None

    kind = ProviderKind.PERPLEXITY
    web_search_used = True

    @property
    def text(self) -> str:
        return self.response

    @property
    def failed(self) -> bool:
        return bool(self.error) and not self.response


ProviderPayload = Union[ChatGPTPayload, GoogleAIPayload, PerplexityPayload]


def _text_field(raw: Mapping[str, Any], key: str, provider: ProviderKind) -> str:
    value = raw.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise PayloadError(f"{provider.value}.{key} must be a string", provider)
    return value


def _list_field(raw: Mapping[str, Any], key: str, provider: ProviderKind) -> List[Any]:
    value = raw.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise PayloadError(f"{provider.value}.{key} must be a list", provider)
    return value


def _dict_items(items: List[Any]) -> List[Dict[str, Any]]:
    return [item for item in items if isinstance(item, dict)]


def _number_field(raw: Mapping[str, Any], key: str) -> Optional[float]:
    value = raw.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _optional_str(raw: Mapping[str, Any], key: str) -> Optional[str]:
    value = raw.get(key)
    if value is None or value == "":
        return None
    return str(value)


def parse_provider_payload(provider: ProviderKind, raw: Any) -> ProviderPayload:
    """
    Build the typed payload for one provider's stored result.

    Raises:
        PayloadError: If the payload is not a mapping or a field has the wrong type
    """
    if not isinstance(raw, Mapping):
        raise PayloadError(f"{provider.value} payload must be an object", provider)

    error = _optional_str(raw, "error")
    response_time = _number_field(raw, "responseTime")
    timestamp = _optional_str(raw, "timestamp")

    if provider is ProviderKind.CHATGPT:
        return ChatGPTPayload(
            response=_text_field(raw, "response", provider),
            annotations=_dict_items(_list_field(raw, "annotations", provider)),
            web_search_used=bool(raw.get("webSearchUsed", False)),
            error=error,
            response_time=response_time,
            timestamp=timestamp,
        )

    if provider is ProviderKind.GOOGLE:
        return GoogleAIPayload(
            ai_overview=_text_field(raw, "aiOverview", provider),
            references=_dict_items(_list_field(raw, "aiOverviewReferences", provider)),
            error=error,
            response_time=response_time,
            timestamp=timestamp,
        )

    if provider is ProviderKind.PERPLEXITY:
        # "citations" is a URL list on fresh results and a count on stored ones
        citations = raw.get("citations")
        citation_urls = []
        if isinstance(citations, list):
            for item in citations:
                if isinstance(item, str):
                    citation_urls.append(item)
                elif isinstance(item, dict) and isinstance(item.get("url"), str):
                    citation_urls.append(item["url"])

        return PerplexityPayload(
            response=_text_field(raw, "response", provider),
            citations_data=_text_field(raw, "citationsData", provider),
            search_results_data=_text_field(raw, "searchResultsData", provider),
            structured_citations_data=_text_field(raw, "structuredCitationsData", provider),
            citation_urls=citation_urls,
            search_results=_dict_items(_list_field(raw, "searchResults", provider)),
            structured_citations=_list_field(raw, "structuredCitations", provider),
            citations_list=_dict_items(_list_field(raw, "citationsList", provider)),
            error=error,
            response_time=response_time,
            timestamp=timestamp,
        )

    raise PayloadError(f"Unsupported provider: {provider}", provider)
