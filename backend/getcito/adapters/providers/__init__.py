"""
AI Provider Payload Adapters
"""

from .base import (
    ProviderKind,
    CitationProvider,
    ChatGPTPayload,
    GoogleAIPayload,
    PerplexityPayload,
    ProviderPayload,
    PayloadError,
    ALL_PROVIDERS,
    DEFAULT_SOURCE_LABELS,
    PROVIDER_TO_CITATION_PROVIDER,
    STORED_KEY_TO_PROVIDER,
    parse_provider_payload,
    resolve_provider_key,
)

__all__ = [
    "ProviderKind",
    "CitationProvider",
    "ChatGPTPayload",
    "GoogleAIPayload",
    "PerplexityPayload",
    "ProviderPayload",
    "PayloadError",
    "ALL_PROVIDERS",
    "DEFAULT_SOURCE_LABELS",
    "PROVIDER_TO_CITATION_PROVIDER",
    "STORED_KEY_TO_PROVIDER",
    "parse_provider_payload",
    "resolve_provider_key",
]
