"""
Response Parsing Adapters
"""

from .text_matcher import MentionMatcher, count_mentions, is_mentioned
from .citation_extractor import (
    CitationExtractor,
    ExtractedCitation,
    QueryContext,
    extract_citations,
)

__all__ = [
    "MentionMatcher",
    "count_mentions",
    "is_mentioned",
    "CitationExtractor",
    "ExtractedCitation",
    "QueryContext",
    "extract_citations",
]
