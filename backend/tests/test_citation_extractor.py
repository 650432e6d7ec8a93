"""
Tests for citation extraction across provider payload shapes.
"""

from datetime import datetime, timezone

import pytest

from getcito.adapters.parsing import CitationExtractor, QueryContext, extract_citations
from getcito.adapters.providers import (
    ChatGPTPayload,
    PayloadError,
    PerplexityPayload,
    ProviderKind,
)


@pytest.fixture
def context():
    return QueryContext(
        query="best ai visibility tool",
        query_key="r1",
        processing_session_id="s1",
        timestamp=datetime(2026, 1, 5, 10, tzinfo=timezone.utc),
    )


# =============================================================================
# PERPLEXITY
# =============================================================================

class TestPerplexity:

    def test_every_flattened_citation_kept(self, brand, context):
        payload = {"response": "", "citationsData": "https://a.com|||https://b.com|||https://c.com"}
        citations = extract_citations(ProviderKind.PERPLEXITY, payload, brand, context)

        assert [c.url for c in citations] == ["https://a.com", "https://b.com", "https://c.com"]
        assert [c.id for c in citations] == ["perplexity-r1-1", "perplexity-r1-2", "perplexity-r1-3"]
        assert all(c.provider == "perplexity" for c in citations)

    def test_search_results_data(self, brand, context):
        payload = {"searchResultsData": "GetCito review|||https://example.org/review###|||https://b.com"}
        citations = extract_citations(ProviderKind.PERPLEXITY, payload, brand, context)

        assert [c.url for c in citations] == ["https://example.org/review", "https://b.com"]
        assert citations[0].text == "GetCito review"
        assert citations[0].is_brand_mention
        assert citations[1].text == "https://b.com"

    def test_list_forms(self, brand, context):
        payload = {
            "citations": ["https://a.com"],
            "searchResults": [{"title": "B", "url": "https://b.com"}],
            "citationsList": [{"url": "https://c.com", "text": "C", "source": "Legacy"}],
        }
        citations = extract_citations(ProviderKind.PERPLEXITY, payload, brand, context)

        assert [c.url for c in citations] == ["https://a.com", "https://b.com", "https://c.com"]
        assert citations[2].source == "Legacy"

    def test_stored_citation_count_ignored(self, brand, context):
        payload = {"response": "see https://a.com", "citations": 3}
        citations = extract_citations(ProviderKind.PERPLEXITY, payload, brand, context)
        assert [c.url for c in citations] == ["https://a.com"]

    def test_text_fallback_only_without_structured_data(self, brand, context):
        payload = {"response": "also https://x.com", "citationsData": "https://a.com"}
        citations = extract_citations(ProviderKind.PERPLEXITY, payload, brand, context)
        assert [c.url for c in citations] == ["https://a.com"]

    def test_unparsable_url_kept_without_domain(self, brand, context):
        citations = extract_citations(
            ProviderKind.PERPLEXITY, {"citationsData": "not a url"}, brand, context
        )

        assert len(citations) == 1
        assert citations[0].url == "not a url"
        assert citations[0].domain is None
        assert citations[0].is_domain_citation is False


# =============================================================================
# CHATGPT
# =============================================================================

class TestChatGPT:

    def test_annotations_preferred(self, brand, context):
        payload = {
            "response": "ignored https://elsewhere.com",
            "annotations": [
                {"url": "https://getcito.com/pricing", "title": "GetCito pricing"},
                {"url": "https://tryprofound.com", "title": "Profound"},
            ],
        }
        citations = extract_citations(ProviderKind.CHATGPT, payload, brand, context)

        assert [c.url for c in citations] == ["https://getcito.com/pricing", "https://tryprofound.com"]
        assert citations[0].type == "annotation"
        assert citations[0].is_domain_citation
        assert citations[0].is_brand_mention
        assert not citations[1].is_domain_citation

    def test_tracking_params_deduplicated(self, brand, context):
        payload = {
            "annotations": [
                {"url": "https://tryprofound.com", "title": "Profound"},
                {"url": "https://tryprofound.com?utm_source=chatgpt.com", "title": "Profound again"},
            ],
        }
        citations = extract_citations(ProviderKind.CHATGPT, payload, brand, context)
        assert len(citations) == 1
        assert citations[0].text == "Profound"

    def test_markdown_link_in_text(self, brand, context):
        payload = {"response": "Read the [GetCito guide](https://getcito.com/guide)."}
        citations = extract_citations(ProviderKind.CHATGPT, payload, brand, context)

        assert len(citations) == 1
        assert citations[0].url == "https://getcito.com/guide"
        assert citations[0].type == "markdown_link"
        assert citations[0].domain == "getcito.com"
        assert citations[0].is_domain_citation

    def test_bare_domain_reference(self, brand, context):
        payload = {"response": "Try Peec (peec.ai) for tracking."}
        citations = extract_citations(ProviderKind.CHATGPT, payload, brand, context)

        assert len(citations) == 1
        assert citations[0].url == "https://peec.ai"
        assert citations[0].type == "domain_reference"

    def test_numbered_links(self, brand, context):
        payload = {"response": "Fact one [[1]](https://a.com/x). Fact two [[2]](https://b.com)."}
        citations = extract_citations(ProviderKind.CHATGPT, payload, brand, context)

        assert [c.url for c in citations] == ["https://a.com/x", "https://b.com"]
        assert citations[0].text == "Citation 1: a.com"

    def test_typed_payload_accepted(self, brand, context):
        payload = ChatGPTPayload(response="https://a.com")
        citations = extract_citations(ProviderKind.CHATGPT, payload, brand, context)
        assert [c.url for c in citations] == ["https://a.com"]

    def test_payload_kind_mismatch(self, brand, context):
        with pytest.raises(PayloadError):
            extract_citations(ProviderKind.CHATGPT, PerplexityPayload(), brand, context)

    def test_malformed_payload_raises(self, brand, context):
        with pytest.raises(PayloadError):
            extract_citations(ProviderKind.CHATGPT, {"response": 5}, brand, context)


# =============================================================================
# GOOGLE AI OVERVIEW
# =============================================================================

class TestGoogleAIOverview:

    def test_references_and_search_links(self, brand, context):
        payload = {
            "aiOverview": "Compare tools at https://www.google.com/search?q=getcito",
            "aiOverviewReferences": [
                {"url": "https://getcito.com/blog", "title": "GetCito blog"},
            ],
        }
        citations = extract_citations(ProviderKind.GOOGLE, payload, brand, context)

        assert len(citations) == 2
        assert citations[0].source == "AI Overview Reference"
        assert citations[0].is_domain_citation
        assert citations[0].provider == "googleAI"
        assert citations[0].id == "googleAI-r1-1"

        # Emitted here, left out only by the domain leaderboard
        assert citations[1].domain == "google.com"
        assert citations[1].text == "Google Search"


# =============================================================================
# SHARED BEHAVIOR
# =============================================================================

class TestExtractorBehavior:

    def test_context_copied_onto_citations(self, brand, context):
        citations = extract_citations(ProviderKind.CHATGPT, {"response": "https://a.com"}, brand, context)

        citation = citations[0]
        assert citation.query == "best ai visibility tool"
        assert citation.query_id == "r1"
        assert citation.processing_session_id == "s1"
        assert citation.timestamp == context.timestamp

    def test_deterministic(self, brand, context):
        payload = {"response": "Sources: https://a.com, https://b.com and (peec.ai)"}
        extractor = CitationExtractor(brand)
        first = extractor.extract(ChatGPTPayload(**payload), context)
        second = extractor.extract(ChatGPTPayload(**payload), context)

        assert [c.model_dump() for c in first] == [c.model_dump() for c in second]
        assert [c.url for c in first] == ["https://a.com", "https://b.com", "https://peec.ai"]

    def test_empty_payload(self, brand, context):
        assert extract_citations(ProviderKind.GOOGLE, {}, brand, context) == []

    def test_default_context(self, brand):
        citations = extract_citations(ProviderKind.CHATGPT, {"response": "https://a.com"}, brand)
        assert citations[0].processing_session_id == "unknown"
