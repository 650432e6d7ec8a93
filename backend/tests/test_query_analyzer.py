"""
Tests for per-query analysis.
"""

import logging

from conftest import chatgpt_result, make_record, perplexity_result

from getcito.adapters.providers import ProviderKind
from getcito.schemas.query import QueryResultRecord
from getcito.services.query_analyzer import QueryAnalyzer, analyze_query


def record(**kwargs):
    return QueryResultRecord.model_validate(make_record(record_id="r1", **kwargs))


class TestProviderResults:

    def test_malformed_google_result_skipped(self, brand, competitors):
        rec = record(
            chatgpt=chatgpt_result("GetCito is useful."),
            google="<html>captcha</html>",
            perplexity=perplexity_result("Nothing about the brand."),
        )
        analysis = analyze_query(rec, brand, competitors)

        assert set(analysis.providers) == {ProviderKind.CHATGPT, ProviderKind.PERPLEXITY}
        assert analysis.brand_mentioned

    def test_wrongly_typed_field_skipped(self, brand):
        rec = record(chatgpt=chatgpt_result("GetCito"), google={"aiOverview": ["not", "text"]})
        analysis = analyze_query(rec, brand)
        assert set(analysis.providers) == {ProviderKind.CHATGPT}

    def test_unknown_provider_ignored(self, brand, caplog):
        rec = record(chatgpt=chatgpt_result("GetCito"), claude={"response": "GetCito"})
        with caplog.at_level(logging.WARNING):
            analysis = analyze_query(rec, brand)

        assert set(analysis.providers) == {ProviderKind.CHATGPT}
        assert analysis.brand_mention_count == 1
        assert "unknown provider" in caplog.text

    def test_failed_result_ignored(self, brand):
        rec = record(
            chatgpt={"error": "timeout", "response": ""},
            perplexity=perplexity_result("GetCito"),
        )
        analysis = analyze_query(rec, brand)
        assert set(analysis.providers) == {ProviderKind.PERPLEXITY}

    def test_google_key_alias(self, brand):
        rec = QueryResultRecord.model_validate({
            "query": "q",
            "results": {"google": {"aiOverview": "GetCito appears here"}},
        })
        analysis = analyze_query(rec, brand)
        assert analysis.providers[ProviderKind.GOOGLE].brand.mention_count == 1

    def test_no_results(self, brand):
        analysis = analyze_query(record(), brand)
        assert analysis.providers == {}
        assert not analysis.brand_mentioned
        assert analysis.citations == []


class TestMentions:

    def test_brand_counts_summed_across_providers(self, brand):
        rec = record(
            chatgpt=chatgpt_result("GetCito is good. getcito again."),
            perplexity=perplexity_result("GetCito"),
        )
        analysis = analyze_query(rec, brand)

        assert analysis.providers[ProviderKind.CHATGPT].brand.mention_count == 2
        assert analysis.brand_mention_count == 3

    def test_competitors_in_configured_order(self, brand, competitors):
        rec = record(chatgpt=chatgpt_result("Peec, Profound and Peec again."))
        analysis = analyze_query(rec, brand, competitors)

        chatgpt = analysis.providers[ProviderKind.CHATGPT]
        assert chatgpt.competitors["Peec"].mention_count == 2
        assert chatgpt.competitors["Profound"].mention_count == 1
        assert chatgpt.competitor_mentions == 3
        assert analysis.competitors_mentioned() == ["Profound", "Peec"]
        assert not analysis.brand_mentioned

    def test_competitor_domain_citations(self, brand, competitors):
        rec = record(chatgpt=chatgpt_result("", [{"url": "https://www.tryprofound.com/", "title": "Docs"}]))
        analysis = analyze_query(rec, brand, competitors)

        chatgpt = analysis.providers[ProviderKind.CHATGPT]
        assert chatgpt.competitors["Profound"].domain_citations == 1
        assert chatgpt.competitors["Profound"].mention_count == 0
        assert not analysis.competitor_mentioned("Profound")

    def test_brand_domain_citations(self, brand):
        rec = record(perplexity=perplexity_result("", ["https://getcito.com/a", "https://other.com"]))
        analysis = analyze_query(rec, brand)

        perplexity = analysis.providers[ProviderKind.PERPLEXITY]
        assert perplexity.citation_count == 2
        assert perplexity.domain_citation_count == 1
        assert perplexity.brand.domain_citations == 1

    def test_analyzer_reused_across_records(self, brand, competitors):
        analyzer = QueryAnalyzer(brand, competitors)
        first = analyzer.analyze(record(chatgpt=chatgpt_result("GetCito")))
        second = analyzer.analyze(record(chatgpt=chatgpt_result("Peec")))

        assert first.brand_mentioned
        assert not second.brand_mentioned
        assert second.competitor_mentioned("Peec")

    def test_response_time_carried(self, brand):
        rec = record(chatgpt=chatgpt_result("GetCito", responseTime=1.5))
        analysis = analyze_query(rec, brand)
        assert analysis.providers[ProviderKind.CHATGPT].response_time == 1.5
