"""
Tests for the Share of Voice calculator.
"""

import pytest

from getcito.services.sov_calculator import (
    classify_competitive_intensity,
    classify_market_position,
    compute_share_of_voice,
    round_half_up,
)


# =============================================================================
# SHARES & RANKING
# =============================================================================

class TestShareOfVoice:

    def test_brand_leads_single_competitor(self):
        sov = compute_share_of_voice(70, {"Acme": 30}, brand_name="GetCito")

        assert sov.total_market == 100
        assert sov.brand_share_pct == 70
        assert sov.competitor_share_pct == 30
        assert sov.brand_rank == 1
        assert sov.top_entity == "GetCito"
        assert sov.competitive_intensity == "low"
        assert sov.market_position == "challenger"

    def test_brand_without_mentions_excluded_from_ranking(self):
        sov = compute_share_of_voice(0, {"Acme": 60, "Globex": 40}, brand_name="GetCito")

        assert sov.brand_share_pct == 0
        assert sov.competitor_share_pct == 100
        assert sov.brand_rank is None
        assert sov.top_entity == "Acme"
        assert [e.name for e in sov.ranked_entities] == ["Acme", "Globex"]
        assert sov.competitive_intensity == "high"
        assert sov.market_position == "follower"

    def test_empty_market(self):
        sov = compute_share_of_voice(0, {})

        assert sov.total_market == 0
        assert sov.brand_share_pct == 100
        assert sov.competitor_share_pct == 0
        assert sov.brand_rank == 1
        assert sov.ranked_entities == []
        assert sov.top_entity is None

    def test_competitors_without_mentions_left_out(self):
        sov = compute_share_of_voice(5, {"Acme": 0, "Globex": 3})
        assert [e.name for e in sov.ranked_entities] == ["Brand", "Globex"]

    def test_brand_first_on_tie(self):
        sov = compute_share_of_voice(5, {"Acme": 5})

        assert sov.brand_rank == 1
        assert sov.ranked_entities[0].is_brand
        assert sov.ranked_entities[1].rank == 2

    def test_competitor_order_kept_on_tie(self):
        sov = compute_share_of_voice(1, {"Zeta": 4, "Alpha": 4})
        assert [e.name for e in sov.ranked_entities] == ["Zeta", "Alpha", "Brand"]

    def test_entity_shares(self):
        sov = compute_share_of_voice(1, {"A": 2})
        assert [e.share_pct for e in sov.ranked_entities] == [66.67, 33.33]

    def test_independent_rounding_can_exceed_100(self):
        sov = compute_share_of_voice(1, {"A": 7})

        assert sov.brand_share_pct == 13  # 12.5
        assert sov.competitor_share_pct == 88  # 87.5
        assert 99 <= sov.brand_share_pct + sov.competitor_share_pct <= 101

    def test_thirds(self):
        sov = compute_share_of_voice(1, {"A": 1, "B": 1})

        assert sov.brand_share_pct == 33
        assert sov.competitor_share_pct == 67

    def test_negative_counts_clamped(self):
        sov = compute_share_of_voice(-3, {"A": 2})
        assert sov.brand_mentions == 0
        assert sov.competitor_share_pct == 100


# =============================================================================
# CLASSIFIERS
# =============================================================================

class TestClassifiers:

    @pytest.mark.parametrize("value,expected", [
        (0.5, 1),
        (1.5, 2),
        (2.5, 3),
        (2.49, 2),
        (66.666, 67),
    ])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    @pytest.mark.parametrize("pct,expected", [
        (0, "low"),
        (30, "low"),
        (30.01, "medium"),
        (60, "medium"),
        (60.5, "high"),
        (100, "high"),
    ])
    def test_competitive_intensity(self, pct, expected):
        assert classify_competitive_intensity(pct) == expected

    @pytest.mark.parametrize("pct,expected", [
        (0, "leader"),
        (19.99, "leader"),
        (20, "challenger"),
        (49.99, "challenger"),
        (50, "follower"),
    ])
    def test_market_position(self, pct, expected):
        assert classify_market_position(pct) == expected
