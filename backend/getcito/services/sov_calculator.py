"""
Share of Voice Calculator Service
Splits the mention market between the brand and its tracked competitors
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import List, Mapping, Optional

from getcito.config import COMPETITIVE_INTENSITY_THRESHOLDS, MARKET_POSITION_THRESHOLDS
from getcito.schemas.analytics import RankedEntity, ShareOfVoice


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero (0.5 -> 1)"""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def classify_competitive_intensity(competitor_pct: float) -> str:
    if competitor_pct <= COMPETITIVE_INTENSITY_THRESHOLDS["low"]:
        return "low"
    if competitor_pct <= COMPETITIVE_INTENSITY_THRESHOLDS["medium"]:
        return "medium"
    return "high"


def classify_market_position(competitor_pct: float) -> str:
    if competitor_pct < MARKET_POSITION_THRESHOLDS["leader"]:
        return "leader"
    if competitor_pct < MARKET_POSITION_THRESHOLDS["challenger"]:
        return "challenger"
    return "follower"


class ShareOfVoiceCalculator:
    """
    Calculates Share of Voice metrics:
    - Brand vs. combined competitor share of all mentions
    - Ranking of every entity with at least one mention
    - Competitive intensity and market position labels
    """

    def __init__(self, brand_name: str):
        self.brand_name = brand_name

    def _share(self, mentions: int, total_market: int) -> int:
        return round_half_up(mentions / total_market * 100)

    def _rank(self, brand_mentions: int, competitors: Mapping[str, int], total_market: int) -> List[RankedEntity]:
        entries = [(self.brand_name, brand_mentions, True)]
        entries += [(name, count, False) for name, count in competitors.items()]

        # sorted() is stable: brand first on ties, then competitor order
        ranked = sorted(
            (entry for entry in entries if entry[1] > 0),
            key=lambda entry: -entry[1],
        )

        return [
            RankedEntity(
                rank=rank,
                name=name,
                mentions=count,
                share_pct=round(count / total_market * 100, 2),
                is_brand=is_brand,
            )
            for rank, (name, count, is_brand) in enumerate(ranked, 1)
        ]

    def calculate(self, brand_mentions: int, competitors: Mapping[str, int]) -> ShareOfVoice:
        """
        Calculate share of voice.

        Args:
            brand_mentions: Total brand mentions
            competitors: Mentions per competitor name, in competitor order

        Returns:
            ShareOfVoice
        """
        brand_mentions = max(0, int(brand_mentions))
        competitors = {name: max(0, int(count)) for name, count in competitors.items()}
        competitor_mentions = sum(competitors.values())
        total_market = brand_mentions + competitor_mentions

        if total_market == 0:
            return ShareOfVoice(
                total_market=0,
                brand_mentions=0,
                competitor_mentions=0,
                brand_share_pct=100,
                competitor_share_pct=0,
                ranked_entities=[],
                brand_rank=1,
                top_entity=None,
                competitive_intensity=classify_competitive_intensity(0),
                market_position=classify_market_position(0),
            )

        # Computed independently so the two can sum to 99 or 101
        brand_pct = self._share(brand_mentions, total_market)
        competitor_pct = self._share(competitor_mentions, total_market)

        ranked = self._rank(brand_mentions, competitors, total_market)
        brand_rank: Optional[int] = next((e.rank for e in ranked if e.is_brand), None)

        return ShareOfVoice(
            total_market=total_market,
            brand_mentions=brand_mentions,
            competitor_mentions=competitor_mentions,
            brand_share_pct=brand_pct,
            competitor_share_pct=competitor_pct,
            ranked_entities=ranked,
            brand_rank=brand_rank,
            top_entity=ranked[0].name if ranked else None,
            competitive_intensity=classify_competitive_intensity(competitor_pct),
            market_position=classify_market_position(competitor_pct),
        )


def compute_share_of_voice(
    brand_mentions: int,
    competitors: Mapping[str, int],
    brand_name: str = "Brand",
) -> ShareOfVoice:
    return ShareOfVoiceCalculator(brand_name).calculate(brand_mentions, competitors)

