"""Tier classification - composite score to lending terms"""

from typing import Tuple

from credshield_gateway.domain.exceptions import InvalidScoreRange
from credshield_gateway.domain.models import Tier, TierTerms

MIN_SCORE = 300
MAX_SCORE = 900

# Ordered low to high; ranges are contiguous and inclusive at both ends
TIER_TABLE: Tuple[TierTerms, ...] = (
    TierTerms(Tier.BRONZE, 300, 549, collateral_ratio_bps=12_500, credit_limit=500, interest_rate_bps=800),
    TierTerms(Tier.SILVER, 550, 699, collateral_ratio_bps=10_000, credit_limit=1_000, interest_rate_bps=600),
    TierTerms(Tier.GOLD, 700, 799, collateral_ratio_bps=7_500, credit_limit=2_000, interest_rate_bps=400),
    TierTerms(Tier.PLATINUM, 800, 900, collateral_ratio_bps=5_000, credit_limit=5_000, interest_rate_bps=200),
)

DEFAULT_TERMS = TIER_TABLE[Tier.BRONZE]


def validate_score(score: int) -> int:
    """Reject scores outside 300-900 (manual score set)"""
    if not MIN_SCORE <= score <= MAX_SCORE:
        raise InvalidScoreRange(score)
    return score


def classify_tier(score: int) -> TierTerms:
    """
    Map a composite score to its tier terms.

    Score bands:
    - 300-549: Bronze   (125% collateral, 500 limit, 8%)
    - 550-699: Silver   (100% collateral, 1000 limit, 6%)
    - 700-799: Gold     (75% collateral, 2000 limit, 4%)
    - 800-900: Platinum (50% collateral, 5000 limit, 2%)
    """
    validate_score(score)
    for terms in reversed(TIER_TABLE):
        if score >= terms.min_score:
            return terms
    return DEFAULT_TERMS


def terms_for_tier(tier: Tier) -> TierTerms:
    return TIER_TABLE[tier]
