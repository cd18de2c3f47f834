"""Unit tests for score combination and tier classification"""

import pytest

from credshield_gateway.domain.dimensions import DIMENSION_LIMITS
from credshield_gateway.domain.exceptions import InvalidScoreRange
from credshield_gateway.domain.models import DimensionScore, Tier
from credshield_gateway.domain.scoring import analyze_dimensions, combine_dimensions, compute_score
from credshield_gateway.domain.tiers import classify_tier, validate_score


def _dimensions_totalling(raw_total: int):
    """Spread raw points across the dimensions in fixed order"""
    dims = []
    for name, (max_score, weight_bps) in DIMENSION_LIMITS.items():
        score = min(max_score, raw_total)
        raw_total -= score
        dims.append(DimensionScore(name, score, max_score, weight_bps, ""))
    return dims


@pytest.mark.parametrize(
    "raw_total, expected",
    [
        (0, 300),
        (449, 599),  # 300 + floor(449 * 600 / 900)
        (450, 600),
        (825, 850),
        (900, 900),
    ],
)
def test_combine_dimensions(raw_total, expected):
    assert combine_dimensions(_dimensions_totalling(raw_total)) == expected


def test_empty_wallet_lands_on_floor(empty_activity):
    result = compute_score(empty_activity)

    assert result.score == 300
    assert result.tier == Tier.BRONZE
    assert result.raw_total == 0


def test_veteran_wallet_is_platinum(veteran_snapshot):
    result = compute_score(veteran_snapshot)

    assert result.score >= 800
    assert result.tier == Tier.PLATINUM
    assert result.terms.collateral_ratio_bps == 5_000


def test_score_is_deterministic(veteran_snapshot):
    assert compute_score(veteran_snapshot) == compute_score(veteran_snapshot)


def test_dimensions_in_fixed_order(empty_activity):
    names = [d.name for d in analyze_dimensions(empty_activity)]

    assert names == list(DIMENSION_LIMITS)


@pytest.mark.parametrize(
    "score, tier, ratio, limit, rate",
    [
        (300, Tier.BRONZE, 12_500, 500, 800),
        (549, Tier.BRONZE, 12_500, 500, 800),
        (550, Tier.SILVER, 10_000, 1_000, 600),
        (699, Tier.SILVER, 10_000, 1_000, 600),
        (700, Tier.GOLD, 7_500, 2_000, 400),
        (799, Tier.GOLD, 7_500, 2_000, 400),
        (800, Tier.PLATINUM, 5_000, 5_000, 200),
        (900, Tier.PLATINUM, 5_000, 5_000, 200),
    ],
)
def test_tier_boundaries(score, tier, ratio, limit, rate):
    terms = classify_tier(score)

    assert terms.tier == tier
    assert terms.collateral_ratio_bps == ratio
    assert terms.credit_limit == limit
    assert terms.interest_rate_bps == rate


@pytest.mark.parametrize("score", [0, 299, 901, 1000])
def test_out_of_range_scores_rejected(score):
    with pytest.raises(InvalidScoreRange):
        validate_score(score)
    with pytest.raises(InvalidScoreRange):
        classify_tier(score)
