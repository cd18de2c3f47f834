"""Score combiner - core business logic for credit scoring"""

from typing import Iterable, Sequence, Tuple

from credshield_gateway.domain.dimensions import DIMENSION_SCORERS, DimensionScorer
from credshield_gateway.domain.models import ActivitySnapshot, DimensionScore, ScoreResult
from credshield_gateway.domain.protocols import ProtocolRegistry, default_registry
from credshield_gateway.domain.tiers import MAX_SCORE, MIN_SCORE, classify_tier

RAW_TOTAL_MAX = 900
SCORE_SPAN = MAX_SCORE - MIN_SCORE


def analyze_dimensions(
    snapshot: ActivitySnapshot,
    registry: ProtocolRegistry = default_registry,
    scorers: Sequence[DimensionScorer] = DIMENSION_SCORERS,
) -> Tuple[DimensionScore, ...]:
    """Run every dimension scorer over the snapshot, in fixed order"""
    return tuple(scorer(snapshot, registry) for scorer in scorers)


def combine_dimensions(dimensions: Iterable[DimensionScore]) -> int:
    """
    Collapse dimension scores into the 300-900 composite.

    composite = clamp(300 + floor(rawTotal / 900 * 600), 300, 900)

    An address with no activity lands exactly on the 300 floor.
    """
    raw_total = sum(d.score for d in dimensions)
    composite = MIN_SCORE + raw_total * SCORE_SPAN // RAW_TOTAL_MAX
    return max(MIN_SCORE, min(MAX_SCORE, composite))


def compute_score(
    snapshot: ActivitySnapshot,
    registry: ProtocolRegistry = default_registry,
) -> ScoreResult:
    """
    Main entry point: score a snapshot and classify its tier.

    Pure and deterministic: the only notion of "now" is snapshot.as_of.
    """
    dimensions = analyze_dimensions(snapshot, registry)
    score = combine_dimensions(dimensions)

    return ScoreResult(
        address=snapshot.address,
        score=score,
        terms=classify_tier(score),
        dimensions=dimensions,
    )
